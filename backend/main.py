"""
Antenna Rotor - Main Entry Point

Run with: uvicorn main:app --reload --port 8000
"""

import sys
from pathlib import Path

# Add backend to path for imports
backend_path = Path(__file__).parent
sys.path.insert(0, str(backend_path))

import uvicorn

from rotor_api.app import create_app
from rotor_api.dependencies import get_app_state


# Create app instance
app = create_app()


# === Startup/Shutdown Events ===

@app.on_event("startup")
async def startup_event():
    """Initialize on startup"""
    print("=" * 50)
    print("  Antenna Rotor v1.0")
    print("=" * 50)
    print()
    print("Connect with POST /api/connect {\"port\": \"/dev/ttyUSB0\"}")
    print("  (port \"mock\" uses the simulated controller)")
    print()
    print("API ready at http://localhost:8000")
    print("Docs at http://localhost:8000/docs")
    print()


@app.on_event("shutdown")
async def shutdown_event():
    """Release the serial port on shutdown"""
    state = get_app_state()
    if state.is_connected:
        print("[SHUTDOWN] Disconnecting from rotor...")
        state.disconnect()


# === Health Check ===

@app.get("/health")
def health_check():
    """Health check endpoint"""
    state = get_app_state()
    status = state.get_status()
    return {
        "status": "ok",
        "version": "1.0.0",
        "connected": state.is_connected,
        "phase": status["phase"],
    }


# === Run directly ===

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
