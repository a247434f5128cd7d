"""API Routes - Domain-based routing"""

from .connection import router as connection_router
from .motion import router as motion_router
from .position import router as position_router

__all__ = [
    'connection_router',
    'motion_router',
    'position_router',
]
