"""HTTP wrapper around a single MotionController"""
