"""
JAX-based rotation and rigid-body helpers for marker poses.

This module provides pure, JIT-compilable implementations of:
- quaternion utilities and shortest-arc angles (rotation module)
- SO(3) rotation matrices (so3 module)
- SE(3) rigid body transforms (se3 module)
"""

from . import rotation
from . import so3
from . import se3

__all__ = [
    "rotation",
    "so3",
    "se3",
]
