"""Core data structures and tracking state for DH Visualization.

This module provides the immutable robot configuration, the per-marker
deadband filter and anchor, and the registry that routes tracker output.
"""

from .robot_configuration import (
    ConfigurationError,
    DeadbandSettings,
    JointDefinition,
    MarkerDetection,
    RobotConfiguration,
    TagMapping,
)
from .events import Signal
from .pose_filter import PoseFilter
from .anchor import Anchor
from .anchor_registry import AnchorRegistry

__all__ = [
    "Anchor",
    "AnchorRegistry",
    "ConfigurationError",
    "DeadbandSettings",
    "JointDefinition",
    "MarkerDetection",
    "PoseFilter",
    "RobotConfiguration",
    "Signal",
    "TagMapping",
]
