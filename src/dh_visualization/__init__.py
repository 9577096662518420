"""
DH Visualization: marker anchoring and joint stepping for a DH-parameter teaching aid.

This library turns a noisy, intermittent stream of fiducial marker poses into
stable per-marker anchor frames, and drives a linear sequence that reveals one
joint frame at a time.
"""

import jax
jax.config.update("jax_enable_x64", True)

# Import core modules
from . import transforms
from . import core
from . import io
from .core import (
    Anchor,
    AnchorRegistry,
    ConfigurationError,
    DeadbandSettings,
    JointDefinition,
    MarkerDetection,
    PoseFilter,
    RobotConfiguration,
    TagMapping,
)
from .sequencer import SequencerPhase, SequencerState, StepSequencer
from .visibility import JointVisibilityPolicy
from .session import NavigationCommand, TickReport, VisualizationSession

__version__ = "0.1.0"
__all__ = [
    "transforms",
    "core",
    "io",
    "Anchor",
    "AnchorRegistry",
    "ConfigurationError",
    "DeadbandSettings",
    "JointDefinition",
    "JointVisibilityPolicy",
    "MarkerDetection",
    "NavigationCommand",
    "PoseFilter",
    "RobotConfiguration",
    "SequencerPhase",
    "SequencerState",
    "StepSequencer",
    "TagMapping",
    "TickReport",
    "VisualizationSession",
]
