"""I/O utilities for loading robot configurations from disk.

This module parses the XML configuration format and converts it to the
immutable configuration structures used by the rest of the package.
"""

from .config_parser import load_deadband_settings, load_robot_configuration

__all__ = ["load_deadband_settings", "load_robot_configuration"]
