"""XML loader for robot configurations and deadband settings.

Expected layout::

    <robot_configuration name="two_link_arm">
      <deadband position_meters="0.02" rotation_degrees="2.0"/>
      <tag_mapping marker_id="0" size_meters="0.1">
        <joint id="0" xyz="0 0 0" rpy_degrees="0 0 0"/>
      </tag_mapping>
    </robot_configuration>

Duplicate joint ids are left for RobotConfiguration.validate() so that the
caller decides how to degrade.
"""

import logging
from typing import List

import numpy as np
from lxml import etree

from dh_visualization.core.robot_configuration import (
    DEFAULT_MARKER_SIZE_METERS,
    DEFAULT_POSITION_THRESHOLD_METERS,
    DEFAULT_ROTATION_THRESHOLD_DEGREES,
    ConfigurationError,
    DeadbandSettings,
    JointDefinition,
    RobotConfiguration,
    TagMapping,
)

logger = logging.getLogger(__name__)


def load_robot_configuration(config_path: str) -> RobotConfiguration:
    """Load a robot configuration XML file.

    Args:
        config_path: Path to the XML file to load.

    Returns:
        RobotConfiguration: The parsed, not yet validated, configuration.

    Raises:
        ConfigurationError: If the file is not well formed or a value is invalid.
    """
    root = _parse_root(config_path)

    tag_mappings: List[TagMapping] = []
    for mapping_elem in root.findall('tag_mapping'):
        marker_id = _parse_int(mapping_elem, 'marker_id')
        size = _parse_float(mapping_elem, 'size_meters', DEFAULT_MARKER_SIZE_METERS)

        joints = []
        for joint_elem in mapping_elem.findall('joint'):
            joints.append(JointDefinition.create(
                joint_id=_parse_int(joint_elem, 'id'),
                position_offset=_parse_vector(joint_elem, 'xyz'),
                rotation_offset=_parse_vector(joint_elem, 'rpy_degrees'),
            ))

        tag_mappings.append(TagMapping.create(marker_id, joints, marker_size_meters=size))

    configuration = RobotConfiguration.create(tag_mappings, name=root.get('name', ''))
    logger.info(f"Loaded configuration {configuration.name!r} from {config_path}: "
                f"{len(tag_mappings)} tag mappings, {configuration.total_joint_count()} joints")
    return configuration


def load_deadband_settings(config_path: str) -> DeadbandSettings:
    """Read the optional ``<deadband>`` element; defaults apply when absent."""
    root = _parse_root(config_path)

    deadband_elem = root.find('deadband')
    if deadband_elem is None:
        return DeadbandSettings()

    return DeadbandSettings(
        position_threshold_meters=_parse_float(
            deadband_elem, 'position_meters', DEFAULT_POSITION_THRESHOLD_METERS),
        rotation_threshold_degrees=_parse_float(
            deadband_elem, 'rotation_degrees', DEFAULT_ROTATION_THRESHOLD_DEGREES),
    )


def _parse_root(config_path: str):
    try:
        tree = etree.parse(config_path)
    except etree.XMLSyntaxError as exc:
        raise ConfigurationError(f"Malformed configuration file {config_path}: {exc}") from exc

    root = tree.getroot()
    if root.tag != 'robot_configuration':
        raise ConfigurationError(
            f"Expected <robot_configuration> root element, found <{root.tag}>")
    return root


def _parse_int(elem, attribute: str) -> int:
    raw = elem.get(attribute)
    if raw is None:
        raise ConfigurationError(f"<{elem.tag}> is missing required attribute '{attribute}'")
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"<{elem.tag}> attribute '{attribute}' must be an integer, got {raw!r}") from exc


def _parse_float(elem, attribute: str, default: float) -> float:
    raw = elem.get(attribute)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"<{elem.tag}> attribute '{attribute}' must be a number, got {raw!r}") from exc


def _parse_vector(elem, attribute: str) -> np.ndarray:
    raw = elem.get(attribute, '0 0 0')
    try:
        values = np.array([float(x) for x in raw.split()])
    except ValueError as exc:
        raise ConfigurationError(
            f"<{elem.tag}> attribute '{attribute}' must hold numbers, got {raw!r}") from exc
    if values.shape != (3,):
        raise ConfigurationError(
            f"<{elem.tag}> attribute '{attribute}' needs 3 values, got {len(values)}")
    return values
