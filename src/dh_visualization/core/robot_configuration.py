"""Immutable configuration structures for marker-to-joint assignment.

This module defines the static description of a robot for the teaching aid:
which printed markers exist, how large they are, and which joints hang off
each marker at which local offset. Everything here is an immutable PyTree so
it can be handed to JAX code unchanged.
"""

from typing import Dict, Iterator, Sequence, Tuple

import jax
from flax import struct

from ..transforms.rotation import as_position, as_quaternion, as_vector3

Array = jax.Array

DEFAULT_MARKER_SIZE_METERS = 0.1
DEFAULT_POSITION_THRESHOLD_METERS = 0.02
DEFAULT_ROTATION_THRESHOLD_DEGREES = 2.0


class ConfigurationError(ValueError):
    """Raised when a robot configuration or its settings are malformed."""


@struct.dataclass
class JointDefinition:
    """A single joint placed relative to the origin of its marker.

    Attributes:
        joint_id: Unique joint identifier. Also the step index at which the
                  joint is revealed.
        position_offset: (3,) local offset from the marker origin in meters.
        rotation_offset: (3,) local Euler offset in degrees.
    """
    joint_id: int = struct.field(pytree_node=False)
    position_offset: Array
    rotation_offset: Array

    @classmethod
    def create(cls, joint_id: int, position_offset=(0.0, 0.0, 0.0),
               rotation_offset=(0.0, 0.0, 0.0)) -> "JointDefinition":
        try:
            position = as_vector3(position_offset, "position offset")
            rotation = as_vector3(rotation_offset, "rotation offset")
        except ValueError as exc:
            raise ConfigurationError(f"Joint {joint_id}: {exc}") from exc
        return cls(joint_id=int(joint_id), position_offset=position, rotation_offset=rotation)


@struct.dataclass
class TagMapping:
    """One printed marker and the joints attached to it."""
    marker_id: int = struct.field(pytree_node=False)
    marker_size_meters: float = struct.field(pytree_node=False)
    joints: Tuple[JointDefinition, ...]

    @classmethod
    def create(cls, marker_id: int, joints: Sequence[JointDefinition] = (),
               marker_size_meters: float = DEFAULT_MARKER_SIZE_METERS) -> "TagMapping":
        if not marker_size_meters > 0:
            raise ConfigurationError(
                f"Marker {marker_id}: size must be positive, got {marker_size_meters}"
            )
        return cls(marker_id=int(marker_id), marker_size_meters=float(marker_size_meters),
                   joints=tuple(joints))


@struct.dataclass
class RobotConfiguration:
    """Ordered set of tag mappings describing a whole robot."""
    name: str = struct.field(pytree_node=False)
    tag_mappings: Tuple[TagMapping, ...]

    @classmethod
    def create(cls, tag_mappings: Sequence[TagMapping] = (), name: str = "") -> "RobotConfiguration":
        return cls(name=name, tag_mappings=tuple(tag_mappings))

    @classmethod
    def empty(cls, name: str = "") -> "RobotConfiguration":
        return cls(name=name, tag_mappings=())

    def is_empty(self) -> bool:
        return len(self.tag_mappings) == 0

    def total_joint_count(self) -> int:
        return sum(len(mapping.joints) for mapping in self.tag_mappings)

    def marker_ids(self) -> Tuple[int, ...]:
        """Distinct marker ids in first-seen order."""
        return tuple(dict.fromkeys(mapping.marker_id for mapping in self.tag_mappings))

    def iter_joints(self) -> Iterator[Tuple[int, JointDefinition]]:
        """Yield (marker_id, joint) pairs in configuration order."""
        for mapping in self.tag_mappings:
            for joint in mapping.joints:
                yield mapping.marker_id, joint

    def joint_ids(self) -> Tuple[int, ...]:
        return tuple(joint.joint_id for _, joint in self.iter_joints())

    def validate(self) -> None:
        """Check cross-mapping invariants.

        Joint ids must be unique across the entire configuration. A marker may
        appear in several mappings; those mappings share one anchor.

        Raises:
            ConfigurationError: If any joint id is declared more than once
        """
        owners: Dict[int, int] = {}
        for marker_id, joint in self.iter_joints():
            if joint.joint_id in owners:
                raise ConfigurationError(
                    f"Duplicate joint id {joint.joint_id} "
                    f"(markers {owners[joint.joint_id]} and {marker_id})"
                )
            owners[joint.joint_id] = marker_id


@struct.dataclass
class DeadbandSettings:
    """Thresholds below which a new marker pose is treated as noise."""
    position_threshold_meters: float = struct.field(
        pytree_node=False, default=DEFAULT_POSITION_THRESHOLD_METERS)
    rotation_threshold_degrees: float = struct.field(
        pytree_node=False, default=DEFAULT_ROTATION_THRESHOLD_DEGREES)

    def __post_init__(self):
        if self.position_threshold_meters < 0:
            raise ConfigurationError(
                f"position threshold must be >= 0, got {self.position_threshold_meters}")
        if self.rotation_threshold_degrees < 0:
            raise ConfigurationError(
                f"rotation threshold must be >= 0, got {self.rotation_threshold_degrees}")


@struct.dataclass
class MarkerDetection:
    """One marker pose reported by the tracker during a single tick."""
    marker_id: int = struct.field(pytree_node=False)
    position: Array
    rotation: Array

    @classmethod
    def create(cls, marker_id: int, position, rotation) -> "MarkerDetection":
        return cls(marker_id=int(marker_id), position=as_position(position),
                   rotation=as_quaternion(rotation))
