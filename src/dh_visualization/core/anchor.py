"""Persistent world frame for one physical marker."""

import jax

from ..transforms import se3
from .pose_filter import PoseFilter
from .robot_configuration import DeadbandSettings

Array = jax.Array


class Anchor:
    """The retained pose of a single marker plus its first-tracked latch.

    Tracking loss is never signalled explicitly: when the tracker stops
    reporting a marker, ``update_from_tracking`` is simply not called and the
    last accepted pose is kept for as long as the anchor exists.
    """

    def __init__(self, marker_id: int, settings: DeadbandSettings = DeadbandSettings()):
        self.marker_id = marker_id
        self.pose_filter = PoseFilter(settings)
        self._has_ever_been_tracked = False

    @property
    def has_ever_been_tracked(self) -> bool:
        """True from the first accepted tracker sample onward; never resets."""
        return self._has_ever_been_tracked

    @property
    def position(self) -> Array:
        return self.pose_filter.position

    @property
    def rotation(self) -> Array:
        return self.pose_filter.rotation

    @property
    def world_transform(self) -> Array:
        """(4, 4) homogeneous transform of the anchored frame."""
        return se3.from_pose(self.position, self.rotation)

    def update_from_tracking(self, position, orientation) -> bool:
        """Feed one tracker sample through the deadband filter.

        Returns:
            True if the pose changed. False only means the sample did not
            clear the deadband; it says nothing about the marker being lost.
        """
        if not self.pose_filter.try_update(position, orientation):
            return False

        self._has_ever_been_tracked = True
        return True

    def __repr__(self) -> str:
        return f"Anchor(marker_id={self.marker_id}, tracked={self._has_ever_been_tracked})"
