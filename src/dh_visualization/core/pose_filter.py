"""Deadband filter that suppresses tracker jitter on a single marker pose."""

import jax
import jax.numpy as jnp

from ..transforms import rotation
from .robot_configuration import DeadbandSettings

Array = jax.Array


class PoseFilter:
    """Caches one pose and only replaces it when the change is large enough.

    The first sample is always latched. After that a sample is accepted when
    it moves the position by at least ``position_threshold_meters`` OR turns
    the orientation by at least ``rotation_threshold_degrees``; either axis
    alone is enough. Position change is the Euclidean distance, so diagonal
    motion is measured correctly. Orientation change is the shortest-arc
    angle in [0, 180] degrees.

    Attributes:
        position_threshold_meters: Position deadband, fixed at construction.
        rotation_threshold_degrees: Rotation deadband, fixed at construction.
    """

    def __init__(self, settings: DeadbandSettings = DeadbandSettings()):
        self.position_threshold_meters = float(settings.position_threshold_meters)
        self.rotation_threshold_degrees = float(settings.rotation_threshold_degrees)

        self._cached_position: Array = jnp.zeros(3)
        self._cached_rotation: Array = rotation.identity()
        self._initialized = False

    @property
    def position(self) -> Array:
        """The filtered position (zeros until initialized)."""
        return self._cached_position

    @property
    def rotation(self) -> Array:
        """The filtered (w, x, y, z) orientation (identity until initialized)."""
        return self._cached_rotation

    @property
    def initialized(self) -> bool:
        return self._initialized

    def try_update(self, new_position, new_rotation) -> bool:
        """Offer a raw tracker pose to the filter.

        Args:
            new_position: (3,) position in meters
            new_rotation: (4,) orientation quaternion in (w, x, y, z) format

        Returns:
            True if the cached pose was replaced, False if the sample fell
            inside the deadband and the cache is untouched.
        """
        if not self._initialized:
            self.force_update(new_position, new_rotation)
            return True

        position = rotation.as_position(new_position)
        orientation = rotation.as_quaternion(new_rotation)

        position_delta = float(jnp.linalg.norm(position - self._cached_position))
        rotation_delta = float(rotation.angle_between_degrees(self._cached_rotation, orientation))

        if (position_delta >= self.position_threshold_meters
                or rotation_delta >= self.rotation_threshold_degrees):
            self._cached_position = position
            self._cached_rotation = orientation
            return True

        return False

    def force_update(self, position, orientation) -> None:
        """Overwrite the cached pose unconditionally and mark it initialized."""
        self._cached_position = rotation.as_position(position)
        self._cached_rotation = rotation.as_quaternion(orientation)
        self._initialized = True

    def __repr__(self) -> str:
        return (f"PoseFilter(position_threshold_meters={self.position_threshold_meters}, "
                f"rotation_threshold_degrees={self.rotation_threshold_degrees}, "
                f"initialized={self._initialized})")
