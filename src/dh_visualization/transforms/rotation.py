"""Quaternion utilities in JAX."""

import jax
import jax.numpy as jnp
from typing import Union

# Type aliases
Array = jax.Array
Scalar = Union[float, Array]


def identity() -> Array:
    """The (w, x, y, z) identity quaternion."""
    return jnp.array([1.0, 0.0, 0.0, 0.0])


def normalize_quaternions(quaternions: Array) -> Array:
    """Normalize quaternions to unit length."""
    return quaternions / jnp.linalg.norm(quaternions, axis=-1, keepdims=True)


def as_quaternion(value) -> Array:
    """
    Coerce a (w, x, y, z) sequence into a normalized float quaternion.

    Args:
        value: Sequence or array with 4 elements

    Returns:
        (4,) array of a unit quaternion

    Raises:
        ValueError: If the input does not have shape (4,) or has zero norm
    """
    q = jnp.asarray(value, dtype=float)
    if q.shape != (4,):
        raise ValueError(f"quaternion must have shape (4,), got {q.shape}")
    norm = jnp.linalg.norm(q)
    if not bool(norm > 0.0):
        raise ValueError("quaternion must have non-zero norm")
    return q / norm


def as_vector3(value, name: str = "vector") -> Array:
    """
    Coerce a 3-element sequence into a float vector.

    Args:
        value: Sequence or array with 3 elements
        name: What the vector holds, used in the error message

    Raises:
        ValueError: If the input does not have shape (3,)
    """
    v = jnp.asarray(value, dtype=float)
    if v.shape != (3,):
        raise ValueError(f"{name} must have shape (3,), got {v.shape}")
    return v


def as_position(value) -> Array:
    """Coerce an (x, y, z) sequence into a float position vector."""
    return as_vector3(value, "position")


def angle_between_degrees(q1: Array, q2: Array) -> Array:
    """
    Shortest-arc rotation angle between two orientations.

    q and -q encode the same orientation, so the absolute value of the dot
    product is used and the result always lies in [0, 180] degrees.

    Args:
        q1: (..., 4) quaternions in (w, x, y, z) format
        q2: (..., 4) quaternions in (w, x, y, z) format

    Returns:
        (...) array of angles in degrees
    """
    q1 = normalize_quaternions(q1)
    q2 = normalize_quaternions(q2)

    dot = jnp.abs(jnp.sum(q1 * q2, axis=-1))
    dot = jnp.clip(dot, 0.0, 1.0)  # Numerical stability

    return jnp.degrees(2.0 * jnp.arccos(dot))


def from_axis_angle_degrees(axis: Array, angle_degrees: Scalar) -> Array:
    """
    Build a quaternion rotating by ``angle_degrees`` about ``axis``.

    Args:
        axis: (3,) rotation axis, need not be unit length
        angle_degrees: rotation angle in degrees

    Returns:
        (4,) quaternion in (w, x, y, z) format
    """
    axis = jnp.asarray(axis, dtype=float)
    axis = axis / jnp.linalg.norm(axis)
    half = jnp.radians(angle_degrees) / 2.0
    return jnp.concatenate([jnp.cos(half)[None], jnp.sin(half) * axis])
