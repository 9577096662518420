"""SO(3) rotation matrix operations in JAX.

Rotation matrices are built from the tracker's quaternions and from the Euler
offsets of the joint definitions. All functions are pure, JIT-able, and
operate on JAX arrays.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def from_quaternion(quaternions: Array) -> Array:
    """
    Convert quaternions to rotation matrices.

    Args:
        quaternions: (..., 4) array of quaternions in (w, x, y, z) format

    Returns:
        (..., 3, 3) array of rotation matrices
    """
    # Normalize quaternions for numerical stability
    quaternions = quaternions / jnp.linalg.norm(quaternions, axis=-1, keepdims=True)

    w, x, y, z = jnp.moveaxis(quaternions, -1, 0)

    xx, yy, zz = x*x, y*y, z*z
    wx, wy, wz = w*x, w*y, w*z
    xy, xz, yz = x*y, x*z, y*z

    return jnp.stack([
        jnp.stack([1 - 2*(yy + zz), 2*(xy - wz), 2*(xz + wy)], axis=-1),
        jnp.stack([2*(xy + wz), 1 - 2*(xx + zz), 2*(yz - wx)], axis=-1),
        jnp.stack([2*(xz - wy), 2*(yz + wx), 1 - 2*(xx + yy)], axis=-1)
    ], axis=-2)


def from_euler_degrees(euler: Array) -> Array:
    """
    Convert Euler angles in degrees to a rotation matrix.

    The joint offsets were authored in an engine that applies the Z rotation
    first, then X, then Y, i.e. R = Ry @ Rx @ Rz.

    Args:
        euler: (3,) angles [x, y, z] in degrees

    Returns:
        (3, 3) rotation matrix
    """
    rx, ry, rz = jnp.radians(jnp.asarray(euler, dtype=float))

    R_x = jnp.array([
        [1.0, 0.0, 0.0],
        [0.0, jnp.cos(rx), -jnp.sin(rx)],
        [0.0, jnp.sin(rx), jnp.cos(rx)]
    ])

    R_y = jnp.array([
        [jnp.cos(ry), 0.0, jnp.sin(ry)],
        [0.0, 1.0, 0.0],
        [-jnp.sin(ry), 0.0, jnp.cos(ry)]
    ])

    R_z = jnp.array([
        [jnp.cos(rz), -jnp.sin(rz), 0.0],
        [jnp.sin(rz), jnp.cos(rz), 0.0],
        [0.0, 0.0, 1.0]
    ])

    return R_y @ R_x @ R_z
