"""World frames of the joint axis gadgets.

Each joint is drawn at its marker's anchored pose composed with the joint's
local offset: T_world_joint = T_world_anchor @ T_anchor_joint.
"""

from typing import Dict, Iterable, Optional

import jax
import jax.numpy as jnp

from .core.anchor import Anchor
from .core.anchor_registry import AnchorRegistry
from .core.robot_configuration import JointDefinition, RobotConfiguration
from .transforms import se3, so3

Array = jax.Array


def joint_local_transform(joint: JointDefinition) -> Array:
    """(4, 4) transform from the marker frame to the joint frame."""
    R = so3.from_euler_degrees(joint.rotation_offset)
    return se3.from_position_and_rotation(jnp.asarray(joint.position_offset, dtype=float), R)


def joint_world_transform(anchor: Anchor, joint: JointDefinition) -> Array:
    """(4, 4) world transform of ``joint`` hosted by ``anchor``."""
    return se3.multiply(anchor.world_transform, joint_local_transform(joint))


def joint_world_transforms(configuration: RobotConfiguration, registry: AnchorRegistry,
                           visible_only: Optional[Iterable[int]] = None) -> Dict[int, Array]:
    """World transforms of every joint whose anchor has been tracked.

    Args:
        configuration: Robot configuration the registry was built from
        registry: Registry holding the anchored marker poses
        visible_only: Optional joint ids to restrict the result to

    Returns:
        Dictionary mapping joint ids to their 4x4 world transforms
    """
    allowed = None if visible_only is None else set(visible_only)

    transforms: Dict[int, Array] = {}
    for marker_id, joint in configuration.iter_joints():
        if allowed is not None and joint.joint_id not in allowed:
            continue
        anchor = registry.get_anchor(marker_id)
        if anchor is None or not anchor.has_ever_been_tracked:
            continue
        transforms[joint.joint_id] = joint_world_transform(anchor, joint)

    return transforms
