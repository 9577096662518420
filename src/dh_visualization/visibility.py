"""Per-joint visibility gate.

A joint is shown when both of these hold:

* its index is at or before the sequencer's current joint index, and
* the anchor of the marker that owns it has been tracked at least once.

Joints on a marker that was never seen stay hidden regardless of the
sequence position, so a partially assembled setup shows no joint frames at
an unanchored origin.
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from .core.anchor_registry import AnchorRegistry
from .core.events import Signal
from .core.robot_configuration import ConfigurationError, RobotConfiguration
from .sequencer import SequencerPhase

logger = logging.getLogger(__name__)


class JointVisibilityPolicy:
    """Derives the visible joint set from sequence position and anchor latches.

    The visible set is recomputed, never stored as independent truth: a full
    pass on every step change, and a pass over one marker's joints after that
    marker's anchor accepts an update.

    Attributes:
        visibility_changed: Signal emitted as ``(joint_id, visible)`` for each
                            joint whose visibility flips during a recompute.
    """

    def __init__(self, registry: AnchorRegistry):
        if registry is None:
            raise ValueError("JointVisibilityPolicy requires an AnchorRegistry")

        self.registry = registry
        self.visibility_changed = Signal("visibility_changed")

        self._owner_by_joint: Dict[int, int] = {}
        self._joints_by_marker: Dict[int, Tuple[int, ...]] = {}
        self._current_index = -1
        self._visible: Set[int] = set()

    @property
    def current_joint_index(self) -> int:
        return self._current_index

    @property
    def visible_joints(self) -> FrozenSet[int]:
        return frozenset(self._visible)

    def initialize(self, configuration: RobotConfiguration) -> None:
        """Build the joint -> owning marker table once from configuration.

        Raises:
            ValueError: If ``configuration`` is None.
            ConfigurationError: If a joint id appears more than once.
        """
        if configuration is None:
            raise ValueError("JointVisibilityPolicy requires a RobotConfiguration")

        owners: Dict[int, int] = {}
        for marker_id, joint in configuration.iter_joints():
            if joint.joint_id in owners:
                raise ConfigurationError(f"Duplicate joint id {joint.joint_id}")
            owners[joint.joint_id] = marker_id

        by_marker: Dict[int, List[int]] = {}
        for joint_id, marker_id in owners.items():
            by_marker.setdefault(marker_id, []).append(joint_id)

        self.reset()
        self._owner_by_joint = owners
        self._joints_by_marker = {marker: tuple(joints) for marker, joints in by_marker.items()}

    def reset(self) -> None:
        """Hide every visible joint, announcing each one, and rewind to index -1."""
        for joint_id in sorted(self._visible):
            self._visible.discard(joint_id)
            logger.debug(f"Joint {joint_id} hidden")
            self.visibility_changed.emit(joint_id, False)
        self._current_index = -1

    def owner_of(self, joint_id: int) -> Optional[int]:
        return self._owner_by_joint.get(joint_id)

    def joints_of(self, marker_id: int) -> Tuple[int, ...]:
        return self._joints_by_marker.get(marker_id, ())

    def is_visible(self, joint_id: int, current_joint_index: int) -> bool:
        if joint_id > current_joint_index:
            return False
        marker_id = self._owner_by_joint.get(joint_id)
        if marker_id is None:
            return False
        anchor = self.registry.get_anchor(marker_id)
        return anchor is not None and anchor.has_ever_been_tracked

    def compute_visible(self, current_joint_index: int,
                        joint_ids: Optional[Iterable[int]] = None) -> FrozenSet[int]:
        """Pure evaluation of the gate for ``joint_ids`` (all joints by default)."""
        if joint_ids is None:
            joint_ids = self._owner_by_joint
        return frozenset(j for j in joint_ids if self.is_visible(j, current_joint_index))

    def on_step_changed(self, phase: SequencerPhase, joint_index: int) -> FrozenSet[int]:
        """Recompute every joint for a new sequence position."""
        self._current_index = joint_index
        self._apply(self._owner_by_joint)
        return self.visible_joints

    def on_anchors_updated(self, marker_ids: Iterable[int]) -> FrozenSet[int]:
        """Recompute only the joints owned by the given markers."""
        affected = [j for marker in dict.fromkeys(marker_ids) for j in self.joints_of(marker)]
        if affected:
            self._apply(affected)
        return self.visible_joints

    def _apply(self, joint_ids: Iterable[int]) -> None:
        for joint_id in joint_ids:
            visible = self.is_visible(joint_id, self._current_index)
            if visible == (joint_id in self._visible):
                continue
            if visible:
                self._visible.add(joint_id)
            else:
                self._visible.discard(joint_id)
            logger.debug(f"Joint {joint_id} {'shown' if visible else 'hidden'}")
            self.visibility_changed.emit(joint_id, visible)
