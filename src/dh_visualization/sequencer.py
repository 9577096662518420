"""Linear step sequencer that walks the user through joints one at a time.

The sequencer is a pure integer-indexed state machine: correctness never
depends on an enumerated list of per-joint states, so a configuration may
contain any number of joints.

    Initializing --start()--> Stepping(0) --advance()--> ... --> Stepping(N-1)
                                  ^                                  |
                                  +-------------back()---------------+
    Stepping(N-1) --advance()--> Complete --back()--> Stepping(N-1)
"""

import enum
import logging

from flax import struct

from .core.events import Signal
from .core.robot_configuration import RobotConfiguration

logger = logging.getLogger(__name__)


class SequencerPhase(enum.Enum):
    INITIALIZING = "initializing"
    STEPPING = "stepping"
    COMPLETE = "complete"


@struct.dataclass
class SequencerState:
    """Immutable snapshot of the sequencer."""
    phase: SequencerPhase = struct.field(pytree_node=False)
    current_joint_index: int = struct.field(pytree_node=False)
    total_joints: int = struct.field(pytree_node=False)


class StepSequencer:
    """Finite-state sequencer over joint indices ``0..total_joints-1``.

    Transitions return ``True`` when they moved the sequencer and ``False``
    when the request was not valid in the current phase; they never raise.

    Attributes:
        step_changed: Signal emitted as ``(phase, joint_index)`` on start,
                      advance, back, and the advance that completes.
        visualization_complete: Signal emitted with no arguments whenever the
                                phase enters Complete from another phase.
    """

    def __init__(self):
        self.step_changed = Signal("step_changed")
        self.visualization_complete = Signal("visualization_complete")

        self._phase = SequencerPhase.INITIALIZING
        self._current_joint_index = -1
        self._total_joints = 0
        self._initialized = False

    @property
    def phase(self) -> SequencerPhase:
        return self._phase

    @property
    def current_joint_index(self) -> int:
        """-1 before start, ``total_joints`` once complete."""
        return self._current_joint_index

    @property
    def total_joints(self) -> int:
        return self._total_joints

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def state(self) -> SequencerState:
        return SequencerState(
            phase=self._phase,
            current_joint_index=self._current_joint_index,
            total_joints=self._total_joints,
        )

    def initialize(self, configuration: RobotConfiguration) -> None:
        """Reset to Initializing with the joint count of ``configuration``.

        Raises:
            ValueError: If ``configuration`` is None. State is left untouched.
        """
        if configuration is None:
            raise ValueError("StepSequencer requires a RobotConfiguration")

        self._total_joints = configuration.total_joint_count()
        self._phase = SequencerPhase.INITIALIZING
        self._current_joint_index = -1
        self._initialized = True

    def start(self) -> bool:
        """Leave Initializing. Any later call is a no-op returning False."""
        if not self._initialized or self._phase is not SequencerPhase.INITIALIZING:
            return False

        if self._total_joints <= 0:
            logger.warning("No joints configured; visualization completes immediately")
            self._enter_complete(0, announce_step=False)
            return True

        self._move_to(0)
        return True

    def advance(self) -> bool:
        """Step to the next joint.

        Returns:
            True if a next joint exists. Advancing past the last joint enters
            Complete and returns False, meaning there is no further step.
        """
        if self._phase is not SequencerPhase.STEPPING:
            return False

        next_index = self._current_joint_index + 1
        if next_index < self._total_joints:
            self._move_to(next_index)
            return True

        self._enter_complete(self._total_joints, announce_step=True)
        return False

    def back(self) -> bool:
        """Step to the previous joint, or from Complete back to the last joint."""
        if self._phase is SequencerPhase.COMPLETE:
            if self._total_joints <= 0:
                return False
            self._move_to(self._total_joints - 1)
            return True

        if self._phase is not SequencerPhase.STEPPING or self._current_joint_index <= 0:
            return False

        self._move_to(self._current_joint_index - 1)
        return True

    def _move_to(self, joint_index: int) -> None:
        self._phase = SequencerPhase.STEPPING
        self._current_joint_index = joint_index
        logger.debug(f"Step {joint_index + 1}/{self._total_joints}")
        self.step_changed.emit(self._phase, joint_index)

    def _enter_complete(self, joint_index: int, announce_step: bool) -> None:
        already_complete = self._phase is SequencerPhase.COMPLETE
        self._phase = SequencerPhase.COMPLETE
        self._current_joint_index = joint_index
        if announce_step:
            self.step_changed.emit(self._phase, joint_index)
        if not already_complete:
            logger.info("All joints assigned")
            self.visualization_complete.emit()
