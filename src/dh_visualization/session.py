"""Tick-driven coordinator wiring tracker, anchors, sequencer and visibility.

One driver calls ``tick`` once per frame. Navigation input may arrive from a
different channel at any time through ``submit``; it is queued and applied at
the start of the next tick, so sequencer and anchor state are only ever
mutated from inside ``tick``.

Per tick:
    1. queued navigation commands -> StepSequencer (step_changed -> full recompute)
    2. tracker detections        -> AnchorRegistry.update_pose
    3. one visibility recompute for the anchors accepted in step 2
"""

import enum
import logging
from collections import deque
from typing import Deque, Dict, FrozenSet, Iterable, Optional, Protocol, Tuple

import jax
from flax import struct

from .core.anchor_registry import AnchorRegistry
from .core.robot_configuration import (
    ConfigurationError,
    DeadbandSettings,
    MarkerDetection,
    RobotConfiguration,
)
from .frames import joint_world_transforms
from .instructions import StepText, describe_step
from .sequencer import SequencerPhase, StepSequencer
from .visibility import JointVisibilityPolicy

logger = logging.getLogger(__name__)

Array = jax.Array


class MarkerTracker(Protocol):
    """Source of per-tick marker detections.

    A marker missing from a tick's result means "not detected this tick".
    """

    def poll(self) -> Iterable[MarkerDetection]:
        ...


class NavigationCommand(enum.Enum):
    ADVANCE = "advance"
    BACK = "back"


@struct.dataclass
class TickReport:
    """What happened during one tick.

    Attributes:
        accepted_marker_ids: Markers whose anchor moved, in detection order.
        navigation: ``(command, succeeded)`` per queued command applied.
        visible_joint_ids: Visible joints after the tick.
    """
    accepted_marker_ids: Tuple[int, ...] = struct.field(pytree_node=False, default=())
    navigation: Tuple[Tuple[NavigationCommand, bool], ...] = struct.field(pytree_node=False, default=())
    visible_joint_ids: FrozenSet[int] = struct.field(pytree_node=False, default=frozenset())


class VisualizationSession:
    """Single entry point for the marker-to-joint teaching flow.

    Collaborators are injected; any left as None is constructed with the
    given deadband settings.
    """

    def __init__(self, tracker: Optional[MarkerTracker],
                 registry: Optional[AnchorRegistry] = None,
                 sequencer: Optional[StepSequencer] = None,
                 policy: Optional[JointVisibilityPolicy] = None,
                 deadband: DeadbandSettings = DeadbandSettings()):
        self.tracker = tracker
        self.registry = registry if registry is not None else AnchorRegistry(deadband)
        self.sequencer = sequencer if sequencer is not None else StepSequencer()
        self.policy = policy if policy is not None else JointVisibilityPolicy(self.registry)

        self._configuration: Optional[RobotConfiguration] = None
        self._pending: Deque[NavigationCommand] = deque()
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def configuration(self) -> Optional[RobotConfiguration]:
        return self._configuration

    @property
    def phase(self) -> SequencerPhase:
        return self.sequencer.phase

    @property
    def step_text(self) -> StepText:
        return describe_step(self.sequencer.phase, self.sequencer.current_joint_index)

    def initialize(self, configuration: Optional[RobotConfiguration]) -> bool:
        """Wire up every component from ``configuration`` and start stepping.

        A missing configuration or tracker aborts with nothing wired. A
        configuration that fails validation is reported and replaced by an
        empty one, so the session still runs with zero anchors and joints.

        Returns:
            True if the session is initialized.
        """
        if configuration is None or self.tracker is None:
            missing = [name for name, value in
                       (("configuration", configuration), ("tracker", self.tracker)) if value is None]
            logger.error(f"Cannot initialize visualization session, missing: {', '.join(missing)}")
            return False

        try:
            configuration.validate()
        except ConfigurationError as exc:
            logger.error(f"Rejecting robot configuration {configuration.name!r}: {exc}")
            configuration = RobotConfiguration.empty(configuration.name)

        if self._initialized:
            self.teardown()

        self.registry.initialize(configuration)
        self.policy.initialize(configuration)
        self.sequencer.initialize(configuration)
        self.sequencer.step_changed.subscribe(self.policy.on_step_changed)

        self._configuration = configuration
        self._pending.clear()
        self._initialized = True

        logger.info(f"Visualization session ready: {len(self.registry)} markers, "
                    f"{self.sequencer.total_joints} joints")
        self.sequencer.start()
        return True

    def submit(self, command: NavigationCommand) -> None:
        """Queue a navigation command for the next tick. Safe from any thread."""
        self._pending.append(command)

    def tick(self, detections: Optional[Iterable[MarkerDetection]] = None) -> TickReport:
        """Process one frame.

        Args:
            detections: This tick's detections. Polled from the tracker when None.

        Returns:
            TickReport describing the tick.
        """
        if not self._initialized:
            logger.warning("tick() called before the session was initialized")
            return TickReport()

        navigation = []
        while self._pending:
            command = self._pending.popleft()
            navigation.append((command, self._navigate(command)))

        if detections is None:
            detections = self.tracker.poll()

        accepted = []
        for detection in detections:
            if self.registry.update_pose(detection.marker_id, detection.position, detection.rotation):
                accepted.append(detection.marker_id)

        visible = self.policy.on_anchors_updated(accepted)

        return TickReport(
            accepted_marker_ids=tuple(accepted),
            navigation=tuple(navigation),
            visible_joint_ids=visible,
        )

    def joint_frames(self) -> Dict[int, Array]:
        """World transforms of the currently visible joints."""
        if self._configuration is None:
            return {}
        return joint_world_transforms(self._configuration, self.registry,
                                      visible_only=self.policy.visible_joints)

    def teardown(self) -> None:
        """Release anchors and listeners; the session becomes uninitialized."""
        self.sequencer.step_changed.unsubscribe(self.policy.on_step_changed)
        self.policy.reset()
        self.registry.clear()
        self._pending.clear()
        self._configuration = None
        self._initialized = False

    def _navigate(self, command: NavigationCommand) -> bool:
        if command is NavigationCommand.ADVANCE:
            return self.sequencer.advance()
        return self.sequencer.back()
