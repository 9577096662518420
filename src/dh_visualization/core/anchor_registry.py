"""Registry owning one anchor per configured marker id."""

import logging
from typing import Dict, Iterator, Optional, Set, Tuple

from .anchor import Anchor
from .events import Signal
from .robot_configuration import DeadbandSettings, RobotConfiguration

logger = logging.getLogger(__name__)


class AnchorRegistry:
    """Routes per-tick marker poses to the matching anchor.

    The key set is fixed between ``initialize`` and ``clear``; steady-state
    updates only mutate anchor values.

    Attributes:
        settings: Deadband thresholds applied to every anchor created.
        pose_updated: Signal emitted as ``(marker_id, anchor)`` after every
                      accepted update.
    """

    def __init__(self, settings: DeadbandSettings = DeadbandSettings()):
        self.settings = settings
        self.pose_updated = Signal("pose_updated")
        self._anchors: Dict[int, Anchor] = {}
        self._reported_unknown: Set[int] = set()
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self, configuration: RobotConfiguration) -> None:
        """Create exactly one anchor for each distinct marker id.

        An empty configuration is not fatal: the registry ends up initialized
        with zero anchors.

        Raises:
            ValueError: If ``configuration`` is None. The registry is left
                        exactly as it was.
        """
        if configuration is None:
            raise ValueError("AnchorRegistry requires a RobotConfiguration")

        self.clear()

        if configuration.is_empty():
            logger.warning("Robot configuration has no tag mappings; no anchors will be created")
            self._initialized = True
            return

        for marker_id in configuration.marker_ids():
            self._anchors[marker_id] = Anchor(marker_id, self.settings)

        self._initialized = True
        logger.info(f"Created {len(self._anchors)} anchors for markers {sorted(self._anchors)}")

    def update_pose(self, marker_id: int, position, orientation) -> bool:
        """Offer a tracker pose to the anchor for ``marker_id``.

        Unknown ids are expected (spare printed tags) and are ignored; each
        one is reported once.

        Returns:
            True if the anchor accepted the pose.
        """
        anchor = self._anchors.get(marker_id)
        if anchor is None:
            if marker_id not in self._reported_unknown:
                self._reported_unknown.add(marker_id)
                logger.warning(f"Ignoring detections of unconfigured marker {marker_id}")
            return False

        if not anchor.update_from_tracking(position, orientation):
            return False

        logger.debug(f"Anchor {marker_id} moved to {anchor.position}")
        self.pose_updated.emit(marker_id, anchor)
        return True

    def get_anchor(self, marker_id: int) -> Optional[Anchor]:
        return self._anchors.get(marker_id)

    def clear(self) -> None:
        """Release all anchors. Safe before ``initialize`` and when repeated."""
        self._anchors.clear()
        self._reported_unknown.clear()
        self._initialized = False

    def marker_ids(self) -> Tuple[int, ...]:
        return tuple(self._anchors)

    def __contains__(self, marker_id: int) -> bool:
        return marker_id in self._anchors

    def __iter__(self) -> Iterator[Anchor]:
        return iter(self._anchors.values())

    def __len__(self) -> int:
        return len(self._anchors)
