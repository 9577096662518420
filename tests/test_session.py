"""End-to-end tests for the visualization session."""

import logging

import jax.numpy as jnp
import numpy as np
import pytest

from dh_visualization import (
    JointDefinition,
    MarkerDetection,
    NavigationCommand,
    RobotConfiguration,
    SequencerPhase,
    TagMapping,
    TickReport,
    VisualizationSession,
)

IDENTITY = [1.0, 0.0, 0.0, 0.0]
ADVANCE = NavigationCommand.ADVANCE
BACK = NavigationCommand.BACK


class FakeTracker:
    """Replays one list of detections per poll, then reports nothing."""

    def __init__(self, frames=()):
        self.frames = list(frames)
        self.polls = 0

    def poll(self):
        self.polls += 1
        if self.frames:
            return self.frames.pop(0)
        return []


def detection(marker_id, position=(0.0, 0.0, 0.0), rotation=IDENTITY):
    return MarkerDetection.create(marker_id, position, rotation)


@pytest.fixture
def configuration():
    """Marker 0 carries joints 0 and 1, marker 1 carries joint 2."""
    return RobotConfiguration.create([
        TagMapping.create(0, [
            JointDefinition.create(0),
            JointDefinition.create(1, position_offset=(0.0, 0.5, 0.0)),
        ]),
        TagMapping.create(1, [JointDefinition.create(2)]),
    ], name="two_marker_arm")


@pytest.fixture
def session(configuration):
    session = VisualizationSession(FakeTracker())
    assert session.initialize(configuration)
    return session


def test_initialize_starts_first_step(session):
    assert session.is_initialized
    assert session.phase is SequencerPhase.STEPPING
    assert session.sequencer.current_joint_index == 0
    assert len(session.registry) == 2


def test_walkthrough_scenario(session):
    """Test the full flow with markers appearing at different times."""
    # Joint 0 in range but marker 0 not yet seen
    report = session.tick([])
    assert report.visible_joint_ids == frozenset()

    report = session.tick([detection(0)])
    assert report.accepted_marker_ids == (0,)
    assert report.visible_joint_ids == frozenset({0})

    session.submit(ADVANCE)
    session.submit(ADVANCE)
    report = session.tick([])
    assert report.navigation == ((ADVANCE, True), (ADVANCE, True))
    # Joint 2 in range but marker 1 never tracked
    assert report.visible_joint_ids == frozenset({0, 1})

    report = session.tick([detection(1, position=(1.0, 0.0, 0.0))])
    assert report.visible_joint_ids == frozenset({0, 1, 2})

    session.submit(ADVANCE)
    report = session.tick([])
    assert report.navigation == ((ADVANCE, False),)
    assert session.phase is SequencerPhase.COMPLETE
    assert report.visible_joint_ids == frozenset({0, 1, 2})

    session.submit(BACK)
    session.submit(BACK)
    report = session.tick([])
    assert session.sequencer.current_joint_index == 1
    assert report.visible_joint_ids == frozenset({0, 1})


def test_untracked_marker_joint_never_visible(session):
    """Test that joint 2 stays hidden through Complete when marker 1 is never seen."""
    session.tick([detection(0)])
    assert session.policy.visible_joints == frozenset({0})

    session.submit(ADVANCE)
    assert session.tick([]).visible_joint_ids == frozenset({0, 1})

    session.submit(ADVANCE)
    session.submit(ADVANCE)
    report = session.tick([])

    assert session.phase is SequencerPhase.COMPLETE
    assert report.visible_joint_ids == frozenset({0, 1})
    assert set(session.joint_frames()) == {0, 1}


def test_navigation_applied_before_detections(session):
    """Test that queued input moves the sequence before this tick's poses land."""
    session.tick([detection(0)])
    session.submit(ADVANCE)
    session.submit(ADVANCE)

    report = session.tick([detection(1)])

    assert session.sequencer.current_joint_index == 2
    assert report.visible_joint_ids == frozenset({0, 1, 2})


def test_commands_wait_for_tick(session):
    session.submit(ADVANCE)
    assert session.sequencer.current_joint_index == 0

    session.tick([])
    assert session.sequencer.current_joint_index == 1


def test_tick_polls_tracker():
    """Test that the tracker is polled when no detections are passed in."""
    tracker = FakeTracker([[detection(0)], []])
    session = VisualizationSession(tracker)
    session.initialize(RobotConfiguration.create([TagMapping.create(0, [JointDefinition.create(0)])]))

    report = session.tick()
    assert tracker.polls == 1
    assert report.accepted_marker_ids == (0,)
    assert report.visible_joint_ids == frozenset({0})

    session.tick([])
    assert tracker.polls == 1


def test_marker_persists_when_not_detected(session):
    """Test that a marker that drops out keeps its joints visible."""
    session.tick([detection(0)])
    for _ in range(5):
        report = session.tick([])

    assert report.visible_joint_ids == frozenset({0})


def test_unknown_marker_ignored(session):
    report = session.tick([detection(42), detection(0)])
    assert report.accepted_marker_ids == (0,)
    assert 42 not in session.registry


def test_jitter_not_reported(session):
    session.tick([detection(0)])
    report = session.tick([detection(0, position=(0.001, 0.0, 0.0))])
    assert report.accepted_marker_ids == ()


def test_missing_configuration_fails_closed(caplog):
    """Test that nothing is wired without a configuration."""
    session = VisualizationSession(FakeTracker())

    with caplog.at_level(logging.ERROR):
        assert not session.initialize(None)

    assert not session.is_initialized
    assert session.phase is SequencerPhase.INITIALIZING
    assert len(session.sequencer.step_changed) == 0
    assert "configuration" in caplog.text


def test_missing_tracker_fails_closed(configuration, caplog):
    session = VisualizationSession(None)

    with caplog.at_level(logging.ERROR):
        assert not session.initialize(configuration)

    assert not session.is_initialized
    assert not session.registry.is_initialized
    assert "tracker" in caplog.text


def test_duplicate_joint_ids_degrade_to_empty(caplog):
    """Test that an invalid configuration runs with zero anchors and joints."""
    configuration = RobotConfiguration.create([
        TagMapping.create(0, [JointDefinition.create(0)]),
        TagMapping.create(1, [JointDefinition.create(0)]),
    ], name="broken")
    session = VisualizationSession(FakeTracker())

    with caplog.at_level(logging.ERROR):
        assert session.initialize(configuration)

    assert "Duplicate joint id 0" in caplog.text
    assert session.phase is SequencerPhase.COMPLETE
    assert len(session.registry) == 0
    assert session.configuration.is_empty()
    assert session.configuration.name == "broken"


def test_tick_before_initialize_returns_empty_report():
    session = VisualizationSession(FakeTracker())
    session.submit(ADVANCE)

    report = session.tick([detection(0)])
    assert report == TickReport()


def test_step_text_follows_sequence(session):
    assert session.step_text.title == "Step 1"
    assert session.step_text.content == "Joint 0 Assignment"
    assert session.step_text.instruction == "Choose Z"

    for _ in range(3):
        session.submit(ADVANCE)
    session.tick([])
    assert session.step_text.title == "Complete"


def test_joint_frames_of_visible_joints(session):
    """Test that joint frames compose the anchor pose with the joint offset."""
    session.submit(ADVANCE)
    session.tick([detection(0, position=(1.0, 0.0, 0.0))])

    frames = session.joint_frames()
    assert set(frames) == {0, 1}
    np.testing.assert_allclose(frames[0][:3, 3], jnp.array([1.0, 0.0, 0.0]), atol=1e-12)
    np.testing.assert_allclose(frames[1][:3, 3], jnp.array([1.0, 0.5, 0.0]), atol=1e-12)


def test_reinitialize_replaces_state(session, configuration):
    """Test that a second initialize starts a fresh walkthrough."""
    session.tick([detection(0)])
    session.submit(ADVANCE)
    session.tick([])

    assert session.initialize(configuration)
    assert session.sequencer.current_joint_index == 0
    assert not session.registry.get_anchor(0).has_ever_been_tracked
    assert len(session.sequencer.step_changed) == 1


def test_teardown(session):
    session.tick([detection(0)])
    session.submit(ADVANCE)
    session.teardown()

    assert not session.is_initialized
    assert session.configuration is None
    assert len(session.registry) == 0
    assert len(session.sequencer.step_changed) == 0
    assert session.joint_frames() == {}


def test_teardown_hides_visible_joints(session):
    """Test that teardown announces every shown joint as hidden."""
    changes = []
    session.policy.visibility_changed.subscribe(lambda joint_id, visible: changes.append((joint_id, visible)))
    session.submit(ADVANCE)
    session.tick([detection(0)])
    assert changes == [(0, True), (1, True)]

    session.teardown()

    assert changes[2:] == [(0, False), (1, False)]
    assert session.policy.visible_joints == frozenset()


def test_reinitialize_hides_previously_visible_joints(session):
    """Test that initializing with a new configuration clears old joint frames."""
    changes = []
    session.policy.visibility_changed.subscribe(lambda joint_id, visible: changes.append((joint_id, visible)))
    session.tick([detection(0)])

    assert session.initialize(RobotConfiguration.empty())

    assert changes == [(0, True), (0, False)]
    assert session.policy.visible_joints == frozenset()
    assert session.phase is SequencerPhase.COMPLETE
