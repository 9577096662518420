"""Text shown to the user for each sequencer step."""

from typing import NamedTuple

from .sequencer import SequencerPhase


class StepText(NamedTuple):
    title: str
    content: str
    instruction: str


def describe_step(phase: SequencerPhase, joint_index: int) -> StepText:
    """Title, body and instruction lines for a sequencer position.

    Every stepping index gets the same treatment, whatever the joint count.
    """
    if phase is SequencerPhase.INITIALIZING:
        return StepText("Initializing", "", "Initializing...")
    if phase is SequencerPhase.COMPLETE:
        return StepText("Complete", "All joints assigned", "")
    return StepText(f"Step {joint_index + 1}", f"Joint {joint_index} Assignment", "Choose Z")
