"""Selection handling for the release history view."""

from deployhistory.selection.state_machine import (
    MESSAGE_NOTHING_TO_SCALE,
    MESSAGE_SCALE_CURRENT_ONLY,
    SelectionStateMachine,
    decide,
    derives_from,
)

__all__ = [
    "MESSAGE_NOTHING_TO_SCALE",
    "MESSAGE_SCALE_CURRENT_ONLY",
    "SelectionStateMachine",
    "decide",
    "derives_from",
]
