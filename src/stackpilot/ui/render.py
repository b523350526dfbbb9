"""
Frame renderer — ``ViewState`` in, text out.

Pure function, no Textual imports: the app calls it after every state
transition and puts the result in a ``Static``.
"""

from __future__ import annotations

from stackpilot.ui.spinner import DOT, Spinner
from stackpilot.ui.state import ViewState

IN_PROGRESS_LABEL = "Update in progress"
COMPLETE_LABEL = "Update complete"


def _resource_list(label: str, resources: dict[str, str]) -> str:
    return f"\n\n{label}: [{', '.join(sorted(resources.values()))}]"


def render(state: ViewState, spinner: Spinner = DOT) -> str:
    lists = ""
    if state.in_progress or state.completed:
        lists = _resource_list(IN_PROGRESS_LABEL, state.in_progress) + _resource_list(
            COMPLETE_LABEL, state.completed
        )

    frame = f"\n{spinner.view(state.spinner_frame)}Current step: {state.current_message}{lists}\n"
    if state.quitting:
        frame += "\n"
    return frame
