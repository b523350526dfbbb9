"""
UI state and transition rules — pure Python dataclasses, no Textual imports.

``handle(state, message)`` is the only place view state changes.  It never
mutates its input; it returns a new ``ViewState`` together with the
``Command`` the coordinator must carry out next:

  PreUpdate / PostUpdate  →  WAIT_EVENT  (re-arm the event relay)
  LogNotice               →  WAIT_LOG    (re-arm the log relay)
  SpinnerTick             →  TICK        (timer re-schedules itself)
  DeploymentFinished      →  QUIT
  KeyInterrupt            →  QUIT

Once ``quitting`` is set every further message is ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, auto

from stackpilot.core.messages import DeploymentFinished, LogNotice, PostUpdate, PreUpdate
from stackpilot.ui.spinner import DOT, Spinner

SUCCEEDED_MESSAGE = "Succeeded!"


class Command(Enum):
    NONE = auto()
    WAIT_LOG = auto()
    WAIT_EVENT = auto()
    TICK = auto()
    QUIT = auto()


@dataclass(frozen=True)
class SpinnerTick:
    """One spinner timer period elapsed."""


@dataclass(frozen=True)
class KeyInterrupt:
    """The user pressed a key."""

    key: str = ""


@dataclass
class ViewState:
    """Everything the renderer needs.  Owned by the coordinator alone."""

    destroy: bool = False
    spinner_frame: int = 0
    quitting: bool = False
    failed: bool = False
    current_message: str = ""
    # urn -> resource type
    in_progress: dict[str, str] = field(default_factory=dict)
    completed: dict[str, str] = field(default_factory=dict)

    def copy(self) -> ViewState:
        return replace(self, in_progress=dict(self.in_progress), completed=dict(self.completed))


def handle(
    state: ViewState, message: object, spinner: Spinner = DOT
) -> tuple[ViewState, Command]:
    """Apply ``message`` to ``state``; return the new state and next command."""
    if state.quitting:
        return state, Command.NONE

    if isinstance(message, PreUpdate):
        new = state.copy()
        new.in_progress[message.urn] = message.type
        return new, Command.WAIT_EVENT

    if isinstance(message, PostUpdate):
        new = state.copy()
        new.completed[message.urn] = message.type
        new.in_progress.pop(message.urn, None)
        return new, Command.WAIT_EVENT

    if isinstance(message, SpinnerTick):
        return replace(state, spinner_frame=spinner.step(state.spinner_frame)), Command.TICK

    if isinstance(message, KeyInterrupt):
        return replace(state, quitting=True), Command.QUIT

    if isinstance(message, LogNotice):
        return replace(state, current_message=message.message), Command.WAIT_LOG

    if isinstance(message, DeploymentFinished):
        if message.succeeded:
            text = SUCCEEDED_MESSAGE
        else:
            text = f"Failed: {message.error}" if message.error else "Failed!"
        return (
            replace(state, current_message=text, failed=not message.succeeded, quitting=True),
            Command.QUIT,
        )

    return state, Command.NONE
