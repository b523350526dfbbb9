"""
stackpilot UI — Textual application that coordinates a deployment run.

The app owns the view state and the two relays.  On mount it arms one
waiter per relay, starts the spinner timer, and launches the deployment
task as a worker.  Each waiter receives exactly one message and posts it to
the app's message queue; the handler applies ``handle()``, re-renders, and
re-arms whatever the returned ``Command`` names.  Textual's message pump
processes one message at a time, so state is never touched concurrently.

Any key press quits.  Quitting does not wait for the deployment: the worker
is cancelled with the app and asks the engine to cancel its operation.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import Static

from stackpilot.core.config import StackPilotConfig
from stackpilot.core.deployment import DeploymentTask
from stackpilot.core.engine import Engine
from stackpilot.core.exceptions import SetupError
from stackpilot.core.messages import DeploymentFinished, LifecycleEvent, LogMessage, Mode
from stackpilot.core.relay import Relay
from stackpilot.ui.render import render
from stackpilot.ui.spinner import SPINNERS, Spinner
from stackpilot.ui.state import Command, KeyInterrupt, SpinnerTick, ViewState, handle

logger = structlog.get_logger()


class Delivered(Message):
    """A relay handed over one message."""

    def __init__(self, relay: str, payload: object) -> None:
        super().__init__()
        self.relay = relay
        self.payload = payload


class StackPilotApp(App[None]):
    """Live progress view for one update or destroy run."""

    CSS_PATH = str(Path(__file__).parent / "css" / "stackpilot.tcss")

    BINDINGS = [
        Binding("ctrl+c", "interrupt", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        destroy: bool = False,
        engine: Engine | None = None,
        config: StackPilotConfig | None = None,
        log_relay: Relay[LogMessage] | None = None,
        event_relay: Relay[LifecycleEvent] | None = None,
        spinner: Spinner | None = None,
    ) -> None:
        super().__init__()
        self._run_config = config or StackPilotConfig()
        self._run_engine = engine
        frames = (spinner or SPINNERS[self._run_config.ui.spinner]).frames
        self._spinner = Spinner(frames, self._run_config.ui.spinner_interval)
        self._view_state = ViewState(destroy=destroy)
        self._log_relay: Relay[LogMessage] = log_relay or Relay("log")
        self._event_relay: Relay[LifecycleEvent] = event_relay or Relay("events")
        self.setup_error: SetupError | None = None
        self.outcome: DeploymentFinished | None = None

    @property
    def view_state(self) -> ViewState:
        return self._view_state

    @property
    def current_frame(self) -> str:
        return render(self._view_state, self._spinner)

    # ------------------------------------------------------------------
    # Compose / mount
    # ------------------------------------------------------------------

    def compose(self) -> ComposeResult:
        yield Static(self.current_frame, id="frame", markup=False)

    def on_mount(self) -> None:
        self.set_interval(self._spinner.interval, self._tick)
        self._arm(self._log_relay)
        self._arm(self._event_relay)
        if self._run_engine is not None:
            self.run_worker(self._deploy(), name="deployment", group="deployment")

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def _arm(self, relay: Relay) -> None:
        self.run_worker(self._wait_for(relay), name=f"wait-{relay.name}", group=relay.name)

    async def _wait_for(self, relay: Relay) -> None:
        payload = await relay.receive()
        self.post_message(Delivered(relay.name, payload))

    def _tick(self) -> None:
        self._dispatch(SpinnerTick())

    async def _deploy(self) -> None:
        mode = Mode.DESTROY if self._view_state.destroy else Mode.UPDATE
        task = DeploymentTask(
            self._run_engine, mode, self._log_relay, self._event_relay, self._run_config
        )
        try:
            self.outcome = await task.run()
        except SetupError as exc:
            self.setup_error = exc
            self._close_relays()
            self.exit(return_code=1)

    # ------------------------------------------------------------------
    # Coordinator
    # ------------------------------------------------------------------

    def on_delivered(self, message: Delivered) -> None:
        self._dispatch(message.payload)

    def on_key(self, event: events.Key) -> None:
        self._dispatch(KeyInterrupt(event.key))

    def action_interrupt(self) -> None:
        self._dispatch(KeyInterrupt("ctrl+c"))

    async def action_quit(self) -> None:
        self._dispatch(KeyInterrupt("ctrl+q"))

    def _dispatch(self, message: object) -> None:
        self._view_state, command = handle(self._view_state, message, self._spinner)
        self.query_one("#frame", Static).update(self.current_frame)

        if command is Command.WAIT_LOG:
            self._arm(self._log_relay)
        elif command is Command.WAIT_EVENT:
            self._arm(self._event_relay)
        elif command is Command.QUIT:
            logger.info(
                "ui_quit",
                reason=type(message).__name__,
                completed=len(self._view_state.completed),
                in_progress=len(self._view_state.in_progress),
            )
            self._close_relays()
            self.exit()

    def _close_relays(self) -> None:
        self._log_relay.close()
        self._event_relay.close()
