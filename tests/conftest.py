"""Shared fixtures: an in-memory engine and relay helpers."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Iterator
from typing import Any

import pytest

from stackpilot.core.engine import EventSink
from stackpilot.core.exceptions import EngineError
from stackpilot.core.logging import configure_logging
from stackpilot.core.messages import (
    DeploymentFinished,
    LifecycleEvent,
    LogMessage,
    Mode,
    PostUpdate,
    PreUpdate,
)
from stackpilot.core.relay import Relay

BUCKET = PreUpdate("urn:bucket", "aws:s3/bucket:Bucket")
INDEX = PreUpdate("urn:index", "aws:s3/bucketObject:BucketObject")

WEBSITE_EVENTS: list[LifecycleEvent] = [
    BUCKET,
    PostUpdate(BUCKET.urn, BUCKET.type),
    INDEX,
    PostUpdate(INDEX.urn, INDEX.type),
]


class FakeEngine:
    """
    Stand-in for ``PulumiEngine``.

    ``fail_on`` names one method that raises ``EngineError``.  ``block_apply``
    makes ``apply()`` wait until ``cancel()`` is called.
    """

    def __init__(
        self,
        *,
        fail_on: str | None = None,
        events: list[LifecycleEvent] | None = None,
        outputs: dict[str, Any] | None = None,
        block_apply: bool = False,
    ) -> None:
        self.fail_on = fail_on
        self.events = list(events or [])
        self.outputs = {"websiteUrl": "site.example.com"} if outputs is None else outputs
        self.calls: list[tuple[Any, ...]] = []
        self._unblock = threading.Event()
        self._block_apply = block_apply

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if self.fail_on == name:
            raise EngineError(name, f"{name} exploded")

    @property
    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def acquire_stack(self, project_name: str, stack_name: str) -> Any:
        self._record("acquire_stack", project_name, stack_name)
        return {"project": project_name, "name": stack_name}

    def install_plugin(self, stack: Any, name: str, version: str) -> None:
        self._record("install_plugin", name, version)

    def set_config(self, stack: Any, key: str, value: str) -> None:
        self._record("set_config", key, value)

    def refresh(self, stack: Any) -> None:
        self._record("refresh")

    def apply(self, stack: Any, mode: Mode, on_event: EventSink) -> dict[str, Any]:
        if self._block_apply:
            self.calls.append(("apply", mode))
            self._unblock.wait(timeout=5)
            return {}
        self._record("apply", mode)
        for event in self.events:
            on_event(event)
        return {} if mode is Mode.DESTROY else dict(self.outputs)

    def remove_stack(self, stack: Any) -> None:
        self._record("remove_stack")

    def cancel(self, stack: Any) -> None:
        self.calls.append(("cancel",))
        self._unblock.set()


async def run_collecting(
    runner: asyncio.Task,
    log_relay: Relay[LogMessage],
    event_relay: Relay[LifecycleEvent],
) -> tuple[list[LogMessage], list[LifecycleEvent]]:
    """
    Consume both relays while ``runner`` executes.

    Returns everything received.  Exceptions raised by ``runner`` propagate.
    """
    notices: list[LogMessage] = []
    events: list[LifecycleEvent] = []

    async def drain_events() -> None:
        while True:
            events.append(await event_relay.receive())

    drainer = asyncio.create_task(drain_events())
    try:
        while True:
            get = asyncio.create_task(log_relay.receive())
            done, _ = await asyncio.wait({get, runner}, return_when=asyncio.FIRST_COMPLETED)
            if get in done:
                notices.append(get.result())
                if isinstance(notices[-1], DeploymentFinished):
                    break
                continue
            get.cancel()
            break
        while log_relay.pending:
            notices.append(await log_relay.receive())
        await runner
    finally:
        await asyncio.sleep(0.05)
        drainer.cancel()
    while event_relay.pending:
        events.append(await event_relay.receive())
    return notices, events


@pytest.fixture
def log_relay() -> Relay[LogMessage]:
    return Relay("log")


@pytest.fixture
def event_relay() -> Relay[LifecycleEvent]:
    return Relay("events")


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("STACKPILOT_HOME", str(tmp_path / "home"))
    for var in (
        "STACKPILOT_CONFIG",
        "STACKPILOT_LOG_LEVEL",
        "STACKPILOT_STACK",
        "STACKPILOT_AWS_REGION",
    ):
        monkeypatch.delenv(var, raising=False)
    yield
    # the CLI points logging at a file under tmp_path; detach it again
    configure_logging()
