"""
DeploymentTask — drives the engine and reports progress through two relays.

Steps, in order:

  1. select (or create) the stack
  2. install the AWS plugin
  3. set ``aws:region``
  4. refresh
  5. destroy, or update and read ``websiteUrl``

Each milestone is sent to the log relay as a ``LogNotice``; lifecycle events
from step 5 go to the event relay.  A failure in steps 1–4 (or an unusable
update output) raises ``SetupError`` and nothing more is sent.  Otherwise the
task waits until every lifecycle event has been received and then sends
exactly one ``DeploymentFinished``, also when the engine rejects step 5.

If the task is cancelled (the user quit the UI) it asks the engine to cancel
the in-flight operation before re-raising.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

from stackpilot.core.config import StackPilotConfig
from stackpilot.core.engine import Engine
from stackpilot.core.exceptions import EngineError, SetupError
from stackpilot.core.messages import (
    WEBSITE_URL_OUTPUT,
    DeploymentFinished,
    LifecycleEvent,
    LogMessage,
    LogNotice,
    Mode,
)
from stackpilot.core.relay import Relay

logger = structlog.get_logger()

R = TypeVar("R")

AWS_PLUGIN = "aws"


class DeploymentTask:
    """One deployment run.  Not reusable: ``run()`` may be awaited once."""

    def __init__(
        self,
        engine: Engine,
        mode: Mode,
        log_relay: Relay[LogMessage],
        event_relay: Relay[LifecycleEvent],
        config: StackPilotConfig | None = None,
    ) -> None:
        self._engine = engine
        self._mode = mode
        self._log = log_relay
        self._events = event_relay
        self._config = config or StackPilotConfig()
        self._stack: Any = None
        self._started = False

    async def run(self) -> DeploymentFinished:
        if self._started:
            raise RuntimeError("DeploymentTask.run() may only be called once")
        self._started = True

        log = logger.bind(stack=self._config.stack.stack_name, mode=self._mode.value)
        log.info("deployment_started")
        try:
            finished = await self._run_steps()
        except asyncio.CancelledError:
            log.warning("deployment_cancelled")
            if self._stack is not None:
                await asyncio.to_thread(self._engine.cancel, self._stack)
            raise

        # lifecycle events from the engine must reach the UI before the terminal signal
        await self._events.join()
        log.info("deployment_finished", succeeded=finished.succeeded, error=finished.error)
        await self._log.send(finished)
        return finished

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _run_steps(self) -> DeploymentFinished:
        stack_cfg = self._config.stack
        aws_cfg = self._config.aws

        self._stack = await self._setup_step(
            "Failed to get stack",
            self._engine.acquire_stack,
            stack_cfg.project_name,
            stack_cfg.stack_name,
        )
        await self._notice(f'Created/Selected stack "{stack_cfg.stack_name}"')

        await self._notice("Installing the AWS plugin")
        await self._setup_step(
            "Failed to install program plugins",
            self._engine.install_plugin,
            self._stack,
            AWS_PLUGIN,
            aws_cfg.plugin_version,
        )
        await self._notice("Successfully installed AWS plugin")

        await self._setup_step(
            "Failed to set config",
            self._engine.set_config,
            self._stack,
            "aws:region",
            aws_cfg.region,
        )
        await self._notice("Successfully set config")

        await self._notice("Running refresh...")
        await self._setup_step("Failed to refresh stack", self._engine.refresh, self._stack)
        await self._notice("Refresh succeeded!")

        if self._mode is Mode.DESTROY:
            return await self._destroy()
        return await self._update()

    async def _destroy(self) -> DeploymentFinished:
        await self._notice("Running destroy...")
        try:
            await asyncio.to_thread(
                self._engine.apply, self._stack, Mode.DESTROY, self._event_sink()
            )
        except EngineError as exc:
            return await self._apply_failed("Failed to destroy stack", exc)
        await self._notice("Stack successfully destroyed")

        if self._config.stack.remove_stack_on_destroy:
            await self._notice("Removing stack...")
            try:
                await asyncio.to_thread(self._engine.remove_stack, self._stack)
            except EngineError as exc:
                return await self._apply_failed("Failed to remove stack", exc)
            await self._notice("Stack removed")

        return DeploymentFinished(succeeded=True)

    async def _update(self) -> DeploymentFinished:
        await self._notice("Running update...")
        try:
            outputs = await asyncio.to_thread(
                self._engine.apply, self._stack, Mode.UPDATE, self._event_sink()
            )
        except EngineError as exc:
            return await self._apply_failed("Failed to update stack", exc)
        await self._notice("Update succeeded!")

        url = outputs.get(WEBSITE_URL_OUTPUT)
        if not isinstance(url, str):
            logger.error("output_missing", output=WEBSITE_URL_OUTPUT, value=repr(url))
            raise SetupError(f"Failed to unmarshal output {WEBSITE_URL_OUTPUT!r}")

        await self._notice(f"URL: {url}")
        return DeploymentFinished(succeeded=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _notice(self, message: str) -> None:
        await self._log.send(LogNotice(message))

    async def _setup_step(self, failure: str, func: Callable[..., R], *args: Any) -> R:
        try:
            return await asyncio.to_thread(func, *args)
        except EngineError as exc:
            logger.error("setup_failed", operation=exc.operation, error=exc.detail)
            raise SetupError(f"{failure}: {exc.detail}") from exc

    async def _apply_failed(self, failure: str, exc: EngineError) -> DeploymentFinished:
        logger.error("apply_failed", operation=exc.operation, error=exc.detail)
        await self._notice(f"{failure}: {exc.detail}")
        return DeploymentFinished(succeeded=False, error=exc.detail)

    def _event_sink(self) -> Callable[[LifecycleEvent], None]:
        loop = asyncio.get_running_loop()

        def sink(event: LifecycleEvent) -> None:
            self._events.send_threadsafe(event, loop)

        return sink
