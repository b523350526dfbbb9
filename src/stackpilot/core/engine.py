"""
Engine collaborator — the boundary to the infrastructure-as-code engine.

``Engine`` is the contract the deployment task consumes.  Every method is
blocking and raises ``EngineError`` on failure; the task runs them on a
worker thread.  ``PulumiEngine`` implements it with the Pulumi Automation
API and an inline program.

Lifecycle events reach the caller through the ``on_event`` callback passed
to ``apply()``.  Pulumi invokes it from its own event-reader thread.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

import structlog

from stackpilot.core.exceptions import EngineError
from stackpilot.core.messages import LifecycleEvent, Mode, lifecycle_event_from_engine

logger = structlog.get_logger()

EventSink = Callable[[LifecycleEvent], None]


class Engine(Protocol):
    def acquire_stack(self, project_name: str, stack_name: str) -> Any: ...

    def install_plugin(self, stack: Any, name: str, version: str) -> None: ...

    def set_config(self, stack: Any, key: str, value: str) -> None: ...

    def refresh(self, stack: Any) -> None: ...

    def apply(self, stack: Any, mode: Mode, on_event: EventSink) -> dict[str, Any]: ...

    def remove_stack(self, stack: Any) -> None: ...

    def cancel(self, stack: Any) -> None: ...


class PulumiEngine:
    """``Engine`` backed by ``pulumi.automation`` with an inline program."""

    def __init__(self, program: Callable[[], None]) -> None:
        self._program = program

    def acquire_stack(self, project_name: str, stack_name: str) -> Any:
        from pulumi import automation as auto

        try:
            stack = auto.create_or_select_stack(
                stack_name=stack_name,
                project_name=project_name,
                program=self._program,
            )
        except Exception as exc:  # noqa: BLE001
            raise EngineError("select stack", str(exc)) from exc
        logger.info("stack_selected", project=project_name, stack=stack_name)
        return stack

    def install_plugin(self, stack: Any, name: str, version: str) -> None:
        try:
            stack.workspace.install_plugin(name, version)
        except Exception as exc:  # noqa: BLE001
            raise EngineError("install plugin", str(exc)) from exc
        logger.info("plugin_installed", plugin=name, version=version)

    def set_config(self, stack: Any, key: str, value: str) -> None:
        from pulumi import automation as auto

        try:
            stack.set_config(key, auto.ConfigValue(value=value))
        except Exception as exc:  # noqa: BLE001
            raise EngineError("set config", str(exc)) from exc
        logger.info("config_set", key=key)

    def refresh(self, stack: Any) -> None:
        try:
            stack.refresh(on_output=self._engine_output)
        except Exception as exc:  # noqa: BLE001
            raise EngineError("refresh", str(exc)) from exc

    def apply(self, stack: Any, mode: Mode, on_event: EventSink) -> dict[str, Any]:
        def forward(engine_event: Any) -> None:
            event = lifecycle_event_from_engine(engine_event)
            if event is not None:
                on_event(event)

        try:
            if mode is Mode.DESTROY:
                stack.destroy(on_output=self._engine_output, on_event=forward)
                return {}
            result = stack.up(on_output=self._engine_output, on_event=forward)
        except Exception as exc:  # noqa: BLE001
            raise EngineError(mode.value, str(exc)) from exc
        return {name: output.value for name, output in result.outputs.items()}

    def remove_stack(self, stack: Any) -> None:
        try:
            stack.workspace.remove_stack(stack.name)
        except Exception as exc:  # noqa: BLE001
            raise EngineError("remove stack", str(exc)) from exc
        logger.info("stack_removed", stack=stack.name)

    def cancel(self, stack: Any) -> None:
        try:
            stack.cancel()
        except Exception as exc:  # noqa: BLE001
            # Nothing in flight is the common case here
            logger.debug("engine_cancel_failed", error=str(exc))

    @staticmethod
    def _engine_output(line: str) -> None:
        logger.debug("engine_output", line=line.rstrip())
