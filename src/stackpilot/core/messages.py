"""
Message types exchanged between the deployment task and the UI coordinator.

Two relays carry them:

  log relay    — ``LogNotice`` values, terminated by one ``DeploymentFinished``
  event relay  — ``PreUpdate`` / ``PostUpdate`` lifecycle events

All messages are frozen dataclasses; each is created once by the producer
and consumed once by the coordinator.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

# Stack output holding the website endpoint; written by the resource program,
# read by the deployment task after an update.
WEBSITE_URL_OUTPUT = "websiteUrl"


class Mode(StrEnum):
    """Which engine operation the deployment ends with."""

    UPDATE = "update"
    DESTROY = "destroy"


@dataclass(frozen=True)
class LogNotice:
    """One operator-facing status line."""

    message: str


@dataclass(frozen=True)
class DeploymentFinished:
    """
    Terminal signal on the log relay.

    Sent exactly once, as the last item the deployment task produces on a
    non-fatal path.  ``succeeded`` is False when the final update/destroy
    was rejected by the engine; ``error`` then carries the engine's message.
    """

    succeeded: bool
    error: str = ""


@dataclass(frozen=True)
class PreUpdate:
    """A resource's change is about to begin."""

    urn: str
    type: str


@dataclass(frozen=True)
class PostUpdate:
    """A resource's change has finished."""

    urn: str
    type: str


LogMessage = LogNotice | DeploymentFinished
LifecycleEvent = PreUpdate | PostUpdate


def lifecycle_event_from_engine(event: Any) -> LifecycleEvent | None:
    """
    Translate a Pulumi ``EngineEvent`` into a ``LifecycleEvent``.

    Only resource pre-events and resource-outputs events are of interest;
    every other engine event kind returns None.
    """
    pre = getattr(event, "resource_pre_event", None)
    if pre is not None:
        return PreUpdate(urn=pre.metadata.urn, type=pre.metadata.type)
    outputs = getattr(event, "res_outputs_event", None)
    if outputs is not None:
        return PostUpdate(urn=outputs.metadata.urn, type=outputs.metadata.type)
    return None
