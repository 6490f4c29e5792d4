"""Event Normalizer: turns an event into the canonical log record.

Bodies follow a fixed ``<kind>: <identity>: <payload>`` shape so the daily
files stay grep-able:

    chat: bob@host.example/bob: hello
    status: -@irc.example/alice: available
    self: connected

Everything here is pure: no clock reads and no I/O.  The timestamp is taken
by the caller inside the writer's critical section and passed in.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import singledispatch

from historian.core.events import (
    Action,
    ConnectAttemptFailed,
    Connected,
    Disconnected,
    EventBase,
    Join,
    Message,
    Notice,
    Part,
    PrivateMessage,
    SelfJoined,
    Started,
    ShuttingDown,
    TopicChange,
)

__all__ = ["RecordKind", "LogRecord", "normalize"]

NO_EXCEPTION_INFO = "(no exception information available)"


class RecordKind(str, Enum):
    CHAT = "chat"
    ACTION = "action"
    NOTICE = "notice"
    TOPIC = "topic"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    SELF = "self"


@dataclass(frozen=True)
class LogRecord:
    """One line's worth of log: when, what kind, and the formatted body."""

    timestamp: datetime
    kind: RecordKind
    body: str


@singledispatch
def _render(event: EventBase) -> tuple[RecordKind, str]:
    raise TypeError(f"No log format for event type {type(event).__name__}")


@_render.register
def _(event: Message) -> tuple[RecordKind, str]:
    return RecordKind.CHAT, f"chat: {event.user.identity}: {event.text}"


@_render.register
def _(event: PrivateMessage) -> tuple[RecordKind, str]:
    return RecordKind.CHAT, f"chat: {event.user.identity}: {event.text}"


@_render.register
def _(event: Action) -> tuple[RecordKind, str]:
    return RecordKind.ACTION, f"chat: {event.user.identity}: /me {event.text}"


@_render.register
def _(event: Notice) -> tuple[RecordKind, str]:
    return RecordKind.NOTICE, f"notice: {event.user.identity}: {event.text}"


@_render.register
def _(event: TopicChange) -> tuple[RecordKind, str]:
    return RecordKind.TOPIC, f"topic: {event.user.identity}: {event.topic}"


@_render.register
def _(event: Join) -> tuple[RecordKind, str]:
    return RecordKind.AVAILABLE, f"status: {event.user.identity}: available"


@_render.register
def _(event: Part) -> tuple[RecordKind, str]:
    return (
        RecordKind.UNAVAILABLE,
        f"status: {event.user.identity}: unavailable ({event.reason})",
    )


@_render.register
def _(event: SelfJoined) -> tuple[RecordKind, str]:
    return RecordKind.SELF, f"self: joined: {event.channel_id} {event.channel_name}"


@_render.register
def _(event: Connected) -> tuple[RecordKind, str]:
    return RecordKind.SELF, "self: connected"


@_render.register
def _(event: Disconnected) -> tuple[RecordKind, str]:
    if event.cause is None:
        return RecordKind.SELF, f"self: disconnected: {NO_EXCEPTION_INFO}"
    cause = event.cause
    return RecordKind.SELF, f"self: disconnected: {type(cause).__name__} - {cause}"


@_render.register
def _(event: ConnectAttemptFailed) -> tuple[RecordKind, str]:
    return (
        RecordKind.SELF,
        f"self: connection failed: {event.address} - {type(event.error).__name__}",
    )


@_render.register
def _(event: Started) -> tuple[RecordKind, str]:
    return RecordKind.SELF, f"self: started: {event.version}"


@_render.register
def _(event: ShuttingDown) -> tuple[RecordKind, str]:
    return RecordKind.SELF, "self: shutting down"


def normalize(event: EventBase, timestamp: datetime) -> LogRecord:
    """Map an event to its log record, stamped with ``timestamp``.

    Raises
    ------
    TypeError
        If the event type has no log format.
    """
    kind, body = _render(event)
    return LogRecord(timestamp=timestamp, kind=kind, body=body)
