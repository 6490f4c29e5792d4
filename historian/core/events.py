"""
Event Models
============

Typed events delivered to the historian by the chat client.  Every model is
immutable; user references are re-rendered each time they are logged.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

PLACEHOLDER = "-"


class EventBase(BaseModel):
    """Common Pydantic configuration for events.

    - Frozen, so handlers cannot mutate what they observe.
    - Forbid extra/unknown fields for strictness.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")


class UserRef(EventBase):
    """A user (or bare hostmask) as seen on the network. Any field may be empty."""

    login: str = ""
    hostmask: str = ""
    nick: str = ""

    @property
    def identity(self) -> str:
        """Render as ``login@hostmask/nick`` with ``-`` for empty fields."""
        login = self.login or PLACEHOLDER
        hostmask = self.hostmask or PLACEHOLDER
        nick = self.nick or PLACEHOLDER
        return f"{login}@{hostmask}/{nick}"


class Message(EventBase):
    user: UserRef
    text: str


class PrivateMessage(EventBase):
    user: UserRef
    text: str


class Action(EventBase):
    user: UserRef
    text: str


class Notice(EventBase):
    user: UserRef
    text: str


class TopicChange(EventBase):
    user: UserRef
    topic: str


class Join(EventBase):
    user: UserRef


class Part(EventBase):
    user: UserRef
    reason: str = ""


class SelfJoined(EventBase):
    channel_id: str
    channel_name: str


class Connected(EventBase):
    pass


class Disconnected(EventBase):
    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    cause: Optional[BaseException] = None


class ConnectAttemptFailed(EventBase):
    """A connection attempt to one address failed."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    address: str
    error: BaseException


class Started(EventBase):
    version: str


class ShuttingDown(EventBase):
    pass


__all__ = [
    "PLACEHOLDER",
    "EventBase",
    "UserRef",
    "Message",
    "PrivateMessage",
    "Action",
    "Notice",
    "TopicChange",
    "Join",
    "Part",
    "SelfJoined",
    "Connected",
    "Disconnected",
    "ConnectAttemptFailed",
    "Started",
    "ShuttingDown",
]
