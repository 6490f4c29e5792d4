"""The set of entry points a chat client calls, one per event kind."""

from __future__ import annotations

from typing import Mapping, Optional, Protocol, runtime_checkable

from historian.core.events import UserRef


@runtime_checkable
class EventListener(Protocol):
    def on_connect(self) -> None: ...

    def on_connect_failed(self, failures: Mapping[str, BaseException]) -> None: ...

    def on_disconnect(self, cause: Optional[BaseException] = None) -> None: ...

    def on_message(self, user: UserRef, text: str) -> None: ...

    def on_private_message(self, user: UserRef, text: str) -> None: ...

    def on_action(self, user: UserRef, text: str) -> None: ...

    def on_notice(self, user: UserRef, text: str) -> None: ...

    def on_topic(self, user: UserRef, topic: str) -> None: ...

    def on_join(self, user: UserRef, channel: str) -> None: ...

    def on_part(self, user: UserRef, reason: str) -> None: ...
