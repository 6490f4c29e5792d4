"""Historian: the event dispatcher.

Responsibility:
    • Receive every event the chat client delivers (see ``EventListener``).
    • Filter presence events for the session's own login.
    • Normalize, resolve today's file and append, all under one lock.

Public API:
    Historian(session).on_*(...)   # one entry point per event kind
    Historian.started(version)     # first record, before any network event
    Historian.teardown()           # last record, registered with the host
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from loguru import logger

from historian.core.config import SessionConfig
from historian.core.errors import HistorianError
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
    UserRef,
)
from historian.core.normalizer import LogRecord, normalize
from historian.core.paths import resolve_path
from historian.core.writer import append
from historian.metrics import CONNECTIONS, DISCONNECTIONS

__all__ = ["Historian", "utc_now"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Historian:
    """Records every observed event of one channel to its daily log file.

    Parameters
    ----------
    session : SessionConfig
        Log root, channel and the session's own login.
    clock : callable, optional
        Source of the current instant; read inside the lock on every append.
    """

    def __init__(
        self,
        session: SessionConfig,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.session = session
        self._clock = clock
        self._lock = threading.Lock()
        self._shut_down = False

    # ------------------------------------------------------------------
    # Core logic
    # ------------------------------------------------------------------

    def _write_locked(self, event: EventBase) -> LogRecord:
        record = normalize(event, self._clock())
        path = resolve_path(self.session.log_root, self.session.channel, record.timestamp)
        append(path, record)
        return record

    def record(self, event: EventBase) -> LogRecord:
        """Append the record for ``event``; returns once it is on disk."""
        with self._lock:
            return self._write_locked(event)

    def is_self(self, user: UserRef) -> bool:
        return user.login == self.session.login

    # ------------------------------------------------------------------
    # Chat client entry points
    # ------------------------------------------------------------------

    def on_connect(self) -> None:
        CONNECTIONS.inc()
        logger.info(f"Connected; logging {self.session.channel}")
        self.record(Connected())

    def on_connect_failed(self, failures: Mapping[str, BaseException]) -> None:
        """Log one record per failed address.

        A failure to record one address does not stop the others; the first
        such failure is re-raised once every address has been attempted.
        """
        first_error: Optional[HistorianError] = None
        for address, error in failures.items():
            logger.warning(f"Connection to {address} failed: {error!r}")
            try:
                self.record(ConnectAttemptFailed(address=address, error=error))
            except HistorianError as e:
                logger.error(f"Could not record connection failure for {address}: {e}")
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def on_disconnect(self, cause: Optional[BaseException] = None) -> None:
        DISCONNECTIONS.inc()
        logger.warning(f"Disconnected: {cause!r}")
        self.record(Disconnected(cause=cause))

    def on_message(self, user: UserRef, text: str) -> None:
        self.record(Message(user=user, text=text))

    def on_private_message(self, user: UserRef, text: str) -> None:
        self.record(PrivateMessage(user=user, text=text))

    def on_action(self, user: UserRef, text: str) -> None:
        self.record(Action(user=user, text=text))

    def on_notice(self, user: UserRef, text: str) -> None:
        self.record(Notice(user=user, text=text))

    def on_topic(self, user: UserRef, topic: str) -> None:
        self.record(TopicChange(user=user, topic=topic))

    def on_join(self, user: UserRef, channel: str) -> None:
        if self.is_self(user):
            logger.info(f"Joined {channel}")
            self.record(SelfJoined(channel_id=self.session.channel, channel_name=channel))
        else:
            self.record(Join(user=user))

    def on_part(self, user: UserRef, reason: str) -> None:
        # Our own part leaves no record; only a self join is logged.
        if not self.is_self(user):
            self.record(Part(user=user, reason=reason))

    # ------------------------------------------------------------------
    # Process lifecycle
    # ------------------------------------------------------------------

    def started(self, version: str) -> None:
        logger.info(f"Historian {version} started for {self.session.channel}")
        self.record(Started(version=version))

    def shutdown(self) -> bool:
        """Write the final record once; a failed write leaves it for the next call.

        Returns whether this call wrote it.
        """
        with self._lock:
            if self._shut_down:
                return False
            self._write_locked(ShuttingDown())
            self._shut_down = True
        logger.info("Historian shut down")
        return True

    def teardown(self) -> None:
        """Best-effort ``shutdown`` for exit hooks, where nobody can catch errors."""
        try:
            self.shutdown()
        except (HistorianError, OSError) as e:
            logger.error(f"Could not record shutdown: {e}")
