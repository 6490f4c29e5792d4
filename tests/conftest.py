import socket
import threading
from datetime import datetime, timedelta, timezone

import pytest

from historian.core.config import SessionConfig
from historian.core.dispatcher import Historian

FIXED_NOW = datetime(2024, 3, 1, 12, 30, 45, 123000, tzinfo=timezone.utc)


class SteppingClock:
    """Returns ``start``, then ``start + step``, ... one tick per call."""

    def __init__(self, start: datetime = FIXED_NOW, step: timedelta = timedelta(0)):
        self._next = start
        self._step = step
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            now = self._next
            self._next = now + self._step
            return now


@pytest.fixture
def session(tmp_path):
    return SessionConfig(log_root=tmp_path / "logs", channel="#example", login="historian")


@pytest.fixture
def historian(session):
    return Historian(session, clock=SteppingClock())


@pytest.fixture
def today_log(session):
    return session.log_root / "#example" / "2024" / "03" / "01.txt"


@pytest.fixture(autouse=True)
def _block_network(request, monkeypatch):
    """Block outbound network access for all tests unless marked with @pytest.mark.network."""
    if request.node.get_closest_marker("network"):
        return

    def deny(*_args, **_kwargs):  # pragma: no cover - defensive
        raise RuntimeError(
            "Network access is disabled during tests. Use -k network to enable."
        )

    monkeypatch.setattr(socket, "create_connection", deny, raising=True)
    try:
        monkeypatch.setattr(socket.socket, "connect", deny, raising=True)
    except Exception:
        # Some platforms may not allow attribute patching; best-effort
        pass


def pytest_configure(config):
    config.addinivalue_line("markers", "network: test may open real sockets")
