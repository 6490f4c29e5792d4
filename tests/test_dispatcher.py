import re
import threading
from datetime import timedelta

import pytest

from conftest import SteppingClock
import historian.core.dispatcher as dispatcher
from historian.core.dispatcher import Historian
from historian.core.errors import WriteError
from historian.core.events import UserRef
from historian.core.listener import EventListener

LINE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{1,3}\+0000 (.*)$")
BOB = UserRef(login="bob", hostmask="bob@host", nick="bob")
ME = UserRef(login="historian", hostmask="host.example", nick="historian")


def _bodies(path):
    bodies = []
    for line in path.read_text(encoding="utf-8").splitlines():
        match = LINE.match(line)
        assert match, f"malformed line: {line!r}"
        bodies.append(match.group(1))
    return bodies


def test_implements_listener(historian):
    assert isinstance(historian, EventListener)


def test_chat_message(historian, today_log):
    historian.on_message(BOB, "hello")
    line = today_log.read_text(encoding="utf-8")
    assert line == "2024-03-01T12:30:45.123+0000 chat: bob@bob@host/bob: hello\n"


def test_channel_traffic_in_order(historian, today_log):
    historian.on_message(BOB, "hello")
    historian.on_private_message(BOB, "psst")
    historian.on_action(BOB, "waves")
    historian.on_notice(BOB, "heads up")
    historian.on_topic(UserRef(hostmask="irc.example", nick="alice"), "welcome")
    assert _bodies(today_log) == [
        "chat: bob@bob@host/bob: hello",
        "chat: bob@bob@host/bob: psst",
        "chat: bob@bob@host/bob: /me waves",
        "notice: bob@bob@host/bob: heads up",
        "topic: -@irc.example/alice: welcome",
    ]


def test_presence_of_others(historian, today_log):
    historian.on_join(BOB, "#example")
    historian.on_part(BOB, "leaving")
    assert _bodies(today_log) == [
        "status: bob@bob@host/bob: available",
        "status: bob@bob@host/bob: unavailable (leaving)",
    ]


def test_self_join_is_logged_as_self(historian, today_log):
    historian.on_join(ME, "#Example")
    assert _bodies(today_log) == ["self: joined: #example #Example"]


def test_self_part_leaves_no_record(historian, today_log):
    historian.on_part(ME, "bye")
    assert not today_log.exists()


def test_self_detection_uses_login_only(historian, today_log):
    historian.on_join(UserRef(login="historian", nick="someone-else"), "#example")
    historian.on_join(UserRef(login="other", nick="historian"), "#example")
    assert _bodies(today_log) == [
        "self: joined: #example #example",
        "status: other@-/historian: available",
    ]


def test_connection_lifecycle(historian, today_log):
    historian.started("historian-1.0.0")
    historian.on_connect()
    historian.on_disconnect(ConnectionError("Connection reset by peer"))
    historian.on_disconnect()
    assert _bodies(today_log) == [
        "self: started: historian-1.0.0",
        "self: connected",
        "self: disconnected: ConnectionError - Connection reset by peer",
        "self: disconnected: (no exception information available)",
    ]


def test_connect_failed_one_record_per_address(historian, today_log):
    historian.on_connect_failed(
        {
            "192.0.2.1:6697": ConnectionRefusedError("refused"),
            "[2001:db8::1]:6697": TimeoutError("timed out"),
        }
    )
    assert _bodies(today_log) == [
        "self: connection failed: 192.0.2.1:6697 - ConnectionRefusedError",
        "self: connection failed: [2001:db8::1]:6697 - TimeoutError",
    ]


def test_connect_failed_isolates_write_failures(historian, today_log, monkeypatch):
    real_append = dispatcher.append
    calls = []

    def flaky_append(path, record):
        calls.append(record.body)
        if len(calls) == 1:
            raise WriteError(path, "disk full")
        real_append(path, record)

    monkeypatch.setattr(dispatcher, "append", flaky_append)

    with pytest.raises(WriteError):
        historian.on_connect_failed({"a:1": OSError(), "b:2": OSError()})

    assert len(calls) == 2
    assert _bodies(today_log) == ["self: connection failed: b:2 - OSError"]


def test_write_errors_propagate(historian, session):
    blocker = session.log_root / "#example" / "2024" / "03" / "01.txt"
    blocker.mkdir(parents=True)
    with pytest.raises(WriteError):
        historian.on_message(BOB, "hello")


def test_shutdown_writes_once(historian, today_log):
    assert historian.shutdown() is True
    assert historian.shutdown() is False
    historian.teardown()
    assert _bodies(today_log) == ["self: shutting down"]


def test_teardown_swallows_write_failure(historian, session):
    (session.log_root / "#example").mkdir(parents=True)
    (session.log_root / "#example" / "2024").write_text("in the way")
    historian.teardown()  # must not raise


def test_midnight_rollover_switches_files(session):
    from datetime import datetime, timezone

    clock = SteppingClock(
        start=datetime(2023, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
        step=timedelta(seconds=2),
    )
    h = Historian(session, clock=clock)
    h.on_message(BOB, "old year")
    h.on_message(BOB, "new year")
    channel_dir = session.log_root / "#example"
    assert _bodies(channel_dir / "2023" / "12" / "31.txt") == ["chat: bob@bob@host/bob: old year"]
    assert _bodies(channel_dir / "2024" / "01" / "01.txt") == ["chat: bob@bob@host/bob: new year"]


def test_concurrent_appends_are_complete_and_ordered(session, today_log):
    threads_count, per_thread = 8, 50
    h = Historian(session, clock=SteppingClock(step=timedelta(milliseconds=1)))
    barrier = threading.Barrier(threads_count)

    def worker(n):
        barrier.wait()
        for i in range(per_thread):
            h.on_message(BOB, f"t{n}-m{i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    lines = today_log.read_text(encoding="utf-8").splitlines()
    assert len(lines) == threads_count * per_thread

    bodies = _bodies(today_log)
    expected = {
        f"chat: bob@bob@host/bob: t{n}-m{i}"
        for n in range(threads_count)
        for i in range(per_thread)
    }
    assert set(bodies) == expected

    # The clock is read under the lock, so file order is lock-acquisition order.
    stamps = [line.split(" ", 1)[0] for line in lines]
    millis = [int(s.split(".")[1].split("+")[0]) + 1000 * int(s[17:19]) + 60000 * int(s[14:16]) for s in stamps]
    assert millis == sorted(millis)

    # Each thread's own messages keep their relative order.
    for n in range(threads_count):
        mine = [b for b in bodies if f": t{n}-m" in b]
        assert mine == [f"chat: bob@bob@host/bob: t{n}-m{i}" for i in range(per_thread)]


def test_shutdown_retried_after_failed_write(historian, session, today_log):
    blocker = session.log_root / "#example" / "2024"
    blocker.parent.mkdir(parents=True)
    blocker.write_text("in the way")
    historian.teardown()

    blocker.unlink()
    historian.teardown()
    historian.teardown()
    assert _bodies(today_log) == ["self: shutting down"]
