import concurrent.futures
import logging
import threading

from gateway.src.realtime import RealtimeBroadcastChannel, RealtimeService, _log_broadcast_failure


def test_history_reads_while_announcements_arrive():
    service = RealtimeService(history_size=50)
    channel = RealtimeBroadcastChannel(service)
    stop = threading.Event()

    def announce():
        while not stop.is_set():
            channel.send_server_wide_message("x")

    writer = threading.Thread(target=announce)
    writer.start()
    errors = []
    try:
        for _ in range(20_000):
            try:
                service.recent_announcements(20)
            except RuntimeError as e:
                errors.append(str(e))
    finally:
        stop.set()
        writer.join()

    assert errors == []
    assert len(service.recent_announcements()) == 50


def test_history_is_newest_first_and_bounded():
    service = RealtimeService(history_size=2)
    channel = RealtimeBroadcastChannel(service)
    for text in ("one", "two", "three"):
        channel.send_server_wide_message(text)

    messages = [event["data"]["message"] for event in service.recent_announcements()]
    assert messages == ["three", "two"]
    assert service.get_stats()["announcements"] == 2


def test_failed_broadcast_is_logged(caplog):
    future = concurrent.futures.Future()
    future.set_exception(ConnectionError("socket closed"))

    with caplog.at_level(logging.WARNING, logger="gateway.src.realtime"):
        _log_broadcast_failure(future)

    assert "Announcement broadcast failed: socket closed" in caplog.text


def test_successful_broadcast_logs_nothing(caplog):
    future = concurrent.futures.Future()
    future.set_result(None)

    with caplog.at_level(logging.WARNING, logger="gateway.src.realtime"):
        _log_broadcast_failure(future)

    assert caplog.records == []
