"""Tests for the ingestion handler."""

import logging
import threading
from unittest.mock import MagicMock

import pytest

from mqtt2tsdb.bridge.handler import IngestionHandler
from mqtt2tsdb.shared.database import (
    DBConfig,
    InsertError,
    LivenessError,
    ReadingsStorage,
    ReconnectError,
)
from mqtt2tsdb.shared.models import Reading


@pytest.fixture
def handler(storage) -> IngestionHandler:
    return IngestionHandler(storage)


def test_live_database_inserts_one_row(handler, storage):
    handler.handle("kitchen/main/dht22/temperature", b"21.5")

    storage.check_alive.assert_called_once_with()
    storage.insert_reading.assert_called_once_with(Reading(
        location="kitchen",
        room="main",
        sensor="dht22",
        measurement="temperature",
        value=21.5,
    ))
    storage.reconnect.assert_not_called()
    assert handler.stats.inserted == 1


def test_lost_connection_reconnects_and_drops_message(handler, storage, caplog):
    storage.check_alive.side_effect = LivenessError("ping failed")

    with caplog.at_level(logging.WARNING):
        handler.handle("kitchen/main/dht22/temperature", b"21.5")

    storage.reconnect.assert_called_once_with()
    storage.insert_reading.assert_not_called()
    assert handler.stats.dropped_db_down == 1
    assert handler.stats.reconnects == 1
    assert "Skip message due to lost db connection" in caplog.text


def test_failed_reconnect_drops_message(handler, storage, caplog):
    storage.check_alive.side_effect = LivenessError("ping failed")
    storage.reconnect.side_effect = ReconnectError("refused")

    with caplog.at_level(logging.ERROR):
        handler.handle("kitchen/main/dht22/temperature", b"21.5")

    storage.reconnect.assert_called_once_with()
    storage.insert_reading.assert_not_called()
    assert handler.stats.reconnects == 0
    assert "Reconnect to database failed" in caplog.text


def test_next_message_after_recovery_is_inserted(handler, storage):
    storage.check_alive.side_effect = [LivenessError("ping failed"), None]

    handler.handle("kitchen/main/dht22/temperature", b"21.5")
    handler.handle("kitchen/main/dht22/temperature", b"22.0")

    assert storage.insert_reading.call_count == 1
    assert storage.insert_reading.call_args.args[0].value == 22.0


def test_liveness_checked_before_decoding(handler, storage):
    storage.check_alive.side_effect = LivenessError("ping failed")

    handler.handle("not-a-topic", b"abc")

    storage.reconnect.assert_called_once_with()
    assert handler.stats.decode_failed == 0


@pytest.mark.parametrize("topic, payload", [
    ("nouser", b"1"),
    ("kitchen/main/dht22", b"21.5"),
    ("kitchen/main/dht22/humidity", b"abc"),
])
def test_decode_failure_skips_insert(handler, storage, topic, payload, caplog):
    with caplog.at_level(logging.WARNING):
        handler.handle(topic, payload)

    storage.insert_reading.assert_not_called()
    assert handler.stats.decode_failed == 1
    assert "Dropping message" in caplog.text


def test_insert_failure_is_logged_not_raised(handler, storage, caplog):
    storage.insert_reading.side_effect = InsertError("duplicate key")

    with caplog.at_level(logging.ERROR):
        handler.handle("kitchen/main/dht22/temperature", b"21.5")

    storage.insert_reading.assert_called_once()
    assert handler.stats.insert_failed == 1
    assert handler.stats.inserted == 0
    assert "duplicate key" in caplog.text


def test_stats_count_every_message(handler, storage):
    handler.handle("a/b/c/d", b"1")
    handler.handle("a/b/c", b"1")
    assert handler.stats.to_dict() == {
        "received": 2,
        "inserted": 1,
        "decode_failed": 1,
        "insert_failed": 0,
        "dropped_db_down": 0,
        "reconnects": 0,
    }


def test_nul_byte_in_topic_is_dropped_not_raised(caplog):
    storage = ReadingsStorage(DBConfig())
    conn = MagicMock()
    conn.closed = 0
    cursor = conn.cursor.return_value.__enter__.return_value
    cursor.execute.side_effect = [
        None,  # SELECT 1
        ValueError("A string literal cannot contain NUL (0x00) characters."),
    ]
    storage._connection = conn
    handler = IngestionHandler(storage)

    with caplog.at_level(logging.ERROR):
        handler.handle("kitchen/main/dht\x0022/temperature", b"21.5")

    assert handler.stats.insert_failed == 1
    assert handler.stats.inserted == 0
    assert "Unable to insert data" in caplog.text


def test_concurrent_messages_are_serialized(handler, storage):
    first_in_check = threading.Event()
    release_first = threading.Event()
    calls = []

    def check_alive():
        calls.append("check_alive")
        if len(calls) == 1:
            first_in_check.set()
            assert release_first.wait(timeout=5)

    storage.check_alive.side_effect = check_alive
    storage.insert_reading.side_effect = lambda reading: calls.append(f"insert {reading.value}")

    first = threading.Thread(target=handler.handle, args=("a/b/c/d", b"1"))
    second = threading.Thread(target=handler.handle, args=("a/b/c/d", b"2"))
    first.start()
    assert first_in_check.wait(timeout=5)
    second.start()

    # The second message must wait on the lock while the first is mid-check
    second.join(timeout=0.2)
    assert second.is_alive()
    assert calls == ["check_alive"]

    release_first.set()
    first.join(timeout=5)
    second.join(timeout=5)

    assert calls == ["check_alive", "insert 1.0", "check_alive", "insert 2.0"]


def test_successful_insert_logged_with_topic(handler, caplog):
    with caplog.at_level(logging.DEBUG, logger="mqtt2tsdb.bridge.handler"):
        handler.handle("kitchen/main/dht22/temperature", b"21.5")

    assert "Logged: kitchen/main/dht22/temperature = 21.5" in caplog.text
