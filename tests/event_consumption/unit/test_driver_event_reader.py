"""Kafka driver event reader tests."""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable
from typing import Any

import pytest
from confluent_kafka import KafkaError
from machine_schema_sync.configuration.runtime_settings import EventStreamSettings
from machine_schema_sync.driver_lifecycle import MachineDriver
from machine_schema_sync.event_consumption.driver_event_reader import (
    DriverEventReader,
    DriverEventStreamError,
)
from machine_schema_sync.event_consumption.driver_events import DriverEventResult, DriverEventType
from machine_schema_sync.event_consumption.event_dispatch import (
    DispatchSummary,
    DriverEventDispatcher,
)


def _settings(idle_timeout_seconds: int = 5) -> EventStreamSettings:
    return EventStreamSettings(
        bootstrap_servers=("localhost:9092",),
        topic="machine-drivers",
        group_id="group",
        security={},
        poll_interval_ms=100,
        parallelism=2,
        idle_timeout_seconds=idle_timeout_seconds,
    )


class FakeError:
    def __init__(self, code: int) -> None:
        self._code = code

    def code(self) -> int:
        return self._code

    def __str__(self) -> str:
        return f"error {self._code}"


class FakeRecord:
    def __init__(self, payload: bytes | None, *, error_obj: FakeError | None = None) -> None:
        self._payload = payload
        self._error = error_obj

    def error(self) -> FakeError | None:
        return self._error

    def value(self) -> bytes | None:
        return self._payload


class FakeConsumer:
    def __init__(self, records: Iterable[FakeRecord | None]) -> None:
        self._records = list(records)
        self.subscribed: list[str] = []
        self.committed: list[FakeRecord] = []
        self.closed = False

    def subscribe(self, topics: list[str], **kwargs: Any) -> None:
        self.subscribed.extend(topics)

    def poll(self, timeout: float) -> FakeRecord | None:
        if self._records:
            return self._records.pop(0)
        return None

    def commit(self, message: Any = None, asynchronous: bool = True) -> None:
        self.committed.append(message)

    def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


def _event(event_type: str, name: str) -> bytes:
    return json.dumps({"type": event_type, "driver": {"name": name, "active": True}}).encode()


def test_reader_yields_events_and_stops_when_idle() -> None:
    consumer = FakeConsumer(
        [
            FakeRecord(_event("create", "foo")),
            None,
            FakeRecord(_event("updated", "bar")),
        ]
    )

    with DriverEventReader(
        _settings(idle_timeout_seconds=3), consumer, clock=FakeClock()
    ) as reader:
        events = list(reader.events())

    assert [(event.event_type, event.driver.name) for event in events] == [
        (DriverEventType.CREATE, "foo"),
        (DriverEventType.UPDATED, "bar"),
    ]
    assert consumer.subscribed == ["machine-drivers"]
    assert consumer.closed is True


def test_offsets_are_committed_only_after_acknowledgement() -> None:
    first = FakeRecord(_event("create", "foo"))
    second = FakeRecord(_event("create", "bar"))
    consumer = FakeConsumer([first, second])
    reader = DriverEventReader(_settings(idle_timeout_seconds=2), consumer, clock=FakeClock())

    foo_event, bar_event = list(reader.events())

    assert consumer.committed == []
    assert reader.pending_commits == 2

    reader.acknowledge(bar_event)

    assert consumer.committed == []

    reader.acknowledge(foo_event)

    assert consumer.committed == [first, second]
    assert reader.pending_commits == 0


def test_acknowledging_unknown_event_is_rejected() -> None:
    consumer = FakeConsumer([FakeRecord(_event("create", "foo"))])
    reader = DriverEventReader(_settings(idle_timeout_seconds=2), consumer, clock=FakeClock())
    (event,) = list(reader.events())
    reader.acknowledge(event)

    with pytest.raises(DriverEventStreamError, match="not awaiting acknowledgement"):
        reader.acknowledge(event)


def test_reader_skips_undecodable_messages() -> None:
    bad = FakeRecord(b"not-json")
    empty = FakeRecord(None)
    good = FakeRecord(_event("remove", "foo"))
    consumer = FakeConsumer([bad, empty, good])
    reader = DriverEventReader(_settings(idle_timeout_seconds=2), consumer, clock=FakeClock())

    events = list(reader.events())

    assert [event.driver.name for event in events] == ["foo"]
    assert consumer.committed == [bad, empty]

    reader.acknowledge(events[0])

    assert consumer.committed == [bad, empty, good]


def test_undecodable_message_waits_for_earlier_events() -> None:
    good = FakeRecord(_event("create", "foo"))
    bad = FakeRecord(b"not-json")
    consumer = FakeConsumer([good, bad])
    reader = DriverEventReader(_settings(idle_timeout_seconds=2), consumer, clock=FakeClock())

    (event,) = list(reader.events())

    assert consumer.committed == []

    reader.acknowledge(event)

    assert consumer.committed == [good, bad]


def test_reader_ignores_partition_eof() -> None:
    consumer = FakeConsumer(
        [
            FakeRecord(None, error_obj=FakeError(KafkaError._PARTITION_EOF)),
            FakeRecord(_event("create", "foo")),
        ]
    )
    reader = DriverEventReader(_settings(idle_timeout_seconds=2), consumer, clock=FakeClock())

    assert [event.driver.name for event in reader.events()] == ["foo"]


def test_reader_raises_on_kafka_errors() -> None:
    consumer = FakeConsumer([FakeRecord(None, error_obj=FakeError(-1))])

    with pytest.raises(DriverEventStreamError, match="Kafka error"):
        with DriverEventReader(_settings(), consumer, clock=FakeClock()) as reader:
            list(reader.events())
    assert consumer.closed is True


def test_reader_stops_when_requested() -> None:
    consumer = FakeConsumer([FakeRecord(_event("create", "foo"))])
    reader = DriverEventReader(_settings(idle_timeout_seconds=0), consumer, clock=FakeClock())

    stream = reader.events()
    assert next(stream).driver.name == "foo"
    reader.stop()

    assert list(stream) == []


class BlockingLifecycle:
    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()

    def create(self, driver: MachineDriver) -> MachineDriver:
        self.started.set()
        assert self.release.wait(timeout=5)
        return driver

    def updated(self, driver: MachineDriver) -> MachineDriver:
        return driver

    def remove(self, driver: MachineDriver) -> MachineDriver:
        return driver


def test_dispatched_event_is_committed_only_after_its_handler_returns() -> None:
    record = FakeRecord(_event("create", "foo"))
    consumer = FakeConsumer([record])
    lifecycle = BlockingLifecycle()
    dispatcher = DriverEventDispatcher(lifecycle, parallelism=1)  # type: ignore[arg-type]
    outcome: list[DispatchSummary] = []

    with DriverEventReader(
        _settings(idle_timeout_seconds=2), consumer, clock=FakeClock()
    ) as reader:

        def _on_result(result: DriverEventResult) -> None:
            reader.acknowledge(result.event)

        worker = threading.Thread(
            target=lambda: outcome.append(
                dispatcher.dispatch_all(reader.events(), on_result=_on_result)
            )
        )
        worker.start()
        assert lifecycle.started.wait(timeout=5)

        assert consumer.committed == []

        lifecycle.release.set()
        worker.join(timeout=5)

    assert consumer.committed == [record]
    assert outcome == [DispatchSummary(applied=1, failed=0)]
