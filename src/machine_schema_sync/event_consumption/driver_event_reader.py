"""Kafka consumer wrapper yielding driver lifecycle events."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Protocol

from confluent_kafka import Consumer, KafkaError, KafkaException

from machine_schema_sync.configuration.runtime_settings import EventStreamSettings

from .driver_events import DriverEvent, DriverEventDecodeError, decode_driver_event

logger = logging.getLogger(__name__)

_KAFKA_CLIENT_LOGGER = logging.getLogger("machine_schema_sync.kafka.client")
_KAFKA_CLIENT_LOGGER.addHandler(logging.NullHandler())
_KAFKA_CLIENT_LOGGER.propagate = False
_KAFKA_CLIENT_LOGGER.setLevel(logging.CRITICAL + 1)


class DriverEventStreamError(Exception):
    """Raised when the Kafka event stream reports a fatal error."""


class KafkaConsumerProtocol(Protocol):
    """Protocol implemented by both real and fake consumers."""

    def subscribe(self, topics: list[str], **kwargs: Any) -> None: ...

    def poll(self, timeout: float) -> _KafkaRawMessage | None: ...

    def commit(self, message: Any = None, asynchronous: bool = True) -> Any: ...

    def close(self) -> None: ...


class _KafkaRawMessage(Protocol):
    """Subset of Kafka message API required by the reader."""

    def error(self) -> Any: ...

    def value(self) -> bytes | None: ...


@dataclass
class _PendingCommit:
    message: Any
    event: DriverEvent | None
    done: bool


class DriverEventReader:
    """Consume driver events from a topic until idle or stopped.

    An offset is committed only once the event has been acknowledged and every
    message polled before it is settled, so a crash redelivers unapplied events.
    Undecodable messages are logged and settled at once.
    """

    def __init__(
        self,
        settings: EventStreamSettings,
        consumer: KafkaConsumerProtocol | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._consumer = consumer or self._create_consumer()
        self._clock = clock
        self._stopped = False
        self._commit_lock = threading.Lock()
        self._sequence = itertools.count()
        self._pending: OrderedDict[int, _PendingCommit] = OrderedDict()
        self._sequence_by_event: dict[int, int] = {}

    def __enter__(self) -> DriverEventReader:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def stop(self) -> None:
        self._stopped = True

    def close(self) -> None:
        self._stopped = True
        self._consumer.close()

    @property
    def pending_commits(self) -> int:
        with self._commit_lock:
            return len(self._pending)

    def acknowledge(self, event: DriverEvent) -> None:
        """Mark ``event`` as handled and commit every settled offset in poll order."""
        with self._commit_lock:
            sequence = self._sequence_by_event.pop(id(event), None)
            if sequence is None:
                raise DriverEventStreamError(
                    f"Event for driver {event.driver.name} is not awaiting acknowledgement"
                )
            self._pending[sequence].done = True
            self._commit_settled()

    def events(self) -> Iterator[DriverEvent]:
        """Yield decoded events; stops after ``idle_timeout_seconds`` without messages."""
        self._consumer.subscribe([self._settings.topic])
        idle_timeout = self._settings.idle_timeout_seconds
        last_activity = self._clock()
        while not self._stopped:
            message = self._consumer.poll(timeout=self._settings.poll_interval_ms / 1000.0)
            if message is None:
                if idle_timeout and self._clock() - last_activity >= idle_timeout:
                    logger.info("no driver events for %ss, stopping", idle_timeout)
                    return
                continue
            last_activity = self._clock()
            if message.error():
                if message.error().code() == KafkaError._PARTITION_EOF:
                    continue
                raise DriverEventStreamError(f"Kafka error: {message.error()}")
            payload = message.value()
            try:
                if payload is None:
                    raise DriverEventDecodeError("Received empty message payload.")
                event = decode_driver_event(bytes(payload))
            except DriverEventDecodeError as exc:
                logger.warning("skipping driver event: %s", exc)
                self._track(message, None)
                continue
            self._track(message, event)
            yield event

    def _track(self, message: Any, event: DriverEvent | None) -> None:
        with self._commit_lock:
            sequence = next(self._sequence)
            self._pending[sequence] = _PendingCommit(message, event, done=event is None)
            if event is not None:
                self._sequence_by_event[id(event)] = sequence
            self._commit_settled()

    def _commit_settled(self) -> None:
        while self._pending:
            sequence, pending = next(iter(self._pending.items()))
            if not pending.done:
                return
            try:
                self._consumer.commit(message=pending.message, asynchronous=False)
            except KafkaException as exc:
                raise DriverEventStreamError(
                    f"Failed to commit driver event offset: {exc}"
                ) from exc
            del self._pending[sequence]

    def _create_consumer(self) -> KafkaConsumerProtocol:
        config = {
            "bootstrap.servers": ",".join(self._settings.bootstrap_servers),
            "group.id": self._settings.group_id or "machine-schema-sync",
            "enable.auto.commit": False,
            "auto.offset.reset": "earliest",
        }
        config.update(self._settings.security)
        return Consumer(config, logger=_KAFKA_CLIENT_LOGGER)
