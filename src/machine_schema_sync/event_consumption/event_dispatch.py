"""Concurrent dispatch of driver events through the lifecycle."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from functools import partial

from machine_schema_sync.driver_lifecycle import MachineDriverLifecycle

from .driver_events import DriverEvent, DriverEventResult, DriverEventType, EventStatus

logger = logging.getLogger(__name__)

ResultCallback = Callable[[DriverEventResult], None]


@dataclass(frozen=True)
class DispatchSummary:
    """Counts of dispatched events by outcome."""

    applied: int = 0
    failed: int = 0


class _DispatchState:
    def __init__(self, max_pending: int) -> None:
        self.lock = threading.Lock()
        self.slots = threading.BoundedSemaphore(max_pending)
        self.latest_by_driver: dict[str, Future[DriverEventResult]] = {}
        self.applied = 0
        self.failed = 0
        self.callback_error: BaseException | None = None

    def raise_callback_error(self) -> None:
        with self.lock:
            error = self.callback_error
        if error is not None:
            raise error


class DriverEventDispatcher:  # pylint: disable=too-few-public-methods
    """Run driver events on a worker pool.

    Events for different drivers run concurrently; events for the same driver
    run in arrival order because each one waits for its predecessor. At most
    ``max_pending`` events are in flight, so an endless stream is consumed at
    the pace the workers apply it.
    """

    def __init__(
        self,
        lifecycle: MachineDriverLifecycle,
        *,
        parallelism: int = 4,
        max_pending: int | None = None,
    ) -> None:
        self._lifecycle = lifecycle
        self._parallelism = max(1, parallelism)
        self._max_pending = max(1, max_pending or self._parallelism * 2)

    def dispatch_all(
        self, events: Iterable[DriverEvent], on_result: ResultCallback | None = None
    ) -> DispatchSummary:
        """Apply every event, passing each result to ``on_result`` once it is handled.

        ``on_result`` runs on the worker thread before the next event of the same
        driver starts. An exception it raises stops the dispatch and is re-raised.
        """
        state = _DispatchState(self._max_pending)
        with ThreadPoolExecutor(max_workers=self._parallelism) as executor:
            for event in events:
                state.raise_callback_error()
                state.slots.acquire()
                name = event.driver.name
                with state.lock:
                    previous = state.latest_by_driver.get(name)
                    future = executor.submit(self._run, previous, event, on_result)
                    state.latest_by_driver[name] = future
                future.add_done_callback(partial(_finished, state, name))
        state.raise_callback_error()
        return DispatchSummary(applied=state.applied, failed=state.failed)

    def _run(
        self,
        previous: Future[DriverEventResult] | None,
        event: DriverEvent,
        on_result: ResultCallback | None,
    ) -> DriverEventResult:
        if previous is not None:
            wait([previous])
        result = self.handle(event)
        if on_result is not None:
            on_result(result)
        return result

    def handle(self, event: DriverEvent) -> DriverEventResult:
        """Apply one event; failures are reported in the result, not raised."""
        try:
            if event.event_type is DriverEventType.CREATE:
                self._lifecycle.create(event.driver)
            elif event.event_type is DriverEventType.UPDATED:
                self._lifecycle.updated(event.driver)
            else:
                self._lifecycle.remove(event.driver)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.error(
                "%s event for driver %s failed: %s",
                event.event_type.value,
                event.driver.name,
                exc,
            )
            return DriverEventResult.failed(event, exc)
        logger.info("%s event for driver %s applied", event.event_type.value, event.driver.name)
        return DriverEventResult.applied(event)


def _finished(state: _DispatchState, name: str, future: Future[DriverEventResult]) -> None:
    with state.lock:
        if state.latest_by_driver.get(name) is future:
            del state.latest_by_driver[name]
        error = future.exception()
        if error is not None:
            if state.callback_error is None:
                state.callback_error = error
        elif future.result().status is EventStatus.APPLIED:
            state.applied += 1
        else:
            state.failed += 1
    state.slots.release()
