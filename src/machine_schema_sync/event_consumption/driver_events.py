"""Driver lifecycle event entities."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from machine_schema_sync.driver_lifecycle import DriverDefinitionError, MachineDriver


class DriverEventDecodeError(Exception):
    """Raised when a driver event payload cannot be decoded."""


class DriverEventType(str, Enum):
    """Lifecycle trigger carried by a driver event."""

    CREATE = "create"
    UPDATED = "updated"
    REMOVE = "remove"


class EventStatus(str, Enum):
    """Outcome of handling one driver event."""

    APPLIED = "applied"
    FAILED = "failed"


@dataclass(frozen=True)
class DriverEvent:
    """One lifecycle trigger for one machine driver."""

    event_type: DriverEventType
    driver: MachineDriver


@dataclass(frozen=True)
class DriverEventResult:
    """Outcome of dispatching a driver event through the lifecycle."""

    event: DriverEvent
    status: EventStatus
    handled_at: datetime
    error_message: str | None

    @staticmethod
    def applied(event: DriverEvent) -> DriverEventResult:
        return DriverEventResult(
            event=event,
            status=EventStatus.APPLIED,
            handled_at=datetime.now(UTC),
            error_message=None,
        )

    @staticmethod
    def failed(event: DriverEvent, error: Exception) -> DriverEventResult:
        return DriverEventResult(
            event=event,
            status=EventStatus.FAILED,
            handled_at=datetime.now(UTC),
            error_message=str(error),
        )


def decode_driver_event(payload: bytes | str) -> DriverEvent:
    """Decode ``{"type": ..., "driver": {...}}`` JSON into a driver event."""
    try:
        document = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DriverEventDecodeError(f"Invalid driver event payload: {exc}") from exc
    if not isinstance(document, Mapping):
        raise DriverEventDecodeError("Driver event payload must be an object.")
    try:
        event_type = DriverEventType(str(document.get("type", "")).lower())
    except ValueError as exc:
        raise DriverEventDecodeError(
            f"Unknown driver event type: {document.get('type')!r}"
        ) from exc
    driver_data = document.get("driver")
    if not isinstance(driver_data, Mapping):
        raise DriverEventDecodeError("Driver event requires a driver object.")
    try:
        driver = MachineDriver.from_dict(driver_data)
    except DriverDefinitionError as exc:
        raise DriverEventDecodeError(str(exc)) from exc
    return DriverEvent(event_type=event_type, driver=driver)
