"""Driver event consumption exports."""

from .driver_event_reader import DriverEventReader, DriverEventStreamError
from .driver_events import (
    DriverEvent,
    DriverEventDecodeError,
    DriverEventResult,
    DriverEventType,
    EventStatus,
    decode_driver_event,
)
from .event_dispatch import DispatchSummary, DriverEventDispatcher

__all__ = [
    "DispatchSummary",
    "DriverEvent",
    "DriverEventDecodeError",
    "DriverEventDispatcher",
    "DriverEventReader",
    "DriverEventResult",
    "DriverEventStreamError",
    "DriverEventType",
    "EventStatus",
    "decode_driver_event",
]
