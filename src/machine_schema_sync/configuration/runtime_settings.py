"""Configuration domain entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_BINARY_PREFIXES = ("docker-machine-driver-", "rancher-machine-driver-")


@dataclass(frozen=True)
class StoreSettings:
    """Location of the file-backed schema store."""

    path: Path


@dataclass(frozen=True)
class DriverInstallSettings:
    """Where driver binaries are staged and installed."""

    staging_dir: Path
    install_dir: Path
    binary_prefixes: tuple[str, ...] = DEFAULT_BINARY_PREFIXES
    download_timeout_seconds: int = 60


@dataclass(frozen=True)
class FlagCatalogSettings:
    """Location of the driver flag catalog."""

    catalog_path: Path


@dataclass(frozen=True)
class EventStreamSettings:
    """Kafka consumer configuration for driver lifecycle events."""

    bootstrap_servers: tuple[str, ...]
    topic: str
    group_id: str | None
    security: Mapping[str, object]
    poll_interval_ms: int
    parallelism: int
    idle_timeout_seconds: int


@dataclass(frozen=True)
class Configuration:
    """Top-level configuration aggregate."""

    path: Path
    store: StoreSettings
    drivers: DriverInstallSettings
    flags: FlagCatalogSettings
    events: EventStreamSettings | None
