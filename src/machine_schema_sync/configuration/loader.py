"""Configuration loader service."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from .runtime_settings import (
    DEFAULT_BINARY_PREFIXES,
    Configuration,
    DriverInstallSettings,
    EventStreamSettings,
    FlagCatalogSettings,
    StoreSettings,
)


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(config_path: Path | str) -> Configuration:
    """Load and validate the configuration file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    base_path = path.resolve().parent
    store = _parse_store_section(parsed.get("store"), base_path)
    drivers = _parse_drivers_section(parsed.get("drivers"), base_path)
    flags = _parse_flags_section(parsed.get("flags"), base_path)
    events = _parse_events_section(parsed.get("events"))

    return Configuration(path=path, store=store, drivers=drivers, flags=flags, events=events)


def _parse_store_section(value: Any, base_path: Path) -> StoreSettings:
    section = _require_mapping(value, "store")
    store_path = _require_non_empty_string(section.get("path"), "store.path")
    return StoreSettings(path=_resolve_path(base_path, store_path))


def _parse_drivers_section(value: Any, base_path: Path) -> DriverInstallSettings:
    section = _require_mapping(value, "drivers")
    staging_dir = _require_non_empty_string(section.get("staging_dir"), "drivers.staging_dir")
    install_dir = _require_non_empty_string(section.get("install_dir"), "drivers.install_dir")
    prefixes = _normalize_string_sequence(
        section.get("binary_prefixes", list(DEFAULT_BINARY_PREFIXES)), "drivers.binary_prefixes"
    )
    timeout_seconds = _require_positive_int(
        section.get("download_timeout_seconds", 60), "drivers.download_timeout_seconds"
    )
    return DriverInstallSettings(
        staging_dir=_resolve_path(base_path, staging_dir),
        install_dir=_resolve_path(base_path, install_dir),
        binary_prefixes=prefixes,
        download_timeout_seconds=timeout_seconds,
    )


def _parse_flags_section(value: Any, base_path: Path) -> FlagCatalogSettings:
    section = _require_mapping(value, "flags")
    catalog_path = _require_non_empty_string(section.get("catalog_path"), "flags.catalog_path")
    return FlagCatalogSettings(catalog_path=_resolve_path(base_path, catalog_path))


def _parse_events_section(value: Any) -> EventStreamSettings | None:
    if value is None:
        return None
    section = _require_mapping(value, "events")
    bootstrap_servers = _normalize_bootstrap_servers(section.get("bootstrap_servers"))
    topic = _require_non_empty_string(section.get("topic"), "events.topic")
    group_id = _optional_string(section.get("group_id"), "events.group_id")
    security = section.get("security") or {}
    if not isinstance(security, Mapping):
        raise ConfigurationError("events.security must be a mapping.")
    poll_interval_ms = _require_positive_int(
        section.get("poll_interval_ms", 500), "events.poll_interval_ms"
    )
    parallelism = _require_positive_int(section.get("parallelism", 4), "events.parallelism")
    idle_timeout_seconds = _require_non_negative_int(
        section.get("idle_timeout_seconds", 0), "events.idle_timeout_seconds"
    )
    return EventStreamSettings(
        bootstrap_servers=bootstrap_servers,
        topic=topic,
        group_id=group_id,
        security=dict(security),
        poll_interval_ms=poll_interval_ms,
        parallelism=parallelism,
        idle_timeout_seconds=idle_timeout_seconds,
    )


def _normalize_bootstrap_servers(value: Any) -> tuple[str, ...]:
    if value is None:
        raise ConfigurationError("events.bootstrap_servers is required.")
    servers: list[str] = []
    if isinstance(value, str):
        servers = [item.strip() for item in value.split(",") if item.strip()]
    elif isinstance(value, Sequence):
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError("events.bootstrap_servers entries must be strings.")
            stripped = item.strip()
            if stripped:
                servers.append(stripped)
    else:
        raise ConfigurationError("events.bootstrap_servers must be a string or list of strings.")
    if not servers:
        raise ConfigurationError("events.bootstrap_servers must contain at least one server.")
    return tuple(servers)


def _normalize_string_sequence(value: Any, field_name: str) -> tuple[str, ...]:
    if isinstance(value, str):
        stripped = value.strip()
        return (stripped,) if stripped else ()
    if isinstance(value, Sequence):
        normalized = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError(f"{field_name} entries must be strings.")
            stripped = item.strip()
            if stripped:
                normalized.append(stripped)
        return tuple(normalized)
    raise ConfigurationError(f"{field_name} must be a string or list of strings.")


def _resolve_path(base_path: Path, raw_path: str) -> Path:
    candidate = Path(raw_path)
    if not candidate.is_absolute():
        return (base_path / candidate).resolve()
    return candidate


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' is required.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None


def _require_positive_int(value: Any, field_name: str) -> int:
    number = _require_int(value, field_name)
    if number <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return number


def _require_non_negative_int(value: Any, field_name: str) -> int:
    number = _require_int(value, field_name)
    if number < 0:
        raise ConfigurationError(f"{field_name} must not be negative.")
    return number


def _require_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    return value
