"""Sources of create-time flags for installed drivers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

import yaml

from .flag_models import DriverFlag


class FlagSourceError(Exception):
    """Raised when the flags of a driver cannot be enumerated."""


class FlagSource(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol for enumerating a driver's create flags by normalized name."""

    def create_flags(self, driver_name: str) -> list[DriverFlag]: ...


class CatalogFlagSource:  # pylint: disable=too-few-public-methods
    """Flag source backed by a mapping of driver name to flag definitions."""

    def __init__(self, catalog: Mapping[str, Sequence[DriverFlag]]) -> None:
        self._catalog = {name: tuple(flags) for name, flags in catalog.items()}

    def create_flags(self, driver_name: str) -> list[DriverFlag]:
        try:
            return list(self._catalog[driver_name])
        except KeyError as exc:
            raise FlagSourceError(f"No flags known for driver {driver_name}") from exc

    @classmethod
    def from_file(cls, path: Path | str) -> CatalogFlagSource:
        """Load a YAML catalog of the form ``{driver: [{name, type, usage, value}]}``."""
        catalog_path = Path(path)
        if not catalog_path.exists():
            raise FlagSourceError(f"Flag catalog not found: {catalog_path}")
        try:
            parsed = yaml.safe_load(catalog_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise FlagSourceError(f"Failed to parse flag catalog: {exc}") from exc
        if parsed is None:
            parsed = {}
        if not isinstance(parsed, Mapping):
            raise FlagSourceError("Flag catalog root must be a mapping.")
        return cls(
            {str(name): _parse_flags(str(name), entries) for name, entries in parsed.items()}
        )


def _parse_flags(driver_name: str, entries: Any) -> list[DriverFlag]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise FlagSourceError(f"Flags of driver {driver_name} must be a list.")
    flags: list[DriverFlag] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise FlagSourceError(f"Flag entries of driver {driver_name} must be mappings.")
        name = entry.get("name")
        kind = entry.get("type")
        if not isinstance(name, str) or not name.strip():
            raise FlagSourceError(f"Flag of driver {driver_name} is missing a name.")
        if not isinstance(kind, str) or not kind.strip():
            raise FlagSourceError(f"Flag {name} of driver {driver_name} is missing a type.")
        flags.append(
            DriverFlag(
                name=name.strip(),
                kind=kind.strip(),
                usage=str(entry.get("usage") or ""),
                value=entry.get("value"),
            )
        )
    return flags
