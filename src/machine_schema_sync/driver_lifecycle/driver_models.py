"""Machine driver entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

DRIVER_NAME_LABEL = "io.cattle.machine_driver.name"
MACHINE_DRIVER_KIND = "MachineDriver"
MACHINE_DRIVER_API_VERSION = "management.cattle.io/v3"


class DriverDefinitionError(Exception):
    """Raised when a machine driver definition is malformed."""


@dataclass(frozen=True)
class MachineDriver:  # pylint: disable=too-many-instance-attributes
    """Registered machine driver as supplied by the resource framework."""

    name: str
    active: bool = False
    builtin: bool = False
    url: str = ""
    checksum: str = ""
    uid: str = ""
    kind: str = MACHINE_DRIVER_KIND
    api_version: str = MACHINE_DRIVER_API_VERSION

    @property
    def sub_schema_name(self) -> str:
        return sub_schema_name(self.name)

    @property
    def config_field_name(self) -> str:
        return self.name + "Config"

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> MachineDriver:
        """Build a driver from a ``{name, active, builtin, url, checksum, uid}`` mapping."""
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise DriverDefinitionError("Machine driver definition requires a name.")
        for flag_name in ("active", "builtin"):
            if not isinstance(data.get(flag_name, False), bool):
                raise DriverDefinitionError(f"Machine driver {flag_name} must be a boolean.")
        return MachineDriver(
            name=name.strip(),
            active=data.get("active", False),
            builtin=data.get("builtin", False),
            url=str(data.get("url") or ""),
            checksum=str(data.get("checksum") or ""),
            uid=str(data.get("uid") or ""),
            kind=str(data.get("kind") or MACHINE_DRIVER_KIND),
            api_version=str(data.get("apiVersion") or MACHINE_DRIVER_API_VERSION),
        )


def sub_schema_name(driver_name: str) -> str:
    """Return the conventional name of a driver's configuration sub-schema."""
    return driver_name + "config"
