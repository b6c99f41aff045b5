"""Driver lifecycle exports."""

from .driver_models import (
    DRIVER_NAME_LABEL,
    DriverDefinitionError,
    MachineDriver,
    sub_schema_name,
)
from .lifecycle_controller import (
    InstallerFactory,
    MachineDriverLifecycle,
    binary_installer_factory,
)

__all__ = [
    "DRIVER_NAME_LABEL",
    "DriverDefinitionError",
    "InstallerFactory",
    "MachineDriver",
    "MachineDriverLifecycle",
    "binary_installer_factory",
    "sub_schema_name",
]
