"""Driver installation exports."""

from .binary_installer import (
    BinaryDriverInstaller,
    DriverInstaller,
    DriverInstallError,
    normalize_driver_name,
)

__all__ = [
    "BinaryDriverInstaller",
    "DriverInstallError",
    "DriverInstaller",
    "normalize_driver_name",
]
