"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .loader import ConfigurationError, load_configuration
from .runtime_settings import (
    DEFAULT_BINARY_PREFIXES,
    Configuration,
    DriverInstallSettings,
    EventStreamSettings,
    FlagCatalogSettings,
    StoreSettings,
)

__all__ = [
    "Configuration",
    "DriverInstallSettings",
    "EventStreamSettings",
    "FlagCatalogSettings",
    "StoreSettings",
    "DEFAULT_BINARY_PREFIXES",
    "ConfigurationError",
    "load_configuration",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]
