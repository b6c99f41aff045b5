"""Machine driver lifecycle handling."""

from __future__ import annotations

import logging
from collections.abc import Callable

from machine_schema_sync.configuration.runtime_settings import (
    DEFAULT_BINARY_PREFIXES,
    DriverInstallSettings,
)
from machine_schema_sync.driver_installation import (
    BinaryDriverInstaller,
    DriverInstaller,
    DriverInstallError,
    normalize_driver_name,
)
from machine_schema_sync.flag_translation import FlagSource, translate_flags
from machine_schema_sync.schema_management import (
    DynamicSchema,
    EmbeddingReconciler,
    OwnerReference,
    SchemaAlreadyExistsError,
    SchemaStore,
)

from .driver_models import DRIVER_NAME_LABEL, MachineDriver

logger = logging.getLogger(__name__)

InstallerFactory = Callable[[MachineDriver], DriverInstaller]


def binary_installer_factory(settings: DriverInstallSettings) -> InstallerFactory:
    """Return a factory building a ``BinaryDriverInstaller`` per driver."""

    def _factory(driver: MachineDriver) -> DriverInstaller:
        return BinaryDriverInstaller(
            builtin=driver.builtin,
            driver_name=driver.name,
            url=driver.url,
            checksum=driver.checksum,
            settings=settings,
        )

    return _factory


class MachineDriverLifecycle:
    """Project machine drivers into the schema store on create, update and remove."""

    def __init__(
        self,
        *,
        schema_store: SchemaStore,
        reconciler: EmbeddingReconciler,
        flag_source: FlagSource,
        installer_factory: InstallerFactory,
        binary_prefixes: tuple[str, ...] = DEFAULT_BINARY_PREFIXES,
    ) -> None:
        self._store = schema_store
        self._reconciler = reconciler
        self._flag_source = flag_source
        self._installer_factory = installer_factory
        self._binary_prefixes = binary_prefixes

    def create(self, driver: MachineDriver) -> MachineDriver:
        """Install the driver, publish its sub-schema and embed it when active."""
        installer = self._installer_factory(driver)
        installer.stage()
        try:
            installer.install()
        except DriverInstallError as exc:
            logger.error("Failed to download/install driver %s: %s", installer.name(), exc)
            raise

        flags = self._flag_source.create_flags(
            normalize_driver_name(installer.name(), self._binary_prefixes)
        )
        sub_schema = DynamicSchema(
            name=driver.sub_schema_name,
            resource_fields=translate_flags(flags),
            labels={DRIVER_NAME_LABEL: driver.name},
            owner_references=(
                OwnerReference(
                    uid=driver.uid,
                    kind=driver.kind,
                    api_version=driver.api_version,
                    name=driver.name,
                ),
            ),
        )
        try:
            self._store.create(sub_schema)
        except SchemaAlreadyExistsError:
            logger.debug("schema %s already exists", sub_schema.name)

        self._reconciler.set_embedding(
            sub_schema.name, driver.config_field_name, driver.active
        )
        return driver

    def updated(self, driver: MachineDriver) -> MachineDriver:
        """Embed or retract the driver's sub-schema to follow its active flag."""
        self._reconciler.set_embedding(
            driver.sub_schema_name, driver.config_field_name, driver.active
        )
        return driver

    def remove(self, driver: MachineDriver) -> MachineDriver:
        """Delete the driver's sub-schemas and retract them from every parent."""
        schemas = self._store.list(f"{DRIVER_NAME_LABEL}={driver.name}")
        for schema in schemas:
            logger.info("Deleting schema %s", schema.name)
            self._store.delete(schema.name)
            logger.info("Deleting schema %s done", schema.name)

        self._reconciler.set_embedding(driver.sub_schema_name, driver.config_field_name, False)
        return driver
