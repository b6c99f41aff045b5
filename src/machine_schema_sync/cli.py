"""Command line interface entry point."""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path

import click
import yaml

from machine_schema_sync.configuration import (
    DEFAULT_CONFIG_FILENAME,
    Configuration,
    ConfigurationError,
    load_configuration,
    write_placeholder_configuration,
)
from machine_schema_sync.driver_installation import DriverInstallError
from machine_schema_sync.driver_lifecycle import (
    DriverDefinitionError,
    MachineDriver,
    MachineDriverLifecycle,
    binary_installer_factory,
)
from machine_schema_sync.event_consumption import (
    DriverEventDispatcher,
    DriverEventReader,
    DriverEventStreamError,
    DriverEventResult,
    EventStatus,
)
from machine_schema_sync.flag_translation import (
    CatalogFlagSource,
    FlagSourceError,
    FlagTranslationError,
)
from machine_schema_sync.schema_management import (
    EmbeddingReconciler,
    SchemaStoreError,
    YamlSchemaStore,
)

_LIFECYCLE_ERRORS = (
    ConfigurationError,
    DriverDefinitionError,
    DriverInstallError,
    FlagSourceError,
    FlagTranslationError,
    SchemaStoreError,
    OSError,
)

_CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to the YAML configuration file",
)
_DRIVER_OPTION = click.option(
    "--driver",
    "driver_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to a YAML machine driver definition",
)


class CliError(Exception):
    """Custom CLI error."""


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="machine-schema-sync")
@click.option(
    "--log-level",
    default="WARNING",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging verbosity",
)
def cli(log_level: str) -> None:
    """Project machine driver flags into embeddable resource schemas."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a YAML configuration template with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="create")
@_CONFIG_OPTION
@_DRIVER_OPTION
def create_driver(config_path: str, driver_path: str) -> None:
    """Install a driver and publish its configuration schema."""
    try:
        lifecycle = _build_lifecycle(load_configuration(config_path))
        driver = lifecycle.create(_load_driver(driver_path))
    except _LIFECYCLE_ERRORS as exc:
        raise CliError(str(exc)) from exc
    click.echo(f"created {driver.sub_schema_name}")


@cli.command(name="update")
@_CONFIG_OPTION
@_DRIVER_OPTION
def update_driver(config_path: str, driver_path: str) -> None:
    """Embed or retract a driver's schema according to its active flag."""
    try:
        lifecycle = _build_lifecycle(load_configuration(config_path))
        driver = lifecycle.updated(_load_driver(driver_path))
    except _LIFECYCLE_ERRORS as exc:
        raise CliError(str(exc)) from exc
    state = "embedded" if driver.active else "retracted"
    click.echo(f"{state} {driver.config_field_name}")


@cli.command(name="remove")
@_CONFIG_OPTION
@_DRIVER_OPTION
def remove_driver(config_path: str, driver_path: str) -> None:
    """Delete a driver's schemas and retract them from the parent schemas."""
    try:
        lifecycle = _build_lifecycle(load_configuration(config_path))
        driver = lifecycle.remove(_load_driver(driver_path))
    except _LIFECYCLE_ERRORS as exc:
        raise CliError(str(exc)) from exc
    click.echo(f"removed {driver.sub_schema_name}")


@cli.command(name="show-schema")
@_CONFIG_OPTION
@click.argument("schema_name")
def show_schema(config_path: str, schema_name: str) -> None:
    """Print one stored schema object as YAML."""
    try:
        store = YamlSchemaStore(load_configuration(config_path).store.path)
        schema = store.get(schema_name)
    except (ConfigurationError, SchemaStoreError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(yaml.safe_dump(schema.to_dict(), sort_keys=False).rstrip())


@cli.command(name="watch")
@_CONFIG_OPTION
def watch(config_path: str) -> None:
    """Consume driver events from Kafka and apply them."""
    try:
        configuration = load_configuration(config_path)
        if configuration.events is None:
            raise CliError("Configuration section 'events' is required for watch.")
        dispatcher = DriverEventDispatcher(
            _build_lifecycle(configuration), parallelism=configuration.events.parallelism
        )
        with DriverEventReader(configuration.events) as reader:

            def _report(result: DriverEventResult) -> None:
                if result.status is EventStatus.FAILED:
                    click.echo(
                        f"{result.event.event_type.value} {result.event.driver.name}: "
                        f"{result.error_message}",
                        err=True,
                    )
                reader.acknowledge(result.event)

            summary = dispatcher.dispatch_all(reader.events(), on_result=_report)
    except (*_LIFECYCLE_ERRORS, DriverEventStreamError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(f"applied {summary.applied} events, {summary.failed} failed")
    if summary.failed:
        raise CliError(f"{summary.failed} driver events failed")


def _build_lifecycle(configuration: Configuration) -> MachineDriverLifecycle:
    store = YamlSchemaStore(configuration.store.path)
    return MachineDriverLifecycle(
        schema_store=store,
        reconciler=EmbeddingReconciler(store),
        flag_source=CatalogFlagSource.from_file(configuration.flags.catalog_path),
        installer_factory=binary_installer_factory(configuration.drivers),
        binary_prefixes=configuration.drivers.binary_prefixes,
    )


def _load_driver(driver_path: str) -> MachineDriver:
    path = Path(driver_path)
    if not path.exists():
        raise DriverDefinitionError(f"Driver definition not found: {path}")
    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise DriverDefinitionError(f"Failed to parse driver definition: {exc}") from exc
    if not isinstance(parsed, Mapping):
        raise DriverDefinitionError("Driver definition root must be a mapping.")
    return MachineDriver.from_dict(parsed)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
