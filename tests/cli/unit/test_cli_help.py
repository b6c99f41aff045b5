"""CLI smoke tests."""

from click.testing import CliRunner
from machine_schema_sync.cli import cli


def test_cli_displays_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    for command in ("generate-config", "create", "update", "remove", "show-schema", "watch"):
        assert command in result.output
