"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "machine-schema-sync.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Configuration template for machine-schema-sync.
# Relative paths resolve against the directory holding this file.

store:
  # YAML file holding the schema objects (sub-schemas and parent schemas).
  path: "schemas.yaml"

drivers:
  staging_dir: ".drivers/staging"
  install_dir: ".drivers/bin"
  # Prefixes stripped from a driver binary name before its flags are looked up.
  binary_prefixes:
    - "docker-machine-driver-"
    - "rancher-machine-driver-"
  download_timeout_seconds: 60

flags:
  # Mapping of normalized driver name to its create flags:
  #   amazonec2:
  #     - {name: "amazonec2-region", type: "string", usage: "AWS region", value: "us-east-1"}
  catalog_path: "flags.yaml"

# Only needed by the `watch` command.
# events:
#   bootstrap_servers:
#     - "localhost:9092"
#   topic: "machine-drivers"
#   group_id: "machine-schema-sync"
#   security: {}
#   poll_interval_ms: 500
#   parallelism: 4
#   idle_timeout_seconds: 0
"""


def build_placeholder_configuration() -> str:
    """Build a YAML configuration template with defaults and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
