"""Configuration loader tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from machine_schema_sync.configuration.loader import ConfigurationError, load_configuration


def _write_file(path: Path, contents: str) -> Path:
    path.write_text(contents, encoding="utf-8")
    return path


def _base_config() -> dict[str, object]:
    return {
        "store": {"path": "schemas.yaml"},
        "drivers": {"staging_dir": "staging", "install_dir": "bin"},
        "flags": {"catalog_path": "flags.yaml"},
    }


def test_loads_yaml_configuration_with_defaults(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        """
store:
  path: state/schemas.yaml
drivers:
  staging_dir: .drivers/staging
  install_dir: /opt/drivers/bin
flags:
  catalog_path: flags.yaml
""",
    )

    configuration = load_configuration(config_path)

    assert configuration.store.path == (tmp_path / "state" / "schemas.yaml").resolve()
    assert configuration.drivers.staging_dir == (tmp_path / ".drivers" / "staging").resolve()
    assert configuration.drivers.install_dir == Path("/opt/drivers/bin")
    assert configuration.drivers.binary_prefixes == (
        "docker-machine-driver-",
        "rancher-machine-driver-",
    )
    assert configuration.drivers.download_timeout_seconds == 60
    assert configuration.flags.catalog_path == (tmp_path / "flags.yaml").resolve()
    assert configuration.events is None


def test_loads_json_configuration_with_event_stream(tmp_path: Path) -> None:
    config = _base_config()
    config["drivers"] = {
        "staging_dir": "staging",
        "install_dir": "bin",
        "binary_prefixes": "custom-driver-",
        "download_timeout_seconds": 5,
    }
    config["events"] = {
        "bootstrap_servers": ["broker-1:9092", "broker-2:9092"],
        "topic": "machine-drivers",
        "group_id": "sync",
        "parallelism": 8,
    }
    config_path = _write_file(tmp_path / "config.json", json.dumps(config))

    configuration = load_configuration(config_path)

    assert configuration.drivers.binary_prefixes == ("custom-driver-",)
    assert configuration.drivers.download_timeout_seconds == 5
    assert configuration.events is not None
    assert configuration.events.bootstrap_servers == ("broker-1:9092", "broker-2:9092")
    assert configuration.events.group_id == "sync"
    assert configuration.events.parallelism == 8
    assert configuration.events.poll_interval_ms == 500
    assert configuration.events.idle_timeout_seconds == 0
    assert configuration.events.security == {}


@pytest.mark.parametrize("missing_section", ["store", "drivers", "flags"])
def test_errors_when_required_section_is_missing(tmp_path: Path, missing_section: str) -> None:
    config = _base_config()
    del config[missing_section]
    config_path = _write_file(tmp_path / "config.yaml", json.dumps(config))

    with pytest.raises(ConfigurationError, match=f"'{missing_section}' is required"):
        load_configuration(config_path)


def test_errors_when_config_file_is_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Configuration file not found"):
        load_configuration(tmp_path / "missing.yaml")


def test_errors_when_root_is_not_mapping(tmp_path: Path) -> None:
    config_path = _write_file(tmp_path / "config.yaml", "[]")

    with pytest.raises(ConfigurationError, match="Configuration root must be a mapping"):
        load_configuration(config_path)


def test_errors_when_store_path_is_empty(tmp_path: Path) -> None:
    config = _base_config()
    config["store"] = {"path": "  "}
    config_path = _write_file(tmp_path / "config.yaml", json.dumps(config))

    with pytest.raises(ConfigurationError, match="store.path must not be empty"):
        load_configuration(config_path)


def test_errors_when_download_timeout_is_not_positive(tmp_path: Path) -> None:
    config = _base_config()
    config["drivers"] = {"staging_dir": "s", "install_dir": "b", "download_timeout_seconds": 0}
    config_path = _write_file(tmp_path / "config.yaml", json.dumps(config))

    with pytest.raises(ConfigurationError, match="must be greater than zero"):
        load_configuration(config_path)


def test_errors_when_event_security_is_not_mapping(tmp_path: Path) -> None:
    config = _base_config()
    config["events"] = {
        "bootstrap_servers": "localhost:9092",
        "topic": "machine-drivers",
        "security": "sasl",
    }
    config_path = _write_file(tmp_path / "config.yaml", json.dumps(config))

    with pytest.raises(ConfigurationError, match="events.security must be a mapping"):
        load_configuration(config_path)


def test_errors_when_bootstrap_servers_are_empty(tmp_path: Path) -> None:
    config = _base_config()
    config["events"] = {"bootstrap_servers": " , ", "topic": "machine-drivers"}
    config_path = _write_file(tmp_path / "config.yaml", json.dumps(config))

    with pytest.raises(ConfigurationError, match="at least one server"):
        load_configuration(config_path)


def test_errors_when_idle_timeout_is_negative(tmp_path: Path) -> None:
    config = _base_config()
    config["events"] = {
        "bootstrap_servers": "localhost:9092",
        "topic": "machine-drivers",
        "idle_timeout_seconds": -1,
    }
    config_path = _write_file(tmp_path / "config.yaml", json.dumps(config))

    with pytest.raises(ConfigurationError, match="must not be negative"):
        load_configuration(config_path)
