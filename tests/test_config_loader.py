from pathlib import Path

import pytest

from waves_lease_canceller.config import (
    ConfigurationError,
    DEFAULT_NODE_URL,
    NodeConfig,
    load_node_config,
)
from waves_lease_canceller.errors import InvalidParameters


def test_load_node_config_prefers_environment_over_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
        node:
          url: http://filehost:6869
          timeout: 5
          poll_interval: 2
        """
    )

    env_map = {
        "LEASE_CANCELLER_NODE_API": "https://envhost",
        "LEASE_CANCELLER_TIMEOUT": "12.5",
    }

    config = load_node_config(config_path=config_path, env=env_map)

    assert isinstance(config, NodeConfig)
    assert config.base_url == "https://envhost"
    assert config.timeout == 12.5
    assert config.poll_interval == 2.0


def test_overrides_win_over_everything(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("node:\n  url: http://filehost:6869\n")

    config = load_node_config(
        config_path=config_path,
        env={"LEASE_CANCELLER_NODE_API": "http://envhost"},
        overrides={"base_url": "http://cli:6869", "poll_interval": 0.5, "timeout": None},
    )

    assert config.base_url == "http://cli:6869"
    assert config.poll_interval == 0.5
    assert config.timeout == 30.0


def test_defaults_when_nothing_configured(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("waves_lease_canceller.config.DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")

    config = load_node_config(env={})

    assert config == NodeConfig(base_url=DEFAULT_NODE_URL, timeout=30.0, poll_interval=1.0)


def test_reads_default_yaml_when_present(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / ".waves-lease-canceller.yaml"
    config_path.write_text("node:\n  url: http://yamlhost:6869\n  poll_interval: 3\n")
    monkeypatch.setattr("waves_lease_canceller.config.DEFAULT_CONFIG_PATH", config_path)

    config = load_node_config(env={})

    assert config.base_url == "http://yamlhost:6869"
    assert config.poll_interval == 3.0


def test_explicit_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_node_config(config_path=tmp_path / "missing.yaml", env={})


@pytest.mark.parametrize("value", ["soon", "0", "-1"])
def test_invalid_seconds_rejected(
    value: str, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("waves_lease_canceller.config.DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")
    with pytest.raises(ConfigurationError):
        load_node_config(config_path=None, env={"LEASE_CANCELLER_POLL_INTERVAL": value})


def test_configuration_error_is_invalid_parameters(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- just\n- a list\n")
    with pytest.raises(InvalidParameters):
        load_node_config(config_path=config_path, env={})
