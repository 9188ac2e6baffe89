"""Shared configuration loader for the lease canceller."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import InvalidParameters


class ConfigurationError(InvalidParameters):
    """Raised when configuration is invalid."""


DEFAULT_NODE_URL = "http://localhost:6869"
DEFAULT_TIMEOUT = 30.0
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_CONFIG_PATH = Path.home() / ".waves-lease-canceller.yaml"

ENV_NODE_API = "LEASE_CANCELLER_NODE_API"
ENV_TIMEOUT = "LEASE_CANCELLER_TIMEOUT"
ENV_POLL_INTERVAL = "LEASE_CANCELLER_POLL_INTERVAL"
ENV_ACCOUNT_SK = "LEASE_CANCELLER_ACCOUNT_SK"


@dataclass
class NodeConfig:
    """Connection details for a node's REST API."""

    base_url: str = DEFAULT_NODE_URL
    timeout: float = DEFAULT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - delegated to PyYAML
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected {path} to contain a YAML object with a 'node' section")
    return loaded


def _coerce_seconds(raw: Any, *, source: str) -> float | None:
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid number of seconds in {source}: {raw}") from exc
    if value <= 0:
        raise ConfigurationError(f"Expected a positive number of seconds in {source}: {raw}")
    return value


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def load_node_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> NodeConfig:
    """Load node configuration from overrides, environment and optional YAML.

    Precedence is overrides, then ``LEASE_CANCELLER_*`` environment variables,
    then the ``node`` section of the YAML file, then built-in defaults. The
    YAML file is only required to exist when ``config_path`` is given.
    """

    env_map = os.environ if env is None else env
    path = Path(config_path).expanduser() if config_path is not None else DEFAULT_CONFIG_PATH

    file_config = _load_config_file(path, required=config_path is not None)
    node_section = file_config.get("node", {})
    if not isinstance(node_section, dict):
        raise ConfigurationError(f"Expected 'node' to be a mapping in {path}")

    override_map = {key: value for key, value in (overrides or {}).items() if value is not None}

    resolved_url = _first_value(
        override_map.get("base_url"),
        env_map.get(ENV_NODE_API) or None,
        node_section.get("url"),
        default=DEFAULT_NODE_URL,
    )
    resolved_timeout = _first_value(
        _coerce_seconds(override_map.get("timeout"), source="overrides"),
        _coerce_seconds(env_map.get(ENV_TIMEOUT), source=ENV_TIMEOUT),
        _coerce_seconds(node_section.get("timeout"), source=f"{path} node.timeout"),
        default=DEFAULT_TIMEOUT,
    )
    resolved_interval = _first_value(
        _coerce_seconds(override_map.get("poll_interval"), source="overrides"),
        _coerce_seconds(env_map.get(ENV_POLL_INTERVAL), source=ENV_POLL_INTERVAL),
        _coerce_seconds(node_section.get("poll_interval"), source=f"{path} node.poll_interval"),
        default=DEFAULT_POLL_INTERVAL,
    )

    return NodeConfig(
        base_url=str(resolved_url),
        timeout=resolved_timeout,
        poll_interval=resolved_interval,
    )
