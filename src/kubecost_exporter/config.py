"""
Application configuration.

Defaults are read from ``configs/default.yaml``. A second file, named by the
``KUBECOST_EXPORTER_CONFIG_NAME``, ``KUBECOST_EXPORTER_CONFIG_TYPE`` and
``KUBECOST_EXPORTER_CONFIG_PATH`` environment variables, may override any of
them. The merged result is turned into an immutable ``ExporterConfig`` once at
startup and handed to whatever needs it.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .cli_errors import ConfigError
from .constants import (
    CONFIG_NAME_ENV_VAR,
    CONFIG_PATH_ENV_VAR,
    CONFIG_TYPE_ENV_VAR,
    DEFAULT_CONFIG_NAME,
    DEFAULT_CONFIG_PATH,
    DEFAULT_CONFIG_TYPE,
    DEFAULT_SERVER_PATH,
    DEFAULT_SERVER_PORT,
    DEFAULT_UPDATE_INTERVAL,
    HTTP_TIMEOUT,
    SUPPORTED_CONFIG_TYPES,
)

logger = logging.getLogger(__name__)

# Bundled configs/ directory, used when ./configs does not exist
BUNDLED_CONFIG_PATH = Path(__file__).resolve().parents[2] / "configs"


@dataclass(frozen=True)
class ApiSettings:
    host: str = "localhost"
    port: int = 9090
    path: str = "/model/allocation"
    parameters: Dict[str, Any] = field(default_factory=dict)
    timeout: float = HTTP_TIMEOUT


@dataclass(frozen=True)
class ServerSettings:
    port: int = DEFAULT_SERVER_PORT
    path: str = DEFAULT_SERVER_PATH
    update_interval: str = DEFAULT_UPDATE_INTERVAL


@dataclass(frozen=True)
class MetricsSettings:
    """Raw metric definitions; validated when the metric schema is built."""

    namespace: str = ""
    subsystem: str = ""
    names: Any = None
    labels: Any = None


@dataclass(frozen=True)
class ExporterConfig:
    api: ApiSettings = field(default_factory=ApiSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    metrics: MetricsSettings = field(default_factory=MetricsSettings)
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExporterConfig":
        """
        Build the configuration from merged settings.

        Raises:
            ConfigError: If a section or value has the wrong type
        """
        api = _section(data, "api")
        server = _section(data, "server")
        metrics = _section(data, "metrics")
        logging_section = _section(data, "logging")

        parameters = api.get("parameters") or {}
        if not isinstance(parameters, Mapping):
            raise ConfigError("'api.parameters' must be a mapping", context="Configuration")

        return cls(
            api=ApiSettings(
                host=str(api.get("host", ApiSettings.host)),
                port=_integer(api.get("port", ApiSettings.port), "api.port"),
                path=str(api.get("path", ApiSettings.path)),
                parameters=dict(parameters),
                timeout=_number(api.get("timeout", HTTP_TIMEOUT), "api.timeout"),
            ),
            server=ServerSettings(
                port=_integer(server.get("port", DEFAULT_SERVER_PORT), "server.port"),
                path=str(server.get("path", DEFAULT_SERVER_PATH)),
                update_interval=str(server.get("update_interval", DEFAULT_UPDATE_INTERVAL)),
            ),
            metrics=MetricsSettings(
                namespace=str(metrics.get("namespace") or ""),
                subsystem=str(metrics.get("subsystem") or ""),
                names=metrics.get("names"),
                labels=metrics.get("labels"),
            ),
            log_level=str(os.getenv("LOG_LEVEL") or logging_section.get("level") or "INFO"),
        )


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{key}' must be a mapping", context="Configuration")
    return value


def _integer(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"'{key}' must be an integer, got {value!r}", context="Configuration")


def _number(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"'{key}' must be a number, got {value!r}", context="Configuration")


def get_additional_config_from_env(
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[str, str, str]:
    """Return the (name, type, path) of the additional config file from the environment."""
    env = os.environ if environ is None else environ
    return (
        env.get(CONFIG_NAME_ENV_VAR, ""),
        env.get(CONFIG_TYPE_ENV_VAR, ""),
        env.get(CONFIG_PATH_ENV_VAR, ""),
    )


def read_config_file(path: Path, config_type: str) -> Dict[str, Any]:
    """
    Read one configuration file.

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigError: If the type is unsupported or the content cannot be parsed
    """
    config_type = config_type.lower()
    if config_type not in SUPPORTED_CONFIG_TYPES:
        raise ConfigError(f"Unsupported config type '{config_type}'", context="Configuration")

    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text) if config_type == "json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Unable to parse '{path}': {e}", context="Configuration") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"'{path}' must contain a mapping", context="Configuration")
    return data


def merge_config(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into ``base``. Mappings merge, everything else is replaced."""
    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = value
    return merged


def _default_config_file(config_dir: Optional[str | Path]) -> Path:
    filename = f"{DEFAULT_CONFIG_NAME}.{DEFAULT_CONFIG_TYPE}"
    if config_dir is not None:
        return Path(config_dir) / filename

    candidate = Path(DEFAULT_CONFIG_PATH) / filename
    if not candidate.exists():
        fallback = BUNDLED_CONFIG_PATH / filename
        if fallback.exists():
            return fallback
    return candidate


def load_settings(
    config_dir: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """
    Load the default config file and merge the additional one over it.

    A missing or unreadable default file is fatal. A missing additional file is
    logged and the defaults are used as they are.

    Raises:
        ConfigError: If the default configuration cannot be loaded
    """
    default_file = _default_config_file(config_dir)
    try:
        settings = read_config_file(default_file, DEFAULT_CONFIG_TYPE)
    except OSError as e:
        raise ConfigError(
            f"Default config not readable at '{default_file}': {e}", context="Configuration"
        ) from e

    name, config_type, path = get_additional_config_from_env(environ)
    if name and config_type and path:
        additional_file = Path(path) / f"{name}.{config_type}"
        try:
            additional = read_config_file(additional_file, config_type)
        except OSError:
            logger.warning(f"Additional config not found in '{path}/{name}.{config_type}'")
        else:
            settings = merge_config(settings, additional)
            logger.info(f"Merged additional config from {additional_file}")

    return settings


def load_config(
    config_dir: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ExporterConfig:
    """Load, merge and validate the application configuration."""
    return ExporterConfig.from_dict(load_settings(config_dir, environ))


def describe(config: ExporterConfig) -> List[str]:
    """Human readable summary lines of the effective configuration."""
    return [
        f"API: http://{config.api.host}:{config.api.port}{config.api.path}",
        f"Parameters: {', '.join(f'{k}={v}' for k, v in sorted(config.api.parameters.items()))}",
        f"Update interval: {config.server.update_interval}",
        f"Metrics endpoint: :{config.server.port}{config.server.path}",
    ]
