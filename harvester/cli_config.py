"""Runtime configuration assembled from CLI arguments, environment and file.

Precedence, highest first: command line, environment variable, config file,
built-in default.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

import yaml

from harvester.constants import Constants
from harvester.errors import ConfigError

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}

# Config field -> environment variable.
ENV_BINDINGS = {
    "input": "EXTENSIONS_FILE",
    "destination": "OUTPUT_DIR",
    "no_cache": "NO_CACHE",
    "proxy": "PROXY",
    "download": "DOWNLOAD",
    "arch": "ARCH",
    "engine_version": "ENGINE_VERSION",
    "allow_pre_release": "ALLOW_PRE_RELEASE",
    "serial": "SERIAL_DOWNLOAD",
    "max_concurrency": "MAX_CONCURRENT_DOWNLOADS",
    "timeout": "REQUEST_TIMEOUT",
    "verbose": "VERBOSE",
    "log_level": Constants.ENV_LOG_LEVEL,
    "dump_responses": "DUMP_RESPONSES_DIR",
    "error_on_failures": "ERROR_ON_FAILURES",
}


@dataclass
class HarvestConfig:
    """Plain configuration record consumed by the pipeline."""

    input: str = f"./{Constants.DEFAULT_FILE_NAME}"
    destination: str = f"./{Constants.DEFAULT_PATH}"
    no_cache: bool = False
    proxy: Optional[str] = None
    download: Optional[str] = None
    arch: Optional[str] = None
    engine_version: Optional[str] = None
    allow_pre_release: bool = False
    serial: bool = False
    max_concurrency: int = Constants.MAX_CONCURRENT_DOWNLOADS
    timeout: float = float(Constants.REQUEST_TIMEOUT)
    verbose: bool = False
    log_level: Optional[str] = None
    log_file: Optional[str] = None
    dump_responses: Optional[str] = None
    error_on_failures: bool = False

    @property
    def concurrency(self) -> int:
        """Width of the download window for one platform category."""
        if self.serial:
            return 1
        return max(1, self.max_concurrency)

    @property
    def effective_log_level(self) -> str:
        if self.log_level:
            return self.log_level.upper()
        return "DEBUG" if self.verbose else "INFO"

    @classmethod
    def from_args(
        cls,
        args: Any,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "HarvestConfig":
        """Create config from parsed CLI arguments, environment and config file.

        Args:
            args: Parsed CLI arguments namespace.
            environ: Environment mapping; defaults to ``os.environ``.

        Raises:
            ConfigError: if the config file or an environment value is invalid.
        """
        env = os.environ if environ is None else environ
        config_path = getattr(args, "config", None) or env.get(Constants.ENV_CONFIG)
        file_values = load_config_file(config_path) if config_path else {}

        values: Dict[str, Any] = {}
        for f in fields(cls):
            cli_value = getattr(args, f.name, None)
            if cli_value is not None:
                values[f.name] = cli_value
                continue
            env_name = ENV_BINDINGS.get(f.name)
            if env_name and env.get(env_name) is not None:
                values[f.name] = _coerce(f.name, env[env_name], f.default)
                continue
            if f.name in file_values and file_values[f.name] is not None:
                values[f.name] = _coerce(f.name, file_values[f.name], f.default)
        return cls(**values)


def _coerce(name: str, raw: Any, default: Any) -> Any:
    """Convert env/file values to the type of the field's default."""
    if isinstance(default, bool):
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ConfigError(f"Invalid boolean for {name}: {raw!r}")
    if isinstance(default, (int, float)):
        try:
            return type(default)(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid number for {name}: {raw!r}") from exc
    return str(raw)


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load settings from a YAML or JSON file.

    Settings may sit at the top level or under a ``harvester`` section. Keys
    may use dashes or underscores.

    Raises:
        ConfigError: if the file is missing or cannot be parsed.
    """
    if not os.path.isfile(config_path):
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.lower().endswith(".json"):
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    section = data.get("harvester", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'harvester' section in {config_path} must be a mapping")

    known = {f.name for f in fields(HarvestConfig)}
    result: Dict[str, Any] = {}
    for key, value in section.items():
        name = str(key).replace("-", "_")
        if name not in known:
            logger.warning("Ignoring unknown config key '%s' in %s", key, config_path)
            continue
        result[name] = value
    logger.debug("Loaded %d setting(s) from %s", len(result), config_path)
    return result
