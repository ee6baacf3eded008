"""Configuration loading from YAML files with environment variable support.

Settings are resolved in layers, later layers winning:

1. built-in defaults
2. the ``proxy_settings`` section of the YAML config file
3. ``OPENAI_PROXY_*`` environment variables
4. explicit overrides (command-line flags)
"""

import logging
import os
import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import dotenv_values

from .backend import BACKEND_TYPES, DEFAULT_BACKEND_URL
from .core.exceptions import ConfigurationError

logger = logging.getLogger("ocproxy")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 4040
DEFAULT_TIMEOUT_MS = 60000
DEFAULT_BACKEND = "opencode"

# Default path to the config file (relative to project root)
DEFAULT_CONFIG_PATH = "configs/config_default.yaml"
CONFIG_PATH_ENV = "OPENAI_PROXY_CONFIG"

# Environment variables mapped onto settings fields
ENV_OVERRIDES = {
    "host": "OPENAI_PROXY_HOST",
    "port": "OPENAI_PROXY_PORT",
    "api_key": "OPENAI_PROXY_API_KEY",
    "timeout_ms": "OPENAI_PROXY_TIMEOUT",
    "backend": "OPENAI_PROXY_BACKEND",
    "backend_url": "OPENAI_PROXY_BACKEND_URL",
    "log_level": "OPENAI_PROXY_LOG_LEVEL",
}

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


@dataclass(frozen=True)
class ProxySettings:
    """Runtime settings of the proxy."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    api_key: Optional[str] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    backend: str = DEFAULT_BACKEND
    backend_url: str = DEFAULT_BACKEND_URL
    log_level: str = "INFO"

    @property
    def auth_enabled(self) -> bool:
        return bool(self.api_key)

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"


def resolve_config_path(path: str) -> Path:
    """Resolve config path relative to project root if needed."""
    if Path(path).is_absolute():
        return Path(path)
    project_root = Path(__file__).parent.parent
    return project_root / path


def resolve_env_path(config_path: Path) -> Path:
    """Resolve the .env file that accompanies a config file."""
    stem = config_path.stem
    if stem.startswith("config_"):
        suffix = stem[len("config_"):]
        return config_path.with_name(f".env_{suffix}")
    return config_path.with_name(".env")


def load_env_values(env_path: Path) -> dict[str, str]:
    """Load environment values from a .env file without mutating os.environ."""
    if not env_path.exists():
        return {}
    raw_values = dotenv_values(env_path)
    return {key: value for key, value in raw_values.items() if value is not None}


def load_config(path: Optional[str] = None, substitute_env: bool = True) -> dict:
    """Load configuration from a YAML file.

    Args:
        path: Path to the config file. Defaults to OPENAI_PROXY_CONFIG, or
              configs/config_default.yaml in the project root. Only an
              explicitly named file is required to exist.
        substitute_env: Whether to substitute environment variables in the config.

    Returns:
        Parsed configuration dictionary (empty when no file is found).
    """
    explicit = path is not None or bool(os.getenv(CONFIG_PATH_ENV))
    if path is None:
        path = os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH

    config_path = resolve_config_path(path)

    if not config_path.exists():
        if explicit:
            logger.error(f"Config file not found: {config_path}")
            raise ConfigurationError(f"Config file not found: {config_path}")
        logger.debug(f"No config file at {config_path}, using defaults")
        return {}

    logger.info(f"Loading configuration from {config_path}")

    env_values: dict[str, str] = {}
    if substitute_env:
        env_file = resolve_env_path(config_path)
        if env_file.exists():
            logger.info(f"Loading environment variables from {env_file}")
            env_values = load_env_values(env_file)

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    if substitute_env:
        data = _substitute_env_vars(data, env_values)

    logger.info(f"Configuration loaded successfully from {config_path}")
    return data


def _substitute_env_vars(
    obj: Any, env_values: Mapping[str, str] | None = None
) -> Any:
    """Recursively substitute environment variables in configuration values.

    Supports two formats:
    - ${VAR_NAME}: Braced format
    - $VAR_NAME: Simple format

    Unset variables are left as literal placeholders.
    """
    env_values = env_values or {}

    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v, env_values) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_substitute_env_vars(item, env_values) for item in obj]
    if isinstance(obj, str):

        def replace_var(match):
            var_name = match.group(1) or match.group(2)
            value = env_values.get(var_name)
            if value is None:
                value = os.getenv(var_name)
            if value is None:
                logger.warning(
                    f"CONFIG ERROR: Environment variable '${var_name}' is not set! "
                    f"Check your .env file or export it in your shell. "
                    f"The literal placeholder will be used."
                )
                return match.group(0)
            return value

        return _ENV_PATTERN.sub(replace_var, obj)
    return obj


def _coerce_int(name: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid value for {name}: {value!r}") from exc
    if number <= 0:
        raise ConfigurationError(f"{name} must be positive, got {number}")
    return number


def _coerce(name: str, value: Any) -> Any:
    if name in ("port", "timeout_ms"):
        return _coerce_int(name, value)
    if name == "api_key":
        return str(value) if value else None
    return str(value)


def build_settings(
    config: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> ProxySettings:
    """Resolve ProxySettings from config data, environment and overrides.

    Args:
        config: Parsed config file (see load_config); values are read from
            its ``proxy_settings`` section.
        environ: Environment mapping, defaults to os.environ.
        overrides: Explicit values (None entries are ignored).

    Raises:
        ConfigurationError: If a value cannot be coerced.
    """
    environ = os.environ if environ is None else environ
    known = {f.name for f in fields(ProxySettings)}
    values: dict[str, Any] = {}

    section = (config or {}).get("proxy_settings") or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError("proxy_settings must be a mapping")
    for key, value in section.items():
        if key in known and value is not None:
            values[key] = value
        elif key not in known:
            logger.warning(f"Ignoring unknown proxy setting: {key}")

    for name, env_name in ENV_OVERRIDES.items():
        env_value = environ.get(env_name)
        if env_value:
            values[name] = env_value

    for key, value in (overrides or {}).items():
        if key in known and value is not None:
            values[key] = value

    settings = replace(ProxySettings(), **{k: _coerce(k, v) for k, v in values.items()})
    if settings.backend not in BACKEND_TYPES:
        raise ConfigurationError(f"Unknown backend type: {settings.backend}")
    if not isinstance(logging.getLevelName(settings.log_level.upper()), int):
        raise ConfigurationError(f"Unknown log level: {settings.log_level}")
    return settings


def load_settings(
    path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> ProxySettings:
    """Load the config file and resolve settings in one step."""
    return build_settings(load_config(path), overrides=overrides)
