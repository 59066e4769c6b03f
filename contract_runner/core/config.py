import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

import yaml
from dotenv import load_dotenv

from contract_runner.core.exceptions import ConfigError
from contract_runner.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SETTINGS_PATH = "config/settings.yaml"
DEFAULT_TIMEOUT = 10.0

BASE_URL_ENV = "CONTRACT_BASE_URL"
TIMEOUT_ENV = "CONTRACT_TIMEOUT"


@dataclass(frozen=True)
class RunnerConfig:
    """Read-only settings shared by every case in a run"""
    base_url: str
    default_timeout: float = DEFAULT_TIMEOUT
    default_headers: Mapping[str, str] = field(default_factory=dict)
    variables: Mapping[str, Any] = field(default_factory=dict)
    stop_on_first_failure: bool = False
    parallel_workers: int = 0
    deadline: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "default_headers", MappingProxyType(dict(self.default_headers)))
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    @property
    def parallel(self) -> bool:
        return self.parallel_workers > 1

    def with_updates(self, **changes: Any) -> 'RunnerConfig':
        return configure(**{**self._as_kwargs(), **changes})

    def _as_kwargs(self) -> Dict[str, Any]:
        return {
            "base_url": self.base_url,
            "default_timeout": self.default_timeout,
            "default_headers": dict(self.default_headers),
            "variables": dict(self.variables),
            "stop_on_first_failure": self.stop_on_first_failure,
            "parallel_workers": self.parallel_workers,
            "deadline": self.deadline,
        }


def _validate_base_url(base_url: Any) -> str:
    if not isinstance(base_url, str) or not base_url.strip():
        raise ConfigError("No base URL specified")
    parsed = urlparse(base_url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Base URL is not an absolute http(s) URL: {base_url!r}")
    return base_url.strip()


def _positive_number(value: Any, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None
    if number <= 0:
        raise ConfigError(f"{name} must be positive, got {value!r}")
    return number


def configure(
    base_url: str,
    default_timeout: float = DEFAULT_TIMEOUT,
    default_headers: Optional[Mapping[str, str]] = None,
    variables: Optional[Mapping[str, Any]] = None,
    stop_on_first_failure: bool = False,
    parallel_workers: int = 0,
    deadline: Optional[float] = None,
) -> RunnerConfig:
    """
    Validate runner settings and build an immutable RunnerConfig.

    Args:
        base_url: Absolute http(s) URL every case path is appended to
        default_timeout: Per-request timeout in seconds
        default_headers: Headers sent with every request
        variables: Initial values for {{name}} placeholders
        stop_on_first_failure: Skip remaining cases after the first failure
        parallel_workers: Pool size for idempotent cases; 0 or 1 runs sequentially
        deadline: Run-level time budget in seconds

    Raises:
        ConfigError: if any setting is malformed
    """
    if isinstance(parallel_workers, bool) or not isinstance(parallel_workers, int) or parallel_workers < 0:
        raise ConfigError(f"parallel_workers must be a non-negative integer, got {parallel_workers!r}")

    return RunnerConfig(
        base_url=_validate_base_url(base_url),
        default_timeout=_positive_number(default_timeout, "default_timeout"),
        default_headers=default_headers or {},
        variables=variables or {},
        stop_on_first_failure=bool(stop_on_first_failure),
        parallel_workers=parallel_workers,
        deadline=None if deadline is None else _positive_number(deadline, "deadline"),
    )


def load_settings(config_path: str = DEFAULT_SETTINGS_PATH) -> Dict[str, Any]:
    """
    Load settings from a YAML file.

    A missing file yields empty settings; a file that does not parse is a
    ConfigError.
    """
    if not os.path.exists(config_path):
        logger.warning(f"Settings file not found: {config_path}, using defaults")
        return {}
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            settings = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error loading settings from {config_path}: {e}") from e
    if settings is None:
        return {}
    if not isinstance(settings, dict):
        raise ConfigError(f"Settings file {config_path} must contain a mapping")
    return settings


def config_from_settings(settings: Dict[str, Any], **overrides: Any) -> RunnerConfig:
    """
    Build a RunnerConfig from loaded settings.

    Precedence, lowest first: settings file, environment (.env included),
    keyword overrides. Overrides that are None are ignored.
    """
    load_dotenv()

    testing = settings.get('testing') or {}
    values: Dict[str, Any] = {
        "base_url": testing.get('base_url'),
        "default_timeout": testing.get('timeout', DEFAULT_TIMEOUT),
        "default_headers": testing.get('default_headers') or {},
        "variables": settings.get('api_environment') or {},
        "stop_on_first_failure": testing.get('stop_on_first_failure', False),
        "parallel_workers": testing.get('parallel_workers', 0),
        "deadline": testing.get('deadline'),
    }

    if os.getenv(BASE_URL_ENV):
        values["base_url"] = os.getenv(BASE_URL_ENV)
    if os.getenv(TIMEOUT_ENV):
        values["default_timeout"] = os.getenv(TIMEOUT_ENV)

    variables = dict(values["variables"])
    variables.update(overrides.pop("variables", None) or {})
    values["variables"] = variables

    values.update({key: value for key, value in overrides.items() if value is not None})

    config = configure(**values)
    logger.debug(f"Runner configured for {config.base_url} (timeout {config.default_timeout}s)")
    return config
