"""Data client configuration.

Settings are read from environment variables, with an optional .env file
loaded first (python-dotenv). Environment variables already set win over
values in the file.

Variables:
- CRM_SYNC_STORE_PATH: Local SQLite cache file (default: "syncstore.db")
- CRM_SYNC_CONNECTOR: Remote connector type ("mobile_service" or "memory")
- CRM_SYNC_REMOTE_URL: Base URL of the mobile service
- CRM_SYNC_API_VERSION: ZUMO-API-VERSION header value (default: "2.0.0")
- CRM_SYNC_REQUEST_TIMEOUT: HTTP request timeout in seconds
- CRM_SYNC_PAGE_SIZE: Rows requested per page during a pull
- CRM_SYNC_MAX_RETRIES: Retries for 429/5xx/network failures
- CRM_SYNC_OPERATION_TIMEOUT: Per-operation timeout in seconds (unset = none)
- CRM_SYNC_MAX_CATEGORY_DEPTH: Recursion bound for catalog hierarchy walks
- CRM_SYNC_PROPAGATE_CONSISTENCY_ERRORS: Raise catalog consistency errors (default: true)
- CRM_SYNC_METRICS_DB: SQLite file for telemetry snapshots (unset = in-memory only)
- CRM_SYNC_LOG_LEVEL: Logging level name (default: "INFO")
- CRM_SYNC_LOG_JSON: Emit JSON logs (default: false)
- CRM_SYNC_FIXTURE: JSON fixture file for the memory connector
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv


DEFAULT_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def _get_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass
class SyncClientConfig:
    """Configuration for a DataClient and its collaborators."""
    store_path: str = "syncstore.db"

    # Remote
    connector_type: str = "mobile_service"
    remote_url: Optional[str] = None
    api_version: str = "2.0.0"
    request_timeout_seconds: int = 30
    page_size: int = 50
    max_retries: int = 3
    fixture_path: Optional[str] = None

    # Behavior
    operation_timeout_seconds: Optional[float] = None
    max_category_depth: int = 32
    propagate_consistency_errors: bool = True

    # Observability
    metrics_db_path: Optional[str] = None
    log_level: str = "INFO"
    json_logs: bool = False

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "SyncClientConfig":
        """Build a configuration from the environment.

        Args:
            env_file: .env file to load first (default: .env at the project root)

        Raises:
            ValueError: If a numeric or boolean variable cannot be parsed
        """
        env_path = Path(env_file) if env_file else DEFAULT_ENV_PATH
        if env_path.exists():
            load_dotenv(env_path)

        defaults = cls()
        return cls(
            store_path=os.getenv("CRM_SYNC_STORE_PATH", defaults.store_path),
            connector_type=os.getenv("CRM_SYNC_CONNECTOR", defaults.connector_type),
            remote_url=os.getenv("CRM_SYNC_REMOTE_URL") or None,
            api_version=os.getenv("CRM_SYNC_API_VERSION", defaults.api_version),
            request_timeout_seconds=_get_int("CRM_SYNC_REQUEST_TIMEOUT", defaults.request_timeout_seconds),
            page_size=_get_int("CRM_SYNC_PAGE_SIZE", defaults.page_size),
            max_retries=_get_int("CRM_SYNC_MAX_RETRIES", defaults.max_retries),
            fixture_path=os.getenv("CRM_SYNC_FIXTURE") or None,
            operation_timeout_seconds=_get_float("CRM_SYNC_OPERATION_TIMEOUT", None),
            max_category_depth=_get_int("CRM_SYNC_MAX_CATEGORY_DEPTH", defaults.max_category_depth),
            propagate_consistency_errors=_get_bool(
                "CRM_SYNC_PROPAGATE_CONSISTENCY_ERRORS", defaults.propagate_consistency_errors
            ),
            metrics_db_path=os.getenv("CRM_SYNC_METRICS_DB") or None,
            log_level=os.getenv("CRM_SYNC_LOG_LEVEL", defaults.log_level).upper(),
            json_logs=_get_bool("CRM_SYNC_LOG_JSON", defaults.json_logs),
        )
