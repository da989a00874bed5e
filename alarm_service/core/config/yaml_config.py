from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from alarm_service.core.alarm.node_resolver import DEFAULT_SEPARATOR
from alarm_service.runtime.cycle_scheduler import DEFAULT_INTERVAL_MS

CONFIG_STORE_KINDS = ("yaml", "sqlite")
DATA_SOURCE_KINDS = ("http", "simulated")


@dataclass(frozen=True)
class EngineConfig:
    """Scheduler and evaluation settings."""
    interval_ms: int = DEFAULT_INTERVAL_MS
    address_separator: str = DEFAULT_SEPARATOR
    prime_on_first_cycle: bool = False


@dataclass(frozen=True)
class ConfigStoreConfig:
    """Where alert definitions, patterns and distribution lists come from."""
    kind: str
    path: Path


@dataclass(frozen=True)
class DataSourceConfigData:
    """Process-data source settings."""
    kind: str = "http"
    url: Optional[str] = None
    timeout_s: float = 3.0
    verify_tls: bool = True
    auth_header: Optional[str] = None


@dataclass(frozen=True)
class SmsConfigData:
    """SMS notifications API settings (URL + token)."""
    url: str
    token: Optional[str] = None
    timeout_s: float = 10.0
    verify_tls: bool = True


@dataclass(frozen=True)
class NotificationConfigData:
    """Notification worker settings."""
    max_queue: int = 2000


@dataclass(frozen=True)
class AppConfig:
    """
    Root application configuration loaded from YAML.

    This is the single source of truth for runtime-tunable values so the
    service can be configured without rebuilding.
    """
    engine: EngineConfig
    config_store: ConfigStoreConfig
    data_source: DataSourceConfigData
    sms: SmsConfigData
    notification: NotificationConfigData


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("config.yaml must contain a YAML mapping at the root")
    return data


def _resolve_default_config_path() -> Path:
    """
    Resolve config.yaml location.

    Priority:
    1) ALARM_CONFIG env var if provided
    2) config.yaml next to the executable
    3) ./config.yaml in current working directory
    """
    env = os.getenv("ALARM_CONFIG")
    if env:
        return Path(env).expanduser().resolve()

    exe_dir = Path(sys.executable).resolve().parent
    candidate = exe_dir / "config.yaml"
    if candidate.exists():
        return candidate

    return Path("config.yaml").resolve()


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{name}' must be a mapping")
    return value


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """
    Load application configuration from YAML and convert into typed config objects.

    A ``.env`` file next to the config file is loaded first (existing
    environment variables are not overridden). ``PROCESS_DATA_URL``,
    ``NOTIFICATIONS_API_URL`` and ``SMS_API_TOKEN`` fill in values the YAML
    leaves out.

    Parameters
    ----------
    path
        Explicit path to config.yaml. If None, uses default resolution.

    Returns
    -------
    AppConfig
        Parsed and validated configuration.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If required fields are missing or invalid.
    """
    cfg_path = Path(path).expanduser().resolve() if path else _resolve_default_config_path()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    load_dotenv(cfg_path.parent / ".env")
    raw = _read_yaml(cfg_path)

    # ---- engine ----
    e = _section(raw, "engine")
    engine = EngineConfig(
        interval_ms=int(e.get("interval_ms", DEFAULT_INTERVAL_MS)),
        address_separator=str(e.get("address_separator", DEFAULT_SEPARATOR)),
        prime_on_first_cycle=bool(e.get("prime_on_first_cycle", False)),
    )
    if engine.interval_ms <= 0:
        raise ValueError("engine.interval_ms must be positive")

    # ---- config store ----
    cs = _section(raw, "config_store")
    kind = str(cs.get("kind", "yaml"))
    if kind not in CONFIG_STORE_KINDS:
        raise ValueError(f"config_store.kind must be one of {CONFIG_STORE_KINDS}, got {kind!r}")
    if "path" not in cs:
        raise ValueError("config_store.path is required")
    store_path = Path(str(cs["path"])).expanduser()
    if not store_path.is_absolute():
        store_path = cfg_path.parent / store_path
    config_store = ConfigStoreConfig(kind=kind, path=store_path.resolve())

    # ---- data source ----
    d = _section(raw, "data_source")
    ds_kind = str(d.get("kind", "http"))
    if ds_kind not in DATA_SOURCE_KINDS:
        raise ValueError(f"data_source.kind must be one of {DATA_SOURCE_KINDS}, got {ds_kind!r}")
    ds_url = d.get("url") or os.getenv("PROCESS_DATA_URL")
    if ds_kind == "http" and not ds_url:
        raise ValueError("data_source.url (or PROCESS_DATA_URL) is required for kind 'http'")
    data_source = DataSourceConfigData(
        kind=ds_kind,
        url=str(ds_url) if ds_url else None,
        timeout_s=float(d.get("timeout_s", 3.0)),
        verify_tls=bool(d.get("verify_tls", True)),
        auth_header=d.get("auth_header"),
    )

    # ---- sms ----
    s = _section(raw, "sms")
    sms_url = s.get("url") or os.getenv("NOTIFICATIONS_API_URL")
    if not sms_url:
        raise ValueError("sms.url (or NOTIFICATIONS_API_URL) is required")
    sms = SmsConfigData(
        url=str(sms_url),
        token=s.get("token") or os.getenv("SMS_API_TOKEN"),
        timeout_s=float(s.get("timeout_s", 10.0)),
        verify_tls=bool(s.get("verify_tls", True)),
    )

    # ---- notification ----
    n = _section(raw, "notification")
    notification = NotificationConfigData(max_queue=int(n.get("max_queue", 2000)))

    return AppConfig(
        engine=engine,
        config_store=config_store,
        data_source=data_source,
        sms=sms,
        notification=notification,
    )
