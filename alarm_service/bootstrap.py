from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from alarm_service.core.alarm.alarm_engine import AlarmEngine
from alarm_service.core.config.config_store import ConfigStore, YamlConfigStore
from alarm_service.core.config.sqlite_store import SqliteConfigStore
from alarm_service.core.config.yaml_config import AppConfig, load_app_config
from alarm_service.core.state.transition_store import TransitionStateStore
from alarm_service.notification.dispatcher import NotificationDispatcher
from alarm_service.notification.notification_thread import NotificationThreadConfig, NotificationWorkerThread
from alarm_service.notification.sms_notifier import SmsGatewayConfig, SmsGatewayNotifier
from alarm_service.runtime.cycle_scheduler import CycleScheduler
from alarm_service.services.controller import AlarmCycle
from alarm_service.transport.process_data import (
    HttpDataSourceConfig,
    HttpProcessDataSource,
    ProcessDataSource,
    SimulatedProcessDataSource,
)


@dataclass(frozen=True)
class AppWiring:
    """Everything the entry point needs to run the engine."""
    config: AppConfig
    store: ConfigStore
    transitions: TransitionStateStore
    notifier: NotificationWorkerThread
    cycle: AlarmCycle
    scheduler: CycleScheduler


def build_config_store(cfg: AppConfig) -> ConfigStore:
    if cfg.config_store.kind == "sqlite":
        store = SqliteConfigStore(cfg.config_store.path)
        store.ensure_schema()
        return store
    return YamlConfigStore(cfg.config_store.path)


def build_data_source(cfg: AppConfig) -> ProcessDataSource:
    ds = cfg.data_source
    if ds.kind == "simulated":
        return SimulatedProcessDataSource()

    auth_header = ds.auth_header
    if auth_header and not auth_header.startswith("Bearer "):
        auth_header = f"Bearer {auth_header}"

    return HttpProcessDataSource(
        HttpDataSourceConfig(
            url=str(ds.url),
            timeout_s=ds.timeout_s,
            verify_tls=ds.verify_tls,
            auth_header=auth_header,
        )
    )


def build_notifier(cfg: AppConfig) -> NotificationWorkerThread:
    return NotificationWorkerThread(
        notifiers=[
            SmsGatewayNotifier(
                SmsGatewayConfig(
                    url=cfg.sms.url,
                    token=cfg.sms.token,
                    timeout_s=cfg.sms.timeout_s,
                    verify_tls=cfg.sms.verify_tls,
                )
            )
        ],
        cfg=NotificationThreadConfig(max_queue=cfg.notification.max_queue),
    )


def build_app_system(
    config_path: Optional[str] = None,
    interval_ms: Optional[int] = None,
    source: Optional[ProcessDataSource] = None,
) -> AppWiring:
    """
    Wire the engine from configuration.

    The notification thread is started here; the scheduler is left for the
    caller to start.
    """
    cfg = load_app_config(config_path)

    # --- CONFIG STORE ---
    store = build_config_store(cfg)

    # --- PROCESS DATA ---
    data_source = source or build_data_source(cfg)

    # --- NOTIFICATIONS ---
    notifier = build_notifier(cfg)
    notifier.start()

    # --- ENGINE ---
    transitions = TransitionStateStore()
    cycle = AlarmCycle(
        store=store,
        source=data_source,
        engine=AlarmEngine(transitions=transitions),
        dispatcher=NotificationDispatcher(store=store, sink=notifier),
        separator=cfg.engine.address_separator,
        prime_on_first_cycle=cfg.engine.prime_on_first_cycle,
    )

    # --- SCHEDULER ---
    scheduler = CycleScheduler(cycle, interval_ms=interval_ms or cfg.engine.interval_ms)

    return AppWiring(
        config=cfg,
        store=store,
        transitions=transitions,
        notifier=notifier,
        cycle=cycle,
        scheduler=scheduler,
    )
