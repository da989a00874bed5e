"""
Alert configuration store contracts and file/in-memory implementations.

The engine only needs read access to the currently active configuration set:
- active alert configs
- patterns by id
- distribution lists by id

Writes (create/update/delete) belong to the operations console; the
in-memory store offers them for tests and development, including the rule
that a pattern cannot be deleted while a config references it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, TypeVar

import yaml

from alarm_service.domain.models import (
    AlertConfig,
    AlertPattern,
    DistributionList,
    DistributionListMember,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PatternInUseError(RuntimeError):
    """Raised when deleting a pattern that alert configs still reference."""

    def __init__(self, pattern_id: str):
        super().__init__(
            f"Cannot delete pattern {pattern_id!r}: it is used by one or more alert configurations"
        )
        self.pattern_id = pattern_id


class ConfigStore(Protocol):
    """
    Read interface of the configuration store used by the engine.

    Methods
    -------
    list_active_configs()
        Alert configs with ``is_active`` set.
    get_pattern(pattern_id)
        Pattern or None when not found.
    get_distribution_list(list_id)
        Distribution list or None when not found.
    """

    def list_active_configs(self) -> List[AlertConfig]:
        ...

    def get_pattern(self, pattern_id: str) -> Optional[AlertPattern]:
        ...

    def get_distribution_list(self, list_id: str) -> Optional[DistributionList]:
        ...


# -------------------------
# Mapping -> model parsers (shared by YAML and SQLite stores)
# -------------------------
def _first(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in raw and raw[k] is not None:
            return raw[k]
    return default


def _required(raw: Mapping[str, Any], *keys: str) -> Any:
    value = _first(raw, *keys)
    if value is None:
        raise KeyError(keys[0])
    return value


def pattern_from_mapping(raw: Mapping[str, Any]) -> AlertPattern:
    """
    Build an `AlertPattern` from a mapping.

    Both snake_case keys (YAML, database columns) and the console's camelCase
    keys are accepted.
    """
    return AlertPattern(
        id=str(raw["id"]),
        name=str(_first(raw, "name", default="")),
        description=str(_first(raw, "description", default="")),
        pv_suffix=str(_required(raw, "pv_suffix", "pvSuffix")),
        hh_limit_suffix=str(_first(raw, "hh_limit_suffix", "hhLimitSuffix", default="")),
        h_limit_suffix=str(_first(raw, "h_limit_suffix", "hLimitSuffix", default="")),
        l_limit_suffix=str(_first(raw, "l_limit_suffix", "lLimitSuffix", default="")),
        ll_limit_suffix=str(_first(raw, "ll_limit_suffix", "llLimitSuffix", default="")),
        hh_event_suffix=str(_required(raw, "hh_event_suffix", "hhEventSuffix")),
        h_event_suffix=str(_required(raw, "h_event_suffix", "hEventSuffix")),
        l_event_suffix=str(_required(raw, "l_event_suffix", "lEventSuffix")),
        ll_event_suffix=str(_required(raw, "ll_event_suffix", "llEventSuffix")),
    )


def config_from_mapping(raw: Mapping[str, Any]) -> AlertConfig:
    """Build an `AlertConfig` from a mapping (snake_case or camelCase keys)."""
    return AlertConfig(
        id=str(raw["id"]),
        name=str(_first(raw, "name", default="")),
        description=str(_first(raw, "description", default="")),
        tag_base=str(_required(raw, "tag_base", "tagBase")),
        pattern_id=str(_first(raw, "pattern_id", "patternId", default="")),
        alert_list_id=str(_first(raw, "alert_list_id", "alertListId", default="")),
        monitor_hh=bool(_first(raw, "monitor_hh", "monitorHH", default=False)),
        monitor_h=bool(_first(raw, "monitor_h", "monitorH", default=False)),
        monitor_l=bool(_first(raw, "monitor_l", "monitorL", default=False)),
        monitor_ll=bool(_first(raw, "monitor_ll", "monitorLL", default=False)),
        is_active=bool(_first(raw, "is_active", "isActive", default=True)),
    )


def distribution_list_from_mapping(raw: Mapping[str, Any]) -> DistributionList:
    """Build a `DistributionList` from a mapping with a ``members`` sequence."""
    members = tuple(
        DistributionListMember(
            name=str(m.get("name", "")),
            phone=m.get("phone"),
            email=m.get("email"),
        )
        for m in (raw.get("members") or [])
    )
    return DistributionList(
        id=str(raw["id"]),
        name=str(_first(raw, "name", default="")),
        description=str(_first(raw, "description", default="")),
        members=members,
    )


@dataclass
class InMemoryConfigStore:
    """
    Dict-backed configuration store.

    Concurrency Model
    -----------------
    All reads/writes are guarded by a single re-entrant lock so the console
    side may edit while the engine reads. The engine sees whatever is stored
    at the moment of each call; edits made during a cycle show up in the
    next one.
    """

    patterns: Dict[str, AlertPattern] = field(default_factory=dict)
    configs: Dict[str, AlertConfig] = field(default_factory=dict)
    distribution_lists: Dict[str, DistributionList] = field(default_factory=dict)

    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    # --- Read API (engine) ---
    def list_active_configs(self) -> List[AlertConfig]:
        with self._lock:
            return [c for c in self.configs.values() if c.is_active]

    def get_pattern(self, pattern_id: str) -> Optional[AlertPattern]:
        with self._lock:
            return self.patterns.get(pattern_id)

    def get_distribution_list(self, list_id: str) -> Optional[DistributionList]:
        with self._lock:
            return self.distribution_lists.get(list_id)

    # --- Write API (console / tests) ---
    def put_pattern(self, pattern: AlertPattern) -> None:
        with self._lock:
            self.patterns[pattern.id] = pattern

    def put_config(self, config: AlertConfig) -> None:
        with self._lock:
            self.configs[config.id] = config

    def put_distribution_list(self, dist: DistributionList) -> None:
        with self._lock:
            self.distribution_lists[dist.id] = dist

    def delete_config(self, config_id: str) -> bool:
        with self._lock:
            return self.configs.pop(config_id, None) is not None

    def delete_pattern(self, pattern_id: str) -> bool:
        """
        Delete a pattern that no config references.

        Raises
        ------
        PatternInUseError
            If any config (active or not) references the pattern.
        """
        with self._lock:
            if any(c.pattern_id == pattern_id for c in self.configs.values()):
                raise PatternInUseError(pattern_id)
            return self.patterns.pop(pattern_id, None) is not None

    def replace_all(
        self,
        patterns: List[AlertPattern],
        configs: List[AlertConfig],
        distribution_lists: List[DistributionList],
    ) -> None:
        """Swap the whole content atomically (used by file-backed reloads)."""
        with self._lock:
            self.patterns = {p.id: p for p in patterns}
            self.configs = {c.id: c for c in configs}
            self.distribution_lists = {d.id: d for d in distribution_lists}


class YamlConfigStore:
    """
    Configuration store backed by a YAML document.

    Expected layout::

        patterns:
          - {id: ..., pv_suffix: PV, hh_event_suffix: HH, ...}
        distribution_lists:
          - {id: ..., name: ..., members: [{name: ..., phone: ...}]}
        alerts:
          - {id: ..., tag_base: ..., pattern_id: ..., alert_list_id: ..., monitor_h: true}

    The file is re-read when its modification time changes, checked each time
    the active config list is requested (once per cycle).

    Parameters
    ----------
    path
        Path of the YAML document.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path).expanduser().resolve()
        self._store = InMemoryConfigStore()
        self._mtime: Optional[float] = None

    @property
    def path(self) -> Path:
        return self._path

    def _parse_section(self, raw: Dict[str, Any], section: str, parser: Callable[[Mapping[str, Any]], T]) -> List[T]:
        items: List[T] = []
        for i, entry in enumerate(raw.get(section) or []):
            try:
                items.append(parser(entry))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                ident = entry.get("id") if isinstance(entry, dict) else None
                logger.warning(
                    "%s: skipping %s entry #%d (id=%r): invalid or missing key %s",
                    self._path, section, i, ident, e,
                )
        return items

    def reload_if_changed(self) -> bool:
        """
        Reload the document if it changed on disk.

        A malformed entry is skipped with a warning; the rest of the document
        is still loaded. A document that cannot be read as a whole (YAML
        syntax error, non-mapping root) keeps the previously loaded content
        in service.

        Returns
        -------
        bool
            True if a reload happened.

        Raises
        ------
        FileNotFoundError
            If the document does not exist.
        ValueError
            If the first load finds an unreadable document.
        """
        mtime = self._path.stat().st_mtime
        if self._mtime is not None and mtime == self._mtime:
            return False

        try:
            with self._path.open("r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
            if not isinstance(raw, dict):
                raise ValueError(f"{self._path} must contain a YAML mapping at the root")
        except (yaml.YAMLError, ValueError) as e:
            if self._mtime is None:
                raise ValueError(f"Cannot load alert configuration: {e}") from e
            logger.error("Cannot reload %s, keeping previous configuration: %s", self._path, e)
            self._mtime = mtime
            return False

        patterns = self._parse_section(raw, "patterns", pattern_from_mapping)
        dists = self._parse_section(raw, "distribution_lists", distribution_list_from_mapping)
        configs = self._parse_section(raw, "alerts", config_from_mapping)

        self._store.replace_all(patterns, configs, dists)
        self._mtime = mtime
        logger.info(
            "Loaded alert configuration from %s (%d alerts, %d patterns, %d lists)",
            self._path, len(configs), len(patterns), len(dists),
        )
        return True

    def list_active_configs(self) -> List[AlertConfig]:
        self.reload_if_changed()
        return self._store.list_active_configs()

    def get_pattern(self, pattern_id: str) -> Optional[AlertPattern]:
        return self._store.get_pattern(pattern_id)

    def get_distribution_list(self, list_id: str) -> Optional[DistributionList]:
        return self._store.get_distribution_list(list_id)
