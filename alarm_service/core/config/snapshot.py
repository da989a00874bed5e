from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from alarm_service.core.alarm.node_resolver import DEFAULT_SEPARATOR, resolve_nodes
from alarm_service.core.config.config_store import ConfigStore
from alarm_service.domain.models import AlertConfig, AlertPattern, ResolvedNodeSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigSnapshot:
    """
    Point-in-time view of the active configuration for one cycle.

    Parameters
    ----------
    configs
        Active alert configs as returned by the store.
    patterns
        Pattern lookup restricted to the patterns those configs reference.
    node_sets
        Resolved addresses, one entry per config whose pattern was found.
    skipped
        Configs left out of this cycle because their pattern is missing.
    """

    configs: List[AlertConfig] = field(default_factory=list)
    patterns: Dict[str, AlertPattern] = field(default_factory=dict)
    node_sets: List[ResolvedNodeSet] = field(default_factory=list)
    skipped: List[AlertConfig] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.configs


def load_snapshot(store: ConfigStore, separator: str = DEFAULT_SEPARATOR) -> ConfigSnapshot:
    """
    Load the active configs and resolve their addresses.

    Each referenced pattern is fetched once. A config whose pattern cannot be
    found (including one deleted since the previous cycle) is skipped with a
    warning; the rest of the cycle proceeds.

    Parameters
    ----------
    store
        Configuration store to read from.
    separator
        Address separator passed to the resolver.

    Returns
    -------
    ConfigSnapshot
        Empty snapshot when there are no active configs.
    """
    configs = store.list_active_configs()
    if not configs:
        return ConfigSnapshot()

    patterns: Dict[str, AlertPattern] = {}
    for pattern_id in dict.fromkeys(c.pattern_id for c in configs):
        if not pattern_id:
            continue
        pattern = store.get_pattern(pattern_id)
        if pattern is not None:
            patterns[pattern_id] = pattern

    node_sets: List[ResolvedNodeSet] = []
    skipped: List[AlertConfig] = []
    for config in configs:
        pattern = patterns.get(config.pattern_id)
        if pattern is None:
            logger.warning("Pattern %r not found for alert config %r; skipping", config.pattern_id, config.id)
            skipped.append(config)
            continue
        node_sets.append(resolve_nodes(config, pattern, separator))

    return ConfigSnapshot(configs=configs, patterns=patterns, node_sets=node_sets, skipped=skipped)
