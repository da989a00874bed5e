"""
Node address resolution.

Expands an `AlertConfig` and its `AlertPattern` into the fully-qualified
process-data addresses one cycle needs, and merges the addresses of all
configs into a single deduplicated read set.
"""

from __future__ import annotations

from typing import Iterable, List

from alarm_service.domain.models import AlertConfig, AlertPattern, ResolvedNodeSet

DEFAULT_SEPARATOR = "."


def full_address(tag_base: str, suffix: str, separator: str = DEFAULT_SEPARATOR) -> str:
    """
    Join a base tag and a pattern suffix.

    The separator is omitted when the suffix already starts with it, so
    ``("Line1.Temp", ".PV")`` and ``("Line1.Temp", "PV")`` both give
    ``"Line1.Temp.PV"``.
    """
    if separator and suffix.startswith(separator):
        return f"{tag_base}{suffix}"
    return f"{tag_base}{separator}{suffix}"


def resolve_nodes(
    config: AlertConfig,
    pattern: AlertPattern,
    separator: str = DEFAULT_SEPARATOR,
) -> ResolvedNodeSet:
    """
    Build the address set of one config.

    Parameters
    ----------
    config
        Alert config to expand.
    pattern
        Pattern referenced by ``config``.
    separator
        Address separator character.

    Returns
    -------
    ResolvedNodeSet
        PV address plus one event-flag address per monitored limit class.
    """
    return ResolvedNodeSet(
        config=config,
        pv_address=full_address(config.tag_base, pattern.pv_suffix, separator),
        event_addresses={
            limit: full_address(config.tag_base, pattern.event_suffix(limit), separator)
            for limit in config.monitored_limits()
        },
    )


def unique_read_addresses(node_sets: Iterable[ResolvedNodeSet]) -> List[str]:
    """
    Deduplicated union of the addresses of all node sets.

    First-seen order is kept so the batch request is deterministic.
    """
    return list(dict.fromkeys(addr for ns in node_sets for addr in ns.read_addresses()))
