"""
Domain models and enums.

This module defines the core domain-level types used by the alarm engine:
- Limit classes (HH / H / L / LL) and their human-readable labels
- Alert patterns (naming templates for process-variable addresses)
- Alert configurations (one monitored point each)
- Distribution lists (who gets notified)
- Resolved node sets (per-cycle address expansion of one config)

These are immutable (frozen) dataclasses so a configuration snapshot can be
shared between the evaluation cycle and the notification thread safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class LimitClass(str, Enum):
    """
    Severity band of an analog alarm limit.

    Members
    -------
    HH : str
        High-High limit.
    H : str
        High limit.
    L : str
        Low limit.
    LL : str
        Low-Low limit.
    """

    HH = "HH"
    H = "H"
    L = "L"
    LL = "LL"

    @property
    def label(self) -> str:
        """Human-readable label used in notification messages."""
        return _LIMIT_LABELS[self]


_LIMIT_LABELS: Dict[LimitClass, str] = {
    LimitClass.HH: "High High (HH)",
    LimitClass.H: "High (H)",
    LimitClass.L: "Low (L)",
    LimitClass.LL: "Low Low (LL)",
}


@dataclass(frozen=True)
class AlertPattern:
    """
    Reusable naming template for an analog alarm point.

    A pattern maps a base tag to the process value address and, per limit
    class, to the numeric limit address and the boolean event-flag address.

    Parameters
    ----------
    id
        Pattern identifier.
    name
        Display name (e.g., "Analog Alarms").
    pv_suffix
        Suffix of the process value.
    hh_limit_suffix, h_limit_suffix, l_limit_suffix, ll_limit_suffix
        Suffixes of the numeric limit setpoints.
    hh_event_suffix, h_event_suffix, l_event_suffix, ll_event_suffix
        Suffixes of the boolean event flags evaluated by the engine.
    description
        Optional free text.
    """

    id: str
    name: str
    pv_suffix: str
    hh_limit_suffix: str
    h_limit_suffix: str
    l_limit_suffix: str
    ll_limit_suffix: str
    hh_event_suffix: str
    h_event_suffix: str
    l_event_suffix: str
    ll_event_suffix: str
    description: str = ""

    def event_suffix(self, limit: LimitClass) -> str:
        return {
            LimitClass.HH: self.hh_event_suffix,
            LimitClass.H: self.h_event_suffix,
            LimitClass.L: self.l_event_suffix,
            LimitClass.LL: self.ll_event_suffix,
        }[limit]

    def limit_suffix(self, limit: LimitClass) -> str:
        return {
            LimitClass.HH: self.hh_limit_suffix,
            LimitClass.H: self.h_limit_suffix,
            LimitClass.L: self.l_limit_suffix,
            LimitClass.LL: self.ll_limit_suffix,
        }[limit]


DEFAULT_PATTERN_ID = "system-analog-alarms"

DEFAULT_PATTERN = AlertPattern(
    id=DEFAULT_PATTERN_ID,
    name="Analog Alarms",
    description="Standard ISA analog alarm pattern",
    pv_suffix="PV",
    hh_limit_suffix="HighHigh",
    h_limit_suffix="High",
    l_limit_suffix="Low",
    ll_limit_suffix="LowLow",
    hh_event_suffix="HH",
    h_event_suffix="H",
    l_event_suffix="L",
    ll_event_suffix="LL",
)


@dataclass(frozen=True)
class AlertConfig:
    """
    One monitored point.

    Parameters
    ----------
    id
        Configuration identifier (part of the transition-state key).
    tag_base
        Base tag name the pattern suffixes are appended to.
    pattern_id
        Referenced `AlertPattern`.
    alert_list_id
        Referenced `DistributionList`.
    monitor_hh, monitor_h, monitor_l, monitor_ll
        Which limit classes are evaluated.
    is_active
        Only active configs are loaded into a cycle.
    name
        Optional display name; falls back to ``tag_base``.
    description
        Optional free text.
    """

    id: str
    tag_base: str
    pattern_id: str
    alert_list_id: str
    monitor_hh: bool = False
    monitor_h: bool = False
    monitor_l: bool = False
    monitor_ll: bool = False
    is_active: bool = True
    name: str = ""
    description: str = ""

    def monitors(self, limit: LimitClass) -> bool:
        return {
            LimitClass.HH: self.monitor_hh,
            LimitClass.H: self.monitor_h,
            LimitClass.L: self.monitor_l,
            LimitClass.LL: self.monitor_ll,
        }[limit]

    def monitored_limits(self) -> List[LimitClass]:
        """Monitored limit classes in fixed HH, H, L, LL order."""
        return [limit for limit in LimitClass if self.monitors(limit)]

    @property
    def display_name(self) -> str:
        return self.name or self.tag_base


@dataclass(frozen=True)
class DistributionListMember:
    """A single notification recipient."""

    name: str
    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class DistributionList:
    """
    Named set of notification endpoints.

    Parameters
    ----------
    id
        Distribution list identifier.
    name
        Display name.
    members
        Recipients. Members without a phone number are ignored for SMS.
    description
        Optional free text.
    """

    id: str
    name: str
    members: Tuple[DistributionListMember, ...] = ()
    description: str = ""

    def phone_numbers(self) -> List[str]:
        """Return stripped, non-empty phone numbers in member order."""
        return [m.phone.strip() for m in self.members if m.phone and m.phone.strip()]


@dataclass(frozen=True)
class ResolvedNodeSet:
    """
    Addresses required by one config for the current cycle.

    Recomputed every cycle; never persisted.

    Parameters
    ----------
    config
        The config these addresses belong to.
    pv_address
        Process value address (always constructed).
    event_addresses
        Event-flag address per *monitored* limit class.
    """

    config: AlertConfig
    pv_address: str
    event_addresses: Dict[LimitClass, str] = field(default_factory=dict)

    def read_addresses(self) -> List[str]:
        """
        Addresses this config contributes to the batch read.

        The process value is only included when at least one limit is
        monitored.
        """
        if not self.event_addresses:
            return []
        return list(self.event_addresses.values()) + [self.pv_address]
