"""
Process-data source adapters.

The engine reads process variables through one batched call per cycle:
``read_values(addresses) -> values``, positional with the request. Any failure
of that call is reported as :class:`DataSourceError` and aborts the cycle.

Implementations
---------------
- :class:`HttpProcessDataSource`: JSON over HTTP (requests).
- :class:`SimulatedProcessDataSource`: in-memory tag table for development
  runs and tests.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests

logger = logging.getLogger(__name__)

GOOD_QUALITY = "Good"


class DataSourceError(RuntimeError):
    """The process-data source could not serve a batch read."""


class ProcessDataSource(Protocol):
    """
    Protocol interface for batched process-variable reads.

    Methods
    -------
    read_values(addresses)
        Return one raw value per address, in request order.
    """

    def read_values(self, addresses: Sequence[str]) -> List[Any]:
        """
        Read a batch of addresses.

        Raises
        ------
        DataSourceError
            If the whole batch cannot be read.
        """
        ...


def _unwrap(entry: Any) -> Any:
    """
    Reduce one response entry to a raw value.

    Entries are either plain values or ``{"value": v, "quality": q}``
    status objects. A status object with a quality other than "Good", or
    without a value (e.g. ``{"error": ...}``), is reported as None.
    """
    if isinstance(entry, dict):
        if entry.get("quality", GOOD_QUALITY) != GOOD_QUALITY:
            return None
        return entry.get("value")
    return entry


@dataclass(frozen=True)
class HttpDataSourceConfig:
    """
    Configuration of the HTTP process-data source.

    Parameters
    ----------
    url
        Endpoint accepting ``POST {"nodeIds": [...]}``.
    timeout_s
        HTTP request timeout in seconds.
    verify_tls
        Whether to verify TLS certificates.
    auth_header
        Optional Authorization header value (e.g., Bearer token).
    """

    url: str
    timeout_s: float = 3.0
    verify_tls: bool = True
    auth_header: Optional[str] = None


class HttpProcessDataSource:
    """
    Batch reader over a JSON/HTTP gateway in front of the process-data server.

    Response body is either a JSON list or ``{"values": [...]}``; it must hold
    exactly one entry per requested address.
    """

    def __init__(self, cfg: HttpDataSourceConfig):
        self._cfg = cfg

    def read_values(self, addresses: Sequence[str]) -> List[Any]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._cfg.auth_header:
            headers["Authorization"] = self._cfg.auth_header

        try:
            r = requests.post(
                self._cfg.url,
                json={"nodeIds": list(addresses)},
                headers=headers,
                timeout=self._cfg.timeout_s,
                verify=self._cfg.verify_tls,
            )
            r.raise_for_status()
            body = r.json()
        except (requests.RequestException, ValueError) as e:
            raise DataSourceError(f"Batch read of {len(addresses)} addresses failed: {e}") from e

        values = body.get("values") if isinstance(body, dict) else body
        if not isinstance(values, list):
            raise DataSourceError("Batch read response does not contain a value list")
        if len(values) != len(addresses):
            raise DataSourceError(
                f"Batch read returned {len(values)} values for {len(addresses)} addresses"
            )
        return [_unwrap(v) for v in values]


@dataclass
class SimulatedProcessDataSource:
    """
    In-memory process-data source.

    Unknown addresses read as None. A failure can be injected to exercise the
    fail-closed path, and a delay to hold a cycle open.

    Attributes
    ----------
    values
        Address -> value table.
    delay_s
        Sleep applied to each read.
    read_count
        Number of batch reads served (failed ones included).
    requests_log
        Address lists of every batch read, in call order.
    """

    values: Dict[str, Any] = field(default_factory=dict)
    delay_s: float = 0.0
    read_count: int = 0
    requests_log: List[List[str]] = field(default_factory=list)

    _failure: Optional[str] = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def set_value(self, address: str, value: Any) -> None:
        with self._lock:
            self.values[address] = value

    def set_failure(self, message: Optional[str]) -> None:
        """Make subsequent reads fail with ``message``; None restores reads."""
        with self._lock:
            self._failure = message

    def read_values(self, addresses: Sequence[str]) -> List[Any]:
        with self._lock:
            self.read_count += 1
            self.requests_log.append(list(addresses))
            failure = self._failure

        if self.delay_s:
            time.sleep(self.delay_s)
        if failure:
            raise DataSourceError(failure)

        with self._lock:
            return [self.values.get(a) for a in addresses]
