from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Tuple

from alarm_service.domain.models import LimitClass

TransitionKey = Tuple[str, LimitClass]


@dataclass
class TransitionStateStore:
    """
    In-memory map of (alert config id, limit class) -> last observed boolean.

    This is the only state carried from one cycle to the next. It lives in
    process memory and starts empty on every restart.

    Notes
    -----
    - A key exists only once the pair has been evaluated at least once;
      an absent key reads as False.
    - Only the evaluation cycle writes to the store, and the scheduler runs
      one cycle at a time. The lock only protects readers such as
      :meth:`snapshot` called from other threads.
    """

    _states: Dict[TransitionKey, bool] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def get(self, config_id: str, limit: LimitClass) -> bool:
        """
        Return the last observed state for a pair.

        Parameters
        ----------
        config_id
            Alert config identifier.
        limit
            Limit class.

        Returns
        -------
        bool
            Last observed state, False if never evaluated.
        """
        with self._lock:
            return self._states.get((config_id, limit), False)

    def set(self, config_id: str, limit: LimitClass, active: bool) -> None:
        """
        Set or overwrite the last observed state for a pair.
        """
        with self._lock:
            self._states[(config_id, limit)] = bool(active)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def snapshot(self) -> Dict[TransitionKey, bool]:
        """
        Copy of the current map, safe to iterate while cycles keep running.
        """
        with self._lock:
            return dict(self._states)

    def clear(self) -> None:
        with self._lock:
            self._states.clear()
