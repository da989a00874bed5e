"""
Stress tests for TransitionStateStore concurrency.

Writers and readers hammer the store from several threads; snapshots must
be safe to iterate while writes continue.

Notes
-----
Threading tests are probabilistic: they increase confidence but do not prove
the absence of races.
"""

from __future__ import annotations

import threading
from typing import List

import pytest

from alarm_service.core.state.transition_store import TransitionStateStore
from alarm_service.domain.models import LimitClass


@pytest.mark.stress
def test_transition_store_concurrent_read_write_no_exceptions() -> None:
    store = TransitionStateStore()
    start = threading.Barrier(8)
    errors: List[BaseException] = []

    def writer(tid: int) -> None:
        try:
            start.wait()
            for k in range(2000):
                store.set(f"cfg-{tid}-{k % 50}", list(LimitClass)[k % 4], k % 2 == 0)
        except BaseException as e:
            errors.append(e)

    def reader() -> None:
        try:
            start.wait()
            for _ in range(500):
                for _key, _value in store.snapshot().items():
                    pass
                store.get("cfg-0-0", LimitClass.HH)
                len(store)
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(4)]
    threads += [threading.Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30.0)

    assert errors == []
    assert len(store) == 4 * 100
