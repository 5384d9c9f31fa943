"""KeyedLock tests — per-key exclusion and deadlock-free multi-key acquisition."""

import threading
from concurrent.futures import ThreadPoolExecutor

from relaypay.core.keyed_lock import KeyedLock


def test_same_key_reuses_lock():
    locks = KeyedLock()
    with locks.hold("a"):
        pass
    with locks.hold("a"):
        pass
    assert len(locks) == 1


def test_duplicate_keys_acquired_once():
    locks = KeyedLock()
    with locks.hold("a", "a"):
        pass
    assert len(locks) == 1


def test_released_when_body_raises():
    locks = KeyedLock()
    try:
        with locks.hold("a", "b"):
            raise ValueError("boom")
    except ValueError:
        pass
    done = threading.Event()

    def reacquire():
        with locks.hold("b", "a"):
            done.set()

    t = threading.Thread(target=reacquire)
    t.start()
    t.join(timeout=2)
    assert done.is_set()


def test_opposite_order_acquisition_does_not_deadlock():
    locks = KeyedLock()
    counter = {"n": 0}

    def work(i):
        keys = ("a", "b") if i % 2 else ("b", "a")
        with locks.hold(*keys):
            counter["n"] += 1

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(work, range(500)))
    assert counter["n"] == 500
