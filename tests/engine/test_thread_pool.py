from __future__ import annotations

import threading

from question_crawler.engine import ThreadPoolManager


def test_thread_pool_manager_reuses_executor_per_role() -> None:
    manager = ThreadPoolManager(prefix="test")
    fetch_a = manager.get("fetch", max_workers=2)
    fetch_b = manager.get("fetch", max_workers=8)
    sink = manager.get("sink", max_workers=1)

    assert fetch_a is fetch_b
    assert sink is not fetch_a
    assert fetch_a._max_workers == 2

    name = sink.submit(lambda: threading.current_thread().name).result()
    assert name.startswith("test-sink")
    manager.shutdown()


def test_shutdown_waits_and_forgets_executors() -> None:
    manager = ThreadPoolManager()
    done = threading.Event()
    manager.get("fetch", 1).submit(done.wait, 0.1)
    manager.shutdown(wait=True)
    fresh = manager.get("fetch", 1)
    assert fresh.submit(lambda: 42).result() == 42
    manager.shutdown()
