"""Tests for the backend reachability store and monitor."""

import threading

from intake.connectivity import ConnectivityMonitor, ConnectivityStore


def test_store_starts_online():
    assert ConnectivityStore().online


def test_listeners_fire_only_on_change():
    store = ConnectivityStore()
    seen = []
    store.subscribe(seen.append)

    store.set_online(True)
    store.set_online(False)
    store.set_online(False)
    store.set_online(True)

    assert seen == [False, True]


def test_unsubscribe_stops_notifications():
    store = ConnectivityStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)

    unsubscribe()
    store.set_online(False)

    assert seen == []
    assert not store.online


def test_check_now_records_probe_result():
    store = ConnectivityStore()
    answers = iter([False, True])
    monitor = ConnectivityMonitor(lambda: next(answers), store)

    assert monitor.check_now() is False
    assert not store.online
    assert monitor.check_now() is True
    assert store.online


def test_probe_exception_marks_backend_offline():
    store = ConnectivityStore()

    def probe():
        raise RuntimeError("boom")

    assert ConnectivityMonitor(probe, store).check_now() is False
    assert not store.online


def test_monitor_polls_until_stopped():
    store = ConnectivityStore()
    calls = []
    polled_twice = threading.Event()

    def probe():
        calls.append(1)
        if len(calls) >= 2:
            polled_twice.set()
        return False

    monitor = ConnectivityMonitor(probe, store, interval=0.01)
    monitor.start()
    monitor.start()
    try:
        assert polled_twice.wait(timeout=2)
        assert monitor.running
    finally:
        monitor.stop(timeout=2)

    assert not monitor.running
    assert not store.online
