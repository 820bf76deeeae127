"""Backend reachability flag and the background monitor that keeps it current."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

Listener = Callable[[bool], None]


class ConnectivityStore:
    """
    Shared "backend online" flag.

    Written by the ConnectivityMonitor and by manual retries, read by every
    wizard step to gate its actions. Starts optimistic (online).
    """

    def __init__(self, online: bool = True):
        self._online = online
        self._lock = threading.Lock()
        self._listeners: List[Listener] = []

    @property
    def online(self) -> bool:
        with self._lock:
            return self._online

    def set_online(self, online: bool) -> None:
        with self._lock:
            changed = online != self._online
            self._online = online
            listeners = list(self._listeners)
        if changed:
            logger.info(f"Backend is now {'online' if online else 'offline'}")
            for listener in listeners:
                listener(online)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe


class ConnectivityMonitor:
    """
    Poll a liveness probe on a fixed interval and record the result.

    The first probe runs as soon as ``start`` is called. Any failure,
    including an exception from the probe, marks the backend offline.
    There is no backoff or jitter.
    """

    def __init__(
        self,
        probe: Callable[[], bool],
        store: ConnectivityStore,
        interval: float = 5.0
    ):
        """
        Initialize the monitor.

        Args:
            probe: Callable returning True when the backend is reachable
                (typically ClaimsApiClient.ping_backend)
            store: Store to update after each probe
            interval: Seconds between probes
        """
        self.probe = probe
        self.store = store
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def check_now(self) -> bool:
        """Run one probe synchronously and return the resulting flag."""
        try:
            online = bool(self.probe())
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning(f"Connectivity probe raised: {exc}")
            online = False
        self.store.set_online(online)
        return online

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.check_now()
            self._stop_event.wait(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="connectivity-monitor", daemon=True)
        self._thread.start()
        logger.info(f"Connectivity monitor started (interval={self.interval}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Connectivity monitor stopped")
