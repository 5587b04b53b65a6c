import threading
from typing import Callable, Optional

from ..domain.store import MarkerStore
from ..utils.log import log_line
from .constants import POLL_INTERVAL_S


class PollLoop:
    """
    Periodic reconciliation: every interval_s, fetch the full snapshot and
    swap it into the store's confirmed partition.

    Failures are logged and the loop keeps going; the store never retries on
    its own, the next tick is simply another fetch.
    """

    def __init__(
        self,
        store: MarkerStore,
        interval_s: float = POLL_INTERVAL_S,
        on_cycle: Optional[Callable[[MarkerStore], None]] = None,
    ):
        self.store = store
        self.interval_s = float(interval_s)
        self.on_cycle = on_cycle
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.cycles = 0
        self.failures = 0

    def tick(self) -> bool:
        """One fetch + reconcile. Returns False if the fetch failed."""
        try:
            self.store.refresh()
        except Exception as e:
            self.failures += 1
            log_line(f"WARN | poll failed | err={e!r}")
            return False
        finally:
            self.cycles += 1

        if self.on_cycle is not None:
            self.on_cycle(self.store)
        return True

    def run(self, one_shot: bool = False) -> None:
        """Blocking loop (Ctrl-C to stop)."""
        log_line(f"POLL LOOP STARTED | interval={self.interval_s:g}s")
        try:
            while not self._stop.is_set():
                self.tick()
                if one_shot:
                    break
                self._stop.wait(self.interval_s)
        except KeyboardInterrupt:
            log_line("POLL LOOP STOPPED (KeyboardInterrupt)")

    def start(self) -> threading.Thread:
        """Run the loop on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="marker-poll", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


def log_counts(store: MarkerStore) -> None:
    log_line(f"CHECKS | drafts={store.draft_count} confirmed={store.confirmed_count}")
