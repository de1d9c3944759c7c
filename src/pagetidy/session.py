"""Debounced cleanup analysis for an interactive viewing session."""

import logging
import threading
from typing import Callable

from .analysis import SmartCleanupResult, analyze
from .cache import CacheService
from .cleanup_options import CleanupOption
from .config import Settings
from .document import Document
from .line_remover import apply_option

logger = logging.getLogger(__name__)

ResultCallback = Callable[[int, SmartCleanupResult, list[CleanupOption]], None]


class CleanupSession:
    """Runs analysis once the viewer has stayed on a page for a while.

    Each page view cancels the pending timer and schedules a new one for that
    page. Only one analysis runs at a time; views arriving during a run are
    coalesced so that only the latest page is analyzed afterwards.
    """

    def __init__(
        self,
        document: Document,
        service: CacheService,
        on_result: ResultCallback,
        settings: Settings | None = None,
        active: bool = True,
    ):
        self.document = document
        self.service = service
        self.on_result = on_result
        self.settings = settings or Settings()
        self.last_result: SmartCleanupResult | None = None
        self._active = active
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._running = False
        self._pending: int | None = None
        self._generation = 0

    @property
    def active(self) -> bool:
        return self._active

    @active.setter
    def active(self, value: bool) -> None:
        with self._lock:
            self._active = value
            if not value:
                self._cancel_timer()

    def page_viewed(self, ordinal: int) -> None:
        """Restart the idle timer for ``ordinal``."""
        with self._lock:
            self._cancel_timer()
            if not self._active:
                return
            self._timer = threading.Timer(
                self.settings.idle_seconds, self._run, args=(ordinal, self._generation)
            )
            self._timer.daemon = True
            self._timer.start()

    def analyze_now(self, ordinal: int) -> None:
        """Analyze immediately, skipping the idle delay."""
        with self._lock:
            self._cancel_timer()
        self._run(ordinal)

    def execute(self, option: CleanupOption, current_ordinal: int) -> list[int]:
        """Apply a cleanup option, then refresh the analysis right away."""
        changed = apply_option(self.document, option, self.service)
        self.analyze_now(current_ordinal)
        return changed

    def close(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._pending = None

    def _cancel_timer(self) -> None:
        # A timer whose callback already started is not stopped by cancel()
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _run(self, ordinal: int, generation: int | None = None) -> None:
        with self._lock:
            # Stale or deactivated timers; direct calls pass no generation
            if generation is not None and (generation != self._generation or not self._active):
                return
            if self._running:
                self._pending = ordinal
                return
            self._running = True

        while True:
            try:
                result = analyze(self.document, self.service, self.settings)
                self.last_result = result
                self.on_result(ordinal, result, result.options_for(ordinal))
            except Exception:
                logger.exception("Cleanup analysis of %r failed", self.document.name)

            with self._lock:
                if self._pending is None:
                    self._running = False
                    return
                ordinal, self._pending = self._pending, None
