"""
Periodic Sampler base
One daemon thread per input channel, woken by mode transitions,
with drop-if-busy ticks and per-tick error containment
"""

import threading

from errors import BackendError, CaptureError
from logger import setup_logger, log_error, log_info, log_warning, conditional_log


class PeriodicSampler:
    """
    Fixed-period sampling loop guarded by the Mode Arbiter.

    Subclasses implement ``period_for(mode)`` (seconds, or None when the
    channel must not sample in that mode) and ``sample(mode, generation)``
    (one request/response round trip). A transition wakes the loop at once,
    so a deactivated channel schedules no further ticks and a newly
    activated one samples without waiting out the old period.
    """

    name = 'sampler'

    def __init__(self, arbiter, debug=False):
        self.logger = setup_logger(f"{__name__}.{self.name}")
        self.arbiter = arbiter
        self.debug = debug
        self._busy = threading.Lock()
        self._stop_event = threading.Event()
        self._wake = threading.Event()
        self._thread = None
        self.tick_count = 0
        self.failure_count = 0
        self.skipped_busy = 0

    def period_for(self, mode):
        raise NotImplementedError

    def sample(self, mode, generation):
        raise NotImplementedError

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stop_event.clear()
        self.arbiter.add_listener(self._on_mode_changed)
        self._thread = threading.Thread(target=self._run, name=f"{self.name}-sampler", daemon=True)
        self._thread.start()
        log_info(self.logger, "Sampling loop started")

    def stop(self, timeout=None):
        """Stop the loop; an in-flight tick finishes, its result is not used"""
        self._stop_event.set()
        self._wake.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self.arbiter.remove_listener(self._on_mode_changed)
        log_info(self.logger, "Sampling loop stopped")

    def tick(self):
        """
        Run one sampling round trip unless one is already in flight

        Returns:
            False if the tick was skipped (busy or channel inactive), True otherwise
        """
        if not self._busy.acquire(blocking=False):
            self.skipped_busy += 1
            conditional_log(self.logger, 'debug', "Previous request still in flight, skipping tick", self.debug)
            return False
        try:
            mode, generation = self.arbiter.snapshot()
            if self.period_for(mode) is None:
                return False
            self.tick_count += 1
            try:
                self.sample(mode, generation)
            except (BackendError, CaptureError) as e:
                self.failure_count += 1
                log_warning(self.logger, f"{type(e).__name__}: {e}", "Tick skipped")
            except Exception as e:
                self.failure_count += 1
                log_error(self.logger, e, "Unexpected error in sampling tick")
            return True
        finally:
            self._busy.release()

    def _run(self):
        while not self._stop_event.is_set():
            self._wake.clear()
            period = self.period_for(self.arbiter.mode)
            if period is not None:
                self.tick()
                if self._stop_event.is_set():
                    break
                period = self.period_for(self.arbiter.mode)
            # None: wait for the next mode change (or stop)
            self._wake.wait(period)

    def _on_mode_changed(self, old_mode, new_mode, generation):
        self._wake.set()
