"""
Mode Arbiter Module
Owns the active input mode and enforces gesture/voice mutual exclusion
"""

import threading
import time

import config
from events import InputMode
from logger import setup_logger, log_info, log_warning, conditional_log


class ModeArbiter:
    """
    Single entry point for input mode transitions.

    Every transition happens under one lock and bumps ``generation``, which
    samplers record when a tick starts and compare against when the result
    comes back (stale-result rejection). Listeners are called after the lock
    is released with ``(old_mode, new_mode, generation)``.
    """

    def __init__(self):
        self.logger = setup_logger(__name__)
        self._lock = threading.Lock()
        self._mode = InputMode.IDLE
        self._generation = 0
        self.state_enter_time = time.time()
        self._listeners = []

        conditional_log(self.logger, 'info', f"initial mode: {self._mode.name}", config.DEBUG_STATE)

    @property
    def mode(self):
        return self._mode

    @property
    def generation(self):
        return self._generation

    def snapshot(self):
        """Return (mode, generation) as one consistent pair"""
        with self._lock:
            return self._mode, self._generation

    def is_current(self, generation):
        """True if no transition happened since ``generation`` was read"""
        if generation is None:
            return True
        return generation == self._generation

    def get_time_in_state(self):
        return time.time() - self.state_enter_time

    def add_listener(self, callback):
        self._listeners.append(callback)

    def remove_listener(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ------------------------------------------------------------------ manual controls

    def toggle_gesture(self):
        """Gesture button: turn gesture mode off if active, otherwise on (voice forced off)"""
        with self._lock:
            if self._mode == InputMode.GESTURE_ACTIVE:
                change = self._set(InputMode.IDLE, "gesture toggled off")
            else:
                change = self._set(InputMode.GESTURE_ACTIVE, "gesture toggled on")
        self._notify(change)
        return self._mode

    def toggle_voice(self):
        """Voice button: turn voice mode off if active, otherwise on (gesture forced off)"""
        with self._lock:
            if self._mode == InputMode.VOICE_ACTIVE:
                change = self._set(InputMode.IDLE, "voice toggled off")
            else:
                change = self._set(InputMode.VOICE_ACTIVE, "voice toggled on")
        self._notify(change)
        return self._mode

    # ------------------------------------------------------------------ detection events

    def on_hand_presence_changed(self, present):
        """A hand appearing while idle activates gesture mode; losing it changes nothing"""
        change = None
        with self._lock:
            if present and self._mode == InputMode.IDLE:
                change = self._set(InputMode.GESTURE_ACTIVE, "hand detected")
        self._notify(change)
        return change is not None

    def on_voice_trigger(self, event=None):
        """A trigger phrase activates voice mode unless it is already active"""
        change = None
        with self._lock:
            if self._mode != InputMode.VOICE_ACTIVE:
                phrase = getattr(event, 'phrase', '') or 'trigger phrase'
                change = self._set(InputMode.VOICE_ACTIVE, f"heard '{phrase}'")
        self._notify(change)
        return change is not None

    def request_voice_deactivate(self, generation=None):
        """
        Turn voice mode off after a command was captured (or attempts ran out)

        Args:
            generation: generation the requesting listener started with; the
                request is ignored if a transition happened since

        Returns:
            True if voice mode was turned off
        """
        change = None
        with self._lock:
            if self._mode != InputMode.VOICE_ACTIVE:
                return False
            if generation is not None and generation != self._generation:
                log_warning(self.logger, f"ignoring deactivate from generation {generation}",
                            "stale voice listener")
                return False
            change = self._set(InputMode.IDLE, "voice command captured")
        self._notify(change)
        return True

    # ------------------------------------------------------------------ internals

    def _set(self, new_mode, reason):
        """Apply a transition; caller holds the lock"""
        old_mode = self._mode
        self._mode = new_mode
        self._generation += 1
        self.state_enter_time = time.time()
        if config.DEBUG_STATE:
            log_info(self.logger, f"{old_mode.name} -> {new_mode.name} ({reason})")
        return old_mode, new_mode, self._generation

    def _notify(self, change):
        if change is None:
            return
        for callback in list(self._listeners):
            callback(*change)


if __name__ == '__main__':
    print("Testing mode arbiter...")

    arbiter = ModeArbiter()
    print(f"Current mode: {arbiter.mode.name}")

    arbiter.on_hand_presence_changed(True)
    print(f"After hand: {arbiter.mode.name}")

    arbiter.on_voice_trigger()
    print(f"After trigger: {arbiter.mode.name}")

    arbiter.toggle_voice()
    time.sleep(0.5)
    print(f"Mode: {arbiter.mode.name}, time in state: {arbiter.get_time_in_state():.2f}s")

    print("Mode arbiter test complete!")
