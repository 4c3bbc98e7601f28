#!/usr/bin/env python3
"""
Gesture Sampler
Captures a still frame every couple of seconds while gesture mode is active,
asks the Image Classifier what the hand is doing and republishes the result

While idle it keeps a slower presence watch so that a hand showing up can
switch gesture mode on; gestures seen while idle are never dispatched.
"""

from dataclasses import replace

import config
from events import GestureLabel, InputMode
from logger import log_info, conditional_log
from periodic_sampler import PeriodicSampler


class GestureSampler(PeriodicSampler):
    """Camera channel of the input core"""

    name = 'gesture'

    def __init__(self, arbiter, camera, classifier, on_gesture=None, on_hand_presence=None,
                 interval=None, idle_watch=None, idle_interval=None):
        """
        Args:
            arbiter: ModeArbiter
            camera: object with capture() -> bytes
            classifier: object with classify(bytes) -> GestureEvent
            on_gesture: callback(GestureEvent) for hand-present, non-NONE gestures
            on_hand_presence: callback(bool) when reported hand presence flips
            interval: seconds between frames while gesture mode is active
            idle_watch: sample for hand presence while idle
            idle_interval: seconds between frames while idle
        """
        super().__init__(arbiter, debug=config.DEBUG_GESTURE)
        self.camera = camera
        self.classifier = classifier
        self.on_gesture = on_gesture
        self.on_hand_presence = on_hand_presence
        self.interval = config.GESTURE_SAMPLE_INTERVAL if interval is None else interval
        self.idle_watch = config.GESTURE_IDLE_WATCH if idle_watch is None else idle_watch
        self.idle_interval = config.GESTURE_IDLE_WATCH_INTERVAL if idle_interval is None else idle_interval
        self.hand_present = False
        self.last_gesture = GestureLabel.NONE
        self.discarded = 0

    def period_for(self, mode):
        if mode == InputMode.GESTURE_ACTIVE:
            return self.interval
        if mode == InputMode.IDLE and self.idle_watch:
            return self.idle_interval
        return None

    def sample(self, mode, generation):
        frame = self.camera.capture()
        result = self.classifier.classify(frame)

        if not self.arbiter.is_current(generation):
            # Mode changed while the classifier was working
            self.discarded += 1
            conditional_log(self.logger, 'debug', "Discarding stale classifier result", self.debug)
            return

        conditional_log(self.logger, 'debug',
                        f"hand={result.hand_present} gesture={result.gesture.value}", self.debug)
        self.last_gesture = result.gesture

        if result.hand_present != self.hand_present:
            self.hand_present = result.hand_present
            log_info(self.logger, "Hand detected" if result.hand_present else "Hand lost")
            if self.on_hand_presence:
                self.on_hand_presence(result.hand_present)

        if mode != InputMode.GESTURE_ACTIVE:
            return
        if result.hand_present and result.gesture != GestureLabel.NONE:
            log_info(self.logger, f"Gesture: {result.gesture.value}")
            if self.on_gesture:
                self.on_gesture(replace(result, generation=generation))


if __name__ == '__main__':
    # Gesture sampler against the real camera and classifier
    import time

    from capture import CameraCapture
    from image_classifier import OpenAIImageClassifier
    from mode_arbiter import ModeArbiter

    arbiter = ModeArbiter()
    camera = CameraCapture()
    sampler = GestureSampler(
        arbiter, camera, OpenAIImageClassifier(),
        on_gesture=lambda event: print(f"✓ Gesture: {event.gesture.value}"),
        on_hand_presence=arbiter.on_hand_presence_changed,
    )
    print("Show your hand to the camera. Press Ctrl+C to exit")
    try:
        sampler.start()
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        sampler.stop()
        camera.stop()
