"""
Simulated recognition backends
Random detectors for running without camera/microphone/network,
and scripted fakes for deterministic tests
"""

import threading
from collections import deque

import numpy as np

import config
from events import CommandLabel, GestureEvent, GestureLabel, VoiceCommandEvent
from speech_pipeline import KeywordCommandInterpreter


class StaticFrameSource:
    """Camera stand-in returning a blank JPEG-sized payload"""

    def __init__(self, frame=b'\xff\xd8\xff\xd9'):
        self.frame = frame
        self.captures = 0

    def capture(self):
        self.captures += 1
        return self.frame

    def stop(self):
        pass


class SilentMicrophone:
    """Microphone stand-in; clips are just their requested length"""

    def __init__(self):
        self.recordings = []

    def record(self, seconds):
        self.recordings.append(seconds)
        return seconds

    def stop(self):
        pass


class RandomImageClassifier:
    """
    Pretends to see a hand now and then, with a random gesture

    Args:
        hand_probability: chance a frame contains a hand
        seed: RNG seed (None = nondeterministic)
    """

    GESTURES = (GestureLabel.CALL, GestureLabel.HANGUP, GestureLabel.SAVE,
                GestureLabel.DELETE, GestureLabel.NONE)

    def __init__(self, hand_probability=0.3, seed=None):
        self.rng = np.random.default_rng(seed)
        self.hand_probability = hand_probability

    def classify(self, image):
        if self.rng.random() >= self.hand_probability:
            return GestureEvent(hand_present=False)
        gesture = self.GESTURES[self.rng.integers(len(self.GESTURES))]
        return GestureEvent(hand_present=True, gesture=gesture)


class RandomSpeechPipeline:
    """
    Hears a trigger phrase on ~10% of clips; longer (command-length) clips
    get one of the sample commands
    """

    SAMPLE_COMMANDS = (
        "Call John",
        "Call 555-1234",
        "Save this contact",
        "Save contact",
        "Delete this number",
        "Block this caller",
    )

    def __init__(self, trigger_probability=0.1, seed=None, command_clip_seconds=None):
        self.rng = np.random.default_rng(seed)
        self.trigger_probability = trigger_probability
        self.command_clip_seconds = command_clip_seconds or config.COMMAND_CLIP_SECONDS

    def transcribe(self, clip):
        if isinstance(clip, (int, float)) and clip >= self.command_clip_seconds:
            return self.SAMPLE_COMMANDS[self.rng.integers(len(self.SAMPLE_COMMANDS))]
        if self.rng.random() < self.trigger_probability:
            phrases = config.TRIGGER_PHRASES
            return phrases[self.rng.integers(len(phrases))]
        return ''


class SimulatedCommandInterpreter(KeywordCommandInterpreter):
    """Keyword interpreter standing in for the language model"""


class _Script:
    """Thread-safe queue of canned results; exceptions in the script are raised"""

    def __init__(self, items, default):
        self._items = deque(items)
        self._default = default
        self._lock = threading.Lock()
        self.calls = []

    def next(self, request):
        with self._lock:
            self.calls.append(request)
            item = self._items.popleft() if self._items else self._default
        if isinstance(item, BaseException) or (isinstance(item, type) and issubclass(item, BaseException)):
            raise item
        if callable(item):
            return item(request)
        return item


class ScriptedImageClassifier:
    def __init__(self, results=(), default=GestureEvent(hand_present=False)):
        self._script = _Script(results, default)

    @property
    def calls(self):
        return self._script.calls

    def classify(self, image):
        return self._script.next(image)


class ScriptedSpeechPipeline:
    def __init__(self, transcripts=(), default=''):
        self._script = _Script(transcripts, default)

    @property
    def calls(self):
        return self._script.calls

    def transcribe(self, clip):
        return self._script.next(clip)


class ScriptedCommandInterpreter:
    def __init__(self, results=(), default=VoiceCommandEvent(command=CommandLabel.NONE)):
        self._script = _Script(results, default)

    @property
    def calls(self):
        return self._script.calls

    def interpret(self, transcript):
        return self._script.next(transcript)
