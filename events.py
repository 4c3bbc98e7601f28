"""
Shared types for the input core: modes, recognition events and call actions
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class InputMode(Enum):
    """Which input channel is currently allowed to act"""
    IDLE = auto()
    GESTURE_ACTIVE = auto()
    VOICE_ACTIVE = auto()


class GestureLabel(Enum):
    CALL = 'call'  # pointing finger
    HANGUP = 'hangup'  # open palm
    SAVE = 'save'  # thumbs up
    DELETE = 'delete'  # closed fist
    NONE = 'none'

    @classmethod
    def parse(cls, value):
        """Map a backend label to a GestureLabel, anything unknown is NONE"""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NONE


class CommandLabel(Enum):
    CALL = 'call'
    SAVE = 'save'
    DELETE = 'delete'
    BLOCK = 'block'
    NONE = 'none'

    @classmethod
    def parse(cls, value):
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NONE


class CallActionKind(Enum):
    DIAL = auto()
    HANGUP = auto()
    SAVE_CONTACT = auto()
    DELETE_DIGIT = auto()
    BLOCK = auto()


# generation: Mode Arbiter generation at the start of the tick that produced
# the event. None means "not tied to a tick" and is never treated as stale.

@dataclass(frozen=True)
class GestureEvent:
    hand_present: bool
    gesture: GestureLabel = GestureLabel.NONE
    generation: Optional[int] = None


@dataclass(frozen=True)
class VoiceTriggerEvent:
    transcript: str
    phrase: str = ''
    generation: Optional[int] = None


@dataclass(frozen=True)
class VoiceCommandEvent:
    command: CommandLabel
    params: Optional[str] = None
    transcript: str = ''
    generation: Optional[int] = None


@dataclass(frozen=True)
class CallAction:
    kind: CallActionKind
    target: Optional[str] = None
    name: Optional[str] = None  # suggested contact name for SAVE_CONTACT

    def describe(self):
        if self.target:
            return f"{self.kind.name}({self.target})"
        return self.kind.name
