"""
Command Dispatcher
Maps recognized gestures and voice commands to call-control actions
and forwards them to the call-control collaborator
"""

import re

from errors import ContactExists, NoNumberToSave
from events import (CallAction, CallActionKind, CommandLabel, GestureEvent, GestureLabel,
                    VoiceCommandEvent)
from logger import setup_logger, log_info, log_debug

# Separators people (and transcribers) put inside spoken numbers
NUMBER_SEPARATORS = re.compile(r'[\s().-]')


def as_raw_number(params):
    """Return params as a dialable digit string, or None if it is not a number"""
    if not params:
        return None
    candidate = NUMBER_SEPARATORS.sub('', params.strip())
    if candidate.startswith('+'):
        candidate = candidate[1:]
    return candidate if candidate.isdigit() else None


class CommandDispatcher:
    """
    Stateless mapping from recognition events to CallActions.

    ``resolve_*`` only read collaborator state; ``execute`` performs the
    side effect. ``dispatch`` does both and drops events whose mode
    generation is no longer current.
    """

    def __init__(self, call_control, arbiter=None):
        self.logger = setup_logger(__name__)
        self.call_control = call_control
        self.arbiter = arbiter

    def dispatch(self, event):
        """
        Resolve one event and forward the resulting action

        Returns:
            The executed CallAction, or None

        Raises:
            DispatchRejected: NoNumberToSave / ContactExists
        """
        if self.arbiter is not None and not self.arbiter.is_current(event.generation):
            log_debug(self.logger, f"Dropping stale event {event}")
            return None

        if isinstance(event, GestureEvent):
            action = self.resolve_gesture(event)
        elif isinstance(event, VoiceCommandEvent):
            action = self.resolve_voice_command(event)
        else:
            raise TypeError(f"Cannot dispatch {type(event).__name__}")

        if action is None:
            return None
        self.execute(action)
        return action

    def resolve_gesture(self, event):
        if not event.hand_present:
            return None
        gesture = event.gesture
        if gesture == GestureLabel.CALL:
            return self._dial_staged()
        if gesture == GestureLabel.SAVE:
            return self._save()
        if gesture == GestureLabel.DELETE:
            return self._delete()
        if gesture == GestureLabel.HANGUP:
            return CallAction(CallActionKind.HANGUP)
        return None

    def resolve_voice_command(self, event):
        command = event.command
        if command == CommandLabel.CALL:
            return self._dial(event.params)
        if command == CommandLabel.SAVE:
            return self._save(as_raw_number(event.params))
        if command == CommandLabel.DELETE:
            return self._delete()
        if command == CommandLabel.BLOCK:
            return self._block()
        return None

    def execute(self, action):
        cc = self.call_control
        log_info(self.logger, f"Action: {action.describe()}")
        if action.kind == CallActionKind.DIAL:
            cc.dial(action.target)
        elif action.kind == CallActionKind.HANGUP:
            cc.hangup()
        elif action.kind == CallActionKind.SAVE_CONTACT:
            cc.save_contact(action.target, action.name)
        elif action.kind == CallActionKind.DELETE_DIGIT:
            cc.delete_last_digit()
        elif action.kind == CallActionKind.BLOCK:
            cc.block(action.target)

    # ------------------------------------------------------------------ mappings

    def _dial_staged(self):
        staged = self.call_control.staged_number()
        if not staged:
            log_info(self.logger, "Nothing dialed, ignoring call")
            return None
        return CallAction(CallActionKind.DIAL, target=staged)

    def _dial(self, params):
        if not params:
            return self._dial_staged()

        contact = self.call_control.find_contact_by_name(params)
        if contact:
            return CallAction(CallActionKind.DIAL, target=contact.phone_number, name=contact.name)

        number = as_raw_number(params)
        if number:
            return CallAction(CallActionKind.DIAL, target=number)

        log_info(self.logger, f"No contact or number matches '{params}'")
        return None

    def _save(self, number=None):
        name = None
        if not number:
            number = self.call_control.staged_number()
        if not number:
            recent = self.call_control.most_recent_call()
            if recent:
                number = recent.phone_number
                name = recent.name
        if not number:
            raise NoNumberToSave()

        existing = self.call_control.find_contact_by_number(number)
        if existing:
            raise ContactExists(number, existing.name)
        return CallAction(CallActionKind.SAVE_CONTACT, target=number, name=name or f"Contact {number}")

    def _delete(self):
        if not self.call_control.staged_number():
            return None
        return CallAction(CallActionKind.DELETE_DIGIT)

    def _block(self):
        number = self.call_control.active_call_number() or self.call_control.staged_number()
        if not number:
            log_info(self.logger, "No caller to block")
            return None
        return CallAction(CallActionKind.BLOCK, target=number)
