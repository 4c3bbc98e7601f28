#!/usr/bin/env python3
"""
Voice Sampler
Owns the microphone and runs one of two regimes depending on the input mode:

- trigger listening (voice mode off): short clips every few seconds, looking
  for a trigger phrase such as "hey genie"
- command listening (voice mode on): one longer clip, transcribed and
  interpreted into a command; voice mode switches itself off after one
  command so the user has to re-arm it
"""

from dataclasses import replace

import config
from events import InputMode, VoiceTriggerEvent
from logger import log_info, log_warning, conditional_log
from periodic_sampler import PeriodicSampler
from speech_pipeline import find_trigger_phrase


class VoiceSampler(PeriodicSampler):
    """Microphone channel of the input core"""

    name = 'voice'

    def __init__(self, arbiter, microphone, speech, interpreter, on_trigger=None, on_command=None,
                 trigger_phrases=None, trigger_interval=None, trigger_clip_seconds=None,
                 command_clip_seconds=None, retry_interval=None, max_attempts=None):
        """
        Args:
            arbiter: ModeArbiter
            microphone: object with record(seconds) -> clip
            speech: object with transcribe(clip) -> str
            interpreter: object with interpret(str) -> VoiceCommandEvent
            on_trigger: callback(VoiceTriggerEvent)
            on_command: callback(VoiceCommandEvent)
            max_attempts: failed command attempts per activation before giving up
        """
        super().__init__(arbiter, debug=config.DEBUG_VOICE)
        self.microphone = microphone
        self.speech = speech
        self.interpreter = interpreter
        self.on_trigger = on_trigger
        self.on_command = on_command
        self.trigger_phrases = tuple(trigger_phrases or config.TRIGGER_PHRASES)
        self.trigger_interval = config.TRIGGER_SAMPLE_INTERVAL if trigger_interval is None else trigger_interval
        self.trigger_clip_seconds = trigger_clip_seconds or config.TRIGGER_CLIP_SECONDS
        self.command_clip_seconds = command_clip_seconds or config.COMMAND_CLIP_SECONDS
        self.retry_interval = config.COMMAND_RETRY_INTERVAL if retry_interval is None else retry_interval
        self.max_attempts = max_attempts or config.COMMAND_MAX_ATTEMPTS
        self.last_transcript = ''
        self._attempt_generation = None
        self._failed_attempts = 0

    def period_for(self, mode):
        if mode == InputMode.VOICE_ACTIVE:
            return self.retry_interval
        return self.trigger_interval

    def sample(self, mode, generation):
        if mode == InputMode.VOICE_ACTIVE:
            self.listen_for_command(generation)
        else:
            self.listen_for_trigger(generation)

    # ------------------------------------------------------------------ regime A

    def listen_for_trigger(self, generation):
        """Record a short clip and report a trigger phrase if one was said"""
        clip = self.microphone.record(self.trigger_clip_seconds)
        transcript = self.speech.transcribe(clip)
        conditional_log(self.logger, 'debug', f"Heard: '{transcript}'", self.debug)

        phrase = find_trigger_phrase(transcript, self.trigger_phrases)
        if phrase is None:
            return None
        # Still valid after IDLE <-> GESTURE_ACTIVE; only voice mode makes it stale
        mode, current = self.arbiter.snapshot()
        if mode == InputMode.VOICE_ACTIVE:
            conditional_log(self.logger, 'debug', "Discarding stale trigger", self.debug)
            return None

        self.last_transcript = transcript
        log_info(self.logger, f"Trigger phrase detected: '{phrase}'")
        event = VoiceTriggerEvent(transcript=transcript, phrase=phrase, generation=current)
        if self.on_trigger:
            self.on_trigger(event)
        return event

    # ------------------------------------------------------------------ regime B

    def listen_for_command(self, generation):
        """
        One command attempt for the current activation

        Success (any interpreted command, NONE included) emits the command and
        turns voice mode off. Failures leave voice mode on for another attempt
        until max_attempts is reached.
        """
        if generation != self._attempt_generation:
            self._attempt_generation = generation
            self._failed_attempts = 0

        try:
            clip = self.microphone.record(self.command_clip_seconds)
            transcript = self.speech.transcribe(clip)
            if not transcript:
                log_info(self.logger, "Could not understand audio")
                self._command_failed(generation)
                return None
            event = self.interpreter.interpret(transcript)
        except Exception:
            self._command_failed(generation)
            raise

        if not self.arbiter.is_current(generation):
            conditional_log(self.logger, 'debug', "Discarding stale command", self.debug)
            return None

        self.last_transcript = transcript
        event = replace(event, generation=generation)
        log_info(self.logger, f"Command recognized: {event.command.value} {event.params or ''}".rstrip())
        if self.on_command:
            self.on_command(event)
        self.arbiter.request_voice_deactivate(generation)
        return event

    def _command_failed(self, generation):
        self._failed_attempts += 1
        if self._failed_attempts >= self.max_attempts:
            log_warning(self.logger, f"No command after {self._failed_attempts} attempts, turning voice mode off")
            self.arbiter.request_voice_deactivate(generation)


if __name__ == '__main__':
    # Voice sampler against the real microphone
    import time

    from capture import MicrophoneCapture
    from mode_arbiter import ModeArbiter
    from speech_pipeline import make_command_interpreter, make_speech_pipeline

    arbiter = ModeArbiter()
    microphone = MicrophoneCapture()
    sampler = VoiceSampler(
        arbiter, microphone, make_speech_pipeline(), make_command_interpreter(),
        on_trigger=arbiter.on_voice_trigger,
        on_command=lambda event: print(f"✓ Command: {event.command.value} {event.params or ''}"),
    )
    print(f"Say one of {list(config.TRIGGER_PHRASES)} and then a command. Press Ctrl+C to exit")
    try:
        sampler.start()
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        sampler.stop()
        microphone.stop()
