#!/usr/bin/env python3
"""
Genie Dialer Main Control System
Main entry point that wires the samplers, the mode arbiter and the
command dispatcher to the call-control stores, with a console dial pad
"""

import argparse
import signal
import sys

import config
from call_control import DIAL_KEYS, LocalCallControl
from command_dispatcher import CommandDispatcher
from errors import DispatchRejected
from events import InputMode
from gesture_sampler import GestureSampler
from logger import setup_logger, log_error, log_warning, log_info
from mode_arbiter import ModeArbiter
from voice_sampler import VoiceSampler

HELP = """Commands:
  <digits>   stage digits on the dial pad (0-9 * # +)
  call       call the staged number        hangup   end the call
  del        delete last digit             clear    clear the number
  g          toggle gesture mode           v        toggle voice mode
  status     show mode and call state      contacts / recents
  help       this text                     quit     exit"""


class GenieDialerSystem:
    """Main system controller"""

    def __init__(self, simulate=None, data_dir=None, call_control=None):
        """Initialize all system components"""
        self.logger = setup_logger(__name__)
        self.simulate = config.SIMULATE if simulate is None else simulate
        self.running = True

        log_info(self.logger, "=" * 70)
        log_info(self.logger, "Genie Dialer Initializing...")
        log_info(self.logger, "=" * 70)

        self.arbiter = ModeArbiter()
        self.arbiter.add_listener(self._on_mode_changed)
        self.call_control = call_control or LocalCallControl(data_dir or config.DATA_DIR)
        self.dispatcher = CommandDispatcher(self.call_control, self.arbiter)
        self.notices = []

        camera, classifier, microphone, speech, interpreter = self._build_backends()

        self.gesture = GestureSampler(
            self.arbiter, camera, classifier,
            on_gesture=self.handle_event,
            on_hand_presence=self.arbiter.on_hand_presence_changed,
        )
        self.voice = VoiceSampler(
            self.arbiter, microphone, speech, interpreter,
            on_trigger=self.arbiter.on_voice_trigger,
            on_command=self.handle_event,
        )
        self.camera = camera
        self.microphone = microphone

        log_info(self.logger, "=" * 70)
        log_info(self.logger, "System Ready!")
        log_info(self.logger, f"Say one of {list(config.TRIGGER_PHRASES)} or show your hand")
        log_info(self.logger, "=" * 70)

    def _build_backends(self):
        if self.simulate:
            from simulated_backends import (RandomImageClassifier, RandomSpeechPipeline,
                                            SilentMicrophone, SimulatedCommandInterpreter,
                                            StaticFrameSource)
            log_info(self.logger, "SIMULATION MODE: random detections, no camera/microphone/network")
            seed = config.SIMULATION_SEED
            return (StaticFrameSource(), RandomImageClassifier(seed=seed), SilentMicrophone(),
                    RandomSpeechPipeline(seed=seed), SimulatedCommandInterpreter())

        from capture import CameraCapture, MicrophoneCapture
        from image_classifier import OpenAIImageClassifier
        from speech_pipeline import make_command_interpreter, make_speech_pipeline
        return (CameraCapture(), OpenAIImageClassifier(), MicrophoneCapture(),
                make_speech_pipeline(), make_command_interpreter())

    # ------------------------------------------------------------------ events

    def handle_event(self, event):
        """Route a gesture / voice command event through the dispatcher"""
        try:
            return self.dispatcher.dispatch(event)
        except DispatchRejected as e:
            self.notify(str(e))
        except Exception as e:
            log_error(self.logger, e, "Error executing command")
        return None

    def notify(self, message):
        """One-shot user notice"""
        self.notices.append(message)
        log_warning(self.logger, message, "Notice")

    def _on_mode_changed(self, old_mode, new_mode, generation):
        log_info(self.logger, f"INPUT MODE: {old_mode.name} -> {new_mode.name}")

    # ------------------------------------------------------------------ control loop

    def signal_handler(self, signum, frame):
        """Handle shutdown signals"""
        log_info(self.logger, "Shutdown signal received, cleaning up...")
        self.running = False
        raise KeyboardInterrupt

    def handle_command(self, line):
        """Apply one console command; returns text to show (or None)"""
        line = line.strip().lower()
        cc = self.call_control
        if not line:
            return None
        if all(ch in DIAL_KEYS for ch in line):
            for key in line:
                cc.press_key(key)
            return f"Number: {cc.staged_number()}"
        if line in ('q', 'quit', 'exit'):
            self.running = False
            return None
        if line in ('g', 'gesture'):
            return f"Mode: {self.arbiter.toggle_gesture().name}"
        if line in ('v', 'voice'):
            return f"Mode: {self.arbiter.toggle_voice().name}"
        if line == 'call':
            if not cc.staged_number():
                return "Dial a number first"
            cc.dial(cc.staged_number())
            return f"Calling {cc.staged_number()}"
        if line == 'hangup':
            cc.hangup()
            return None
        if line == 'del':
            return f"Number: {cc.delete_last_digit()}"
        if line == 'clear':
            cc.clear_number()
            return "Number cleared"
        if line == 'status':
            call = cc.active_call_number()
            return (f"Mode: {self.arbiter.mode.name} | Number: {cc.staged_number() or '-'} | "
                    f"Call: {call or '-'} | Hand: {'yes' if self.gesture.hand_present else 'no'}")
        if line == 'contacts':
            rows = [f"  {'*' if c.favorite else ' '} {c.name}: {c.phone_number}" for c in cc.contacts.contacts]
            return "\n".join(rows) or "No contacts"
        if line == 'recents':
            rows = [f"  {log.type:8s} {log.name or log.phone_number} ({log.duration}s)"
                    for log in cc.call_logs.call_logs[:10]]
            return "\n".join(rows) or "No recent calls"
        if line in ('h', 'help', '?'):
            return HELP
        return f"Unknown command: {line} (type 'help')"

    def run(self):
        """Main control loop"""
        signal.signal(signal.SIGTERM, self.signal_handler)
        self.gesture.start()
        self.voice.start()
        print(HELP)
        try:
            while self.running:
                prompt = 'gesture' if self.arbiter.mode == InputMode.GESTURE_ACTIVE else (
                    'voice' if self.arbiter.mode == InputMode.VOICE_ACTIVE else 'dial')
                try:
                    line = input(f"[{prompt}] > ")
                except EOFError:
                    break
                try:
                    output = self.handle_command(line)
                except ValueError as e:
                    output = str(e)
                if output:
                    print(output)
        except KeyboardInterrupt:
            log_info(self.logger, "Interrupted by user")
        finally:
            self.cleanup()

    def cleanup(self):
        """Cleanup all resources"""
        log_info(self.logger, "Cleaning up...")

        for name in ('gesture', 'voice'):
            try:
                getattr(self, name).stop(timeout=config.BACKEND_TIMEOUT + 1)
            except Exception as e:
                log_warning(self.logger, f"Error stopping {name} sampler: {e}", "Cleanup")

        for device in (self.camera, self.microphone):
            try:
                device.stop()
            except Exception as e:
                log_warning(self.logger, f"Error releasing {type(device).__name__}: {e}", "Cleanup")

        if self.call_control.active_call_number():
            self.call_control.hangup()

        log_info(self.logger, "Cleanup complete")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Genie Dialer gesture/voice input core")
    parser.add_argument('--simulate', action='store_true',
                        help='use random fake detectors instead of camera, microphone and OpenAI')
    parser.add_argument('--debug', action='store_true', help='enable debug logging')
    parser.add_argument('--data-dir', default=None, help='where contacts and call logs are stored')
    args = parser.parse_args(argv)

    if args.debug:
        config.DEBUG_MODE = True

    simulate = args.simulate or config.SIMULATE
    if not simulate and not config.OPENAI_API_KEY:
        print("ERROR: OPENAI_API_KEY not set in environment!")
        print("Create a .env file with: OPENAI_API_KEY=your_key (or run with --simulate)")
        return 1

    system = GenieDialerSystem(simulate=simulate, data_dir=args.data_dir)
    system.run()
    return 0


if __name__ == '__main__':
    sys.exit(main())
