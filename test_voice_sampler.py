import pytest

from errors import BackendTimeout, BackendUnavailable, MalformedResponse
from events import CommandLabel, InputMode, VoiceCommandEvent
from simulated_backends import ScriptedCommandInterpreter, ScriptedSpeechPipeline, SilentMicrophone
from voice_sampler import VoiceSampler


@pytest.fixture
def commands():
    return []


@pytest.fixture
def microphone():
    return SilentMicrophone()


def make_sampler(arbiter, speech, commands, microphone=None, interpreter=None, **kwargs):
    kwargs.setdefault('trigger_interval', 0.01)
    kwargs.setdefault('retry_interval', 0.01)
    kwargs.setdefault('trigger_clip_seconds', 3.5)
    kwargs.setdefault('command_clip_seconds', 5.0)
    return VoiceSampler(
        arbiter, microphone or SilentMicrophone(), speech,
        interpreter or ScriptedCommandInterpreter(),
        on_trigger=arbiter.on_voice_trigger,
        on_command=commands.append,
        **kwargs,
    )


def call(params=None):
    return VoiceCommandEvent(command=CommandLabel.CALL, params=params)


def test_period_follows_mode(arbiter, commands):
    sampler = make_sampler(arbiter, ScriptedSpeechPipeline(), commands,
                           trigger_interval=4.0, retry_interval=1.0)
    assert sampler.period_for(InputMode.IDLE) == 4.0
    assert sampler.period_for(InputMode.GESTURE_ACTIVE) == 4.0
    assert sampler.period_for(InputMode.VOICE_ACTIVE) == 1.0


def test_trigger_phrase_activates_voice_mode(arbiter, commands, microphone):
    sampler = make_sampler(arbiter, ScriptedSpeechPipeline(['ok hey genie']), commands, microphone)

    sampler.tick()

    assert arbiter.mode == InputMode.VOICE_ACTIVE
    assert microphone.recordings == [3.5]
    assert commands == []


def test_other_speech_does_not_trigger(arbiter, commands):
    sampler = make_sampler(arbiter, ScriptedSpeechPipeline(['call john', '']), commands)

    sampler.tick()
    sampler.tick()

    assert arbiter.mode == InputMode.IDLE


def test_trigger_during_gesture_mode_switches_gesture_off(arbiter, commands):
    arbiter.toggle_gesture()
    sampler = make_sampler(arbiter, ScriptedSpeechPipeline(['Start Call please']), commands)

    sampler.tick()

    assert arbiter.mode == InputMode.VOICE_ACTIVE


def test_trigger_survives_hand_activating_gesture_mode_mid_clip(arbiter, commands):
    def hand_shows_up_while_speaking(clip):
        arbiter.on_hand_presence_changed(True)
        return 'hey genie'

    sampler = make_sampler(arbiter, ScriptedSpeechPipeline([hand_shows_up_while_speaking]), commands)
    sampler.tick()

    assert arbiter.mode == InputMode.VOICE_ACTIVE


def test_trigger_dropped_when_voice_turned_on_mid_clip(arbiter, commands):
    def voice_button_pressed(clip):
        arbiter.toggle_voice()
        return 'hey genie'

    triggers = []
    sampler = make_sampler(arbiter, ScriptedSpeechPipeline([voice_button_pressed]), commands)
    sampler.on_trigger = triggers.append

    assert sampler.listen_for_trigger(arbiter.generation) is None
    assert triggers == []
    assert arbiter.mode == InputMode.VOICE_ACTIVE


def test_trigger_backend_failure_keeps_listening(arbiter, commands):
    speech = ScriptedSpeechPipeline([BackendUnavailable('offline'), 'voice command'])
    sampler = make_sampler(arbiter, speech, commands)

    sampler.tick()
    assert arbiter.mode == InputMode.IDLE
    assert sampler.failure_count == 1

    sampler.tick()
    assert arbiter.mode == InputMode.VOICE_ACTIVE


def test_command_is_single_shot(arbiter, commands, microphone):
    arbiter.toggle_voice()
    interpreter = ScriptedCommandInterpreter([call('John')])
    sampler = make_sampler(arbiter, ScriptedSpeechPipeline(['call john']), commands,
                           microphone, interpreter)

    sampler.tick()

    assert [(e.command, e.params) for e in commands] == [(CommandLabel.CALL, 'John')]
    assert commands[0].generation is not None
    assert interpreter.calls == ['call john']
    assert microphone.recordings == [5.0]
    assert arbiter.mode == InputMode.IDLE


def test_unrecognised_command_still_ends_activation(arbiter, commands):
    arbiter.toggle_voice()
    sampler = make_sampler(arbiter, ScriptedSpeechPipeline(['what time is it']), commands)

    sampler.tick()

    assert [e.command for e in commands] == [CommandLabel.NONE]
    assert arbiter.mode == InputMode.IDLE


@pytest.mark.parametrize('error', [BackendTimeout('slow'), BackendUnavailable('down'),
                                   MalformedResponse('junk')])
def test_failed_attempt_keeps_voice_mode_for_retry(arbiter, commands, error):
    arbiter.toggle_voice()
    interpreter = ScriptedCommandInterpreter([error, call('5551234')])
    sampler = make_sampler(arbiter, ScriptedSpeechPipeline(default='call 555 1234'), commands,
                           interpreter=interpreter)

    sampler.tick()
    assert arbiter.mode == InputMode.VOICE_ACTIVE
    assert commands == []

    sampler.tick()
    assert [e.params for e in commands] == ['5551234']
    assert arbiter.mode == InputMode.IDLE


def test_empty_transcript_counts_as_failed_attempt(arbiter, commands):
    arbiter.toggle_voice()
    sampler = make_sampler(arbiter, ScriptedSpeechPipeline(['', '']), commands, max_attempts=3)

    sampler.tick()
    sampler.tick()
    assert arbiter.mode == InputMode.VOICE_ACTIVE

    sampler.tick()
    assert arbiter.mode == InputMode.IDLE
    assert commands == []


def test_retry_cap_turns_voice_mode_off(arbiter, commands):
    arbiter.toggle_voice()
    speech = ScriptedSpeechPipeline(default=BackendUnavailable('down'))
    sampler = make_sampler(arbiter, speech, commands, max_attempts=3)

    for _ in range(3):
        sampler.tick()

    assert arbiter.mode == InputMode.IDLE
    assert sampler.failure_count == 3
    assert len(speech.calls) == 3


def test_failure_count_resets_on_new_activation(arbiter, commands):
    arbiter.toggle_voice()
    sampler = make_sampler(arbiter, ScriptedSpeechPipeline(default=''), commands, max_attempts=3)
    sampler.tick()
    sampler.tick()

    arbiter.toggle_voice()
    arbiter.toggle_voice()
    sampler.tick()
    sampler.tick()

    assert arbiter.mode == InputMode.VOICE_ACTIVE


def test_command_from_stale_activation_is_discarded(arbiter, commands):
    arbiter.toggle_voice()

    def user_switched_to_gesture(transcript):
        arbiter.toggle_gesture()
        return call('John')

    interpreter = ScriptedCommandInterpreter([user_switched_to_gesture])
    sampler = make_sampler(arbiter, ScriptedSpeechPipeline(['call john']), commands,
                           interpreter=interpreter)

    sampler.tick()

    assert commands == []
    assert arbiter.mode == InputMode.GESTURE_ACTIVE
