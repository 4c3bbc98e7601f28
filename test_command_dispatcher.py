import pytest

from call_control import CallLog, Contact
from command_dispatcher import CommandDispatcher, as_raw_number
from errors import ContactExists, NoNumberToSave
from events import (CallAction, CallActionKind, CommandLabel, GestureEvent, GestureLabel,
                    VoiceCommandEvent)


@pytest.fixture
def dispatcher(call_control):
    return CommandDispatcher(call_control)


def gesture(label, hand=True, generation=None):
    return GestureEvent(hand_present=hand, gesture=label, generation=generation)


def voice(command, params=None, generation=None):
    return VoiceCommandEvent(command=command, params=params, generation=generation)


@pytest.mark.parametrize('params, expected', [
    ('5550001111', '5550001111'),
    ('555-1234', '5551234'),
    ('+1 (555) 123 4567', '15551234567'),
    ('John', None),
    ('', None),
    (None, None),
])
def test_as_raw_number(params, expected):
    assert as_raw_number(params) == expected


# ---------------------------------------------------------------------- call

def test_voice_call_by_contact_name_dials_stored_number(dispatcher, call_control):
    action = dispatcher.dispatch(voice(CommandLabel.CALL, 'John'))

    assert action.kind == CallActionKind.DIAL
    assert action.target == '5551112222'
    assert call_control.active_call_number() == '5551112222'


def test_voice_call_name_match_is_case_insensitive_substring(dispatcher):
    action = dispatcher.resolve_voice_command(voice(CommandLabel.CALL, 'doe'))
    assert action.target == '5551112222'


def test_voice_call_with_raw_digits(dispatcher):
    action = dispatcher.resolve_voice_command(voice(CommandLabel.CALL, '5550001111'))
    assert action == CallAction(CallActionKind.DIAL, target='5550001111')


def test_voice_call_unknown_name_does_nothing(dispatcher, call_control):
    assert dispatcher.dispatch(voice(CommandLabel.CALL, 'Zelda')) is None
    assert call_control.active_call_number() is None


def test_voice_call_without_params_dials_staged_number(dispatcher, call_control):
    call_control.set_number('5553334444')
    action = dispatcher.resolve_voice_command(voice(CommandLabel.CALL))
    assert action.target == '5553334444'


def test_gesture_call_dials_staged_number(dispatcher, call_control):
    call_control.set_number('5553334444')
    action = dispatcher.dispatch(gesture(GestureLabel.CALL))
    assert action.kind == CallActionKind.DIAL
    assert call_control.active_call_number() == '5553334444'


def test_gesture_call_with_nothing_staged_does_nothing(dispatcher):
    assert dispatcher.dispatch(gesture(GestureLabel.CALL)) is None


# ---------------------------------------------------------------------- save

def test_voice_save_uses_staged_number(dispatcher, call_control):
    call_control.set_number('5551234567')
    action = dispatcher.dispatch(voice(CommandLabel.SAVE, ''))

    assert action.kind == CallActionKind.SAVE_CONTACT
    assert action.target == '5551234567'
    assert call_control.find_contact_by_number('5551234567').name == 'Contact 5551234567'


def test_gesture_save_falls_back_to_most_recent_call(dispatcher, call_control):
    call_control.call_logs.add(CallLog(phone_number='5550000000', timestamp=1.0))
    call_control.call_logs.add(CallLog(phone_number='5559876543', timestamp=2.0, name='Pizza'))

    action = dispatcher.dispatch(gesture(GestureLabel.SAVE))

    assert action.target == '5559876543'
    assert action.name == 'Pizza'


def test_gesture_save_with_no_number_anywhere(dispatcher, call_control):
    with pytest.raises(NoNumberToSave):
        dispatcher.dispatch(gesture(GestureLabel.SAVE))
    assert len(call_control.contacts.contacts) == 1


def test_voice_save_with_spoken_number(dispatcher, call_control):
    call_control.set_number('5551234567')
    action = dispatcher.resolve_voice_command(voice(CommandLabel.SAVE, '555 777 8888'))
    assert action.target == '5557778888'


def test_save_existing_contact_is_rejected(dispatcher, call_control):
    call_control.set_number('5551112222')
    with pytest.raises(ContactExists) as excinfo:
        dispatcher.dispatch(gesture(GestureLabel.SAVE))
    assert excinfo.value.name == 'John Doe'


# ---------------------------------------------------------------------- delete / hangup / block

@pytest.mark.parametrize('event', [
    gesture(GestureLabel.DELETE),
    voice(CommandLabel.DELETE),
])
def test_delete_removes_one_digit_on_both_channels(dispatcher, call_control, event):
    call_control.set_number('12345')
    action = dispatcher.dispatch(event)
    assert action.kind == CallActionKind.DELETE_DIGIT
    assert call_control.staged_number() == '1234'


def test_delete_with_empty_number_does_nothing(dispatcher):
    assert dispatcher.dispatch(gesture(GestureLabel.DELETE)) is None


def test_gesture_hangup_ends_call(dispatcher, call_control):
    call_control.dial('5551112222')
    action = dispatcher.dispatch(gesture(GestureLabel.HANGUP))
    assert action.kind == CallActionKind.HANGUP
    assert call_control.active_call_number() is None
    assert call_control.most_recent_call().phone_number == '5551112222'


def test_voice_block_targets_active_call(dispatcher, call_control):
    call_control.dial('5550009999')
    action = dispatcher.dispatch(voice(CommandLabel.BLOCK))
    assert action == CallAction(CallActionKind.BLOCK, target='5550009999')
    assert call_control.is_blocked('5550009999')
    assert call_control.active_call_number() is None


def test_voice_block_without_caller_does_nothing(dispatcher):
    assert dispatcher.dispatch(voice(CommandLabel.BLOCK)) is None


@pytest.mark.parametrize('event', [
    gesture(GestureLabel.NONE),
    gesture(GestureLabel.CALL, hand=False),
    voice(CommandLabel.NONE, 'what time is it'),
])
def test_no_action_for_none(dispatcher, call_control, event):
    call_control.set_number('5551234567')
    assert dispatcher.dispatch(event) is None
    assert call_control.active_call_number() is None


# ---------------------------------------------------------------------- staleness

def test_stale_events_are_dropped(call_control, arbiter):
    dispatcher = CommandDispatcher(call_control, arbiter)
    call_control.set_number('5551234567')
    arbiter.toggle_gesture()
    produced_in = arbiter.generation
    arbiter.toggle_gesture()  # gesture mode switched off meanwhile

    assert dispatcher.dispatch(gesture(GestureLabel.CALL, generation=produced_in)) is None
    assert dispatcher.dispatch(voice(CommandLabel.CALL, 'John', generation=produced_in)) is None
    assert call_control.active_call_number() is None


def test_current_events_are_dispatched(call_control, arbiter):
    dispatcher = CommandDispatcher(call_control, arbiter)
    arbiter.toggle_voice()
    action = dispatcher.dispatch(voice(CommandLabel.CALL, 'John', generation=arbiter.generation))
    assert action.target == '5551112222'


def test_unknown_event_type(dispatcher):
    with pytest.raises(TypeError):
        dispatcher.dispatch(Contact(name='x', phone_number='1'))


def test_save_number_that_only_shares_a_suffix_with_a_contact(dispatcher, call_control):
    call_control.set_number('1112222')

    action = dispatcher.dispatch(gesture(GestureLabel.SAVE))

    assert action.target == '1112222'
    assert call_control.find_contact_by_number('1112222').name == 'Contact 1112222'
