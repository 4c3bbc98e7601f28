"""
Speech Pipeline
Transcription (Google Web Speech or OpenAI Whisper) + command interpretation
(OpenAI GPT or keyword fallback)
Commands: CALL <name|number>, SAVE, DELETE, BLOCK
"""

import re
import socket

import speech_recognition as sr

import config
from backend_client import make_openai_client, message_text, openai_errors, parse_json_object
from errors import BackendTimeout, BackendUnavailable, MalformedResponse
from events import CommandLabel, VoiceCommandEvent
from logger import setup_logger, log_info, log_debug


def find_trigger_phrase(transcript, phrases=None):
    """
    Case-insensitive substring match of a transcript against the trigger phrases

    Returns:
        The matched phrase or None
    """
    if not transcript:
        return None
    text = transcript.lower()
    for phrase in phrases or config.TRIGGER_PHRASES:
        if phrase.lower() in text:
            return phrase
    return None


class GoogleSpeechPipeline:
    """Transcribes clips with the free Google Web Speech API (speech_recognition)"""

    def __init__(self, language=None, timeout=None):
        self.logger = setup_logger(__name__)
        self.language = language or config.SPEECH_LANGUAGE
        self.recognizer = sr.Recognizer()
        self.recognizer.operation_timeout = config.BACKEND_TIMEOUT if timeout is None else timeout

    def transcribe(self, clip):
        """
        Args:
            clip: speech_recognition.AudioData

        Returns:
            Transcribed text, "" if no speech could be understood
        """
        try:
            text = self.recognizer.recognize_google(clip, language=self.language)
        except sr.UnknownValueError:
            return ''
        except sr.RequestError as e:
            if 'timed out' in str(e).lower():
                raise BackendTimeout(f"Speech service timed out: {e}") from e
            raise BackendUnavailable(f"Speech service error: {e}") from e
        except (TimeoutError, socket.timeout) as e:
            raise BackendTimeout("Speech service timed out") from e
        return text or ''


class WhisperSpeechPipeline:
    """Transcribes clips with OpenAI Whisper"""

    def __init__(self, api_key=None, model=None, timeout=None, client=None):
        self.logger = setup_logger(__name__)
        self.model = model or config.OPENAI_TRANSCRIBE_MODEL
        self.client = client or make_openai_client(api_key, timeout)

    def transcribe(self, clip):
        with openai_errors("Whisper"):
            result = self.client.audio.transcriptions.create(
                model=self.model,
                file=('clip.wav', clip.get_wav_data()),
            )
        text = getattr(result, 'text', None)
        if text is None:
            raise MalformedResponse("Transcription has no text")
        return text.strip()


def parse_command_response(data, transcript=''):
    """
    Decode the interpreter JSON into a VoiceCommandEvent

    Raises:
        MalformedResponse: "command" missing
    """
    if 'command' not in data:
        raise MalformedResponse(f"Missing 'command' in interpreter reply: {sorted(data)}")
    command = CommandLabel.parse(data['command'])
    params = data.get('params')
    params = str(params).strip() if params is not None else ''
    return VoiceCommandEvent(command=command, params=params or None, transcript=transcript)


class OpenAICommandInterpreter:
    """Maps a transcript to {command, params} with an OpenAI chat model"""

    SYSTEM_PROMPT = """You are a voice command interpreter for a phone dialer app.
Map what the user said to exactly one command and return JSON only:
{"command": "call|save|delete|block|none", "params": "<string>"}

- call: place a call; params is the contact name or phone number spoken, or "" to call the dialed number
- save: save the current number as a contact; params is a phone number only if one was spoken
- delete: delete from the dialed number; params is ""
- block: block the current caller; params is ""
- none: anything else; params is ""

Examples:
"Call John" -> {"command": "call", "params": "John"}
"Call 555-1234" -> {"command": "call", "params": "555-1234"}
"Save this contact" -> {"command": "save", "params": ""}
"Delete this number" -> {"command": "delete", "params": ""}
"Block this caller" -> {"command": "block", "params": ""}"""

    def __init__(self, api_key=None, model=None, timeout=None, client=None):
        self.logger = setup_logger(__name__)
        self.model = model or config.OPENAI_COMMAND_MODEL
        self.client = client or make_openai_client(api_key, timeout)
        log_info(self.logger, f"Initialized with OpenAI API (model: {self.model})")

    def interpret(self, transcript):
        with openai_errors("Command interpreter"):
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.SYSTEM_PROMPT},
                    {"role": "user", "content": f"Interpret this command: '{transcript}'"},
                ],
                response_format={"type": "json_object"},
                temperature=0.1,  # Low temperature for consistent output
                max_tokens=40,
            )
        return parse_command_response(parse_json_object(message_text(response)), transcript)


class KeywordCommandInterpreter:
    """Offline interpreter: keyword matching, no network"""

    # Checked in order; "caller" must not read as "call"
    COMMANDS = (
        (re.compile(r'\bblock\b'), CommandLabel.BLOCK),
        (re.compile(r'\b(save|add)\b'), CommandLabel.SAVE),
        (re.compile(r'\b(delete|remove|erase|clear)\b'), CommandLabel.DELETE),
        (re.compile(r'\b(call|dial|phone|ring)\b'), CommandLabel.CALL),
    )
    CALL_TARGET = re.compile(r'\b(?:call|dial|phone|ring)\s+(.+)$', re.IGNORECASE)
    SPOKEN_NUMBER = re.compile(r'\+?\d[\d\s().-]{2,}\d')

    def __init__(self):
        self.logger = setup_logger(__name__)

    def interpret(self, transcript):
        text = (transcript or '').strip()
        lowered = text.lower()
        for pattern, command in self.COMMANDS:
            if pattern.search(lowered):
                return VoiceCommandEvent(command=command, params=self._params(command, text),
                                         transcript=transcript)
        log_debug(self.logger, f"No command keyword in '{transcript}'")
        return VoiceCommandEvent(command=CommandLabel.NONE, transcript=transcript)

    def _params(self, command, text):
        if command == CommandLabel.CALL:
            match = self.CALL_TARGET.search(text)
            if match is None:
                return None
            return match.group(1).strip(' .!?') or None
        if command == CommandLabel.SAVE:
            match = self.SPOKEN_NUMBER.search(text)
            return match.group(0).strip() if match else None
        return None


def make_speech_pipeline(engine=None):
    engine = engine or config.SPEECH_ENGINE
    if engine == 'whisper':
        return WhisperSpeechPipeline()
    if engine == 'google':
        return GoogleSpeechPipeline()
    raise ValueError(f"Unknown speech engine: {engine}")


def make_command_interpreter(kind=None):
    kind = kind or config.COMMAND_INTERPRETER
    if kind == 'openai':
        return OpenAICommandInterpreter()
    if kind == 'keyword':
        return KeywordCommandInterpreter()
    raise ValueError(f"Unknown command interpreter: {kind}")


if __name__ == '__main__':
    # Test voice recognition
    from capture import MicrophoneCapture

    print("Say one of: 'Call John', 'Call 555 1234', 'Save this contact', 'Delete', 'Block this caller'")
    print("Press Ctrl+C to exit")

    microphone = MicrophoneCapture()
    pipeline = make_speech_pipeline()
    interpreter = make_command_interpreter()
    try:
        while True:
            text = pipeline.transcribe(microphone.record(config.COMMAND_CLIP_SECONDS))
            print(f"Transcript: '{text}'")
            if find_trigger_phrase(text):
                print("✓ Trigger phrase")
            if text:
                event = interpreter.interpret(text)
                print(f"✓ Command: {event.command.value} {event.params or ''}")
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        microphone.stop()
