"""
Configuration file for the Genie Dialer input core
Modify sampling periods, clip lengths, backend models and paths here
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables (.env next to the working directory)
load_dotenv()


def _env_flag(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_float(name, default):
    value = os.getenv(name)
    return float(value) if value else default


# Use fake recognition backends (no camera, microphone or network needed)
SIMULATE = _env_flag('GENIE_SIMULATE', False)
SIMULATION_SEED = None  # Set to an int for reproducible simulation runs

# Storage (contacts, call logs, block list)
DATA_DIR = Path(os.getenv('GENIE_DATA_DIR', Path.home() / '.genie_dialer')).expanduser()
CONTACTS_FILE = 'contacts.json'
CALL_LOGS_FILE = 'call_logs.json'
BLOCKED_FILE = 'blocked.json'

# Camera Configuration
CAMERA_INDEX = int(os.getenv('GENIE_CAMERA_INDEX', '0'))
CAMERA_WIDTH = 640
CAMERA_HEIGHT = 480
CAMERA_FLIP_HORIZONTAL = True  # Front camera preview is mirrored
CAMERA_JPEG_QUALITY = 30  # Still frames only need to be good enough for the classifier

# Gesture Sampler
GESTURE_SAMPLE_INTERVAL = 2.0  # Seconds between frames while gesture mode is active
GESTURE_IDLE_WATCH = True  # Watch for a hand while idle so it can auto-activate gesture mode
GESTURE_IDLE_WATCH_INTERVAL = 4.0  # Seconds between presence checks while idle

# Voice Sampler
MICROPHONE_DEVICE_INDEX = None  # None = default input device
MICROPHONE_SAMPLE_RATE = 16000
TRIGGER_PHRASES = ('start call', 'hey genie', 'voice command', 'call genie')
TRIGGER_SAMPLE_INTERVAL = 4.0  # Background trigger listening period
TRIGGER_CLIP_SECONDS = 3.5
COMMAND_CLIP_SECONDS = 5.0  # One longer clip per command attempt
COMMAND_RETRY_INTERVAL = 1.0  # Pause before retrying a failed command attempt
COMMAND_MAX_ATTEMPTS = 3  # Failed attempts per activation before voice mode turns itself off
AMBIENT_NOISE_SECONDS = 1.0

# Recognition backends
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')  # Set in .env file or environment variable
OPENAI_VISION_MODEL = os.getenv('GENIE_VISION_MODEL', 'gpt-4o-mini')
OPENAI_COMMAND_MODEL = os.getenv('GENIE_COMMAND_MODEL', 'gpt-4o-mini')
OPENAI_TRANSCRIBE_MODEL = 'whisper-1'
SPEECH_ENGINE = os.getenv('GENIE_SPEECH_ENGINE', 'google')  # 'google' or 'whisper'
SPEECH_LANGUAGE = 'en-US'
COMMAND_INTERPRETER = os.getenv('GENIE_COMMAND_INTERPRETER', 'openai')  # 'openai' or 'keyword'
BACKEND_TIMEOUT = _env_float('GENIE_BACKEND_TIMEOUT', 5.0)  # Bounded wait per backend call

# Logging
LOG_DIR = Path(os.getenv('GENIE_LOG_DIR', Path(__file__).parent / 'logs'))
LOG_TO_FILE = _env_flag('GENIE_LOG_TO_FILE', True)

# Debug Configuration
DEBUG_MODE = _env_flag('GENIE_DEBUG', False)  # Enable debug logging throughout system
DEBUG_GESTURE = False  # Log every gesture sampler tick
DEBUG_VOICE = False  # Log every transcript
DEBUG_STATE = True  # Log input mode transitions
