"""
Capture sources for the samplers
CameraCapture grabs JPEG still frames with OpenCV,
MicrophoneCapture records fixed-length clips with speech_recognition
"""

import threading

import cv2
import speech_recognition as sr

import config
from errors import CaptureError
from logger import setup_logger, log_info, log_warning


class CameraCapture:
    """Grabs single still frames from a webcam and encodes them as JPEG"""

    def __init__(self, index=None, width=None, height=None,
                 jpeg_quality=None, flip_horizontal=None):
        self.logger = setup_logger(__name__)
        self.index = config.CAMERA_INDEX if index is None else index
        self.width = width or config.CAMERA_WIDTH
        self.height = height or config.CAMERA_HEIGHT
        self.jpeg_quality = jpeg_quality or config.CAMERA_JPEG_QUALITY
        self.flip_horizontal = config.CAMERA_FLIP_HORIZONTAL if flip_horizontal is None else flip_horizontal
        self.cap = None
        self._lock = threading.Lock()

    def open(self):
        """Open the camera device (done lazily on first capture)"""
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            raise CaptureError(f"Could not open camera {self.index}")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self.cap = cap
        log_info(self.logger, f"Camera {self.index} opened: {self.width}x{self.height}")

    def capture(self):
        """
        Capture one still frame

        Returns:
            JPEG-encoded frame as bytes

        Raises:
            CaptureError: camera missing or frame could not be read / encoded
        """
        with self._lock:
            if self.cap is None:
                self.open()
            ok, frame = self.cap.read()
            if not ok or frame is None:
                raise CaptureError("Camera returned no frame")

        if self.flip_horizontal:
            frame = cv2.flip(frame, 1)

        ok, buffer = cv2.imencode('.jpg', frame, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
        if not ok:
            raise CaptureError("Could not encode frame as JPEG")
        return buffer.tobytes()

    def stop(self):
        """Release the camera"""
        with self._lock:
            if self.cap is not None:
                self.cap.release()
                self.cap = None
        log_info(self.logger, "Camera released")


class MicrophoneCapture:
    """Records fixed-length audio clips from one microphone"""

    def __init__(self, device_index=None, sample_rate=None, ambient_noise_seconds=None):
        self.logger = setup_logger(__name__)
        self.device_index = config.MICROPHONE_DEVICE_INDEX if device_index is None else device_index
        self.sample_rate = sample_rate or config.MICROPHONE_SAMPLE_RATE
        self.ambient_noise_seconds = (config.AMBIENT_NOISE_SECONDS
                                      if ambient_noise_seconds is None else ambient_noise_seconds)
        self.recognizer = sr.Recognizer()
        self.microphone = None
        self._calibrated = False

    def open(self):
        try:
            self.microphone = sr.Microphone(device_index=self.device_index, sample_rate=self.sample_rate)
        except (OSError, AttributeError) as e:
            # AttributeError: PyAudio missing
            raise CaptureError(f"Could not open microphone {self.device_index}: {e}") from e

        if self.device_index is not None:
            names = sr.Microphone.list_microphone_names()
            if self.device_index < len(names):
                log_info(self.logger, f"Using microphone [{self.device_index}]: {names[self.device_index]}")
        else:
            log_info(self.logger, "Using default microphone")

    def record(self, seconds):
        """
        Record one clip

        Args:
            seconds: Clip length

        Returns:
            speech_recognition.AudioData

        Raises:
            CaptureError: microphone missing or stream failed
        """
        if self.microphone is None:
            self.open()
        try:
            with self.microphone as source:
                if not self._calibrated and self.ambient_noise_seconds > 0:
                    self.recognizer.adjust_for_ambient_noise(source, duration=self.ambient_noise_seconds)
                    self._calibrated = True
                return self.recognizer.record(source, duration=seconds)
        except OSError as e:
            # ALSA/PortAudio errors (e.g. 9988, device busy)
            log_warning(self.logger, str(e), "Microphone read failed")
            raise CaptureError(f"Microphone read failed: {e}") from e

    def stop(self):
        self.microphone = None
        log_info(self.logger, "Microphone released")
