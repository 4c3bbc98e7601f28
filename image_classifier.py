"""
Image Classifier
Sends one still frame to a vision model and reads back hand presence + gesture
Gestures: CALL (point), HANGUP (open palm), SAVE (thumbs up), DELETE (fist)
"""

import base64

import config
from backend_client import make_openai_client, message_text, openai_errors, parse_json_object
from errors import MalformedResponse
from events import GestureEvent, GestureLabel
from logger import setup_logger, log_info


def parse_gesture_response(data):
    """
    Decode the classifier JSON into a GestureEvent

    Args:
        data: dict with "hand_detected" (bool) and "gesture" (label)

    Returns:
        GestureEvent; unknown labels become NONE

    Raises:
        MalformedResponse: required keys missing or wrong type
    """
    if 'hand_detected' not in data or 'gesture' not in data:
        raise MalformedResponse(f"Missing keys in classifier reply: {sorted(data)}")

    hand_detected = data['hand_detected']
    if isinstance(hand_detected, str):
        hand_detected = hand_detected.strip().lower() in ('true', 'yes')
    elif not isinstance(hand_detected, bool):
        raise MalformedResponse(f"hand_detected is not a boolean: {hand_detected!r}")

    gesture = GestureLabel.parse(data['gesture'])
    if not hand_detected:
        gesture = GestureLabel.NONE
    return GestureEvent(hand_present=hand_detected, gesture=gesture)


class OpenAIImageClassifier:
    """Classifies hand gestures in a still frame with an OpenAI vision model"""

    SYSTEM_PROMPT = """You are a hand gesture recognition AI for a calling app. Analyze the image and detect:

1. Is there a hand visible? (yes/no)
2. What gesture is being made?

Gestures to detect:
- "call": pointing finger (index finger extended)
- "hangup": open palm (all fingers extended)
- "save": thumbs up
- "delete": closed fist
- "none": no clear gesture or no hand

Respond with JSON only: {"hand_detected": true/false, "gesture": "call|hangup|save|delete|none"}

Be strict - only detect clear, obvious gestures. If unsure, return "none"."""

    def __init__(self, api_key=None, model=None, timeout=None, client=None):
        """
        Args:
            api_key: OpenAI API key (or None to use OPENAI_API_KEY env var)
            model: Vision-capable chat model
            timeout: Seconds before a request counts as BackendTimeout
            client: Pre-built OpenAI client (tests)
        """
        self.logger = setup_logger(__name__)
        self.model = model or config.OPENAI_VISION_MODEL
        self.client = client or make_openai_client(api_key, timeout)
        log_info(self.logger, f"Initialized with OpenAI API (model: {self.model})")

    def classify(self, image):
        """
        Args:
            image: JPEG bytes

        Returns:
            GestureEvent (generation unset)
        """
        encoded = base64.b64encode(image).decode('ascii')
        with openai_errors("Image classifier"):
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.SYSTEM_PROMPT},
                    {"role": "user", "content": [
                        {"type": "text", "text": "Analyze this image for hand gestures:"},
                        {"type": "image_url",
                         "image_url": {"url": f"data:image/jpeg;base64,{encoded}", "detail": "low"}},
                    ]},
                ],
                response_format={"type": "json_object"},
                temperature=0,
                max_tokens=30,
            )
        return parse_gesture_response(parse_json_object(message_text(response)))


if __name__ == '__main__':
    # Classify one frame from the default camera
    from capture import CameraCapture

    camera = CameraCapture()
    try:
        classifier = OpenAIImageClassifier()
        result = classifier.classify(camera.capture())
        print(f"Hand present: {result.hand_present}, gesture: {result.gesture.value}")
    finally:
        camera.stop()
