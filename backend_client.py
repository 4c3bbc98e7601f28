"""
Shared plumbing for the OpenAI-backed recognition clients
Client construction with a bounded timeout, error translation, JSON parsing
"""

import json
import os
from contextlib import contextmanager

import openai
from openai import OpenAI

import config
from errors import BackendTimeout, BackendUnavailable, MalformedResponse


def make_openai_client(api_key=None, timeout=None):
    """
    Build an OpenAI client that gives up after ``timeout`` seconds

    Retries are disabled: a failed tick is simply skipped and the next one
    tries again.
    """
    api_key = api_key or config.OPENAI_API_KEY or os.getenv('OPENAI_API_KEY')
    if not api_key:
        raise ValueError("OPENAI_API_KEY not found in environment variables!")
    return OpenAI(
        api_key=api_key,
        timeout=config.BACKEND_TIMEOUT if timeout is None else timeout,
        max_retries=0,
    )


@contextmanager
def openai_errors(service):
    """Translate openai exceptions into BackendError subclasses"""
    try:
        yield
    except openai.APITimeoutError as e:
        raise BackendTimeout(f"{service} timed out") from e
    except openai.APIConnectionError as e:
        raise BackendUnavailable(f"{service} unreachable: {e}") from e
    except openai.APIStatusError as e:
        raise BackendUnavailable(f"{service} returned HTTP {e.status_code}") from e
    except openai.APIError as e:
        raise BackendUnavailable(f"{service} error: {e}") from e


def message_text(response):
    """Text content of the first choice of a chat completion"""
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError) as e:
        raise MalformedResponse("Completion has no message content") from e
    if not content:
        raise MalformedResponse("Completion has empty content")
    return content


def parse_json_object(text):
    """
    Parse a JSON object out of a model reply

    Accepts bare JSON or JSON wrapped in a markdown code fence.

    Raises:
        MalformedResponse: not a JSON object
    """
    cleaned = text.strip()
    if cleaned.startswith('```'):
        cleaned = cleaned.strip('`')
        if cleaned.lower().startswith('json'):
            cleaned = cleaned[4:]
        cleaned = cleaned.strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"Reply is not JSON: {text!r}") from e
    if not isinstance(data, dict):
        raise MalformedResponse(f"Reply is not a JSON object: {text!r}")
    return data
