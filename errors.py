"""
Error types for the Genie Dialer input core

Backend and capture errors are recovered by the samplers (the tick is
skipped). DispatchRejected errors reach the user as a one-shot notice.
"""


class GenieError(Exception):
    """Base class for all input core errors"""


class BackendError(GenieError):
    """A recognition backend call did not produce a usable result"""


class BackendUnavailable(BackendError):
    """Network or service reachability failure"""


class BackendTimeout(BackendError):
    """No response within the configured bound"""


class MalformedResponse(BackendError):
    """Response does not parse to the expected schema"""


class CaptureError(GenieError):
    """Camera or microphone could not deliver a frame / clip"""


class DispatchRejected(GenieError):
    """A recognized command could not be turned into an action"""


class NoNumberToSave(DispatchRejected):
    def __init__(self, message="No number to save. Dial a number or make a call first."):
        super().__init__(message)


class ContactExists(DispatchRejected):
    def __init__(self, number, name):
        self.number = number
        self.name = name
        super().__init__(f"{number} is already in your contacts as {name}")
