from __future__ import annotations


class TalkbackError(Exception):
    """Base class for every failure the voice loop can report."""


class ConfigError(TalkbackError):
    pass


class TriggerError(TalkbackError):
    pass


class ProcessError(TalkbackError):
    """An external capture/playback process failed to start, accept input or exit cleanly."""


class ApiError(TalkbackError):
    """Non-success response from a provider. Keeps the full body for diagnosis."""

    def __init__(self, endpoint: str, status: int, body: str):
        self.endpoint = endpoint
        self.status = status
        self.body = body
        super().__init__(f"{endpoint} failed with status {status}: {body}")


class ResponseShapeError(TalkbackError):
    """The provider answered 2xx but the body is not what we expect."""

    def __init__(self, endpoint: str, detail: str, body: str):
        self.endpoint = endpoint
        self.body = body
        super().__init__(f"{endpoint}: {detail}. Body: {body}")
