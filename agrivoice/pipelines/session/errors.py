"""Errors raised by the session pipeline to its callers."""

from __future__ import annotations


class InvalidSubmissionError(ValueError):
    """Raised by `submit` for empty audio or an unsupported language code."""


class SessionNotFoundError(LookupError):
    """Raised when no interaction exists for the requested session id."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class SessionTimeoutError(TimeoutError):
    """Raised when `await_completion` runs out of attempts while still processing."""

    def __init__(self, session_id: str, attempts: int) -> None:
        super().__init__(
            f"Session {session_id} still processing after {attempts} attempts"
        )
        self.session_id = session_id
        self.attempts = attempts


class StageFailure(RuntimeError):
    """A pipeline stage could not complete; carries the stage name for the audit record."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message

    @property
    def reason(self) -> str:
        return str(self)[:512]


__all__ = [
    "InvalidSubmissionError",
    "SessionNotFoundError",
    "SessionTimeoutError",
    "StageFailure",
]
