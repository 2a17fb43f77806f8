"""Error taxonomy shared by the auth, curriculum and progress layers."""

from __future__ import annotations

__all__ = [
    "CurriculumError",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "InvalidCredentials",
    "InvalidTrack",
    "ConcurrentUpdate",
    "InternalError",
]


class CurriculumError(Exception):
    """Base class for failures reported to API callers.

    ``status_code`` is the HTTP status the failure maps to and ``message``
    is the short text placed in the response ``detail``.
    """

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(CurriculumError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(CurriculumError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(CurriculumError):
    status_code = 404
    default_message = "Not found"


class InvalidCredentials(CurriculumError):
    status_code = 401
    default_message = "Invalid credentials"


class InvalidTrack(CurriculumError):
    status_code = 400
    default_message = "Unknown progress track"


class ConcurrentUpdate(CurriculumError):
    """The topic was written by someone else between our read and write-back."""

    status_code = 409
    default_message = "Topic was modified concurrently, reload and retry"


class InternalError(CurriculumError):
    status_code = 500
    default_message = "Server error"
