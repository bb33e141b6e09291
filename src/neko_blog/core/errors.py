"""Domain error taxonomy.

Services raise these; the HTTP boundary maps each error's ``code`` onto the
response envelope. Storage errors that are not listed here (for example
``sqlalchemy.exc.OperationalError``) propagate unchanged and are reported as
server errors by the boundary.
"""

from __future__ import annotations

from enum import IntEnum


class ResponseCode(IntEnum):
    """Status codes carried in the body of every API response."""

    SUCCESS = 200
    PARAMETER_ERROR = 400
    AUTH_ERROR = 401
    SERVER_ERROR = 500


class NekoError(Exception):
    """Base class for errors the API reports with a body-encoded status code."""

    code: ResponseCode = ResponseCode.SERVER_ERROR
    default_message = "internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ParameterError(NekoError):
    """The request was well-formed but cannot be applied as given."""

    code = ResponseCode.PARAMETER_ERROR
    default_message = "invalid parameter"


class TargetNotFoundError(ParameterError):
    """The engaged or referenced entity does not exist."""

    default_message = "target does not exist"

    def __init__(self, target_kind: str, target_id: object) -> None:
        self.target_kind = target_kind
        self.target_id = target_id
        super().__init__(f"{target_kind} does not exist")


class AlreadyEngagedError(ParameterError):
    """The actor already holds this engagement on the target."""

    def __init__(self, kind: str, target_kind: str) -> None:
        self.kind = kind
        self.target_kind = target_kind
        super().__init__(f"user has already {_past(kind)} this {target_kind}")


class NotEngagedError(ParameterError):
    """The actor does not hold this engagement on the target."""

    def __init__(self, kind: str, target_kind: str) -> None:
        self.kind = kind
        self.target_kind = target_kind
        super().__init__(f"user has not {_past(kind)} this {target_kind}")


class PermissionDeniedError(ParameterError):
    default_message = "operation not permitted on content owned by another user"


class AuthError(NekoError):
    code = ResponseCode.AUTH_ERROR
    default_message = "could not validate credentials"


class StorageUnavailableError(NekoError):
    """A backing store could not be reached; the caller may retry later."""

    code = ResponseCode.SERVER_ERROR
    default_message = "storage unavailable"


def _past(kind: str) -> str:
    return kind + "d" if kind.endswith("e") else kind + "ed"
