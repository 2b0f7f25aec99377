"""
Error kinds surfaced by the service.

Every failure that reaches a caller is one of three kinds:

- validation_failure: user-correctable input (missing rate, zero weight,
  mismatched passwords). Reported back, never retried.
- authorization_failure: missing/invalid session or owner mismatch on a
  protected resource. The client re-authenticates.
- collaborator_unavailable: the store or the mail server is unreachable or
  misconfigured.

They are raised once at the boundary that detects them (token decoding,
repositories, notifier) and rendered by a single exception handler in
``banani.main``.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation_failure"
    AUTHORIZATION = "authorization_failure"
    COLLABORATOR_UNAVAILABLE = "collaborator_unavailable"


class BananiError(Exception):
    """Base class for all service errors."""
    kind: ErrorKind
    status_code: int = 500

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "kind": self.kind.value,
            "code": self.code
        }


class ValidationFailure(BananiError):
    kind = ErrorKind.VALIDATION
    status_code = 422


class AuthorizationFailure(BananiError):
    kind = ErrorKind.AUTHORIZATION
    status_code = 401

    def __init__(self, message: str = "Could not validate credentials", code: Optional[str] = None):
        super().__init__(message, code)


class CollaboratorUnavailable(BananiError):
    kind = ErrorKind.COLLABORATOR_UNAVAILABLE
    status_code = 503

    def __init__(self, collaborator: str, message: str):
        super().__init__(message, code=f"{collaborator.upper()}_UNAVAILABLE")
        self.collaborator = collaborator
