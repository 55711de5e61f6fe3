"""Error types raised by configuration and policy code.

Service-layer errors carry an HTTP status and a short machine-readable
code; ``notesapp.main`` renders them as ``{"detail": code}``.
"""

from fastapi import status


class ConfigurationError(RuntimeError):
    """Deployment problem detected at startup (missing secret, bad URL...)."""


class ServiceError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "bad_request"

    def __init__(self, code: str | None = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(self.code)


class InvalidInputError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_body"


class PolicyViolation(ServiceError):
    """The caller is identified and authorized, but the action is refused."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class QuotaExceededError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "free_limit_reached"
