"""
core/errors.py -- Domain error taxonomy shared by auth/, tasks/ and api/.

Stores and auth helpers raise these; api/main.py owns the single exception
handler that turns them into the {"error": {code, message}} envelope. Neither
auth/ nor tasks/ needs to know about HTTP beyond the status code carried here.

Layer rule: core/ is the kernel. No imports from api/, auth/, or tasks/.
"""

from __future__ import annotations


class PlannerError(Exception):
    """Base class for every error that maps to a client-facing response."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PlannerError):
    """Malformed or missing input."""

    status_code = 400
    code = "validation_error"


class ConflictError(PlannerError):
    """Duplicate email at registration.

    Conceptually a 409, but the existing browser client only distinguishes
    400 from 401, so it is reported as 400.
    """

    status_code = 400
    code = "email_taken"


class AuthenticationError(PlannerError):
    """Missing, invalid or expired session token."""

    status_code = 401
    code = "unauthorized"


class BadCredentialsError(AuthenticationError):
    """Login rejected. Same message whether the email or the password was wrong."""

    code = "bad_credentials"


class AccountNotFoundError(AuthenticationError):
    """Token was valid but its user no longer exists."""

    code = "account_not_found"


class NotFoundError(PlannerError):
    """Resource absent, or owned by somebody else."""

    status_code = 404
    code = "not_found"
