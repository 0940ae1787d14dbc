"""Typed failures raised by the account workflows.

Each exception carries an :class:`ErrorKind` so the API layer can report a
stable code instead of relying on message text.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    conflict = "CONFLICT"
    invalid_credential_format = "INVALID_CREDENTIAL_FORMAT"
    credential_mismatch = "CREDENTIAL_MISMATCH"
    not_found = "NOT_FOUND"
    invalid_credential = "INVALID_CREDENTIAL"
    unauthorized = "UNAUTHORIZED"
    validation_error = "VALIDATION_ERROR"


class AccountError(Exception):
    """Base class for every failure surfaced to API callers."""

    kind: ErrorKind = ErrorKind.validation_error
    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return self.kind.value


class EmailAlreadyRegistered(AccountError):
    kind = ErrorKind.conflict
    default_message = "Email is already registered"


class PasswordPolicyViolation(AccountError):
    kind = ErrorKind.invalid_credential_format
    default_message = (
        "Password must be at least 6 characters long and include at least one letter, "
        "one number, and one special character"
    )


class PasswordMismatch(AccountError):
    kind = ErrorKind.credential_mismatch
    default_message = "Passwords do not match"


class AccountNotFound(AccountError):
    kind = ErrorKind.not_found
    default_message = "User not found."


class InvalidPassword(AccountError):
    kind = ErrorKind.invalid_credential
    default_message = "Invalid password"


class AuthenticationFailed(AccountError):
    kind = ErrorKind.unauthorized
    default_message = "Authentication failed, invalid token."


class InvalidInput(AccountError):
    kind = ErrorKind.validation_error
