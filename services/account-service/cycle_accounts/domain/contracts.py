"""Domain-level request and result contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class RegistrationInput:
    """Raw sign-up fields submitted by a prospective user."""

    username: str
    email: str
    password: str = field(repr=False)
    confirm_password: str = field(repr=False)


@dataclass(slots=True)
class NewAccount:
    """Validated values the repository needs to insert an account."""

    username: str
    email: str
    password_digest: str = field(repr=False)


@dataclass(slots=True)
class RegistrationReceipt:
    username: str
    email: str
    message: str = "User registered successfully!"


@dataclass(slots=True)
class SignInResult:
    token: str
    message: str = "Sign in successful"
