"""Account service orchestrating registration, sign-in, and profile updates."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from .account import Account, LastPeriod
from .contracts import NewAccount, RegistrationInput, RegistrationReceipt, SignInResult
from .errors import (
    AccountNotFound,
    EmailAlreadyRegistered,
    InvalidInput,
    InvalidPassword,
    PasswordMismatch,
    PasswordPolicyViolation,
)
from ..security.passwords import PasswordHasher, meets_password_policy
from ..security.tokens import TokenCodec

logger = logging.getLogger(__name__)

MIN_PREFERENCES = 3


class AccountStore(Protocol):
    """Persistence operations the service relies on."""

    def create_account(self, payload: NewAccount) -> Account | None: ...

    def get_account(self, account_id: str) -> Account | None: ...

    def find_by_email(self, email: str) -> Account | None: ...

    def save_account(self, account: Account) -> None: ...

    def list_accounts(self) -> list[Account]: ...


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountService:
    """Account workflows backed by a document store.

    Every call re-reads the account from the store; nothing is cached between
    calls. Concurrent updates to the same account are last-write-wins.
    """

    def __init__(self, repository: AccountStore, hasher: PasswordHasher, tokens: TokenCodec) -> None:
        """Store dependencies used to orchestrate persistence and token issuance."""
        self._repository = repository
        self._hasher = hasher
        self._tokens = tokens

    def register(self, payload: RegistrationInput) -> RegistrationReceipt:
        """Create an account after checking email uniqueness and the password rules."""
        email = normalize_email(payload.email)
        if self._repository.find_by_email(email) is not None:
            raise EmailAlreadyRegistered()
        if not meets_password_policy(payload.password):
            raise PasswordPolicyViolation()
        if payload.password != payload.confirm_password:
            raise PasswordMismatch()

        account = self._repository.create_account(
            NewAccount(
                username=payload.username,
                email=email,
                password_digest=self._hasher.hash(payload.password),
            )
        )
        if account is None:
            # lost a race with a concurrent registration for the same email
            raise EmailAlreadyRegistered()
        logger.info("registered account %s", account.account_id)
        return RegistrationReceipt(username=account.username, email=account.email)

    def authenticate(self, email: str, password: str) -> SignInResult:
        """Verify credentials and issue a one-hour session token."""
        account = self._repository.find_by_email(normalize_email(email))
        if account is None:
            raise AccountNotFound("User does not exist")
        if not self._hasher.verify(password, account.password_digest):
            logger.info("failed sign-in for account %s", account.account_id)
            raise InvalidPassword()
        token = self._tokens.issue(user_id=account.account_id, email=account.email)
        return SignInResult(token=token)

    def authorize(self, token: str | None) -> Account:
        """Resolve a bearer token to the account it was issued for."""
        claims = self._tokens.decode(token)
        account = self._repository.get_account(claims.user_id)
        if account is None:
            raise AccountNotFound()
        return account

    def set_date_of_birth(self, token: str | None, date_of_birth: str) -> Account:
        def apply(account: Account) -> None:
            account.date_of_birth = date_of_birth

        return self._update(token, apply)

    def set_cycle_and_period(
        self, token: str | None, cycle_duration_days: int, period_duration_days: int
    ) -> Account:
        """Overwrite the cycle and period lengths together."""

        def apply(account: Account) -> None:
            account.cycle_duration_days = cycle_duration_days
            account.period_duration_days = period_duration_days

        return self._update(token, apply)

    def set_height(self, token: str | None, height_cm: int) -> Account:
        def apply(account: Account) -> None:
            account.height_cm = height_cm

        return self._update(token, apply)

    def set_weight(self, token: str | None, weight_kg: int) -> Account:
        def apply(account: Account) -> None:
            account.weight_kg = weight_kg

        return self._update(token, apply)

    def set_last_period(self, token: str | None, start_date: str, end_date: str) -> Account:
        def apply(account: Account) -> None:
            account.last_period = LastPeriod(start_date=start_date, end_date=end_date)

        return self._update(token, apply)

    def set_preferences(self, token: str | None, preferences: list[str]) -> Account:
        """Replace the preference tags; at least three are required."""

        def apply(account: Account) -> None:
            if len(preferences) < MIN_PREFERENCES:
                raise InvalidInput("You must select at least 3 preferences.")
            account.preferences = list(preferences)

        return self._update(token, apply)

    def list_accounts(self) -> list[Account]:
        return self._repository.list_accounts()

    def get_account(self, account_id: str | None = None, token: str | None = None) -> Account:
        """Look up an account by identifier, or by bearer token when no identifier is given."""
        if account_id:
            account = self._repository.get_account(account_id)
            if account is None:
                raise AccountNotFound()
            return account
        if token:
            return self.authorize(token)
        raise InvalidInput("Either an id or a token is required.")

    def _update(self, token: str | None, apply: Callable[[Account], None]) -> Account:
        account = self.authorize(token)
        apply(account)
        self._repository.save_account(account)
        return account
