from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest

from cycle_accounts.domain.account import Account
from cycle_accounts.domain.contracts import NewAccount
from cycle_accounts.domain.service import AccountService
from cycle_accounts.repository import account_from_document, account_to_document
from cycle_accounts.security.passwords import PasswordHasher
from cycle_accounts.security.tokens import TokenCodec

SECRET = "test-signing-secret-with-at-least-32-bytes"
ISSUER = "cycle.accounts.test"


class FakeRepository:
    """In-memory repository mimicking the Postgres document store.

    Accounts are kept as serialised documents so callers never share objects
    with the store, matching the real repository.
    """

    def __init__(self) -> None:
        self._rows: dict[str, tuple[dict, datetime]] = {}
        self.saves = 0

    def create_account(self, payload: NewAccount) -> Account | None:
        if self.find_by_email(payload.email) is not None:
            return None
        account = Account(
            account_id=str(uuid.uuid4()),
            username=payload.username,
            email=payload.email,
            password_digest=payload.password_digest,
            created_at=datetime.now(timezone.utc),
        )
        self._rows[account.account_id] = (account_to_document(account), account.created_at)
        return self.get_account(account.account_id)

    def get_account(self, account_id: str) -> Account | None:
        row = self._rows.get(account_id)
        if row is None:
            return None
        return account_from_document(account_id, *row)

    def find_by_email(self, email: str) -> Account | None:
        for account_id, (document, created_at) in self._rows.items():
            if document["email"] == email:
                return account_from_document(account_id, document, created_at)
        return None

    def save_account(self, account: Account) -> None:
        self.saves += 1
        if account.account_id in self._rows:
            _, created_at = self._rows[account.account_id]
            self._rows[account.account_id] = (account_to_document(account), created_at)

    def list_accounts(self) -> list[Account]:
        return [
            account_from_document(account_id, document, created_at)
            for account_id, (document, created_at) in self._rows.items()
        ]


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(SECRET, issuer=ISSUER, ttl_seconds=3600)


@pytest.fixture
def service(repository: FakeRepository, codec: TokenCodec) -> AccountService:
    # bcrypt's minimum cost keeps the suite fast
    return AccountService(repository, PasswordHasher(rounds=4), codec)
