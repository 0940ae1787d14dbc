"""Database repository for account documents."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from psycopg.rows import tuple_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from .domain.account import Account, LastPeriod
from .domain.contracts import NewAccount

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    document JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL
)
"""

_SELECT_COLUMNS = "account_id, document, created_at"


def account_to_document(account: Account) -> dict[str, Any]:
    """Serialise every mutable and immutable account field into a JSON document."""
    last_period = None
    if account.last_period is not None:
        last_period = {
            "start_date": account.last_period.start_date,
            "end_date": account.last_period.end_date,
        }
    return {
        "username": account.username,
        "email": account.email,
        "password_digest": account.password_digest,
        "date_of_birth": account.date_of_birth,
        "cycle_duration_days": account.cycle_duration_days,
        "period_duration_days": account.period_duration_days,
        "height_cm": account.height_cm,
        "weight_kg": account.weight_kg,
        "last_period": last_period,
        "preferences": list(account.preferences) if account.preferences is not None else None,
    }


def account_from_document(account_id: str, document: dict[str, Any], created_at: datetime) -> Account:
    """Rebuild the domain ``Account`` from a stored document."""
    raw_period = document.get("last_period")
    last_period = None
    if raw_period:
        last_period = LastPeriod(
            start_date=raw_period.get("start_date"),
            end_date=raw_period.get("end_date"),
        )
    preferences = document.get("preferences")
    return Account(
        account_id=account_id,
        username=document["username"],
        email=document["email"],
        password_digest=document["password_digest"],
        created_at=created_at,
        date_of_birth=document.get("date_of_birth"),
        cycle_duration_days=document.get("cycle_duration_days"),
        period_duration_days=document.get("period_duration_days"),
        height_cm=document.get("height_cm"),
        weight_kg=document.get("weight_kg"),
        last_period=last_period,
        preferences=list(preferences) if preferences is not None else None,
    )


class AccountRepository:
    """Postgres-backed account store keeping one JSONB document per account."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def ensure_schema(self) -> None:
        """Create the ``accounts`` table when it does not exist yet."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_SCHEMA_SQL)
            conn.commit()
        logger.info("accounts table ready")

    def create_account(self, payload: NewAccount) -> Account | None:
        """Insert a new account, returning ``None`` when the email is already taken."""
        account = Account(
            account_id=str(uuid.uuid4()),
            username=payload.username,
            email=payload.email,
            password_digest=payload.password_digest,
            created_at=datetime.now(timezone.utc),
        )
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO accounts (account_id, email, document, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (email) DO NOTHING
                    RETURNING {_SELECT_COLUMNS}
                    """,
                    (
                        account.account_id,
                        account.email,
                        Jsonb(account_to_document(account)),
                        account.created_at,
                        account.created_at,
                    ),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            return None
        return self._map_record(row)

    def get_account(self, account_id: str) -> Account | None:
        """Fetch an account by identifier or return ``None``."""
        return self._fetch_one("account_id = %s", account_id)

    def find_by_email(self, email: str) -> Account | None:
        """Fetch the account registered under ``email`` or return ``None``."""
        return self._fetch_one("email = %s", email)

    def save_account(self, account: Account) -> None:
        """Overwrite the stored document with the full state of ``account``."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE accounts
                    SET document = %s, updated_at = %s
                    WHERE account_id = %s
                    """,
                    (
                        Jsonb(account_to_document(account)),
                        datetime.now(timezone.utc),
                        account.account_id,
                    ),
                )
            conn.commit()

    def list_accounts(self) -> list[Account]:
        """Return every stored account in creation order."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"SELECT {_SELECT_COLUMNS} FROM accounts ORDER BY created_at, account_id"
                )
                rows = cur.fetchall()
        return [self._map_record(row) for row in rows]

    def _fetch_one(self, where: str, value: str) -> Account | None:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT {_SELECT_COLUMNS} FROM accounts WHERE {where}", (value,))
                row = cur.fetchone()
        if not row:
            return None
        return self._map_record(row)

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return account_from_document(row[0], row[1], row[2])
