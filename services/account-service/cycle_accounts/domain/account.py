from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class LastPeriod:
    """Start and end of the most recent period, as entered by the user."""

    start_date: str
    end_date: str


@dataclass(slots=True)
class Account:
    """Aggregate root for a user's credentials and cycle profile."""

    account_id: str
    username: str
    email: str
    password_digest: str = field(repr=False)
    created_at: datetime
    date_of_birth: str | None = None
    cycle_duration_days: int | None = None
    period_duration_days: int | None = None
    height_cm: int | None = None
    weight_kg: int | None = None
    last_period: LastPeriod | None = None
    preferences: list[str] | None = None
