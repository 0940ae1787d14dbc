from __future__ import annotations

import time

import pytest

from cycle_accounts.domain.contracts import RegistrationInput
from cycle_accounts.domain.errors import (
    AccountNotFound,
    AuthenticationFailed,
    EmailAlreadyRegistered,
    ErrorKind,
    InvalidInput,
    InvalidPassword,
    PasswordMismatch,
    PasswordPolicyViolation,
)
from cycle_accounts.security.tokens import TokenCodec

from conftest import ISSUER, SECRET


def _register(service, email="a@x.com", password="abc12$", confirm=None, username="alice"):
    return service.register(
        RegistrationInput(
            username=username,
            email=email,
            password=password,
            confirm_password=password if confirm is None else confirm,
        )
    )


def _sign_in(service, email="a@x.com", password="abc12$") -> str:
    return service.authenticate(email, password).token


def test_register_returns_receipt_without_digest(service, repository):
    receipt = _register(service)
    assert receipt.username == "alice"
    assert receipt.email == "a@x.com"
    assert receipt.message == "User registered successfully!"

    stored = repository.find_by_email("a@x.com")
    assert stored.password_digest != "abc12$"
    assert stored.password_digest.startswith("$2")
    assert "abc12$" not in repr(stored)
    assert stored.height_cm is None
    assert stored.preferences is None


def test_duplicate_email_is_a_conflict(service, repository):
    _register(service)
    with pytest.raises(EmailAlreadyRegistered) as excinfo:
        _register(service, username="other")
    assert excinfo.value.kind is ErrorKind.conflict
    assert len([a for a in repository.list_accounts() if a.email == "a@x.com"]) == 1


def test_duplicate_check_runs_before_password_rules(service):
    _register(service)
    with pytest.raises(EmailAlreadyRegistered):
        _register(service, password="weak")


def test_lost_insert_race_is_a_conflict(service, repository, monkeypatch):
    monkeypatch.setattr(repository, "create_account", lambda payload: None)
    with pytest.raises(EmailAlreadyRegistered):
        _register(service)


def test_password_policy_is_enforced(service):
    with pytest.raises(PasswordPolicyViolation):
        _register(service, password="abc123")
    receipt = _register(service, password="abc12$")
    assert receipt.email == "a@x.com"


def test_confirmation_must_match(service, repository):
    with pytest.raises(PasswordMismatch) as excinfo:
        _register(service, password="abc12$", confirm="abc12@")
    assert excinfo.value.message == "Passwords do not match"
    assert repository.list_accounts() == []


def test_email_is_normalised(service):
    _register(service, email="  Alice@X.com ")
    token = _sign_in(service, email="alice@x.com")
    assert service.get_account(token=token).email == "alice@x.com"


def test_signin_token_carries_account_identity(service, repository, codec):
    _register(service)
    account = repository.find_by_email("a@x.com")

    result = service.authenticate("a@x.com", "abc12$")
    assert result.message == "Sign in successful"

    claims = codec.decode(result.token)
    assert claims.user_id == account.account_id
    assert claims.email == "a@x.com"
    assert claims.expires_at - claims.issued_at == 3600


def test_signin_unknown_email(service):
    with pytest.raises(AccountNotFound) as excinfo:
        service.authenticate("nobody@x.com", "abc12$")
    assert excinfo.value.message == "User does not exist"


def test_wrong_password_never_locks_out(service):
    _register(service)
    for _ in range(5):
        with pytest.raises(InvalidPassword):
            service.authenticate("a@x.com", "wrong1$")
    assert _sign_in(service)


MUTATIONS = {
    "dob": lambda service, token: service.set_date_of_birth(token, "1990-04-01"),
    "cycle": lambda service, token: service.set_cycle_and_period(token, 28, 5),
    "height": lambda service, token: service.set_height(token, 170),
    "weight": lambda service, token: service.set_weight(token, 60),
    "last_period": lambda service, token: service.set_last_period(token, "2024-01-01", "2024-01-05"),
    "preferences": lambda service, token: service.set_preferences(token, ["a", "b", "c"]),
}


@pytest.mark.parametrize("name", sorted(MUTATIONS))
def test_token_older_than_an_hour_is_rejected(service, repository, name):
    _register(service)
    account = repository.find_by_email("a@x.com")
    stale = TokenCodec(SECRET, issuer=ISSUER, ttl_seconds=3600, clock=lambda: time.time() - 7200)
    token = stale.issue(user_id=account.account_id, email=account.email)

    with pytest.raises(AuthenticationFailed) as excinfo:
        MUTATIONS[name](service, token)
    assert excinfo.value.kind is ErrorKind.unauthorized
    assert repository.saves == 0


@pytest.mark.parametrize("name", sorted(MUTATIONS))
def test_mutations_require_a_token(service, name):
    with pytest.raises(AuthenticationFailed):
        MUTATIONS[name](service, None)


def test_token_signed_with_another_key_is_rejected(service, repository):
    _register(service)
    account = repository.find_by_email("a@x.com")
    forged = TokenCodec("another-secret-that-is-also-32-bytes!", issuer=ISSUER).issue(
        user_id=account.account_id, email=account.email
    )
    with pytest.raises(AuthenticationFailed):
        service.set_height(forged, 170)


def test_token_for_missing_account(service, codec):
    token = codec.issue(user_id="does-not-exist", email="ghost@x.com")
    with pytest.raises(AccountNotFound) as excinfo:
        service.set_weight(token, 60)
    assert excinfo.value.message == "User not found."


def test_preferences_need_three_entries(service, repository):
    _register(service)
    token = _sign_in(service)

    with pytest.raises(InvalidInput) as excinfo:
        service.set_preferences(token, ["a", "b"])
    assert excinfo.value.kind is ErrorKind.validation_error
    assert repository.saves == 0

    service.set_preferences(token, ["a", "b", "c"])
    assert service.get_account(token=token).preferences == ["a", "b", "c"]


def test_preferences_are_replaced_as_a_unit(service):
    _register(service)
    token = _sign_in(service)
    service.set_preferences(token, ["a", "b", "c", "d"])
    service.set_preferences(token, ["x", "y", "z"])
    assert service.get_account(token=token).preferences == ["x", "y", "z"]


def test_last_period_visible_in_listing(service):
    _register(service)
    token = _sign_in(service)
    service.set_last_period(token, "2024-01-01", "2024-01-05")

    (account,) = service.list_accounts()
    assert account.last_period.start_date == "2024-01-01"
    assert account.last_period.end_date == "2024-01-05"


def test_cycle_and_period_set_together(service):
    _register(service)
    token = _sign_in(service)
    account = service.set_cycle_and_period(token, 30, 4)
    assert (account.cycle_duration_days, account.period_duration_days) == (30, 4)


def test_set_height_is_idempotent(service, repository):
    _register(service)
    token = _sign_in(service)
    service.set_height(token, 170)
    service.set_height(token, 170)

    accounts = repository.list_accounts()
    assert len(accounts) == 1
    assert accounts[0].height_cm == 170


def test_numeric_fields_are_not_range_checked(service):
    _register(service)
    token = _sign_in(service)
    assert service.set_weight(token, -1).weight_kg == -1


def test_get_account_prefers_id_over_token(service, repository):
    _register(service, email="a@x.com")
    _register(service, email="b@x.com", username="bob")
    alice = repository.find_by_email("a@x.com")
    bob_token = _sign_in(service, email="b@x.com")

    assert service.get_account(account_id=alice.account_id, token=bob_token).username == "alice"
    assert service.get_account(token=bob_token).username == "bob"


def test_get_account_by_id_needs_no_token(service, repository):
    _register(service)
    account = repository.find_by_email("a@x.com")
    assert service.get_account(account_id=account.account_id).email == "a@x.com"


def test_get_account_errors(service):
    with pytest.raises(InvalidInput):
        service.get_account()
    with pytest.raises(AccountNotFound):
        service.get_account(account_id="missing")
    with pytest.raises(AuthenticationFailed):
        service.get_account(token="not-a-token")
