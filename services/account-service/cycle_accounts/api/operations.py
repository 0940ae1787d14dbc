"""Named query/mutation operations served from the single operations endpoint.

Each operation declares a pydantic model for its variables and a handler that
calls :class:`~cycle_accounts.domain.service.AccountService` and shapes the
response. :func:`execute` runs one operation and always returns an
:class:`OperationResult`; typed account failures become tagged errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictInt, ValidationError
from pydantic.alias_generators import to_camel

from ..domain.account import Account
from ..domain.contracts import RegistrationInput
from ..domain.errors import AccountError, ErrorKind, InvalidInput
from ..domain.service import AccountService

logger = logging.getLogger(__name__)


class WireModel(BaseModel):
    """Base for camelCase request and response payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -- variables ---------------------------------------------------------------


class SignupVariables(WireModel):
    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str
    confirm_password: str


class SigninVariables(WireModel):
    email: str
    password: str


class TokenVariables(WireModel):
    token: str | None = None


class DateOfBirthVariables(TokenVariables):
    dob: str


class CycleAndPeriodVariables(TokenVariables):
    cycle_duration: StrictInt
    period_duration: StrictInt


class HeightVariables(TokenVariables):
    height: StrictInt


class WeightVariables(TokenVariables):
    weight: StrictInt


class LastPeriodVariables(TokenVariables):
    start_date: str
    end_date: str


class PreferencesVariables(TokenVariables):
    preferences: list[str]


class NoVariables(WireModel):
    pass


class SpecificUserVariables(TokenVariables):
    id: str | None = None


# -- responses ---------------------------------------------------------------


class SignupResponse(WireModel):
    username: str
    email: str
    message: str


class SigninResponse(WireModel):
    token: str
    message: str


class LastPeriodResponse(WireModel):
    start_date: str | None = None
    end_date: str | None = None


class ProfileSnapshot(WireModel):
    """Profile fields shared by every account-shaped response."""

    id: str
    username: str
    email: str
    dob: str | None = None
    cycle_duration: int | None = None
    period_duration: int | None = None
    height: int | None = None
    weight: int | None = None

    @classmethod
    def snapshot_fields(cls, account: Account) -> dict[str, Any]:
        return {
            "id": account.account_id,
            "username": account.username,
            "email": account.email,
            "dob": account.date_of_birth,
            "cycle_duration": account.cycle_duration_days,
            "period_duration": account.period_duration_days,
            "height": account.height_cm,
            "weight": account.weight_kg,
        }


class UserResponse(ProfileSnapshot):
    """Account returned by single-field profile mutations."""

    last_period: LastPeriodResponse | None = None
    preferences: list[str] | None = None

    @classmethod
    def from_domain(cls, account: Account) -> "UserResponse":
        last_period = None
        if account.last_period is not None:
            last_period = LastPeriodResponse(
                start_date=account.last_period.start_date,
                end_date=account.last_period.end_date,
            )
        return cls(
            **cls.snapshot_fields(account),
            last_period=last_period,
            preferences=account.preferences,
        )


class MarkLastPeriodResponse(ProfileSnapshot):
    start_date: str
    end_date: str


class ChoosePreferencesResponse(ProfileSnapshot):
    preferences: list[str] | None = None


class UserSummary(ProfileSnapshot):
    """Flattened account view returned by the user queries."""

    start_date: str | None = None
    end_date: str | None = None
    preferences: list[str] | None = None

    @classmethod
    def from_domain(cls, account: Account) -> "UserSummary":
        period = account.last_period
        return cls(
            **cls.snapshot_fields(account),
            start_date=period.start_date if period else None,
            end_date=period.end_date if period else None,
            preferences=account.preferences,
        )


# -- envelope ----------------------------------------------------------------


class OperationRequest(BaseModel):
    operation: str
    variables: dict[str, Any] = Field(default_factory=dict)


class OperationError(BaseModel):
    code: ErrorKind
    message: str


class OperationResult(BaseModel):
    """Tagged outcome of one operation: either ``data`` or ``error`` is set."""

    operation: str
    ok: bool
    data: Any = None
    error: OperationError | None = None

    @classmethod
    def success(cls, operation: str, data: Any) -> "OperationResult":
        return cls(operation=operation, ok=True, data=data)

    @classmethod
    def failure(cls, operation: str, exc: AccountError) -> "OperationResult":
        return cls(
            operation=operation,
            ok=False,
            error=OperationError(code=exc.kind, message=exc.message),
        )


# -- registry ----------------------------------------------------------------

Handler = Callable[[AccountService, Any], Any]


@dataclass(frozen=True, slots=True)
class Operation:
    name: str
    kind: Literal["query", "mutation"]
    variables: type[WireModel]
    handler: Handler

    @property
    def accepts_token(self) -> bool:
        return "token" in self.variables.model_fields


OPERATIONS: dict[str, Operation] = {}


def operation(name: str, kind: Literal["query", "mutation"], variables: type[WireModel]):
    """Register ``handler`` under ``name`` in :data:`OPERATIONS`."""

    def decorator(handler: Handler) -> Handler:
        OPERATIONS[name] = Operation(name=name, kind=kind, variables=variables, handler=handler)
        return handler

    return decorator


@operation("signup", "mutation", SignupVariables)
def _signup(service: AccountService, args: SignupVariables) -> SignupResponse:
    receipt = service.register(
        RegistrationInput(
            username=args.username,
            email=args.email,
            password=args.password,
            confirm_password=args.confirm_password,
        )
    )
    return SignupResponse(username=receipt.username, email=receipt.email, message=receipt.message)


@operation("signin", "mutation", SigninVariables)
def _signin(service: AccountService, args: SigninVariables) -> SigninResponse:
    result = service.authenticate(args.email, args.password)
    return SigninResponse(token=result.token, message=result.message)


@operation("createUserDOB", "mutation", DateOfBirthVariables)
def _create_user_dob(service: AccountService, args: DateOfBirthVariables) -> UserResponse:
    return UserResponse.from_domain(service.set_date_of_birth(args.token, args.dob))


@operation("userCycleAndPeriodLength", "mutation", CycleAndPeriodVariables)
def _cycle_and_period(service: AccountService, args: CycleAndPeriodVariables) -> UserResponse:
    account = service.set_cycle_and_period(args.token, args.cycle_duration, args.period_duration)
    return UserResponse.from_domain(account)


@operation("addHeight", "mutation", HeightVariables)
def _add_height(service: AccountService, args: HeightVariables) -> UserResponse:
    return UserResponse.from_domain(service.set_height(args.token, args.height))


@operation("addWeight", "mutation", WeightVariables)
def _add_weight(service: AccountService, args: WeightVariables) -> UserResponse:
    return UserResponse.from_domain(service.set_weight(args.token, args.weight))


@operation("markLastPeriod", "mutation", LastPeriodVariables)
def _mark_last_period(service: AccountService, args: LastPeriodVariables) -> MarkLastPeriodResponse:
    account = service.set_last_period(args.token, args.start_date, args.end_date)
    return MarkLastPeriodResponse(
        **ProfileSnapshot.snapshot_fields(account),
        start_date=args.start_date,
        end_date=args.end_date,
    )


@operation("choosePreferences", "mutation", PreferencesVariables)
def _choose_preferences(
    service: AccountService, args: PreferencesVariables
) -> ChoosePreferencesResponse:
    account = service.set_preferences(args.token, args.preferences)
    return ChoosePreferencesResponse(
        **ProfileSnapshot.snapshot_fields(account),
        preferences=account.preferences,
    )


@operation("getAllUsers", "query", NoVariables)
def _get_all_users(service: AccountService, args: NoVariables) -> list[UserSummary]:
    return [UserSummary.from_domain(account) for account in service.list_accounts()]


@operation("getSpecificUser", "query", SpecificUserVariables)
def _get_specific_user(service: AccountService, args: SpecificUserVariables) -> UserSummary:
    return UserSummary.from_domain(service.get_account(account_id=args.id, token=args.token))


# -- execution ---------------------------------------------------------------


def execute(
    service: AccountService,
    request: OperationRequest,
    bearer_token: str | None = None,
) -> OperationResult:
    """Validate variables, run the named operation, and wrap the outcome.

    ``bearer_token`` fills in the ``token`` variable for operations that accept
    one when the caller did not pass it explicitly.
    """
    name = request.operation
    try:
        op = OPERATIONS.get(name)
        if op is None:
            raise InvalidInput(f"Unknown operation: {name}")
        logger.debug("executing %s %s", op.kind, name)

        variables = dict(request.variables)
        if op.accepts_token and not variables.get("token") and bearer_token:
            variables["token"] = bearer_token
        args = _parse_variables(op, variables)
        data = op.handler(service, args)
    except AccountError as exc:
        logger.info("operation %s failed with %s", name, exc.code)
        return OperationResult.failure(name, exc)
    return OperationResult.success(name, _dump(data))


def _parse_variables(op: Operation, variables: dict[str, Any]) -> WireModel:
    try:
        return op.variables.model_validate(variables)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'variables'}: {error['msg']}"
            for error in exc.errors()
        )
        raise InvalidInput(f"Invalid variables for {op.name}: {details}") from exc


def _dump(data: BaseModel | list[BaseModel]) -> Any:
    if isinstance(data, list):
        return [item.model_dump(by_alias=True, mode="json") for item in data]
    return data.model_dump(by_alias=True, mode="json")
