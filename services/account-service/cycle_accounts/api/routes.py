"""HTTP route definitions for the account service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
from prometheus_client import Counter

from ..domain.errors import ErrorKind
from ..domain.service import AccountService
from .operations import OPERATIONS, OperationRequest, OperationResult, execute

router = APIRouter(prefix="/v1")

OPERATIONS_TOTAL = Counter(
    "account_operations_total",
    "Operations executed through the operations endpoint.",
    ["operation", "outcome"],
)

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.conflict: status.HTTP_409_CONFLICT,
    ErrorKind.invalid_credential_format: status.HTTP_400_BAD_REQUEST,
    ErrorKind.credential_mismatch: status.HTTP_400_BAD_REQUEST,
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.invalid_credential: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.unauthorized: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.validation_error: status.HTTP_400_BAD_REQUEST,
}


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header, if present."""
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


@router.post("/operations", response_model=OperationResult)
def run_operation(
    payload: OperationRequest,
    service: AccountService = Depends(get_service),
    token: str | None = Depends(bearer_token),
) -> JSONResponse:
    """Execute one named query or mutation and return its tagged result."""
    result = execute(service, payload, bearer_token=token)
    outcome = "ok" if result.ok else result.error.code.value
    # unknown names share one label to keep cardinality bounded
    label = payload.operation if payload.operation in OPERATIONS else "unknown"
    OPERATIONS_TOTAL.labels(operation=label, outcome=outcome).inc()

    status_code = status.HTTP_200_OK
    if result.error is not None:
        status_code = ERROR_STATUS[result.error.code]
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))
