"""FastAPI entrypoint for transaction, dashboard, profile, carbon and report endpoints."""

from __future__ import annotations

import logging
from datetime import date
from functools import lru_cache

from fastapi import FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse, Response

from backend.auth.otp import verify_otp
from backend.auth.supabase_auth import UnauthorizedError, get_user_from_bearer_token, verify_password
from backend.factory import build_profile_service, build_transaction_service
from backend.services.carbon_tips import CarbonTipsUnavailableError, NoSpendingDataError
from backend.services.profile_service import ProfileService
from backend.services.transaction_service import TransactionService
from shared import config as _config
from shared.models import (
    ActiveTypeFilter,
    CarbonFootprintResult,
    CarbonTipsResult,
    DashboardSummary,
    OtpVerifyRequest,
    OtpVerifyResult,
    PasswordVerifyRequest,
    PasswordVerifyResult,
    ProfileRecord,
    ProfileUpdateRequest,
    TransactionCreateRequest,
    TransactionPage,
    TransactionRecord,
    TransactionUpdateRequest,
)


logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_transaction_service() -> TransactionService:
    """Create and cache the transaction service once per process."""

    return build_transaction_service()


@lru_cache(maxsize=1)
def get_profile_service() -> ProfileService:
    """Create and cache the profile service once per process."""

    return build_profile_service()


def _extract_bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    prefix = "Bearer "
    if not authorization.startswith(prefix):
        raise HTTPException(status_code=401, detail="Invalid Authorization header")
    token = authorization[len(prefix) :].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return token


def _resolve_authenticated_user(authorization: str | None) -> tuple[str, str | None]:
    """Resolve authenticated user id and email from authorization header."""

    token = _extract_bearer_token(authorization)
    try:
        user_payload = get_user_from_bearer_token(token)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail="Unauthorized") from exc

    user_id = user_payload.get("id")
    if not isinstance(user_id, str):
        raise HTTPException(status_code=401, detail="Unauthorized")

    email_value = user_payload.get("email")
    email = email_value if isinstance(email_value, str) else None
    return user_id, email


def _http_error_from_value_error(exc: ValueError) -> HTTPException:
    message = str(exc)
    status_code = 404 if "not found" in message.lower() else 400
    return HTTPException(status_code=status_code, detail=message)


def _check_password(email: str | None, password: str) -> bool:
    if not password.strip():
        raise HTTPException(status_code=400, detail="Password is required")
    if not email:
        raise HTTPException(status_code=401, detail="Unable to verify user")
    try:
        return verify_password(email=email, password=password)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail="Unable to verify user") from exc


app = FastAPI(title="Sustainable Finance Manager API")

ALLOW_ORIGINS = _config.cors_allow_origins()


@app.middleware("http")
async def log_http_requests(request: Request, call_next):
    """Log incoming requests, HTTP status codes and unexpected errors."""

    logger.info("http_request_received method=%s path=%s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "http_request_failed method=%s path=%s",
            request.method,
            request.url.path,
        )
        raise

    logger.info(
        "http_response_sent method=%s path=%s status_code=%s",
        request.method,
        request.url.path,
        response.status_code,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info("cors_allow_origins=%s", ALLOW_ORIGINS)


@app.exception_handler(Exception)
async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Return a JSON 500 response for unhandled exceptions."""

    logger.exception(
        "unhandled_exception method=%s path=%s exception_type=%s message=%s",
        request.method,
        request.url.path,
        type(exc).__name__,
        str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.get("/health")
def health() -> dict[str, str]:
    """Healthcheck endpoint."""

    return {"status": "ok"}


@app.get("/transactions", response_model=TransactionPage)
def list_transactions(
    authorization: str | None = Header(default=None),
    query: str = "",
    active_type: ActiveTypeFilter = Query(default=ActiveTypeFilter.ALL, alias="type"),
    page: int = 1,
    page_size: int | None = Query(default=None, ge=1, le=100),
) -> TransactionPage:
    """Return one page of visible transactions filtered by type and search text."""

    user_id, _ = _resolve_authenticated_user(authorization)
    return get_transaction_service().list_transactions(
        user_id,
        query=query,
        active_type=active_type,
        page=page,
        page_size=page_size or _config.transactions_page_size(),
    )


@app.post("/transactions", response_model=TransactionRecord, status_code=201)
def create_transaction(
    payload: TransactionCreateRequest,
    authorization: str | None = Header(default=None),
) -> TransactionRecord:
    user_id, _ = _resolve_authenticated_user(authorization)
    return get_transaction_service().create_transaction(user_id, payload)


@app.post("/transactions/hidden", response_model=list[TransactionRecord])
def list_hidden_transactions(
    payload: PasswordVerifyRequest,
    authorization: str | None = Header(default=None),
) -> list[TransactionRecord]:
    """Return hidden transactions once the user has re-entered their password."""

    user_id, email = _resolve_authenticated_user(authorization)
    if not _check_password(email, payload.password):
        logger.info("hidden_transactions_password_rejected user_id=%s", user_id)
        raise HTTPException(status_code=403, detail="Incorrect password")
    return get_transaction_service().hidden_transactions(user_id)


@app.patch("/transactions/{transaction_id}", response_model=TransactionRecord)
def update_transaction(
    transaction_id: str,
    payload: TransactionUpdateRequest,
    authorization: str | None = Header(default=None),
) -> TransactionRecord:
    user_id, _ = _resolve_authenticated_user(authorization)
    try:
        return get_transaction_service().update_transaction(user_id, transaction_id, payload)
    except ValueError as exc:
        raise _http_error_from_value_error(exc) from exc


@app.post("/transactions/{transaction_id}/hide")
def hide_transaction(transaction_id: str, authorization: str | None = Header(default=None)) -> dict[str, bool]:
    user_id, _ = _resolve_authenticated_user(authorization)
    try:
        get_transaction_service().hide_transaction(user_id, transaction_id)
    except ValueError as exc:
        raise _http_error_from_value_error(exc) from exc
    return {"ok": True}


@app.post("/transactions/{transaction_id}/unhide")
def unhide_transaction(transaction_id: str, authorization: str | None = Header(default=None)) -> dict[str, bool]:
    user_id, _ = _resolve_authenticated_user(authorization)
    try:
        get_transaction_service().unhide_transaction(user_id, transaction_id)
    except ValueError as exc:
        raise _http_error_from_value_error(exc) from exc
    return {"ok": True}


@app.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: str, authorization: str | None = Header(default=None)) -> Response:
    user_id, _ = _resolve_authenticated_user(authorization)
    try:
        get_transaction_service().delete_transaction(user_id, transaction_id)
    except ValueError as exc:
        raise _http_error_from_value_error(exc) from exc
    return Response(status_code=204)


@app.get("/dashboard/summary", response_model=DashboardSummary)
def dashboard_summary(authorization: str | None = Header(default=None)) -> DashboardSummary:
    user_id, _ = _resolve_authenticated_user(authorization)
    monthly_budget = get_profile_service().monthly_budget(user_id)
    return get_transaction_service().dashboard_summary(user_id, monthly_budget=monthly_budget)


@app.get("/profile", response_model=ProfileRecord)
def get_profile(authorization: str | None = Header(default=None)) -> ProfileRecord:
    user_id, _ = _resolve_authenticated_user(authorization)
    try:
        return get_profile_service().get_profile(user_id)
    except ValueError as exc:
        raise _http_error_from_value_error(exc) from exc


@app.patch("/profile", response_model=ProfileRecord)
def update_profile(
    payload: ProfileUpdateRequest,
    authorization: str | None = Header(default=None),
) -> ProfileRecord:
    """Update name, email, mobile number or monthly budget of the caller's profile."""

    user_id, _ = _resolve_authenticated_user(authorization)
    try:
        return get_profile_service().update_profile(user_id, payload)
    except ValueError as exc:
        raise _http_error_from_value_error(exc) from exc


@app.get("/carbon/footprint", response_model=CarbonFootprintResult)
def carbon_footprint(authorization: str | None = Header(default=None)) -> CarbonFootprintResult:
    user_id, _ = _resolve_authenticated_user(authorization)
    return get_transaction_service().carbon_footprint(user_id)


@app.post("/carbon/tips", response_model=CarbonTipsResult)
def carbon_tips(authorization: str | None = Header(default=None)) -> CarbonTipsResult:
    """Ask the language model for tips tailored to recent spending."""

    user_id, _ = _resolve_authenticated_user(authorization)
    try:
        return get_transaction_service().carbon_tips(user_id)
    except NoSpendingDataError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except CarbonTipsUnavailableError as exc:
        logger.warning("carbon_tips_unavailable user_id=%s reason=%s", user_id, exc)
        raise HTTPException(status_code=503, detail="Failed to generate personalized tips") from exc


@app.get("/reports/transactions.pdf")
def transactions_report_pdf(
    authorization: str | None = Header(default=None),
    query: str = "",
    active_type: ActiveTypeFilter = Query(default=ActiveTypeFilter.ALL, alias="type"),
) -> Response:
    user_id, _ = _resolve_authenticated_user(authorization)
    pdf_bytes = get_transaction_service().export_report(user_id, query=query, active_type=active_type)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="financial-report-{date.today().isoformat()}.pdf"'},
    )


@app.post("/auth/verify-password", response_model=PasswordVerifyResult)
def verify_password_endpoint(
    payload: PasswordVerifyRequest,
    authorization: str | None = Header(default=None),
) -> PasswordVerifyResult:
    user_id, email = _resolve_authenticated_user(authorization)
    valid = _check_password(email, payload.password)
    logger.info("password_verification_completed user_id=%s valid=%s", user_id, valid)
    return PasswordVerifyResult(valid=valid)


@app.post("/auth/verify-otp", response_model=OtpVerifyResult)
def verify_otp_endpoint(payload: OtpVerifyRequest) -> OtpVerifyResult:
    result = verify_otp(payload.otp)
    logger.info("otp_verification_completed user_id=%s verified=%s", payload.user_id, result.verified)
    return result
