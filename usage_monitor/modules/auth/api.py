from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from usage_monitor.core.config.settings import get_settings
from usage_monitor.core.errors import dashboard_error
from usage_monitor.dependencies import AuthContext, get_auth_context
from usage_monitor.modules.auth.schemas import CredentialsRequest, PasswordChangeRequest, SessionResponse
from usage_monitor.modules.auth.service import (
    SESSION_COOKIE,
    AuthValidationError,
    CurrentUser,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
)
from usage_monitor.modules.monitor.store import UsageStore

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_response(user: CurrentUser | None) -> SessionResponse:
    if user is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(authenticated=True, user_id=user.id, email=user.email)


def _with_session_cookie(user: CurrentUser, session_id: str) -> JSONResponse:
    response = JSONResponse(status_code=200, content=_session_response(user).model_dump(mode="json", by_alias=True))
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_id,
        max_age=get_settings().session_ttl_seconds,
        httponly=True,
        samesite="lax",
    )
    return response


@router.get("/session", response_model=SessionResponse)
async def get_auth_session(
    request: Request,
    context: AuthContext = Depends(get_auth_context),
) -> SessionResponse:
    user = await context.service.get_current_user(request.cookies.get(SESSION_COOKIE))
    return _session_response(user)


@router.post("/signup", response_model=SessionResponse)
async def sign_up(
    payload: CredentialsRequest = Body(...),
    context: AuthContext = Depends(get_auth_context),
) -> JSONResponse:
    try:
        user, session_id = await context.service.sign_up(payload.email, payload.password)
    except AuthValidationError as exc:
        return JSONResponse(status_code=400, content=dashboard_error("invalid_credentials_format", str(exc)))
    except EmailAlreadyRegisteredError as exc:
        return JSONResponse(status_code=409, content=dashboard_error("email_exists", str(exc)))
    store = UsageStore(context.session, user.id, account_count=get_settings().account_count)
    await store.initialize_defaults()
    return _with_session_cookie(user, session_id)


@router.post("/login", response_model=SessionResponse)
async def log_in(
    payload: CredentialsRequest = Body(...),
    context: AuthContext = Depends(get_auth_context),
) -> JSONResponse:
    try:
        user, session_id = await context.service.log_in(payload.email, payload.password)
    except (AuthValidationError, InvalidCredentialsError):
        return JSONResponse(
            status_code=401,
            content=dashboard_error("invalid_credentials", "Invalid email or password"),
        )
    return _with_session_cookie(user, session_id)


@router.post("/logout")
async def log_out(
    request: Request,
    context: AuthContext = Depends(get_auth_context),
) -> JSONResponse:
    context.service.log_out(request.cookies.get(SESSION_COOKIE))
    response = JSONResponse(status_code=200, content={"status": "logged_out"})
    response.delete_cookie(key=SESSION_COOKIE)
    return response


@router.post("/password")
async def change_password(
    request: Request,
    payload: PasswordChangeRequest = Body(...),
    context: AuthContext = Depends(get_auth_context),
) -> JSONResponse:
    try:
        await context.service.change_password(
            request.cookies.get(SESSION_COOKIE),
            payload.current_password,
            payload.new_password,
        )
    except InvalidCredentialsError as exc:
        return JSONResponse(status_code=401, content=dashboard_error("invalid_credentials", str(exc)))
    except AuthValidationError as exc:
        return JSONResponse(status_code=400, content=dashboard_error("invalid_password", str(exc)))
    return JSONResponse(status_code=200, content={"status": "ok"})
