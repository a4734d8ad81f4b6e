"""
Authentication router.
Handles login, token refresh, logout and the password flows.
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from menu_api.routers._common import (
    get_client_ip,
    get_current_user,
    get_optional_user,
    get_user_agent,
)
from menu_api.services.domain import AuthService, UserService
from menu_shared.config.settings import settings
from menu_shared.infrastructure.db import get_db
from menu_shared.security.auth import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    USER_INFO_COOKIE,
    access_token_ttl,
    get_token_from_request,
    is_browser_request,
    refresh_token_ttl,
)
from menu_shared.security.rate_limit import LOGIN_RATE_LIMIT, limiter
from menu_shared.utils.exceptions import ValidationError
from menu_shared.utils.responses import success_response
from menu_shared.utils.schemas import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    RefreshTokenRequest,
    ResetPasswordRequest,
)

router = APIRouter(prefix="/auth", tags=["auth"])

FORGOT_PASSWORD_MESSAGE = "Se o email existir, você receberá instruções para redefinir sua senha"


# =============================================================================
# Cookie session helpers
# =============================================================================


def set_session_cookies(response: Response, tokens: Any, user: Any) -> None:
    """
    Cookie session for browsers: HttpOnly access and refresh tokens plus a
    readable ``user_info`` cookie for client-side display.
    """
    options = {
        "secure": settings.cookie_secure,
        "samesite": settings.cookie_samesite,
        "domain": settings.cookie_domain or None,
    }
    response.set_cookie(
        ACCESS_COOKIE, tokens.access_token, httponly=True, max_age=access_token_ttl(), **options
    )
    response.set_cookie(
        REFRESH_COOKIE, tokens.refresh_token, httponly=True, max_age=refresh_token_ttl(), **options
    )
    response.set_cookie(
        USER_INFO_COOKIE,
        json.dumps({"id": user.id, "name": user.name, "email": user.email, "role": user.role}),
        httponly=False,
        max_age=access_token_ttl(),
        **options,
    )


def clear_session_cookies(response: Response) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE, USER_INFO_COOKIE):
        response.delete_cookie(name, domain=settings.cookie_domain or None)


async def lenient_logout_body(request: Request) -> LogoutRequest | None:
    """Logout body, or None when it is missing, not JSON or not the expected shape."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return LogoutRequest.model_validate_json(raw)
    except PydanticValidationError:
        return None


def _auth_service(request: Request, db: Session) -> AuthService:
    return AuthService(db, ip_address=get_client_ip(request), user_agent=get_user_agent(request))


# =============================================================================
# Session
# =============================================================================


@router.post("/login")
@limiter.limit(LOGIN_RATE_LIMIT)
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """
    Authenticate a staff member and return the user with an access and refresh token.

    Browser requests also receive the tokens as cookies.
    """
    result = _auth_service(request, db).login(body.email, body.password)
    if is_browser_request(request):
        set_session_cookies(response, result["tokens"], result["user"])
    return success_response(result, "Login realizado com sucesso")


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    body: LogoutRequest | None = Depends(lenient_logout_body),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    """Always succeeds, even with a missing or invalid token."""
    refresh_token = (body.refresh_token if body else None) or request.cookies.get(REFRESH_COOKIE)
    _auth_service(request, db).logout(refresh_token, user["user_id"] if user else None)
    clear_session_cookies(response)
    return success_response(None, "Logout realizado com sucesso")


@router.post("/logout-all")
def logout_all(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    _auth_service(request, db).logout_all(user["user_id"])
    clear_session_cookies(response)
    return success_response(None, "Logout realizado em todos os dispositivos")


@router.post("/refresh")
def refresh(
    request: Request,
    response: Response,
    body: RefreshTokenRequest | None = None,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """
    Rotate a refresh token. The token is read from the body, or from the
    refresh_token cookie when no body is sent.
    """
    refresh_token = body.refresh_token if body else request.cookies.get(REFRESH_COOKIE)
    if not refresh_token:
        raise ValidationError("Refresh token é obrigatório", field="refresh_token")

    result = _auth_service(request, db).refresh(refresh_token)
    if is_browser_request(request):
        set_session_cookies(response, result["tokens"], result["user"])
    return success_response({"tokens": result["tokens"]}, "Tokens atualizados com sucesso")


@router.get("/me")
def me(
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return success_response(
        UserService(db, user).get_by_id(user["user_id"]), "Usuário autenticado"
    )


@router.get("/status")
def session_status(
    request: Request,
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    if user is None:
        if get_token_from_request(request):
            return success_response({"authenticated": False}, "Token inválido")
        return success_response({"authenticated": False}, "Não autenticado")

    return success_response(
        {
            "authenticated": True,
            "user": {
                "id": user["user_id"],
                "name": user["name"],
                "email": user["email"],
                "role": user["role"],
            },
        },
        "Autenticado",
    )


# =============================================================================
# Passwords
# =============================================================================


@router.post("/forgot-password")
def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Same answer whether or not the account exists."""
    token = _auth_service(request, db).forgot_password(body.email)
    data = {"reset_token": token} if token and settings.is_development else None
    return success_response(data, FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password")
def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    _auth_service(request, db).reset_password(body.token, body.new_password)
    return success_response(None, "Senha redefinida com sucesso. Faça login novamente.")


@router.post("/change-password")
def change_password(
    request: Request,
    response: Response,
    body: ChangePasswordRequest,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    _auth_service(request, db).change_password(
        user["user_id"], body.current_password, body.new_password
    )
    clear_session_cookies(response)
    return success_response(None, "Senha alterada com sucesso. Faça login novamente.")
