"""
api/routes/v1/auth.py -- Session endpoints.

Routes:
  POST /api/v1/auth/login            -- email/password -> access + refresh token
  POST /api/v1/auth/refresh          -- rotate refresh token -> new token pair
  POST /api/v1/auth/change-password  -- replace password, clears must_change_password
  GET  /api/v1/auth/me               -- current user info (requires auth)

Security:
  [H2] POST /login is rate-limited per IP (LOGIN_RATE_LIMIT).
  [C1] SessionService.validate_credentials() provides timing equalization --
       never inline a store lookup + verify here.
  [M5] Cache-Control: no-store on every response that carries tokens.
  Failures raise AuthError; the app-level handler renders the uniform 401.

Handlers are plain def (not async): bcrypt is CPU-bound and blocking, so
FastAPI runs them in its threadpool.

No `from __future__ import annotations` here: FastAPI must see real types
through the slowapi wrapper on login().
"""

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.limiter import LOGIN_RATE_LIMIT, limiter
from api.models import ChangePasswordRequest, LoginRequest, MeResponse, RefreshRequest, TokenResponse
from auth.dependencies import get_current_user
from auth.models import SessionTokens, User
from container import AuthServices

router = APIRouter()


def _token_response(tokens: SessionTokens) -> JSONResponse:
    resp = JSONResponse(status_code=200, content=TokenResponse.from_session(tokens).model_dump())
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.post("/auth/login", response_model=TokenResponse)
@limiter.limit(LOGIN_RATE_LIMIT)  # [H2]
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password.

    Unknown email and wrong password produce the same 401 body
    ("invalid_credentials") so the response never reveals which accounts exist.
    """
    services: AuthServices = request.app.state.services
    return _token_response(services.sessions.login(body.email, body.password))


@router.post("/auth/refresh", response_model=TokenResponse)
def refresh(request: Request, body: RefreshRequest) -> JSONResponse:
    """Exchange a refresh token for a new pair. The presented token stops working."""
    services: AuthServices = request.app.state.services
    return _token_response(services.sessions.refresh(body.refresh_token))


@router.post("/auth/change-password", status_code=204)
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
) -> Response:
    """Set a new password for the authenticated user."""
    services: AuthServices = request.app.state.services
    services.sessions.change_password(current_user.email, body.current_password, body.new_password)
    return Response(status_code=204)


@router.get("/auth/me", response_model=MeResponse)
async def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return identity information for the currently authenticated user."""
    return MeResponse(
        user_id=current_user.id,
        email=current_user.email,
        role=current_user.role,
        must_change_password=current_user.must_change_password,
    )
