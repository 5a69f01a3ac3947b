"""
api/routes/accounts.py -- Registration, login, and password endpoints.

Routes:
  POST /register         -- create an account; 201
  POST /login            -- password login; returns a bearer token
  PUT  /update-password  -- change password (requires bearer token)
  POST /reset-password   -- set a new password without the current one

Security:
  POST /login is rate-limited per IP (LOGIN_RATE_LIMIT, default 10/minute).
  Cache-Control: no-store on login responses.
  POST /reset-password performs no proof of ownership. It can be switched off
  with ALLOW_PASSWORD_RESET=false, in which case it answers 403.

Handlers are plain def: bcrypt and SQLite are blocking, so FastAPI runs them
in its threadpool.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.limiter import limiter, login_rate_limit
from api.models import Credentials, LoginResponse, MessageResponse, PasswordReset, PasswordUpdate
from auth.dependencies import get_auth_service, get_current_username
from auth.service import AuthService
from core.config import get_settings

# Auth policy:
# - POST /register:         public
# - POST /login:            public, rate limited
# - PUT  /update-password:  requires bearer token (get_current_username)
# - POST /reset-password:   public, can be disabled by setting
router = APIRouter()


@router.post("/register", response_model=MessageResponse, status_code=201)
def register(body: Credentials, service: AuthService = Depends(get_auth_service)) -> MessageResponse:
    """Create a new account. Fails with 400 if the username is taken or the password is too short."""
    service.register(body.username, body.password)
    return MessageResponse(message="User registered successfully")


@router.post("/login", response_model=LoginResponse)
@limiter.limit(login_rate_limit)
def login(
    request: Request,
    response: Response,
    body: Credentials,
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Authenticate with username and password; return a bearer token.

    Unknown usernames get 404 and wrong passwords 401, so the two cases are
    distinguishable to clients.
    """
    token = service.login(body.username, body.password)
    response.headers["Cache-Control"] = "no-store"
    return LoginResponse(
        message="Login successful",
        token=token,
        expires_in=service.signer.expire_seconds,
    )


@router.put("/update-password", response_model=MessageResponse)
def update_password(
    body: PasswordUpdate,
    username: str = Depends(get_current_username),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Change the authenticated user's password after verifying the current one."""
    service.update_password(username, body.current_password, body.new_password)
    return MessageResponse(message="Password updated successfully")


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(body: PasswordReset, service: AuthService = Depends(get_auth_service)) -> MessageResponse:
    """Set a new password for any username without verifying the old one."""
    if not get_settings().allow_password_reset:
        raise HTTPException(
            status_code=403,
            detail={"code": "reset_disabled", "message": "Password reset is disabled."},
        )
    service.reset_password(body.username, body.new_password)
    return MessageResponse(message="Password reset successfully")
