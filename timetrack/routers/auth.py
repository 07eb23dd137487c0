import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from timetrack.db import get_db
from timetrack.errors import ApiError
from timetrack.models import User
from timetrack.routers.deps import client_ip
from timetrack.schemas import (
    LoginRequest,
    PasswordChangeRequest,
    RegisterRequest,
    TokenResponse,
    UserRead,
    UserSettingsPatch,
)
from timetrack.security import (
    create_access_token,
    ensure_login_attempt_allowed,
    register_login_failure,
    register_login_success,
    require_user,
)
from timetrack.services.users import authenticate_user, change_password, register_user, update_user_settings

router = APIRouter(tags=["auth"])
logger = logging.getLogger("timetrack.auth")


def _token_response(user: User) -> TokenResponse:
    token, expires_in = create_access_token(user)
    return TokenResponse(access_token=token, expires_in=expires_in, user=UserRead.model_validate(user))


@router.post("/api/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, request: Request, db: Session = Depends(get_db)) -> TokenResponse:
    user = register_user(db, payload)
    request.state.actor_id = str(user.id)
    return _token_response(user)


@router.post("/api/login", response_model=TokenResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)) -> TokenResponse:
    ip = client_ip(request) or "unknown"
    ensure_login_attempt_allowed(ip)

    user = authenticate_user(db, username=payload.username, password=payload.password)
    if user is None:
        register_login_failure(ip)
        logger.warning(
            "login_failed",
            extra={
                "request_id": getattr(request.state, "request_id", None),
                "username": payload.username,
                "ip": ip,
            },
        )
        raise ApiError(status_code=401, code="INVALID_CREDENTIALS", message="Invalid username or password.")

    register_login_success(ip)
    request.state.actor_id = str(user.id)
    return _token_response(user)


@router.get("/api/user", response_model=UserRead)
def current_user(user: User = Depends(require_user)) -> User:
    return user


@router.patch("/api/user", response_model=UserRead)
def patch_current_user(
    payload: UserSettingsPatch,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> User:
    return update_user_settings(db, user, payload)


@router.patch("/api/user/password")
def patch_password(
    payload: PasswordChangeRequest,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict[str, str]:
    change_password(db, user, payload)
    return {"message": "Password updated successfully"}
