from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timetrack.errors import ApiError
from timetrack.models import User
from timetrack.schemas import PasswordChangeRequest, RegisterRequest, UserSettingsPatch
from timetrack.security import hash_password, verify_password
from timetrack.settings import get_settings

logger = logging.getLogger("timetrack.users")


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.scalar(select(User).where(User.username == username))


def register_user(db: Session, payload: RegisterRequest) -> User:
    settings = get_settings()
    if get_user_by_username(db, payload.username) is not None:
        raise ApiError(status_code=409, code="USERNAME_TAKEN", message="Username is already taken.")

    user = User(
        username=payload.username,
        password_hash=hash_password(payload.password),
        full_name=payload.full_name,
        email=payload.email,
        phone=payload.phone,
        position=payload.position,
        work_hours_per_day=(
            payload.work_hours_per_day
            if payload.work_hours_per_day is not None
            else settings.default_work_hours_per_day
        ),
        break_minutes=settings.default_break_minutes,
        auto_break=True,
        work_days=payload.work_days or settings.default_work_days,
        best_streak=0,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ApiError(status_code=409, code="USERNAME_TAKEN", message="Username is already taken.") from exc
    db.refresh(user)
    logger.info("user_registered", extra={"user_id": user.id, "username": user.username})
    return user


def authenticate_user(db: Session, *, username: str, password: str) -> User | None:
    user = get_user_by_username(db, username)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def update_user_settings(db: Session, user: User, patch: UserSettingsPatch) -> User:
    changes = patch.changes()
    for field_name, value in changes.items():
        setattr(user, field_name, value)
    db.commit()
    db.refresh(user)
    logger.info("user_settings_updated", extra={"user_id": user.id, "fields": sorted(changes)})
    return user


def change_password(db: Session, user: User, payload: PasswordChangeRequest) -> None:
    if not verify_password(payload.current_password, user.password_hash):
        raise ApiError(status_code=400, code="INVALID_CREDENTIALS", message="Current password is incorrect.")
    user.password_hash = hash_password(payload.new_password)
    db.commit()
    logger.info("user_password_changed", extra={"user_id": user.id})
