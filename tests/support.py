from __future__ import annotations

from collections.abc import Generator
from datetime import date

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from timetrack.db import Base
from timetrack.models import TimeEntry, User
from timetrack.security import hash_password


def make_session() -> Session:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()


def override_get_db(db: Session):
    def _override() -> Generator[Session, None, None]:
        yield db

    return _override


def make_user(db: Session, username: str = "jana", password: str = "secret123", **overrides) -> User:
    values = {
        "username": username,
        "password_hash": hash_password(password),
        "full_name": "Jana Nováková",
        "email": "jana@example.com",
        "position": "Technik",
        "work_hours_per_day": 8,
        "break_minutes": 60,
        "auto_break": True,
        "work_days": "1,2,3,4,5",
        "best_streak": 0,
    }
    values.update(overrides)
    user = User(**values)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_entry(
    db: Session,
    user: User,
    day: date,
    start_time: str = "08:00",
    end_time: str = "16:00",
    *,
    hourly_rate: int = 0,
    notes: str | None = None,
) -> TimeEntry:
    entry = TimeEntry(
        user_id=user.id,
        date=day,
        start_time=start_time,
        end_time=end_time,
        hourly_rate=hourly_rate,
        notes=notes,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry
