from fastapi import Depends, Request
from sqlalchemy.orm import Session

from timetrack.db import get_db
from timetrack.services.storage import TimeEntryStore


def get_store(db: Session = Depends(get_db)) -> TimeEntryStore:
    return TimeEntryStore(db)


def client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None
