from fastapi import APIRouter, Depends, Path, Request, Response, status

from timetrack.models import TimeEntry, User
from timetrack.routers.deps import get_store
from timetrack.schemas import TimeEntryCreate, TimeEntryPatch, TimeEntryRead
from timetrack.security import require_user
from timetrack.services.entries import (
    create_entry,
    delete_entry,
    get_owned_entry,
    list_all_entries,
    list_entries,
    update_entry,
)
from timetrack.services.storage import TimeEntryStore

router = APIRouter(tags=["time-entries"])


@router.get("/api/time-entries", response_model=list[TimeEntryRead])
def get_all_entries(
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> list[TimeEntry]:
    return list_all_entries(store, user_id=user.id)


@router.get("/api/time-entries/{entry_id}", response_model=TimeEntryRead)
def get_entry(
    entry_id: int = Path(..., ge=1),
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> TimeEntry:
    return get_owned_entry(store, user_id=user.id, entry_id=entry_id)


@router.get("/api/time-entries/{year}/{month}", response_model=list[TimeEntryRead])
def get_month_entries(
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> list[TimeEntry]:
    return list_entries(store, user_id=user.id, year=year, month=month)


@router.post("/api/time-entries", response_model=TimeEntryRead, status_code=status.HTTP_201_CREATED)
def post_entry(
    payload: TimeEntryCreate,
    request: Request,
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> TimeEntry:
    entry = create_entry(store, user_id=user.id, payload=payload)
    request.state.entry_id = entry.id
    return entry


@router.patch("/api/time-entries/{entry_id}", response_model=TimeEntryRead)
def patch_entry(
    payload: TimeEntryPatch,
    request: Request,
    entry_id: int = Path(..., ge=1),
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> TimeEntry:
    request.state.entry_id = entry_id
    return update_entry(store, user_id=user.id, entry_id=entry_id, patch=payload)


@router.delete("/api/time-entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_entry(
    request: Request,
    entry_id: int = Path(..., ge=1),
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> Response:
    request.state.entry_id = entry_id
    delete_entry(store, user_id=user.id, entry_id=entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
