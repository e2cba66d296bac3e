"""
Entries router — catalog CRUD, listing and moderation.

Endpoints:
    POST   /api/v1/entries               → create (PENDING until moderated)
    GET    /api/v1/entries               → list with filters, sort, cursor
    GET    /api/v1/entries/{id}          → single entry, subject to visibility
    PATCH  /api/v1/entries/{id}          → partial update (owner or admin)
    DELETE /api/v1/entries/{id}          → soft delete (owner or admin)
    POST   /api/v1/entries/{id}/approve  → moderate (admin)
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.config import Settings
from catalog.database import get_db
from catalog.routers.auth import get_current_identity, get_settings, require_admin, require_identity
from catalog.schemas.entry import DeletedOut, EntryCreate, EntryOut, EntryPage, EntryUpdate, ModerationIn
from catalog.services.identity import Identity
from catalog.services.lifecycle import EntryLifecycle
from catalog.services.query import build_entry_query
from catalog.services.store import EntryStore

router = APIRouter(prefix="/api/v1/entries", tags=["entries"])


def get_lifecycle(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> EntryLifecycle:
    return EntryLifecycle(EntryStore(db, timeout=settings.STORE_TIMEOUT_SECONDS))


@router.post("", response_model=EntryOut, status_code=status.HTTP_201_CREATED)
async def create_entry(
    body: EntryCreate,
    identity: Identity = Depends(require_identity),
    lifecycle: EntryLifecycle = Depends(get_lifecycle),
):
    """Submit a new movie / TV show; it stays private until approved."""
    return await lifecycle.create(body.model_dump(), identity)


@router.get("", response_model=EntryPage)
async def list_entries(
    q: Optional[str] = None,
    director: Optional[str] = None,
    type: Optional[str] = None,
    year_from: Optional[int] = None,
    year_to: Optional[int] = None,
    sort: Optional[str] = None,
    limit: Optional[int] = None,
    cursor: Optional[int] = None,
    mine: bool = False,
    identity: Optional[Identity] = Depends(get_current_identity),
    lifecycle: EntryLifecycle = Depends(get_lifecycle),
    settings: Settings = Depends(get_settings),
):
    """
    Public callers see approved entries only; ``mine=true`` with a token
    lists the caller's own entries in every moderation state instead.
    """
    query = build_entry_query(
        identity=identity,
        q=q,
        director=director,
        type=type,
        year_from=year_from,
        year_to=year_to,
        sort=sort,
        limit=limit,
        cursor=cursor,
        mine=mine,
        default_page_size=settings.DEFAULT_PAGE_SIZE,
        max_page_size=settings.MAX_PAGE_SIZE,
    )
    items, next_cursor = await lifecycle.list(query)
    return EntryPage(
        items=[EntryOut.model_validate(item) for item in items],
        next_cursor=str(next_cursor) if next_cursor is not None else None,
    )


@router.get("/{entry_id}", response_model=EntryOut)
async def get_entry(
    entry_id: int,
    identity: Optional[Identity] = Depends(get_current_identity),
    lifecycle: EntryLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.read(entry_id, identity)


@router.patch("/{entry_id}", response_model=EntryOut)
async def update_entry(
    entry_id: int,
    body: EntryUpdate,
    identity: Identity = Depends(require_identity),
    lifecycle: EntryLifecycle = Depends(get_lifecycle),
):
    """Owner edits send the entry back to moderation; admin edits don't."""
    return await lifecycle.update(entry_id, body.model_dump(exclude_unset=True), identity)


@router.delete("/{entry_id}", response_model=DeletedOut)
async def delete_entry(
    entry_id: int,
    identity: Identity = Depends(require_identity),
    lifecycle: EntryLifecycle = Depends(get_lifecycle),
):
    entry = await lifecycle.delete(entry_id, identity)
    return DeletedOut(id=entry.id)


@router.post("/{entry_id}/approve", response_model=EntryOut)
async def moderate_entry(
    entry_id: int,
    body: ModerationIn,
    admin: Identity = Depends(require_admin),
    lifecycle: EntryLifecycle = Depends(get_lifecycle),
):
    """Approve or reject an entry (``status`` = APPROVED | REJECTED)."""
    return await lifecycle.moderate(entry_id, body.status, admin)
