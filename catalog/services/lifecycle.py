"""
Entry lifecycle — create, read, edit, soft-delete and moderate entries.

State machine on ``status``::

    (create) -> PENDING --admin moderates--> APPROVED | REJECTED
    APPROVED | REJECTED --owner edit--> PENDING
    admin edits never change status; soft-deleted entries never move again
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from catalog.errors import Forbidden, InvalidArgument, NotFound, Unauthenticated
from catalog.models.entry import Entry, EntryStatus, EntryType, utcnow
from catalog.services.identity import Identity
from catalog.services.query import EntryQuery
from catalog.services.store import EntryStore
from catalog.services.visibility import can_modify, can_view

logger = logging.getLogger(__name__)

CONTENT_FIELDS = (
    "title",
    "type",
    "director",
    "budget",
    "location",
    "duration",
    "year_time",
    "description",
    "poster_url",
    "thumb_url",
)

MODERATION_DECISIONS = {EntryStatus.APPROVED, EntryStatus.REJECTED}


def _apply_content(entry: Entry, fields: Dict[str, Any]) -> None:
    for name, value in fields.items():
        if name not in CONTENT_FIELDS:
            continue
        if name == "type":
            entry.type = value if isinstance(value, EntryType) else EntryType.coerce(value)
        elif name == "year_time":
            entry.set_year_time(value)
        else:
            setattr(entry, name, value)


class EntryLifecycle:
    def __init__(self, store: EntryStore):
        self.store = store

    async def create(self, payload: Dict[str, Any], identity: Optional[Identity]) -> Entry:
        if identity is None:
            raise Unauthenticated("Creating an entry requires an identity")
        title = (payload.get("title") or "").strip()
        if not title:
            raise InvalidArgument("title is required")

        now = utcnow()
        entry = Entry(
            type=EntryType.MOVIE,
            created_by_id=identity.user_id,
            status=EntryStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        fields = {name: payload.get(name) for name in CONTENT_FIELDS}
        fields["title"] = title
        if fields["type"] is None:
            del fields["type"]
        _apply_content(entry, fields)

        entry = await self.store.add(entry)
        logger.info(f"Entry {entry.id} created by user {identity.user_id} (PENDING)")
        return entry

    async def read(self, entry_id: int, identity: Optional[Identity]) -> Entry:
        entry = await self.store.get(entry_id)
        if entry is None:
            raise NotFound(f"Entry {entry_id} not found")
        if not can_view(entry, identity):
            if identity is None:
                raise Unauthenticated(f"Entry {entry_id} is not public")
            raise Forbidden(f"User {identity.user_id} may not view entry {entry_id}")
        return entry

    async def list(self, query: EntryQuery) -> Tuple[List[Entry], Optional[int]]:
        """Run a built query; scope already limits rows to readable ones."""
        return await self.store.list(query)

    async def update(
        self, entry_id: int, payload: Dict[str, Any], identity: Optional[Identity]
    ) -> Entry:
        """Merge non-null payload fields over the entry.

        Any edit by a non-admin sends the entry back to PENDING, even if
        nothing actually changed.
        """
        if identity is None:
            raise Unauthenticated("Updating an entry requires an identity")
        changes = {
            name: value
            for name, value in payload.items()
            if name in CONTENT_FIELDS and value is not None
        }
        if "title" in changes:
            changes["title"] = changes["title"].strip()
            if not changes["title"]:
                raise InvalidArgument("title cannot be blank")

        entry = await self._get_modifiable(entry_id, identity)
        _apply_content(entry, changes)
        previous = entry.status
        if not identity.is_admin:
            entry.status = EntryStatus.PENDING
        entry.updated_at = utcnow()

        entry = await self.store.save(entry)
        logger.info(
            f"Entry {entry_id} updated by user {identity.user_id} "
            f"({previous.value} -> {entry.status.value})"
        )
        return entry

    async def delete(self, entry_id: int, identity: Optional[Identity]) -> Entry:
        if identity is None:
            raise Unauthenticated("Deleting an entry requires an identity")
        entry = await self._get_modifiable(entry_id, identity)
        now = utcnow()
        entry.deleted_at = now
        entry.updated_at = now

        entry = await self.store.save(entry)
        logger.info(f"Entry {entry_id} soft-deleted by user {identity.user_id}")
        return entry

    async def moderate(
        self, entry_id: int, decision: Any, identity: Optional[Identity] = None
    ) -> Entry:
        """Approve or reject an entry.

        The caller has already checked that ``identity`` is an admin; any
        admin may moderate any entry. Repeating a decision is a no-op.
        """
        try:
            status = EntryStatus(decision)
        except ValueError:
            raise InvalidArgument(f"Invalid moderation decision: {decision!r}")
        if status not in MODERATION_DECISIONS:
            raise InvalidArgument(f"Invalid moderation decision: {decision!r}")

        entry = await self.store.get(entry_id)
        if entry is None:
            raise NotFound(f"Entry {entry_id} not found")
        if entry.status == status:
            return entry

        previous = entry.status
        entry.status = status
        entry.updated_at = utcnow()
        entry = await self.store.save(entry)
        actor = identity.user_id if identity is not None else "system"
        logger.info(
            f"Entry {entry_id} moderated by {actor}: {previous.value} -> {status.value}"
        )
        return entry

    async def _get_modifiable(self, entry_id: int, identity: Identity) -> Entry:
        entry = await self.store.get(entry_id)
        if entry is None:
            raise NotFound(f"Entry {entry_id} not found")
        if not can_modify(identity, entry):
            raise Forbidden(f"User {identity.user_id} may not modify entry {entry_id}")
        return entry
