"""
Visibility policy — who may read or modify an entry.

Pure functions, no I/O. Soft-deleted entries are filtered out by the store
before they ever reach these checks, but they are refused here as well.
"""

from typing import Optional

from catalog.models.entry import Entry
from catalog.services.identity import Identity


def can_modify(identity: Optional[Identity], entry: Entry) -> bool:
    """Admins may touch any entry; users only their own."""
    if identity is None:
        return False
    return identity.is_admin or identity.user_id == entry.created_by_id


def can_view(entry: Entry, identity: Optional[Identity]) -> bool:
    if entry.is_deleted:
        return False
    if entry.approved:
        return True
    # Pending / rejected entries are private to their owner and admins
    return can_modify(identity, entry)
