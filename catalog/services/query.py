"""
Query builder — turns untrusted list parameters into a bounded EntryQuery.

The result is store-agnostic: ``EntryStore.list`` translates it into SQL.
"""

import enum
from dataclasses import dataclass
from typing import Optional

from catalog.errors import InvalidArgument
from catalog.models.entry import EntryType
from catalog.services.identity import Identity

DEFAULT_PAGE_SIZE = 15
MAX_PAGE_SIZE = 50


class SortField(str, enum.Enum):
    TITLE = "title"
    CREATED_AT = "created_at"
    # Sorts on the raw year_time text, not the parsed year
    YEAR = "year_time"


# Public sort names accepted in ``sort=field:direction``
SORT_FIELDS = {
    "title": SortField.TITLE,
    "createdAt": SortField.CREATED_AT,
    "year": SortField.YEAR,
}


@dataclass(frozen=True)
class SortSpec:
    field: SortField = SortField.CREATED_AT
    descending: bool = True


DEFAULT_SORT = SortSpec()


@dataclass(frozen=True)
class EntryQuery:
    owner_id: Optional[int] = None
    director: Optional[str] = None
    type: Optional[EntryType] = None
    q: Optional[str] = None
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    sort: SortSpec = DEFAULT_SORT
    page_size: int = DEFAULT_PAGE_SIZE
    cursor: Optional[int] = None

    @property
    def public(self) -> bool:
        """True when only approved entries are in scope."""
        return self.owner_id is None

    @property
    def has_year_range(self) -> bool:
        return self.year_from is not None or self.year_to is not None


def parse_sort(raw: Optional[str]) -> SortSpec:
    """Parse ``field:dir[,field:dir...]``; only the first clause counts.

    Unknown fields fall back to ``createdAt desc``; any direction other
    than exactly ``asc`` means descending.
    """
    if not raw:
        return DEFAULT_SORT
    clause = raw.split(",")[0]
    field_name, _, direction = clause.partition(":")
    field = SORT_FIELDS.get(field_name)
    if field is None:
        return DEFAULT_SORT
    return SortSpec(field=field, descending=direction != "asc")


def resolve_page_size(
    limit: Optional[int],
    default: int = DEFAULT_PAGE_SIZE,
    maximum: int = MAX_PAGE_SIZE,
) -> int:
    if limit is None:
        return min(default, maximum)
    if limit < 1:
        raise InvalidArgument("limit must be a positive integer")
    return min(limit, maximum)


def _present(value: Optional[str]) -> Optional[str]:
    # Empty means absent; anything else is matched as given, spaces included
    return value or None


def build_entry_query(
    *,
    identity: Optional[Identity] = None,
    q: Optional[str] = None,
    director: Optional[str] = None,
    type: Optional[str] = None,
    year_from: Optional[int] = None,
    year_to: Optional[int] = None,
    sort: Optional[str] = None,
    limit: Optional[int] = None,
    cursor: Optional[int] = None,
    mine: bool = False,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> EntryQuery:
    """Validate list parameters and pick the scope.

    ``mine`` only takes effect with an identity, and then it replaces the
    public scope entirely: owners see every state of their own entries.
    """
    if cursor is not None and cursor < 1:
        raise InvalidArgument("cursor must be a positive entry id")

    type_text = _present(type)
    return EntryQuery(
        owner_id=identity.user_id if (mine and identity is not None) else None,
        director=_present(director),
        type=EntryType.coerce(type_text) if type_text else None,
        q=_present(q),
        year_from=year_from,
        year_to=year_to,
        sort=parse_sort(sort),
        page_size=resolve_page_size(limit, default_page_size, max_page_size),
        cursor=cursor,
    )
