"""
Entry store — SQLAlchemy persistence for entries.

Every call runs under ``timeout`` seconds. Driver and pool failures surface
as ``Transient`` (retryable); anything else from SQLAlchemy is ``Internal``.
Soft-deleted rows are excluded unless a method says otherwise.
"""

import asyncio
import logging
from typing import Awaitable, List, Optional, Tuple, TypeVar

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.errors import Internal, InvalidArgument, Transient
from catalog.models.entry import Entry, EntryStatus
from catalog.services.query import EntryQuery, SortField

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)


def _sort_column(field: SortField):
    if field == SortField.TITLE:
        return Entry.title
    if field == SortField.YEAR:
        # NULL year_time sorts as "" so keyset comparisons stay total
        return func.coalesce(Entry.year_time, "")
    return Entry.created_at


def _sort_value(entry: Entry, field: SortField):
    if field == SortField.YEAR:
        return entry.year_time or ""
    return getattr(entry, field.value)


class EntryStore:
    def __init__(self, session: AsyncSession, timeout: float = 5.0):
        self.session = session
        self.timeout = timeout

    async def _run(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            await self._rollback()
            logger.warning(f"Store {operation} timed out after {self.timeout}s")
            raise Transient(f"{operation} timed out")
        except TRANSIENT_ERRORS as e:
            await self._rollback()
            logger.warning(f"Store {operation} failed transiently: {e}")
            raise Transient(f"{operation} failed")
        except SQLAlchemyError:
            await self._rollback()
            logger.exception(f"Store {operation} failed")
            raise Internal(f"{operation} failed")

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Rollback after store failure also failed: {e}")

    # ── Writes ──

    async def add(self, entry: Entry) -> Entry:
        async def _add() -> Entry:
            self.session.add(entry)
            await self.session.commit()
            await self.session.refresh(entry)
            return entry

        return await self._run("add", _add())

    async def save(self, entry: Entry) -> Entry:
        """Commit pending changes to an entry loaded from this store."""
        async def _save() -> Entry:
            await self.session.commit()
            await self.session.refresh(entry)
            return entry

        return await self._run("save", _save())

    # ── Reads ──

    async def get(self, entry_id: int, include_deleted: bool = False) -> Optional[Entry]:
        stmt = select(Entry).where(Entry.id == entry_id)
        if not include_deleted:
            stmt = stmt.where(Entry.deleted_at.is_(None))

        async def _get() -> Optional[Entry]:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

        return await self._run("get", _get())

    async def list(self, query: EntryQuery) -> Tuple[List[Entry], Optional[int]]:
        """Fetch one page; returns ``(items, next_cursor)``.

        ``next_cursor`` is the id of the last item when more rows follow,
        otherwise None. Passing it back seeks strictly past that row.
        """
        return await self._run("list", self._list(query))

    async def _list(self, query: EntryQuery) -> Tuple[List[Entry], Optional[int]]:
        stmt = select(Entry).where(Entry.deleted_at.is_(None))

        # ── Scope ──
        if query.public:
            stmt = stmt.where(Entry.status == EntryStatus.APPROVED)
        else:
            stmt = stmt.where(Entry.created_by_id == query.owner_id)

        # ── Filters ──
        if query.director:
            stmt = stmt.where(Entry.director.icontains(query.director, autoescape=True))
        if query.type is not None:
            stmt = stmt.where(Entry.type == query.type)
        if query.q:
            stmt = stmt.where(
                or_(
                    Entry.title.icontains(query.q, autoescape=True),
                    Entry.director.icontains(query.q, autoescape=True),
                    Entry.description.icontains(query.q, autoescape=True),
                )
            )
        if query.has_year_range:
            stmt = stmt.where(Entry.year.is_not(None))
            if query.year_from is not None:
                stmt = stmt.where(Entry.year >= query.year_from)
            if query.year_to is not None:
                stmt = stmt.where(Entry.year <= query.year_to)

        # ── Keyset on (sort key, id) ──
        column = _sort_column(query.sort.field)
        if query.cursor is not None:
            anchor = await self.session.get(Entry, query.cursor)
            if anchor is None:
                raise InvalidArgument(f"Unknown cursor {query.cursor}")
            value = _sort_value(anchor, query.sort.field)
            if query.sort.descending:
                stmt = stmt.where(
                    or_(column < value, and_(column == value, Entry.id < anchor.id))
                )
            else:
                stmt = stmt.where(
                    or_(column > value, and_(column == value, Entry.id > anchor.id))
                )

        if query.sort.descending:
            stmt = stmt.order_by(column.desc(), Entry.id.desc())
        else:
            stmt = stmt.order_by(column.asc(), Entry.id.asc())

        result = await self.session.execute(stmt.limit(query.page_size + 1))
        rows = list(result.scalars().all())

        next_cursor = None
        if len(rows) > query.page_size:
            rows = rows[: query.page_size]
            next_cursor = rows[-1].id
        return rows, next_cursor
