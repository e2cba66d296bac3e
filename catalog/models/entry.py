"""Entry model — a user-submitted movie or TV show awaiting or past moderation."""

import enum
import re
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from catalog.database import Base

YEAR_PATTERN = re.compile(r"\d{4}")


class EntryType(str, enum.Enum):
    MOVIE = "MOVIE"
    TV_SHOW = "TV_SHOW"

    @classmethod
    def coerce(cls, value: str) -> "EntryType":
        """Lenient mapping: anything starting with "tv" is a show, the rest are movies."""
        return cls.TV_SHOW if value.strip().lower().startswith("tv") else cls.MOVIE


class EntryStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_year(year_time: Optional[str]) -> Optional[int]:
    """Return the first 4-digit run in a free-text year field, if any."""
    if not year_time:
        return None
    match = YEAR_PATTERN.search(year_time)
    return int(match.group(0)) if match else None


class Entry(Base):
    __tablename__ = "entries"
    __table_args__ = (
        Index("ix_entries_status_created", "status", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    # ── Content ──
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    type: Mapped[EntryType] = mapped_column(Enum(EntryType), default=EntryType.MOVIE)
    director: Mapped[Optional[str]] = mapped_column(String(200))
    budget: Mapped[Optional[str]] = mapped_column(String(100))
    location: Mapped[Optional[str]] = mapped_column(String(200))
    duration: Mapped[Optional[str]] = mapped_column(String(100))
    year_time: Mapped[Optional[str]] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)
    poster_url: Mapped[Optional[str]] = mapped_column(String(500))
    thumb_url: Mapped[Optional[str]] = mapped_column(String(500))

    # Parsed from year_time on every write so year ranges can be queried
    year: Mapped[Optional[int]] = mapped_column(Integer, index=True)

    # ── Ownership ──
    created_by_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)

    # ── Moderation ──
    status: Mapped[EntryStatus] = mapped_column(
        Enum(EntryStatus), default=EntryStatus.PENDING, nullable=False
    )

    # ── Timestamps ──
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    @property
    def approved(self) -> bool:
        return self.status == EntryStatus.APPROVED

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def set_year_time(self, year_time: Optional[str]) -> None:
        self.year_time = year_time
        self.year = parse_year(year_time)

    def __repr__(self) -> str:
        return f"<Entry id={self.id} title={self.title!r} status={self.status.value}>"
