"""Entry Pydantic schemas — create/update payloads, output and pages."""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from catalog.models.entry import EntryStatus, EntryType


class EntryFields(BaseModel):
    """Optional content fields shared by create and update payloads."""

    model_config = ConfigDict(coerce_numbers_to_str=True, populate_by_name=True)

    type: Optional[str] = None
    director: Optional[str] = None
    budget: Optional[str] = None
    location: Optional[str] = None
    duration: Optional[str] = None
    year_time: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("year_time", "yearTime")
    )
    description: Optional[str] = None
    poster_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("poster_url", "posterUrl")
    )
    thumb_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("thumb_url", "thumbUrl")
    )


class EntryCreate(EntryFields):
    title: str


class EntryUpdate(EntryFields):
    """Partial update: omitted or null fields keep their stored value."""
    title: Optional[str] = None


class ModerationIn(BaseModel):
    status: str


class EntryOut(BaseModel):
    id: int
    title: str
    type: EntryType
    director: Optional[str] = None
    budget: Optional[str] = None
    location: Optional[str] = None
    duration: Optional[str] = None
    year_time: Optional[str] = None
    year: Optional[int] = None
    description: Optional[str] = None
    poster_url: Optional[str] = None
    thumb_url: Optional[str] = None
    created_by_id: int
    status: EntryStatus
    approved: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EntryPage(BaseModel):
    items: List[EntryOut]
    next_cursor: Optional[str] = None


class DeletedOut(BaseModel):
    message: str = "Deleted"
    id: int


class UploadOut(BaseModel):
    url: str
