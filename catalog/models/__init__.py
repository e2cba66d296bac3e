"""
Media Catalog – SQLAlchemy ORM models package.

Imports all model classes so the app can register them on the metadata
through a single ``from catalog import models`` import.
"""

from catalog.models.entry import Entry, EntryStatus, EntryType  # noqa: F401
