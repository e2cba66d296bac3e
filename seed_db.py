"""Seed a local database with sample entries and print dev tokens.

Run with:
    python seed_db.py
"""

import asyncio

from catalog.config import settings
from catalog.database import Database
from catalog.services.identity import Identity, Role, create_access_token
from catalog.services.lifecycle import EntryLifecycle
from catalog.services.store import EntryStore

ADMIN = Identity(user_id=1, role=Role.ADMIN)
ALICE = Identity(user_id=2, role=Role.USER)

SAMPLES = [
    {"title": "Heat", "type": "Movie", "director": "Michael Mann", "year_time": "1995", "location": "Los Angeles"},
    {"title": "The Wire", "type": "TV Show", "director": "David Simon", "year_time": "2002-2008"},
    {"title": "Blade Runner", "type": "Movie", "director": "Ridley Scott", "year_time": "1982 (Final Cut 2007)"},
    {"title": "Twin Peaks", "type": "TV Show", "director": "David Lynch", "year_time": "1990"},
]


async def async_main():
    database = Database(settings)
    await database.create_all()

    async with database.session_factory() as session:
        lifecycle = EntryLifecycle(EntryStore(session, timeout=settings.STORE_TIMEOUT_SECONDS))
        for i, payload in enumerate(SAMPLES):
            entry = await lifecycle.create(payload, ALICE)
            # Leave the last one pending so the moderation queue isn't empty
            if i < len(SAMPLES) - 1:
                await lifecycle.moderate(entry.id, "APPROVED", ADMIN)
            print(f"Seeded entry {entry.id}: {entry.title} ({entry.status.value})")

    await database.dispose()

    print(f"Admin token (user {ADMIN.user_id}): {create_access_token(settings, ADMIN.user_id, ADMIN.role)}")
    print(f"User token  (user {ALICE.user_id}): {create_access_token(settings, ALICE.user_id, ALICE.role)}")


if __name__ == "__main__":
    asyncio.run(async_main())
