"""Create all tables directly from metadata for local development.

Production databases are managed with Alembic (``alembic upgrade head``).
"""

import asyncio

from app.database import engine
from app.models import metadata


async def init_db() -> None:
    """Create doctors, blogs and appointments tables if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
