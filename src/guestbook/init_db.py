import asyncio

from guestbook.core.settings import settings
from guestbook.db.session import create_engine_for_url, create_tables


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    engine = create_engine_for_url(settings.database_url)
    try:
        await create_tables(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_db())
    print("Database initialized.")
