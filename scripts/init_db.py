import asyncio
import sys
from pathlib import Path

from loguru import logger

sys.path.insert(0, str(Path(__file__).parent.parent))

from paystream.db.database import Base, get_engine
import paystream.models  # noqa: F401  registers every table on Base.metadata


async def main():
    drop = "--drop" in sys.argv[1:]

    logger.info("Creating database schema...")

    try:
        engine = get_engine()

        async with engine.begin() as conn:
            if drop:
                logger.warning("Dropping existing tables")
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

        logger.success(
            f"Schema ready!\n"
            f"  Tables: {', '.join(sorted(Base.metadata.tables))}"
        )

    except Exception as e:
        logger.exception(f"Error creating schema: {e}")
        sys.exit(1)
    finally:
        await get_engine().dispose()


if __name__ == "__main__":
    asyncio.run(main())
