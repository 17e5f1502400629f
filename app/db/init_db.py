import asyncio
import logging
from app.core.database import engine, async_session_maker
from app.models.base import Base
import app.models  # noqa: F401  registers every table on Base.metadata
from app.db.seeds.init_roles_data import seed_roles

logger = logging.getLogger(__name__)

async def create_tables():
    """Create all database tables (local development; production uses alembic)"""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating tables: {str(e)}")
        raise

async def init_db():
    """Initialize the database"""
    await create_tables()
    async with async_session_maker() as session:
        created = await seed_roles(session)
    logger.info(f"Database initialized; {len(created)} role(s) created")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_db())
