"""
Seed default roles and the initial super admin (async, idempotent)
Run:  python scripts/seed/seed_roles.py
"""

import os, sys
import asyncio
import logging
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))

from app.core.database import async_session_maker, engine
from app.db.seeds.init_roles_data import seed_roles, seed_super_admin

logger = logging.getLogger(__name__)


async def main():
    password = os.getenv("SUPER_ADMIN_PASSWORD")
    if not password:
        raise SystemExit("SUPER_ADMIN_PASSWORD must be set")

    async with async_session_maker() as db:
        try:
            created = await seed_roles(db)
            logger.info(f"Created {len(created)} role(s): {created}")
            admin = await seed_super_admin(db, password)
            logger.info("Created super admin user" if admin else "Super admin user already exists")
        except Exception:
            await db.rollback()
            raise
    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
