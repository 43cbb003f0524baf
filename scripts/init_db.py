#!/usr/bin/env python3
"""Initialize database tables.

For development only. In production, use Alembic migrations:
    alembic upgrade head

Usage:
    python scripts/init_db.py
"""

import asyncio

from liveassist.db.session import close_db, init_db


async def main():
    """Create all database tables using the async engine."""
    await init_db()
    await close_db()
    print("Database tables created successfully.")


if __name__ == "__main__":
    asyncio.run(main())
