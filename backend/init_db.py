"""
Create the redirect, click and bot audit tables in a development database
and seed one token.

The service itself never creates or migrates tables; in production they
belong to the external store. Run this once against a local database:
    DB_CONN_STRING=sqlite+aiosqlite:///./redirects.db python init_db.py [token] [url]
"""

import asyncio
import sys

from sqlalchemy.ext.asyncio import AsyncSession

from redirector.config import get_connection_string
from redirector.database import Base, PoolManager
from redirector.models import Redirect


async def init_database(manager: PoolManager):
    """Create all database tables"""
    print("Creating database tables...")
    pool = await manager.acquire()
    async with pool.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Database tables created successfully!")


async def seed_redirect(manager: PoolManager, token: str, destination_url: str):
    """Insert or update one token"""
    pool = await manager.acquire()
    async with AsyncSession(pool) as session:
        await session.merge(Redirect(token=token, destination_url=destination_url))
        await session.commit()

    print(f"Token: {token}")
    print(f"Destination: {destination_url}")


async def main(token: str, destination_url: str):
    manager = PoolManager()
    try:
        await init_database(manager)
        await seed_redirect(manager, token, destination_url)
    finally:
        await manager.close()


if __name__ == "__main__":
    print("=" * 50)
    print("Click Tracking Redirector - Database Initialization")
    print("=" * 50)

    if not get_connection_string():
        print("Set DB_CONN_STRING first, e.g. sqlite+aiosqlite:///./redirects.db")
        sys.exit(1)

    token = sys.argv[1] if len(sys.argv) > 1 else "abc123"
    destination_url = sys.argv[2] if len(sys.argv) > 2 else "https://example.com/page"

    asyncio.run(main(token, destination_url))

    print("\nDatabase initialization complete!")
    print("\nYou can now start the server with:")
    print("    uvicorn redirector.main:app --reload")
    print(f"    curl -i http://localhost:8000/r/{token}")
