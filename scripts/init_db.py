#!/usr/bin/env python3
"""Create the schema and seed the default projects.

Usage:
  1. Point DB_* (or DATABASE_URL) at the target database in .env
  2. Run: python scripts/init_db.py [--no-seed]

Seeding is skipped when any project already exists.
"""

import argparse
import asyncio
import logging
import os
import sys

from sqlalchemy import func, select

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("serp_collector.init_db")

DEFAULT_PROJECTS = [
    ("Default", "General SERP tracking"),
    ("Competitors", "Competitor domain tracking"),
    ("Keywords", "Keyword research project"),
]


async def seed_projects(session_factory) -> int:
    from serp_collector.models import Project

    async with session_factory() as session:
        async with session.begin():
            existing = await session.scalar(select(func.count()).select_from(Project))
            if existing:
                logger.info("Seed skipped | %d projects already present", existing)
                return 0
            session.add_all([Project(name=n, description=d) for n, d in DEFAULT_PROJECTS])
    logger.info("Seeded %d default projects", len(DEFAULT_PROJECTS))
    return len(DEFAULT_PROJECTS)


async def main(seed: bool) -> int:
    from serp_collector.database import async_session_factory, close_db, init_db

    try:
        if not await init_db():
            return 1
        if seed:
            await seed_projects(async_session_factory)
        return 0
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create tables and seed default projects")
    parser.add_argument("--no-seed", action="store_true", help="Only create tables")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(seed=not args.no_seed)))
