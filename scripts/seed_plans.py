#!/usr/bin/env python3
"""Seed the database with the default Free, Basic and Premium plans.

Usage:
    python scripts/seed_plans.py
"""

import asyncio
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from healthconsultant.common.config import get_settings
from healthconsultant.common.database import DatabaseManager
from healthconsultant.plans.defaults import DEFAULT_PLANS
from healthconsultant.plans.service import PlanCatalog


async def seed_plans() -> None:
    db = DatabaseManager(get_settings())
    await db.init()
    await db.create_all()

    catalog = PlanCatalog()

    async with db.get_session() as session:
        for seed in DEFAULT_PLANS:
            existing = await catalog.get_by_title(session, seed["title"])
            if existing:
                print(f"  [skip] {seed['title']} already exists")
                continue
            await catalog.create_plan(session, **seed)
            limit = seed["interactions_limit"]
            print(f"  [created] {seed['title']} ({'unlimited' if limit is None else limit} interactions/month)")

    await db.close()
    print(f"\nDone. {len(DEFAULT_PLANS)} plans checked.")


if __name__ == "__main__":
    asyncio.run(seed_plans())
