"""Seed script for the default pay rules.

Run with:
    python scripts/seed_pay_rates.py

Writes one staff_pay_rate row per built-in position rule. Rows that already
exist for a position are left as they are, so administrators' edits survive
a re-run.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staffing_engine.catalog.defaults import BuiltinRuleProvider
from staffing_engine.database import create_all, dispose_db, get_session
from staffing_engine.models import StaffPayRate


def _jsonable(parameters: dict[str, Any]) -> dict[str, Any]:
    return {
        key: float(value) if isinstance(value, Decimal) else value
        for key, value in parameters.items()
    }


async def seed_pay_rates(session: AsyncSession) -> int:
    """Insert missing default rules; returns how many were created."""
    result = await session.execute(select(StaffPayRate.position_key))
    existing = set(result.scalars().all())

    created = 0
    for rule in BuiltinRuleProvider().rules():
        if rule.position_key in existing:
            print(f"{rule.position_label} already configured, skipping...")
            continue
        session.add(
            StaffPayRate(
                position_key=rule.position_key,
                position_label=rule.position_label,
                rate_type=rule.rate_model.value,
                config=_jsonable(rule.parameters),
                notes=rule.notes,
            )
        )
        print(f"Created {rule.rate_model.value} rule for {rule.position_label}")
        created += 1

    await session.flush()
    return created


async def main() -> None:
    """Run all seed functions."""
    print("Seeding pay rates...")
    await create_all()

    async with get_session() as session:
        created = await seed_pay_rates(session)

    await dispose_db()
    print(f"Seeding complete! ({created} rules created)")


if __name__ == "__main__":
    asyncio.run(main())
