"""Bootstrap demo data: two tenants, an admin and a member in each.

Run with ``notesapp-seed`` (or ``python -m notesapp.seed``). Existing
tenants, users and notes are wiped first.
"""

import asyncio
import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from notesapp.core.database import get_database
from notesapp.core.security import hash_password
from notesapp.models.base import Plan
from notesapp.models.note import Note
from notesapp.models.tenant import Tenant
from notesapp.models.user import User, UserRole

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password"
DEMO_TENANTS = (("acme", "Acme"), ("globex", "Globex"))


async def seed_demo_data(session: AsyncSession) -> list[Tenant]:
    await session.execute(delete(Note))
    await session.execute(delete(User))
    await session.execute(delete(Tenant))

    password_hash = hash_password(DEMO_PASSWORD)
    tenants = []
    for slug, name in DEMO_TENANTS:
        tenant = Tenant(slug=slug, name=name, plan=Plan.FREE)
        session.add(tenant)
        await session.flush()  # populate tenant.id
        session.add_all([
            User(
                tenant_id=tenant.id,
                email=f"admin@{slug}.test",
                password_hash=password_hash,
                role=UserRole.ADMIN,
                plan=Plan.PRO,
            ),
            User(
                tenant_id=tenant.id,
                email=f"user@{slug}.test",
                password_hash=password_hash,
                role=UserRole.MEMBER,
                plan=Plan.FREE,
            ),
        ])
        tenants.append(tenant)

    await session.commit()
    return tenants


async def _run() -> None:
    database = get_database()
    try:
        await database.create_all()
        async with database.session() as session:
            tenants = await seed_demo_data(session)
        logger.info("Seeded tenants %s", ", ".join(t.slug for t in tenants))
    finally:
        await database.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(_run())


if __name__ == "__main__":
    main()
