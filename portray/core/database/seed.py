"""
Reference data created on startup: subscription types and the bootstrap
system administrator.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portray.core import config
from portray.core.database.engine import AsyncSessionLocal
from portray.features.ports.models import SubscriptionType
from portray.features.roles.models import Role
from portray.features.users.models import User
from portray.features.users.auth import hash_password
from portray.utils import get_logger


log = get_logger(__name__)

SUBSCRIPTION_TYPES = [
    ("1 Month", 1),
    ("12 Months", 12),
    ("24 Months", 24),
    ("48 Months", 48),
]

SYSTEM_ADMIN_ROLE = "SystemAdmin"
SYSTEM_ADMIN_GRANTS = ["*:read,write,manage"]


async def seed_subscription_types(db: AsyncSession):
    existing = set((await db.execute(select(SubscriptionType.name))).scalars().all())
    for name, months in SUBSCRIPTION_TYPES:
        if name in existing:
            continue
        db.add(SubscriptionType(name=name, months=months))
        log.info(f"Created subscription type: {name}")


async def seed_system_admin_role(db: AsyncSession) -> Role:
    result = await db.execute(select(Role).where(Role.name == SYSTEM_ADMIN_ROLE))
    role = result.scalars().first()
    if role is not None:
        return role

    role = Role(
        name=SYSTEM_ADMIN_ROLE,
        description="Full access to every section",
        permissions=list(SYSTEM_ADMIN_GRANTS),
    )
    db.add(role)
    await db.flush()
    log.info(f"Created role '{SYSTEM_ADMIN_ROLE}'")
    return role


async def seed_system_admin(db: AsyncSession, role: Role):
    """Create the configured administrator account unless it already exists."""
    if not config.SYSTEM_ADMIN_EMAIL or not config.SYSTEM_ADMIN_PASSWORD:
        log.debug("No bootstrap administrator configured")
        return

    result = await db.execute(select(User).where(User.email == config.SYSTEM_ADMIN_EMAIL))
    if result.scalars().first() is not None:
        return

    db.add(User(
        email=config.SYSTEM_ADMIN_EMAIL,
        password_hash=hash_password(config.SYSTEM_ADMIN_PASSWORD),
        first_name="System",
        last_name="Administrator",
        role_id=role.id,
        is_system_admin=True,
    ))
    log.warning(f"Created bootstrap administrator {config.SYSTEM_ADMIN_EMAIL}")


async def seed_reference_data():
    """Idempotent; safe to run on every startup."""
    async with AsyncSessionLocal() as db:
        try:
            await seed_subscription_types(db)
            role = await seed_system_admin_role(db)
            await seed_system_admin(db, role)
            await db.commit()
        except Exception as e:
            log.error(f"Error seeding reference data: {e}", exc_info=True)
            await db.rollback()
            raise
