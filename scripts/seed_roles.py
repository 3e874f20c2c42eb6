"""
Seed script to populate sample roles and the navigation menus.

Run this script after database initialization to create:
- Reference data (subscription types, SystemAdmin role, bootstrap admin)
- Sample roles with grants for typical port staff
- Navigation menus for every permission section

Usage:
    python -m scripts.seed_roles
"""
import asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portray.core.database.engine import get_db, init_db
from portray.core.database.seed import seed_reference_data
from portray.features.menus.models import Menu, MenuType
from portray.features.permissions.grammar import validate
from portray.features.roles.models import Role
from portray.utils import get_logger


log = get_logger(__name__)


DEFAULT_ROLES = {
    "PortAdmin": {
        "description": "Manages ports, terminals and their activation",
        "permissions": [
            "organizations:read",
            "ports:read,write,manage",
            "ports:terminals:read,write,manage",
            "ports:terminal-activation:read,write,manage",
            "customers:read",
        ]
    },
    "CommercialManager": {
        "description": "Manages customers and their contracts",
        "permissions": [
            "ports:read",
            "ports:terminals:read",
            "customers:read,write,manage",
            "customers:contracts:read,write,manage",
        ]
    },
    "UserAdministrator": {
        "description": "Manages user accounts and roles",
        "permissions": [
            "users-access:users:read,write,manage",
            "users-access:roles:read,write",
            "audit-logs:read",
        ]
    },
    "Viewer": {
        "description": "Read-only access to operational data",
        "permissions": [
            "organizations:read",
            "ports:read",
            "ports:terminals:read",
            "customers:read",
            "customers:contracts:read",
        ]
    },
}

# (glink name, label, route, [(plink name, label, route), ...])
DEFAULT_MENUS = [
    ("organizations", "Organizations", "/organizations", []),
    ("ports", "Ports", "/ports", [
        ("terminals", "Terminals", "/ports/terminals"),
        ("terminal-activation", "Terminal Activation", "/ports/terminal-activation"),
    ]),
    ("customers", "Customers", "/customers", [
        ("contracts", "Contracts", "/customers/contracts"),
    ]),
    ("users-access", "Users & Access", "/users-access", [
        ("users", "Users", "/users-access/users"),
        ("roles", "Roles", "/users-access/roles"),
    ]),
    ("configuration", "Configuration", "/configuration", [
        ("menus", "Menus", "/configuration/menus"),
    ]),
    ("audit-logs", "Audit Logs", "/audit-logs", []),
]


async def seed_roles(db: AsyncSession):
    """Create sample roles. Existing roles are left untouched."""
    log.info("Creating default roles...")

    for role_name, role_config in DEFAULT_ROLES.items():
        result = await db.execute(select(Role).where(Role.name == role_name))
        if result.scalars().first():
            log.debug(f"Role '{role_name}' already exists, skipping")
            continue

        for grant in role_config["permissions"]:
            validate(grant)
        db.add(Role(
            name=role_name,
            description=role_config["description"],
            permissions=list(role_config["permissions"]),
        ))
        log.info(f"Created role '{role_name}' with {len(role_config['permissions'])} grants")

    await db.commit()


async def seed_menus(db: AsyncSession):
    """Create the glink/plink navigation tree."""
    log.info("Creating navigation menus...")

    for order, (name, label, route, pages) in enumerate(DEFAULT_MENUS):
        result = await db.execute(select(Menu).where(Menu.name == name, Menu.parent_id.is_(None)))
        group = result.scalars().first()
        if group is None:
            group = Menu(name=name, label=label, route=route, menu_type=MenuType.GROUP, sort_order=order)
            db.add(group)
            await db.flush()
            log.info(f"Created menu '{name}'")

        for page_order, (page_name, page_label, page_route) in enumerate(pages):
            result = await db.execute(select(Menu).where(Menu.name == page_name, Menu.parent_id == group.id))
            if result.scalars().first():
                continue
            db.add(Menu(
                name=page_name,
                label=page_label,
                route=page_route,
                menu_type=MenuType.PAGE,
                parent_id=group.id,
                sort_order=page_order,
            ))
            log.info(f"Created menu '{name}:{page_name}'")

    await db.commit()


async def main():
    """Main function to seed roles and menus."""
    log.info("Starting seeding...")

    log.info("Initializing database tables...")
    await init_db()
    await seed_reference_data()

    async for db in get_db():
        try:
            await seed_roles(db)
            await seed_menus(db)

            log.info("Seeding completed successfully!")
            log.info("")
            log.info("Default roles created:")
            for role_name, role_config in DEFAULT_ROLES.items():
                log.info(f"  - {role_name}: {role_config['description']}")

        except Exception as e:
            log.error(f"Error seeding roles: {e}", exc_info=True)
            await db.rollback()
            raise

        break  # Only use first session


if __name__ == "__main__":
    asyncio.run(main())
