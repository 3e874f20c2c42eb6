"""
Menu management and navigation routes.

Management is guarded by configuration:menus. The navigation tree is open to
any signed-in user and only lists entries they hold some access to.
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portray.core.database.engine import get_db
from portray.features.users.dependencies import get_current_user
from portray.features.users.models import User
from portray.features.menus.models import Menu, MenuType
from portray.features.menus.schemas import MenuCreate, MenuResponse, MenuUpdate, NavigationNode
from portray.features.permissions import evaluator
from portray.features.permissions.dependencies import require_permission


router = APIRouter()

SECTION, SUBSECTION = "configuration", "menus"


async def get_menu_by_id(
    menu_id: str,
    db: Annotated[AsyncSession, Depends(get_db)]
) -> Menu:
    """Get menu by ID or raise 404."""
    menu = await db.get(Menu, menu_id)
    if menu is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu not found")
    return menu


def build_navigation(menus: List[Menu], user: User) -> List[NavigationNode]:
    """
    Arrange active menus into a tree, keeping only entries the user can reach:
    a glink needs any access to its section, a plink any access to
    `<parent>:<plink>`.
    """
    def can_see(section: str, subsection: Optional[str] = None) -> bool:
        return evaluator.has_any_access(
            user.role_permissions,
            user.is_system_admin,
            section,
            subsection,
            role_name=user.active_role_name,
        )

    def node(menu: Menu, children: List[NavigationNode]) -> NavigationNode:
        return NavigationNode(
            id=menu.id, name=menu.name, label=menu.label, icon=menu.icon, route=menu.route, children=children
        )

    ordered = sorted((m for m in menus if m.is_active), key=lambda m: (m.sort_order, m.label))
    tree = []
    for group in ordered:
        if group.menu_type != MenuType.GROUP or not can_see(group.name):
            continue
        pages = [
            node(page, [])
            for page in ordered
            if page.menu_type == MenuType.PAGE and page.parent_id == group.id and can_see(group.name, page.name)
        ]
        tree.append(node(group, pages))
    return tree


@router.get("/navigation", response_model=List[NavigationNode])
async def get_navigation(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Navigation tree for the current user."""
    result = await db.execute(select(Menu).where(Menu.is_active.is_(True)))
    return build_navigation(list(result.scalars().all()), current_user)


@router.get("", response_model=List[MenuResponse])
async def list_menus(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "read"))],
    menu_type: Optional[str] = None,
    parent_id: Optional[str] = None
):
    stmt = select(Menu).order_by(Menu.sort_order, Menu.label)
    if menu_type:
        stmt = stmt.where(Menu.menu_type == menu_type)
    if parent_id:
        stmt = stmt.where(Menu.parent_id == parent_id)
    result = await db.execute(stmt)
    return result.scalars().all()


@router.get("/{menu_id}", response_model=MenuResponse)
async def get_menu(
    menu: Annotated[Menu, Depends(get_menu_by_id)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "read"))]
):
    return menu


@router.post("", response_model=MenuResponse, status_code=status.HTTP_201_CREATED)
async def create_menu(
    menu_data: MenuCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "write"))]
):
    """Create a glink, or a plink under an existing glink. Names are unique per parent."""
    if menu_data.parent_id:
        parent = await db.get(Menu, menu_data.parent_id)
        if parent is None or parent.menu_type != MenuType.GROUP:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Parent menu not found")

    stmt = select(Menu).where(Menu.name == menu_data.name)
    if menu_data.parent_id:
        stmt = stmt.where(Menu.parent_id == menu_data.parent_id)
    else:
        stmt = stmt.where(Menu.parent_id.is_(None))
    if (await db.execute(stmt)).scalars().first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Menu with this name already exists"
        )

    menu = Menu(**menu_data.model_dump())
    db.add(menu)
    await db.commit()
    await db.refresh(menu)
    return menu


@router.put("/{menu_id}", response_model=MenuResponse)
async def update_menu(
    update_data: MenuUpdate,
    menu: Annotated[Menu, Depends(get_menu_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "write"))]
):
    """Update presentation fields. The name is the permission key and stays fixed."""
    for key, value in update_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(menu, key, value)
    await db.commit()
    await db.refresh(menu)
    return menu


@router.patch("/{menu_id}/toggle-status", response_model=MenuResponse)
async def toggle_menu_status(
    menu: Annotated[Menu, Depends(get_menu_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "manage"))]
):
    menu.is_active = not menu.is_active
    await db.commit()
    await db.refresh(menu)
    return menu


@router.delete("/{menu_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_menu(
    menu: Annotated[Menu, Depends(get_menu_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "manage"))]
):
    """Delete a menu together with its pages."""
    children = await db.execute(select(Menu).where(Menu.parent_id == menu.id))
    for child in children.scalars().all():
        await db.delete(child)
    await db.delete(menu)
    await db.commit()
    return None
