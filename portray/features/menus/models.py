"""
Navigation menu model.

Menus form a two-level tree: `glink` entries are top-level groups named
after a permission section, `plink` entries are their pages named after a
subsection of the parent's section.
"""
from sqlalchemy import String, Boolean, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from portray.core.database.base import Base, TimestampMixin, generate_ulid


class MenuType:
    GROUP = "glink"
    PAGE = "plink"


class Menu(Base, TimestampMixin):
    __tablename__ = "menus"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(100), nullable=True)
    route: Mapped[str | None] = mapped_column(String(255), nullable=True)
    menu_type: Mapped[str] = mapped_column(String(10), nullable=False, default=MenuType.GROUP)
    parent_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("menus.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Menu(id={self.id}, name={self.name!r}, type={self.menu_type})>"
