"""User ORM model."""

from __future__ import annotations

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smena.models.base import Base, BigIntPK, CreatedAtMixin


class User(CreatedAtMixin, Base):
    """Local account bound to a Telegram identity."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    telegram_id: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str | None] = mapped_column(String(255))
    username: Mapped[str | None] = mapped_column(String(255))

    memberships = relationship(
        "TeamMember",
        back_populates="user",
        cascade="all, delete-orphan",
    )


__all__ = ["User"]
