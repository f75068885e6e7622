"""Team and membership models."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smena.models.base import Base, BigIntPK, CreatedAtMixin


class TeamRole(str, enum.Enum):
    """Member role within a team."""

    PLAYER = "PLAYER"
    COACH = "COACH"
    ADMIN = "ADMIN"


class Team(CreatedAtMixin, Base):
    """Hockey team roster joined through an invite code."""

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    invite_code: Mapped[str] = mapped_column(String(8), nullable=False, unique=True)
    telegram_chat_id: Mapped[int | None] = mapped_column(BigInteger)

    members = relationship(
        "TeamMember",
        back_populates="team",
        cascade="all, delete-orphan",
    )


class TeamMember(Base):
    """Association between a user and a team."""

    __tablename__ = "team_members"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    team_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[TeamRole] = mapped_column(
        Enum(
            TeamRole,
            name="team_role_enum",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default=TeamRole.PLAYER,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    user = relationship("User", back_populates="memberships", innerjoin=True)
    team = relationship("Team", back_populates="members", innerjoin=True)

    __table_args__ = (
        UniqueConstraint("user_id", "team_id", name="ux_team_members_user_team"),
        Index("ix_team_members_team_id", "team_id"),
    )


__all__ = ["Team", "TeamMember", "TeamRole"]
