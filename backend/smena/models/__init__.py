"""ORM models exposed for metadata discovery (Alembic, tests)."""

from smena.models.base import Base
from smena.models.team import Team, TeamMember, TeamRole
from smena.models.user import User

__all__ = ["Base", "Team", "TeamMember", "TeamRole", "User"]
