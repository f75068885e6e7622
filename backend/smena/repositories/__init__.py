"""Data access layer."""

from smena.repositories.team import TeamMemberRepository, TeamMembership
from smena.repositories.user import UserRepository

__all__ = ["TeamMemberRepository", "TeamMembership", "UserRepository"]
