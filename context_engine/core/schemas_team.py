"""Data shapes for team learning analytics."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class TeamMember:
    """Per-member learning aggregate, computed per request."""

    id: str
    full_name: str
    role: str = "user"
    role_title: str | None = None
    email: str | None = None
    membership_status: str = "active"
    courses_completed: int = 0
    total_time_spent_minutes: int = 0
    credits_earned: float = 0
    conversations_count: int = 0
    last_activity: datetime | None = None

    @property
    def performance_score(self) -> float:
        """Ranking score: completions weigh ten hours each."""
        return self.courses_completed * 10 + self.total_time_spent_minutes / 60


@dataclass
class TeamSummary:
    """Summary statistics over a member set."""

    total_members: int
    avg_courses_completed: float
    avg_time_spent_minutes: int
    avg_credits_earned: float
    avg_conversations: float
    total_time_spent_minutes: int
    active_members: list[TeamMember] = field(default_factory=list)
    top_performers: list[TeamMember] = field(default_factory=list)
    needs_attention: list[TeamMember] = field(default_factory=list)
