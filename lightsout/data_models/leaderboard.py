"""
Leaderboard data models for the Lights Out League.

Provides immutable data transfer objects for participant standings, ranked
rows and cursor-based pages.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from lightsout.data_models.scoring import SeasonBreakdown


@dataclass(frozen=True)
class LeaderboardBreakdown:
    """Four-way points split shown on the leaderboard."""
    gp: int = 0
    quali: int = 0
    sprint: int = 0
    fl: int = 0

    @classmethod
    def from_season(cls, season: SeasonBreakdown) -> "LeaderboardBreakdown":
        return cls(
            gp=season.grand_prix_points,
            quali=season.qualifying_points,
            sprint=season.sprint_points,
            fl=season.fastest_lap_points,
        )

    @classmethod
    def from_dict(cls, data: Dict) -> "LeaderboardBreakdown":
        return cls(
            gp=int(data.get('gp', 0) or 0),
            quali=int(data.get('quali', 0) or 0),
            sprint=int(data.get('sprint', 0) or 0),
            fl=int(data.get('fl', 0) or 0),
        )

    def to_dict(self) -> Dict[str, int]:
        return {'gp': self.gp, 'quali': self.quali, 'sprint': self.sprint, 'fl': self.fl}


@dataclass(frozen=True)
class Participant:
    """A league entrant as stored; the points and rank fields are a cache."""
    id: str
    display_name: str
    total_points: Optional[int] = None
    breakdown: Optional[LeaderboardBreakdown] = None
    rank: Optional[int] = None
    previous_rank: Optional[int] = None

    @property
    def has_cached_standing(self) -> bool:
        return isinstance(self.total_points, int) and self.breakdown is not None

    def renamed(self, display_name: str) -> "Participant":
        return replace(self, display_name=display_name)


@dataclass(frozen=True)
class ResolvedStanding:
    """A participant's points, whichever path produced them."""
    participant: Participant
    total_points: int
    breakdown: LeaderboardBreakdown
    source: str  # "cached", "computed" or "unavailable"


@dataclass(frozen=True)
class LeaderboardEntry:
    """Single leaderboard row."""
    rank: int
    participant_id: str
    display_name: str
    total_points: int
    breakdown: LeaderboardBreakdown
    source: str
    previous_rank: Optional[int] = None


@dataclass(frozen=True)
class LeaderboardCursor:
    """Opaque keyset position of the last participant already fetched."""
    rank_key: int
    participant_id: str
    emitted: int = 0


@dataclass(frozen=True)
class LeaderboardPage:
    """One cursor-based slice of the leaderboard."""
    entries: List[LeaderboardEntry]
    next_cursor: Optional[LeaderboardCursor]
    has_more: bool
    page_size: int


@dataclass(frozen=True)
class ParticipantBatch:
    """Raw participants returned by the store for one page request."""
    participants: List[Participant] = field(default_factory=list)
    next_cursor: Optional[LeaderboardCursor] = None


@dataclass(frozen=True)
class RecomputeSummary:
    """Outcome of a full league recompute."""
    success: bool
    participants_processed: int = 0
