"""
Shared ranking utilities for the leaderboard and own-rank lookups.

Both paths must order participants identically, so the sort key, the
sentinel filter and the rank assignment live here.
"""

from typing import Iterable, List, Optional

from lightsout.config import Config
from lightsout.data_models.leaderboard import LeaderboardEntry, Participant, ResolvedStanding

# Sort position used by the store for participants without a cached rank
UNRANKED_KEY = 2 ** 31 - 1


class RankingUtility:
    """Shared ranking logic for consistent ordering across services."""

    @staticmethod
    def is_sentinel(participant: Participant) -> bool:
        """True for the administrative account that never appears in rankings."""
        if Config.ADMIN_SENTINEL_ID and participant.id == Config.ADMIN_SENTINEL_ID:
            return True
        return bool(Config.ADMIN_SENTINEL_NAME) and participant.display_name == Config.ADMIN_SENTINEL_NAME

    @staticmethod
    def exclude_sentinel(participants: Iterable[Participant]) -> List[Participant]:
        return [p for p in participants if not RankingUtility.is_sentinel(p)]

    @staticmethod
    def sort_key(participant_id: str, total_points: Optional[int]):
        """Points descending, then participant id ascending for ties."""
        return (-(total_points or 0), participant_id)

    @staticmethod
    def sort_standings(standings: Iterable[ResolvedStanding]) -> List[ResolvedStanding]:
        return sorted(
            standings,
            key=lambda s: RankingUtility.sort_key(s.participant.id, s.total_points)
        )

    @staticmethod
    def assign_ranks(standings: Iterable[ResolvedStanding], start: int = 1) -> List[LeaderboardEntry]:
        """
        Sort and number standings with dense, consecutive ranks.

        Tied totals get distinct adjacent ranks; the participant id decides
        which comes first.
        """
        return [
            LeaderboardEntry(
                rank=rank,
                participant_id=standing.participant.id,
                display_name=standing.participant.display_name,
                total_points=standing.total_points,
                breakdown=standing.breakdown,
                source=standing.source,
                previous_rank=standing.participant.previous_rank,
            )
            for rank, standing in enumerate(RankingUtility.sort_standings(standings), start=start)
        ]

    @staticmethod
    def rank_key(participant: Participant) -> int:
        """Store ordering key: cached rank, unranked participants last."""
        return participant.rank if participant.rank is not None else UNRANKED_KEY

    @staticmethod
    def validate_page_size(page_size: int, max_page_size: int) -> bool:
        return isinstance(page_size, int) and 1 <= page_size <= max_page_size
