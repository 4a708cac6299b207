"""
League-wide standings recompute.

Scores every registered participant from raw picks and official results and
writes the cached standings (points, breakdown, rank) that the leaderboard
fast path reads.
"""

import logging
import time
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from lightsout.constants import PaginationConstants
from lightsout.data_models.leaderboard import LeaderboardBreakdown, RecomputeSummary, ResolvedStanding
from lightsout.services.base import BaseService
from lightsout.services.season import SeasonAggregator
from lightsout.utils.leaderboard_exceptions import DatabaseError
from lightsout.utils.ranking import RankingUtility

if TYPE_CHECKING:
    from lightsout.services.results_store import ResultsStore

logger = logging.getLogger(__name__)


class LeagueRecomputeService(BaseService):
    """Batch job that rebuilds every participant's cached standing."""

    def __init__(self, session_factory, results_store: "ResultsStore"):
        super().__init__(session_factory)
        self.results_store = results_store

    async def recalculate_entire_league(self) -> RecomputeSummary:
        """
        Recompute and persist the standings of the whole league.

        The administrative sentinel is scored like anyone else but never
        ranked. Failures are logged and reported as an unsuccessful summary.
        """
        started = time.monotonic()
        try:
            season_ids = await self.results_store.get_season_event_ids()
            aggregator = SeasonAggregator(season_ids)
            results = await self.results_store.get_all_results()
            catalog = await self.results_store.get_active_catalog()
            roster = await self.results_store.get_live_roster()
            selections = await self.results_store.get_all_selections_for_all_participants()
            participants = await self._load_participants()

            standings = []
            for participant in participants:
                season = aggregator.rollup(selections.get(participant.id, {}), results, catalog, roster)
                standings.append(ResolvedStanding(
                    participant=participant,
                    total_points=season.total_points,
                    breakdown=LeaderboardBreakdown.from_season(season),
                    source="computed",
                ))

            ranked = RankingUtility.sort_standings(
                s for s in standings if not RankingUtility.is_sentinel(s.participant)
            )
            rows = [
                (s.participant.id, s.total_points, s.breakdown, rank)
                for rank, s in enumerate(ranked, start=1)
            ]
            # Sentinel keeps its points but no rank
            rows.extend(
                (s.participant.id, s.total_points, s.breakdown, None)
                for s in standings if RankingUtility.is_sentinel(s.participant)
            )
            await self.results_store.write_standings(rows)

        except (DatabaseError, SQLAlchemyError) as e:
            logger.error(f"League recompute failed: {e}")
            return RecomputeSummary(success=False)

        elapsed = time.monotonic() - started
        logger.info(f"League recompute processed {len(standings)} participants in {elapsed:.2f}s")
        return RecomputeSummary(success=True, participants_processed=len(standings))

    async def _load_participants(self):
        """Every registered participant, walking the store's keyset pages."""
        participants = []
        cursor = None
        while True:
            batch = await self.results_store.get_participants_page(cursor, PaginationConstants.RECOMPUTE_BATCH_SIZE)
            participants.extend(batch.participants)
            if len(batch.participants) < PaginationConstants.RECOMPUTE_BATCH_SIZE:
                return participants
            cursor = batch.next_cursor
