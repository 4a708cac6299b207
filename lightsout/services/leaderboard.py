"""
Leaderboard service for the Lights Out League.

Resolves participants into ranked, cursor-paginated leaderboard rows. Each
participant is resolved through a chain of strategies: the cached standing
written by the league recompute when it exists, a live season rollup
otherwise. Both produce the same ResolvedStanding shape.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Tuple
import logging

from sqlalchemy.exc import SQLAlchemyError

from lightsout.config import Config
from lightsout.constants import PaginationConstants
from lightsout.data_models.leaderboard import (
    LeaderboardBreakdown, LeaderboardCursor, LeaderboardEntry, LeaderboardPage,
    Participant, ResolvedStanding
)
from lightsout.data_models.scoring import PointsCatalog, ResultRecord, SelectionRecord, UsageRollup
from lightsout.services.season import SeasonAggregator
from lightsout.utils.leaderboard_exceptions import DatabaseError
from lightsout.utils.ranking import RankingUtility

logger = logging.getLogger(__name__)


class ResolutionStrategy(ABC):
    """
    Abstract base class for standing resolution.

    A strategy returns None when it cannot resolve the participant so the
    next strategy in the chain gets a turn.
    """

    @abstractmethod
    async def resolve(self, participant: Participant) -> Optional[ResolvedStanding]:
        pass

    @abstractmethod
    def get_strategy_name(self) -> str:
        pass


class PrecomputedStrategy(ResolutionStrategy):
    """Fast path: trust the standing cached on the participant record."""

    async def resolve(self, participant: Participant) -> Optional[ResolvedStanding]:
        if not participant.has_cached_standing:
            return None
        return ResolvedStanding(
            participant=participant,
            total_points=participant.total_points,
            breakdown=participant.breakdown,
            source="cached",
        )

    def get_strategy_name(self) -> str:
        return "Precomputed"


@dataclass(frozen=True)
class ScoringContext:
    """League-wide inputs shared by every slow-path rollup in one request."""
    aggregator: SeasonAggregator
    results: Mapping[str, ResultRecord]
    catalog: PointsCatalog
    roster: Mapping[str, str]


class RecomputeStrategy(ResolutionStrategy):
    """
    Slow path: roll the participant's raw picks up against live results.

    The scoring context is loaded once per strategy instance, on first use.
    Bulk-loaded selections can be primed to avoid one query per participant.
    """

    def __init__(self, results_store,
                 selections_by_participant: Optional[Mapping[str, Mapping[str, SelectionRecord]]] = None):
        self.results_store = results_store
        self._selections_by_participant = selections_by_participant
        self._context: Optional[ScoringContext] = None

    async def context(self) -> ScoringContext:
        if self._context is None:
            season_ids = await self.results_store.get_season_event_ids()
            self._context = ScoringContext(
                aggregator=SeasonAggregator(season_ids),
                results=await self.results_store.get_all_results(),
                catalog=await self.results_store.get_active_catalog(),
                roster=await self.results_store.get_live_roster(),
            )
        return self._context

    async def _selections_for(self, participant_id: str) -> Mapping[str, SelectionRecord]:
        if self._selections_by_participant is not None:
            return self._selections_by_participant.get(participant_id, {})
        return await self.results_store.get_all_selections(participant_id)

    async def resolve(self, participant: Participant) -> Optional[ResolvedStanding]:
        context = await self.context()
        selections = await self._selections_for(participant.id)
        season = context.aggregator.rollup(selections, context.results, context.catalog, context.roster)
        return ResolvedStanding(
            participant=participant,
            total_points=season.total_points,
            breakdown=LeaderboardBreakdown.from_season(season),
            source="computed",
        )

    def get_strategy_name(self) -> str:
        return "Recompute"


class LeaderboardService:
    """Ranked leaderboard pages, own-rank lookups and usage views."""

    def __init__(self, results_store):
        self.results_store = results_store

    def _strategies(self, selections_by_participant=None) -> List[ResolutionStrategy]:
        """A fresh chain per request so the slow path always sees live results."""
        return [PrecomputedStrategy(), RecomputeStrategy(self.results_store, selections_by_participant)]

    @staticmethod
    def _overlay_viewer(participant: Participant, viewer: Optional[Participant]) -> Participant:
        """Show the viewer's live display name on their own row; points stay cached."""
        if viewer is not None and viewer.id == participant.id and viewer.display_name:
            return participant.renamed(viewer.display_name)
        return participant

    async def resolve_standing(self, participant: Participant, viewer: Optional[Participant] = None,
                               strategies: Optional[List[ResolutionStrategy]] = None) -> ResolvedStanding:
        """
        Resolve one participant through the strategy chain.

        A store failure on the slow path marks only this participant as
        unavailable with zero points; the rest of the page still resolves.
        """
        participant = self._overlay_viewer(participant, viewer)
        for strategy in strategies or self._strategies():
            try:
                standing = await strategy.resolve(participant)
            except (DatabaseError, SQLAlchemyError) as e:
                logger.warning(
                    f"{strategy.get_strategy_name()} resolution failed for {participant.id}: {e}"
                )
                break
            if standing is not None:
                return standing
        return ResolvedStanding(
            participant=participant,
            total_points=0,
            breakdown=LeaderboardBreakdown(),
            source="unavailable",
        )

    async def resolve_page(self, cursor: Optional[LeaderboardCursor], page_size: int,
                           viewer: Optional[Participant] = None) -> LeaderboardPage:
        """
        Resolve the next leaderboard page.

        Args:
            cursor: Position returned with the previous page, None for the first
            page_size: Participants to fetch from the store
            viewer: The requesting participant, for the display name overlay

        Returns:
            LeaderboardPage; ``has_more`` is True when the store returned a
            full page

        Raises:
            ValueError: page_size is out of range
            DatabaseError: the participant page itself could not be fetched
        """
        if not RankingUtility.validate_page_size(page_size, PaginationConstants.MAX_PAGE_SIZE):
            raise ValueError(f"page_size must be between 1 and {PaginationConstants.MAX_PAGE_SIZE}")

        batch = await self.results_store.get_participants_page(cursor, page_size)
        has_more = len(batch.participants) == page_size

        strategies = self._strategies()
        standings = [
            await self.resolve_standing(participant, viewer, strategies)
            for participant in RankingUtility.exclude_sentinel(batch.participants)
        ]

        emitted = cursor.emitted if cursor else 0
        entries = RankingUtility.assign_ranks(standings, start=emitted + 1)

        next_cursor = batch.next_cursor
        if next_cursor is not None:
            next_cursor = replace(next_cursor, emitted=emitted + len(entries))

        logger.debug(
            f"Resolved leaderboard page: {len(entries)} entries, has_more={has_more}, "
            f"{sum(1 for e in entries if e.source != 'cached')} off the fast path"
        )
        return LeaderboardPage(entries=entries, next_cursor=next_cursor, has_more=has_more, page_size=page_size)

    async def resolve_own_rank(self, participant: Participant,
                               viewer: Optional[Participant] = None) -> Optional[int]:
        """
        1-based leaderboard position of one participant, or None when unknown.

        The cached rank wins. Without one, and only when the participant's
        points are positive, the first page worth of participants is scored
        and sorted to locate them. Store failures yield None.
        """
        if RankingUtility.is_sentinel(participant):
            return None
        if participant.rank is not None:
            return participant.rank

        try:
            points = participant.total_points
            if points is None:
                standing = await self.resolve_standing(participant, viewer)
                if standing.source == "unavailable":
                    return None
                points = standing.total_points
            if points <= 0:
                return None

            batch = await self.results_store.get_participants_page(None, Config.LEADERBOARD_PAGE_SIZE)
            selections = await self.results_store.get_all_selections_for_all_participants()
            strategies = self._strategies(selections)
            standings = [
                await self.resolve_standing(p, viewer, strategies)
                for p in RankingUtility.exclude_sentinel(batch.participants)
            ]
        except (DatabaseError, SQLAlchemyError) as e:
            logger.error(f"Own rank fallback failed for {participant.id}: {e}")
            return None

        for position, standing in enumerate(RankingUtility.sort_standings(standings), start=1):
            if standing.participant.id == participant.id:
                return position
        return None

    async def get_usage(self, participant_id: str) -> Tuple[UsageRollup, Dict[str, Dict[str, int]]]:
        """A participant's in-season pick counts and what remains under the class caps."""
        season_ids = await self.results_store.get_season_event_ids()
        aggregator = SeasonAggregator(season_ids)
        usage = aggregator.usage(await self.results_store.get_all_selections(participant_id))
        remaining = aggregator.remaining_usage(usage, await self.results_store.get_roster_classes())
        return usage, remaining

    async def get_popular_picks(self, recent_events: Optional[int] = None) -> UsageRollup:
        """League-wide pick counts, optionally over the last few picked events."""
        season_ids = await self.results_store.get_season_event_ids()
        aggregator = SeasonAggregator(season_ids)
        selections = await self.results_store.get_all_selections_for_all_participants()
        return aggregator.popularity(selections, recent_events)


class LeaderboardPager:
    """
    Stateful consumer of leaderboard pages for one viewer.

    Only one fetch runs at a time; a call made while another is pending
    returns immediately without touching the cursor.
    """

    def __init__(self, leaderboard_service: LeaderboardService, page_size: Optional[int] = None,
                 viewer: Optional[Participant] = None):
        self.leaderboard_service = leaderboard_service
        self.page_size = page_size or Config.LEADERBOARD_PAGE_SIZE
        self.viewer = viewer
        self.entries: List[LeaderboardEntry] = []
        self.cursor: Optional[LeaderboardCursor] = None
        self.has_more = True
        self.last_error: Optional[Exception] = None
        self._in_progress = False

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    async def fetch_more(self) -> bool:
        """
        Append the next page to ``entries``.

        Returns:
            True when a page was fetched; False when busy, exhausted or failed
        """
        if self._in_progress or not self.has_more:
            return False

        self._in_progress = True
        try:
            page = await self.leaderboard_service.resolve_page(self.cursor, self.page_size, self.viewer)
        except (DatabaseError, SQLAlchemyError) as e:
            logger.error(f"Leaderboard page fetch failed: {e}")
            self.last_error = e
            return False
        finally:
            self._in_progress = False

        self.last_error = None
        self.entries.extend(page.entries)
        self.cursor = page.next_cursor
        self.has_more = page.has_more
        return True
