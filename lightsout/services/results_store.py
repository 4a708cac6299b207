"""
Results Store for the Lights Out League.

SQL-backed collaborator that persists picks, official results, scoring
profiles, the roster and the cached standings. The scoring engine only ever
reads value objects from here; it never sees ORM rows.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select, func, and_, or_, update

from lightsout.config import Config
from lightsout.data_models.leaderboard import (
    LeaderboardBreakdown, LeaderboardCursor, Participant, ParticipantBatch, RecomputeSummary
)
from lightsout.data_models.scoring import (
    PointsCatalog, ResultRecord, ScoringProfile, ScoringSettings, SelectionRecord
)
from lightsout.database.models import (
    Constructor, Driver, EventPicks, EventResult, LeagueMember, ScoringProfileConfig, SeasonEvent
)
from lightsout.services.base import BaseService
from lightsout.services.recompute import LeagueRecomputeService
from lightsout.utils.leaderboard_exceptions import (
    ParticipantNotFoundError, SelectionLockedError
)
from lightsout.utils.ranking import RankingUtility, UNRANKED_KEY
from lightsout.utils.validation import (
    validate_catalog, validate_penalty_fraction, validate_selection
)

logger = logging.getLogger(__name__)


class ResultsStore(BaseService):
    """Persistence and querying of raw league records."""

    def __init__(self, session_factory, season: Optional[str] = None, recompute_service=None):
        super().__init__(session_factory)
        self.season = season or Config.CURRENT_SEASON
        self.recompute_service = recompute_service or LeagueRecomputeService(session_factory, self)

    # --- Row conversion ---

    @staticmethod
    def _selection_from_row(row: EventPicks) -> SelectionRecord:
        return SelectionRecord.from_dict({
            'aTeams': row.a_teams,
            'bTeam': row.b_team,
            'aDrivers': row.a_drivers,
            'bDrivers': row.b_drivers,
            'fastestLap': row.fastest_lap,
            'penalty': row.penalty,
            'penaltyReason': row.penalty_reason,
        })

    @staticmethod
    def _result_from_row(row: EventResult) -> ResultRecord:
        return ResultRecord.from_dict({
            'grandPrixFinish': row.grand_prix_finish,
            'gpQualifying': row.gp_qualifying,
            'sprintFinish': row.sprint_finish,
            'sprintQualifying': row.sprint_qualifying,
            'fastestLap': row.fastest_lap,
            'driverTeams': row.driver_teams,
            'scoringSnapshot': row.scoring_snapshot,
        })

    @staticmethod
    def _participant_from_row(row: LeagueMember) -> Participant:
        return Participant(
            id=row.id,
            display_name=row.display_name,
            total_points=row.total_points,
            breakdown=LeaderboardBreakdown.from_dict(row.breakdown) if row.breakdown is not None else None,
            rank=row.rank,
            previous_rank=row.previous_rank,
        )

    # --- Selections ---

    async def get_selection(self, participant_id: str, event_id: str) -> Optional[SelectionRecord]:
        async with self.get_session() as session:
            row = await session.scalar(
                select(EventPicks).where(
                    EventPicks.member_id == participant_id,
                    EventPicks.event_id == event_id
                )
            )
            return self._selection_from_row(row) if row else None

    async def get_all_selections(self, participant_id: str) -> Dict[str, SelectionRecord]:
        """Every stored pick of one participant keyed by event id, retired events included."""
        async def _load():
            async with self.get_session() as session:
                result = await session.execute(
                    select(EventPicks).where(EventPicks.member_id == participant_id)
                )
                return {row.event_id: self._selection_from_row(row) for row in result.scalars()}
        return await self.execute_with_retry("get_all_selections", _load)

    async def get_all_selections_for_all_participants(self) -> Dict[str, Dict[str, SelectionRecord]]:
        """Bulk picks for the whole league: {participant_id: {event_id: selection}}."""
        async def _load():
            async with self.get_session() as session:
                result = await session.execute(select(EventPicks))
                league: Dict[str, Dict[str, SelectionRecord]] = {}
                for row in result.scalars():
                    league.setdefault(row.member_id, {})[row.event_id] = self._selection_from_row(row)
                return league
        return await self.execute_with_retry("get_all_selections_for_all_participants", _load)

    async def save_selection(self, participant_id: str, event_id: str, selection: SelectionRecord,
                             is_admin: bool = False, now: Optional[datetime] = None) -> SelectionRecord:
        """
        Create or replace a participant's picks for one event.

        Non-administrators cannot edit after the event's lock time and cannot
        change a penalty; an existing penalty is carried over untouched.

        Raises:
            SelectionLockedError: the event is locked and the caller is not an admin
            SelectionValidationError: the picks do not fit the slot layout
            ParticipantNotFoundError: the participant is not registered
        """
        roster_classes = await self.get_roster_classes()
        validate_selection(selection, roster_classes)
        now = now or datetime.now(timezone.utc).replace(tzinfo=None)

        async with self.get_session() as session:
            member = await session.get(LeagueMember, participant_id)
            if member is None:
                raise ParticipantNotFoundError(participant_id)

            if not is_admin:
                event = await session.get(SeasonEvent, event_id)
                if event is not None and event.lock_at is not None and now >= event.lock_at:
                    raise SelectionLockedError(event_id)

            row = await session.scalar(
                select(EventPicks).where(
                    EventPicks.member_id == participant_id,
                    EventPicks.event_id == event_id
                )
            )
            if row is None:
                row = EventPicks(member_id=participant_id, event_id=event_id)
                session.add(row)

            row.a_teams = list(selection.a_teams)
            row.b_team = selection.b_team
            row.a_drivers = list(selection.a_drivers)
            row.b_drivers = list(selection.b_drivers)
            row.fastest_lap = selection.fastest_lap_driver
            if is_admin:
                row.penalty = selection.penalty_fraction
                row.penalty_reason = selection.penalty_reason

            await session.flush()
            saved = self._selection_from_row(row)

        logger.info(f"Saved picks for {participant_id} at {event_id}")
        return saved

    async def update_penalty(self, participant_id: str, event_id: str,
                             penalty_fraction: float, reason: Optional[str] = None):
        """Administrator penalty edit; allowed at any time, rejected outside [0, 1]."""
        penalty_fraction = validate_penalty_fraction(penalty_fraction)
        async with self.get_session() as session:
            result = await session.execute(
                update(EventPicks)
                .where(EventPicks.member_id == participant_id, EventPicks.event_id == event_id)
                .values(penalty=penalty_fraction, penalty_reason=reason)
            )
            if result.rowcount == 0:
                raise ParticipantNotFoundError(participant_id)
        logger.info(f"Penalty {penalty_fraction:.0%} applied to {participant_id} at {event_id}: {reason}")

    # --- Results ---

    async def get_result(self, event_id: str) -> Optional[ResultRecord]:
        async with self.get_session() as session:
            row = await session.get(EventResult, event_id)
            return self._result_from_row(row) if row else None

    async def get_all_results(self) -> Dict[str, ResultRecord]:
        async def _load():
            async with self.get_session() as session:
                result = await session.execute(select(EventResult))
                return {row.event_id: self._result_from_row(row) for row in result.scalars()}
        return await self.execute_with_retry("get_all_results", _load)

    async def save_result(self, event_id: str, result: ResultRecord) -> ResultRecord:
        """
        Save an official result together with snapshots of the current
        driver -> constructor mapping and the active points catalog.
        """
        live_roster = await self.get_live_roster()
        catalog = await self.get_active_catalog()

        async with self.get_session() as session:
            event = await session.get(SeasonEvent, event_id)
            if event is not None and not event.has_sprint and (result.sprint_finish or result.sprint_qualifying):
                logger.warning(f"Ignoring sprint sessions for non-sprint event {event_id}")
                result = ResultRecord(
                    grand_prix_finish=result.grand_prix_finish,
                    gp_qualifying=result.gp_qualifying,
                    fastest_lap_driver=result.fastest_lap_driver,
                )

            snapshotted = result.with_snapshots(live_roster, catalog)
            data = snapshotted.to_dict()

            row = await session.get(EventResult, event_id)
            if row is None:
                row = EventResult(event_id=event_id)
                session.add(row)
            row.grand_prix_finish = data['grandPrixFinish']
            row.gp_qualifying = data['gpQualifying']
            row.sprint_finish = data['sprintFinish']
            row.sprint_qualifying = data['sprintQualifying']
            row.fastest_lap = data['fastestLap']
            row.driver_teams = data['driverTeams']
            row.scoring_snapshot = data['scoringSnapshot']

        logger.info(f"Saved results for {event_id} with roster and scoring snapshots")
        return snapshotted

    # --- Scoring profiles ---

    async def get_catalog_profiles(self) -> ScoringSettings:
        async with self.get_session() as session:
            result = await session.execute(select(ScoringProfileConfig).order_by(ScoringProfileConfig.id))
            rows = result.scalars().all()

        profiles = tuple(
            ScoringProfile(id=row.id, name=row.name, catalog=PointsCatalog.from_dict(row.config))
            for row in rows
        )
        active_id = next((row.id for row in rows if row.is_active), '')
        return ScoringSettings(active_profile_id=active_id, profiles=profiles)

    async def get_active_catalog(self) -> PointsCatalog:
        settings = await self.get_catalog_profiles()
        return settings.active_catalog()

    async def save_scoring_settings(self, settings: ScoringSettings):
        """Replace all scoring profiles; the active one must be among them."""
        if settings.active_profile_id not in {p.id for p in settings.profiles}:
            raise ValueError(f"Active profile '{settings.active_profile_id}' is not defined")
        for profile in settings.profiles:
            validate_catalog(profile.catalog)

        async with self.get_session() as session:
            existing = {row.id: row for row in (await session.execute(select(ScoringProfileConfig))).scalars()}
            for profile in settings.profiles:
                row = existing.pop(profile.id, None)
                if row is None:
                    row = ScoringProfileConfig(id=profile.id)
                    session.add(row)
                row.name = profile.name
                row.config = profile.catalog.to_dict()
                row.is_active = profile.id == settings.active_profile_id
            for stale in existing.values():
                await session.delete(stale)
        logger.info(f"Scoring settings saved; active profile '{settings.active_profile_id}'")

    # --- Roster and season ---

    async def get_live_roster(self) -> Dict[str, str]:
        """Current driver -> constructor mapping, inactive drivers included."""
        async with self.get_session() as session:
            result = await session.execute(select(Driver.id, Driver.constructor_id))
            return {driver_id: constructor_id for driver_id, constructor_id in result}

    async def get_roster_classes(self) -> Dict[str, str]:
        """Entity class ("A"/"B") of every constructor and driver."""
        async with self.get_session() as session:
            constructors = await session.execute(select(Constructor.id, Constructor.entity_class))
            drivers = await session.execute(select(Driver.id, Driver.entity_class))
            classes = {entity_id: entity_class for entity_id, entity_class in constructors}
            classes.update({entity_id: entity_class for entity_id, entity_class in drivers})
            return classes

    async def get_season_event_ids(self) -> List[str]:
        """Event ids of the configured season in round order."""
        async with self.get_session() as session:
            result = await session.execute(
                select(SeasonEvent.id).where(SeasonEvent.season == self.season).order_by(SeasonEvent.round)
            )
            return [row[0] for row in result]

    # --- Participants ---

    async def get_participant(self, participant_id: str) -> Optional[Participant]:
        async def _load():
            async with self.get_session() as session:
                row = await session.get(LeagueMember, participant_id)
                return self._participant_from_row(row) if row else None
        return await self.execute_with_retry("get_participant", _load)

    async def upsert_participant(self, participant_id: str, display_name: str,
                                 is_admin: Optional[bool] = None) -> Participant:
        async with self.get_session() as session:
            row = await session.get(LeagueMember, participant_id)
            if row is None:
                row = LeagueMember(id=participant_id, display_name=display_name, is_admin=bool(is_admin))
                session.add(row)
                logger.info(f"Registered participant {participant_id} ({display_name})")
            else:
                row.display_name = display_name
                if is_admin is not None:
                    row.is_admin = is_admin
            await session.flush()
            return self._participant_from_row(row)

    async def get_participants_page(self, cursor: Optional[LeaderboardCursor],
                                    page_size: int) -> ParticipantBatch:
        """
        Next slice of participants ordered by the maintained rank field.

        Participants without a cached rank sort after every ranked one, by id.
        """
        async def _load():
            rank_key = func.coalesce(LeagueMember.rank, UNRANKED_KEY)
            query = select(LeagueMember).order_by(rank_key, LeagueMember.id).limit(page_size)
            if cursor is not None:
                query = query.where(or_(
                    rank_key > cursor.rank_key,
                    and_(rank_key == cursor.rank_key, LeagueMember.id > cursor.participant_id)
                ))
            async with self.get_session() as session:
                result = await session.execute(query)
                participants = [self._participant_from_row(row) for row in result.scalars()]

            if not participants:
                return ParticipantBatch(participants=[], next_cursor=cursor)
            last = participants[-1]
            next_cursor = LeaderboardCursor(
                rank_key=RankingUtility.rank_key(last),
                participant_id=last.id,
                emitted=cursor.emitted if cursor else 0,
            )
            return ParticipantBatch(participants=participants, next_cursor=next_cursor)
        return await self.execute_with_retry("get_participants_page", _load)

    async def write_standings(self, standings: List[tuple]):
        """
        Persist recomputed standings.

        Args:
            standings: (participant_id, total_points, LeaderboardBreakdown, rank) tuples
        """
        updated_at = datetime.now(timezone.utc).replace(tzinfo=None)
        async with self.get_session() as session:
            rows = {
                row.id: row
                for row in (await session.execute(select(LeagueMember))).scalars()
            }
            for participant_id, total_points, breakdown, rank in standings:
                row = rows.get(participant_id)
                if row is None:
                    logger.warning(f"Skipping standings for unknown participant {participant_id}")
                    continue
                row.previous_rank = row.rank
                row.total_points = total_points
                row.breakdown = breakdown.to_dict()
                row.rank = rank
                row.last_updated = updated_at

    # --- Recompute ---

    async def trigger_remote_recompute(self) -> RecomputeSummary:
        """Run the full league recompute; the refresh policy decides when this may be called."""
        return await self.recompute_service.recalculate_entire_league()
