import math
import logging
from typing import Dict, Mapping, Optional, Sequence

from lightsout.data_models.scoring import (
    EventPointsBreakdown, PointsCatalog, ResultRecord, SelectionRecord
)

logger = logging.getLogger(__name__)

# Session keys, in the order they are scored
GRAND_PRIX = "grand_prix"
SPRINT = "sprint"
GP_QUALIFYING = "gp_qualifying"
SPRINT_QUALIFYING = "sprint_qualifying"
SESSIONS = (GRAND_PRIX, SPRINT, GP_QUALIFYING, SPRINT_QUALIFYING)


class EventScorer:
    """Computes one participant's points for one event"""

    @staticmethod
    def position_points(position: int, points: Sequence[int]) -> int:
        """
        Points for a 0-based finishing position

        Args:
            position: 0-based index in the finishing order
            points: Points table for the session

        Returns:
            Points for that position, 0 past the end of the table
        """
        if position < 0 or position >= len(points):
            return 0
        return points[position] or 0

    @staticmethod
    def driver_points(driver_id: Optional[str], finishing_order: Optional[Sequence[Optional[str]]],
                      points: Sequence[int]) -> int:
        """Points a single driver earned in one session"""
        if not driver_id or not finishing_order:
            return 0
        try:
            position = list(finishing_order).index(driver_id)
        except ValueError:
            return 0
        return EventScorer.position_points(position, points)

    @staticmethod
    def sessions(result: ResultRecord, catalog: PointsCatalog) -> Dict[str, tuple]:
        """Map each session present in the result to (finishing order, points table)"""
        sessions = {
            GRAND_PRIX: (result.grand_prix_finish, catalog.grand_prix_finish),
            SPRINT: (result.sprint_finish, catalog.sprint_finish),
            GP_QUALIFYING: (result.gp_qualifying, catalog.gp_qualifying),
            SPRINT_QUALIFYING: (result.sprint_qualifying, catalog.sprint_qualifying),
        }
        return {key: value for key, value in sessions.items() if value[0]}

    @staticmethod
    def resolve_constructor(driver_id: str, result: ResultRecord,
                            live_roster: Mapping[str, str]) -> Optional[str]:
        """Constructor of a driver, preferring the snapshot stored with the result"""
        if result.roster_snapshot and result.roster_snapshot.get(driver_id):
            return result.roster_snapshot[driver_id]
        return live_roster.get(driver_id)

    @staticmethod
    def constructor_scores(result: ResultRecord, catalog: PointsCatalog,
                           live_roster: Mapping[str, str]) -> Dict[str, Dict[str, int]]:
        """
        Session points per constructor from every one of its finishers

        Independent of any participant's picks: a constructor earns the sum
        of what all its drivers scored in the session.

        Returns:
            {constructor_id: {session: points}}
        """
        scores: Dict[str, Dict[str, int]] = {}
        for session, (finishing_order, points) in EventScorer.sessions(result, catalog).items():
            for position, driver_id in enumerate(finishing_order):
                if not driver_id:
                    continue
                constructor_id = EventScorer.resolve_constructor(driver_id, result, live_roster)
                if not constructor_id:
                    logger.debug(f"No constructor known for driver {driver_id}; skipping team points")
                    continue
                team = scores.setdefault(constructor_id, dict.fromkeys(SESSIONS, 0))
                team[session] += EventScorer.position_points(position, points)
        return scores

    @staticmethod
    def penalty_points(raw_total: int, penalty_fraction: Optional[float]) -> int:
        """Penalty deduction, rounded up so the penalty is never understated"""
        if not penalty_fraction or penalty_fraction <= 0:
            return 0
        # round() strips float noise such as 100 * 0.07 before the ceiling
        return math.ceil(round(raw_total * penalty_fraction, 9))

    @staticmethod
    def score(selection: SelectionRecord, result: ResultRecord,
              live_roster: Mapping[str, str], active_catalog: PointsCatalog) -> EventPointsBreakdown:
        """
        Compute the point breakdown for one participant at one event

        Args:
            selection: The participant's validated picks
            result: The official result, possibly carrying snapshots
            live_roster: Current driver -> constructor mapping
            active_catalog: Rules used when the result has no catalog snapshot

        Returns:
            EventPointsBreakdown with per-session totals, penalty and final total
        """
        catalog = result.catalog_snapshot or active_catalog
        sessions = EventScorer.sessions(result, catalog)
        constructor_scores = EventScorer.constructor_scores(result, catalog, live_roster)

        team_totals = dict.fromkeys(SESSIONS, 0)
        for team_id in selection.team_ids:
            for session, points in constructor_scores.get(team_id, {}).items():
                team_totals[session] += points

        # A driver picked individually also counts inside a picked team
        driver_totals = dict.fromkeys(SESSIONS, 0)
        for driver_id in selection.driver_ids:
            for session, (finishing_order, points) in sessions.items():
                driver_totals[session] += EventScorer.driver_points(driver_id, finishing_order, points)

        fastest_lap = 0
        if selection.fastest_lap_driver and selection.fastest_lap_driver == result.fastest_lap_driver:
            fastest_lap = catalog.fastest_lap or 0

        session_totals = {session: team_totals[session] + driver_totals[session] for session in SESSIONS}
        raw_total = sum(session_totals.values()) + fastest_lap
        penalty = EventScorer.penalty_points(raw_total, selection.penalty_fraction)

        return EventPointsBreakdown(
            grand_prix_points=session_totals[GRAND_PRIX],
            sprint_points=session_totals[SPRINT],
            gp_qualifying_points=session_totals[GP_QUALIFYING],
            sprint_qualifying_points=session_totals[SPRINT_QUALIFYING],
            fastest_lap_points=fastest_lap,
            team_points=sum(team_totals.values()),
            driver_points=sum(driver_totals.values()),
            raw_total=raw_total,
            penalty_points=penalty,
            total_points=raw_total - penalty,
        )
