"""
Season aggregation for the Lights Out League.

Rolls EventScorer results up across the configured season and counts how
often each team and driver was picked. Everything here is a pure function of
its inputs, so one aggregator can be shared freely between coroutines.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional

from lightsout.constants import SeasonConstants, UsageLimits
from lightsout.data_models.scoring import (
    PointsCatalog, ResultRecord, SeasonBreakdown, SelectionRecord, UsageRollup
)
from lightsout.utils.scoring import EventScorer

logger = logging.getLogger(__name__)


class SeasonAggregator:
    """Season rollups and usage counts restricted to the current season's events."""

    def __init__(self, season_event_ids: Optional[Iterable[str]] = None):
        """
        Args:
            season_event_ids: Event ids of the current season, in calendar
                order. Defaults to the built-in season calendar.
        """
        if season_event_ids is None:
            season_event_ids = [event_id for event_id, _, _, _ in SeasonConstants.EVENTS]
        self._ordered_event_ids = list(dict.fromkeys(season_event_ids))
        self.season_event_ids = frozenset(self._ordered_event_ids)

    def in_season(self, selections_by_event: Mapping[str, SelectionRecord]) -> Dict[str, SelectionRecord]:
        """Drop picks for events outside the current season."""
        return {
            event_id: selection
            for event_id, selection in selections_by_event.items()
            if event_id in self.season_event_ids
        }

    def rollup(self, selections_by_event: Mapping[str, SelectionRecord],
               results_by_event: Mapping[str, ResultRecord],
               active_catalog: PointsCatalog,
               live_roster: Mapping[str, str]) -> SeasonBreakdown:
        """Sum every adjudicated in-season event into one season breakdown."""
        sums = dict(
            grand_prix_points=0, sprint_points=0, gp_qualifying_points=0,
            sprint_qualifying_points=0, fastest_lap_points=0,
            penalty_points=0, total_points=0, events_scored=0,
        )
        for event_id, selection in self.in_season(selections_by_event).items():
            result = results_by_event.get(event_id)
            if result is None:
                # Not adjudicated yet
                continue
            event = EventScorer.score(selection, result, live_roster, active_catalog)
            sums['grand_prix_points'] += event.grand_prix_points
            sums['sprint_points'] += event.sprint_points
            sums['gp_qualifying_points'] += event.gp_qualifying_points
            sums['sprint_qualifying_points'] += event.sprint_qualifying_points
            sums['fastest_lap_points'] += event.fastest_lap_points
            sums['penalty_points'] += event.penalty_points
            sums['total_points'] += event.total_points
            sums['events_scored'] += 1
        return SeasonBreakdown(**sums)

    def usage(self, selections_by_event: Mapping[str, SelectionRecord]) -> UsageRollup:
        """Count every filled team and driver slot across in-season events."""
        rollup = UsageRollup()
        for selection in self.in_season(selections_by_event).values():
            self._count(rollup, selection)
        return rollup

    def popularity(self, selections_by_participant: Mapping[str, Mapping[str, SelectionRecord]],
                   recent_events: Optional[int] = None) -> UsageRollup:
        """
        League-wide pick counts.

        Args:
            selections_by_participant: {participant_id: {event_id: selection}}
            recent_events: If set, only count the last N season events that
                have any picks at all

        Returns:
            UsageRollup summed over every participant
        """
        picked_events = {
            event_id
            for selections in selections_by_participant.values()
            for event_id in selections
        }
        relevant = [event_id for event_id in self._ordered_event_ids if event_id in picked_events]
        if recent_events is not None and recent_events > 0:
            relevant = relevant[-recent_events:]
        relevant = set(relevant)

        rollup = UsageRollup()
        for selections in selections_by_participant.values():
            for event_id, selection in selections.items():
                if event_id in relevant:
                    self._count(rollup, selection)
        return rollup

    @staticmethod
    def remaining_usage(usage: UsageRollup, roster_classes: Mapping[str, str]) -> Dict[str, Dict[str, int]]:
        """
        Picks left per entity against the per-class season caps.

        Returns:
            {"teams": {id: remaining}, "drivers": {id: remaining}} for every
            entity in ``usage``; entities of unknown class are omitted
        """
        remaining = {'teams': {}, 'drivers': {}}
        for kind, counts in (('teams', usage.teams), ('drivers', usage.drivers)):
            for entity_id, used in counts.items():
                entity_class = roster_classes.get(entity_id)
                limits = UsageLimits.LIMITS.get(entity_class)
                if limits is None:
                    logger.debug(f"No usage limit for {entity_id} (class {entity_class})")
                    continue
                remaining[kind][entity_id] = limits[kind] - used
        return remaining

    @staticmethod
    def _count(rollup: UsageRollup, selection: SelectionRecord):
        for team_id in selection.team_ids:
            rollup.teams[team_id] = rollup.teams.get(team_id, 0) + 1
        for driver_id in selection.driver_ids:
            rollup.drivers[driver_id] = rollup.drivers.get(driver_id, 0) + 1
