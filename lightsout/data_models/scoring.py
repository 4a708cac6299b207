"""
Scoring data models for the Lights Out League.

Provides immutable value objects for scoring rules, participant picks and
official event results, plus the breakdowns the scoring engine produces.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from lightsout.constants import ScoringConstants, SelectionConstants

DriverSlots = Tuple[Optional[str], ...]


def _slots(values: Optional[Sequence[Optional[str]]], size: int) -> DriverSlots:
    """Normalize a slot list to a fixed-size tuple, padding with None."""
    values = list(values or [])
    values = [value or None for value in values[:size]]
    return tuple(values + [None] * (size - len(values)))


def _order(values: Optional[Sequence[Optional[str]]]) -> Optional[DriverSlots]:
    if values is None:
        return None
    return tuple(value or None for value in values)


@dataclass(frozen=True)
class PointsCatalog:
    """Points awarded per finishing position for each session type."""
    grand_prix_finish: Tuple[int, ...]
    sprint_finish: Tuple[int, ...]
    gp_qualifying: Tuple[int, ...]
    sprint_qualifying: Tuple[int, ...]
    fastest_lap: int

    @classmethod
    def default(cls) -> "PointsCatalog":
        return cls(
            grand_prix_finish=ScoringConstants.GRAND_PRIX_FINISH,
            sprint_finish=ScoringConstants.SPRINT_FINISH,
            gp_qualifying=ScoringConstants.GP_QUALIFYING,
            sprint_qualifying=ScoringConstants.SPRINT_QUALIFYING,
            fastest_lap=ScoringConstants.FASTEST_LAP,
        )

    @classmethod
    def from_dict(cls, data: Mapping) -> "PointsCatalog":
        return cls(
            grand_prix_finish=tuple(int(p) for p in data.get('grandPrixFinish', ())),
            sprint_finish=tuple(int(p) for p in data.get('sprintFinish', ())),
            gp_qualifying=tuple(int(p) for p in data.get('gpQualifying', ())),
            sprint_qualifying=tuple(int(p) for p in data.get('sprintQualifying', ())),
            fastest_lap=int(data.get('fastestLap', 0) or 0),
        )

    def to_dict(self) -> Dict:
        return {
            'grandPrixFinish': list(self.grand_prix_finish),
            'sprintFinish': list(self.sprint_finish),
            'gpQualifying': list(self.gp_qualifying),
            'sprintQualifying': list(self.sprint_qualifying),
            'fastestLap': self.fastest_lap,
        }


@dataclass(frozen=True)
class ScoringProfile:
    """A named points catalog."""
    id: str
    name: str
    catalog: PointsCatalog


@dataclass(frozen=True)
class ScoringSettings:
    """All scoring profiles plus the one currently in force."""
    active_profile_id: str
    profiles: Tuple[ScoringProfile, ...] = ()

    def active_catalog(self) -> PointsCatalog:
        for profile in self.profiles:
            if profile.id == self.active_profile_id:
                return profile.catalog
        return PointsCatalog.default()


@dataclass(frozen=True)
class SelectionRecord:
    """One participant's picks for one event."""
    a_teams: DriverSlots = (None,) * SelectionConstants.A_TEAM_SLOTS
    b_team: Optional[str] = None
    a_drivers: DriverSlots = (None,) * SelectionConstants.A_DRIVER_SLOTS
    b_drivers: DriverSlots = (None,) * SelectionConstants.B_DRIVER_SLOTS
    fastest_lap_driver: Optional[str] = None
    penalty_fraction: Optional[float] = None
    penalty_reason: Optional[str] = None

    @property
    def team_ids(self) -> List[str]:
        """Every filled team slot, Class-A first."""
        return [team for team in (*self.a_teams, self.b_team) if team]

    @property
    def driver_ids(self) -> List[str]:
        """Every filled driver slot, Class-A first."""
        return [driver for driver in (*self.a_drivers, *self.b_drivers) if driver]

    @classmethod
    def from_dict(cls, data: Mapping) -> "SelectionRecord":
        return cls(
            a_teams=_slots(data.get('aTeams'), SelectionConstants.A_TEAM_SLOTS),
            b_team=data.get('bTeam') or None,
            a_drivers=_slots(data.get('aDrivers'), SelectionConstants.A_DRIVER_SLOTS),
            b_drivers=_slots(data.get('bDrivers'), SelectionConstants.B_DRIVER_SLOTS),
            fastest_lap_driver=data.get('fastestLap') or None,
            penalty_fraction=data.get('penalty'),
            penalty_reason=data.get('penaltyReason'),
        )

    def to_dict(self) -> Dict:
        return {
            'aTeams': list(self.a_teams),
            'bTeam': self.b_team,
            'aDrivers': list(self.a_drivers),
            'bDrivers': list(self.b_drivers),
            'fastestLap': self.fastest_lap_driver,
            'penalty': self.penalty_fraction,
            'penaltyReason': self.penalty_reason,
        }


@dataclass(frozen=True)
class ResultRecord:
    """
    Official outcome of one event.

    ``roster_snapshot`` and ``catalog_snapshot`` are captured when the result
    is saved so later roster or rule edits never rescore history. Sprint
    sessions are None for events without a sprint.
    """
    grand_prix_finish: DriverSlots = ()
    gp_qualifying: DriverSlots = ()
    fastest_lap_driver: Optional[str] = None
    sprint_finish: Optional[DriverSlots] = None
    sprint_qualifying: Optional[DriverSlots] = None
    roster_snapshot: Optional[Mapping[str, str]] = None
    catalog_snapshot: Optional[PointsCatalog] = None

    def __post_init__(self):
        if self.roster_snapshot is not None and not isinstance(self.roster_snapshot, MappingProxyType):
            object.__setattr__(self, 'roster_snapshot', MappingProxyType(dict(self.roster_snapshot)))

    def with_snapshots(self, live_roster: Mapping[str, str], catalog: PointsCatalog) -> "ResultRecord":
        """Return a copy carrying snapshots of the given roster and rules."""
        return ResultRecord(
            grand_prix_finish=self.grand_prix_finish,
            gp_qualifying=self.gp_qualifying,
            fastest_lap_driver=self.fastest_lap_driver,
            sprint_finish=self.sprint_finish,
            sprint_qualifying=self.sprint_qualifying,
            roster_snapshot=dict(live_roster),
            catalog_snapshot=catalog,
        )

    @classmethod
    def from_dict(cls, data: Mapping) -> "ResultRecord":
        catalog = data.get('scoringSnapshot')
        return cls(
            grand_prix_finish=_order(data.get('grandPrixFinish')) or (),
            gp_qualifying=_order(data.get('gpQualifying')) or (),
            fastest_lap_driver=data.get('fastestLap') or None,
            sprint_finish=_order(data.get('sprintFinish')),
            sprint_qualifying=_order(data.get('sprintQualifying')),
            roster_snapshot=data.get('driverTeams'),
            catalog_snapshot=PointsCatalog.from_dict(catalog) if catalog else None,
        )

    def to_dict(self) -> Dict:
        return {
            'grandPrixFinish': list(self.grand_prix_finish),
            'gpQualifying': list(self.gp_qualifying),
            'fastestLap': self.fastest_lap_driver,
            'sprintFinish': list(self.sprint_finish) if self.sprint_finish is not None else None,
            'sprintQualifying': list(self.sprint_qualifying) if self.sprint_qualifying is not None else None,
            'driverTeams': dict(self.roster_snapshot) if self.roster_snapshot is not None else None,
            'scoringSnapshot': self.catalog_snapshot.to_dict() if self.catalog_snapshot else None,
        }


@dataclass(frozen=True)
class EventPointsBreakdown:
    """Points one participant earned at one event."""
    grand_prix_points: int = 0
    sprint_points: int = 0
    gp_qualifying_points: int = 0
    sprint_qualifying_points: int = 0
    fastest_lap_points: int = 0
    team_points: int = 0
    driver_points: int = 0
    raw_total: int = 0
    penalty_points: int = 0
    total_points: int = 0


@dataclass(frozen=True)
class SeasonBreakdown:
    """Season-long sums of event breakdowns."""
    grand_prix_points: int = 0
    sprint_points: int = 0
    gp_qualifying_points: int = 0
    sprint_qualifying_points: int = 0
    fastest_lap_points: int = 0
    penalty_points: int = 0
    total_points: int = 0
    events_scored: int = 0

    @property
    def qualifying_points(self) -> int:
        return self.gp_qualifying_points + self.sprint_qualifying_points


@dataclass
class UsageRollup:
    """How many times each team and driver was picked."""
    teams: Dict[str, int] = field(default_factory=dict)
    drivers: Dict[str, int] = field(default_factory=dict)
