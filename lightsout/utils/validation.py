"""
Boundary validation for picks, penalties and scoring profiles.

The scoring engine assumes validated input; everything entering it from
users or administrators passes through these checks first.
"""

import math
from typing import Mapping, Optional, Sequence

from lightsout.constants import ScoringConstants, SelectionConstants
from lightsout.data_models.scoring import PointsCatalog, SelectionRecord
from lightsout.utils.leaderboard_exceptions import (
    CatalogValidationError, PenaltyValidationError, SelectionValidationError
)


def validate_penalty_fraction(fraction: Optional[float]) -> Optional[float]:
    """Reject penalty fractions outside [0, 1]; never clamp."""
    if fraction is None:
        return None
    if isinstance(fraction, bool) or not isinstance(fraction, (int, float)):
        raise PenaltyValidationError(fraction)
    if math.isnan(fraction) or fraction < 0 or fraction > 1:
        raise PenaltyValidationError(fraction)
    return float(fraction)


def validate_selection(selection: SelectionRecord,
                       roster_classes: Optional[Mapping[str, str]] = None) -> SelectionRecord:
    """
    Check slot counts, duplicates and (optionally) entity classes of a selection.

    Args:
        selection: Picks to validate
        roster_classes: Optional {entity_id: "A" | "B"} for teams and drivers

    Returns:
        The selection, unchanged
    """
    if len(selection.a_teams) != SelectionConstants.A_TEAM_SLOTS:
        raise SelectionValidationError(f"Exactly {SelectionConstants.A_TEAM_SLOTS} Class-A team slots are required.")
    if len(selection.a_drivers) != SelectionConstants.A_DRIVER_SLOTS:
        raise SelectionValidationError(f"Exactly {SelectionConstants.A_DRIVER_SLOTS} Class-A driver slots are required.")
    if len(selection.b_drivers) != SelectionConstants.B_DRIVER_SLOTS:
        raise SelectionValidationError(f"Exactly {SelectionConstants.B_DRIVER_SLOTS} Class-B driver slots are required.")

    teams = selection.team_ids
    if len(teams) != len(set(teams)):
        raise SelectionValidationError("The same team cannot be picked twice.")
    drivers = selection.driver_ids
    if len(drivers) != len(set(drivers)):
        raise SelectionValidationError("The same driver cannot be picked twice.")

    if roster_classes:
        _check_class(selection.a_teams, "A", roster_classes, "team")
        _check_class((selection.b_team,), "B", roster_classes, "team")
        _check_class(selection.a_drivers, "A", roster_classes, "driver")
        _check_class(selection.b_drivers, "B", roster_classes, "driver")

    validate_penalty_fraction(selection.penalty_fraction)
    return selection


def _check_class(slots: Sequence[Optional[str]], expected: str,
                 roster_classes: Mapping[str, str], kind: str):
    for entity_id in slots:
        if entity_id and roster_classes.get(entity_id) != expected:
            raise SelectionValidationError(f"'{entity_id}' is not a Class-{expected} {kind}.")


def validate_catalog(catalog: PointsCatalog) -> PointsCatalog:
    """Check the slot counts and signs of a points catalog."""
    expected = (
        ('grand prix finish', catalog.grand_prix_finish, ScoringConstants.GRAND_PRIX_SLOTS),
        ('sprint finish', catalog.sprint_finish, ScoringConstants.SPRINT_SLOTS),
        ('grand prix qualifying', catalog.gp_qualifying, ScoringConstants.QUALIFYING_SLOTS),
        ('sprint qualifying', catalog.sprint_qualifying, ScoringConstants.QUALIFYING_SLOTS),
    )
    for label, points, slots in expected:
        if len(points) != slots:
            raise CatalogValidationError(f"{label} needs {slots} point values, got {len(points)}")
        if any(value < 0 for value in points):
            raise CatalogValidationError(f"{label} points cannot be negative")
    if catalog.fastest_lap < 0:
        raise CatalogValidationError("fastest lap bonus cannot be negative")
    return catalog
