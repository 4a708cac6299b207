import math

import pytest

from lightsout.data_models.scoring import PointsCatalog, SelectionRecord
from lightsout.utils.leaderboard_exceptions import (
    CatalogValidationError, PenaltyValidationError, SelectionValidationError
)
from lightsout.utils.validation import validate_catalog, validate_penalty_fraction, validate_selection

from tests.helpers import gp_only_catalog, picks


class TestPenaltyValidation:

    @pytest.mark.parametrize("fraction", [0, 0.0, 0.25, 1, 1.0])
    def test_accepts_unit_interval(self, fraction):
        assert validate_penalty_fraction(fraction) == float(fraction)

    def test_none_means_no_penalty(self):
        assert validate_penalty_fraction(None) is None

    @pytest.mark.parametrize("fraction", [-0.01, 1.01, 20, math.nan, True, "0.5"])
    def test_rejects_everything_else(self, fraction):
        with pytest.raises(PenaltyValidationError) as exc_info:
            validate_penalty_fraction(fraction)
        assert "between 0% and 100%" in exc_info.value.user_message


class TestSelectionValidation:

    def test_valid_selection_passes(self):
        selection = picks(a_teams=["mclaren", "ferrari"], b_team="haas",
                          a_drivers=["nor", "lec", "ver"], b_drivers=["alo", "gas"])
        classes = {"mclaren": "A", "ferrari": "A", "haas": "B",
                   "nor": "A", "lec": "A", "ver": "A", "alo": "B", "gas": "B"}
        assert validate_selection(selection, classes) is selection

    def test_duplicate_driver_rejected(self):
        with pytest.raises(SelectionValidationError):
            validate_selection(picks(a_drivers=["nor", "nor"]))

    def test_wrong_slot_count_rejected(self):
        with pytest.raises(SelectionValidationError):
            validate_selection(SelectionRecord(a_drivers=("nor",)))

    def test_wrong_class_rejected(self):
        with pytest.raises(SelectionValidationError) as exc_info:
            validate_selection(picks(b_team="mclaren"), {"mclaren": "A"})
        assert "Class-B" in exc_info.value.user_message

    def test_penalty_checked_too(self):
        with pytest.raises(PenaltyValidationError):
            validate_selection(picks(penalty=1.5))


class TestCatalogValidation:

    def test_default_catalog_is_valid(self):
        assert validate_catalog(PointsCatalog.default())

    def test_short_table_rejected(self):
        with pytest.raises(CatalogValidationError):
            validate_catalog(gp_only_catalog([25, 18, 15]))

    def test_negative_bonus_rejected(self):
        catalog = PointsCatalog.default()
        with pytest.raises(CatalogValidationError):
            validate_catalog(PointsCatalog(
                grand_prix_finish=catalog.grand_prix_finish,
                sprint_finish=catalog.sprint_finish,
                gp_qualifying=catalog.gp_qualifying,
                sprint_qualifying=catalog.sprint_qualifying,
                fastest_lap=-1,
            ))
