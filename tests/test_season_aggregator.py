from lightsout.data_models.scoring import ResultRecord, UsageRollup
from lightsout.services.season import SeasonAggregator

from tests.helpers import picks

ROSTER = {"bob": "red", "alice": "red", "x1": "blue"}


def result(order):
    return ResultRecord(grand_prix_finish=tuple(order), gp_qualifying=(), fastest_lap_driver=None)


class TestSeasonRollup:

    def test_out_of_season_picks_are_ignored(self, catalog):
        aggregator = SeasonAggregator(["r1", "r2"])
        selections = {"r1": picks(a_drivers=["bob"]), "old_25": picks(a_drivers=["bob"])}
        results = {"r1": result(["bob"]), "old_25": result(["bob"])}

        season = aggregator.rollup(selections, results, catalog, ROSTER)

        assert season.total_points == 25
        assert season.events_scored == 1

    def test_events_without_result_are_skipped(self, catalog):
        aggregator = SeasonAggregator(["r1", "r2"])
        selections = {"r1": picks(a_drivers=["bob"]), "r2": picks(a_drivers=["bob"])}

        season = aggregator.rollup(selections, {"r1": result(["x1", "bob"])}, catalog, ROSTER)

        assert season.total_points == 18
        assert season.events_scored == 1

    def test_categories_and_penalties_accumulate(self, catalog):
        aggregator = SeasonAggregator(["r1", "r2"])
        selections = {
            "r1": picks(a_drivers=["bob"], fastest_lap="bob"),
            "r2": picks(a_teams=["red"], penalty=0.5),
        }
        results = {
            "r1": ResultRecord(grand_prix_finish=("bob",), gp_qualifying=("bob",), fastest_lap_driver="bob"),
            "r2": result(["alice", "bob"]),
        }

        season = aggregator.rollup(selections, results, catalog, ROSTER)

        assert season.grand_prix_points == 25 + 43
        assert season.gp_qualifying_points == 3
        assert season.qualifying_points == 3
        assert season.fastest_lap_points == 3
        assert season.penalty_points == 22
        assert season.total_points == 31 + 43 - 22

    def test_default_calendar_is_current_season(self):
        aggregator = SeasonAggregator()
        assert "aus_26" in aggregator.season_event_ids
        assert "abu_26" in aggregator.season_event_ids


class TestUsage:

    def test_usage_counts_filled_slots(self):
        aggregator = SeasonAggregator(["r1", "r2"])
        selections = {
            "r1": picks(a_teams=["red", "blue"], b_team="green", a_drivers=["bob"], b_drivers=["x1"]),
            "r2": picks(a_teams=["red"], a_drivers=["bob", "alice"]),
            "old_25": picks(a_teams=["red"]),
        }

        usage = aggregator.usage(selections)

        assert usage.teams == {"red": 2, "blue": 1, "green": 1}
        assert usage.drivers == {"bob": 2, "x1": 1, "alice": 1}

    def test_popularity_over_recent_events(self):
        aggregator = SeasonAggregator(["r1", "r2", "r3"])
        league = {
            "p1": {"r1": picks(a_teams=["red"]), "r3": picks(a_teams=["blue"])},
            "p2": {"r1": picks(a_teams=["red"]), "r2": picks(a_teams=["blue"])},
        }

        assert aggregator.popularity(league).teams == {"red": 2, "blue": 2}
        assert aggregator.popularity(league, recent_events=2).teams == {"blue": 2}

    def test_remaining_usage_against_class_caps(self):
        usage = UsageRollup(teams={"mclaren": 3, "haas": 5}, drivers={"nor": 8, "mystery": 1})
        classes = {"mclaren": "A", "haas": "B", "nor": "A"}

        remaining = SeasonAggregator.remaining_usage(usage, classes)

        assert remaining["teams"] == {"mclaren": 7, "haas": 0}
        assert remaining["drivers"] == {"nor": 0}
