import pytest

from lightsout.data_models.scoring import ResultRecord
from lightsout.services.recompute import LeagueRecomputeService
from lightsout.utils.leaderboard_exceptions import DatabaseError

from tests.helpers import picks


@pytest.mark.asyncio
async def test_recompute_writes_ranks_and_breakdowns(store):
    await store.save_result("aus_26", ResultRecord(
        grand_prix_finish=("ver", "nor"), gp_qualifying=(), fastest_lap_driver=None
    ))
    for participant_id, driver in (("a", "nor"), ("b", "ver"), ("c", "ver")):
        await store.upsert_participant(participant_id, participant_id.upper())
        await store.save_selection(participant_id, "aus_26", picks(a_drivers=[driver]))

    summary = await store.trigger_remote_recompute()

    assert summary.success
    assert summary.participants_processed == 3
    b, c, a = [await store.get_participant(pid) for pid in ("b", "c", "a")]
    # b and c tie on 25; id decides the order
    assert (b.rank, c.rank, a.rank) == (1, 2, 3)
    assert (b.total_points, a.total_points) == (25, 18)
    assert a.breakdown.gp == 18


class BrokenStore:
    async def get_season_event_ids(self):
        raise DatabaseError("get_season_event_ids", "database is locked")


@pytest.mark.asyncio
async def test_recompute_failure_reported_not_raised():
    service = LeagueRecomputeService(None, BrokenStore())

    summary = await service.recalculate_entire_league()

    assert not summary.success
    assert summary.participants_processed == 0
