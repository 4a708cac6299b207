"""
Leaderboard resolution: fast and slow paths, ranking, paging and own rank.
"""

import asyncio

import pytest

from lightsout.config import Config
from lightsout.data_models.leaderboard import (
    LeaderboardBreakdown, LeaderboardCursor, LeaderboardPage, Participant, ResolvedStanding
)
from lightsout.data_models.scoring import ResultRecord
from lightsout.services.leaderboard import LeaderboardPager, LeaderboardService
from lightsout.services.results_store import ResultsStore
from lightsout.utils.leaderboard_exceptions import DatabaseError
from lightsout.utils.ranking import RankingUtility

from tests.helpers import picks

GP_ORDER = ("nor", "ver", "lec", "ham", "pia", "rus", "ant", "had", "sai", "alb")


def standing(participant_id, points):
    return ResolvedStanding(
        participant=Participant(id=participant_id, display_name=participant_id),
        total_points=points,
        breakdown=LeaderboardBreakdown(gp=points),
        source="cached",
    )


async def seed_league(store):
    """Three participants with picks for rounds one and two; only round one has a result."""
    await store.save_result("aus_26", ResultRecord(
        grand_prix_finish=GP_ORDER, gp_qualifying=("ver", "nor", "lec"), fastest_lap_driver="ver"
    ))
    entries = {
        "p1": ("Piper", picks(a_teams=["mclaren"], a_drivers=["nor"], fastest_lap="ver")),
        "p2": ("Quinn", picks(a_teams=["ferrari"], a_drivers=["lec", "ham"])),
        "p3": ("Rory", picks(a_drivers=["alb"], b_drivers=["alo"])),
    }
    for participant_id, (name, selection) in entries.items():
        await store.upsert_participant(participant_id, name)
        await store.save_selection(participant_id, "aus_26", selection)
        await store.save_selection(participant_id, "chn_26", selection)
    # Picks for a retired event never count
    await store.save_selection("p3", "old_25", picks(a_drivers=["nor"]))


class TestRanking:

    def test_ties_get_distinct_adjacent_ranks(self):
        standings = [standing("e", 90), standing("b", 100), standing("a", 150),
                     standing("d", 100), standing("c", 120)]

        entries = RankingUtility.assign_ranks(standings)

        assert [(e.participant_id, e.rank) for e in entries] == [
            ("a", 1), ("c", 2), ("b", 3), ("d", 4), ("e", 5)
        ]

    def test_ranks_continue_from_start(self):
        entries = RankingUtility.assign_ranks([standing("a", 5)], start=51)
        assert entries[0].rank == 51

    def test_sentinel_matched_by_name(self):
        assert RankingUtility.is_sentinel(Participant(id="x", display_name=Config.ADMIN_SENTINEL_NAME))
        assert not RankingUtility.is_sentinel(Participant(id="x", display_name="Piper"))


@pytest.mark.asyncio
async def test_slow_path_scores_raw_picks(store, leaderboard_service):
    await seed_league(store)

    page = await leaderboard_service.resolve_page(None, 10)

    by_id = {e.participant_id: e for e in page.entries}
    # mclaren (nor P1 + pia P5) plus nor again as a driver, both also qualified P2, plus fastest lap
    assert by_id["p1"].total_points == (25 + 10) + 25 + 2 + 2 + 3
    assert by_id["p1"].breakdown == LeaderboardBreakdown(gp=60, quali=2 + 2, sprint=0, fl=3)
    assert by_id["p1"].source == "computed"
    assert [e.participant_id for e in page.entries] == ["p1", "p2", "p3"]
    assert [e.rank for e in page.entries] == [1, 2, 3]


@pytest.mark.asyncio
async def test_fast_and_slow_paths_agree(store, leaderboard_service):
    await seed_league(store)
    slow = await leaderboard_service.resolve_page(None, 10)

    summary = await store.trigger_remote_recompute()
    fast = await leaderboard_service.resolve_page(None, 10)

    assert summary.success
    assert summary.participants_processed == 3
    assert {e.source for e in fast.entries} == {"cached"}
    assert [(e.participant_id, e.total_points, e.breakdown) for e in fast.entries] == \
        [(e.participant_id, e.total_points, e.breakdown) for e in slow.entries]


@pytest.mark.asyncio
async def test_viewer_name_overlay_keeps_cached_points(store, leaderboard_service):
    await seed_league(store)
    await store.trigger_remote_recompute()
    cached = await store.get_participant("p2")

    page = await leaderboard_service.resolve_page(
        None, 10, viewer=Participant(id="p2", display_name="Quinn (new name)")
    )

    row = next(e for e in page.entries if e.participant_id == "p2")
    assert row.display_name == "Quinn (new name)"
    assert row.total_points == cached.total_points
    assert next(e for e in page.entries if e.participant_id == "p1").display_name == "Piper"


@pytest.mark.asyncio
async def test_sentinel_never_ranked(store, leaderboard_service):
    await seed_league(store)
    await store.upsert_participant("admin", Config.ADMIN_SENTINEL_NAME)
    await store.save_selection("admin", "aus_26", picks(a_teams=["mclaren", "red_bull"], a_drivers=["nor", "ver"]))
    await store.trigger_remote_recompute()

    page = await leaderboard_service.resolve_page(None, 10)

    assert "admin" not in [e.participant_id for e in page.entries]
    assert [e.rank for e in page.entries] == [1, 2, 3]
    assert (await store.get_participant("admin")).rank is None
    assert await leaderboard_service.resolve_own_rank(await store.get_participant("admin")) is None


@pytest.mark.asyncio
async def test_season_without_events_counts_nothing(database, store):
    await seed_league(store)
    next_season = ResultsStore(database.session_factory, season="2027")
    service = LeaderboardService(next_season)

    assert await next_season.get_season_event_ids() == []
    page = await service.resolve_page(None, 10)
    usage, _ = await service.get_usage("p1")
    popular = await service.get_popular_picks()
    summary = await next_season.trigger_remote_recompute()

    assert {e.total_points for e in page.entries} == {0}
    assert usage.teams == {} and usage.drivers == {}
    assert popular.drivers == {}
    assert summary.success
    assert (await next_season.get_participant("p1")).total_points == 0


@pytest.mark.asyncio
async def test_pagination_infers_has_more_from_full_page(store, leaderboard_service):
    await seed_league(store)
    await store.trigger_remote_recompute()

    first = await leaderboard_service.resolve_page(None, 2)
    second = await leaderboard_service.resolve_page(first.next_cursor, 2)

    assert first.has_more
    assert [e.rank for e in first.entries] == [1, 2]
    assert not second.has_more
    assert [e.rank for e in second.entries] == [3]
    assert second.entries[0].participant_id == "p3"


@pytest.mark.asyncio
async def test_page_size_validated(leaderboard_service):
    with pytest.raises(ValueError):
        await leaderboard_service.resolve_page(None, 0)


@pytest.mark.asyncio
async def test_own_rank_prefers_cached_rank(leaderboard_service):
    participant = Participant(id="p9", display_name="Nine", total_points=10,
                              breakdown=LeaderboardBreakdown(gp=10), rank=7)
    assert await leaderboard_service.resolve_own_rank(participant) == 7


@pytest.mark.asyncio
async def test_own_rank_fallback_scores_first_page(store, leaderboard_service):
    await seed_league(store)

    participant = await store.get_participant("p2")
    assert participant.rank is None

    assert await leaderboard_service.resolve_own_rank(participant) == 2


@pytest.mark.asyncio
async def test_own_rank_unknown_without_points(store, leaderboard_service):
    await store.upsert_participant("p0", "Zero")
    assert await leaderboard_service.resolve_own_rank(await store.get_participant("p0")) is None


class FailingStore:
    """Store stand-in whose every read fails at the SQL layer."""

    async def get_participants_page(self, cursor, page_size):
        raise DatabaseError("get_participants_page", "disk I/O error")

    async def get_all_selections(self, participant_id):
        raise DatabaseError("get_all_selections", "disk I/O error")

    async def get_season_event_ids(self):
        raise DatabaseError("get_season_event_ids", "disk I/O error")


@pytest.mark.asyncio
async def test_own_rank_store_failure_is_unknown():
    service = LeaderboardService(FailingStore())
    participant = Participant(id="p1", display_name="Piper", total_points=40,
                              breakdown=LeaderboardBreakdown(gp=40))

    assert await service.resolve_own_rank(participant) is None


@pytest.mark.asyncio
async def test_slow_path_failure_marks_only_that_row():
    service = LeaderboardService(FailingStore())

    resolved = await service.resolve_standing(Participant(id="p1", display_name="Piper"))

    assert resolved.source == "unavailable"
    assert resolved.total_points == 0


class SlowService:
    """Leaderboard service stand-in that blocks until released."""

    def __init__(self):
        self.calls = 0
        self.release = asyncio.Event()

    async def resolve_page(self, cursor, page_size, viewer=None):
        self.calls += 1
        await self.release.wait()
        return LeaderboardPage(
            entries=[], next_cursor=LeaderboardCursor(rank_key=1, participant_id="a"),
            has_more=False, page_size=page_size,
        )


@pytest.mark.asyncio
async def test_pager_ignores_concurrent_fetch():
    service = SlowService()
    pager = LeaderboardPager(service, page_size=5)

    first = asyncio.create_task(pager.fetch_more())
    await asyncio.sleep(0)
    assert pager.in_progress
    assert await pager.fetch_more() is False

    service.release.set()
    assert await first is True
    assert service.calls == 1
    assert not pager.in_progress
    assert not pager.has_more
    assert await pager.fetch_more() is False


@pytest.mark.asyncio
async def test_pager_reports_store_failure():
    pager = LeaderboardPager(LeaderboardService(FailingStore()), page_size=5)

    assert await pager.fetch_more() is False
    assert isinstance(pager.last_error, DatabaseError)
    assert pager.has_more
    assert not pager.in_progress


@pytest.mark.asyncio
async def test_pager_accumulates_pages(store, leaderboard_service):
    await seed_league(store)
    await store.trigger_remote_recompute()
    pager = LeaderboardPager(leaderboard_service, page_size=2)

    assert await pager.fetch_more()
    assert await pager.fetch_more()

    assert [e.rank for e in pager.entries] == [1, 2, 3]
    assert not pager.has_more
