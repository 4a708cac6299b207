import pytest

from lightsout.data_models.leaderboard import (
    LeaderboardBreakdown, LeaderboardCursor, LeaderboardEntry, LeaderboardPage
)
from lightsout.services.leaderboard import LeaderboardPager
from lightsout.views.leaderboard import LeaderboardView, build_leaderboard_embed, trend_marker


def entry(rank, previous_rank=None):
    return LeaderboardEntry(
        rank=rank, participant_id=f"p{rank}", display_name=f"Player {rank}",
        total_points=100 - rank, breakdown=LeaderboardBreakdown(gp=100 - rank),
        source="cached", previous_rank=previous_rank,
    )


class TwoPageService:
    """Serves ranks 1-2, then rank 3 as the last page."""

    async def resolve_page(self, cursor, page_size, viewer=None):
        if cursor is None:
            return LeaderboardPage(
                entries=[entry(1), entry(2)],
                next_cursor=LeaderboardCursor(rank_key=2, participant_id="p2"),
                has_more=True, page_size=page_size,
            )
        return LeaderboardPage(entries=[entry(3)], next_cursor=cursor, has_more=False, page_size=page_size)


class FakeResponse:
    def __init__(self):
        self.buttons = []
        self.deferred = False

    async def edit_message(self, *, view):
        button = view.children[0]
        self.buttons.append((button.label, button.disabled))

    async def defer(self):
        self.deferred = True


class FakeInteraction:
    def __init__(self):
        self.response = FakeResponse()
        self.edits = []

    async def edit_original_response(self, *, embed, view):
        button = view.children[0]
        self.edits.append((embed, button.label, button.disabled))


def test_trend_marker():
    assert trend_marker(entry(2, previous_rank=4)) == "▲"
    assert trend_marker(entry(4, previous_rank=2)) == "▼"
    assert trend_marker(entry(3, previous_rank=3)) == " "
    assert trend_marker(entry(3)) == " "


def test_empty_leaderboard_embed():
    embed = build_leaderboard_embed([], has_more=False)
    assert embed.description.startswith("No standings yet")


@pytest.mark.asyncio
async def test_load_more_shows_loading_then_final_state():
    pager = LeaderboardPager(TwoPageService(), page_size=2)
    await pager.fetch_more()
    view = LeaderboardView(pager)
    interaction = FakeInteraction()

    await view.load_more(interaction)

    assert interaction.response.buttons == [("Loading...", True)]
    embed, label, disabled = interaction.edits[-1]
    assert (label, disabled) == ("Load more", True)
    assert [e.rank for e in pager.entries] == [1, 2, 3]
    assert "Showing ranks 1-3" in embed.footer.text


@pytest.mark.asyncio
async def test_load_more_ignored_while_fetch_pending():
    pager = LeaderboardPager(TwoPageService(), page_size=2)
    await pager.fetch_more()
    view = LeaderboardView(pager)
    pager._in_progress = True
    interaction = FakeInteraction()

    await view.load_more(interaction)

    assert interaction.response.deferred
    assert interaction.response.buttons == []
    assert interaction.edits == []
