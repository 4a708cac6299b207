"""
Leaderboard view components for the Lights Out League.

An append-only leaderboard: the first page is shown immediately and a
"Load more" button pulls the next cursor page into the same message.
"""

import discord
from discord.ui import View, Button
from typing import List, Optional

from lightsout.constants import PaginationConstants, UIConstants
from lightsout.data_models.leaderboard import LeaderboardEntry
from lightsout.services.leaderboard import LeaderboardPager


def trend_marker(entry: LeaderboardEntry) -> str:
    """Arrow showing movement since the previous recompute."""
    if entry.previous_rank is None or entry.previous_rank == entry.rank:
        return " "
    return "▲" if entry.rank < entry.previous_rank else "▼"


def build_leaderboard_embed(entries: List[LeaderboardEntry], has_more: bool,
                            highlight_id: Optional[str] = None,
                            failed: bool = False) -> discord.Embed:
    """Build the leaderboard embed from the last EMBED_ROWS accumulated rows."""
    embed = discord.Embed(
        title=f"{UIConstants.TROPHY_EMOJI} Season Leaderboard",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )

    if not entries:
        embed.description = "No standings yet. Results appear once the first event is scored."
        return embed

    shown = entries[-PaginationConstants.EMBED_ROWS:]
    lines = ["```"]
    lines.append(f"{'#':<4} {'':1} {'Player':<16} {'Pts':>5} {'GP':>4} {'Q':>3} {'Spr':>4} {'FL':>3}")
    lines.append("-" * 47)
    for entry in shown:
        name = entry.display_name[:15]
        if entry.participant_id == highlight_id:
            name = f"*{name[:14]}"
        points = "?" if entry.source == "unavailable" else entry.total_points
        b = entry.breakdown
        lines.append(
            f"{entry.rank:<4} {trend_marker(entry):1} {name:<16} {points:>5} "
            f"{b.gp:>4} {b.quali:>3} {b.sprint:>4} {b.fl:>3}"
        )
    lines.append("```")
    embed.description = "\n".join(lines)

    footer = f"Showing ranks {shown[0].rank}-{shown[-1].rank}"
    if has_more:
        footer += " | More available"
    if failed:
        footer += " | Last load failed, try again"
    embed.set_footer(text=footer)
    return embed


class LeaderboardView(View):
    """Cursor-paginated leaderboard with a single Load more button."""

    def __init__(self, pager: LeaderboardPager, *, timeout: int = 900):
        super().__init__(timeout=timeout)
        self.pager = pager
        self._update_buttons()

    def _update_buttons(self, loading: bool = False):
        busy = loading or self.pager.in_progress
        self.clear_items()
        load_more = Button(
            label="Loading..." if busy else "Load more",
            style=discord.ButtonStyle.primary,
            disabled=busy or not self.pager.has_more,
            custom_id="leaderboard:more"
        )
        load_more.callback = self.load_more
        self.add_item(load_more)

    def build_embed(self) -> discord.Embed:
        highlight = self.pager.viewer.id if self.pager.viewer else None
        return build_leaderboard_embed(
            self.pager.entries, self.pager.has_more, highlight, failed=self.pager.last_error is not None
        )

    async def load_more(self, interaction: discord.Interaction):
        """Fetch the next page; presses while a fetch is pending do nothing."""
        if self.pager.in_progress:
            await interaction.response.defer()
            return

        self._update_buttons(loading=True)
        await interaction.response.edit_message(view=self)

        await self.pager.fetch_more()
        self._update_buttons()
        await interaction.edit_original_response(embed=self.build_embed(), view=self)
