import discord
from discord import app_commands
from discord.ext import commands
from typing import Optional
import logging

from lightsout.constants import RefreshConstants, UIConstants
from lightsout.data_models.leaderboard import Participant
from lightsout.services.leaderboard import LeaderboardPager
from lightsout.services.refresh_policy import BLOCKED, BUSY, FAILED, REFRESHED, RefreshDecision
from lightsout.utils.error_embeds import ErrorEmbeds
from lightsout.utils.leaderboard_exceptions import LeaderboardException
from lightsout.views.leaderboard import LeaderboardView

logger = logging.getLogger(__name__)


def _viewer(user: discord.abc.User) -> Participant:
    return Participant(id=str(user.id), display_name=user.display_name)


def _format_wait(seconds: int) -> str:
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def _refresh_status_line(decision: RefreshDecision) -> str:
    if decision.allowed:
        return f"You can refresh now ({decision.daily_remaining} left today)."
    if decision.locked_out:
        return f"Daily refresh limit reached. Try again in {_format_wait(decision.seconds_remaining)}."
    return (
        f"Cooldown: {_format_wait(decision.seconds_remaining)} "
        f"({decision.daily_remaining} refreshes left today)."
    )


def _countdown_fits_interaction(decision: RefreshDecision) -> bool:
    """Only count down waits that end while the reply can still be edited."""
    return 0 < decision.seconds_remaining <= RefreshConstants.INTERACTION_TOKEN_SECONDS


class LeaderboardCog(commands.Cog):
    """Season leaderboard, usage and manual refresh commands"""

    def __init__(self, bot):
        self.bot = bot
        self.results_store = bot.results_store
        self.leaderboard_service = bot.leaderboard_service
        self.refresh_policy = bot.refresh_policy

    @app_commands.command(name="leaderboard", description="View the season leaderboard")
    async def leaderboard(self, interaction: discord.Interaction):
        """Display the first leaderboard page with a Load more button."""
        await interaction.response.defer()

        pager = LeaderboardPager(self.leaderboard_service, viewer=_viewer(interaction.user))
        try:
            fetched = await pager.fetch_more()
            if not fetched and pager.last_error is not None:
                await interaction.followup.send(embed=ErrorEmbeds.database_error())
                return

            view = LeaderboardView(pager)
            await interaction.followup.send(embed=view.build_embed(), view=view)

        except ValueError as e:
            await interaction.followup.send(embed=ErrorEmbeds.invalid_input(str(e)))
        except Exception as e:
            logger.error(f"Error in leaderboard command: {e}")
            await interaction.followup.send(embed=ErrorEmbeds.command_error("Could not load the leaderboard."))

    @app_commands.command(name="my-rank", description="Show your current league position")
    async def my_rank(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)

        try:
            participant = await self.results_store.get_participant(str(interaction.user.id))
            if participant is None:
                await interaction.followup.send(embed=ErrorEmbeds.participant_not_found(interaction.user), ephemeral=True)
                return

            viewer = _viewer(interaction.user)
            rank = await self.leaderboard_service.resolve_own_rank(participant, viewer)
            standing = await self.leaderboard_service.resolve_standing(participant, viewer)

            embed = discord.Embed(
                title=f"{UIConstants.FLAG_EMOJI} {viewer.display_name}",
                color=UIConstants.GOLD_RANK_COLOR if rank == 1 else UIConstants.DEFAULT_EMBED_COLOR
            )
            embed.add_field(name="Rank", value=f"#{rank}" if rank else "Unranked", inline=True)
            points = "Unavailable" if standing.source == "unavailable" else str(standing.total_points)
            embed.add_field(name="Points", value=points, inline=True)
            b = standing.breakdown
            embed.add_field(
                name="Breakdown",
                value=f"GP {b.gp} | Quali {b.quali} | Sprint {b.sprint} | FL {b.fl}",
                inline=False
            )
            await interaction.followup.send(embed=embed, ephemeral=True)

        except LeaderboardException as e:
            await interaction.followup.send(e.user_message, ephemeral=True)
        except Exception as e:
            logger.error(f"Error in my-rank command: {e}")
            await interaction.followup.send(embed=ErrorEmbeds.command_error("Could not look up your rank."), ephemeral=True)

    @app_commands.command(name="usage", description="Show how often each team and driver has been picked")
    @app_commands.describe(member="League member to inspect (defaults to you)")
    async def usage(self, interaction: discord.Interaction, member: Optional[discord.Member] = None):
        await interaction.response.defer(ephemeral=True)
        target = member or interaction.user

        try:
            usage, remaining = await self.leaderboard_service.get_usage(str(target.id))

            embed = discord.Embed(
                title=f"Pick usage - {target.display_name}",
                color=UIConstants.DEFAULT_EMBED_COLOR
            )
            if not usage.teams and not usage.drivers:
                embed.description = "No picks made this season."
            for label, kind, counts in (("Teams", "teams", usage.teams), ("Drivers", "drivers", usage.drivers)):
                if not counts:
                    continue
                lines = [
                    f"`{entity_id}` used {used}, {remaining[kind].get(entity_id, '?')} left"
                    for entity_id, used in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
                ]
                embed.add_field(name=label, value="\n".join(lines)[:1024], inline=False)
            await interaction.followup.send(embed=embed, ephemeral=True)

        except LeaderboardException as e:
            await interaction.followup.send(e.user_message, ephemeral=True)
        except Exception as e:
            logger.error(f"Error in usage command: {e}")
            await interaction.followup.send(embed=ErrorEmbeds.command_error("Could not load pick usage."), ephemeral=True)

    @app_commands.command(name="popular-picks", description="Most picked teams and drivers across the league")
    @app_commands.describe(recent_events="Only count the last N events with picks")
    async def popular_picks(self, interaction: discord.Interaction,
                            recent_events: Optional[app_commands.Range[int, 1, 24]] = None):
        await interaction.response.defer()

        try:
            rollup = await self.leaderboard_service.get_popular_picks(recent_events)

            scope = f"last {recent_events} events" if recent_events else "whole season"
            embed = discord.Embed(title=f"Popular picks ({scope})", color=UIConstants.DEFAULT_EMBED_COLOR)
            if not rollup.teams and not rollup.drivers:
                embed.description = "No picks yet."
            for label, counts in (("Teams", rollup.teams), ("Drivers", rollup.drivers)):
                top = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:5]
                if top:
                    embed.add_field(
                        name=label,
                        value="\n".join(f"{i}. `{entity_id}` - {count}" for i, (entity_id, count) in enumerate(top, 1)),
                        inline=True
                    )
            await interaction.followup.send(embed=embed)

        except LeaderboardException as e:
            await interaction.followup.send(e.user_message, ephemeral=True)
        except Exception as e:
            logger.error(f"Error in popular-picks command: {e}")
            await interaction.followup.send(embed=ErrorEmbeds.command_error("Could not load popular picks."))

    @app_commands.command(name="refresh-leaderboard", description="Recompute the league standings now")
    async def refresh_leaderboard(self, interaction: discord.Interaction):
        """Manual recompute, limited per user by cooldown and daily quota."""
        await interaction.response.defer(ephemeral=True)
        device_id = str(interaction.user.id)

        try:
            result = await self.refresh_policy.refresh(device_id, self.results_store.trigger_remote_recompute)

            if result.status == REFRESHED:
                message = (
                    f"{UIConstants.FLAG_EMOJI} Standings refreshed for "
                    f"{result.summary.participants_processed} participants.\n"
                )
            elif result.status == BUSY:
                message = "A refresh you started is still running.\n"
            elif result.status == FAILED:
                message = "The refresh failed. No quota was used, you can try again.\n"
            else:
                message = f"{UIConstants.TIMER_EMOJI} Refresh not available yet.\n"
            message += _refresh_status_line(result.decision)
            await interaction.followup.send(message, ephemeral=True)

            if result.status in (REFRESHED, BLOCKED) and _countdown_fits_interaction(result.decision):
                async def on_tick(decision: RefreshDecision):
                    if decision.allowed:
                        try:
                            await interaction.edit_original_response(content=_refresh_status_line(decision))
                        except discord.HTTPException as e:
                            logger.warning(f"Could not update refresh countdown for {device_id}: {e}")

                self.refresh_policy.start_countdown(device_id, on_tick)

        except LeaderboardException as e:
            await interaction.followup.send(e.user_message, ephemeral=True)
        except Exception as e:
            logger.error(f"Error in refresh-leaderboard command: {e}")
            await interaction.followup.send(embed=ErrorEmbeds.command_error("Could not refresh the leaderboard."), ephemeral=True)


async def setup(bot):
    await bot.add_cog(LeaderboardCog(bot))
