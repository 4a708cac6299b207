"""
Centralized error embeds for the league bot.

Keeps the wording and colors of failure replies consistent across commands.
"""

import discord
from typing import Optional


class ErrorEmbeds:
    """Error embed factory."""

    @staticmethod
    def participant_not_found(member: Optional[discord.abc.User] = None) -> discord.Embed:
        """Embed for a user who has never been registered in the league."""
        who = member.mention if member else "This user"
        return discord.Embed(
            title="Not In The League",
            description=f"{who} has no picks in the league yet.",
            color=discord.Color.red()
        )

    @staticmethod
    def command_error(error: str) -> discord.Embed:
        return discord.Embed(
            title="Command Error",
            description=f"An error occurred: {error}\n\nPlease try again or contact an administrator.",
            color=discord.Color.red()
        )

    @staticmethod
    def invalid_input(message: str) -> discord.Embed:
        return discord.Embed(
            title="Invalid Input",
            description=message,
            color=discord.Color.red()
        )

    @staticmethod
    def database_error() -> discord.Embed:
        return discord.Embed(
            title="Database Error",
            description="The league data could not be loaded. Please try again later.",
            color=discord.Color.red()
        )
