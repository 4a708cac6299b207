"""
Services package for the Lights Out League bot.

Store access, standings resolution and refresh gating.
"""

from .base import BaseService
from .leaderboard import LeaderboardPager, LeaderboardService
from .refresh_policy import RefreshPolicy, RefreshStateStore
from .results_store import ResultsStore

__all__ = [
    'BaseService', 'LeaderboardPager', 'LeaderboardService',
    'RefreshPolicy', 'RefreshStateStore', 'ResultsStore',
]
