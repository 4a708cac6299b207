import os
from dotenv import load_dotenv

from lightsout.constants import PaginationConstants, RefreshConstants, SeasonConstants

load_dotenv()

class Config:
    """League bot configuration settings"""
    
    # Discord settings
    DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')
    DISCORD_GUILD_ID = int(os.getenv('DISCORD_GUILD_ID', 0))
    DISCORD_GUILD_IDS = os.getenv('DISCORD_GUILD_IDS', '')  # Comma-separated for multi-guild support
    
    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///league.db')
    
    # Bot settings
    COMMAND_PREFIX = os.getenv('COMMAND_PREFIX', '!')
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    
    # Logging settings; an empty LOG_DIR disables the log file
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    LOG_RETENTION_DAYS = int(os.getenv('LOG_RETENTION_DAYS', 14))
    
    # League settings
    CURRENT_SEASON = os.getenv('CURRENT_SEASON', SeasonConstants.SEASON)
    
    # Administrative account that never appears in rankings
    ADMIN_SENTINEL_ID = os.getenv('ADMIN_SENTINEL_ID', '')
    ADMIN_SENTINEL_NAME = os.getenv('ADMIN_SENTINEL_NAME', 'Admin Principal')
    
    # Leaderboard settings
    LEADERBOARD_PAGE_SIZE = int(os.getenv('LEADERBOARD_PAGE_SIZE', PaginationConstants.DEFAULT_PAGE_SIZE))
    
    # Manual refresh rate limiting
    REFRESH_COOLDOWN_SECONDS = int(os.getenv('REFRESH_COOLDOWN_SECONDS', RefreshConstants.COOLDOWN_SECONDS))
    MAX_DAILY_REFRESHES = int(os.getenv('MAX_DAILY_REFRESHES', RefreshConstants.MAX_DAILY_REFRESHES))
    REFRESH_LOCKOUT_SECONDS = int(os.getenv('REFRESH_LOCKOUT_SECONDS', RefreshConstants.LOCKOUT_SECONDS))
    
    @classmethod
    def get_guild_ids(cls):
        """Get list of guild IDs for command syncing"""
        if cls.DISCORD_GUILD_IDS:
            # Multi-guild support: comma-separated IDs
            try:
                return [int(guild_id.strip()) for guild_id in cls.DISCORD_GUILD_IDS.split(',') if guild_id.strip()]
            except ValueError:
                raise ValueError("DISCORD_GUILD_IDS must be comma-separated integers")
        elif cls.DISCORD_GUILD_ID:
            return [cls.DISCORD_GUILD_ID]
        else:
            # Global sync
            return []
    
    @classmethod
    def validate(cls):
        """Validate that required configuration is present"""
        if not cls.DISCORD_TOKEN:
            raise ValueError("DISCORD_TOKEN is required")
        if cls.LEADERBOARD_PAGE_SIZE < 1:
            raise ValueError("LEADERBOARD_PAGE_SIZE must be a positive integer")
        if cls.MAX_DAILY_REFRESHES < 1:
            raise ValueError("MAX_DAILY_REFRESHES must be a positive integer")
