"""
League-wide constants for the Lights Out League bot.

This module contains the magic numbers, the season calendar and the default
roster used throughout the codebase.
"""

class ScoringConstants:
    """Default points catalog used when no scoring profile is configured."""
    
    GRAND_PRIX_FINISH = (25, 18, 15, 12, 10, 8, 6, 4, 2, 1)
    SPRINT_FINISH = (8, 7, 6, 5, 4, 3, 2, 1)
    GP_QUALIFYING = (3, 2, 1)
    SPRINT_QUALIFYING = (3, 2, 1)
    FASTEST_LAP = 3
    
    # Slot counts every catalog and result must respect
    GRAND_PRIX_SLOTS = 10
    SPRINT_SLOTS = 8
    QUALIFYING_SLOTS = 3
    
    DEFAULT_PROFILE_ID = "standard"
    DEFAULT_PROFILE_NAME = "Standard"

class SelectionConstants:
    """Slot layout of a participant's picks for one event."""
    
    A_TEAM_SLOTS = 2
    A_DRIVER_SLOTS = 3
    B_DRIVER_SLOTS = 2

class UsageLimits:
    """Per-season pick caps by entity class."""
    
    LIMITS = {
        "A": {"teams": 10, "drivers": 8},
        "B": {"teams": 5, "drivers": 5},
    }

class RefreshConstants:
    """Manual leaderboard refresh limits."""
    
    COOLDOWN_SECONDS = 60
    MAX_DAILY_REFRESHES = 5
    LOCKOUT_SECONDS = 24 * 60 * 60  # 24 hours
    WINDOW_SECONDS = 24 * 60 * 60
    
    # Countdown timer tick
    TICK_SECONDS = 1.0
    
    # Waits longer than this are shown as a lockout rather than a cooldown
    LOCK_DISPLAY_THRESHOLD = 60 * 60
    
    # Discord interaction tokens expire after 15 minutes
    INTERACTION_TOKEN_SECONDS = 15 * 60

class PaginationConstants:
    """Constants for paginated displays."""
    
    # Default page size for leaderboard batches
    DEFAULT_PAGE_SIZE = 50
    MAX_PAGE_SIZE = 100
    
    # Participants loaded per query by the league recompute
    RECOMPUTE_BATCH_SIZE = 500
    
    # Rows rendered per Discord embed
    EMBED_ROWS = 15

class UIConstants:
    """Constants for Discord UI elements."""
    
    DEFAULT_EMBED_COLOR = 0xDA291C  # League red
    GOLD_RANK_COLOR = 0xffd700
    
    TROPHY_EMOJI = "🏆"
    FLAG_EMOJI = "🏁"
    TIMER_EMOJI = "⏱️"

class SeasonConstants:
    """The current season calendar: (event id, round, name, has sprint)."""
    
    SEASON = "2026"
    
    EVENTS = (
        ("aus_26", 1, "Australian GP", False),
        ("chn_26", 2, "Chinese GP", True),
        ("jpn_26", 3, "Japanese GP", False),
        ("bhr_26", 4, "Bahrain GP", False),
        ("sau_26", 5, "Saudi Arabian GP", False),
        ("mia_26", 6, "Miami GP", True),
        ("can_26", 7, "Canadian GP", True),
        ("mco_26", 8, "Monaco GP", False),
        ("esp_26", 9, "Spanish GP", False),
        ("aut_26", 10, "Austrian GP", False),
        ("gbr_26", 11, "British GP", True),
        ("bel_26", 12, "Belgian GP", False),
        ("hun_26", 13, "Hungarian GP", False),
        ("nld_26", 14, "Dutch GP", True),
        ("ita_26", 15, "Italian GP", False),
        ("mad_26", 16, "Madrid GP", False),
        ("aze_26", 17, "Azerbaijan GP", False),
        ("sgp_26", 18, "Singapore GP", True),
        ("usa_26", 19, "United States GP", False),
        ("mex_26", 20, "Mexico City GP", False),
        ("bra_26", 21, "Sao Paulo GP", False),
        ("las_26", 22, "Las Vegas GP", False),
        ("qat_26", 23, "Qatar GP", False),
        ("abu_26", 24, "Abu Dhabi GP", False),
    )
    
    @classmethod
    def event_ids(cls) -> frozenset:
        return frozenset(event_id for event_id, _, _, _ in cls.EVENTS)

class RosterConstants:
    """Default constructors (id, name, class, color) and drivers (id, name, constructor, class)."""
    
    CONSTRUCTORS = (
        ("mclaren", "McLaren", "A", "#FF8000"),
        ("mercedes", "Mercedes", "A", "#27F4D2"),
        ("red_bull", "Red Bull Racing", "A", "#3671C6"),
        ("ferrari", "Ferrari", "A", "#E8002D"),
        ("williams", "Williams", "A", "#64C4FF"),
        ("racing_bulls", "Racing Bulls", "B", "#6692FF"),
        ("aston_martin", "Aston Martin", "B", "#229971"),
        ("haas", "Haas F1 Team", "B", "#B6BABD"),
        ("audi", "Audi F1 Team", "B", "#F20505"),
        ("alpine", "Alpine", "B", "#0090FF"),
        ("cadillac", "Cadillac F1 Team", "B", "#FCD12A"),
    )
    
    DRIVERS = (
        ("nor", "Lando Norris", "mclaren", "A"),
        ("pia", "Oscar Piastri", "mclaren", "A"),
        ("rus", "George Russell", "mercedes", "A"),
        ("ant", "Kimi Antonelli", "mercedes", "A"),
        ("ver", "Max Verstappen", "red_bull", "A"),
        ("had", "Isack Hadjar", "red_bull", "A"),
        ("ham", "Lewis Hamilton", "ferrari", "A"),
        ("lec", "Charles Leclerc", "ferrari", "A"),
        ("sai", "Carlos Sainz", "williams", "A"),
        ("alb", "Alex Albon", "williams", "A"),
        ("law", "Liam Lawson", "racing_bulls", "B"),
        ("lin", "Arvid Lindblad", "racing_bulls", "B"),
        ("alo", "Fernando Alonso", "aston_martin", "B"),
        ("str", "Lance Stroll", "aston_martin", "B"),
        ("oco", "Esteban Ocon", "haas", "B"),
        ("bea", "Oliver Bearman", "haas", "B"),
        ("hul", "Nico Hülkenberg", "audi", "B"),
        ("bor", "Gabriel Bortoleto", "audi", "B"),
        ("gas", "Pierre Gasly", "alpine", "B"),
        ("col", "Franco Colapinto", "alpine", "B"),
        ("per", "Sergio Pérez", "cadillac", "B"),
        ("bot", "Valtteri Bottas", "cadillac", "B"),
    )
