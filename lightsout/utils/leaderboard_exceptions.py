"""
Custom exceptions for the scoring and leaderboard engine with user-friendly error messages.
"""

class LeaderboardException(Exception):
    """Base exception for leaderboard-related errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class PenaltyValidationError(LeaderboardException):
    """Raised when a penalty fraction falls outside [0, 1]."""
    def __init__(self, fraction):
        super().__init__(
            f"Invalid penalty fraction {fraction!r}: must be between 0 and 1",
            "❌ Penalty must be between 0% and 100%."
        )
        self.fraction = fraction

class SelectionValidationError(LeaderboardException):
    """Raised when a set of picks does not match the slot layout."""
    def __init__(self, reason: str):
        super().__init__(
            f"Invalid selection: {reason}",
            f"❌ {reason}"
        )

class CatalogValidationError(LeaderboardException):
    """Raised when a points catalog is malformed."""
    def __init__(self, reason: str):
        super().__init__(
            f"Invalid points catalog: {reason}",
            f"❌ Invalid scoring profile: {reason}"
        )

class SelectionLockedError(LeaderboardException):
    """Raised when picks are edited after the event lock time."""
    def __init__(self, event_id: str):
        super().__init__(
            f"Selections for event '{event_id}' are locked",
            "❌ Picks submission is locked for this event."
        )
        self.event_id = event_id

class ParticipantNotFoundError(LeaderboardException):
    """Raised when a participant is not registered in the league."""
    def __init__(self, participant_id: str):
        super().__init__(
            f"Participant '{participant_id}' not found",
            "❌ You haven't joined the league yet!"
        )
        self.participant_id = participant_id

class DatabaseError(LeaderboardException):
    """Raised when database operations fail."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Database error during {operation}: {details}",
            "❌ Database error occurred. Please try again later."
        )
