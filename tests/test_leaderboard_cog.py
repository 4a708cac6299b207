from lightsout.cogs.leaderboard import _countdown_fits_interaction, _refresh_status_line
from lightsout.constants import RefreshConstants
from lightsout.services.refresh_policy import RefreshDecision


def decision(seconds_remaining, daily_remaining=4):
    return RefreshDecision(
        allowed=seconds_remaining == 0,
        seconds_remaining=seconds_remaining,
        daily_remaining=daily_remaining,
    )


def test_cooldown_countdown_fits_interaction():
    assert _countdown_fits_interaction(decision(60))
    assert _countdown_fits_interaction(decision(RefreshConstants.INTERACTION_TOKEN_SECONDS))


def test_lockout_outlives_interaction_token():
    assert not _countdown_fits_interaction(decision(RefreshConstants.INTERACTION_TOKEN_SECONDS + 1))
    assert not _countdown_fits_interaction(decision(24 * 60 * 60, daily_remaining=0))


def test_nothing_to_count_down_when_allowed():
    assert not _countdown_fits_interaction(decision(0))


def test_status_line_describes_wait():
    assert _refresh_status_line(decision(0)) == "You can refresh now (4 left today)."
    assert _refresh_status_line(decision(90)) == "Cooldown: 1m 30s (4 refreshes left today)."
    assert _refresh_status_line(decision(86400, 0)).startswith("Daily refresh limit reached. Try again in 24h 0m")
