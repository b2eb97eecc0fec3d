"""Leaderboard sizes used by the player screens and the admin views."""

LEADERBOARD_MAX_ENTRIES: int = 50
PLAYER_LEADERBOARD_SIZE: int = 20
TV_LEADERBOARD_SIZE: int = 10
TV_REFRESH_INTERVAL_MS: int = 10_000
