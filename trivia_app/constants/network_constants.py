"""Network configuration constants for the trivia application."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
SESSION_COOKIE_NAME: str = "trivia_session_id"
SESSION_COOKIE_MAX_AGE_DAYS: int = 365
BACKEND_REQUEST_TIMEOUT_SECONDS: float = 10.0
FLOW_IDLE_TIMEOUT_SECONDS: float = 30 * 60
