"""Game constants shared across the quiz core, the player API and the admin UI."""

QUIZ_QUESTION_COUNT: int = 7
MIN_QUESTION_POOL_SIZE: int = 2
QUESTION_TIME_LIMIT_SECONDS: int = 60
TIMER_TICK_SECONDS: float = 1.0
ANSWER_REVEAL_DELAY_SECONDS: float = 2.0
HINT_GLOW_SECONDS: float = 2.0
HINT_ELIMINATE_PROBABILITY: float = 0.8
TIME_WARNING_THRESHOLDS: tuple[int, ...] = (10, 5, 3, 2, 1)
MAX_HINTS_PER_ATTEMPT: int = 5
HINTS_PER_EXTRA_ATTEMPT: int = 2
PLAYER_NAME_MAX_LENGTH: int = 20
MIN_OPTIONS_PER_QUESTION: int = 2
ATTEMPT_RETENTION_SECONDS: int = 60 * 60
RECENT_EVENT_BUFFER_SIZE: int = 32
