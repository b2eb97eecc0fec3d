"""Static metadata describing TriviaQt."""

APP_NAME = "TriviaQt"
APP_VERSION = "0.2"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "TriviaQt is a timed multiple-choice trivia game played in the browser, "
    "with a Qt dashboard for managing questions, reviewing attempts and "
    "moderating the shared leaderboard."
)

HELP_TEXT = (
    "Questions can be added one by one in the Questions view, or imported from a "
    ".txt file using the block format below (blank line or '---' between blocks):\n\n"
    "Q: Which planet is known as the red planet?\n"
    "A: Venus\nB: Mars\nC: Jupiter\n"
    "CORRECT: B\n\n"
    "Q: How many days are in a leap year?\n"
    "A: 365\nB: 366\n"
    "CORRECT: B\n\n"
    "Each question needs at least two options. Deleted questions are only "
    "deactivated and stop appearing in new games."
)
