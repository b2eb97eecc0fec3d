"""Qt UI constants used across the admin dashboard widgets."""

WINDOW_TITLE: str = "TriviaQt Admin Dashboard"
PLAYER_URL_PLACEHOLDER: str = "http://<host-ip>:8000/"
STATS_REFRESH_INTERVAL_MS: int = 15_000

NAV_BUTTON_LEADERBOARD: str = "Leaderboard"
NAV_BUTTON_QUESTIONS: str = "Questions"
NAV_BUTTON_ATTEMPTS: str = "Quiz Attempts"
NAV_BUTTON_TV: str = "TV Leaderboard"
NAV_BUTTON_REFRESH: str = "Refresh Stats"

QUESTIONS_ADD_BUTTON: str = "Add New Question"
QUESTIONS_SAVE_BUTTON: str = "Save Question"
QUESTIONS_CANCEL_BUTTON: str = "Cancel"
QUESTIONS_DELETE_BUTTON: str = "Delete Question"
QUESTIONS_ADD_OPTION_BUTTON: str = "Add Option"
QUESTIONS_REMOVE_OPTION_BUTTON: str = "Remove Last Option"
QUESTIONS_IMPORT_BUTTON: str = "Import from File"
QUESTIONS_EXPORT_BUTTON: str = "Export to File"
PLACEHOLDER_QUESTION: str = "Enter the question text (supports Markdown)."
DEFAULT_OPTION_SLOTS: int = 4

IMPORT_DIALOG_TITLE: str = "Select question file"
IMPORT_FILE_FILTER: str = "Question files (*.txt);;All files (*.*)"
EXPORT_DIALOG_TITLE: str = "Export questions to file"
EXPORT_FILE_FILTER: str = "Question files (*.txt);;All files (*.*)"

LEADERBOARD_SEARCH_PLACEHOLDER: str = "Search by name, phone, or score..."
ATTEMPTS_SEARCH_PLACEHOLDER: str = "Search by player name..."
SORT_OPTIONS: tuple[str, ...] = ("score", "date", "name")

NO_BACKEND_MESSAGE: str = (
    "The backend is not configured. Set TRIVIA_BACKEND_URL and TRIVIA_BACKEND_KEY "
    "(or TRIVIA_STORAGE=memory for a local session)."
)
