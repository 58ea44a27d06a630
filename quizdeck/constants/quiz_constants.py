"""Quiz-related constants shared across core and server layers."""

MIN_OPTIONS_PER_QUESTION: int = 2
MAX_OPTIONS_PER_QUESTION: int = 12
TOP_SCORERS_LIMIT: int = 10
MISSING_OPTION_TEXT: str = "Answer not found"

QUIZ_FILES_ENV_VAR: str = "QUIZDECK_QUIZ_FILES"
QUIZ_OWNER_ENV_VAR: str = "QUIZDECK_QUIZ_OWNER"
DEFAULT_QUIZ_OWNER: str = "quizdeck"
