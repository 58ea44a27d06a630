"""Static metadata describing QuizDeck."""

APP_NAME = "QuizDeck"
APP_VERSION = "0.1.0"
APP_ABOUT_TEXT = (
    "QuizDeck is a multiple-choice quiz service. Author quizzes with single- or "
    "multi-answer questions, play them with shuffled questions and options, and "
    "review past results."
)
