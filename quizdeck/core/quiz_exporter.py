"""Serialize quizzes into the plain-text format read by the importer."""

from __future__ import annotations

from quizdeck.core.models import Question, Quiz
from quizdeck.core.quiz_importer import OPTION_LETTERS


def serialize_quiz(quiz: Quiz) -> str:
    if not quiz.questions:
        raise ValueError("Cannot export an empty quiz.")
    blocks = [f"TITLE: {quiz.title}"]
    blocks.extend(_serialize_question(question) for question in quiz.questions)
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_question(question: Question) -> str:
    lines: list[str] = []

    question_lines = question.question_text.splitlines() or [question.question_text]
    lines.append(f"Q: {question_lines[0]}")
    lines.extend(question_lines[1:])

    for letter, option_text in zip(OPTION_LETTERS, question.options):
        option_lines = option_text.splitlines() or [option_text]
        lines.append(f"{letter}: {option_lines[0]}")
        lines.extend(option_lines[1:])

    correct = ", ".join(OPTION_LETTERS[index] for index in sorted(question.correct_answers))
    lines.append(f"CORRECT: {correct}")
    return "\n".join(lines)
