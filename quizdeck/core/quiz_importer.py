"""Utilities for importing quizzes from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    TITLE: Quiz title            (optional, first block only)
    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    A: First option text
    B: Second option text
    ...                          (2 to 12 options, letters A to L in order)
    CORRECT: A, C                (one or more letters)

Example:

    TITLE: Capitals

    Q: What is the capital of France?
    A: Paris
    B: Lyon
    CORRECT: A

    Q: Which colours are on the Italian flag?
    A: Red
    B: Blue
    C: Green
    CORRECT: A, C
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import string

from quizdeck.constants.quiz_constants import MAX_OPTIONS_PER_QUESTION, MIN_OPTIONS_PER_QUESTION
from quizdeck.core.models import QuestionDraft


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for imported quiz metadata and questions."""

    source_path: Path
    title: str
    questions: list[QuestionDraft]


OPTION_LETTERS = string.ascii_uppercase[:MAX_OPTIONS_PER_QUESTION]


def load_quiz_from_file(file_path: Path, title: str | None = None) -> ImportedQuiz:
    """Parse a quiz file; ``title`` overrides any TITLE line, then the file stem."""
    text = file_path.read_text(encoding="utf-8")
    parsed_title, questions = parse_quiz_text(text)
    if not questions:
        raise QuizImportError("Quiz file did not contain any questions.")
    return ImportedQuiz(
        source_path=file_path,
        title=title or parsed_title or file_path.stem,
        questions=questions,
    )


def parse_quiz_text(text: str) -> tuple[str | None, list[QuestionDraft]]:
    title: str | None = None
    questions: list[QuestionDraft] = []
    for block in _split_blocks(text):
        first_line = block.splitlines()[0].strip()
        if first_line.upper().startswith("TITLE:"):
            if questions or title is not None:
                raise QuizImportError("TITLE may only appear once, before the questions.")
            title = first_line.split(":", 1)[1].strip() or None
            remainder = "\n".join(block.splitlines()[1:]).strip()
            if not remainder:
                continue
            block = remainder
        questions.append(_parse_block(block))
    return title, questions


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---" or not stripped:
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        current_block.append(raw_line)
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return blocks


def _parse_block(block: str) -> QuestionDraft:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letters: list[str] | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            raw_value = line.split(":", 1)[1]
            correct_letters = [part.strip().upper() for part in raw_value.split(",") if part.strip()]
            current_section = None
            continue

        if len(line) > 1 and line[1] == ":" and line[0] in string.ascii_letters:
            if line[0].upper() not in OPTION_LETTERS:
                raise QuizImportError(
                    f"Option {line[0].upper()} is not allowed: a question has at most "
                    f"{MAX_OPTIONS_PER_QUESTION} options ({OPTION_LETTERS[0]} to {OPTION_LETTERS[-1]})."
                )

        if len(line) > 2 and line[0].upper() in OPTION_LETTERS and line[1] == ":":
            letter = line[0].upper()
            if letter in options:
                raise QuizImportError(f"Option {letter} is defined twice.")
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in options:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(f"Encountered text outside of a known section: '{line}'.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError("Question text missing (Q: ...)")

    expected_letters = list(OPTION_LETTERS[: len(options)])
    if sorted(options) != expected_letters:
        raise QuizImportError("Options must use consecutive letters starting at A.")
    if len(options) < MIN_OPTIONS_PER_QUESTION:
        raise QuizImportError(f"Each question must define at least {MIN_OPTIONS_PER_QUESTION} options.")

    option_list = [options[letter].strip() for letter in expected_letters]
    if any(not opt for opt in option_list):
        raise QuizImportError("Option text cannot be empty.")

    if not correct_letters:
        raise QuizImportError("CORRECT must name at least one option.")
    unknown = [letter for letter in correct_letters if letter not in options]
    if unknown:
        raise QuizImportError(f"CORRECT refers to undefined options: {', '.join(unknown)}.")

    return QuestionDraft(
        question_text=question_text,
        options=option_list,
        correct_answers=sorted({expected_letters.index(letter) for letter in correct_letters}),
    )
