from __future__ import annotations

from pathlib import Path

import pytest

from quizdeck.core.quiz_exporter import serialize_quiz
from quizdeck.core.quiz_importer import QuizImportError, load_quiz_from_file, parse_quiz_text
from quizdeck.core.services.quiz_repository import QuizRepository

_SAMPLE = """TITLE: Capitals

Q: What is the capital of France?
A: Paris
B: Lyon
CORRECT: A

---

Q: Which colours are on the
Italian flag?
A: Red
B: Blue
C: Green
CORRECT: A, C
"""


def test_parse_sample(tmp_path: Path):
    path = tmp_path / "capitals.txt"
    path.write_text(_SAMPLE, encoding="utf-8")

    imported = load_quiz_from_file(path)

    assert imported.title == "Capitals"
    assert len(imported.questions) == 2
    assert imported.questions[0].options == ["Paris", "Lyon"]
    assert imported.questions[0].correct_answers == [0]
    assert imported.questions[1].question_text == "Which colours are on the\nItalian flag?"
    assert imported.questions[1].correct_answers == [0, 2]


def test_title_falls_back_to_file_stem(tmp_path: Path):
    path = tmp_path / "geography.txt"
    path.write_text("Q: 1+1?\nA: 2\nB: 3\nCORRECT: A\n", encoding="utf-8")
    assert load_quiz_from_file(path).title == "geography"
    assert load_quiz_from_file(path, title="Override").title == "Override"


def test_exported_quiz_imports_to_same_content(tmp_path: Path):
    _, drafts = parse_quiz_text(_SAMPLE)
    quiz = QuizRepository().create_quiz("Capitals", "author", drafts)
    path = tmp_path / "capitals.txt"

    path.write_text(serialize_quiz(quiz), encoding="utf-8")
    imported = load_quiz_from_file(path)

    assert imported.title == quiz.title
    assert [q.question_text for q in imported.questions] == [q.question_text for q in quiz.questions]
    assert [q.options for q in imported.questions] == [list(q.options) for q in quiz.questions]
    assert [set(q.correct_answers) for q in imported.questions] == [
        set(q.correct_answers) for q in quiz.questions
    ]


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("A: x\nB: y\nCORRECT: A", "Question text missing"),
        ("Q: ?\nA: x\nCORRECT: A", "at least 2 options"),
        ("Q: ?\nA: x\nC: y\nCORRECT: A", "consecutive letters"),
        ("Q: ?\nA: x\nB: y", "CORRECT must name"),
        ("Q: ?\nA: x\nB: y\nCORRECT: D", "undefined options: D"),
        ("Q: ?\nA: x\nA: y\nCORRECT: A", "defined twice"),
        ("stray text", "outside of a known section"),
    ],
)
def test_malformed_blocks_are_rejected(text: str, message: str):
    with pytest.raises(QuizImportError, match=message):
        parse_quiz_text(text)


def test_file_without_questions_is_rejected(tmp_path: Path):
    path = tmp_path / "empty.txt"
    path.write_text("TITLE: Nothing here\n", encoding="utf-8")
    with pytest.raises(QuizImportError, match="did not contain any questions"):
        load_quiz_from_file(path)


def test_option_beyond_the_last_letter_is_rejected():
    letters = "ABCDEFGHIJKLM"
    lines = ["Q: Too many?"] + [f"{letter}: opt{letter}" for letter in letters] + ["CORRECT: A"]

    with pytest.raises(QuizImportError, match="at most 12 options"):
        parse_quiz_text("\n".join(lines))


def test_twelve_options_are_accepted():
    letters = "ABCDEFGHIJKL"
    lines = ["Q: Many?"] + [f"{letter}: opt{letter}" for letter in letters] + ["CORRECT: L"]

    _, drafts = parse_quiz_text("\n".join(lines))

    assert drafts[0].options[-1] == "optL"
    assert drafts[0].correct_answers == [11]
