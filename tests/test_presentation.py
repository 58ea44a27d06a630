from __future__ import annotations

from collections import Counter
import random

import pytest

from conftest import make_question, make_quiz
from quizdeck.core.errors import PresentationError, QuizIntegrityError
from quizdeck.core.models import Question
from quizdeck.core.services.presentation import build_presentation


def _five_question_quiz():
    return make_quiz(
        *[
            make_question(f"q{i}", [f"opt{i}-{j}" for j in range(4)], {i % 4}, order_index=i)
            for i in range(5)
        ]
    )


def test_question_order_is_a_bijection(rng):
    quiz = _five_question_quiz()
    presentation = build_presentation(quiz, rng)
    assert sorted(presentation.question_order.to_canonical_table) == list(range(5))
    assert [q.question.id for q in presentation.questions] == [
        quiz.questions[i].id for i in presentation.question_order.to_canonical_table
    ]


def test_every_option_table_is_a_bijection(rng):
    quiz = _five_question_quiz()
    presentation = build_presentation(quiz, rng)
    for shown in presentation.questions:
        option_count = len(shown.question.options)
        canonical = [shown.to_canonical(i) for i in range(option_count)]
        assert sorted(canonical) == list(range(option_count))


def test_shown_options_follow_the_table(rng):
    quiz = _five_question_quiz()
    for shown in build_presentation(quiz, rng).questions:
        for presentation_index, text in enumerate(shown.options):
            assert shown.question.options[shown.to_canonical(presentation_index)] == text


def test_mapping_round_trips(rng):
    quiz = _five_question_quiz()
    for shown in build_presentation(quiz, rng).questions:
        for presentation_index in range(len(shown.options)):
            canonical = shown.to_canonical(presentation_index)
            assert shown.to_presentation(canonical) == presentation_index


def test_canonical_quiz_is_not_mutated(rng):
    quiz = _five_question_quiz()
    before = [(q.id, q.options, q.correct_answers) for q in quiz.questions]
    build_presentation(quiz, rng)
    assert [(q.id, q.options, q.correct_answers) for q in quiz.questions] == before


def test_empty_quiz_is_rejected():
    with pytest.raises(PresentationError):
        build_presentation(make_quiz())


def test_single_option_question_is_rejected():
    quiz = make_quiz(make_question("q1", ["Only"], {0}))
    with pytest.raises(PresentationError):
        build_presentation(quiz)


def test_question_without_correct_answer_is_an_integrity_error():
    quiz = make_quiz(make_question("q1", ["A", "B"], set()))
    with pytest.raises(QuizIntegrityError):
        build_presentation(quiz)


def test_correct_index_outside_options_is_an_integrity_error():
    quiz = make_quiz(make_question("q1", ["A", "B"], {0, 5}))
    with pytest.raises(QuizIntegrityError):
        build_presentation(quiz)


def test_invalid_question_anywhere_fails_the_whole_build():
    quiz = make_quiz(
        make_question("q1", ["A", "B"], {0}),
        make_question("q2", ["A"], {0}),
    )
    with pytest.raises(PresentationError):
        build_presentation(quiz)


def test_same_seed_gives_same_presentation():
    quiz = _five_question_quiz()
    first = build_presentation(quiz, random.Random(99))
    second = build_presentation(quiz, random.Random(99))
    assert first == second


def test_option_positions_are_uniform():
    quiz = make_quiz(make_question("q1", ["A", "B", "C"], {0}))
    rng = random.Random(5)
    trials = 6000
    counts: Counter[tuple[int, int]] = Counter()
    for _ in range(trials):
        shown = build_presentation(quiz, rng).questions[0]
        for presentation_index in range(3):
            counts[(shown.to_canonical(presentation_index), presentation_index)] += 1

    expected = trials / 3
    for canonical in range(3):
        for position in range(3):
            assert abs(counts[(canonical, position)] - expected) < expected * 0.1


def test_question_positions_are_uniform():
    questions: list[Question] = [make_question(f"q{i}", ["A", "B"], {0}) for i in range(4)]
    quiz = make_quiz(*questions)
    rng = random.Random(11)
    trials = 8000
    first_position = Counter(
        build_presentation(quiz, rng).question_order.to_canonical(0) for _ in range(trials)
    )
    expected = trials / 4
    for canonical in range(4):
        assert abs(first_position[canonical] - expected) < expected * 0.1


def test_option_images_travel_with_their_options(rng):
    options = [f"animal-{i}" for i in range(6)]
    question = Question(
        id="zoo",
        question_text="Which one is the cat?",
        options=tuple(options),
        correct_answers=frozenset({3}),
        image_url="https://img.example/zoo.png",
        option_image_urls=tuple(f"https://img.example/{text}.png" for text in options),
    )
    quiz = make_quiz(question)

    for _ in range(20):
        shown = build_presentation(quiz, rng).questions[0]
        assert shown.question.image_url == "https://img.example/zoo.png"
        for index, text in enumerate(shown.options):
            assert shown.option_image_urls[index] == f"https://img.example/{text}.png"
            assert shown.option_image_urls[index] == question.option_image_urls[shown.to_canonical(index)]


def test_misaligned_option_images_are_an_integrity_error(rng):
    question = Question(
        id="broken",
        question_text="?",
        options=("a", "b", "c"),
        correct_answers=frozenset({0}),
        option_image_urls=("https://img.example/a.png",),
    )
    with pytest.raises(QuizIntegrityError, match="1 option images for 3 options"):
        build_presentation(make_quiz(question), rng)
