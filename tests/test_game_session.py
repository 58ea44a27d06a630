from __future__ import annotations

import pytest

from conftest import make_question, make_quiz
from quizdeck.core.services.game_session import PlaySession


def _position_of(session: PlaySession, question_id: str) -> int:
    for position in range(session.get_question_count()):
        if session.get_question_at(position).question.id == question_id:
            return position
    raise AssertionError(f"{question_id} not presented")


def _index_of(session: PlaySession, position: int, text: str) -> int:
    return session.get_question_at(position).options.index(text)


def test_single_answer_replaces_previous_choice(capitals_quiz):
    session = PlaySession(capitals_quiz, "player", seed=1)
    position = _position_of(session, "q1")

    session.select_option(position, 0, multi_select=False)
    selected = session.select_option(position, 1, multi_select=False)

    assert selected == frozenset({1})


def test_single_answer_reselecting_keeps_choice(capitals_quiz):
    session = PlaySession(capitals_quiz, "player", seed=1)
    position = _position_of(session, "q1")

    session.select_option(position, 1, multi_select=False)
    assert session.select_option(position, 1, multi_select=False) == frozenset({1})


def test_multi_answer_toggles_membership(capitals_quiz):
    session = PlaySession(capitals_quiz, "player", seed=1)
    position = _position_of(session, "q2")

    assert session.select_option(position, 0, multi_select=True) == frozenset({0})
    assert session.select_option(position, 2, multi_select=True) == frozenset({0, 2})
    assert session.select_option(position, 0, multi_select=True) == frozenset({2})


def test_multi_answer_may_end_up_empty(capitals_quiz):
    session = PlaySession(capitals_quiz, "player", seed=1)
    position = _position_of(session, "q2")

    session.select_option(position, 1, multi_select=True)
    assert session.select_option(position, 1, multi_select=True) == frozenset()
    assert not session.has_answered(position)
    assert session.score().answers["q2"] == frozenset()


def test_mode_defaults_to_question_kind(capitals_quiz):
    session = PlaySession(capitals_quiz, "player", seed=3)
    single = _position_of(session, "q1")
    multi = _position_of(session, "q2")

    session.select_option(single, 0)
    assert session.select_option(single, 1) == frozenset({1})

    session.select_option(multi, 0)
    assert session.select_option(multi, 1) == frozenset({0, 1})


def test_out_of_range_option_is_rejected(capitals_quiz):
    session = PlaySession(capitals_quiz, "player")
    position = _position_of(session, "q1")
    with pytest.raises(IndexError):
        session.select_option(position, 2)
    with pytest.raises(IndexError):
        session.select_option(position, -1)


def test_out_of_range_position_is_rejected(capitals_quiz):
    session = PlaySession(capitals_quiz, "player")
    with pytest.raises(IndexError):
        session.select_option(2, 0)


def test_player_scenario_scores_full_marks(capitals_quiz):
    session = PlaySession(capitals_quiz, "player")
    q1 = _position_of(session, "q1")
    q2 = _position_of(session, "q2")

    session.select_option(q1, _index_of(session, q1, "Paris"))
    session.select_option(q2, _index_of(session, q2, "Red"))
    session.select_option(q2, _index_of(session, q2, "Green"))

    scored = session.score()
    assert (scored.score, scored.total) == (2, 2)
    assert scored.answers == {"q1": frozenset({0}), "q2": frozenset({0, 2})}


def test_restart_clears_selections_and_cursor(capitals_quiz):
    session = PlaySession(capitals_quiz, "player", seed=8)
    session.select_option(0, 0)
    session.select_option(1, 0)
    session.next_question()

    session.restart()

    assert session.get_selections() == {}
    assert session.get_position() == 0
    assert session.attempt == 2
    assert session.score().score == 0


def test_restart_draws_a_fresh_presentation():
    quiz = make_quiz(
        *[make_question(f"q{i}", ["A", "B", "C", "D", "E"], {0}, order_index=i) for i in range(6)]
    )
    session = PlaySession(quiz, "player", seed=21)
    first = session.presentation

    # Restarts are independent draws; with this many permutations a repeat of
    # the exact same presentation ten times in a row does not happen.
    presentations = [session.restart() for _ in range(10)]
    assert any(p != first for p in presentations)
    for presentation in presentations:
        assert sorted(presentation.question_order.to_canonical_table) == list(range(6))


def test_navigation_moves_within_bounds():
    quiz = make_quiz(*[make_question(f"q{i}", ["A", "B"], {0}) for i in range(3)])
    session = PlaySession(quiz, "player")

    assert session.previous_question() is None
    assert session.next_question() is session.get_question_at(1)
    assert session.next_question() is session.get_question_at(2)
    assert session.get_progress().is_last_question
    assert session.next_question() is None
    assert session.get_position() == 2
    assert session.previous_question() is session.get_question_at(1)
    assert session.go_to(0) is session.get_question_at(0)


def test_progress_counts_answered_questions():
    quiz = make_quiz(*[make_question(f"q{i}", ["A", "B"], {0}) for i in range(3)])
    session = PlaySession(quiz, "player")
    session.select_option(0, 1)
    session.select_option(2, 0)

    progress = session.get_progress()
    assert progress.answered_count == 2
    assert progress.total_questions == 3


def test_clear_selection_leaves_question_unanswered(capitals_quiz):
    session = PlaySession(capitals_quiz, "player")
    session.select_option(0, 0)
    session.clear_selection(0)
    assert not session.has_answered(0)


def test_snapshot_is_unaffected_by_later_restart(capitals_quiz):
    session = PlaySession(capitals_quiz, "player", seed=3)
    session.select_option(0, 0, multi_select=False)
    session.next_question()

    snapshot = session.snapshot()
    session.restart()

    assert snapshot.attempt == 1
    assert snapshot.progress.position == 1
    assert snapshot.get_selection(0) == frozenset({0})
    assert snapshot.get_selection(1) == frozenset()
    assert session.get_selections() == {}
    assert session.snapshot().attempt == 2
