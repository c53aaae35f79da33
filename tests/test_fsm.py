from __future__ import annotations

from uuid import uuid4

import pytest
from statemachine.exceptions import TransitionNotAllowed

from phonics.api.models import Feedback, GameType, SessionPhase, SessionState
from phonics.fsm import FeedbackFSM


def _state(**kwargs) -> SessionState:
    return SessionState(session_id=uuid4(), game_type=GameType.find_digraph, seed=1, **kwargs)


def test_correct_roundtrip_updates_model() -> None:
    s = _state()
    fsm = FeedbackFSM(s)
    assert fsm.accepts_answers

    fsm.answered_correctly()
    fsm.sync_phase_to_model()
    assert s.phase == SessionPhase.correct
    assert s.feedback == Feedback.correct
    assert not fsm.accepts_answers

    fsm.feedback_cleared()
    fsm.sync_phase_to_model()
    assert s.phase == SessionPhase.awaiting_input
    assert s.feedback == Feedback.none


def test_tiles_then_wrong() -> None:
    s = _state()
    fsm = FeedbackFSM(s)

    fsm.tile_placed()
    fsm.tile_placed()
    fsm.sync_phase_to_model()
    assert s.phase == SessionPhase.partial_input
    assert s.feedback == Feedback.none

    fsm.answered_incorrectly()
    fsm.sync_phase_to_model()
    assert s.feedback == Feedback.incorrect


def test_no_second_verdict_while_feedback_showing() -> None:
    fsm = FeedbackFSM(_state())
    fsm.answered_incorrectly()

    with pytest.raises(TransitionNotAllowed):
        fsm.answered_correctly()
    with pytest.raises(TransitionNotAllowed):
        fsm.tile_placed()


def test_resumes_from_model_phase() -> None:
    s = _state(phase=SessionPhase.partial_input)
    fsm = FeedbackFSM(s)
    assert fsm.current_state == fsm.partial_input

    fsm.selection_cleared()
    assert fsm.current_state == fsm.awaiting_input
