from __future__ import annotations

from statemachine import State, StateMachine

from phonics.api.models import Feedback, SessionPhase, SessionState


_FEEDBACK_BY_PHASE: dict[SessionPhase, Feedback] = {
    SessionPhase.awaiting_input: Feedback.none,
    SessionPhase.partial_input: Feedback.none,
    SessionPhase.correct: Feedback.correct,
    SessionPhase.incorrect: Feedback.incorrect,
}


class FeedbackFSM(StateMachine):
    """Answer lifecycle of one session.

    awaiting_input -> correct -> awaiting_input (next question)
    awaiting_input -> incorrect -> awaiting_input (same question again)
    Build and sorting questions pass through partial_input while tiles are
    placed or items are removed.
    """

    awaiting_input = State(
        SessionPhase.awaiting_input.value,
        value=SessionPhase.awaiting_input.value,
        initial=True,
    )
    partial_input = State(SessionPhase.partial_input.value, value=SessionPhase.partial_input.value)
    correct = State(SessionPhase.correct.value, value=SessionPhase.correct.value)
    incorrect = State(SessionPhase.incorrect.value, value=SessionPhase.incorrect.value)

    tile_placed = awaiting_input.to(partial_input) | partial_input.to.itself()
    answered_correctly = awaiting_input.to(correct) | partial_input.to(correct)
    answered_incorrectly = awaiting_input.to(incorrect) | partial_input.to(incorrect)
    selection_cleared = partial_input.to(awaiting_input) | awaiting_input.to.itself()
    feedback_cleared = (
        correct.to(awaiting_input)
        | incorrect.to(awaiting_input)
        | partial_input.to(awaiting_input)
        | awaiting_input.to.itself()
    )

    def __init__(self, session: SessionState):
        self.session = session
        super().__init__(start_value=session.phase.value)

    @property
    def accepts_answers(self) -> bool:
        return self.current_state in (self.awaiting_input, self.partial_input)

    def sync_phase_to_model(self) -> None:
        phase = SessionPhase(str(self.current_state.value))
        self.session.phase = phase
        self.session.feedback = _FEEDBACK_BY_PHASE[phase]
