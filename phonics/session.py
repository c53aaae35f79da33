from __future__ import annotations

import logging
import random
from collections.abc import Callable
from uuid import UUID, uuid4

from phonics.api.models import (
    BuildQuestion,
    DigraphGroup,
    Feedback,
    GameType,
    OddOneQuestion,
    QuizQuestion,
    SessionState,
    SortQuestion,
    WheelSpinQuestion,
)
from phonics.audio import AudioSink, CueRecorder
from phonics.content.registry import ContentRepository
from phonics.fsm import FeedbackFSM
from phonics.generator import DEFAULT_MAX_ATTEMPTS, ContentInsufficient, build_wheel_bonus_question, generate_question
from phonics.progress import ProgressReporter
from phonics.scheduling import Scheduler
from phonics.settings import EngineTimings
from phonics.wheel import WheelSpinner


logger = logging.getLogger(__name__)

QUIZ_POINTS = 10
BUILD_POINTS = 20


class SessionClosedError(RuntimeError):
    pass


class GameSession:
    """Live state of one mini-game, from entry until the player backs out.

    All mutation goes through the public operations below or through timers
    scheduled by them. Every timer captures the epoch it was scheduled under
    and does nothing if the session has moved on since.
    """

    def __init__(
        self,
        *,
        game_type: GameType | str,
        content: ContentRepository,
        scheduler: Scheduler,
        progress: ProgressReporter,
        rng: random.Random | None = None,
        seed: int | None = None,
        audio: AudioSink | None = None,
        timings: EngineTimings | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        session_id: UUID | None = None,
        on_change: Callable[[SessionState], None] | None = None,
    ) -> None:
        if seed is None:
            seed = random.SystemRandom().randint(1, 2**31 - 1)

        self.content = content
        self.progress = progress
        self.audio: AudioSink = audio if audio is not None else CueRecorder()
        self.timings = timings or EngineTimings()
        self.on_change = on_change
        self._scheduler = scheduler
        self._rng = rng if rng is not None else random.Random(seed)
        self._max_attempts = max_attempts
        self._wheel = WheelSpinner(rng=self._rng)

        self.state = SessionState(session_id=session_id or uuid4(), game_type=GameType(game_type), seed=seed)
        self._fsm = FeedbackFSM(self.state)

        logger.info("Session %s started (%s)", self.state.session_id, self.state.game_type.value)
        self._install_next_question()

    # --- helpers -----------------------------------------------------------

    @property
    def session_id(self) -> UUID:
        return self.state.session_id

    def snapshot(self) -> SessionState:
        return self.state.model_copy(deep=True)

    def _require_active(self) -> None:
        if not self.state.active:
            raise SessionClosedError(f"Session {self.state.session_id} has ended")

    def _changed(self) -> None:
        self._fsm.sync_phase_to_model()
        if self.on_change is not None:
            self.on_change(self.state)

    def _schedule(self, delay_ms: int, name: str, action: Callable[[], None]) -> None:
        epoch = self.state.epoch

        def fire() -> None:
            if epoch != self.state.epoch:
                logger.debug(
                    "Discarding stale %s timer for session %s (epoch %d, live %d)",
                    name,
                    self.state.session_id,
                    epoch,
                    self.state.epoch,
                )
                return
            action()

        self._scheduler.call_later(delay_ms, fire)

    def _report(self, tag: str, correct: bool) -> None:
        try:
            self.progress.record(tag, correct)
        except Exception:
            logger.exception("Progress reporter failed for tag %r", tag)

    def _install_next_question(self, question: QuizQuestion | None = None) -> None:
        """Regenerate (or install `question`), bumping the epoch."""

        self.state.epoch += 1
        self.state.partial_selection = []
        self.state.wheel_winner = None
        self._fsm.feedback_cleared()

        if question is None:
            try:
                question = generate_question(
                    game_type=self.state.game_type,
                    content=self.content,
                    rng=self._rng,
                    max_attempts=self._max_attempts,
                )
            except ContentInsufficient as e:
                logger.warning("Session %s has no playable content: %s", self.state.session_id, e)
                self.state.current_question = None
                self.state.content_insufficient = True
                self._changed()
                return

        self.state.current_question = question
        self.state.content_insufficient = False
        if self.state.game_type == GameType.rhyming and isinstance(question, QuizQuestion):
            self.audio.speak(question.prompt_word)
        self._changed()

    def _succeed(self, *, tag: str, points: int, phrase: str | None = None) -> None:
        self.audio.play_tone("correct")
        if phrase:
            self.audio.speak(phrase)
        self._fsm.answered_correctly()
        self.state.score += points
        self._report(tag, True)
        self._changed()
        self._schedule(self.timings.correct_delay_ms, "correct-delay", self._install_next_question)

    def _fail(self, *, tag: str, phrase: str, clear_selection: bool) -> None:
        self.audio.play_tone("wrong")
        self.audio.speak(phrase)
        self._fsm.answered_incorrectly()
        self._report(tag, False)
        self._changed()

        def reopen() -> None:
            if clear_selection:
                self.state.partial_selection = []
            self._fsm.feedback_cleared()
            self._changed()

        self._schedule(self.timings.incorrect_delay_ms, "incorrect-delay", reopen)

    # --- operations --------------------------------------------------------

    def submit_answer(self, candidate: str) -> bool:
        """Check a full answer. Returns False when input is currently blocked."""

        self._require_active()
        if self.state.feedback != Feedback.none:
            return False

        q = self.state.current_question
        if isinstance(q, QuizQuestion):
            if candidate == q.correct_answer:
                self._succeed(tag=q.tag, points=QUIZ_POINTS)
            else:
                self._fail(tag=q.tag, phrase="Try again!", clear_selection=False)
        elif isinstance(q, BuildQuestion):
            if candidate == q.target_word:
                self._succeed(tag=q.tag, points=BUILD_POINTS, phrase=q.target_word)
            else:
                self._fail(tag=q.tag, phrase="Oops!", clear_selection=True)
        elif isinstance(q, OddOneQuestion):
            if candidate == q.odd_word:
                self._succeed(tag=q.tag, points=QUIZ_POINTS, phrase="You found it!")
            else:
                self._fail(tag=q.tag, phrase=candidate, clear_selection=True)
        elif q is None:
            raise ValueError("No question to answer")
        else:
            raise ValueError(f"Question type {q.type!r} does not take a direct answer")
        return True

    def submit_partial(self, tile: str) -> bool:
        """Place one tile of a build question; checks the word once it is long enough."""

        self._require_active()
        if self.state.feedback != Feedback.none:
            return False

        q = self.state.current_question
        if not isinstance(q, BuildQuestion):
            raise ValueError("Tiles can only be placed on build questions")

        self.state.partial_selection = [*self.state.partial_selection, tile]
        self.audio.play_tone("pop")
        self.audio.speak(tile)
        self._fsm.tile_placed()
        self._changed()

        built = "".join(self.state.partial_selection)
        if len(built) >= len(q.target_word):
            if built == q.target_word:
                self._succeed(tag=q.tag, points=BUILD_POINTS, phrase=q.target_word)
            else:
                self._fail(tag=q.tag, phrase="Oops!", clear_selection=True)
        return True

    def clear_selection(self) -> bool:
        self._require_active()
        if self.state.feedback != Feedback.none:
            return False
        if not isinstance(self.state.current_question, BuildQuestion):
            raise ValueError("Only build questions have a tile selection")

        self.state.partial_selection = []
        self._fsm.selection_cleared()
        self._changed()
        return True

    def submit_sort_choice(self, item_index: int, bin_index: int) -> bool:
        """Drop item `item_index` into bin `bin_index`.

        Right bin removes the item; an empty list completes the round. A wrong
        bin is only a hint (tone + speech) and leaves everything as it was.
        """

        self._require_active()
        if self.state.feedback != Feedback.none:
            return False

        q = self.state.current_question
        if not isinstance(q, SortQuestion):
            raise ValueError("Sort choices only apply to sorting questions")
        if not 0 <= item_index < len(q.items):
            raise ValueError(f"item_index out of range: {item_index}")
        if not 0 <= bin_index < len(q.bins):
            raise ValueError(f"bin_index out of range: {bin_index}")

        item = q.items[item_index]
        if item.bin_label != q.bins[bin_index]:
            self.audio.play_tone("wrong")
            self.audio.speak("Not there!")
            return True

        self.audio.play_tone("correct")
        remaining = [it for i, it in enumerate(q.items) if i != item_index]
        self.state.current_question = q.model_copy(update={"items": remaining})

        if remaining:
            self._fsm.tile_placed()
            self._changed()
            return True

        self.audio.speak("All sorted!")
        self._fsm.answered_correctly()
        self._changed()
        self._schedule(self.timings.correct_delay_ms, "correct-delay", self._install_next_question)
        return True

    def spin(self) -> bool:
        """Spin the wheel. Returns False while a spin or its reveal is still pending."""

        self._require_active()
        if self.state.spinning or self.state.wheel_winner is not None:
            return False
        if not isinstance(self.state.current_question, WheelSpinQuestion):
            raise ValueError("There is no wheel to spin")

        groups = self.content.digraph_groups
        if not groups:
            raise ValueError("The wheel has no segments")

        winning_index = self._wheel.pick_winner(len(groups))
        winner = groups[winning_index]
        self.state.wheel_rotation_degrees = self._wheel.spin_to(winning_index=winning_index, segment_count=len(groups))
        self.state.spinning = True
        self.audio.play_tone("pop")
        logger.debug(
            "Session %s wheel -> %s (index %d, rotation %.1f)",
            self.state.session_id,
            winner.digraph,
            winning_index,
            self.state.wheel_rotation_degrees,
        )
        self._changed()

        self._schedule(self.timings.spin_duration_ms, "spin-duration", lambda: self._finish_spin(winner))
        return True

    def _finish_spin(self, winner: DigraphGroup) -> None:
        self.state.spinning = False
        self.state.wheel_winner = winner.digraph
        self.audio.speak(f"You got {winner.digraph}!")
        self._changed()
        self._schedule(self.timings.reveal_delay_ms, "reveal-delay", lambda: self._reveal_bonus(winner))

    def _reveal_bonus(self, winner: DigraphGroup) -> None:
        try:
            question = build_wheel_bonus_question(
                group=winner,
                content=self.content,
                rng=self._rng,
                max_attempts=self._max_attempts,
            )
        except ContentInsufficient as e:
            logger.warning("Session %s cannot build the wheel question: %s", self.state.session_id, e)
            self.state.epoch += 1
            self.state.current_question = None
            self.state.content_insufficient = True
            self._changed()
            return
        self._install_next_question(question)

    def exit(self) -> None:
        """End the session; anything still scheduled becomes a no-op."""

        if not self.state.active:
            return
        self.state.active = False
        self.state.epoch += 1
        self.state.spinning = False
        logger.info("Session %s exited with score %d", self.state.session_id, self.state.score)
        self._changed()
