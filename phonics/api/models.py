from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class GameType(StrEnum):
    find_digraph = "find_digraph"
    fill_missing = "fill_missing"
    rhyming = "rhyming"
    word_puzzle = "word_puzzle"
    sorting = "sorting"
    wheel = "wheel"
    odd_one_out = "odd_one_out"
    build_word = "build_word"


class GameInfo(BaseModel):
    id: GameType
    title: str
    icon: str


GAMES: tuple[GameInfo, ...] = (
    GameInfo(id=GameType.find_digraph, title="Find the Digraph", icon="🔍"),
    GameInfo(id=GameType.fill_missing, title="Fill Missing", icon="✏️"),
    GameInfo(id=GameType.rhyming, title="Rhyming Match", icon="🎵"),
    GameInfo(id=GameType.word_puzzle, title="Word Puzzle", icon="🧩"),
    GameInfo(id=GameType.sorting, title="Sorting Game", icon="🧺"),
    GameInfo(id=GameType.wheel, title="Spin the Wheel", icon="🎡"),
    GameInfo(id=GameType.odd_one_out, title="Odd One Out", icon="🤔"),
    GameInfo(id=GameType.build_word, title="Build Word", icon="🏗️"),
)


# --- Content ---------------------------------------------------------------


class DigraphGroup(BaseModel):
    id: str
    digraph: str
    words: list[str] = Field(default_factory=list)

    # word -> emoji/url shown next to the word.
    images: dict[str, str] = Field(default_factory=dict)

    def glyph_for(self, word: str, default: str | None = None) -> str | None:
        return self.images.get(word, default)


class RhymeGroup(BaseModel):
    id: str
    sound: str
    words: list[str] = Field(default_factory=list)


class ContentDocument(BaseModel):
    """The whole editable content set. Import replaces it wholesale."""

    model_config = ConfigDict(populate_by_name=True)

    groups: list[DigraphGroup]
    rhyme_groups: list[RhymeGroup] = Field(default_factory=list, alias="rhymeGroups")
    pin: str = "0000"


# --- Questions -------------------------------------------------------------


class QuizQuestion(BaseModel):
    type: Literal["quiz"] = "quiz"
    prompt_word: str
    full_word: str
    instruction: str | None = None
    correct_answer: str
    options: list[str]
    tag: str
    glyph: str | None = None
    is_wheel_result: bool = False


class BuildQuestion(BaseModel):
    type: Literal["build"] = "build"
    target_word: str
    tiles: list[str]
    tag: str
    glyph: str | None = None


class OddOneItem(BaseModel):
    word: str
    is_odd: bool
    glyph: str


class OddOneQuestion(BaseModel):
    type: Literal["odd_one"] = "odd_one"
    items: list[OddOneItem]
    instruction: str
    tag: str

    @property
    def odd_word(self) -> str:
        return next(i.word for i in self.items if i.is_odd)


class SortItem(BaseModel):
    word: str
    bin_label: str


class SortQuestion(BaseModel):
    type: Literal["sort"] = "sort"
    bins: tuple[str, str]
    items: list[SortItem]
    tag: str = "mix"


class WheelSpinQuestion(BaseModel):
    type: Literal["wheel_spin"] = "wheel_spin"


Question = Annotated[
    Union[QuizQuestion, BuildQuestion, OddOneQuestion, SortQuestion, WheelSpinQuestion],
    Field(discriminator="type"),
]


# --- Session ---------------------------------------------------------------


class Feedback(StrEnum):
    none = "none"
    correct = "correct"
    incorrect = "incorrect"


class SessionPhase(StrEnum):
    awaiting_input = "awaiting_input"
    partial_input = "partial_input"
    correct = "correct"
    incorrect = "incorrect"


class SessionState(BaseModel):
    session_id: UUID
    game_type: GameType

    # For reproducibility/debugging.
    seed: int

    current_question: Question | None = None
    phase: SessionPhase = SessionPhase.awaiting_input
    feedback: Feedback = Feedback.none
    score: int = Field(default=0, ge=0)

    # Tiles picked so far in build games.
    partial_selection: list[str] = Field(default_factory=list)

    # Cumulative, never decreases within a session.
    wheel_rotation_degrees: float = 0.0
    spinning: bool = False
    wheel_winner: str | None = None

    # Bumped on every regeneration and on exit; stale timers compare against it.
    epoch: int = 0

    # Set when the generator gave up: the UI shows a "no content" screen.
    content_insufficient: bool = False
    active: bool = True


class AudioCueModel(BaseModel):
    kind: Literal["tone", "speech"]
    value: str


class SessionView(BaseModel):
    state: SessionState
    cues: list[AudioCueModel] = Field(default_factory=list)


class ProgressEntry(BaseModel):
    correct: int = 0
    total: int = 0


class ProgressResponse(BaseModel):
    progress: dict[str, ProgressEntry]


# --- Requests --------------------------------------------------------------


class SessionCreateRequest(BaseModel):
    game_type: GameType
    seed: int | None = None


class AnswerRequest(BaseModel):
    answer: str


class PartialRequest(BaseModel):
    tile: str = Field(..., min_length=1)


class SortChoiceRequest(BaseModel):
    item_index: int = Field(..., ge=0)
    bin_index: int = Field(..., ge=0, le=1)


class GameListResponse(BaseModel):
    games: list[GameInfo]
