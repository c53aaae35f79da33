from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from typing import TypeVar

from phonics.api.models import (
    BuildQuestion,
    DigraphGroup,
    GameType,
    OddOneItem,
    OddOneQuestion,
    Question,
    QuizQuestion,
    SortItem,
    SortQuestion,
    WheelSpinQuestion,
)
from phonics.content.registry import ContentRepository


logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 20
BLANK = "___"
MIX_TAG = "mix"
DEFAULT_GLYPH = "📝"
DEFAULT_ITEM_GLYPH = "📄"
FALLBACK_RHYME_DISTRACTORS = ("banana", "orange")
SORT_ITEMS_PER_GROUP = 4

T = TypeVar("T")


class ContentInsufficient(RuntimeError):
    """The content set is too small to build a well-formed question."""

    def __init__(self, *, game_type: GameType, reason: str, attempts: int) -> None:
        self.game_type = game_type
        self.reason = reason
        self.attempts = attempts
        super().__init__(f"Not enough content for {game_type.value} after {attempts} attempt(s): {reason}")


class _Redraw(Exception):
    """Raised by a builder when this draw cannot produce a valid question."""


def _shuffled(items: Sequence[T], *, rng: random.Random) -> list[T]:
    out = list(items)
    rng.shuffle(out)
    return out


def _pick_group_and_word(content: ContentRepository, *, rng: random.Random) -> tuple[DigraphGroup, str]:
    group = content.pick_random_digraph_group(rng=rng)
    if group is None:
        raise _Redraw("no digraph groups")
    word = content.pick_random_word_in(group, rng=rng)
    if word is None:
        raise _Redraw(f"digraph group {group.id!r} has no words")
    return group, word


def _digraph_options(group: DigraphGroup, content: ContentRepository, *, rng: random.Random) -> list[str]:
    others = content.other_digraph_groups(group.id, 2, rng=rng)
    if len(others) < 2:
        raise _Redraw("need 2 other digraph groups for distractors")
    options = [group.digraph, *(g.digraph for g in others)]
    if len(set(options)) != 3:
        raise _Redraw("distractor digraphs are not distinct")
    return _shuffled(options, rng=rng)


def _build_find_digraph(content: ContentRepository, rng: random.Random) -> QuizQuestion:
    group, word = _pick_group_and_word(content, rng=rng)
    return QuizQuestion(
        prompt_word=word,
        full_word=word,
        instruction="Find the digraph in this word!",
        correct_answer=group.digraph,
        options=_digraph_options(group, content, rng=rng),
        tag=group.digraph,
        glyph=group.glyph_for(word, DEFAULT_GLYPH),
    )


def _fill_missing_quiz(
    group: DigraphGroup,
    word: str,
    content: ContentRepository,
    *,
    rng: random.Random,
    instruction: str | None = None,
    is_wheel_result: bool = False,
) -> QuizQuestion:
    return QuizQuestion(
        prompt_word=word.replace(group.digraph, BLANK, 1),
        full_word=word,
        instruction=instruction,
        correct_answer=group.digraph,
        options=_digraph_options(group, content, rng=rng),
        tag=group.digraph,
        glyph=group.glyph_for(word, DEFAULT_GLYPH),
        is_wheel_result=is_wheel_result,
    )


def _build_fill_missing(content: ContentRepository, rng: random.Random) -> QuizQuestion:
    group, word = _pick_group_and_word(content, rng=rng)
    return _fill_missing_quiz(group, word, content, rng=rng)


def _build_rhyming(content: ContentRepository, rng: random.Random) -> QuizQuestion:
    rgroup = content.pick_random_rhyme_group(rng=rng)
    if rgroup is None:
        raise _Redraw("no rhyme groups")

    words = _shuffled(list(dict.fromkeys(rgroup.words)), rng=rng)
    if len(words) < 2:
        raise _Redraw(f"rhyme group {rgroup.id!r} has fewer than 2 distinct words")
    prompt_word, answer = words[0], words[1]

    has_other_groups = any(g.id != rgroup.id for g in content.rhyme_groups)
    pool = [w for w in dict.fromkeys(content.rhyme_words_excluding(rgroup.id)) if w not in (prompt_word, answer)]
    wrong = rng.sample(pool, k=min(2, len(pool))) if has_other_groups else []

    # Sparse pools are topped up from the fixed pair.
    for filler in FALLBACK_RHYME_DISTRACTORS:
        if len(wrong) >= 2:
            break
        if filler not in wrong and filler not in (prompt_word, answer):
            wrong.append(filler)
    if len(wrong) < 2:
        raise _Redraw("not enough distinct rhyme distractors")

    return QuizQuestion(
        prompt_word=prompt_word,
        full_word=prompt_word,
        instruction=f"What rhymes with {prompt_word}?",
        correct_answer=answer,
        options=_shuffled([answer, *wrong], rng=rng),
        tag=MIX_TAG,
    )


def _build_odd_one_out(content: ContentRepository, rng: random.Random) -> OddOneQuestion:
    group = content.pick_random_digraph_group(rng=rng)
    if group is None:
        raise _Redraw("no digraph groups")

    words = _shuffled(list(dict.fromkeys(group.words)), rng=rng)[:3]
    if len(words) < 3:
        raise _Redraw(f"digraph group {group.id!r} has fewer than 3 distinct words")

    others = content.other_digraph_groups(group.id, 1, rng=rng)
    if not others:
        raise _Redraw("need another digraph group for the odd word")
    odd_group = others[0]
    odd_word = content.pick_random_word_in(odd_group, rng=rng)
    if odd_word is None:
        raise _Redraw(f"digraph group {odd_group.id!r} has no words")
    if odd_word in words:
        raise _Redraw("odd word also belongs to the main group")

    items = [OddOneItem(word=w, is_odd=False, glyph=group.images.get(w, DEFAULT_ITEM_GLYPH)) for w in words]
    items.append(
        OddOneItem(word=odd_word, is_odd=True, glyph=odd_group.images.get(odd_word, DEFAULT_ITEM_GLYPH))
    )

    return OddOneQuestion(
        items=_shuffled(items, rng=rng),
        instruction=f"Find the odd one out! (Not {group.digraph})",
        tag=group.digraph,
    )


def split_digraph_tiles(word: str, digraph: str) -> list[str]:
    """Split `word` around the first `digraph` occurrence.

    Edge digraphs give exactly two tiles (digraph + remainder). A digraph in
    the middle gives prefix, digraph and suffix so that the tiles can still
    be put back together.
    """

    idx = word.find(digraph) if digraph else -1
    if idx < 0:
        raise ValueError(f"{digraph!r} does not occur in {word!r}")
    prefix, suffix = word[:idx], word[idx + len(digraph) :]
    if prefix and suffix:
        return [prefix, digraph, suffix]
    return [digraph, prefix + suffix] if prefix + suffix else [digraph]


def _build_word_puzzle(content: ContentRepository, rng: random.Random) -> BuildQuestion:
    group, word = _pick_group_and_word(content, rng=rng)
    if not group.digraph or group.digraph not in word:
        raise _Redraw(f"{word!r} does not contain {group.digraph!r}")
    return BuildQuestion(
        target_word=word,
        tiles=_shuffled(split_digraph_tiles(word, group.digraph), rng=rng),
        tag=group.digraph,
        glyph=group.glyph_for(word, DEFAULT_GLYPH),
    )


def _build_build_word(content: ContentRepository, rng: random.Random) -> BuildQuestion:
    group, word = _pick_group_and_word(content, rng=rng)
    if not word:
        raise _Redraw("empty word")
    return BuildQuestion(
        target_word=word,
        tiles=_shuffled(list(word), rng=rng),
        tag=group.digraph,
        glyph=group.glyph_for(word, DEFAULT_GLYPH),
    )


def _build_sorting(content: ContentRepository, rng: random.Random) -> SortQuestion:
    first = content.pick_random_digraph_group(rng=rng)
    if first is None:
        raise _Redraw("no digraph groups")

    # With a single group the bins degrade to the same label.
    others = content.other_digraph_groups(first.id, 1, rng=rng)
    second = others[0] if others else first

    items: list[SortItem] = []
    for group in (first, second):
        picked = _shuffled(group.words, rng=rng)[:SORT_ITEMS_PER_GROUP]
        items.extend(SortItem(word=w, bin_label=group.digraph) for w in picked)
    if not items:
        raise _Redraw("sorting groups have no words")

    return SortQuestion(bins=(first.digraph, second.digraph), items=_shuffled(items, rng=rng), tag=MIX_TAG)


def _build_wheel(content: ContentRepository, rng: random.Random) -> WheelSpinQuestion:
    if not content.digraph_groups:
        raise _Redraw("no digraph groups for the wheel")
    return WheelSpinQuestion()


_BUILDERS: dict[GameType, Callable[[ContentRepository, random.Random], Question]] = {
    GameType.find_digraph: _build_find_digraph,
    GameType.fill_missing: _build_fill_missing,
    GameType.rhyming: _build_rhyming,
    GameType.odd_one_out: _build_odd_one_out,
    GameType.word_puzzle: _build_word_puzzle,
    GameType.build_word: _build_build_word,
    GameType.sorting: _build_sorting,
    GameType.wheel: _build_wheel,
}


def _with_retries(
    *,
    game_type: GameType,
    build: Callable[[], T],
    max_attempts: int,
) -> T:
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    reason = "unknown"
    for attempt in range(1, max_attempts + 1):
        try:
            return build()
        except _Redraw as e:
            reason = str(e)
            logger.debug("Redrawing %s question (attempt %d/%d): %s", game_type.value, attempt, max_attempts, reason)

    raise ContentInsufficient(game_type=game_type, reason=reason, attempts=max_attempts)


def generate_question(
    *,
    game_type: GameType | str,
    content: ContentRepository,
    rng: random.Random,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Question:
    """Build a fresh question for `game_type`.

    Draws that cannot produce a well-formed question are retried with new
    random picks, at most `max_attempts` times, then ContentInsufficient is
    raised.
    """

    gt = GameType(game_type)
    builder = _BUILDERS[gt]

    return _with_retries(game_type=gt, build=lambda: builder(content, rng), max_attempts=max_attempts)


def build_wheel_bonus_question(
    *,
    group: DigraphGroup,
    content: ContentRepository,
    rng: random.Random,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> QuizQuestion:
    """Fill-the-blank quiz for the group the wheel landed on."""

    def build() -> QuizQuestion:
        word = content.pick_random_word_in(group, rng=rng)
        if word is None:
            raise _Redraw(f"digraph group {group.id!r} has no words")
        return _fill_missing_quiz(
            group,
            word,
            content,
            rng=rng,
            instruction=f"Fill in the missing digraph for {group.digraph}!",
            is_wheel_result=True,
        )

    return _with_retries(game_type=GameType.wheel, build=build, max_attempts=max_attempts)
