from __future__ import annotations

import json
import random
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from phonics.api.models import ContentDocument, DigraphGroup, RhymeGroup


DEFAULT_PIN = "0000"


class MalformedImport(ValueError):
    """Raised when an imported content document fails structural validation."""


@dataclass(frozen=True, slots=True)
class ContentRepository:
    """Read-only view over the digraph and rhyme collections.

    Sampling is uniform over the collection and always goes through the
    caller's RNG. Nothing here mutates.
    """

    digraph_groups: tuple[DigraphGroup, ...]
    rhyme_groups: tuple[RhymeGroup, ...]

    @staticmethod
    def from_document(doc: ContentDocument) -> "ContentRepository":
        return ContentRepository(digraph_groups=tuple(doc.groups), rhyme_groups=tuple(doc.rhyme_groups))

    def get_digraph_group(self, id: str) -> DigraphGroup | None:
        return next((g for g in self.digraph_groups if g.id == id), None)

    def pick_random_digraph_group(self, *, rng: random.Random) -> DigraphGroup | None:
        if not self.digraph_groups:
            return None
        return rng.choice(self.digraph_groups)

    def pick_random_word_in(self, group: DigraphGroup, *, rng: random.Random) -> str | None:
        if not group.words:
            return None
        return rng.choice(group.words)

    def other_digraph_groups(self, exclude_id: str, count: int, *, rng: random.Random) -> list[DigraphGroup]:
        population = [g for g in self.digraph_groups if g.id != exclude_id]
        return rng.sample(population, k=min(count, len(population)))

    def pick_random_rhyme_group(self, *, rng: random.Random) -> RhymeGroup | None:
        if not self.rhyme_groups:
            return None
        return rng.choice(self.rhyme_groups)

    def other_rhyme_groups(self, exclude_id: str, count: int, *, rng: random.Random) -> list[RhymeGroup]:
        population = [g for g in self.rhyme_groups if g.id != exclude_id]
        return rng.sample(population, k=min(count, len(population)))

    def rhyme_words_excluding(self, exclude_id: str) -> list[str]:
        return [w for g in self.rhyme_groups if g.id != exclude_id for w in g.words]


def default_digraph_groups() -> list[DigraphGroup]:
    return [
        DigraphGroup(
            id="g1",
            digraph="ch",
            words=["chip", "chat", "rich", "chop", "chin"],
            images={"chip": "🍟", "chat": "💬", "rich": "💰", "chop": "🪓", "chin": "🤔"},
        ),
        DigraphGroup(
            id="g2",
            digraph="sh",
            words=["ship", "fish", "shop", "shell", "shoe"],
            images={"ship": "🚢", "fish": "🐟", "shop": "🏪", "shell": "🐚", "shoe": "👟"},
        ),
        DigraphGroup(
            id="g3",
            digraph="th",
            words=["moth", "bath", "path", "thin", "math"],
            images={"moth": "🦋", "bath": "🛁", "path": "🛣️", "thin": "📏", "math": "➗"},
        ),
        DigraphGroup(
            id="g4",
            digraph="wh",
            words=["whale", "whip", "wheel", "white", "whisk"],
            images={"whale": "🐋", "whip": "🤠", "wheel": "🎡", "white": "⬜", "whisk": "🍳"},
        ),
    ]


def default_rhyme_groups() -> list[RhymeGroup]:
    return [
        RhymeGroup(id="r1", sound="at", words=["cat", "bat", "rat", "mat", "hat"]),
        RhymeGroup(id="r2", sound="og", words=["dog", "log", "frog", "fog", "jog"]),
        RhymeGroup(id="r3", sound="en", words=["hen", "pen", "ten", "men", "den"]),
        RhymeGroup(id="r4", sound="ip", words=["ship", "chip", "dip", "lip", "tip"]),
        RhymeGroup(id="r5", sound="an", words=["fan", "man", "pan", "van", "can"]),
        RhymeGroup(id="r6", sound="op", words=["hop", "pop", "mop", "top", "shop"]),
    ]


def default_content_document() -> ContentDocument:
    return ContentDocument(groups=default_digraph_groups(), rhyme_groups=default_rhyme_groups(), pin=DEFAULT_PIN)


def parse_content_document(raw: str | bytes | dict[str, Any]) -> ContentDocument:
    """Validate a content document (JSON text or an already decoded object).

    Older documents without `rhymeGroups` get the built-in rhyme groups.
    Raises MalformedImport; never returns a partially valid document.
    """

    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise MalformedImport("Content file is not valid JSON") from e
    else:
        data = raw

    if not isinstance(data, dict):
        raise MalformedImport("Content document must be a JSON object")
    if "groups" not in data or data["groups"] is None:
        raise MalformedImport("Content document is missing 'groups'")

    data = dict(data)
    if data.get("rhymeGroups") is None and data.get("rhyme_groups") is None:
        data["rhymeGroups"] = [g.model_dump() for g in default_rhyme_groups()]

    try:
        return ContentDocument.model_validate(data)
    except ValidationError as e:
        raise MalformedImport(f"Invalid content document: {e.error_count()} error(s)") from e


def export_content_document(doc: ContentDocument) -> str:
    return doc.model_dump_json(by_alias=True)
