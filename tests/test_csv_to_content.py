from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from phonics.content.registry import default_rhyme_groups, parse_content_document
from scripts.csv_to_content import build_content_document, digraph_groups_from_frame, rhyme_groups_from_frame


def test_digraph_groups_keep_first_seen_order() -> None:
    df = pd.DataFrame(
        {
            "Digraph": ["sh", "ch", "sh", "sh", ""],
            "Word": ["ship", "chip", "fish", "ship", "orphan"],
            "Glyph": ["🚢", None, "🐟", "🚢", "x"],
        }
    )

    groups = digraph_groups_from_frame(df)
    assert [(g.id, g.digraph, g.words) for g in groups] == [
        ("g1", "sh", ["ship", "fish"]),
        ("g2", "ch", ["chip"]),
    ]
    assert groups[0].images == {"ship": "🚢", "fish": "🐟"}
    assert groups[1].images == {}


def test_glyph_column_is_optional() -> None:
    groups = digraph_groups_from_frame(pd.DataFrame({"digraph": ["th"], "word": ["moth"]}))
    assert groups[0].images == {}


def test_missing_columns_rejected() -> None:
    with pytest.raises(ValueError):
        rhyme_groups_from_frame(pd.DataFrame({"sound": ["at"]}))


def test_build_document_from_files(tmp_path: Path) -> None:
    digraphs = tmp_path / "digraphs.csv"
    digraphs.write_text("digraph,word,glyph\nsh,ship,🚢\nch,chip,\n", encoding="utf-8")
    rhymes = tmp_path / "rhymes.csv"
    rhymes.write_text("sound,word\nat,cat\nat,hat\nog,dog\n", encoding="utf-8")

    doc = build_content_document(digraph_csv=digraphs, rhyme_csv=rhymes, pin="4321")
    assert [g.sound for g in doc.rhyme_groups] == ["at", "og"]
    assert doc.rhyme_groups[0].words == ["cat", "hat"]
    assert doc.pin == "4321"

    # Output must be importable as-is.
    parsed = parse_content_document(json.loads(doc.model_dump_json(by_alias=True)))
    assert parsed == doc


def test_default_rhymes_without_rhyme_csv(tmp_path: Path) -> None:
    digraphs = tmp_path / "digraphs.csv"
    digraphs.write_text("digraph,word\nwh,whale\n", encoding="utf-8")

    doc = build_content_document(digraph_csv=digraphs)
    assert doc.rhyme_groups == default_rhyme_groups()
