"""Build a content document (JSON) from spreadsheet exports.

Contract
- Inputs:
  - digraph CSV with columns `digraph,word,glyph` (glyph may be blank)
  - optional rhyme CSV with columns `sound,word`
- Output: a content document `{groups, rhymeGroups, pin}` ready for
  `PUT /content`.
- Groups keep the order in which their digraph/sound first appears; words
  keep row order and are de-duplicated. Ids are `g1..` and `r1..`.

Usage:
    uv run python scripts/csv_to_content.py digraphs.csv --rhymes rhymes.csv -o content.json

Without `--rhymes` the built-in rhyme groups are used.
"""

from __future__ import annotations

import argparse
from pathlib import Path

import pandas as pd

from phonics.api.models import ContentDocument, DigraphGroup, RhymeGroup
from phonics.content.registry import DEFAULT_PIN, default_rhyme_groups, export_content_document


DIGRAPH_COLUMNS = ["digraph", "word", "glyph"]
RHYME_COLUMNS = ["sound", "word"]


def _clean(df: pd.DataFrame, *, required: list[str], src: str) -> pd.DataFrame:
    df = df.rename(columns=lambda c: str(c).strip().casefold())
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Missing columns in {src}: {missing}")

    out = df[required].fillna("").astype(str)
    for col in required:
        out[col] = out[col].str.strip()
    return out[(out[required[0]] != "") & (out["word"] != "")]


def digraph_groups_from_frame(df: pd.DataFrame) -> list[DigraphGroup]:
    if "glyph" not in [str(c).strip().casefold() for c in df.columns]:
        df = df.assign(glyph="")
    rows = _clean(df, required=DIGRAPH_COLUMNS, src="digraph CSV")

    groups: list[DigraphGroup] = []
    for idx, (digraph, sub) in enumerate(rows.groupby("digraph", sort=False), start=1):
        words = list(dict.fromkeys(sub["word"].tolist()))
        images = {w: g for w, g in zip(sub["word"], sub["glyph"], strict=True) if g}
        groups.append(DigraphGroup(id=f"g{idx}", digraph=str(digraph), words=words, images=images))
    return groups


def rhyme_groups_from_frame(df: pd.DataFrame) -> list[RhymeGroup]:
    rows = _clean(df, required=RHYME_COLUMNS, src="rhyme CSV")
    return [
        RhymeGroup(id=f"r{idx}", sound=str(sound), words=list(dict.fromkeys(sub["word"].tolist())))
        for idx, (sound, sub) in enumerate(rows.groupby("sound", sort=False), start=1)
    ]


def build_content_document(*, digraph_csv: Path, rhyme_csv: Path | None = None, pin: str = DEFAULT_PIN) -> ContentDocument:
    groups = digraph_groups_from_frame(pd.read_csv(digraph_csv, dtype=str))
    rhymes = rhyme_groups_from_frame(pd.read_csv(rhyme_csv, dtype=str)) if rhyme_csv else default_rhyme_groups()
    return ContentDocument(groups=groups, rhyme_groups=rhymes, pin=pin)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("digraphs", type=Path)
    parser.add_argument("--rhymes", type=Path, default=None)
    parser.add_argument("--pin", default=DEFAULT_PIN)
    parser.add_argument("-o", "--output", type=Path, default=None)
    args = parser.parse_args()

    doc = build_content_document(digraph_csv=args.digraphs, rhyme_csv=args.rhymes, pin=args.pin)
    text = export_content_document(doc)
    if args.output is None:
        print(text)
    else:
        args.output.write_text(text + "\n", encoding="utf-8")


if __name__ == "__main__":
    main()
