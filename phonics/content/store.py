from __future__ import annotations

import logging
from typing import Any

import redis

from phonics.api.models import ContentDocument
from phonics.content.registry import (
    ContentRepository,
    MalformedImport,
    default_content_document,
    export_content_document,
    parse_content_document,
)


logger = logging.getLogger(__name__)

CONTENT_KEY = "phonics:content"


def get_content_document(*, r: redis.Redis) -> ContentDocument:
    """Load the stored document, or the built-in content when nothing usable is stored."""

    raw = r.get(CONTENT_KEY)
    if not raw:
        return default_content_document()
    try:
        return parse_content_document(raw)
    except MalformedImport:
        logger.error("Stored content document is unreadable; using built-in content", exc_info=True)
        return default_content_document()


def get_content_repository(*, r: redis.Redis) -> ContentRepository:
    return ContentRepository.from_document(get_content_document(r=r))


def save_content_document(*, r: redis.Redis, doc: ContentDocument) -> None:
    r.set(CONTENT_KEY, export_content_document(doc))


def import_content_document(*, r: redis.Redis, raw: str | bytes | dict[str, Any]) -> ContentDocument:
    """Replace the whole content document.

    Validation happens before anything is written, so a bad import leaves the
    stored document as it was.
    """

    doc = parse_content_document(raw)
    save_content_document(r=r, doc=doc)
    logger.info("Imported content: %d digraph group(s), %d rhyme group(s)", len(doc.groups), len(doc.rhyme_groups))
    return doc


def export_content(*, r: redis.Redis) -> str:
    return export_content_document(get_content_document(r=r))
