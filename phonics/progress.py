from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import redis


logger = logging.getLogger(__name__)

PROGRESS_TAGS_KEY = "phonics:progress:tags"
PROGRESS_KEY_PREFIX = "phonics:progress:"  # + {tag}


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    tag: str
    correct: bool


class ProgressReporter(Protocol):
    def record(self, tag: str, correct: bool) -> None: ...


class InMemoryProgressReporter:
    """Keeps the events in a list. Handy for tests and offline sessions."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def record(self, tag: str, correct: bool) -> None:
        self.events.append(ProgressEvent(tag=tag, correct=correct))

    def totals(self) -> dict[str, dict[str, int]]:
        out: dict[str, dict[str, int]] = {}
        for e in self.events:
            entry = out.setdefault(e.tag, {"correct": 0, "total": 0})
            entry["total"] += 1
            if e.correct:
                entry["correct"] += 1
        return out


def _progress_key(tag: str) -> str:
    return f"{PROGRESS_KEY_PREFIX}{tag}"


class RedisProgressReporter:
    """Per-tag correct/total counters stored as Redis hashes."""

    def __init__(self, *, r: redis.Redis) -> None:
        self._r = r

    def record(self, tag: str, correct: bool) -> None:
        try:
            pipe = self._r.pipeline()
            pipe.sadd(PROGRESS_TAGS_KEY, tag)
            pipe.hincrby(_progress_key(tag), "total", 1)
            pipe.hincrby(_progress_key(tag), "correct", 1 if correct else 0)
            pipe.execute()
        except redis.RedisError:
            logger.exception("Failed to record progress for tag %r", tag)


def get_progress(*, r: redis.Redis) -> dict[str, dict[str, int]]:
    out: dict[str, dict[str, int]] = {}
    for tag in sorted(r.smembers(PROGRESS_TAGS_KEY)):
        raw = r.hgetall(_progress_key(tag))
        out[tag] = {"correct": int(raw.get("correct", 0)), "total": int(raw.get("total", 0))}
    return out


def reset_progress(*, r: redis.Redis) -> None:
    tags = list(r.smembers(PROGRESS_TAGS_KEY))
    keys = [_progress_key(t) for t in tags]
    r.delete(PROGRESS_TAGS_KEY, *keys)
