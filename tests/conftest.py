from __future__ import annotations

import os
import random
from collections.abc import Generator
from pathlib import Path

import pytest

from phonics.api.models import DigraphGroup, RhymeGroup
from phonics.content.registry import ContentRepository, default_content_document


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (PyCharm/CLI).

    In CI, we *don't* auto-load `.env` by default so local timing or Redis
    overrides can't leak into the run. Opt-in with PHONICS_LOAD_DOTENV_FOR_TESTS=1.
    """

    if os.environ.get("CI") and os.environ.get("PHONICS_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture()
def content() -> ContentRepository:
    return ContentRepository.from_document(default_content_document())


def _make_content(
    groups: list[tuple[str, list[str]]] | None = None,
    rhymes: list[tuple[str, list[str]]] | None = None,
) -> ContentRepository:
    """Small ad-hoc content sets: [(digraph, words)], [(sound, words)]."""

    return ContentRepository(
        digraph_groups=tuple(
            DigraphGroup(id=f"g{i}", digraph=d, words=list(ws)) for i, (d, ws) in enumerate(groups or [], start=1)
        ),
        rhyme_groups=tuple(
            RhymeGroup(id=f"r{i}", sound=s, words=list(ws)) for i, (s, ws) in enumerate(rhymes or [], start=1)
        ),
    )


@pytest.fixture()
def make_content():
    return _make_content


@pytest.fixture()
def client_and_redis():
    """FastAPI TestClient wired to fakeredis and a registry on a manual clock.

    Yields (client, redis, registry); advance time with
    `registry.scheduler_for(session_id).advance(ms)`.
    """

    import fakeredis
    from fastapi.testclient import TestClient

    from phonics.api.deps import get_redis, get_sessions
    from phonics.main import app
    from phonics.scheduling import ManualScheduler
    from phonics.session_registry import SessionRegistry
    from phonics.settings import Settings

    r = fakeredis.FakeRedis(decode_responses=True)
    sessions = SessionRegistry(scheduler_factory=ManualScheduler, settings=Settings())

    def _override_redis() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override_redis
    app.dependency_overrides[get_sessions] = lambda: sessions
    with TestClient(app) as c:
        yield c, r, sessions
    app.dependency_overrides.clear()
