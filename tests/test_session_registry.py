from __future__ import annotations

from phonics.api.models import GameType
from phonics.content.registry import ContentRepository
from phonics.progress import InMemoryProgressReporter
from phonics.scheduling import ManualScheduler
from phonics.session_registry import SessionRegistry
from phonics.settings import Settings


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _registry(clock: _Clock, **settings) -> SessionRegistry:
    return SessionRegistry(scheduler_factory=ManualScheduler, settings=Settings(**settings), clock=clock)


def _create(reg: SessionRegistry, content: ContentRepository):
    return reg.create(game_type=GameType.find_digraph, content=content, progress=InMemoryProgressReporter())


def test_abandoned_sessions_are_swept(content: ContentRepository) -> None:
    clock = _Clock()
    reg = _registry(clock, session_idle_timeout_s=60)
    abandoned = _create(reg, content)
    active = _create(reg, content)

    clock.now = 45.0
    assert reg.get(active.session_id) is active

    clock.now = 61.0
    assert reg.sweep_idle() == 1
    assert reg.get(abandoned.session_id) is None
    assert not abandoned.state.active
    assert reg.scheduler_for(abandoned.session_id) is None
    assert reg.get(active.session_id) is active


def test_create_sweeps_idle_sessions(content: ContentRepository) -> None:
    clock = _Clock()
    reg = _registry(clock, session_idle_timeout_s=60)
    _create(reg, content)

    clock.now = 500.0
    _create(reg, content)
    assert len(reg) == 1


def test_zero_timeout_keeps_everything(content: ContentRepository) -> None:
    clock = _Clock()
    reg = _registry(clock, session_idle_timeout_s=0)
    _create(reg, content)

    clock.now = 10_000_000.0
    assert reg.sweep_idle() == 0
    assert len(reg) == 1


def test_cap_evicts_least_recently_used(content: ContentRepository) -> None:
    clock = _Clock()
    reg = _registry(clock, max_sessions=2)
    first = _create(reg, content)
    clock.now = 1.0
    second = _create(reg, content)

    clock.now = 2.0
    reg.get(first.session_id)

    clock.now = 3.0
    third = _create(reg, content)
    assert len(reg) == 2
    assert reg.get(second.session_id) is None
    assert not second.state.active
    assert reg.get(first.session_id) is first
    assert reg.get(third.session_id) is third
