from __future__ import annotations

import logging
import time
from collections.abc import Callable
from uuid import UUID

from phonics.api.models import GameType, SessionState
from phonics.audio import AudioCue, CueRecorder
from phonics.content.registry import ContentRepository
from phonics.progress import ProgressReporter
from phonics.scheduling import AsyncioScheduler, Scheduler
from phonics.session import GameSession
from phonics.settings import Settings, load_settings


logger = logging.getLogger(__name__)


class SessionRegistry:
    """In-process sessions keyed by id.

    Sessions are never persisted: they live from game entry until exit, each
    with its own scheduler and cue recorder. Clients that vanish without
    exiting are closed once idle for `session_idle_timeout_s`, and the least
    recently used session is evicted when `max_sessions` is reached. Only lookups
    through `get` count as activity.
    """

    def __init__(
        self,
        *,
        scheduler_factory: Callable[[], Scheduler] = AsyncioScheduler,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._scheduler_factory = scheduler_factory
        self._settings = settings
        self._clock = clock
        self._last_seen: dict[UUID, float] = {}
        self._sessions: dict[UUID, GameSession] = {}
        self._schedulers: dict[UUID, Scheduler] = {}
        self._cues: dict[UUID, CueRecorder] = {}

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = load_settings()
        return self._settings

    def create(
        self,
        *,
        game_type: GameType,
        content: ContentRepository,
        progress: ProgressReporter,
        seed: int | None = None,
        on_change: Callable[[SessionState], None] | None = None,
    ) -> GameSession:
        self.sweep_idle()
        self._make_room()

        scheduler = self._scheduler_factory()
        cues = CueRecorder()
        session = GameSession(
            game_type=game_type,
            content=content,
            scheduler=scheduler,
            progress=progress,
            seed=seed,
            audio=cues,
            timings=self.settings.timings,
            max_attempts=self.settings.max_generation_attempts,
        )
        # Hooked up after the first question so creation itself is not broadcast.
        session.on_change = on_change

        sid = session.session_id
        self._sessions[sid] = session
        self._schedulers[sid] = scheduler
        self._cues[sid] = cues
        self._last_seen[sid] = self._clock()
        return session

    def get(self, session_id: UUID) -> GameSession | None:
        session = self._sessions.get(session_id)
        if session is not None:
            self._last_seen[session_id] = self._clock()
        return session

    def scheduler_for(self, session_id: UUID) -> Scheduler | None:
        return self._schedulers.get(session_id)

    def drain_cues(self, session_id: UUID) -> list[AudioCue]:
        cues = self._cues.get(session_id)
        return cues.drain() if cues is not None else []

    def close(self, session_id: UUID) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.exit()

        scheduler = self._schedulers.pop(session_id, None)
        if isinstance(scheduler, AsyncioScheduler):
            scheduler.cancel_all()
        self._cues.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        return True

    def sweep_idle(self) -> int:
        """Close sessions nobody has touched for the idle timeout. Returns how many were closed."""

        timeout = self.settings.session_idle_timeout_s
        if timeout <= 0:
            return 0
        cutoff = self._clock() - timeout
        stale = [sid for sid, seen in self._last_seen.items() if seen <= cutoff]
        for sid in stale:
            logger.info("Closing idle session %s", sid)
            self.close(sid)
        return len(stale)

    def _make_room(self) -> None:
        cap = self.settings.max_sessions
        if cap <= 0:
            return
        while len(self._sessions) >= cap:
            oldest = min(self._last_seen, key=self._last_seen.__getitem__)
            logger.warning("Session limit %d reached; evicting %s", cap, oldest)
            self.close(oldest)

    def close_all(self) -> None:
        for sid in list(self._sessions):
            self.close(sid)

    def __len__(self) -> int:
        return len(self._sessions)


registry = SessionRegistry()
