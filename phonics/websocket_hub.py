from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket

from phonics.api.models import SessionState


logger = logging.getLogger(__name__)

SESSION_UPDATED = "session_updated"


def session_updated_event(state: SessionState) -> dict[str, object]:
    """Small change notice; clients re-fetch the full view over REST."""

    return {
        "type": SESSION_UPDATED,
        "session_id": str(state.session_id),
        "epoch": state.epoch,
        "phase": state.phase.value,
        "score": state.score,
        "active": state.active,
    }


class SessionUpdateHub:
    """Fans session change notices out to the sockets watching that session.

    Engine callbacks (including timer callbacks) are synchronous, so they go
    through `publish`, which schedules the send on the running loop.
    """

    def __init__(self) -> None:
        self._watchers: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()
        self._inflight: set[asyncio.Task[None]] = set()

    async def watch(self, session_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._watchers[session_id].add(websocket)

    async def unwatch(self, session_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            sockets = self._watchers.get(session_id)
            if sockets is None:
                return
            sockets.discard(websocket)
            if not sockets:
                del self._watchers[session_id]

    def watcher_count(self, session_id: str) -> int:
        return len(self._watchers.get(session_id, ()))

    async def send(self, session_id: str, event: dict[str, object]) -> None:
        async with self._lock:
            sockets = tuple(self._watchers.get(session_id, ()))

        for ws in sockets:
            try:
                await ws.send_json(event)
            except Exception:
                # Client went away mid-send; the receive loop will notice too.
                logger.debug("Dropping socket for session %s after failed send", session_id, exc_info=True)
                await self.unwatch(session_id, ws)

    def publish(self, state: SessionState) -> None:
        session_id = str(state.session_id)
        if not self.watcher_count(session_id):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; not publishing update for session %s", session_id)
            return
        task = loop.create_task(self.send(session_id, session_updated_event(state)))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)


hub = SessionUpdateHub()
