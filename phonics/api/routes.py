from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from uuid import UUID

import redis
from fastapi import APIRouter, Body, Depends, HTTPException, Response, WebSocket, WebSocketDisconnect, status

from phonics.api.deps import get_redis, get_sessions
from phonics.api.models import (
    GAMES,
    AnswerRequest,
    AudioCueModel,
    GameListResponse,
    PartialRequest,
    ProgressEntry,
    ProgressResponse,
    SessionCreateRequest,
    SessionView,
    SortChoiceRequest,
)
from phonics.content.registry import MalformedImport
from phonics.content.store import export_content, get_content_repository, import_content_document
from phonics.progress import RedisProgressReporter, get_progress, reset_progress
from phonics.session import GameSession, SessionClosedError
from phonics.session_registry import SessionRegistry
from phonics.websocket_hub import hub


logger = logging.getLogger(__name__)

router = APIRouter()


def _view(sessions: SessionRegistry, session: GameSession) -> SessionView:
    cues = [AudioCueModel(kind=c.kind, value=c.value) for c in sessions.drain_cues(session.session_id)]
    return SessionView(state=session.snapshot(), cues=cues)


def _require_session(sessions: SessionRegistry, session_id: UUID) -> GameSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session


def _apply(
    *,
    sessions: SessionRegistry,
    session_id: UUID,
    r: redis.Redis,
    op: Callable[[GameSession], bool],
) -> SessionView:
    session = _require_session(sessions, session_id)
    # Progress goes through this request's client; the session outlives it.
    session.progress = RedisProgressReporter(r=r)
    try:
        op(session)
    except SessionClosedError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return _view(sessions, session)


@router.websocket("/ws/session/{session_id}")
async def session_updates_ws(websocket: WebSocket, session_id: UUID) -> None:
    sid = str(session_id)
    await hub.watch(sid, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.unwatch(sid, websocket)
    except Exception:
        await hub.unwatch(sid, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/games", response_model=GameListResponse)
async def list_games_route() -> GameListResponse:
    return GameListResponse(games=list(GAMES))


@router.post("/session", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def create_session_route(
    payload: SessionCreateRequest,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionView:
    session = sessions.create(
        game_type=payload.game_type,
        content=get_content_repository(r=r),
        progress=RedisProgressReporter(r=r),
        seed=payload.seed,
        on_change=hub.publish,
    )
    return _view(sessions, session)


@router.get("/session/{session_id}", response_model=SessionView)
async def get_session_route(session_id: UUID, sessions: SessionRegistry = Depends(get_sessions)) -> SessionView:
    return _view(sessions, _require_session(sessions, session_id))


@router.delete("/session/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def exit_session_route(session_id: UUID, sessions: SessionRegistry = Depends(get_sessions)) -> Response:
    if not sessions.close(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/session/{session_id}/answer", response_model=SessionView)
async def answer_route(
    session_id: UUID,
    payload: AnswerRequest,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionView:
    return _apply(sessions=sessions, session_id=session_id, r=r, op=lambda s: s.submit_answer(payload.answer))


@router.post("/session/{session_id}/partial", response_model=SessionView)
async def partial_route(
    session_id: UUID,
    payload: PartialRequest,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionView:
    return _apply(sessions=sessions, session_id=session_id, r=r, op=lambda s: s.submit_partial(payload.tile))


@router.post("/session/{session_id}/clear", response_model=SessionView)
async def clear_route(
    session_id: UUID,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionView:
    return _apply(sessions=sessions, session_id=session_id, r=r, op=lambda s: s.clear_selection())


@router.post("/session/{session_id}/sort", response_model=SessionView)
async def sort_route(
    session_id: UUID,
    payload: SortChoiceRequest,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionView:
    return _apply(
        sessions=sessions,
        session_id=session_id,
        r=r,
        op=lambda s: s.submit_sort_choice(payload.item_index, payload.bin_index),
    )


@router.post("/session/{session_id}/spin", response_model=SessionView)
async def spin_route(
    session_id: UUID,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionView:
    return _apply(sessions=sessions, session_id=session_id, r=r, op=lambda s: s.spin())


@router.get("/content")
async def export_content_route(r: redis.Redis = Depends(get_redis)) -> Response:
    return Response(content=export_content(r=r), media_type="application/json")


@router.put("/content")
async def import_content_route(body: Any = Body(...), r: redis.Redis = Depends(get_redis)) -> dict[str, object]:
    try:
        doc = import_content_document(r=r, raw=body)
    except MalformedImport as e:
        logger.info("Rejected content import: %s", e)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return {"status": "imported", "groups": len(doc.groups), "rhyme_groups": len(doc.rhyme_groups)}


@router.get("/progress", response_model=ProgressResponse)
async def get_progress_route(r: redis.Redis = Depends(get_redis)) -> ProgressResponse:
    raw = get_progress(r=r)
    return ProgressResponse(progress={tag: ProgressEntry(**v) for tag, v in raw.items()})


@router.delete("/progress", status_code=status.HTTP_204_NO_CONTENT)
async def reset_progress_route(r: redis.Redis = Depends(get_redis)) -> Response:
    reset_progress(r=r)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
