"""API routes."""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request, WebSocket

from lastcard.api.gateway import RealtimeGateway
from lastcard.api.websocket import serve_connection

router = APIRouter()


def _gateway(request: Request) -> RealtimeGateway:
    return request.app.state.gateway


@router.get("/sessions")
async def list_sessions(
    request: Request,
    game_type: str | None = Query(default=None, description="Only sessions of this game type"),
) -> dict[str, Any]:
    """List pending sessions."""
    sessions = [session.summary() for session in _gateway(request).registry.list(game_type)]
    return {"sessions": sessions, "count": len(sessions)}


@router.get("/sessions/mine")
async def my_sessions(
    request: Request,
    identity: str = Query(..., description="Identity whose sessions to list"),
) -> dict[str, Any]:
    """List the sessions an identity owns or participates in."""
    sessions = _gateway(request).registry.sessions_of(identity)
    return {"sessions": sessions, "count": len(sessions)}


@router.get("/sessions/{code}/game")
async def get_game(request: Request, code: str) -> dict[str, Any]:
    """Get the current state of a session's card game.

    Raises:
        HTTPException: If no game is running for the code

    """
    state = _gateway(request).get_game(code)
    if state is None:
        raise HTTPException(status_code=404, detail="Game not found")
    return state.to_dict()


@router.websocket("/ws")
async def realtime(
    websocket: WebSocket,
    identity: str = Query(default="", description="Verified identity of the client"),
) -> None:
    """WebSocket endpoint for lobby and game messages.

    Args:
        websocket: WebSocket connection
        identity: Identity asserted by the upstream authentication layer

    """
    await serve_connection(websocket.app.state.gateway, websocket, identity)
