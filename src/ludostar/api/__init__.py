"""REST API for the Ludo Star player records."""

from __future__ import annotations

import logging
import re
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from fastapi import Body, FastAPI, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ludostar.api.schemas import (
    PaginationResponse,
    PlayerCreateRequest,
    PlayerDeletedResponse,
    PlayerEnvelope,
    PlayerListEnvelope,
    PlayerUpdateRequest,
)
from ludostar.config import Settings
from ludostar.persistence import PlayerStore
from ludostar.players import InternalError, PlayerService, PlayerServiceError
from ludostar.players.service import DEFAULT_LIMIT, DEFAULT_PAGE


logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")

API_TITLE = "Ludo Star Player API"

ENDPOINTS = {
    "GET /api/player/:player_id": "Get player by ID",
    "POST /api/player": "Add new player",
    "PUT /api/player/:player_id": "Update player",
    "DELETE /api/player/:player_id": "Delete player",
    "GET /api/players": "Get all players (with pagination)",
}


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_query_int(raw: str | None, default: int) -> int:
    """Read the leading integer of a query value ("5x" -> 5, "2.0" -> 2)."""
    if raw is None:
        return default
    match = _LEADING_INT.match(raw)
    if match is None:
        return default
    return int(match.group(1))


async def _call(action: str, func: Callable[..., T], *args: Any) -> T:
    """Run a blocking service call off the event loop.

    Service errors pass through unchanged; anything else is logged and
    surfaced as an :class:`InternalError` with the raw message.
    """
    try:
        return await run_in_threadpool(func, *args)
    except PlayerServiceError:
        raise
    except Exception as exc:
        logger.exception("Error %s", action)
        raise InternalError(str(exc)) from exc


def create_app(settings: Settings | None = None, *, store: PlayerStore | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    owns_store = store is None
    if store is None:
        store = PlayerStore.open(settings.db_path, pool_size=settings.pool_size)
    service = PlayerService(store)
    started = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await run_in_threadpool(store.ping)
            logger.info("Database connected successfully (%s)", store.engine.url)
        except Exception:
            logger.exception("Database connection failed")
        yield
        if owns_store:
            store.close()

    app = FastAPI(title=API_TITLE, lifespan=lifespan)
    app.state.settings = settings
    app.state.player_store = store
    app.state.player_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(PlayerServiceError)
    async def player_error_handler(request: Request, exc: PlayerServiceError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "Invalid request body",
                "errors": jsonable_encoder(exc.errors()),
            },
        )

    @app.get("/")
    async def index() -> dict[str, Any]:
        return {"success": True, "message": API_TITLE, "endpoints": ENDPOINTS}

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "success": True,
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - started, 3),
        }

    @app.get(
        "/api/player/{player_id}",
        response_model=PlayerEnvelope,
        response_model_exclude_none=True,
    )
    async def get_player(player_id: str):
        player = await _call("fetching player", service.get_player, player_id)
        return PlayerEnvelope(data=player)

    @app.post(
        "/api/player",
        status_code=201,
        response_model=PlayerEnvelope,
        response_model_exclude_none=True,
    )
    async def add_player(payload: PlayerCreateRequest | None = Body(None)):
        if payload is None:
            payload = PlayerCreateRequest()
        player = await _call(
            "adding player",
            service.create_player,
            payload.player_id,
            payload.name,
            payload.uid,
            payload.old_names,
        )
        return PlayerEnvelope(message="Player added successfully", data=player)

    @app.put(
        "/api/player/{player_id}",
        response_model=PlayerEnvelope,
        response_model_exclude_none=True,
    )
    async def update_player(player_id: str, payload: PlayerUpdateRequest | None = Body(None)):
        if payload is None:
            payload = PlayerUpdateRequest()
        player = await _call("updating player", service.update_player, player_id, payload.to_update())
        return PlayerEnvelope(message="Player updated successfully", data=player)

    @app.delete("/api/player/{player_id}", response_model=PlayerDeletedResponse)
    async def delete_player(player_id: str):
        deleted = await _call("deleting player", service.delete_player, player_id)
        return PlayerDeletedResponse(message="Player deleted successfully", player_id=deleted)

    @app.get("/api/players", response_model=PlayerListEnvelope)
    async def list_players(
        page: str | None = Query(None, description="1-based page number"),
        limit: str | None = Query(None, description="Page size, capped at 100"),
    ):
        result = await _call(
            "fetching players",
            service.list_players,
            _parse_query_int(page, DEFAULT_PAGE),
            _parse_query_int(limit, DEFAULT_LIMIT),
        )
        return PlayerListEnvelope(
            data=result.players,
            pagination=PaginationResponse(
                page=result.page,
                limit=result.limit,
                total=result.total,
                total_pages=result.total_pages,
            ),
        )

    return app
