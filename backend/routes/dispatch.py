import asyncio
import json
import logging
from contextlib import closing
from dataclasses import dataclass, field
from typing import Any, Callable, Union

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy.exc import SQLAlchemyError

import config
import store
from database import Database, ProcedureError, get_database
from models.game import MoveRecord
from models.response import ApiResponse
from models.session import Session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dispatch"])


# ---------- Request schemas ----------

class Credentials(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    username: str
    password: str


class CreateGameRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    player1_id: int = Field(alias="player1Id")
    player2_id: int = Field(alias="player2Id")
    player1_token: str = Field(alias="player1Token")
    player2_token: str = Field(alias="player2Token")


class MoveRequest(BaseModel):
    game_id: int
    player_id: int
    piece_id: Union[int, str]
    start_x: int = Field(alias="startX")
    start_y: int = Field(alias="startY")


# ---------- Handler plumbing ----------

@dataclass
class Outcome:
    response: ApiResponse
    status_code: int = 200
    session_updates: dict[str, Any] = field(default_factory=dict)


Handler = Callable[[dict, Session, Database], Outcome]


def _invalid(message: str) -> Outcome:
    return Outcome(ApiResponse.failure(message), status_code=400)


def _failed(prefix: str, exc: Exception) -> Outcome:
    """Stored procedure or driver failure, reported without retry."""
    if isinstance(exc, ProcedureError):
        message = str(exc)
    else:
        message = f"{prefix}: {getattr(exc, 'orig', None) or exc}"
    logger.warning("%s", message)
    return Outcome(ApiResponse.failure(message), status_code=500)


# ---------- Operations ----------

def handle_register(body: dict, session: Session, db: Database) -> Outcome:
    try:
        creds = Credentials.model_validate(body)
    except ValidationError:
        return _invalid("'username' and 'password' are required for registration.")

    try:
        with closing(db.connect()) as procs:
            player = procs.register_player(creds.username, creds.password)
    except (SQLAlchemyError, ProcedureError) as e:
        return _failed("Failed to register player", e)

    logger.info("Registered player %s", player.player_id)
    return Outcome(ApiResponse(
        success=True,
        message="Player registered successfully.",
        player_id=player.player_id,
        username=player.username,
    ))


def handle_login(body: dict, session: Session, db: Database) -> Outcome:
    try:
        creds = Credentials.model_validate(body)
    except ValidationError:
        return _invalid("'username' and 'password' are required for login.")

    try:
        with closing(db.connect()) as procs:
            player = procs.login_player(creds.username, creds.password)
    except (SQLAlchemyError, ProcedureError) as e:
        return _failed("Failed to log in player", e)

    logger.info("Player %s logged in", player.player_id)
    return Outcome(
        ApiResponse(
            success=True,
            message="Player logged in successfully.",
            player_id=player.player_id,
            username=player.username,
            token=player.token,
        ),
        session_updates={
            "player_id": player.player_id,
            "username": player.username,
            "token": player.token,
        },
    )


def handle_create_game(body: dict, session: Session, db: Database) -> Outcome:
    try:
        req = CreateGameRequest.model_validate(body)
    except ValidationError:
        return _invalid("Player1Id, Player2Id, Player1Token, and Player2Token are required.")

    # Setup runs before anything reaches the session, so a failed setup
    # leaves no game reference behind.
    try:
        with closing(db.connect()) as procs:
            game = procs.initialize_game(
                req.player1_id, req.player2_id, req.player1_token, req.player2_token,
            )
            procs.setup_game(game)
    except (SQLAlchemyError, ProcedureError) as e:
        return _failed("Failed to create game", e)

    logger.info("Created game %s for players %s and %s", game.game_id, req.player1_id, req.player2_id)
    return Outcome(
        ApiResponse(
            success=True,
            message="Game created successfully.",
            game_id=game.game_id,
            game_token=game.game_token,
        ),
        session_updates={"game_id": game.game_id, "game_token": game.game_token},
    )


def handle_make_move(body: dict, session: Session, db: Database) -> Outcome:
    try:
        req = MoveRequest.model_validate(body)
    except ValidationError:
        return _invalid(
            "Missing parameters. Required: 'game_id', 'player_id', 'piece_id', 'startX', 'startY'."
        )

    move = MoveRecord(**req.model_dump())
    try:
        with closing(db.connect()) as procs:
            rows = procs.apply_move(move)
    except (SQLAlchemyError, ProcedureError) as e:
        return _failed("Failed to apply move", e)

    return Outcome(ApiResponse(
        success=True,
        message="Move submitted.",
        game_id=move.game_id,
        result=rows,
    ))


HANDLERS: dict[str, Handler] = {
    "register": handle_register,
    "login": handle_login,
    "createGame": handle_create_game,
    "makeMove": handle_make_move,
}


# ---------- Endpoint ----------

async def _read_json(request: Request) -> dict:
    """Decoded body, or {} when it is not a JSON object."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


def _respond(outcome: Outcome) -> JSONResponse:
    return JSONResponse(
        content=jsonable_encoder(outcome.response.payload()),
        status_code=outcome.status_code,
    )


@router.api_route("/api", methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"])
async def dispatch(request: Request, db: Database = Depends(get_database)):
    """
    Single entry point for every game operation.

    The JSON body names the operation in "method"; the rest of the body holds
    that operation's fields. Every reply is an ApiResponse envelope.
    """
    if request.method != "POST":
        return _respond(Outcome(
            ApiResponse.failure("Invalid request method. Please use POST."),
            status_code=405,
        ))

    body = await _read_json(request)
    method = body.get("method")
    if method is None:
        return _respond(_invalid("'method' parameter is required."))

    handler = HANDLERS.get(method) if isinstance(method, str) else None
    if handler is None:
        return _respond(_invalid(f"Unknown method '{method}'."))

    session = store.load_session(request.cookies.get(config.SESSION_COOKIE_NAME))
    logger.info("Dispatching %r", method)

    try:
        # Stored procedures block, keep them off the event loop
        outcome = await asyncio.to_thread(handler, body, session, db)
    except Exception as e:
        logger.exception("Unhandled error while dispatching %r", method)
        outcome = Outcome(ApiResponse.failure(f"Error: {e}"), status_code=500)

    response = _respond(outcome)
    if outcome.session_updates:
        updated = session.model_copy(update=outcome.session_updates)
        store.save_session(updated)
        response.set_cookie(
            config.SESSION_COOKIE_NAME,
            updated.session_id,
            httponly=True,
            samesite="lax",
        )
    return response
