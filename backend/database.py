"""
Stored-procedure gateway.

All game logic lives in MySQL stored procedures. This module only knows how
to call them and how to read back their output parameters, which MySQL hands
out through session variables (@playerId, @gameId, ...) rather than as
return values.

Callers take one gateway per operation and must close it:

    with closing(db.connect()) as procs:
        player = procs.register_player(username, password)
"""

import logging
import re
from functools import lru_cache
from typing import Any, Callable, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine

import config
from models.game import GameRecord, MoveRecord
from models.player import PlayerRecord

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class ProcedureError(Exception):
    """A stored procedure ran but did not hand back what the caller needs."""


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_engine(config.DATABASE_URL, pool_pre_ping=True)


class StoredProcedures:
    """One database connection plus the game's stored procedures."""

    def __init__(self, conn: Connection, setup_procedure: str = ""):
        self._conn = conn
        self._setup_procedure = setup_procedure

    def _call(self, statement: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        # Drain every row before the next statement, otherwise the driver
        # rejects the follow-up SELECT of the output variables.
        result = self._conn.execute(text(statement), params)
        try:
            if result.returns_rows:
                return [dict(row) for row in result.mappings().all()]
            return []
        finally:
            result.close()

    def _fetch_one(self, statement: str) -> Optional[dict[str, Any]]:
        row = self._conn.execute(text(statement)).mappings().first()
        return dict(row) if row is not None else None

    def register_player(self, username: str, password: str) -> PlayerRecord:
        self._call(
            "CALL RegisterPlayer(:username, :password, @playerId)",
            {"username": username, "password": password},
        )
        row = self._fetch_one("SELECT @playerId AS playerId")
        if row is None or row.get("playerId") is None:
            raise ProcedureError("Player ID not returned from stored procedure.")
        self._conn.commit()
        return PlayerRecord(player_id=row["playerId"], username=username)

    def login_player(self, username: str, password: str) -> PlayerRecord:
        self._call(
            "CALL LoginPlayer(:username, :password, @playerId)",
            {"username": username, "password": password},
        )
        row = self._fetch_one(
            "SELECT @playerId AS playerId, token FROM Players WHERE ID = @playerId"
        )
        if row is None or row.get("playerId") is None or row.get("token") is None:
            raise ProcedureError("Player ID or token not returned from stored procedure.")
        self._conn.commit()
        return PlayerRecord(player_id=row["playerId"], username=username, token=row["token"])

    def initialize_game(
        self,
        player1_id: int,
        player2_id: int,
        player1_token: str,
        player2_token: str,
    ) -> GameRecord:
        self._call(
            "CALL InitializeGame(:player1_id, :player2_id, :player1_token, :player2_token, "
            "@gameId, @gameToken)",
            {
                "player1_id": player1_id,
                "player2_id": player2_id,
                "player1_token": player1_token,
                "player2_token": player2_token,
            },
        )
        row = self._fetch_one("SELECT @gameId AS game_id, @gameToken AS game_token")
        if row is None or row.get("game_id") is None or row.get("game_token") is None:
            raise ProcedureError("Failed to fetch output parameters.")
        self._conn.commit()
        return GameRecord(game_id=row["game_id"], game_token=row["game_token"])

    def setup_game(self, game: GameRecord) -> None:
        """Runs the configured post-creation procedure, if any."""
        if not self._setup_procedure:
            logger.info("No setup procedure configured, game %s left as initialized", game.game_id)
            return
        if not _IDENTIFIER.match(self._setup_procedure):
            raise ProcedureError(f"Invalid setup procedure name {self._setup_procedure!r}.")
        self._call(f"CALL {self._setup_procedure}(:game_id)", {"game_id": game.game_id})
        self._conn.commit()

    def apply_move(self, move: MoveRecord) -> list[dict[str, Any]]:
        """Hands the move to ApplyMove and returns whatever rows it yields."""
        rows = self._call(
            "CALL ApplyMove(:game_id, :player_id, :piece_id, :start_x, :start_y)",
            move.model_dump(),
        )
        self._conn.commit()
        return rows

    def close(self) -> None:
        self._conn.close()


class Database:
    """Hands out one StoredProcedures gateway per operation."""

    def __init__(
        self,
        engine_factory: Callable[[], Engine] = get_engine,
        setup_procedure: str = "",
    ):
        self._engine_factory = engine_factory
        self._setup_procedure = setup_procedure

    def connect(self) -> StoredProcedures:
        return StoredProcedures(self._engine_factory().connect(), self._setup_procedure)


def get_database() -> Database:
    """FastAPI dependency; tests override it with a fake."""
    return Database(setup_procedure=config.GAME_SETUP_PROCEDURE)
