"""
Shared fixtures: an in-memory stand-in for the stored procedures and a
TestClient wired to it through FastAPI's dependency overrides.
"""

import pytest
from fastapi.testclient import TestClient

import store
from database import ProcedureError, get_database
from main import app
from models.game import GameRecord, MoveRecord
from models.player import PlayerRecord


class FakeProcedures:
    """Mimics StoredProcedures; counts close() so tests can check release."""

    def __init__(self, db: "FakeDatabase"):
        self.db = db
        self.close_calls = 0

    def register_player(self, username: str, password: str) -> PlayerRecord:
        self.db.check("register_player")
        player_id = len(self.db.players) + 1
        self.db.players[username] = (player_id, password)
        return PlayerRecord(player_id=player_id, username=username)

    def login_player(self, username: str, password: str) -> PlayerRecord:
        self.db.check("login_player")
        entry = self.db.players.get(username)
        if entry is None or entry[1] != password:
            raise ProcedureError("Player ID or token not returned from stored procedure.")
        player_id = entry[0]
        return PlayerRecord(player_id=player_id, username=username, token=f"token-{player_id}")

    def initialize_game(self, player1_id, player2_id, player1_token, player2_token) -> GameRecord:
        self.db.check("initialize_game")
        self.db.games.append((player1_id, player2_id, player1_token, player2_token))
        game_id = len(self.db.games)
        return GameRecord(game_id=game_id, game_token=f"game-token-{game_id}")

    def setup_game(self, game: GameRecord) -> None:
        self.db.check("setup_game")
        self.db.setups.append(game.game_id)

    def apply_move(self, move: MoveRecord) -> list[dict]:
        self.db.check("apply_move")
        self.db.moves.append(move)
        return list(self.db.move_rows)

    def close(self) -> None:
        self.close_calls += 1


class FakeDatabase:
    def __init__(self):
        self.players: dict[str, tuple[int, str]] = {}
        self.games: list[tuple] = []
        self.setups: list[int] = []
        self.moves: list[MoveRecord] = []
        self.move_rows: list[dict] = []
        self.failures: dict[str, Exception] = {}
        self.connections: list[FakeProcedures] = []

    def check(self, operation: str) -> None:
        if operation in self.failures:
            raise self.failures[operation]

    def connect(self) -> FakeProcedures:
        procs = FakeProcedures(self)
        self.connections.append(procs)
        return procs


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def client(fake_db):
    store.sessions.clear()
    app.dependency_overrides[get_database] = lambda: fake_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    store.sessions.clear()
