from models.game import GameRecord, MoveRecord
from models.player import PlayerRecord
from models.response import ApiResponse
from models.session import Session

__all__ = ["GameRecord", "MoveRecord", "PlayerRecord", "ApiResponse", "Session"]
