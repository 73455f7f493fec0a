from typing import Union
from pydantic import BaseModel


class GameRecord(BaseModel):
    game_id: int
    game_token: str


class MoveRecord(BaseModel):
    game_id: int
    player_id: int
    piece_id: Union[int, str]
    start_x: int
    start_y: int
