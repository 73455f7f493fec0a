from typing import Optional
from pydantic import BaseModel


class PlayerRecord(BaseModel):
    player_id: int
    username: str
    token: Optional[str] = None     # only set by LoginPlayer
