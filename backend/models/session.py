from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Session(BaseModel):
    session_id: str
    player_id: Optional[int] = None
    username: Optional[str] = None
    token: Optional[str] = None
    game_id: Optional[int] = None
    game_token: Optional[str] = None
    started_at: datetime = Field(default_factory=datetime.utcnow)
