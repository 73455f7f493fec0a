from typing import Any, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiResponse(BaseModel):
    """JSON envelope returned by every dispatcher operation.

    Fields serialise in camelCase (playerId, gameToken, ...) and unset
    fields are dropped from the payload.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message: str
    player_id: Optional[int] = None
    username: Optional[str] = None
    token: Optional[str] = None
    game_id: Optional[int] = None
    game_token: Optional[str] = None
    result: Optional[list[dict[str, Any]]] = None

    @classmethod
    def failure(cls, message: str) -> "ApiResponse":
        return cls(success=False, message=message)

    def payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
