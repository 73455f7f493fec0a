from fastapi import APIRouter, HTTPException, Request

import config
import store
from models.session import Session

router = APIRouter(tags=["session"])


@router.get("/session/debug", response_model=Session)
async def debug_session(request: Request):
    """
    Dumps the caller's session when DEBUG is on.
    With DEBUG off it answers 404 like any unknown path.
    """
    if not config.DEBUG:
        raise HTTPException(status_code=404, detail="Not Found")

    session_id = request.cookies.get(config.SESSION_COOKIE_NAME)
    session = store.sessions.get(session_id) if session_id else None
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")

    return session
