"""
In-memory session store shared across all routes.
Sessions live in a plain dict keyed by the session cookie value. They last
as long as the process; nothing expires or evicts them.
"""

import hashlib
import os
from typing import Optional

from models.session import Session

sessions: dict[str, Session] = {}


def generate_token() -> str:
    """SHA-256 hex digest of 32 random bytes."""
    return hashlib.sha256(os.urandom(32)).hexdigest()


def load_session(session_id: Optional[str]) -> Session:
    """
    Returns the stored session for this id, or a fresh unsaved one.
    Unknown ids are never adopted; a fresh session always gets a new token.
    """
    if session_id and session_id in sessions:
        return sessions[session_id]
    return Session(session_id=generate_token())


def save_session(session: Session) -> None:
    sessions[session.session_id] = session
