"""
Dispatcher configuration.

All settings come from the environment (a local .env is loaded first), e.g.:
  DATABASE_URL=mysql+pymysql://game:secret@db:3306/boardgame
  GAME_SETUP_PROCEDURE=SetupGame
"""

import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.environ.get(
    "DATABASE_URL", "mysql+pymysql://root@localhost:3306/boardgame"
)

SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME", "session_id")

# Stored procedure called with the new game id right after InitializeGame.
# Empty means no post-creation setup.
GAME_SETUP_PROCEDURE = os.environ.get("GAME_SETUP_PROCEDURE", "").strip()

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("ALLOWED_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

DEBUG = os.environ.get("DEBUG", "0").lower() in ("1", "true", "yes")
