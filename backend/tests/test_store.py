import store
from models.session import Session


def setup_function():
    store.sessions.clear()


def test_generate_token_is_sha256_hex():
    token = store.generate_token()
    assert len(token) == 64
    int(token, 16)
    assert token != store.generate_token()


def test_load_unknown_session_gets_fresh_id():
    session = store.load_session("forged-id")
    assert session.session_id != "forged-id"
    assert session.player_id is None
    assert store.sessions == {}


def test_load_without_cookie():
    assert store.load_session(None).session_id


def test_save_then_load():
    session = Session(session_id="abc", username="alice")
    store.save_session(session)
    assert store.load_session("abc") is session
