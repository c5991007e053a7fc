import importlib
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from app.session import SessionContext


def test_auth_ttl_invalid_env_falls_back(monkeypatch):
    monkeypatch.setenv("AUTH_TOKEN_TTL_HOURS", "not-a-number")
    sys.modules.pop("app.auth", None)
    auth = importlib.import_module("app.auth")
    assert auth.TOKEN_TTL_HOURS == 24


def test_auth_ttl_non_positive_env_falls_back(monkeypatch):
    monkeypatch.setenv("AUTH_TOKEN_TTL_HOURS", "0")
    sys.modules.pop("app.auth", None)
    auth = importlib.import_module("app.auth")
    assert auth.TOKEN_TTL_HOURS == 24


def test_token_round_trip_and_tampering():
    auth = importlib.import_module("app.auth")
    token, _ = auth.create_access_token("user_42")
    assert auth.verify_access_token(token) == "user_42"
    assert auth.resolve_request_user(f"Bearer {token}") == "user_42"

    payload_part, sig_part = token.split(".", 1)
    forged_payload = auth._b64url(b"someone_else|9999999999")
    assert auth.verify_access_token(f"{forged_payload}.{sig_part}") is None
    assert auth.verify_access_token("garbage") is None
    assert auth.resolve_request_user(f"Basic {token}") is None


def test_session_context_without_user_is_anonymous():
    assert SessionContext(user_id=None).authenticated is False
    assert SessionContext(user_id="").authenticated is False
    assert SessionContext(user_id="u1").authenticated is True
