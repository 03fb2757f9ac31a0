import uuid

from jose import jwt

from final10.utils.config import get_auth_settings, refresh_settings_cache
from final10.utils.jwt_tokens import create_access_token, decode_access_token


def test_token_round_trip():
    user_id = uuid.uuid4()
    assert decode_access_token(create_access_token(user_id, expires_minutes=5)) == user_id


def test_expired_token_is_rejected():
    token = create_access_token(uuid.uuid4(), expires_minutes=-1)
    assert decode_access_token(token) is None


def test_token_signed_with_other_secret_is_rejected(monkeypatch):
    token = create_access_token(uuid.uuid4(), expires_minutes=5)
    monkeypatch.setenv("JWT_SECRET", "a-different-secret")
    refresh_settings_cache()
    assert decode_access_token(token) is None


def test_non_uuid_subject_is_rejected():
    settings = get_auth_settings()
    token = jwt.encode({"sub": "alice"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    assert decode_access_token(token) is None
    assert decode_access_token("garbage") is None
