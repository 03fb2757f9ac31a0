import os
import uuid

os.environ.setdefault("PYTEST_RUNNING", "1")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from final10.api.main import app  # noqa: E402
from final10.db import models  # noqa: E402
from final10.db.database import SessionLocal, engine, get_db  # noqa: E402
from final10.utils import token_crypto  # noqa: E402
from final10.utils.config import refresh_settings_cache  # noqa: E402
from final10.utils.feature_flags import refresh_feature_flag_cache  # noqa: E402
from final10.utils.jwt_tokens import create_access_token  # noqa: E402

PASSWORD = "password123"
# Argon2 is deliberately slow; hash once for every factory-built user
PASSWORD_HASH = token_crypto.hash_secret(PASSWORD)

_ENV_VARS = (
    "ADMIN_EMAILS",
    "FEATURE_LIVE_SEARCH_ENABLED",
    "FEATURE_REFERRALS_ENABLED",
    "FEATURE_SHIELD_ENABLED",
    "MARKETPLACE_PROVIDER",
    "MARKETPLACE_PLATFORMS",
    "REFERRAL_DAILY_CAP",
    "SHIELD_WEBHOOK_BASE_URL",
    "SHIELD_WEBHOOK_SECRET",
    "WEEKEND_MULTIPLIER",
)


@pytest.fixture(scope="session", autouse=True)
def _schema():
    models.Base.metadata.create_all(bind=engine)
    yield
    models.Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    refresh_settings_cache()
    refresh_feature_flag_cache()
    yield
    refresh_settings_cache()
    refresh_feature_flag_cache()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        for table in reversed(models.Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        session.close()


@pytest.fixture
def db(db_session):
    return db_session


@pytest.fixture
def client(db_session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def make_user(db_session):
    """Factory for committed users; pass column overrides as keyword arguments."""

    def _make(**overrides):
        user_id = uuid.uuid4()
        suffix = user_id.hex[:8]
        fields = {
            "first_name": "Test",
            "last_name": "User",
            "username": f"user_{suffix}",
            "email": f"user_{suffix}@example.com",
            "password_hash": PASSWORD_HASH,
            "role": "user",
            "points_balance": 100,
            "lifetime_points_earned": 100,
            "badges": [],
            "referral_code": str(user_id),
        }
        fields.update(overrides)
        user = models.User(id=user_id, **fields)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin_user(make_user):
    return make_user(role="superadmin", username=f"admin_{uuid.uuid4().hex[:8]}")


def _bearer(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, expires_minutes=60)}"}


@pytest.fixture
def auth_headers(user):
    return _bearer(user)


@pytest.fixture
def admin_headers(admin_user):
    return _bearer(admin_user)


@pytest.fixture
def headers_for():
    """Return a builder of bearer headers for any user."""
    return _bearer
