from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator, List

import pytest
from fastapi.testclient import TestClient

from gatekeeper.application.services.admin_auth_service import AdminAuthService
from gatekeeper.application.services.approval_service import ApprovalService
from gatekeeper.application.services.credential_service import CredentialService
from gatekeeper.application.services.registration_service import RegistrationService
from gatekeeper.core.app_factory import create_application
from gatekeeper.core.config import Settings
from gatekeeper.domain.models import PaymentMethod, User
from gatekeeper.infrastructure.persistence.sqlite import SQLitePersistence
from gatekeeper.infrastructure.storage.screenshot_store import LocalScreenshotStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "AdminPass123"
USER_PASSWORD = "Password123!"


class FakeClock:
    """Deterministic clock; each call returns the current value."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime.now(timezone.utc).replace(microsecond=0))


@pytest.fixture
def persistence(tmp_path) -> Iterator[SQLitePersistence]:
    store = SQLitePersistence(tmp_path / "store.db")
    yield store
    store.close()


@pytest.fixture
def credentials() -> CredentialService:
    return CredentialService("test-user-secret", "test-admin-secret", bcrypt_rounds=4)


@pytest.fixture
def screenshots(tmp_path) -> LocalScreenshotStore:
    return LocalScreenshotStore(tmp_path / "screenshots", max_bytes=1024 * 1024)


@pytest.fixture
def registration_service(persistence, credentials, screenshots, clock) -> RegistrationService:
    return RegistrationService(persistence, credentials, screenshots, clock=clock)


@pytest.fixture
def approval_service(persistence, screenshots, clock) -> ApprovalService:
    return ApprovalService(persistence, screenshots, clock=clock)


@pytest.fixture
def admin_auth_service(persistence, credentials, clock) -> AdminAuthService:
    return AdminAuthService(persistence, credentials, clock=clock)


@pytest.fixture
def make_users(persistence):
    """Insert users straight into the store, skipping password hashing."""

    def _make(count: int, prefix: str = "user", name: str = "Test User") -> List[User]:
        return [
            persistence.create_user(
                name=f"{name} {index}",
                email=f"{prefix}{index}@example.com",
                password_hash="not-a-real-hash",
                payment_method=PaymentMethod.BINANCE,
                payment_screenshot=f"/tmp/{prefix}{index}.png",
            )
            for index in range(count)
        ]

    return _make


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "app.db"))
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("USER_TOKEN_SECRET", "test-user-secret")
    monkeypatch.setenv("ADMIN_TOKEN_SECRET", "test-admin-secret")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("API_RATE_LIMIT", "0")
    monkeypatch.setenv("ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.delenv("CORS_ALLOW_ORIGINS", raising=False)
    return Settings()


@pytest.fixture
def client(settings) -> Iterator[TestClient]:
    with TestClient(create_application(settings)) as test_client:
        yield test_client


def register_user(
    client: TestClient,
    email: str = "alice@x.com",
    name: str = "Alice Doe",
    password: str = USER_PASSWORD,
    payment_method: str = "binance",
):
    return client.post(
        "/api/auth/register",
        data={"name": name, "email": email, "password": password, "paymentMethod": payment_method},
        files={"paymentScreenshot": ("proof.png", PNG_BYTES, "image/png")},
    )


def login_user(client: TestClient, email: str = "alice@x.com", password: str = USER_PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def admin_headers(client: TestClient) -> Dict[str, str]:
    response = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
