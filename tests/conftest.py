import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from membership.app import create_app
from membership.auth.passwords import hash_password
from membership.auth.session import SessionManager
from membership.auth.users import UserStore
from membership.config import Settings
from membership.infra.document_store import DocumentCollection
from membership.services.auth_service import AuthService

SECRET = "test-secret"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    d = tmp_path / "data"
    d.mkdir()
    return d


@pytest.fixture()
def settings(data_dir: Path) -> Settings:
    return Settings(secret_key=SECRET, data_dir=data_dir)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def users(settings: Settings) -> UserStore:
    return UserStore(DocumentCollection("users", settings.users_path))


@pytest.fixture()
def sessions(settings: Settings, clock: FakeClock) -> SessionManager:
    return SessionManager(DocumentCollection("sessions", settings.sessions_path), SECRET, clock=clock)


@pytest.fixture()
def auth(users: UserStore, sessions: SessionManager) -> AuthService:
    return AuthService(users, sessions)


@pytest.fixture()
def app(settings: Settings, auth: AuthService):
    return create_app(settings, auth=auth)


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def make_user(users: UserStore):
    """Create a stored user directly, bypassing the signup form."""

    def _make(email: str, password: str = "longenough1", *, name: str = "", user_type: str = "user"):
        return users.create(
            name=name or email.split("@")[0].capitalize(),
            email=email,
            password_hash=hash_password(password),
            user_type=user_type,
        )

    return _make


def login(client: TestClient, email: str, password: str = "longenough1"):
    return client.post("/login", data={"email": email, "password": password}, follow_redirects=False)
