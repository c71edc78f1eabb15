import pytest

from api import create_app
from api.config import TestingConfig
from models.db_storage import DBStorage
from services.auth_service import AuthService
from utils.password_hasher import PasswordHasher
from utils.security import TokenIssuer

CLIENT_IP = "203.0.113.7"
STRONG_PASSWORD = "P@ssw0rd1"


@pytest.fixture
def issuer():
    return TokenIssuer(
        secret=TestingConfig.JWT_SECRET,
        issuer=TestingConfig.JWT_ISSUER,
        audience=TestingConfig.JWT_AUDIENCE,
        access_token_minutes=15,
        refresh_token_days=7,
    )


@pytest.fixture
def hasher():
    return PasswordHasher()


@pytest.fixture
def service(hasher, issuer):
    return AuthService(hasher, issuer)


@pytest.fixture
def storage():
    """Fresh in-memory database per test."""
    storage = DBStorage("sqlite://")
    storage.reload()
    yield storage
    storage.dispose()


@pytest.fixture
def file_storage(tmp_path):
    """File-backed database: separate sessions get separate connections."""
    storage = DBStorage(f"sqlite:///{tmp_path / 'auth.db'}")
    storage.reload()
    yield storage
    storage.dispose()


@pytest.fixture
def registered(storage, service):
    """alice, registered once; returns the AuthResult."""
    with storage.session_scope() as store:
        result = service.register(store, "alice", STRONG_PASSWORD, CLIENT_IP)
    assert result.success
    return result


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    app.extensions["storage"].dispose()


@pytest.fixture
def client(app):
    return app.test_client()


def load_token(storage, value):
    """Read a refresh token in its own scope (returns a detached, fully loaded row)."""
    with storage.session_scope() as store:
        return store.get_refresh_token_by_value(value)


def load_user(storage, user_id):
    with storage.session_scope() as store:
        return store.get_user_by_id(user_id)
