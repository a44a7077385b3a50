import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

from coachdesk import db
from coachdesk.backend import ActiveStorage, Backend
from coachdesk.config import Settings
from coachdesk.main import create_app
from coachdesk.seed import DEMO_PASSWORD
from coachdesk.sql_storage import SqlStorage
from coachdesk.storage import MemStorage


@pytest.fixture
def store():
    return MemStorage(seed=False)


def strict_sqlite_engine():
    """In-memory SQLite with foreign key enforcement on, like a server database."""
    engine = db.make_engine("sqlite://")

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_conn, _record):
        dbapi_conn.execute("PRAGMA foreign_keys=ON")

    return engine


@pytest.fixture
def sql_store():
    engine = strict_sqlite_engine()
    db.init_db(engine)
    yield SqlStorage(db.make_sessionmaker(engine))
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def any_store(request):
    """Runs a test once per backend; both must honour the same contract."""
    if request.param == "memory":
        yield MemStorage(seed=False)
        return
    engine = strict_sqlite_engine()
    db.init_db(engine)
    yield SqlStorage(db.make_sessionmaker(engine))
    engine.dispose()


@pytest.fixture
def seeded_store():
    return MemStorage(seed=True)


@pytest.fixture
def client(seeded_store):
    app = create_app(Settings(), ActiveStorage(Backend.MEMORY, seeded_store))
    with TestClient(app) as c:
        yield c


def login(client, username, password=DEMO_PASSWORD):
    r = client.post("/api/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture
def admin_client(client):
    login(client, "admin")
    return client


@pytest.fixture
def teacher_client(client):
    login(client, "teacher1")
    return client


@pytest.fixture
def login_as(client):
    def _login(username, password=DEMO_PASSWORD):
        return login(client, username, password)
    return _login
