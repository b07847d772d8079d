import os

# Must be set before api.app is imported: db.py builds its engine at import.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["GOOGLE_SERVICE_ACCOUNT_JSON"] = ""
os.environ["GOOGLE_SERVICE_ACCOUNT_EMAIL"] = ""
os.environ["GOOGLE_PRIVATE_KEY"] = ""
os.environ["GOOGLE_SHEET_ID"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = ""

from typing import Dict, List  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from api.app import models  # noqa: E402,F401
from api.app.auth_firebase import get_current_user  # noqa: E402
from api.app.db import Base, get_db  # noqa: E402
from api.app.main import app  # noqa: E402
from api.app.services.sheets import MirrorSink, get_mirror  # noqa: E402

USERS: Dict[str, dict] = {
    "admin": {"uid": "u-admin", "email": "admin@example.com", "name": "Coach Admin"},
    "bob": {"uid": "u-bob", "email": "bob@example.com", "name": "Bob"},
    "cara": {"uid": "u-cara", "email": "cara@example.com", "name": None},
    "legacy": {"uid": "u-legacy", "email": "legacy@example.com", "name": "Old Timer"},
}

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class RecordingMirror(MirrorSink):
    """Captures mirror calls instead of talking to Google."""
    enabled = True

    def __init__(self):
        self.calls: List[tuple] = []

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]

    def append_bets(self, sheet_id, rows):
        self.calls.append(("append_bets", sheet_id, rows))

    def append_matchups(self, sheet_id, rows):
        self.calls.append(("append_matchups", sheet_id, rows))

    def write_leaderboard(self, sheet_id, rows):
        self.calls.append(("write_leaderboard", sheet_id, rows))

    def append_result(self, sheet_id, row):
        self.calls.append(("append_result", sheet_id, row))

    def rename_user(self, sheet_id, old_name, new_name):
        self.calls.append(("rename_user", sheet_id, old_name, new_name))

    def append_league(self, row):
        self.calls.append(("append_league", row))

    def append_user_role(self, row):
        self.calls.append(("append_user_role", row))


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mirror():
    return RecordingMirror()


@pytest.fixture
def auth():
    """Claims returned by the fake identity; switch users with login()."""
    return dict(USERS["admin"])


def login(auth: dict, who: str) -> None:
    auth.clear()
    auth.update(USERS[who])


@pytest.fixture
def client(db_session, mirror, auth):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_current_user] = lambda: dict(auth)
    app.dependency_overrides[get_mirror] = lambda: mirror
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def league(client, auth):
    """Admin creates a league with a sheet; bob joins it."""
    login(auth, "admin")
    r = client.post("/api/leagues", json={"leagueName": "Sunday Crew"})
    assert r.status_code == 200, r.text
    body = r.json()

    r = client.put(
        f"/api/leagues/{body['leagueId']}/settings",
        json={"googleSheetId": "https://docs.google.com/spreadsheets/d/sheet-abc/edit#gid=0"},
    )
    assert r.status_code == 200, r.text

    login(auth, "bob")
    r = client.post("/api/leagues/join", json={"leagueCode": body["leagueCode"]})
    assert r.status_code == 200, r.text

    login(auth, "admin")
    return {"id": body["leagueId"], "code": body["leagueCode"]}
