import pytest

from api.app.models import Bet, League, Matchup, ResultLog
from api.app.services import matchups as matchup_svc
from api.app.services import sheet_rows as sr
from api.app.services import sheets
from conftest import login

WEEK_1 = [
    {"week": 1, "team1": "Bears", "team1_record": "0-0", "team2": "Lions", "team2_record": "0-0"},
    {"week": 1, "team1": "Packers", "team2": "Vikings"},
]
WEEK_2 = [
    {"week": 2, "team1": "Bears", "team1_record": "1-0", "team2": "Packers", "team2_record": "0-1"},
]


@pytest.fixture
def week1(client, auth, league):
    login(auth, "admin")
    r = client.post(f"/api/leagues/{league['id']}/matchups", json={"matchups": WEEK_1})
    assert r.status_code == 200, r.text
    return league


def _submit(client, league_id, user_name, picks):
    return client.post(f"/api/leagues/{league_id}/picks", json={"user_name": user_name, "picks": picks})


def _mark(client, league_id, matchup_id, team):
    return client.post(
        f"/api/leagues/{league_id}/results",
        json={"matchup_id": matchup_id, "winning_team": team},
    )


def test_add_matchups_assigns_positional_ids(client, auth, week1, mirror):
    r = client.post(f"/api/leagues/{week1['id']}/matchups", json={"matchups": WEEK_2})
    assert r.json()["matchupIds"] == ["matchup-2-2"]

    appended = [c for c in mirror.calls if c[0] == "append_matchups"]
    assert [row.matchup_id for row in appended[0][2]] == ["matchup-1-0", "matchup-1-1"]
    assert appended[0][1] == "sheet-abc"


def test_add_matchups_admin_only(client, auth, league):
    login(auth, "bob")
    r = client.post(f"/api/leagues/{league['id']}/matchups", json={"matchups": WEEK_1})
    assert r.status_code == 403


def test_matchups_endpoint_returns_current_week(client, auth, week1):
    client.post(f"/api/leagues/{week1['id']}/matchups", json={"matchups": WEEK_2})

    login(auth, "bob")
    body = client.get(f"/api/leagues/{week1['id']}/matchups").json()
    assert body["currentWeek"] == 2
    assert body["allWeeks"] == [1, 2]
    assert body["totalMatchups"] == 1
    assert body["matchups"][0]["id"] == "matchup-2-2"
    assert body["matchups"][0]["team1_record"] == "1-0"


def test_no_matchups_is_404(client, league):
    r = client.get(f"/api/leagues/{league['id']}/matchups")
    assert r.status_code == 404
    assert r.json()["error"] == "No matchups found"


def test_submit_picks(client, auth, week1, mirror, db_session):
    login(auth, "bob")
    r = _submit(client, week1["id"], "Bob", {"matchup-1-0": "lions", "matchup-1-1": "Packers"})
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "Bets submitted successfully", "betsSubmitted": 2, "currentWeek": 1}

    bets = db_session.query(Bet).filter_by(user_id="u-bob").order_by(Bet.matchup_key).all()
    assert [(b.matchup_key, b.selected_team) for b in bets] == [("matchup-1-0", "Lions"), ("matchup-1-1", "Packers")]

    mirrored = [c for c in mirror.calls if c[0] == "append_bets"][0]
    assert [row.user_name for row in mirrored[2]] == ["Bob", "Bob"]

    mine = client.get(f"/api/leagues/{week1['id']}/picks/me").json()
    assert mine["total"] == 2


def test_picks_for_previous_week_are_rejected(client, auth, week1):
    client.post(f"/api/leagues/{week1['id']}/matchups", json={"matchups": WEEK_2})

    login(auth, "bob")
    r = _submit(client, week1["id"], "Bob", {"matchup-1-0": "Bears", "matchup-2-2": "Bears"})
    assert r.status_code == 400
    body = r.json()
    assert body["invalidMatchups"] == ["matchup-1-0"]
    assert body["currentWeek"] == 2
    assert body["availableMatchups"] == ["matchup-2-2"]


@pytest.mark.parametrize("user_name, picks", [
    ("  ", {"matchup-1-0": "Bears"}),
    ("Bob", {}),
    ("Bob", {"matchup-1-0": "Cowboys"}),
])
def test_bad_pick_submissions(client, auth, week1, user_name, picks):
    login(auth, "bob")
    assert _submit(client, week1["id"], user_name, picks).status_code == 400


def test_one_pick_per_matchup(client, auth, week1):
    login(auth, "bob")
    assert _submit(client, week1["id"], "Bob", {"matchup-1-0": "Bears"}).status_code == 200
    r = _submit(client, week1["id"], "Bob", {"matchup-1-0": "Lions"})
    assert r.status_code == 400
    assert r.json()["duplicateMatchups"] == ["matchup-1-0"]


def test_non_member_cannot_pick(client, auth, week1):
    login(auth, "cara")
    assert _submit(client, week1["id"], "Cara", {"matchup-1-0": "Bears"}).status_code == 403


def test_mark_winner_and_leaderboard(client, auth, week1, mirror, db_session):
    assert _submit(client, week1["id"], "Admin", {"matchup-1-0": "Bears", "matchup-1-1": "Packers"}).status_code == 200
    login(auth, "bob")
    assert _submit(client, week1["id"], "Bob", {"matchup-1-0": "Bears"}).status_code == 200

    login(auth, "admin")
    r = _mark(client, week1["id"], "matchup-1-0", "bears")
    assert r.status_code == 200, r.text
    body = r.json()
    assert (body["winningTeam"], body["correctPicks"], body["incorrectPicks"], body["totalPicks"]) == ("Bears", 2, 0, 2)

    r = _mark(client, week1["id"], "matchup-1-1", "Vikings")
    assert r.json()["incorrectPicks"] == 1

    login(auth, "bob")
    board = client.get(f"/api/leagues/{week1['id']}/leaderboard").json()
    assert board["totalUsers"] == 2
    rows = [(e["user_name"], e["wins"], e["losses"], e["points"], e["rank"]) for e in board["leaderboard"]]
    assert rows == [("Bob", 1, 0, 100, 1), ("Coach Admin", 1, 1, 50, 2)]

    assert db_session.query(ResultLog).count() == 2
    assert db_session.query(Matchup).filter_by(matchup_key="matchup-1-0").one().winner == "Bears"

    written = [c for c in mirror.calls if c[0] == "write_leaderboard"]
    assert [r.user_name for r in written[-1][2]] == ["Bob", "Coach Admin"]
    results = [c for c in mirror.calls if c[0] == "append_result"]
    assert [r[2].matchup_id for r in results] == ["matchup-1-0", "matchup-1-1"]


def test_marking_twice_does_not_double_count(client, auth, week1):
    _submit(client, week1["id"], "Admin", {"matchup-1-0": "Bears"})
    _mark(client, week1["id"], "matchup-1-0", "Bears")
    first = client.get(f"/api/leagues/{week1['id']}/leaderboard").json()

    _mark(client, week1["id"], "matchup-1-0", "Bears")
    second = client.get(f"/api/leagues/{week1['id']}/leaderboard").json()

    assert first == second
    assert second["leaderboard"][0]["total_picks"] == 1


def test_re_marking_a_different_winner_replaces_the_result(client, auth, week1):
    _submit(client, week1["id"], "Admin", {"matchup-1-0": "Bears"})
    _mark(client, week1["id"], "matchup-1-0", "Lions")
    _mark(client, week1["id"], "matchup-1-0", "Bears")

    row = client.get(f"/api/leagues/{week1['id']}/leaderboard").json()["leaderboard"][0]
    assert (row["wins"], row["losses"]) == (1, 0)


def test_picks_locked_after_winner(client, auth, week1):
    _mark(client, week1["id"], "matchup-1-0", "Bears")
    login(auth, "bob")
    r = _submit(client, week1["id"], "Bob", {"matchup-1-0": "Bears"})
    assert r.status_code == 400
    assert "locked" in r.json()["error"]


def test_mark_winner_validation(client, auth, week1):
    assert _mark(client, week1["id"], "matchup-9-9", "Bears").status_code == 404
    assert _mark(client, week1["id"], "matchup-1-0", "Cowboys").status_code == 400

    login(auth, "bob")
    assert _mark(client, week1["id"], "matchup-1-0", "Bears").status_code == 403


def test_stats_count_matchups_and_bets(client, auth, week1):
    _submit(client, week1["id"], "Admin", {"matchup-1-0": "Bears"})
    _mark(client, week1["id"], "matchup-1-0", "Bears")
    stats = client.get(f"/api/leagues/{week1['id']}/stats").json()["stats"]
    assert stats["betCount"] == 1
    assert stats["matchupCount"] == 2
    assert stats["completedMatchups"] == 1
    assert stats["activeMatchups"] == 1


def test_matchup_description(client):
    r = client.post("/api/matchups/description", json={
        "team1": "Bears", "team1_record": "0-0", "team2": "Lions", "team2_record": "0-0",
    })
    assert r.status_code == 200
    assert r.json()["description"]


def test_sync_matchups_from_sheet(client, auth, week1, monkeypatch, db_session):
    sheet = [
        sr.HEADERS[sr.MATCHUPS],
        ["1", "Bears", "1-0", "Lions", "0-1"],
        ["1", "Packers", "0-0", "Vikings", "0-0"],
        ["two", "Bears", "0-0", "Packers", "0-0"],
        ["2", "Lions", "0-1", "Vikings", "0-0"],
    ]
    monkeypatch.setattr(sheets, "read_matchups", lambda sheet_id: sr.decode_rows(sheet, sr.decode_matchup))

    r = client.post(f"/api/leagues/{week1['id']}/matchups/sync")
    assert r.status_code == 200, r.text
    body = r.json()
    assert (body["created"], body["updated"]) == (1, 1)
    assert body["skipped"] == [{"row": 4, "reason": "week is not a number: 'two'"}]
    assert db_session.query(Matchup).filter_by(matchup_key="matchup-2-3").one().team1 == "Lions"


def test_sync_requires_a_sheet(client, auth, league, db_session):
    db_session.get(League, league["id"]).sheet_id = None
    db_session.commit()
    r = client.post(f"/api/leagues/{league['id']}/matchups/sync")
    assert r.status_code == 404


def test_add_after_gapped_sync_continues_past_highest_id(client, auth, league, monkeypatch, db_session):
    sheet = [
        sr.HEADERS[sr.MATCHUPS],
        ["1", "Bears", "0-0", "Lions", "0-0"],
        ["two", "Packers", "0-0", "Vikings", "0-0"],
        ["1", "Lions", "0-0", "Vikings", "0-0"],
    ]
    monkeypatch.setattr(sheets, "read_matchups", lambda sheet_id: sr.decode_rows(sheet, sr.decode_matchup))
    assert client.post(f"/api/leagues/{league['id']}/matchups/sync").json()["created"] == 2

    r = client.post(f"/api/leagues/{league['id']}/matchups", json={"matchups": WEEK_1[:1]})
    assert r.status_code == 200, r.text
    assert r.json()["matchupIds"] == ["matchup-1-3"]
    keys = sorted(k for (k,) in db_session.query(Matchup.matchup_key))
    assert keys == ["matchup-1-0", "matchup-1-2", "matchup-1-3"]


def test_colliding_matchup_id_is_a_400(client, auth, week1, monkeypatch):
    monkeypatch.setattr(matchup_svc, "next_matchup_index", lambda db, league_id: 0)
    r = client.post(f"/api/leagues/{week1['id']}/matchups", json={"matchups": WEEK_1[:1]})
    assert r.status_code == 400
    assert "already in use" in r.json()["error"]

    assert client.get(f"/api/leagues/{week1['id']}/matchups").json()["totalMatchups"] == 2


def test_picks_are_stored_under_the_callers_profile_name(client, auth, week1, db_session):
    assert _submit(client, week1["id"], "Coach Admin", {"matchup-1-0": "Bears"}).status_code == 200
    login(auth, "bob")
    assert _submit(client, week1["id"], "Coach Admin", {"matchup-1-0": "Lions"}).status_code == 200

    names = {b.user_id: b.user_name for b in db_session.query(Bet)}
    assert names == {"u-admin": "Coach Admin", "u-bob": "Bob"}

    login(auth, "admin")
    _mark(client, week1["id"], "matchup-1-0", "Bears")
    board = client.get(f"/api/leagues/{week1['id']}/leaderboard").json()
    rows = [(e["user_name"], e["wins"], e["losses"]) for e in board["leaderboard"]]
    assert rows == [("Coach Admin", 1, 0), ("Bob", 0, 1)]
