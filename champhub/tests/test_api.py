"""
API integration tests.
Uses TestClient to avoid starting a server.
Requires: pip install httpx (for TestClient)
"""
from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

try:
    from fastapi.testclient import TestClient
    HAS_HTTPX = True
except (ImportError, RuntimeError):
    HAS_HTTPX = False

# Ensure project root on path
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

pytestmark = pytest.mark.skipif(not HAS_HTTPX, reason="httpx required for TestClient")

from champhub.api import app
from champhub.persistence.db import set_db_path, init_db


@pytest.fixture(autouse=True)
def isolated_db(tmp_path):
    """Use a temporary DB for each test."""
    db_path = tmp_path / "test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    yield db_path


@pytest.fixture
def client():
    return TestClient(app)


def _signup(client, email="org@example.com", plan="Pro"):
    resp = client.post("/signup", json={"email": email, "password": "secret1", "name": "Org", "plan": plan})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def auth(client):
    return _signup(client)


def _create_championship(client, auth, name="Copa Verão", **extra):
    resp = client.post("/championships", json={"name": name, **extra}, headers=auth)
    assert resp.status_code == 200, resp.text
    return resp.json()


def _add_teams(client, auth, cid, names):
    ids = []
    for n in names:
        resp = client.post(f"/championships/{cid}/teams", json={"name": n}, headers=auth)
        assert resp.status_code == 200, resp.text
        ids.append(resp.json()["id"])
    return ids


def _schedule(client, auth, cid, legs=1):
    resp = client.post(f"/championships/{cid}/schedule/proposal", json={"legs": legs}, headers=auth)
    assert resp.status_code == 200, resp.text
    fp = resp.json()["fingerprint"]
    resp = client.put(f"/championships/{cid}/schedule", json={"fingerprint": fp, "legs": legs}, headers=auth)
    assert resp.status_code == 200, resp.text
    return resp.json()["matches"]


# ---------- Site & auth ----------


def test_site_landing_and_plans(client):
    with patch("champhub.api.config.MAINTENANCE_MODE", False):
        resp = client.get("/site")
    assert resp.status_code == 200
    data = resp.json()
    assert data["mode"] == "landing"
    assert [p["name"] for p in data["plans"]] == ["Starter", "Pro", "Elite"]


def test_site_maintenance_mode(client):
    with patch("champhub.api.config.MAINTENANCE_MODE", True):
        resp = client.get("/site")
    assert resp.json()["mode"] == "construction"


def test_plans_limits(client):
    plans = {p["name"]: p for p in client.get("/plans").json()["plans"]}
    assert plans["Starter"]["max_teams_per_championship"] == 8
    assert plans["Elite"]["max_active_championships"] is None


def test_signup_login_me(client):
    _signup(client, email="Ana@Example.com")
    resp = client.post("/login", json={"email": "ana@example.com", "password": "secret1"})
    assert resp.status_code == 200
    token = resp.json()["token"]
    me = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "ana@example.com"
    assert "password_hash" not in me.json()


def test_signup_duplicate_email(client):
    _signup(client)
    resp = client.post("/signup", json={"email": "org@example.com", "password": "secret1"})
    assert resp.status_code == 400


def test_signup_short_password(client):
    resp = client.post("/signup", json={"email": "a@b.com", "password": "123"})
    assert resp.status_code == 422


def test_login_wrong_password(client):
    _signup(client)
    resp = client.post("/login", json={"email": "org@example.com", "password": "nope"})
    assert resp.status_code == 401


def test_championships_require_login(client):
    assert client.get("/championships").status_code == 401
    bad = client.get("/championships", headers={"Authorization": "Bearer garbage"})
    assert bad.status_code == 401


# ---------- Championships & teams ----------


def test_create_and_list_championships(client, auth):
    champ = _create_championship(
        client, auth, location="Recife",
        config={"points_win": 2, "show_stats_publicly": False, "prizes": {"first": "Troféu"}},
    )
    assert champ["config"]["points_win"] == 2
    assert champ["config"]["prizes"]["first"] == "Troféu"
    assert champ["active"] is True
    listed = client.get("/championships", headers=auth).json()["championships"]
    assert [c["id"] for c in listed] == [champ["id"]]


def test_update_championship(client, auth):
    champ = _create_championship(client, auth)
    resp = client.put(f"/championships/{champ['id']}", json={"description": "Torneio de bairro"}, headers=auth)
    assert resp.status_code == 200
    assert resp.json()["description"] == "Torneio de bairro"
    assert resp.json()["name"] == "Copa Verão"


def test_other_organizer_forbidden(client, auth):
    champ = _create_championship(client, auth)
    other = _signup(client, email="other@example.com")
    assert client.get(f"/championships/{champ['id']}", headers=other).status_code == 403
    resp = client.post(f"/championships/{champ['id']}/teams", json={"name": "X"}, headers=other)
    assert resp.status_code == 403


def test_delete_championship_needs_name(client, auth):
    champ = _create_championship(client, auth)
    resp = client.delete(f"/championships/{champ['id']}", params={"confirm_name": "wrong"}, headers=auth)
    assert resp.status_code == 400
    resp = client.delete(f"/championships/{champ['id']}", params={"confirm_name": "Copa Verão"}, headers=auth)
    assert resp.status_code == 200
    assert client.get(f"/championships/{champ['id']}", headers=auth).status_code == 404


def test_duplicate_team_conflict(client, auth):
    champ = _create_championship(client, auth)
    _add_teams(client, auth, champ["id"], ["Leões"])
    resp = client.post(f"/championships/{champ['id']}/teams", json={"name": " leões"}, headers=auth)
    assert resp.status_code == 409


def test_starter_team_limit(client):
    auth = _signup(client, email="free@example.com", plan="Starter")
    champ = _create_championship(client, auth)
    _add_teams(client, auth, champ["id"], [f"T{i}" for i in range(8)])
    resp = client.post(f"/championships/{champ['id']}/teams", json={"name": "T9"}, headers=auth)
    assert resp.status_code == 400


def test_reopening_championship_over_plan_limit(client):
    auth = _signup(client, email="free2@example.com", plan="Starter")
    old = _create_championship(client, auth, name="Old", end_date="2020-01-31")
    _create_championship(client, auth, name="New")
    resp = client.put(f"/championships/{old['id']}", json={"end_date": None}, headers=auth)
    assert resp.status_code == 400
    listed = client.get("/championships", headers=auth).json()["championships"]
    assert sum(1 for c in listed if c["active"]) == 1


def test_athletes_and_sponsors(client, auth):
    champ = _create_championship(client, auth)
    (tid,) = _add_teams(client, auth, champ["id"], ["A"])
    resp = client.post(f"/teams/{tid}/athletes", json={"name": "Ana", "shirt_number": 10}, headers=auth)
    assert resp.status_code == 200
    aid = resp.json()["id"]
    resp = client.put(f"/athletes/{aid}", json={"position": "Meia"}, headers=auth)
    assert resp.json()["position"] == "Meia"
    assert resp.json()["shirt_number"] == 10
    assert client.post(f"/teams/{tid}/athletes", json={"name": "X", "shirt_number": 1000}, headers=auth).status_code == 422

    resp = client.post(f"/teams/{tid}/sponsors", json={"name": "Mercado"}, headers=auth)
    sid = resp.json()["id"]
    assert [s["name"] for s in client.get(f"/teams/{tid}/sponsors").json()["sponsors"]] == ["Mercado"]
    assert client.delete(f"/sponsors/{sid}", headers=auth).status_code == 200
    assert client.delete(f"/athletes/{aid}", headers=auth).status_code == 200
    assert client.get(f"/teams/{tid}/athletes", headers=auth).json()["athletes"] == []


# ---------- Schedule ----------


def test_proposal_needs_two_teams(client, auth):
    champ = _create_championship(client, auth)
    _add_teams(client, auth, champ["id"], ["Solo"])
    resp = client.post(f"/championships/{champ['id']}/schedule/proposal", json={"legs": 1}, headers=auth)
    assert resp.status_code == 400
    assert "two teams" in resp.json()["detail"]


def test_proposal_preview_then_confirm(client, auth):
    champ = _create_championship(client, auth)
    _add_teams(client, auth, champ["id"], ["A", "B", "C"])
    resp = client.post(f"/championships/{champ['id']}/schedule/proposal", json={"legs": 1}, headers=auth)
    data = resp.json()
    assert data["rounds"] == 3
    assert len(data["fixtures"]) == 3
    assert [r["team_name"] for r in data["resting"]] == ["C", "A", "B"]
    assert data["destructive"] is False
    assert data["fixtures"][0]["home_team_name"] == "A"
    assert client.get(f"/championships/{champ['id']}/matches", headers=auth).json()["matches"] == []

    resp = client.put(
        f"/championships/{champ['id']}/schedule",
        json={"fingerprint": data["fingerprint"], "legs": 1},
        headers=auth,
    )
    assert resp.status_code == 200
    assert len(resp.json()["matches"]) == 3


def test_stale_proposal_conflict(client, auth):
    champ = _create_championship(client, auth)
    _add_teams(client, auth, champ["id"], ["A", "B"])
    fp = client.post(
        f"/championships/{champ['id']}/schedule/proposal", json={"legs": 1}, headers=auth
    ).json()["fingerprint"]
    _add_teams(client, auth, champ["id"], ["C"])
    resp = client.put(f"/championships/{champ['id']}/schedule", json={"fingerprint": fp}, headers=auth)
    assert resp.status_code == 409


def test_team_removal_blocked_then_allowed(client, auth):
    champ = _create_championship(client, auth)
    a, _ = _add_teams(client, auth, champ["id"], ["A", "B"])
    _schedule(client, auth, champ["id"])
    assert client.delete(f"/teams/{a}", headers=auth).status_code == 409
    resp = client.delete(f"/championships/{champ['id']}/schedule", headers=auth)
    assert resp.json()["removed"] == 1
    assert client.delete(f"/teams/{a}", headers=auth).status_code == 200


def test_results_and_standings(client, auth):
    champ = _create_championship(client, auth)
    _add_teams(client, auth, champ["id"], ["A", "B", "C", "D"])
    matches = _schedule(client, auth, champ["id"], legs=2)
    assert len(matches) == 12
    first = matches[0]
    resp = client.put(f"/matches/{first['id']}/result", json={"home_score": 2, "away_score": 1}, headers=auth)
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    assert client.put(
        f"/matches/{first['id']}/result", json={"home_score": -1, "away_score": 0}, headers=auth
    ).status_code == 422

    table = client.get(f"/championships/{champ['id']}/standings", headers=auth).json()["standings"]
    assert table[0]["team_id"] == first["home_team_id"]
    assert table[0]["points"] == 3

    resp = client.delete(f"/matches/{first['id']}/result", headers=auth)
    assert resp.json()["status"] == "scheduled"
    assert resp.json()["home_score"] is None


# ---------- Public ----------


def test_public_page(client, auth):
    champ = _create_championship(client, auth)
    _add_teams(client, auth, champ["id"], ["A", "B"])
    _schedule(client, auth, champ["id"])
    resp = client.get(f"/public/championships/{champ['id']}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Copa Verão"
    assert len(data["standings"]) == 2
    assert data["rounds"][0]["round"] == 1


def test_public_page_hides_stats(client, auth):
    champ = _create_championship(client, auth, config={"show_stats_publicly": False})
    data = client.get(f"/public/championships/{champ['id']}").json()
    assert "standings" not in data


def test_public_page_unknown(client):
    assert client.get("/public/championships/nope").status_code == 404
