"""
Integration tests for the ArcadeBoard HTTP API.
"""
import pytest

from arcadeboard.config import get_settings
from arcadeboard.models import Player, Run


def submit(client, **body):
    payload = {"playerId": "p1", "score": 10, "time": 0, "level": 1}
    payload.update(body)
    return client.post("/api/runs", json=payload)


# ============================================================================
# Root and health
# ============================================================================

def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "ArcadeBoard" in response.json()["message"]


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["database"] == "ok"
    assert data["cache"] == "disabled"
    assert data["status"] == "healthy"


def test_unknown_route_uses_error_shape(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json()["ok"] is False
    assert "error" in response.json()


# ============================================================================
# Run submission
# ============================================================================

def test_submit_run_success(client):
    response = submit(client, name="Ana", score=50, time=12.5, level=3, game="snake")
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True

    player = data["player"]
    assert player["playerId"] == "p1"
    assert player["name"] == "Ana"
    assert player["bestScore"] == 50
    assert player["bestTime"] == 12.5
    assert player["lastLevel"] == 3
    assert player["bestScores"] == {"disparando": 0, "snake": 50, "crush": 0}
    assert "updatedAt" in player


def test_submit_run_documented_example(client):
    submit(client, score=50, time=0, level=2, game="snake")
    response = submit(client, score=30, time=12, level=3, game="snake")

    player = response.json()["player"]
    assert player["bestScore"] == 50
    assert player["bestTime"] == 12
    assert player["lastLevel"] == 3


def test_submit_run_accepts_numeric_strings(client):
    response = submit(client, score="42", time="7.5", level="2")
    assert response.status_code == 200
    assert response.json()["player"]["bestScore"] == 42


@pytest.mark.parametrize("field, value", [
    ("score", "abc"),
    ("time", "soon"),
    ("level", None),
    ("score", "Infinity"),
])
def test_submit_run_rejects_non_numeric(client, test_db, field, value):
    response = submit(client, **{field: value})
    assert response.status_code == 400
    data = response.json()
    assert data["ok"] is False
    assert data["error"] == "Invalid input"
    assert any(err["field"] == field for err in data["detail"])
    assert test_db.query(Run).count() == 0


def test_submit_run_missing_fields(client, test_db):
    response = client.post("/api/runs", json={"playerId": "p1", "score": 1})
    assert response.status_code == 400

    response = client.post("/api/runs", json={"score": 1, "time": 0, "level": 1})
    assert response.status_code == 400
    assert test_db.query(Run).count() == 0


def test_submit_run_blank_player_id(client):
    response = submit(client, playerId="   ")
    assert response.status_code == 400


def test_submit_run_accepts_long_display_name(client, test_db):
    long_name = "A" * 300
    response = submit(client, name=long_name)

    assert response.status_code == 200
    assert response.json()["player"]["name"] == long_name
    assert test_db.query(Run).one().name == long_name


def test_submit_run_rejects_player_id_too_long_to_store(client, test_db):
    response = submit(client, playerId="p" * 101)

    assert response.status_code == 400
    assert any(err["field"] == "playerId" for err in response.json()["detail"])
    assert test_db.query(Run).count() == 0


def test_submit_run_invalid_json(client):
    response = client.post(
        "/api/runs", content="{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


@pytest.mark.parametrize("game, stored", [
    ("SNAKE", "snake"),
    (" Crush ", "crush"),
    ("tetris", "disparando"),
    (None, "disparando"),
    (7, "disparando"),
])
def test_submit_run_normalizes_game(client, test_db, game, stored):
    response = submit(client, game=game)
    assert response.status_code == 200
    assert test_db.query(Run).one().game == stored


def test_submit_run_without_game_uses_default(client, test_db):
    response = client.post("/api/runs", json={"playerId": "p1", "score": 3, "time": 0, "level": 1})
    assert response.status_code == 200
    assert test_db.query(Run).one().game == "disparando"


def test_resubmitting_duplicates_history(client, test_db):
    submit(client, score=5)
    submit(client, score=5)
    assert test_db.query(Run).count() == 2
    assert test_db.query(Player).count() == 1


def test_submit_run_storage_failure_is_generic(client, test_db, monkeypatch):
    def broken(db, submission):
        raise RuntimeError("connection to 10.0.0.5 refused")

    monkeypatch.setattr("arcadeboard.api.runs.submit_run", broken)
    response = submit(client)

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "Server error"}
    assert "10.0.0.5" not in response.text


def test_submit_run_requires_token_when_enabled(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "runs_require_auth", True)

    response = submit(client)
    assert response.status_code == 401

    client.post("/api/register", json={"username": "ana", "password": "pw123"})
    token = client.post("/api/login", json={"username": "ana", "password": "pw123"}).json()["token"]

    response = client.post(
        "/api/runs",
        json={"playerId": "p1", "score": 1, "time": 0, "level": 1},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200


# ============================================================================
# Leaderboard
# ============================================================================

def test_leaderboard_empty(client):
    response = client.get("/api/leaderboard")
    assert response.status_code == 200
    data = response.json()
    assert data == {"ok": True, "leaderboard": [], "scope": "global"}


def test_leaderboard_global(client):
    submit(client, playerId="a", name="A", score=100, time=30)
    submit(client, playerId="b", name="B", score=100, time=0)
    submit(client, playerId="c", name="C", score=100, time=10)
    submit(client, playerId="d", name="D", score=200, time=50)

    data = client.get("/api/leaderboard").json()

    assert data["scope"] == "global"
    assert "game" not in data
    rows = data["leaderboard"]
    assert [r["playerId"] for r in rows] == ["d", "c", "a", "b"]
    assert set(rows[0]) == {"rank", "playerId", "name", "bestScore", "bestTime", "updatedAt"}


def test_leaderboard_by_game(client):
    submit(client, playerId="a", score=90, time=60, game="snake")
    submit(client, playerId="a", score=10, time=4, game="snake")
    submit(client, playerId="b", score=95, time=70, game="crush")
    submit(client, playerId="c", score=50, time=20, game="snake")

    data = client.get("/api/leaderboard?game=Snake").json()

    assert data["scope"] == "by-game"
    assert data["game"] == "snake"
    rows = data["leaderboard"]
    assert [(r["playerId"], r["bestScore"], r["bestTime"]) for r in rows] == [
        ("a", 90, 60),
        ("c", 50, 20),
    ]
    assert all(r["game"] == "snake" for r in rows)


def test_leaderboard_unknown_game_falls_back_to_global(client):
    submit(client, score=5)
    data = client.get("/api/leaderboard?game=tetris").json()
    assert data["scope"] == "global"


@pytest.mark.parametrize("query, expected", [
    ("", 10),
    ("?limit=abc", 10),
    ("?limit=0", 1),
    ("?limit=3", 3),
    ("?limit=1000", 12),
])
def test_leaderboard_limit_is_clamped(client, test_db, query, expected):
    for i in range(12):
        submit(client, playerId=f"p{i}", score=i)

    response = client.get(f"/api/leaderboard{query}")

    assert response.status_code == 200
    assert len(response.json()["leaderboard"]) == expected


def test_leaderboard_failure_is_generic(client, monkeypatch):
    def broken(db, limit):
        raise RuntimeError("relation players does not exist")

    monkeypatch.setattr("arcadeboard.api.leaderboard.global_leaderboard", broken)
    response = client.get("/api/leaderboard")

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "Server error"}


# ============================================================================
# Player summary
# ============================================================================

def test_get_player(client):
    submit(client, name="Ana", score=20, time=9, level=4, game="crush")

    response = client.get("/api/player/p1")

    assert response.status_code == 200
    player = response.json()["player"]
    assert player["bestScore"] == 20
    assert player["bestScores"]["crush"] == 20
    assert player["bestTime"] == 9
    assert player["lastLevel"] == 4


def test_get_player_not_found(client):
    response = client.get("/api/player/nobody")
    assert response.status_code == 404
    assert response.json() == {"ok": False, "error": "Player not found"}


# ============================================================================
# CORS and headers
# ============================================================================

def test_cors_preflight_from_allowed_origin(client):
    response = client.options(
        "/api/runs",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


def test_responses_vary_on_origin_and_carry_request_id(client):
    response = client.get("/api/leaderboard", headers={"X-Request-ID": "abc123"})
    assert "origin" in response.headers["vary"].lower()
    assert response.headers["x-request-id"] == "abc123"
