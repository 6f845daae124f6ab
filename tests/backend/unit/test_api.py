import pytest

fastapi = pytest.importorskip("fastapi")
pytest.importorskip("httpx")
from fastapi.testclient import TestClient

from clashtracker.backend.api import create_app
from clashtracker.backend.config import BackendSettings
from clashtracker.backend.engine import TrackerEngine
from clashtracker.backend.store import InMemoryTrackerStore

GM_HEADERS = {"X-GM-Token": "gm-secret"}


class _ScriptedRandom:
    def __init__(self, values: list[int]) -> None:
        self.values = list(values)

    def randint(self, a: int, b: int) -> int:
        return self.values.pop(0)


def _client(rolls: list[int] | None = None) -> TestClient:
    settings = BackendSettings(
        server_salt="test-salt",
        database_url=None,
        data_file=None,
        gm_token="gm-secret",
        clamp_resources=False,
        log_level="INFO",
        host="127.0.0.1",
        port=8000,
    )
    engine = TrackerEngine(InMemoryTrackerStore(), settings.server_salt, rng=_ScriptedRandom(rolls or []))
    return TestClient(create_app(engine=engine, settings=settings))


def _set_maxima(client: TestClient, player_id: str, character_name: str) -> None:
    response = client.put(
        f"/api/players/{player_id}/maxima",
        json={
            "display_name": f"{character_name.lower()}-user",
            "character_name": character_name,
            "hp": 20,
            "mp": 10,
            "ip": 5,
            "armor": 4,
            "barrier": 4,
        },
    )
    assert response.status_code == 200


def test_guide_lists_commands() -> None:
    response = _client().get("/api/guide")

    assert response.status_code == 200
    assert "rest" in response.json()["message"]


def test_view_player_creates_zeroed_record() -> None:
    response = _client().get("/api/players/p1", params={"name": "alice"})

    assert response.status_code == 200
    body = response.json()
    assert body["result"]["character_name"] == "alice"
    assert body["result"]["hp"] == {"current": 0, "max": 0}
    assert "alice" in body["message"]


def test_view_all_without_players_reports_empty() -> None:
    response = _client().get("/api/players")

    assert response.json()["result"] == []
    assert response.json()["message"] == "No player data available yet."


def test_resource_update_accepts_delta_and_sentinels() -> None:
    client = _client()
    _set_maxima(client, "p1", "Rowan")

    damage = client.post("/api/players/p1/resources/hp", json={"display_name": "rowan-user", "amount": -25})
    refill = client.post("/api/players/p1/resources/HP", json={"display_name": "rowan-user", "amount": "full"})

    assert damage.status_code == 200
    assert damage.json()["result"]["new_value"] == -5
    assert refill.json()["result"]["new_value"] == 20
    assert "Rowan" in refill.json()["message"]


def test_resource_update_rejects_bad_amount_and_kind() -> None:
    client = _client()

    bad_amount = client.post("/api/players/p1/resources/mp", json={"display_name": "alice", "amount": "abc"})
    bad_kind = client.post("/api/players/p1/resources/stamina", json={"display_name": "alice", "amount": 1})

    assert bad_amount.status_code == 422
    assert bad_amount.json()["kind"] == "invalid_input"
    assert "full" in bad_amount.json()["detail"]
    assert bad_kind.status_code == 422


def test_status_lifecycle_over_http() -> None:
    client = _client()
    _set_maxima(client, "p1", "Rowan")
    client.put("/api/players/p1/statuses", json={"display_name": "rowan-user", "name": "Bleed", "duration": 1})

    tick = client.post("/api/players/p1/tick", json={"display_name": "rowan-user"})
    again = client.post("/api/players/p1/tick", json={"display_name": "rowan-user"})
    missing = client.delete("/api/players/p1/statuses/Bleed", params={"display_name": "rowan-user"})

    assert tick.status_code == 200
    assert tick.json()["result"]["expired"] == [{"name": "Bleed", "duration": 0}]
    assert again.status_code == 404
    assert again.json()["kind"] == "not_found"
    assert missing.status_code == 404


def test_gm_commands_require_token() -> None:
    client = _client()

    forbidden = client.post("/api/encounter/start")
    wrong = client.post("/api/encounter/start", headers={"X-GM-Token": "nope"})
    allowed = client.post("/api/encounter/start", headers=GM_HEADERS)

    assert forbidden.status_code == 403
    assert forbidden.json()["kind"] == "unauthorized"
    assert wrong.status_code == 403
    assert allowed.status_code == 200


def test_encounter_roster_flow() -> None:
    client = _client()
    _set_maxima(client, "p1", "Rowan")
    _set_maxima(client, "p2", "Bram")

    inactive = client.get("/api/encounter")
    client.post("/api/encounter/start", headers=GM_HEADERS)
    again = client.post("/api/encounter/start", headers=GM_HEADERS)
    added = client.post("/api/encounter/combatants", json={"player_ids": ["p1", "p2", "p1", "ghost"]})
    roster = client.get("/api/encounter")
    ended = client.post("/api/encounter/end", headers=GM_HEADERS)

    assert inactive.status_code == 409
    assert again.status_code == 409
    assert added.json()["result"]["changed"] == ["p1", "p2"]
    assert added.json()["result"]["duplicates"] == ["p1"]
    assert added.json()["result"]["missing"] == ["ghost"]
    assert [record["player_id"] for record in roster.json()["result"]] == ["p1", "p2"]
    assert ended.json()["result"] == {"active": False, "combatants": 2}


def test_attack_prompts_then_resumes_for_attacker_only() -> None:
    client = _client(rolls=[4, 4, 5, 6])
    actor = {"actor_id": "p1", "actor_name": "Rowan"}

    first = client.post("/api/rolls/attack", json={**actor, "die1": 6, "die2": 6, "modifier": 3})
    second = client.post("/api/rolls/attack", json={**actor, "die1": 6, "die2": 8, "modifier": 3})
    token = second.json()["result"]["token"]
    stranger = client.post(
        "/api/rolls/attack/resume",
        json={"actor_id": "p2", "actor_name": "Bram", "token": token, "penalty": "gate"},
    )
    resumed = client.post("/api/rolls/attack/resume", json={**actor, "token": token, "penalty": "gate"})
    replay = client.post("/api/rolls/attack/resume", json={**actor, "token": token, "penalty": "gate"})

    assert first.json()["result"]["status"] == "resolved"
    assert first.json()["result"]["outcome"]["damage"] == 7
    assert second.json()["result"]["status"] == "pending"
    assert second.json()["result"]["options"] == ["gate", "damage50", "damage100", "blind"]
    assert stranger.status_code == 403
    assert resumed.status_code == 200
    assert resumed.json()["result"]["outcome"]["gate"] == 2
    assert resumed.json()["result"]["outcome"]["classification"] == "hit"
    assert replay.status_code == 404


def test_cast_resolves_every_attempt() -> None:
    client = _client(rolls=[2, 2, 2, 2])
    payload = {"actor_id": "p1", "actor_name": "Rowan", "die1": 6, "die2": 6, "modifier": 1}

    responses = [client.post("/api/rolls/cast", json=payload) for _ in range(2)]

    assert [response.json()["result"]["status"] for response in responses] == ["resolved", "resolved"]
    assert [response.json()["result"]["attempt"] for response in responses] == [1, 2]


def test_check_and_invalid_dice() -> None:
    client = _client(rolls=[1, 1])

    fumble = client.post("/api/rolls/check", json={"die1": 6, "die2": 6, "gate": 2})
    invalid = client.post("/api/rolls/check", json={"die1": 0, "die2": 6, "gate": 2})

    assert fumble.json()["result"]["classification"] == "fumble"
    assert fumble.json()["result"]["damage"] is None
    assert invalid.status_code == 422


def test_next_round_resets_attack_prompting() -> None:
    client = _client(rolls=[3, 3, 3, 3])
    payload = {"actor_id": "p1", "actor_name": "Rowan", "die1": 6, "die2": 6}
    client.post("/api/rolls/attack", json=payload)

    player_denied = client.post("/api/rounds/next")
    reset = client.post("/api/rounds/next", headers=GM_HEADERS)
    after = client.post("/api/rolls/attack", json=payload)

    assert player_denied.status_code == 403
    assert reset.status_code == 200
    assert after.json()["result"]["status"] == "resolved"
    assert after.json()["result"]["attempt"] == 1


def test_reset_penalty_and_player_deletion_are_gm_only() -> None:
    client = _client()
    _set_maxima(client, "p1", "Rowan")

    denied = client.delete("/api/players/p1")
    deleted = client.delete("/api/players/p1", headers=GM_HEADERS)
    missing = client.delete("/api/players/p1", headers=GM_HEADERS)
    penalty = client.post("/api/penalties/p1/reset", json={"kind": "cast"}, headers=GM_HEADERS)

    assert denied.status_code == 403
    assert deleted.status_code == 200
    assert missing.status_code == 404
    assert penalty.json()["result"] == {"player_id": "p1", "kind": "cast"}
