from uuid import UUID

from fastapi.testclient import TestClient

from hand_efficiency.main import app, repo


client = TestClient(app)


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_shanten_endpoint_accepts_notation():
    response = client.post("/api/v1/shanten", json={"hand": "1133m5577p2244s6z"})
    assert response.status_code == 200
    body = response.json()
    assert body["shanten"] == 0
    assert body["by_shape"]["chiitoi"] == 0
    assert body["by_shape"]["standard"] == 3
    assert len(body["hand"]) == 13


def test_shanten_endpoint_accepts_tile_list():
    hand = ["1m", "2m", "3m", "4m", "5m", "6m", "7m", "8m", "9m", "1p", "2p", "3p", "1s", "1s"]
    response = client.post("/api/v1/shanten", json={"hand": hand})
    assert response.status_code == 200
    assert response.json()["shanten"] == -1


def test_shanten_endpoint_rejects_invalid_tile():
    response = client.post("/api/v1/shanten", json={"hand": ["1m", "8z"]})
    assert response.status_code == 422
    assert "Invalid tile code: 8z" in response.text


def test_shanten_endpoint_rejects_five_copies():
    response = client.post("/api/v1/shanten", json={"hand": "11111m"})
    assert response.status_code == 422
    assert "5+ times" in response.text


def test_shanten_endpoint_rejects_oversized_hand():
    response = client.post("/api/v1/shanten", json={"hand": "123456789m123456p"})
    assert response.status_code == 422


def test_ukeire_endpoint_defaults_wall_to_unseen_tiles():
    response = client.post("/api/v1/ukeire", json={"hand": "45m123456p789s11z"})
    assert response.status_code == 200
    body = response.json()
    assert body["result"]["shanten"] == 0
    assert body["result"]["primary_acceptance"] == ["3m", "6m"]
    assert body["primary_count"] == 8


def test_ukeire_endpoint_uses_given_wall():
    wall = {"3m": 1, "6m": 0}
    response = client.post("/api/v1/ukeire", json={"hand": "45m123456p789s11z", "wall": wall})
    assert response.status_code == 200
    assert response.json()["primary_count"] == 1


def test_ukeire_endpoint_rejects_bad_wall():
    response = client.post("/api/v1/ukeire", json={"hand": "45m123456p789s11z", "wall": {"3m": 9}})
    assert response.status_code == 422


def test_partition_endpoint():
    ukeire = {"shanten": 0, "primary_acceptance": ["3m", "6m"], "secondary_acceptance": []}
    response = client.post("/api/v1/partition", json={"hand": "45m123456p789s11z", "ukeire": ukeire})
    assert response.status_code == 200
    blocks = response.json()["blocks"]
    assert [b["type"] for b in blocks] == ["RYANMEN", "COMPLEX", "MENTSU", "TOITSU"]
    assert blocks[0]["ukeire"]["primary"] == ["3m", "6m"]


def test_discards_endpoint_requires_fourteen_tiles():
    response = client.post("/api/v1/discards", json={"hand": "45m123456p789s11z"})
    assert response.status_code == 422
    assert "14 tiles" in response.text


def test_discards_endpoint_ranks_options():
    response = client.post("/api/v1/discards", json={"hand": "459m123456p789s11z"})
    assert response.status_code == 200
    body = response.json()
    assert body["shanten"] == 0
    assert body["options"][0]["tile"] == "9m"
    assert body["options"][0]["primary_count"] == 8


def test_session_lifecycle():
    created = client.post("/api/v1/sessions")
    assert created.status_code == 200
    session_id = created.json()["session_id"]
    assert created.json()["status"] == "idle"

    updated = client.put(f"/api/v1/sessions/{session_id}/state", json={"hand": "46m123456p789s11z"})
    assert updated.status_code == 200
    assert updated.json()["generation"] == 1

    session = repo.get(UUID(session_id))
    assert session.calculator.wait(timeout=60)

    body = client.get(f"/api/v1/sessions/{session_id}").json()
    assert body["status"] == "ready"
    assert body["result"]["ukeire"]["primary_acceptance"] == ["5m"]
    assert body["hand"][0] == "4m"


def test_session_discard_preview():
    session_id = client.post("/api/v1/sessions").json()["session_id"]
    client.put(f"/api/v1/sessions/{session_id}/state", json={"hand": "459m123456p789s11z"})
    assert repo.get(UUID(session_id)).calculator.wait(timeout=120)

    response = client.get(f"/api/v1/sessions/{session_id}/discards/2")
    assert response.status_code == 200
    assert response.json()["primary_acceptance"] == ["3m", "6m"]

    missing = client.get(f"/api/v1/sessions/{session_id}/discards/20")
    assert missing.status_code == 404


def test_session_short_hand_is_ready_immediately():
    session_id = client.post("/api/v1/sessions").json()["session_id"]
    response = client.put(f"/api/v1/sessions/{session_id}/state", json={"hand": "123m"})
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_unknown_session_is_404():
    missing = "00000000-0000-0000-0000-000000000000"
    assert client.get(f"/api/v1/sessions/{missing}").status_code == 404
    assert client.put(f"/api/v1/sessions/{missing}/state", json={"hand": "123m"}).status_code == 404
    assert client.delete(f"/api/v1/sessions/{missing}").status_code == 404


def test_delete_session():
    session_id = client.post("/api/v1/sessions").json()["session_id"]
    assert client.delete(f"/api/v1/sessions/{session_id}").status_code == 200
    assert client.get(f"/api/v1/sessions/{session_id}").status_code == 404


def test_partition_endpoint_rejects_invalid_acceptance_tile():
    ukeire = {"shanten": 0, "primary_acceptance": ["3x"], "secondary_acceptance": []}
    response = client.post("/api/v1/partition", json={"hand": "45m", "ukeire": ukeire})
    assert response.status_code == 422
    assert "Invalid tile code: 3x" in response.text


def test_ukeire_endpoint_rejects_fourteen_tiles():
    response = client.post("/api/v1/ukeire", json={"hand": "459m123456p789s11z"})
    assert response.status_code == 422
    assert "/api/v1/discards" in response.text


def test_notation_with_red_five_honor_is_rejected():
    response = client.post("/api/v1/shanten", json={"hand": "123m0z"})
    assert response.status_code == 422
