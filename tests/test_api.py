import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from ludostar.api import create_app
from ludostar.config import Settings
from ludostar.persistence import PlayerStore


@pytest.fixture
async def client(tmp_path):
    db_path = tmp_path / "players.sqlite"
    store = PlayerStore.open(db_path, pool_size=4)
    app = create_app(Settings(db_path=str(db_path), pool_size=4), store=store)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        async_client.app = app
        yield async_client
    store.close()


async def _seed(client: AsyncClient, count: int) -> None:
    for index in range(1, count + 1):
        resp = await client.post(
            "/api/player",
            json={"player_id": f"p{index}", "name": f"Player {index}", "uid": f"u{index}"},
        )
        assert resp.status_code == 201


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["uptime"] >= 0
    assert "T" in body["timestamp"]


@pytest.mark.anyio
async def test_index_lists_endpoints(client: AsyncClient):
    resp = await client.get("/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Ludo Star Player API"
    assert "POST /api/player" in body["endpoints"]
    assert "GET /api/players" in body["endpoints"]


@pytest.mark.anyio
async def test_player_lifecycle(client: AsyncClient):
    resp = await client.post("/api/player", json={"player_id": "p1", "name": "Alice", "uid": "u1"})
    assert resp.status_code == 201
    created = resp.json()
    assert created["success"] is True
    assert created["message"] == "Player added successfully"
    assert created["data"]["old_names"] == []
    assert created["data"]["player_id"] == "p1"

    resp = await client.get("/api/player/p1")
    assert resp.status_code == 200
    fetched = resp.json()
    assert fetched["success"] is True
    assert "message" not in fetched
    assert fetched["data"] == created["data"]

    resp = await client.put("/api/player/p1", json={"name": "Alicia"})
    assert resp.status_code == 200
    updated = resp.json()["data"]
    assert updated["name"] == "Alicia"
    assert updated["uid"] == "u1"
    assert updated["old_names"] == []

    resp = await client.delete("/api/player/p1")
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "Player deleted successfully",
        "player_id": "p1",
    }

    resp = await client.get("/api/player/p1")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Player not found", "player_id": "p1"}


@pytest.mark.anyio
async def test_create_requires_fields(client: AsyncClient):
    resp = await client.post("/api/player", json={"player_id": "p1", "name": "Alice"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "player_id, name, and uid are required" in body["message"]

    resp = await client.post("/api/player", json={"player_id": "", "name": "Alice", "uid": "u1"})
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_create_rejects_malformed_body(client: AsyncClient):
    resp = await client.post(
        "/api/player",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.anyio
async def test_create_duplicate_player_id_keeps_existing(client: AsyncClient):
    await client.post("/api/player", json={"player_id": "p1", "name": "Alice", "uid": "u1"})

    resp = await client.post("/api/player", json={"player_id": "p1", "name": "Mallory", "uid": "u9"})
    assert resp.status_code == 409
    assert resp.json() == {"success": False, "message": "Player ID already exists", "player_id": "p1"}

    resp = await client.get("/api/player/p1")
    assert resp.json()["data"]["name"] == "Alice"
    assert resp.json()["data"]["uid"] == "u1"


@pytest.mark.anyio
async def test_create_duplicate_uid_reports_owner(client: AsyncClient):
    await client.post("/api/player", json={"player_id": "p1", "name": "Alice", "uid": "u1"})

    resp = await client.post("/api/player", json={"player_id": "p2", "name": "Bob", "uid": "u1"})
    assert resp.status_code == 409
    body = resp.json()
    assert body["message"] == "UID already exists"
    assert body["existing_player_id"] == "p1"

    resp = await client.get("/api/player/p2")
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_create_normalizes_old_names(client: AsyncClient):
    resp = await client.post(
        "/api/player",
        json={"player_id": "p1", "name": "Alice", "uid": "u1", "old_names": ["Al", "Ally"]},
    )
    assert resp.json()["data"]["old_names"] == ["Al", "Ally"]

    resp = await client.post(
        "/api/player",
        json={"player_id": "p2", "name": "Bob", "uid": "u2", "old_names": "not json"},
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["old_names"] == []

    resp = await client.post(
        "/api/player",
        json={"player_id": "p3", "name": "Cy", "uid": "u3", "old_names": '["Cyrus"]'},
    )
    assert resp.json()["data"]["old_names"] == ["Cyrus"]

    resp = await client.get("/api/player/p3")
    assert resp.json()["data"]["old_names"] == ["Cyrus"]


@pytest.mark.anyio
async def test_update_missing_player(client: AsyncClient):
    resp = await client.put("/api/player/ghost", json={"name": "Nobody"})
    assert resp.status_code == 404
    assert resp.json()["player_id"] == "ghost"


@pytest.mark.anyio
async def test_update_without_fields(client: AsyncClient):
    await _seed(client, 1)

    resp = await client.put("/api/player/p1", json={})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "No fields to update"}

    resp = await client.put("/api/player/p1", json={"nickname": "ignored"})
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_update_old_names_and_uid(client: AsyncClient):
    await _seed(client, 1)

    resp = await client.put("/api/player/p1", json={"old_names": ["Player One"], "uid": "u100"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["old_names"] == ["Player One"]
    assert data["uid"] == "u100"
    assert data["name"] == "Player 1"

    resp = await client.put("/api/player/p1", json={"old_names": None})
    assert resp.status_code == 200
    assert resp.json()["data"]["old_names"] == []


@pytest.mark.anyio
async def test_update_uid_collision_is_internal_error(client: AsyncClient):
    await _seed(client, 2)

    resp = await client.put("/api/player/p2", json={"uid": "u1"})
    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Internal server error"
    assert "UNIQUE" in body["error"]


@pytest.mark.anyio
async def test_delete_missing_player(client: AsyncClient):
    resp = await client.delete("/api/player/ghost")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Player not found", "player_id": "ghost"}


@pytest.mark.anyio
async def test_list_defaults(client: AsyncClient):
    await _seed(client, 12)

    resp = await client.get("/api/players")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert len(body["data"]) == 10
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 12, "totalPages": 2}


@pytest.mark.anyio
async def test_list_second_page(client: AsyncClient):
    await _seed(client, 12)

    resp = await client.get("/api/players", params={"page": 2, "limit": 5})
    body = resp.json()
    assert [player["player_id"] for player in body["data"]] == ["p6", "p7", "p8", "p9", "p10"]
    assert body["pagination"] == {"page": 2, "limit": 5, "total": 12, "totalPages": 3}
    assert all(player["old_names"] == [] for player in body["data"])


@pytest.mark.anyio
async def test_list_clamps_limit(client: AsyncClient):
    await _seed(client, 105)

    resp = await client.get("/api/players", params={"limit": 1000})
    body = resp.json()
    assert len(body["data"]) == 100
    assert body["pagination"]["limit"] == 100
    assert body["pagination"]["totalPages"] == 2


@pytest.mark.anyio
async def test_list_page_zero_is_not_guarded(client: AsyncClient):
    await _seed(client, 7)

    resp = await client.get("/api/players", params={"page": 0, "limit": 5})
    assert resp.status_code == 200
    body = resp.json()
    # offset is -5; SQLite reads a negative offset as zero
    assert [player["player_id"] for player in body["data"]] == ["p1", "p2", "p3", "p4", "p5"]
    assert body["pagination"]["page"] == 0


@pytest.mark.anyio
async def test_list_ignores_unparseable_query(client: AsyncClient):
    await _seed(client, 3)

    resp = await client.get("/api/players", params={"page": "abc", "limit": "xyz"})
    body = resp.json()
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 3, "totalPages": 1}


@pytest.mark.anyio
async def test_list_empty_table(client: AsyncClient):
    resp = await client.get("/api/players")
    body = resp.json()
    assert body["data"] == []
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 0, "totalPages": 0}


@pytest.mark.anyio
async def test_store_failure_is_reported(client: AsyncClient):
    client.app.state.player_store.close()

    resp = await client.get("/api/player/p1")
    assert resp.status_code == 500
    body = resp.json()
    assert body["message"] == "Internal server error"
    assert body["error"] == "player store is closed"


@pytest.mark.anyio
async def test_create_without_body_reports_missing_fields(client: AsyncClient):
    resp = await client.post("/api/player")
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Missing required fields: player_id, name, and uid are required"


@pytest.mark.anyio
async def test_update_without_body_checks_existence_first(client: AsyncClient):
    resp = await client.put("/api/player/ghost")
    assert resp.status_code == 404
    assert resp.json()["player_id"] == "ghost"

    await _seed(client, 1)
    resp = await client.put("/api/player/p1")
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "No fields to update"}


@pytest.mark.anyio
async def test_list_reads_leading_integer_of_query(client: AsyncClient):
    await _seed(client, 12)

    resp = await client.get("/api/players", params={"page": "2.0", "limit": "5x"})
    body = resp.json()
    assert body["pagination"] == {"page": 2, "limit": 5, "total": 12, "totalPages": 3}
    assert [player["player_id"] for player in body["data"]] == ["p6", "p7", "p8", "p9", "p10"]


@pytest.mark.anyio
async def test_numeric_fields_are_stored_as_strings(client: AsyncClient):
    resp = await client.post("/api/player", json={"player_id": 7, "name": "Seven", "uid": 9})
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["player_id"] == "7"
    assert data["uid"] == "9"

    resp = await client.put("/api/player/7", json={"uid": 10})
    assert resp.status_code == 200
    assert resp.json()["data"]["uid"] == "10"


def test_shutdown_keeps_injected_store_open(tmp_path):
    store = PlayerStore.open(tmp_path / "injected.sqlite", pool_size=2)
    app = create_app(Settings(db_path=str(tmp_path / "injected.sqlite")), store=store)

    with TestClient(app) as test_client:
        assert test_client.get("/health").status_code == 200

    assert not store.closed
    assert store.count() == 0
    store.close()


def test_shutdown_closes_owned_store(tmp_path):
    app = create_app(Settings(db_path=str(tmp_path / "owned.sqlite"), pool_size=2))

    with TestClient(app) as test_client:
        assert test_client.get("/api/players").status_code == 200

    assert app.state.player_store.closed
