import logging
import xml.etree.ElementTree as ET

import pytest
import yaml

from catalog_api import models

NEW_GAME = {
    "name": "Outer Wilds",
    "star_rating": 5,
    "developer": "Mobius Digital",
    "year": 2019,
    "finished": False,
}


async def test_root_and_health(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Game Catalog API"}

    health = await client.get("/health")
    assert health.json() == {"status": "ok"}


async def test_create_game_generates_id(client, db, caplog):
    caplog.set_level(logging.INFO, logger="catalog_api.audit")
    resp = await client.post("/api/game/v2", json=NEW_GAME)
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] >= 1
    assert body["name"] == "Outer Wilds"
    assert body["star_rating"] == 5.0
    assert db.get(models.Game, body["id"]) is not None

    record = next(r for r in caplog.records if r.name == "catalog_api.audit")
    assert record.event_action == "created"
    assert record.game_id == str(body["id"])


async def test_create_game_rejects_client_supplied_id(client):
    resp = await client.post("/api/game/v2", json={**NEW_GAME, "id": 99})
    assert resp.status_code == 422


async def test_create_game_validates_rating(client):
    resp = await client.post("/api/game/v2", json={**NEW_GAME, "star_rating": 6})
    assert resp.status_code == 422
    assert resp.headers["cache-control"] == "no-store"
    assert resp.json()["detail"][0]["loc"][-1] == "star_rating"


async def test_create_game_requires_name(client):
    resp = await client.post("/api/game/v2", json={**NEW_GAME, "name": "   "})
    assert resp.status_code == 422


async def test_read_game(client, seed_games):
    game_id = seed_games["Celeste"]
    resp = await client.get(f"/api/game/v2/{game_id}")
    assert resp.status_code == 200
    assert resp.json() == {
        "id": game_id,
        "name": "Celeste",
        "star_rating": 4.5,
        "developer": "Maddy Makes Games",
        "year": 2018,
        "finished": True,
    }


async def test_read_missing_game_returns_404(client):
    resp = await client.get("/api/game/v2/12345")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Game not found"}
    assert "x-request-id" in resp.headers


async def test_errors_follow_negotiated_media_type(client):
    resp = await client.get("/api/game/v2/12345", params={"mediaType": "xml"})
    assert resp.status_code == 404
    assert resp.headers["content-type"].startswith("application/xml")
    root = ET.fromstring(resp.content)
    assert root.tag == "Error"
    assert root.findtext("detail") == "Game not found"


async def test_xml_validation_error_stays_well_formed_for_odd_keys(client):
    resp = await client.post(
        "/api/game/v2", params={"mediaType": "xml"}, json={"1 bad<key": 1}
    )
    assert resp.status_code == 422
    assert resp.headers["content-type"].startswith("application/xml")
    root = ET.fromstring(resp.content)
    keys = {entry.get("key") for entry in root.iter("entry")}
    assert "1 bad<key" in keys


async def test_list_games_uses_collection_envelope(client, seed_games):
    resp = await client.get("/api/game/v2")
    assert resp.status_code == 200
    body = resp.json()
    names = [game["name"] for game in body["_embedded"]["gameDTOV2List"]]
    assert names == ["Celeste", "Hades", "Hades II", "Hollow Knight"]
    assert body["page"] == {"size": 12, "totalElements": 4, "totalPages": 1, "number": 0}
    assert body["_links"]["self"]["href"].endswith("/api/game/v2")


async def test_list_games_paginates_and_sorts(client, seed_games):
    resp = await client.get("/api/game/v2", params={"page": 1, "size": 3, "direction": "desc"})
    body = resp.json()
    assert [game["name"] for game in body["_embedded"]["gameDTOV2List"]] == ["Celeste"]
    assert body["page"] == {"size": 3, "totalElements": 4, "totalPages": 2, "number": 1}


async def test_list_games_rejects_bad_paging(client):
    assert (await client.get("/api/game/v2", params={"page": -1})).status_code == 422
    assert (await client.get("/api/game/v2", params={"size": 0})).status_code == 422
    assert (await client.get("/api/game/v2", params={"direction": "up"})).status_code == 422


async def test_empty_catalog(client):
    body = (await client.get("/api/game/v2")).json()
    assert body["_embedded"]["gameDTOV2List"] == []
    assert body["page"]["totalPages"] == 0


async def test_find_games_by_name_is_case_insensitive(client, seed_games):
    resp = await client.get("/api/game/v2/findGameByName/HADES")
    assert resp.status_code == 200
    body = resp.json()
    assert [g["name"] for g in body["_embedded"]["gameDTOV2List"]] == ["Hades", "Hades II"]
    assert body["page"]["totalElements"] == 2


async def test_find_games_by_name_escapes_wildcards(client, seed_games):
    resp = await client.get("/api/game/v2/findGameByName/%25")
    assert resp.json()["_embedded"]["gameDTOV2List"] == []


async def test_update_game_replaces_fields(client, seed_games):
    game_id = seed_games["Hades"]
    payload = {
        "id": game_id,
        "name": "Hades",
        "star_rating": 4.9,
        "developer": "Supergiant Games",
        "year": 2020,
        "finished": True,
    }
    resp = await client.put("/api/game/v2", json=payload)
    assert resp.status_code == 200
    assert resp.json() == payload

    fetched = await client.get(f"/api/game/v2/{game_id}")
    assert fetched.json()["finished"] is True


async def test_update_unknown_game_returns_404(client):
    resp = await client.put("/api/game/v2", json={**NEW_GAME, "id": 4242})
    assert resp.status_code == 404


async def test_update_requires_id(client):
    resp = await client.put("/api/game/v2", json=NEW_GAME)
    assert resp.status_code == 422


async def test_update_rejects_out_of_range_id(client):
    resp = await client.put("/api/game/v2", json={**NEW_GAME, "id": 10**20})
    assert resp.status_code == 422


@pytest.mark.parametrize(
    "path",
    [
        "/api/game/v2/99999999999999999999",
        "/api/game/v2/0",
        "/api/game/v2?page=10000000000000000000",
        "/api/game/v2/findGameByName/hades?page=10000000000000000000",
    ],
)
async def test_out_of_range_integers_are_rejected(client, path):
    resp = await client.get(path)
    assert resp.status_code == 422


@pytest.mark.parametrize("version", ["v1", "v2"])
async def test_delete_rejects_out_of_range_id(client, version):
    resp = await client.delete(f"/api/game/{version}/99999999999999999999")
    assert resp.status_code == 422


async def test_last_allowed_page_is_empty(client, seed_games):
    resp = await client.get("/api/game/v2", params={"page": 2**31 - 1, "size": 100})
    assert resp.status_code == 200
    body = resp.json()
    assert body["_embedded"]["gameDTOV2List"] == []
    assert body["page"]["totalElements"] == 4


async def test_delete_game_on_both_versions(client, seed_games):
    v2 = await client.delete(f"/api/game/v2/{seed_games['Celeste']}")
    v1 = await client.delete(f"/api/game/v1/{seed_games['Hades']}")
    assert v2.status_code == 204
    assert v1.status_code == 204
    assert v1.content == b""

    body = (await client.get("/api/game/v2")).json()
    assert [g["name"] for g in body["_embedded"]["gameDTOV2List"]] == ["Hades II", "Hollow Knight"]


async def test_delete_missing_game_returns_404(client):
    assert (await client.delete("/api/game/v1/999")).status_code == 404


async def test_read_game_as_xml(client, seed_games):
    resp = await client.get(
        f"/api/game/v2/{seed_games['Hades']}", params={"mediaType": "xml"}
    )
    assert resp.headers["content-type"] == "application/xml; charset=utf-8"
    root = ET.fromstring(resp.content)
    assert root.tag == "Game"
    assert root.findtext("name") == "Hades"
    assert root.findtext("finished") == "false"


async def test_list_games_as_yaml(client, seed_games):
    resp = await client.get("/api/game/v2", params={"mediaType": "yaml", "size": 2})
    assert resp.headers["content-type"] == "application/yaml; charset=utf-8"
    body = yaml.safe_load(resp.text)
    assert [g["name"] for g in body["_embedded"]["gameDTOV2List"]] == ["Celeste", "Hades"]
    assert body["page"]["totalPages"] == 2


async def test_create_game_as_yaml(client):
    resp = await client.post("/api/game/v2", params={"mediaType": "yaml"}, json=NEW_GAME)
    assert resp.status_code == 200
    assert yaml.safe_load(resp.text)["name"] == "Outer Wilds"
