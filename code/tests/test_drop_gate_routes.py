import pytest
from fastapi.testclient import TestClient

from config.service_registry import clear_services, register_service, DROP_GATE_SERVICE, REALTIME_CHANNEL
from config.settings import CREATURE_NAMES, DEFAULT_ITEM_ENTRY, DEFAULT_NPC_ENTRY
from drop_gate.src.announcer import Announcer, StaticNameResolver
from drop_gate.src.orchestrator import DropGateService
from drop_gate.src.roll_engine import RollEngine
from gateway.src.main import app
from gateway.src.realtime import RealtimeBroadcastChannel, get_realtime_service


@pytest.fixture
def client(store, monkeypatch):
    for var in ("ONCE_DROP_ENABLE", "ONCE_DROP_CHANCE", "ONCE_DROP_ALLOW_REPEAT", "ONCE_DROP_RESET_ON_STARTUP"):
        monkeypatch.delenv(var, raising=False)

    channel = RealtimeBroadcastChannel(get_realtime_service())
    service = DropGateService(
        store=store,
        announcer=Announcer(channel),
        name_resolver=StaticNameResolver(CREATURE_NAMES),
        roll_engine=RollEngine.from_seed(11)
    )
    register_service(DROP_GATE_SERVICE, service)
    register_service(REALTIME_CHANNEL, channel)

    with TestClient(app) as test_client:
        yield test_client

    clear_services()


def test_status_after_startup(client):
    response = client.get("/v1/once-drop/status")
    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "ready"
    assert body["config"]["npc_entry"] == DEFAULT_NPC_ENTRY
    assert body["record"]["granted"] is False


def test_kill_then_loot_over_http(client):
    response = client.post("/v1/once-drop/reload", json={"options": {"Chance": "100"}})
    assert response.status_code == 200
    assert response.json()["config"]["chance_pct"] == 100.0

    kill = {"actor_name": "Alice", "entry": DEFAULT_NPC_ENTRY, "items": [{"item_entry": 19136}]}
    body = client.post("/v1/once-drop/events/kill", json=kill).json()
    assert body["granted"] is True
    assert body["state"] == "granted"
    assert {"item_entry": DEFAULT_ITEM_ENTRY, "count": 1} in body["items"]

    body = client.post("/v1/once-drop/events/kill", json={**kill, "actor_name": "Bob"}).json()
    assert body["granted"] is False

    loot = {"actor_name": "Alice", "item_entry": DEFAULT_ITEM_ENTRY, "source_entry": DEFAULT_NPC_ENTRY}
    body = client.post("/v1/once-drop/events/loot", json=loot).json()
    assert body["announced"] is True
    assert body["message"] == "Alice has defeated Baron Geddon and claimed the legendary Talisman of Binding Shard!"

    announcements = client.get("/v1/once-drop/announcements", params={"limit": 1}).json()["announcements"]
    assert announcements[0]["data"]["message"] == body["message"]

    record = client.get("/v1/once-drop/status").json()["record"]
    assert record["last_actor_name"] == "Alice"
    assert record["granted_at"] > 0


def test_loot_of_unrelated_item(client):
    body = client.post("/v1/once-drop/events/loot", json={"actor_name": "Alice", "item_entry": 1}).json()
    assert body == {"announced": False, "message": None}


def test_reload_with_reset(client):
    client.post("/v1/once-drop/reload", json={"options": {"Chance": 100}})
    client.post("/v1/once-drop/events/kill", json={"actor_name": "Alice", "entry": DEFAULT_NPC_ENTRY})

    body = client.post("/v1/once-drop/reload", json={"options": {"ResetOnStartup": True}}).json()
    assert body["state"] == "ready"
    assert body["record"]["last_actor_name"] is None


def test_status_without_service():
    clear_services()
    response = TestClient(app).get("/v1/once-drop/status")
    assert response.status_code == 503
