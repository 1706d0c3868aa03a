"""Test the ops API endpoints."""
import logging
import pytest
from httpx import ASGITransport, AsyncClient
from opsapi.app import create_app
from scheduler.bootstrap import build_runtime
from scheduler.config import Settings
from conftest import MINUTE, T0, make_landmine, make_player


@pytest.fixture
def runtime():
    return build_runtime(Settings(RNG_SEED=1), clock=lambda: T0 + MINUTE)


@pytest.fixture
def client(runtime):
    app = create_app(runtime, start_scheduler=False)
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_root(client):
    async with client as ac:
        response = await ac.get("/")
    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


@pytest.mark.asyncio
async def test_health_reports_entity_counts(client, runtime):
    await runtime.store.save_player(make_player("alice"))
    await runtime.store.add_landmine(make_landmine(1))
    async with client as ac:
        response = await ac.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["entities"]["players"] == 1
    assert data["entities"]["landmines"] == 1
    assert data["dedup_keys"] == {"proximity": 0, "damage_missile": 0, "damage_landmine": 0}


@pytest.mark.asyncio
async def test_lists_every_pass(client):
    async with client as ac:
        response = await ac.get("/tasks")
    assert response.status_code == 200
    names = [t["name"] for t in response.json()]
    assert names == ["trajectory", "proximity", "damage", "shield_breaker", "lifecycle", "loot_spawn"]
    assert all(t["running"] is False and t["runs"] == 0 for t in response.json())


@pytest.mark.asyncio
async def test_manual_run_and_events(client, runtime):
    await runtime.store.save_player(make_player("alice"))
    await runtime.store.add_landmine(make_landmine(1))
    async with client as ac:
        response = await ac.post("/tasks/damage/run")
        assert response.status_code == 200
        assert response.json() == {"task": "damage", "ran": True, "events": 1}

        response = await ac.get("/events", params={"since": 0})
        data = response.json()
        kinds = [e["kind"] for e in data["events"]]
        assert kinds == ["Notification", "DamageScheduled"]
        assert data["next_offset"] == 2

        response = await ac.get("/events", params={"since": data["next_offset"]})
        assert response.json()["events"] == []

        response = await ac.get("/tasks")
    damage = next(t for t in response.json() if t["name"] == "damage")
    assert damage["runs"] == 1
    assert damage["last_started_ms"] == T0 + MINUTE


@pytest.mark.asyncio
async def test_unknown_task_is_404(client):
    async with client as ac:
        response = await ac.post("/tasks/warp_drive/run")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_manual_run_is_logged(client, caplog):
    caplog.set_level(logging.INFO, logger="opsapi")
    async with client as ac:
        await ac.post("/tasks/lifecycle/run")
    assert "[API] Manual run of lifecycle: 0" in caplog.messages
