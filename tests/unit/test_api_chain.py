from __future__ import annotations

import anyio
import pytest

from api.main import create_app
from stickychain.app import Application
from tests.unit._api_test_client import make_client


@pytest.mark.anyio
async def test_validate_records_and_replay(test_config):
    app = create_app(test_config)

    async with make_client(app) as ac:
        board = (await ac.post("/boards", json={"owner_id": "alice"})).json()
        backlog, doing = board["columns"][0]["id"], board["columns"][1]["id"]
        card = (
            await ac.post("/cards", json={"board_id": board["id"], "column_id": backlog, "title": "A", "actor_id": "alice"})
        ).json()

        history = (await ac.get(f"/chain/history/{card['id']}")).json()
        created_at = history[0]["timestamp"]
        await ac.post(f"/cards/{card['id']}/move", json={"actor_id": "alice", "to_column_id": doing})

        r = await ac.get("/chain/validate")
        assert r.json() == {"valid": True, "broken_at": None, "reason": None, "detail": None}

        records = (await ac.get("/chain/records", params={"limit": 2})).json()
        assert [x["sequence_number"] for x in records] == [0, 1]
        assert records[1]["previous_hash"] == records[0]["hash"]

        r = await ac.get("/chain/replay", params={"subject_id": card["id"], "up_to": created_at})
        assert r.json()["state"]["column_id"] == backlog

        r = await ac.get("/chain/replay", params={"subject_id": card["id"]})
        assert r.json()["state"]["column_id"] == doing

        r = await ac.get("/chain/replay")
        assert card["id"] in r.json()["state"]["cards"]

        r = await ac.get("/chain/replay", params={"subject_id": "ghost"})
        assert r.status_code == 404


@pytest.mark.anyio
async def test_tampering_is_reported(test_config):
    app = create_app(test_config)

    async with make_client(app) as ac:
        await ac.post("/boards", json={"owner_id": "alice"})
        await ac.post("/boards", json={"owner_id": "bob"})

        chain = app.state.application.chain
        chain._records[1] = chain[1].model_copy(update={"author_id": "mallory"})

        r = await ac.get("/chain/validate")
        assert r.json()["valid"] is False
        assert r.json()["broken_at"] == 1

        r = await ac.get("/health")
        assert r.json()["chain_valid"] is False


@pytest.mark.anyio
async def test_reads_wait_for_the_write_lock(test_config):
    app = create_app(test_config)
    application = app.state.application = Application.create(test_config)
    application.dispatcher.create_board("alice")
    responses = []

    async def fetch(path: str) -> None:
        responses.append(await ac.get(path))

    async with make_client(app) as ac:
        async with anyio.create_task_group() as tg:
            application.lock.acquire()
            try:
                tg.start_soon(fetch, "/chain/stats")
                tg.start_soon(fetch, "/boards")
                await anyio.sleep(0.2)
                assert responses == []
            finally:
                application.lock.release()

    assert sorted(r.status_code for r in responses) == [200, 200]
