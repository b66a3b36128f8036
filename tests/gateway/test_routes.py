"""事件路由 + 健康检查集成测试（手动初始化 app.state）"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest_asyncio
from eventcollab.core.models import User
from eventcollab.core.store import create_store_group
from eventcollab.gateway.middleware.logging_mw import LoggingMiddleware
from eventcollab.gateway.middleware.trace_mw import TraceMiddleware, extract_user_id
from eventcollab.gateway.routes import events, health
from eventcollab.gateway.services.event_service import EventService
from eventcollab.messaging import InProcessMessageBus, MergeEventProducer
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

T0 = datetime(2025, 1, 15, 9, 0, tzinfo=UTC)


def _event_body(start_h: float, end_h: float, title: str, invitees: list[str]) -> dict:
    return {
        "title": title,
        "start_time": (T0 + timedelta(hours=start_h)).isoformat(),
        "end_time": (T0 + timedelta(hours=end_h)).isoformat(),
        "invitee_ids": invitees,
    }


@pytest_asyncio.fixture
async def test_app(tmp_path: Path) -> AsyncGenerator[FastAPI, None]:
    """创建测试用 FastAPI app，手动初始化 lifespan 状态"""
    app = FastAPI()
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.include_router(events.router)
    app.include_router(health.router)

    store_group = await create_store_group(str(tmp_path / "test.db"))
    async with store_group.transaction("seed") as tx:
        await tx.users.create_user(User(user_id="u1", name="Alice"))
        await tx.users.create_user(User(user_id="u2", name="Bob"))

    bus = InProcessMessageBus()
    app.state.store_group = store_group
    app.state.bus = bus
    app.state.event_service = EventService(store_group, MergeEventProducer(bus))

    yield app

    await store_group.conn.close()


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


async def _batch(client: AsyncClient, *bodies: dict) -> dict:
    resp = await client.post("/api/events/batch", json={"events": list(bodies), "user_id": "u1"})
    assert resp.status_code == 201
    return resp.json()


class TestEventRoutes:
    async def test_batch_create(self, client: AsyncClient):
        data = await _batch(
            client,
            _event_body(1, 2, "Standup", ["u1"]),
            _event_body(3, 4, "Review", ["u1", "u2"]),
        )
        assert data["count"] == 2
        assert data["events"][1]["invitee_ids"] == ["u1", "u2"]
        assert data["events"][0]["status"] == "TODO"

    async def test_conflicts_and_merge(self, client: AsyncClient):
        await _batch(
            client,
            _event_body(1, 2, "Standup daily", ["u1"]),
            _event_body(1.5, 2.5, "Review", ["u1"]),
        )

        resp = await client.get("/api/events/conflicts/u1")
        assert resp.status_code == 200
        assert len(resp.json()["events"]) == 2

        resp = await client.post("/api/events/merge-all/u1")
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 1
        merged = data["events"][0]
        assert merged["title"] == "Standup daily + Review"
        assert merged["start_time"] == (T0 + timedelta(hours=1)).isoformat()
        assert merged["end_time"] == (T0 + timedelta(hours=2.5)).isoformat()
        assert len(merged["merged_from"]) == 2

        resp = await client.post("/api/events/merge-all/u1")
        assert resp.json() == {"count": 0, "events": []}

    async def test_list_user_events(self, client: AsyncClient):
        await _batch(
            client,
            _event_body(5, 6, "Later", ["u1"]),
            _event_body(1, 2, "Earlier", ["u1"]),
        )
        resp = await client.get("/api/events/user/u1")
        assert [e["title"] for e in resp.json()["events"]] == ["Earlier", "Later"]

    async def test_unknown_user_returns_404_envelope(self, client: AsyncClient):
        for method, path in (
            ("GET", "/api/events/conflicts/ghost"),
            ("POST", "/api/events/merge-all/ghost"),
            ("GET", "/api/events/user/ghost"),
        ):
            resp = await client.request(method, path)
            assert resp.status_code == 404
            assert resp.json()["error"]["code"] == "USER_NOT_FOUND"

    async def test_unknown_invitee_returns_400(self, client: AsyncClient):
        resp = await client.post(
            "/api/events/batch",
            json={"events": [_event_body(1, 2, "x", ["ghost"])]},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "EVENT_VALIDATION_FAILED"

    async def test_batch_limit_returns_400(self, client: AsyncClient):
        body = _event_body(1, 2, "x", [])
        resp = await client.post("/api/events/batch", json={"events": [body] * 501})
        assert resp.status_code == 400

    async def test_invalid_interval_rejected(self, client: AsyncClient):
        resp = await client.post(
            "/api/events/batch",
            json={"events": [_event_body(2, 1, "backwards", [])]},
        )
        assert resp.status_code == 422

    async def test_request_id_header(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
        assert len(resp.headers["X-Request-ID"]) == 26


class TestReady:
    async def test_ready_without_consumer_is_503(self, client: AsyncClient):
        resp = await client.get("/ready")
        assert resp.status_code == 503
        data = resp.json()
        assert data["checks"]["sqlite"] == "ok"
        assert data["checks"]["consumer"] == "stopped"
        assert data["checks"]["litellm_proxy"] == "skipped"


class TestTraceMiddleware:
    def test_extract_user_id(self):
        assert extract_user_id("/api/events/conflicts/u1") == "u1"
        assert extract_user_id("/api/events/merge-all/u-2") == "u-2"
        assert extract_user_id("/api/events/user/u3") == "u3"
        assert extract_user_id("/api/events/batch") is None
        assert extract_user_id("/health") is None
