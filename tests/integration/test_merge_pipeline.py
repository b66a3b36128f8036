"""端到端测试 -- 合并 -> 消息 -> 摘要回填

通过 create_app() + lifespan 启动完整组件（Store / 消息总线 / 消费者 / 摘要服务）。
"""

import asyncio
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest
import pytest_asyncio
from eventcollab.core.models import User
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

T0 = datetime(2025, 1, 15, 9, 0, tzinfo=UTC)


def _body(start_h: float, end_h: float, title: str) -> dict:
    return {
        "title": title,
        "start_time": (T0 + timedelta(hours=start_h)).isoformat(),
        "end_time": (T0 + timedelta(hours=end_h)).isoformat(),
        "invitee_ids": ["u1"],
    }


def _llm_response(content: str):
    response = MagicMock()
    response.model = "claude-3-5-sonnet-20241022"
    choice = MagicMock()
    choice.message.content = content
    response.choices = [choice]
    response.usage = None
    response._hidden_params = {"custom_llm_provider": "anthropic"}
    return response


@pytest.fixture
def base_env(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("EVENTCOLLAB_DB_PATH", str(tmp_path / "sqlite" / "test.db"))
    monkeypatch.setenv("EVENTCOLLAB_CACHE_BACKEND", "memory")
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("EVENTCOLLAB_LLM_MODE", raising=False)
    monkeypatch.delenv("LITELLM_PROXY_URL", raising=False)


@pytest_asyncio.fixture
async def running_app(base_env) -> AsyncGenerator[FastAPI, None]:
    from eventcollab.gateway.main import create_app

    app = create_app()
    async with app.router.lifespan_context(app):
        async with app.state.store_group.transaction("seed") as tx:
            await tx.users.create_user(User(user_id="u1", name="Alice"))
        yield app


@pytest_asyncio.fixture
async def client(running_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=running_app),
        base_url="http://test",
    ) as ac:
        yield ac


async def _merge_and_wait(app: FastAPI, client: AsyncClient) -> dict:
    resp = await client.post(
        "/api/events/batch",
        json={"events": [_body(0, 2, "Standup daily"), _body(1, 3, "Design review")]},
    )
    assert resp.status_code == 201

    resp = await client.post("/api/events/merge-all/u1")
    assert resp.status_code == 200
    await asyncio.wait_for(app.state.bus.join(), timeout=5)

    resp = await client.get("/api/events/user/u1")
    events = resp.json()["events"]
    assert len(events) == 1
    return events[0]


class TestMergePipeline:
    async def test_ready(self, client: AsyncClient):
        resp = await client.get("/ready")
        assert resp.status_code == 200
        assert resp.json()["checks"]["consumer"] == "ok"

    async def test_local_summary_without_credential(self, running_app, client: AsyncClient):
        merged = await _merge_and_wait(running_app, client)

        # 原始事件已在合并事务中删除，摘要以合并事件自身为上下文
        assert merged["summary"] == "Merged 2 overlapping events: Standup."

    async def test_summary_cached_by_event_id(self, running_app, client: AsyncClient):
        merged = await _merge_and_wait(running_app, client)

        cached = await running_app.state.summary_cache.get(f"ai-summary:{merged['event_id']}")
        assert cached == merged["summary"]


class TestMergePipelineWithLLM:
    @pytest.fixture
    def llm_env(self, base_env, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test-key")

    @patch("eventcollab.provider.client.acompletion")
    async def test_llm_summary_stored(self, mock_acompletion, llm_env, running_app, client):
        mock_acompletion.return_value = _llm_response("Standup and design review combined.")

        merged = await _merge_and_wait(running_app, client)

        assert merged["summary"] == "Standup and design review combined."
        mock_acompletion.assert_awaited_once()

    @patch("eventcollab.provider.client.acompletion")
    async def test_llm_failure_degrades_to_local(self, mock_acompletion, llm_env, running_app, client):
        mock_acompletion.side_effect = httpx.ConnectError("Connection refused")

        merged = await _merge_and_wait(running_app, client)

        assert merged["summary"] == "Merged 2 overlapping events: Standup."
