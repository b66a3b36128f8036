"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性、消息消费者、摘要缓存；
            profile=llm 时额外探测 LiteLLM Proxy。
"""

import structlog
from fastapi import APIRouter, Query, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(
    request: Request,
    profile: str | None = Query(
        default=None,
        description="检查配置：core（默认）仅核心检查；llm 包含 LiteLLM Proxy 健康检查",
    ),
):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性
    2. consumer: 消息消费者是否在运行
    3. summary_cache: 缓存后端（redis 时 PING）
    4. litellm_proxy: 仅 profile=llm 时探测
    """
    effective_profile = profile or "core"
    checks: dict[str, str] = {}
    all_ok = True

    # 1. SQLite 连通性
    try:
        store_group = request.app.state.store_group
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except Exception as e:
        checks["sqlite"] = f"error: {e}"
        all_ok = False

    # 2. 消费者
    consumer = getattr(request.app.state, "consumer", None)
    if consumer is not None and consumer.running:
        checks["consumer"] = "ok"
    else:
        checks["consumer"] = "stopped"
        all_ok = False

    # 3. 摘要缓存
    cache = getattr(request.app.state, "summary_cache", None)
    ping = getattr(cache, "ping", None)
    if ping is None:
        checks["summary_cache"] = "ok" if cache is not None else "missing"
        all_ok = all_ok and cache is not None
    elif await ping():
        checks["summary_cache"] = "ok"
    else:
        checks["summary_cache"] = "unreachable"
        all_ok = False

    # 4. LiteLLM Proxy
    if effective_profile in ("llm", "full"):
        litellm_client = getattr(request.app.state, "litellm_client", None)
        if litellm_client is None:
            checks["litellm_proxy"] = "skipped"
        else:
            try:
                healthy = await litellm_client.health_check()
            except Exception as e:
                log.warning("health_check_error", error=str(e))
                healthy = False
            checks["litellm_proxy"] = "ok" if healthy else "unreachable"
            all_ok = all_ok and healthy
    else:
        checks["litellm_proxy"] = "skipped"

    status_code = 200 if all_ok else 503
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ready" if all_ok else "not_ready",
            "profile": effective_profile,
            "checks": checks,
        },
    )
