"""FastAPI 应用主文件

app 创建 + lifespan 管理：
DB 初始化/关闭 + 摘要组件初始化 + 消息总线/消费者启停 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from eventcollab.core.config import get_db_path
from eventcollab.core.store import create_store_group
from eventcollab.messaging import (
    HandlerRegistry,
    InProcessMessageBus,
    MergeEventProducer,
    MessageConsumer,
    load_messaging_config,
)
from eventcollab.provider import (
    FallbackManager,
    LiteLLMClient,
    LiteLLMSummarizer,
    LocalSummarizer,
    load_provider_config,
)
from fastapi import FastAPI

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import events, health
from .services.event_service import EventService
from .services.merge_consumer import MergeSummaryHandler
from .services.summary_cache import create_summary_cache
from .services.summary_service import SummaryCacheService

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理"""
    # Store
    store_group = await create_store_group(get_db_path())
    app.state.store_group = store_group

    # 摘要：缓存 + LLM 降级链
    provider_config = load_provider_config()
    app.state.provider_config = provider_config
    summary_cache = create_summary_cache()
    app.state.summary_cache = summary_cache

    if provider_config.has_valid_credential():
        litellm_client = LiteLLMClient(
            model=provider_config.model,
            api_key=provider_config.api_key.get_secret_value(),
            api_base=provider_config.api_base,
            timeout_s=provider_config.timeout_s,
        )
        fallback_manager = FallbackManager(
            primary=LiteLLMSummarizer(
                litellm_client,
                temperature=provider_config.temperature,
                max_tokens=provider_config.max_tokens,
            ),
            fallback=LocalSummarizer(),
        )
        app.state.litellm_client = litellm_client
        log.info(
            "summary_service_initialized",
            mode="litellm",
            model=provider_config.model,
            api_base=provider_config.api_base,
            timeout_s=provider_config.timeout_s,
        )
    else:
        fallback_manager = None
        app.state.litellm_client = None
        log.info("summary_service_initialized", mode="local")

    summary_service = SummaryCacheService(
        cache=summary_cache,
        provider_config=provider_config,
        fallback_manager=fallback_manager,
    )

    # 消息总线：handler 必须在 consumer 启动前注册
    messaging_config = load_messaging_config()
    bus = InProcessMessageBus(
        partition_count=messaging_config.partition_count,
        queue_maxsize=messaging_config.queue_maxsize,
    )
    registry = HandlerRegistry()
    registry.register(
        messaging_config.topics.event_merge_requests,
        MergeSummaryHandler(store_group, summary_service),
    )
    consumer = MessageConsumer(
        bus,
        registry,
        topics=messaging_config.topics.all(),
        group_id=messaging_config.consumer_group,
    )
    await consumer.start()
    producer = MergeEventProducer(bus, messaging_config.topics)

    app.state.bus = bus
    app.state.consumer = consumer
    app.state.event_service = EventService(store_group, producer)

    yield

    # 关闭：先停止发送，再停止消费，最后释放连接
    bus.close()
    await consumer.stop()
    await summary_cache.close()
    await store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="EventCollab API",
        version="0.1.0",
        description="事件冲突检测、合并与异步摘要",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    setup_logging()
    setup_logfire(app)

    app.include_router(events.router, tags=["events"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
