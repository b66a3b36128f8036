"""gateway 测试配置 -- 消息总线 + 服务实例 fixtures"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from eventcollab.gateway.services.event_service import EventService
from eventcollab.gateway.services.summary_cache import InMemorySummaryCache
from eventcollab.gateway.services.summary_service import SummaryCacheService
from eventcollab.messaging import InProcessMessageBus, MergeEventProducer
from eventcollab.provider import ProviderConfig


@pytest.fixture
def bus() -> InProcessMessageBus:
    return InProcessMessageBus(partition_count=3)


@pytest.fixture
def producer(bus) -> MergeEventProducer:
    return MergeEventProducer(bus)


@pytest_asyncio.fixture
async def event_service(store_group, producer) -> AsyncGenerator[EventService, None]:
    yield EventService(store_group, producer)


@pytest.fixture
def summary_cache() -> InMemorySummaryCache:
    return InMemorySummaryCache()


@pytest.fixture
def local_summary_service(summary_cache) -> SummaryCacheService:
    """无凭证的摘要服务（始终本地摘要）"""
    return SummaryCacheService(cache=summary_cache, provider_config=ProviderConfig())
