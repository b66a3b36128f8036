"""Provider 测试 fixtures"""

import pytest


@pytest.fixture
def sample_messages() -> list[dict[str, str]]:
    """标准 messages 格式测试数据"""
    return [{"role": "user", "content": "Summarize: Standup + Review"}]
