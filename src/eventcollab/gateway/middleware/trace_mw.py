"""TraceMiddleware -- 为用户级事件操作绑定 user_id

从 /api/events/conflicts/{user_id}、/api/events/merge-all/{user_id}、
/api/events/user/{user_id} 路径中提取 user_id。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

_USER_SCOPED_SEGMENTS = ("conflicts", "merge-all", "user")


def extract_user_id(path: str) -> str | None:
    """从事件路由路径中提取 user_id，不匹配时返回 None"""
    parts = [p for p in path.split("/") if p]
    # 期望形如 ["api", "events", <segment>, <user_id>]
    if len(parts) != 4 or parts[:2] != ["api", "events"]:
        return None
    if parts[2] not in _USER_SCOPED_SEGMENTS:
        return None
    return parts[3]


class TraceMiddleware(BaseHTTPMiddleware):
    """用户级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        user_id = extract_user_id(request.url.path)
        if user_id:
            structlog.contextvars.bind_contextvars(user_id=user_id)

        return await call_next(request)
