"""LoggingMiddleware -- 请求级访问日志

- request_id：沿用上游 X-Request-ID，缺失时生成 ULID；写回响应头
- 探活路径（/health、/ready）降为 debug，避免刷屏
- 未处理异常记录 request_failed 后继续向上抛出
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS: frozenset[str] = frozenset({"/health", "/ready"})

log = structlog.get_logger()


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(ULID())
        path = request.url.path

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
        )
        emit = log.adebug if path in QUIET_PATHS else log.ainfo

        await emit("request_started")
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            await log.aerror(
                "request_failed",
                duration_ms=_elapsed_ms(started),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        await emit(
            "request_completed",
            status_code=response.status_code,
            duration_ms=_elapsed_ms(started),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
