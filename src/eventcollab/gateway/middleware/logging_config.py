"""日志初始化 -- structlog 与标准库 logging 共用一条渲染链

EVENTCOLLAB_LOG_FORMAT: dev（默认，控制台彩色）/ json（一行一条，含异常栈文本）
EVENTCOLLAB_LOG_LEVEL: 根 logger 级别，默认 INFO
LOGFIRE_SEND_TO_LOGFIRE=true 时额外接入 Logfire（eventcollab[logfire]）。
"""

import logging
import os

import structlog

# 第三方库只保留 WARNING 及以上
_NOISY_LOGGERS: tuple[str, ...] = ("LiteLLM", "aiosqlite", "httpx")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer_chain(log_format: str) -> list[structlog.types.Processor]:
    if log_format == "json":
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    return [structlog.dev.ConsoleRenderer()]


def setup_logging(
    log_format: str | None = None,
    log_level: str | None = None,
) -> logging.Handler:
    """配置 structlog 并替换根 logger 的 handler

    Args:
        log_format: "json" / "dev"，None 时读取 EVENTCOLLAB_LOG_FORMAT
        log_level: 日志级别名，None 时读取 EVENTCOLLAB_LOG_LEVEL；无法识别时为 INFO

    Returns:
        新安装到根 logger 上的 handler
    """
    log_format = (log_format or os.environ.get("EVENTCOLLAB_LOG_FORMAT", "dev")).lower()
    level_name = (log_level or os.environ.get("EVENTCOLLAB_LOG_LEVEL", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_renderer_chain(log_format),
            ],
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler


def setup_logfire(app=None) -> bool:
    """按环境变量接入 Logfire

    Returns:
        是否已启用；未开启或初始化失败时为 False，仅保留本地日志
    """
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure(service_name="eventcollab")
        if app is not None:
            logfire.instrument_fastapi(app)
    except Exception as e:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        return False
    return True
