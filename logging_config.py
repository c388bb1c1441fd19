import logging
import sys
import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from config import Settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

_LOGGING_INITIALIZED = False

request_logger = logging.getLogger("afterschool.requests")


def setup_logging(settings: Settings) -> None:
    """Route application and uvicorn loggers through one stdout handler."""
    global _LOGGING_INITIALIZED
    if _LOGGING_INITIALIZED:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        log = logging.getLogger(logger_name)
        log.handlers = [handler]
        log.propagate = False

    logging.basicConfig(level=settings.log_level, handlers=[handler], force=True)
    _LOGGING_INITIALIZED = True
    logging.getLogger(__name__).info("Logging initialized at level %s", settings.log_level)


class RequestLoggingMiddleware:
    """Log method, path, status and latency of every HTTP request."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        status_holder = {"code": 500}

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                status_holder["code"] = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed_ms = (time.time() - start_time) * 1000
            request_logger.info("%s %s -> %s (%.1f ms)", method, path, status_holder["code"], elapsed_ms)
