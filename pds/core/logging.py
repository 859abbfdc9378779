import logging
import logging.config
import time

import structlog

from pds.core.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure application logging based on settings."""

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if settings.LOG_FORMAT == "json"
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure standard logging
    if settings.LOG_FORMAT == "json":
        formatter_class = "pythonjsonlogger.json.JsonFormatter"
        format_string = "%(asctime)s %(name)s %(levelname)s %(message)s"
    else:
        formatter_class = "logging.Formatter"
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check_filter": {
                "()": "pds.core.logging.HealthCheckFilter",
            },
        },
        "formatters": {
            "default": {
                "class": formatter_class,
                "format": format_string,
            },
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
            "access": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "filters": ["health_check_filter"],
            },
        },
        "loggers": {
            "": {
                "level": settings.LOG_LEVEL,
                "handlers": ["default"],
                "propagate": False,
            },
            "uvicorn.error": {
                "level": "INFO",
                "handlers": ["default"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["access"],
                "propagate": False,
            },
            # Third-party loggers
            "sqlalchemy.engine": {
                "level": "INFO" if settings.DB_ECHO else "WARNING",
                "handlers": ["default"],
                "propagate": False,
            },
            "aiosqlite": {
                "level": "WARNING",
                "handlers": ["default"],
                "propagate": False,
            },
            # passlib logs a trapped error when probing newer bcrypt releases
            "passlib": {
                "level": "ERROR",
                "handlers": ["default"],
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(logging_config)

    if not settings.DEBUG:
        logging.getLogger("asyncio").setLevel(logging.WARNING)


class RequestLoggingMiddleware:
    """Middleware for logging HTTP requests and responses."""

    def __init__(self, app):
        self.app = app
        self.logger = structlog.get_logger("request")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # Skip logging for health check requests to reduce log noise
        is_health_check = scope["path"] in ["/health", "/ready"]

        request_info = {
            "method": scope["method"],
            "path": scope["path"],
            "headers": {
                key.decode(): value.decode()
                for key, value in scope.get("headers", [])
                if key.lower()
                in [b"user-agent", b"content-type", b"authorization", b"content-length"]
            },
        }

        # Remove sensitive data from headers
        if "authorization" in request_info["headers"]:
            request_info["headers"]["authorization"] = "***"

        if not is_health_check:
            self.logger.info("Request started", **request_info)

        start_time = time.perf_counter()

        async def send_wrapper(message):
            if message["type"] == "http.response.start" and not is_health_check:
                self.logger.info(
                    "Response started",
                    method=request_info["method"],
                    path=request_info["path"],
                    status_code=message["status"],
                )

            elif (
                message["type"] == "http.response.body"
                and not message.get("more_body", False)
                and not is_health_check
            ):
                self.logger.info(
                    "Request completed",
                    method=request_info["method"],
                    path=request_info["path"],
                    duration=round(time.perf_counter() - start_time, 4),
                )

            await send(message)

        await self.app(scope, receive, send_wrapper)


class HealthCheckFilter(logging.Filter):
    """Filter out health check requests from uvicorn access logs."""

    def filter(self, record):
        message = record.getMessage()
        for endpoint in ("/health", "/ready"):
            if endpoint in message:
                return False
        return True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def setup_request_logging(app, settings: Settings):
    """Setup request logging middleware."""
    if settings.DEBUG:
        app.add_middleware(RequestLoggingMiddleware)


# Application-specific loggers
def get_api_logger() -> structlog.stdlib.BoundLogger:
    """Get API logger."""
    return get_logger("api")


def get_db_logger() -> structlog.stdlib.BoundLogger:
    """Get database logger."""
    return get_logger("database")


def get_auth_logger() -> structlog.stdlib.BoundLogger:
    """Get authentication logger."""
    return get_logger("auth")


def get_service_logger(service_name: str) -> structlog.stdlib.BoundLogger:
    """Get service-specific logger."""
    return get_logger(f"service.{service_name}")
