import sys
import logging
from typing import Any

from loguru import logger

from portfolio_audit.config.settings import settings

SENSITIVE_KEYS = ("key", "token", "password", "secret", "authorization")


def _mask(value: str) -> str:
    if len(value) > 8:
        return value[:4] + "****" + value[-4:]
    return "********"


def sensitive_data_filter(record: dict[str, Any]) -> bool:
    """Filter function to mask sensitive data in log records."""

    def mask_extra(value: Any, parent_key: str = "") -> Any:
        if isinstance(value, dict):
            return {k: mask_extra(v, str(k)) for k, v in value.items()}
        if isinstance(value, list):
            return [mask_extra(item, parent_key) for item in value]
        if isinstance(value, str) and any(sk in parent_key.lower() for sk in SENSITIVE_KEYS):
            return _mask(value)
        return value

    if "extra" in record and isinstance(record["extra"], dict):
        record["extra"] = mask_extra(record["extra"])

    # The API key may also leak through a URL or exception text in the message
    api_key = settings.gemini_api_key
    if api_key and api_key in record["message"]:
        record["message"] = record["message"].replace(api_key, "********")

    return True  # Keep the record after filtering/masking


def setup_logging() -> None:
    """Configures Loguru logger based on application settings."""
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=True,
        diagnose=False,  # Locals may hold credentials
        filter=sensitive_data_filter,
    )

    logger.info(f"Logging initialized with level: {settings.log_level}")

    # Intercept standard logging messages (httpx, asyncio)
    class InterceptHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            # Get corresponding Loguru level if it exists
            try:
                level = logger.level(record.levelname).name
            except ValueError:
                level = record.levelno

            # Find caller from where originated the logged message
            frame, depth = logging.currentframe(), 2
            while frame.f_code.co_filename == logging.__file__:
                frame = frame.f_back
                depth += 1

            logger.opt(depth=depth, exception=record.exc_info).log(
                level, record.getMessage()
            )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logger.debug("Standard logging intercepted.")
