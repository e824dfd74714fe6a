import sys

from loguru import logger

from quizbank.core.config import settings


def setup_logging(level: str | None = None) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.LOG_LEVEL).upper(),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {name}:{line} | {message}",
    )
