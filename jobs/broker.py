"""
Dramatiq broker configuration.

Redis-based message broker for order lifecycle tasks.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from app.config.logging import setup_logging
from app.config.settings import settings
from app.utils.exceptions import SystemFailure, is_repository_error


MAX_TASK_RETRIES = 3

setup_logging(settings.log_level, settings.log_file)


def should_retry(retries_so_far: int, exception: BaseException) -> bool:
    """
    Retry only failures where a retry may help.

    Business errors (invalid transition, not found) are final.
    """
    if retries_so_far >= MAX_TASK_RETRIES:
        return False
    return isinstance(exception, SystemFailure) or is_repository_error(exception)


redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password if settings.redis_password else None,
    db=settings.redis_db,
)

# ShutdownNotifications: lets workers finish gracefully
# CurrentMessage: gives actors access to the message being processed
# Retries: exponential backoff, system failures only
redis_broker.add_middleware(ShutdownNotifications())
redis_broker.add_middleware(CurrentMessage())
redis_broker.add_middleware(
    Retries(
        max_retries=MAX_TASK_RETRIES,
        min_backoff=1000,  # 1 second
        max_backoff=60000,  # 1 minute
        retry_when=should_retry,
    )
)

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(
    f"Dramatiq broker initialized: "
    f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
)
