"""Повторные чтения для обработчиков бота

Ядро бронирования никогда не повторяет операции само. Бот повторяет
только чтения (дни, слоты), когда БД занята записью другого клиента
дольше таймаута блокировки. Запись брони не повторяется: клиент
видит ошибку и решает сам.
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Iterator

from config import DB_RETRY_ATTEMPTS, DB_RETRY_DELAY
from services.exceptions import PersistenceUnavailable


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = DB_RETRY_ATTEMPTS
    delay: float = DB_RETRY_DELAY
    backoff: float = 2.0
    max_delay: float = 2.0

    def pauses(self) -> Iterator[float]:
        """Паузы между попытками (на одну меньше, чем попыток)"""
        pause = self.delay
        for _ in range(self.attempts - 1):
            yield min(pause, self.max_delay)
            pause *= self.backoff


READ_POLICY = RetryPolicy()


def async_retry(policy: RetryPolicy = READ_POLICY):
    """Повтор корутины при PersistenceUnavailable по политике"""

    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt, pause in enumerate(policy.pauses(), start=1):
                try:
                    return await func(*args, **kwargs)
                except PersistenceUnavailable as e:
                    logging.warning(
                        f"{func.__name__}: storage busy (attempt {attempt}/{policy.attempts}), "
                        f"retry in {pause:.2f}s: {e}"
                    )
                    await asyncio.sleep(pause)

            # Последняя попытка: ошибка уходит вызывающему
            return await func(*args, **kwargs)

        return wrapper

    return decorator
