"""Bounded retry with linear backoff"""
from typing import Callable, Tuple, Type, TypeVar
import logging
import time

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_operation(operation: Callable[[], T], attempts: int = 3, base_delay: float = 1.0,
                    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
                    sleep: Callable[[float], None] = time.sleep) -> T:
    """
    Run operation, retrying on the given exceptions
    Waits base_delay * attempt between tries and re-raises the last error
    """
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except retry_on as e:
            if attempt == attempts:
                logger.error(f"Giving up after {attempts} attempts: {e}")
                raise
            logger.warning(f"Attempt {attempt}/{attempts} failed: {e}")
            sleep(base_delay * attempt)
