"""Exponential backoff retry policy built on tenacity."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from tenacity import (
  Retrying,
  before_sleep_log,
  retry_if_exception,
  stop_after_attempt,
  wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _always(_: BaseException) -> bool:
  return True


@dataclass
class RetryPolicy:
  """Run an action, retrying transient failures with doubling delays.

  With the defaults the action runs at most four times and waits 1s, 2s and
  4s between attempts. Errors rejected by ``is_retryable`` are raised
  unchanged on the first occurrence; once attempts run out tenacity's
  ``RetryError`` is raised with the last attempt attached.
  """

  max_retries: int = 3
  initial_delay: float = 1.0
  multiplier: float = 2.0
  is_retryable: Callable[[BaseException], bool] = _always
  sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

  def retrying(self) -> Retrying:
    """Fresh tenacity controller for one call."""
    return Retrying(
      stop=stop_after_attempt(self.max_retries + 1),
      wait=wait_exponential(multiplier=self.initial_delay, exp_base=self.multiplier),
      retry=retry_if_exception(self.is_retryable),
      sleep=self.sleep,
      before_sleep=before_sleep_log(logger, logging.WARNING),
    )

  def call(self, action: Callable[[], T]) -> T:
    """Invoke ``action`` under this policy.

    Raises:
      tenacity.RetryError: If the last permitted attempt still failed transiently.
    """
    return self.retrying()(action)
