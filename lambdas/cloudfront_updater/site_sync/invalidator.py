"""CloudFront cache invalidation with bounded retry."""

import itertools
import logging
import time
from collections.abc import Callable
from typing import Any

from botocore.exceptions import (
  BotoCoreError,
  ClientError,
  ConnectionClosedError,
  ConnectTimeoutError,
  EndpointConnectionError,
  ReadTimeoutError,
)
from tenacity import RetryError

from .errors import InvalidationFailed
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

INVALIDATION_PATHS = ["/*"]

TRANSIENT_ERROR_CODES = {
  "Throttling",
  "ThrottlingException",
  "TooManyRequestsException",
  "TooManyInvalidationsInProgress",
  "ServiceUnavailable",
  "InternalError",
  "InternalFailure",
  "RequestTimeout",
  "RequestTimeoutException",
}

_sequence = itertools.count()


def caller_reference(clock: Callable[[], int] = time.time_ns) -> str:
  """Unique token per call in this process: nanosecond clock plus a counter."""
  return f"{clock()}-{next(_sequence)}"


def is_transient(error: Exception) -> bool:
  """True for throttling, server-side and connection errors."""
  if isinstance(
    error,
    (EndpointConnectionError, ConnectionClosedError, ConnectTimeoutError, ReadTimeoutError),
  ):
    return True
  if isinstance(error, ClientError):
    code = error.response.get("Error", {}).get("Code", "")
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    return code in TRANSIENT_ERROR_CODES or status >= 500
  return False


class Invalidator:
  """Invalidate every path of a distribution."""

  def __init__(
    self,
    cloudfront_client: Any,
    retry_policy: RetryPolicy | None = None,
    clock: Callable[[], int] = time.time_ns,
  ) -> None:
    self.cloudfront = cloudfront_client
    self.retry_policy = retry_policy or RetryPolicy(is_retryable=is_transient)
    self.clock = clock

  def invalidate(self, distribution_id: str) -> str:
    """Create a ``/*`` invalidation and return its id.

    Raises:
      InvalidationFailed: On a non-retryable error or once retries run out.
    """
    batch = {
      "CallerReference": caller_reference(self.clock),
      "Paths": {
        "Quantity": len(INVALIDATION_PATHS),
        "Items": list(INVALIDATION_PATHS),
      },
    }

    def submit() -> str:
      response = self.cloudfront.create_invalidation(
        DistributionId=distribution_id,
        InvalidationBatch=batch,
      )
      invalidation_id: str = response["Invalidation"]["Id"]
      return invalidation_id

    try:
      invalidation_id = self.retry_policy.call(submit)
    except RetryError as e:
      last = e.last_attempt
      logger.error(
        f"Invalidation of {distribution_id} failed after {last.attempt_number} attempts: "
        f"{last.exception()}"
      )
      raise InvalidationFailed(distribution_id) from last.exception()
    except (ClientError, BotoCoreError) as e:
      logger.error(f"Invalidation of {distribution_id} failed with a non-retryable error: {e}")
      raise InvalidationFailed(distribution_id) from e

    logger.info(f"CloudFront invalidation created with ID: {invalidation_id}")
    return invalidation_id
