"""Streaming reads of staged archives."""

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from .errors import SourceReadFailed

logger = logging.getLogger(__name__)


class ObjectReader:
  """Open S3 objects as lazily consumed byte streams."""

  def __init__(self, s3_client: Any) -> None:
    self.s3 = s3_client

  def open(self, bucket: str, key: str) -> Any | None:
    """Return the unread body of ``s3://bucket/key``, or None if it has none."""
    logger.info(f"Opening s3://{bucket}/{key}")
    try:
      response = self.s3.get_object(Bucket=bucket, Key=key)
    except (ClientError, BotoCoreError) as e:
      logger.error(f"Error reading s3://{bucket}/{key}: {e}")
      raise SourceReadFailed(bucket, key) from e

    body = response.get("Body")
    if body is None:
      logger.warning(f"No readable stream found in object {key}. Skipping processing.")
      return None
    return body
