"""Delete everything under an S3 prefix."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from .errors import PurgeFailed

logger = logging.getLogger(__name__)

# DeleteObjects accepts at most this many keys per request
MAX_DELETE_BATCH = 1000


def chunked(keys: list[str], size: int = MAX_DELETE_BATCH) -> list[list[str]]:
  """Split keys into consecutive batches of at most ``size``."""
  return [keys[i : i + size] for i in range(0, len(keys), size)]


class PrefixPurger:
  """List and bulk-delete the objects under a prefix, one page at a time."""

  def __init__(self, s3_client: Any, max_workers: int = 8) -> None:
    self.s3 = s3_client
    self.max_workers = max_workers

  def purge(self, bucket: str, prefix: str) -> int:
    """Delete every key starting with ``prefix`` and return how many were removed.

    Delete batches of a listing page run concurrently; the next page is only
    requested once they have all completed.

    Raises:
      PurgeFailed: If listing or any delete request fails.
    """
    logger.info(f"Purging s3://{bucket}/{prefix}")
    total_deleted = 0

    try:
      paginator = self.s3.get_paginator("list_objects_v2")
      with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
          keys = [item["Key"] for item in page.get("Contents", [])]
          if not keys:
            continue

          futures = [
            executor.submit(self._delete_batch, bucket, batch)
            for batch in chunked(keys)
          ]
          # Join every batch of this page before listing the next one
          errors = [error for future in futures for error in future.result()]
          if errors:
            first = errors[0]
            detail = (
              f"{len(errors)} keys not deleted, first {first.get('Key')}: "
              f"{first.get('Code')} {first.get('Message', '')}"
            )
            logger.error(f"Error deleting path from S3 bucket: {bucket}: {detail}")
            raise PurgeFailed(bucket, prefix, detail.strip())
          total_deleted += len(keys)
    except (ClientError, BotoCoreError) as e:
      logger.error(f"Error deleting path from S3 bucket: {bucket}: {e}")
      raise PurgeFailed(bucket, prefix, str(e)) from e

    logger.info(f"Deleted {total_deleted} objects from s3://{bucket}/{prefix}")
    return total_deleted

  def _delete_batch(self, bucket: str, keys: list[str]) -> list[dict[str, Any]]:
    response = self.s3.delete_objects(
      Bucket=bucket,
      Delete={
        "Objects": [{"Key": key} for key in keys],
        "Quiet": True,
      },
    )
    # Quiet mode still reports keys that could not be deleted
    return list(response.get("Errors", []))
