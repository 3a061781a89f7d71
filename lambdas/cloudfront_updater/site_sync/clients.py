"""Process-scoped AWS clients, reused across warm invocations."""

from functools import lru_cache
from typing import Any

import boto3
from botocore.config import Config


@lru_cache(maxsize=None)
def s3_client(region: str) -> Any:
  """S3 client for object reads, listings, deletes and uploads."""
  return boto3.client("s3", region_name=region)


@lru_cache(maxsize=None)
def cloudfront_client(region: str) -> Any:
  """CloudFront client with botocore retries off.

  Invalidation retries are owned by the pipeline's RetryPolicy.
  """
  return boto3.client(
    "cloudfront",
    region_name=region,
    config=Config(retries={"max_attempts": 1, "mode": "standard"}),
  )
