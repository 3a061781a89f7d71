"""Lambda entry point: publish a staged site archive and invalidate its CDN."""

import json
import logging
from typing import Any

from site_sync import InvalidEvent, Settings, SiteSync, SiteSyncError, build_site_sync

settings = Settings.from_env()

logger = logging.getLogger()
logger.setLevel(settings.log_level)

_site_sync: SiteSync | None = None


def get_site_sync() -> SiteSync:
  """Pipeline shared by every invocation of this warm process."""
  global _site_sync
  if _site_sync is None:
    _site_sync = build_site_sync(settings)
  return _site_sync


def _describe(event: dict[str, Any]) -> str:
  try:
    s3 = event["Records"][0]["s3"]
    return f"bucket: {s3['bucket']['name']}, key: {s3['object']['key']}"
  except (KeyError, IndexError, TypeError):
    return "unknown object"


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
  """Handle an S3 object-created notification."""
  logger.info("CloudFront updater started processing S3 event.")

  try:
    result = get_site_sync().handle(event)
  except InvalidEvent as e:
    logger.error(f"Rejected event: {e}")
    return {"statusCode": 400, "body": str(e)}
  except SiteSyncError as e:
    logger.exception(f"Error processing S3 event for {_describe(event)}: {e}")
    raise
  except Exception:
    logger.exception(f"Unknown error processing S3 event for {_describe(event)}")
    raise

  return {"statusCode": 200, "body": json.dumps(result.to_dict())}
