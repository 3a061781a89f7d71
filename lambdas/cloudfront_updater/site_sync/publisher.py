"""Upload extracted archive members under a destination prefix."""

import logging
import mimetypes
from typing import Any

from boto3.exceptions import Boto3Error
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import BotoCoreError, ClientError

from .errors import UploadFailed
from .events import STAGING_PREFIX
from .zip_stream import ZipEntry

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Web assets whose registered type differs between Python releases
WEB_CONTENT_TYPES = {
  ".js": "application/javascript",
  ".mjs": "application/javascript",
  ".json": "application/json",
  ".map": "application/json",
  ".webmanifest": "application/manifest+json",
  ".wasm": "application/wasm",
  ".svg": "image/svg+xml",
  ".webp": "image/webp",
  ".avif": "image/avif",
  ".ico": "image/vnd.microsoft.icon",
  ".woff": "font/woff",
  ".woff2": "font/woff2",
  ".ttf": "font/ttf",
  ".otf": "font/otf",
}

_mime_types = mimetypes.MimeTypes()
for _extension, _content_type in WEB_CONTENT_TYPES.items():
  _mime_types.add_type(_content_type, _extension)


def content_type_for(path: str) -> str:
  """MIME type for a file path, falling back to application/octet-stream."""
  content_type, _ = _mime_types.guess_type(path, strict=False)
  return content_type or DEFAULT_CONTENT_TYPE


def relative_key(entry_path: str) -> str:
  """Path inside the archive minus ``zip/`` and the top-level folder."""
  relative = entry_path.removeprefix(STAGING_PREFIX)
  _, separator, rest = relative.partition("/")
  return rest if separator else relative


class PrefixPublisher:
  """Upload file members one at a time, streaming each body to S3."""

  def __init__(self, s3_client: Any, transfer_config: TransferConfig | None = None) -> None:
    self.s3 = s3_client
    # Sequential parts keep exactly one member in flight
    self.transfer_config = transfer_config or TransferConfig(use_threads=False)

  def publish(self, bucket: str, destination_prefix: str, entry: ZipEntry) -> str | None:
    """Upload one member and return its key, or None when it was skipped.

    Raises:
      UploadFailed: If the upload request fails. The member is drained first.
    """
    if not entry.is_file:
      entry.drain()
      logger.info(f"Skipped directory: {entry.path}")
      return None

    relative = relative_key(entry.path)
    if not relative:
      entry.drain()
      logger.warning(f"Skipped member with no path below its top-level folder: {entry.path}")
      return None

    final_key = f"{destination_prefix}/{relative}"
    content_type = content_type_for(relative)

    try:
      self.s3.upload_fileobj(
        entry.body,
        bucket,
        final_key,
        ExtraArgs={"ContentType": content_type},
        Config=self.transfer_config,
      )
    except (ClientError, BotoCoreError, Boto3Error) as e:
      logger.error(f"Error uploading file {entry.path} to {final_key} in bucket {bucket}: {e}")
      entry.drain()
      raise UploadFailed(final_key) from e

    entry.drain()
    logger.info(f"Uploaded file {final_key} with Content-Type: {content_type}")
    return final_key
