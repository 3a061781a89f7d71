"""S3 notification parsing and staging key conventions."""

from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote_plus

from .errors import InvalidEvent, InvalidKey

STAGING_PREFIX = "zip/"
ARCHIVE_SUFFIX = ".zip"


@dataclass(frozen=True)
class SourceObject:
  """The staged object named by a notification, with its key decoded."""

  bucket: str
  key: str


def first_source_object(event: dict[str, Any]) -> tuple[SourceObject | None, int]:
  """Return the object from ``Records[0]`` and the total record count.

  Returns ``(None, 0)`` when the event carries no records.

  Raises:
    InvalidEvent: If the first record has no bucket name or object key.
  """
  records = event.get("Records") or []
  if not records:
    return None, 0

  s3 = records[0].get("s3") or {}
  bucket = (s3.get("bucket") or {}).get("name")
  key = (s3.get("object") or {}).get("key")
  if not bucket or not key:
    raise InvalidEvent("Invalid event structure: Bucket name or key is missing.")

  return SourceObject(bucket=bucket, key=unquote_plus(key)), len(records)


def is_staged_archive(key: str) -> bool:
  """True for keys of the form ``zip/<something>.zip``."""
  return (
    key.startswith(STAGING_PREFIX)
    and key.endswith(ARCHIVE_SUFFIX)
    and len(key) > len(STAGING_PREFIX) + len(ARCHIVE_SUFFIX)
  )


def destination_prefix_for(key: str) -> str:
  """Strip ``zip/`` and ``.zip`` from a staging key.

  Raises:
    InvalidKey: If what remains is not a relative prefix without ``..``.
  """
  destination = key.removeprefix(STAGING_PREFIX).removesuffix(ARCHIVE_SUFFIX)
  if not destination or destination.startswith("/") or destination.endswith("/"):
    raise InvalidKey(f"Key {key} does not name a destination prefix")
  if ".." in destination:
    raise InvalidKey(f"Key {key} contains '..'")
  return destination


def distribution_name_for(destination_prefix: str) -> str:
  """First path segment of the destination prefix."""
  return destination_prefix.split("/", 1)[0]
