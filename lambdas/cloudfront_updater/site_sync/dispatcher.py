"""Orchestrate one site sync per S3 notification."""

import logging
from contextlib import closing
from dataclasses import asdict, dataclass
from typing import Any

from .distributions import DistributionResolver
from .events import (
  destination_prefix_for,
  distribution_name_for,
  first_source_object,
  is_staged_archive,
)
from .invalidator import Invalidator
from .publisher import PrefixPublisher
from .purger import PrefixPurger
from .reader import ObjectReader
from .zip_stream import ZipExtractor

logger = logging.getLogger(__name__)

STATUS_IGNORED = "ignored"
STATUS_PUBLISHED = "published"
STATUS_EMPTY_SOURCE = "empty-source"


@dataclass
class SyncResult:
  """What one invocation did."""

  status: str
  bucket: str | None = None
  key: str | None = None
  destination_prefix: str | None = None
  distribution_name: str | None = None
  deleted: int = 0
  uploaded: int = 0
  skipped: int = 0
  distribution_id: str | None = None
  invalidation_id: str | None = None

  def to_dict(self) -> dict[str, Any]:
    return asdict(self)


class SiteSync:
  """Replace a site prefix with the contents of a staged archive.

  Purge, then extract and publish, then invalidate. Nothing is rolled back on
  failure: the next successful run purges the prefix again.
  """

  def __init__(
    self,
    *,
    reader: ObjectReader,
    purger: PrefixPurger,
    extractor: ZipExtractor,
    publisher: PrefixPublisher,
    resolver: DistributionResolver,
    invalidator: Invalidator,
  ) -> None:
    self.reader = reader
    self.purger = purger
    self.extractor = extractor
    self.publisher = publisher
    self.resolver = resolver
    self.invalidator = invalidator

  def handle(self, event: dict[str, Any]) -> SyncResult:
    """Process the first record of an S3 object-created notification."""
    source, record_count = first_source_object(event)
    if source is None:
      logger.info("Event has no records. Nothing to do.")
      return SyncResult(status=STATUS_IGNORED)
    if record_count > 1:
      logger.warning(f"Event has {record_count} records; only the first is processed")

    bucket, key = source.bucket, source.key
    logger.info(f"Processing object from bucket: {bucket}, key: {key}")

    if not is_staged_archive(key):
      logger.info(f"Object {key} is not a staged zip archive. Skipping processing.")
      return SyncResult(status=STATUS_IGNORED, bucket=bucket, key=key)

    destination = destination_prefix_for(key)
    distribution_name = distribution_name_for(destination)
    result = SyncResult(
      status=STATUS_PUBLISHED,
      bucket=bucket,
      key=key,
      destination_prefix=destination,
      distribution_name=distribution_name,
    )
    logger.info(
      f"Extracting contents to path: {destination} "
      f"for distribution: {distribution_name}"
    )

    # Trailing slash so app1/release never touches app1/release-old
    result.deleted = self.purger.purge(bucket, f"{destination}/")

    body = self.reader.open(bucket, key)
    if body is None:
      result.status = STATUS_EMPTY_SOURCE
      return result

    self._extract_and_publish(body, bucket, destination, result)

    result.distribution_id = self.resolver.resolve_id(distribution_name)
    result.invalidation_id = self.invalidator.invalidate(result.distribution_id)

    logger.info(
      f"Successfully processed and uploaded contents from S3: {bucket}/{key}"
    )
    return result

  def _extract_and_publish(
    self, body: Any, bucket: str, destination: str, result: SyncResult
  ) -> None:
    logger.info("Started unzipping and uploading process.")
    entries = 0
    with closing(body):
      for entry in self.extractor.extract(body):
        entries += 1
        if self.publisher.publish(bucket, destination, entry) is None:
          result.skipped += 1
        else:
          result.uploaded += 1

    if entries == 0:
      logger.info("Zip file is empty, no files to upload.")
    else:
      logger.info(
        f"Finished unzipping: {result.uploaded} files uploaded, "
        f"{result.skipped} entries skipped."
      )
