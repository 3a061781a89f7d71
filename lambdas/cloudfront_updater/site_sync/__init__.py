"""Publish zipped static sites from S3 and invalidate their distributions."""

from .clients import cloudfront_client, s3_client
from .dispatcher import SiteSync, SyncResult
from .distributions import DistributionResolver
from .errors import (
  DistributionLookupFailed,
  DistributionNotFound,
  InvalidationFailed,
  InvalidEvent,
  InvalidKey,
  MalformedArchive,
  NoDistributions,
  PurgeFailed,
  SiteSyncError,
  SourceReadFailed,
  UploadFailed,
)
from .invalidator import Invalidator, is_transient
from .publisher import PrefixPublisher
from .purger import PrefixPurger
from .reader import ObjectReader
from .retry import RetryPolicy
from .settings import Settings
from .zip_stream import EntryType, ZipEntry, ZipExtractor


def build_site_sync(settings: Settings) -> SiteSync:
  """Wire the pipeline with process-scoped clients."""
  s3 = s3_client(settings.region)
  cloudfront = cloudfront_client(settings.region)
  return SiteSync(
    reader=ObjectReader(s3),
    purger=PrefixPurger(s3, max_workers=settings.purge_workers),
    extractor=ZipExtractor(),
    publisher=PrefixPublisher(s3),
    resolver=DistributionResolver(cloudfront),
    invalidator=Invalidator(
      cloudfront,
      RetryPolicy(
        max_retries=settings.invalidation_retries,
        initial_delay=settings.backoff_seconds,
        is_retryable=is_transient,
      ),
    ),
  )


__all__ = [
  "DistributionLookupFailed",
  "DistributionNotFound",
  "DistributionResolver",
  "EntryType",
  "InvalidEvent",
  "InvalidKey",
  "InvalidationFailed",
  "Invalidator",
  "MalformedArchive",
  "NoDistributions",
  "ObjectReader",
  "PrefixPublisher",
  "PrefixPurger",
  "PurgeFailed",
  "RetryPolicy",
  "Settings",
  "SiteSync",
  "SiteSyncError",
  "SourceReadFailed",
  "SyncResult",
  "UploadFailed",
  "ZipEntry",
  "ZipExtractor",
  "build_site_sync",
]
