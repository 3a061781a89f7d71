"""Exceptions raised by the site sync pipeline."""


class SiteSyncError(Exception):
  """Base class for every failure the pipeline reports."""


class InvalidEvent(SiteSyncError):
  """The notification is missing its record, bucket or key."""


class InvalidKey(SiteSyncError):
  """The staging key does not map to a usable destination prefix."""


class SourceReadFailed(SiteSyncError):
  """The staged archive could not be opened."""

  def __init__(self, bucket: str, key: str) -> None:
    super().__init__(f"Could not read s3://{bucket}/{key}")
    self.bucket = bucket
    self.key = key


class MalformedArchive(SiteSyncError):
  """The archive stream is not a zip file this extractor can read."""


class UploadFailed(SiteSyncError):
  """A single extracted file could not be uploaded."""

  def __init__(self, key: str) -> None:
    super().__init__(f"Upload failed for {key}")
    self.key = key


class PurgeFailed(SiteSyncError):
  """Listing or bulk deletion under a prefix failed."""

  def __init__(self, bucket: str, prefix: str, detail: str = "") -> None:
    message = f"Failed to purge s3://{bucket}/{prefix}"
    if detail:
      message = f"{message}: {detail}"
    super().__init__(message)
    self.bucket = bucket
    self.prefix = prefix


class DistributionLookupFailed(SiteSyncError):
  """No distribution id could be resolved for a logical name."""


class NoDistributions(DistributionLookupFailed):
  """The account has no distributions at all."""

  def __init__(self) -> None:
    super().__init__("No CloudFront distributions found for this account")


class DistributionNotFound(DistributionLookupFailed):
  """No distribution carries the requested comment."""

  def __init__(self, name: str) -> None:
    super().__init__(f"No distribution found with the name: {name}")
    self.name = name


class InvalidationFailed(SiteSyncError):
  """The invalidation request failed for good."""

  def __init__(self, distribution_id: str) -> None:
    super().__init__(f"Invalidation failed for distribution {distribution_id}")
    self.distribution_id = distribution_id
