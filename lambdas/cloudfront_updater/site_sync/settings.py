"""Runtime settings read from the Lambda environment."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_REGION = "us-east-1"


@dataclass(frozen=True)
class Settings:
  """Settings for one warm Lambda process."""

  region: str = DEFAULT_REGION
  log_level: str = "INFO"
  purge_workers: int = 8
  invalidation_retries: int = 3
  backoff_seconds: float = 1.0

  @classmethod
  def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
    """Build settings from environment variables.

    Raises:
      ValueError: If a numeric variable cannot be parsed or is out of range.
    """
    env = os.environ if environ is None else environ

    region = env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION") or DEFAULT_REGION
    purge_workers = int(env.get("SITE_SYNC_PURGE_WORKERS", "8"))
    retries = int(env.get("SITE_SYNC_INVALIDATION_RETRIES", "3"))
    backoff = float(env.get("SITE_SYNC_BACKOFF_SECONDS", "1.0"))

    if purge_workers < 1:
      raise ValueError("SITE_SYNC_PURGE_WORKERS must be at least 1")
    if retries < 0:
      raise ValueError("SITE_SYNC_INVALIDATION_RETRIES must not be negative")
    if backoff < 0:
      raise ValueError("SITE_SYNC_BACKOFF_SECONDS must not be negative")

    return cls(
      region=region,
      log_level=env.get("LOG_LEVEL", "INFO").upper(),
      purge_workers=purge_workers,
      invalidation_retries=retries,
      backoff_seconds=backoff,
    )
