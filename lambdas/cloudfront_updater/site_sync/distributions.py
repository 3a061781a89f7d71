"""Find a CloudFront distribution by its comment."""

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from .errors import DistributionLookupFailed, DistributionNotFound, NoDistributions

logger = logging.getLogger(__name__)


class DistributionResolver:
  """Resolve logical distribution names, stored as comments, to ids."""

  def __init__(self, cloudfront_client: Any) -> None:
    self.cloudfront = cloudfront_client

  def list_distributions(self) -> list[dict[str, Any]]:
    """Every distribution summary in the account, across all pages."""
    paginator = self.cloudfront.get_paginator("list_distributions")
    items: list[dict[str, Any]] = []
    for page in paginator.paginate():
      items.extend(page.get("DistributionList", {}).get("Items", []))
    return items

  def resolve_id(self, name: str) -> str:
    """Return the id of the distribution whose comment equals ``name``.

    When several distributions share the comment the first one listed wins.

    Raises:
      NoDistributions: If the account has no distributions.
      DistributionNotFound: If no comment matches.
      DistributionLookupFailed: If listing fails.
    """
    try:
      distributions = self.list_distributions()
    except (ClientError, BotoCoreError) as e:
      logger.error(f"Error retrieving distribution ID for {name}: {e}")
      raise DistributionLookupFailed(f"Could not list distributions: {e}") from e

    if not distributions:
      logger.error(f"Error retrieving distribution ID for {name}: no distributions")
      raise NoDistributions()

    matches = [d for d in distributions if d.get("Comment") == name and d.get("Id")]
    if not matches:
      logger.error(f"No distribution found with the name: {name}")
      raise DistributionNotFound(name)

    if len(matches) > 1:
      ids = ", ".join(d["Id"] for d in matches)
      logger.warning(f"Distributions {ids} all carry the comment {name}; using the first")

    distribution_id: str = matches[0]["Id"]
    logger.info(f"Resolved distribution {name} to {distribution_id}")
    return distribution_id
