"""Configuration loader for the deployment foundation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from aws_cdk import RemovalPolicy

REMOVAL_POLICIES = {
  "retain": RemovalPolicy.RETAIN,
  "destroy": RemovalPolicy.DESTROY,
  "snapshot": RemovalPolicy.SNAPSHOT,
}


def parse_removal_policy(value: str | None, default: RemovalPolicy) -> RemovalPolicy:
  """Convert a removal policy string to the CDK enum."""
  if value is None:
    return default
  return REMOVAL_POLICIES.get(value.lower(), default)


@dataclass
class DistributionConfig:
  """A CloudFront distribution serving one prefix of the site bucket.

  The name is both the origin path and the distribution comment, and must
  match the folder that site archives are staged under (zip/<name>/...).
  """

  name: str
  default_root_object: str = "index.html"
  compress: bool = True


@dataclass
class CloudfrontManagerConfig:
  """Configuration for the site artifact bucket and its distributions."""

  artifact_bucket: str = "cloudfront-artifact-bucket"
  removal_policy: RemovalPolicy = RemovalPolicy.DESTROY
  distributions: list[DistributionConfig] = field(default_factory=list)
  region: str = "us-east-1"


@dataclass
class LambdaManagerConfig:
  """Configuration for the function artifact bucket and deployer."""

  artifact_bucket: str = "sg-lambda-artifact-bucket"
  config_dir: str = "config/lambda"
  removal_policy: RemovalPolicy = RemovalPolicy.DESTROY
  region: str = "us-east-1"


@dataclass
class Config:
  """Foundation configuration."""

  lambda_manager: LambdaManagerConfig = field(default_factory=LambdaManagerConfig)
  cloudfront_manager: CloudfrontManagerConfig = field(
    default_factory=CloudfrontManagerConfig
  )

  @classmethod
  def from_yaml(cls, path: Path | str = "foundation.yaml") -> "Config":
    """Load configuration from YAML file."""
    with open(path) as f:
      data: dict[str, Any] = yaml.safe_load(f) or {}

    defaults = data.get("defaults", {})

    # Merge defaults with section-specific config
    lambda_data = {**defaults, **(data.get("lambda_manager") or {})}
    lambda_manager = LambdaManagerConfig(
      artifact_bucket=lambda_data.get("artifact_bucket", "sg-lambda-artifact-bucket"),
      config_dir=lambda_data.get("config_dir", "config/lambda"),
      removal_policy=parse_removal_policy(
        lambda_data.get("removal_policy"), RemovalPolicy.DESTROY
      ),
      region=lambda_data.get("region", "us-east-1"),
    )

    cloudfront_data = {**defaults, **(data.get("cloudfront_manager") or {})}
    distributions: list[DistributionConfig] = []
    for dist_data in cloudfront_data.get("distributions", []):
      distributions.append(
        DistributionConfig(
          name=dist_data["name"],
          default_root_object=dist_data.get("default_root_object", "index.html"),
          compress=dist_data.get("compress", True),
        )
      )

    names = [d.name for d in distributions]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
      # Distributions are looked up by comment, which must be unique
      raise ValueError(f"Duplicate distribution names: {', '.join(duplicates)}")

    cloudfront_manager = CloudfrontManagerConfig(
      artifact_bucket=cloudfront_data.get("artifact_bucket", "cloudfront-artifact-bucket"),
      removal_policy=parse_removal_policy(
        cloudfront_data.get("removal_policy"), RemovalPolicy.DESTROY
      ),
      distributions=distributions,
      region=cloudfront_data.get("region", "us-east-1"),
    )

    return cls(lambda_manager=lambda_manager, cloudfront_manager=cloudfront_manager)
