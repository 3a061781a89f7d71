"""CDK stack for static site distributions and their updater."""

from typing import Any

import aws_cdk as cdk
from aws_cdk import aws_cloudfront as cloudfront
from constructs import Construct

from infrastructure.cdk_constructs import (
  ArtifactBucket,
  CloudFrontDistribution,
  CloudfrontUpdater,
)
from infrastructure.config import CloudfrontManagerConfig


class CloudfrontManagerStack(cdk.Stack):
  """Site artifact bucket, one distribution per site, and the site updater.

  Uploading ``zip/<name>/<release>.zip`` publishes the archive under
  ``<name>/<release>/`` and invalidates the distribution commented ``<name>``.
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    cloudfront_config: CloudfrontManagerConfig,
    **kwargs: Any,
  ) -> None:
    super().__init__(scope, id, **kwargs)

    self.bucket = ArtifactBucket(
      self,
      "ArtifactBucket",
      bucket_name=cloudfront_config.artifact_bucket,
      removal_policy=cloudfront_config.removal_policy,
    )

    # Shared identity so distributions can read the private bucket
    self.origin_access_identity = cloudfront.OriginAccessIdentity(
      self,
      "OriginAccessIdentity",
      comment="OAI for CloudFront updater to access S3",
    )

    self.distributions: dict[str, CloudFrontDistribution] = {}
    for dist_config in cloudfront_config.distributions:
      distribution = CloudFrontDistribution(
        self,
        f"{dist_config.name}-distribution",
        bucket=self.bucket.bucket,
        origin_access_identity=self.origin_access_identity,
        name=dist_config.name,
        default_root_object=dist_config.default_root_object,
        compress=dist_config.compress,
      )
      self.distributions[dist_config.name] = distribution

      cdk.CfnOutput(
        self,
        f"{dist_config.name}-distribution-domain",
        value=distribution.distribution.distribution_domain_name,
        description=f"CloudFront domain name for {dist_config.name}",
      )

    self.updater = CloudfrontUpdater(
      self,
      "CloudfrontUpdater",
      bucket=self.bucket.bucket,
    )

    cdk.CfnOutput(
      self,
      "ArtifactBucketName",
      value=self.bucket.bucket.bucket_name,
      description="S3 bucket for site archives (upload to zip/<distribution>/)",
    )
