"""CDK stack for application functions and their code updater."""

from typing import Any

import aws_cdk as cdk
from constructs import Construct

from infrastructure.cdk_constructs import ArtifactBucket, LambdaDeployer, LambdaUpdater
from infrastructure.config import LambdaManagerConfig
from infrastructure.lambda_config import LambdaConfig


class LambdaManagerStack(cdk.Stack):
  """Function artifact bucket, configured functions, and the code updater."""

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    lambda_config: LambdaManagerConfig,
    function_configs: list[LambdaConfig],
    **kwargs: Any,
  ) -> None:
    super().__init__(scope, id, **kwargs)

    self.bucket = ArtifactBucket(
      self,
      "ArtifactBucket",
      bucket_name=lambda_config.artifact_bucket,
      removal_policy=lambda_config.removal_policy,
    )

    self.deployer = LambdaDeployer(
      self,
      "Functions",
      artifact_bucket=self.bucket.bucket,
      configs=function_configs,
    )

    self.updater = LambdaUpdater(
      self,
      "LambdaUpdater",
      bucket=self.bucket.bucket,
    )

    cdk.CfnOutput(
      self,
      "ArtifactBucketName",
      value=self.bucket.bucket.bucket_name,
      description="S3 bucket for function archives (<function-name>.zip)",
    )
