"""CDK constructs for the deployment foundation."""

from .cloudfront_updater import CloudfrontUpdater
from .distribution import CloudFrontDistribution
from .lambda_deployer import LambdaDeployer
from .lambda_updater import LambdaUpdater
from .storage import ArtifactBucket

__all__ = [
  "ArtifactBucket",
  "CloudFrontDistribution",
  "CloudfrontUpdater",
  "LambdaDeployer",
  "LambdaUpdater",
]
