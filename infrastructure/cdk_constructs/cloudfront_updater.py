"""Lambda that publishes staged site archives and invalidates CloudFront."""

from pathlib import Path

from aws_cdk import BundlingOptions, Duration
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as lambda_
from aws_cdk import aws_s3 as s3
from aws_cdk import aws_s3_notifications as s3n
from constructs import Construct

LAMBDAS_DIR = Path(__file__).parent.parent.parent / "lambdas"

STAGING_PREFIX = "zip/"
ARCHIVE_SUFFIX = ".zip"


class CloudfrontUpdater(Construct):
  """Lambda triggered by zip uploads under ``zip/`` in the artifact bucket.

  Each archive replaces the prefix it names and the matching distribution is
  invalidated once the upload completes.
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    bucket: s3.IBucket,
    function_name: str = "cloudfront-updater",
    memory_size: int = 1024,
    timeout: Duration = Duration.minutes(5),
  ) -> None:
    super().__init__(scope, id)

    self.handler = lambda_.Function(
      self,
      "Handler",
      function_name=function_name,
      runtime=lambda_.Runtime.PYTHON_3_12,
      handler="index.handler",
      code=lambda_.Code.from_asset(
        str(LAMBDAS_DIR / "cloudfront_updater"),
        exclude=["__pycache__", "*.pyc"],
        bundling=BundlingOptions(
          image=lambda_.Runtime.PYTHON_3_12.bundling_image,
          command=[
            "bash",
            "-c",
            "pip install -r requirements.txt -t /asset-output && cp -au . /asset-output",
          ],
        ),
      ),
      memory_size=memory_size,
      timeout=timeout,
      environment={
        "LOG_LEVEL": "INFO",
      },
    )

    # Distributions are resolved by comment, so listing needs all resources
    self.handler.add_to_role_policy(
      iam.PolicyStatement(
        actions=[
          "cloudfront:ListDistributions",
          "cloudfront:CreateInvalidation",
        ],
        resources=["*"],
      )
    )

    # Read the archive, purge and rewrite the destination prefix
    bucket.grant_read_write(self.handler)

    bucket.add_event_notification(
      s3.EventType.OBJECT_CREATED,
      s3n.LambdaDestination(self.handler),
      s3.NotificationKeyFilter(prefix=STAGING_PREFIX, suffix=ARCHIVE_SUFFIX),
    )
