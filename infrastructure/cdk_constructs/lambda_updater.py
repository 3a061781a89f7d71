"""Lambda that redeploys function code when a new artifact lands."""

from aws_cdk import Duration, Stack
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as lambda_
from aws_cdk import aws_s3 as s3
from aws_cdk import aws_s3_notifications as s3n
from constructs import Construct

from .cloudfront_updater import LAMBDAS_DIR


class LambdaUpdater(Construct):
  """Lambda triggered by every object created in the function artifact bucket.

  The artifact's file name (``my-fn.zip``) names the function to update.
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    bucket: s3.IBucket,
    function_name: str = "lambda-updater",
    memory_size: int = 1024,
  ) -> None:
    super().__init__(scope, id)

    stack = Stack.of(self)

    self.handler = lambda_.Function(
      self,
      "Handler",
      function_name=function_name,
      runtime=lambda_.Runtime.PYTHON_3_12,
      handler="code_updater.handler",
      code=lambda_.Code.from_asset(
        str(LAMBDAS_DIR / "lambda_updater"),
        exclude=["__pycache__", "*.pyc"],
      ),
      memory_size=memory_size,
      timeout=Duration.minutes(1),
      environment={
        "AWS_ACCOUNT_ID": stack.account,
      },
    )

    self.handler.add_to_role_policy(
      iam.PolicyStatement(
        actions=[
          "lambda:UpdateFunctionCode",
          "lambda:GetFunction",
        ],
        resources=[f"arn:aws:lambda:{stack.region}:{stack.account}:function:*"],
      )
    )

    bucket.grant_read(self.handler)

    bucket.add_event_notification(
      s3.EventType.OBJECT_CREATED,
      s3n.LambdaDestination(self.handler),
    )
