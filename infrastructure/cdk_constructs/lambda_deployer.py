"""Provision functions described by JSON configuration files."""

import logging

from aws_cdk import Duration
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as lambda_
from aws_cdk import aws_logs as logs
from aws_cdk import aws_s3 as s3
from constructs import Construct

from infrastructure.lambda_config import LambdaConfig, resolve_runtime

logger = logging.getLogger(__name__)


RETENTION_BY_DAYS = {
  1: logs.RetentionDays.ONE_DAY,
  3: logs.RetentionDays.THREE_DAYS,
  5: logs.RetentionDays.FIVE_DAYS,
  7: logs.RetentionDays.ONE_WEEK,
  14: logs.RetentionDays.TWO_WEEKS,
  30: logs.RetentionDays.ONE_MONTH,
  60: logs.RetentionDays.TWO_MONTHS,
  90: logs.RetentionDays.THREE_MONTHS,
  120: logs.RetentionDays.FOUR_MONTHS,
  150: logs.RetentionDays.FIVE_MONTHS,
  180: logs.RetentionDays.SIX_MONTHS,
  365: logs.RetentionDays.ONE_YEAR,
  400: logs.RetentionDays.THIRTEEN_MONTHS,
  545: logs.RetentionDays.EIGHTEEN_MONTHS,
  731: logs.RetentionDays.TWO_YEARS,
  1827: logs.RetentionDays.FIVE_YEARS,
  3653: logs.RetentionDays.TEN_YEARS,
}


def retention_for(days: int) -> logs.RetentionDays:
  """Smallest supported log retention of at least ``days`` days."""
  for supported_days in sorted(RETENTION_BY_DAYS):
    if supported_days >= days:
      return RETENTION_BY_DAYS[supported_days]
  return logs.RetentionDays.INFINITE


class LambdaDeployer(Construct):
  """One Lambda function per configuration, with code from the artifact bucket."""

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    artifact_bucket: s3.IBucket,
    configs: list[LambdaConfig],
  ) -> None:
    super().__init__(scope, id)

    self.functions: dict[str, lambda_.Function] = {}

    if not configs:
      logger.warning(
        "No valid Lambda configuration files found. Skipping deployment of lambdas. "
        "Add a configuration file to the config/lambda directory to deploy lambdas."
      )
      return

    for config in configs:
      self.functions[config.function_name] = self._deploy(artifact_bucket, config)

  def _deploy(self, bucket: s3.IBucket, config: LambdaConfig) -> lambda_.Function:
    name = config.function_name

    vpc = None
    if config.vpc:
      vpc = ec2.Vpc.from_lookup(self, f"{name}-vpc", vpc_id=config.vpc)

    security_groups = [
      ec2.SecurityGroup.from_security_group_id(self, f"{name}-sg-{sg_id}", sg_id)
      for sg_id in config.security_groups
    ]

    role = None
    if config.role_arn:
      role = iam.Role.from_role_arn(self, f"{name}-role", config.role_arn)

    log_group = None
    if config.log_retention:
      log_group = logs.LogGroup(
        self,
        f"{name}-logs",
        log_group_name=f"/aws/lambda/{name}",
        retention=retention_for(config.log_retention),
      )

    return lambda_.Function(
      self,
      name,
      function_name=name,
      runtime=resolve_runtime(config.runtime),
      handler=config.handler,
      code=lambda_.Code.from_bucket(bucket, config.s3_key),
      description=config.description,
      memory_size=config.memory_size,
      environment=config.environment or None,
      timeout=Duration.seconds(config.timeout) if config.timeout else None,
      vpc=vpc,
      security_groups=security_groups or None,
      role=role,
      log_group=log_group,
    )
