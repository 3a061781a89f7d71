#!/usr/bin/env python3
"""CDK application entry point for the deployment foundation."""

import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

import aws_cdk as cdk
import boto3

from infrastructure.config import Config
from infrastructure.lambda_config import load_lambda_configs
from infrastructure.stacks import CloudfrontManagerStack, LambdaManagerStack


def get_account_id() -> str:
  """Get AWS account ID from current credentials."""
  sts = boto3.client("sts")
  return str(sts.get_caller_identity()["Account"])


def main() -> None:
  """Create CDK app with the Lambda manager and CloudFront manager stacks."""
  app = cdk.App()

  # Load configuration
  config_path = app.node.try_get_context("config") or "foundation.yaml"
  config = Config.from_yaml(Path(config_path))

  # Function configs are resolved relative to the foundation config
  config_dir = Path(config_path).parent / config.lambda_manager.config_dir
  function_configs = load_lambda_configs(config_dir)

  # VPC lookups in function configs need an explicit account
  account_id = get_account_id()

  LambdaManagerStack(
    app,
    "lambda-manager-stack",
    lambda_config=config.lambda_manager,
    function_configs=function_configs,
    env=cdk.Environment(
      account=account_id,
      region=config.lambda_manager.region,
    ),
    description="Application functions and the lambda-updater",
  )

  CloudfrontManagerStack(
    app,
    "cloudfront-manager-stack",
    cloudfront_config=config.cloudfront_manager,
    env=cdk.Environment(
      account=account_id,
      region=config.cloudfront_manager.region,
    ),
    description="Static site distributions and the cloudfront-updater",
  )

  app.synth()


if __name__ == "__main__":
  main()
