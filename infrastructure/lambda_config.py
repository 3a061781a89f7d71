"""JSON function descriptions consumed by the function deployer."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from aws_cdk import aws_lambda as lambda_

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("functionName", "handler", "runtime", "s3Key")


class LambdaConfigError(ValueError):
  """A function description is missing keys or names an unknown runtime."""


def resolve_runtime(name: str) -> lambda_.Runtime:
  """Map a runtime name such as ``PYTHON_3_12`` to ``aws_lambda.Runtime``."""
  runtime = getattr(lambda_.Runtime, name, None) if name.isupper() else None
  if not isinstance(runtime, lambda_.Runtime):
    raise LambdaConfigError(f"Invalid runtime specified: {name}")
  return runtime


@dataclass
class LambdaConfig:
  """One function to provision from the artifact bucket."""

  function_name: str
  handler: str
  runtime: str
  s3_key: str
  description: str | None = None
  memory_size: int | None = None
  environment: dict[str, str] = field(default_factory=dict)
  timeout: int | None = None
  vpc: str | None = None
  security_groups: list[str] = field(default_factory=list)
  role_arn: str | None = None
  log_retention: int | None = None

  @classmethod
  def from_dict(cls, data: dict[str, Any], source: str = "<dict>") -> "LambdaConfig":
    """Validate and convert one parsed JSON document."""
    missing = [key for key in REQUIRED_KEYS if not data.get(key)]
    if missing:
      raise LambdaConfigError(f"{source}: missing required keys: {', '.join(missing)}")

    environment = data.get("environment") or {}
    if not isinstance(environment, dict) or not all(
      isinstance(k, str) and isinstance(v, str) for k, v in environment.items()
    ):
      raise LambdaConfigError(f"{source}: environment must map strings to strings")

    # Fail on the runtime here rather than mid-synth
    resolve_runtime(data["runtime"])

    return cls(
      function_name=data["functionName"],
      handler=data["handler"],
      runtime=data["runtime"],
      s3_key=data["s3Key"],
      description=data.get("description"),
      memory_size=data.get("memorySize"),
      environment=dict(environment),
      timeout=data.get("timeout"),
      vpc=data.get("vpc"),
      security_groups=list(data.get("securityGroups") or []),
      role_arn=data.get("roleArn"),
      log_retention=data.get("logRetention"),
    )


def load_lambda_configs(config_dir: Path | str) -> list[LambdaConfig]:
  """Load every enabled ``*.json`` description in ``config_dir``.

  Files with ``disabled`` anywhere in their name are skipped.
  """
  directory = Path(config_dir)
  if not directory.is_dir():
    logger.info(f"Lambda config directory {directory} does not exist")
    return []

  configs: list[LambdaConfig] = []
  for path in sorted(directory.glob("*.json")):
    if "disabled" in path.name:
      logger.info(f"Skipping disabled Lambda config {path.name}")
      continue
    with open(path) as f:
      data = json.load(f)
    configs.append(LambdaConfig.from_dict(data, source=path.name))
  return configs
