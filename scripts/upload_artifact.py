#!/usr/bin/env python3
"""Upload a site or function archive into its artifact bucket.

Site archives go to zip/<distribution>/<archive>.zip in the CloudFront
artifact bucket, which triggers publishing and invalidation. Function
archives go to <function-name>.zip in the Lambda artifact bucket, which
triggers a code update.
"""

import argparse
import sys
from pathlib import Path

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import ClientError

sys.path.insert(0, str(Path(__file__).parent.parent))

from infrastructure.config import Config

DEFAULT_CONFIG = Path(__file__).parent.parent / "foundation.yaml"


def site_key(distribution: str, archive: Path) -> str:
  """Staging key for a site archive."""
  distribution = distribution.strip("/")
  if not distribution or "/" in distribution:
    raise ValueError(f"Invalid distribution name: {distribution!r}")
  return f"zip/{distribution}/{archive.name}"


def function_key(archive: Path) -> str:
  """Artifact key for a function archive; the file name is the function name."""
  return archive.name


def upload(archive: Path, bucket: str, key: str, region: str | None = None) -> None:
  """Upload ``archive`` to ``s3://bucket/key``.

  Raises:
    ValueError: If the archive is missing or is not a .zip file.
  """
  if archive.suffix != ".zip":
    raise ValueError(f"{archive} is not a .zip archive")
  if not archive.is_file():
    raise ValueError(f"{archive} does not exist")

  s3 = boto3.client("s3", region_name=region)
  print(f"Uploading {archive} to s3://{bucket}/{key}...")
  s3.upload_file(
    str(archive),
    bucket,
    key,
    ExtraArgs={"ContentType": "application/zip"},
  )
  print("Done!")


def main(argv: list[str] | None = None) -> None:
  """Parse arguments and upload the archive."""
  parser = argparse.ArgumentParser(description="Upload a deployment archive")
  parser.add_argument(
    "--config",
    default=str(DEFAULT_CONFIG),
    help="Foundation config file (default: foundation.yaml)",
  )
  parser.add_argument("--bucket", help="Override the artifact bucket name")
  subparsers = parser.add_subparsers(dest="kind", required=True)

  site = subparsers.add_parser("site", help="Publish a static site archive")
  site.add_argument("distribution", help="Distribution name (its comment), e.g. app1")
  site.add_argument("archive", type=Path, help="Zip archive of the built site")

  function = subparsers.add_parser("function", help="Deploy function code")
  function.add_argument("archive", type=Path, help="Zip archive named <function>.zip")

  args = parser.parse_args(argv)

  try:
    config = Config.from_yaml(args.config)
    if args.kind == "site":
      bucket = args.bucket or config.cloudfront_manager.artifact_bucket
      key = site_key(args.distribution, args.archive)
      region = config.cloudfront_manager.region
    else:
      bucket = args.bucket or config.lambda_manager.artifact_bucket
      key = function_key(args.archive)
      region = config.lambda_manager.region
    upload(args.archive, bucket, key, region)
  except (ValueError, ClientError, S3UploadFailedError, OSError) as e:
    print(f"Error: {e}", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
  main()
