"""Lambda entry point: deploy a function's new code artifact from S3."""

import logging
import os
from functools import lru_cache
from typing import Any
from urllib.parse import unquote_plus

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger()
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())

S3_ERROR_CODES = {"NoSuchBucket", "NoSuchKey"}


@lru_cache(maxsize=None)
def get_client(service: str) -> Any:
  """Process-scoped boto3 client for ``service``."""
  return boto3.client(service, region_name=os.environ.get("AWS_REGION"))


def function_name_for(key: str) -> str:
  """Function name encoded in an artifact key: ``builds/my-fn.zip`` -> ``my-fn``."""
  return key.rsplit("/", 1)[-1].split(".", 1)[0]


def update_function_code(bucket: str, key: str) -> str:
  """Download the artifact and push it as the function's new code."""
  function_name = function_name_for(key)
  if not function_name:
    raise ValueError(f"Unable to extract function name from key {key}")

  response = get_client("s3").get_object(Bucket=bucket, Key=key)
  artifact = response["Body"].read()

  get_client("lambda").update_function_code(
    FunctionName=function_name,
    ZipFile=artifact,
  )
  logger.info(
    f"Lambda function {function_name} updated from s3://{bucket}/{key} "
    f"({len(artifact)} bytes)"
  )
  return function_name


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
  """Update the code of every function named by the notification's records."""
  records = event.get("Records") or []
  if not records or not records[0].get("s3"):
    return {
      "statusCode": 400,
      "body": "Invalid event structure: No S3 records found.",
    }

  updated: list[str] = []
  for record in records:
    s3 = record.get("s3") or {}
    bucket = (s3.get("bucket") or {}).get("name")
    key = (s3.get("object") or {}).get("key")
    if not bucket or not key:
      return {
        "statusCode": 400,
        "body": "Invalid event structure: Bucket name or key is missing.",
      }

    key = unquote_plus(key)
    try:
      updated.append(update_function_code(bucket, key))
    except ClientError as e:
      code = e.response.get("Error", {}).get("Code", "")
      if code in S3_ERROR_CODES:
        logger.error(f"S3 error reading s3://{bucket}/{key}: {e}")
      else:
        logger.error(f"Lambda update error for s3://{bucket}/{key}: {e}")
      return {
        "statusCode": 500,
        "body": f"Failed to update Lambda function: {e}",
      }
    except Exception as e:
      logger.exception(f"Unknown error updating from s3://{bucket}/{key}")
      return {
        "statusCode": 500,
        "body": f"Failed to update Lambda function: {e}",
      }

  return {
    "statusCode": 200,
    "body": f"Lambda function(s) updated successfully: {', '.join(updated)}",
  }
