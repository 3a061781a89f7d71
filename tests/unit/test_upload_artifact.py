"""Tests for the artifact upload script."""

import sys
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "scripts"))

import upload_artifact  # noqa: E402


@pytest.fixture
def s3() -> Iterator[MagicMock]:
  """Patch boto3 in the script and yield the S3 client mock."""
  with patch("upload_artifact.boto3") as mock_boto3:
    mock_s3 = MagicMock()
    mock_boto3.client.return_value = mock_s3
    yield mock_s3


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
  path = tmp_path / "foundation.yaml"
  path.write_text(
    """
lambda_manager:
  artifact_bucket: fn-bucket
cloudfront_manager:
  artifact_bucket: site-bucket
  distributions:
    - name: app1
"""
  )
  return path


class TestKeys:
  """Test artifact key conventions."""

  def test_site_key(self) -> None:
    """Verify site archives are staged under zip/<distribution>/."""
    assert upload_artifact.site_key("app1", Path("build/release.zip")) == "zip/app1/release.zip"

  @pytest.mark.parametrize("name", ["", "/", "app1/sub"])
  def test_site_key_rejects_bad_names(self, name: str) -> None:
    """Verify distribution names must be a single segment."""
    with pytest.raises(ValueError):
      upload_artifact.site_key(name, Path("release.zip"))

  def test_function_key(self) -> None:
    """Verify function archives keep their file name."""
    assert upload_artifact.function_key(Path("dist/orders-api.zip")) == "orders-api.zip"


class TestMain:
  """Test command-line uploads."""

  def test_uploads_site_archive(self, tmp_path: Path, config_file: Path, s3: MagicMock) -> None:
    """Verify a site archive goes to the CloudFront artifact bucket."""
    archive = tmp_path / "release.zip"
    archive.write_bytes(b"PK")

    upload_artifact.main(["--config", str(config_file), "site", "app1", str(archive)])

    s3.upload_file.assert_called_once_with(
      str(archive),
      "site-bucket",
      "zip/app1/release.zip",
      ExtraArgs={"ContentType": "application/zip"},
    )

  def test_uploads_function_archive(
    self, tmp_path: Path, config_file: Path, s3: MagicMock
  ) -> None:
    """Verify a function archive goes to the Lambda artifact bucket."""
    archive = tmp_path / "orders-api.zip"
    archive.write_bytes(b"PK")

    upload_artifact.main(["--config", str(config_file), "function", str(archive)])

    args = s3.upload_file.call_args.args
    assert args[1:] == ("fn-bucket", "orders-api.zip")

  def test_bucket_override(self, tmp_path: Path, config_file: Path, s3: MagicMock) -> None:
    """Verify --bucket replaces the configured bucket."""
    archive = tmp_path / "orders-api.zip"
    archive.write_bytes(b"PK")

    upload_artifact.main(
      ["--config", str(config_file), "--bucket", "other", "function", str(archive)]
    )

    assert s3.upload_file.call_args.args[1] == "other"

  def test_rejects_non_zip(self, tmp_path: Path, config_file: Path, s3: MagicMock) -> None:
    """Verify only .zip archives are accepted."""
    archive = tmp_path / "release.tar"
    archive.write_bytes(b"tar")

    with pytest.raises(SystemExit) as exc_info:
      upload_artifact.main(["--config", str(config_file), "site", "app1", str(archive)])

    assert exc_info.value.code == 1
    s3.upload_file.assert_not_called()

  def test_rejects_missing_archive(self, tmp_path: Path, config_file: Path, s3: MagicMock) -> None:
    """Verify a missing file fails before uploading."""
    with pytest.raises(SystemExit) as exc_info:
      upload_artifact.main(
        ["--config", str(config_file), "site", "app1", str(tmp_path / "missing.zip")]
      )

    assert exc_info.value.code == 1
    s3.upload_file.assert_not_called()
