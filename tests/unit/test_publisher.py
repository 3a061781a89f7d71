"""Tests for publishing archive members."""

import io

import boto3
import pytest
from boto3.s3.transfer import TransferConfig
from botocore.stub import Stubber
from fakes import FakeS3Client, build_zip

from site_sync import PrefixPublisher, UploadFailed, ZipExtractor
from site_sync.publisher import content_type_for, relative_key

MiB = 1024 * 1024


def entries_of(files: dict[str, bytes | None]):
  return ZipExtractor().extract(io.BytesIO(build_zip(files)))


class TestRelativeKey:
  """Test mapping archive paths below the top-level folder."""

  @pytest.mark.parametrize(
    ("path", "expected"),
    [
      ("release/index.html", "index.html"),
      ("release/assets/app.js", "assets/app.js"),
      ("zip/release/css/site.css", "css/site.css"),
      ("index.html", "index.html"),
      ("release/", ""),
    ],
  )
  def test_relative_key(self, path: str, expected: str) -> None:
    """Verify the leading folder and any zip/ prefix are dropped."""
    assert relative_key(path) == expected


class TestContentType:
  """Test content type detection by extension."""

  @pytest.mark.parametrize(
    ("path", "expected"),
    [
      ("index.html", "text/html"),
      ("assets/app.js", "application/javascript"),
      ("assets/app.mjs", "application/javascript"),
      ("css/site.css", "text/css"),
      ("data.json", "application/json"),
      ("logo.svg", "image/svg+xml"),
      ("photo.png", "image/png"),
      ("fonts/a.woff2", "font/woff2"),
      ("LICENSE", "application/octet-stream"),
      ("archive.unknownext", "application/octet-stream"),
    ],
  )
  def test_content_type_for(self, path: str, expected: str) -> None:
    """Verify web assets get their expected types."""
    assert content_type_for(path) == expected


class TestPrefixPublisher:
  """Test uploading members under the destination prefix."""

  def test_uploads_files_with_content_type(self) -> None:
    """Verify files land under the prefix with their detected type."""
    s3 = FakeS3Client()
    publisher = PrefixPublisher(s3)

    keys = [
      publisher.publish("bucket", "app1/release", entry)
      for entry in entries_of(
        {"release/index.html": b"<html/>", "release/assets/app.js": b"x()"}
      )
    ]

    assert keys == ["app1/release/index.html", "app1/release/assets/app.js"]
    assert s3.objects["app1/release/index.html"] == b"<html/>"
    assert s3.content_types["app1/release/index.html"] == "text/html"
    assert s3.content_types["app1/release/assets/app.js"] == "application/javascript"

  def test_directories_are_skipped(self) -> None:
    """Verify directory members produce no upload."""
    s3 = FakeS3Client()

    results = [
      PrefixPublisher(s3).publish("bucket", "app1/release", entry)
      for entry in entries_of({"release/": None})
    ]

    assert results == [None]
    assert "upload_fileobj" not in s3.operations()

  def test_root_level_file_keeps_its_name(self) -> None:
    """Verify a member with no folder is published under its own name."""
    s3 = FakeS3Client()

    results = [
      PrefixPublisher(s3).publish("bucket", "site", entry)
      for entry in entries_of({"robots.txt": b"User-agent: *"})
    ]

    assert results == ["site/robots.txt"]
    assert s3.content_types["site/robots.txt"] == "text/plain"

  def test_large_member_goes_multipart(self) -> None:
    """Verify a member above the threshold is uploaded in parts, not one PutObject."""
    client = boto3.client(
      "s3",
      region_name="us-east-1",
      aws_access_key_id="testing",
      aws_secret_access_key="testing",
    )
    config = TransferConfig(
      multipart_threshold=5 * MiB, multipart_chunksize=5 * MiB, use_threads=False
    )
    payload = bytes(range(256)) * (24 * 1024)

    with Stubber(client) as stubber:
      stubber.add_response(
        "create_multipart_upload",
        {"Bucket": "bucket", "Key": "app1/release/big.bin", "UploadId": "upload-1"},
      )
      stubber.add_response("upload_part", {"ETag": '"part-1"'})
      stubber.add_response("upload_part", {"ETag": '"part-2"'})
      stubber.add_response(
        "complete_multipart_upload",
        {"Bucket": "bucket", "Key": "app1/release/big.bin", "ETag": '"whole"'},
      )

      for entry in entries_of({"release/big.bin": payload}):
        key = PrefixPublisher(client, config).publish("bucket", "app1/release", entry)

      stubber.assert_no_pending_responses()

    assert key == "app1/release/big.bin"
    assert entry.body.closed

  def test_upload_failure_raises_and_drains(self) -> None:
    """Verify a failed upload raises UploadFailed after draining the member."""
    s3 = FakeS3Client()
    s3.fail_uploads.add("app1/release/index.html")
    entry = next(iter(entries_of({"release/index.html": b"<html/>"})))

    with pytest.raises(UploadFailed) as exc_info:
      PrefixPublisher(s3).publish("bucket", "app1/release", entry)

    assert exc_info.value.key == "app1/release/index.html"
    assert entry.body.closed
