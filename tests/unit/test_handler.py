"""Tests for the cloudfront-updater Lambda entry point."""

import json
from typing import Any

import index
import pytest

import site_sync
from site_sync import (
  DistributionNotFound,
  InvalidEvent,
  Invalidator,
  PrefixPurger,
  Settings,
  SyncResult,
  build_site_sync,
)

EVENT = {
  "Records": [
    {"s3": {"bucket": {"name": "artifacts"}, "object": {"key": "zip/app1/release.zip"}}}
  ]
}


class StubSiteSync:
  """Returns a fixed result or raises a fixed error."""

  def __init__(self, result: SyncResult | None = None, error: Exception | None = None) -> None:
    self.result = result
    self.error = error
    self.events: list[dict[str, Any]] = []

  def handle(self, event: dict[str, Any]) -> SyncResult:
    self.events.append(event)
    if self.error is not None:
      raise self.error
    assert self.result is not None
    return self.result


class TestHandler:
  """Test status codes and error propagation."""

  def test_success_returns_result(self, monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify a published run returns 200 with the run summary."""
    result = SyncResult(
      status="published",
      bucket="artifacts",
      key="zip/app1/release.zip",
      destination_prefix="app1/release",
      distribution_name="app1",
      uploaded=2,
      distribution_id="E1",
      invalidation_id="I1",
    )
    stub = StubSiteSync(result=result)
    monkeypatch.setattr(index, "_site_sync", stub)

    response = index.handler(EVENT, None)

    assert response["statusCode"] == 200
    body = json.loads(response["body"])
    assert body["invalidation_id"] == "I1"
    assert body["uploaded"] == 2
    assert stub.events == [EVENT]

  def test_invalid_event_returns_400(self, monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify malformed notifications are reported without raising."""
    monkeypatch.setattr(index, "_site_sync", StubSiteSync(error=InvalidEvent("missing key")))

    response = index.handler({"Records": [{}]}, None)

    assert response["statusCode"] == 400
    assert "missing key" in response["body"]

  def test_pipeline_errors_propagate(self, monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify pipeline failures fail the invocation."""
    monkeypatch.setattr(index, "_site_sync", StubSiteSync(error=DistributionNotFound("app2")))

    with pytest.raises(DistributionNotFound):
      index.handler(EVENT, None)

  def test_unknown_errors_propagate(self, monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify unexpected exceptions are re-raised."""
    monkeypatch.setattr(index, "_site_sync", StubSiteSync(error=RuntimeError("boom")))

    with pytest.raises(RuntimeError, match="boom"):
      index.handler(EVENT, None)

  def test_pipeline_is_built_once(self, monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify warm invocations reuse the same pipeline."""
    built: list[Settings] = []

    def fake_build(settings: Settings) -> StubSiteSync:
      built.append(settings)
      return StubSiteSync(result=SyncResult(status="ignored"))

    monkeypatch.setattr(index, "_site_sync", None)
    monkeypatch.setattr(index, "build_site_sync", fake_build)

    index.handler(EVENT, None)
    index.handler(EVENT, None)

    assert built == [index.settings]


class TestBuildSiteSync:
  """Test pipeline wiring from settings."""

  def test_wires_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify worker count and retry settings reach the components."""
    monkeypatch.setattr(site_sync, "s3_client", lambda region: object())
    monkeypatch.setattr(site_sync, "cloudfront_client", lambda region: object())
    settings = Settings(purge_workers=3, invalidation_retries=5, backoff_seconds=0.5)

    pipeline = build_site_sync(settings)

    assert isinstance(pipeline.purger, PrefixPurger)
    assert pipeline.purger.max_workers == 3
    assert isinstance(pipeline.invalidator, Invalidator)
    assert pipeline.invalidator.retry_policy.max_retries == 5
    assert pipeline.invalidator.retry_policy.initial_delay == 0.5


class TestSettings:
  """Test environment parsing."""

  def test_defaults(self) -> None:
    """Verify defaults apply when nothing is set."""
    settings = Settings.from_env({})

    assert settings == Settings()
    assert settings.region == "us-east-1"
    assert settings.invalidation_retries == 3

  def test_reads_environment(self) -> None:
    """Verify every variable is honoured."""
    settings = Settings.from_env(
      {
        "AWS_REGION": "eu-west-1",
        "LOG_LEVEL": "debug",
        "SITE_SYNC_PURGE_WORKERS": "2",
        "SITE_SYNC_INVALIDATION_RETRIES": "0",
        "SITE_SYNC_BACKOFF_SECONDS": "0.25",
      }
    )

    assert settings == Settings(
      region="eu-west-1",
      log_level="DEBUG",
      purge_workers=2,
      invalidation_retries=0,
      backoff_seconds=0.25,
    )

  def test_default_region_fallback(self) -> None:
    """Verify AWS_DEFAULT_REGION is used when AWS_REGION is absent."""
    assert Settings.from_env({"AWS_DEFAULT_REGION": "ap-south-1"}).region == "ap-south-1"

  @pytest.mark.parametrize(
    "environ",
    [
      {"SITE_SYNC_PURGE_WORKERS": "0"},
      {"SITE_SYNC_PURGE_WORKERS": "many"},
      {"SITE_SYNC_INVALIDATION_RETRIES": "-1"},
      {"SITE_SYNC_BACKOFF_SECONDS": "-2"},
    ],
  )
  def test_rejects_invalid_values(self, environ: dict[str, str]) -> None:
    """Verify bad numbers raise ValueError."""
    with pytest.raises(ValueError):
      Settings.from_env(environ)
