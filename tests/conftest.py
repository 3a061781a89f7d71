"""Pytest fixtures for CDK stack tests."""

import aws_cdk as cdk
import pytest


@pytest.fixture
def app() -> cdk.App:
  """Create a CDK App for testing; asset bundling is skipped so no Docker is needed."""
  return cdk.App(context={"aws:cdk:bundling-stacks": []})


@pytest.fixture
def env() -> cdk.Environment:
  """Region-only environment; nothing in the stacks needs an account."""
  return cdk.Environment(region="us-east-1")
