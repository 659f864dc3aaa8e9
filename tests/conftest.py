"""Shared pytest fixtures for PromptGear tests."""

import pytest

from promptgear.config import ServiceConfig, UpstreamConfig


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    """Real-upstream settings with a dummy key."""
    return UpstreamConfig(api_key="sk-test")


@pytest.fixture
def service_config(upstream_config: UpstreamConfig) -> ServiceConfig:
    """Real-upstream config that allows every origin."""
    return ServiceConfig(upstream=upstream_config, allowed_origins=frozenset({"*"}))


@pytest.fixture
def mock_config() -> ServiceConfig:
    """Mock-mode config that allows every origin."""
    return ServiceConfig(mock_transform="true", allowed_origins=frozenset({"*"}))
