"""Tests for the promptgear CLI commands."""

import json

import pytest
from click.testing import CliRunner

from promptgear import __version__
from promptgear.cache import build_cache_key
from promptgear.cli.main import main

ENV_VARS = (
    "OPENAI_API_KEY",
    "DEFAULT_MODEL",
    "MOCK_TRANSFORM",
    "ALLOWED_ORIGINS",
    "PROMPTGEAR_CACHE_BACKEND",
    "PROMPTGEAR_CACHE_PATH",
    "PROMPTGEAR_CACHE_TTL_SECONDS",
    "PROMPTGEAR_UPSTREAM_URL",
    "PROMPTGEAR_DEADLINE_SECONDS",
)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Run each command in an empty directory with no PromptGear variables.

    Setting before deleting makes monkeypatch restore the variables even
    when a command loads them from an env file.
    """
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("ALLOWED_ORIGINS", "*")


class TestMain:
    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert f"promptgear, version {__version__}" in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("serve", "transform", "cache-key"):
            assert command in result.output


class TestCacheKeyCommand:
    def test_default_model(self, runner):
        result = runner.invoke(main, ["cache-key", "Plan a trip", "--mode", "travel"])
        assert result.exit_code == 0
        assert result.output.strip() == build_cache_key("Plan a trip", "travel", "gpt-4o-mini")

    def test_prompt_is_trimmed(self, runner):
        result = runner.invoke(main, ["cache-key", "  Plan a trip  "])
        assert result.output.strip() == build_cache_key("Plan a trip", None, "gpt-4o-mini")

    def test_explicit_model(self, runner):
        result = runner.invoke(main, ["cache-key", "x", "--model", "gpt-4o"])
        assert result.output.strip() == build_cache_key("x", None, "gpt-4o")

    def test_env_file_default_model(self, runner, tmp_path):
        env_file = tmp_path / "custom.env"
        env_file.write_text("DEFAULT_MODEL=gpt-from-env-file\n")

        result = runner.invoke(main, ["--env-file", str(env_file), "cache-key", "x"])

        assert result.exit_code == 0
        assert result.output.strip() == build_cache_key("x", None, "gpt-from-env-file")


class TestTransformCommand:
    def test_mock_json(self, runner):
        result = runner.invoke(
            main, ["transform", "Analyze network security logs", "--mock", "--json"]
        )

        assert result.exit_code == 0
        body = json.loads(result.output)
        assert body["mocked"] is True
        assert body["model"] == "gpt-4o-mini"
        assert body["structuredPrompt"].startswith("Role: cybersecurity analyst.")

    def test_mock_panel(self, runner):
        result = runner.invoke(main, ["transform", "Fix a bug", "--mock", "--mode", "coding"])

        assert result.exit_code == 0
        assert "Structured prompt" in result.output
        assert "software engineer" in result.output

    def test_mock_from_environment(self, runner, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "MOCK")
        result = runner.invoke(main, ["transform", "x", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["mocked"] is True

    def test_blank_prompt(self, runner):
        result = runner.invoke(main, ["transform", "   ", "--mock"])
        assert result.exit_code == 2
        assert "Missing required field: prompt" in result.output

    def test_missing_api_key_fails(self, runner):
        result = runner.invoke(main, ["transform", "x"])
        assert result.exit_code == 1
        assert "OPENAI_API_KEY" in result.output
        assert "status 500" in result.output


class TestServeCommand:
    def test_builds_config_and_runs(self, runner, monkeypatch):
        captured = {}

        def fake_run_server(config):
            captured["config"] = config

        monkeypatch.setattr("promptgear.service.run_server", fake_run_server)

        result = runner.invoke(main, ["serve", "--port", "9000", "--mock", "--log-level", "debug"])

        assert result.exit_code == 0
        config = captured["config"]
        assert config.port == 9000
        assert config.mock_mode
        assert config.log_level == "DEBUG"
        assert "http://127.0.0.1:9000" in result.output
        assert "Mock mode:  ENABLED" in result.output

    def test_invalid_configuration_exits_2(self, runner, monkeypatch):
        monkeypatch.setenv("PROMPTGEAR_CACHE_BACKEND", "redis")
        monkeypatch.setattr("promptgear.service.run_server", lambda config: None)

        result = runner.invoke(main, ["serve"])

        assert result.exit_code == 2
        assert "Unknown cache backend" in result.output
