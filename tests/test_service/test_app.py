"""End-to-end tests for the HTTP surface.

The app runs in-process through ``TestClient``. Real-upstream scenarios use
a scripted ``httpx.MockTransport`` provider, so retries, caching and health
run for real without network access.
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient
from scripted_upstream import SUCCESS_TEXT, ScriptedUpstream, make_upstream_client

from promptgear.config import ServiceConfig, UpstreamConfig
from promptgear.service import TransformService, create_app

ORIGIN = "https://app.example"


def build_client(config: ServiceConfig, upstream: ScriptedUpstream | None = None) -> TestClient:
    service = TransformService(
        config,
        upstream=make_upstream_client(upstream or ScriptedUpstream([]), config=config.upstream),
    )
    return TestClient(create_app(service=service))


@pytest.fixture
def mock_client(mock_config):
    with build_client(mock_config) as client:
        yield client


class TestMockMode:
    """Mock mode never reaches the provider."""

    def test_transform(self, mock_client):
        response = mock_client.post(
            "/transform",
            json={"prompt": "Analyze network security logs", "mode": "research"},
            headers={"Origin": ORIGIN},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["mocked"] is True
        assert body["model"] == "gpt-4o-mini"
        assert body["usage"] == {"totalTokens": None}
        assert body["structuredPrompt"].startswith("Role: cybersecurity analyst.")
        assert "mock mode" in body["structuredPrompt"]
        assert response.headers["access-control-allow-origin"] == ORIGIN
        assert response.headers["vary"] == "Origin"

    def test_model_from_request(self, mock_client):
        response = mock_client.post("/transform", json={"prompt": "x", "model": "gpt-4o"})
        assert response.json()["model"] == "gpt-4o"

    def test_health_ok_after_mock_transform(self, mock_client):
        mock_client.post("/transform", json={"prompt": "Fix a bug"})
        response = mock_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["mockMode"] is True


class TestRequestValidation:
    def test_missing_prompt(self, mock_client):
        response = mock_client.post("/transform", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required field: prompt"}

    def test_blank_prompt(self, mock_client):
        response = mock_client.post("/transform", json={"prompt": "   "})
        assert response.status_code == 400

    def test_invalid_json(self, mock_client):
        response = mock_client.post(
            "/transform", content=b"{not json", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON body"}

    def test_empty_body(self, mock_client):
        response = mock_client.post("/transform", content=b"")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON body"}

    def test_non_object_body(self, mock_client):
        response = mock_client.post("/transform", json=["prompt"])
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required field: prompt"}

    def test_validation_failure_does_not_touch_health(self, mock_client):
        mock_client.post("/transform", json={})
        assert mock_client.get("/health").json()["lastError"] is None


class TestRouting:
    def test_unknown_path(self, mock_client):
        response = mock_client.get("/nope", headers={"Origin": ORIGIN})
        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
        assert response.headers["access-control-allow-origin"] == ORIGIN

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "TRACE", "CONNECT", "FOO"])
    def test_wrong_method_on_transform(self, mock_client, method):
        response = mock_client.request(method, "/transform", headers={"Origin": ORIGIN})
        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}
        assert response.headers["access-control-allow-origin"] == ORIGIN

    @pytest.mark.parametrize(
        "method,path",
        [("POST", "/health"), ("TRACE", "/nope"), ("FOO", "/health"), ("TRACE", "/")],
    )
    def test_any_method_on_other_paths_is_not_found(self, mock_client, method, path):
        response = mock_client.request(method, path)
        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}


class TestOriginPolicy:
    def test_preflight_allowed(self, mock_client):
        response = mock_client.options(
            "/transform",
            headers={"Origin": ORIGIN, "Access-Control-Request-Method": "POST"},
        )
        assert response.status_code == 204
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == ORIGIN
        assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "content-type, authorization"

    def test_preflight_denied(self):
        config = ServiceConfig(
            mock_transform="true", allowed_origins=frozenset({"https://good.example"})
        )
        with build_client(config) as client:
            response = client.options("/transform", headers={"Origin": "https://evil.example"})

        assert response.status_code == 403
        assert "access-control-allow-origin" not in response.headers
        assert response.headers["vary"] == "Origin"

    def test_prefix_wildcard_allows_extension(self):
        config = ServiceConfig(
            mock_transform="true", allowed_origins=frozenset({"chrome-extension://*"})
        )
        with build_client(config) as client:
            response = client.post(
                "/transform", json={"prompt": "x"}, headers={"Origin": "chrome-extension://abc"}
            )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "chrome-extension://abc"

    def test_disallowed_origin_never_reaches_upstream(self):
        upstream = ScriptedUpstream([200])
        config = ServiceConfig(
            upstream=UpstreamConfig(api_key="sk-test"),
            allowed_origins=frozenset({"https://good.example"}),
        )
        with build_client(config, upstream) as client:
            response = client.post(
                "/transform", json={"prompt": "x"}, headers={"Origin": "https://evil.example"}
            )

        assert response.status_code == 403
        assert response.json() == {"error": "Origin not allowed"}
        assert upstream.calls == 0

    def test_empty_allow_list_denies_all(self):
        with build_client(ServiceConfig(mock_transform="true")) as client:
            response = client.post("/transform", json={"prompt": "x"}, headers={"Origin": ORIGIN})
        assert response.status_code == 403

    def test_no_origin_needs_sentinel(self):
        config = ServiceConfig(
            mock_transform="true", allowed_origins=frozenset({"https://good.example"})
        )
        with build_client(config) as client:
            assert client.post("/transform", json={"prompt": "x"}).status_code == 403

        config = ServiceConfig(mock_transform="true", allowed_origins=frozenset({"<no-origin>"}))
        with build_client(config) as client:
            response = client.post("/transform", json={"prompt": "x"})
        assert response.status_code == 200
        assert "access-control-allow-origin" not in response.headers


class TestUpstreamMode:
    """Real-upstream path against a scripted provider."""

    def test_success(self, service_config):
        upstream = ScriptedUpstream([200])
        with build_client(service_config, upstream) as client:
            response = client.post("/transform", json={"prompt": "Build a churn model"})

        assert response.status_code == 200
        assert response.json() == {
            "structuredPrompt": SUCCESS_TEXT,
            "model": "gpt-4o-mini",
            "usage": {"totalTokens": 42},
        }

    def test_second_identical_request_is_cached(self, service_config):
        upstream = ScriptedUpstream([200])
        with build_client(service_config, upstream) as client:
            first = client.post("/transform", json={"prompt": "Build a churn model"})
            second = client.post("/transform", json={"prompt": "  Build a churn model "})

        assert first.status_code == second.status_code == 200
        assert "cached" not in first.json()
        assert second.json()["cached"] is True
        assert second.json()["structuredPrompt"] == SUCCESS_TEXT
        assert second.json()["usage"] == {"totalTokens": 42}
        assert upstream.calls == 1

    def test_different_mode_is_a_cache_miss(self, service_config):
        upstream = ScriptedUpstream([200, 200])
        with build_client(service_config, upstream) as client:
            client.post("/transform", json={"prompt": "x", "mode": "coding"})
            response = client.post("/transform", json={"prompt": "x", "mode": "writing"})

        assert "cached" not in response.json()
        assert upstream.calls == 2

    def test_retries_then_succeeds(self, service_config):
        upstream = ScriptedUpstream([429, 429, 200])
        with build_client(service_config, upstream) as client:
            response = client.post("/transform", json={"prompt": "x"})

        assert response.status_code == 200
        assert upstream.calls == 3

    def test_exhausted_retries_surface_last_status(self, service_config):
        upstream = ScriptedUpstream([500, 500, 500])
        with build_client(service_config, upstream) as client:
            response = client.post("/transform", json={"prompt": "x"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "upstream said 500"
        assert body["status"] == 500
        assert body["retryable"] is True
        assert body["details"]["error"]["message"] == "upstream said 500"
        assert upstream.calls == 3

    def test_client_error_not_retried(self, service_config):
        upstream = ScriptedUpstream([401])
        with build_client(service_config, upstream) as client:
            response = client.post("/transform", json={"prompt": "x"})

        assert response.status_code == 401
        assert response.json()["retryable"] is False
        assert upstream.calls == 1

    def test_failures_are_not_cached(self, service_config):
        upstream = ScriptedUpstream([401, 200])
        with build_client(service_config, upstream) as client:
            client.post("/transform", json={"prompt": "x"})
            response = client.post("/transform", json={"prompt": "x"})

        assert response.status_code == 200
        assert "cached" not in response.json()
        assert upstream.calls == 2

    def test_empty_completion_is_502(self, service_config):
        upstream = ScriptedUpstream([httpx.Response(200, json={"output": []})])
        with build_client(service_config, upstream) as client:
            response = client.post("/transform", json={"prompt": "x"})

        assert response.status_code == 502
        assert response.json()["error"] == "Upstream response did not include any content"
        assert response.json()["retryable"] is False

    def test_non_json_completion_is_502(self, service_config):
        upstream = ScriptedUpstream([httpx.Response(200, text="<html>gateway</html>")])
        with build_client(service_config, upstream) as client:
            response = client.post("/transform", json={"prompt": "x"})

        assert response.status_code == 502
        assert response.json() == {
            "error": "Upstream response did not include any content",
            "status": 502,
            "retryable": False,
        }

    def test_missing_api_key_is_500(self):
        config = ServiceConfig(allowed_origins=frozenset({"*"}))
        upstream = ScriptedUpstream([200])
        with build_client(config, upstream) as client:
            response = client.post("/transform", json={"prompt": "x"})

        assert response.status_code == 500
        assert "OPENAI_API_KEY" in response.json()["error"]
        assert upstream.calls == 0

    def test_request_sent_upstream(self, service_config):
        upstream = ScriptedUpstream([200])
        with build_client(service_config, upstream) as client:
            client.post("/transform", json={"prompt": "  Fix the bug ", "mode": "coding"})

        payload = json.loads(upstream.requests[0].content)
        assert payload["input"][1]["content"][0]["text"] == "Fix the bug"
        assert "Mode guidance:" in payload["input"][0]["content"][0]["text"]


class TestHealthEndpoint:
    def test_degraded_before_any_transform(self, service_config):
        with build_client(service_config) as client:
            response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
        assert response.json()["lastSuccessfulTransform"] is None

    def test_failure_then_recovery(self, service_config):
        upstream = ScriptedUpstream([500, 500, 500, 200])
        with build_client(service_config, upstream) as client:
            client.post("/transform", json={"prompt": "x"})
            degraded = client.get("/health")
            client.post("/transform", json={"prompt": "x"})
            recovered = client.get("/health")

        assert degraded.status_code == 503
        assert degraded.json()["lastError"]["httpStatus"] == 500
        assert degraded.json()["lastError"]["message"] == "upstream said 500"
        assert recovered.status_code == 200
        assert recovered.json()["status"] == "ok"
        assert recovered.json()["lastError"] is None
        assert recovered.json()["mockMode"] is False

    def test_health_carries_cors_headers(self, service_config):
        with build_client(service_config) as client:
            response = client.get("/health", headers={"Origin": ORIGIN})
        assert response.headers["access-control-allow-origin"] == ORIGIN
        assert response.headers["vary"] == "Origin"
