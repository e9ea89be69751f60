"""Tests for the HTTP hook service."""

import pytest
from fastapi.testclient import TestClient

from taintgate.config import TaintConfig, TaintGateConfig, TrustedUrlsConfig
from taintgate.server import create_app


@pytest.fixture
def client():
    """Create a test client trusting *.github.com."""
    config = TaintGateConfig(
        taint=TaintConfig(recovery_per_trusted_url=5),
        trusted_urls=TrustedUrlsConfig(patterns=["*.github.com"]),
    )
    return TestClient(create_app(config))


def tool_call(client, tool_name, tool_input, session_id="s1"):
    """Helper to post a tool call."""
    response = client.post(
        "/hooks/before-tool-call",
        json={"tool_name": tool_name, "tool_input": tool_input, "session_id": session_id},
    )
    assert response.status_code == 200
    return response.json()


class TestHooks:
    """Test the hook endpoints."""

    def test_untrusted_fetch_then_blocked_command(self, client):
        """Test taint accumulates across calls and blocks rm -rf."""
        for _ in range(3):
            result = tool_call(client, "web_fetch", {"url": "https://evil.com"})
            assert result["block"] is False

        result = tool_call(client, "Bash", {"command": "rm -rf ./build"})

        assert result["block"] is True
        assert "cautious" in result["block_reason"]
        assert result["metadata"]["tier"] == "cautious"
        assert result["error"] is None

    def test_agent_start_once(self, client):
        """Test the security context is returned once per session."""
        first = client.post("/hooks/before-agent-start", json={"session_id": "s1"}).json()
        second = client.post("/hooks/before-agent-start", json={"session_id": "s1"}).json()

        assert first["prepend_context"].startswith("[TAINTGATE SECURITY CONTEXT]")
        assert second["prepend_context"] is None

    def test_missing_tool_name(self, client):
        """Test malformed requests are rejected."""
        response = client.post("/hooks/before-tool-call", json={"tool_input": {}})
        assert response.status_code == 422


class TestSessions:
    """Test session inspection endpoints."""

    def test_session_state(self, client):
        """Test the session summary after a penalty."""
        tool_call(client, "web_fetch", {"url": "https://evil.com"})

        data = client.get("/api/sessions/s1").json()
        assert data["level"] == 90
        assert data["tier"] == "permissive"
        assert data["event_count"] == 1

    def test_list_sessions(self, client):
        """Test listing sessions."""
        tool_call(client, "read_file", {"path": "/tmp/x"}, "a")
        tool_call(client, "read_file", {"path": "/tmp/x"}, "b")

        ids = {s["session_id"] for s in client.get("/api/sessions").json()["sessions"]}
        assert ids == {"a", "b"}

    def test_unknown_session(self, client):
        """Test unknown sessions return 404."""
        assert client.get("/api/sessions/nope").status_code == 404
        assert client.get("/api/sessions/nope/history").status_code == 404
        assert client.post("/api/sessions/nope/reset").status_code == 404
        assert client.delete("/api/sessions/nope").status_code == 404

    def test_history(self, client):
        """Test the event history."""
        tool_call(client, "web_fetch", {"url": "https://evil.com"})
        tool_call(client, "web_fetch", {"url": "https://docs.github.com"})

        events = client.get("/api/sessions/s1/history").json()["events"]
        assert [e["type"] for e in events] == ["penalty", "recovery"]
        assert events[0]["domain"] == "evil.com"
        assert events[1]["new_level"] == 95

    def test_reset(self, client):
        """Test resetting a session."""
        tool_call(client, "web_fetch", {"url": "https://evil.com"})
        client.post("/hooks/before-agent-start", json={"session_id": "s1"})

        data = client.post("/api/sessions/s1/reset").json()

        assert data["level"] == 100
        assert data["event_count"] == 0
        again = client.post("/hooks/before-agent-start", json={"session_id": "s1"}).json()
        assert again["prepend_context"] is not None

    def test_delete(self, client):
        """Test discarding a session."""
        tool_call(client, "web_fetch", {"url": "https://evil.com"})

        assert client.delete("/api/sessions/s1").json() == {"deleted": "s1"}
        assert client.get("/api/sessions/s1").status_code == 404


class TestPolicyEndpoints:
    """Test stateless classify and evaluate endpoints."""

    def test_classify_trusted(self, client):
        """Test a trusted URL."""
        data = client.post("/api/classify", json={"url": "https://docs.github.com/en"}).json()
        assert data["trusted"] is True
        assert data["domain"] == "docs.github.com"
        assert data["matched_pattern"] == "*.github.com"

    def test_classify_untrusted(self, client):
        """Test an untrusted URL does not create a session."""
        data = client.post("/api/classify", json={"url": "https://github.com"}).json()
        assert data["trusted"] is False
        assert client.get("/api/sessions").json()["sessions"] == []

    def test_classify_blank(self, client):
        """Test a blank URL is untrusted and malformed."""
        data = client.post("/api/classify", json={"url": "   "}).json()
        assert data["trusted"] is False
        assert data["malformed"] is True
        assert data["domain"] is None

    def test_classify_malformed(self, client):
        """Test an unparseable URL."""
        data = client.post("/api/classify", json={"url": "https://"}).json()
        assert data["trusted"] is False
        assert data["malformed"] is True

    def test_evaluate(self, client):
        """Test evaluating a command under an explicit tier."""
        data = client.post(
            "/api/evaluate", json={"command": "npm install express", "tier": "restricted"}
        ).json()
        assert data["allowed"] is False
        assert data["category"] == "not_safe"

        data = client.post("/api/evaluate", json={"command": "ls -la", "tier": "restricted"}).json()
        assert data["allowed"] is True

    def test_evaluate_invalid_tier(self, client):
        """Test unknown tiers are rejected by request validation."""
        response = client.post("/api/evaluate", json={"command": "ls", "tier": "paranoid"})
        assert response.status_code == 422

    def test_config(self, client):
        """Test the active configuration is exposed."""
        data = client.get("/api/config").json()
        assert data["global"]["enabled"] is True
        assert data["trusted_urls"]["patterns"] == ["*.github.com"]
