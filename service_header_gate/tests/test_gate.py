"""
Unit tests for the header gate middleware.
"""

import pytest
from unittest.mock import MagicMock
from fastapi import FastAPI
from fastapi.testclient import TestClient

from shared.metrics import MetricsCollector
from service_header_gate.app.domain.gate import HeaderGate, install_header_gate
from service_header_gate.app.rules.models import Verdict
from service_header_gate.app.rules.validation import build_policy_set


class TestHeaderGate:
    """Test cases for HeaderGate."""

    @pytest.fixture
    def policy_set(self):
        """Create the policy protecting the app."""
        return build_policy_set(
            [{"name": "X-Key", "values": ["secret"], "matchtype": "one"}],
            logger=MagicMock()
        )

    @pytest.fixture
    def metrics(self):
        """Create isolated metrics collector."""
        return MetricsCollector("header_gate")

    @pytest.fixture
    def handled(self):
        """Record requests reaching the downstream handler."""
        return []

    @pytest.fixture
    def app(self, policy_set, metrics, handled):
        """Create FastAPI app behind the gate."""
        app = FastAPI()

        @app.get("/resource")
        async def resource():
            handled.append("/resource")
            return {"ok": True}

        @app.get("/health")
        async def health():
            return {"status": "ok"}

        install_header_gate(app, policy_set, metrics=metrics, exempt_paths=["/health"], logger=MagicMock())
        return app

    @pytest.fixture
    def client(self, app):
        """Create test client."""
        return TestClient(app)

    def test_matching_header_forwarded(self, client, handled):
        """Test a request satisfying the policy reaches the handler."""
        response = client.get("/resource", headers={"X-Key": "secret"})

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert handled == ["/resource"]

    def test_header_name_case_insensitive(self, client):
        """Test header names match regardless of case."""
        response = client.get("/resource", headers={"x-key": "secret"})

        assert response.status_code == 200

    def test_wrong_value_rejected(self, client, handled):
        """Test a mismatching value is rejected before the handler."""
        response = client.get("/resource", headers={"X-Key": "other"})

        assert response.status_code == 403
        assert response.text == "Not allowed"
        assert handled == []

    def test_missing_header_rejected(self, client, handled):
        """Test a missing required header is rejected."""
        response = client.get("/resource")

        assert response.status_code == 403
        assert response.text == "Not allowed"
        assert handled == []

    def test_exempt_path_bypasses_policy(self, client):
        """Test exempt paths are served without evaluation."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_unknown_route_still_gated(self, client):
        """Test the gate runs before routing."""
        assert client.get("/missing").status_code == 403
        assert client.get("/missing", headers={"X-Key": "secret"}).status_code == 404

    def test_decisions_recorded(self, client, metrics):
        """Test admissions and rejections are counted."""
        client.get("/resource", headers={"X-Key": "secret"})
        client.get("/resource", headers={"X-Key": "other"})
        client.get("/resource")
        client.get("/health")

        assert metrics.get_sample_value("header_gate_decisions_total", {"verdict": "admit"}) == 1.0
        assert metrics.get_sample_value("header_gate_decisions_total", {"verdict": "reject"}) == 2.0
        assert metrics.get_sample_value("header_gate_rejections_total", {"header": "x-key"}) == 2.0

    def test_evaluation_fault_rejected(self, handled):
        """Test a failing matcher is answered with 403."""
        app = FastAPI()

        @app.get("/resource")
        async def resource():
            handled.append("/resource")
            return {"ok": True}

        matcher = MagicMock()
        matcher.evaluate.side_effect = RuntimeError("boom")
        app.middleware("http")(HeaderGate(matcher))

        response = TestClient(app).get("/resource", headers={"X-Key": "secret"})

        assert response.status_code == 403
        assert response.text == "Not allowed"
        assert handled == []

    def test_check_request(self):
        """Test check_request delegates to the matcher."""
        matcher = MagicMock()
        matcher.evaluate.return_value = Verdict(admitted=True)
        request = MagicMock()
        request.headers = {"X-Key": "secret"}

        verdict = HeaderGate(matcher).check_request(request)

        assert verdict.admitted is True
        matcher.evaluate.assert_called_once_with({"X-Key": "secret"})
