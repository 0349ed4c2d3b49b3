"""
Tests for the HTTP API
"""

import pytest
from fastapi.testclient import TestClient
from pydantic_ai.models.test import TestModel

from conftest import APIError, FakeSupabase
from loan_analyst.api import app, get_chat_analyst, get_service
from loan_analyst.tools.analysis_service import LoanAnalysisService
from loan_analyst.tools.chat_agent import ChatAnalyst, build_chat_agent
from loan_analyst.tools.loan_functions import LoanFunctions

STATE_BODY = {
    "naicsCodes": [541110],
    "location": {"type": "state", "value": "TX"},
    "options": {"topN": 3},
}


@pytest.fixture
def api():
    def _client(fake: FakeSupabase) -> TestClient:
        service = LoanAnalysisService(LoanFunctions(fake), timeout=2.0)
        app.dependency_overrides[get_service] = lambda: service
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


class TestAnalysisEndpoint:

    def test_success(self, api):
        response = api(FakeSupabase()).post("/api/analysis", json=STATE_BODY)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert "competitiveLandscape" in body["data"]
        assert body["metadata"]["location"] == {"type": "state", "value": "TX"}

    def test_zip_with_range(self, api):
        fake = FakeSupabase()
        body = {
            "naicsCodes": [541110],
            "location": {"type": "zipCode", "value": 90001, "zipRange": 40},
        }
        response = api(fake).post("/api/analysis", json=body)

        assert response.status_code == 200
        assert "competitiveLandscape" not in response.json()["data"]
        assert response.json()["metadata"]["location"]["zipRange"] == 40

    def test_missing_naics(self, api):
        fake = FakeSupabase()
        body = {"naicsCodes": [], "location": {"type": "state", "value": "TX"}}
        response = api(fake).post("/api/analysis", json=body)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "NAICS codes are required"}
        assert fake.calls == []

    def test_missing_location(self, api):
        response = api(FakeSupabase()).post("/api/analysis", json={"naicsCodes": [541110]})

        assert response.status_code == 400
        assert response.json()["error"] == "Location information is required"

    def test_malformed_body(self, api):
        body = {"naicsCodes": [{"code": 5413}], "location": {"type": "county", "value": "X"}}
        response = api(FakeSupabase()).post("/api/analysis", json=body)

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_unknown_state(self, api):
        fake = FakeSupabase()
        body = {"naicsCodes": [541110], "location": {"type": "state", "value": "ZZ"}}
        response = api(fake).post("/api/analysis", json=body)

        assert response.status_code == 400
        assert "Unknown state code" in response.json()["error"]
        assert fake.calls == []

    def test_zip_with_negative_range(self, api):
        fake = FakeSupabase()
        body = {
            "naicsCodes": [541110],
            "location": {"type": "zipCode", "value": 90001, "zipRange": -5},
        }
        response = api(fake).post("/api/analysis", json=body)

        assert response.status_code == 200
        assert "competitiveLandscape" not in response.json()["data"]

    def test_remote_failure(self, api):
        fake = FakeSupabase({"get_top_banks_info": APIError("connection refused")})
        response = api(fake).post("/api/analysis", json=STATE_BODY)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Failed to fetch top banks info: connection refused",
        }

    def test_competitive_failure_still_succeeds(self, api):
        fake = FakeSupabase(
            {"analyze_competitive_landscape_by_state": APIError("statement timeout")}
        )
        response = api(fake).post("/api/analysis", json=STATE_BODY)

        assert response.status_code == 200
        assert "competitiveLandscape" not in response.json()["data"]


class TestChatEndpoint:

    def setup_method(self):
        service = LoanAnalysisService(LoanFunctions(FakeSupabase()), timeout=2.0)
        agent = build_chat_agent(
            model=TestModel(call_tools=[], custom_output_text="Which state?"),
            web_search=False,
        )
        app.dependency_overrides[get_chat_analyst] = lambda: ChatAnalyst(service, agent=agent)
        self.client = TestClient(app)

    def teardown_method(self):
        app.dependency_overrides.clear()

    def test_reply(self):
        response = self.client.post(
            "/api/chat", json={"messages": [{"role": "user", "content": "Dentists"}]}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "reply": "Which state?", "toolResults": []}

    def test_last_message_from_assistant(self):
        response = self.client.post(
            "/api/chat", json={"messages": [{"role": "assistant", "content": "Hi"}]}
        )

        assert response.status_code == 400
        assert response.json()["success"] is False


def test_health():
    assert TestClient(app).get("/health").json() == {"status": "ok"}
