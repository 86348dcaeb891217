"""
Integration tests for OpenAPI documentation.

Verifies OpenAPI schema is correctly generated for all endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from src.api.main import app


@pytest.fixture
def schema() -> dict:
    """Fetch the generated schema without running the lifespan."""
    response = TestClient(app).get("/openapi.json")
    assert response.status_code == 200
    return response.json()


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    def test_title_and_version(self, schema: dict) -> None:
        assert schema["info"]["title"] == "perkgate"
        assert "one-time email code" in schema["info"]["description"]
        assert schema["info"]["version"] == "0.1.0"

    @pytest.mark.parametrize(
        ("path", "method", "summary"),
        [
            ("/v1/employee-verifications/start", "post", "Start employee verification"),
            ("/v1/employee-verifications/verify", "post", "Verify code and issue employee token"),
            ("/v1/employee-verifications/status", "get", "Get current verification status"),
        ],
    )
    def test_verification_endpoints_documented(
        self, schema: dict, path: str, method: str, summary: str
    ) -> None:
        assert path in schema["paths"]
        assert schema["paths"][path][method]["summary"] == summary

    def test_health_endpoint_documented(self, schema: dict) -> None:
        assert "get" in schema["paths"]["/health"]

    def test_start_request_schema(self, schema: dict) -> None:
        props = schema["components"]["schemas"]["StartVerificationRequest"]["properties"]
        assert set(props) == {"company", "email"}

    def test_verify_request_code_pattern(self, schema: dict) -> None:
        code = schema["components"]["schemas"]["VerifyCodeRequest"]["properties"]["code"]
        assert code["pattern"] == r"^\d{6}$"

    def test_documented_error_statuses(self, schema: dict) -> None:
        responses = schema["paths"]["/v1/employee-verifications/verify"]["post"]["responses"]
        for status_code in ("400", "404", "409", "429"):
            assert status_code in responses

    def test_status_endpoint_uses_bearer_auth(self, schema: dict) -> None:
        security = schema["paths"]["/v1/employee-verifications/status"]["get"]["security"]
        assert {"HTTPBearer": []} in security
