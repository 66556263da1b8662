"""Tests for AWS Lambda handler."""

import base64
import json

from lambda_handler import lambda_handler

WEEK_PAYLOAD = {
    "trainer": {"id": 1, "name": "Sam", "tier": 1},
    "weekStart": "2025-01-06",
    "clients": [{"id": 1, "name": "Alice", "trainerId": 1, "tierAtSignup": 1}],
    "sessions": [{"id": 1, "clientId": 1, "trainerId": 1, "date": "2025-01-07"}],
    "incomeRates": [
        {"trainerId": 1, "minClasses": 1, "maxClasses": 12, "rate": 0.46, "effectiveWeek": "2024-12-30"},
        {"trainerId": 1, "minClasses": 13, "maxClasses": None, "rate": 0.51, "effectiveWeek": "2024-12-30"},
    ],
}


class TestLambdaHandler:
    """Test the Lambda handler routes and responses."""

    def test_health_check(self):
        """GET /health returns healthy status."""
        event = {"httpMethod": "GET", "path": "/health"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "healthy"

    def test_api_info(self):
        """GET /api returns API information."""
        event = {"httpMethod": "GET", "path": "/api"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "ok"
        assert set(body["endpoints"]) == {"weekly_dashboard", "allocate", "health"}

    def test_cors_preflight(self):
        """OPTIONS requests return CORS headers."""
        event = {"httpMethod": "OPTIONS", "path": "/weekly_dashboard"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        assert "Access-Control-Allow-Origin" in response["headers"]
        assert "Access-Control-Allow-Methods" in response["headers"]

    def test_not_found(self):
        """Unknown paths return 404."""
        event = {"httpMethod": "GET", "path": "/unknown"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 404

    def test_weekly_dashboard_success(self):
        """POST /weekly_dashboard computes the week."""
        event = {"httpMethod": "POST", "path": "/weekly_dashboard", "body": json.dumps(WEEK_PAYLOAD)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        # no custom prices on Alice -> tier 1 single-class price 150 at 46%
        assert body["incomeSummary"]["finalWeeklyIncome"] == 69.0
        assert body["clientRows"][0]["clientName"] == "Alice"

    def test_base64_body(self):
        """API Gateway may deliver the body base64-encoded."""
        encoded = base64.b64encode(json.dumps(WEEK_PAYLOAD).encode("utf-8")).decode("ascii")
        event = {"httpMethod": "POST", "path": "/weekly_dashboard", "body": encoded, "isBase64Encoded": True}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200

    def test_weekly_dashboard_empty_body(self):
        """POST /weekly_dashboard with empty body returns 400."""
        event = {"httpMethod": "POST", "path": "/weekly_dashboard", "body": ""}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert "error" in body

    def test_weekly_dashboard_invalid_json(self):
        """POST /weekly_dashboard with invalid JSON returns 400."""
        event = {"httpMethod": "POST", "path": "/weekly_dashboard", "body": "not valid json"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["status"] == "failed"

    def test_weekly_dashboard_validation_error(self):
        """POST /weekly_dashboard with an invalid trainer tier returns 400."""
        payload = dict(WEEK_PAYLOAD, trainer={"id": 1, "name": "Sam", "tier": 7})
        event = {"httpMethod": "POST", "path": "/weekly_dashboard", "body": json.dumps(payload)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["status"] == "validation_failed"

    def test_allocate(self):
        """POST /allocate returns the rebalanced sessions."""
        payload = {
            "clientId": 1,
            "trainerId": 1,
            "packages": [{"id": 10, "clientId": 1, "trainerId": 1, "sessionsPurchased": 4, "startDate": "2025-01-01"}],
            "sessions": [{"id": 1, "clientId": 1, "trainerId": 1, "date": "2025-01-03"}],
        }
        event = {"httpMethod": "POST", "path": "/allocate", "body": json.dumps(payload)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["changed"] is True
        assert body["sessions"][0]["packageId"] == 10

    def test_http_api_format(self):
        """Supports HTTP API v2 event format."""
        event = {"requestContext": {"http": {"method": "GET"}}, "rawPath": "/health"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
