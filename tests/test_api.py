"""Tests for the HTTP surface."""

from __future__ import annotations

import re
import time

from fastapi import FastAPI, status
from fastapi.testclient import TestClient

from loanflow.core.settings import Settings
from loanflow.main import create_app
from loanflow.services.csrf import CsrfTokenService

from tests.conftest import TEST_SECRET, FakeClock

CSRF_ERROR = {"error": "Invalid or missing CSRF token"}
UNPROCESSABLE = 422
REPORT = {"message": "Camera not available", "step": "id-capture", "level": "ERROR"}


def test_health(client: TestClient) -> None:
    r = client.get("/health")
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"status": "ok"}


def test_health_is_not_rate_limited(client: TestClient) -> None:
    r = client.get("/health")
    assert "RateLimit-Limit" not in r.headers


def test_csrf_token_endpoint(client: TestClient) -> None:
    r = client.get("/api/csrf-token")
    assert r.status_code == status.HTTP_200_OK
    nonce, expiry, signature = r.json()["token"].split(":")
    assert re.fullmatch(r"[0-9a-f]+", nonce)
    assert re.fullmatch(r"[0-9a-f]{64}", signature)
    assert int(expiry) > time.time() * 1000


def test_each_call_mints_a_fresh_token(client: TestClient) -> None:
    first = client.get("/api/csrf-token").json()["token"]
    second = client.get("/api/csrf-token").json()["token"]
    assert first != second


def test_issued_token_verifies_with_app_service(app: FastAPI, client: TestClient) -> None:
    token = client.get("/api/csrf-token").json()["token"]
    assert app.state.csrf_service.verify(token)


def test_missing_token_is_forbidden(client: TestClient) -> None:
    r = client.post("/api/ekyc/error-report", json={})
    assert r.status_code == status.HTTP_403_FORBIDDEN
    assert r.json() == CSRF_ERROR


def test_invalid_token_is_forbidden(client: TestClient) -> None:
    r = client.post(
        "/api/ekyc/error-report",
        json=REPORT,
        headers={"x-csrf-token": "deadbeef:1:abc"},
    )
    assert r.status_code == status.HTTP_403_FORBIDDEN
    assert r.json() == CSRF_ERROR


def test_header_token_passes_gate(client: TestClient, csrf_headers: dict[str, str]) -> None:
    r = client.post("/api/ekyc/error-report", json=REPORT, headers=csrf_headers)
    assert r.status_code == status.HTTP_201_CREATED
    body = r.json()
    assert body["success"] is True
    assert body["reportId"]


def test_legacy_body_field_passes_gate(client: TestClient, csrf_headers: dict[str, str]) -> None:
    payload = {**REPORT, "_token": csrf_headers["x-csrf-token"]}
    r = client.post("/api/ekyc/error-report", json=payload)
    assert r.status_code == status.HTTP_201_CREATED


def test_alternate_body_field_passes_gate(
    client: TestClient, csrf_headers: dict[str, str]
) -> None:
    payload = {**REPORT, "csrfToken": csrf_headers["x-csrf-token"]}
    r = client.post("/api/ekyc/error-report", json=payload)
    assert r.status_code == status.HTTP_201_CREATED


def test_form_encoded_legacy_token_passes_gate(
    client: TestClient, csrf_headers: dict[str, str]
) -> None:
    form = {"_token": csrf_headers["x-csrf-token"], "message": "Upload failed"}
    r = client.post("/api/ekyc/error-report", data=form)
    assert r.status_code == status.HTTP_201_CREATED


def test_header_takes_priority_over_body(client: TestClient, csrf_headers: dict[str, str]) -> None:
    """A bad header token is not rescued by a good body token."""
    payload = {**REPORT, "_token": csrf_headers["x-csrf-token"]}
    r = client.post(
        "/api/ekyc/error-report",
        json=payload,
        headers={"x-csrf-token": "bad:token:value"},
    )
    assert r.status_code == status.HTTP_403_FORBIDDEN


def test_non_string_body_token_is_forbidden(client: TestClient) -> None:
    r = client.post("/api/ekyc/error-report", json={**REPORT, "_token": 12345})
    assert r.status_code == status.HTTP_403_FORBIDDEN


def test_malformed_json_body_is_forbidden(client: TestClient) -> None:
    r = client.post(
        "/api/ekyc/error-report",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert r.status_code == status.HTTP_403_FORBIDDEN


def test_malformed_multipart_body_without_token_is_forbidden(client: TestClient) -> None:
    r = client.post(
        "/api/ekyc/error-report",
        content=b"garbage",
        headers={"content-type": "multipart/form-data"},
    )
    assert r.status_code == status.HTTP_403_FORBIDDEN
    assert r.json() == CSRF_ERROR


def test_malformed_multipart_body_with_header_token_passes_gate(
    client: TestClient, csrf_headers: dict[str, str]
) -> None:
    r = client.post(
        "/api/ekyc/error-report",
        content=b"garbage",
        headers={"content-type": "multipart/form-data; boundary=x", **csrf_headers},
    )
    assert r.status_code not in (status.HTTP_400_BAD_REQUEST, status.HTTP_403_FORBIDDEN)
    assert "multipart" not in r.text.lower()


def test_expired_token_is_forbidden(app: FastAPI, client: TestClient) -> None:
    clock = FakeClock(start=time.time())
    app.state.csrf_service = CsrfTokenService(app.state.security, clock=clock)
    token = client.get("/api/csrf-token").json()["token"]
    clock.advance(31 * 60)
    r = client.post("/api/ekyc/error-report", json=REPORT, headers={"x-csrf-token": token})
    assert r.status_code == status.HTTP_403_FORBIDDEN
    assert r.json() == CSRF_ERROR


def test_invalid_report_payload_is_unprocessable(
    client: TestClient, csrf_headers: dict[str, str]
) -> None:
    r = client.post("/api/ekyc/error-report", json={"level": "ERROR"}, headers=csrf_headers)
    assert r.status_code == UNPROCESSABLE


def test_unknown_level_is_unprocessable(client: TestClient, csrf_headers: dict[str, str]) -> None:
    r = client.post(
        "/api/ekyc/error-report",
        json={"message": "x", "level": "FATAL"},
        headers=csrf_headers,
    )
    assert r.status_code == UNPROCESSABLE


def test_stats_reflect_submitted_reports(
    client: TestClient, csrf_headers: dict[str, str]
) -> None:
    client.post("/api/ekyc/error-report", json=REPORT, headers=csrf_headers)
    client.post(
        "/api/ekyc/error-report",
        json={"message": "Slow network", "level": "WARN", "step": "upload"},
        headers=csrf_headers,
    )
    r = client.get("/api/ekyc/stats")
    assert r.status_code == status.HTTP_200_OK
    stats = r.json()
    assert stats["total"] == 2
    assert stats["byLevel"] == {"ERROR": 1, "WARN": 1}
    assert stats["byStep"] == {"id-capture": 1, "upload": 1}
    assert stats["lastReportAt"] is not None


def test_stored_report_keeps_client_details(
    app: FastAPI, client: TestClient, csrf_headers: dict[str, str]
) -> None:
    payload = {
        **REPORT,
        "userAgent": "Mozilla/5.0",
        "timestamp": "2026-01-01T00:00:00Z",
        "data": {"attempt": 2},
    }
    client.post("/api/ekyc/error-report", json=payload, headers=csrf_headers)
    (report,) = app.state.error_reports.recent()
    assert report.user_agent == "Mozilla/5.0"
    assert report.client_timestamp == "2026-01-01T00:00:00Z"
    assert report.data == {"attempt": 2}
    assert report.client_ip == "testclient"


def test_error_reports_are_action_limited(
    client: TestClient, csrf_headers: dict[str, str]
) -> None:
    for _ in range(5):
        r = client.post("/api/ekyc/error-report", json=REPORT, headers=csrf_headers)
        assert r.status_code == status.HTTP_201_CREATED
    r = client.post("/api/ekyc/error-report", json=REPORT, headers=csrf_headers)
    assert r.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert r.json() == {"error": "Too many requests, please try again later."}
    assert "Retry-After" in r.headers


def test_forged_requests_do_not_consume_action_slots(
    client: TestClient, csrf_headers: dict[str, str]
) -> None:
    for _ in range(10):
        client.post("/api/ekyc/error-report", json=REPORT)
    r = client.post("/api/ekyc/error-report", json=REPORT, headers=csrf_headers)
    assert r.status_code == status.HTTP_201_CREATED


def test_api_rate_limit_headers(client: TestClient) -> None:
    r = client.get("/api/csrf-token")
    assert r.headers["RateLimit-Limit"] == "120"
    assert r.headers["RateLimit-Remaining"] == "119"
    assert r.headers["RateLimit-Reset"] == "60"
    assert not any(name.lower().startswith("x-ratelimit") for name in r.headers)


def test_api_rate_limit_rejects_beyond_ceiling() -> None:
    config = Settings(CSRF_SECRET=TEST_SECRET, APP_ENV="test", API_RATE_LIMIT_MAX=3)
    with TestClient(create_app(config)) as client:
        for _ in range(3):
            assert client.get("/api/csrf-token").status_code == status.HTTP_200_OK
        r = client.get("/api/csrf-token")
        assert r.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert r.json() == {"error": "Too many requests, please try again later."}
        assert r.headers["RateLimit-Remaining"] == "0"
        assert "Retry-After" in r.headers
        assert client.get("/health").status_code == status.HTTP_200_OK


def test_security_headers_present(client: TestClient) -> None:
    r = client.get("/health")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "SAMEORIGIN"


def test_unknown_route_uses_error_envelope(client: TestClient) -> None:
    r = client.get("/api/does-not-exist")
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json() == {"error": "Not Found"}
