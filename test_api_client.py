"""Tests for the claims backend HTTP client."""

import json

import httpx
import pytest

from intake.api.client import ClaimsApiClient, LEGACY_RPA_PATH
from intake.models.claim import ClaimInfo
from intake.utils.errors import (
    RPA_NOT_AVAILABLE_MESSAGE,
    BackendHTTPError,
    BackendResponseError,
    BackendTimeoutError,
    BackendTransportError,
    ErrorType,
    RPANotAvailableError,
)

BASE_URL = "http://claims.test"


def make_client(handler, **kwargs) -> ClaimsApiClient:
    http = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return ClaimsApiClient(BASE_URL, http_client=http, **kwargs)


@pytest.fixture
def info() -> ClaimInfo:
    return ClaimInfo(
        customer_name=" Asha Rao ",
        policy_number="POL-1",
        company="HDFC Ergo",
        claim_amount=1200.0,
        damage_description="rear bumper",
    )


def test_create_claim_posts_camel_case_payload(info):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"claimId": "abc-123"})

    client = make_client(handler)

    assert client.create_claim(info) == "abc-123"
    assert seen["method"] == "POST"
    assert seen["path"] == "/claims"
    assert seen["body"] == {
        "customerName": "Asha Rao",
        "policyNumber": "POL-1",
        "company": "HDFC Ergo",
        "claimAmount": 1200.0,
        "damageDescription": "rear bumper",
    }


def test_create_claim_without_id_is_a_response_error(info):
    client = make_client(lambda request: httpx.Response(200, json={"ok": True}))

    with pytest.raises(BackendResponseError):
        client.create_claim(info)


def test_upload_sends_multipart_file_and_type():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = request.read()
        return httpx.Response(200, json={
            "fileId": "f-1",
            "metadata": {"detector": {"damage_zone": "front bumper", "damage_severity": "minor",
                                      "confidence": "0.9"}},
        })

    client = make_client(handler)
    result = client.upload_file("c-1", "front.jpg", b"\x89PNG", "image", "image/png")

    assert seen["path"] == "/claims/c-1/upload"
    assert b'name="file"; filename="front.jpg"' in seen["body"]
    assert b'name="type"' in seen["body"]
    assert result.file_id == "f-1"
    assert result.detector.damage_zone == "front bumper"
    assert result.detector.confidence == pytest.approx(0.9)
    assert result.extract is None


def test_upload_accepts_top_level_extract_with_camel_case_keys():
    payload = {"id": "f-2", "extract": {"documentType": "invoice", "claimAmount": "4500", "policyNumber": "P9"}}
    client = make_client(lambda request: httpx.Response(200, json=payload))

    result = client.upload_file("c-1", "invoice.pdf", b"%PDF", "document")

    assert result.file_id == "f-2"
    assert result.extract.document_type == "invoice"
    assert result.extract.claim_amount == 4500.0
    assert result.extract.policy_number == "P9"


def test_check_defaults_and_missing_fields():
    client = make_client(lambda request: httpx.Response(
        200, json={"status": "needs_info", "missing": ["repair_estimate"]}
    ))

    result = client.check_claim("c-1")

    assert result.needs_info
    assert result.missing == ["repair_estimate"]


def test_decision_normalises_renamed_fields():
    payload = {
        "decision": "Manual Review",
        "reasoning": "Zone mismatch",
        "risk_score": 0.42,
        "triagePath": ["DocumentExtraction", "Detector", "ManualReview"],
        "thresholds": {"autoApprove": 25, "manual_review": 55, "deny": 85},
        "mismatchCount": 1,
        "audit": [{"step": "RuleEngine", "result": "score 42", "timestamp": "2024-01-01T10:00:00Z"}],
    }
    client = make_client(lambda request: httpx.Response(200, json=payload))

    decision = client.get_decision("c-1")

    assert decision.reason == "Zone mismatch"
    assert decision.risk_score == 42.0
    assert decision.path == ["DocumentExtraction", "Detector", "ManualReview"]
    assert decision.thresholds.approve == 25
    assert decision.thresholds.manual_review == 55
    assert decision.thresholds.siu_flag == 85
    assert decision.mismatch_count == 1
    assert decision.audit[0].step == "RuleEngine"
    assert decision.raw == payload


@pytest.mark.parametrize("count, expected", [
    ("2.0", 2),
    ("3", 3),
    (4.0, 4),
    ("n/a", None),
    ([1], None),
])
def test_decision_tolerates_loose_mismatch_count(count, expected):
    client = make_client(lambda request: httpx.Response(
        200, json={"decision": "Manual Review", "mismatchCount": count}
    ))

    assert client.get_decision("c-1").mismatch_count == expected


@pytest.mark.parametrize("shape", ["DocumentExtraction", 5, {"stage": "RPA"}])
def test_decision_ignores_path_and_audit_that_are_not_lists(shape):
    client = make_client(lambda request: httpx.Response(
        200, json={"decision": "Auto-Approve", "path": shape, "audit": shape}
    ))

    decision = client.get_decision("c-1")

    assert decision.path == []
    assert decision.audit == []


def test_decision_audit_timestamp_is_kept_as_text():
    client = make_client(lambda request: httpx.Response(200, json={
        "decision": "Auto-Approve",
        "audit": [{"step": "RuleEngine", "result": "ok", "timestamp": 1700000000}],
    }))

    assert client.get_decision("c-1").audit[0].timestamp == "1700000000"


@pytest.mark.parametrize("payload, expected", [
    ({"riskScore": 1}, 1.0),
    ({"riskScore": 0.5}, 0.5),
    ({"riskScore": 72, "risk_score": 0.1}, 72.0),
    ({"risk_score": 0.35}, 35.0),
    ({"risk_score": 48}, 48.0),
])
def test_only_legacy_risk_score_is_scaled_from_a_fraction(payload, expected):
    client = make_client(lambda request: httpx.Response(200, json={"decision": "Auto-Approve", **payload}))

    assert client.get_decision("c-1").risk_score == expected


@pytest.mark.parametrize("missing", ["repair_estimate", 5, {"field": "claim_amount"}])
def test_check_ignores_missing_that_is_not_a_list(missing):
    client = make_client(lambda request: httpx.Response(
        200, json={"status": "needs_info", "missing": missing}
    ))

    result = client.check_claim("c-1")

    assert result.missing == []
    assert not result.needs_info


def test_rpa_ignores_steps_that_are_not_a_list():
    client = make_client(lambda request: httpx.Response(200, json={"status": "completed", "steps": "done"}))

    assert client.execute_rpa("c-1").steps == []


def test_rpa_reads_overall_status_and_steps():
    payload = {"overall_status": "completed", "steps": [
        {"index": 1, "description": "Logging into legacy system"},
        {"step": 2, "description": "Creating claim record", "error": "locked"},
    ]}
    client = make_client(lambda request: httpx.Response(200, json=payload))

    result = client.execute_rpa("c-1")

    assert result.status == "completed"
    assert [step.index for step in result.steps] == [1, 2]
    assert result.steps[1].failed
    assert not result.steps[0].failed


def test_rpa_404_is_not_available_with_exact_message():
    client = make_client(lambda request: httpx.Response(404, json={"detail": "nope"}))

    with pytest.raises(RPANotAvailableError) as excinfo:
        client.execute_rpa("c-1")

    assert excinfo.value.user_message == "RPA not available for this claim. Contact support."
    assert excinfo.value.user_message == RPA_NOT_AVAILABLE_MESSAGE
    assert excinfo.value.context.recoverable is False


def test_rpa_path_is_configurable():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        return httpx.Response(200, json={"status": "completed", "steps": []})

    make_client(handler, rpa_path=LEGACY_RPA_PATH).execute_rpa("c-9")

    assert seen["path"] == "/claims/c-9/simulate-rpa"


def test_http_error_carries_status_code(info):
    client = make_client(lambda request: httpx.Response(500))

    with pytest.raises(BackendHTTPError) as excinfo:
        client.create_claim(info)

    assert excinfo.value.status_code == 500
    assert "HTTP 500" in excinfo.value.user_message


def test_transport_failure_is_classified_as_cors_with_base_url(info):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    with pytest.raises(BackendTransportError) as excinfo:
        client.create_claim(info)

    message = excinfo.value.user_message
    assert "CORS" in message
    assert BASE_URL in message
    assert excinfo.value.context.error_type == ErrorType.BACKEND_TRANSPORT_ERROR


def test_timeout_is_reported_with_duration():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    client = make_client(handler, timeout=15.0)

    with pytest.raises(BackendTimeoutError) as excinfo:
        client.check_claim("c-1")

    assert "15s" in excinfo.value.user_message


def test_invalid_json_includes_body_snippet():
    body = "<html>" + "x" * 500 + "</html>"
    client = make_client(lambda request: httpx.Response(200, text=body))

    with pytest.raises(BackendResponseError) as excinfo:
        client.get_decision("c-1")

    assert excinfo.value.user_message == f"Invalid JSON response: {body[:200]}"


@pytest.mark.parametrize("response, expected", [
    (httpx.Response(200, json={"status": "ok"}), True),
    (httpx.Response(200, json={"status": "degraded"}), False),
    (httpx.Response(503, json={"status": "ok"}), False),
    (httpx.Response(200, text="pong"), False),
])
def test_ping_backend(response, expected):
    client = make_client(lambda request: response)

    assert client.ping_backend() is expected


def test_ping_backend_never_raises_on_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    assert make_client(handler).ping_backend() is False


def test_injected_http_client_is_not_closed():
    http = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(lambda request: httpx.Response(200)))

    with ClaimsApiClient(BASE_URL, http_client=http):
        pass

    assert not http.is_closed


def test_owned_http_client_is_closed():
    with ClaimsApiClient(BASE_URL) as client:
        http = client._http

    assert http.is_closed
