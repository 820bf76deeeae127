"""Tests for the audit trail and the claim summary helpers."""

import json
from datetime import datetime, timezone

import pytest

from intake.audit import AuditEntry, create_audit_entry, merge_audit, visible_entries
from intake.models.claim import Claim, ClaimInfo
from intake.models.results import BackendAuditEntry, DecisionResult, DecisionThresholds, RPAResult, UploadResult
from intake.summary import (
    RPA_STEPS,
    build_summary_document,
    decision_tone,
    gauge_percentage,
    risk_band,
    summary_filename,
    summary_json,
    triage_label,
)


def entry(stamp, action, entry_type="upload"):
    return AuditEntry(timestamp=stamp, action=action, type=entry_type)


def test_create_audit_entry_is_timestamped():
    created = create_audit_entry("Claim created", "create", "Policy P1")

    assert created.action == "Claim created"
    assert created.details == "Policy P1"
    assert created.time.tzinfo is not None


def test_create_audit_entry_rejects_unknown_type():
    with pytest.raises(ValueError):
        create_audit_entry("Something", "payment")


def test_merge_audit_sorts_client_and_backend_entries():
    client_entries = [
        entry("2024-05-01T10:00:00+00:00", "Claim created", "create"),
        entry("2024-05-01T10:05:00+00:00", "File uploaded"),
    ]
    backend = [BackendAuditEntry(step="RuleEngine", result="score 20", timestamp="2024-05-01T10:02:00Z")]

    merged = merge_audit(client_entries, backend)

    assert [item.action for item in merged] == ["Claim created", "RuleEngine", "File uploaded"]
    assert merged[1].type == "decision"
    assert merged[1].details == "score 20"


def test_backend_entries_without_timestamp_sort_last():
    client_entries = [entry("2024-05-01T10:00:00+00:00", "Claim created", "create")]

    merged = merge_audit(client_entries, [BackendAuditEntry(step="Decision", result="ok")])

    assert [item.action for item in merged] == ["Claim created", "Decision"]


@pytest.mark.parametrize("stamp", [1700000000, 1700000000.5, ["2024"], "yesterday"])
def test_unusable_backend_timestamps_are_stamped_at_merge_time(stamp):
    client_entries = [entry("2024-05-01T10:00:00+00:00", "Claim created", "create")]

    merged = merge_audit(client_entries, [BackendAuditEntry(step="RuleEngine", result="ok", timestamp=stamp)])

    assert [item.action for item in merged] == ["Claim created", "RuleEngine"]
    assert merged[1].time.year >= 2024


def test_decision_audit_with_epoch_timestamp_merges():
    decision = DecisionResult.from_payload({
        "decision": "Auto-Approve",
        "audit": [{"step": "RuleEngine", "result": "ok", "timestamp": 1700000000}],
    })

    merged = merge_audit([], decision.audit)

    assert [item.action for item in merged] == ["RuleEngine"]


def test_visible_entries_collapse_to_three():
    entries = [entry(f"2024-05-01T10:0{index}:00+00:00", f"event {index}") for index in range(5)]

    assert len(visible_entries(entries)) == 3
    assert len(visible_entries(entries, expanded=True)) == 5


@pytest.mark.parametrize("score, expected", [
    (0, "Low Risk"),
    (30, "Low Risk"),
    (30.5, "Medium Risk"),
    (60, "Medium Risk"),
    (75, "High Risk"),
])
def test_risk_band_default_thresholds(score, expected):
    assert risk_band(score)[0] == expected


def test_risk_band_uses_backend_thresholds():
    thresholds = DecisionThresholds(approve=10, manual_review=20, siu_flag=50)

    assert risk_band(15, thresholds) == ("Medium Risk", "warning")
    assert risk_band(25, thresholds) == ("High Risk", "error")


def test_gauge_percentage_is_clamped():
    assert gauge_percentage(-5) == 0
    assert gauge_percentage(140) == 100


@pytest.mark.parametrize("label, tone", [
    ("Auto-Approve", "success"),
    ("Manual Review", "warning"),
    ("SIU Flag", "error"),
    ("Reject", "error"),
])
def test_decision_tone(label, tone):
    assert decision_tone(label) == tone


def test_triage_labels():
    assert [triage_label(stage) for stage in ["DocumentExtraction", "Detector", "RPA", "Custom"]] == [
        "Document Extraction", "Damage Detection", "RPA Execution", "Custom",
    ]


def test_rpa_steps():
    assert RPA_STEPS == [
        "Logging into legacy system",
        "Creating claim record",
        "Setting reserve amounts",
        "Updating claim status",
    ]


def test_summary_document_mirrors_backend_payloads():
    claim = Claim(claim_id="c-42", info=ClaimInfo("Asha", "P-1", "Tata AIG", 5000.0, "hood dent"))
    uploads = [UploadResult("hood.jpg", "image", file_id="f1", raw={"fileId": "f1"})]
    decision = DecisionResult(decision="Auto-Approve", raw={"decision": "Auto-Approve"})
    rpa = RPAResult(status="completed", raw={"status": "completed", "steps": []})
    stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    document = build_summary_document(claim, uploads, decision, rpa, timestamp=stamp)

    assert list(document) == ["claimId", "claimInfo", "timestamp", "uploadResults", "decision", "rpaExecution"]
    assert document["claimId"] == "c-42"
    assert document["claimInfo"]["customerName"] == "Asha"
    assert document["timestamp"] == "2024-05-01T12:00:00+00:00"
    assert document["uploadResults"] == [{"fileId": "f1"}]
    assert document["decision"] == {"decision": "Auto-Approve"}
    assert document["rpaExecution"]["status"] == "completed"
    assert json.loads(summary_json(document)) == document
    assert summary_filename("c-42") == "claim-summary-c-42.json"
