"""Decision presentation helpers and the downloadable claim summary."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .models.claim import Claim
from .models.results import DecisionResult, DecisionThresholds, RPAResult, UploadResult

# Shown while the RPA request is in flight; the backend reports the real steps
RPA_STEPS: List[str] = [
    "Logging into legacy system",
    "Creating claim record",
    "Setting reserve amounts",
    "Updating claim status",
]

TRIAGE_LABELS: Dict[str, str] = {
    "DocumentExtraction": "Document Extraction",
    "DamageDetector": "Damage Detection",
    "Detector": "Damage Detection",
    "RuleEngine": "Rule Engine",
    "Decision": "Decision",
    "RPA": "RPA Execution",
    "ManualReview": "Manual Review",
}


def triage_label(stage: str) -> str:
    return TRIAGE_LABELS.get(stage, stage)


def decision_tone(decision_label: str) -> str:
    label = (decision_label or "").lower()
    if "approve" in label:
        return "success"
    if "reject" in label or "siu" in label or "flag" in label:
        return "error"
    return "warning"


def risk_band(score: float, thresholds: Optional[DecisionThresholds] = None) -> Tuple[str, str]:
    """
    Place a risk score in the Low/Medium/High band.

    Args:
        score: Risk score on a 0-100 scale
        thresholds: Backend thresholds (defaults apply when absent)

    Returns:
        Tuple of (label, tone)
    """
    thresholds = thresholds or DecisionThresholds()
    if score <= thresholds.approve:
        return "Low Risk", "success"
    if score <= thresholds.manual_review:
        return "Medium Risk", "warning"
    return "High Risk", "error"


def gauge_percentage(score: float) -> float:
    return min(100.0, max(0.0, score))


def build_summary_document(
    claim: Claim,
    upload_results: List[UploadResult],
    decision: Optional[DecisionResult],
    rpa_result: Optional[RPAResult],
    timestamp: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Assemble the claim summary offered for download.

    Backend payloads are included as returned, not as normalised view models,
    so the file mirrors what the backend actually said.
    """
    stamp = timestamp or datetime.now(timezone.utc)
    return {
        "claimId": claim.claim_id,
        "claimInfo": claim.info.to_payload(),
        "timestamp": stamp.isoformat(),
        "uploadResults": [result.raw or asdict(result) for result in upload_results],
        "decision": decision.raw if decision else None,
        "rpaExecution": rpa_result.raw if rpa_result else None,
    }


def summary_filename(claim_id: str) -> str:
    return f"claim-summary-{claim_id}.json"


def summary_json(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2, default=str)
