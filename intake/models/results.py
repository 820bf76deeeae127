"""
View models for backend results.

Every backend payload passes through a ``from_payload`` constructor that
normalises the field renames seen across backend revisions (camelCase vs
snake_case, ``path`` vs ``triagePath`` and so on). Rendering code only
sees these dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


DEFAULT_APPROVE_THRESHOLD = 30.0
DEFAULT_REVIEW_THRESHOLD = 60.0
DEFAULT_SIU_THRESHOLD = 90.0


def _first(payload: Dict[str, Any], *keys: str) -> Any:
    """Return the first present, non-None value among ``keys``."""
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _as_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_int(value: Any) -> Optional[int]:
    number = _as_float(value)
    if number is None or number != number or number in (float("inf"), float("-inf")):
        return None
    return int(number)


@dataclass
class DetectorResult:
    """Damage detection output for an uploaded image."""
    damage_zone: Optional[str] = None
    damage_severity: Optional[str] = None
    confidence: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "DetectorResult":
        return cls(
            damage_zone=_first(payload, "damage_zone", "damageZone", "damage_area"),
            damage_severity=_first(payload, "damage_severity", "damageSeverity", "severity"),
            confidence=_as_float(payload.get("confidence")),
        )


@dataclass
class ExtractResult:
    """Document extraction output for an uploaded document."""
    document_type: Optional[str] = None
    extracted_text: Optional[str] = None
    claim_amount: Optional[float] = None
    policy_number: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ExtractResult":
        return cls(
            document_type=_first(payload, "document_type", "documentType"),
            extracted_text=_first(payload, "extracted_text", "extractedText"),
            claim_amount=_as_float(_first(payload, "claim_amount", "claimAmount")),
            policy_number=_first(payload, "policy_number", "policyNumber"),
        )


@dataclass
class UploadResult:
    """
    Per-file outcome of POST /claims/{id}/upload.

    Attributes:
        filename: Name of the uploaded file
        kind: "image" or "document"
        file_id: Backend identifier for the stored file, if returned
        detector: Damage detection payload (images)
        extract: Extraction payload (documents)
        raw: Payload exactly as returned by the backend
    """
    filename: str
    kind: str
    file_id: Optional[str] = None
    detector: Optional[DetectorResult] = None
    extract: Optional[ExtractResult] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], filename: str, kind: str) -> "UploadResult":
        payload = _as_dict(payload)
        metadata = _as_dict(payload.get("metadata"))
        detector = _first(metadata, "detector") or payload.get("detector")
        extract = _first(metadata, "extract") or payload.get("extract")
        return cls(
            filename=_first(payload, "filename", "fileName") or filename,
            kind=payload.get("type") or kind,
            file_id=_first(payload, "fileId", "file_id", "id"),
            detector=DetectorResult.from_payload(detector) if isinstance(detector, dict) else None,
            extract=ExtractResult.from_payload(extract) if isinstance(extract, dict) else None,
            raw=payload,
        )


@dataclass
class CheckResult:
    """Completeness check: "ok" or "needs_info" with the missing field names."""
    status: str
    missing: List[str] = field(default_factory=list)

    @property
    def needs_info(self) -> bool:
        return self.status == "needs_info" and bool(self.missing)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "CheckResult":
        payload = _as_dict(payload)
        missing = _as_list(payload.get("missing"))
        return cls(
            status=str(payload.get("status") or "ok"),
            missing=[str(item) for item in missing],
        )


@dataclass
class DecisionThresholds:
    """Risk score cut-offs reported by the decision engine."""
    approve: float = DEFAULT_APPROVE_THRESHOLD
    manual_review: float = DEFAULT_REVIEW_THRESHOLD
    siu_flag: float = DEFAULT_SIU_THRESHOLD

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "DecisionThresholds":
        approve = _as_float(_first(payload, "approve", "autoApprove", "auto_approve"))
        review = _as_float(_first(payload, "manualReview", "manual_review"))
        siu = _as_float(_first(payload, "siuFlag", "siu_flag", "deny"))
        return cls(
            approve=DEFAULT_APPROVE_THRESHOLD if approve is None else approve,
            manual_review=DEFAULT_REVIEW_THRESHOLD if review is None else review,
            siu_flag=DEFAULT_SIU_THRESHOLD if siu is None else siu,
        )


@dataclass
class BackendAuditEntry:
    """An audit record reported by the backend alongside a decision."""
    step: str
    result: str
    timestamp: Optional[str] = None


@dataclass
class DecisionResult:
    """
    Output of the backend decision engine.

    Attributes:
        decision: Decision label (e.g. "Auto-Approve", "Manual Review", "SIU Flag")
        reason: Explanation from the backend
        risk_level: Optional qualitative risk level
        risk_score: Optional risk score on a 0-100 scale
        damage_zone: Optional damage zone used for the decision
        mismatch_score: Optional mismatch score
        mismatch_count: Optional number of mismatches found
        approved_amount: Optional approved payout
        thresholds: Optional decision thresholds
        path: Ordered triage stages the claim passed through
        audit: Backend audit entries
        raw: Payload exactly as returned by the backend
    """
    decision: str
    reason: str = ""
    risk_level: Optional[str] = None
    risk_score: Optional[float] = None
    damage_zone: Optional[str] = None
    mismatch_score: Optional[float] = None
    mismatch_count: Optional[int] = None
    approved_amount: Optional[float] = None
    thresholds: Optional[DecisionThresholds] = None
    path: List[str] = field(default_factory=list)
    audit: List[BackendAuditEntry] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "DecisionResult":
        payload = _as_dict(payload)

        risk_score = _as_float(payload.get("riskScore"))
        if risk_score is None:
            # The legacy engine reports risk_score as a 0-1 fraction
            risk_score = _as_float(payload.get("risk_score"))
            if risk_score is not None and 0 <= risk_score <= 1:
                risk_score = round(risk_score * 100, 2)

        thresholds = payload.get("thresholds")
        path = _as_list(_first(payload, "path", "triagePath", "triage_path"))

        audit = []
        for item in _as_list(payload.get("audit")):
            if isinstance(item, dict) and item.get("step"):
                audit.append(BackendAuditEntry(
                    step=str(item["step"]),
                    result=str(item.get("result", "")),
                    timestamp=str(item["timestamp"]) if item.get("timestamp") is not None else None,
                ))

        return cls(
            decision=str(payload.get("decision") or "Unknown"),
            reason=str(_first(payload, "reason", "reasoning") or ""),
            risk_level=_first(payload, "riskLevel", "risk_level"),
            risk_score=risk_score,
            damage_zone=_first(payload, "damageZone", "damage_zone"),
            mismatch_score=_as_float(_first(payload, "mismatch_score", "mismatchScore")),
            mismatch_count=_as_int(_first(payload, "mismatchCount", "mismatch_count")),
            approved_amount=_as_float(_first(payload, "approvedAmount", "approved_amount")),
            thresholds=DecisionThresholds.from_payload(thresholds) if isinstance(thresholds, dict) else None,
            path=[str(stage) for stage in path],
            audit=audit,
            raw=payload,
        )


@dataclass
class RPAStepResult:
    """One automation step reported by the RPA endpoint."""
    index: int
    description: str
    status: Optional[str] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return bool(self.error) or (self.status or "").lower() in ("failed", "error")


@dataclass
class RPAResult:
    """Output of the RPA endpoint."""
    status: str
    steps: List[RPAStepResult] = field(default_factory=list)
    message: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "RPAResult":
        payload = _as_dict(payload)
        steps = []
        for position, item in enumerate(_as_list(payload.get("steps")), start=1):
            if isinstance(item, str):
                steps.append(RPAStepResult(index=position, description=item))
                continue
            if not isinstance(item, dict):
                continue
            index = _first(item, "step", "index")
            steps.append(RPAStepResult(
                index=int(index) if isinstance(index, (int, float)) else position,
                description=str(_first(item, "description", "name", "action") or f"Step {position}"),
                status=item.get("status"),
                error=item.get("error"),
            ))
        return cls(
            status=str(_first(payload, "status", "overall_status") or "unknown"),
            steps=steps,
            message=payload.get("message"),
            raw=payload,
        )
