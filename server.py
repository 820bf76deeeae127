"""FastAPI sandbox backend for running the claim intake wizard locally."""

from __future__ import annotations

import logging
import re
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from intake.mismatch import detect_mismatch
from intake.models.results import (
    DEFAULT_APPROVE_THRESHOLD,
    DEFAULT_REVIEW_THRESHOLD,
    DEFAULT_SIU_THRESHOLD,
)
from intake.summary import RPA_STEPS

logger = logging.getLogger(__name__)

APP_TITLE = "Claims Intake Sandbox"
MAX_FILE_SIZE_MB = 10

# Filename keyword -> damage zone reported by the fake detector
ZONE_KEYWORDS: Dict[str, str] = {
    "front": "front bumper",
    "rear": "rear bumper",
    "back": "rear bumper",
    "door": "side door",
    "side": "side door",
    "hood": "hood",
    "bonnet": "hood",
    "roof": "roof",
    "windshield": "windshield",
    "glass": "windshield",
    "headlight": "headlight",
}
DEFAULT_ZONE = "front bumper"

SEVERITY_KEYWORDS = {"severe": "severe", "major": "severe", "minor": "minor", "scratch": "minor"}

AMOUNT_PATTERN = re.compile(r"(?:amount|total)[^0-9]{0,20}([0-9][0-9,]*(?:\.[0-9]+)?)", re.IGNORECASE)
POLICY_PATTERN = re.compile(r"policy(?:\s*(?:no|number|#))?[\s:.#-]*([A-Z0-9-]{4,})", re.IGNORECASE)


@dataclass
class StoredFile:
    """In-memory representation of an uploaded file and what was inferred from it."""

    file_id: str
    filename: str
    kind: str
    content_type: str
    size: int
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ClaimRecord:
    """State tracker for one sandbox claim."""

    claim_id: str
    customer_name: str
    policy_number: str
    company: str
    claim_amount: Optional[float] = None
    damage_description: Optional[str] = None
    files: List[StoredFile] = field(default_factory=list)
    decision: Optional[Dict[str, Any]] = None
    rpa: Optional[Dict[str, Any]] = None
    created_at: datetime = field(default_factory=lambda: _now())
    updated_at: datetime = field(default_factory=lambda: _now())

    def of_kind(self, kind: str) -> List[StoredFile]:
        return [stored for stored in self.files if stored.kind == kind]


app = FastAPI(title=APP_TITLE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

claims: Dict[str, ClaimRecord] = {}
claims_lock = threading.Lock()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _register_claim(claim: ClaimRecord) -> ClaimRecord:
    with claims_lock:
        claims[claim.claim_id] = claim
    return claim


def _get_claim(claim_id: str) -> ClaimRecord:
    with claims_lock:
        claim = claims.get(claim_id)
    if not claim:
        raise HTTPException(status_code=404, detail="Claim not found.")
    return claim


def _update_claim(claim: ClaimRecord, **changes: Any) -> None:
    with claims_lock:
        for key, value in changes.items():
            setattr(claim, key, value)
        claim.updated_at = _now()


def _parse_amount(value: Any) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        return float(str(value).replace(",", ""))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid claim amount: {value}")


def _detect_damage(filename: str) -> Dict[str, Any]:
    name = filename.lower()
    zone = next((zone for keyword, zone in ZONE_KEYWORDS.items() if keyword in name), DEFAULT_ZONE)
    severity = next(
        (severity for keyword, severity in SEVERITY_KEYWORDS.items() if keyword in name), "moderate"
    )
    return {"damage_zone": zone, "damage_severity": severity, "confidence": 0.87}


def _extract_document(filename: str, data: bytes) -> Dict[str, Any]:
    name = filename.lower()
    text = data.decode("utf-8", errors="ignore") if name.endswith(".txt") else ""
    if "invoice" in name or "estimate" in name:
        document_type = "repair_estimate"
    elif "fir" in name or "police" in name:
        document_type = "police_report"
    elif "policy" in name:
        document_type = "policy_document"
    else:
        document_type = "supporting_document"

    extract: Dict[str, Any] = {"document_type": document_type, "extracted_text": text[:2000]}
    amount = AMOUNT_PATTERN.search(text)
    if amount:
        extract["claim_amount"] = float(amount.group(1).replace(",", ""))
    policy = POLICY_PATTERN.search(text)
    if policy:
        extract["policy_number"] = policy.group(1)
    return extract


def _missing_items(claim: ClaimRecord) -> List[str]:
    missing = []
    if not claim.of_kind("image"):
        missing.append("damage_photo")
    if not claim.of_kind("document"):
        missing.append("repair_estimate")
    extracted_amount = any(
        stored.metadata.get("extract", {}).get("claim_amount") for stored in claim.of_kind("document")
    )
    if claim.claim_amount is None and not extracted_amount:
        missing.append("claim_amount")
    return missing


# Fixed decision payloads; the sandbox picks one, it never computes a score
CANNED_DECISIONS: Dict[str, Dict[str, Any]] = {
    "approve": {
        "decision": "Auto-Approve",
        "reason": "No risk factors found",
        "riskLevel": "low",
        "riskScore": 12.0,
    },
    "review": {
        "decision": "Manual Review",
        "reason": "Damage zone mismatch or missing documents",
        "riskLevel": "medium",
        "riskScore": 55.0,
    },
    "siu": {
        "decision": "SIU Flag",
        "reason": "Flagged for special investigation",
        "riskLevel": "high",
        "riskScore": 92.0,
    },
}

# Filename keywords that select the SIU payload
SIU_KEYWORDS = ("siu", "fraud")


def _canned_decision(claim: ClaimRecord) -> Dict[str, Any]:
    """Pick a canned decision for the claim and fill in its claim-specific fields."""
    zones = [stored.metadata["detector"]["damage_zone"] for stored in claim.of_kind("image")]
    mismatches = [zone for zone in zones if detect_mismatch(claim.damage_description, zone)]

    if any(keyword in stored.filename.lower() for stored in claim.files for keyword in SIU_KEYWORDS):
        outcome = "siu"
    elif mismatches or _missing_items(claim):
        outcome = "review"
    else:
        outcome = "approve"
    decision = dict(CANNED_DECISIONS[outcome])

    path = ["DocumentExtraction", "DamageDetector", "RuleEngine", "Decision"]
    path.append("RPA" if outcome == "approve" else "ManualReview")

    stamp = _now().isoformat()
    decision.update({
        "damageZone": zones[0] if zones else None,
        "mismatchCount": len(mismatches),
        "approvedAmount": claim.claim_amount if outcome == "approve" else None,
        "thresholds": {
            "approve": DEFAULT_APPROVE_THRESHOLD,
            "manualReview": DEFAULT_REVIEW_THRESHOLD,
            "siuFlag": DEFAULT_SIU_THRESHOLD,
        },
        "path": path,
        "audit": [
            {"step": "DamageDetector", "result": f"{len(zones)} image(s) analysed", "timestamp": stamp},
            {"step": "RuleEngine", "result": f"canned {outcome} decision", "timestamp": stamp},
        ],
    })
    return decision


@app.get("/ping")
async def ping() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/claims")
async def create_claim(payload: Dict[str, Any] = Body(...)) -> Dict[str, str]:
    missing = [
        key for key in ("customerName", "policyNumber", "company")
        if not str(payload.get(key) or "").strip()
    ]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing required fields: {', '.join(missing)}")

    claim = _register_claim(ClaimRecord(
        claim_id=str(uuid.uuid4()),
        customer_name=str(payload["customerName"]).strip(),
        policy_number=str(payload["policyNumber"]).strip(),
        company=str(payload["company"]).strip(),
        claim_amount=_parse_amount(payload.get("claimAmount")),
        damage_description=payload.get("damageDescription") or None,
    ))
    logger.info(f"Sandbox claim {claim.claim_id} created")
    return {"claimId": claim.claim_id}


@app.post("/claims/{claim_id}/upload")
async def upload_file(
    claim_id: str,
    file: UploadFile = File(...),
    kind: str = Form("image", alias="type"),
) -> Dict[str, Any]:
    claim = _get_claim(claim_id)
    if kind not in ("image", "document"):
        raise HTTPException(status_code=400, detail=f"Unknown file type: {kind}")

    data = await file.read()
    filename = file.filename or "upload"
    if not data:
        raise HTTPException(status_code=400, detail=f"{filename} is empty.")
    if len(data) > MAX_FILE_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"{filename} exceeds the per-file limit of {MAX_FILE_SIZE_MB} MB.",
        )

    if kind == "image":
        metadata = {"detector": _detect_damage(filename)}
    else:
        metadata = {"extract": _extract_document(filename, data)}

    stored = StoredFile(
        file_id=str(uuid.uuid4()),
        filename=filename,
        kind=kind,
        content_type=file.content_type or "application/octet-stream",
        size=len(data),
        metadata=metadata,
    )
    _update_claim(claim, files=claim.files + [stored])
    return {
        "fileId": stored.file_id,
        "filename": stored.filename,
        "type": stored.kind,
        "metadata": stored.metadata,
    }


@app.get("/claims/{claim_id}/check")
async def check_claim(claim_id: str) -> Dict[str, Any]:
    missing = _missing_items(_get_claim(claim_id))
    return {"status": "needs_info" if missing else "ok", "missing": missing}


@app.post("/claims/{claim_id}/decision")
async def decide_claim(claim_id: str) -> Dict[str, Any]:
    claim = _get_claim(claim_id)
    decision = _canned_decision(claim)
    _update_claim(claim, decision=decision)
    logger.info(f"Sandbox decision for {claim_id}: {decision['decision']} ({decision['riskScore']:g})")
    return decision


def _run_rpa(claim_id: str) -> Dict[str, Any]:
    with claims_lock:
        claim = claims.get(claim_id)
    if claim is None or claim.decision is None:
        raise HTTPException(status_code=404, detail="RPA not available for this claim.")

    result = {
        "status": "completed",
        "steps": [
            {"step": index, "description": description, "status": "done"}
            for index, description in enumerate(RPA_STEPS, start=1)
        ],
        "message": f"Claim {claim_id[:8]} recorded in the legacy system",
    }
    _update_claim(claim, rpa=result)
    return result


@app.post("/claims/{claim_id}/rpa")
async def execute_rpa(claim_id: str) -> Dict[str, Any]:
    return _run_rpa(claim_id)


@app.post("/claims/{claim_id}/simulate-rpa")
async def simulate_rpa(claim_id: str) -> Dict[str, Any]:
    return _run_rpa(claim_id)


if __name__ == "__main__":
    import uvicorn

    from intake.utils.config import Config
    from intake.utils.logging import setup_logging

    config = Config.load()
    setup_logging(level=config.logging.level, log_format=config.logging.format)
    uvicorn.run(app, host=config.sandbox.host, port=config.sandbox.port)
