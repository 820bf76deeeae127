"""
Presentational state derived from the wizard state.

Everything here is a static lookup keyed on the current values: the agent
badges, the customer-facing status message, the progress strip, the
sidebar label and the assistant messages. None of it has side effects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from .models.results import CheckResult, DecisionResult, UploadResult
from .models.status import ClaimStatus


class AgentState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ESCALATED = "escalated"


S = ClaimStatus

_BEFORE_VISION: FrozenSet[ClaimStatus] = frozenset({S.IDLE})
_VISION_RUNNING = frozenset({S.UPLOADING_IMAGES, S.ANALYZING_IMAGE, S.AWAITING_CORRECT_IMAGE})
_BEFORE_DOCUMENT = _BEFORE_VISION | _VISION_RUNNING | {S.MISMATCH_DETECTED, S.IMAGE_ANALYZED}
_BEFORE_DECISION = _BEFORE_DOCUMENT | {S.EXTRACTING_DOCUMENTS, S.DOCUMENTS_EXTRACTED}
_BEFORE_RPA = _BEFORE_DECISION | {S.MAKING_DECISION, S.DECISION_MADE}


def _vision(status: ClaimStatus) -> AgentState:
    if status in _BEFORE_VISION:
        return AgentState.IDLE
    if status in _VISION_RUNNING:
        return AgentState.RUNNING
    if status == S.MISMATCH_DETECTED:
        return AgentState.ESCALATED
    return AgentState.COMPLETED


def _document(status: ClaimStatus) -> AgentState:
    if status in _BEFORE_DOCUMENT:
        return AgentState.IDLE
    if status == S.EXTRACTING_DOCUMENTS:
        return AgentState.RUNNING
    return AgentState.COMPLETED


def _decision(status: ClaimStatus) -> AgentState:
    if status in _BEFORE_DECISION:
        return AgentState.IDLE
    if status == S.MAKING_DECISION:
        return AgentState.RUNNING
    if status == S.CLAIM_FLAGGED:
        return AgentState.ESCALATED
    return AgentState.COMPLETED


def _rpa(status: ClaimStatus) -> AgentState:
    if status in _BEFORE_RPA:
        return AgentState.IDLE
    if status == S.EXECUTING_RPA:
        return AgentState.RUNNING
    if status == S.CLAIM_FLAGGED:
        return AgentState.ESCALATED
    return AgentState.COMPLETED


def _cx(status: ClaimStatus) -> AgentState:
    if status == S.CLAIM_FLAGGED:
        return AgentState.ESCALATED
    if status.is_terminal:
        return AgentState.COMPLETED
    if status == S.RPA_COMPLETED:
        return AgentState.RUNNING
    return AgentState.IDLE


AGENTS: List[Tuple[str, str]] = [
    ("Vision", "&#128065;"),
    ("Document", "&#128196;"),
    ("Decision", "&#9878;"),
    ("RPA", "&#129302;"),
    ("CX", "&#128101;"),
]

_AGENT_RULES = {
    "Vision": _vision,
    "Document": _document,
    "Decision": _decision,
    "RPA": _rpa,
    "CX": _cx,
}


def agent_states(status: ClaimStatus) -> List[Tuple[str, AgentState]]:
    """Return (agent name, state) for each pipeline agent, in display order."""
    status = ClaimStatus(status)
    return [(name, _AGENT_RULES[name](status)) for name, _icon in AGENTS]


@dataclass(frozen=True)
class StatusMessage:
    title: str
    description: str
    tone: str  # "info" | "success" | "warning" | "error"


_STATUS_MESSAGES: Dict[ClaimStatus, StatusMessage] = {
    S.IDLE: StatusMessage(
        "Ready to start", "Create a claim and upload your vehicle damage photos to begin", "info"),
    S.UPLOADING_IMAGES: StatusMessage(
        "Uploading files...", "Sending your photos and documents securely", "info"),
    S.ANALYZING_IMAGE: StatusMessage(
        "Analyzing image...", "Our AI is examining the damage to your vehicle", "info"),
    S.MISMATCH_DETECTED: StatusMessage(
        "Damage zone mismatch", "The photo doesn't match your description. Please review", "warning"),
    S.AWAITING_CORRECT_IMAGE: StatusMessage(
        "Waiting for a new photo", "Upload a photo showing the damage you described", "warning"),
    S.IMAGE_ANALYZED: StatusMessage(
        "Image analysis complete", "Damage detected successfully. Please upload your claim documents", "success"),
    S.EXTRACTING_DOCUMENTS: StatusMessage(
        "Processing documents...", "Extracting information from your uploaded files", "info"),
    S.DOCUMENTS_EXTRACTED: StatusMessage(
        "Documents processed", "All information extracted. Evaluating your claim...", "success"),
    S.MAKING_DECISION: StatusMessage(
        "Evaluating claim...", "Running decision engine to assess your claim", "info"),
    S.DECISION_MADE: StatusMessage(
        "Decision complete", "Your claim has been evaluated", "success"),
    S.EXECUTING_RPA: StatusMessage(
        "Processing claim...", "Automating system updates for your claim", "info"),
    S.RPA_COMPLETED: StatusMessage(
        "System updated", "All systems have been updated with your claim information", "success"),
    S.CLAIM_APPROVED: StatusMessage(
        "Claim approved!", "Your claim has been automatically approved and processed", "success"),
    S.CLAIM_REVIEW: StatusMessage(
        "Manual review required", "Your claim needs additional review by our team", "warning"),
    S.CLAIM_FLAGGED: StatusMessage(
        "SIU review required", "Your claim has been flagged for special investigation", "error"),
}


def status_message(status: ClaimStatus) -> StatusMessage:
    """Customer-facing message and tone for the current status."""
    return _STATUS_MESSAGES[ClaimStatus(status)]


PROGRESS_SEGMENTS: List[Tuple[str, str, FrozenSet[ClaimStatus]]] = [
    ("image", "Image Analysis", frozenset({
        S.UPLOADING_IMAGES, S.ANALYZING_IMAGE, S.MISMATCH_DETECTED,
        S.AWAITING_CORRECT_IMAGE, S.IMAGE_ANALYZED,
    })),
    ("document", "Document Extraction", frozenset({S.EXTRACTING_DOCUMENTS, S.DOCUMENTS_EXTRACTED})),
    ("decision", "Decision Engine", frozenset({S.MAKING_DECISION, S.DECISION_MADE})),
    ("rpa", "System Automation", frozenset({S.EXECUTING_RPA, S.RPA_COMPLETED})),
    ("final", "Complete", frozenset({S.CLAIM_APPROVED, S.CLAIM_REVIEW, S.CLAIM_FLAGGED})),
]


def status_progress(status: ClaimStatus) -> Optional[List[str]]:
    """
    State of each progress segment: "done", "current" or "upcoming".

    Returns None while the claim is idle.
    """
    status = ClaimStatus(status)
    current = next(
        (idx for idx, (_key, _label, members) in enumerate(PROGRESS_SEGMENTS) if status in members),
        None,
    )
    if current is None:
        return None
    return [
        "done" if idx < current else "current" if idx == current else "upcoming"
        for idx in range(len(PROGRESS_SEGMENTS))
    ]


_STATUS_LABELS: Dict[ClaimStatus, Tuple[str, str]] = {
    S.IDLE: ("Draft", "muted"),
    S.UPLOADING_IMAGES: ("Uploading", "info"),
    S.ANALYZING_IMAGE: ("Analyzing", "info"),
    S.MISMATCH_DETECTED: ("Mismatch", "warning"),
    S.AWAITING_CORRECT_IMAGE: ("Awaiting Images", "warning"),
    S.IMAGE_ANALYZED: ("Images OK", "success"),
    S.EXTRACTING_DOCUMENTS: ("Extracting", "info"),
    S.DOCUMENTS_EXTRACTED: ("Docs OK", "success"),
    S.MAKING_DECISION: ("Deciding", "info"),
    S.DECISION_MADE: ("Decision Ready", "success"),
    S.EXECUTING_RPA: ("RPA Running", "info"),
    S.RPA_COMPLETED: ("RPA Done", "success"),
    S.CLAIM_APPROVED: ("Approved", "success"),
    S.CLAIM_REVIEW: ("Manual Review", "warning"),
    S.CLAIM_FLAGGED: ("SIU Flagged", "error"),
}


def status_label(status: ClaimStatus) -> Tuple[str, str]:
    """Short sidebar badge (label, tone) for the current status."""
    return _STATUS_LABELS[ClaimStatus(status)]


@dataclass(frozen=True)
class AssistantMessage:
    text: str
    tone: str
    action: Optional[str] = None


def cx_messages(
    step: int,
    claim_id: Optional[str],
    upload_results: Optional[List[UploadResult]] = None,
    check_result: Optional[CheckResult] = None,
    decision: Optional[DecisionResult] = None
) -> List[AssistantMessage]:
    """Messages from the customer experience assistant for the current wizard step."""
    messages: List[AssistantMessage] = []
    upload_results = upload_results or []

    if step == 1 and not claim_id:
        messages.append(AssistantMessage(
            "Welcome! Let's start your claim. Fill in the required fields marked with * "
            "and click 'Start Claim'.",
            "info",
        ))

    if step == 2 and claim_id:
        messages.append(AssistantMessage(
            f"Thanks, claim {claim_id[:8]}... created! Please upload photos of the damage "
            f"and any supporting documents so we can analyze them.",
            "success",
        ))
        for result in upload_results:
            if result.detector and result.detector.damage_zone:
                severity = result.detector.damage_severity or "unknown"
                messages.append(AssistantMessage(
                    f"I found damage in: {result.detector.damage_zone} (severity: {severity}). "
                    f"Would you like to confirm this assessment?",
                    "info",
                ))
        extractions = [result for result in upload_results if result.extract]
        if extractions:
            messages.append(AssistantMessage(
                f"I've extracted information from {len(extractions)} document(s). "
                f"Please review the details above.",
                "success",
            ))

    if step == 3 and check_result is not None:
        if check_result.needs_info:
            messages.append(AssistantMessage(
                f"We need some additional information to proceed. "
                f"Missing: {', '.join(check_result.missing)}.",
                "warning",
                action="upload_documents",
            ))
        else:
            messages.append(AssistantMessage(
                "All required information has been collected. You can proceed to the decision step.",
                "success",
            ))

    if step == 4 and decision is not None:
        label = decision.decision.lower()
        if "approve" in label:
            messages.append(AssistantMessage(
                f"Great news! Your claim has been approved. {decision.reason}", "success"))
        elif "review" in label or label == "needs_info":
            messages.append(AssistantMessage(
                f"Your claim requires additional review. {decision.reason}", "warning"))
        else:
            messages.append(AssistantMessage(
                f"Decision received: {decision.decision}. {decision.reason}", "info"))

    if step == 5:
        messages.append(AssistantMessage(
            "Running the RPA workflow to process your claim through our systems. Please wait...",
            "info",
        ))

    return messages
