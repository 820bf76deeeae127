"""Claim status values and the pipeline order they follow."""

from enum import Enum
from typing import Dict, List


class ClaimStatus(str, Enum):
    """Where a claim is in the intake pipeline."""

    IDLE = "idle"
    UPLOADING_IMAGES = "uploading_images"
    ANALYZING_IMAGE = "analyzing_image"
    MISMATCH_DETECTED = "mismatch_detected"
    AWAITING_CORRECT_IMAGE = "awaiting_correct_image"
    IMAGE_ANALYZED = "image_analyzed"
    EXTRACTING_DOCUMENTS = "extracting_documents"
    DOCUMENTS_EXTRACTED = "documents_extracted"
    MAKING_DECISION = "making_decision"
    DECISION_MADE = "decision_made"
    EXECUTING_RPA = "executing_rpa"
    RPA_COMPLETED = "rpa_completed"
    CLAIM_APPROVED = "claim_approved"
    CLAIM_REVIEW = "claim_review"
    CLAIM_FLAGGED = "claim_flagged"

    @property
    def pipeline_index(self) -> int:
        return _PIPELINE_INDEX[self]

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


PIPELINE: List[ClaimStatus] = list(ClaimStatus)

TERMINAL_STATUSES = frozenset({
    ClaimStatus.CLAIM_APPROVED,
    ClaimStatus.CLAIM_REVIEW,
    ClaimStatus.CLAIM_FLAGGED,
})

# Terminal statuses share a rank: a claim ends in exactly one of them
_PIPELINE_INDEX: Dict[ClaimStatus, int] = {
    status: min(position, PIPELINE.index(ClaimStatus.CLAIM_APPROVED))
    for position, status in enumerate(PIPELINE)
}

# The re-upload loop is the only permitted step backwards
_MISMATCH_LOOP = {
    ClaimStatus.MISMATCH_DETECTED: {
        ClaimStatus.AWAITING_CORRECT_IMAGE,
        ClaimStatus.UPLOADING_IMAGES,
        ClaimStatus.ANALYZING_IMAGE,
    },
    ClaimStatus.AWAITING_CORRECT_IMAGE: {
        ClaimStatus.UPLOADING_IMAGES,
        ClaimStatus.ANALYZING_IMAGE,
    },
}


def is_expected_transition(previous: ClaimStatus, nxt: ClaimStatus) -> bool:
    """
    Return True if moving from ``previous`` to ``nxt`` follows the pipeline.

    Forward moves (and staying put) are expected, as is the mismatch loop
    back to image upload/analysis. Nothing leaves a terminal status except
    starting a new claim, which resets to IDLE.
    """
    if previous == nxt:
        return True
    if nxt == ClaimStatus.IDLE:
        return True
    if previous.is_terminal:
        return False
    if nxt in _MISMATCH_LOOP.get(previous, set()):
        return True
    return nxt.pipeline_index > previous.pipeline_index


def status_for_decision(decision_label: str) -> ClaimStatus:
    """Map a backend decision label onto the terminal status it leads to."""
    label = (decision_label or "").lower()
    if "approve" in label:
        return ClaimStatus.CLAIM_APPROVED
    if "siu" in label or "flag" in label or "reject" in label:
        return ClaimStatus.CLAIM_FLAGGED
    return ClaimStatus.CLAIM_REVIEW
