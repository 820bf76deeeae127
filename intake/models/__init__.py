"""View models for claims, backend results and claim status."""

from .claim import Claim, ClaimInfo
from .results import (
    CheckResult,
    DecisionResult,
    DecisionThresholds,
    DetectorResult,
    ExtractResult,
    RPAResult,
    RPAStepResult,
    UploadResult,
)
from .status import ClaimStatus

__all__ = [
    "Claim",
    "ClaimInfo",
    "CheckResult",
    "DecisionResult",
    "DecisionThresholds",
    "DetectorResult",
    "ExtractResult",
    "RPAResult",
    "RPAStepResult",
    "UploadResult",
    "ClaimStatus",
]
