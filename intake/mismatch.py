"""Client-side consistency checks shown in the issues panel."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .models.results import UploadResult

IMAGE_VS_DESCRIPTION = "image_vs_description"


@dataclass
class Mismatch:
    type: str
    description: str
    zone: Optional[str] = None

    @property
    def label(self) -> str:
        return self.type.replace("_", " ")


@dataclass
class Issues:
    """Everything the issues panel shows. Empty means all checks passed."""
    missing_fields: List[str] = field(default_factory=list)
    mismatches: List[Mismatch] = field(default_factory=list)
    requested_actions: List[str] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.missing_fields or self.mismatches or self.requested_actions)


def detect_mismatch(description: Optional[str], zone: Optional[str]) -> bool:
    """
    Return True if a damage description and a detected zone disagree.

    Comparison is case-insensitive. Empty values never mismatch, and
    either string containing the other counts as agreement, so
    "Front Bumper" agrees with "front bumper scratch".
    """
    desc = (description or "").strip().lower()
    detected = (zone or "").strip().lower()
    if not desc or not detected:
        return False
    return detected not in desc and desc not in detected


def find_zone_mismatches(
    damage_description: Optional[str],
    upload_results: Iterable[UploadResult]
) -> List[Mismatch]:
    """One mismatch per distinct detected zone that disagrees with the description."""
    mismatches: List[Mismatch] = []
    seen = set()
    for result in upload_results:
        zone = result.detector.damage_zone if result.detector else None
        if not detect_mismatch(damage_description, zone):
            continue
        key = zone.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        mismatches.append(Mismatch(
            type=IMAGE_VS_DESCRIPTION,
            description=f'Description mentions "{damage_description}" but image shows "{key}" damage',
            zone=key,
        ))
    return mismatches


def collect_issues(
    missing_fields: Optional[List[str]] = None,
    mismatches: Optional[List[Mismatch]] = None,
    requested_actions: Optional[List[str]] = None,
    upload_results: Optional[List[UploadResult]] = None,
    damage_description: Optional[str] = None
) -> Issues:
    """
    Merge backend-reported issues with locally detected zone mismatches.

    Locally detected mismatches are skipped when a mismatch for the same
    zone is already present.
    """
    merged = list(mismatches or [])
    for candidate in find_zone_mismatches(damage_description, upload_results or []):
        duplicate = any(
            existing.type == IMAGE_VS_DESCRIPTION and candidate.zone in existing.description.lower()
            for existing in merged
        )
        if not duplicate:
            merged.append(candidate)

    return Issues(
        missing_fields=list(missing_fields or []),
        mismatches=merged,
        requested_actions=[action.replace("_", " ") for action in requested_actions or []],
    )
