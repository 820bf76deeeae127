"""Client-side audit trail and its merge with backend audit records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional

from .models.results import BackendAuditEntry

AUDIT_TYPES = ("create", "upload", "check", "decision", "rpa", "cx_agent")
COLLAPSED_AUDIT_ENTRIES = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class AuditEntry:
    """One event in the audit trail."""
    timestamp: str
    action: str
    type: str
    details: Optional[str] = None

    @property
    def time(self) -> datetime:
        return _parse_timestamp(self.timestamp) or _utcnow()


def create_audit_entry(action: str, entry_type: str, details: Optional[str] = None) -> AuditEntry:
    """Stamp a new client-side audit entry with the current UTC time."""
    if entry_type not in AUDIT_TYPES:
        raise ValueError(f"Unknown audit entry type: {entry_type}")
    return AuditEntry(
        timestamp=_utcnow().isoformat(),
        action=action,
        type=entry_type,
        details=details,
    )


def merge_audit(
    entries: List[AuditEntry],
    backend_audit: Optional[List[BackendAuditEntry]] = None
) -> List[AuditEntry]:
    """
    Merge client entries with backend audit records, oldest first.

    Backend records become "decision" entries; records without a usable
    timestamp are stamped with the merge time.
    """
    merged = list(entries)
    for item in backend_audit or []:
        stamp = _parse_timestamp(item.timestamp) or _utcnow()
        merged.append(AuditEntry(
            timestamp=stamp.isoformat(),
            action=item.step,
            type="decision",
            details=item.result or None,
        ))
    # sorted() is stable, so entries with equal times keep insertion order
    return sorted(merged, key=lambda entry: entry.time)


def visible_entries(entries: List[AuditEntry], expanded: bool = False) -> List[AuditEntry]:
    return list(entries) if expanded else list(entries[:COLLAPSED_AUDIT_ENTRIES])
