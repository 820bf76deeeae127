"""
Wizard step controller.

The controller owns the per-session ``WizardState`` and exposes one method
per user action. Each action calls the claims backend through
``ClaimsApiClient``, records the result and an audit entry, advances the
step where appropriate and reports the outcome through ``notify``.
Backend failures never escape an action: they become error toasts and
leave the current step untouched.
"""

from __future__ import annotations

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from .api.client import ClaimsApiClient
from .audit import AuditEntry, create_audit_entry, merge_audit
from .connectivity import ConnectivityStore
from .mismatch import Issues, Mismatch, collect_issues, find_zone_mismatches
from .models.claim import Claim, ClaimInfo
from .models.results import CheckResult, DecisionResult, RPAResult, UploadResult
from .models.status import ClaimStatus, is_expected_transition, status_for_decision
from .utils.config import Config
from .utils.errors import BackendOfflineError, ClaimsIntakeError
from .utils.logging import clear_context, set_context, with_context

logger = logging.getLogger(__name__)

WIZARD_STEPS: List[str] = ["Create Claim", "Upload Files", "Check", "Decision", "RPA"]

FIELD_LABELS: Dict[str, str] = {
    "customerName": "Customer name",
    "policyNumber": "Policy number",
    "company": "Insurance company",
}

MISMATCH_ACTIONS = ("upload_new", "confirm_detected", "request_review")


class FileStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    DONE = "done"
    ERROR = "error"


@dataclass
class StagedFile:
    """A file chosen by the user, waiting for or past its upload."""
    name: str
    kind: str
    content: bytes
    content_type: Optional[str] = None
    status: FileStatus = FileStatus.PENDING
    error: Optional[str] = None
    result: Optional[UploadResult] = None

    @property
    def size(self) -> int:
        return len(self.content)


class UploadQueue:
    """Ordered staging area for images and documents."""

    def __init__(self):
        self.files: List[StagedFile] = []

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self):
        return iter(self.files)

    def add(self, name: str, kind: str, content: bytes, content_type: Optional[str] = None) -> bool:
        """Stage a file; the same name, kind and bytes are only staged once."""
        for staged in self.files:
            if staged.name == name and staged.kind == kind and staged.content == content:
                return False
        self.files.append(StagedFile(name=name, kind=kind, content=content, content_type=content_type))
        return True

    def remove(self, index: int) -> StagedFile:
        staged = self.files[index]
        if staged.status == FileStatus.UPLOADING:
            raise ValueError(f"{staged.name} is still uploading")
        return self.files.pop(index)

    def outstanding(self) -> List[StagedFile]:
        """Files that still need uploading (pending or failed)."""
        return [staged for staged in self.files if staged.status != FileStatus.DONE]

    def of_kind(self, kind: str) -> List[StagedFile]:
        return [staged for staged in self.files if staged.kind == kind]

    @property
    def can_continue(self) -> bool:
        return bool(self.files) and all(staged.status == FileStatus.DONE for staged in self.files)


@dataclass
class Toast:
    message: str
    level: str = "info"  # "success" | "error" | "warning" | "info"


@dataclass
class WizardSettings:
    """Upload behaviour for the controller."""
    upload_mode: str = "concurrent"
    max_workers: int = 4
    min_images: int = 1
    max_images: int = 5

    @classmethod
    def from_config(cls, config: Config) -> "WizardSettings":
        return cls(
            upload_mode=config.upload.mode,
            max_workers=config.upload.max_workers,
            min_images=config.upload.min_images,
            max_images=config.upload.max_images,
        )


@dataclass
class WizardState:
    """Everything one wizard session has accumulated."""
    step: int = 1
    status: ClaimStatus = ClaimStatus.IDLE
    claim: Optional[Claim] = None
    queue: UploadQueue = field(default_factory=UploadQueue)
    check_result: Optional[CheckResult] = None
    missing_values: Dict[str, str] = field(default_factory=dict)
    decision: Optional[DecisionResult] = None
    rpa_result: Optional[RPAResult] = None
    audit: List[AuditEntry] = field(default_factory=list)
    mismatches: List[Mismatch] = field(default_factory=list)
    accepted_zones: Set[str] = field(default_factory=set)
    show_mismatch: bool = False
    review_requested: bool = False
    needs_confirmation: bool = False
    show_summary: bool = False

    @property
    def upload_results(self) -> List[UploadResult]:
        """Results of finished uploads, in staging order."""
        return [staged.result for staged in self.queue if staged.result is not None]

    @property
    def damage_description(self) -> Optional[str]:
        return self.claim.info.damage_description if self.claim else None

    @property
    def can_continue_from_check(self) -> bool:
        if self.check_result is None:
            return False
        if not self.check_result.needs_info:
            return True
        return all(self.missing_values.get(name, "").strip() for name in self.check_result.missing)

    def audit_trail(self) -> List[AuditEntry]:
        backend = self.decision.audit if self.decision else None
        return merge_audit(self.audit, backend)

    def issues(self) -> Issues:
        missing = []
        if self.check_result is not None and self.check_result.needs_info:
            missing = [name for name in self.check_result.missing if not self.missing_values.get(name)]
        unresolved = [
            result for result in self.upload_results
            if not (result.detector and (result.detector.damage_zone or "").lower() in self.accepted_zones)
        ]
        return collect_issues(
            missing_fields=missing,
            mismatches=[m for m in self.mismatches if m.zone not in self.accepted_zones],
            requested_actions=["human_review"] if self.review_requested else [],
            upload_results=unresolved,
            damage_description=self.damage_description,
        )


Notify = Callable[[Toast], None]


class WizardController:
    """
    Drive one wizard session against the claims backend.

    Every action returns True when it succeeded and False when it was
    refused or failed; the reason is always reported through ``notify``.
    """

    def __init__(
        self,
        client: ClaimsApiClient,
        state: Optional[WizardState] = None,
        connectivity: Optional[ConnectivityStore] = None,
        notify: Optional[Notify] = None,
        settings: Optional[WizardSettings] = None
    ):
        """
        Initialize the controller.

        Args:
            client: Claims backend client
            state: Session state to operate on (a fresh one if omitted)
            connectivity: Shared backend reachability flag
            notify: Callback receiving user notifications; when omitted they
                are collected in ``self.toasts``
            settings: Upload settings
        """
        self.client = client
        self.state = state or WizardState()
        self.connectivity = connectivity or ConnectivityStore()
        self.toasts: List[Toast] = []
        self.notify: Notify = notify or self.toasts.append
        self.settings = settings or WizardSettings()
        if self.state.claim is not None:
            set_context(claim_id=self.state.claim.claim_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _toast(self, message: str, level: str = "info") -> None:
        self.notify(Toast(message=message, level=level))

    def _fail(self, error: ClaimsIntakeError, prefix: Optional[str] = None) -> bool:
        message = error.user_message
        if prefix:
            message = f"{prefix}: {message}"
        logger.debug(f"Reported to user: {error.to_dict()}")
        self._toast(message, "error")
        return False

    def _online(self) -> bool:
        if self.connectivity.online:
            return True
        return self._fail(BackendOfflineError.offline(self.client.base_url))

    def _require_claim(self) -> Optional[Claim]:
        if self.state.claim is None:
            self._toast("Create a claim first", "warning")
        return self.state.claim

    def _record(self, action: str, entry_type: str, details: Optional[str] = None) -> None:
        self.state.audit.append(create_audit_entry(action, entry_type, details))

    def set_status(self, status: ClaimStatus) -> None:
        previous = self.state.status
        if not is_expected_transition(previous, status):
            logger.warning(f"Unexpected claim status transition {previous.value} -> {status.value}")
        else:
            logger.debug(f"Claim status {previous.value} -> {status.value}")
        self.state.status = status

    # ------------------------------------------------------------------
    # Step 1: create claim
    # ------------------------------------------------------------------

    @with_context(step="create")
    def create_claim(self, info: ClaimInfo) -> bool:
        missing = info.missing_fields()
        if missing:
            labels = ", ".join(FIELD_LABELS.get(name, name) for name in missing)
            self._toast(f"Please fill in the required fields: {labels}", "warning")
            return False
        if not self._online():
            return False

        try:
            claim_id = self.client.create_claim(info)
        except ClaimsIntakeError as e:
            return self._fail(e)

        self.state.claim = Claim(claim_id=claim_id, info=info)
        set_context(claim_id=claim_id)
        self._record("Claim created", "create", f"Policy {info.policy_number}, {info.company}")
        self.state.step = 2
        logger.info(f"Claim {claim_id} created for policy {info.policy_number}")
        self._toast(f"Claim {self.state.claim.short_id} created", "success")
        return True

    # ------------------------------------------------------------------
    # Step 2: upload files
    # ------------------------------------------------------------------

    def stage_files(self, files: Iterable[Tuple[str, bytes, Optional[str]]], kind: str) -> int:
        """
        Add files to the upload queue.

        Args:
            files: (name, content, content type) tuples
            kind: "image" or "document"

        Returns:
            Number of newly staged files
        """
        if kind not in ("image", "document"):
            raise ValueError(f"Unknown file kind: {kind}")
        added = 0
        for name, content, content_type in files:
            if self.state.queue.add(name, kind, content, content_type):
                added += 1
        if added:
            logger.debug(f"Staged {added} {kind} file(s)")
        return added

    def remove_file(self, index: int) -> bool:
        try:
            staged = self.state.queue.remove(index)
        except (IndexError, ValueError) as e:
            self._toast(f"Cannot remove file: {e}", "warning")
            return False
        logger.debug(f"Removed staged file {staged.name}")
        return True

    def _upload_one(self, claim_id: str, staged: StagedFile) -> Optional[ClaimsIntakeError]:
        try:
            staged.result = self.client.upload_file(
                claim_id, staged.name, staged.content, staged.kind, staged.content_type
            )
        except ClaimsIntakeError as e:
            staged.status = FileStatus.ERROR
            staged.error = e.user_message
            return e
        staged.status = FileStatus.DONE
        staged.error = None
        return None

    @with_context(step="upload")
    def upload_staged(self) -> bool:
        """
        Upload every staged file that is not yet done.

        Files go up concurrently or one at a time depending on
        ``settings.upload_mode``. Afterwards the detected damage zones are
        compared with the claim's damage description.
        """
        claim = self._require_claim()
        if claim is None or not self._online():
            return False

        outstanding = self.state.queue.outstanding()
        if not outstanding:
            self._toast("No files waiting to upload", "info")
            return False

        image_count = len(self.state.queue.of_kind("image"))
        if image_count < self.settings.min_images:
            self._toast(f"Please add at least {self.settings.min_images} damage photo(s)", "warning")
            return False
        if image_count > self.settings.max_images:
            self._toast(f"You can upload at most {self.settings.max_images} damage photos", "warning")
            return False

        new_images = any(staged.kind == "image" for staged in outstanding)
        previous = self.state.status
        self.set_status(ClaimStatus.UPLOADING_IMAGES if new_images else ClaimStatus.EXTRACTING_DOCUMENTS)

        for staged in outstanding:
            staged.status = FileStatus.UPLOADING
            staged.error = None

        logger.info(
            f"Uploading {len(outstanding)} file(s) for claim {claim.claim_id} "
            f"({self.settings.upload_mode})"
        )
        if self.settings.upload_mode == "concurrent" and len(outstanding) > 1:
            workers = max(1, min(self.settings.max_workers, len(outstanding)))
            # Each worker runs in its own copy of this thread's logging context
            contexts = [contextvars.copy_context() for _ in outstanding]
            with ThreadPoolExecutor(max_workers=workers) as executor:
                errors = list(executor.map(
                    lambda ctx, staged: ctx.run(self._upload_one, claim.claim_id, staged),
                    contexts,
                    outstanding,
                ))
        else:
            errors = [self._upload_one(claim.claim_id, staged) for staged in outstanding]

        failed = 0
        for staged, error in zip(outstanding, errors):
            if error is not None:
                failed += 1
                self._fail(error, prefix=staged.name)
            else:
                self._record("File uploaded", "upload", f"{staged.kind}: {staged.name}")

        uploaded = len(outstanding) - failed
        if not uploaded:
            self.state.status = previous
            return False
        self._toast(f"Uploaded {uploaded} file(s)", "success")

        if new_images:
            self.set_status(ClaimStatus.ANALYZING_IMAGE)
            if self._detect_mismatches():
                return failed == 0
            self.set_status(ClaimStatus.IMAGE_ANALYZED)
        self._mark_documents_extracted()
        return failed == 0

    def _mark_documents_extracted(self) -> None:
        documents_done = any(
            staged.status == FileStatus.DONE for staged in self.state.queue.of_kind("document")
        )
        if documents_done and self.state.status != ClaimStatus.DOCUMENTS_EXTRACTED:
            self.set_status(ClaimStatus.EXTRACTING_DOCUMENTS)
            self.set_status(ClaimStatus.DOCUMENTS_EXTRACTED)

    def _detect_mismatches(self) -> bool:
        """Compare detected zones with the description; open the mismatch dialog if needed."""
        found = [
            mismatch for mismatch in find_zone_mismatches(
                self.state.damage_description, self.state.upload_results
            )
            if mismatch.zone not in self.state.accepted_zones
        ]
        self.state.mismatches = found
        if not found:
            return False
        self.set_status(ClaimStatus.MISMATCH_DETECTED)
        self.state.show_mismatch = True
        zones = ", ".join(mismatch.zone for mismatch in found)
        logger.info(f"Damage zone mismatch: description vs detected {zones}")
        self._record("Damage zone mismatch detected", "cx_agent", found[0].description)
        self._toast("The detected damage doesn't match your description", "warning")
        return True

    def continue_from_uploads(self) -> bool:
        if not self.state.queue.can_continue:
            self._toast("Wait until every file has uploaded successfully", "warning")
            return False
        if self.state.show_mismatch:
            self._toast("Resolve the damage zone mismatch first", "warning")
            return False
        self.state.step = 3
        return True

    @with_context(step="upload")
    def resolve_mismatch(self, action: str) -> bool:
        """
        Resolve a damage zone mismatch.

        Args:
            action: "upload_new" drops the mismatching photos and returns to
                the upload step; "confirm_detected" accepts the detected zones;
                "request_review" accepts them but asks for human review
        """
        if action not in MISMATCH_ACTIONS:
            raise ValueError(f"Unknown mismatch action: {action}")
        zones = {mismatch.zone for mismatch in self.state.mismatches if mismatch.zone}
        self.state.show_mismatch = False

        if action == "upload_new":
            queue = self.state.queue
            queue.files = [
                staged for staged in queue.files
                if not (
                    staged.kind == "image" and staged.result is not None and staged.result.detector
                    and (staged.result.detector.damage_zone or "").lower() in zones
                )
            ]
            self.state.mismatches = []
            self.set_status(ClaimStatus.AWAITING_CORRECT_IMAGE)
            self.state.step = 2
            self._record("New photo requested", "cx_agent", ", ".join(sorted(zones)))
            self._toast("Please upload a photo showing the damage you described", "info")
            return True

        self.state.accepted_zones |= zones
        if action == "confirm_detected":
            self.state.mismatches = []
            self._record("Detected damage confirmed", "cx_agent", ", ".join(sorted(zones)))
            self._toast("Detected damage zone confirmed", "success")
        else:
            self.state.review_requested = True
            self._record("Human review requested", "cx_agent", ", ".join(sorted(zones)))
            self._toast("A claims handler will review the damage assessment", "info")

        self.set_status(ClaimStatus.IMAGE_ANALYZED)
        self._mark_documents_extracted()
        return True

    # ------------------------------------------------------------------
    # Step 3: completeness check
    # ------------------------------------------------------------------

    @with_context(step="check")
    def run_check(self) -> bool:
        claim = self._require_claim()
        if claim is None or not self._online():
            return False

        try:
            result = self.client.check_claim(claim.claim_id)
        except ClaimsIntakeError as e:
            # A failed check must not block the claim
            self._fail(e, prefix="Check failed")
            logger.warning(f"Check failed for claim {claim.claim_id}, assuming ok")
            result = CheckResult(status="ok")

        self.state.check_result = result
        self.state.missing_values = {}
        if result.needs_info:
            self._record("Check completed", "check", f"Missing: {', '.join(result.missing)}")
            self._toast("Some information is missing", "warning")
        else:
            self._record("Check completed", "check", "All required information present")
            self._toast("All required information present", "success")
        return True

    def fill_missing(self, field_name: str, value: str) -> None:
        """Record a reference value for a missing field. It is not sent to the backend."""
        self.state.missing_values[field_name] = (value or "").strip()

    def continue_to_decision(self) -> bool:
        if not self.state.can_continue_from_check:
            self._toast("Run the check and fill in the missing fields first", "warning")
            return False
        self.state.step = 4
        return True

    # ------------------------------------------------------------------
    # Step 4: decision
    # ------------------------------------------------------------------

    @with_context(step="decision")
    def run_decision(self, confirmed: bool = False) -> bool:
        claim = self._require_claim()
        if claim is None:
            return False
        check = self.state.check_result
        if check is not None and check.needs_info and not confirmed:
            self.state.needs_confirmation = True
            self._toast("Some documents are missing. Confirm to get a decision anyway", "warning")
            return False
        if not self._online():
            return False

        self.state.needs_confirmation = False
        previous = self.state.status
        self.set_status(ClaimStatus.MAKING_DECISION)
        try:
            decision = self.client.get_decision(claim.claim_id)
        except ClaimsIntakeError as e:
            self.state.status = previous
            return self._fail(e, prefix="Decision failed")

        self.state.decision = decision
        self.set_status(ClaimStatus.DECISION_MADE)
        self._record(f"Decision: {decision.decision}", "decision", decision.reason or None)
        logger.info(f"Decision for claim {claim.claim_id}: {decision.decision} (risk={decision.risk_score})")
        self._toast(f"Decision: {decision.decision}", "success")
        return True

    def continue_to_rpa(self) -> bool:
        if self.state.decision is None:
            self._toast("Get a decision first", "warning")
            return False
        self.state.step = 5
        return True

    # ------------------------------------------------------------------
    # Step 5: RPA
    # ------------------------------------------------------------------

    @with_context(step="rpa")
    def run_rpa(self) -> bool:
        claim = self._require_claim()
        if claim is None or not self._online():
            return False

        previous = self.state.status
        self.set_status(ClaimStatus.EXECUTING_RPA)
        try:
            result = self.client.execute_rpa(claim.claim_id)
        except ClaimsIntakeError as e:
            self.state.status = previous
            return self._fail(e)

        self.state.rpa_result = result
        self.set_status(ClaimStatus.RPA_COMPLETED)
        self._record("RPA executed", "rpa", f"{result.status} ({len(result.steps)} steps)")
        self._toast("RPA run complete", "success")
        return True

    def complete_rpa(self) -> bool:
        """Finish the workflow: set the final claim status and show the summary."""
        if self.state.rpa_result is None:
            self._toast("Run the RPA workflow first", "warning")
            return False
        final = status_for_decision(self.state.decision.decision if self.state.decision else "")
        if self.state.review_requested and final == ClaimStatus.CLAIM_APPROVED:
            final = ClaimStatus.CLAIM_REVIEW
        self.set_status(final)
        self.state.show_summary = True
        self._record("Workflow completed", "rpa", final.value)
        return True

    def start_new_claim(self) -> WizardState:
        """Discard everything from the current claim and start over at step 1."""
        clear_context()
        self.state = WizardState()
        self.toasts.clear()
        logger.info("Started a new claim")
        return self.state
