"""Shared pytest fixtures for the claim intake tests."""

from typing import Any, Callable, Dict, List, Optional

import pytest

from intake.connectivity import ConnectivityStore
from intake.models.claim import ClaimInfo
from intake.models.results import (
    CheckResult,
    DecisionResult,
    DetectorResult,
    ExtractResult,
    RPAResult,
    UploadResult,
)
from intake.wizard import WizardController, WizardSettings

BASE_URL = "http://claims.test"


class FakeClaimsClient:
    """
    In-memory stand-in for ClaimsApiClient.

    Each endpoint returns a canned result or raises the error assigned to
    ``errors[<method name>]``. Image uploads report the zone from ``zones``
    keyed by filename.
    """

    def __init__(self):
        self.base_url = BASE_URL
        self.calls: List[str] = []
        self.errors: Dict[str, Exception] = {}
        self.upload_errors: Dict[str, Exception] = {}
        self.zones: Dict[str, str] = {}
        self.check_result = CheckResult(status="ok")
        self.decision = DecisionResult(decision="Auto-Approve", reason="Low risk", risk_score=12.0)
        self.rpa_result = RPAResult(status="completed", raw={"status": "completed"})

    def _maybe_raise(self, name: str) -> None:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]

    def create_claim(self, info: ClaimInfo) -> str:
        self._maybe_raise("create_claim")
        return "c0ffee00-1234-5678-9abc-def012345678"

    def upload_file(self, claim_id: str, filename: str, content: bytes, kind: str,
                    content_type: Optional[str] = None) -> UploadResult:
        self.calls.append(f"upload_file:{filename}")
        if filename in self.upload_errors:
            raise self.upload_errors[filename]
        if kind == "image":
            detector = DetectorResult(damage_zone=self.zones.get(filename, "front bumper"),
                                      damage_severity="moderate")
            return UploadResult(filename=filename, kind=kind, file_id=filename, detector=detector,
                                raw={"fileId": filename})
        return UploadResult(filename=filename, kind=kind, file_id=filename,
                            extract=ExtractResult(document_type="repair_estimate"),
                            raw={"fileId": filename})

    def check_claim(self, claim_id: str) -> CheckResult:
        self._maybe_raise("check_claim")
        return self.check_result

    def get_decision(self, claim_id: str) -> DecisionResult:
        self._maybe_raise("get_decision")
        return self.decision

    def execute_rpa(self, claim_id: str) -> RPAResult:
        self._maybe_raise("execute_rpa")
        return self.rpa_result


@pytest.fixture
def fake_client() -> FakeClaimsClient:
    return FakeClaimsClient()


@pytest.fixture
def connectivity() -> ConnectivityStore:
    return ConnectivityStore(online=True)


@pytest.fixture
def make_controller(fake_client, connectivity) -> Callable[..., WizardController]:
    def _make(**settings: Any) -> WizardController:
        return WizardController(
            client=fake_client,
            connectivity=connectivity,
            settings=WizardSettings(**settings),
        )
    return _make


@pytest.fixture
def claim_info() -> ClaimInfo:
    return ClaimInfo(
        customer_name="Asha Rao",
        policy_number="POL-2024-001",
        company="Tata AIG",
        claim_amount=25000.0,
        damage_description="front bumper dent",
    )
