"""Claim input data models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


INSURANCE_COMPANIES: List[str] = [
    "ICICI Lombard",
    "HDFC Ergo",
    "Bajaj Allianz",
    "Tata AIG",
    "New India Assurance",
    "United India Insurance",
    "Oriental Insurance",
    "National Insurance",
    "Other",
]


@dataclass
class ClaimInfo:
    """
    Details captured on the create-claim form.

    Attributes:
        customer_name: Policy holder name
        policy_number: Policy identifier
        company: Insurance company
        claim_amount: Optional amount claimed
        damage_description: Optional free-text description of the damage
    """
    customer_name: str
    policy_number: str
    company: str
    claim_amount: Optional[float] = None
    damage_description: Optional[str] = None

    def missing_fields(self) -> List[str]:
        """Return the required form fields that are blank."""
        missing = []
        if not (self.customer_name or "").strip():
            missing.append("customerName")
        if not (self.policy_number or "").strip():
            missing.append("policyNumber")
        if not (self.company or "").strip():
            missing.append("company")
        return missing

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the JSON body expected by POST /claims."""
        payload: Dict[str, Any] = {
            "customerName": self.customer_name.strip(),
            "policyNumber": self.policy_number.strip(),
            "company": self.company,
        }
        if self.claim_amount is not None:
            payload["claimAmount"] = self.claim_amount
        if self.damage_description and self.damage_description.strip():
            payload["damageDescription"] = self.damage_description.strip()
        return payload


@dataclass(frozen=True)
class Claim:
    """A claim created on the backend. Immutable from the wizard's side."""
    claim_id: str
    info: ClaimInfo = field(compare=False)

    @property
    def short_id(self) -> str:
        return self.claim_id[:8]
