"""Evidence verification sub-flow.

Attached to a goal once completion is submitted. While the goal waits in
PENDING_COMPLETION_APPROVAL the manager moves the sub-state independently of the
top-level status; the sub-state only matters again when completion is approved.

    PENDING --verify--> VERIFIED | REJECTED | ADDITIONAL_EVIDENCE_REQUIRED
    PENDING --request additional evidence--> ADDITIONAL_EVIDENCE_REQUIRED
    ADDITIONAL_EVIDENCE_REQUIRED --employee resubmits--> PENDING
"""

from __future__ import annotations

from .errors import ValidationFailed
from .models import EvidenceVerificationStatus, Goal, GoalStatus

VERIFY_OUTCOMES: frozenset[EvidenceVerificationStatus] = frozenset(
    {
        EvidenceVerificationStatus.VERIFIED,
        EvidenceVerificationStatus.REJECTED,
        EvidenceVerificationStatus.ADDITIONAL_EVIDENCE_REQUIRED,
    }
)

RESUBMITTABLE: frozenset[EvidenceVerificationStatus] = frozenset(
    {EvidenceVerificationStatus.ADDITIONAL_EVIDENCE_REQUIRED}
)

# Older clients send the link-centric name for "needs more evidence".
_ALIASES = {"NEEDS_ADDITIONAL_LINK": EvidenceVerificationStatus.ADDITIONAL_EVIDENCE_REQUIRED}


def parse_verification_status(raw: str | None) -> EvidenceVerificationStatus:
    value = (raw or "").strip().upper()
    if not value:
        raise ValidationFailed("Evidence verification status is required")
    if value in _ALIASES:
        return _ALIASES[value]
    try:
        status = EvidenceVerificationStatus(value)
    except ValueError:
        raise ValidationFailed(f"Unknown evidence verification status: {raw!r}") from None
    check_verification_outcome(status)
    return status


def check_verification_outcome(status: EvidenceVerificationStatus) -> None:
    if status not in VERIFY_OUTCOMES:
        allowed = ", ".join(sorted(s.value for s in VERIFY_OUTCOMES))
        raise ValidationFailed(f"Evidence can only be marked as one of: {allowed}")


def can_resubmit(goal: Goal) -> bool:
    return (
        goal.status == GoalStatus.PENDING_COMPLETION_APPROVAL
        and goal.evidence_verification_status in RESUBMITTABLE
    )


def completion_approval_blocker(goal: Goal, *, requires_evidence: bool) -> str | None:
    """Why completion cannot be approved yet, or None if it can.

    When the review cycle does not require evidence the sub-state is ignored.
    """

    if not requires_evidence:
        return None
    if goal.evidence_verification_status == EvidenceVerificationStatus.VERIFIED:
        return None
    current = goal.evidence_verification_status
    label = current.value if current is not None else "not submitted"
    return f"Evidence must be verified before completion can be approved (currently {label})"
