"""
reportseal Verification

Confirms after the fact that a stored signature still matches the fields it
was computed over. The verifier has no dependency on which field changed:
it recomputes the binder output from the record's own fields and compares it
byte-for-byte with the stored signature_hash.

A mismatch is an audit finding, returned as a negative VerificationResult,
never raised.
"""

import hmac
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .errors import InvalidInput
from .hashing import HashVersion, compute_signature_hash
from .logging_config import audit_log
from .records import REQUIRED_ROLES, ReportRun, SignatureRecord


class VerificationReason(str, Enum):
    """
    Why a signature failed verification.

    TAMPERED: recomputed hash differs from the stored hash
    MISSING_HASH: the record has no stored hash to compare against
    UNSUPPORTED_VERSION: the record names a hash version this binder lacks
    RUN_MISMATCH: the record belongs to a different report run
    PAYLOAD_MISMATCH: the record is bound to a different sealed payload
    """
    TAMPERED = "tampered"
    MISSING_HASH = "missing_hash"
    UNSUPPORTED_VERSION = "unsupported_version"
    RUN_MISMATCH = "run_mismatch"
    PAYLOAD_MISMATCH = "payload_mismatch"


TAMPERED_MESSAGE = "This signature no longer matches the sealed report."


@dataclass
class VerificationResult:
    """Result of verifying one signature record."""
    valid: bool
    reason: Optional[VerificationReason] = None
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls) -> 'VerificationResult':
        return cls(valid=True)

    @classmethod
    def invalid(cls, reason: VerificationReason, details: Dict[str, Any] = None) -> 'VerificationResult':
        return cls(valid=False, reason=reason, details=details)

    @property
    def message(self) -> Optional[str]:
        """Auditor-facing wording for a failed verification."""
        if self.valid:
            return None
        if self.reason in (VerificationReason.TAMPERED, VerificationReason.PAYLOAD_MISMATCH):
            return TAMPERED_MESSAGE
        if self.reason == VerificationReason.RUN_MISMATCH:
            return "This signature belongs to a different report run."
        if self.reason == VerificationReason.MISSING_HASH:
            return "This signature has no stored hash and cannot be verified."
        return "This signature was hashed with an unsupported algorithm version."

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"valid": self.valid, "reason": self.reason.value if self.reason else None}
        if not self.valid:
            data["message"] = self.message
        if self.details:
            data["details"] = self.details
        return data


def verify_signature(record: Union[SignatureRecord, Mapping[str, Any]]) -> VerificationResult:
    """
    Verify a signature record against its own stored fields.

    Returns valid only when the recomputed digest equals the stored
    signature_hash exactly. Raises InvalidInput when a content field is
    missing or has the wrong type (the record cannot be hashed at all).

    A mapping without hash_version is checked with CURRENT_HASH_VERSION, so
    a hash from compute_signature_hash(fields) verifies as stored.
    """
    if not isinstance(record, SignatureRecord):
        record = SignatureRecord.from_dict(record)

    stored = record.signature_hash
    if stored is None or stored == "":
        return VerificationResult.invalid(VerificationReason.MISSING_HASH)
    if not isinstance(stored, str):
        raise InvalidInput("signature_hash", f"must be a string, got {type(stored).__name__}")

    try:
        version = HashVersion(record.hash_version)
    except ValueError:
        return VerificationResult.invalid(
            VerificationReason.UNSUPPORTED_VERSION,
            {"hash_version": record.hash_version},
        )

    computed = compute_signature_hash(record, version)
    if not hmac.compare_digest(computed.encode("ascii"), stored.encode("utf-8", "surrogatepass")):
        return VerificationResult.invalid(
            VerificationReason.TAMPERED,
            {"computed": computed, "declared": stored, "hash_version": version.value},
        )
    return VerificationResult.ok()


@dataclass
class SignatureVerification:
    """Per-signature entry of a run report."""
    signature_id: Optional[str]
    role: str
    signed_at: Optional[str]
    result: VerificationResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature_id": self.signature_id,
            "role": self.role,
            "signed_at": self.signed_at,
            "verified": self.result.valid,
            "reason": self.result.reason.value if self.result.reason else None,
            "message": self.result.message,
        }


@dataclass
class RunVerificationReport:
    """Verification summary for every signature on one report run."""
    report_run_id: str
    status: str
    total: int
    active: int
    revoked: int
    required_roles: List[str]
    signed_roles: List[str]
    missing_roles: List[str]
    verifications: List[SignatureVerification] = field(default_factory=list)

    @property
    def all_valid(self) -> bool:
        return all(v.result.valid for v in self.verifications)

    @property
    def is_complete(self) -> bool:
        return not self.missing_roles

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_run_id": self.report_run_id,
            "status": self.status,
            "signatures": {
                "total": self.total,
                "active": self.active,
                "revoked": self.revoked,
                "required_roles": self.required_roles,
                "signed_roles": self.signed_roles,
                "missing_roles": self.missing_roles,
                "is_complete": self.is_complete,
                "all_valid": self.all_valid,
                "verifications": [v.to_dict() for v in self.verifications],
            },
        }


def verify_bound_signature(run: ReportRun, record: SignatureRecord) -> VerificationResult:
    """
    Verify a record and that it is bound to this run and its sealed payload.

    Hash integrity is checked first: a tampered record is reported as
    tampered even if it was also moved to another run.
    """
    result = verify_signature(record)
    if not result.valid:
        return result
    if record.report_run_id != run.id:
        return VerificationResult.invalid(
            VerificationReason.RUN_MISMATCH,
            {"expected": run.id, "declared": record.report_run_id},
        )
    if record.data_hash != run.data_hash:
        return VerificationResult.invalid(
            VerificationReason.PAYLOAD_MISMATCH,
            {"expected": run.data_hash, "declared": record.data_hash},
        )
    return result


def verify_report_run(
    run: ReportRun,
    signatures: Iterable[Union[SignatureRecord, Mapping[str, Any]]],
    required_roles: Sequence[str] = REQUIRED_ROLES,
) -> RunVerificationReport:
    """
    Verify every active signature on a report run.

    Revoked signatures are counted but not verified. A required role counts
    as signed only when it has at least one valid active signature.
    """
    records = [s if isinstance(s, SignatureRecord) else SignatureRecord.from_dict(s) for s in signatures]
    active = [r for r in records if not r.revoked]
    required = [_role_value(r) for r in required_roles]

    verifications = []
    signed_roles: List[str] = []
    for record in active:
        result = verify_bound_signature(run, record)
        verifications.append(SignatureVerification(
            signature_id=record.id,
            role=record.signature_role,
            signed_at=record.signed_at,
            result=result,
        ))
        if result.valid:
            if record.signature_role not in signed_roles:
                signed_roles.append(record.signature_role)
        else:
            audit_log.signature_verified(
                report_run_id=run.id,
                signature_id=record.id,
                role=record.signature_role,
                valid=False,
                reason=result.reason.value,
            )

    report = RunVerificationReport(
        report_run_id=run.id,
        status=run.status,
        total=len(records),
        active=len(active),
        revoked=len(records) - len(active),
        required_roles=required,
        signed_roles=signed_roles,
        missing_roles=[r for r in required if r not in signed_roles],
        verifications=verifications,
    )
    audit_log.run_verified(
        report_run_id=run.id,
        all_valid=report.all_valid,
        is_complete=report.is_complete,
        missing_roles=report.missing_roles,
    )
    return report


def _role_value(role: Any) -> str:
    return role.value if isinstance(role, Enum) else str(role)
