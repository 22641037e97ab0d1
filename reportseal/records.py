"""
reportseal Records

The signature event inputs, the persisted SignatureRecord and the report run
a signature is bound to. Field names match the storage columns.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .canonicalization import ATTESTATION_FIELD, REQUIRED_FIELDS
from .errors import InvalidInput
from .hashing import CURRENT_HASH_VERSION, LEGACY_HASH_VERSION, HashVersion


class SignatureRole(str, Enum):
    """Role under which a signature is made."""
    PREPARED_BY = "prepared_by"
    REVIEWED_BY = "reviewed_by"
    APPROVED_BY = "approved_by"
    OTHER = "other"


# A run is complete once each of these has one active, valid signature.
REQUIRED_ROLES = (
    SignatureRole.PREPARED_BY,
    SignatureRole.REVIEWED_BY,
    SignatureRole.APPROVED_BY,
)


class ReportRunStatus(str, Enum):
    DRAFT = "draft"
    READY_FOR_SIGNATURES = "ready_for_signatures"
    FINAL = "final"
    COMPLETE = "complete"
    SUPERSEDED = "superseded"


SEALED_STATUSES = (ReportRunStatus.FINAL, ReportRunStatus.COMPLETE)


@dataclass(frozen=True)
class SignatureHashInputs:
    """
    The ordered set of fields a signature hash commits to.

    attestation_text may be None; the binder normalizes it.
    """
    data_hash: str
    report_run_id: str
    signature_svg: str
    signer_name: str
    signer_title: str
    signature_role: str
    attestation_text: Optional[str] = None

    def hash_fields(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in REQUIRED_FIELDS + (ATTESTATION_FIELD,)}


@dataclass(frozen=True)
class SignatureRecord:
    """
    A persisted signature.

    signature_hash must equal compute_signature_hash over the six content
    fields and the attestation, using hash_version. The remaining fields are
    audit metadata and are not hashed.
    """
    report_run_id: str
    data_hash: str
    signature_svg: str
    signer_name: str
    signer_title: str
    signature_role: str
    attestation_text: Optional[str]
    signature_hash: Optional[str]
    hash_version: str = CURRENT_HASH_VERSION.value
    id: Optional[str] = None
    signer_user_id: Optional[str] = None
    signed_at: Optional[str] = None
    revoked_at: Optional[str] = None
    revoked_by: Optional[str] = None
    revoked_reason: Optional[str] = None

    @property
    def revoked(self) -> bool:
        return self.revoked_at is not None

    def hash_fields(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in REQUIRED_FIELDS + (ATTESTATION_FIELD,)}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a storage row."""
        return {
            "id": self.id,
            "report_run_id": self.report_run_id,
            "data_hash": self.data_hash,
            "signature_svg": self.signature_svg,
            "signer_name": self.signer_name,
            "signer_title": self.signer_title,
            "signature_role": self.signature_role,
            "attestation_text": self.attestation_text,
            "signature_hash": self.signature_hash,
            "hash_version": self.hash_version,
            "signer_user_id": self.signer_user_id,
            "signed_at": self.signed_at,
            "revoked_at": self.revoked_at,
            "revoked_by": self.revoked_by,
            "revoked_reason": self.revoked_reason,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SignatureRecord':
        """
        Create a record from a storage row.

        Content fields are copied as stored, even when malformed, so the
        binder can report them. A row without hash_version is read with
        CURRENT_HASH_VERSION, the same default compute_signature_hash uses.
        Rows written before versioning must be backfilled first (see
        backfill_hash_version).
        """
        if not isinstance(data, Mapping):
            raise InvalidInput("record", f"expected an object, got {type(data).__name__}")

        version = data.get("hash_version") or CURRENT_HASH_VERSION.value
        if isinstance(version, HashVersion):
            version = version.value

        return cls(
            report_run_id=data.get("report_run_id"),
            data_hash=data.get("data_hash"),
            signature_svg=data.get("signature_svg"),
            signer_name=data.get("signer_name"),
            signer_title=data.get("signer_title"),
            signature_role=data.get("signature_role"),
            attestation_text=data.get("attestation_text"),
            signature_hash=data.get("signature_hash"),
            hash_version=version,
            id=data.get("id"),
            signer_user_id=data.get("signer_user_id"),
            signed_at=data.get("signed_at"),
            revoked_at=data.get("revoked_at"),
            revoked_by=data.get("revoked_by"),
            revoked_reason=data.get("revoked_reason"),
        )


@dataclass(frozen=True)
class ReportRun:
    """A report run: one sealed execution of report generation."""
    id: str
    data_hash: Optional[str]
    status: str = ReportRunStatus.READY_FOR_SIGNATURES.value
    completed_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "data_hash": self.data_hash,
            "status": self.status,
            "completed_at": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ReportRun':
        missing = [f for f in ("id", "status") if not data.get(f)]
        if missing:
            raise InvalidInput(missing[0], "is required")
        return cls(
            id=data["id"],
            data_hash=data.get("data_hash"),
            status=data["status"],
            completed_at=data.get("completed_at"),
        )


def revoke_signature(
    record: SignatureRecord,
    revoked_by: Optional[str],
    reason: Optional[str] = None,
    revoked_at: Optional[datetime] = None,
) -> SignatureRecord:
    """
    Return a revoked copy of record.

    Only revocation metadata changes. Content fields and signature_hash are
    kept, so a revoked record still verifies.
    """
    if record.revoked:
        raise InvalidInput("revoked_at", "signature is already revoked")
    when = revoked_at or datetime.now(timezone.utc)
    return replace(
        record,
        revoked_at=when.isoformat().replace("+00:00", "Z"),
        revoked_by=revoked_by,
        revoked_reason=reason,
    )


def backfill_hash_version(row: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of a pre-versioning storage row with hash_version set.

    Rows stored before hash versions existed were hashed with the v1 binder
    but carry no version column. Run this once over such rows (or set the
    column default to "v1" in the migration that adds it); afterwards every
    stored row names its version and a missing one means current.
    """
    if not isinstance(row, Mapping):
        raise InvalidInput("record", f"expected an object, got {type(row).__name__}")
    data = dict(row)
    if not data.get("hash_version"):
        data["hash_version"] = LEGACY_HASH_VERSION.value
    return data
