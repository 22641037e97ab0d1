"""
reportseal Signing

Creates SignatureRecords for a sealed report run. The run's data_hash must be
final before a signature exists; this module refuses to sign runs that are
still drafts, already sealed or superseded, and binds every accepted
signature with the Hash Binder. Once every required role has signed,
finalize_report_run seals the run.

Persisting records and run status (atomically, hash included) is the
caller's job.
"""

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Union

from . import config
from .canonicalization import normalize_attestation_text
from .errors import SigningRejected
from .hashing import compute_signature_hash, resolve_hash_version
from .logging_config import audit_log
from .records import (
    REQUIRED_ROLES,
    ReportRun,
    ReportRunStatus,
    SEALED_STATUSES,
    SignatureRecord,
    SignatureRole,
)
from .svg import validate_signature_svg
from .verifier import verify_report_run


def sign_report_run(
    run: ReportRun,
    signer_name: str,
    signer_title: str,
    signature_role: str,
    signature_svg: str,
    attestation_text: Optional[str],
    attestation_accepted: bool = False,
    existing_signatures: Iterable[Union[SignatureRecord, Mapping[str, Any]]] = (),
    signer_user_id: Optional[str] = None,
    signature_id: Optional[str] = None,
    signed_at: Optional[datetime] = None,
    hash_version: Optional[str] = None,
) -> SignatureRecord:
    """
    Sign a report run.

    Args:
        run: The report run being signed
        signer_name: Signer identity as captured at signing time
        signer_title: Signer's stated title
        signature_role: One of SignatureRole
        signature_svg: Rendered signature mark
        attestation_text: Wording the signer agreed to (required, non-blank)
        attestation_accepted: Signer explicitly accepted the attestation
        existing_signatures: Signatures already stored for this run
        signer_user_id: Authenticated user id, if any
        signature_id: Record id (default: new UUID)
        signed_at: Signing time (default: now, UTC)
        hash_version: Binder version (default: REPORTSEAL_HASH_VERSION)

    Returns:
        SignatureRecord with signature_hash bound to the run's data_hash

    Raises:
        SigningRejected: a run or role rule forbids this signature
    """
    run_id = getattr(run, "id", None)

    def reject(code: str, message: str, **details) -> SigningRejected:
        audit_log.signing_rejected(run_id, code, signature_role=_safe_role(signature_role))
        return SigningRejected(code, message, details or None)

    if not all(isinstance(v, str) and v for v in (signer_name, signer_title, signature_role, signature_svg)):
        raise reject(
            "MISSING_FIELDS",
            "Missing required fields: signer_name, signer_title, signature_role, signature_svg",
        )

    attestation = normalize_attestation_text(attestation_text) if isinstance(attestation_text, str) else ""
    if not attestation:
        raise reject("ATTESTATION_REQUIRED", "attestation_text is required and must be a non-empty string")

    try:
        role = SignatureRole(signature_role)
    except ValueError:
        allowed = ", ".join(r.value for r in SignatureRole)
        raise reject("INVALID_ROLE", f"Invalid signature_role. Must be: {allowed}")

    if attestation_accepted is not True:
        raise reject("ATTESTATION_NOT_ACCEPTED", "Attestation acceptance is required to sign")

    svg_check = validate_signature_svg(signature_svg)
    if not svg_check.valid:
        raise reject("INVALID_SIGNATURE_SVG", svg_check.error or "Invalid signature SVG")

    _check_run_signable(run, reject)
    _check_role_available(run, role, existing_signatures, reject)

    version = resolve_hash_version(hash_version or config.SIGNATURE_HASH_VERSION)
    when = signed_at or datetime.now(timezone.utc)

    unsigned = SignatureRecord(
        report_run_id=run.id,
        data_hash=run.data_hash,
        signature_svg=signature_svg,
        signer_name=signer_name,
        signer_title=signer_title,
        signature_role=role.value,
        attestation_text=attestation,
        signature_hash=None,
        hash_version=version.value,
        id=signature_id or str(uuid.uuid4()),
        signer_user_id=signer_user_id,
        signed_at=when.isoformat().replace("+00:00", "Z"),
    )
    signature_hash = compute_signature_hash(unsigned, version)
    record = SignatureRecord(**{**unsigned.to_dict(), "signature_hash": signature_hash})

    audit_log.signature_created(
        report_run_id=run.id,
        signature_role=role.value,
        signature_hash=signature_hash,
        hash_version=version.value,
        signer_user_id=signer_user_id,
    )
    return record


def _check_run_signable(run: ReportRun, reject) -> None:
    """Only runs in ready_for_signatures with a sealed data_hash can be signed."""
    status = run.status
    if status == ReportRunStatus.DRAFT.value:
        raise reject(
            "RUN_DRAFT",
            "Report run is still in draft. Move the run to ready_for_signatures before signing.",
        )
    if status == ReportRunStatus.SUPERSEDED.value:
        raise reject(
            "RUN_SUPERSEDED",
            "Cannot sign a superseded report run. Please create a new report run.",
        )
    if status in [s.value for s in SEALED_STATUSES]:
        raise reject(
            "RUN_SEALED",
            "This report run is sealed and cannot be modified. Create a new report run to make changes.",
            status=status,
        )
    if status != ReportRunStatus.READY_FOR_SIGNATURES.value:
        raise reject(
            "RUN_NOT_READY",
            "Report run is not in a signing-ready state. Status must be ready_for_signatures.",
        )
    if not run.data_hash or not isinstance(run.data_hash, str):
        raise reject("MISSING_DATA_HASH", "Report run has no data_hash; cannot bind signature to payload.")


def _check_role_available(run: ReportRun, role: SignatureRole, existing, reject) -> None:
    """Each required role may hold one active signature per run; 'other' is unlimited."""
    if role not in REQUIRED_ROLES:
        return
    for sig in existing:
        record = sig if isinstance(sig, SignatureRecord) else SignatureRecord.from_dict(sig)
        if record.report_run_id != run.id or record.revoked:
            continue
        if record.signature_role == role.value:
            raise reject(
                "ROLE_ALREADY_SIGNED",
                f"Already signed by {record.signer_name} as {role.value}.",
                existing_signature={"signer_name": record.signer_name, "signed_at": record.signed_at},
            )


def _safe_role(role: Any) -> Optional[str]:
    return role if isinstance(role, str) else None


def finalize_report_run(
    run: ReportRun,
    signatures: Iterable[Union[SignatureRecord, Mapping[str, Any]]],
    current_data_hash: Optional[str] = None,
    completed_at: Optional[datetime] = None,
) -> ReportRun:
    """
    Seal a report run once it is fully and validly signed.

    Args:
        run: The report run being finalized
        signatures: Every stored signature for the run, revoked ones included
        current_data_hash: data_hash recomputed from the live report data, if
            the caller rebuilt it; must still equal run.data_hash
        completed_at: Completion time (default: now, UTC)

    Returns:
        A copy of run with status complete and completed_at set

    Raises:
        SigningRejected: the run is not finalizable, its payload changed,
            a signature no longer verifies, or a required role is unsigned
    """
    run_id = getattr(run, "id", None)

    def reject(code: str, message: str, **details) -> SigningRejected:
        audit_log.finalize_rejected(run_id, code)
        return SigningRejected(code, message, details or None)

    if run.status in [s.value for s in SEALED_STATUSES]:
        raise reject("RUN_ALREADY_FINALIZED", "Report run is already finalized", status=run.status)
    if run.status != ReportRunStatus.READY_FOR_SIGNATURES.value:
        raise reject(
            "RUN_NOT_READY",
            "Report run must be in ready_for_signatures state to finalize",
            status=run.status,
        )
    if not run.data_hash or not isinstance(run.data_hash, str):
        raise reject("MISSING_DATA_HASH", "Report run has no data_hash; cannot finalize.")
    if current_data_hash is not None and current_data_hash != run.data_hash:
        raise reject(
            "HASH_MISMATCH",
            "Cannot finalize: report data has changed since this run was created; hash mismatch",
        )

    report = verify_report_run(run, signatures)
    for verification in report.verifications:
        if not verification.result.valid:
            raise reject(
                "SIGNATURE_HASH_MISMATCH",
                "Cannot finalize: signature verification failed; data may have been tampered",
                signature_id=verification.signature_id,
                reason=verification.result.reason.value,
            )

    if report.missing_roles:
        raise reject(
            "MISSING_SIGNATURES",
            "Cannot finalize: missing required signatures",
            missing_roles=report.missing_roles,
            signed_roles=report.signed_roles,
        )

    when = completed_at or datetime.now(timezone.utc)
    finalized = replace(
        run,
        status=ReportRunStatus.COMPLETE.value,
        completed_at=when.isoformat().replace("+00:00", "Z"),
    )
    audit_log.run_finalized(report_run_id=finalized.id, data_hash=finalized.data_hash)
    return finalized
