"""
reportseal: tamper-evident signatures for sealed reports.

A report run is sealed into an immutable payload identified by its data_hash.
A signer then attaches identity and attestation. The Hash Binder commits the
signature to all of it:

    signature_hash = H(data_hash, report_run_id, signature_svg, signer_name,
                       signer_title, signature_role, attestation_text)

Any later edit to a stored field, or moving a signature onto a different
payload or run, is detectable by recomputing the hash.

Usage:
    from reportseal import (
        ReportRun,
        finalize_report_run,
        sign_report_run,
        verify_signature,
        verify_report_run,
    )

    run = ReportRun(id=run_id, data_hash=sealed_hash, status="ready_for_signatures")

    record = sign_report_run(
        run,
        signer_name="Alice Smith",
        signer_title="Safety Officer",
        signature_role="prepared_by",
        signature_svg=svg_markup,
        attestation_text="I attest that this report is accurate.",
        attestation_accepted=True,
    )
    store(record.to_dict())   # persist atomically, hash included

    # once prepared_by, reviewed_by and approved_by have signed
    run = finalize_report_run(run, load_signatures(run.id))

    # later, on any audit read
    result = verify_signature(load(record_id))
    if not result.valid:
        # result.reason == VerificationReason.TAMPERED
        show(result.message)
"""

__version__ = "1.0.0"

from .errors import InvalidInput, SigningRejected

from .canonicalization import FIELD_ORDER, normalize_attestation_text
from .hashing import (
    CURRENT_HASH_VERSION,
    LEGACY_HASH_VERSION,
    HashVersion,
    compute_signature_hash,
    resolve_hash_version,
)

from .records import (
    REQUIRED_ROLES,
    ReportRun,
    ReportRunStatus,
    SignatureHashInputs,
    SignatureRecord,
    SignatureRole,
    backfill_hash_version,
    revoke_signature,
)

from .verifier import (
    RunVerificationReport,
    SignatureVerification,
    VerificationReason,
    VerificationResult,
    verify_bound_signature,
    verify_report_run,
    verify_signature,
)

from .signing import finalize_report_run, sign_report_run
from .svg import SvgValidation, validate_signature_svg


__all__ = [
    "__version__",

    # Errors
    "InvalidInput",
    "SigningRejected",

    # Hash Binder
    "FIELD_ORDER",
    "normalize_attestation_text",
    "CURRENT_HASH_VERSION",
    "LEGACY_HASH_VERSION",
    "HashVersion",
    "compute_signature_hash",
    "resolve_hash_version",

    # Records
    "REQUIRED_ROLES",
    "ReportRun",
    "ReportRunStatus",
    "SignatureHashInputs",
    "SignatureRecord",
    "SignatureRole",
    "backfill_hash_version",
    "revoke_signature",

    # Verifier
    "RunVerificationReport",
    "SignatureVerification",
    "VerificationReason",
    "VerificationResult",
    "verify_bound_signature",
    "verify_report_run",
    "verify_signature",

    # Signing
    "sign_report_run",
    "finalize_report_run",
    "SvgValidation",
    "validate_signature_svg",
]
