"""
reportseal Hash Binder

Derives the signature_hash that commits a signature event to one sealed
report payload, one report run and one attestation.

All hashes use SHA-256 with lowercase hexadecimal output (64 characters,
no prefix). The binder is a pure function: no I/O, no logging, no state.
"""

import hashlib
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Mapping, Union

from .canonicalization import framed_chunks, stream_chunks
from .errors import InvalidInput


class HashVersion(str, Enum):
    """
    Signature hash algorithms.

    STREAM_V1: one digest update per field, raw bytes. Matches hashes stored
               before versioning existed.
    FRAMED_V2: domain tag, then each field as 8-byte length + bytes.
    """
    STREAM_V1 = "v1"
    FRAMED_V2 = "v2"


CURRENT_HASH_VERSION = HashVersion.FRAMED_V2
# Rows stored before versioning were written by the v1 binder; they are
# backfilled with this version (records.backfill_hash_version).
LEGACY_HASH_VERSION = HashVersion.STREAM_V1

FRAMED_V2_DOMAIN_TAG = b"reportseal:signature:v2"

DIGEST_HEX_LENGTH = 64


def _stream_v1(fields: Mapping[str, Any]) -> Iterator[bytes]:
    return stream_chunks(fields)


def _framed_v2(fields: Mapping[str, Any]) -> Iterator[bytes]:
    yield FRAMED_V2_DOMAIN_TAG
    yield from framed_chunks(fields)


_CHUNKERS: Dict[HashVersion, Callable[[Mapping[str, Any]], Iterator[bytes]]] = {
    HashVersion.STREAM_V1: _stream_v1,
    HashVersion.FRAMED_V2: _framed_v2,
}


def resolve_hash_version(version: Union[HashVersion, str, None]) -> HashVersion:
    """Map a version name (or None for the current default) to a HashVersion."""
    if version is None:
        return CURRENT_HASH_VERSION
    try:
        return HashVersion(version)
    except ValueError:
        supported = [v.value for v in HashVersion]
        raise InvalidInput("hash_version", f"unsupported version {version!r}, expected one of {supported}")


def compute_signature_hash(
    inputs: Any,
    hash_version: Union[HashVersion, str, None] = None,
) -> str:
    """
    Compute the signature hash for a signature event.

    Args:
        inputs: SignatureHashInputs, SignatureRecord, or a mapping with the
                storage field names (data_hash, report_run_id, signature_svg,
                signer_name, signer_title, signature_role, attestation_text)
        hash_version: algorithm to use (default: CURRENT_HASH_VERSION)

    Returns:
        64-character lowercase hex SHA-256 digest

    Raises:
        InvalidInput: a required field is missing or not a string, the
                      attestation is neither a string nor None, or the
                      version is unknown. Raised before hashing starts.
    """
    version = resolve_hash_version(hash_version)
    fields = _as_mapping(inputs)

    # Materialize first: validation must finish before the digest sees a byte.
    chunks = list(_CHUNKERS[version](fields))

    h = hashlib.sha256()
    for chunk in chunks:
        h.update(chunk)
    return h.hexdigest()


def _as_mapping(inputs: Any) -> Mapping[str, Any]:
    if isinstance(inputs, Mapping):
        return inputs
    to_hash_fields = getattr(inputs, "hash_fields", None)
    if callable(to_hash_fields):
        return to_hash_fields()
    raise InvalidInput("inputs", f"expected a mapping or signature record, got {type(inputs).__name__}")
