"""
Signature Hash Canonicalization

Turns the identifying fields of a signature event into the exact sequence of
byte chunks the Hash Binder feeds to the digest. Two inputs that should be
treated as the same signature (absent vs. empty attestation, attestation
padded with whitespace) canonicalize to the same chunks; everything else
keeps its bytes untouched.
"""

from typing import Any, Iterator, List, Mapping, Tuple

from .errors import InvalidInput

# Binding order. Changing it breaks every stored signature_hash.
REQUIRED_FIELDS: Tuple[str, ...] = (
    "data_hash",
    "report_run_id",
    "signature_svg",
    "signer_name",
    "signer_title",
    "signature_role",
)
ATTESTATION_FIELD = "attestation_text"
FIELD_ORDER: Tuple[str, ...] = REQUIRED_FIELDS + (ATTESTATION_FIELD,)

# ECMAScript String.prototype.trim() whitespace. Historical attestation text
# was trimmed with this set, so it must match exactly (note U+FEFF, which
# str.strip() keeps, and U+001C..U+001F, which str.strip() removes).
_TRIM_CHARS = (
    "\t\n\v\f\r \u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)

LENGTH_PREFIX_BYTES = 8


def normalize_attestation_text(value: Any) -> str:
    """
    Normalize attestation wording before hashing.

    - None (never captured) becomes the empty string
    - strings are trimmed of leading/trailing whitespace
    - anything else is rejected rather than coerced
    """
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidInput(
            ATTESTATION_FIELD,
            f"must be a string or None, got {type(value).__name__}",
        )
    return value.strip(_TRIM_CHARS)


def require_text(fields: Mapping[str, Any], name: str) -> str:
    """Return fields[name], which must be present and a str (may be empty)."""
    if name not in fields or fields[name] is None:
        raise InvalidInput(name, "is required")
    value = fields[name]
    if not isinstance(value, str):
        raise InvalidInput(name, f"must be a string, got {type(value).__name__}")
    return value


def canonical_fields(fields: Mapping[str, Any]) -> List[Tuple[str, str]]:
    """
    Validate and normalize hash inputs into (name, value) pairs in binding order.

    All validation happens here, before any digest is started, so a bad
    input never produces a partial computation.
    """
    pairs = [(name, require_text(fields, name)) for name in REQUIRED_FIELDS]
    pairs.append((ATTESTATION_FIELD, normalize_attestation_text(fields.get(ATTESTATION_FIELD))))
    return pairs


def encode_field(name: str, value: str) -> bytes:
    """UTF-8 encode a field value strictly."""
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidInput(name, f"is not valid UTF-8 text ({e.reason})")


def stream_chunks(fields: Mapping[str, Any]) -> Iterator[bytes]:
    """
    Yield one chunk per field: the raw UTF-8 bytes.

    Chunk boundaries are not recoverable from the digest, so this encoding
    is only used to reproduce stored v1 hashes.
    """
    for name, value in _encoded(fields):
        yield value


def framed_chunks(fields: Mapping[str, Any]) -> Iterator[bytes]:
    """
    Yield a length prefix and the UTF-8 bytes for each field.

    Rules:
    - length is the UTF-8 byte count as an 8-byte big-endian unsigned integer
    - prefix precedes the field bytes
    - fields appear in FIELD_ORDER
    """
    for name, value in _encoded(fields):
        yield len(value).to_bytes(LENGTH_PREFIX_BYTES, "big")
        yield value


def _encoded(fields: Mapping[str, Any]) -> List[Tuple[str, bytes]]:
    # Encode everything up front so an invalid field fails before hashing.
    return [(name, encode_field(name, value)) for name, value in canonical_fields(fields)]
