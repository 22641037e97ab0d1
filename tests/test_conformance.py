"""
reportseal Conformance Test Suite

Hash Binder behavior every implementation must reproduce:
- Known-answer digests for each hash version
- Determinism and per-field sensitivity
- Attestation normalization
- Field-boundary safety
- Input validation before hashing
"""

import unittest

from reportseal import (
    FIELD_ORDER,
    CURRENT_HASH_VERSION,
    HashVersion,
    InvalidInput,
    SignatureHashInputs,
    compute_signature_hash,
    normalize_attestation_text,
)
from reportseal.hashing import DIGEST_HEX_LENGTH

from signature_vectors import (
    BASE_INPUTS,
    V1_EMPTY_ATTESTATION,
    V1_WITH_ATTESTATION,
    V2_EMPTY_ATTESTATION,
    V2_WITH_ATTESTATION,
    inputs,
)


class TestKnownAnswers(unittest.TestCase):
    """Digests must stay byte-stable for stored records."""

    def test_v1_vector(self):
        h = compute_signature_hash(BASE_INPUTS, HashVersion.STREAM_V1)
        self.assertEqual(h, V1_WITH_ATTESTATION)

    def test_v1_vector_without_attestation(self):
        h = compute_signature_hash(inputs(attestation_text=None), "v1")
        self.assertEqual(h, V1_EMPTY_ATTESTATION)

    def test_v2_vector(self):
        h = compute_signature_hash(BASE_INPUTS, HashVersion.FRAMED_V2)
        self.assertEqual(h, V2_WITH_ATTESTATION)

    def test_v2_vector_without_attestation(self):
        h = compute_signature_hash(inputs(attestation_text=None), "v2")
        self.assertEqual(h, V2_EMPTY_ATTESTATION)

    def test_default_version_is_framed(self):
        self.assertEqual(CURRENT_HASH_VERSION, HashVersion.FRAMED_V2)
        self.assertEqual(compute_signature_hash(BASE_INPUTS), V2_WITH_ATTESTATION)

    def test_output_format(self):
        for version in HashVersion:
            h = compute_signature_hash(BASE_INPUTS, version)
            self.assertEqual(len(h), DIGEST_HEX_LENGTH)
            self.assertEqual(h, h.lower())
            int(h, 16)

    def test_dataclass_and_mapping_agree(self):
        dc = SignatureHashInputs(**BASE_INPUTS)
        self.assertEqual(compute_signature_hash(dc), compute_signature_hash(BASE_INPUTS))


class TestDeterminismAndSensitivity(unittest.TestCase):

    def test_determinism(self):
        for version in HashVersion:
            self.assertEqual(
                compute_signature_hash(inputs(), version),
                compute_signature_hash(inputs(), version),
            )

    def test_every_field_changes_digest(self):
        """Changing any single field changes the digest."""
        for version in HashVersion:
            base = compute_signature_hash(BASE_INPUTS, version)
            for name in FIELD_ORDER:
                with self.subTest(version=version, field=name):
                    changed = inputs(**{name: BASE_INPUTS[name] + "x"})
                    self.assertNotEqual(compute_signature_hash(changed, version), base)

    def test_single_character_in_svg(self):
        svg = BASE_INPUTS["signature_svg"].replace("M10 50", "M10 51")
        self.assertNotEqual(
            compute_signature_hash(inputs(signature_svg=svg)),
            compute_signature_hash(BASE_INPUTS),
        )

    def test_single_character_in_attestation(self):
        self.assertNotEqual(
            compute_signature_hash(inputs(attestation_text="I attest that this report is accurate!")),
            compute_signature_hash(BASE_INPUTS),
        )

    def test_field_order_is_fixed(self):
        swapped = inputs(signer_name="Safety Officer", signer_title="Alice Smith")
        self.assertNotEqual(compute_signature_hash(swapped), compute_signature_hash(BASE_INPUTS))

    def test_extra_keys_are_ignored(self):
        noisy = inputs(id="sig-1", signed_at="2026-01-01T00:00:00Z", ip_address="10.0.0.1")
        self.assertEqual(compute_signature_hash(noisy), compute_signature_hash(BASE_INPUTS))


class TestAttestationNormalization(unittest.TestCase):

    def test_absent_none_and_empty_are_equivalent(self):
        missing = dict(BASE_INPUTS)
        del missing["attestation_text"]
        for version in HashVersion:
            with self.subTest(version=version):
                expected = compute_signature_hash(inputs(attestation_text=""), version)
                self.assertEqual(compute_signature_hash(inputs(attestation_text=None), version), expected)
                self.assertEqual(compute_signature_hash(missing, version), expected)

    def test_whitespace_is_trimmed(self):
        self.assertEqual(
            compute_signature_hash(inputs(attestation_text="  Agreed  ")),
            compute_signature_hash(inputs(attestation_text="Agreed")),
        )
        self.assertEqual(
            compute_signature_hash(inputs(attestation_text="\n\tAgreed\r\n")),
            compute_signature_hash(inputs(attestation_text="Agreed")),
        )

    def test_inner_whitespace_is_kept(self):
        self.assertNotEqual(
            compute_signature_hash(inputs(attestation_text="I  agree")),
            compute_signature_hash(inputs(attestation_text="I agree")),
        )

    def test_whitespace_only_is_empty(self):
        self.assertEqual(normalize_attestation_text("   \n "), "")

    def test_trim_set(self):
        # Byte-order mark and no-break space are trimmed; separators below U+0020 are not.
        self.assertEqual(normalize_attestation_text("\ufeffAgreed\u00a0"), "Agreed")
        self.assertEqual(normalize_attestation_text("\x1cAgreed"), "\x1cAgreed")

    def test_non_string_attestation_rejected(self):
        for bad in (123, ["Agreed"], {"text": "Agreed"}, b"Agreed", True):
            with self.subTest(value=bad):
                with self.assertRaises(InvalidInput) as ctx:
                    compute_signature_hash(inputs(attestation_text=bad))
                self.assertEqual(ctx.exception.field, "attestation_text")


class TestFieldBoundaries(unittest.TestCase):
    """Shifting bytes across a field boundary must change the digest."""

    def test_signer_name_title_boundary(self):
        a = compute_signature_hash(inputs(signer_name="ab", signer_title="cd"))
        b = compute_signature_hash(inputs(signer_name="a", signer_title="bcd"))
        self.assertNotEqual(a, b)

    def test_every_adjacent_boundary(self):
        for left, right in zip(FIELD_ORDER, FIELD_ORDER[1:]):
            with self.subTest(left=left, right=right):
                a = compute_signature_hash(inputs(**{left: "xy", right: "z"}))
                b = compute_signature_hash(inputs(**{left: "x", right: "yz"}))
                self.assertNotEqual(a, b)

    def test_empty_field_shift(self):
        a = compute_signature_hash(inputs(signer_title="", signature_role="preparer"))
        b = compute_signature_hash(inputs(signer_title="preparer", signature_role=""))
        self.assertNotEqual(a, b)

    def test_v1_cannot_see_boundaries(self):
        """Documents why v1 is only kept for stored records."""
        a = compute_signature_hash(inputs(signer_name="ab", signer_title="cd"), "v1")
        b = compute_signature_hash(inputs(signer_name="a", signer_title="bcd"), "v1")
        self.assertEqual(a, b)


class TestInputValidation(unittest.TestCase):

    def test_missing_required_field(self):
        for name in FIELD_ORDER[:-1]:
            with self.subTest(field=name):
                data = dict(BASE_INPUTS)
                del data[name]
                with self.assertRaises(InvalidInput) as ctx:
                    compute_signature_hash(data)
                self.assertEqual(ctx.exception.field, name)

    def test_none_required_field(self):
        with self.assertRaises(InvalidInput) as ctx:
            compute_signature_hash(inputs(signer_name=None))
        self.assertEqual(ctx.exception.field, "signer_name")

    def test_wrong_type_required_field(self):
        with self.assertRaises(InvalidInput) as ctx:
            compute_signature_hash(inputs(report_run_id=42))
        self.assertEqual(ctx.exception.field, "report_run_id")

    def test_empty_strings_allowed(self):
        data = {name: "" for name in FIELD_ORDER}
        self.assertEqual(len(compute_signature_hash(data)), DIGEST_HEX_LENGTH)

    def test_unencodable_text_rejected(self):
        with self.assertRaises(InvalidInput) as ctx:
            compute_signature_hash(inputs(signer_name="Alice \ud800"))
        self.assertEqual(ctx.exception.field, "signer_name")

    def test_unknown_version_rejected(self):
        with self.assertRaises(InvalidInput) as ctx:
            compute_signature_hash(BASE_INPUTS, "v9")
        self.assertEqual(ctx.exception.field, "hash_version")

    def test_non_mapping_rejected(self):
        with self.assertRaises(InvalidInput):
            compute_signature_hash(["not", "a", "mapping"])

    def test_invalid_input_is_value_error(self):
        with self.assertRaises(ValueError):
            compute_signature_hash(inputs(signer_title=None))


class TestUnicode(unittest.TestCase):

    def test_non_ascii_names_hash_as_utf8(self):
        a = compute_signature_hash(inputs(signer_name="Jos\u00e9 M\u00fcller"))
        b = compute_signature_hash(inputs(signer_name="Jose\u0301 Mu\u0308ller"))
        # No Unicode normalization: composed and decomposed forms differ.
        self.assertNotEqual(a, b)


if __name__ == "__main__":
    unittest.main()
