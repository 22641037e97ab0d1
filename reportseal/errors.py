"""
Error types raised by reportseal.

A signature that no longer matches its sealed report is not an error here.
It is an audit finding, reported through VerificationResult.
"""

from typing import Optional


class InvalidInput(ValueError):
    """Raised when a required field is missing or has the wrong type."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")

    def to_dict(self):
        return {"field": self.field, "message": self.message}


class SigningRejected(Exception):
    """
    Raised when a signing or finalize request violates a report run or role
    rule.

    conflict is True when the request collides with existing state (a sealed
    run, a role that is already signed, stored data that no longer matches)
    rather than being malformed.
    """

    CONFLICT_CODES = frozenset({
        "RUN_SEALED",
        "ROLE_ALREADY_SIGNED",
        "HASH_MISMATCH",
        "SIGNATURE_HASH_MISMATCH",
    })

    def __init__(self, code: str, message: str, details: Optional[dict] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"{code}: {message}")

    @property
    def conflict(self) -> bool:
        return self.code in self.CONFLICT_CODES

    def to_dict(self):
        data = {"code": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data
