"""
Signature mark validation.

A signature mark is captured as SVG markup and later embedded in rendered
reports, so it must contain stroke data and nothing that executes.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

from . import config

SVG_ROOT_PATTERN = re.compile(r'<svg[\s>]', re.IGNORECASE)
PATH_PATTERN = re.compile(r'<path\b[^>]*\sd\s*=\s*["\'][^"\']+["\']', re.IGNORECASE)
POLYLINE_PATTERN = re.compile(r'<polyline\b[^>]*\spoints\s*=\s*["\'][^"\']+["\']', re.IGNORECASE)

FORBIDDEN_PATTERNS = (
    (re.compile(r'<script', re.IGNORECASE), "script elements are not allowed"),
    (re.compile(r'<foreignObject', re.IGNORECASE), "foreignObject elements are not allowed"),
    (re.compile(r'\son[a-z]+\s*=', re.IGNORECASE), "event handler attributes are not allowed"),
    (re.compile(r'javascript:', re.IGNORECASE), "javascript: URLs are not allowed"),
)


@dataclass
class SvgValidation:
    valid: bool
    error: Optional[str] = None


def validate_signature_svg(svg: Any, max_bytes: Optional[int] = None) -> SvgValidation:
    """
    Check that svg is a usable signature mark.

    Rules:
    - non-empty string within the size limit
    - an <svg> root element
    - at least one <path d=...> or <polyline points=...> stroke
    - no scripts, foreign content, event handlers or javascript: URLs
    """
    if not isinstance(svg, str) or not svg.strip():
        return SvgValidation(False, "Signature SVG is required")

    limit = max_bytes if max_bytes is not None else config.MAX_SIGNATURE_SVG_BYTES
    size = len(svg.encode("utf-8", "surrogatepass"))
    if size > limit:
        return SvgValidation(False, f"Signature SVG exceeds {limit} bytes")

    if not SVG_ROOT_PATTERN.search(svg):
        return SvgValidation(False, "Signature must be an SVG document")

    for pattern, error in FORBIDDEN_PATTERNS:
        if pattern.search(svg):
            return SvgValidation(False, f"Invalid signature SVG: {error}")

    if not (PATH_PATTERN.search(svg) or POLYLINE_PATTERN.search(svg)):
        return SvgValidation(False, "Signature SVG contains no strokes")

    return SvgValidation(True)
