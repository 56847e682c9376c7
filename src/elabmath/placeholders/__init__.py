"""Placeholder scanning and document reference resolution.

This module finds {{ expression }} placeholders in text or HTML, replaces
#id and [selector] references with text from the document, and substitutes
the evaluated result.
"""

from .context import DocumentContext, HtmlDocumentContext
from .models import (
    PlaceholderMatch,
    PlaceholderOutcome,
    ReferenceResolutionError,
    ResolvedExpression,
    ScanResult,
)
from .resolver import ReferenceResolver
from .scanner import PlaceholderScanner

__all__ = [
    "DocumentContext",
    "HtmlDocumentContext",
    "PlaceholderMatch",
    "PlaceholderOutcome",
    "ReferenceResolutionError",
    "ResolvedExpression",
    "ScanResult",
    "ReferenceResolver",
    "PlaceholderScanner",
]
