"""Data models for placeholder scanning."""

from typing import Optional

from pydantic import BaseModel, Field

from ..expressions.models import ElabMathError


class PlaceholderMatch(BaseModel):
    """A {{ ... }} occurrence found in a string."""

    model_config = {"frozen": True}

    raw_text: str  # Full match including braces (e.g. "{{ #mass * 2 }}")
    expression: str  # Trimmed inner expression (e.g. "#mass * 2")
    start_pos: int  # Position where the match starts
    end_pos: int  # Position right after the match


class PlaceholderOutcome(BaseModel):
    """What happened to one placeholder during a scan."""

    match: PlaceholderMatch
    resolved: Optional[str] = None  # Expression after reference resolution
    output: str  # Text substituted for the placeholder
    is_markup: bool = False
    failed: bool = False
    error: Optional[str] = None


class ResolvedExpression(BaseModel):
    """An expression with its references replaced."""

    model_config = {"frozen": True}

    text: str
    text_items: tuple[str, ...] = ()  # Element texts inserted by list selectors


class ScanResult(BaseModel):
    """Result of transforming a string, with per-placeholder details."""

    original: str
    content: str
    outcomes: list[PlaceholderOutcome] = Field(default_factory=list)

    @property
    def failures(self) -> list[PlaceholderOutcome]:
        return [outcome for outcome in self.outcomes if outcome.failed]


class ReferenceResolutionError(ElabMathError):
    """Raised when an id or selector reference cannot be resolved."""

    def __init__(self, reference: str, reason: str):
        self.reference = reference
        self.reason = reason
        super().__init__(f"Cannot resolve '{reference}': {reason}")
