"""API routes for elabmath."""

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..expressions.models import EvaluationError, ListValue, Scalar, UnitValue
from ..placeholders.syntax import PLACEHOLDER_PATTERN

router = APIRouter()


def get_scanner():
    """Get the global scanner instance."""
    from .app import get_scanner as _get_scanner

    return _get_scanner()


class TransformRequest(BaseModel):
    """Request to evaluate every placeholder in a document."""

    content: str


class TransformResponse(BaseModel):
    """Transformed document."""

    content: str
    placeholders: int  # Placeholders found
    failed: int  # Placeholders left as written


class EvaluateRequest(BaseModel):
    """Request to evaluate a single expression."""

    expression: str


class EvaluateResponse(BaseModel):
    """Result of evaluating a single expression."""

    ok: bool
    kind: str  # scalar, unit, list or error
    text: Optional[str] = None
    markup: bool = False
    error: Optional[str] = None


def _result_kind(result) -> str:
    if isinstance(result, Scalar):
        return "scalar"
    if isinstance(result, UnitValue):
        return "unit"
    if isinstance(result, ListValue):
        return "list"
    return "error"


@router.get("/health")
async def health_check():
    """Health check endpoint with diagnostics."""
    from ..config import settings

    config = {
        "missing_reference": settings.missing_reference,
        "max_recursion_depth": settings.max_recursion_depth,
        "precision": settings.precision,
        "auto_prefix": settings.auto_prefix,
        "extended_identifiers": settings.extended_identifiers,
    }

    return {
        "status": "ok",
        "service": "elabmath",
        "config": config,
    }


@router.post("/transform", response_model=TransformResponse)
async def transform(request: TransformRequest):
    """Evaluate all {{ }} placeholders in a document."""
    scanner = get_scanner()
    result = scanner.scan(request.content)
    return TransformResponse(
        content=result.content,
        placeholders=len(result.outcomes),
        failed=len(result.failures),
    )


@router.post("/evaluate", response_model=EvaluateResponse)
async def evaluate(request: EvaluateRequest):
    """Evaluate a single expression (without {{ }} and without references)."""
    if PLACEHOLDER_PATTERN.search(request.expression):
        raise HTTPException(status_code=400, detail="Send the expression without {{ }}")

    evaluator = get_scanner().evaluator
    result = evaluator.evaluate(request.expression)
    if isinstance(result, EvaluationError):
        return EvaluateResponse(ok=False, kind="error", error=result.message)

    rendered = evaluator.formatter.format(result)
    return EvaluateResponse(
        ok=True,
        kind=_result_kind(result),
        text=rendered.text,
        markup=rendered.is_markup,
    )
