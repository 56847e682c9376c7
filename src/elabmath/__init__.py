"""elabmath - inline {{ expression }} math with units for lab notebook documents."""

from typing import Optional

__version__ = "0.1.0"


def transform(text: str) -> str:
    """Evaluate every {{ }} placeholder in a string, keeping everything else as is."""
    from .placeholders import PlaceholderScanner

    return PlaceholderScanner().transform(text)


def transform_in_place(root) -> None:
    """Evaluate every {{ }} placeholder in the text nodes of a BeautifulSoup tree."""
    from .placeholders import PlaceholderScanner

    PlaceholderScanner().transform_in_place(root)


def evaluate(expression: str) -> Optional[str]:
    """Evaluate and format a single expression, or return None if it does not evaluate."""
    from .expressions import ExpressionEvaluator

    rendered = ExpressionEvaluator().render(expression)
    return rendered.text if rendered is not None else None


__all__ = ["__version__", "transform", "transform_in_place", "evaluate"]
