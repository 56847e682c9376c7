"""Out-of-process evaluation of whole documents."""

from .notifications import MathEvaluationFailed, NotificationCategory
from .process import EvalMathBridge, EvaluatorProcessError

__all__ = [
    "MathEvaluationFailed",
    "NotificationCategory",
    "EvalMathBridge",
    "EvaluatorProcessError",
]
