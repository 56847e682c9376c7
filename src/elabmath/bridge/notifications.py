"""Notification raised when out-of-process math evaluation fails."""

from enum import Enum

from pydantic import BaseModel


class NotificationCategory(str, Enum):
    """Kinds of notifications produced by this package."""

    MATH_EVALUATION_FAILED = "math_evaluation_failed"


class MathEvaluationFailed(BaseModel):
    """
    Web-only notification telling a user that math in an entity was not evaluated.

    The surrounding render (e.g. a PDF export) still completed, with the
    expressions left as written.
    """

    entity_id: int
    entity_page: str  # Page the entity is shown on (e.g. "experiments")
    category: NotificationCategory = NotificationCategory.MATH_EVALUATION_FAILED
    web_only: bool = True

    def get_body(self) -> dict:
        return {
            "entity_id": self.entity_id,
            "entity_page": self.entity_page,
        }
