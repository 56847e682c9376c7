"""Resolver for document references inside expressions."""

import logging
import re
from typing import Optional

from ..config import Settings, settings as default_settings
from .context import DocumentContext
from .models import ReferenceResolutionError, ResolvedExpression
from .syntax import ID_PATTERN, LIST_SEPARATOR, SELECTOR_PATTERN, is_list_selector

logger = logging.getLogger(__name__)


class ReferenceResolver:
    """Replace #id and [selector] references with text from a document."""

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize the resolver.

        Args:
            settings: Settings providing the missing-id behaviour (defaults to global settings)
        """
        self.settings = settings or default_settings

    def resolve(self, expression: str, context: DocumentContext) -> str:
        """
        Resolve all references in an expression.

        Selector references are replaced first, then id references, so text
        pulled in by a selector can itself contain #id references.

        Args:
            expression: Expression text from inside a placeholder
            context: Document to query

        Returns:
            Expression with references replaced by text

        Raises:
            ReferenceResolutionError: If a selector is invalid, or an id is
                missing and missing references are configured to fail
        """
        return self.resolve_references(expression, context).text

    def resolve_references(self, expression: str, context: DocumentContext) -> ResolvedExpression:
        """Like resolve(), but also return the item texts of ``['selector']`` lists."""
        items: list[str] = []
        resolved = self.resolve_selectors(expression, context, items)
        return ResolvedExpression(
            text=self.resolve_ids(resolved, context),
            text_items=tuple(self.resolve_ids(item, context) for item in items),
        )

    def resolve_selectors(
        self,
        expression: str,
        context: DocumentContext,
        items: Optional[list[str]] = None,
    ) -> str:
        def replace(match: re.Match) -> str:
            selector = (match.group(1) or "") + (match.group(2) or "")
            texts = context.select_texts(selector)
            if is_list_selector(match.group(0)):
                if items is not None:
                    items.extend(texts)
                return LIST_SEPARATOR.join(texts)
            return str(len(texts))

        return SELECTOR_PATTERN.sub(replace, expression)

    def resolve_ids(self, expression: str, context: DocumentContext) -> str:
        def replace(match: re.Match) -> str:
            element_id = match.group(1)
            text = context.find_text_by_id(element_id)
            if text is not None:
                return text

            if self.settings.missing_reference == "empty":
                logger.debug(f"No element with id '{element_id}', substituting empty text")
                return ""
            raise ReferenceResolutionError(match.group(0), "no element with this id")

        return ID_PATTERN.sub(replace, expression)
