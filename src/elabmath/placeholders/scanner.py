"""Scanner that finds {{ }} placeholders and replaces them with their results."""

import html
import logging
from typing import Optional, Union

from bs4 import BeautifulSoup, NavigableString, Tag

from ..config import Settings, settings as default_settings
from ..expressions.evaluator import ExpressionEvaluator
from ..expressions.models import MarkupFragment, PlainText, RenderedValue
from .context import HTML_PARSER, DocumentContext, HtmlDocumentContext
from .models import PlaceholderMatch, PlaceholderOutcome, ReferenceResolutionError, ScanResult
from .resolver import ReferenceResolver
from .syntax import PLACEHOLDER_PATTERN, contains_placeholder

logger = logging.getLogger(__name__)


class PlaceholderScanner:
    """
    Drive reference resolution and evaluation for every placeholder in a text.

    A placeholder that fails to resolve or evaluate is left exactly as written.
    """

    def __init__(
        self,
        evaluator: Optional[ExpressionEvaluator] = None,
        resolver: Optional[ReferenceResolver] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or default_settings
        self.evaluator = evaluator or ExpressionEvaluator(settings=self.settings)
        self.resolver = resolver or ReferenceResolver(self.settings)

    def find_placeholders(self, text: str) -> list[PlaceholderMatch]:
        """
        Find all non-overlapping placeholders in a text.

        Args:
            text: Text or HTML to scan

        Returns:
            List of PlaceholderMatch objects in document order
        """
        return [
            PlaceholderMatch(
                raw_text=match.group(0),
                expression=match.group(1),
                start_pos=match.start(),
                end_pos=match.end(),
            )
            for match in PLACEHOLDER_PATTERN.finditer(text)
        ]

    # String mode

    def transform(self, text: str, context: Optional[DocumentContext] = None) -> str:
        """
        Replace every placeholder in a string with its result.

        The document context is built from a normalized copy of the text, but
        substitution happens on the text as given, so everything outside the
        placeholders is kept byte for byte.
        """
        return self.scan(text, context).content

    def scan(self, text: str, context: Optional[DocumentContext] = None) -> ScanResult:
        """Like transform(), but also report what happened to each placeholder."""
        if context is None:
            context = HtmlDocumentContext.from_html(text)
        segments, outcomes = self._scan(text, context, depth=0)
        return ScanResult(
            original=text,
            content="".join(segment.text for segment in segments),
            outcomes=outcomes,
        )

    def transform_segments(
        self,
        text: str,
        context: DocumentContext,
        depth: int = 0,
    ) -> list[RenderedValue]:
        """
        Split a text into literal PlainText parts and placeholder results.

        Literal parts are never markup; results are MarkupFragment only when
        the formatter produced tags.
        """
        segments, _ = self._scan(text, context, depth)
        return segments

    # DOM mode

    def transform_in_place(self, root: Union[BeautifulSoup, Tag]) -> None:
        """
        Evaluate placeholders in all text nodes under root, modifying the tree.

        Nodes whose results contain markup are replaced by parsed HTML (with the
        literal text around the placeholders escaped); other nodes get plain text.
        """
        context = HtmlDocumentContext(root)
        nodes = [
            node
            for node in root.find_all(string=PLACEHOLDER_PATTERN)
            if type(node) is NavigableString
        ]
        logger.debug(f"Found {len(nodes)} text nodes with placeholders")

        for node in nodes:
            segments = self.transform_segments(str(node), context)
            if any(segment.is_markup for segment in segments):
                markup = "".join(
                    segment.text if segment.is_markup else html.escape(segment.text, quote=False)
                    for segment in segments
                )
                fragment = BeautifulSoup(markup, HTML_PARSER)
                node.replace_with(*list(fragment.contents))
            else:
                node.replace_with("".join(segment.text for segment in segments))

    # Helpers

    def _scan(
        self,
        text: str,
        context: DocumentContext,
        depth: int,
    ) -> tuple[list[RenderedValue], list[PlaceholderOutcome]]:
        segments: list[RenderedValue] = []
        outcomes: list[PlaceholderOutcome] = []
        position = 0

        for match in self.find_placeholders(text):
            if match.start_pos > position:
                segments.append(PlainText(text[position:match.start_pos]))

            outcome = self._evaluate_match(match, context, depth)
            outcomes.append(outcome)
            segments.append(MarkupFragment(outcome.output) if outcome.is_markup else PlainText(outcome.output))
            position = match.end_pos

        if position < len(text):
            segments.append(PlainText(text[position:]))
        return segments, outcomes

    def _evaluate_match(
        self,
        match: PlaceholderMatch,
        context: DocumentContext,
        depth: int,
    ) -> PlaceholderOutcome:
        try:
            references = self.resolver.resolve_references(match.expression, context)
        except ReferenceResolutionError as e:
            logger.warning(f"Keeping '{match.raw_text}': {e}")
            return PlaceholderOutcome(match=match, output=match.raw_text, failed=True, error=str(e))

        resolved = references.text
        text_items = references.text_items
        if contains_placeholder(resolved):
            if depth < self.settings.max_recursion_depth:
                resolved = self._expand(resolved, context, depth + 1)
                text_items = tuple(self._expand(item, context, depth + 1) for item in text_items)
            else:
                logger.debug(f"Not expanding placeholders in '{resolved}', depth limit {depth} reached")

        rendered = self.evaluator.render(resolved, text_items)
        if rendered is None:
            return PlaceholderOutcome(
                match=match,
                resolved=resolved,
                output=match.raw_text,
                failed=True,
                error=f"could not evaluate '{resolved}'",
            )

        return PlaceholderOutcome(
            match=match,
            resolved=resolved,
            output=rendered.text,
            is_markup=rendered.is_markup,
        )

    def _expand(self, text: str, context: DocumentContext, depth: int) -> str:
        if not contains_placeholder(text):
            return text
        segments, _ = self._scan(text, context, depth)
        return "".join(segment.text for segment in segments)
