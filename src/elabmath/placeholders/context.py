"""Document contexts that references are resolved against."""

import logging
from typing import Optional, Protocol, Union

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from .models import ReferenceResolutionError
from .syntax import wrap_document

logger = logging.getLogger(__name__)

HTML_PARSER = "html.parser"


class DocumentContext(Protocol):
    """A tree of elements queryable by id and by CSS selector."""

    def find_text_by_id(self, element_id: str) -> Optional[str]:
        """Return the trimmed text of the first element with this id, or None."""
        ...

    def select_texts(self, selector: str) -> list[str]:
        """Return the trimmed text of every element matching the selector."""
        ...


class HtmlDocumentContext:
    """DocumentContext over a BeautifulSoup tree, scoped to <body> when there is one."""

    def __init__(self, root: Union[BeautifulSoup, Tag]):
        body = root if root.name == "body" else root.find("body")
        self.root = root
        self.scope = body if body is not None else root

    @classmethod
    def from_html(cls, text: str) -> "HtmlDocumentContext":
        """Parse text (a full document or a fragment) into a context."""
        return cls(BeautifulSoup(wrap_document(text), HTML_PARSER))

    def find_text_by_id(self, element_id: str) -> Optional[str]:
        element = self.scope.find(id=element_id)
        if element is None:
            return None
        return element.get_text().strip()

    def select_texts(self, selector: str) -> list[str]:
        """
        Run a CSS selector query.

        Raises:
            ReferenceResolutionError: If the selector is not valid CSS
        """
        try:
            elements = self.scope.select(selector)
        except (SelectorSyntaxError, ValueError) as e:
            raise ReferenceResolutionError(f"[{selector}]", f"invalid selector ({e})") from e
        logger.debug(f"Selector '{selector}' matched {len(elements)} elements")
        return [element.get_text().strip() for element in elements]
