"""Placeholder and reference syntax definitions and patterns."""

import re
from typing import Pattern

# {{ expression }} - inner whitespace is trimmed, the match is non-greedy
PLACEHOLDER_PATTERN: Pattern = re.compile(r"\{\{\s*(.*?)\s*\}\}")

# #identifier - element id reference
ID_PATTERN: Pattern = re.compile(r"#([A-Za-z][A-Za-z0-9\-_.]*)")

# [selector] (count) or ['selector'] (list of texts)
SELECTOR_PATTERN: Pattern = re.compile(r"(?<!\[')\[(?:'([^\n']*)'|([^\n'\[\]]*))\](?!\]')")

# Distinguishes the list form of a matched selector reference
QUOTED_SELECTOR_PATTERN: Pattern = re.compile(r"\[?'([^\n'\[\]]*?)'\]?")

# Start of a <body> element, used to tell full documents from fragments
BODY_PATTERN: Pattern = re.compile(r"<body[\s>]", re.IGNORECASE)

HTML_SHELL = "<!DOCTYPE html><html><head></head><body>{content}</body></html>"

# Separator for texts collected by a list selector
LIST_SEPARATOR = ", "


def contains_placeholder(text: str) -> bool:
    """Check if text contains at least one {{ }} placeholder."""
    return PLACEHOLDER_PATTERN.search(text) is not None


def is_list_selector(reference: str) -> bool:
    """
    Check if a matched selector reference uses the quoted list form.

    Args:
        reference: The full matched reference (e.g. "['.sample']" or "[.sample]")

    Returns:
        True for ['...'] references, False for [...] references
    """
    return QUOTED_SELECTOR_PATTERN.search(reference) is not None


def wrap_document(text: str) -> str:
    """
    Make sure text parses as a full HTML document.

    Fragments are wrapped in a minimal html/body shell; text that already has a
    body is returned unchanged.
    """
    if BODY_PATTERN.search(text):
        return text
    return HTML_SHELL.format(content=text)
