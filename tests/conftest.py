"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from elabmath.config import Settings
from elabmath.expressions import ExpressionEvaluator
from elabmath.placeholders import HtmlDocumentContext, PlaceholderScanner
from elabmath.units import UnitSystem, UnitSystemBuilder


def make_settings(**overrides) -> Settings:
    """Create settings with test values, independent of the environment."""
    values = dict(
        missing_reference="fail",
        max_recursion_depth=1,
        precision=None,
        scalar_lower_exp=-6,
        scalar_upper_exp=21,
        unit_lower_exp=-3,
        unit_upper_exp=5,
        auto_prefix=True,
        microliter_precision_steps=False,
        extended_identifiers=True,
        unit_redefinition="ignore",
        evaluator_timeout=None,
        temp_dir=None,
        host="127.0.0.1",
        port=8000,
        debug=False,
        cors_allow_origins=["*"],
        log_level="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create settings with test values."""
    return make_settings(temp_dir=tmp_path)


@pytest.fixture(scope="session")
def unit_system() -> UnitSystem:
    """Build the unit system once per session (building a registry is slow)."""
    return UnitSystemBuilder(make_settings()).build()


@pytest.fixture(scope="session")
def plain_unit_system() -> UnitSystem:
    """Unit system without the extended identifier characters."""
    return UnitSystemBuilder(make_settings(extended_identifiers=False)).build()


@pytest.fixture
def evaluator(unit_system: UnitSystem, test_settings: Settings) -> ExpressionEvaluator:
    """Create an evaluator using the shared unit system."""
    return ExpressionEvaluator(unit_system=unit_system, settings=test_settings)


@pytest.fixture
def scanner(evaluator: ExpressionEvaluator, test_settings: Settings) -> PlaceholderScanner:
    """Create a scanner using the shared unit system."""
    return PlaceholderScanner(evaluator=evaluator, settings=test_settings)


@pytest.fixture
def sample_html() -> str:
    """A notebook entry with ids, classes and placeholders."""
    return (
        "<html><head><title>Entry</title></head><body>"
        '<p>Mass: <span id="mass">12.5</span> g</p>'
        '<ul><li class="sample">a</li><li class="sample">b</li><li class="sample">c</li></ul>'
        '<table><tr><td class="volume">10</td><td class="volume">20</td></tr></table>'
        "</body></html>"
    )


@pytest.fixture
def sample_context(sample_html: str) -> HtmlDocumentContext:
    """Document context over the sample entry."""
    return HtmlDocumentContext.from_html(sample_html)
