"""Custom unit definitions used by lab scientists.

Definitions come in two kinds:

- ``UNIT`` defines (or overrides) a unit with its own name. Overrides must stay
  numerically equivalent to whatever the registry already knows under that name.
- ``ALIAS`` attaches an extra input spelling to a unit the registry already has,
  so the value keeps the original unit and only the way it is written changes.
"""

from enum import Enum

from pydantic import BaseModel

MICRO_SIGN = "µ"
GREEK_MU = "μ"


class DefinitionKind(str, Enum):
    """How a definition is applied to the registry."""

    UNIT = "unit"
    ALIAS = "alias"


class UnitDefinition(BaseModel):
    """A single custom unit."""

    symbol: str  # Name used in expressions (e.g. "kat", "°C")
    definition: str  # Base definition, or the existing unit name for aliases
    kind: DefinitionKind = DefinitionKind.UNIT
    prefixable: bool = False
    aliases: tuple[str, ...] = ()

    def to_pint(self) -> str:
        """Render the definition in pint's definition syntax."""
        if self.kind == DefinitionKind.ALIAS:
            return " = ".join(["@alias " + self.definition, self.symbol, *self.aliases])
        # "_" leaves the symbol unset so the unit is displayed by its name
        return " = ".join([self.symbol, self.definition, "_", *self.aliases])

    @property
    def names(self) -> tuple[str, ...]:
        return (self.symbol, *self.aliases)


DEFAULT_UNIT_DEFINITIONS: tuple[UnitDefinition, ...] = (
    # Symbols for existing units
    UnitDefinition(symbol="°", definition="degree", kind=DefinitionKind.ALIAS),
    UnitDefinition(symbol="°C", definition="degree_Celsius", kind=DefinitionKind.ALIAS),
    UnitDefinition(symbol="°F", definition="degree_Fahrenheit", kind=DefinitionKind.ALIAS),
    UnitDefinition(symbol="°R", definition="degree_Rankine", kind=DefinitionKind.ALIAS),
    UnitDefinition(
        symbol="Å",
        definition="angstrom",
        kind=DefinitionKind.ALIAS,
        aliases=("Å",),
    ),
    UnitDefinition(symbol="θ", definition="radian", kind=DefinitionKind.ALIAS),
    UnitDefinition(
        symbol="Ω",
        definition="ohm",
        kind=DefinitionKind.ALIAS,
        prefixable=True,
    ),
    UnitDefinition(symbol="mmH2O", definition="9.80665 * pascal", aliases=("mmH₂O",)),
    UnitDefinition(symbol="cmH2O", definition="98.0665 * pascal", aliases=("cmH₂O",)),
    # Missing abbreviations
    UnitDefinition(symbol="tsp", definition="teaspoon"),
    UnitDefinition(symbol="tbsp", definition="tablespoon"),
    UnitDefinition(symbol="d", definition="day"),
    UnitDefinition(symbol="yr", definition="year"),
    UnitDefinition(symbol="mil", definition="0.001 * inch"),
    # Lab units
    UnitDefinition(
        symbol="Da",
        definition="1.66053906660e-27 * kilogram",
        prefixable=True,
        aliases=("Daltons", "Dalton"),
    ),
    UnitDefinition(
        symbol="kat",
        definition="mole / second",
        prefixable=True,
        aliases=("katal", "katals"),
    ),
    UnitDefinition(
        symbol="M",
        definition="mole / liter",
        prefixable=True,
        aliases=("molar", "molars"),
    ),
    UnitDefinition(symbol="U", definition="micromole / minute"),
)


class PowerUnit(BaseModel):
    """An area or volume unit written as a single word (``sqft``, ``m³``)."""

    names: tuple[str, ...]
    base: str  # Registry name of the length unit
    display: str  # Symbol shown in front of the exponent
    power: int
    prefixable: bool = False

    @property
    def markup(self) -> str:
        return f"{self.display}<sup>{self.power}</sup>"


POWER_UNITS: tuple[PowerUnit, ...] = (
    PowerUnit(names=("m2", "m²"), base="meter", display="m", power=2, prefixable=True),
    PowerUnit(names=("m3", "m³"), base="meter", display="m", power=3, prefixable=True),
    PowerUnit(names=("sqin", "in²"), base="inch", display="in", power=2),
    PowerUnit(names=("cuin", "in³"), base="inch", display="in", power=3),
    PowerUnit(names=("sqft", "ft²"), base="foot", display="ft", power=2),
    PowerUnit(names=("cuft", "ft³"), base="foot", display="ft", power=3),
    PowerUnit(names=("sqyd", "yd²"), base="yard", display="yd", power=2),
    PowerUnit(names=("cuyd", "yd³"), base="yard", display="yd", power=3),
    PowerUnit(names=("sqmi", "mi²"), base="mile", display="mi", power=2),
    PowerUnit(names=("sqrd", "rd²"), base="rod", display="rd", power=2),
    PowerUnit(names=("sqch", "ch²"), base="chain", display="ch", power=2),
    PowerUnit(names=("sqmil", "mil²"), base="mil", display="mil", power=2),
)


class Prefix(BaseModel):
    """One entry of the prefix table."""

    symbol: str  # Spelling in expressions ("k", "u", "kilo")
    registry_name: str  # pint prefix name ("kilo", "micro")
    factor: float


def _group(entries: list[tuple[str, str, float]]) -> dict[str, Prefix]:
    return {
        symbol: Prefix(symbol=symbol, registry_name=name, factor=factor)
        for symbol, name, factor in entries
    }


_SI = [
    ("deca", 1e1), ("hecto", 1e2), ("kilo", 1e3), ("mega", 1e6), ("giga", 1e9),
    ("tera", 1e12), ("peta", 1e15), ("exa", 1e18), ("zetta", 1e21), ("yotta", 1e24),
    ("deci", 1e-1), ("centi", 1e-2), ("milli", 1e-3), ("micro", 1e-6), ("nano", 1e-9),
    ("pico", 1e-12), ("femto", 1e-15), ("atto", 1e-18), ("zepto", 1e-21), ("yocto", 1e-24),
]
_SI_SHORT = ["da", "h", "k", "M", "G", "T", "P", "E", "Z", "Y", "d", "c", "m", "u", "n", "p", "f", "a", "z", "y"]
# Registry names of units that take an automatic SI prefix on display
SI_PREFIXED_UNITS = frozenset(
    {
        "meter", "gram", "second", "ampere", "kelvin", "mole", "candela", "liter",
        "newton", "joule", "watt", "pascal", "hertz", "coulomb", "volt", "farad",
        "ohm", "siemens", "henry", "weber", "tesla", "becquerel", "gray", "sievert",
        "electron_volt", "bar", "lumen", "lux",
        "kat", "katal", "M", "molar", "Da", "dalton",
    }
)

# Short prefixes never picked automatically
NON_SCIENTIFIC_PREFIXES = frozenset({"deca", "hecto", "deci", "centi"})

_BINARY = [
    ("kibi", 2.0**10), ("mebi", 2.0**20), ("gibi", 2.0**30), ("tebi", 2.0**40),
    ("pebi", 2.0**50), ("exbi", 2.0**60), ("zebi", 2.0**70), ("yobi", 2.0**80),
]
_BINARY_SHORT = ["Ki", "Mi", "Gi", "Ti", "Pi", "Ei", "Zi", "Yi"]


def default_prefix_table() -> dict[str, dict[str, Prefix]]:
    """Build a fresh, mutable copy of the prefix table, grouped like the unit engine groups it."""
    return {
        "short": _group([(short, name, factor) for short, (name, factor) in zip(_SI_SHORT, _SI)]),
        "long": _group([(name, name, factor) for name, factor in _SI]),
        "binary_short": _group(
            [(short, name, factor) for short, (name, factor) in zip(_BINARY_SHORT, _BINARY)]
        ),
        "binary_long": _group([(name, name, factor) for name, factor in _BINARY]),
    }
