"""Unit system: a pint registry extended with lab units, frozen after construction."""

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

import pint
from pint.errors import PintError
from pint.util import UnitsContainer

from ..config import Settings, settings as default_settings
from .definitions import (
    DEFAULT_UNIT_DEFINITIONS,
    GREEK_MU,
    MICRO_SIGN,
    NON_SCIENTIFIC_PREFIXES,
    POWER_UNITS,
    DefinitionKind,
    PowerUnit,
    Prefix,
    UnitDefinition,
    default_prefix_table,
)

logger = logging.getLogger(__name__)

# Characters accepted in identifiers on top of ASCII letters and "_"
EXTRA_IDENTIFIER_CHARS = frozenset(
    {
        "\u2013",  # en dash
        "\u00b0",  # degree sign
        "\u00b5",  # micro sign
        "\u00c5",  # A with ring
        "\u212b",  # angstrom sign
        "\u00b2",  # superscript two
        "\u00b3",  # superscript three
        "\u2082",  # subscript two
    }
)

# Registry names shown with a different symbol than pint picks
SYMBOL_OVERRIDES = {
    "liter": "L",
    "year": "yr",
}


class UnitConfigurationError(Exception):
    """Raised when the custom unit definitions cannot be applied."""

    pass


class UnitSystemFrozenError(AttributeError):
    """Raised when code tries to modify a built unit system."""

    pass


@dataclass(frozen=True)
class UnitTerm:
    """One factor of a compound unit, e.g. ``kilo`` + ``meter`` ^ ``2``."""

    prefix: str
    unit: str
    power: float


def _is_default_identifier_char(char: str) -> bool:
    return char == "_" or ("a" <= char <= "z") or ("A" <= char <= "Z")


def _is_greek(char: str) -> bool:
    return 913 <= ord(char) <= 969


def add_mu(prefix_table: dict) -> None:
    """
    Clone every micro prefix spelled ``u`` into Greek mu and micro sign entries.

    Walks the whole nested table, not only the top level.
    """
    for value in list(prefix_table.values()):
        if isinstance(value, dict):
            add_mu(value)
        elif isinstance(value, Prefix) and value.symbol == "u":
            for glyph in (GREEK_MU, MICRO_SIGN):
                prefix_table[glyph] = value.model_copy(update={"symbol": glyph})


def _freeze(table: dict) -> Mapping:
    return MappingProxyType(
        {key: _freeze(value) if isinstance(value, dict) else value for key, value in table.items()}
    )


class UnitSystem:
    """
    Read-only view over a configured pint registry.

    Instances are created by UnitSystemBuilder and cannot be modified afterwards.
    Evaluators receive the instance explicitly; get_unit_system() returns the
    process-wide default.
    """

    def __init__(
        self,
        registry: pint.UnitRegistry,
        prefixes: dict,
        power_units: Iterable[PowerUnit],
        unprefixable: Iterable[str],
        extended_identifiers: bool = True,
    ):
        flat_prefixes = {}
        for group in prefixes.values():
            for symbol, prefix in group.items():
                flat_prefixes.setdefault(symbol, prefix)

        power_by_name = {}
        power_by_base = {}
        for power_unit in power_units:
            canonical = registry.get_name(power_unit.base)
            for name in power_unit.names:
                power_by_name[name] = power_unit
            power_by_base[(canonical, power_unit.power)] = power_unit

        prefix_symbols = {}
        for prefix in prefixes["short"].values():
            prefix_symbols.setdefault(prefix.registry_name, prefix.symbol)

        prefix_factors = {}
        for group in prefixes.values():
            for prefix in group.values():
                prefix_factors.setdefault(prefix.registry_name, prefix.factor)

        # Candidates for automatic prefixes, "no prefix" first
        scientific = {"": Prefix(symbol="", registry_name="", factor=1.0)}
        for prefix in prefixes["short"].values():
            if prefix.registry_name not in NON_SCIENTIFIC_PREFIXES:
                scientific.setdefault(prefix.registry_name, prefix)

        object.__setattr__(self, "registry", registry)
        object.__setattr__(self, "prefixes", _freeze(prefixes))
        object.__setattr__(self, "extended_identifiers", extended_identifiers)
        object.__setattr__(self, "_flat_prefixes", MappingProxyType(flat_prefixes))
        object.__setattr__(
            self,
            "_prefix_order",
            tuple(sorted(flat_prefixes, key=len, reverse=True)),
        )
        object.__setattr__(self, "_prefix_symbols", MappingProxyType(prefix_symbols))
        object.__setattr__(self, "_prefix_factors", MappingProxyType(prefix_factors))
        object.__setattr__(self, "scientific_prefixes", tuple(scientific.values()))
        object.__setattr__(self, "_power_by_name", MappingProxyType(power_by_name))
        object.__setattr__(self, "_power_by_base", MappingProxyType(power_by_base))
        object.__setattr__(self, "_unprefixable", frozenset(unprefixable))

    def __setattr__(self, name, value):
        raise UnitSystemFrozenError(f"UnitSystem is read-only, cannot set '{name}'")

    def __delattr__(self, name):
        raise UnitSystemFrozenError(f"UnitSystem is read-only, cannot delete '{name}'")

    # Identifier characters

    def is_identifier_start(self, char: str) -> bool:
        """Check if a character may start a unit or variable name."""
        if _is_default_identifier_char(char):
            return True
        if not self.extended_identifiers:
            return False
        return _is_greek(char) or char in EXTRA_IDENTIFIER_CHARS

    def is_identifier_part(self, char: str) -> bool:
        """Check if a character may continue a unit or variable name."""
        return ("0" <= char <= "9") or self.is_identifier_start(char)

    # Lookup

    def lookup_unit(self, name: str) -> Optional[pint.Unit]:
        """
        Find the unit spelled ``name``.

        Returns None when the name is not a unit, including prefixed spellings
        of units that do not take prefixes.
        """
        power_unit = self._power_by_name.get(name)
        if power_unit is not None:
            return self._unit(power_unit.base) ** power_unit.power

        prefix = self._split_prefix(name)
        if prefix is not None:
            rest = name[len(prefix.symbol):]
            power_unit = self._power_by_name.get(rest)
            if power_unit is not None:
                if not power_unit.prefixable:
                    return None
                return self._unit(prefix.registry_name + power_unit.base) ** power_unit.power

        candidates = self.registry.parse_unit_name(name)
        if not candidates and prefix is not None:
            rest = name[len(prefix.symbol):]
            candidates = tuple(
                (prefix.registry_name, unit_name, suffix)
                for unit_prefix, unit_name, suffix in self.registry.parse_unit_name(rest)
                if not unit_prefix
            )
        if not candidates:
            return None

        prefix_name, unit_name, _ = self._pick(candidates)
        if prefix_name and self._is_unprefixable(name):
            logger.debug(f"Unit '{name}' does not take a prefix")
            return None
        return self._unit(prefix_name + unit_name)

    def quantity(self, magnitude, unit) -> pint.Quantity:
        return self.registry.Quantity(magnitude, unit)

    def is_quantity(self, value) -> bool:
        return isinstance(value, self.registry.Quantity)

    # Presentation

    def split_terms(self, quantity: pint.Quantity) -> tuple[UnitTerm, ...]:
        """Split the unit of a quantity into prefix/unit/power terms."""
        terms = []
        for name, power in quantity.unit_items():
            prefix, unit = self.split_unit_name(name)
            terms.append(UnitTerm(prefix=prefix, unit=unit, power=power))
        return tuple(terms)

    def split_unit_name(self, name: str) -> tuple[str, str]:
        candidates = self.registry.parse_unit_name(name)
        if not candidates:
            return "", name
        prefix, unit, _ = self._pick(candidates)
        return prefix, unit

    def prefix_symbol(self, prefix_name: str) -> str:
        return self._prefix_symbols.get(prefix_name, prefix_name)

    def prefix_factor(self, prefix_name: str) -> Optional[float]:
        """Factor of a pint prefix name (1 for no prefix), or None if the prefix is unknown."""
        if not prefix_name:
            return 1.0
        return self._prefix_factors.get(prefix_name)

    def unit_symbol(self, unit_name: str) -> str:
        if unit_name in SYMBOL_OVERRIDES:
            return SYMBOL_OVERRIDES[unit_name]
        try:
            return self.registry.get_symbol(unit_name)
        except pint.UndefinedUnitError:
            return unit_name

    def power_unit(self, unit_name: str, power) -> Optional[PowerUnit]:
        """Return the area/volume spelling for ``unit_name ** power``, if there is one."""
        return self._power_by_base.get((unit_name, power))

    # Helpers

    def _unit(self, name: str) -> pint.Unit:
        return self.registry.Unit(UnitsContainer({self.registry.get_name(name): 1}))

    def _split_prefix(self, name: str) -> Optional[Prefix]:
        for symbol in self._prefix_order:
            if len(name) > len(symbol) and name.startswith(symbol):
                return self._flat_prefixes[symbol]
        return None

    def _is_unprefixable(self, name: str) -> bool:
        for symbol in self._unprefixable:
            if name != symbol and name.endswith(symbol):
                if name[: -len(symbol)] in self._flat_prefixes:
                    return True
        return False

    @staticmethod
    def _pick(candidates):
        # Prefer reading the whole name as a unit ("min" is minute, not milli-inch)
        for candidate in candidates:
            if not candidate[0]:
                return candidate
        return candidates[0]


class UnitSystemBuilder:
    """Configure a pint registry with the custom lab units and build a UnitSystem."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        definitions: Iterable[UnitDefinition] = DEFAULT_UNIT_DEFINITIONS,
    ):
        self.settings = settings or default_settings
        self.definitions: list[UnitDefinition] = list(definitions)
        self.power_units: list[PowerUnit] = list(POWER_UNITS)

    def add(self, definition: UnitDefinition) -> "UnitSystemBuilder":
        self.definitions.append(definition)
        return self

    def build(self) -> UnitSystem:
        """
        Build the unit system.

        Raises:
            UnitConfigurationError: If a definition cannot be applied or does not
                resolve to base units
        """
        registry = pint.UnitRegistry(on_redefinition=self.settings.unit_redefinition)

        for definition in self.definitions:
            self._apply(registry, definition)
        # Root units of redefined names (e.g. "mil") are cached from the defaults.
        # Private API, present in pint 0.23 to 0.25; the pin in pyproject.toml follows it.
        registry._build_cache()

        prefixes = default_prefix_table()
        add_mu(prefixes)

        unprefixable = [
            name
            for definition in self.definitions
            if not definition.prefixable
            for name in definition.names
        ]

        try:
            unit_system = UnitSystem(
                registry,
                prefixes,
                self.power_units,
                unprefixable,
                extended_identifiers=self.settings.extended_identifiers,
            )
        except PintError as e:
            raise UnitConfigurationError(f"Area/volume units could not be configured: {e}") from e

        logger.info(f"Unit system built with {len(self.definitions)} custom definitions")
        return unit_system

    def _apply(self, registry: pint.UnitRegistry, definition: UnitDefinition) -> None:
        try:
            registry.define(definition.to_pint())
            if definition.kind == DefinitionKind.ALIAS:
                target = registry.get_name(definition.definition)
                for name in definition.names:
                    if registry.get_name(name) != target:
                        raise UnitConfigurationError(
                            f"Alias '{name}' does not resolve to '{definition.definition}'"
                        )
            else:
                unit = registry.Unit(UnitsContainer({definition.symbol: 1}))
                registry.Quantity(1.0, unit).to_base_units()
        except UnitConfigurationError:
            raise
        except (PintError, ValueError, TypeError, KeyError, AttributeError) as e:
            raise UnitConfigurationError(
                f"Invalid unit definition '{definition.to_pint()}': {e}"
            ) from e


_unit_system: Optional[UnitSystem] = None
_unit_system_lock = threading.Lock()


def get_unit_system() -> UnitSystem:
    """Get the process-wide unit system, building it on first use."""
    global _unit_system
    if _unit_system is None:
        with _unit_system_lock:
            if _unit_system is None:
                _unit_system = UnitSystemBuilder().build()
    return _unit_system
