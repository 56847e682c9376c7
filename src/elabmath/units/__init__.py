"""Unit system extension for lab notation.

Configures pint with the units lab scientists write (°C, µL, M, kat, Da, ...)
and the identifier characters those names need.
"""

from .definitions import (
    DEFAULT_UNIT_DEFINITIONS,
    POWER_UNITS,
    DefinitionKind,
    PowerUnit,
    Prefix,
    UnitDefinition,
)
from .system import (
    UnitConfigurationError,
    UnitSystem,
    UnitSystemBuilder,
    UnitSystemFrozenError,
    UnitTerm,
    add_mu,
    get_unit_system,
)

__all__ = [
    "DEFAULT_UNIT_DEFINITIONS",
    "POWER_UNITS",
    "DefinitionKind",
    "PowerUnit",
    "Prefix",
    "UnitDefinition",
    "UnitConfigurationError",
    "UnitSystem",
    "UnitSystemBuilder",
    "UnitSystemFrozenError",
    "UnitTerm",
    "add_mu",
    "get_unit_system",
]
