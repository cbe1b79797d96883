"""
Unit conversion system for FoodCost.

This module provides:
- Unit definitions grouped by family (weight, volume, piece, other)
- Compatibility checks between unit labels
- Quantity conversion, including the weight<->piece bridge
- Usage-unit cost calculation for ingredients bought in another unit
- Quantity display helpers

Conversion Strategy:
- Weight units convert through grams (base unit)
- Volume units convert through milliliters (base unit)
- Piece units convert through pieces (base unit)
- Weight and piece convert into each other only with an average weight per piece

Unknown units and cross-family pairs always raise UnitConversionError; a
quantity is never returned unconverted as if the conversion had worked.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from foodcost.services.dto import IngredientData
from foodcost.services.exceptions import UnitConversionError
from foodcost.services.logging_utils import get_service_logger, log_operation
from foodcost.utils.constants import (
    UNIT_NAMES,
    UNIT_TYPE_OTHER,
    UNIT_TYPE_PIECE,
    UNIT_TYPE_UNKNOWN,
    UNIT_TYPE_VOLUME,
    UNIT_TYPE_WEIGHT,
)

logger = get_service_logger(__name__)


@dataclass(frozen=True)
class UnitDefinition:
    """
    A measurement unit and its place in a conversion family.

    Attributes:
        code: Unit label as stored on ingredients and recipe lines
        name: Display name
        unit_type: Family ("weight", "volume", "piece", "other")
        base_unit: Canonical unit of the family
        factor: Multiplier from this unit to the base unit
    """

    code: str
    name: str
    unit_type: str
    base_unit: str
    factor: float = 1.0


def _unit(code: str, unit_type: str, base_unit: str, factor: float = 1.0) -> UnitDefinition:
    return UnitDefinition(code, UNIT_NAMES.get(code, code), unit_type, base_unit, factor)


# ============================================================================
# Standard Conversion Tables
# ============================================================================

UNIT_DEFINITIONS: Dict[str, UnitDefinition] = {
    unit.code: unit
    for unit in (
        # Weight, base grams
        _unit("g", UNIT_TYPE_WEIGHT, "g"),
        _unit("kg", UNIT_TYPE_WEIGHT, "g", 1000.0),
        _unit("etti", UNIT_TYPE_WEIGHT, "g", 100.0),
        # Volume, base milliliters
        _unit("ml", UNIT_TYPE_VOLUME, "ml"),
        _unit("l", UNIT_TYPE_VOLUME, "ml", 1000.0),
        _unit("dl", UNIT_TYPE_VOLUME, "ml", 100.0),
        _unit("cucchiaio", UNIT_TYPE_VOLUME, "ml", 15.0),
        _unit("cucchiaino", UNIT_TYPE_VOLUME, "ml", 5.0),
        _unit("tazza", UNIT_TYPE_VOLUME, "ml", 250.0),
        # Piece, base pieces
        _unit("pz", UNIT_TYPE_PIECE, "pz"),
        _unit("spicchio", UNIT_TYPE_PIECE, "pz"),
        _unit("foglia", UNIT_TYPE_PIECE, "pz"),
        # Dimensionless
        _unit("porzione", UNIT_TYPE_OTHER, "porzione"),
    )
}


# ============================================================================
# Unit Type Detection
# ============================================================================


def normalize_unit(unit: Optional[str]) -> str:
    """Lower-case and trim a unit label for comparison."""
    return (unit or "").strip().lower()


def get_unit_definition(
    unit: str, units: Optional[Mapping[str, UnitDefinition]] = None
) -> Optional[UnitDefinition]:
    """
    Look up the definition of a unit.

    Args:
        unit: Unit label (case/whitespace-insensitive)
        units: Optional replacement unit table

    Returns:
        UnitDefinition, or None if the unit is not known
    """
    table = UNIT_DEFINITIONS if units is None else units
    return table.get(normalize_unit(unit))


def get_unit_type(unit: str) -> str:
    """
    Determine the family of a unit.

    Args:
        unit: Unit label

    Returns:
        "weight", "volume", "piece", "other", or "unknown"
    """
    definition = get_unit_definition(unit)
    return definition.unit_type if definition else UNIT_TYPE_UNKNOWN


def get_units_by_type(unit_type: str) -> List[UnitDefinition]:
    """Return every known unit of a family."""
    return [u for u in UNIT_DEFINITIONS.values() if u.unit_type == unit_type]


def units_compatible(
    unit1: str, unit2: str, units: Optional[Mapping[str, UnitDefinition]] = None
) -> bool:
    """
    Check whether two units are interchangeable.

    Args:
        unit1: First unit
        unit2: Second unit
        units: Optional replacement unit table

    Returns:
        True if the labels are identical or both units share a base unit
    """
    if normalize_unit(unit1) == normalize_unit(unit2):
        return True

    def1 = get_unit_definition(unit1, units)
    def2 = get_unit_definition(unit2, units)
    if def1 is None or def2 is None:
        return False

    return def1.base_unit == def2.base_unit


def _is_weight_piece_pair(def1: UnitDefinition, def2: UnitDefinition) -> bool:
    return {def1.unit_type, def2.unit_type} == {UNIT_TYPE_WEIGHT, UNIT_TYPE_PIECE}


def can_convert(unit1: str, unit2: str) -> bool:
    """
    Check whether a conversion between two units is possible at all.

    Weight<->piece counts as possible; whether it succeeds depends on the
    ingredient supplying an average weight per piece.
    """
    if units_compatible(unit1, unit2):
        return True

    def1 = get_unit_definition(unit1)
    def2 = get_unit_definition(unit2)
    if def1 is None or def2 is None:
        return False

    return _is_weight_piece_pair(def1, def2)


def get_compatible_units(primary_unit: str) -> List[UnitDefinition]:
    """
    List the units an ingredient bought in ``primary_unit`` can be used in.

    Args:
        primary_unit: The ingredient's purchase unit

    Returns:
        Same-family units; a weight primary also lists piece units. An
        unknown primary yields a single dimensionless definition of itself.
    """
    primary = get_unit_definition(primary_unit)
    if primary is None:
        return [UnitDefinition(primary_unit, primary_unit, UNIT_TYPE_OTHER, primary_unit)]

    result = []
    for unit in UNIT_DEFINITIONS.values():
        if unit.unit_type == primary.unit_type:
            result.append(unit)
        elif primary.unit_type == UNIT_TYPE_WEIGHT and unit.unit_type == UNIT_TYPE_PIECE:
            result.append(unit)
    return result


# ============================================================================
# Quantity Conversion
# ============================================================================


def convert_quantity(
    quantity: float,
    from_unit: str,
    to_unit: str,
    average_weight_per_piece_g: Optional[float] = None,
    units: Optional[Mapping[str, UnitDefinition]] = None,
) -> float:
    """
    Convert a quantity between two units.

    Args:
        quantity: Quantity to convert (sign is not validated)
        from_unit: Source unit
        to_unit: Target unit
        average_weight_per_piece_g: Grams per piece, required for weight<->piece
        units: Optional replacement unit table

    Returns:
        Converted quantity

    Raises:
        UnitConversionError: If a unit is unknown, the families differ and
            cannot be bridged, or a weight<->piece conversion lacks the
            per-piece weight

    Examples:
        >>> convert_quantity(1.5, "kg", "g")
        1500.0
        >>> convert_quantity(2, "pz", "g", average_weight_per_piece_g=60)
        120.0
    """
    if normalize_unit(from_unit) == normalize_unit(to_unit):
        return quantity

    from_def = get_unit_definition(from_unit, units)
    to_def = get_unit_definition(to_unit, units)

    if from_def is None or to_def is None:
        unknown = from_unit if from_def is None else to_unit
        raise UnitConversionError(from_unit, to_unit, f"unknown unit '{unknown}'")

    if from_def.base_unit == to_def.base_unit:
        return quantity * from_def.factor / to_def.factor

    if _is_weight_piece_pair(from_def, to_def):
        if not average_weight_per_piece_g or average_weight_per_piece_g <= 0:
            raise UnitConversionError(
                from_unit, to_unit, "conversion requires an average weight per piece"
            )

        if from_def.unit_type == UNIT_TYPE_WEIGHT:
            grams = quantity * from_def.factor
            pieces = grams / average_weight_per_piece_g
            return pieces / to_def.factor

        grams = quantity * from_def.factor * average_weight_per_piece_g
        return grams / to_def.factor

    raise UnitConversionError(
        from_unit,
        to_unit,
        f"incompatible unit types ({from_def.unit_type} and {to_def.unit_type})",
    )


def normalize_to_base_unit(
    quantity: float,
    unit: str,
    ingredient_unit: str,
    average_weight_per_piece_g: Optional[float] = None,
) -> Tuple[float, str]:
    """
    Express a recipe-line quantity in the ingredient's own unit.

    Returns:
        Tuple of (converted_quantity, ingredient_unit)

    Raises:
        UnitConversionError: If the units cannot be converted
    """
    converted = convert_quantity(quantity, unit, ingredient_unit, average_weight_per_piece_g)
    return converted, ingredient_unit


# ============================================================================
# Usage-Unit Cost
# ============================================================================


def calculate_effective_cost_per_usage_unit(ingredient: IngredientData) -> float:
    """
    Cost of one usage unit (UUS) of an ingredient bought in its primary unit (UMP).

    Uses the stored effective cost when present, else cost / yield.
    When the usage unit cannot be converted, a warning is logged and the
    primary-unit cost is returned.

    Args:
        ingredient: Ingredient record

    Returns:
        Effective cost per usage unit

    Example:
        Parmigiano bought at 20.00/kg, used in g: 0.02 per g
    """
    effective_primary = ingredient.effective_cost_per_unit
    if effective_primary is None:
        yield_fraction = (ingredient.yield_percentage or 100.0) / 100
        effective_primary = ingredient.cost_per_unit / yield_fraction

    usage_unit = ingredient.usage_unit or ingredient.unit
    if normalize_unit(usage_unit) == normalize_unit(ingredient.unit):
        return effective_primary

    try:
        one_usage_in_primary = convert_quantity(
            1.0, usage_unit, ingredient.unit, ingredient.average_weight_per_piece_g
        )
    except UnitConversionError as e:
        log_operation(
            logger,
            operation="calculate_effective_cost_per_usage_unit",
            outcome="conversion_failed",
            level=logging.WARNING,
            ingredient_name=ingredient.name,
            error=str(e),
        )
        return effective_primary

    return effective_primary * one_usage_in_primary


# ============================================================================
# Display Helpers
# ============================================================================


def format_quantity(quantity: float, unit: str, show_unit_name: bool = False) -> str:
    """
    Format a quantity with its unit for display.

    Decimals depend on magnitude: 2 below 1, 1 below 10, none otherwise.

    Examples:
        >>> format_quantity(0.25, "kg")
        '0.25 kg'
        >>> format_quantity(12, "pz", show_unit_name=True)
        '12 Pezzi'
    """
    definition = get_unit_definition(unit)
    unit_display = definition.name if show_unit_name and definition else unit

    if quantity < 1:
        decimals = 2
    elif quantity < 10:
        decimals = 1
    else:
        decimals = 0

    return f"{quantity:.{decimals}f} {unit_display}"


def format_conversion(value: float, from_unit: str, to_unit: str, precision: int = 2) -> str:
    """
    Format a unit conversion for display.

    Returns:
        Formatted string (e.g., "1 kg = 1000.00 g"), or an error message
        if the conversion is not possible
    """
    try:
        converted = convert_quantity(value, from_unit, to_unit)
    except UnitConversionError as e:
        return f"Error: {e}"

    return f"{value:g} {from_unit} = {converted:.{precision}f} {to_unit}"
