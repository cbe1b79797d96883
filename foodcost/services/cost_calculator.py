"""
Recipe cost calculator.

Computes the cost of one full batch of a recipe from its ingredient lines
and derives the per-portion cost.

Per line:
1. Base cost per unit: the ingredient's effective cost if stored, else its raw cost.
2. Yield: a recipe-line yield override wins and replaces (never stacks with)
   the ingredient's own yield; otherwise the ingredient yield is applied only
   when no effective cost is stored.
3. Quantity: converted into the ingredient's unit when the line uses another
   unit. Incompatible units are logged and the raw quantity is charged.
4. Line cost = final cost per unit * quantity.

Semilavorato lines are charged at the sub-recipe's stored per-portion cost
times quantity, with no yield or unit adjustment.

Transaction boundary: Pure computation (no database access).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple

from foodcost.services.dto import IngredientData, RecipeData, RecipeIngredientLine
from foodcost.services.exceptions import UnitConversionError
from foodcost.services.logging_utils import get_service_logger, log_operation
from foodcost.services.unit_converter import convert_quantity, normalize_unit
from foodcost.utils.constants import (
    EFFECTIVE_COST_TOLERANCE,
    FOOD_COST_ATTENTION_MAX_PCT,
    FOOD_COST_OPTIMAL_MAX_PCT,
    PRODUCTION_COST_LOW_MAX,
    PRODUCTION_COST_MEDIUM_MAX,
)
from foodcost.utils.datetime_utils import as_utc

logger = get_service_logger(__name__)


# ============================================================================
# Line and Recipe Cost
# ============================================================================


def get_final_cost_per_unit(line: RecipeIngredientLine) -> float:
    """
    Cost of one ingredient unit for this line, after yield handling.

    Args:
        line: Recipe ingredient line

    Returns:
        Yield-adjusted cost per ingredient unit
    """
    ingredient = line.ingredient
    effective = ingredient.effective_cost_per_unit
    base_cost = effective if effective is not None else ingredient.cost_per_unit
    ingredient_yield = ingredient.yield_percentage

    override = line.recipe_yield_percentage
    if override is not None and override <= 0:
        log_operation(
            logger,
            operation="calculate_line_cost",
            outcome="invalid_yield_override_ignored",
            level=logging.WARNING,
            ingredient_name=ingredient.name,
            recipe_yield_percentage=override,
        )
        override = None

    if override is not None:
        cost_to_use = base_cost
        # A stored effective cost already has the ingredient yield baked in
        if effective and ingredient_yield and ingredient_yield != 100:
            cost_to_use = ingredient.cost_per_unit
        return cost_to_use / (override / 100)

    if not effective and ingredient_yield and ingredient_yield != 100:
        return base_cost / (ingredient_yield / 100)

    return base_cost


def get_charged_quantity(line: RecipeIngredientLine) -> float:
    """
    Quantity of the line expressed in the ingredient's own unit.

    Incompatible units are logged as a warning and the unconverted
    quantity is returned so the calculation can continue.
    """
    ingredient = line.ingredient
    if not line.unit or normalize_unit(line.unit) == normalize_unit(ingredient.unit):
        return line.quantity

    try:
        converted = convert_quantity(
            line.quantity,
            line.unit,
            ingredient.unit,
            average_weight_per_piece_g=ingredient.average_weight_per_piece_g,
        )
    except UnitConversionError as e:
        log_operation(
            logger,
            operation="calculate_line_cost",
            outcome="incompatible_units",
            level=logging.WARNING,
            ingredient_name=ingredient.name,
            line_unit=line.unit,
            ingredient_unit=ingredient.unit,
            error=str(e),
        )
        return line.quantity

    logger.debug(
        f"Converted {line.quantity} {line.unit} to {converted} {ingredient.unit} "
        f"for {ingredient.name}"
    )
    return converted


def calculate_line_cost(line: RecipeIngredientLine) -> float:
    """
    Cost contribution of a single recipe line.

    Args:
        line: Recipe ingredient line

    Returns:
        Line cost; 0 for zero quantity or zero-cost ingredients

    Examples:
        2.00/kg ingredient, 100% yield, 3 kg -> 6.00
        2.00/kg ingredient, line yield override 50%, 1 kg -> 4.00
    """
    quantity = line.quantity if line.is_semilavorato else get_charged_quantity(line)
    return get_line_cost_per_unit(line) * quantity


def get_line_cost_per_unit(line: RecipeIngredientLine) -> float:
    """
    Unit price a line is charged at.

    Semilavorato lines use the stored per-portion cost as-is; other lines
    go through get_final_cost_per_unit.
    """
    if not line.is_semilavorato:
        return get_final_cost_per_unit(line)

    ingredient = line.ingredient
    effective = ingredient.effective_cost_per_unit
    return effective if effective is not None else ingredient.cost_per_unit


def calculate_total_cost(
    lines: Iterable[RecipeIngredientLine], cached_total: Optional[float] = None
) -> float:
    """
    Total cost of one batch.

    Args:
        lines: Recipe ingredient lines
        cached_total: Cost previously stored for the recipe; returned as-is when set

    Returns:
        Sum of line costs (0 for no lines)
    """
    if cached_total is not None:
        logger.debug(f"Using cached total cost {cached_total:.2f}")
        return cached_total

    return sum((calculate_line_cost(line) for line in lines), 0.0)


def calculate_cost_per_portion(
    lines: Iterable[RecipeIngredientLine],
    portions: int,
    cached_per_portion: Optional[float] = None,
) -> float:
    """
    Cost of one portion.

    Args:
        lines: Recipe ingredient lines
        portions: Portions produced by one batch
        cached_per_portion: Stored per-portion cost; returned as-is when set

    Returns:
        total / portions, or 0 when portions <= 0
    """
    if cached_per_portion is not None:
        return cached_per_portion

    if not portions or portions <= 0:
        return 0.0

    return calculate_total_cost(lines) / portions


def calculate_recipe_costs(recipe: RecipeData, use_cached: bool = False) -> Tuple[float, float]:
    """
    Batch and per-portion cost of a recipe.

    Args:
        recipe: Recipe record
        use_cached: Prefer the recipe's stored cost columns when present

    Returns:
        Tuple of (total_cost, cost_per_portion)
    """
    if use_cached and recipe.calculated_total_cost is not None:
        total = recipe.calculated_total_cost
        if recipe.calculated_cost_per_portion is not None:
            return total, recipe.calculated_cost_per_portion
    else:
        total = calculate_total_cost(recipe.ingredients)

    per_portion = total / recipe.portions if recipe.portions > 0 else 0.0
    return total, per_portion


# ============================================================================
# Food Cost Indicator
# ============================================================================


@dataclass(frozen=True)
class FoodCostIndicator:
    """
    Traffic-light rating of a recipe's cost.

    Attributes:
        level: "optimal"/"attention"/"critical" with a price,
               "low"/"medium"/"high" without
        label: Display label
        food_cost_percentage: FC% when a selling price is known, else None
        tooltip: Explanation of the rating
    """

    level: str
    label: str
    food_cost_percentage: Optional[float]
    tooltip: str


def get_food_cost_indicator(
    cost_per_portion: float,
    selling_price: Optional[float] = None,
    optimal_max_pct: float = FOOD_COST_OPTIMAL_MAX_PCT,
    attention_max_pct: float = FOOD_COST_ATTENTION_MAX_PCT,
    low_cost_max: float = PRODUCTION_COST_LOW_MAX,
    medium_cost_max: float = PRODUCTION_COST_MEDIUM_MAX,
) -> FoodCostIndicator:
    """
    Rate a per-portion cost.

    With a positive selling price the rating uses FC% bands; otherwise
    (semilavorati, unpriced recipes) it uses absolute cost bands.
    """
    if selling_price and selling_price > 0:
        pct = (cost_per_portion / selling_price) * 100
        tooltip = (
            f"FC: {pct:.1f}% (Cost: EUR {cost_per_portion:.2f} / "
            f"Price: EUR {selling_price:.2f}). Critical above {attention_max_pct:g}%"
        )
        if pct <= optimal_max_pct:
            return FoodCostIndicator("optimal", "FC Optimal", pct, tooltip)
        if pct <= attention_max_pct:
            return FoodCostIndicator("attention", "FC Attention", pct, tooltip)
        return FoodCostIndicator("critical", "FC Critical", pct, tooltip)

    tooltip = (
        f"Production cost per portion: EUR {cost_per_portion:.2f}. "
        f"High above EUR {medium_cost_max:.2f}"
    )
    if cost_per_portion <= low_cost_max:
        return FoodCostIndicator("low", "Production Cost Low", None, tooltip)
    if cost_per_portion <= medium_cost_max:
        return FoodCostIndicator("medium", "Production Cost Medium", None, tooltip)
    return FoodCostIndicator("high", "Production Cost High", None, tooltip)


# ============================================================================
# Cost Freshness and Consistency
# ============================================================================


def are_costs_up_to_date(
    cost_last_calculated_at: Optional[datetime],
    ingredient_last_updated: Optional[datetime] = None,
) -> bool:
    """
    Check whether cached recipe costs are newer than the last ingredient change.

    Args:
        cost_last_calculated_at: When the recipe cost was cached
        ingredient_last_updated: Most recent ingredient update, if known

    Returns:
        False when no cost was ever cached
    """
    if cost_last_calculated_at is None:
        return False

    if ingredient_last_updated is None:
        ingredient_last_updated = datetime.fromtimestamp(0, tz=timezone.utc)

    return as_utc(cost_last_calculated_at) >= as_utc(ingredient_last_updated)


@dataclass(frozen=True)
class CostValidation:
    """Comparison of stored and expected effective cost."""

    is_valid: bool
    expected_effective_cost: float
    actual_effective_cost: float


def validate_ingredient_cost(
    ingredient: IngredientData, tolerance: float = EFFECTIVE_COST_TOLERANCE
) -> CostValidation:
    """
    Check that an ingredient's stored effective cost matches cost / yield.

    A mismatch is logged as a warning; it never raises.
    """
    yield_pct = ingredient.yield_percentage or 100.0
    expected = ingredient.cost_per_unit / (yield_pct / 100)
    actual = (
        ingredient.effective_cost_per_unit
        if ingredient.effective_cost_per_unit is not None
        else ingredient.cost_per_unit
    )

    is_valid = abs(expected - actual) < tolerance
    if not is_valid:
        log_operation(
            logger,
            operation="validate_ingredient_cost",
            outcome="inconsistent_effective_cost",
            level=logging.WARNING,
            ingredient_name=ingredient.name,
            expected=round(expected, 2),
            actual=round(actual, 2),
        )

    return CostValidation(is_valid, expected, actual)
