"""
Menu engineering: food-cost analysis and BCG-style dish classification.

Each dish is placed in one of four buckets from two yes/no questions:

- High popularity: the dish's sales mix exceeds the hurdle rate,
  (100 / number of dishes) * hurdle_rate_multiplier.
- High profitability: the dish's margin (price - cost per portion) exceeds
  the mean margin of the whole dish set.

    popular + profitable     -> star
    popular only             -> plowhorse
    profitable only          -> puzzle
    neither                  -> dog

Every function is a pure function of the dish set and sales data passed in;
aggregates (total sales, mean margin) are recomputed on every call.

Transaction boundary: Pure computation (no database access).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from foodcost.services.cost_calculator import calculate_cost_per_portion
from foodcost.services.dto import (
    DishAnalysis,
    DishData,
    FoodCostSettings,
    PeriodSummary,
    SalesDataPoint,
)
from foodcost.services.logging_utils import get_service_logger, log_operation
from foodcost.utils.constants import (
    GOOD_STATUS_THRESHOLD_PCT,
    HURDLE_RATE_MULTIPLIER,
    MENU_CATEGORY_DOG,
    MENU_CATEGORY_PLOWHORSE,
    MENU_CATEGORY_PUZZLE,
    MENU_CATEGORY_STAR,
    POPULARITY_MAX,
    POPULARITY_MIN,
    POPULARITY_SCALE,
)

logger = get_service_logger(__name__)


class MenuCategory(str, Enum):
    """
    Menu engineering bucket of a dish.

    Values:
        STAR: Popular and profitable, keep and promote
        PLOWHORSE: Popular but below-average margin, work on cost
        PUZZLE: Profitable but rarely ordered, work on visibility
        DOG: Neither, candidate for removal
    """

    STAR = MENU_CATEGORY_STAR
    PLOWHORSE = MENU_CATEGORY_PLOWHORSE
    PUZZLE = MENU_CATEGORY_PUZZLE
    DOG = MENU_CATEGORY_DOG


class DishStatus(str, Enum):
    """Food-cost status of a dish against the configured thresholds."""

    OTTIMO = "ottimo"
    BUONO = "buono"
    CRITICO = "critico"


@dataclass(frozen=True)
class MenuEngineeringConfig:
    """Tunable classification parameters."""

    hurdle_rate_multiplier: float = HURDLE_RATE_MULTIPLIER


# ============================================================================
# Sales Mix and Popularity
# ============================================================================


def get_dish_sales_data(
    dish_name: str, sales: Sequence[SalesDataPoint], period: str
) -> Optional[SalesDataPoint]:
    """Find a dish's sales entry for the period (dish name matched case-insensitively)."""
    wanted = dish_name.lower()
    for point in sales:
        if point.dish_name.lower() == wanted and point.period == period:
            return point
    return None


def get_total_sales_for_period(sales: Sequence[SalesDataPoint], period: str) -> int:
    """Units sold by all dishes in the period."""
    return sum(point.units_sold for point in sales if point.period == period)


def get_sales_mix_percentage(
    dish_name: str, sales: Sequence[SalesDataPoint], period: str
) -> float:
    """
    Share of the period's units sold that belong to this dish.

    Returns:
        units / total * 100; 0 when the dish has no sales or nothing sold
    """
    dish_sales = get_dish_sales_data(dish_name, sales, period)
    total = get_total_sales_for_period(sales, period)
    if dish_sales is None or total == 0:
        return 0.0
    return (dish_sales.units_sold / total) * 100


def get_popularity_score(
    dish_name: str, sales: Sequence[SalesDataPoint], period: str
) -> float:
    """Sales mix scaled by 10 and clamped to [1, 100] for display."""
    sales_mix = get_sales_mix_percentage(dish_name, sales, period)
    return min(POPULARITY_MAX, max(POPULARITY_MIN, sales_mix * POPULARITY_SCALE))


# ============================================================================
# Dish Analysis
# ============================================================================


def calculate_dish_food_cost(dish: DishData) -> float:
    """Cost per portion of the dish's recipe; 0 without a recipe or recipe lines."""
    recipe = dish.recipe
    if recipe is None or not recipe.ingredients:
        return 0.0
    return calculate_cost_per_portion(recipe.ingredients, recipe.portions)


def get_dish_status(food_cost_percentage: float, critical_threshold: float) -> DishStatus:
    """Status band for a food-cost percentage."""
    if food_cost_percentage > critical_threshold:
        return DishStatus.CRITICO
    if food_cost_percentage > GOOD_STATUS_THRESHOLD_PCT:
        return DishStatus.BUONO
    return DishStatus.OTTIMO


def analyze_dish(
    dish: DishData,
    sales: Sequence[SalesDataPoint],
    period: str,
    settings: Optional[FoodCostSettings] = None,
) -> DishAnalysis:
    """
    Food cost, FC%, margin, status and popularity of one dish.

    Args:
        dish: Dish with its recipe
        sales: Sales data (any periods)
        period: Period label to analyse
        settings: Food-cost thresholds (defaults: critical 35%, target 30%)

    Returns:
        DishAnalysis; FC% is 0 when the dish has no positive selling price
    """
    settings = settings or FoodCostSettings()

    food_cost = calculate_dish_food_cost(dish)
    price = dish.selling_price
    food_cost_percentage = (food_cost / price) * 100 if price > 0 else 0.0

    return DishAnalysis(
        food_cost=food_cost,
        food_cost_percentage=food_cost_percentage,
        margin=price - food_cost,
        status=get_dish_status(food_cost_percentage, settings.critical_threshold).value,
        popularity=get_popularity_score(dish.name, sales, period),
    )


# ============================================================================
# Classification
# ============================================================================


def calculate_hurdle_rate(
    dish_count: int, config: Optional[MenuEngineeringConfig] = None
) -> float:
    """
    Sales-mix threshold for "high popularity".

    Example:
        3 dishes -> (100 / 3) * 0.70 = 23.33
    """
    config = config or MenuEngineeringConfig()
    if dish_count <= 0:
        return 0.0
    return (100 / dish_count) * config.hurdle_rate_multiplier


def calculate_average_margin(dishes: Sequence[DishData]) -> float:
    """Mean of price - cost per portion over every dish; 0 for an empty set."""
    if not dishes:
        return 0.0
    return sum(dish.selling_price - calculate_dish_food_cost(dish) for dish in dishes) / len(
        dishes
    )


def categorize(high_popularity: bool, high_profitability: bool) -> MenuCategory:
    """Map the two menu engineering questions onto a category."""
    if high_popularity and high_profitability:
        return MenuCategory.STAR
    if high_popularity:
        return MenuCategory.PLOWHORSE
    if high_profitability:
        return MenuCategory.PUZZLE
    return MenuCategory.DOG


def classify_dish(
    dish: DishData,
    dishes: Sequence[DishData],
    sales: Sequence[SalesDataPoint],
    period: str,
    config: Optional[MenuEngineeringConfig] = None,
) -> MenuCategory:
    """
    Classify one dish against the full dish set.

    Args:
        dish: Dish to classify
        dishes: Every dish on the menu (used for the hurdle rate and mean margin)
        sales: Sales data
        period: Period label
        config: Classification parameters

    Returns:
        MenuCategory of the dish
    """
    sales_mix = get_sales_mix_percentage(dish.name, sales, period)
    hurdle_rate = calculate_hurdle_rate(len(dishes), config)
    average_margin = calculate_average_margin(dishes)
    margin = dish.selling_price - calculate_dish_food_cost(dish)

    return categorize(sales_mix > hurdle_rate, margin > average_margin)


def classify_menu(
    dishes: Sequence[DishData],
    sales: Sequence[SalesDataPoint],
    period: str,
    config: Optional[MenuEngineeringConfig] = None,
) -> Dict[str, MenuCategory]:
    """
    Classify every dish in one pass.

    Returns:
        Dict mapping dish name to MenuCategory, in menu order
    """
    hurdle_rate = calculate_hurdle_rate(len(dishes), config)
    average_margin = calculate_average_margin(dishes)

    result = {}
    for dish in dishes:
        sales_mix = get_sales_mix_percentage(dish.name, sales, period)
        margin = dish.selling_price - calculate_dish_food_cost(dish)
        result[dish.name] = categorize(sales_mix > hurdle_rate, margin > average_margin)

    log_operation(
        logger,
        operation="classify_menu",
        outcome="success",
        level=logging.DEBUG,
        period=period,
        dish_count=len(dishes),
        hurdle_rate=round(hurdle_rate, 2),
        average_margin=round(average_margin, 2),
    )
    return result


# ============================================================================
# Period KPIs
# ============================================================================


def summarize_period(
    dishes: Sequence[DishData],
    sales: Sequence[SalesDataPoint],
    period: str,
    settings: Optional[FoodCostSettings] = None,
) -> PeriodSummary:
    """
    Food-cost KPIs of the menu for a period.

    Cost of goods sold charges each period sales entry at the matching dish's
    (case-insensitive name) food cost; entries for unknown dishes add nothing.

    Returns:
        PeriodSummary; every figure is 0 for an empty menu and no sales
    """
    settings = settings or FoodCostSettings()
    analyses: List[DishAnalysis] = [analyze_dish(d, sales, period, settings) for d in dishes]
    food_cost_by_name = {
        dish.name.lower(): analysis.food_cost for dish, analysis in zip(dishes, analyses)
    }

    period_sales = [point for point in sales if point.period == period]
    total_revenue = sum((point.revenue for point in period_sales), 0.0)
    cost_of_goods_sold = sum(
        (
            food_cost_by_name[point.dish_name.lower()] * point.units_sold
            for point in period_sales
            if point.dish_name.lower() in food_cost_by_name
        ),
        0.0,
    )

    if analyses:
        average_pct = sum(a.food_cost_percentage for a in analyses) / len(analyses)
        below_target = sum(1 for a in analyses if a.food_cost_percentage < settings.target_threshold)
        target_reached = (below_target / len(analyses)) * 100
    else:
        average_pct = 0.0
        target_reached = 0.0

    return PeriodSummary(
        average_food_cost_percentage=average_pct,
        total_revenue=total_revenue,
        total_cost_of_goods_sold=cost_of_goods_sold,
        total_margin=total_revenue - cost_of_goods_sold,
        critical_dishes=sum(
            1 for a in analyses if a.food_cost_percentage > settings.critical_threshold
        ),
        target_reached_percentage=target_reached,
    )
