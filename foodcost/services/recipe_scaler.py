"""
Recipe scaling for a different portion count.

Quantities scale linearly with the portion ratio; preparation time scales
with its square root, so doubling a batch takes about 1.41x as long.

Transaction boundary: Pure computation (no database access).
The target portion count is validated by the caller (see
recipe_service.scale_recipe).
"""

import math

from foodcost.services.dto import RecipeData, ScaledIngredient, ScaledRecipe
from foodcost.services.exceptions import ValidationError


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def calculate_scaling_factor(original_portions: int, target_portions: int) -> float:
    """
    Ratio of target to original portions.

    Raises:
        ValidationError: If the recipe has no positive portion count
    """
    if not original_portions or original_portions <= 0:
        raise ValidationError(["Recipe portions must be greater than zero to scale"])
    return target_portions / original_portions


def scale_preparation_time(preparation_time: int, scaling_factor: float) -> int:
    """
    Estimated preparation time after scaling, in minutes.

    Example:
        60 minutes at factor 2 -> round(60 * 1.414...) = 85
    """
    return round_half_up((preparation_time or 0) * math.sqrt(scaling_factor))


def scale_recipe(recipe: RecipeData, target_portions: int) -> ScaledRecipe:
    """
    Scale a recipe to a new portion count.

    The input recipe is never modified; ``ScaledRecipe.as_recipe()`` gives a
    RecipeData with the scaled values for costing.

    Args:
        recipe: Recipe to scale
        target_portions: Desired portion count (positive)

    Returns:
        ScaledRecipe with every line quantity multiplied by the scaling factor
    """
    factor = calculate_scaling_factor(recipe.portions, target_portions)

    scaled_ingredients = tuple(
        ScaledIngredient(
            line=line,
            original_quantity=line.quantity,
            scaled_quantity=line.quantity * factor,
        )
        for line in recipe.ingredients
    )

    return ScaledRecipe(
        recipe=recipe,
        scaled_portions=target_portions,
        scaled_preparation_time=scale_preparation_time(recipe.preparation_time, factor),
        scaling_factor=factor,
        scaled_ingredients=scaled_ingredients,
    )
