"""Unit tests for recipe scaling."""

import math

import pytest

from foodcost.services.cost_calculator import calculate_recipe_costs
from foodcost.services.dto import IngredientData, RecipeData, RecipeIngredientLine
from foodcost.services.exceptions import ValidationError
from foodcost.services.recipe_scaler import (
    calculate_scaling_factor,
    round_half_up,
    scale_preparation_time,
    scale_recipe,
)


@pytest.fixture
def pasta_fresca():
    return RecipeData(
        id=1,
        name="Pasta fresca",
        portions=4,
        preparation_time=30,
        ingredients=(
            RecipeIngredientLine(
                ingredient=IngredientData(name="Farina 00", unit="kg", cost_per_unit=2.0),
                quantity=0.4,
            ),
            RecipeIngredientLine(
                ingredient=IngredientData(name="Uova", unit="pz", cost_per_unit=0.3),
                quantity=4,
            ),
        ),
        calculated_total_cost=2.0,
        calculated_cost_per_portion=0.5,
    )


class TestScaleRecipe:
    """Test linear quantity scaling and the square-root time model."""

    def test_double_portions(self, pasta_fresca):
        """4 -> 8 portions doubles every quantity and multiplies time by sqrt(2)."""
        scaled = scale_recipe(pasta_fresca, 8)

        assert scaled.scaling_factor == 2.0
        assert scaled.scaled_portions == 8
        assert [s.scaled_quantity for s in scaled.scaled_ingredients] == [0.8, 8]
        assert [s.original_quantity for s in scaled.scaled_ingredients] == [0.4, 4]
        assert scaled.scaled_preparation_time == round_half_up(30 * math.sqrt(2))
        assert scaled.scaled_preparation_time == 42

    def test_halve_portions(self, pasta_fresca):
        """Scaling down shortens the preparation time sub-linearly."""
        scaled = scale_recipe(pasta_fresca, 2)
        assert [s.scaled_quantity for s in scaled.scaled_ingredients] == [0.2, 2]
        assert scaled.scaled_preparation_time == 21

    def test_same_portions(self, pasta_fresca):
        """Factor 1 keeps everything unchanged."""
        scaled = scale_recipe(pasta_fresca, 4)
        assert scaled.scaling_factor == 1.0
        assert scaled.scaled_preparation_time == 30

    def test_original_untouched(self, pasta_fresca):
        """The source recipe keeps its values."""
        scale_recipe(pasta_fresca, 12)
        assert pasta_fresca.portions == 4
        assert pasta_fresca.ingredients[0].quantity == 0.4

    def test_as_recipe_for_costing(self, pasta_fresca):
        """The scaled view costs twice as much per batch, same per portion."""
        as_recipe = scale_recipe(pasta_fresca, 8).as_recipe()

        assert as_recipe.portions == 8
        assert as_recipe.calculated_total_cost is None
        total, per_portion = calculate_recipe_costs(as_recipe)
        assert total == pytest.approx(4.0)
        assert per_portion == pytest.approx(0.5)

    def test_zero_original_portions_rejected(self):
        """A recipe without portions cannot be scaled."""
        with pytest.raises(ValidationError):
            scale_recipe(RecipeData(name="Vuota", portions=0), 4)


class TestScalingHelpers:
    """Test the individual helpers."""

    def test_scaling_factor(self):
        """Factor is target / original."""
        assert calculate_scaling_factor(4, 10) == 2.5

    def test_round_half_up(self):
        """Halves round up, matching the displayed prep times."""
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2

    def test_scale_preparation_time(self):
        """60 minutes at factor 2 -> 85 minutes."""
        assert scale_preparation_time(60, 2.0) == 85
        assert scale_preparation_time(0, 4.0) == 0
