"""
Unit tests for menu engineering.

Tests cover:
- Sales mix and popularity score
- Dish analysis and status bands
- Hurdle rate, mean margin and BCG classification
- Period KPIs
"""

import pytest

from foodcost.services.dto import (
    DishData,
    FoodCostSettings,
    IngredientData,
    RecipeData,
    RecipeIngredientLine,
    SalesDataPoint,
)
from foodcost.services.menu_engineering import (
    DishStatus,
    MenuCategory,
    MenuEngineeringConfig,
    analyze_dish,
    calculate_average_margin,
    calculate_dish_food_cost,
    calculate_hurdle_rate,
    categorize,
    classify_dish,
    classify_menu,
    get_dish_sales_data,
    get_dish_status,
    get_popularity_score,
    get_sales_mix_percentage,
    get_total_sales_for_period,
    summarize_period,
)

PERIOD = "2024-05"


def _dish(name, price, cost_per_portion=None, portions=1, dish_id=None):
    recipe = None
    if cost_per_portion is not None:
        recipe = RecipeData(
            name=f"Ricetta {name}",
            portions=portions,
            ingredients=(
                RecipeIngredientLine(
                    ingredient=IngredientData(name="Mix", unit="kg", cost_per_unit=cost_per_portion),
                    quantity=portions,
                ),
            ),
        )
    return DishData(id=dish_id, name=name, selling_price=price, recipe=recipe)


@pytest.fixture
def three_dishes():
    """Sales mix 50/30/20 and margins 10/2/8 (mean 6.67)."""
    dishes = [
        _dish("Carbonara", 12.0, cost_per_portion=2.0),
        _dish("Margherita", 6.0, cost_per_portion=4.0),
        _dish("Tiramisu", 9.0, cost_per_portion=1.0),
    ]
    sales = [
        SalesDataPoint("Carbonara", 50, PERIOD, 600.0),
        SalesDataPoint("margherita", 30, PERIOD, 180.0),
        SalesDataPoint("Tiramisu", 20, PERIOD, 180.0),
        SalesDataPoint("Carbonara", 999, "2024-04", 9999.0),
    ]
    return dishes, sales


class TestSalesMix:
    """Test sales lookups, mix and popularity."""

    def test_lookup_case_insensitive_within_period(self, three_dishes):
        """Dish names are matched ignoring case; other periods are ignored."""
        _, sales = three_dishes
        point = get_dish_sales_data("MARGHERITA", sales, PERIOD)
        assert point.units_sold == 30
        assert get_dish_sales_data("Carbonara", sales, "2024-04").units_sold == 999
        assert get_dish_sales_data("Lasagna", sales, PERIOD) is None

    def test_total_sales_for_period(self, three_dishes):
        """Only the selected period is summed."""
        _, sales = three_dishes
        assert get_total_sales_for_period(sales, PERIOD) == 100

    def test_sales_mix(self, three_dishes):
        """Units / total * 100."""
        _, sales = three_dishes
        assert get_sales_mix_percentage("Carbonara", sales, PERIOD) == pytest.approx(50.0)
        assert get_sales_mix_percentage("Tiramisu", sales, PERIOD) == pytest.approx(20.0)

    def test_sales_mix_without_data(self):
        """No sales or zero total gives 0."""
        assert get_sales_mix_percentage("Carbonara", [], PERIOD) == 0
        zero = [SalesDataPoint("Carbonara", 0, PERIOD, 0.0)]
        assert get_sales_mix_percentage("Carbonara", zero, PERIOD) == 0

    def test_popularity_score_clamped(self, three_dishes):
        """Mix * 10, clamped to [1, 100]."""
        _, sales = three_dishes
        assert get_popularity_score("Carbonara", sales, PERIOD) == 100
        assert get_popularity_score("Lasagna", sales, PERIOD) == 1
        small = [SalesDataPoint("A", 5, PERIOD), SalesDataPoint("B", 95, PERIOD)]
        assert get_popularity_score("A", small, PERIOD) == pytest.approx(50.0)


class TestDishAnalysis:
    """Test single-dish food-cost analysis."""

    def test_analysis_values(self, three_dishes):
        """Food cost, FC%, margin, status and popularity."""
        dishes, sales = three_dishes
        analysis = analyze_dish(dishes[1], sales, PERIOD)

        assert analysis.food_cost == pytest.approx(4.0)
        assert analysis.food_cost_percentage == pytest.approx(66.67, abs=0.01)
        assert analysis.margin == pytest.approx(2.0)
        assert analysis.status == "critico"
        assert analysis.popularity == 100

    def test_dish_without_recipe(self):
        """A dish with no recipe costs nothing."""
        dish = _dish("Acqua", 2.0)
        assert calculate_dish_food_cost(dish) == 0
        analysis = analyze_dish(dish, [], PERIOD)
        assert analysis.margin == pytest.approx(2.0)
        assert analysis.status == "ottimo"

    def test_dish_without_price(self):
        """FC% is 0 when there is no selling price."""
        analysis = analyze_dish(_dish("Omaggio", 0.0, cost_per_portion=1.0), [], PERIOD)
        assert analysis.food_cost_percentage == 0
        assert analysis.margin == pytest.approx(-1.0)

    def test_cost_divided_by_portions(self):
        """Food cost is per portion of the recipe batch."""
        dish = _dish("Lasagna", 14.0, cost_per_portion=3.0, portions=6)
        assert calculate_dish_food_cost(dish) == pytest.approx(3.0)

    @pytest.mark.parametrize(
        "pct,status", [(20.0, "ottimo"), (30.0, "ottimo"), (31.0, "buono"), (35.0, "buono"),
                       (35.5, "critico")]
    )
    def test_status_bands(self, pct, status):
        """Above critical -> critico, above 30 -> buono, else ottimo."""
        assert get_dish_status(pct, 35.0).value == status

    def test_custom_critical_threshold(self):
        """The critical threshold comes from the settings."""
        dish = _dish("Carbonara", 10.0, cost_per_portion=3.2)
        settings = FoodCostSettings(critical_threshold=30.0)
        assert analyze_dish(dish, [], PERIOD, settings).status == DishStatus.CRITICO.value

    def test_settings_reject_negative_thresholds(self):
        """Thresholds must be non-negative."""
        with pytest.raises(ValueError):
            FoodCostSettings(critical_threshold=-1)


class TestClassification:
    """Test hurdle rate, mean margin and the four buckets."""

    def test_hurdle_rate(self):
        """(100 / n) * 0.70."""
        assert calculate_hurdle_rate(3) == pytest.approx(23.333, abs=0.001)
        assert calculate_hurdle_rate(10) == pytest.approx(7.0)
        assert calculate_hurdle_rate(0) == 0

    def test_hurdle_rate_multiplier_injectable(self):
        """The multiplier is configurable."""
        config = MenuEngineeringConfig(hurdle_rate_multiplier=1.0)
        assert calculate_hurdle_rate(4, config) == pytest.approx(25.0)

    def test_average_margin(self, three_dishes):
        """Mean margin over every dish."""
        dishes, _ = three_dishes
        assert calculate_average_margin(dishes) == pytest.approx(20 / 3)
        assert calculate_average_margin([]) == 0

    def test_truth_table(self):
        """Popularity x profitability."""
        assert categorize(True, True) is MenuCategory.STAR
        assert categorize(True, False) is MenuCategory.PLOWHORSE
        assert categorize(False, True) is MenuCategory.PUZZLE
        assert categorize(False, False) is MenuCategory.DOG

    def test_three_dish_example(self, three_dishes):
        """50%/margin 10 -> star, 30%/margin 2 -> plowhorse, 20%/margin 8 -> puzzle."""
        dishes, sales = three_dishes
        assert classify_dish(dishes[0], dishes, sales, PERIOD) == MenuCategory.STAR
        assert classify_dish(dishes[1], dishes, sales, PERIOD) == MenuCategory.PLOWHORSE
        assert classify_dish(dishes[2], dishes, sales, PERIOD) == MenuCategory.PUZZLE

    def test_classify_menu_matches_classify_dish(self, three_dishes):
        """The whole-menu pass agrees with per-dish classification."""
        dishes, sales = three_dishes
        result = classify_menu(dishes, sales, PERIOD)
        assert result == {
            "Carbonara": MenuCategory.STAR,
            "Margherita": MenuCategory.PLOWHORSE,
            "Tiramisu": MenuCategory.PUZZLE,
        }

    def test_dog(self, three_dishes):
        """An unsold, low-margin dish is a dog."""
        dishes, sales = three_dishes
        dishes = dishes + [_dish("Minestrone", 5.0, cost_per_portion=3.0)]
        assert classify_dish(dishes[3], dishes, sales, PERIOD) == MenuCategory.DOG

    def test_recomputed_for_current_set(self, three_dishes):
        """Adding a dish moves both the mean margin and the hurdle rate."""
        dishes, sales = three_dishes
        assert classify_dish(dishes[2], dishes, sales, PERIOD) == MenuCategory.PUZZLE
        extended = dishes + [_dish("Aragosta", 60.0, cost_per_portion=20.0)]
        assert classify_dish(dishes[2], extended, sales, PERIOD) == MenuCategory.PLOWHORSE


class TestPeriodSummary:
    """Test period KPIs."""

    def test_summary(self, three_dishes):
        """Revenue, COGS, margin, critical count and target share."""
        dishes, sales = three_dishes
        summary = summarize_period(dishes, sales, PERIOD)

        # FC%: 16.67, 66.67, 11.11
        assert summary.average_food_cost_percentage == pytest.approx(
            (2 / 12 * 100 + 4 / 6 * 100 + 1 / 9 * 100) / 3
        )
        assert summary.total_revenue == pytest.approx(960.0)
        # 2*50 + 4*30 + 1*20
        assert summary.total_cost_of_goods_sold == pytest.approx(240.0)
        assert summary.total_margin == pytest.approx(720.0)
        assert summary.critical_dishes == 1
        assert summary.target_reached_percentage == pytest.approx(200 / 3)

    def test_unknown_dish_sales_ignored_in_cogs(self):
        """Sales of dishes not on the menu add revenue but no cost."""
        dishes = [_dish("Carbonara", 12.0, cost_per_portion=2.0)]
        sales = [
            SalesDataPoint("Carbonara", 10, PERIOD, 120.0),
            SalesDataPoint("Coperto", 40, PERIOD, 80.0),
        ]
        summary = summarize_period(dishes, sales, PERIOD)
        assert summary.total_revenue == pytest.approx(200.0)
        assert summary.total_cost_of_goods_sold == pytest.approx(20.0)

    def test_empty(self):
        """No dishes and no sales give zeros."""
        summary = summarize_period([], [], PERIOD)
        assert summary.average_food_cost_percentage == 0
        assert summary.total_margin == 0
        assert summary.target_reached_percentage == 0
