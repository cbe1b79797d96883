"""Tests for the menu engineering report built from stored data."""

import logging

import pytest

from foodcost.services import dish_service, menu_service, recipe_service, sales_service
from foodcost.services.dto import FoodCostSettings
from foodcost.services.menu_engineering import MenuCategory

PERIOD = "2024-05"


@pytest.fixture
def menu(test_db, sample_ingredients):
    """Three dishes with one-portion recipes costing 2.00, 4.00 and 1.00."""
    farina = sample_ingredients["farina"]
    for name, price, flour_kg, units in (
        ("Carbonara", 12.0, 1.0, 50),
        ("Margherita", 6.0, 2.0, 30),
        ("Tiramisu", 9.0, 0.5, 20),
    ):
        recipe = recipe_service.create_recipe(
            {"name": name, "portions": 1},
            [{"ingredient_id": farina.id, "quantity": flour_kg}],
        )
        dish_service.create_dish({"name": name, "selling_price": price, "recipe_id": recipe.id})
        sales_service.record_sales(
            {"dish_name": name, "period": PERIOD, "units_sold": units, "revenue": price * units}
        )


class TestMenuEngineeringReport:
    """Tests for get_menu_engineering_report."""

    def test_categories(self, menu):
        """Star, plowhorse and puzzle for the three dishes."""
        report = menu_service.get_menu_engineering_report(PERIOD)

        categories = {row["dish"].name: row["category"] for row in report["dishes"]}
        assert categories == {
            "Carbonara": MenuCategory.STAR,
            "Margherita": MenuCategory.PLOWHORSE,
            "Tiramisu": MenuCategory.PUZZLE,
        }

    def test_rows(self, menu):
        """Each row carries the dish analysis and sales mix."""
        report = menu_service.get_menu_engineering_report(PERIOD)
        margherita = next(row for row in report["dishes"] if row["dish"].name == "Margherita")

        assert margherita["sales_mix"] == pytest.approx(30.0)
        assert margherita["analysis"].food_cost == pytest.approx(4.0)
        assert margherita["analysis"].status == "critico"

    def test_summary(self, menu):
        """Revenue, cost of goods and critical dishes for the period."""
        summary = menu_service.get_menu_engineering_report(PERIOD)["summary"]

        assert summary.total_revenue == pytest.approx(960.0)
        assert summary.total_cost_of_goods_sold == pytest.approx(240.0)
        assert summary.critical_dishes == 1

    def test_custom_settings(self, menu):
        """A stricter critical threshold flags more dishes."""
        settings = FoodCostSettings(critical_threshold=15.0, target_threshold=15.0)
        summary = menu_service.get_menu_engineering_report(PERIOD, settings)["summary"]
        assert summary.critical_dishes == 2

    def test_period_without_sales(self, menu, caplog):
        """An empty period still reports every dish, all unpopular."""
        with caplog.at_level(logging.INFO, logger="foodcost.services"):
            report = menu_service.get_menu_engineering_report("2023-01")

        assert len(report["dishes"]) == 3
        assert all(row["sales_mix"] == 0 for row in report["dishes"])
        assert report["summary"].total_revenue == 0
        assert "get_menu_engineering_report: success" in caplog.text
