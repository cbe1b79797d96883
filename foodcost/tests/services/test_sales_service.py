"""Tests for Sales Service."""

import pytest

from foodcost.services import sales_service
from foodcost.services.exceptions import ValidationError


class TestRecordSales:
    """Tests for record_sales."""

    def test_record(self, test_db):
        """A new dish/period pair creates a record."""
        record = sales_service.record_sales(
            {"dish_name": "Carbonara", "period": "2024-05", "units_sold": 50, "revenue": 600}
        )
        assert record.id is not None
        assert record.units_sold == 50
        assert record.revenue == 600.0

    def test_same_dish_and_period_replaced(self, test_db):
        """Recording again for the same pair, in any case, overwrites the figures."""
        first = sales_service.record_sales(
            {"dish_name": "Carbonara", "period": "2024-05", "units_sold": 50}
        )
        second = sales_service.record_sales(
            {"dish_name": "CARBONARA", "period": "2024-05", "units_sold": 55, "revenue": 660}
        )
        assert second.id == first.id
        assert second.units_sold == 55
        assert len(sales_service.get_sales_records("2024-05")) == 1

    def test_revenue_defaults_to_zero(self, test_db):
        """Revenue is optional."""
        record = sales_service.record_sales(
            {"dish_name": "Tiramisu", "period": "2024-05", "units_sold": 3}
        )
        assert record.revenue == 0.0

    def test_invalid(self, test_db):
        """Negative units are rejected."""
        with pytest.raises(ValidationError):
            sales_service.record_sales(
                {"dish_name": "Tiramisu", "period": "2024-05", "units_sold": -3}
            )


class TestSalesQueries:
    """Tests for sales listings."""

    @pytest.fixture
    def two_periods(self, test_db):
        for dish_name, period, units in (
            ("Tiramisu", "2024-05", 20),
            ("Carbonara", "2024-05", 50),
            ("Carbonara", "2024-04", 40),
        ):
            sales_service.record_sales(
                {"dish_name": dish_name, "period": period, "units_sold": units}
            )

    def test_sales_data_for_period(self, two_periods):
        """Only the requested period is returned, ordered by dish name."""
        data = sales_service.get_sales_data("2024-05")
        assert [(p.dish_name, p.units_sold) for p in data] == [("Carbonara", 50), ("Tiramisu", 20)]

    def test_all_sales_data(self, two_periods):
        """Without a period every record is returned."""
        assert len(sales_service.get_sales_data()) == 3

    def test_periods(self, two_periods):
        """Distinct periods, sorted."""
        assert sales_service.get_periods() == ["2024-04", "2024-05"]
