"""
Menu Service - Food-cost dashboard report.

Joins dishes (with their recipes) and period sales from the database and
hands them to the menu engineering module.
"""

from typing import Dict, Optional

from foodcost.services import dish_service, menu_engineering, sales_service
from foodcost.services.dto import FoodCostSettings
from foodcost.services.logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


def get_menu_engineering_report(
    period: str,
    settings: Optional[FoodCostSettings] = None,
    config: Optional[menu_engineering.MenuEngineeringConfig] = None,
) -> Dict:
    """
    Build the food-cost and menu engineering report for a period.

    Args:
        period: Sales period label
        settings: Food-cost thresholds
        config: Menu engineering parameters

    Returns:
        Dictionary:
        {
            'period': str,
            'summary': PeriodSummary,
            'dishes': [
                {
                    'dish': DishData,
                    'analysis': DishAnalysis,
                    'sales_mix': float,
                    'category': MenuCategory,
                },
                ...
            ]
        }

    Raises:
        DatabaseError: If database operation fails
    """
    settings = settings or FoodCostSettings()
    dishes = dish_service.get_dish_data_list()
    sales = sales_service.get_sales_data(period)

    categories = menu_engineering.classify_menu(dishes, sales, period, config)
    rows = [
        {
            "dish": dish,
            "analysis": menu_engineering.analyze_dish(dish, sales, period, settings),
            "sales_mix": menu_engineering.get_sales_mix_percentage(dish.name, sales, period),
            "category": categories[dish.name],
        }
        for dish in dishes
    ]
    summary = menu_engineering.summarize_period(dishes, sales, period, settings)

    log_operation(
        logger,
        operation="get_menu_engineering_report",
        outcome="success",
        period=period,
        dish_count=len(dishes),
        critical_dishes=summary.critical_dishes,
    )

    return {"period": period, "summary": summary, "dishes": rows}
