"""
Sales record model.

One row per dish and reporting period, aggregated from the point of sale.
Used only as input to menu engineering.
"""

from sqlalchemy import Column, String, Float, Integer, Index, CheckConstraint

from .base import BaseModel


class SalesRecord(BaseModel):
    """
    Units sold and revenue for a dish within a period.

    Attributes:
        dish_name: Dish name as exported by the point of sale
        units_sold: Units sold in the period (>= 0)
        period: Period label (e.g., "2024-05", "week-21")
        revenue: Revenue for the period (>= 0)
    """

    __tablename__ = "sales_records"

    dish_name = Column(String(200), nullable=False, index=True)
    units_sold = Column(Integer, nullable=False, default=0)
    period = Column(String(50), nullable=False, index=True)
    revenue = Column(Float, nullable=False, default=0.0)

    __table_args__ = (
        Index("idx_sales_period_dish", "period", "dish_name"),
        CheckConstraint("units_sold >= 0", name="ck_sales_units_non_negative"),
        CheckConstraint("revenue >= 0", name="ck_sales_revenue_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"SalesRecord(dish_name='{self.dish_name}', period='{self.period}', "
            f"units_sold={self.units_sold})"
        )
