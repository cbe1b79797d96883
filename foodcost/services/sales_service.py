"""
Sales Service - Per-period sales aggregates for menu engineering.

One SalesRecord is kept per dish name and period; recording again for the
same pair replaces the figures.
"""

from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from foodcost.models import SalesRecord
from foodcost.services.database import session_scope
from foodcost.services.dto import SalesDataPoint
from foodcost.services.exceptions import DatabaseError, ValidationError
from foodcost.services.logging_utils import get_service_logger, log_operation
from foodcost.utils.validators import validate_sales_data

logger = get_service_logger(__name__)


def record_sales(sales_data: Dict) -> SalesRecord:
    """
    Store units sold and revenue of a dish for a period.

    Args:
        sales_data: Dictionary with:
            - dish_name: str
            - period: str
            - units_sold: int
            - revenue: float (optional, default 0)

    Returns:
        The created or updated SalesRecord

    Raises:
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_sales_data(sales_data)
    if not is_valid:
        raise ValidationError(errors)

    dish_name = sales_data["dish_name"].strip()
    period = sales_data["period"].strip()

    try:
        with session_scope() as session:
            record = (
                session.query(SalesRecord)
                .filter(
                    func.lower(SalesRecord.dish_name) == dish_name.lower(),
                    SalesRecord.period == period,
                )
                .first()
            )
            if record is None:
                record = SalesRecord(dish_name=dish_name, period=period)
                session.add(record)

            record.units_sold = int(sales_data["units_sold"])
            record.revenue = float(sales_data.get("revenue") or 0.0)

            session.flush()
            session.refresh(record)

            log_operation(
                logger,
                operation="record_sales",
                outcome="success",
                dish_name=dish_name,
                period=period,
                units_sold=record.units_sold,
            )
            return record

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to record sales", e)


def get_sales_records(period: Optional[str] = None) -> List[SalesRecord]:
    """Sales records, optionally for one period, ordered by period and dish name."""
    try:
        with session_scope() as session:
            query = session.query(SalesRecord)
            if period is not None:
                query = query.filter(SalesRecord.period == period)
            return query.order_by(SalesRecord.period, SalesRecord.dish_name).all()

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve sales records", e)


def get_sales_data(period: Optional[str] = None) -> List[SalesDataPoint]:
    """
    Fetch sales as SalesDataPoint records.

    Args:
        period: Only this period label; all periods when None
    """
    return [
        SalesDataPoint(
            dish_name=record.dish_name,
            units_sold=record.units_sold or 0,
            period=record.period,
            revenue=record.revenue or 0.0,
        )
        for record in get_sales_records(period)
    ]


def get_periods() -> List[str]:
    """Distinct period labels with recorded sales, sorted."""
    try:
        with session_scope() as session:
            rows = session.query(SalesRecord.period).distinct().order_by(SalesRecord.period).all()
            return [row[0] for row in rows]

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve sales periods", e)
