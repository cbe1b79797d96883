"""Pytest configuration and fixtures for FoodCost tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker

from foodcost.models.base import Base
import foodcost.services.database as db_module


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Points the service layer's session factory at it
    4. Drops all tables after the test completes
    """
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session_factory


@pytest.fixture(scope="function")
def sample_ingredients(test_db):
    """Provide a small pantry: flour (kg), milk (l), eggs (pz, 60 g each), trimmed onions."""
    from foodcost.services import ingredient_service

    return {
        "farina": ingredient_service.create_ingredient(
            {"name": "Farina 00", "unit": "kg", "cost_per_unit": 2.0, "allergens": "glutine"}
        ),
        "latte": ingredient_service.create_ingredient(
            {"name": "Latte", "unit": "l", "cost_per_unit": 1.5, "allergens": "lattosio"}
        ),
        "uova": ingredient_service.create_ingredient(
            {
                "name": "Uova",
                "unit": "pz",
                "cost_per_unit": 0.3,
                "average_weight_per_piece_g": 60.0,
                "allergens": "uova",
            }
        ),
        "cipolla": ingredient_service.create_ingredient(
            {"name": "Cipolla", "unit": "kg", "cost_per_unit": 1.6, "yield_percentage": 80.0}
        ),
    }
