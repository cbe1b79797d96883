"""
Dish Service - Business logic for menu dish management.

This service provides CRUD operations for dishes and loads them, with
their recipes, as DishData records for food-cost analysis.
"""

from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from foodcost.models import Dish, Recipe
from foodcost.services.database import session_scope
from foodcost.services.dto import DishData
from foodcost.services.exceptions import (
    DatabaseError,
    DishNotFound,
    RecipeNotFound,
    ValidationError,
)
from foodcost.utils.validators import validate_dish_data

_DISH_FIELDS = ("name", "category", "selling_price", "recipe_id")


def _check_recipe(session, recipe_id: Optional[int]) -> None:
    if recipe_id is not None and not session.query(Recipe).filter_by(id=recipe_id).first():
        raise RecipeNotFound(recipe_id)


def _check_name_free(session, name: str, exclude_id: Optional[int] = None) -> None:
    # Sales rows match dish names case-insensitively, so names must too
    query = session.query(Dish).filter(func.lower(Dish.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Dish.id != exclude_id)
    existing = query.first()
    if existing:
        raise ValidationError([f"Dish '{name}' already exists as '{existing.name}'"])


def create_dish(dish_data: Dict) -> Dish:
    """
    Create a new dish.

    Args:
        dish_data: Dictionary with name, selling_price and optional
            category and recipe_id

    Returns:
        Created Dish instance

    Raises:
        ValidationError: If data validation fails or the name is taken
        RecipeNotFound: If recipe_id doesn't exist
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_dish_data(dish_data)
    if not is_valid:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            name = dish_data["name"].strip()
            _check_name_free(session, name)

            _check_recipe(session, dish_data.get("recipe_id"))

            dish = Dish(**{key: dish_data[key] for key in _DISH_FIELDS if key in dish_data})
            dish.name = name
            session.add(dish)
            session.flush()
            session.refresh(dish)
            return dish

    except (ValidationError, RecipeNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create dish", e)


def get_dish(dish_id: int) -> Dish:
    """
    Retrieve a dish by ID.

    Raises:
        DishNotFound: If dish doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            dish = session.query(Dish).filter_by(id=dish_id).first()
            if not dish:
                raise DishNotFound(dish_id)
            return dish

    except DishNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve dish {dish_id}", e)


def get_all_dishes(category: Optional[str] = None) -> List[Dish]:
    """Retrieve all dishes, optionally filtered by category, ordered by name."""
    try:
        with session_scope() as session:
            query = session.query(Dish)
            if category:
                query = query.filter(Dish.category == category)
            return query.order_by(Dish.name).all()

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve dishes", e)


def update_dish(dish_id: int, dish_data: Dict) -> Dish:
    """
    Update a dish.

    Raises:
        DishNotFound: If dish doesn't exist
        ValidationError: If the merged data fails validation
        RecipeNotFound: If a new recipe_id doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            dish = session.query(Dish).filter_by(id=dish_id).first()
            if not dish:
                raise DishNotFound(dish_id)

            merged = {key: getattr(dish, key) for key in _DISH_FIELDS}
            merged.update(dish_data)
            is_valid, errors = validate_dish_data(merged)
            if not is_valid:
                raise ValidationError(errors)

            if "name" in dish_data:
                _check_name_free(session, dish_data["name"].strip(), exclude_id=dish_id)
            if "recipe_id" in dish_data:
                _check_recipe(session, dish_data["recipe_id"])

            for key, value in dish_data.items():
                if key in _DISH_FIELDS:
                    setattr(dish, key, value)
            dish.name = dish.name.strip()

            session.flush()
            session.refresh(dish)
            return dish

    except (DishNotFound, ValidationError, RecipeNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update dish {dish_id}", e)


def delete_dish(dish_id: int) -> bool:
    """
    Delete a dish. Its recipe is kept.

    Raises:
        DishNotFound: If dish doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            dish = session.query(Dish).filter_by(id=dish_id).first()
            if not dish:
                raise DishNotFound(dish_id)
            session.delete(dish)
            return True

    except DishNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete dish {dish_id}", e)


def get_dish_data_list(category: Optional[str] = None) -> List[DishData]:
    """
    Fetch every dish with its recipe as DishData records.

    Returns:
        DishData list ordered by name
    """
    try:
        with session_scope() as session:
            query = session.query(Dish)
            if category:
                query = query.filter(Dish.category == category)
            return [DishData.from_model(dish) for dish in query.order_by(Dish.name).all()]

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve dishes", e)
