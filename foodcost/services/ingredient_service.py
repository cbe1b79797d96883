"""
Ingredient Service - Business logic for ingredient management.

This service provides CRUD operations for ingredients with:
- Input validation
- Effective cost derivation (cost / yield) on every save
- Delete protection for ingredients referenced by recipes
- Conversion to IngredientData records for the costing core
"""

from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from foodcost.models import Ingredient, RecipeIngredient
from foodcost.services.database import session_scope
from foodcost.services.dto import IngredientData
from foodcost.services.exceptions import (
    DatabaseError,
    IngredientInUse,
    IngredientNotFound,
    ValidationError,
)
from foodcost.services.logging_utils import get_service_logger, log_operation
from foodcost.utils.validators import sanitize_string, validate_ingredient_data

logger = get_service_logger(__name__)

_INGREDIENT_FIELDS = (
    "name",
    "category",
    "unit",
    "usage_unit",
    "cost_per_unit",
    "yield_percentage",
    "average_weight_per_piece_g",
    "allergens",
    "supplier",
    "supplier_product_code",
    "current_stock",
    "min_stock_threshold",
    "par_level",
    "notes",
)


def _normalize_units(ingredient_data: Dict) -> Dict:
    data = dict(ingredient_data)
    for key in ("unit", "usage_unit"):
        if data.get(key):
            data[key] = data[key].strip().lower()
    if "name" in data and data["name"]:
        data["name"] = data["name"].strip()
    if "usage_unit" in data:
        data["usage_unit"] = sanitize_string(data["usage_unit"])
    return data


# ============================================================================
# CRUD Operations
# ============================================================================


def create_ingredient(ingredient_data: Dict) -> Ingredient:
    """
    Create a new ingredient.

    Args:
        ingredient_data: Dictionary with ingredient fields:
            - name: str (required)
            - unit: str (required)
            - cost_per_unit: float (required)
            - yield_percentage: float (optional, default 100)
            - usage_unit, average_weight_per_piece_g, allergens, category,
              supplier, stock fields, notes (optional)

    Returns:
        Created Ingredient with effective_cost_per_unit derived

    Raises:
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_ingredient_data(ingredient_data)
    if not is_valid:
        raise ValidationError(errors)

    data = _normalize_units(ingredient_data)

    try:
        with session_scope() as session:
            existing = session.query(Ingredient).filter(Ingredient.name == data["name"]).first()
            if existing:
                raise ValidationError([f"Ingredient '{data['name']}' already exists"])

            ingredient = Ingredient(
                **{key: data[key] for key in _INGREDIENT_FIELDS if key in data}
            )
            if ingredient.yield_percentage is None:
                ingredient.yield_percentage = 100.0
            ingredient.refresh_effective_cost()

            session.add(ingredient)
            session.flush()
            session.refresh(ingredient)

            log_operation(
                logger,
                operation="create_ingredient",
                outcome="success",
                ingredient_id=ingredient.id,
                ingredient_name=ingredient.name,
                effective_cost_per_unit=ingredient.effective_cost_per_unit,
            )
            return ingredient

    except ValidationError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create ingredient", e)


def get_ingredient(ingredient_id: int) -> Ingredient:
    """
    Retrieve an ingredient by ID.

    Raises:
        IngredientNotFound: If ingredient doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            ingredient = session.query(Ingredient).filter_by(id=ingredient_id).first()
            if not ingredient:
                raise IngredientNotFound(ingredient_id)
            return ingredient

    except IngredientNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve ingredient {ingredient_id}", e)


def get_ingredient_by_name(name: str) -> Optional[Ingredient]:
    """Retrieve an ingredient by exact name, or None."""
    try:
        with session_scope() as session:
            return session.query(Ingredient).filter(Ingredient.name == name).first()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve ingredient '{name}'", e)


def get_all_ingredients(
    category: Optional[str] = None, name_search: Optional[str] = None
) -> List[Ingredient]:
    """
    Retrieve all ingredients with optional filtering.

    Args:
        category: Filter by category (exact match)
        name_search: Filter by name (case-insensitive partial match)

    Returns:
        List of Ingredient instances ordered by name

    Raises:
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            query = session.query(Ingredient)

            if category:
                query = query.filter(Ingredient.category == category)

            if name_search:
                query = query.filter(Ingredient.name.ilike(f"%{name_search}%"))

            return query.order_by(Ingredient.name).all()

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve ingredients", e)


def update_ingredient(ingredient_id: int, ingredient_data: Dict) -> Ingredient:
    """
    Update an ingredient.

    The effective cost is re-derived whenever cost or yield may have changed.

    Args:
        ingredient_id: Ingredient ID
        ingredient_data: Dictionary with fields to update

    Returns:
        Updated Ingredient instance

    Raises:
        IngredientNotFound: If ingredient doesn't exist
        ValidationError: If the merged data fails validation
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            ingredient = session.query(Ingredient).filter_by(id=ingredient_id).first()
            if not ingredient:
                raise IngredientNotFound(ingredient_id)

            merged = {key: getattr(ingredient, key) for key in _INGREDIENT_FIELDS}
            merged.update(ingredient_data)
            is_valid, errors = validate_ingredient_data(merged)
            if not is_valid:
                raise ValidationError(errors)

            data = _normalize_units(ingredient_data)
            for key, value in data.items():
                if key in _INGREDIENT_FIELDS:
                    setattr(ingredient, key, value)

            ingredient.refresh_effective_cost()

            session.flush()
            session.refresh(ingredient)

            log_operation(
                logger,
                operation="update_ingredient",
                outcome="success",
                ingredient_id=ingredient.id,
                effective_cost_per_unit=ingredient.effective_cost_per_unit,
            )
            return ingredient

    except (IngredientNotFound, ValidationError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update ingredient {ingredient_id}", e)


def delete_ingredient(ingredient_id: int) -> bool:
    """
    Delete an ingredient.

    Returns:
        True if deleted successfully

    Raises:
        IngredientNotFound: If ingredient doesn't exist
        IngredientInUse: If any recipe references the ingredient
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            ingredient = session.query(Ingredient).filter_by(id=ingredient_id).first()
            if not ingredient:
                raise IngredientNotFound(ingredient_id)

            recipe_count = (
                session.query(func.count(func.distinct(RecipeIngredient.recipe_id)))
                .filter(RecipeIngredient.ingredient_id == ingredient_id)
                .scalar()
            )
            if recipe_count:
                raise IngredientInUse(ingredient_id, recipe_count)

            session.delete(ingredient)
            return True

    except (IngredientNotFound, IngredientInUse):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete ingredient {ingredient_id}", e)


# ============================================================================
# Costing Records
# ============================================================================


def get_ingredient_data(ingredient_id: int) -> IngredientData:
    """
    Fetch an ingredient as an IngredientData record.

    Raises:
        IngredientNotFound: If ingredient doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            ingredient = session.query(Ingredient).filter_by(id=ingredient_id).first()
            if not ingredient:
                raise IngredientNotFound(ingredient_id)
            return IngredientData.from_model(ingredient)

    except IngredientNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve ingredient {ingredient_id}", e)


def get_low_stock_ingredients() -> List[Ingredient]:
    """Ingredients whose current stock is below their reorder threshold."""
    try:
        with session_scope() as session:
            return (
                session.query(Ingredient)
                .filter(
                    Ingredient.current_stock.isnot(None),
                    Ingredient.min_stock_threshold.isnot(None),
                    Ingredient.current_stock < Ingredient.min_stock_threshold,
                )
                .order_by(Ingredient.name)
                .all()
            )
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve low-stock ingredients", e)
