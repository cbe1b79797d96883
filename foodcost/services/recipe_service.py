"""
Recipe Service - Business logic for recipe management.

This service provides CRUD operations for recipes with:
- Input validation
- Recipe ingredient line and instruction management
- Cost calculation with cached cost columns
- Semilavorato lookup and nested expansion
- Scaling to a different portion count
"""

from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from foodcost.models import Ingredient, Recipe, RecipeIngredient, RecipeInstruction
from foodcost.services import cost_calculator, recipe_expansion, recipe_scaler
from foodcost.services.database import session_scope
from foodcost.services.dto import ExpansionResult, RecipeData, ScaledRecipe
from foodcost.services.exceptions import (
    DatabaseError,
    IngredientNotFound,
    RecipeNotFound,
    ValidationError,
)
from foodcost.services.logging_utils import get_service_logger, log_operation
from foodcost.services.unit_converter import can_convert, normalize_unit, units_compatible
from foodcost.utils.constants import DEFAULT_MAX_EXPANSION_DEPTH
from foodcost.utils.datetime_utils import utc_now
from foodcost.utils.validators import (
    validate_positive_number,
    validate_recipe_data,
    validate_recipe_ingredient_data,
)

logger = get_service_logger(__name__)

_RECIPE_FIELDS = (
    "name",
    "category",
    "preparation_time",
    "portions",
    "difficulty",
    "description",
    "allergens",
    "calories",
    "protein",
    "carbs",
    "fat",
    "is_semilavorato",
    "notes_chef",
    "selling_price",
)


def _validate_lines(ingredients_data: List[Dict]) -> None:
    errors = []
    for position, line_data in enumerate(ingredients_data, start=1):
        _, line_errors = validate_recipe_ingredient_data(line_data, position)
        errors.extend(line_errors)
    if errors:
        raise ValidationError(errors)


def _line_unit_error(
    line_unit: Optional[str], ingredient: Ingredient, position: int
) -> Optional[str]:
    """Error message when a line unit cannot be turned into the ingredient's unit."""
    if not line_unit or normalize_unit(line_unit) == normalize_unit(ingredient.unit):
        return None

    prefix = f"Ingredient line {position} unit"
    target = f"'{ingredient.unit}' ({ingredient.name})"
    if not can_convert(line_unit, ingredient.unit):
        return f"{prefix}: '{line_unit}' cannot be converted to {target}"

    # Weight <-> piece bridges through the ingredient's average piece weight
    needs_piece_weight = not units_compatible(line_unit, ingredient.unit)
    if needs_piece_weight and not ingredient.average_weight_per_piece_g:
        return f"{prefix}: '{line_unit}' needs an average weight per piece to convert to {target}"
    return None


def _add_lines(session, recipe: Recipe, ingredients_data: List[Dict], start: int = 0) -> None:
    errors = []
    for offset, line_data in enumerate(ingredients_data):
        ingredient = session.query(Ingredient).filter_by(id=line_data["ingredient_id"]).first()
        if not ingredient:
            raise IngredientNotFound(line_data["ingredient_id"])

        unit = (line_data.get("unit") or "").strip().lower() or None
        is_semilavorato = bool(line_data.get("is_semilavorato", False))
        # Semilavorato lines are charged per portion, never converted
        if not is_semilavorato:
            error = _line_unit_error(unit, ingredient, offset + 1)
            if error:
                errors.append(error)
                continue

        recipe.recipe_ingredients.append(
            RecipeIngredient(
                ingredient=ingredient,
                quantity=line_data["quantity"],
                unit=unit,
                recipe_yield_percentage=line_data.get("recipe_yield_percentage"),
                is_semilavorato=is_semilavorato,
                sort_order=start + offset,
            )
        )

    if errors:
        raise ValidationError(errors)


def _add_instructions(recipe: Recipe, instructions: List[str]) -> None:
    steps = [text.strip() for text in instructions if text and text.strip()]
    for number, text in enumerate(steps, start=1):
        recipe.recipe_instructions.append(RecipeInstruction(step_number=number, instruction=text))


def _clear_cached_costs(recipe: Recipe) -> None:
    recipe.calculated_total_cost = None
    recipe.calculated_cost_per_portion = None
    recipe.cost_last_calculated_at = None


# ============================================================================
# CRUD Operations
# ============================================================================


def create_recipe(
    recipe_data: Dict,
    ingredients_data: Optional[List[Dict]] = None,
    instructions: Optional[List[str]] = None,
) -> Recipe:
    """
    Create a new recipe with optional ingredient lines and instructions.

    Args:
        recipe_data: Dictionary with recipe fields (name and portions required)
        ingredients_data: List of line dicts with:
            - ingredient_id: int
            - quantity: float
            - unit: str (optional, defaults to the ingredient's unit)
            - recipe_yield_percentage: float (optional)
            - is_semilavorato: bool (optional)
        instructions: Ordered preparation steps

    Returns:
        Created Recipe instance with lines and instructions

    Raises:
        ValidationError: If data validation fails
        IngredientNotFound: If an ingredient_id doesn't exist
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_recipe_data(recipe_data)
    if not is_valid:
        raise ValidationError(errors)
    if ingredients_data:
        _validate_lines(ingredients_data)

    try:
        with session_scope() as session:
            recipe = Recipe(**{key: recipe_data[key] for key in _RECIPE_FIELDS if key in recipe_data})
            recipe.name = recipe.name.strip()
            session.add(recipe)

            if ingredients_data:
                _add_lines(session, recipe, ingredients_data)
            if instructions:
                _add_instructions(recipe, instructions)

            session.flush()
            session.refresh(recipe)

            log_operation(
                logger,
                operation="create_recipe",
                outcome="success",
                recipe_id=recipe.id,
                recipe_name=recipe.name,
                line_count=len(recipe.recipe_ingredients),
            )
            return recipe

    except (ValidationError, IngredientNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create recipe", e)


def get_recipe(recipe_id: int) -> Recipe:
    """
    Retrieve a recipe by ID, with lines, ingredients and instructions loaded.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = session.query(Recipe).filter_by(id=recipe_id).first()
            if not recipe:
                raise RecipeNotFound(recipe_id)
            return recipe

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve recipe {recipe_id}", e)


def get_all_recipes(
    category: Optional[str] = None,
    name_search: Optional[str] = None,
    is_semilavorato: Optional[bool] = None,
) -> List[Recipe]:
    """
    Retrieve all recipes with optional filtering.

    Args:
        category: Filter by category (exact match)
        name_search: Filter by name (case-insensitive partial match)
        is_semilavorato: Only semilavorati (True) or only finished recipes (False)

    Returns:
        List of Recipe instances ordered by name

    Raises:
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            query = session.query(Recipe)

            if category:
                query = query.filter(Recipe.category == category)

            if name_search:
                query = query.filter(Recipe.name.ilike(f"%{name_search}%"))

            if is_semilavorato is not None:
                query = query.filter(Recipe.is_semilavorato == is_semilavorato)

            return query.order_by(Recipe.name).all()

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve recipes", e)


def update_recipe(  # noqa: C901
    recipe_id: int,
    recipe_data: Dict,
    ingredients_data: Optional[List[Dict]] = None,
    instructions: Optional[List[str]] = None,
) -> Recipe:
    """
    Update a recipe and optionally replace its lines and instructions.

    Args:
        recipe_id: Recipe ID
        recipe_data: Dictionary with recipe fields to update
        ingredients_data: If provided, replaces all ingredient lines
        instructions: If provided, replaces all instructions

    Returns:
        Updated Recipe instance; cached costs are cleared when lines change

    Raises:
        RecipeNotFound: If recipe doesn't exist
        ValidationError: If data validation fails
        IngredientNotFound: If an ingredient_id doesn't exist
        DatabaseError: If database operation fails
    """
    if ingredients_data:
        _validate_lines(ingredients_data)

    try:
        with session_scope() as session:
            recipe = session.query(Recipe).filter_by(id=recipe_id).first()
            if not recipe:
                raise RecipeNotFound(recipe_id)

            merged = {key: getattr(recipe, key) for key in _RECIPE_FIELDS}
            merged.update(recipe_data)
            is_valid, errors = validate_recipe_data(merged)
            if not is_valid:
                raise ValidationError(errors)

            for key, value in recipe_data.items():
                if key in _RECIPE_FIELDS:
                    setattr(recipe, key, value)

            if ingredients_data is not None:
                recipe.recipe_ingredients.clear()
                session.flush()
                _add_lines(session, recipe, ingredients_data)
                _clear_cached_costs(recipe)
            elif "portions" in recipe_data:
                _clear_cached_costs(recipe)

            if instructions is not None:
                recipe.recipe_instructions.clear()
                session.flush()
                _add_instructions(recipe, instructions)

            session.flush()
            session.refresh(recipe)
            return recipe

    except (RecipeNotFound, ValidationError, IngredientNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update recipe {recipe_id}", e)


def delete_recipe(recipe_id: int) -> bool:
    """
    Delete a recipe with its lines and instructions.

    Dishes pointing at the recipe keep existing without one.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = session.query(Recipe).filter_by(id=recipe_id).first()
            if not recipe:
                raise RecipeNotFound(recipe_id)

            # Cascade removes recipe_ingredients and recipe_instructions
            session.delete(recipe)
            return True

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete recipe {recipe_id}", e)


# ============================================================================
# Recipe Ingredient Management
# ============================================================================


def add_ingredient_to_recipe(
    recipe_id: int,
    ingredient_id: int,
    quantity: float,
    unit: Optional[str] = None,
    recipe_yield_percentage: Optional[float] = None,
    is_semilavorato: bool = False,
) -> RecipeIngredient:
    """
    Append an ingredient line to a recipe.

    Args:
        recipe_id: Recipe ID
        ingredient_id: Ingredient ID
        quantity: Quantity needed
        unit: Line unit (None means the ingredient's unit)
        recipe_yield_percentage: Recipe-specific yield override
        is_semilavorato: Line refers to a semilavorato recipe

    Returns:
        Created RecipeIngredient instance

    Raises:
        RecipeNotFound: If recipe doesn't exist
        IngredientNotFound: If ingredient doesn't exist
        ValidationError: If quantity/unit/yield invalid
        DatabaseError: If database operation fails
    """
    line_data = {
        "ingredient_id": ingredient_id,
        "quantity": quantity,
        "unit": unit,
        "recipe_yield_percentage": recipe_yield_percentage,
        "is_semilavorato": is_semilavorato,
    }
    _validate_lines([line_data])

    try:
        with session_scope() as session:
            recipe = session.query(Recipe).filter_by(id=recipe_id).first()
            if not recipe:
                raise RecipeNotFound(recipe_id)

            next_order = (
                session.query(func.max(RecipeIngredient.sort_order))
                .filter(RecipeIngredient.recipe_id == recipe_id)
                .scalar()
            )
            start = 0 if next_order is None else next_order + 1

            _add_lines(session, recipe, [line_data], start=start)
            _clear_cached_costs(recipe)

            session.flush()
            recipe_ingredient = recipe.recipe_ingredients[-1]
            session.refresh(recipe_ingredient)
            return recipe_ingredient

    except (RecipeNotFound, IngredientNotFound, ValidationError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to add ingredient to recipe", e)


def remove_ingredient_from_recipe(recipe_id: int, ingredient_id: int) -> bool:
    """
    Remove every line of an ingredient from a recipe.

    Returns:
        True if at least one line was removed

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = session.query(Recipe).filter_by(id=recipe_id).first()
            if not recipe:
                raise RecipeNotFound(recipe_id)

            lines = [ri for ri in recipe.recipe_ingredients if ri.ingredient_id == ingredient_id]
            for line in lines:
                recipe.recipe_ingredients.remove(line)
            if lines:
                _clear_cached_costs(recipe)

            return len(lines) > 0

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to remove ingredient from recipe", e)


# ============================================================================
# Costing Records and Lookups
# ============================================================================


def get_recipe_data(recipe_id: int) -> RecipeData:
    """
    Fetch a recipe as a RecipeData record for the costing core.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = session.query(Recipe).filter_by(id=recipe_id).first()
            if not recipe:
                raise RecipeNotFound(recipe_id)
            return RecipeData.from_model(recipe)

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve recipe {recipe_id}", e)


def find_semilavorato_recipe(name: str) -> Optional[RecipeData]:
    """
    Find the semilavorato recipe with the given name.

    Args:
        name: Ingredient/recipe name (exact match)

    Returns:
        RecipeData of the oldest matching semilavorato, or None

    Raises:
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = (
                session.query(Recipe)
                .filter(Recipe.name == name, Recipe.is_semilavorato.is_(True))
                .order_by(Recipe.id)
                .first()
            )
            return RecipeData.from_model(recipe) if recipe else None

    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to look up semilavorato '{name}'", e)


# ============================================================================
# Cost Calculations
# ============================================================================


def _sync_semilavorato_ingredient(session, name: str, cost_per_portion: float) -> None:
    # Parent recipes charge semilavorato lines at the stand-in ingredient's price
    ingredient = session.query(Ingredient).filter(Ingredient.name == name).first()
    if not ingredient:
        return

    ingredient.cost_per_unit = cost_per_portion
    ingredient.effective_cost_per_unit = cost_per_portion
    log_operation(
        logger,
        operation="sync_semilavorato_price",
        outcome="success",
        ingredient_id=ingredient.id,
        ingredient_name=name,
        cost_per_portion=round(cost_per_portion, 4),
    )


def calculate_recipe_cost(recipe_id: int) -> float:
    """
    Calculate the batch cost of a recipe and refresh its cached cost columns.

    For a semilavorato, the ingredient of the same name that parent recipes
    list it under is repriced at the new per-portion cost.

    Args:
        recipe_id: Recipe ID

    Returns:
        Total cost of one batch

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = session.query(Recipe).filter_by(id=recipe_id).first()
            if not recipe:
                raise RecipeNotFound(recipe_id)

            total, per_portion = cost_calculator.calculate_recipe_costs(
                RecipeData.from_model(recipe)
            )

            recipe.calculated_total_cost = total
            recipe.calculated_cost_per_portion = per_portion
            recipe.cost_last_calculated_at = utc_now()

            if recipe.is_semilavorato:
                _sync_semilavorato_ingredient(session, recipe.name, per_portion)

            log_operation(
                logger,
                operation="calculate_recipe_cost",
                outcome="success",
                recipe_id=recipe_id,
                total_cost=round(total, 2),
                cost_per_portion=round(per_portion, 2),
            )
            return total

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to calculate recipe cost for {recipe_id}", e)


def get_recipe_with_costs(recipe_id: int) -> Dict:
    """
    Get recipe with detailed cost breakdown.

    Args:
        recipe_id: Recipe ID

    Returns:
        Dictionary with recipe info and cost breakdown:
        {
            'recipe': RecipeData,
            'total_cost': float,
            'cost_per_portion': float,
            'indicator': FoodCostIndicator,
            'costs_up_to_date': bool,
            'ingredients': [
                {
                    'line': RecipeIngredientLine,
                    'cost_per_unit': float,
                    'quantity': float,
                    'cost': float,
                },
                ...
            ]
        }

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = session.query(Recipe).filter_by(id=recipe_id).first()
            if not recipe:
                raise RecipeNotFound(recipe_id)

            data = RecipeData.from_model(recipe)
            ingredient_updates = [
                ri.ingredient.updated_at for ri in recipe.recipe_ingredients if ri.ingredient
            ]

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to get recipe costs for {recipe_id}", e)

    ingredient_costs = []
    for line in data.ingredients:
        ingredient_costs.append(
            {
                "line": line,
                "cost_per_unit": cost_calculator.get_line_cost_per_unit(line),
                "quantity": line.quantity,
                "cost": cost_calculator.calculate_line_cost(line),
            }
        )

    total_cost, cost_per_portion = cost_calculator.calculate_recipe_costs(data)

    return {
        "recipe": data,
        "total_cost": total_cost,
        "cost_per_portion": cost_per_portion,
        "indicator": cost_calculator.get_food_cost_indicator(
            cost_per_portion, data.selling_price
        ),
        "costs_up_to_date": cost_calculator.are_costs_up_to_date(
            data.cost_last_calculated_at, max(ingredient_updates) if ingredient_updates else None
        ),
        "ingredients": ingredient_costs,
    }


# ============================================================================
# Expansion and Scaling
# ============================================================================


def expand_recipe(
    recipe_id: int, max_depth: int = DEFAULT_MAX_EXPANSION_DEPTH, strict: bool = False
) -> ExpansionResult:
    """
    Expand a recipe's semilavorato lines into their full ingredient trees.

    Sub-recipes are looked up one at a time through find_semilavorato_recipe.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        CircularSemilavoratoError: If ``strict`` and a semilavorato chain loops
        DatabaseError: If the root recipe cannot be loaded
    """
    recipe = get_recipe_data(recipe_id)
    return recipe_expansion.expand_recipe_ingredients(
        recipe, find_semilavorato_recipe, max_depth=max_depth, strict=strict
    )


def get_recipe_allergens(recipe_id: int) -> List[str]:
    """Allergen tags of every ingredient in the recipe's expanded tree."""
    return recipe_expansion.get_allergens(expand_recipe(recipe_id))


def scale_recipe(recipe_id: int, target_portions: int) -> ScaledRecipe:
    """
    Scale a stored recipe to a new portion count without saving it.

    Raises:
        ValidationError: If target_portions is not positive
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    is_valid, error = validate_positive_number(target_portions, "Target portions")
    if not is_valid:
        raise ValidationError([error])

    return recipe_scaler.scale_recipe(get_recipe_data(recipe_id), target_portions)
