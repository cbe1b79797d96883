"""Service layer exception classes for FoodCost.

Exception Hierarchy:
    ServiceError (base)
    ├── UnitConversionError
    ├── CircularSemilavoratoError
    ├── IngredientNotFound
    ├── RecipeNotFound
    ├── DishNotFound
    ├── IngredientInUse
    ├── ValidationError
    └── DatabaseError
"""

from typing import List, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions inherit from this class.
    """

    pass


class UnitConversionError(ServiceError):
    """Raised when a quantity cannot be converted between two units.

    Args:
        from_unit: Source unit label
        to_unit: Target unit label
        reason: Human-readable reason

    Example:
        >>> raise UnitConversionError("kg", "l", "incompatible unit types")
        UnitConversionError: Cannot convert kg to l: incompatible unit types
    """

    def __init__(self, from_unit: str, to_unit: str, reason: str):
        self.from_unit = from_unit
        self.to_unit = to_unit
        self.reason = reason
        super().__init__(f"Cannot convert {from_unit} to {to_unit}: {reason}")


class CircularSemilavoratoError(ServiceError):
    """Raised by strict expansion when a semilavorato chain loops back on itself.

    Args:
        path: Recipe names from the outermost recipe to the repeated one
    """

    def __init__(self, path: List[str]):
        self.path = list(path)
        super().__init__(f"Circular semilavorato reference: {' -> '.join(self.path)}")


class IngredientNotFound(ServiceError):
    """Raised when an ingredient cannot be found by ID."""

    def __init__(self, ingredient_id: int):
        self.ingredient_id = ingredient_id
        super().__init__(f"Ingredient with ID {ingredient_id} not found")


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID."""

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class DishNotFound(ServiceError):
    """Raised when a dish cannot be found by ID."""

    def __init__(self, dish_id: int):
        self.dish_id = dish_id
        super().__init__(f"Dish with ID {dish_id} not found")


class IngredientInUse(ServiceError):
    """Raised when attempting to delete an ingredient referenced by recipes.

    Args:
        ingredient_id: The ingredient being deleted
        recipe_count: Number of recipes using it
    """

    def __init__(self, ingredient_id: int, recipe_count: int):
        self.ingredient_id = ingredient_id
        self.recipe_count = recipe_count
        super().__init__(
            f"Cannot delete ingredient {ingredient_id}: used in {recipe_count} recipe(s)"
        )


class ValidationError(ServiceError):
    """Raised when data validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
