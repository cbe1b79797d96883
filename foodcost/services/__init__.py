"""Services package - Business logic layer for FoodCost.

Architecture:
- Calculation modules: pure functions over the typed records in dto
- Services: stateless functions organized by entity (ingredient, recipe, dish, sales)
- Transactions: managed via session_scope() context manager
- Exceptions: consistent error handling via the ServiceError hierarchy
- Validation: input validation before database operations

Calculation Modules:
- unit_converter: Unit families, conversion and usage-unit cost
- cost_calculator: Recipe batch and per-portion cost, food-cost indicator
- recipe_expansion: Nested semilavorato expansion, base ingredients, allergens
- recipe_scaler: Portion scaling with square-root preparation time
- menu_engineering: Dish analysis, star/plowhorse/puzzle/dog, period KPIs

Service Modules:
- ingredient_service: Ingredient CRUD with effective cost derivation
- recipe_service: Recipe CRUD, costing, expansion and scaling
- dish_service: Menu dish CRUD
- sales_service: Per-period sales aggregates
- menu_service: Food-cost dashboard report

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured operation logging
"""

from . import (
    database,
    unit_converter,
    cost_calculator,
    recipe_expansion,
    recipe_scaler,
    menu_engineering,
    ingredient_service,
    recipe_service,
    dish_service,
    sales_service,
    menu_service,
)

from .exceptions import (
    ServiceError,
    UnitConversionError,
    CircularSemilavoratoError,
    IngredientNotFound,
    RecipeNotFound,
    DishNotFound,
    IngredientInUse,
    ValidationError,
    DatabaseError,
)

__all__ = [
    "database",
    "unit_converter",
    "cost_calculator",
    "recipe_expansion",
    "recipe_scaler",
    "menu_engineering",
    "ingredient_service",
    "recipe_service",
    "dish_service",
    "sales_service",
    "menu_service",
    "ServiceError",
    "UnitConversionError",
    "CircularSemilavoratoError",
    "IngredientNotFound",
    "RecipeNotFound",
    "DishNotFound",
    "IngredientInUse",
    "ValidationError",
    "DatabaseError",
]
