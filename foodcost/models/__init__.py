"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel
from .ingredient import Ingredient
from .recipe import Recipe, RecipeIngredient, RecipeInstruction
from .dish import Dish
from .sales_record import SalesRecord

__all__ = [
    "Base",
    "BaseModel",
    "Ingredient",
    "Recipe",
    "RecipeIngredient",
    "RecipeInstruction",
    "Dish",
    "SalesRecord",
]
