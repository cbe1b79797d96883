"""
Recipe models.

This module contains:
- Recipe: Main recipe model with metadata and cached cost columns
- RecipeIngredient: Junction table linking recipes to ingredients
- RecipeInstruction: Numbered preparation steps
"""

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Text,
    DateTime,
    ForeignKey,
    Index,
    CheckConstraint,
    Boolean,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class Recipe(BaseModel):
    """
    Recipe model.

    Attributes:
        name: Recipe name (required)
        category: Recipe category (e.g., "Primi", "Dolci", "Basi")
        preparation_time: Preparation time in minutes
        portions: Number of portions one batch produces (> 0)
        difficulty: Difficulty label
        description: Free-text description
        allergens: Allergen summary string
        calories, protein, carbs, fat: Nutritional totals
        is_semilavorato: Recipe can be used as an ingredient elsewhere
        notes_chef: Chef notes
        selling_price: Optional list price for a portion
        calculated_total_cost: Cached batch cost
        calculated_cost_per_portion: Cached per-portion cost
        cost_last_calculated_at: When the cached cost was computed
    """

    __tablename__ = "recipes"

    name = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=True, index=True)
    preparation_time = Column(Integer, nullable=False, default=0)
    portions = Column(Integer, nullable=False, default=1)
    difficulty = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    allergens = Column(Text, nullable=True)

    # Nutritional totals
    calories = Column(Float, nullable=True)
    protein = Column(Float, nullable=True)
    carbs = Column(Float, nullable=True)
    fat = Column(Float, nullable=True)

    is_semilavorato = Column(Boolean, nullable=False, default=False, index=True)
    notes_chef = Column(Text, nullable=True)
    selling_price = Column(Float, nullable=True)

    # Cached costs, always derivable from the ingredient lines
    calculated_total_cost = Column(Float, nullable=True)
    calculated_cost_per_portion = Column(Float, nullable=True)
    cost_last_calculated_at = Column(DateTime, nullable=True)

    recipe_ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.sort_order",
        lazy="joined",
    )
    recipe_instructions = relationship(
        "RecipeInstruction",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeInstruction.step_number",
        lazy="joined",
    )
    dishes = relationship("Dish", back_populates="recipe", lazy="select")

    __table_args__ = (
        Index("idx_recipe_name_semilavorato", "name", "is_semilavorato"),
        CheckConstraint("portions > 0", name="ck_recipe_portions_positive"),
    )

    def __repr__(self) -> str:
        """String representation of recipe."""
        return f"Recipe(id={self.id}, name='{self.name}', category='{self.category}')"


class RecipeIngredient(BaseModel):
    """
    Junction table linking recipes to ingredients with quantities.

    Attributes:
        recipe_id: Foreign key to Recipe
        ingredient_id: Foreign key to Ingredient
        quantity: Amount needed
        unit: Optional unit override; must convert to the ingredient's unit
        recipe_yield_percentage: Optional recipe-specific yield override
        is_semilavorato: Line denotes a nested sub-recipe
        sort_order: Position of the line in the recipe
    """

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False
    )

    quantity = Column(Float, nullable=False)
    unit = Column(String(50), nullable=True)
    recipe_yield_percentage = Column(Float, nullable=True)
    is_semilavorato = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)

    recipe = relationship("Recipe", back_populates="recipe_ingredients")
    ingredient = relationship("Ingredient", back_populates="recipe_ingredients", lazy="joined")

    __table_args__ = (
        Index("idx_recipe_ingredient_recipe", "recipe_id"),
        Index("idx_recipe_ingredient_ingredient", "ingredient_id"),
    )

    def __repr__(self) -> str:
        """String representation of recipe ingredient."""
        return (
            f"RecipeIngredient(recipe_id={self.recipe_id}, "
            f"ingredient_id={self.ingredient_id}, "
            f"quantity={self.quantity}, unit='{self.unit}')"
        )


class RecipeInstruction(BaseModel):
    """A numbered preparation step."""

    __tablename__ = "recipe_instructions"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    step_number = Column(Integer, nullable=False)
    instruction = Column(Text, nullable=False)

    recipe = relationship("Recipe", back_populates="recipe_instructions")

    __table_args__ = (Index("idx_recipe_instruction_recipe", "recipe_id"),)

    def __repr__(self) -> str:
        return f"RecipeInstruction(recipe_id={self.recipe_id}, step_number={self.step_number})"
