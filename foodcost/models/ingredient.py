"""
Ingredient model for purchasable raw materials and semilavorato stand-ins.

An Ingredient is bought in its primary unit (UMP) at ``cost_per_unit``.
Prep loss is expressed by ``yield_percentage``; the true cost of the usable
portion is stored in ``effective_cost_per_unit``.

A semilavorato (sub-recipe) is referenced from other recipes through an
Ingredient carrying the same name as the semilavorato Recipe.
"""

from typing import List, Optional

from sqlalchemy import Column, String, Text, Float, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel


class Ingredient(BaseModel):
    """
    Ingredient model representing a purchasable item.

    Attributes:
        name: Ingredient name (unique)
        category: Category (e.g., "Latticini", "Verdure")
        unit: Primary/purchase unit (e.g., "kg", "l", "pz")
        usage_unit: Optional unit used in recipes when it differs from ``unit``
        cost_per_unit: Purchase cost per primary unit
        yield_percentage: Usable share after trimming/prep loss (0 < y <= 100)
        effective_cost_per_unit: cost_per_unit / (yield_percentage / 100)
        average_weight_per_piece_g: Grams per single piece, enables weight<->piece
        allergens: Comma-separated allergen tags
        supplier: Supplier name
        supplier_product_code: Supplier's code for the product
        current_stock: Stock on hand, in primary units
        min_stock_threshold: Reorder threshold
        par_level: Target stock level
        notes: Additional notes
    """

    __tablename__ = "ingredients"

    name = Column(String(200), nullable=False, unique=True, index=True)
    category = Column(String(100), nullable=True, index=True)

    # Units and cost
    unit = Column(String(50), nullable=False)
    usage_unit = Column(String(50), nullable=True)
    cost_per_unit = Column(Float, nullable=False, default=0.0)
    yield_percentage = Column(Float, nullable=False, default=100.0)
    effective_cost_per_unit = Column(Float, nullable=True)
    average_weight_per_piece_g = Column(Float, nullable=True)

    allergens = Column(Text, nullable=True)

    # Stock and supplier metadata
    supplier = Column(String(200), nullable=True)
    supplier_product_code = Column(String(100), nullable=True)
    current_stock = Column(Float, nullable=True)
    min_stock_threshold = Column(Float, nullable=True)
    par_level = Column(Float, nullable=True)

    notes = Column(Text, nullable=True)

    recipe_ingredients = relationship(
        "RecipeIngredient", back_populates="ingredient", lazy="select"
    )

    __table_args__ = (
        Index("idx_ingredient_category", "category"),
        CheckConstraint(
            "yield_percentage > 0 AND yield_percentage <= 100", name="ck_ingredient_yield_range"
        ),
        CheckConstraint("cost_per_unit >= 0", name="ck_ingredient_cost_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation of ingredient."""
        return f"Ingredient(id={self.id}, name='{self.name}', unit='{self.unit}')"

    def compute_effective_cost(self) -> float:
        """
        Cost of one usable primary unit after prep loss.

        Returns:
            cost_per_unit / (yield_percentage / 100), or cost_per_unit when
            yield is missing or not positive
        """
        cost = self.cost_per_unit or 0.0
        yield_pct = self.yield_percentage
        if not yield_pct or yield_pct <= 0:
            return cost
        return cost / (yield_pct / 100)

    def refresh_effective_cost(self) -> None:
        """Recompute and store effective_cost_per_unit from cost and yield."""
        self.effective_cost_per_unit = self.compute_effective_cost()

    def get_allergen_list(self) -> List[str]:
        """Split the allergen string into trimmed, non-empty tags."""
        if not self.allergens:
            return []
        return [tag.strip() for tag in self.allergens.split(",") if tag.strip()]

    def is_below_threshold(self) -> Optional[bool]:
        """
        Check whether stock has dropped under the reorder threshold.

        Returns:
            None when stock or threshold is not tracked
        """
        if self.current_stock is None or self.min_stock_threshold is None:
            return None
        return self.current_stock < self.min_stock_threshold
