"""
Dish model for sellable menu items.

A Dish carries a selling price and optionally points at the Recipe that
produces one portion of it. Dishes feed the food-cost dashboard and menu
engineering; recipe cost math never reads them.
"""

from sqlalchemy import Column, String, Float, Integer, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel


class Dish(BaseModel):
    """
    Dish model.

    Attributes:
        name: Dish name as it appears on the menu and in sales data
        category: Menu category
        selling_price: Price of one portion
        recipe_id: Optional foreign key to the producing Recipe
    """

    __tablename__ = "dishes"

    name = Column(String(200), nullable=False, unique=True, index=True)
    category = Column(String(100), nullable=True)
    selling_price = Column(Float, nullable=False, default=0.0)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True)

    recipe = relationship("Recipe", back_populates="dishes", lazy="joined")

    __table_args__ = (
        Index("idx_dish_recipe", "recipe_id"),
        CheckConstraint("selling_price >= 0", name="ck_dish_price_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation of dish."""
        return f"Dish(id={self.id}, name='{self.name}', selling_price={self.selling_price})"
