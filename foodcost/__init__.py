"""FoodCost: recipe costing and menu engineering for restaurant back offices."""

__version__ = "0.1.0"
