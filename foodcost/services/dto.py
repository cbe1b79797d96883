"""Data Transfer Objects for the costing core.

Recipes, ingredients and dishes cross the service boundary as these typed,
immutable records. Every optional field is resolved to an explicit default
once, in the ``from_model`` constructors, so the calculation modules never
have to guess about missing values.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional, Tuple

from foodcost.models import Dish, Ingredient, Recipe, RecipeIngredient, RecipeInstruction
from foodcost.utils.constants import DEFAULT_CRITICAL_THRESHOLD_PCT, DEFAULT_TARGET_THRESHOLD_PCT


@dataclass(frozen=True)
class IngredientData:
    """Ingredient fields needed for costing and expansion.

    Attributes:
        id: Ingredient ID
        name: Ingredient name
        unit: Primary/purchase unit
        cost_per_unit: Purchase cost per primary unit
        yield_percentage: Usable share after prep loss (default 100)
        effective_cost_per_unit: Stored yield-adjusted cost, None when not set
        usage_unit: Unit used in recipes when it differs from ``unit``
        average_weight_per_piece_g: Grams per piece for weight<->piece conversion
        allergens: Allergen tags
    """

    id: Optional[int] = None
    name: str = ""
    unit: str = ""
    cost_per_unit: float = 0.0
    yield_percentage: float = 100.0
    effective_cost_per_unit: Optional[float] = None
    usage_unit: Optional[str] = None
    average_weight_per_piece_g: Optional[float] = None
    allergens: Tuple[str, ...] = ()

    @classmethod
    def from_model(cls, ingredient: Ingredient) -> "IngredientData":
        return cls(
            id=ingredient.id,
            name=ingredient.name or "",
            unit=ingredient.unit or "",
            cost_per_unit=ingredient.cost_per_unit or 0.0,
            yield_percentage=ingredient.yield_percentage or 100.0,
            effective_cost_per_unit=ingredient.effective_cost_per_unit,
            usage_unit=ingredient.usage_unit,
            average_weight_per_piece_g=ingredient.average_weight_per_piece_g,
            allergens=tuple(ingredient.get_allergen_list()),
        )


@dataclass(frozen=True)
class RecipeIngredientLine:
    """One ingredient line of a recipe.

    Attributes:
        ingredient: The referenced ingredient
        quantity: Amount used
        unit: Line unit; None means the ingredient's own unit
        recipe_yield_percentage: Recipe-specific yield override, None if unset
        is_semilavorato: Line denotes a nested sub-recipe
        id: Line ID
    """

    ingredient: IngredientData = field(default_factory=IngredientData)
    quantity: float = 0.0
    unit: Optional[str] = None
    recipe_yield_percentage: Optional[float] = None
    is_semilavorato: bool = False
    id: Optional[int] = None

    @property
    def ingredient_id(self) -> Optional[int]:
        return self.ingredient.id

    @classmethod
    def from_model(cls, line: RecipeIngredient) -> "RecipeIngredientLine":
        ingredient = (
            IngredientData.from_model(line.ingredient) if line.ingredient else IngredientData()
        )
        return cls(
            ingredient=ingredient,
            quantity=line.quantity or 0.0,
            unit=line.unit or None,
            recipe_yield_percentage=line.recipe_yield_percentage,
            is_semilavorato=bool(line.is_semilavorato),
            id=line.id,
        )


@dataclass(frozen=True)
class InstructionData:
    """A numbered preparation step."""

    step_number: int = 0
    instruction: str = ""

    @classmethod
    def from_model(cls, step: RecipeInstruction) -> "InstructionData":
        return cls(step_number=step.step_number or 0, instruction=step.instruction or "")


@dataclass(frozen=True)
class RecipeData:
    """A recipe with its ordered lines and instructions.

    The cached cost fields mirror the database columns; they are None
    whenever the cost has never been computed.
    """

    id: Optional[int] = None
    name: str = ""
    category: str = ""
    preparation_time: int = 0
    portions: int = 1
    difficulty: str = ""
    description: str = ""
    allergens: str = ""
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    is_semilavorato: bool = False
    selling_price: Optional[float] = None
    ingredients: Tuple[RecipeIngredientLine, ...] = ()
    instructions: Tuple[InstructionData, ...] = ()
    calculated_total_cost: Optional[float] = None
    calculated_cost_per_portion: Optional[float] = None
    cost_last_calculated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, recipe: Recipe) -> "RecipeData":
        return cls(
            id=recipe.id,
            name=recipe.name or "",
            category=recipe.category or "",
            preparation_time=recipe.preparation_time or 0,
            portions=recipe.portions or 0,
            difficulty=recipe.difficulty or "",
            description=recipe.description or "",
            allergens=recipe.allergens or "",
            calories=recipe.calories or 0.0,
            protein=recipe.protein or 0.0,
            carbs=recipe.carbs or 0.0,
            fat=recipe.fat or 0.0,
            is_semilavorato=bool(recipe.is_semilavorato),
            selling_price=recipe.selling_price,
            ingredients=tuple(
                RecipeIngredientLine.from_model(line) for line in recipe.recipe_ingredients
            ),
            instructions=tuple(
                InstructionData.from_model(step) for step in recipe.recipe_instructions
            ),
            calculated_total_cost=recipe.calculated_total_cost,
            calculated_cost_per_portion=recipe.calculated_cost_per_portion,
            cost_last_calculated_at=recipe.cost_last_calculated_at,
        )


@dataclass(frozen=True)
class ExpandedIngredient:
    """A recipe line annotated with where it sits in the expanded tree.

    Attributes:
        line: The original ingredient line
        depth: 0 for direct lines, +1 per semilavorato level
        parent_recipe_id: ID of the recipe the line belongs to
        parent_recipe_name: Name of the recipe the line belongs to
    """

    line: RecipeIngredientLine
    depth: int = 0
    parent_recipe_id: Optional[int] = None
    parent_recipe_name: str = ""

    @property
    def ingredient(self) -> IngredientData:
        return self.line.ingredient

    @property
    def is_semilavorato(self) -> bool:
        return self.line.is_semilavorato


@dataclass(frozen=True)
class ExpansionResult:
    """Output of a nested recipe expansion.

    Attributes:
        ingredients: Flattened lines in depth-first order
        max_depth_reached: Some branch was cut by the depth guard
        missing_semilavorati: Semilavorato names with no matching recipe
        cycles: Recipe-name paths that looped back onto their own branch
    """

    ingredients: Tuple[ExpandedIngredient, ...] = ()
    max_depth_reached: bool = False
    missing_semilavorati: Tuple[str, ...] = ()
    cycles: Tuple[Tuple[str, ...], ...] = ()


@dataclass(frozen=True)
class ScaledIngredient:
    """An ingredient line with its quantity scaled to a new portion count."""

    line: RecipeIngredientLine
    original_quantity: float
    scaled_quantity: float

    @property
    def ingredient(self) -> IngredientData:
        return self.line.ingredient


@dataclass(frozen=True)
class ScaledRecipe:
    """A recipe rescaled for a target portion count; the original is untouched."""

    recipe: RecipeData
    scaled_portions: int
    scaled_preparation_time: int
    scaling_factor: float
    scaled_ingredients: Tuple[ScaledIngredient, ...] = ()

    def as_recipe(self) -> RecipeData:
        """Return a RecipeData carrying the scaled lines, portions and time."""
        return replace(
            self.recipe,
            portions=self.scaled_portions,
            preparation_time=self.scaled_preparation_time,
            ingredients=tuple(
                replace(scaled.line, quantity=scaled.scaled_quantity)
                for scaled in self.scaled_ingredients
            ),
            calculated_total_cost=None,
            calculated_cost_per_portion=None,
            cost_last_calculated_at=None,
        )


@dataclass(frozen=True)
class DishData:
    """A sellable dish with its optional recipe."""

    id: Optional[int] = None
    name: str = ""
    category: str = ""
    selling_price: float = 0.0
    recipe: Optional[RecipeData] = None

    @classmethod
    def from_model(cls, dish: Dish) -> "DishData":
        return cls(
            id=dish.id,
            name=dish.name or "",
            category=dish.category or "",
            selling_price=dish.selling_price or 0.0,
            recipe=RecipeData.from_model(dish.recipe) if dish.recipe else None,
        )


@dataclass(frozen=True)
class SalesDataPoint:
    """Units sold and revenue for one dish in one period."""

    dish_name: str
    units_sold: int = 0
    period: str = ""
    revenue: float = 0.0


@dataclass(frozen=True)
class DishAnalysis:
    """Food-cost analysis of a single dish.

    Attributes:
        food_cost: Recipe cost per portion
        food_cost_percentage: food_cost / selling_price * 100 (0 without price)
        margin: selling_price - food_cost
        status: "ottimo", "buono" or "critico"
        popularity: Popularity score in [1, 100]
    """

    food_cost: float = 0.0
    food_cost_percentage: float = 0.0
    margin: float = 0.0
    status: str = "ottimo"
    popularity: float = 0.0


@dataclass(frozen=True)
class PeriodSummary:
    """Food-cost KPIs for a period."""

    average_food_cost_percentage: float = 0.0
    total_revenue: float = 0.0
    total_cost_of_goods_sold: float = 0.0
    total_margin: float = 0.0
    critical_dishes: int = 0
    target_reached_percentage: float = 0.0


@dataclass
class FoodCostSettings:
    """User-tunable food-cost thresholds, as percentages."""

    critical_threshold: float = DEFAULT_CRITICAL_THRESHOLD_PCT
    target_threshold: float = DEFAULT_TARGET_THRESHOLD_PCT

    def __post_init__(self) -> None:
        if self.critical_threshold < 0 or self.target_threshold < 0:
            raise ValueError("food-cost thresholds must be >= 0")


__all__ = [
    "IngredientData",
    "RecipeIngredientLine",
    "InstructionData",
    "RecipeData",
    "ExpandedIngredient",
    "ExpansionResult",
    "ScaledIngredient",
    "ScaledRecipe",
    "DishData",
    "SalesDataPoint",
    "DishAnalysis",
    "PeriodSummary",
    "FoodCostSettings",
]
