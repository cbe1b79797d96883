"""
Unit tests for nested recipe expansion.

Lookups are plain dictionaries keyed by semilavorato name, so no database
is involved.
"""

import logging

import pytest

from foodcost.services.dto import IngredientData, RecipeData, RecipeIngredientLine
from foodcost.services.exceptions import CircularSemilavoratoError, DatabaseError
from foodcost.services.recipe_expansion import (
    calculate_expanded_total_cost,
    expand_recipe_ingredients,
    get_allergens,
    get_base_ingredients,
)


def _raw(name, cost=1.0, quantity=1.0, allergens=()):
    return RecipeIngredientLine(
        ingredient=IngredientData(name=name, unit="kg", cost_per_unit=cost, allergens=allergens),
        quantity=quantity,
    )


def _semi(name, cost_per_portion=0.0, quantity=1.0):
    return RecipeIngredientLine(
        ingredient=IngredientData(
            name=name, unit="porzione", cost_per_unit=cost_per_portion,
            effective_cost_per_unit=cost_per_portion,
        ),
        quantity=quantity,
        is_semilavorato=True,
    )


def _lookup(*recipes):
    by_name = {recipe.name: recipe for recipe in recipes}
    return by_name.get


@pytest.fixture
def besciamella():
    return RecipeData(
        id=2,
        name="Besciamella",
        is_semilavorato=True,
        ingredients=(
            _raw("Latte", cost=1.5, quantity=1.0, allergens=("lattosio",)),
            _raw("Burro", cost=8.0, quantity=0.1, allergens=("lattosio",)),
        ),
    )


@pytest.fixture
def lasagna():
    return RecipeData(
        id=1,
        name="Lasagna",
        ingredients=(
            _raw("Pasta sfoglia", cost=4.0, quantity=0.5, allergens=("glutine", "uova")),
            _semi("Besciamella", cost_per_portion=2.0),
        ),
    )


class TestExpandRecipeIngredients:
    """Test the recursive walk."""

    def test_no_semilavorati(self):
        """A flat recipe expands to its own lines at depth 0."""
        recipe = RecipeData(id=1, name="Insalata", ingredients=(_raw("Lattuga"), _raw("Olio")))
        result = expand_recipe_ingredients(recipe, _lookup())
        assert [item.depth for item in result.ingredients] == [0, 0]
        assert not result.max_depth_reached
        assert result.cycles == ()

    def test_semilavorato_expanded_one_level(self, lasagna, besciamella):
        """The semilavorato line is kept and followed by its two children at depth 1."""
        result = expand_recipe_ingredients(lasagna, _lookup(besciamella))

        names = [item.ingredient.name for item in result.ingredients]
        assert names == ["Pasta sfoglia", "Besciamella", "Latte", "Burro"]
        assert [item.depth for item in result.ingredients] == [0, 0, 1, 1]

        latte = result.ingredients[2]
        assert latte.parent_recipe_id == 2
        assert latte.parent_recipe_name == "Besciamella"
        assert result.ingredients[0].parent_recipe_name == "Lasagna"

    def test_two_levels(self, besciamella):
        """Semilavorati inside semilavorati are followed depth-first."""
        ragu = RecipeData(
            id=3, name="Ragu", is_semilavorato=True,
            ingredients=(_raw("Carne macinata"), _semi("Soffritto")),
        )
        soffritto = RecipeData(
            id=4, name="Soffritto", is_semilavorato=True,
            ingredients=(_raw("Cipolla"), _raw("Carota")),
        )
        lasagna = RecipeData(
            id=1, name="Lasagna", ingredients=(_semi("Ragu"), _semi("Besciamella")),
        )

        result = expand_recipe_ingredients(lasagna, _lookup(ragu, soffritto, besciamella))

        assert [(i.ingredient.name, i.depth) for i in result.ingredients] == [
            ("Ragu", 0),
            ("Carne macinata", 1),
            ("Soffritto", 1),
            ("Cipolla", 2),
            ("Carota", 2),
            ("Besciamella", 0),
            ("Latte", 1),
            ("Burro", 1),
        ]

    def test_missing_semilavorato_is_leaf(self, lasagna, caplog):
        """An unresolved semilavorato stays as a leaf and is reported."""
        with caplog.at_level(logging.WARNING):
            result = expand_recipe_ingredients(lasagna, _lookup())

        assert [item.ingredient.name for item in result.ingredients] == [
            "Pasta sfoglia",
            "Besciamella",
        ]
        assert result.missing_semilavorati == ("Besciamella",)
        assert "semilavorato_not_found" in caplog.text

    def test_lookup_error_degrades_to_leaf(self, lasagna, caplog):
        """A failing lookup is logged and treated like a missing recipe."""

        def failing_lookup(name):
            raise DatabaseError("connection lost")

        with caplog.at_level(logging.WARNING):
            result = expand_recipe_ingredients(lasagna, failing_lookup)

        assert len(result.ingredients) == 2
        assert result.missing_semilavorati == ("Besciamella",)
        assert "lookup_failed" in caplog.text

    def test_input_not_modified(self, lasagna, besciamella):
        """Expansion never touches the recipe passed in."""
        before = lasagna.ingredients
        expand_recipe_ingredients(lasagna, _lookup(besciamella))
        assert lasagna.ingredients is before


class TestDepthGuardAndCycles:
    """Test termination on deep and self-referential chains."""

    def _self_referential(self):
        return RecipeData(
            id=7, name="Fondo bruno", is_semilavorato=True,
            ingredients=(_semi("Fondo bruno"),),
        )

    def test_self_reference_stops_at_max_depth(self, caplog):
        """A recipe containing itself expands to depths 0..max_depth-1 without raising."""
        recipe = self._self_referential()
        with caplog.at_level(logging.WARNING):
            result = expand_recipe_ingredients(recipe, _lookup(recipe))

        assert [item.depth for item in result.ingredients] == [0, 1, 2, 3, 4]
        assert result.max_depth_reached
        assert "max_depth_reached" in caplog.text

    def test_self_reference_reported_once(self):
        """The loop is reported once even though the branch is followed to the limit."""
        recipe = self._self_referential()
        result = expand_recipe_ingredients(recipe, _lookup(recipe))
        assert result.cycles == (("Fondo bruno", "Fondo bruno"),)

    def test_custom_max_depth(self):
        """The depth limit is configurable."""
        recipe = self._self_referential()
        result = expand_recipe_ingredients(recipe, _lookup(recipe), max_depth=2)
        assert [item.depth for item in result.ingredients] == [0, 1]

    def test_mutual_reference(self):
        """A -> B -> A is reported with the full path."""
        a = RecipeData(id=1, name="A", is_semilavorato=True, ingredients=(_semi("B"),))
        b = RecipeData(id=2, name="B", is_semilavorato=True, ingredients=(_semi("A"),))
        result = expand_recipe_ingredients(a, _lookup(a, b), max_depth=4)

        assert [item.ingredient.name for item in result.ingredients] == ["B", "A", "B", "A"]
        assert result.cycles == (("A", "B", "A"),)

    def test_mutual_reference_reported_once_at_default_depth(self):
        """Going round A -> B -> A several times still yields a single report."""
        a = RecipeData(id=1, name="A", is_semilavorato=True, ingredients=(_semi("B"),))
        b = RecipeData(id=2, name="B", is_semilavorato=True, ingredients=(_semi("A"),))
        result = expand_recipe_ingredients(a, _lookup(a, b), max_depth=5)

        assert len(result.ingredients) == 5
        assert len(result.cycles) == 1

    def test_same_loop_on_two_branches_reported_once(self):
        """A loop reached from two sibling lines is reported the first time only."""
        a = RecipeData(id=1, name="A", is_semilavorato=True, ingredients=(_semi("B"),))
        b = RecipeData(id=2, name="B", is_semilavorato=True, ingredients=(_semi("A"),))
        menu = RecipeData(id=3, name="Menu", ingredients=(_semi("B"), _semi("B")))
        result = expand_recipe_ingredients(menu, _lookup(a, b), max_depth=4)

        assert result.cycles == (("Menu", "B", "A", "B"),)

    def test_strict_mode_raises(self):
        """strict=True turns the first cycle into an error."""
        recipe = self._self_referential()
        with pytest.raises(CircularSemilavoratoError) as exc_info:
            expand_recipe_ingredients(recipe, _lookup(recipe), strict=True)
        assert exc_info.value.path == ["Fondo bruno", "Fondo bruno"]

    def test_strict_mode_allows_shared_sub_recipe(self, besciamella):
        """Using the same semilavorato twice on different branches is not a cycle."""
        recipe = RecipeData(
            id=1, name="Crespelle", ingredients=(_semi("Besciamella"), _semi("Besciamella")),
        )
        result = expand_recipe_ingredients(recipe, _lookup(besciamella), strict=True)
        assert len(result.ingredients) == 6
        assert result.cycles == ()


class TestDerivedViews:
    """Test base ingredients, allergens and expanded cost."""

    def test_base_ingredients_exclude_semilavorati(self, lasagna, besciamella):
        """Only raw purchasable lines remain."""
        result = expand_recipe_ingredients(lasagna, _lookup(besciamella))
        names = [item.ingredient.name for item in get_base_ingredients(result)]
        assert names == ["Pasta sfoglia", "Latte", "Burro"]

    def test_base_ingredients_accept_plain_list(self, lasagna, besciamella):
        """The derived views also accept a list of expanded lines."""
        result = expand_recipe_ingredients(lasagna, _lookup(besciamella))
        assert len(get_base_ingredients(list(result.ingredients))) == 3

    def test_allergens_union_deduplicated(self, lasagna, besciamella):
        """Allergen tags are collected over the whole tree without duplicates."""
        result = expand_recipe_ingredients(lasagna, _lookup(besciamella))
        allergens = get_allergens(result)
        assert sorted(allergens) == ["glutine", "lattosio", "uova"]

    def test_expanded_total_cost_counts_raw_lines_once(self, lasagna, besciamella):
        """Semilavorato lines are not charged on top of their children."""
        result = expand_recipe_ingredients(lasagna, _lookup(besciamella))
        # 4.0 * 0.5 + 1.5 * 1.0 + 8.0 * 0.1
        assert calculate_expanded_total_cost(result) == pytest.approx(4.3)
