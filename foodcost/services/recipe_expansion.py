"""
Nested recipe expansion (semilavorato resolution).

Walks a recipe's ingredient lines depth-first. Every line is kept; a line
flagged as semilavorato is additionally replaced by the full expansion of
the semilavorato recipe bearing the ingredient's name, one level deeper.

- Depth guard: a branch reaching ``max_depth`` stops with a warning; what was
  collected so far is returned.
- Missing sub-recipes (or failed lookups) leave the line as a leaf.
- Cycles: the recipes on the current branch are tracked by id. Each loop is
  reported in the result and logged once, however often it is re-entered;
  the branch still runs until the depth guard cuts it.
  ``strict=True`` raises CircularSemilavoratoError instead.

Lookups are sequential and uncached: every call re-fetches sub-recipes.
"""

import logging
from typing import Callable, Iterable, List, Optional, Set, Tuple, Union

from foodcost.services.cost_calculator import calculate_line_cost
from foodcost.services.dto import ExpandedIngredient, ExpansionResult, RecipeData
from foodcost.services.exceptions import CircularSemilavoratoError, ServiceError
from foodcost.services.logging_utils import get_service_logger, log_operation
from foodcost.utils.constants import DEFAULT_MAX_EXPANSION_DEPTH

logger = get_service_logger(__name__)

# Resolves a semilavorato ingredient name to its recipe, or None
RecipeLookup = Callable[[str], Optional[RecipeData]]

ExpandedLines = Union[ExpansionResult, Iterable[ExpandedIngredient]]


class _ExpansionState:
    """Accumulator shared across the recursive walk."""

    def __init__(self, lookup: RecipeLookup, max_depth: int, strict: bool):
        self.lookup = lookup
        self.max_depth = max_depth
        self.strict = strict
        self.ingredients: List[ExpandedIngredient] = []
        self.missing: List[str] = []
        self.cycles: List[Tuple[str, ...]] = []
        self.seen_loops: Set[Tuple[str, ...]] = set()
        self.max_depth_reached = False


def _recipe_key(recipe: RecipeData):
    return recipe.id if recipe.id is not None else recipe.name


def _loop_signature(keys: List) -> Tuple[str, ...]:
    # Same loop entered at a different recipe gives the same signature
    loop = [str(key) for key in keys]
    start = loop.index(min(loop))
    return tuple(loop[start:] + loop[:start])


def _find_sub_recipe(state: _ExpansionState, ingredient_name: str) -> Optional[RecipeData]:
    try:
        return state.lookup(ingredient_name)
    except ServiceError as e:
        log_operation(
            logger,
            operation="expand_recipe",
            outcome="lookup_failed",
            level=logging.WARNING,
            semilavorato=ingredient_name,
            error=str(e),
        )
        return None


def _expand(state: _ExpansionState, recipe: RecipeData, depth: int, path: List[RecipeData]):
    if depth >= state.max_depth:
        state.max_depth_reached = True
        log_operation(
            logger,
            operation="expand_recipe",
            outcome="max_depth_reached",
            level=logging.WARNING,
            recipe_name=recipe.name,
            max_depth=state.max_depth,
        )
        return

    for line in recipe.ingredients:
        state.ingredients.append(
            ExpandedIngredient(
                line=line,
                depth=depth,
                parent_recipe_id=recipe.id,
                parent_recipe_name=recipe.name,
            )
        )

        if not line.is_semilavorato:
            continue

        sub_recipe = _find_sub_recipe(state, line.ingredient.name)
        if sub_recipe is None:
            state.missing.append(line.ingredient.name)
            log_operation(
                logger,
                operation="expand_recipe",
                outcome="semilavorato_not_found",
                level=logging.WARNING,
                semilavorato=line.ingredient.name,
                parent_recipe=recipe.name,
            )
            continue

        path_keys = [_recipe_key(r) for r in path]
        sub_key = _recipe_key(sub_recipe)
        branch_has_cycled = len(set(path_keys)) < len(path_keys)
        if sub_key in path_keys and not branch_has_cycled:
            cycle = tuple(r.name for r in path) + (sub_recipe.name,)
            if state.strict:
                raise CircularSemilavoratoError(list(cycle))
            signature = _loop_signature(path_keys[path_keys.index(sub_key):])
            if signature not in state.seen_loops:
                state.seen_loops.add(signature)
                state.cycles.append(cycle)
                log_operation(
                    logger,
                    operation="expand_recipe",
                    outcome="cycle_detected",
                    level=logging.WARNING,
                    cycle=" -> ".join(cycle),
                )

        _expand(state, sub_recipe, depth + 1, path + [sub_recipe])


def expand_recipe_ingredients(
    recipe: RecipeData,
    lookup: RecipeLookup,
    max_depth: int = DEFAULT_MAX_EXPANSION_DEPTH,
    strict: bool = False,
) -> ExpansionResult:
    """
    Fully expand a recipe's ingredient tree.

    Args:
        recipe: Recipe to expand
        lookup: Resolves a semilavorato ingredient name to its recipe
        max_depth: Nesting levels to follow (default 5)
        strict: Raise on the first semilavorato cycle instead of reporting it

    Returns:
        ExpansionResult with lines in depth-first order

    Raises:
        CircularSemilavoratoError: Only when ``strict`` is set and a cycle exists

    Example:
        A recipe with one raw line and one semilavorato line whose recipe has
        two lines expands to four entries: depths 0, 0, 1, 1.
    """
    state = _ExpansionState(lookup, max_depth, strict)
    _expand(state, recipe, 0, [recipe])

    log_operation(
        logger,
        operation="expand_recipe",
        outcome="success",
        level=logging.DEBUG,
        recipe_name=recipe.name,
        expanded_count=len(state.ingredients),
    )

    return ExpansionResult(
        ingredients=tuple(state.ingredients),
        max_depth_reached=state.max_depth_reached,
        missing_semilavorati=tuple(state.missing),
        cycles=tuple(state.cycles),
    )


def _lines(expanded: ExpandedLines) -> Iterable[ExpandedIngredient]:
    if isinstance(expanded, ExpansionResult):
        return expanded.ingredients
    return expanded


def get_base_ingredients(expanded: ExpandedLines) -> List[ExpandedIngredient]:
    """Expanded lines that are raw, purchasable ingredients."""
    return [item for item in _lines(expanded) if not item.is_semilavorato]


def get_allergens(expanded: ExpandedLines) -> List[str]:
    """
    Union of allergen tags across the whole expanded tree.

    Returns:
        Deduplicated tags in first-seen order
    """
    seen = {}
    for item in _lines(expanded):
        for tag in item.ingredient.allergens:
            seen.setdefault(tag, None)
    return list(seen)


def calculate_expanded_total_cost(expanded: ExpandedLines) -> float:
    """
    Cost of every raw ingredient in the expanded tree, at its listed quantity.

    Semilavorato lines are skipped so their cost is not counted twice.
    """
    return sum((calculate_line_cost(item.line) for item in get_base_ingredients(expanded)), 0.0)
