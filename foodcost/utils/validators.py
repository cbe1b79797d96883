"""
Input validation functions for the FoodCost core.

This module provides validation functions for all user inputs including:
- Numeric validation (positive, non-negative, ranges)
- String validation (length, required fields)
- Unit, yield and difficulty validation
- Record-level validation for ingredients, recipes, dishes and sales

Every validator returns a tuple; services raise ValidationError with the
collected messages.
"""

from typing import Any, Optional, Tuple

from .constants import (
    ALL_UNITS,
    ERROR_INVALID_DIFFICULTY,
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_POSITIVE,
    ERROR_INVALID_UNIT,
    ERROR_INVALID_YIELD,
    ERROR_REQUIRED_FIELD,
    MAX_CATEGORY_LENGTH,
    MAX_COST,
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_QUANTITY,
    MAX_YIELD_PERCENTAGE,
    MIN_YIELD_PERCENTAGE,
    RECIPE_DIFFICULTIES,
)


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Args:
        value: The string value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_string_length(
    value: str, max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a string doesn't exceed maximum length.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value and len(value) > max_length:
        return False, f"{field_name}: Must be {max_length} characters or less"
    return True, ""


def validate_positive_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a positive number (> 0).

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        num_value = float(value)
        if num_value <= 0:
            return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def validate_non_negative_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a non-negative number (>= 0).

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        num_value = float(value)
        if num_value < 0:
            return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def validate_number_range(
    value: Any, min_value: float, max_value: float, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a number is within a specified range (inclusive).

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        num_value = float(value)
        if num_value < min_value or num_value > max_value:
            return False, f"{field_name}: Must be between {min_value} and {max_value}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def validate_yield_percentage(value: Any, field_name: str = "Yield") -> Tuple[bool, str]:
    """
    Validate a yield percentage: greater than 0 and at most 100.

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        num_value = float(value)
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"

    if num_value <= MIN_YIELD_PERCENTAGE or num_value > MAX_YIELD_PERCENTAGE:
        return False, f"{field_name}: {ERROR_INVALID_YIELD}"
    return True, ""


def validate_unit(unit: str, field_name: str = "Unit") -> Tuple[bool, str]:
    """
    Validate that a unit is in the list of valid units.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not unit:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"

    if unit.strip().lower() not in ALL_UNITS:
        return False, f"{field_name}: {ERROR_INVALID_UNIT}"

    return True, ""


def validate_difficulty(difficulty: str, field_name: str = "Difficulty") -> Tuple[bool, str]:
    """Validate a recipe difficulty against RECIPE_DIFFICULTIES."""
    if difficulty not in RECIPE_DIFFICULTIES:
        return False, f"{field_name}: {ERROR_INVALID_DIFFICULTY}. Valid: {', '.join(RECIPE_DIFFICULTIES)}"
    return True, ""


def _collect(errors: list, result: Tuple[bool, str]) -> bool:
    is_valid, error = result
    if not is_valid:
        errors.append(error)
    return is_valid


def validate_ingredient_data(data: dict) -> Tuple[bool, list]:  # noqa: C901
    """
    Validate all fields for an ingredient.

    Args:
        data: Dictionary containing ingredient fields

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    # Required: Name
    if _collect(errors, validate_required_string(data.get("name"), "Name")):
        _collect(errors, validate_string_length(data.get("name"), MAX_NAME_LENGTH, "Name"))

    # Required: Primary unit and cost
    _collect(errors, validate_unit(data.get("unit"), "Unit"))
    if _collect(errors, validate_non_negative_number(data.get("cost_per_unit"), "Cost per unit")):
        _collect(
            errors, validate_number_range(data.get("cost_per_unit"), 0, MAX_COST, "Cost per unit")
        )

    # Optional: Yield (defaults to 100)
    if data.get("yield_percentage") is not None:
        _collect(errors, validate_yield_percentage(data.get("yield_percentage"), "Yield"))

    # Optional: Usage unit and per-piece weight
    if data.get("usage_unit"):
        _collect(errors, validate_unit(data.get("usage_unit"), "Usage unit"))
    if data.get("average_weight_per_piece_g") is not None:
        _collect(
            errors,
            validate_positive_number(
                data.get("average_weight_per_piece_g"), "Average weight per piece"
            ),
        )

    # Optional: Stock levels
    for key, label in (
        ("current_stock", "Current stock"),
        ("min_stock_threshold", "Minimum stock"),
        ("par_level", "Par level"),
    ):
        if data.get(key) is not None:
            _collect(errors, validate_non_negative_number(data.get(key), label))

    if data.get("category"):
        _collect(
            errors, validate_string_length(data.get("category"), MAX_CATEGORY_LENGTH, "Category")
        )
    if data.get("notes"):
        _collect(errors, validate_string_length(data.get("notes"), MAX_NOTES_LENGTH, "Notes"))

    return len(errors) == 0, errors


def validate_recipe_ingredient_data(data: dict, position: int = 1) -> Tuple[bool, list]:
    """
    Validate one recipe ingredient line.

    Args:
        data: Dictionary with ingredient_id, quantity and optional unit,
              recipe_yield_percentage, is_semilavorato
        position: 1-based line number for error messages

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []
    prefix = f"Ingredient line {position}"

    if not data.get("ingredient_id"):
        errors.append(f"{prefix} ingredient: {ERROR_REQUIRED_FIELD}")

    if _collect(errors, validate_non_negative_number(data.get("quantity"), f"{prefix} quantity")):
        _collect(
            errors,
            validate_number_range(data.get("quantity"), 0, MAX_QUANTITY, f"{prefix} quantity"),
        )

    if data.get("unit"):
        _collect(errors, validate_unit(data.get("unit"), f"{prefix} unit"))

    if data.get("recipe_yield_percentage") is not None:
        _collect(
            errors,
            validate_yield_percentage(data.get("recipe_yield_percentage"), f"{prefix} yield"),
        )

    return len(errors) == 0, errors


def validate_recipe_data(data: dict) -> Tuple[bool, list]:  # noqa: C901
    """
    Validate all fields for a recipe.

    Args:
        data: Dictionary containing recipe fields

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    if _collect(errors, validate_required_string(data.get("name"), "Recipe Name")):
        _collect(errors, validate_string_length(data.get("name"), MAX_NAME_LENGTH, "Recipe Name"))

    # Portions (must be positive)
    _collect(errors, validate_positive_number(data.get("portions"), "Portions"))

    # Optional fields
    if data.get("preparation_time") is not None:
        _collect(
            errors, validate_non_negative_number(data.get("preparation_time"), "Preparation Time")
        )

    if data.get("difficulty"):
        _collect(errors, validate_difficulty(data.get("difficulty")))

    if data.get("selling_price") is not None:
        _collect(errors, validate_non_negative_number(data.get("selling_price"), "Selling Price"))

    if data.get("category"):
        _collect(
            errors, validate_string_length(data.get("category"), MAX_CATEGORY_LENGTH, "Category")
        )

    if data.get("description"):
        _collect(
            errors,
            validate_string_length(data.get("description"), MAX_DESCRIPTION_LENGTH, "Description"),
        )

    if data.get("notes_chef"):
        _collect(errors, validate_string_length(data.get("notes_chef"), MAX_NOTES_LENGTH, "Notes"))

    for key in ("calories", "protein", "carbs", "fat"):
        if data.get(key) is not None:
            _collect(errors, validate_non_negative_number(data.get(key), key.capitalize()))

    return len(errors) == 0, errors


def validate_dish_data(data: dict) -> Tuple[bool, list]:
    """
    Validate all fields for a dish.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    if _collect(errors, validate_required_string(data.get("name"), "Dish Name")):
        _collect(errors, validate_string_length(data.get("name"), MAX_NAME_LENGTH, "Dish Name"))

    _collect(errors, validate_non_negative_number(data.get("selling_price"), "Selling Price"))

    if data.get("category"):
        _collect(
            errors, validate_string_length(data.get("category"), MAX_CATEGORY_LENGTH, "Category")
        )

    return len(errors) == 0, errors


def validate_sales_data(data: dict) -> Tuple[bool, list]:
    """
    Validate one sales entry.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    _collect(errors, validate_required_string(data.get("dish_name"), "Dish Name"))
    _collect(errors, validate_required_string(data.get("period"), "Period"))
    _collect(errors, validate_non_negative_number(data.get("units_sold"), "Units Sold"))

    if data.get("revenue") is not None:
        _collect(errors, validate_non_negative_number(data.get("revenue"), "Revenue"))

    return len(errors) == 0, errors


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string value by stripping whitespace and converting empty strings to None.

    Args:
        value: The string value to sanitize

    Returns:
        Sanitized string or None
    """
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None
