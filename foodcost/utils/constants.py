"""
Constants and enumerations for the FoodCost back-office core.

This module defines all system-wide constants including:
- Unit types (weight, volume, piece, other)
- Food-cost and menu-engineering thresholds
- Validation limits
- Application metadata
"""

from typing import List, Dict

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "FoodCost"

# ============================================================================
# Unit Types
# ============================================================================

# Weight units
WEIGHT_UNITS: List[str] = [
    "g",  # Grammi
    "kg",  # Chilogrammi
    "etti",  # Etti (100 g)
]

# Volume units
VOLUME_UNITS: List[str] = [
    "ml",  # Millilitri
    "l",  # Litri
    "dl",  # Decilitri
    "cucchiaio",  # Tablespoon
    "cucchiaino",  # Teaspoon
    "tazza",  # Cup
]

# Piece/count units
PIECE_UNITS: List[str] = [
    "pz",  # Pezzi
    "spicchio",  # Clove
    "foglia",  # Leaf
]

# Units with no physical dimension
OTHER_UNITS: List[str] = [
    "porzione",
]

# All valid units combined
ALL_UNITS: List[str] = WEIGHT_UNITS + VOLUME_UNITS + PIECE_UNITS + OTHER_UNITS

UNIT_TYPE_WEIGHT = "weight"
UNIT_TYPE_VOLUME = "volume"
UNIT_TYPE_PIECE = "piece"
UNIT_TYPE_OTHER = "other"
UNIT_TYPE_UNKNOWN = "unknown"

# Display names for units
UNIT_NAMES: Dict[str, str] = {
    "g": "Grammi",
    "kg": "Chilogrammi",
    "etti": "Etti",
    "ml": "Millilitri",
    "l": "Litri",
    "dl": "Decilitri",
    "cucchiaio": "Cucchiai",
    "cucchiaino": "Cucchiaini",
    "tazza": "Tazze",
    "pz": "Pezzi",
    "spicchio": "Spicchi",
    "foglia": "Foglie",
    "porzione": "Porzioni",
}

# ============================================================================
# Recipe Constants
# ============================================================================

RECIPE_DIFFICULTIES: List[str] = ["facile", "media", "difficile"]

# Maximum semilavorato nesting followed by the expander
DEFAULT_MAX_EXPANSION_DEPTH = 5

# ============================================================================
# Food Cost Thresholds
# ============================================================================

# Food-cost percentage bands for sellable recipes
FOOD_COST_OPTIMAL_MAX_PCT = 25.0
FOOD_COST_ATTENTION_MAX_PCT = 35.0

# Absolute per-portion cost bands (EUR) for recipes with no selling price
PRODUCTION_COST_LOW_MAX = 3.0
PRODUCTION_COST_MEDIUM_MAX = 8.0

# Dish status bands used by the food-cost dashboard
DEFAULT_CRITICAL_THRESHOLD_PCT = 35.0
DEFAULT_TARGET_THRESHOLD_PCT = 30.0
GOOD_STATUS_THRESHOLD_PCT = 30.0

# Tolerance when comparing stored and expected effective costs (EUR)
EFFECTIVE_COST_TOLERANCE = 0.01

# ============================================================================
# Menu Engineering
# ============================================================================

# Share of the even-split sales mix a dish must exceed to be "popular"
HURDLE_RATE_MULTIPLIER = 0.70

# Popularity score is sales mix scaled and clamped for display
POPULARITY_SCALE = 10.0
POPULARITY_MIN = 1.0
POPULARITY_MAX = 100.0

MENU_CATEGORY_STAR = "star"
MENU_CATEGORY_PLOWHORSE = "plowhorse"
MENU_CATEGORY_PUZZLE = "puzzle"
MENU_CATEGORY_DOG = "dog"

# ============================================================================
# Validation Constants
# ============================================================================

# String length limits
MAX_NAME_LENGTH = 200
MAX_CATEGORY_LENGTH = 100
MAX_UNIT_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 500
MAX_NOTES_LENGTH = 2000

# Numeric limits
MIN_QUANTITY = 0.0
MAX_QUANTITY = 999999.99
MIN_COST = 0.0
MAX_COST = 999999.99
MIN_YIELD_PERCENTAGE = 0.0
MAX_YIELD_PERCENTAGE = 100.0

# Decimal precision
CURRENCY_DECIMAL_PLACES = 2

# ============================================================================
# Database Constants
# ============================================================================

DATABASE_FILENAME = "foodcost.db"

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Please enter a valid number"
ERROR_INVALID_POSITIVE = "Value must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Value must be zero or greater"
ERROR_INVALID_UNIT = "Invalid unit type"
ERROR_INVALID_YIELD = "Yield must be greater than 0 and at most 100"
ERROR_INVALID_DIFFICULTY = "Invalid difficulty"
