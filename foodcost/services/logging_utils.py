"""Structured logging for the costing services.

Every service logs under the ``foodcost.services`` namespace and reports
operations as ``"<operation>: <outcome>"`` with the entity details attached
to the record as extra attributes:

    logger = get_service_logger(__name__)
    log_operation(logger, "calculate_recipe_cost", "success", recipe_id=12, total_cost=18.4)
"""

import logging
from typing import Any

SERVICE_LOGGER_PREFIX = "foodcost.services"


def get_service_logger(name: str) -> logging.Logger:
    """
    Logger for a service module.

    Dotted module paths are reduced to their last component, so both
    ``"recipe_expansion"`` and ``"foodcost.services.recipe_expansion"`` map to
    ``foodcost.services.recipe_expansion``.
    """
    module = name.rsplit(".", 1)[-1]
    return logging.getLogger(f"{SERVICE_LOGGER_PREFIX}.{module}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Emit one record for a service operation.

    Args:
        logger: Target logger, usually from get_service_logger()
        operation: What ran, e.g. "expand_recipe"
        outcome: How it ended, e.g. "success" or "max_depth_reached"
        level: WARNING for degraded results such as skipped conversions
        **context: Ids, units, depths and totals stored on the record
    """
    logger.log(
        level,
        f"{operation}: {outcome}",
        extra={"operation": operation, "outcome": outcome, **context},
    )
