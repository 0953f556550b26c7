"""
Simulation control: switch the virtual clock between real time and a
simulated date.
"""
import logging

from simulator.cache import invalidate_date_views
from simulator.clock import (
    SimulationContext,
    SimulationContextUnavailable,
    get_effective_today,
    read_override,
)
from studio.results import ERROR_CONTEXT, operation_failure, operation_success

logger = logging.getLogger(__name__)


def set_simulation_date(context, value) -> dict:
    """
    Pin the effective date to ``value`` for the next 24 hours.

    The value is stored as given; the resolver ignores it if it is not a
    valid date.
    """
    if not isinstance(context, SimulationContext):
        logger.error("Cannot set simulation date: no simulation context for this call")
        return operation_failure('Simulation date could not be set.', ERROR_CONTEXT)

    try:
        context.set(value)
    except SimulationContextUnavailable as e:
        logger.error(f"Cannot set simulation date: {str(e)}")
        return operation_failure('Simulation date could not be set.', ERROR_CONTEXT)

    invalidate_date_views()
    logger.info(f"Simulation date set to {value}")
    return operation_success(str(value))


def clear_simulation_date(context) -> dict:
    """Return to real time. Clearing when nothing is set is not an error."""
    if not isinstance(context, SimulationContext):
        logger.error("Cannot clear simulation date: no simulation context for this call")
        return operation_failure('Simulation could not be stopped.', ERROR_CONTEXT)

    try:
        context.clear()
    except SimulationContextUnavailable as e:
        logger.error(f"Cannot clear simulation date: {str(e)}")
        return operation_failure('Simulation could not be stopped.', ERROR_CONTEXT)

    invalidate_date_views()
    logger.info("Simulation cleared, back to real time")
    return operation_success(True)


def get_simulation_status(source) -> dict:
    return {
        'is_simulating': read_override(source) is not None,
        'effective_date': get_effective_today(source),
    }
