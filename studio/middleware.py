"""Custom middleware for the studio API."""
import logging
import sys
from django.utils.deprecation import MiddlewareMixin

from simulator.clock import SimulationContext

logger = logging.getLogger('studio.middleware')
# Also log to stdout for Gunicorn
handler = logging.StreamHandler(sys.stdout)
handler.setLevel(logging.INFO)
formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
handler.setFormatter(formatter)
logger.addHandler(handler)
logger.setLevel(logging.INFO)


class SimulationMiddleware(MiddlewareMixin):
    """
    Give every request its own simulation context.

    Views reach it as ``request.simulation``; changes made through it are
    written to the response as the ``x-simulation-date`` cookie.
    """

    def process_request(self, request):
        request.simulation = SimulationContext(request)
        return None

    def process_response(self, request, response):
        context = getattr(request, 'simulation', None)
        if not isinstance(context, SimulationContext) or context.closed:
            return response

        if context.has_pending_change:
            value = context.read()
            if value is None:
                logger.info(f"Simulation cookie cleared for {request.path}")
            else:
                logger.info(f"Simulation cookie set to {value} for {request.path}")
        context.apply(response)
        return response
