"""
Virtual clock.

Every date-dependent computation in the studio (payment due dates, freeze
windows, payout maturity) asks this module what "today" is. An operator can
pin that date through a signed, 24 hour cookie; without a usable override the
real local date is returned.
"""
import logging
import re
from datetime import date, datetime, time
from typing import Optional

from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')

_UNSET = object()


class SimulationContextUnavailable(Exception):
    """The override storage of a request cannot be read or written."""


class SimulationContext:
    """
    Request-scoped handle on the simulation override.

    Reads come from the signed cookie sent with the request. Writes are kept
    on the context, so later reads in the same request already see them, and
    are written onto the response by ``studio.middleware.SimulationMiddleware``
    which then closes the context.
    """

    def __init__(self, request):
        self.request = request
        self._pending = _UNSET
        self.closed = False

    def read(self) -> Optional[str]:
        if self._pending is not _UNSET:
            return self._pending  # type: ignore
        return _read_cookie(self.request)

    def set(self, value: str) -> None:
        self._ensure_open()
        self._pending = str(value)

    def clear(self) -> None:
        self._ensure_open()
        self._pending = None

    @property
    def has_pending_change(self) -> bool:
        return self._pending is not _UNSET

    def apply(self, response) -> None:
        """Write the pending change (if any) onto ``response`` and close."""
        self._ensure_open()
        name = settings.SIMULATION_COOKIE_NAME
        if self._pending is None:
            response.delete_cookie(name, path='/', samesite='Lax')
        elif self._pending is not _UNSET:
            response.set_signed_cookie(
                name,
                self._pending,
                salt=settings.SIMULATION_COOKIE_SALT,
                max_age=settings.SIMULATION_COOKIE_MAX_AGE,
                path='/',
                secure=settings.SIMULATION_COOKIE_SECURE,
                httponly=True,
                samesite='Lax',
            )
        self.closed = True

    def _ensure_open(self) -> None:
        if self.closed:
            raise SimulationContextUnavailable('The response for this request has already been sent.')


def _read_cookie(request) -> Optional[str]:
    try:
        return request.get_signed_cookie(
            settings.SIMULATION_COOKIE_NAME,
            default=None,
            salt=settings.SIMULATION_COOKIE_SALT,
            max_age=settings.SIMULATION_COOKIE_MAX_AGE,
        )
    except Exception as e:
        logger.debug(f"Simulation cookie unreadable, using real time: {str(e)}")
        return None


def get_context(source) -> Optional[SimulationContext]:
    """
    Find the simulation context for ``source``.

    ``source`` may be a SimulationContext, a Django or DRF request, or None.
    A request that did not pass through the middleware gets a read-only
    context of its own.
    """
    if source is None:
        return None
    if isinstance(source, SimulationContext):
        return source
    context = getattr(source, 'simulation', None)
    if isinstance(context, SimulationContext):
        return context
    if hasattr(source, 'COOKIES'):
        return SimulationContext(source)
    return None


def read_override(source) -> Optional[str]:
    """Raw override value (valid or not), or None when nothing is persisted."""
    context = get_context(source)
    if context is None:
        return None
    try:
        return context.read()
    except Exception as e:
        logger.debug(f"Simulation override unreadable, using real time: {str(e)}")
        return None


def is_valid_date_string(value) -> bool:
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def get_effective_today(source=None) -> str:
    """
    The effective "today" as ``YYYY-MM-DD``.

    Returns the override verbatim when it is a valid calendar date, the real
    local date otherwise. Never raises.
    """
    override = read_override(source)
    if override is not None and is_valid_date_string(override):
        return override
    return timezone.localdate().isoformat()


def get_effective_date(source=None) -> date:
    return date.fromisoformat(get_effective_today(source))


def get_effective_now(source=None) -> datetime:
    """Effective today at 00:00:00, aware in the current time zone."""
    return timezone.make_aware(datetime.combine(get_effective_date(source), time.min))
