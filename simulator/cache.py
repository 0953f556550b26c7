"""
Invalidation of cached views that depend on the effective date.

Cached payloads are keyed by a generation number; bumping the generation makes
every existing entry unreachable, so the next read recomputes it.
"""
import logging
from typing import Optional

from django.core.cache import cache

logger = logging.getLogger(__name__)

GENERATION_KEY = 'studio:date-views:generation'


def get_generation() -> int:
    try:
        generation = cache.get(GENERATION_KEY)
        if generation is None:
            cache.add(GENERATION_KEY, 1, timeout=None)
            generation = cache.get(GENERATION_KEY, 1)
        return int(generation)
    except Exception as e:
        logger.error(f"Failed to read date view generation from cache: {str(e)}")
        return 0


def date_view_cache_key(name: str, effective_today: str) -> str:
    return f'studio:{name}:{get_generation()}:{effective_today}'


def invalidate_date_views() -> Optional[int]:
    """
    Make every cached date-dependent view stale.

    Returns the new generation, or None if the cache could not be reached.
    """
    try:
        try:
            generation = cache.incr(GENERATION_KEY)
        except ValueError:
            # Key missing: anything cached so far used generation 1
            generation = 2
            cache.set(GENERATION_KEY, generation, timeout=None)
        logger.info(f"Date-dependent views invalidated (generation {generation})")
        return generation
    except Exception as e:
        logger.error(f"Failed to invalidate date-dependent views: {str(e)}")
        return None
