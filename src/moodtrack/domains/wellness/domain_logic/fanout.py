"""Concurrent lookups where a failed branch counts as "no data"."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable

logger = logging.getLogger(__name__)


async def _absent_on_error(name: str, awaitable: Awaitable[Any], absent: Any) -> Any:
    try:
        return await awaitable
    except Exception as exc:
        logger.warning("Lookup %r failed, treating as no data: %s", name, exc)
        return absent


async def gather_or_absent(
    lookups: dict[str, Awaitable[Any]],
    *,
    absent: Any = None,
) -> dict[str, Any]:
    """Run named lookups concurrently and wait for all of them.

    A lookup that raises yields ``absent`` under its name; the other lookups
    are unaffected.

    Usage::

        results = await gather_or_absent({
            "heart_rate": provider.time_series(MetricKind.HEART_RATE, start, end),
            "moods": mood_log.moods_for_day(day),
        }, absent=[])
    """
    names = list(lookups)
    values = await asyncio.gather(
        *(_absent_on_error(name, lookups[name], absent) for name in names)
    )
    return dict(zip(names, values))
