"""Returning-customer lookup for triage."""

import asyncio
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class QuoteHistoryLookup(Protocol):
    """Counts quotes a customer already requested from a tenant."""

    async def count_previous_quotes(self, customer_email: str, tenant_id: str) -> int | None: ...


async def query_previous_quote_count(
    lookup: QuoteHistoryLookup | None,
    customer_email: str,
    tenant_id: str,
    timeout: float = 2.0,
) -> int:
    """
    Query previous quote count for returning customer detection.

    Best-effort: returns 0 when the lookup is missing, slow or fails, so
    triage is never blocked.
    """
    if lookup is None or not customer_email:
        return 0

    try:
        count = await asyncio.wait_for(
            lookup.count_previous_quotes(customer_email, tenant_id), timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.warning("Previous quote lookup timed out after %.1fs", timeout)
        return 0
    except Exception as e:
        logger.warning(f"Previous quote lookup failed: {e}")
        return 0

    if count is None or count < 0:
        return 0
    return int(count)
