"""
Guarded vendor calls.

Every vendor call on the hot path goes through ``guarded_call``: it
enforces the adapter's timeout, records latency, and converts any
failure into ``None`` so one slow or broken provider only costs its
own signal.
"""

import asyncio
import logging
import time
from typing import Awaitable, Optional, TypeVar

from ..metrics import metrics
from .base import VendorAdapter

logger = logging.getLogger("riskintel.vendors")

T = TypeVar("T")


async def guarded_call(adapter: VendorAdapter, call: Awaitable[T]) -> Optional[T]:
    """
    Await a vendor call with timeout and failure isolation.

    No retries are attempted; a timed-out signal is simply dropped.

    Args:
        adapter: Adapter the call belongs to (timeout, provider name)
        call: The pending adapter coroutine

    Returns:
        The adapter result, or None on timeout/error
    """
    vendor = f"{adapter.kind}:{adapter.provider}"
    start = time.perf_counter()
    try:
        return await asyncio.wait_for(call, timeout=adapter.timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning("Vendor %s timed out after %.1fs", vendor, adapter.timeout_seconds)
        metrics.vendor_failures.labels(vendor=vendor, reason="timeout").inc()
        return None
    except Exception as e:
        logger.error("Vendor %s failed: %s", vendor, e)
        metrics.vendor_failures.labels(vendor=vendor, reason=type(e).__name__).inc()
        return None
    finally:
        metrics.vendor_latency.labels(vendor=vendor).observe(
            (time.perf_counter() - start) * 1000
        )
