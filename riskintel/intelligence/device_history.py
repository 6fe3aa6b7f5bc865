"""
Device History Store

Tracks which users have been seen on each device fingerprint. Both the
device/IP composer and the internal signal collector read it; within a
single analysis it is consulted once and the result is shared.

Cache layout (namespace ``device_history``, 30-day TTL):
    {fingerprint_hash}:users    -> [user_id, ...]
    {fingerprint_hash}:history  -> {"first_seen": iso, "last_seen": iso}

The latest check per (device, user) is kept in ``device_check`` (1 hour).

The read-then-append sequence is not atomic; two concurrent first checks
of the same device may both report ``is_new_device``. A per-device lock
(or a Redis SADD-based set) would close the gap.
"""

import asyncio
import logging
from datetime import datetime, UTC
from typing import Any, Optional

from ..cache import SignalCache, hash_key
from ..config import CacheTTLs
from ..schemas import DeviceFingerprintResult

logger = logging.getLogger("riskintel.intelligence")

HISTORY_NAMESPACE = "device_history"
CHECK_NAMESPACE = "device_check"

SUSPICIOUS_USER_COUNT = 3
HIGH_SHARING_USER_COUNT = 5


def _parse_time(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None


class DeviceHistoryStore:
    """Device → user association and first/last-seen history."""

    def __init__(self, cache: SignalCache, ttls: Optional[CacheTTLs] = None):
        """
        Initialize store.

        Args:
            cache: Signal cache holding the history
            ttls: Cache TTLs (history and per-check lifetimes)
        """
        self.cache = cache
        self.ttls = ttls or CacheTTLs()

    @staticmethod
    def _device_key(device_fingerprint: str) -> str:
        return hash_key(device_fingerprint)

    async def check(self, device_fingerprint: str, user_id: int) -> DeviceFingerprintResult:
        """
        Score a device for a user and record the observation.

        Recording is idempotent per (device, user): repeat checks leave the
        associated user list unchanged and only refresh ``last_seen``.

        Args:
            device_fingerprint: Client device fingerprint
            user_id: User seen on the device

        Returns:
            DeviceFingerprintResult judged against the prior history
        """
        device_key = self._device_key(device_fingerprint)
        users_key = f"{device_key}:users"
        history_key = f"{device_key}:history"

        stored_users, history = await asyncio.gather(
            self.cache.get(users_key, HISTORY_NAMESPACE),
            self.cache.get(history_key, HISTORY_NAMESPACE),
        )
        previous_users = [int(u) for u in stored_users] if isinstance(stored_users, list) else []
        history = history if isinstance(history, dict) else {}

        is_new_device = user_id not in previous_users
        prior_count = len(previous_users)
        is_suspicious = prior_count > SUSPICIOUS_USER_COUNT

        risk_score = 10
        flags = []
        if is_new_device:
            risk_score += 40
            flags.append("new_device")
        if is_suspicious:
            risk_score += 30
            flags.append("suspicious_device_reuse")
        if prior_count > HIGH_SHARING_USER_COUNT:
            risk_score += 20
            flags.append("high_device_sharing")

        now = datetime.now(UTC)
        first_seen = _parse_time(history.get("first_seen")) or now
        last_seen = _parse_time(history.get("last_seen")) or now

        associated_users = previous_users + [user_id] if is_new_device else previous_users

        result = DeviceFingerprintResult(
            device_id=device_fingerprint,
            is_new_device=is_new_device,
            is_suspicious=is_suspicious,
            device_count=len(associated_users),
            first_seen=first_seen,
            last_seen=last_seen,
            associated_users=associated_users,
            risk_score=min(100, risk_score),
            flags=flags,
            metadata={
                "previousUserCount": prior_count,
                "firstObservation": not history,
            },
        )

        ttl = self.ttls.device_history
        await asyncio.gather(
            self.cache.set(users_key, associated_users, ttl, HISTORY_NAMESPACE),
            self.cache.set(
                history_key,
                {"first_seen": first_seen.isoformat(), "last_seen": now.isoformat()},
                ttl,
                HISTORY_NAMESPACE,
            ),
            self.cache.set(
                f"{device_key}:{user_id}", result, self.ttls.device_check, CHECK_NAMESPACE
            ),
        )

        if is_suspicious:
            logger.info(
                "Device %s... shared across %d users", device_key[:12], len(associated_users)
            )
        return result

    async def last_check(
        self,
        device_fingerprint: str,
        user_id: int,
    ) -> Optional[DeviceFingerprintResult]:
        """Return the latest cached check for (device, user), if still live."""
        cached = await self.cache.get(
            f"{self._device_key(device_fingerprint)}:{user_id}", CHECK_NAMESPACE
        )
        if cached is None:
            return None
        return DeviceFingerprintResult.model_validate(cached)
