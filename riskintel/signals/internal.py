"""
Internal Signal Collection

Derives risk signals from data we already hold: the user account, the
user's transaction history and the device history store.

Signals:
- account_age: new accounts are riskier
- transaction_history: dispute ratio over recent completed transactions
- device_fingerprint: new or widely shared devices
- velocity_checks: transaction count in the trailing 24 hours
- behavior_pattern: amount deviation from the user's average
"""

import logging
from datetime import datetime, timedelta, UTC
from typing import Optional

from ..config import SignalWeights
from ..intelligence import DeviceHistoryStore
from ..metrics import metrics
from ..schemas import (
    DeviceFingerprintResult,
    Signal,
    SignalNames,
    SignalType,
    TransactionRecord,
    TransactionStatus,
    UserRecord,
)
from ..storage import RiskDataRepository

logger = logging.getLogger("riskintel.signals")

HISTORY_LIMIT = 100


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps from storage as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class InternalSignalCollector:
    """
    Collects signals from internal data.

    A user that does not exist produces no signals; the engine then
    reports a zero-confidence verdict rather than an error.
    """

    def __init__(
        self,
        repository: RiskDataRepository,
        device_history: Optional[DeviceHistoryStore] = None,
        weights: Optional[SignalWeights] = None,
    ):
        """
        Initialize collector.

        Args:
            repository: User/transaction store
            device_history: Device history store (device signal skipped if None)
            weights: Signal weights
        """
        self.repository = repository
        self.device_history = device_history
        self.weights = weights or SignalWeights()

    async def collect(
        self,
        user_id: int,
        transaction_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        device_fingerprint: Optional[str] = None,
        device_result: Optional[DeviceFingerprintResult] = None,
    ) -> list[Signal]:
        """
        Collect all internal signals for a transaction.

        Args:
            user_id: Transaction owner
            transaction_id: Transaction being assessed
            ip_address: Client IP (recorded on signal metadata only)
            user_agent: Client user agent (recorded on signal metadata only)
            device_fingerprint: Device fingerprint, checked against history
            device_result: Device check already made in this analysis;
                reused so history is recorded once per request

        Returns:
            Signals in a fixed order; empty if the user is unknown
        """
        try:
            user = await self.repository.get_user(user_id)
            if user is None:
                logger.info("No user %s; no internal signals", user_id)
                return []

            history = await self.repository.get_transactions_by_user(
                user_id, limit=HISTORY_LIMIT
            )
            current = await self.repository.get_transaction(transaction_id)
        except Exception as e:
            logger.error("Internal signal collection failed for user %s: %s", user_id, e)
            metrics.stage_failures.labels(stage="internal_signals").inc()
            return []

        now = datetime.now(UTC)
        signals = [
            self.account_age_signal(user, now),
            self.transaction_history_signal(history),
        ]

        device_signal = await self.device_signal(device_fingerprint, user_id, device_result)
        if device_signal is not None:
            signals.append(device_signal)

        signals.append(self.velocity_signal(history, now))

        behavior = self.behavior_signal(history, current)
        if behavior is not None:
            signals.append(behavior)

        if ip_address or user_agent:
            for signal in signals:
                signal.metadata.setdefault("ipAddress", ip_address)
                signal.metadata.setdefault("userAgent", user_agent)

        return signals

    # =========================================================================
    # Individual signals
    # =========================================================================

    def account_age_signal(self, user: UserRecord, now: datetime) -> Signal:
        age_days = (now - _as_utc(user.created_at)).total_seconds() / 86400

        if age_days < 7:
            score = 60
        elif age_days < 30:
            score = 30
        else:
            score = 10

        return Signal(
            type=SignalType.INTERNAL,
            name=SignalNames.ACCOUNT_AGE,
            score=score,
            weight=self.weights.account_age,
            metadata={"accountAgeDays": round(age_days, 2)},
        )

    def transaction_history_signal(self, history: list[TransactionRecord]) -> Signal:
        """Dispute ratio over completed transactions; cold start scores 40."""
        completed = sum(1 for t in history if t.status == TransactionStatus.COMPLETED)
        disputed = sum(1 for t in history if t.status == TransactionStatus.DISPUTED)

        if completed == 0:
            ratio = None
            score = 40
        else:
            ratio = disputed / completed * 100
            if ratio > 20:
                score = 80
            elif ratio > 10:
                score = 50
            else:
                score = 15

        return Signal(
            type=SignalType.INTERNAL,
            name=SignalNames.TRANSACTION_HISTORY,
            score=score,
            weight=self.weights.transaction_history,
            metadata={
                "totalTransactions": len(history),
                "completedTransactions": completed,
                "disputedTransactions": disputed,
                "disputeRatio": round(ratio, 2) if ratio is not None else None,
            },
        )

    async def device_signal(
        self,
        device_fingerprint: Optional[str],
        user_id: int,
        device_result: Optional[DeviceFingerprintResult] = None,
    ) -> Optional[Signal]:
        if device_result is None:
            if not device_fingerprint or self.device_history is None:
                return None
            try:
                device_result = await self.device_history.check(device_fingerprint, user_id)
            except Exception as e:
                logger.error("Device history check failed: %s", e)
                metrics.stage_failures.labels(stage="device_fingerprint").inc()
                return None

        if device_result.is_new_device:
            score = 50
        elif device_result.is_suspicious:
            score = 70
        else:
            score = 10

        return Signal(
            type=SignalType.INTERNAL,
            name=SignalNames.DEVICE_FINGERPRINT,
            score=score,
            weight=self.weights.device_fingerprint,
            metadata={
                "isNewDevice": device_result.is_new_device,
                "isSuspicious": device_result.is_suspicious,
                "deviceCount": device_result.device_count,
            },
        )

    def velocity_signal(self, history: list[TransactionRecord], now: datetime) -> Signal:
        window_start = now - timedelta(hours=24)
        count_24h = sum(1 for t in history if _as_utc(t.created_at) >= window_start)

        if count_24h > 10:
            score = 70
        elif count_24h > 5:
            score = 40
        else:
            score = 10

        return Signal(
            type=SignalType.INTERNAL,
            name=SignalNames.VELOCITY_CHECKS,
            score=score,
            weight=self.weights.velocity_checks,
            metadata={"transactions24h": count_24h},
        )

    def behavior_signal(
        self,
        history: list[TransactionRecord],
        current: Optional[TransactionRecord],
    ) -> Optional[Signal]:
        """Amount deviation from the historical average, in multiples of it."""
        if not history or current is None:
            return None

        avg_amount = sum(t.amount for t in history) / len(history)
        if avg_amount <= 0:
            return None

        deviation = abs(current.amount - avg_amount) / avg_amount
        if deviation > 5:
            score = 60
        elif deviation > 2:
            score = 30
        else:
            score = 10

        return Signal(
            type=SignalType.INTERNAL,
            name=SignalNames.BEHAVIOR_PATTERN,
            score=score,
            weight=self.weights.behavior_pattern,
            metadata={
                "averageAmount": round(avg_amount, 2),
                "currentAmount": current.amount,
                "deviation": round(deviation, 4),
            },
        )
