"""
Internal Signal Tests

Account age, dispute history, device, velocity and behavior signals
derived from the in-memory repository.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from riskintel.intelligence import DeviceHistoryStore
from riskintel.schemas import (
    DeviceFingerprintResult,
    SignalNames,
    SignalType,
    TransactionRecord,
    TransactionStatus,
    UserRecord,
)
from riskintel.signals import InternalSignalCollector
from riskintel.storage import InMemoryRiskDataRepository

from conftest import NEW_USER_ID, NEW_USER_TXN_ID, TRUSTED_TXN_ID, TRUSTED_USER_ID


def by_name(signals):
    return {s.name: s for s in signals}


@pytest.fixture
def collector(repository, cache) -> InternalSignalCollector:
    return InternalSignalCollector(repository, DeviceHistoryStore(cache))


def repo_with(now, age_days, transactions=()):
    user = UserRecord(id=5, created_at=now - timedelta(days=age_days))
    return InMemoryRiskDataRepository(users=[user], transactions=transactions)


def txn(txn_id, now, status=TransactionStatus.COMPLETED, amount=100.0, age=timedelta(days=3)):
    return TransactionRecord(
        id=txn_id,
        user_id=5,
        amount=amount,
        status=status,
        created_at=now - age,
    )


class TestCollector:
    """Tests for the full collection pass."""

    @pytest.mark.asyncio
    async def test_trusted_user_signals(self, collector):
        signals = by_name(await collector.collect(TRUSTED_USER_ID, TRUSTED_TXN_ID, "203.0.113.10"))

        assert signals[SignalNames.ACCOUNT_AGE].score == 10
        assert signals[SignalNames.TRANSACTION_HISTORY].score == 15
        assert signals[SignalNames.VELOCITY_CHECKS].score == 10
        assert signals[SignalNames.BEHAVIOR_PATTERN].score == 10
        assert SignalNames.DEVICE_FINGERPRINT not in signals
        assert all(s.type == SignalType.INTERNAL for s in signals.values())

    @pytest.mark.asyncio
    async def test_new_user_cold_start(self, collector):
        signals = by_name(await collector.collect(NEW_USER_ID, NEW_USER_TXN_ID))

        assert signals[SignalNames.ACCOUNT_AGE].score == 60
        assert signals[SignalNames.TRANSACTION_HISTORY].score == 40
        assert signals[SignalNames.TRANSACTION_HISTORY].metadata["disputeRatio"] is None

    @pytest.mark.asyncio
    async def test_missing_user_yields_no_signals(self, collector):
        assert await collector.collect(999, 1) == []

    @pytest.mark.asyncio
    async def test_storage_error_yields_no_signals(self, cache):
        repository = InMemoryRiskDataRepository()
        repository.get_user = AsyncMock(side_effect=ConnectionError("db down"))
        collector = InternalSignalCollector(repository, DeviceHistoryStore(cache))

        assert await collector.collect(1, 1) == []

    @pytest.mark.asyncio
    async def test_weights_come_from_config(self, collector):
        signals = by_name(await collector.collect(TRUSTED_USER_ID, TRUSTED_TXN_ID))

        assert signals[SignalNames.ACCOUNT_AGE].weight == 0.10
        assert signals[SignalNames.TRANSACTION_HISTORY].weight == 0.15
        assert signals[SignalNames.VELOCITY_CHECKS].weight == 0.08
        assert signals[SignalNames.BEHAVIOR_PATTERN].weight == 0.10


class TestAccountAge:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("age_days,expected", [(2, 60), (6.9, 60), (7, 30), (29, 30), (30, 10), (400, 10)])
    async def test_age_bands(self, now, age_days, expected):
        collector = InternalSignalCollector(repo_with(now, age_days))
        signals = by_name(await collector.collect(5, 1))
        assert signals[SignalNames.ACCOUNT_AGE].score == expected


class TestTransactionHistory:

    @pytest.mark.asyncio
    async def test_high_dispute_ratio(self, now):
        transactions = [txn(i, now) for i in range(1, 5)] + [txn(10, now, TransactionStatus.DISPUTED)]
        collector = InternalSignalCollector(repo_with(now, 100, transactions))

        signal = by_name(await collector.collect(5, 1))[SignalNames.TRANSACTION_HISTORY]

        # 1 disputed / 4 completed = 25%
        assert signal.score == 80
        assert signal.metadata["disputeRatio"] == 25.0

    @pytest.mark.asyncio
    async def test_moderate_dispute_ratio(self, now):
        transactions = [txn(i, now) for i in range(1, 9)] + [txn(10, now, TransactionStatus.DISPUTED)]
        collector = InternalSignalCollector(repo_with(now, 100, transactions))

        signal = by_name(await collector.collect(5, 1))[SignalNames.TRANSACTION_HISTORY]
        assert signal.score == 50

    @pytest.mark.asyncio
    async def test_disputes_without_completions(self, now):
        collector = InternalSignalCollector(
            repo_with(now, 100, [txn(1, now, TransactionStatus.DISPUTED)])
        )
        signal = by_name(await collector.collect(5, 1))[SignalNames.TRANSACTION_HISTORY]
        assert signal.score == 40


class TestVelocity:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count,expected", [(5, 10), (6, 40), (10, 40), (11, 70)])
    async def test_velocity_bands(self, now, count, expected):
        transactions = [txn(i, now, age=timedelta(hours=1)) for i in range(1, count + 1)]
        transactions.append(txn(500, now, age=timedelta(days=2)))
        collector = InternalSignalCollector(repo_with(now, 100, transactions))

        signal = by_name(await collector.collect(5, 1))[SignalNames.VELOCITY_CHECKS]
        assert signal.score == expected
        assert signal.metadata["transactions24h"] == count


class TestBehavior:

    @pytest.mark.asyncio
    async def test_large_deviation(self, now):
        transactions = [txn(i, now, amount=10.0) for i in range(1, 10)] + [txn(99, now, amount=200.0)]
        collector = InternalSignalCollector(repo_with(now, 100, transactions))

        signal = by_name(await collector.collect(5, 99))[SignalNames.BEHAVIOR_PATTERN]

        # avg 29, |200 - 29| / 29 ≈ 5.9
        assert signal.score == 60

    @pytest.mark.asyncio
    async def test_moderate_deviation(self, now):
        transactions = [txn(i, now, amount=10.0) for i in range(1, 10)] + [txn(99, now, amount=80.0)]
        collector = InternalSignalCollector(repo_with(now, 100, transactions))

        signal = by_name(await collector.collect(5, 99))[SignalNames.BEHAVIOR_PATTERN]

        # avg 17, |80 - 17| / 17 ≈ 3.7
        assert signal.score == 30

    @pytest.mark.asyncio
    async def test_skipped_without_current_transaction(self, now):
        collector = InternalSignalCollector(repo_with(now, 100, [txn(1, now)]))
        signals = by_name(await collector.collect(5, 12345))
        assert SignalNames.BEHAVIOR_PATTERN not in signals

    @pytest.mark.asyncio
    async def test_skipped_with_zero_average(self, now):
        collector = InternalSignalCollector(repo_with(now, 100, [txn(1, now, amount=0.0)]))
        signals = by_name(await collector.collect(5, 1))
        assert SignalNames.BEHAVIOR_PATTERN not in signals

    @pytest.mark.asyncio
    async def test_skipped_without_history(self, now):
        collector = InternalSignalCollector(repo_with(now, 100))
        signals = by_name(await collector.collect(5, 1))
        assert SignalNames.BEHAVIOR_PATTERN not in signals


class TestDeviceSignal:

    @pytest.mark.asyncio
    async def test_new_then_familiar(self, collector):
        first = by_name(await collector.collect(TRUSTED_USER_ID, TRUSTED_TXN_ID, device_fingerprint="fp-1"))
        second = by_name(await collector.collect(TRUSTED_USER_ID, TRUSTED_TXN_ID, device_fingerprint="fp-1"))

        assert first[SignalNames.DEVICE_FINGERPRINT].score == 50
        assert second[SignalNames.DEVICE_FINGERPRINT].score == 10

    @pytest.mark.asyncio
    async def test_precomputed_result_skips_history(self, repository):
        history = AsyncMock(spec=DeviceHistoryStore)
        collector = InternalSignalCollector(repository, history)
        device = DeviceFingerprintResult(
            device_id="fp-1", is_new_device=False, is_suspicious=True, device_count=5
        )

        signals = by_name(await collector.collect(
            TRUSTED_USER_ID, TRUSTED_TXN_ID, device_fingerprint="fp-1", device_result=device
        ))

        assert signals[SignalNames.DEVICE_FINGERPRINT].score == 70
        history.check.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_history_failure_drops_only_device_signal(self, repository):
        history = AsyncMock(spec=DeviceHistoryStore)
        history.check.side_effect = ConnectionError("down")
        collector = InternalSignalCollector(repository, history)

        signals = by_name(await collector.collect(TRUSTED_USER_ID, TRUSTED_TXN_ID, device_fingerprint="fp-1"))

        assert SignalNames.DEVICE_FINGERPRINT not in signals
        assert SignalNames.ACCOUNT_AGE in signals

    @pytest.mark.asyncio
    async def test_new_user_on_shared_device_scores_as_new(self, collector):
        for user_id in (10, 11, 12, 13):
            await collector.device_history.check("fp-farm", user_id)

        signals = by_name(await collector.collect(NEW_USER_ID, NEW_USER_TXN_ID, device_fingerprint="fp-farm"))
        device = signals[SignalNames.DEVICE_FINGERPRINT]

        assert device.metadata["isNewDevice"] is True
        assert device.metadata["isSuspicious"] is True
        assert device.score == 50
