"""
Risk Data Repository

Read-only access to the user and transaction history the internal
signal collector derives behavioral signals from.

- RiskDataRepository: the contract the engine depends on
- InMemoryRiskDataRepository: dict-backed store for tests and demos
- SqlRiskDataRepository: PostgreSQL via SQLAlchemy async + asyncpg
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, UTC
from typing import Iterable, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from ..schemas import UserRecord, TransactionRecord

logger = logging.getLogger("riskintel.storage")


class RiskDataRepository(ABC):
    """Read-only persistence contract consumed by the engine."""

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        """Return the user record, or None if it does not exist."""

    @abstractmethod
    async def get_transactions_by_user(
        self,
        user_id: int,
        limit: int = 100,
        offset: int = 0,
    ) -> list[TransactionRecord]:
        """Return the user's most recent transactions, newest first."""

    @abstractmethod
    async def get_transaction(self, transaction_id: int) -> Optional[TransactionRecord]:
        """Return a single transaction, or None."""

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class InMemoryRiskDataRepository(RiskDataRepository):
    """Dict-backed repository."""

    def __init__(
        self,
        users: Iterable[UserRecord] = (),
        transactions: Iterable[TransactionRecord] = (),
    ):
        self.users: dict[int, UserRecord] = {u.id: u for u in users}
        self.transactions: dict[int, TransactionRecord] = {t.id: t for t in transactions}

    def add_user(self, user: UserRecord) -> None:
        self.users[user.id] = user

    def add_transaction(self, transaction: TransactionRecord) -> None:
        self.transactions[transaction.id] = transaction

    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self.users.get(user_id)

    async def get_transactions_by_user(
        self,
        user_id: int,
        limit: int = 100,
        offset: int = 0,
    ) -> list[TransactionRecord]:
        rows = sorted(
            (t for t in self.transactions.values() if t.user_id == user_id),
            key=lambda t: t.created_at,
            reverse=True,
        )
        return rows[offset:offset + limit]

    async def get_transaction(self, transaction_id: int) -> Optional[TransactionRecord]:
        return self.transactions.get(transaction_id)


class SqlRiskDataRepository(RiskDataRepository):
    """
    PostgreSQL-backed repository.

    Expects ``users`` and ``transactions`` tables with the columns
    selected below; the engine never writes to them.
    """

    def __init__(self, database_url: str, echo: bool = False):
        """
        Initialize SQL repository.

        Args:
            database_url: PostgreSQL connection URL (postgresql+asyncpg://...)
            echo: Echo SQL statements (debug)
        """
        self.database_url = database_url
        self.echo = echo
        self.engine = None
        self.session_factory = None

    async def initialize(self) -> None:
        """Initialize database connection pool."""
        try:
            self.engine = create_async_engine(
                self.database_url,
                echo=self.echo,
                pool_size=5,
                max_overflow=10,
                pool_pre_ping=True,
            )
            self.session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        except Exception as e:
            logger.warning("Database initialization failed: %s", e)

    async def close(self) -> None:
        """Close database connections."""
        if self.engine:
            await self.engine.dispose()

    async def health_check(self) -> bool:
        """Check database connectivity."""
        if not self.session_factory:
            raise RuntimeError("Database not initialized")

        async with self.session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            return result.scalar() == 1

    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        if not self.session_factory:
            raise RuntimeError("Database not initialized")

        async with self.session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT id, created_at, email, phone, is_verified, verification_level
                    FROM users
                    WHERE id = :user_id
                """),
                {"user_id": user_id},
            )
            row = result.mappings().first()

        if not row:
            return None
        return UserRecord(
            id=row["id"],
            created_at=row["created_at"],
            email=row["email"],
            phone=row["phone"],
            is_verified=bool(row["is_verified"]),
            verification_level=row["verification_level"],
        )

    async def get_transactions_by_user(
        self,
        user_id: int,
        limit: int = 100,
        offset: int = 0,
    ) -> list[TransactionRecord]:
        if not self.session_factory:
            raise RuntimeError("Database not initialized")

        async with self.session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT id, user_id, amount, status, created_at
                    FROM transactions
                    WHERE user_id = :user_id
                    ORDER BY created_at DESC
                    LIMIT :limit OFFSET :offset
                """),
                {"user_id": user_id, "limit": limit, "offset": offset},
            )
            rows = result.mappings().all()

        transactions = (self._to_transaction(row) for row in rows)
        return [t for t in transactions if t is not None]

    async def get_transaction(self, transaction_id: int) -> Optional[TransactionRecord]:
        if not self.session_factory:
            raise RuntimeError("Database not initialized")

        async with self.session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT id, user_id, amount, status, created_at
                    FROM transactions
                    WHERE id = :transaction_id
                """),
                {"transaction_id": transaction_id},
            )
            row = result.mappings().first()

        return self._to_transaction(row) if row else None

    @staticmethod
    def _to_transaction(row) -> Optional[TransactionRecord]:
        """Map a row, defaulting missing fields; unusable rows are skipped."""
        created_at = row["created_at"]
        if created_at is None:
            logger.warning("Transaction %s has no created_at; using now", row["id"])
            created_at = datetime.now(UTC)

        try:
            return TransactionRecord(
                id=row["id"],
                user_id=row["user_id"],
                amount=float(row["amount"] or 0),
                status=row["status"] or "pending",
                created_at=created_at,
            )
        except (TypeError, ValueError) as e:
            logger.warning("Skipping malformed transaction row %s: %s", row["id"], e)
            return None
