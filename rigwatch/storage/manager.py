import logging
from typing import Optional

try:
    import aiosqlite
except ImportError:
    raise ImportError(
        "aiosqlite is required for the storage layer. "
        "Install with: pip install aiosqlite"
    )

from ._migrate import run_migrations
from .balances import BalanceRepo
from .exchanges import ExchangeRepo
from .payments import PaymentRepo
from .rigs import RigRepo
from .transactions import TransactionRepo
from .users import UserRepo

logger = logging.getLogger("storage")


class StorageManager:
    """Top-level manager: opens the database, runs migrations, exposes repos."""

    def __init__(self, db_path: str = "rigwatch.db"):
        self.db_path = db_path
        self._db: Optional[aiosqlite.Connection] = None
        self.users: Optional[UserRepo] = None
        self.rigs: Optional[RigRepo] = None
        self.balances: Optional[BalanceRepo] = None
        self.transactions: Optional[TransactionRepo] = None
        self.exchanges: Optional[ExchangeRepo] = None
        self.payments: Optional[PaymentRepo] = None

    async def initialize(self):
        self._db = await aiosqlite.connect(self.db_path)
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("PRAGMA foreign_keys=ON")
        await run_migrations(self._db, logger)

        self.users = UserRepo(self._db)
        self.rigs = RigRepo(self._db)
        self.balances = BalanceRepo(self._db)
        self.transactions = TransactionRepo(self._db)
        self.exchanges = ExchangeRepo(self._db)
        self.payments = PaymentRepo(self._db)

        logger.info("Storage initialized: %s", self.db_path)

    async def close(self):
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Storage closed")
