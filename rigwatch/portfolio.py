"""
portfolio.py - Portfolio balances and mining transaction history.
"""

import logging
import math
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from rigwatch.storage import BalanceRepo, TransactionRepo

logger = logging.getLogger("portfolio")

DEFAULT_TX_LIMIT = 10
MAX_TX_LIMIT = 100


class PortfolioService:
    def __init__(self, balance_repo: "BalanceRepo", tx_repo: "TransactionRepo"):
        self._balances = balance_repo
        self._transactions = tx_repo

    async def list_balances(self, owner_id: str) -> List[dict]:
        return await self._balances.list_for_owner(owner_id)

    async def set_balance(self, owner_id: str, cryptocurrency: str, amount: float) -> dict:
        if not cryptocurrency or not cryptocurrency.strip():
            raise ValueError("cryptocurrency is required")
        if not math.isfinite(amount) or amount < 0:
            raise ValueError("amount must be non-negative")
        balance = await self._balances.set_amount(owner_id, cryptocurrency, amount)
        logger.info("Balance set: owner=%s %s=%.8f", owner_id, cryptocurrency, amount)
        return balance

    async def list_transactions(self, owner_id: str, limit: int = DEFAULT_TX_LIMIT) -> List[dict]:
        bounded = max(1, min(int(limit), MAX_TX_LIMIT))
        return await self._transactions.list_for_owner(owner_id, limit=bounded)
