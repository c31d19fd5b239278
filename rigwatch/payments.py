"""
payments.py - Crypto payment records.

Payments are always addressed to the single system-controlled address,
whatever the client sends. Status is an external assertion: it moves
only through explicit update calls and is never checked on-chain.
"""

import logging
import math
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from rigwatch.storage import PaymentRepo

logger = logging.getLogger("payments")

FIXED_PAYMENT_ADDRESS = "0xE5A9CBDde1be6d164d32922d66B36d2f1E91d939"
VALID_NETWORKS = ("ethereum", "polygon")
VALID_STATUSES = ("pending", "confirmed", "failed")
DEFAULT_LIST_LIMIT = 10
MAX_LIST_LIMIT = 100


class PaymentService:
    def __init__(self, repo: "PaymentRepo"):
        self._repo = repo

    async def list_payments(self, owner_id: str, limit: int = DEFAULT_LIST_LIMIT) -> List[dict]:
        bounded = max(1, min(int(limit), MAX_LIST_LIMIT))
        return await self._repo.list_for_owner(owner_id, limit=bounded)

    async def create_payment(
        self,
        owner_id: str,
        network: str,
        amount: float,
        currency: str,
        from_address: Optional[str] = None,
        transaction_hash: Optional[str] = None,
        status: Optional[str] = None,
        purpose: Optional[str] = None,
    ) -> dict:
        if network not in VALID_NETWORKS:
            raise ValueError("network must be ethereum or polygon")
        if amount is None or not math.isfinite(amount) or amount <= 0:
            raise ValueError("amount must be positive")
        if not currency or not currency.strip():
            raise ValueError("currency is required")
        status = status or "pending"
        if status not in VALID_STATUSES:
            raise ValueError("Invalid status. Must be pending, confirmed, or failed")

        payment = await self._repo.create(
            owner_id=owner_id,
            network=network,
            amount=amount,
            currency=currency,
            to_address=FIXED_PAYMENT_ADDRESS,
            from_address=from_address,
            transaction_hash=transaction_hash,
            status=status,
            purpose=purpose,
        )
        logger.info(
            "Payment created: owner=%s id=%s %.8f %s on %s",
            owner_id, payment["id"], amount, currency, network,
        )
        return payment

    async def update_status(
        self,
        owner_id: str,
        payment_id: str,
        status: Optional[str],
        transaction_hash: Optional[str] = None,
    ) -> Optional[dict]:
        """Set a payment's status. Returns None if the caller owns no such payment."""
        if not status:
            raise ValueError("Status is required")
        if status not in VALID_STATUSES:
            raise ValueError("Invalid status. Must be pending, confirmed, or failed")
        payment = await self._repo.update_status(owner_id, payment_id, status, transaction_hash)
        if payment is not None:
            logger.info("Payment %s status -> %s", payment_id, status)
        return payment
