from dataclasses import replace
from typing import Optional

from ..models import CoinTransaction
from ..repository import Insert, Repository, RepositoryPolicy
from ..repository.cache import Clock, default_clock
from ..utils.logger import get_logger

logger = get_logger("repository")

TRANSACTIONS_TTL = 120.0


class CoinTransactionRepository(Repository[CoinTransaction]):
    """Coin wallet history keyed by user id.

    A wallet that has been used always has history, so an empty cached list
    is treated as a miss and refetched.
    """

    def __init__(
        self,
        backend,
        ttl: float = TRANSACTIONS_TTL,
        policy: Optional[RepositoryPolicy] = None,
        clock: Clock = default_clock,
    ):
        super().__init__(
            "transactions",
            fetch=backend.list_transactions,
            ttl=ttl,
            policy=replace(policy or RepositoryPolicy(), empty_is_miss=True),
            clock=clock,
        )

    def add_transaction(self, user_id: str, transaction: CoinTransaction) -> None:
        self.apply_local(user_id, Insert(transaction, position=0))
        logger.debug(f"Transaction added to cache: {transaction.id}")
