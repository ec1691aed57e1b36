"""
Commodity Asset Ledger - Ownership Ledger

Dual bookkeeping for asset ownership:

- unique items: exclusive holder table keyed by asset ID
- fungible batches: balance table keyed by identity, summed over every batch
  the identity owns

The asset category chosen at mint decides which table backs an asset.
"""

from typing import Dict, Optional

from .exceptions import InsufficientBalanceError, TransferNotAllowedError
from .schema import LedgerState


class OwnershipLedger:
    """Holder and balance tables."""

    def __init__(self, state: LedgerState):
        self.state = state

    # Unique items

    def register_unique(self, asset_id: int, holder: str) -> None:
        if asset_id in self.state.unique_holders:
            raise TransferNotAllowedError(f"Unique item {asset_id} already has a holder")
        self.state.unique_holders[asset_id] = holder

    def holder_of(self, asset_id: int) -> Optional[str]:
        return self.state.unique_holders.get(asset_id)

    def reassign_unique(self, asset_id: int, sender: str, recipient: str) -> None:
        """
        Move exclusive holdership of a unique item.

        Raises:
            TransferNotAllowedError: If ``sender`` is not the recorded holder
        """
        holder = self.state.unique_holders.get(asset_id)
        if holder != sender:
            raise TransferNotAllowedError(
                f"Unique item {asset_id} is held by {holder}, not {sender}"
            )
        self.state.unique_holders[asset_id] = recipient

    # Fungible batches

    def balance_of(self, identity: str) -> int:
        return self.state.fungible_balances.get(identity, 0)

    def credit(self, identity: str, amount: int) -> None:
        self.state.fungible_balances[identity] = self.balance_of(identity) + amount

    def debit(self, identity: str, amount: int) -> None:
        """
        Remove units from an identity's balance.

        Raises:
            InsufficientBalanceError: If the balance cannot cover ``amount``
        """
        balance = self.balance_of(identity)
        if balance < amount:
            raise InsufficientBalanceError(
                f"{identity} holds {balance} units, cannot debit {amount}"
            )
        self.state.fungible_balances[identity] = balance - amount

    def move(self, sender: str, recipient: str, amount: int) -> None:
        self.debit(sender, amount)
        self.credit(recipient, amount)

    def total_balance(self) -> int:
        return sum(self.state.fungible_balances.values())

    def balances(self) -> Dict[str, int]:
        return dict(self.state.fungible_balances)
