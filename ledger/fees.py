"""
Commodity Asset Ledger - Mint Fee Accounts

A minimal account book for the fee token: balances per identity plus the log
of fee transfers made at mint time.
"""

from typing import List

from .exceptions import FeeTransferFailedError
from .schema import FeeTransfer, LedgerState


class FeeAccounts:
    """Fee-token balances and transfer log."""

    def __init__(self, state: LedgerState):
        self.state = state

    def balance_of(self, identity: str) -> int:
        return self.state.fee_balances.get(identity, 0)

    def deposit(self, identity: str, amount: int) -> int:
        """Credit fee tokens to an identity and return its new balance."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValueError(f"Deposit amount must be a positive integer, got {amount!r}")

        balance = self.balance_of(identity) + amount
        self.state.fee_balances[identity] = balance
        return balance

    def settle(self, amount: int, sender: str, recipient: str) -> None:
        """
        Move the mint fee from the minter to the fee recipient.

        A zero fee is a no-op and leaves no transfer record.

        Raises:
            FeeTransferFailedError: If the sender cannot cover the fee
        """
        if amount == 0:
            return

        balance = self.balance_of(sender)
        if balance < amount:
            raise FeeTransferFailedError(
                f"{sender} holds {balance}, mint fee is {amount}"
            )

        self.state.fee_balances[sender] = balance - amount
        self.state.fee_balances[recipient] = self.balance_of(recipient) + amount
        self.state.fee_transfers.append(FeeTransfer(
            amount=amount,
            sender=sender,
            recipient=recipient,
            height=self.state.height
        ))

    def transfers(self) -> List[FeeTransfer]:
        return list(self.state.fee_transfers)
