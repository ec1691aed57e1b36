"""
Commodity Asset Ledger - Configuration Store

Guarded setters over the ``RegistryConfig`` held in the ledger state. The fee
recipient is written once, and whoever writes it becomes the administrator
unless one was configured up front. Capacity and fee may only be tuned
afterwards, by the administrator.
"""

import logging

from .exceptions import (
    AlreadyConfiguredError, InvalidCapacityError, InvalidFeeError,
    InvalidIdentityError, NotAuthorizedError, NotConfiguredError,
)
from .schema import LedgerState, RegistryConfig
from .validation import is_null_identity


class ConfigurationStore:
    """Administrative parameters with write-once and bootstrap rules."""

    def __init__(self, state: LedgerState):
        self.state = state
        self.logger = logging.getLogger(__name__)

    @property
    def config(self) -> RegistryConfig:
        return self.state.config

    def _check_administrator(self, caller: str) -> None:
        if is_null_identity(caller):
            raise NotAuthorizedError(f"Configuration changes need a caller identity, got {caller!r}")

        administrator = self.config.administrator
        if administrator is not None and caller != administrator:
            raise NotAuthorizedError(f"{caller} is not the ledger administrator")

    def _require_configured(self) -> None:
        if not self.config.is_configured:
            raise NotConfiguredError("Fee recipient must be set before tuning the ledger")

    def set_fee_recipient(self, identity: str, caller: str) -> None:
        """Set the fee recipient. Succeeds at most once."""
        self._check_administrator(caller)

        if is_null_identity(identity):
            raise InvalidIdentityError(f"Fee recipient cannot be {identity!r}")

        if self.config.fee_recipient is not None:
            raise AlreadyConfiguredError(
                f"Fee recipient already set to {self.config.fee_recipient}"
            )

        self.config.fee_recipient = identity
        if self.config.administrator is None:
            self.config.administrator = caller
            self.logger.info(f"Administrator bound to {caller}")

        self.logger.info(f"Fee recipient set to {identity}")

    def set_capacity_ceiling(self, ceiling: int, caller: str) -> None:
        """Overwrite the maximum number of assets the ledger will allocate."""
        self._check_administrator(caller)

        if isinstance(ceiling, bool) or not isinstance(ceiling, int) or ceiling <= 0:
            raise InvalidCapacityError(f"Capacity ceiling must be positive, got {ceiling!r}")

        self._require_configured()

        previous = self.config.capacity_ceiling
        self.config.capacity_ceiling = ceiling
        self.logger.info(f"Capacity ceiling changed {previous} -> {ceiling}")

    def set_mint_fee(self, fee: int, caller: str) -> None:
        """Overwrite the per-mint fee. Zero disables fee collection."""
        self._check_administrator(caller)
        self._require_configured()

        if isinstance(fee, bool) or not isinstance(fee, int) or fee < 0:
            raise InvalidFeeError(f"Mint fee must be a non-negative integer, got {fee!r}")

        previous = self.config.mint_fee
        self.config.mint_fee = fee
        self.logger.info(f"Mint fee changed {previous} -> {fee}")
