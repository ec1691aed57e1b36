"""
Commodity Asset Ledger

Registry and lifecycle ledger for physical commodities:
- Unique items and fungible batches sharing one asset ID space
- Validated minting with a per-mint protocol fee
- Minter-only corrections with an update audit trail
- Owner-only transfers backed by holder and balance tables
- Category index and durable JSON persistence
"""

from .exceptions import (
    ErrorKind,
    LedgerError,
    NotAuthorizedError,
    NotConfiguredError,
    AlreadyConfiguredError,
    FeeNotConfiguredError,
    InvalidCategoryError,
    InvalidMetadataError,
    InvalidOriginError,
    InvalidCertificationError,
    InvalidQuantityError,
    InvalidMinQuantityError,
    InvalidMaxQuantityError,
    InvalidOwnerError,
    InvalidIdentityError,
    InvalidCapacityError,
    InvalidFeeError,
    QuantityOutOfBoundsError,
    CapacityExceededError,
    CategoryIndexFullError,
    FeeTransferFailedError,
    AssetNotFoundError,
    TransferNotAllowedError,
    InsufficientBalanceError,
)
from .schema import (
    NULL_IDENTITY,
    AssetMetadata,
    AssetRecord,
    AssetUpdateRecord,
    Category,
    FeeTransfer,
    LedgerState,
    RegistryConfig,
)
from .events import LedgerEvent
from .manager import AssetRegistry

__version__ = "1.0.0"

__all__ = [
    "AssetRegistry",
    "LedgerEvent",

    # Schema
    "NULL_IDENTITY",
    "AssetMetadata",
    "AssetRecord",
    "AssetUpdateRecord",
    "Category",
    "FeeTransfer",
    "LedgerState",
    "RegistryConfig",

    # Errors
    "ErrorKind",
    "LedgerError",
    "NotAuthorizedError",
    "NotConfiguredError",
    "AlreadyConfiguredError",
    "FeeNotConfiguredError",
    "InvalidCategoryError",
    "InvalidMetadataError",
    "InvalidOriginError",
    "InvalidCertificationError",
    "InvalidQuantityError",
    "InvalidMinQuantityError",
    "InvalidMaxQuantityError",
    "InvalidOwnerError",
    "InvalidIdentityError",
    "InvalidCapacityError",
    "InvalidFeeError",
    "QuantityOutOfBoundsError",
    "CapacityExceededError",
    "CategoryIndexFullError",
    "FeeTransferFailedError",
    "AssetNotFoundError",
    "TransferNotAllowedError",
    "InsufficientBalanceError",
]
