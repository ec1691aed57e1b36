"""
Commodity Asset Ledger - Schema Models

This module defines the Pydantic models for asset records, update records,
registry configuration and the persisted ledger state.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# Reserved burn/null principal; never a valid owner or fee recipient
NULL_IDENTITY = "SP000000000000000000002Q6VF78"

MAX_ORIGIN_LENGTH = 256
MAX_CERTIFICATION_LENGTH = 256
MAX_LOCATION_LENGTH = 100
MAX_UNIT_LENGTH = 20

DEFAULT_CAPACITY_CEILING = 10000
DEFAULT_MINT_FEE = 500
DEFAULT_CATEGORY_CAPACITY = 100


class Category(str, Enum):
    """Asset category enumeration."""
    UNIQUE_ITEM = "unique-item"
    FUNGIBLE_BATCH = "fungible-batch"


class AssetMetadata(BaseModel):
    """Descriptive metadata attached to an asset.

    Lengths are checked by ``ledger.validation`` so that each violation maps
    to its own ledger error.
    """

    origin: str
    certification: str
    location: str
    unit: str


class AssetRecord(BaseModel):
    """Canonical record for a minted asset."""

    id: int = Field(..., ge=0)
    category: Category
    metadata: AssetMetadata
    quantity: int
    owner: str
    minter: str
    created_at: int = Field(..., ge=0, description="Ledger height at mint")
    last_modified_at: int = Field(..., ge=0, description="Ledger height of last change")
    status: bool = Field(default=True)
    min_quantity: int
    max_quantity: int

    @property
    def is_fungible(self) -> bool:
        return self.category == Category.FUNGIBLE_BATCH


class AssetUpdateRecord(BaseModel):
    """Correction applied to an asset by its minter."""

    updated_origin: str
    updated_certification: str
    updated_quantity: int
    updated_at: int = Field(..., ge=0)
    updater: str


class FeeTransfer(BaseModel):
    """Mint fee moved from a minter to the fee recipient."""

    amount: int = Field(..., ge=0)
    sender: str
    recipient: str
    height: int = Field(..., ge=0)


class RegistryConfig(BaseModel):
    """Administrative parameters of the ledger."""

    capacity_ceiling: int = Field(default=DEFAULT_CAPACITY_CEILING, gt=0)
    mint_fee: int = Field(default=DEFAULT_MINT_FEE, ge=0)
    fee_recipient: Optional[str] = Field(None, description="Write-once fee recipient")
    administrator: Optional[str] = Field(None, description="Identity allowed to tune config")
    category_capacity: int = Field(default=DEFAULT_CATEGORY_CAPACITY, gt=0)
    history_limit: int = Field(default=1, gt=0, description="Update records kept per asset")
    enforce_quantity_bounds: bool = Field(default=False)

    @property
    def is_configured(self) -> bool:
        return self.fee_recipient is not None


class LedgerMetadata(BaseModel):
    """Bookkeeping about the persisted ledger file."""

    version: str = Field(default="1.0.0", description="Ledger schema version")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    description: str = Field(default="Commodity Asset Ledger")

    def update_timestamp(self) -> None:
        """Update the last modified timestamp."""
        self.updated_at = datetime.utcnow()


class LedgerState(BaseModel):
    """Complete ledger state: every store the registry owns."""

    metadata: LedgerMetadata = Field(default_factory=LedgerMetadata)
    config: RegistryConfig = Field(default_factory=RegistryConfig)
    height: int = Field(default=0, ge=0)
    next_asset_id: int = Field(default=0, ge=0)
    assets: Dict[int, AssetRecord] = Field(default_factory=dict)
    asset_updates: Dict[int, List[AssetUpdateRecord]] = Field(default_factory=dict)
    category_index: Dict[Category, List[int]] = Field(default_factory=dict)
    unique_holders: Dict[int, str] = Field(default_factory=dict)
    fungible_balances: Dict[str, int] = Field(default_factory=dict)
    fee_balances: Dict[str, int] = Field(default_factory=dict)
    fee_transfers: List[FeeTransfer] = Field(default_factory=list)
