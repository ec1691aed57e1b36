"""
Commodity Asset Ledger - Category Index and Update Audit Trail

Both structures are append-only. The category index is a bounded ordered list
of asset IDs per category; the audit trail keeps the most recent update
records per asset, up to the configured history limit.
"""

from typing import List, Optional, Union

from .exceptions import CategoryIndexFullError
from .schema import AssetUpdateRecord, Category, LedgerState


class CategoryIndex:
    """Ordered asset IDs per category."""

    def __init__(self, state: LedgerState):
        self.state = state

    @property
    def capacity(self) -> int:
        return self.state.config.category_capacity

    def append(self, category: Category, asset_id: int) -> None:
        """Append an asset ID, failing once the category is full."""
        ids = self.state.category_index.setdefault(category, [])

        if len(ids) >= self.capacity:
            raise CategoryIndexFullError(
                f"Category {category.value} already holds {self.capacity} assets"
            )

        ids.append(asset_id)

    def ids(self, category: Union[str, Category]) -> List[int]:
        try:
            category = Category(category)
        except ValueError:
            return []
        return list(self.state.category_index.get(category, []))

    def has_assets(self, category: Union[str, Category]) -> bool:
        return len(self.ids(category)) > 0


class AuditTrail:
    """Per-asset update records."""

    def __init__(self, state: LedgerState):
        self.state = state

    @property
    def history_limit(self) -> int:
        return self.state.config.history_limit

    def record(self, asset_id: int, update: AssetUpdateRecord) -> None:
        """Record an update, dropping the oldest beyond the history limit."""
        history = self.state.asset_updates.setdefault(asset_id, [])
        history.append(update)

        if len(history) > self.history_limit:
            del history[:len(history) - self.history_limit]

    def latest(self, asset_id: int) -> Optional[AssetUpdateRecord]:
        history = self.state.asset_updates.get(asset_id)
        return history[-1] if history else None

    def history(self, asset_id: int) -> List[AssetUpdateRecord]:
        return list(self.state.asset_updates.get(asset_id, []))
