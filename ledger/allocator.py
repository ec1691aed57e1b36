"""
Commodity Asset Ledger - Asset ID Allocation

Asset identifiers are dense integers handed out in order from zero. The
allocator only ever runs inside the registry write lock, so observing and
consuming the counter is a single step.
"""

from .exceptions import CapacityExceededError
from .schema import LedgerState


class IdentityAllocator:
    """Sequential asset ID allocator bounded by the capacity ceiling."""

    def __init__(self, state: LedgerState):
        self.state = state

    @property
    def next_id(self) -> int:
        return self.state.next_asset_id

    @property
    def remaining(self) -> int:
        return max(0, self.state.config.capacity_ceiling - self.state.next_asset_id)

    def allocate(self) -> int:
        """
        Reserve the next asset ID.

        Raises:
            CapacityExceededError: If the capacity ceiling has been reached
        """
        asset_id = self.state.next_asset_id
        ceiling = self.state.config.capacity_ceiling

        if asset_id >= ceiling:
            raise CapacityExceededError(
                f"Capacity ceiling of {ceiling} assets reached"
            )

        self.state.next_asset_id = asset_id + 1
        return asset_id
