"""
Commodity Asset Ledger - Asset Registry

This module provides the registry that owns the ledger state and orchestrates
minting, metadata/quantity corrections and ownership transfers. Every state
transition is staged on a copy of the state and committed only when all of
its steps succeed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from .allocator import IdentityAllocator
from .concurrency import ReadWriteLock
from .config import ConfigurationStore
from .events import EventBus, EventCallback, LedgerEvent
from .exceptions import (
    AssetNotFoundError, ErrorKind, FeeNotConfiguredError, LedgerError,
    NotAuthorizedError, QuantityOutOfBoundsError,
)
from .fees import FeeAccounts
from .index import AuditTrail, CategoryIndex
from .ownership import OwnershipLedger
from .schema import (
    AssetMetadata, AssetRecord, AssetUpdateRecord, Category, FeeTransfer,
    LedgerState, RegistryConfig,
    DEFAULT_CAPACITY_CEILING, DEFAULT_CATEGORY_CAPACITY, DEFAULT_MINT_FEE,
)
from .storage import LedgerStorage
from .validation import (
    is_null_identity, validate_certification, validate_mint_request,
    validate_origin, validate_owner, validate_quantity,
)


@dataclass
class Transaction:
    """Component views over a staged copy of the ledger state."""

    state: LedgerState
    events: List[tuple] = field(default_factory=list)
    result: Any = None

    def __post_init__(self):
        self.config = ConfigurationStore(self.state)
        self.allocator = IdentityAllocator(self.state)
        self.index = CategoryIndex(self.state)
        self.audit = AuditTrail(self.state)
        self.ownership = OwnershipLedger(self.state)
        self.fees = FeeAccounts(self.state)

    def emit(self, event_type: LedgerEvent, **data) -> None:
        """Queue an event to be published once the transaction commits."""
        self.events.append((event_type, data))


class AssetRegistry:
    """Asset registry and lifecycle ledger."""

    def __init__(
        self,
        storage_dir: Optional[str] = None,
        capacity_ceiling: int = DEFAULT_CAPACITY_CEILING,
        mint_fee: int = DEFAULT_MINT_FEE,
        administrator: Optional[str] = None,
        category_capacity: int = DEFAULT_CATEGORY_CAPACITY,
        history_limit: int = 1,
        enforce_quantity_bounds: bool = False,
        backup_count: int = 5
    ):
        """
        Initialize the registry.

        Args:
            storage_dir: Directory for the persisted ledger; memory-only if None
            capacity_ceiling: Maximum number of assets ever allocated
            mint_fee: Fee charged to the minter per mint
            administrator: Identity allowed to change configuration; if None, the
                caller that sets the fee recipient becomes administrator
            category_capacity: Maximum number of assets indexed per category
            history_limit: Update records kept per asset
            enforce_quantity_bounds: Check updated quantities against declared bounds
            backup_count: Number of storage backups kept

        Configuration arguments only seed a fresh ledger; a persisted ledger
        keeps the configuration it was saved with.
        """
        self.logger = logging.getLogger(__name__)
        self.storage = LedgerStorage(storage_dir, backup_count=backup_count) if storage_dir else None
        self.events = EventBus()
        self._rw_lock = ReadWriteLock("asset_registry")

        fresh = LedgerState(config=RegistryConfig(
            capacity_ceiling=capacity_ceiling,
            mint_fee=mint_fee,
            administrator=administrator,
            category_capacity=category_capacity,
            history_limit=history_limit,
            enforce_quantity_bounds=enforce_quantity_bounds
        ))

        state = self.storage.load_state() if self.storage else None
        if state is not None:
            self.logger.info(
                f"Loaded ledger with {len(state.assets)} assets at height {state.height}"
            )
        elif self.storage:
            # Another registry may have created the ledger since the read
            created: List[LedgerState] = []

            def initializer(current: Optional[LedgerState]) -> LedgerState:
                created.append(current or fresh)
                return created[0]

            self.storage.update_state(initializer)
            state = created[0]
        else:
            state = fresh

        self._state = state

    # Transactions

    def _transact(self, operation: Callable[[Transaction], Any], name: str) -> Any:
        """
        Run ``operation`` against a staged copy of the state and commit it.

        With storage, the copy is taken from the ledger file while its lock is
        held, so registries sharing a data directory see each other's commits
        and never allocate the same ID. Nothing is written if the operation or
        persistence raises; queued events are published only after the commit.
        """
        staged: List[Transaction] = []

        def stage(current: Optional[LedgerState]) -> LedgerState:
            if current is not None:
                self._state = current

            tx = Transaction(self._state.model_copy(deep=True))
            try:
                tx.result = operation(tx)
            except LedgerError as e:
                self._log_rejection(name, e)
                raise

            tx.state.metadata.update_timestamp()
            staged.append(tx)
            return tx.state

        with self._rw_lock.write_lock():
            if self.storage:
                self.storage.update_state(stage)
            else:
                stage(None)

            tx = staged[0]
            self._state = tx.state

        for event_type, data in tx.events:
            self.events.emit(event_type, data)

        return tx.result

    def _log_rejection(self, name: str, error: LedgerError) -> None:
        if error.kind == ErrorKind.CONSISTENCY and error.code != AssetNotFoundError.code:
            self.logger.critical(f"{name} aborted on ledger inconsistency [{error.code}]: {error}")
        else:
            self.logger.warning(f"{name} rejected [{error.code}]: {error}")

    def subscribe(self, callback: EventCallback) -> None:
        """Register a callback for committed ledger events."""
        self.events.subscribe(callback)

    # Configuration

    @property
    def config(self) -> RegistryConfig:
        """Snapshot of the current configuration."""
        with self._rw_lock.read_lock():
            return self._state.config.model_copy()

    def set_fee_recipient(self, identity: str, caller: str) -> None:
        def operation(tx: Transaction) -> None:
            tx.config.set_fee_recipient(identity, caller)
            tx.emit(LedgerEvent.CONFIG_CHANGED, setting='fee_recipient', value=identity, caller=caller)

        self._transact(operation, "set_fee_recipient")

    def set_capacity_ceiling(self, ceiling: int, caller: str) -> None:
        def operation(tx: Transaction) -> None:
            tx.config.set_capacity_ceiling(ceiling, caller)
            tx.emit(LedgerEvent.CONFIG_CHANGED, setting='capacity_ceiling', value=ceiling, caller=caller)

        self._transact(operation, "set_capacity_ceiling")

    def set_mint_fee(self, fee: int, caller: str) -> None:
        def operation(tx: Transaction) -> None:
            tx.config.set_mint_fee(fee, caller)
            tx.emit(LedgerEvent.CONFIG_CHANGED, setting='mint_fee', value=fee, caller=caller)

        self._transact(operation, "set_mint_fee")

    # Ledger height and fee accounts

    @property
    def height(self) -> int:
        return self._state.height

    def advance_height(self, blocks: int = 1) -> int:
        """Move the ledger height forward and return the new height."""
        if isinstance(blocks, bool) or not isinstance(blocks, int) or blocks <= 0:
            raise ValueError(f"Blocks must be a positive integer, got {blocks!r}")

        def operation(tx: Transaction) -> int:
            tx.state.height += blocks
            return tx.state.height

        return self._transact(operation, "advance_height")

    def deposit_fee_funds(self, identity: str, amount: int) -> int:
        """Credit fee tokens to an identity so it can pay mint fees."""
        if is_null_identity(identity):
            raise ValueError(f"Cannot fund identity {identity!r}")

        return self._transact(lambda tx: tx.fees.deposit(identity, amount), "deposit_fee_funds")

    def fee_balance_of(self, identity: str) -> int:
        with self._rw_lock.read_lock():
            return FeeAccounts(self._state).balance_of(identity)

    def fee_transfers(self) -> List[FeeTransfer]:
        with self._rw_lock.read_lock():
            return [t.model_copy() for t in self._state.fee_transfers]

    # Lifecycle operations

    def mint(
        self,
        caller: str,
        category: Union[str, Category],
        metadata: Union[AssetMetadata, Dict[str, Any]],
        quantity: int,
        owner: str,
        min_quantity: int,
        max_quantity: int
    ) -> int:
        """
        Mint a new asset.

        Args:
            caller: Identity submitting the mint; becomes the asset's minter
            category: Unique item or fungible batch
            metadata: Origin, certification, location and unit
            quantity: Item count or batch size
            owner: Initial holder
            min_quantity: Declared lower quantity bound
            max_quantity: Declared upper quantity bound

        Returns:
            The new asset ID

        Raises:
            LedgerError: On validation, configuration, fee, capacity or index failure
        """
        def operation(tx: Transaction) -> int:
            request = validate_mint_request(
                category, metadata, quantity, owner, min_quantity, max_quantity
            )
            config = tx.state.config

            if not config.is_configured:
                raise FeeNotConfiguredError("Fee recipient has not been configured")

            tx.fees.settle(config.mint_fee, caller, config.fee_recipient)

            asset_id = tx.allocator.allocate()
            asset_category = request['category']

            if asset_category == Category.UNIQUE_ITEM:
                tx.ownership.register_unique(asset_id, request['owner'])
            else:
                tx.ownership.credit(request['owner'], request['quantity'])

            tx.state.assets[asset_id] = AssetRecord(
                id=asset_id,
                created_at=tx.state.height,
                last_modified_at=tx.state.height,
                minter=caller,
                **request
            )
            tx.index.append(asset_category, asset_id)

            tx.emit(
                LedgerEvent.ASSET_MINTED,
                asset_id=asset_id,
                category=asset_category.value,
                quantity=request['quantity'],
                owner=request['owner'],
                minter=caller,
                height=tx.state.height
            )
            return asset_id

        return self._transact(operation, "mint")

    def update(
        self,
        caller: str,
        asset_id: int,
        origin: str,
        certification: str,
        new_quantity: int
    ) -> None:
        """
        Correct an asset's origin, certification and quantity.

        Only the minter may update. Location and unit never change. For a
        fungible batch the owner's balance moves by the quantity difference.
        """
        def operation(tx: Transaction) -> None:
            record = tx.state.assets.get(asset_id)
            if record is None:
                raise AssetNotFoundError(f"Asset {asset_id} not found")

            if caller != record.minter:
                raise NotAuthorizedError(f"{caller} is not the minter of asset {asset_id}")

            validate_origin(origin)
            validate_certification(certification)
            validate_quantity(new_quantity)

            if tx.state.config.enforce_quantity_bounds and not (
                record.min_quantity <= new_quantity <= record.max_quantity
            ):
                raise QuantityOutOfBoundsError(
                    f"Quantity {new_quantity} outside [{record.min_quantity}, {record.max_quantity}]"
                )

            if record.is_fungible:
                delta = new_quantity - record.quantity
                if delta > 0:
                    tx.ownership.credit(record.owner, delta)
                elif delta < 0:
                    tx.ownership.debit(record.owner, -delta)

            record.metadata.origin = origin
            record.metadata.certification = certification
            record.quantity = new_quantity
            record.last_modified_at = max(record.last_modified_at, tx.state.height)

            tx.audit.record(asset_id, AssetUpdateRecord(
                updated_origin=origin,
                updated_certification=certification,
                updated_quantity=new_quantity,
                updated_at=tx.state.height,
                updater=caller
            ))

            tx.emit(
                LedgerEvent.ASSET_UPDATED,
                asset_id=asset_id,
                quantity=new_quantity,
                updater=caller,
                height=tx.state.height
            )

        self._transact(operation, "update")

    def transfer(self, caller: str, asset_id: int, recipient: str) -> None:
        """Transfer an asset from its current owner to ``recipient``."""
        def operation(tx: Transaction) -> None:
            record = tx.state.assets.get(asset_id)
            if record is None:
                raise AssetNotFoundError(f"Asset {asset_id} not found")

            if caller != record.owner:
                raise NotAuthorizedError(f"{caller} does not own asset {asset_id}")

            validate_owner(recipient)

            if record.category == Category.UNIQUE_ITEM:
                tx.ownership.reassign_unique(asset_id, caller, recipient)
            else:
                tx.ownership.move(caller, recipient, record.quantity)

            record.owner = recipient
            record.last_modified_at = max(record.last_modified_at, tx.state.height)

            tx.emit(
                LedgerEvent.ASSET_TRANSFERRED,
                asset_id=asset_id,
                category=record.category.value,
                sender=caller,
                recipient=recipient,
                height=tx.state.height
            )

        self._transact(operation, "transfer")

    # Read interface

    def get(self, asset_id: int) -> Optional[AssetRecord]:
        """Look up an asset record. Returns a detached copy."""
        with self._rw_lock.read_lock():
            record = self._state.assets.get(asset_id)
            return record.model_copy(deep=True) if record else None

    def count(self) -> int:
        """Total number of assets ever minted."""
        with self._rw_lock.read_lock():
            return self._state.next_asset_id

    def category_has_assets(self, category: Union[str, Category]) -> bool:
        with self._rw_lock.read_lock():
            return CategoryIndex(self._state).has_assets(category)

    def assets_in_category(self, category: Union[str, Category]) -> List[int]:
        with self._rw_lock.read_lock():
            return CategoryIndex(self._state).ids(category)

    def assets_owned_by(self, identity: str) -> List[AssetRecord]:
        with self._rw_lock.read_lock():
            return [
                record.model_copy(deep=True)
                for _, record in sorted(self._state.assets.items())
                if record.owner == identity
            ]

    def latest_update(self, asset_id: int) -> Optional[AssetUpdateRecord]:
        with self._rw_lock.read_lock():
            update = AuditTrail(self._state).latest(asset_id)
            return update.model_copy() if update else None

    def update_history(self, asset_id: int) -> List[AssetUpdateRecord]:
        with self._rw_lock.read_lock():
            return [u.model_copy() for u in AuditTrail(self._state).history(asset_id)]

    def holder_of(self, asset_id: int) -> Optional[str]:
        with self._rw_lock.read_lock():
            return OwnershipLedger(self._state).holder_of(asset_id)

    def balance_of(self, identity: str) -> int:
        with self._rw_lock.read_lock():
            return OwnershipLedger(self._state).balance_of(identity)

    # Diagnostics

    def verify_invariants(self) -> List[str]:
        """
        Check the ledger invariants.

        Returns:
            List of violation messages; empty when the ledger is consistent
        """
        violations = []

        with self._rw_lock.read_lock():
            state = self._state

            expected_ids = list(range(state.next_asset_id))
            if sorted(state.assets) != expected_ids:
                violations.append(
                    f"Asset IDs {sorted(state.assets)} are not dense up to {state.next_asset_id}"
                )

            if state.next_asset_id > state.config.capacity_ceiling:
                violations.append(
                    f"{state.next_asset_id} assets exceed capacity {state.config.capacity_ceiling}"
                )

            owned: Dict[str, int] = {}
            for asset_id, record in state.assets.items():
                if is_null_identity(record.owner):
                    violations.append(f"Asset {asset_id} has null owner")
                if record.quantity <= 0:
                    violations.append(f"Asset {asset_id} has non-positive quantity {record.quantity}")

                if record.is_fungible:
                    owned[record.owner] = owned.get(record.owner, 0) + record.quantity
                elif state.unique_holders.get(asset_id) != record.owner:
                    violations.append(
                        f"Asset {asset_id} owner {record.owner} differs from holder "
                        f"{state.unique_holders.get(asset_id)}"
                    )

            balances = {k: v for k, v in state.fungible_balances.items() if v != 0}
            if balances != owned:
                violations.append(f"Fungible balances {balances} do not match owned quantities {owned}")

        for violation in violations:
            self.logger.critical(f"Ledger invariant violated: {violation}")

        return violations

    def get_registry_stats(self) -> Dict[str, Any]:
        """Get registry statistics."""
        with self._rw_lock.read_lock():
            state = self._state
            records = list(state.assets.values())

            stats = {
                'total_assets': state.next_asset_id,
                'unique_items': sum(1 for r in records if r.category == Category.UNIQUE_ITEM),
                'fungible_batches': sum(1 for r in records if r.is_fungible),
                'fungible_supply': sum(r.quantity for r in records if r.is_fungible),
                'capacity_ceiling': state.config.capacity_ceiling,
                'capacity_remaining': IdentityAllocator(state).remaining,
                'mint_fee': state.config.mint_fee,
                'fee_recipient': state.config.fee_recipient,
                'fees_collected': sum(t.amount for t in state.fee_transfers),
                'height': state.height,
                'updated_at': state.metadata.updated_at,
            }

        if self.storage:
            stats['storage_info'] = self.storage.get_storage_info()
        return stats

    def lock_metrics(self) -> Dict[str, Any]:
        return self._rw_lock.get_metrics()

    # Persistence

    def reload(self) -> None:
        """Reload ledger state from storage."""
        if not self.storage:
            return

        with self._rw_lock.write_lock():
            state = self.storage.load_state()
            if state is not None:
                self._state = state

    def backup(self) -> bool:
        if not self.storage:
            return False
        with self._rw_lock.read_lock():
            return self.storage.backup()

    def list_backups(self) -> List[str]:
        return self.storage.list_backups() if self.storage else []

    def restore_backup(self, timestamp: str) -> bool:
        """Restore ledger from backup and reload it."""
        if not self.storage:
            return False

        with self._rw_lock.write_lock():
            restored = self.storage.restore_backup(timestamp)
            if restored:
                self.reload()
        return restored
