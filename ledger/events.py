"""
Commodity Asset Ledger - Lifecycle Events

Structured events emitted after each committed state transition.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List


class LedgerEvent(str, Enum):
    """Ledger event types."""
    ASSET_MINTED = "asset_minted"
    ASSET_UPDATED = "asset_updated"
    ASSET_TRANSFERRED = "asset_transferred"
    CONFIG_CHANGED = "config_changed"


EventCallback = Callable[[LedgerEvent, Dict[str, Any]], None]


class EventBus:
    """Fan-out of ledger events to registered callbacks."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._callbacks: List[EventCallback] = []

    def subscribe(self, callback: EventCallback) -> None:
        """Add callback for ledger events."""
        self._callbacks.append(callback)

    def unsubscribe(self, callback: EventCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def emit(self, event_type: LedgerEvent, data: Dict[str, Any]) -> None:
        """Emit an event to every callback.

        The transition has already committed, so a failing callback is logged
        and skipped.
        """
        payload = dict(data, event=event_type.value, emitted_at=datetime.utcnow().isoformat())
        self.logger.info(f"{event_type.value}: {data}")

        for callback in list(self._callbacks):
            try:
                callback(event_type, payload)
            except Exception as e:
                self.logger.warning(f"Event callback failed for {event_type.value}: {e}")
