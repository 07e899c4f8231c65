"""Event bus — fans committed contract events out to subscribers.

The chain runtime publishes the logs of every committed transaction here,
in log order. Subscribers play the role of off-chain indexers. Events of a
reverted transaction are never published.

A failing subscriber is logged and does not prevent delivery to the
remaining subscribers: the transaction that produced the event has already
committed and cannot be undone by an observer.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from nftmarketplace.models.events import ContractEvent, decode_event

logger = logging.getLogger(__name__)

EventHandler = Callable[[ContractEvent], None]

ALL_EVENTS = "*"


class EventDecodeError(ValueError):
    """Raised when a serialized event cannot be decoded."""


class EventBus:
    """Publishes contract events and keeps a queryable log of them."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._log: list[ContractEvent] = []

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        """Register a handler for one event name, or ``"*"`` for all."""
        handlers = self._handlers.setdefault(event_name, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        try:
            self._handlers.get(event_name, []).remove(handler)
        except ValueError:
            pass

    # ------------------------------------------------------------------
    # Publish
    # ------------------------------------------------------------------

    def publish(self, event: ContractEvent) -> int:
        """Record an event and deliver it to every matching subscriber.

        Returns the number of handlers that accepted the event.
        """
        self._log.append(event)
        handlers = self._handlers.get(event.event_name, []) + self._handlers.get(
            ALL_EVENTS, []
        )
        delivered = 0
        for handler in handlers:
            try:
                handler(event)
                delivered += 1
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Subscriber %r failed for %s in tx %s: %s",
                    handler,
                    event.event_name,
                    event.tx_hash,
                    exc,
                )
        return delivered

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(
        self,
        event_name: str | None = None,
        address: str | None = None,
        from_block: int = 0,
    ) -> list[ContractEvent]:
        """Return logged events, optionally filtered like ``eth_getLogs``."""
        return [
            event
            for event in self._log
            if (event_name is None or event.event_name == event_name)
            and (address is None or event.address == address)
            and event.block_number >= from_block
        ]

    def receive(self, raw_json: bytes | str) -> ContractEvent:
        """Decode a serialized event into its typed model."""
        if isinstance(raw_json, bytes):
            raw_json = raw_json.decode("utf-8")
        try:
            data = json.loads(raw_json)
        except json.JSONDecodeError as exc:
            raise EventDecodeError(f"Invalid JSON: {exc}") from exc
        if not isinstance(data, dict) or "event_name" not in data:
            raise EventDecodeError("Event must be a JSON object with an event_name")
        try:
            return decode_event(data)
        except Exception as exc:
            raise EventDecodeError(f"Event validation failed: {exc}") from exc
