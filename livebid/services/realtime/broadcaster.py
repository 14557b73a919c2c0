import asyncio
from typing import Any, Dict, Optional, Protocol, Set
from uuid import UUID

from loguru import logger

from livebid.enums.event_kind import EventKind
from livebid.schemas.event import AuctionEvent


class Observer(Protocol):
    async def send_json(self, data: Any) -> None: ...


class EventBroadcaster:
    """Fans auction events out to the observers subscribed to that auction"""

    def __init__(self):
        # Map of auction_id to observer ids watching that auction
        self.auction_rooms: Dict[UUID, Set[str]] = {}
        # Map of observer id to its transport
        self.observers: Dict[str, Observer] = {}
        self._pending: Set[asyncio.Task] = set()

    def connect(self, observer_id: str, observer: Observer):
        self.observers[observer_id] = observer
        logger.info(f"Observer connected: {observer_id}")

    def disconnect(self, observer_id: str):
        for auction_id, members in list(self.auction_rooms.items()):
            members.discard(observer_id)
            if not members:
                del self.auction_rooms[auction_id]
        self.observers.pop(observer_id, None)
        logger.info(f"Observer disconnected: {observer_id}")

    def subscribe(self, observer_id: str, auction_id: UUID):
        if observer_id not in self.observers:
            raise KeyError(f"Observer {observer_id} is not connected")
        self.auction_rooms.setdefault(auction_id, set()).add(observer_id)
        logger.debug(f"Observer {observer_id} joined auction {auction_id}")

    def unsubscribe(self, observer_id: str, auction_id: UUID):
        members = self.auction_rooms.get(auction_id)
        if members is None:
            return
        members.discard(observer_id)
        if not members:
            del self.auction_rooms[auction_id]
        logger.debug(f"Observer {observer_id} left auction {auction_id}")

    def subscribers(self, auction_id: UUID) -> Set[str]:
        return set(self.auction_rooms.get(auction_id, ()))

    def publish(self, auction_id: UUID, kind: EventKind, payload: Optional[dict] = None) -> Optional[asyncio.Task]:
        """
        Schedule delivery of an event to the current subscribers of one auction.

        Fire-and-forget: the caller is never blocked and never sees delivery
        errors. Observers that are not connected right now simply miss the
        event and must refetch state on reconnect.
        """
        try:
            event = AuctionEvent(type=kind, auction_id=auction_id, data=payload or {})
            message = event.model_dump(mode="json")
            recipients = self.subscribers(auction_id)
            if not recipients:
                return None
            task = asyncio.get_running_loop().create_task(self._fan_out(auction_id, recipients, message))
        except Exception as e:
            logger.error(f"Error publishing {kind.value} for auction {auction_id}: {e}")
            return None

        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _fan_out(self, auction_id: UUID, recipients: Set[str], message: dict):
        disconnected = set()
        for observer_id in recipients:
            observer = self.observers.get(observer_id)
            if observer is None:
                continue
            try:
                await observer.send_json(message)
            except Exception as e:
                logger.error(f"Error sending {message['type']} to observer {observer_id}: {e}")
                disconnected.add(observer_id)

        for observer_id in disconnected:
            self.disconnect(observer_id)

    async def drain(self):
        """Wait for every scheduled delivery to finish"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
