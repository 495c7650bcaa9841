# services/events.py
import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional
from uuid import UUID

from models.event import Event

logger = logging.getLogger(__name__)

Handler = Callable[[Event], None]
ResetHook = Callable[[], None]

ALL_TOPICS = "*"


class _Subscription:
    __slots__ = ("handler", "owner", "on_reset")

    def __init__(self, handler: Handler, owner: Optional[str], on_reset: Optional[ResetHook]):
        self.handler = handler
        self.owner = owner
        self.on_reset = on_reset


class EventBus:
    """
    Process-wide publish/subscribe store.

    Services publish a topic ("invitations", "connections", "affirmations",
    "persons") whenever they change data that another consumer may be showing.
    Subscribers registered with an owner are dropped together when that owner
    signs out, and their `on_reset` hooks then run.
    """

    def __init__(self):
        self._subscriptions: Dict[str, List[_Subscription]] = defaultdict(list)

    def subscribe(
        self,
        topic: str,
        handler: Handler,
        owner: Optional[str] = None,
        on_reset: Optional[ResetHook] = None
    ) -> Callable[[], None]:
        subscription = _Subscription(handler, owner, on_reset)
        self._subscriptions[topic].append(subscription)
        logger.debug(f"Subscribed to '{topic}' (owner={owner})")

        def unsubscribe():
            try:
                self._subscriptions[topic].remove(subscription)
            except ValueError:
                pass

        return unsubscribe

    def publish(self, topic: str, user_ids: Iterable[UUID] = (), data: Optional[dict] = None) -> int:
        """Notify subscribers of a topic. Returns how many handlers ran successfully."""
        event = Event(topic=topic, user_ids=list(user_ids), data=data or {})
        handlers = list(self._subscriptions.get(topic, [])) + list(self._subscriptions.get(ALL_TOPICS, []))

        notified = 0
        for subscription in handlers:
            try:
                subscription.handler(event)
                notified += 1
            except Exception as e:
                logger.error(f"Event handler for '{topic}' failed: {str(e)}")
        return notified

    def reset(self, owner: Optional[str] = None) -> None:
        dropped = []
        for topic in list(self._subscriptions):
            keep = []
            for subscription in self._subscriptions[topic]:
                if owner is None or subscription.owner == owner:
                    dropped.append(subscription)
                else:
                    keep.append(subscription)
            self._subscriptions[topic] = keep

        if owner is None:
            self._subscriptions.clear()
            logger.info("Event bus reset")
        else:
            logger.info(f"Dropped event subscriptions for {owner}")

        for subscription in dropped:
            if subscription.on_reset is None:
                continue
            try:
                subscription.on_reset()
            except Exception as e:
                logger.error(f"Reset hook failed: {str(e)}")

    def subscriber_count(self, topic: Optional[str] = None) -> int:
        if topic is not None:
            return len(self._subscriptions.get(topic, []))
        return sum(len(subs) for subs in self._subscriptions.values())


_event_bus: Optional[EventBus] = None


def init_event_bus() -> EventBus:
    global _event_bus
    _event_bus = EventBus()
    return _event_bus


def get_event_bus() -> EventBus:
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    global _event_bus
    if _event_bus is not None:
        _event_bus.reset()
    _event_bus = None
