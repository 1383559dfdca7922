"""Change notifications for games, players, answers and scores.

Every write publishes a change event. Two kinds of consumers exist:

- Socket.IO clients, which join one room per (table, game code, event type)
  via the `subscribe` socket event and receive `change` packets;
- in-process handlers registered with ChangeFeed.subscribe(), which return a
  Subscription handle that must be closed (or used as a context manager).
"""

import threading
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

EVENT_TYPES = ('INSERT', 'UPDATE', 'DELETE')
WS_NAMESPACE = '/ws'

Handler = Callable[[Dict[str, Any]], None]


def expand_events(events: Optional[Iterable[str]]) -> List[str]:
    if events is None:
        return list(EVENT_TYPES)
    if isinstance(events, str):
        events = [events]
    expanded = []
    for event in events:
        event = (event or '').upper()
        if event == '*':
            return list(EVENT_TYPES)
        if event not in EVENT_TYPES:
            raise ValueError(f'unknown event type {event!r}')
        if event not in expanded:
            expanded.append(event)
    return expanded


def room_name(table: str, game_code: str, event: str) -> str:
    return f"{table}:{game_code.upper()}:{event.upper()}"


class Subscription:
    def __init__(self, feed: 'ChangeFeed', table: str, filters: Mapping[str, Any], handlers: Mapping[str, Handler]):
        self.feed = feed
        self.table = table
        self.filters = dict(filters or {})
        self.handlers = dict(handlers)
        self.active = True

    def matches(self, table: str, record: Mapping[str, Any]) -> bool:
        if not self.active or table != self.table:
            return False
        return all(record.get(k) == v for k, v in self.filters.items())

    def close(self) -> None:
        if self.active:
            self.active = False
            self.feed._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class ChangeFeed:
    def __init__(self, socketio=None, namespace: str = WS_NAMESPACE):
        self.socketio = socketio
        self.namespace = namespace
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, table: str, filters: Optional[Mapping[str, Any]] = None,
                  handlers: Optional[Mapping[str, Handler]] = None, **by_event: Handler) -> Subscription:
        """Register handlers keyed by event type ('INSERT', 'UPDATE', 'DELETE' or '*')."""
        merged: Dict[str, Handler] = {}
        for event, handler in {**(handlers or {}), **by_event}.items():
            for name in expand_events(event):
                merged[name] = handler
        if not merged:
            raise ValueError('subscribe() needs at least one handler')
        subscription = Subscription(self, table, filters or {}, merged)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, table: str, event: str, record: Mapping[str, Any], game_code: Optional[str] = None) -> None:
        event = event.upper()
        payload = {'table': table, 'event': event, 'record': dict(record)}
        if self.socketio is not None and game_code:
            self.socketio.emit('change', payload, to=room_name(table, game_code, event), namespace=self.namespace)
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(table, record)]
        for subscription in targets:
            handler = subscription.handlers.get(event)
            if handler is not None:
                handler(payload)
