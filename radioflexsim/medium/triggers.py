"""Subscription registry used for every notification emitted by the medium.

Subscribers are kept in registration order and the fan-out iterates over a
snapshot, so a callback may unsubscribe itself (or anyone else) while being
notified.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import itertools
from typing import Any, Callable, Dict, Generic, Hashable, TypeVar


E = TypeVar("E")
A = TypeVar("A")

_token_ids = itertools.count(1)


class Change(Enum):
    """Kind of change reported by medium and settings triggers."""

    ADD = "add"
    REMOVE = "remove"
    UPDATE = "update"


@dataclass(frozen=True, slots=True)
class Subscription:
    """Opaque token returned by :meth:`EventTriggers.subscribe`."""

    id: int = field(default_factory=lambda: next(_token_ids))


class EventTriggers(Generic[E, A]):
    """Registry of ``callback(event, arg)`` subscribers."""

    def __init__(self) -> None:
        self._subscribers: Dict[Subscription, tuple[Hashable | None, Callable[[E, A], Any]]] = {}

    def subscribe(self, callback: Callable[[E, A], Any], owner: Hashable | None = None) -> Subscription:
        token = Subscription()
        self._subscribers[token] = (owner, callback)
        return token

    def unsubscribe(self, token: Subscription) -> bool:
        """Remove one subscription; return ``False`` if it was unknown."""
        return self._subscribers.pop(token, None) is not None

    def unsubscribe_owner(self, owner: Hashable) -> int:
        """Remove every subscription registered for ``owner``."""
        tokens = [t for t, (o, _) in self._subscribers.items() if o is owner]
        for token in tokens:
            del self._subscribers[token]
        return len(tokens)

    def trigger(self, event: E, arg: A = None) -> None:
        for token, (_, callback) in list(self._subscribers.items()):
            # a previous callback may have removed this one
            if token in self._subscribers:
                callback(event, arg)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, token: object) -> bool:
        return token in self._subscribers


__all__ = ["Change", "EventTriggers", "Subscription"]
