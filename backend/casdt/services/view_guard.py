"""
Discard late responses for views the actor has already left.

Each load of a view takes a ticket. Starting another load (of any view)
supersedes older tickets, so a slow fetch that completes afterwards is
dropped instead of overwriting what the actor is now looking at.

One guard lives on each SessionContext. The HTTP routes are stateless
request/response calls and take no tickets; on the server side the guard
is only exercised at session teardown (logout or expiry closes it). Tickets
are for long-lived clients holding a session, which call ``begin`` and
``apply`` around their own loads.
"""
import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewTicket:
    view: str
    generation: int


class ViewGuard:
    def __init__(self):
        self._counter = itertools.count(1)
        self._current = 0
        self._closed = False
        self._lock = threading.Lock()

    def begin(self, view: str) -> ViewTicket:
        with self._lock:
            generation = next(self._counter)
            self._current = generation
            return ViewTicket(view=view, generation=generation)

    def is_current(self, ticket: ViewTicket) -> bool:
        with self._lock:
            return not self._closed and ticket.generation == self._current

    def apply(self, ticket: ViewTicket, value: Any, sink: Callable[[Any], None]) -> bool:
        """Hand ``value`` to ``sink`` if the ticket is still current."""
        if not self.is_current(ticket):
            logger.debug("Discarding stale result for view %s (gen %d)", ticket.view, ticket.generation)
            return False
        sink(value)
        return True

    def close(self) -> None:
        """Invalidate every outstanding ticket (sign-out)."""
        with self._lock:
            self._closed = True
