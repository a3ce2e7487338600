import threading
from typing import Iterator, List, Optional, Set

from .request import Direction, Request
from ..errors import DuplicateRequestError


class RequestQueue:
    """
    Ordered collection of pending requests (head = next to serve).

    Insertion order is preserved. Removal happens either by id (the primary
    target has been reached) or by floor and direction (everything else the
    same stop satisfies). A retired id can never be queued again, so the set
    of retired ids grows with every request served during a run.

    Mutations and snapshots share one lock, which keeps the list consistent
    for concurrent readers and writers of the queue itself. It does not make
    Dispatcher.call_elevator thread-safe: waking the dispatcher touches the
    SimPy event queue, which must only be used from the simulation thread.
    """

    # Floor value meaning "no filter target" for remove_by_floor_and_direction
    NO_FLOOR = 0

    def __init__(self):
        self._requests: List[Request] = []
        self._retired_ids: Set[str] = set()
        self._lock = threading.RLock()

    def enqueue(self, request: Request):
        """Append a request to the tail."""
        with self._lock:
            if request.request_id in self._retired_ids or self._find(request.request_id) is not None:
                raise DuplicateRequestError(request.request_id)
            self._requests.append(request)

    def remove_by_id(self, request_id: str) -> Optional[Request]:
        """Remove the matching request. Absent ids are ignored and return None."""
        with self._lock:
            index = self._find(request_id)
            if index is None:
                return None
            request = self._requests.pop(index)
            self._retired_ids.add(request_id)
            return request

    def remove_by_floor_and_direction(self, floor: int, direction: Direction) -> List[Request]:
        """
        Remove every request at `floor` whose direction is GOTO or equals
        `direction`. A floor of NO_FLOOR disables the filter and removes nothing.

        Returns:
            The removed requests, in queue order.
        """
        if floor == self.NO_FLOOR:
            return []
        with self._lock:
            removed = [r for r in self._requests if r.matches(floor, direction)]
            if removed:
                self._requests = [r for r in self._requests if not r.matches(floor, direction)]
                self._retired_ids.update(r.request_id for r in removed)
            return removed

    def peek_first(self) -> Optional[Request]:
        """Head of the queue, or None when empty."""
        with self._lock:
            return self._requests[0] if self._requests else None

    def matching(self, floor: int, direction: Direction) -> List[Request]:
        """Non-destructive form of remove_by_floor_and_direction."""
        if floor == self.NO_FLOOR:
            return []
        with self._lock:
            return [r for r in self._requests if r.matches(floor, direction)]

    def snapshot(self) -> List[Request]:
        with self._lock:
            return list(self._requests)

    def is_retired(self, request_id: str) -> bool:
        with self._lock:
            return request_id in self._retired_ids

    def _find(self, request_id: str) -> Optional[int]:
        for index, request in enumerate(self._requests):
            if request.request_id == request_id:
                return index
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._requests)

    def __bool__(self) -> bool:
        return len(self) > 0

    def __iter__(self) -> Iterator[Request]:
        return iter(self.snapshot())

    def __contains__(self, request_id: str) -> bool:
        with self._lock:
            return self._find(request_id) is not None
