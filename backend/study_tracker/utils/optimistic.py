"""Local collection cache with optimistic updates and rollback."""

from __future__ import annotations

import copy
import logging
from typing import Callable, List, Optional

logger = logging.getLogger("study_tracker.client")


class OptimisticCache:
    """Hold a local copy of a collection of records keyed by `id`.

    `mutate` applies a patch locally before the remote write is
    confirmed. If the write fails, the collection is restored to the
    snapshot taken just before the patch and the error is re-raised.
    """

    def __init__(self, loader: Callable[[], List[dict]]):
        self._loader = loader
        self._items: Optional[List[dict]] = None

    def refresh(self) -> List[dict]:
        self._items = list(self._loader())
        return self.items()

    def items(self) -> List[dict]:
        if self._items is None:
            self.refresh()
        return copy.deepcopy(self._items)

    def get(self, item_id: str) -> Optional[dict]:
        for item in self.items():
            if item.get("id") == item_id:
                return item
        return None

    def mutate(self, item_id: str, patch: dict, commit: Callable[..., dict]) -> dict:
        """Apply `patch` to `item_id` now and confirm it with `commit(item_id, **patch)`.

        On success the local record is replaced by the confirmed one and
        returned. Raises `KeyError` without calling `commit` when
        `item_id` is not cached.
        """
        if self._items is None:
            self.refresh()
        if not any(item.get("id") == item_id for item in self._items):
            raise KeyError(item_id)
        previous = copy.deepcopy(self._items)
        self._items = [dict(item, **patch) if item.get("id") == item_id else item for item in self._items]
        try:
            confirmed = commit(item_id, **patch)
        except Exception:
            logger.warning("rolling back optimistic update of %s", item_id)
            self._items = previous
            raise
        self._items = [confirmed if item.get("id") == item_id else item for item in self._items]
        return copy.deepcopy(confirmed)
