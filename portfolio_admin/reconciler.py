"""
Ordered asset-reference collections kept in step with their owning form.

A form field holding images (a project thumbnail, a project gallery, a blog
cover) is backed by one CollectionReconciler. Uploads complete on their own
schedule and are applied one at a time against the latest committed state;
loading a different record resets the collection and starts a new generation
so late completions from the previous record are dropped.
"""
from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Callable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

AssetReference = str
ChangeListener = Callable[[List[AssetReference]], None]


class CollectionMode(enum.Enum):
    """Replace-on-append (singular) vs. append-only (plural) semantics."""

    SINGULAR = "singular"
    PLURAL = "plural"

    def appended(self, items: Tuple[AssetReference, ...], value: AssetReference) -> Tuple[AssetReference, ...]:
        if self is CollectionMode.SINGULAR:
            return (value,)
        return items + (value,)

    def removed(self, items: Tuple[AssetReference, ...], index: int) -> Optional[Tuple[AssetReference, ...]]:
        """Return the new items, or None when the removal is a no-op."""
        if self is CollectionMode.SINGULAR:
            return ()
        if index < 0 or index >= len(items):
            return None
        return items[:index] + items[index + 1:]


def normalize_snapshot(snapshot: Any) -> List[AssetReference]:
    """
    Coerce a reset snapshot of any shape to an ordered list of references.

    Absent or falsy snapshots become empty, a single reference becomes a
    one-element list, sequences keep their order with blank entries dropped.
    Anything else is coerced and logged rather than rejected.
    """
    if not snapshot:
        return []
    if isinstance(snapshot, str):
        value = snapshot.strip()
        return [value] if value else []
    if isinstance(snapshot, (list, tuple)):
        items: List[AssetReference] = []
        for entry in snapshot:
            if entry is None:
                continue
            if not isinstance(entry, str):
                logger.warning("Coercing non-string asset reference %r in reset snapshot", entry)
            value = str(entry).strip()
            if value:
                items.append(value)
        return items
    logger.warning("Coercing malformed reset snapshot of type %s", type(snapshot).__name__)
    if isinstance(snapshot, dict):
        return []
    value = str(snapshot).strip()
    return [value] if value else []


class CollectionReconciler:
    """
    Owns one ordered collection of asset references.

    Every mutation is a pure function of the latest committed items, applied
    under the reconciler's lock, and the owner's `on_change` listener is
    called synchronously with the committed value before the lock is
    released, so notifications arrive in commit order.
    """

    def __init__(
        self,
        mode: CollectionMode = CollectionMode.PLURAL,
        on_change: Optional[ChangeListener] = None,
        initial: Any = None,
    ) -> None:
        self.mode = mode
        self._on_change = on_change
        self._lock = threading.RLock()
        self._items: Tuple[AssetReference, ...] = tuple(normalize_snapshot(initial))
        self._generation = 0

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[AssetReference]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"CollectionReconciler(mode={self.mode.value}, items={list(self._items)!r})"

    @property
    def items(self) -> List[AssetReference]:
        return list(self._items)

    @property
    def generation(self) -> int:
        """Incremented by every reset; uploads capture it when they start."""
        return self._generation

    def _commit(self, items: Tuple[AssetReference, ...], notify: bool) -> List[AssetReference]:
        self._items = items
        committed = list(items)
        if notify and self._on_change is not None:
            self._on_change(list(committed))
        return committed

    def reset(self, snapshot: Any, *, notify: bool = False) -> List[AssetReference]:
        """Replace the collection with an authoritative snapshot."""
        items = tuple(normalize_snapshot(snapshot))
        with self._lock:
            self._generation += 1
            return self._commit(items, notify)

    def append(self, value: AssetReference, *, generation: Optional[int] = None) -> List[AssetReference]:
        """
        Apply one completed upload.

        Pass the `generation` captured when the upload started to have the
        result ignored if the collection was reset in the meantime.
        """
        reference = str(value or "").strip()
        with self._lock:
            if not reference:
                logger.warning("Ignoring empty asset reference")
                return list(self._items)
            if generation is not None and generation != self._generation:
                logger.info(
                    "Dropping late upload %s (generation %s, current %s)",
                    reference,
                    generation,
                    self._generation,
                )
                return list(self._items)
            return self._commit(self.mode.appended(self._items, reference), True)

    def remove_at(self, index: int) -> List[AssetReference]:
        """Remove by position; out-of-range indexes leave the collection untouched."""
        with self._lock:
            items = self.mode.removed(self._items, int(index))
            if items is None:
                return list(self._items)
            return self._commit(items, True)
