"""Client-side cache of list contents, keyed by list id.

The cache is the only writer of a list's canonical node array. Views and
the visibility engine only read from it.

Lifecycle of an entry:

- populated by the first successful fetch of the list,
- replaced wholesale by each full refetch (the normal case after a
  mutation), or merged by a narrower partial fetch,
- dropped by :meth:`ListCache.evict` when the list is deleted and by
  :meth:`ListCache.clear` on logout or session reset.

Responses are versioned per list: a response for a request issued before
one that has already been applied is discarded rather than clobbering newer
state.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from cachetools import LRUCache

from watchorder.core.config import get_settings
from watchorder.models.media import ListMeta, ListPayload, MediaNode

logger = logging.getLogger(__name__)


@dataclass
class CachedList:
    meta: ListMeta
    nodes: list[MediaNode] = field(default_factory=list)


def merge_nodes(
    existing: Iterable[MediaNode], incoming: Iterable[MediaNode]
) -> list[MediaNode]:
    """Merge ``incoming`` into ``existing`` by node id.

    An incoming node takes over the slot of the existing node with the same
    id; unknown ids are appended in incoming order. Existing nodes missing
    from ``incoming`` are kept. The result never holds two nodes with the
    same id.
    """
    merged: list[MediaNode] = []
    index: dict[str, int] = {}
    for node in list(existing) + list(incoming):
        slot = index.get(node.id)
        if slot is None:
            index[node.id] = len(merged)
            merged.append(node)
        else:
            merged[slot] = node
    return merged


class ListCache:
    """Injectable store of canonical node arrays, one per list id."""

    def __init__(self, maxsize: int | None = None) -> None:
        if maxsize is None:
            maxsize = get_settings().list_cache_size
        self._lists: LRUCache = LRUCache(maxsize=maxsize)
        self._issued: dict[str, int] = {}
        self._applied: dict[str, int] = {}

    def __contains__(self, list_id: object) -> bool:
        return list_id in self._lists

    def __len__(self) -> int:
        return len(self._lists)

    def next_version(self, list_id: str) -> int:
        """Issue a version token for a request about to be sent."""
        version = self._issued.get(list_id, 0) + 1
        self._issued[list_id] = version
        return version

    def is_stale(self, list_id: str, version: int) -> bool:
        return version <= self._applied.get(list_id, 0)

    def read(self, list_id: str) -> CachedList | None:
        """Resolve a list by id, regardless of which request populated it."""
        return self._lists.get(list_id)

    def nodes(self, list_id: str) -> list[MediaNode]:
        cached = self.read(list_id)
        return list(cached.nodes) if cached else []

    def write(
        self,
        payload: ListPayload,
        *,
        version: int | None = None,
        partial: bool = False,
    ) -> bool:
        """Apply a fetched list.

        Args:
            payload: The list metadata and nodes as returned by the server.
            version: Token from :meth:`next_version`; stale tokens are dropped.
            partial: Merge into the cached nodes instead of replacing them.
                Used for responses that hold only part of a list; see
                :meth:`~watchorder.client.mutations.ListMutations.fetch_list`.

        Returns:
            Whether the payload was applied.
        """
        list_id = payload.list.id
        if version is not None:
            if self.is_stale(list_id, version):
                logger.debug(
                    "Discarding stale response v%s for list %s", version, list_id
                )
                return False
            self._applied[list_id] = version

        current = self._lists.get(list_id)
        if partial and current is not None:
            nodes = merge_nodes(current.nodes, payload.media)
        else:
            nodes = list(payload.media)
        self._lists[list_id] = CachedList(meta=payload.list, nodes=nodes)
        return True

    def write_meta(self, meta: ListMeta) -> None:
        """Update a list's metadata, keeping any cached nodes."""
        current = self._lists.get(meta.id)
        nodes = current.nodes if current is not None else []
        self._lists[meta.id] = CachedList(meta=meta, nodes=nodes)

    def evict(self, list_id: str) -> None:
        self._lists.pop(list_id, None)
        self._applied[list_id] = self._issued.get(list_id, 0)

    def clear(self) -> None:
        """Drop every list and ignore responses to requests already in flight."""
        self._lists.clear()
        for list_id, version in self._issued.items():
            self._applied[list_id] = version
