"""State of one open list page: toggles, derived view and card actions."""

import logging
from enum import Enum
from typing import List

from pydantic import BaseModel

from watchorder.client.cache import CachedList
from watchorder.client.mutations import ListMutations
from watchorder.core.config import get_settings
from watchorder.core.errors import MalformedInputError, NotFoundError, Result
from watchorder.engine.presentation import MediaCard, card_for
from watchorder.engine.visibility import build_view
from watchorder.models.media import MediaNode, MediaType

logger = logging.getLogger(__name__)


class ListStatus(str, Enum):
    LOADING = "loading"
    NOT_FOUND = "not_found"
    EMPTY = "empty"  # nothing in the list, viewed by someone else
    POPULATE = "populate"  # nothing in the list, owner should go search
    READY = "ready"


class ListRender(BaseModel):
    """What the renderer needs for the current state of the list."""

    status: ListStatus
    name: str = ""
    is_owner: bool = False
    hide_watched: bool = True
    cards: List[MediaCard] = []
    hidden_parents: frozenset[str] = frozenset()
    all_hidden: bool = False


class ListView:
    """A component-scoped view over one cached list.

    ``hide_watched`` lives here and is never shared with other views. Once
    :meth:`close` has been called, results of requests still in flight are
    not written to the cache.
    """

    def __init__(
        self,
        list_id: str,
        mutations: ListMutations,
        *,
        hide_watched: bool | None = None,
        watched_parents_only: bool | None = None,
    ):
        settings = get_settings()
        self.list_id = list_id
        self.mutations = mutations
        self.hide_watched = (
            settings.hide_watched_default if hide_watched is None else hide_watched
        )
        self.watched_parents_only = (
            settings.watched_parents_only
            if watched_parents_only is None
            else watched_parents_only
        )
        self._open = False
        self._missing = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> Result[CachedList]:
        """Start showing the list and fetch its current contents."""
        self._open = True
        result = await self.mutations.fetch_list(
            self.list_id, still_wanted=self._still_wanted
        )
        return self._track(result)

    def close(self) -> None:
        logger.debug("Closing view of list %s", self.list_id)
        self._open = False

    def toggle_hide_watched(self) -> bool:
        self.hide_watched = not self.hide_watched
        return self.hide_watched

    @property
    def cached(self) -> CachedList | None:
        return self.mutations.cache.read(self.list_id)

    @property
    def is_owner(self) -> bool:
        return self.mutations.is_owner(self.list_id)

    def render(self) -> ListRender:
        if self._missing:
            return ListRender(status=ListStatus.NOT_FOUND, hide_watched=self.hide_watched)

        cached = self.cached
        if cached is None:
            return ListRender(status=ListStatus.LOADING, hide_watched=self.hide_watched)

        is_owner = self.is_owner
        if not cached.nodes:
            return ListRender(
                status=ListStatus.POPULATE if is_owner else ListStatus.EMPTY,
                name=cached.meta.name,
                is_owner=is_owner,
                hide_watched=self.hide_watched,
            )

        view = build_view(
            cached.nodes,
            self.hide_watched,
            watched_parents_only=self.watched_parents_only,
        )
        return ListRender(
            status=ListStatus.READY,
            name=cached.meta.name,
            is_owner=is_owner,
            hide_watched=self.hide_watched,
            cards=[card_for(node, is_owner) for node in view.nodes],
            hidden_parents=view.hidden_parents,
            all_hidden=view.all_hidden,
        )

    def _node(self, node_id: str) -> MediaNode | None:
        for node in self.mutations.cache.nodes(self.list_id):
            if node.id == node_id:
                return node
        return None

    def _still_wanted(self) -> bool:
        return self._open

    def _track(self, result: Result[CachedList]) -> Result[CachedList]:
        """Remember whether the list turned out to be gone on the server."""
        if not self._open:
            return result
        if result.ok:
            self._missing = False
        elif isinstance(result.error, NotFoundError) and self.cached is None:
            self._missing = True
        return result

    async def toggle_watched(self, node_id: str) -> Result[CachedList]:
        node = self._node(node_id)
        if node is None:
            return Result.failure(NotFoundError(f"Media {node_id} not found"))
        result = await self.mutations.toggle_watched(
            node_id, not node.is_watched, self.list_id, still_wanted=self._still_wanted
        )
        return self._track(result)

    async def remove(self, node_id: str) -> Result[CachedList]:
        result = await self.mutations.remove_from_list(
            node_id, self.list_id, still_wanted=self._still_wanted
        )
        return self._track(result)

    async def toggle_children(self, node_id: str) -> Result[CachedList]:
        """Expand or collapse a show's seasons or a season's episodes."""
        node = self._node(node_id)
        if node is None:
            return Result.failure(NotFoundError(f"Media {node_id} not found"))

        if node.show_children and node.media_type in (MediaType.TV, MediaType.SEASON):
            result = await self.mutations.hide_children(
                node_id, self.list_id, still_wanted=self._still_wanted
            )
        elif node.media_type == MediaType.TV:
            result = await self.mutations.add_seasons(
                node_id, node.media_id, self.list_id, still_wanted=self._still_wanted
            )
        elif node.media_type == MediaType.SEASON:
            result = await self.mutations.add_episodes(
                node_id,
                node.number,
                self.list_id,
                node.parent_show_id,
                still_wanted=self._still_wanted,
            )
        else:
            return Result.failure(
                MalformedInputError(f"{node.media_type.value} entries have no children")
            )
        return self._track(result)
