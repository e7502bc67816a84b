"""State-changing list operations and the refetch rule behind them.

Every operation is a single request to the list API. A successful request
is always followed by a full refetch of the owning list, and only that
refetch updates the cache; mutation responses are never used to patch the
cached nodes. A failed request leaves the cache as it was and the error is
returned to the caller in a :class:`~watchorder.core.errors.Result`.
"""

import logging
from typing import Awaitable, Callable

from watchorder.client.cache import CachedList, ListCache
from watchorder.client.transport import HttpTransport
from watchorder.core.errors import (
    NotFoundError,
    Result,
    UnauthorizedError,
    WatchOrderError,
)
from watchorder.models.media import ListMeta, MediaMetadata, validate_list_name

logger = logging.getLogger(__name__)

StillWanted = Callable[[], bool] | None


class ListMutations:
    """Owner-checked list operations with full-refetch consistency."""

    def __init__(
        self, transport: HttpTransport, cache: ListCache, user: str | None = None
    ):
        self.transport = transport
        self.cache = cache
        self.user = None
        if user is not None:
            self.login(user)

    def login(self, user: str) -> None:
        """Act as ``user`` for subsequent requests."""
        self.user = user
        self.transport.user = user

    def is_owner(self, list_id: str) -> bool:
        cached = self.cache.read(list_id)
        return bool(self.user and cached and cached.meta.owner == self.user)

    async def fetch_list(
        self, list_id: str, *, still_wanted: StillWanted = None, partial: bool = False
    ) -> Result[CachedList]:
        """Fetch the full list and make it the canonical cached copy.

        The response is not applied when ``still_wanted`` reports that the
        caller has gone away, or when a later request has already been
        applied. In both cases the result holds whatever the cache has.
        A list the server no longer has is dropped from the cache.

        With ``partial`` the fetched nodes are merged into the cached ones
        instead of replacing them, for responses that only carry part of
        the list.
        """
        version = self.cache.next_version(list_id)
        try:
            payload = await self.transport.get_list(list_id)
        except NotFoundError as exc:
            logger.info("List %s no longer exists", list_id)
            if still_wanted is None or still_wanted():
                self.cache.evict(list_id)
            return Result.failure(exc)
        except WatchOrderError as exc:
            logger.warning("Fetching list %s failed: %s", list_id, exc)
            return Result.failure(exc)

        if still_wanted is not None and not still_wanted():
            logger.debug("Ignoring list %s response for a closed view", list_id)
        else:
            self.cache.write(payload, version=version, partial=partial)
        return Result.success(self.cache.read(list_id))

    async def _require_owner(self, list_id: str) -> WatchOrderError | None:
        if self.user is None:
            return UnauthorizedError("You must be logged in to change a list")
        if self.cache.read(list_id) is None:
            fetched = await self.fetch_list(list_id)
            if not fetched.ok:
                return fetched.error
        if not self.is_owner(list_id):
            return UnauthorizedError("Unauthorized!")
        return None

    async def _mutate(
        self,
        name: str,
        list_id: str,
        request: Callable[[], Awaitable[object]],
        still_wanted: StillWanted = None,
    ) -> Result[CachedList]:
        denied = await self._require_owner(list_id)
        if denied is not None:
            logger.info("Refusing %s on list %s: %s", name, list_id, denied)
            return Result.failure(denied)

        try:
            await request()
        except WatchOrderError as exc:
            logger.warning("%s on list %s failed: %s", name, list_id, exc)
            return Result.failure(exc)

        return await self.fetch_list(list_id, still_wanted=still_wanted)

    async def add_to_list(
        self,
        media_id: str,
        list_id: str,
        metadata: MediaMetadata,
        *,
        still_wanted: StillWanted = None,
    ) -> Result[CachedList]:
        """Add a movie or show from the catalog as a new root entry."""
        return await self._mutate(
            "add_to_list",
            list_id,
            lambda: self.transport.add_to_list(list_id, media_id, metadata),
            still_wanted,
        )

    async def remove_from_list(
        self, node_id: str, list_id: str, *, still_wanted: StillWanted = None
    ) -> Result[CachedList]:
        return await self._mutate(
            "remove_from_list",
            list_id,
            lambda: self.transport.remove_from_list(list_id, node_id),
            still_wanted,
        )

    async def toggle_watched(
        self,
        node_id: str,
        new_watched: bool,
        list_id: str,
        *,
        still_wanted: StillWanted = None,
    ) -> Result[CachedList]:
        return await self._mutate(
            "toggle_watched",
            list_id,
            lambda: self.transport.toggle_watched(list_id, node_id, new_watched),
            still_wanted,
        )

    async def add_seasons(
        self,
        node_id: str,
        media_id: str,
        list_id: str,
        *,
        still_wanted: StillWanted = None,
    ) -> Result[CachedList]:
        """Materialize a show's seasons and expand it."""
        return await self._mutate(
            "add_seasons",
            list_id,
            lambda: self.transport.add_seasons(list_id, node_id, media_id),
            still_wanted,
        )

    async def add_episodes(
        self,
        node_id: str,
        season_number: int,
        list_id: str,
        show_id: str,
        *,
        still_wanted: StillWanted = None,
    ) -> Result[CachedList]:
        """Materialize a season's episodes and expand it."""
        return await self._mutate(
            "add_episodes",
            list_id,
            lambda: self.transport.add_episodes(
                list_id, node_id, season_number, show_id
            ),
            still_wanted,
        )

    async def hide_children(
        self, node_id: str, list_id: str, *, still_wanted: StillWanted = None
    ) -> Result[CachedList]:
        """Collapse a node without deleting its materialized children."""
        return await self._mutate(
            "hide_children",
            list_id,
            lambda: self.transport.hide_children(list_id, node_id),
            still_wanted,
        )

    # --- List management ---

    async def create_list(self, name: str) -> Result[ListMeta]:
        try:
            name = validate_list_name(name)
        except WatchOrderError as exc:
            return Result.failure(exc)
        if self.user is None:
            return Result.failure(
                UnauthorizedError("You must be logged in to create a list")
            )

        try:
            meta = await self.transport.create_list(name)
        except WatchOrderError as exc:
            logger.warning("Creating list %r failed: %s", name, exc)
            return Result.failure(exc)
        self.cache.write_meta(meta)
        return Result.success(meta)

    async def edit_list(self, list_id: str, name: str) -> Result[CachedList]:
        """Rename a list, then refetch it."""
        try:
            name = validate_list_name(name)
        except WatchOrderError as exc:
            return Result.failure(exc)
        return await self._mutate(
            "edit_list", list_id, lambda: self.transport.edit_list(list_id, name)
        )

    async def delete_list(self, list_id: str) -> Result[None]:
        denied = await self._require_owner(list_id)
        if denied is not None:
            return Result.failure(denied)
        try:
            await self.transport.delete_list(list_id)
        except WatchOrderError as exc:
            logger.warning("Deleting list %s failed: %s", list_id, exc)
            return Result.failure(exc)
        self.cache.evict(list_id)
        return Result.success(None)

    def reset_session(self) -> None:
        """Forget the acting user and everything cached on their behalf."""
        self.user = None
        self.transport.user = None
        self.cache.clear()
