"""HTTP transport from the client to the list API."""

import logging
from typing import Any

import niquests

from watchorder.core.config import get_settings
from watchorder.core.errors import (
    MalformedInputError,
    NotFoundError,
    TransportError,
    UnauthorizedError,
    WatchOrderError,
)
from watchorder.models.media import ListMeta, ListPayload, MediaMetadata

logger = logging.getLogger(__name__)


def error_for_status(status_code: int, message: str) -> WatchOrderError:
    """Map an HTTP error status onto the domain error taxonomy."""
    if status_code == 404:
        return NotFoundError(message)
    if status_code in (401, 403):
        return UnauthorizedError(message)
    if status_code in (400, 409, 422):
        return MalformedInputError(message)
    return TransportError(message)


class HttpTransport:
    """Request/response calls against the list API.

    No call is retried. Mutation responses are not used to patch client
    state; callers refetch the list instead.
    """

    def __init__(
        self,
        base_url: str | None = None,
        user: str | None = None,
        timeout: int | None = None,
        session: niquests.AsyncSession | None = None,
    ):
        settings = get_settings()
        self._settings = settings
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.user = user
        self.timeout = timeout or settings.request_timeout
        self.session = session or niquests.AsyncSession()

    async def aclose(self) -> None:
        """Properly close the internal HTTP session."""
        if self.session:
            await self.session.close()

    def _headers(self) -> dict[str, str]:
        if self.user is None:
            return {}
        return {self._settings.user_header: self.user}

    async def _request(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self.session.request(
                method, url, json=json, headers=self._headers(), timeout=self.timeout
            )
        except niquests.exceptions.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise TransportError(f"Could not reach the list service: {exc}") from exc

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.reason)
            except (ValueError, AttributeError):
                detail = response.reason
            logger.warning("%s %s -> %s: %s", method, url, response.status_code, detail)
            raise error_for_status(response.status_code, str(detail))

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get_list(self, list_id: str) -> ListPayload:
        data = await self._request("GET", f"/lists/{list_id}")
        return ListPayload.model_validate(data)

    async def create_list(self, name: str) -> ListMeta:
        data = await self._request("POST", "/lists", json={"name": name})
        return ListMeta.model_validate(data)

    async def edit_list(self, list_id: str, name: str) -> ListMeta:
        data = await self._request("PATCH", f"/lists/{list_id}", json={"name": name})
        return ListMeta.model_validate(data)

    async def delete_list(self, list_id: str) -> None:
        await self._request("DELETE", f"/lists/{list_id}")

    async def add_to_list(
        self, list_id: str, media_id: str, metadata: MediaMetadata
    ) -> None:
        body = {"media_id": str(media_id), **metadata.model_dump(mode="json")}
        await self._request("POST", f"/lists/{list_id}/media", json=body)

    async def remove_from_list(self, list_id: str, node_id: str) -> None:
        await self._request("DELETE", f"/lists/{list_id}/media/{node_id}")

    async def toggle_watched(self, list_id: str, node_id: str, is_watched: bool) -> None:
        await self._request(
            "PUT",
            f"/lists/{list_id}/media/{node_id}/watched",
            json={"is_watched": is_watched},
        )

    async def add_seasons(self, list_id: str, node_id: str, media_id: str) -> None:
        await self._request(
            "POST",
            f"/lists/{list_id}/media/{node_id}/seasons",
            json={"media_id": str(media_id)},
        )

    async def add_episodes(
        self, list_id: str, node_id: str, season_number: int, show_id: str
    ) -> None:
        await self._request(
            "POST",
            f"/lists/{list_id}/media/{node_id}/episodes",
            json={"season_number": season_number, "show_id": str(show_id)},
        )

    async def hide_children(self, list_id: str, node_id: str) -> None:
        await self._request("POST", f"/lists/{list_id}/media/{node_id}/hide-children")
