"""JSON API for watch lists and their media."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel
from sqlmodel import Session

from watchorder.core.auth import get_current_user
from watchorder.core.database import get_session
from watchorder.core.errors import WatchOrderError
from watchorder.models.media import (
    CatalogResult,
    ListMeta,
    ListPayload,
    MediaMetadata,
    MediaNode,
)
from watchorder.services import lists as list_service
from watchorder.services import media as media_service
from watchorder.services.tmdb import search_catalog

router = APIRouter()


def _http_error(exc: WatchOrderError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "watchorder"}


@router.get("/search", response_model=List[CatalogResult])
async def api_search(q: str = Query(..., description="Search query")):
    """Search the catalog for movies and shows to add to a list."""
    return await search_catalog(q)


# --- Lists ---


class ListNameRequest(BaseModel):
    name: str


@router.get("/lists", response_model=List[ListMeta])
def list_lists(
    mine: bool = Query(False, description="Only lists owned by the acting user"),
    session: Session = Depends(get_session),
    user: Optional[str] = Depends(get_current_user),
):
    """List all lists, or only the acting user's."""
    if mine and user is None:
        return []
    owner = user if mine else None
    return [wl.to_meta() for wl in list_service.fetch_lists(session, owner=owner)]


@router.post("/lists", response_model=ListMeta, status_code=201)
def create_list(
    request: ListNameRequest,
    session: Session = Depends(get_session),
    user: Optional[str] = Depends(get_current_user),
):
    try:
        return list_service.create_list(session, request.name, user).to_meta()
    except WatchOrderError as exc:
        raise _http_error(exc) from exc


@router.get("/lists/{list_id}", response_model=ListPayload)
def get_list(list_id: str, session: Session = Depends(get_session)):
    """Return a list with its media in watch order."""
    try:
        return media_service.get_list_payload(session, list_id)
    except WatchOrderError as exc:
        raise _http_error(exc) from exc


@router.patch("/lists/{list_id}", response_model=ListMeta)
def edit_list(
    list_id: str,
    request: ListNameRequest,
    session: Session = Depends(get_session),
    user: Optional[str] = Depends(get_current_user),
):
    try:
        return list_service.edit_list(session, list_id, request.name, user).to_meta()
    except WatchOrderError as exc:
        raise _http_error(exc) from exc


@router.delete("/lists/{list_id}", status_code=204)
def delete_list(
    list_id: str,
    session: Session = Depends(get_session),
    user: Optional[str] = Depends(get_current_user),
):
    try:
        list_service.delete_list(session, list_id, user)
    except WatchOrderError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=204)


# --- List media ---


class AddMediaRequest(MediaMetadata):
    media_id: str


class WatchedRequest(BaseModel):
    is_watched: bool


class SeasonsRequest(BaseModel):
    media_id: str


class EpisodesRequest(BaseModel):
    season_number: int
    show_id: str


@router.post("/lists/{list_id}/media", response_model=MediaNode, status_code=201)
def add_media(
    list_id: str,
    request: AddMediaRequest,
    session: Session = Depends(get_session),
    user: Optional[str] = Depends(get_current_user),
):
    """Add a movie or show to a list."""
    metadata = MediaMetadata.model_validate(request.model_dump(exclude={"media_id"}))
    try:
        return media_service.add_to_list(
            session, list_id, request.media_id, metadata, user
        )
    except WatchOrderError as exc:
        raise _http_error(exc) from exc


@router.delete("/lists/{list_id}/media/{node_id}")
def remove_media(
    list_id: str,
    node_id: str,
    session: Session = Depends(get_session),
    user: Optional[str] = Depends(get_current_user),
):
    """Remove an entry and its children from a list."""
    try:
        removed = media_service.remove_from_list(session, list_id, node_id, user)
    except WatchOrderError as exc:
        raise _http_error(exc) from exc
    return {"removed": removed}


@router.put("/lists/{list_id}/media/{node_id}/watched", response_model=MediaNode)
def set_watched(
    list_id: str,
    node_id: str,
    request: WatchedRequest,
    session: Session = Depends(get_session),
    user: Optional[str] = Depends(get_current_user),
):
    try:
        return media_service.toggle_watched(
            session, list_id, node_id, request.is_watched, user
        )
    except WatchOrderError as exc:
        raise _http_error(exc) from exc


@router.post("/lists/{list_id}/media/{node_id}/seasons")
async def add_seasons(
    list_id: str,
    node_id: str,
    request: SeasonsRequest,
    session: Session = Depends(get_session),
    user: Optional[str] = Depends(get_current_user),
):
    """Add a show's seasons to the list and expand the show."""
    try:
        added = await media_service.add_seasons(
            session, list_id, node_id, request.media_id, user
        )
    except WatchOrderError as exc:
        raise _http_error(exc) from exc
    return {"added": added}


@router.post("/lists/{list_id}/media/{node_id}/episodes")
async def add_episodes(
    list_id: str,
    node_id: str,
    request: EpisodesRequest,
    session: Session = Depends(get_session),
    user: Optional[str] = Depends(get_current_user),
):
    """Add a season's episodes to the list and expand the season."""
    try:
        added = await media_service.add_episodes(
            session, list_id, node_id, request.season_number, request.show_id, user
        )
    except WatchOrderError as exc:
        raise _http_error(exc) from exc
    return {"added": added}


@router.post("/lists/{list_id}/media/{node_id}/hide-children", response_model=MediaNode)
def hide_children(
    list_id: str,
    node_id: str,
    session: Session = Depends(get_session),
    user: Optional[str] = Depends(get_current_user),
):
    """Collapse an entry; its children stay in the list but are not shown."""
    try:
        return media_service.hide_children(session, list_id, node_id, user)
    except WatchOrderError as exc:
        raise _http_error(exc) from exc
