"""Media service: list membership, watched state and season/episode expansion."""

import logging
from typing import Iterable, List

from sqlalchemy import or_
from sqlmodel import Session, select

from watchorder.core.errors import MalformedInputError, NotFoundError, TransportError
from watchorder.models.media import (
    ListPayload,
    MediaMetadata,
    MediaNode,
    MediaType,
    media_sort_key,
)
from watchorder.models.tables import ListItem, MediaRecord, to_node
from watchorder.services import tmdb
from watchorder.services.lists import get_authorized_list, get_list

logger = logging.getLogger(__name__)


def _parse_node_id(node_id: str | int) -> int:
    try:
        return int(node_id)
    except (TypeError, ValueError):
        raise NotFoundError(f"Media {node_id} not found") from None


def get_media_list(session: Session, list_id: str | int) -> List[MediaNode]:
    """Return the list's nodes in watch order (release date, type, title)."""
    watch_list = get_list(session, list_id)
    rows = session.exec(
        select(MediaRecord, ListItem)
        .join(ListItem, ListItem.media_record_id == MediaRecord.id)
        .where(ListItem.list_id == watch_list.id)
    ).all()
    return sorted((to_node(record, item) for record, item in rows), key=media_sort_key)


def get_list_payload(session: Session, list_id: str | int) -> ListPayload:
    """Return list metadata together with its ordered nodes."""
    watch_list = get_list(session, list_id)
    return ListPayload(
        list=watch_list.to_meta(), media=get_media_list(session, watch_list.id)
    )


def _get_entry(
    session: Session, list_id: int, node_id: str | int
) -> tuple[MediaRecord, ListItem]:
    record_id = _parse_node_id(node_id)
    item = session.get(ListItem, (list_id, record_id))
    record = session.get(MediaRecord, record_id)
    if item is None or record is None:
        raise NotFoundError(f"Media {node_id} is not in list {list_id}")
    return record, item


def _upsert_record(
    session: Session, media_type: MediaType, media_id: str, **fields
) -> MediaRecord:
    """Insert or update the shared record for a catalog entity."""
    record = session.exec(
        select(MediaRecord).where(
            MediaRecord.media_type == media_type, MediaRecord.media_id == media_id
        )
    ).first()
    if record is None:
        record = MediaRecord(media_type=media_type, media_id=media_id)
    for key, value in fields.items():
        setattr(record, key, value)
    session.add(record)
    session.flush()
    return record


def _add_missing_items(
    session: Session, list_id: int, records: Iterable[MediaRecord]
) -> int:
    """Add records that are not yet in the list; return how many were added."""
    present = set(
        session.exec(
            select(ListItem.media_record_id).where(ListItem.list_id == list_id)
        ).all()
    )
    added = 0
    for record in records:
        if record.id in present:
            continue
        session.add(ListItem(list_id=list_id, media_record_id=record.id))
        present.add(record.id)
        added += 1
    return added


def add_to_list(
    session: Session,
    list_id: str | int,
    media_id: str,
    metadata: MediaMetadata,
    user: str | None,
) -> MediaNode:
    """Add a movie or show to a list; re-adding resets its list state."""
    watch_list = get_authorized_list(session, list_id, user)
    record = _upsert_record(
        session,
        metadata.media_type,
        str(media_id),
        title=metadata.title,
        release_date=metadata.release_date,
        poster_path=metadata.poster_path,
    )

    item = session.get(ListItem, (watch_list.id, record.id))
    if item is None:
        item = ListItem(list_id=watch_list.id, media_record_id=record.id)
    item.is_watched = False
    item.show_children = False
    session.add(item)
    session.commit()
    session.refresh(record)
    session.refresh(item)
    logger.info("Added %s %s to list %s", record.media_type.value, media_id, list_id)
    return to_node(record, item)


def remove_from_list(
    session: Session, list_id: str | int, node_id: str | int, user: str | None
) -> int:
    """Remove a node and its direct children; return the number removed."""
    watch_list = get_authorized_list(session, list_id, user)
    record, item = _get_entry(session, watch_list.id, node_id)

    children = session.exec(
        select(ListItem)
        .join(MediaRecord, ListItem.media_record_id == MediaRecord.id)
        .where(
            ListItem.list_id == watch_list.id,
            or_(
                MediaRecord.parent_show_id == record.id,
                MediaRecord.parent_season_id == record.id,
            ),
        )
    ).all()

    for child in children:
        session.delete(child)
    session.delete(item)
    session.commit()
    logger.info(
        "Removed media %s and %d children from list %s",
        node_id,
        len(children),
        list_id,
    )
    return len(children) + 1


def _update_item(
    session: Session, list_id: str | int, node_id: str | int, user: str | None, **fields
) -> MediaNode:
    watch_list = get_authorized_list(session, list_id, user)
    record, item = _get_entry(session, watch_list.id, node_id)
    for key, value in fields.items():
        setattr(item, key, value)
    session.add(item)
    session.commit()
    session.refresh(item)
    return to_node(record, item)


def toggle_watched(
    session: Session,
    list_id: str | int,
    node_id: str | int,
    is_watched: bool,
    user: str | None,
) -> MediaNode:
    """Set a node's watched flag."""
    return _update_item(session, list_id, node_id, user, is_watched=is_watched)


def hide_children(
    session: Session, list_id: str | int, node_id: str | int, user: str | None
) -> MediaNode:
    """Collapse a node; its materialized children stay in the list."""
    return _update_item(session, list_id, node_id, user, show_children=False)


async def add_seasons(
    session: Session,
    list_id: str | int,
    node_id: str | int,
    media_id: str | int,
    user: str | None,
) -> int:
    """Materialize a show's seasons into the list and expand the show.

    Returns:
        The number of season entries newly added to the list.
    """
    watch_list = get_authorized_list(session, list_id, user)
    show_record, show_item = _get_entry(session, watch_list.id, node_id)
    if show_record.media_type != MediaType.TV:
        raise MalformedInputError("Seasons can only be added to a show")

    try:
        show = await tmdb.get_show(int(media_id))
    except tmdb.TMDBError as exc:
        raise TransportError(str(exc)) from exc

    seasons = [
        _upsert_record(
            session,
            MediaType.SEASON,
            str(season.id),
            title=show.title,
            release_date=season.air_date,
            poster_path=season.poster_path,
            number=season.season_number,
            parent_show_id=show_record.id,
        )
        for season in show.seasons
    ]
    added = _add_missing_items(session, watch_list.id, seasons)

    show_item.show_children = True
    session.add(show_item)
    session.commit()
    logger.info("Added %d seasons of %s to list %s", added, show.title, list_id)
    return added


async def add_episodes(
    session: Session,
    list_id: str | int,
    node_id: str | int,
    season_number: int,
    show_id: str | int,
    user: str | None,
) -> int:
    """Materialize a season's episodes into the list and expand the season.

    Returns:
        The number of episode entries newly added to the list.
    """
    watch_list = get_authorized_list(session, list_id, user)
    season_record, season_item = _get_entry(session, watch_list.id, node_id)
    if season_record.media_type != MediaType.SEASON:
        raise MalformedInputError("Episodes can only be added to a season")

    show_record = session.get(MediaRecord, _parse_node_id(show_id))
    if show_record is None or show_record.media_type != MediaType.TV:
        raise NotFoundError(f"Show {show_id} not found")
    if season_record.parent_show_id != show_record.id:
        raise MalformedInputError(
            f"Season {node_id} does not belong to show {show_id}"
        )

    try:
        season = await tmdb.get_season(int(show_record.media_id), season_number)
    except tmdb.TMDBError as exc:
        raise TransportError(str(exc)) from exc

    episodes = [
        _upsert_record(
            session,
            MediaType.EPISODE,
            str(episode.id),
            title=f"{show_record.title}: {season.name}",
            episode_label=episode.name,
            release_date=episode.air_date,
            poster_path=episode.still_path,
            number=episode.episode_number,
            parent_season_id=season_record.id,
            parent_show_id=show_record.id,
        )
        for episode in season.episodes
    ]
    added = _add_missing_items(session, watch_list.id, episodes)

    season_item.show_children = True
    session.add(season_item)
    session.commit()
    logger.info(
        "Added %d episodes of %s S%s to list %s",
        added,
        show_record.title,
        season_number,
        list_id,
    )
    return added
