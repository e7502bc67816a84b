"""List service: creating, finding, renaming and deleting watch lists."""

import logging
from typing import List

from sqlmodel import Session, select

from watchorder.core.errors import (
    DuplicateListError,
    NotFoundError,
    UnauthorizedError,
)
from watchorder.models.media import validate_list_name
from watchorder.models.tables import ListItem, WatchList

logger = logging.getLogger(__name__)


def _parse_list_id(list_id: str | int) -> int:
    try:
        return int(list_id)
    except (TypeError, ValueError):
        raise NotFoundError(f"List {list_id} not found") from None


def fetch_lists(session: Session, owner: str | None = None) -> List[WatchList]:
    """Return all lists, or only those owned by ``owner``, name descending."""
    statement = select(WatchList)
    if owner is not None:
        statement = statement.where(WatchList.owner == owner)
    return list(session.exec(statement.order_by(WatchList.name.desc())).all())


def get_list(session: Session, list_id: str | int) -> WatchList:
    """Return a list by id or raise NotFoundError."""
    watch_list = session.get(WatchList, _parse_list_id(list_id))
    if watch_list is None:
        raise NotFoundError(f"List {list_id} not found")
    return watch_list


def get_authorized_list(
    session: Session, list_id: str | int, user: str | None
) -> WatchList:
    """Return a list the acting user owns.

    Raises:
        NotFoundError: The list does not exist.
        UnauthorizedError: There is no acting user or it is not the owner.
    """
    watch_list = get_list(session, list_id)
    if user is None or watch_list.owner != user:
        logger.info("User %s denied access to list %s", user, list_id)
        raise UnauthorizedError("Unauthorized!")
    return watch_list


def create_list(session: Session, name: str, user: str | None) -> WatchList:
    """Create a list owned by ``user``; names are unique across users."""
    if user is None:
        raise UnauthorizedError("You must be logged in to create a list")
    name = validate_list_name(name)

    existing = session.exec(select(WatchList).where(WatchList.name == name)).first()
    if existing is not None:
        raise DuplicateListError()

    watch_list = WatchList(name=name, owner=user)
    session.add(watch_list)
    session.commit()
    session.refresh(watch_list)
    logger.info("Created list %s (%s) for %s", watch_list.id, name, user)
    return watch_list


def edit_list(
    session: Session, list_id: str | int, name: str, user: str | None
) -> WatchList:
    """Rename a list the acting user owns."""
    watch_list = get_authorized_list(session, list_id, user)
    name = validate_list_name(name)

    clash = session.exec(
        select(WatchList).where(WatchList.name == name, WatchList.id != watch_list.id)
    ).first()
    if clash is not None:
        raise DuplicateListError()

    watch_list.name = name
    session.add(watch_list)
    session.commit()
    session.refresh(watch_list)
    return watch_list


def delete_list(session: Session, list_id: str | int, user: str | None) -> None:
    """Delete a list the acting user owns, along with its entries."""
    watch_list = get_authorized_list(session, list_id, user)
    items = session.exec(select(ListItem).where(ListItem.list_id == watch_list.id))
    for item in items.all():
        session.delete(item)
    session.delete(watch_list)
    session.commit()
    logger.info("Deleted list %s", list_id)
