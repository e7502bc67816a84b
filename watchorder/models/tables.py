"""SQLModel tables backing the list API."""

from datetime import date
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from watchorder.models.media import ListMeta, MediaNode, MediaType


class WatchList(SQLModel, table=True):
    """A named, user-owned watch list."""

    __tablename__ = "watch_lists"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    owner: str = Field(index=True)

    def to_meta(self) -> ListMeta:
        return ListMeta(id=str(self.id), name=self.name, owner=self.owner)


class MediaRecord(SQLModel, table=True):
    """A catalog entity, shared by every list that references it."""

    __tablename__ = "media"
    __table_args__ = (UniqueConstraint("media_type", "media_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    media_id: str = Field(index=True)  # TMDB id
    media_type: MediaType
    title: str = ""
    release_date: Optional[date] = None
    poster_path: Optional[str] = None
    number: Optional[int] = None
    episode_label: Optional[str] = None
    parent_show_id: Optional[int] = Field(default=None, foreign_key="media.id")
    parent_season_id: Optional[int] = Field(default=None, foreign_key="media.id")


class ListItem(SQLModel, table=True):
    """Membership of a media record in a list, with per-list state."""

    __tablename__ = "list_items"

    list_id: int = Field(foreign_key="watch_lists.id", primary_key=True)
    media_record_id: int = Field(foreign_key="media.id", primary_key=True)
    is_watched: bool = False
    show_children: bool = False


def to_node(record: MediaRecord, item: ListItem) -> MediaNode:
    """Join a media record with its list entry into the client-facing node."""
    return MediaNode(
        id=str(record.id),
        media_id=record.media_id,
        media_type=record.media_type,
        title=record.title,
        poster_path=record.poster_path,
        release_date=record.release_date,
        number=record.number,
        episode_label=record.episode_label,
        parent_show_id=str(record.parent_show_id) if record.parent_show_id else None,
        parent_season_id=(
            str(record.parent_season_id) if record.parent_season_id else None
        ),
        show_children=item.show_children,
        is_watched=item.is_watched,
    )
