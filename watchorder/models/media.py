"""Media models shared by the list API, the client cache and the view engine."""

from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from watchorder.core.errors import MalformedInputError


class MediaType(str, Enum):
    """Kind of catalog entity a list entry points at."""

    MOVIE = "movie"
    TV = "tv"
    SEASON = "season"
    EPISODE = "episode"


# Tie-break order used when two entries share a release date
MEDIA_TYPE_ORDER = {
    MediaType.MOVIE: 0,
    MediaType.TV: 1,
    MediaType.SEASON: 2,
    MediaType.EPISODE: 3,
}


def parse_release_date(value: object) -> Optional[date]:
    """Parse a TMDB-style date, treating blanks and garbage as unknown."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


class MediaNode(BaseModel):
    """A single entry in a watch list (movie, show, season or episode)."""

    id: str
    media_id: str
    media_type: MediaType
    title: str = ""
    poster_path: Optional[str] = None
    release_date: Optional[date] = None
    number: Optional[int] = None
    episode_label: Optional[str] = None
    parent_show_id: Optional[str] = None
    parent_season_id: Optional[str] = None
    show_children: bool = False
    is_watched: bool = False

    @field_validator("release_date", mode="before")
    @classmethod
    def _coerce_release_date(cls, v: object) -> Optional[date]:
        return parse_release_date(v)

    @property
    def is_root(self) -> bool:
        return self.parent_show_id is None and self.parent_season_id is None

    @property
    def is_placeholder(self) -> bool:
        """Seasons without a real ordinal (specials, aggregates) are never shown."""
        return self.media_type == MediaType.SEASON and not self.number

    def parent_ids(self) -> tuple[str, ...]:
        return tuple(
            pid for pid in (self.parent_show_id, self.parent_season_id) if pid
        )


def media_sort_key(node) -> tuple:
    """Order by release date (unknown first), then media type, then title."""
    release = node.release_date or date.min
    return (release, MEDIA_TYPE_ORDER[MediaType(node.media_type)], node.title.casefold())


class ListMeta(BaseModel):
    """Identity and ownership of a watch list."""

    id: str
    name: str
    owner: str


class ListPayload(BaseModel):
    """Response of a list fetch: metadata plus the server-ordered nodes."""

    list: ListMeta
    media: List[MediaNode] = []


class MediaMetadata(BaseModel):
    """Display metadata captured when a catalog item is added to a list."""

    media_type: MediaType
    title: str
    release_date: Optional[date] = None
    poster_path: Optional[str] = None

    @field_validator("media_type")
    @classmethod
    def _root_types_only(cls, v: MediaType) -> MediaType:
        if v not in (MediaType.MOVIE, MediaType.TV):
            raise ValueError("Only movies and shows can be added directly")
        return v

    @field_validator("release_date", mode="before")
    @classmethod
    def _coerce_release_date(cls, v: object) -> Optional[date]:
        return parse_release_date(v)


def validate_list_name(name: str) -> str:
    """Return the cleaned list name or raise MalformedInputError."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise MalformedInputError("List name is required")
    if "/" in cleaned:
        raise MalformedInputError("Invalid character: /")
    return cleaned


# --- Catalog (TMDB) models ---


class CatalogResult(BaseModel):
    """A movie or show returned by a catalog search."""

    id: int
    title: str
    overview: str = ""
    poster_path: Optional[str] = None
    media_type: MediaType
    release_date: Optional[date] = None
    vote_average: float = 0.0

    def metadata(self) -> MediaMetadata:
        return MediaMetadata(
            media_type=self.media_type,
            title=self.title,
            release_date=self.release_date,
            poster_path=self.poster_path,
        )


class CatalogSeason(BaseModel):
    """A season entry as listed on a show."""

    id: int
    season_number: int
    name: str
    air_date: Optional[date] = None
    poster_path: Optional[str] = None
    episode_count: int = 0


class CatalogShow(BaseModel):
    """A TV show with its season listing."""

    id: int
    title: str
    poster_path: Optional[str] = None
    first_air_date: Optional[date] = None
    seasons: List[CatalogSeason] = Field(default_factory=list)


class CatalogEpisode(BaseModel):
    """An episode in a season."""

    id: int
    episode_number: int
    name: str
    air_date: Optional[date] = None
    still_path: Optional[str] = None


class CatalogSeasonDetail(BaseModel):
    """A single season with its episodes."""

    id: int
    season_number: int
    name: str
    episodes: List[CatalogEpisode] = Field(default_factory=list)
