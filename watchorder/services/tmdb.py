"""TMDB service for catalog search and show/season lookups."""

import asyncio
from cachetools import cached
from cachetools import TTLCache
from typing import List

import tmdbsimple as tmdb

from watchorder.core.config import get_settings
from watchorder.models.media import (
    CatalogEpisode,
    CatalogResult,
    CatalogSeason,
    CatalogSeasonDetail,
    CatalogShow,
    MediaType,
    media_sort_key,
    parse_release_date,
)
import logging
import requests

logger = logging.getLogger(__name__)


class TMDBError(Exception):
    """Domain exception for TMDB failures."""

    def __init__(self, message: str, original_exception: Exception = None):
        super().__init__(message)
        self.original_exception = original_exception


# Initialize TMDB
settings = get_settings()
tmdb.API_KEY = settings.tmdb_api_key

show_cache = TTLCache(maxsize=100, ttl=settings.catalog_cache_ttl)
season_cache = TTLCache(maxsize=200, ttl=settings.catalog_cache_ttl)


def _parse_search_hit(item: dict) -> CatalogResult | None:
    """Parse a multi-search hit, dropping people and undated entries."""
    media_type = item.get("media_type")
    if media_type == "movie":
        title = item.get("title", "Unknown")
        release_date = parse_release_date(item.get("release_date"))
    elif media_type == "tv":
        title = item.get("name", "Unknown")
        release_date = parse_release_date(item.get("first_air_date"))
    else:
        return None

    if release_date is None:
        return None

    return CatalogResult(
        id=item["id"],
        title=title,
        overview=item.get("overview", ""),
        poster_path=item.get("poster_path"),
        media_type=MediaType(media_type),
        release_date=release_date,
        vote_average=item.get("vote_average", 0.0),
    )


def _search_catalog_sync(query: str) -> List[CatalogResult]:
    """Search TMDB for movies and shows (synchronous)."""
    search = tmdb.Search()
    try:
        search.multi(query=query, include_adult=False)
    except (requests.exceptions.RequestException, tmdb.APIKeyError) as exc:
        logger.error("Error searching catalog for '%s': %s", query, exc)
        return []
    except Exception as exc:
        logger.exception("Unexpected error searching catalog for '%s': %s", query, exc)
        return []

    results = [_parse_search_hit(item) for item in search.results]
    return sorted((r for r in results if r is not None), key=media_sort_key)


async def search_catalog(query: str) -> List[CatalogResult]:
    """Search TMDB for movies and shows (async)."""
    return await asyncio.to_thread(_search_catalog_sync, query)


@cached(show_cache)
def _get_show_sync(tmdb_id: int) -> CatalogShow:
    """Fetch a show with its season listing (synchronous, cached)."""
    tv_api = tmdb.TV(tmdb_id)
    try:
        info = tv_api.info()
    except Exception as exc:
        logger.error("Failed to fetch show details for ID %s: %s", tmdb_id, exc)
        raise TMDBError(f"Failed to fetch show details for ID {tmdb_id}", exc) from exc

    # Specials (season 0) are kept; list views hide them
    seasons = [
        CatalogSeason(
            id=s["id"],
            season_number=s.get("season_number", 0),
            name=s.get("name", f"Season {s.get('season_number', 0)}"),
            air_date=parse_release_date(s.get("air_date")),
            poster_path=s.get("poster_path"),
            episode_count=s.get("episode_count", 0),
        )
        for s in info.get("seasons", [])
    ]

    return CatalogShow(
        id=info["id"],
        title=info.get("name", "Unknown"),
        poster_path=info.get("poster_path"),
        first_air_date=parse_release_date(info.get("first_air_date")),
        seasons=seasons,
    )


async def get_show(tmdb_id: int) -> CatalogShow:
    """Fetch a show with its season listing (async)."""
    return await asyncio.to_thread(_get_show_sync, tmdb_id)


@cached(season_cache)
def _get_season_sync(tmdb_id: int, season_number: int) -> CatalogSeasonDetail:
    """Fetch the episodes of one season (synchronous, cached)."""
    season_api = tmdb.TV_Seasons(tmdb_id, season_number)
    try:
        info = season_api.info()
    except Exception as exc:
        logger.error(
            "Failed to fetch season episodes for ID %s S%s: %s",
            tmdb_id,
            season_number,
            exc,
        )
        raise TMDBError(
            f"Failed to fetch season episodes for ID {tmdb_id} S{season_number}", exc
        ) from exc

    episodes = [
        CatalogEpisode(
            id=ep["id"],
            episode_number=ep["episode_number"],
            name=ep.get("name", f"Episode {ep['episode_number']}"),
            air_date=parse_release_date(ep.get("air_date")),
            still_path=ep.get("still_path"),
        )
        for ep in info.get("episodes", [])
    ]

    return CatalogSeasonDetail(
        id=info.get("id", 0),
        season_number=info.get("season_number", season_number),
        name=info.get("name", f"Season {season_number}"),
        episodes=episodes,
    )


async def get_season(tmdb_id: int, season_number: int) -> CatalogSeasonDetail:
    """Fetch the episodes of one season (async)."""
    return await asyncio.to_thread(_get_season_sync, tmdb_id, season_number)
