"""Card props for visible list entries."""

from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from watchorder.models.media import MediaNode, MediaType


class CardAction(str, Enum):
    DELETE = "delete"
    TOGGLE_WATCHED = "toggle_watched"
    ADD_SEASONS = "add_seasons"
    HIDE_SEASONS = "hide_seasons"
    ADD_EPISODES = "add_episodes"
    HIDE_EPISODES = "hide_episodes"


ACTION_LABELS = {
    CardAction.DELETE: "DELETE",
    CardAction.ADD_SEASONS: "ADD SEASONS",
    CardAction.HIDE_SEASONS: "HIDE SEASONS",
    CardAction.ADD_EPISODES: "ADD EPISODES",
    CardAction.HIDE_EPISODES: "HIDE EPISODES",
}


class MediaCard(BaseModel):
    """Everything a renderer needs to draw one list entry."""

    id: str
    media_type: MediaType
    title: str
    details: str
    release_date: Optional[date] = None
    poster_path: Optional[str] = None
    css_classes: str
    actions: List[CardAction] = []
    labels: dict[CardAction, str] = {}


def describe(node: MediaNode) -> str:
    """Return the secondary line for a card."""
    if node.media_type == MediaType.SEASON:
        return f"Season {node.number}" if node.number else ""
    if node.media_type == MediaType.EPISODE:
        return f"Episode {node.number}: {node.episode_label or ''}".rstrip()
    return ""


def children_action(node: MediaNode) -> CardAction | None:
    """Return the expand/collapse action a node offers, if any."""
    if node.media_type == MediaType.TV:
        return CardAction.HIDE_SEASONS if node.show_children else CardAction.ADD_SEASONS
    if node.media_type == MediaType.SEASON:
        return (
            CardAction.HIDE_EPISODES if node.show_children else CardAction.ADD_EPISODES
        )
    return None


def card_for(node: MediaNode, is_owner: bool) -> MediaCard:
    """Build the card for ``node``; only owners get mutating actions."""
    actions: list[CardAction] = []
    if is_owner:
        actions.append(CardAction.DELETE)
        toggle = children_action(node)
        if toggle is not None:
            actions.append(toggle)
        actions.append(CardAction.TOGGLE_WATCHED)

    labels = {action: ACTION_LABELS[action] for action in actions if action in ACTION_LABELS}
    if CardAction.TOGGLE_WATCHED in actions:
        labels[CardAction.TOGGLE_WATCHED] = (
            "MARK AS UNWATCHED" if node.is_watched else "MARK AS WATCHED"
        )

    classes = f"media {node.media_type.value}"
    if node.is_watched:
        classes += " watched"

    return MediaCard(
        id=node.id,
        media_type=node.media_type,
        title=node.title,
        details=describe(node),
        release_date=node.release_date,
        poster_path=node.poster_path,
        css_classes=classes,
        actions=actions,
        labels=labels,
    )
