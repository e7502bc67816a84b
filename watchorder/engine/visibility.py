"""Visibility rules for a flattened watch list.

A list arrives from the server as one ordered array mixing roots (movies,
shows) with the seasons and episodes materialized beneath them. Which of
those entries are shown depends on two independent toggles: the list-wide
"hide watched" switch and each parent's ``show_children`` flag. Every
function here is pure and keeps the input order; the server owns ordering.

The passes are kept separate so each can be tested in isolation:

1. :func:`compute_hidden_parents` decides which ids suppress their children.
2. :func:`drop_watched` applies the watched filter.
3. :func:`drop_children_of` removes children of hidden parents.
4. :func:`drop_placeholders` removes seasons without a real number.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence

from watchorder.models.media import MediaNode


@dataclass(frozen=True)
class VisibleList:
    """The rendered subset of a list plus what the renderer needs to route."""

    nodes: list[MediaNode]
    hidden_parents: frozenset[str]
    total: int

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    @property
    def all_hidden(self) -> bool:
        """True when the list has entries but none survive the filters."""
        return self.total > 0 and not self.nodes


def compute_hidden_parents(
    nodes: Iterable[MediaNode],
    hide_watched: bool,
    *,
    watched_parents_only: bool = False,
) -> frozenset[str]:
    """Return the ids whose children must not be shown.

    Every collapsed parent (``show_children`` off) hides its children. With
    ``watched_parents_only``, while watched entries are filtered out only
    collapsed parents that are themselves watched hide their children; an
    unwatched collapsed show then lets its seasons through.
    """
    collapsed = [node for node in nodes if not node.show_children]
    if hide_watched and watched_parents_only:
        collapsed = [node for node in collapsed if node.is_watched]
    return frozenset(node.id for node in collapsed)


def drop_watched(nodes: Iterable[MediaNode], hide_watched: bool) -> list[MediaNode]:
    if not hide_watched:
        return list(nodes)
    return [node for node in nodes if not node.is_watched]


def drop_children_of(
    nodes: Iterable[MediaNode], hidden_parents: frozenset[str] | set[str]
) -> list[MediaNode]:
    """Remove nodes whose show or season is in ``hidden_parents``.

    Parent references that point outside the list never match, so dangling
    references leave the node visible.
    """
    return [
        node
        for node in nodes
        if not any(pid in hidden_parents for pid in node.parent_ids())
    ]


def drop_placeholders(nodes: Iterable[MediaNode]) -> list[MediaNode]:
    return [node for node in nodes if not node.is_placeholder]


def compute_visible(
    nodes: Sequence[MediaNode],
    hide_watched: bool,
    *,
    watched_parents_only: bool = False,
) -> list[MediaNode]:
    """Return the nodes to render, in input order."""
    return build_view(
        nodes, hide_watched, watched_parents_only=watched_parents_only
    ).nodes


def build_view(
    nodes: Sequence[MediaNode],
    hide_watched: bool,
    *,
    watched_parents_only: bool = False,
) -> VisibleList:
    """Run all passes and return the visible nodes with the hidden parent set."""
    hidden_parents = compute_hidden_parents(
        nodes, hide_watched, watched_parents_only=watched_parents_only
    )
    visible = drop_watched(nodes, hide_watched)
    visible = drop_children_of(visible, hidden_parents)
    visible = drop_placeholders(visible)
    return VisibleList(nodes=visible, hidden_parents=hidden_parents, total=len(nodes))
