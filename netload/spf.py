"""Shortest-path-first (SPF) routing over a `Graph`.

Implements single-path Dijkstra with a per-call binary heap. Ties between
nodes at equal tentative distance are broken by `node_sort_key`, so the
chosen path never depends on container iteration order.

Notes:
    The search stops as soon as the destination is settled; the destination
    is not expanded. When several equal-cost paths exist, the destination's
    predecessor is the first equal-distance node settled, which makes the
    selection reproducible for a given graph.
"""

from __future__ import annotations

from dataclasses import dataclass
from heapq import heappop, heappush
from itertools import count
from typing import Dict, Iterator, List, Set, Tuple, Union

from netload.exceptions import UnknownNodeError
from netload.graph import Graph, Link, LinkKey, NodeID

__all__ = ["Path", "Unreachable", "node_sort_key", "shortest_path"]


def node_sort_key(node: NodeID) -> Tuple[int, float, str]:
    """Total order on node identifiers.

    Numbers sort before strings, each in natural order; any other hashable
    sorts last by its ``repr``.
    """
    if isinstance(node, (int, float)) and not isinstance(node, bool):
        return (0, node, "")
    if isinstance(node, str):
        return (1, 0, node)
    return (2, 0, repr(node))


def link_sort_key(key: LinkKey) -> Tuple[Tuple[int, float, str], ...]:
    """Order ``(from, to)`` pairs by `node_sort_key` of each endpoint."""
    return (node_sort_key(key[0]), node_sort_key(key[1]))


@dataclass(frozen=True)
class Path:
    """A single routed path.

    Attributes:
        nodes: Node sequence from source to destination.
        links: Traversed links, ``len(nodes) - 1`` of them.
        cost: Sum of link weights along the path.
    """

    nodes: Tuple[NodeID, ...]
    links: Tuple[Link, ...] = ()
    cost: float = 0.0

    @property
    def source(self) -> NodeID:
        return self.nodes[0]

    @property
    def destination(self) -> NodeID:
        return self.nodes[-1]

    @property
    def hop_count(self) -> int:
        return len(self.links)

    @property
    def link_keys(self) -> Tuple[LinkKey, ...]:
        return tuple(link.key for link in self.links)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[NodeID]:
        return iter(self.nodes)

    def __str__(self) -> str:
        return "->".join(str(n) for n in self.nodes)


@dataclass(frozen=True)
class Unreachable:
    """Outcome of a search whose destination cannot be reached."""

    source: NodeID
    destination: NodeID

    def __bool__(self) -> bool:
        return False


def shortest_path(
    graph: Graph, source: NodeID, destination: NodeID
) -> Union[Path, Unreachable]:
    """Compute the minimum-weight path from ``source`` to ``destination``.

    Args:
        graph: Graph (or reduced graph view) to route over.
        source: Start node.
        destination: End node.

    Returns:
        A `Path`, or `Unreachable` when no path exists. A query with
        ``source == destination`` returns the single-node path of cost 0.

    Raises:
        UnknownNodeError: If ``source`` or ``destination`` is not in the graph.
    """
    for node in (source, destination):
        if not graph.contains(node):
            raise UnknownNodeError(node)

    if source == destination:
        return Path(nodes=(source,))

    costs: Dict[NodeID, float] = {source: 0.0}
    pred: Dict[NodeID, Link] = {}
    settled: Set[NodeID] = set()
    tiebreak = count()
    min_pq: List[Tuple[float, Tuple[int, float, str], int, NodeID]] = [
        (0.0, node_sort_key(source), next(tiebreak), source)
    ]

    while min_pq:
        current_cost, _, _, node_id = heappop(min_pq)
        if node_id in settled:
            continue
        settled.add(node_id)

        if node_id == destination:
            return _reconstruct(source, destination, pred, current_cost)

        for link in graph.neighbors(node_id):
            neighbor_id = link.target
            if neighbor_id in settled:
                continue
            new_cost = current_cost + link.weight
            if neighbor_id not in costs or new_cost < costs[neighbor_id]:
                costs[neighbor_id] = new_cost
                pred[neighbor_id] = link
                heappush(
                    min_pq,
                    (new_cost, node_sort_key(neighbor_id), next(tiebreak), neighbor_id),
                )

    return Unreachable(source, destination)


def _reconstruct(
    source: NodeID, destination: NodeID, pred: Dict[NodeID, Link], cost: float
) -> Path:
    links: List[Link] = []
    node = destination
    while node != source:
        link = pred[node]
        links.append(link)
        node = link.source
    links.reverse()
    nodes = (source,) + tuple(link.target for link in links)
    return Path(nodes=nodes, links=tuple(links), cost=cost)
