"""Immutable directed capacity/weight graph with link-exclusion overlays.

`Graph` stores nodes and links in a frozen `networkx.DiGraph`. Failure
scenarios never mutate it: `Graph.without_link()` returns a new `Graph` that
shares the frozen base and hides the removed link through an exclusion set,
so one base graph can back any number of concurrent scenario views.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    FrozenSet,
    Hashable,
    Iterable,
    Iterator,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import networkx as nx

from netload.exceptions import (
    DuplicateLinkError,
    InvalidCapacityError,
    InvalidWeightError,
    SelfLoopError,
)

NodeID = Hashable
LinkKey = Tuple[NodeID, NodeID]

__all__ = ["Graph", "Link", "LinkKey", "NodeID", "build_graph"]


@dataclass(frozen=True)
class Link:
    """A directed link between two nodes.

    Attributes:
        source: Node the link leaves.
        target: Node the link enters.
        capacity: Traffic the link can carry, > 0.
        weight: Routing cost of traversing the link, >= 0.
    """

    source: NodeID
    target: NodeID
    capacity: float
    weight: float = 1.0

    @property
    def key(self) -> LinkKey:
        """Return the ``(source, target)`` identity of this link."""
        return (self.source, self.target)

    def __str__(self) -> str:
        return f"{self.source}->{self.target}"


def _as_link(record: Union[Link, Sequence[Any]]) -> Link:
    if isinstance(record, Link):
        return record
    source, target, capacity, weight = record
    return Link(source, target, capacity, weight)


def _validate_link(link: Link) -> Link:
    if link.source == link.target:
        raise SelfLoopError(link.source)
    try:
        capacity = float(link.capacity)
    except (TypeError, ValueError):
        raise InvalidCapacityError(link.source, link.target, link.capacity) from None
    if not math.isfinite(capacity) or capacity <= 0:
        raise InvalidCapacityError(link.source, link.target, link.capacity)
    try:
        weight = float(link.weight)
    except (TypeError, ValueError):
        raise InvalidWeightError(link.source, link.target, link.weight) from None
    if not math.isfinite(weight) or weight < 0:
        raise InvalidWeightError(link.source, link.target, link.weight)
    return Link(link.source, link.target, capacity, weight)


def build_graph(
    nodes: Optional[Iterable[NodeID]] = None,
    links: Iterable[Union[Link, Sequence[Any]]] = (),
) -> Graph:
    """Validate nodes and links and build a `Graph`.

    Nodes are implied by link endpoints; ``nodes`` may additionally declare
    isolated nodes. Links keep their input order, which is the graph's link
    enumeration order.

    Args:
        nodes: Extra node identifiers to include.
        links: `Link` objects or ``(from, to, capacity, weight)`` records.

    Returns:
        A new immutable `Graph`.

    Raises:
        SelfLoopError: If a link has ``from == to``.
        InvalidCapacityError: If a capacity is not a finite number > 0.
        InvalidWeightError: If a weight is negative or not finite.
        DuplicateLinkError: If two links share ``(from, to)``.
    """
    digraph = nx.DiGraph()
    for node in nodes or ():
        digraph.add_node(node)

    for record in links:
        link = _validate_link(_as_link(record))
        if digraph.has_edge(link.source, link.target):
            raise DuplicateLinkError(link.source, link.target)
        digraph.add_edge(link.source, link.target, link=link)

    return Graph(nx.freeze(digraph))


class Graph:
    """Read-only view of a frozen link graph minus an exclusion set.

    Instances are cheap to derive from each other: the underlying
    `networkx.DiGraph` is shared and never modified.

    Attributes:
        excluded_links: Keys of links hidden in this view.
    """

    __slots__ = ("_base", "_excluded", "_links")

    def __init__(
        self,
        base: nx.DiGraph,
        excluded_links: FrozenSet[LinkKey] = frozenset(),
    ) -> None:
        self._base = base
        self._excluded = frozenset(excluded_links)
        self._links: Tuple[Link, ...] = tuple(
            data["link"]
            for u, v, data in base.edges(data=True)
            if (u, v) not in self._excluded
        )

    @classmethod
    def from_networkx(
        cls,
        graph: nx.DiGraph,
        capacity_attr: str = "capacity",
        weight_attr: str = "weight",
        default_weight: float = 1.0,
    ) -> Graph:
        """Build a `Graph` from any NetworkX directed graph.

        Args:
            graph: Source graph. Must be directed; multigraphs are rejected
                since two links may not share ``(from, to)``.
            capacity_attr: Edge attribute holding the capacity.
            weight_attr: Edge attribute holding the routing weight.
            default_weight: Weight used when an edge lacks ``weight_attr``.

        Raises:
            TypeError: If ``graph`` is undirected or a multigraph.
            KeyError: If an edge lacks ``capacity_attr``.
        """
        if not graph.is_directed() or graph.is_multigraph():
            raise TypeError("Graph.from_networkx expects a networkx.DiGraph.")
        links = []
        for u, v, data in graph.edges(data=True):
            if capacity_attr not in data:
                raise KeyError(f"Edge '{u}' -> '{v}' has no '{capacity_attr}'.")
            links.append(
                Link(u, v, data[capacity_attr], data.get(weight_attr, default_weight))
            )
        return build_graph(graph.nodes, links)

    #
    # Queries
    #
    @property
    def nodes(self) -> Tuple[NodeID, ...]:
        """All nodes, including isolated ones, in insertion order."""
        return tuple(self._base.nodes)

    @property
    def links(self) -> Tuple[Link, ...]:
        """Visible links in enumeration (input) order."""
        return self._links

    @property
    def excluded_links(self) -> FrozenSet[LinkKey]:
        return self._excluded

    def contains(self, node: NodeID) -> bool:
        """Return True if ``node`` belongs to this graph."""
        return node in self._base

    def __contains__(self, node: object) -> bool:
        # networkx answers False for unhashable objects
        return node in self._base

    def neighbors(self, node: NodeID) -> Tuple[Link, ...]:
        """Return outgoing visible links of ``node``.

        Unknown nodes and nodes without outgoing links yield an empty tuple.
        """
        if node not in self._base:
            return ()
        return tuple(
            data["link"]
            for target, data in self._base.adj[node].items()
            if (node, target) not in self._excluded
        )

    def has_link(self, source: NodeID, target: NodeID) -> bool:
        return (
            self._base.has_edge(source, target)
            and (source, target) not in self._excluded
        )

    def link(self, source: NodeID, target: NodeID) -> Link:
        """Return the visible link ``source -> target``.

        Raises:
            KeyError: If no such link is visible in this graph.
        """
        if not self.has_link(source, target):
            raise KeyError(f"No link '{source}' -> '{target}' in the graph.")
        return self._base.adj[source][target]["link"]

    #
    # Derivation
    #
    def without_link(self, link: Union[Link, LinkKey]) -> Graph:
        """Return a new graph with one link hidden.

        The receiver is not modified. Removing a link that is absent (or
        already removed) returns an equivalent graph.
        """
        key = link.key if isinstance(link, Link) else tuple(link)
        if not self.has_link(*key):
            return Graph(self._base, self._excluded)
        return Graph(self._base, self._excluded | {key})

    def to_networkx(self) -> nx.DiGraph:
        """Return a mutable `networkx.DiGraph` copy of the visible graph.

        Edges carry ``capacity`` and ``weight`` attributes.
        """
        digraph = nx.DiGraph()
        digraph.add_nodes_from(self._base.nodes)
        for link in self._links:
            digraph.add_edge(
                link.source, link.target, capacity=link.capacity, weight=link.weight
            )
        return digraph

    #
    # Dunder helpers
    #
    def __len__(self) -> int:
        return len(self._links)

    def __iter__(self) -> Iterator[Link]:
        return iter(self._links)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return set(self.nodes) == set(other.nodes) and set(self._links) == set(
            other._links
        )

    def __hash__(self) -> int:
        return hash((frozenset(self.nodes), frozenset(self._links)))

    def __getstate__(self) -> Dict[str, Any]:
        return {"base": self._base, "excluded": self._excluded}

    def __setstate__(self, state: Dict[str, Any]) -> None:
        self._base = state["base"]
        self._excluded = state["excluded"]
        self._links = tuple(
            data["link"]
            for u, v, data in self._base.edges(data=True)
            if (u, v) not in self._excluded
        )

    def __repr__(self) -> str:
        return (
            f"Graph(nodes={len(self._base)}, links={len(self._links)}, "
            f"excluded={len(self._excluded)})"
        )
