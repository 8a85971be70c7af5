"""Route demands over shortest paths and accumulate per-link utilization."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from netload.demand import Demand
from netload.graph import Graph, Link, LinkKey
from netload.logging import get_logger
from netload.spf import Path, shortest_path

logger = get_logger(__name__)

UNREACHABLE = "unreachable"
UNKNOWN_NODE = "unknown_node"

REPORT_COLUMNS = ["from", "to", "load", "capacity", "utilization"]


@dataclass(frozen=True)
class LinkUtilization:
    """Accumulated load on one link.

    Attributes:
        link: The link.
        load: Sum of volumes of demands routed across it.
    """

    link: Link
    load: float = 0.0

    @property
    def utilization(self) -> float:
        return self.load / self.link.capacity

    def row(self) -> Tuple[Any, Any, float, float, float]:
        return (
            self.link.source,
            self.link.target,
            self.load,
            self.link.capacity,
            self.utilization,
        )


@dataclass(frozen=True)
class DemandOutcome:
    """Routing outcome of one demand.

    Attributes:
        index: Position of the demand in the simulated input.
        demand: The demand.
        path: Path it was routed on, or None when unroutable.
        reason: Why the demand was not routed (None when routed).
    """

    index: int
    demand: Demand
    path: Optional[Path] = None
    reason: Optional[str] = None

    @property
    def routed(self) -> bool:
        return self.path is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "source": self.demand.source,
            "destination": self.demand.destination,
            "volume": self.demand.volume,
            "routed": self.routed,
            "path": list(self.path.nodes) if self.path is not None else None,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class UtilizationReport:
    """Per-link loads and per-demand outcomes of one simulation.

    Attributes:
        links: One entry per link of the simulated graph, in graph order.
            Links no demand traverses carry zero load.
        outcomes: One entry per demand, in input order.
    """

    links: Tuple[LinkUtilization, ...]
    outcomes: Tuple[DemandOutcome, ...]

    @cached_property
    def _by_key(self) -> Dict[LinkKey, LinkUtilization]:
        return {entry.link.key: entry for entry in self.links}

    def _lookup(self, link: Union[Link, LinkKey]) -> LinkUtilization:
        key = link.key if isinstance(link, Link) else tuple(link)
        if key in self._by_key:
            return self._by_key[key]
        raise KeyError(f"Link '{key[0]}' -> '{key[1]}' is not in this report.")

    def load(self, link: Union[Link, LinkKey]) -> float:
        return self._lookup(link).load

    def utilization(self, link: Union[Link, LinkKey]) -> float:
        return self._lookup(link).utilization

    def loads(self) -> Dict[LinkKey, float]:
        """Return ``{(from, to): load}`` for every link in the report."""
        return {entry.link.key: entry.load for entry in self.links}

    @property
    def max_utilization(self) -> float:
        """Highest link utilization, 0.0 for a report without links."""
        return max((entry.utilization for entry in self.links), default=0.0)

    @property
    def total_load(self) -> float:
        return sum(entry.load for entry in self.links)

    @property
    def routed(self) -> Tuple[DemandOutcome, ...]:
        return tuple(o for o in self.outcomes if o.routed)

    @property
    def unroutable(self) -> Tuple[DemandOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.routed)

    @property
    def unroutable_volume(self) -> float:
        return sum(o.demand.volume for o in self.outcomes if not o.routed)

    def rows(self) -> List[Tuple[Any, Any, float, float, float]]:
        """Return ``(from, to, load, capacity, utilization)`` rows in link order."""
        return [entry.row() for entry in self.links]

    def to_dataframe(self) -> pd.DataFrame:
        """Return the link table as a DataFrame with `REPORT_COLUMNS`."""
        return pd.DataFrame(self.rows(), columns=REPORT_COLUMNS)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "links": [dict(zip(REPORT_COLUMNS, row)) for row in self.rows()],
            "demands": [o.to_dict() for o in self.outcomes],
            "max_utilization": self.max_utilization,
            "unroutable_volume": self.unroutable_volume,
        }


def simulate(graph: Graph, demands: Iterable[Demand]) -> UtilizationReport:
    """Route every demand on its shortest path and accumulate link loads.

    Demands are processed in input order. A demand that cannot be routed,
    because its destination is unreachable or one of its endpoints is not in
    the graph, is recorded as unroutable and contributes no load.

    Args:
        graph: Graph to route over; not modified.
        demands: Demands to route; not modified.

    Returns:
        A `UtilizationReport` covering every link of ``graph``.
    """
    loads: Dict[LinkKey, float] = {link.key: 0.0 for link in graph.links}
    outcomes: List[DemandOutcome] = []

    for index, demand in enumerate(demands):
        if not (graph.contains(demand.source) and graph.contains(demand.destination)):
            logger.debug(f"Demand {demand} references a node not in the graph")
            outcomes.append(DemandOutcome(index, demand, reason=UNKNOWN_NODE))
            continue

        path = shortest_path(graph, demand.source, demand.destination)
        if not isinstance(path, Path):
            logger.debug(f"No path for demand {demand}")
            outcomes.append(DemandOutcome(index, demand, reason=UNREACHABLE))
            continue

        for key in path.link_keys:
            loads[key] += demand.volume
        outcomes.append(DemandOutcome(index, demand, path=path))

    report = UtilizationReport(
        links=tuple(LinkUtilization(link, loads[link.key]) for link in graph.links),
        outcomes=tuple(outcomes),
    )
    logger.debug(
        f"Simulated {len(outcomes)} demands over {len(graph)} links: "
        f"max utilization {report.max_utilization:.4f}, "
        f"{len(report.unroutable)} unroutable"
    )
    return report
