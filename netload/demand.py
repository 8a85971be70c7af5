"""Point-to-point traffic demands."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List

from netload.exceptions import InvalidDemandError, UnknownNodeError
from netload.graph import Graph, NodeID


@dataclass(frozen=True)
class Demand:
    """Traffic volume required between two nodes.

    Attributes:
        source: Node the traffic enters the network at.
        destination: Node the traffic leaves the network at.
        volume: Amount of traffic, a finite number > 0.
    """

    source: NodeID
    destination: NodeID
    volume: float

    def __post_init__(self) -> None:
        try:
            volume = float(self.volume)
        except (TypeError, ValueError):
            raise InvalidDemandError(
                self.source, self.destination, self.volume
            ) from None
        if not math.isfinite(volume) or volume <= 0:
            raise InvalidDemandError(self.source, self.destination, self.volume)
        object.__setattr__(self, "volume", volume)

    def __str__(self) -> str:
        return f"{self.source}->{self.destination} ({self.volume:g})"


def validate_demands(graph: Graph, demands: Iterable[Demand]) -> List[Demand]:
    """Check that every demand endpoint exists in ``graph``.

    Returns:
        The demands as a list, in input order.

    Raises:
        UnknownNodeError: On the first demand whose source or destination is
            absent from the graph.
    """
    checked = []
    for demand in demands:
        for node in (demand.source, demand.destination):
            if not graph.contains(node):
                raise UnknownNodeError(node)
        checked.append(demand)
    return checked
