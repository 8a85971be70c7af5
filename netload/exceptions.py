"""Load-time structural errors raised while building graphs and demands.

Routing outcomes (an unreachable destination) are not errors and never raise;
see :class:`netload.spf.Unreachable`.
"""

from __future__ import annotations

from typing import Hashable


class NetworkModelError(ValueError):
    """Base class for malformed network or traffic input."""


class DuplicateLinkError(NetworkModelError):
    """Two links share the same ``(from, to)`` pair."""

    def __init__(self, source: Hashable, target: Hashable) -> None:
        super().__init__(f"Duplicate link '{source}' -> '{target}'.")
        self.source = source
        self.target = target


class SelfLoopError(NetworkModelError):
    """A link starts and ends at the same node."""

    def __init__(self, node: Hashable) -> None:
        super().__init__(f"Self-loop on node '{node}' is not allowed.")
        self.node = node


class InvalidCapacityError(NetworkModelError):
    """A link capacity is not a finite positive number."""

    def __init__(self, source: Hashable, target: Hashable, capacity: object) -> None:
        super().__init__(
            f"Link '{source}' -> '{target}' has invalid capacity {capacity!r}; "
            "capacity must be a finite number > 0."
        )
        self.capacity = capacity


class InvalidWeightError(NetworkModelError):
    """A link weight is negative or not a finite number."""

    def __init__(self, source: Hashable, target: Hashable, weight: object) -> None:
        super().__init__(
            f"Link '{source}' -> '{target}' has invalid weight {weight!r}; "
            "weight must be a finite number >= 0."
        )
        self.weight = weight


class UnknownNodeError(NetworkModelError):
    """A node referenced by a query or demand is absent from the graph."""

    def __init__(self, node: Hashable) -> None:
        super().__init__(f"Node '{node}' is not in the graph.")
        self.node = node


class InvalidDemandError(NetworkModelError):
    """A demand volume is not a finite positive number."""

    def __init__(self, source: Hashable, destination: Hashable, volume: object) -> None:
        super().__init__(
            f"Demand '{source}' -> '{destination}' has invalid volume {volume!r}; "
            "volume must be a finite number > 0."
        )
        self.volume = volume
