"""netload: link utilization and worst-case single-link failure analysis.

Routes point-to-point traffic demands over shortest paths in a directed,
capacitated network and finds the single-link failure that drives link
utilization highest.

Primary API:
    build_graph() - Validate links and build an immutable Graph
    shortest_path() - Dijkstra path between two nodes
    simulate() - Route demands and report per-link utilization
    worst_case_failure() - Sweep every single-link failure

Example:
    from netload import Demand, build_graph, simulate, worst_case_failure

    graph = build_graph(links=[("A", "B", 10, 1), ("B", "C", 10, 1), ("A", "C", 5, 5)])
    demands = [Demand("A", "C", 4)]

    report = simulate(graph, demands)
    worst = worst_case_failure(graph, demands)
"""

from __future__ import annotations

from netload import logging
from netload._version import __version__
from netload.demand import Demand, validate_demands
from netload.exceptions import (
    DuplicateLinkError,
    InvalidCapacityError,
    InvalidDemandError,
    InvalidWeightError,
    NetworkModelError,
    SelfLoopError,
    UnknownNodeError,
)
from netload.failure import (
    FailureScenarioResult,
    evaluate_link_failure,
    severity,
    sweep,
    worst_case_failure,
)
from netload.graph import Graph, Link, build_graph
from netload.simulate import (
    DemandOutcome,
    LinkUtilization,
    UtilizationReport,
    simulate,
)
from netload.spf import Path, Unreachable, shortest_path

__all__ = [
    # Version
    "__version__",
    # Model
    "Graph",
    "Link",
    "Demand",
    "build_graph",
    "validate_demands",
    # Routing and analysis
    "Path",
    "Unreachable",
    "shortest_path",
    "simulate",
    "UtilizationReport",
    "LinkUtilization",
    "DemandOutcome",
    "FailureScenarioResult",
    "evaluate_link_failure",
    "severity",
    "sweep",
    "worst_case_failure",
    # Errors
    "NetworkModelError",
    "DuplicateLinkError",
    "SelfLoopError",
    "InvalidCapacityError",
    "InvalidWeightError",
    "UnknownNodeError",
    "InvalidDemandError",
    # Utilities
    "logging",
]
