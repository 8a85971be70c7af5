"""Single-link failure sweep.

Removes each link of a graph in turn, re-routes all demands over the reduced
graph and keeps the most severe scenario.

Every scenario works on its own `Graph` view and its own report, so the
sweep parallelizes without coordination: the graph, demands and baseline
report are pickled once and handed to each worker process through the pool
initializer, and workers receive only the key of the link to remove.
Results are combined with `more_severe`, a commutative and associative
"max by severity" fold, so completion order does not affect the outcome.
"""

from __future__ import annotations

import logging
import os
import pickle
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from functools import reduce
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from netload.config import SWEEP_CONFIG
from netload.demand import Demand
from netload.graph import Graph, Link, LinkKey
from netload.logging import ROOT_LOGGER_NAME, get_logger
from netload.simulate import DemandOutcome, UtilizationReport, simulate
from netload.spf import link_sort_key

logger = get_logger(__name__)

__all__ = [
    "FailureScenarioResult",
    "evaluate_link_failure",
    "more_severe",
    "severity",
    "sweep",
    "worst_case_failure",
]


@dataclass(frozen=True)
class FailureScenarioResult:
    """Outcome of removing one link.

    Attributes:
        removed_link: The failed link, None for the "nothing evaluated" result.
        report: Utilization of the reduced graph.
        severity: Maximum link utilization in ``report``.
        newly_unroutable: Demands routed in the intact graph that the failure
            disconnects. Their volume is absent from every link load in
            ``report``.
        evaluated: False only for the result of a sweep over zero links.
    """

    removed_link: Optional[Link]
    report: Optional[UtilizationReport]
    severity: float
    newly_unroutable: Tuple[DemandOutcome, ...] = ()
    evaluated: bool = True

    @classmethod
    def not_evaluated(cls) -> FailureScenarioResult:
        """Return the sentinel for a graph without links."""
        return cls(removed_link=None, report=None, severity=0.0, evaluated=False)

    @property
    def unroutable_volume(self) -> float:
        """Traffic volume lost because of the failure."""
        return sum(o.demand.volume for o in self.newly_unroutable)

    @property
    def connectivity_loss(self) -> bool:
        return bool(self.newly_unroutable)

    def to_dict(self) -> Dict[str, Any]:
        if not self.evaluated:
            return {
                "evaluated": False,
                "message": "no single-link failure evaluated",
            }
        assert self.removed_link is not None and self.report is not None
        return {
            "evaluated": True,
            "removed_link": {
                "from": self.removed_link.source,
                "to": self.removed_link.target,
                "capacity": self.removed_link.capacity,
                "weight": self.removed_link.weight,
            },
            "severity": self.severity,
            "connectivity_loss": self.connectivity_loss,
            "unroutable_volume": self.unroutable_volume,
            "newly_unroutable": [o.to_dict() for o in self.newly_unroutable],
            "report": self.report.to_dict(),
        }


def severity(report: UtilizationReport) -> float:
    """Score a scenario by its maximum link utilization."""
    return report.max_utilization


def more_severe(
    a: FailureScenarioResult, b: FailureScenarioResult
) -> FailureScenarioResult:
    """Return the more severe of two scenario results.

    Higher severity wins; equal severity is decided by the smaller removed
    ``(from, to)``. Results that were not evaluated always lose.
    """
    if not a.evaluated:
        return b
    if not b.evaluated:
        return a
    assert a.removed_link is not None and b.removed_link is not None
    if a.severity != b.severity:
        return a if a.severity > b.severity else b
    if link_sort_key(b.removed_link.key) < link_sort_key(a.removed_link.key):
        return b
    return a


def evaluate_link_failure(
    graph: Graph,
    demands: Sequence[Demand],
    link: Link,
    baseline: Optional[UtilizationReport] = None,
) -> FailureScenarioResult:
    """Evaluate the scenario in which ``link`` fails.

    Args:
        graph: Intact graph; not modified.
        demands: Demands to route.
        link: Link to remove.
        baseline: Report of ``demands`` on the intact graph. Computed when
            omitted; pass it in when evaluating many links.

    Returns:
        The scenario result.
    """
    if baseline is None:
        baseline = simulate(graph, demands)

    report = simulate(graph.without_link(link), demands)
    routed_before = {o.index for o in baseline.outcomes if o.routed}
    newly_unroutable = tuple(
        o for o in report.outcomes if not o.routed and o.index in routed_before
    )
    if newly_unroutable:
        logger.debug(
            f"Failure of {link} disconnects {len(newly_unroutable)} demand(s)"
        )
    return FailureScenarioResult(
        removed_link=link,
        report=report,
        severity=severity(report),
        newly_unroutable=newly_unroutable,
    )


# Per-process state for sweep workers: (graph, demands, baseline)
_shared_state: Optional[Tuple[Graph, List[Demand], UtilizationReport]] = None


def _worker_init(state_pickle: bytes) -> None:
    """Load the shared sweep inputs once per worker process."""
    global _shared_state
    _shared_state = pickle.loads(state_pickle)

    env_level = os.getenv("NETLOAD_LOG_LEVEL")
    if env_level:
        from netload.logging import set_global_log_level

        set_global_log_level(getattr(logging, env_level.upper(), logging.INFO))

    get_logger(f"{__name__}.worker").debug(f"Worker {os.getpid()} initialized")


def _sweep_worker(link_key: LinkKey) -> FailureScenarioResult:
    if _shared_state is None:
        raise RuntimeError("Worker not initialized with sweep state")
    graph, demands, baseline = _shared_state
    return evaluate_link_failure(
        graph, demands, graph.link(*link_key), baseline=baseline
    )


def _iter_scenarios(
    graph: Graph, demands: List[Demand], parallelism: Optional[int]
) -> Iterator[FailureScenarioResult]:
    """Yield one result per link of ``graph``, in link order."""
    links = graph.links
    baseline = simulate(graph, demands)
    workers = SWEEP_CONFIG.estimate_workers(len(links), parallelism)

    if workers <= 1:
        logger.debug(f"Running serial failure sweep over {len(links)} links")
        for link in links:
            yield evaluate_link_failure(graph, demands, link, baseline=baseline)
        return

    logger.info(f"Running failure sweep over {len(links)} links with {workers} workers")
    state_pickle = pickle.dumps((graph, demands, baseline))
    chunksize = max(1, len(links) // (workers * 4))

    # Propagate logging level to workers via environment
    parent_level = logging.getLogger(ROOT_LOGGER_NAME).getEffectiveLevel()
    os.environ["NETLOAD_LOG_LEVEL"] = logging.getLevelName(parent_level)

    with ProcessPoolExecutor(
        max_workers=workers,
        initializer=_worker_init,
        initargs=(state_pickle,),
    ) as pool:
        yield from pool.map(
            _sweep_worker, [link.key for link in links], chunksize=chunksize
        )


def sweep(
    graph: Graph, demands: Iterable[Demand], parallelism: Optional[int] = None
) -> List[FailureScenarioResult]:
    """Evaluate every single-link failure of ``graph``.

    Args:
        graph: Intact graph; not modified.
        demands: Demands to route in every scenario.
        parallelism: Worker processes to use; defaults to
            ``SWEEP_CONFIG.effective_parallelism``.

    Returns:
        One result per link, in the graph's link order.
    """
    return list(_iter_scenarios(graph, list(demands), parallelism))


def worst_case_failure(
    graph: Graph, demands: Iterable[Demand], parallelism: Optional[int] = None
) -> FailureScenarioResult:
    """Find the single-link failure with the highest severity.

    Args:
        graph: Intact graph; not modified.
        demands: Demands to route in every scenario.
        parallelism: Worker processes to use; defaults to
            ``SWEEP_CONFIG.effective_parallelism``.

    Returns:
        The most severe scenario per `more_severe`, or
        `FailureScenarioResult.not_evaluated()` when ``graph`` has no links.
    """
    start_time = time.time()
    worst = reduce(
        more_severe,
        _iter_scenarios(graph, list(demands), parallelism),
        FailureScenarioResult.not_evaluated(),
    )
    elapsed = time.time() - start_time

    if not worst.evaluated:
        logger.info("Graph has no links; no single-link failure evaluated")
    else:
        logger.info(
            f"Worst-case failure: {worst.removed_link} "
            f"(severity {worst.severity:.4f}, "
            f"{len(worst.newly_unroutable)} newly unroutable) "
            f"after {len(graph)} scenarios in {elapsed:.2f}s"
        )
    return worst
