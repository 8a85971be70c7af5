"""Readers and writers for network, traffic and report files.

Network CSV rows are ``from,to,capacity,weight`` (an optional leading link-id
column is ignored). Traffic CSV rows are ``source,destination,volume``. Both
may start with a header row. YAML scenarios hold the network and demands in
one document::

    nodes: [D]
    links:
      - {source: A, target: B, capacity: 10, weight: 1, bidirectional: true}
    demands:
      - {source: A, destination: B, volume: 4}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
import yaml

from netload.demand import Demand
from netload.failure import FailureScenarioResult
from netload.graph import Graph, Link, build_graph
from netload.logging import get_logger
from netload.simulate import REPORT_COLUMNS, UtilizationReport

logger = get_logger(__name__)

PathLike = Union[str, Path]

_SCENARIO_KEYS = {"nodes", "links", "demands"}
_LINK_KEYS = {"source", "target", "capacity", "weight", "bidirectional"}
_DEMAND_KEYS = {"source", "destination", "volume"}


@dataclass
class Scenario:
    """A network together with the demands to route over it."""

    graph: Graph
    demands: List[Demand] = field(default_factory=list)


def _is_number(value: Any) -> bool:
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True


def _read_rows(path: PathLike) -> pd.DataFrame:
    """Read a header-optional CSV as strings.

    The last column of every data row is numeric; a first row whose last
    column is not is taken as a header and dropped. Lines starting with ``#``
    are comments; ``#`` elsewhere is part of the field.

    Raises:
        ValueError: If a row has an empty field.
    """
    lines = [
        line
        for line in Path(path).read_text(encoding="utf-8").splitlines()
        if not line.lstrip().startswith("#")
    ]
    try:
        frame = pd.read_csv(
            StringIO("\n".join(lines)),
            header=None,
            dtype=str,
            skipinitialspace=True,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()

    # Short rows are padded with NaN even with na_filter off
    frame = frame.fillna("").apply(lambda col: col.str.strip())
    header = frame.iloc[0, -1] if len(frame) else ""
    if header and not _is_number(header):
        logger.debug(f"Skipping header row in {path}")
        frame = frame.iloc[1:]

    for number, row in enumerate(frame.itertuples(index=False, name=None), 1):
        if any(value == "" for value in row):
            raise ValueError(
                f"Row {number} of {path} has an empty field: {','.join(row)!r}."
            )
    return frame.reset_index(drop=True)


def load_network_csv(path: PathLike) -> Graph:
    """Load a graph from a network CSV file.

    Raises:
        ValueError: If a row does not have 4 or 5 columns.
        NetworkModelError: If a link fails graph validation.
    """
    frame = _read_rows(path)
    if frame.empty:
        logger.info(f"Network file {path} has no links")
        return build_graph()

    if frame.shape[1] == 5:
        # Leading link-id column
        frame = frame.iloc[:, 1:]
    if frame.shape[1] != 4:
        raise ValueError(
            f"Network file {path} must have 4 columns "
            f"(from,to,capacity,weight), found {frame.shape[1]}."
        )

    graph = build_graph(links=frame.itertuples(index=False, name=None))
    logger.info(f"Loaded {len(graph.nodes)} nodes and {len(graph)} links from {path}")
    return graph


def load_traffic_csv(path: PathLike) -> List[Demand]:
    """Load demands, in file order, from a traffic CSV file.

    Raises:
        ValueError: If a row does not have 3 columns.
        InvalidDemandError: If a volume is not a finite number > 0.
    """
    frame = _read_rows(path)
    if frame.empty:
        logger.info(f"Traffic file {path} has no demands")
        return []
    if frame.shape[1] != 3:
        raise ValueError(
            f"Traffic file {path} must have 3 columns "
            f"(source,destination,volume), found {frame.shape[1]}."
        )

    demands = [
        Demand(source, destination, volume)
        for source, destination, volume in frame.itertuples(index=False, name=None)
    ]
    logger.info(f"Loaded {len(demands)} demands from {path}")
    return demands


def _check_keys(entry: Any, allowed: set, required: set, what: str) -> None:
    if not isinstance(entry, dict):
        raise ValueError(f"Each {what} entry must be a mapping, got {entry!r}.")
    unknown = set(entry) - allowed
    if unknown:
        raise ValueError(f"Unrecognized {what} keys: {', '.join(sorted(unknown))}.")
    missing = required - set(entry)
    if missing:
        raise ValueError(f"Missing {what} keys: {', '.join(sorted(missing))}.")


def _is_file(source: str) -> bool:
    if "\n" in source:
        return False
    try:
        return Path(source).is_file()
    except (OSError, ValueError):
        # Name too long for the filesystem, or an embedded NUL
        return False


def load_scenario_yaml(source: Union[PathLike, str]) -> Scenario:
    """Load a scenario from a YAML file path or a YAML string.

    Links marked ``bidirectional: true`` become two independent directed
    links with the same capacity and weight.

    Raises:
        ValueError: If the YAML is malformed or has unrecognized keys.
        NetworkModelError: If the network or demands fail validation.
    """
    if isinstance(source, Path) or _is_file(source):
        text = Path(source).read_text(encoding="utf-8")
    else:
        text = str(source)

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Malformed scenario YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Scenario YAML must be a mapping at the top level.")
    unknown = set(data) - _SCENARIO_KEYS
    if unknown:
        raise ValueError(
            f"Unrecognized top-level key(s) in scenario: {', '.join(sorted(unknown))}."
        )

    links: List[Link] = []
    for entry in data.get("links") or []:
        _check_keys(entry, _LINK_KEYS, {"source", "target", "capacity"}, "link")
        weight = entry.get("weight", 1.0)
        links.append(Link(entry["source"], entry["target"], entry["capacity"], weight))
        if entry.get("bidirectional", False):
            links.append(
                Link(entry["target"], entry["source"], entry["capacity"], weight)
            )

    graph = build_graph(data.get("nodes") or [], links)

    demands = []
    for entry in data.get("demands") or []:
        _check_keys(entry, _DEMAND_KEYS, _DEMAND_KEYS, "demand")
        demands.append(Demand(entry["source"], entry["destination"], entry["volume"]))

    logger.info(
        f"Loaded scenario with {len(graph.nodes)} nodes, {len(graph)} links "
        f"and {len(demands)} demands"
    )
    return Scenario(graph=graph, demands=demands)


def write_utilization_csv(report: UtilizationReport, path: PathLike) -> Path:
    """Write the per-link table of ``report`` as CSV."""
    path = Path(path)
    report.to_dataframe().to_csv(path, index=False)
    logger.debug(f"Wrote utilization report to {path}")
    return path


def write_failure_csv(result: FailureScenarioResult, path: PathLike) -> Path:
    """Write a worst-case failure result as CSV.

    The file holds a one-row summary, the post-failure link table and the
    newly-unroutable demands, separated by blank lines.
    """
    path = Path(path)
    with path.open("w", encoding="utf-8", newline="") as fh:
        if not result.evaluated:
            fh.write("status\nno single-link failure evaluated\n")
            return path

        assert result.removed_link is not None and result.report is not None
        summary = pd.DataFrame(
            [
                {
                    "removed_from": result.removed_link.source,
                    "removed_to": result.removed_link.target,
                    "severity": result.severity,
                    "newly_unroutable": len(result.newly_unroutable),
                    "unroutable_volume": result.unroutable_volume,
                }
            ]
        )
        summary.to_csv(fh, index=False)
        fh.write("\n")
        result.report.to_dataframe().to_csv(fh, index=False)
        fh.write("\n")
        unroutable = pd.DataFrame(
            [
                (o.demand.source, o.demand.destination, o.demand.volume)
                for o in result.newly_unroutable
            ],
            columns=["source", "destination", "volume"],
        )
        unroutable.to_csv(fh, index=False)

    logger.debug(f"Wrote worst-case failure report to {path}")
    return path


def results_to_dict(
    report: UtilizationReport, result: Optional[FailureScenarioResult] = None
) -> Dict[str, Any]:
    """Combine the base report and the worst-case result into one document."""
    document: Dict[str, Any] = {"utilization": report.to_dict()}
    if result is not None:
        document["worst_case_failure"] = result.to_dict()
    return document


def write_results_json(
    report: UtilizationReport,
    result: Optional[FailureScenarioResult],
    path: PathLike,
) -> Path:
    """Write both results as a JSON document."""
    path = Path(path)
    path.write_text(
        json.dumps(results_to_dict(report, result), indent=2, default=str),
        encoding="utf-8",
    )
    logger.debug(f"Wrote results to {path}")
    return path


__all__ = [
    "REPORT_COLUMNS",
    "Scenario",
    "load_network_csv",
    "load_scenario_yaml",
    "load_traffic_csv",
    "results_to_dict",
    "write_failure_csv",
    "write_results_json",
    "write_utilization_csv",
]
