"""Shared fixtures: small graphs and demand sets."""

from __future__ import annotations

import pytest

from netload.demand import Demand
from netload.graph import build_graph
from netload.logging import reset_logging, setup_root_logger


@pytest.fixture(autouse=True)
def _fresh_logging():
    """Give every test a freshly configured package logger."""
    reset_logging()
    setup_root_logger()
    yield
    reset_logging()
    setup_root_logger()


@pytest.fixture
def triangle():
    # Weight:
    #        [1]        [1]
    #   A ───────► B ───────► C
    #   │                     ▲
    #   └─────────────────────┘
    #             [5]
    #
    # Capacity: A->B 10, B->C 10, A->C 5
    return build_graph(
        links=[
            ("A", "B", 10, 1),
            ("B", "C", 10, 1),
            ("A", "C", 5, 5),
        ]
    )


@pytest.fixture
def triangle_demands():
    return [Demand("A", "C", 4)]


@pytest.fixture
def square():
    # Weight:
    #       [1]       [1]
    #   A ──────► B ──────► C
    #   │                   ▲
    #   │ [1]           [1] │
    #   └──────► D ─────────┘
    #
    # Capacity: A->B 1, B->C 1, A->D 2, D->C 2
    return build_graph(
        links=[
            ("A", "B", 1, 1),
            ("B", "C", 1, 1),
            ("A", "D", 2, 1),
            ("D", "C", 2, 1),
        ]
    )


@pytest.fixture
def bidirectional_line():
    # A ◄──► B ◄──► C, capacity 10 each direction, weight 1
    links = []
    for u, v in (("A", "B"), ("B", "C")):
        links.append((u, v, 10, 1))
        links.append((v, u, 10, 1))
    return build_graph(nodes=["Z"], links=links)


@pytest.fixture
def mesh():
    """Fully connected graph with 5 nodes and mixed weights."""
    names = ["A", "B", "C", "D", "E"]
    links = []
    for i, u in enumerate(names):
        for j, v in enumerate(names):
            if u != v:
                links.append((u, v, 10 + i, 1 + (i * 3 + j * 7) % 5))
    return build_graph(links=links)
