import itertools

import pandas as pd
import pytest

from netload.demand import Demand
from netload.graph import build_graph
from netload.simulate import (
    REPORT_COLUMNS,
    UNKNOWN_NODE,
    UNREACHABLE,
    UtilizationReport,
    simulate,
)


class TestSimulate:
    def test_triangle_base_case(self, triangle, triangle_demands):
        report = simulate(triangle, triangle_demands)
        assert report.load(("A", "B")) == 4
        assert report.load(("B", "C")) == 4
        assert report.load(("A", "C")) == 0
        assert report.utilization(("A", "B")) == pytest.approx(0.4)
        assert report.utilization(("B", "C")) == pytest.approx(0.4)
        assert report.utilization(("A", "C")) == 0
        assert report.max_utilization == pytest.approx(0.4)

    def test_every_link_reported_in_graph_order(self, triangle, triangle_demands):
        report = simulate(triangle, triangle_demands)
        assert [e.link.key for e in report.links] == [
            ("A", "B"),
            ("B", "C"),
            ("A", "C"),
        ]
        assert [e.link.capacity for e in report.links] == [10, 10, 5]

    def test_conservation_single_demand(self, mesh):
        demand = Demand("A", "E", 7.5)
        report = simulate(mesh, [demand])
        (outcome,) = report.outcomes
        assert outcome.routed
        loaded = {key for key, load in report.loads().items() if load}
        assert loaded == set(outcome.path.link_keys)
        for key in outcome.path.link_keys:
            assert report.load(key) == 7.5
        assert report.total_load == pytest.approx(7.5 * outcome.path.hop_count)

    def test_unreachable_demand_is_recorded(self, triangle):
        demands = [Demand("C", "A", 3), Demand("A", "C", 4)]
        report = simulate(triangle, demands)
        first, second = report.outcomes
        assert not first.routed and first.reason == UNREACHABLE
        assert first.path is None
        assert second.routed
        assert report.unroutable == (first,)
        assert report.unroutable_volume == 3
        assert report.total_load == 8

    def test_unknown_node_demand_is_recorded(self, triangle):
        report = simulate(triangle, [Demand("A", "D", 2), Demand("A", "B", 1)])
        assert report.outcomes[0].reason == UNKNOWN_NODE
        assert report.outcomes[1].routed
        assert report.load(("A", "B")) == 1

    def test_unrouted_volume_never_loads_links(self, bidirectional_line):
        report = simulate(bidirectional_line, [Demand("A", "Z", 100)])
        assert report.total_load == 0
        assert report.max_utilization == 0

    def test_same_endpoint_demand_is_trivial_route(self, triangle):
        report = simulate(triangle, [Demand("B", "B", 9)])
        assert report.outcomes[0].routed
        assert report.outcomes[0].path.nodes == ("B",)
        assert report.total_load == 0

    def test_outcomes_keep_input_order(self, triangle):
        demands = [Demand("C", "A", 1), Demand("A", "B", 1), Demand("C", "B", 1)]
        report = simulate(triangle, demands)
        assert [o.index for o in report.outcomes] == [0, 1, 2]
        assert [o.demand for o in report.outcomes] == demands
        assert [o.routed for o in report.outcomes] == [False, True, False]

    def test_empty_inputs(self, triangle):
        report = simulate(triangle, [])
        assert report.outcomes == ()
        assert report.max_utilization == 0
        empty = simulate(build_graph(), [])
        assert empty.links == ()
        assert empty.max_utilization == 0.0

    def test_inputs_untouched(self, triangle, triangle_demands):
        demands = list(triangle_demands)
        simulate(triangle, demands)
        assert demands == triangle_demands
        assert len(triangle) == 3

    def test_idempotent(self, mesh):
        demands = [Demand(u, v, 1 + i) for i, (u, v) in enumerate(
            itertools.permutations(mesh.nodes, 2)
        )]
        assert simulate(mesh, demands) == simulate(mesh, demands)

    def test_demand_order_does_not_change_totals(self, mesh):
        demands = [
            Demand("A", "C", 3),
            Demand("B", "E", 2.5),
            Demand("E", "A", 1),
            Demand("D", "B", 4),
        ]
        expected = simulate(mesh, demands).loads()
        for perm in itertools.permutations(demands):
            assert simulate(mesh, list(perm)).loads() == pytest.approx(expected)

    def test_report_lookup_missing_link(self, triangle):
        report = simulate(triangle.without_link(("A", "B")), [])
        with pytest.raises(KeyError):
            report.load(("A", "B"))


class TestReportExport:
    def test_rows(self, triangle, triangle_demands):
        rows = simulate(triangle, triangle_demands).rows()
        assert rows[0] == ("A", "B", 4, 10, pytest.approx(0.4))
        assert rows[2] == ("A", "C", 0, 5, 0)

    def test_to_dataframe(self, triangle, triangle_demands):
        frame = simulate(triangle, triangle_demands).to_dataframe()
        assert isinstance(frame, pd.DataFrame)
        assert list(frame.columns) == REPORT_COLUMNS
        assert frame["load"].tolist() == [4, 4, 0]

    def test_to_dict(self, triangle):
        report = simulate(triangle, [Demand("A", "C", 4), Demand("C", "A", 1)])
        data = report.to_dict()
        assert data["links"][0] == {
            "from": "A",
            "to": "B",
            "load": 4,
            "capacity": 10,
            "utilization": pytest.approx(0.4),
        }
        assert data["demands"][0]["path"] == ["A", "B", "C"]
        assert data["demands"][1]["reason"] == UNREACHABLE
        assert data["unroutable_volume"] == 1


def test_report_is_plain_value():
    report = UtilizationReport(links=(), outcomes=())
    assert report.max_utilization == 0.0
    assert report.unroutable_volume == 0
