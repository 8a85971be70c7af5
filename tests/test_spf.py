import random

import networkx as nx
import pytest

from netload.exceptions import UnknownNodeError
from netload.graph import build_graph
from netload.spf import Path, Unreachable, node_sort_key, shortest_path


def _brute_force_min_cost(graph, source, destination):
    g = graph.to_networkx()
    costs = [
        sum(g[u][v]["weight"] for u, v in zip(p[:-1], p[1:]))
        for p in nx.all_simple_paths(g, source, destination)
    ]
    return min(costs) if costs else None


def _random_graph(seed, n_nodes=6, p=0.4):
    rng = random.Random(seed)
    links = []
    for u in range(n_nodes):
        for v in range(n_nodes):
            if u != v and rng.random() < p:
                links.append((u, v, rng.randint(1, 10), rng.choice([0, 1, 2, 3, 5])))
    return build_graph(nodes=range(n_nodes), links=links)


class TestShortestPath:
    def test_triangle_prefers_two_hops(self, triangle):
        path = shortest_path(triangle, "A", "C")
        assert isinstance(path, Path)
        assert path.nodes == ("A", "B", "C")
        assert path.cost == 2
        assert path.link_keys == (("A", "B"), ("B", "C"))
        assert len(path) == 3
        assert path.hop_count == 2

    def test_reduced_graph_reroutes(self, triangle):
        path = shortest_path(triangle.without_link(("A", "B")), "A", "C")
        assert path.nodes == ("A", "C")
        assert path.cost == 5

    def test_same_source_and_destination(self, triangle):
        for node in triangle.nodes:
            path = shortest_path(triangle, node, node)
            assert path.nodes == (node,)
            assert path.links == ()
            assert path.cost == 0
            assert path.hop_count == 0

    def test_unreachable(self, triangle):
        result = shortest_path(triangle, "C", "A")
        assert result == Unreachable("C", "A")
        assert not result

    def test_isolated_node_unreachable(self, bidirectional_line):
        assert isinstance(shortest_path(bidirectional_line, "A", "Z"), Unreachable)

    def test_unknown_source(self, triangle):
        with pytest.raises(UnknownNodeError):
            shortest_path(triangle, "X", "A")

    def test_unknown_destination(self, triangle):
        with pytest.raises(UnknownNodeError, match="'X'"):
            shortest_path(triangle, "A", "X")

    def test_zero_weight_links(self):
        graph = build_graph(
            links=[("A", "B", 1, 0), ("B", "C", 1, 0), ("A", "C", 1, 1)]
        )
        path = shortest_path(graph, "A", "C")
        assert path.nodes == ("A", "B", "C")
        assert path.cost == 0

    def test_does_not_mutate_graph(self, triangle):
        before = list(triangle.links)
        shortest_path(triangle, "A", "C")
        assert list(triangle.links) == before


class TestTieBreaking:
    def test_equal_cost_paths_pick_smaller_node(self, square):
        # A->B->C and A->D->C both cost 2; B settles before D
        assert shortest_path(square, "A", "C").nodes == ("A", "B", "C")

    def test_tie_break_independent_of_input_order(self):
        links = [
            ("A", "D", 2, 1),
            ("D", "C", 2, 1),
            ("A", "B", 1, 1),
            ("B", "C", 1, 1),
        ]
        forward = build_graph(links=links)
        backward = build_graph(links=list(reversed(links)))
        assert shortest_path(forward, "A", "C").nodes == ("A", "B", "C")
        assert shortest_path(backward, "A", "C").nodes == ("A", "B", "C")

    def test_integer_nodes_order_numerically(self):
        graph = build_graph(
            links=[(0, 10, 1, 1), (10, 99, 1, 1), (0, 9, 1, 1), (9, 99, 1, 1)]
        )
        assert shortest_path(graph, 0, 99).nodes == (0, 9, 99)

    def test_node_sort_key_total_order(self):
        nodes = ["b", 3, "a", 1.5, ("t", 1)]
        assert sorted(nodes, key=node_sort_key) == [1.5, 3, "a", "b", ("t", 1)]


class TestMinimality:
    def test_mesh_against_networkx(self, mesh):
        g = mesh.to_networkx()
        for source in mesh.nodes:
            for destination in mesh.nodes:
                path = shortest_path(mesh, source, destination)
                expected = nx.dijkstra_path_length(g, source, destination)
                assert path.cost == pytest.approx(expected)

    @pytest.mark.parametrize("seed", range(15))
    def test_random_graphs_against_brute_force(self, seed):
        graph = _random_graph(seed)
        for source in graph.nodes:
            for destination in graph.nodes:
                if source == destination:
                    continue
                result = shortest_path(graph, source, destination)
                expected = _brute_force_min_cost(graph, source, destination)
                if expected is None:
                    assert isinstance(result, Unreachable)
                    continue
                assert isinstance(result, Path)
                assert result.cost == pytest.approx(expected)
                # Path is made of existing consecutive links
                assert result.nodes[0] == source and result.nodes[-1] == destination
                for (u, v), link in zip(result.link_keys, result.links):
                    assert graph.link(u, v) == link
                assert result.cost == pytest.approx(
                    sum(link.weight for link in result.links)
                )

    def test_repeated_calls_are_identical(self, mesh):
        first = [shortest_path(mesh, "A", n) for n in mesh.nodes]
        second = [shortest_path(mesh, "A", n) for n in mesh.nodes]
        assert first == second
