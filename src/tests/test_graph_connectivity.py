# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from concurrent.futures import ThreadPoolExecutor

import pytest

from FastDcEngine.Topology.graph_connectivity import GraphConnectivity


def make_connectivity() -> GraphConnectivity:
    """
    0 - 1 - 2 - 3 with a parallel edge between 2 and 3 and a pendant vertex 4 hanging from 1
    """
    conn = GraphConnectivity(main_vertex=0)
    for v in range(5):
        conn.add_vertex(v)
    conn.add_edge(0, 1, "a")
    conn.add_edge(1, 2, "b")
    conn.add_edge(2, 3, "c1")
    conn.add_edge(2, 3, "c2")
    conn.add_edge(1, 4, "d")
    return conn


def test_components_round_trip():
    """
    Temporary removals are undone exactly
    """
    conn = make_connectivity()
    assert conn.get_nb_connected_components() == 1

    with conn.temporary_changes():
        conn.remove_edge("b")
        conn.remove_edge("d")
        assert conn.get_nb_connected_components() == 3
        assert conn.get_main_connected_component() == {0, 1}
        assert conn.get_vertices_removed_from_main_component() == {2, 3, 4}
        assert conn.get_edges_removed_from_main_component() == {"b", "c1", "c2", "d"}
        assert conn.get_component_number(0) == 0
        # the largest of the other components comes first
        assert conn.get_component_number(2) == 1
        assert conn.get_component_number(4) == 2

    assert conn.get_nb_connected_components() == 1
    assert conn.has_edge("b")
    assert conn.has_edge("d")
    assert conn.get_vertices_removed_from_main_component() == set()


def test_parallel_edge_keeps_connectivity():
    conn = make_connectivity()
    with conn.temporary_changes():
        conn.remove_edge("c1")
        assert conn.get_nb_connected_components() == 1
        assert not conn.has_edge("c1")
    assert conn.has_edge("c1")


def test_nested_scopes():
    """
    The removed vertices are relative to the innermost scope
    """
    conn = make_connectivity()
    conn.start_temporary_changes()
    conn.remove_edge("d")
    assert conn.get_vertices_removed_from_main_component() == {4}

    conn.start_temporary_changes()
    conn.remove_edge("b")
    assert conn.get_vertices_removed_from_main_component() == {2, 3}
    conn.undo_temporary_changes()

    assert conn.has_edge("b")
    assert conn.get_vertices_removed_from_main_component() == {4}
    conn.undo_temporary_changes()
    assert conn.get_nb_connected_components() == 1


def test_added_edges_are_undone():
    conn = make_connectivity()
    with conn.temporary_changes():
        conn.add_edge(0, 4, "e")
        assert conn.has_edge("e")
    assert not conn.has_edge("e")


def test_undo_without_scope():
    conn = make_connectivity()
    with pytest.raises(RuntimeError):
        conn.undo_temporary_changes()


def test_duplicated_edge():
    conn = make_connectivity()
    with pytest.raises(ValueError):
        conn.add_edge(0, 1, "a")


def test_network_connectivity_follows_branch_status(mesh_grid):
    """
    The network keeps its connectivity in line with the branch statuses
    """
    conn = mesh_grid.get_connectivity()
    br15 = mesh_grid.get_branch("br15")
    b5 = mesh_grid.get_bus("b5")

    assert conn.get_nb_connected_components() == 1
    mesh_grid.set_branch_active(br15, False)
    assert conn.get_nb_connected_components() == 2
    assert conn.get_component_number(b5.num) == 1
    mesh_grid.set_branch_active(br15, True)
    assert conn.get_nb_connected_components() == 1


def test_network_connectivity_built_once(mesh_factory):
    """
    Concurrent requests share a single connectivity object
    """
    grid = mesh_factory()
    with ThreadPoolExecutor(max_workers=8) as executor:
        conns = list(executor.map(lambda _: grid.get_connectivity(), range(32)))
    assert all(c is conns[0] for c in conns)
    assert conns[0].get_nb_connected_components() == 1
