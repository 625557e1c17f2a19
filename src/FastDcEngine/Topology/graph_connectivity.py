# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, List, Set, Tuple, Union
import networkx as nx


class TemporaryChange:
    """
    Reversible edit of the graph
    """
    __slots__ = ('added', 'edge', 'v1', 'v2')

    def __init__(self, added: bool, edge: Hashable, v1: Hashable, v2: Hashable):
        """

        :param added: True if the edge was added, False if it was removed
        :param edge: edge key
        :param v1: first vertex
        :param v2: second vertex
        """
        self.added = added
        self.edge = edge
        self.v1 = v1
        self.v2 = v2

    def undo(self, graph: nx.MultiGraph):
        """
        Revert this change on the graph
        :param graph: MultiGraph
        """
        if self.added:
            graph.remove_edge(self.v1, self.v2, key=self.edge)
        else:
            graph.add_edge(self.v1, self.v2, key=self.edge)


class GraphConnectivity:
    """
    Connected components of a multi-graph with reversible temporary edits

    Vertices are typically bus numbers and edges branch numbers. The components are numbered so that
    the main component (the one holding the main vertex, or else the largest one) is always number 0.
    The temporary scopes are not safe to be opened concurrently: use temporary_changes() from threads.
    """

    def __init__(self, main_vertex: Union[Hashable, None] = None):
        """

        :param main_vertex: vertex defining the main component (i.e. the reference bus)
        """
        self.graph = nx.MultiGraph()

        self.main_vertex = main_vertex

        # edge key -> (v1, v2)
        self._edges: Dict[Hashable, Tuple[Hashable, Hashable]] = dict()

        # stack of open temporary scopes
        self._changes_stack: List[List[TemporaryChange]] = list()

        # main component vertices when each scope was opened
        self._main_component_stack: List[Set[Hashable]] = list()

        self._component_number: Union[Dict[Hashable, int], None] = None

        self._components: Union[List[Set[Hashable]], None] = None

        self._lock = threading.RLock()

    def add_vertex(self, v: Hashable):
        """
        Add a vertex
        :param v: vertex
        """
        self.graph.add_node(v)
        self._invalidate()

    def add_edge(self, v1: Hashable, v2: Hashable, edge: Hashable):
        """
        Add an edge between two existing vertices
        :param v1: first vertex
        :param v2: second vertex
        :param edge: edge key (unique)
        """
        if edge in self._edges and self.graph.has_edge(*self._edges[edge], key=edge):
            raise ValueError(f"Edge {edge} already in the graph")
        if v1 not in self.graph or v2 not in self.graph:
            raise ValueError(f"Edge {edge} refers to unknown vertices {v1}, {v2}")

        self.graph.add_edge(v1, v2, key=edge)
        self._edges[edge] = (v1, v2)
        if len(self._changes_stack):
            self._changes_stack[-1].append(TemporaryChange(added=True, edge=edge, v1=v1, v2=v2))
        self._invalidate()

    def remove_edge(self, edge: Hashable):
        """
        Remove an edge
        :param edge: edge key
        """
        v1, v2 = self._edges[edge]
        self.graph.remove_edge(v1, v2, key=edge)
        if len(self._changes_stack):
            self._changes_stack[-1].append(TemporaryChange(added=False, edge=edge, v1=v1, v2=v2))
        self._invalidate()

    def has_edge(self, edge: Hashable) -> bool:
        """
        Is the edge currently in the graph?
        :param edge: edge key
        :return:
        """
        vertices = self._edges.get(edge, None)
        if vertices is None:
            return False
        return self.graph.has_edge(vertices[0], vertices[1], key=edge)

    def get_edge_vertices(self, edge: Hashable) -> Tuple[Hashable, Hashable]:
        """
        Vertices of an edge (present or removed)
        :param edge: edge key
        :return: v1, v2
        """
        return self._edges[edge]

    def start_temporary_changes(self):
        """
        Open a scope of temporary changes
        """
        self._main_component_stack.append(set(self._get_components()[0]) if self.graph.number_of_nodes() else set())
        self._changes_stack.append(list())

    def undo_temporary_changes(self):
        """
        Revert all the changes made since the last start_temporary_changes
        """
        if len(self._changes_stack) == 0:
            raise RuntimeError("No temporary changes to undo")

        changes = self._changes_stack.pop()
        self._main_component_stack.pop()
        for change in reversed(changes):
            change.undo(self.graph)
        self._invalidate()

    @contextmanager
    def temporary_changes(self):
        """
        Context manager holding the connectivity lock over a scope of temporary changes
        """
        with self._lock:
            self.start_temporary_changes()
            try:
                yield self
            finally:
                self.undo_temporary_changes()

    @property
    def lock(self) -> threading.RLock:
        """
        Lock serializing the temporary scopes
        :return:
        """
        return self._lock

    def _invalidate(self):
        self._component_number = None
        self._components = None

    def _get_components(self) -> List[Set[Hashable]]:
        """
        Compute (or return the cached) sorted connected components
        :return: list of sets of vertices, main component first
        """
        if self._components is None:

            components = [set(c) for c in nx.connected_components(self.graph)]

            main = self.main_vertex if self.main_vertex in self.graph else None

            # main component first, then decreasing size, then smallest vertex for determinism
            components.sort(key=lambda c: (main not in c, -len(c), min(c)))

            self._components = components
            self._component_number = {v: i for i, c in enumerate(components) for v in c}

        return self._components

    def get_component_number(self, v: Hashable) -> int:
        """
        Number of the connected component holding a vertex (0 is the main component)
        :param v: vertex
        :return: component number
        """
        self._get_components()
        return self._component_number[v]

    def get_nb_connected_components(self) -> int:
        """
        Number of connected components
        :return:
        """
        return len(self._get_components())

    def get_connected_component(self, v: Hashable) -> Set[Hashable]:
        """
        Vertices of the connected component holding v
        :param v: vertex
        :return: set of vertices
        """
        return set(self._get_components()[self.get_component_number(v)])

    def get_main_connected_component(self) -> Set[Hashable]:
        """
        Vertices of the main connected component
        :return: set of vertices
        """
        components = self._get_components()
        return set(components[0]) if len(components) else set()

    def get_vertices_removed_from_main_component(self) -> Set[Hashable]:
        """
        Vertices that were in the main component when the current scope was opened and are not anymore
        :return: set of vertices
        """
        if len(self._main_component_stack) == 0:
            return set()
        return self._main_component_stack[-1] - self.get_main_connected_component()

    def get_edges_removed_from_main_component(self) -> Set[Hashable]:
        """
        Edges, present or temporarily removed, touching a vertex removed from the main component
        :return: set of edge keys
        """
        removed_vertices = self.get_vertices_removed_from_main_component()
        return {edge for edge, (v1, v2) in self._edges.items()
                if v1 in removed_vertices or v2 in removed_vertices}
