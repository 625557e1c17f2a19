# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import threading
from typing import Dict, List, Set, Union, Protocol
import networkx as nx

from FastDcEngine.Devices.bus import Bus
from FastDcEngine.Devices.branch import Branch
from FastDcEngine.Topology.graph_connectivity import GraphConnectivity
from FastDcEngine.exceptions import ReferenceBusError, ElementNotFoundError, StructuralError


class NetworkListener(Protocol):
    """
    Object notified of the network topology changes
    """

    def on_branch_active_change(self, branch: Branch, active: bool) -> None:
        ...


class DcNetwork:
    """
    Buses and branches of a DC power flow problem
    """

    def __init__(self, name: str = "DcNetwork", zero_impedance_threshold: float = 1e-8):
        """
        DcNetwork constructor
        :param name: name of the network
        :param zero_impedance_threshold: reactance (p.u.) under which a branch is considered zero impedance
        """
        self.name = name

        self.zero_impedance_threshold = zero_impedance_threshold

        self.buses: List[Bus] = list()

        self.branches: List[Branch] = list()

        self._bus_dict: Dict[str, Bus] = dict()

        self._branch_dict: Dict[str, Branch] = dict()

        self._listeners: List[NetworkListener] = list()

        self._connectivity: Union[GraphConnectivity, None] = None

        self._spanning_tree_branches: Union[Set[int], None] = None

        # guards the lazy builds shared by the analysis threads
        self._lock = threading.RLock()

    def add_bus(self, obj: Bus) -> Bus:
        """
        Add a bus
        :param obj: Bus
        :return: the same Bus, numbered
        """
        if obj.idtag in self._bus_dict:
            raise ValueError(f"Bus {obj.idtag} already added")
        obj.num = len(self.buses)
        self.buses.append(obj)
        self._bus_dict[obj.idtag] = obj
        self._connectivity = None
        return obj

    def add_branch(self, obj: Branch) -> Branch:
        """
        Add a branch, its buses must have been added before
        :param obj: Branch
        :return: the same Branch, numbered
        """
        if obj.idtag in self._branch_dict:
            raise ValueError(f"Branch {obj.idtag} already added")
        for bus in (obj.bus_from, obj.bus_to):
            if self._bus_dict.get(bus.idtag, None) is not bus:
                raise ElementNotFoundError(bus.idtag, "Bus")
        obj.num = len(self.branches)
        self.branches.append(obj)
        self._branch_dict[obj.idtag] = obj
        self._connectivity = None
        self._spanning_tree_branches = None
        return obj

    def get_bus_number(self) -> int:
        """
        Number of buses
        :return:
        """
        return len(self.buses)

    def get_branch_number(self) -> int:
        """
        Number of branches
        :return:
        """
        return len(self.branches)

    def get_bus(self, idtag: str) -> Bus:
        """
        Get a bus by idtag
        :param idtag: bus idtag
        :return: Bus
        """
        obj = self._bus_dict.get(idtag, None)
        if obj is None:
            raise ElementNotFoundError(idtag, "Bus")
        return obj

    def get_branch(self, idtag: str) -> Branch:
        """
        Get a branch by idtag
        :param idtag: branch idtag
        :return: Branch
        """
        obj = self._branch_dict.get(idtag, None)
        if obj is None:
            raise ElementNotFoundError(idtag, "Branch")
        return obj

    def has_branch(self, idtag: str) -> bool:
        """
        Is there a branch with this idtag?
        :param idtag: branch idtag
        :return:
        """
        return idtag in self._branch_dict

    def get_bus_names(self) -> List[str]:
        """
        :return: list of bus names
        """
        return [b.name for b in self.buses]

    def get_branch_names(self) -> List[str]:
        """
        :return: list of branch names
        """
        return [b.name for b in self.branches]

    def get_reference_bus(self) -> Bus:
        """
        Get the reference bus
        :return: Bus
        """
        references = [b for b in self.buses if b.is_reference]
        if len(references) != 1:
            raise ReferenceBusError(bus_ids=[b.idtag for b in references])
        return references[0]

    def is_zero_impedance(self, branch: Branch) -> bool:
        """
        Is the branch reactance below the zero impedance threshold?
        :param branch: Branch
        :return:
        """
        return abs(branch.X) < self.zero_impedance_threshold

    def get_spanning_tree_branches(self) -> Set[int]:
        """
        Numbers of the active zero impedance branches that belong to a spanning forest
        of the zero impedance sub-graph
        :return: set of branch numbers
        """
        with self._lock:
            if self._spanning_tree_branches is None:
                graph = nx.MultiGraph()
                for branch in self.branches:
                    if branch.active and self.is_zero_impedance(branch):
                        graph.add_edge(branch.bus_from.num, branch.bus_to.num, key=branch.num)

                # unit weights: any spanning forest is a minimum one
                self._spanning_tree_branches = {key for u, v, key in nx.minimum_spanning_edges(graph,
                                                                                             algorithm='kruskal',
                                                                                             keys=True,
                                                                                             data=False)}
            return self._spanning_tree_branches

    def add_listener(self, listener: NetworkListener):
        """
        Register an object to be notified of the topology changes
        :param listener: NetworkListener
        """
        self._listeners.append(listener)

    def remove_listener(self, listener: NetworkListener):
        """
        Unregister a listener
        :param listener: NetworkListener
        """
        self._listeners.remove(listener)

    def set_branch_active(self, branch: Branch, active: bool):
        """
        Open or close a branch, notifying the listeners.
        The zero impedance spanning forest is recomputed when a zero impedance branch changes.
        If a listener rejects the change, the previous status is restored and the error is raised again.
        :param branch: Branch
        :param active: new status
        """
        if branch.active == active:
            return

        self._apply_branch_status(branch, active)

        try:
            for listener in self._listeners:
                listener.on_branch_active_change(branch, active)
        except StructuralError:
            self._apply_branch_status(branch, not active)
            for listener in self._listeners:
                listener.on_branch_active_change(branch, not active)
            raise

    def _apply_branch_status(self, branch: Branch, active: bool):
        """
        Set the branch status and keep the connectivity and the spanning forest in line
        :param branch: Branch
        :param active: new status
        """
        branch.active = active

        if self.is_zero_impedance(branch):
            self._spanning_tree_branches = None

        with self._lock:
            if self._connectivity is not None:
                if active:
                    self._connectivity.add_edge(branch.bus_from.num, branch.bus_to.num, branch.num)
                else:
                    self._connectivity.remove_edge(branch.num)

    def get_connectivity(self) -> GraphConnectivity:
        """
        Get the connectivity of the active network, with the reference bus as main vertex
        :return: GraphConnectivity
        """
        with self._lock:
            if self._connectivity is None:
                connectivity = GraphConnectivity(main_vertex=self.get_reference_bus().num)
                for bus in self.buses:
                    connectivity.add_vertex(bus.num)
                for branch in self.branches:
                    if branch.active:
                        connectivity.add_edge(branch.bus_from.num, branch.bus_to.num, branch.num)
                self._connectivity = connectivity

            return self._connectivity
