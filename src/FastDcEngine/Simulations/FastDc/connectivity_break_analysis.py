# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Dict, List, Sequence, Set, Tuple, Union
import numpy as np
import numba as nb
from networkx.utils import UnionFind

from FastDcEngine.basic_structures import Mat, Vec, IntVec, Logger
from FastDcEngine.Topology.graph_connectivity import GraphConnectivity
from FastDcEngine.Equations.equation_system_index import EquationSystemIndex
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_context import DcPowerFlowContext
from FastDcEngine.Simulations.FastDc.contingency import Contingency
from FastDcEngine.Simulations.FastDc.computed_element import (ComputedElement, ComputedContingencyElement,
                                                              create_contingency_elements,
                                                              calculate_elements_states, MAX_MATRIX_BYTES)

CONNECTIVITY_LOSS_THRESHOLD = 10e-7


@nb.njit(cache=True)
def connectivity_loss_sensitivities(states: Mat,
                                    ph1_rows: IntVec,
                                    ph2_rows: IntVec,
                                    powers: Vec,
                                    columns: IntVec) -> Vec:
    """
    For the +1 / -1 injection across each element of a group, sum of the absolute flows it
    induces on all the elements of the group (itself included)
    :param states: states matrix (n_variables, n_columns)
    :param ph1_rows: side 1 angle rows of the elements
    :param ph2_rows: side 2 angle rows of the elements
    :param powers: power factors of the elements
    :param columns: states columns of the elements
    :return: sum per element
    """
    n = len(columns)
    sums = np.zeros(n)
    for k in range(n):
        c = columns[k]
        for j in range(n):
            sums[k] += abs(powers[j] * (states[ph1_rows[j], c] - states[ph2_rows[j], c]))
    return sums


@nb.njit(cache=True)
def is_breaking_connectivity_candidate(states: Mat,
                                       ph1_rows: IntVec,
                                       ph2_rows: IntVec,
                                       powers: Vec,
                                       columns: IntVec,
                                       threshold: float) -> bool:
    """
    Sensitivity screen of a group of failing branches
    When all the power injected across an element flows through the group,
    losing the group may split the network.
    :param states: states matrix (n_variables, n_columns)
    :param ph1_rows: side 1 angle rows of the elements
    :param ph2_rows: side 2 angle rows of the elements
    :param powers: power factors of the elements
    :param columns: states columns of the elements
    :param threshold: tolerance
    :return: may the group split the network?
    """
    sums = connectivity_loss_sensitivities(states, ph1_rows, ph2_rows, powers, columns)
    for k in range(len(sums)):
        if sums[k] > 1.0 - threshold:
            return True
    return False


def get_sensitivity_arrays(index: EquationSystemIndex,
                           elements: Sequence[ComputedElement]) -> Tuple[IntVec, IntVec, Vec, IntVec]:
    """
    Angle rows, power factors and states columns of a group of elements
    :param index: EquationSystemIndex
    :param elements: elements of the group
    :return: side 1 angle rows, side 2 angle rows, power factors, states columns
    """
    n = len(elements)
    ph1_rows = np.empty(n, dtype=np.int64)
    ph2_rows = np.empty(n, dtype=np.int64)
    powers = np.empty(n)
    columns = np.empty(n, dtype=np.int64)
    for k, e in enumerate(elements):
        ph1_rows[k] = index.get_row(e.branch_equation.phi1_var)
        ph2_rows[k] = index.get_row(e.branch_equation.phi2_var)
        powers[k] = e.branch_equation.power
        columns[k] = e.computed_element_index
    return ph1_rows, ph2_rows, powers, columns


def is_group_of_elements_breaking_connectivity(index: EquationSystemIndex,
                                               states: Mat,
                                               elements: Sequence[ComputedElement],
                                               threshold: float = CONNECTIVITY_LOSS_THRESHOLD) -> bool:
    """
    Sensitivity screen of a contingency
    :param index: EquationSystemIndex
    :param states: states matrix of the elements
    :param elements: elements of the contingency
    :param threshold: tolerance
    :return: is the contingency potentially breaking the connectivity?
    """
    if len(elements) == 0:
        return False
    ph1_rows, ph2_rows, powers, columns = get_sensitivity_arrays(index, elements)
    return is_breaking_connectivity_candidate(states, ph1_rows, ph2_rows, powers, columns, threshold)


class ConnectivityAnalysisResult:
    """
    Topology of a contingency (and its actions) that splits the network
    """

    def __init__(self,
                 contingency: Contingency,
                 elements_to_reconnect: List[ComputedElement],
                 disabled_buses: Set[int],
                 partial_disabled_branches: Set[int],
                 slack_connected_component: Set[int],
                 created_components: int):
        """

        :param contingency: Contingency
        :param elements_to_reconnect: minimal set of failing elements reconnecting all the components
        :param disabled_buses: buses removed from the main component
        :param partial_disabled_branches: branches touching a removed bus
        :param slack_connected_component: buses of the component of the reference bus
        :param created_components: number of components created by the contingency
        """
        self.contingency = contingency
        self.elements_to_reconnect = elements_to_reconnect
        self.disabled_buses = disabled_buses
        self.partial_disabled_branches = partial_disabled_branches
        self.slack_connected_component = slack_connected_component
        self.created_components = created_components

    def get_elements_to_reconnect_ids(self) -> List[str]:
        """
        :return: idtags of the branches to reconnect
        """
        return [e.branch.idtag for e in self.elements_to_reconnect]

    def __repr__(self):
        return (f"ConnectivityAnalysisResult({self.contingency.idtag}, "
                f"reconnect={self.get_elements_to_reconnect_ids()}, disabled buses={sorted(self.disabled_buses)})")


class ConnectivityBreakAnalysisResults:
    """
    Classification of a set of contingencies
    """

    def __init__(self,
                 non_breaking_contingencies: List[Contingency],
                 connectivity_analysis_results: List[ConnectivityAnalysisResult],
                 contingency_elements_by_branch_id: Dict[str, ComputedContingencyElement],
                 contingencies_states: Mat):
        """

        :param non_breaking_contingencies: contingencies keeping the network connected
        :param connectivity_analysis_results: results of the contingencies splitting the network
        :param contingency_elements_by_branch_id: branch idtag -> ComputedContingencyElement
        :param contingencies_states: states matrix of the contingency elements
        """
        self.non_breaking_contingencies = non_breaking_contingencies
        self.connectivity_analysis_results = connectivity_analysis_results
        self.contingency_elements_by_branch_id = contingency_elements_by_branch_id
        self.contingencies_states = contingencies_states

    def get_result(self, contingency_id: str) -> Union[ConnectivityAnalysisResult, None]:
        """
        :param contingency_id: contingency idtag
        :return: ConnectivityAnalysisResult or None if the contingency does not split the network
        """
        for result in self.connectivity_analysis_results:
            if result.contingency.idtag == contingency_id:
                return result
        return None

    def is_breaking(self, contingency_id: str) -> bool:
        """
        :param contingency_id: contingency idtag
        :return: does the contingency split the network?
        """
        return self.get_result(contingency_id) is not None


def get_contingency_elements(contingency: Contingency,
                             elements_by_branch_id: Dict[str, ComputedContingencyElement]) -> List[ComputedContingencyElement]:
    """
    Elements of a contingency (the branches without element are ignored)
    :param contingency: Contingency
    :param elements_by_branch_id: branch idtag -> ComputedContingencyElement
    :return: list of elements, without repetitions
    """
    elements = list()
    seen = set()
    for branch_id in contingency.branch_ids:
        e = elements_by_branch_id.get(branch_id, None)
        if e is not None and branch_id not in seen:
            elements.append(e)
            seen.add(branch_id)
    return elements


def compute_elements_to_reconnect(connectivity: GraphConnectivity,
                                  breaking_elements: Sequence[ComputedElement]) -> List[ComputedElement]:
    """
    Minimal subset of the breaking elements merging back all the components they separate.
    An element is kept when its ends are still in different groups of already merged components.
    :param connectivity: GraphConnectivity with the failing elements removed
    :param breaking_elements: elements whose ends are in different components
    :return: elements to reconnect
    """
    groups = UnionFind()
    elements_to_reconnect = list()
    for e in breaking_elements:
        c1 = connectivity.get_component_number(e.branch.bus_from.num)
        c2 = connectivity.get_component_number(e.branch.bus_to.num)
        if groups[c1] != groups[c2]:
            groups.union(c1, c2)
            elements_to_reconnect.append(e)
    return elements_to_reconnect


def compute_connectivity_analysis_result(connectivity: GraphConnectivity,
                                         contingency: Contingency,
                                         elements: Sequence[ComputedElement],
                                         action_elements: Sequence[ComputedElement] = (),
                                         logger: Union[Logger, None] = None) -> Union[ConnectivityAnalysisResult, None]:
    """
    Graph confirmation of a contingency, the connectivity is restored before returning
    :param connectivity: GraphConnectivity of the network
    :param contingency: Contingency
    :param elements: failing elements of the contingency
    :param action_elements: elements of the actions applied after the contingency
    :param logger: Logger
    :return: ConnectivityAnalysisResult, None if the network is not split
    """
    with connectivity.temporary_changes():

        nb_components_before = connectivity.get_nb_connected_components()

        for e in sorted(elements, key=lambda e: e.branch.idtag):
            e.apply_to_connectivity(connectivity)

        for e in action_elements:
            e.apply_to_connectivity(connectivity)

        # elements whose branch is finally open, in a deterministic order
        candidates = sorted([e for e in list(elements) + list(action_elements)
                             if not connectivity.has_edge(e.branch.num)],
                            key=lambda e: e.branch.idtag)

        breaking_elements = list()
        seen = set()
        for e in candidates:
            if e.branch.num not in seen and (connectivity.get_component_number(e.branch.bus_from.num) !=
                                             connectivity.get_component_number(e.branch.bus_to.num)):
                breaking_elements.append(e)
                seen.add(e.branch.num)

        if len(breaking_elements) == 0:
            return None

        created_components = connectivity.get_nb_connected_components() - nb_components_before
        disabled_buses = connectivity.get_vertices_removed_from_main_component()
        partial_disabled_branches = connectivity.get_edges_removed_from_main_component()
        slack_connected_component = connectivity.get_main_connected_component()
        elements_to_reconnect = compute_elements_to_reconnect(connectivity, breaking_elements)

        if len(elements_to_reconnect) != created_components and logger is not None:
            logger.add_error("The elements to reconnect do not merge back all the components",
                             device=contingency.idtag,
                             device_class="Contingency",
                             value=len(elements_to_reconnect),
                             expected_value=created_components,
                             scenario=contingency.idtag)

    return ConnectivityAnalysisResult(contingency=contingency,
                                      elements_to_reconnect=elements_to_reconnect,
                                      disabled_buses=set(disabled_buses),
                                      partial_disabled_branches=set(partial_disabled_branches),
                                      slack_connected_component=set(slack_connected_component),
                                      created_components=created_components)


def run_connectivity_break_analysis(context: DcPowerFlowContext,
                                    contingencies: Sequence[Contingency],
                                    logger: Logger,
                                    threshold: float = CONNECTIVITY_LOSS_THRESHOLD,
                                    max_matrix_bytes: int = MAX_MATRIX_BYTES) -> ConnectivityBreakAnalysisResults:
    """
    Classify the contingencies in splitting and non splitting ones
    1. sensitivity screen with the states of the contingency elements
    2. graph confirmation of the potentially splitting contingencies
    :param context: DcPowerFlowContext (factorized)
    :param contingencies: contingencies
    :param logger: Logger
    :param threshold: tolerance of the sensitivity screen
    :param max_matrix_bytes: maximum size of the states matrix
    :return: ConnectivityBreakAnalysisResults
    """
    elements_by_branch_id = create_contingency_elements(context,
                                                        (bid for c in contingencies for bid in c.branch_ids))

    states = calculate_elements_states(context, list(elements_by_branch_id.values()), max_matrix_bytes)

    non_breaking = list()
    potentially_breaking = list()
    for contingency in contingencies:
        elements = get_contingency_elements(contingency, elements_by_branch_id)
        if is_group_of_elements_breaking_connectivity(context.index, states, elements, threshold):
            potentially_breaking.append(contingency)
        else:
            non_breaking.append(contingency)

    connectivity = context.network.get_connectivity()
    results = list()
    for contingency in potentially_breaking:
        elements = get_contingency_elements(contingency, elements_by_branch_id)
        result = compute_connectivity_analysis_result(connectivity, contingency, elements, logger=logger)
        if result is None:
            non_breaking.append(contingency)
        else:
            results.append(result)

    return ConnectivityBreakAnalysisResults(non_breaking_contingencies=non_breaking,
                                            connectivity_analysis_results=results,
                                            contingency_elements_by_branch_id=elements_by_branch_id,
                                            contingencies_states=states)
