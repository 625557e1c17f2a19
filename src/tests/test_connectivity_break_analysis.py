# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np

from FastDcEngine.basic_structures import Logger
from FastDcEngine.enumerations import DcVariableType
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_context import DcPowerFlowContext
from FastDcEngine.Simulations.FastDc.contingency import Contingency
from FastDcEngine.Simulations.FastDc.computed_element import create_contingency_elements, calculate_elements_states
from FastDcEngine.Simulations.FastDc.connectivity_break_analysis import (is_group_of_elements_breaking_connectivity,
                                                                         compute_connectivity_analysis_result,
                                                                         get_contingency_elements,
                                                                         get_sensitivity_arrays,
                                                                         connectivity_loss_sensitivities)
from FastDcEngine.Simulations.FastDc.woodbury_analysis import detect_connectivity_breaks


def test_classification(mesh_grid):
    """
    Radial outages split the network, meshed ones do not
    """
    context = DcPowerFlowContext(mesh_grid)
    contingencies = [Contingency("radial", ["br15"]),
                     Contingency("meshed", ["br12"]),
                     Contingency("one_circuit", ["br34a"]),
                     Contingency("both_circuits", ["br34a", "br34b"])]
    logger = Logger()
    cba = detect_connectivity_breaks(context, contingencies, logger=logger)

    assert {c.idtag for c in cba.non_breaking_contingencies} == {"meshed", "one_circuit"}
    assert cba.is_breaking("radial")
    assert cba.is_breaking("both_circuits")
    assert not cba.is_breaking("meshed")
    assert logger.error_count() == 0

    result = cba.get_result("radial")
    b5 = mesh_grid.get_bus("b5")
    br15 = mesh_grid.get_branch("br15")
    br25 = mesh_grid.get_branch("br25")
    assert result.disabled_buses == {b5.num}
    assert br15.num in result.partial_disabled_branches
    assert br25.num not in result.partial_disabled_branches  # never in the graph
    assert b5.num not in result.slack_connected_component
    assert result.get_elements_to_reconnect_ids() == ["br15"]


def test_sensitivity_screen(mesh_grid):
    context = DcPowerFlowContext(mesh_grid)
    elements = create_contingency_elements(context, ["br15", "br12", "br34a", "br34b"])
    states = calculate_elements_states(context, list(elements.values()))

    assert is_group_of_elements_breaking_connectivity(context.index, states, [elements["br15"]])
    assert not is_group_of_elements_breaking_connectivity(context.index, states, [elements["br12"]])
    assert not is_group_of_elements_breaking_connectivity(context.index, states, [elements["br34a"]])
    assert is_group_of_elements_breaking_connectivity(context.index, states,
                                                      [elements["br34a"], elements["br34b"]])
    assert not is_group_of_elements_breaking_connectivity(context.index, states, [])


def test_minimal_reconnection_two_islands(mesh_grid):
    """
    Two separate islands need two elements to be reconnected
    """
    context = DcPowerFlowContext(mesh_grid)
    contingency = Contingency("c", ["br46", "br15"])
    elements_by_id = create_contingency_elements(context, contingency.branch_ids)
    elements = get_contingency_elements(contingency, elements_by_id)
    logger = Logger()

    result = compute_connectivity_analysis_result(mesh_grid.get_connectivity(), contingency, elements,
                                                  logger=logger)
    assert result.created_components == 2
    assert sorted(result.get_elements_to_reconnect_ids()) == ["br15", "br46"]
    assert result.disabled_buses == {mesh_grid.get_bus("b5").num, mesh_grid.get_bus("b6").num}
    assert logger.error_count() == 0


def test_minimal_reconnection_parallel_circuits(mesh_grid):
    """
    Parallel circuits to the same island: a single one reconnects it, the first in idtag order
    """
    context = DcPowerFlowContext(mesh_grid)
    contingency = Contingency("c", ["br34b", "br34a", "br46"])
    elements_by_id = create_contingency_elements(context, contingency.branch_ids)
    elements = get_contingency_elements(contingency, elements_by_id)

    result = compute_connectivity_analysis_result(mesh_grid.get_connectivity(), contingency, elements)

    # b4 and b6 become two separate islands
    assert result.created_components == 2
    assert result.get_elements_to_reconnect_ids() == ["br34a", "br46"]


def test_not_breaking_returns_none(mesh_grid):
    context = DcPowerFlowContext(mesh_grid)
    contingency = Contingency("c", ["br01", "br23"])
    elements_by_id = create_contingency_elements(context, contingency.branch_ids)
    elements = get_contingency_elements(contingency, elements_by_id)
    assert compute_connectivity_analysis_result(mesh_grid.get_connectivity(), contingency, elements) is None


def test_reconnection_set_is_minimal(mesh_grid):
    """
    The reconnection set merges every island back, and none of its elements can be spared
    """
    context = DcPowerFlowContext(mesh_grid)
    contingency = Contingency("c", ["br34a", "br34b", "br46", "br15"])
    elements_by_id = create_contingency_elements(context, contingency.branch_ids)
    elements = get_contingency_elements(contingency, elements_by_id)
    conn = mesh_grid.get_connectivity()

    result = compute_connectivity_analysis_result(conn, contingency, elements)
    reconnect = [mesh_grid.get_branch(idtag) for idtag in result.get_elements_to_reconnect_ids()]
    assert result.created_components == 3
    assert len(reconnect) == result.created_components

    def components_with(branches) -> int:
        with conn.temporary_changes():
            for idtag in contingency.branch_ids:
                conn.remove_edge(mesh_grid.get_branch(idtag).num)
            for br in branches:
                conn.add_edge(br.bus_from.num, br.bus_to.num, br.num)
            return conn.get_nb_connected_components()

    assert components_with(reconnect) == 1
    for br in reconnect:
        assert components_with([r for r in reconnect if r is not br]) > 1

    assert conn.get_nb_connected_components() == 1


def test_screen_observes_each_element_injection(mesh_grid):
    """
    For the +1 / -1 injection across an element, the screen adds up the flows on the whole group
    """
    context = DcPowerFlowContext(mesh_grid)
    ids = ["br01", "br12", "br23"]
    elements_by_id = create_contingency_elements(context, ids)
    elements = [elements_by_id[idtag] for idtag in ids]
    states = calculate_elements_states(context, elements)

    sums = connectivity_loss_sensitivities(states, *get_sensitivity_arrays(context.index, elements))

    index = context.index
    for k, ek in enumerate(elements):
        expected = 0.0
        for ej in elements:
            br = ej.branch
            row1 = index.get_variable_row(br.bus_from.num, DcVariableType.BUS_PHI)
            row2 = index.get_variable_row(br.bus_to.num, DcVariableType.BUS_PHI)
            col = ek.computed_element_index
            expected += abs((states[row1, col] - states[row2, col]) / br.X)
        assert np.isclose(sums[k], expected, atol=1e-12)
        assert sums[k] < 1.0

    assert not is_group_of_elements_breaking_connectivity(context.index, states, elements)

    # a radial branch carries all of its own injection
    radial = create_contingency_elements(context, ["br15"])["br15"]
    states = calculate_elements_states(context, [radial])
    sums = connectivity_loss_sensitivities(states, *get_sensitivity_arrays(context.index, [radial]))
    assert np.isclose(sums[0], 1.0, atol=1e-9)
