# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Collection, Dict, Union, Sequence
import numpy as np
from FastDcEngine.basic_structures import Vec, Mat, Logger
from FastDcEngine.enumerations import DcEquationType, DcVariableType
from FastDcEngine.Devices.dc_network import DcNetwork
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_options import DcPowerFlowOptions
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_context import DcPowerFlowContext
from FastDcEngine.Simulations.DcPowerFlow.dc_target_vector import make_target_vector


def run_dc_power_flow(context: DcPowerFlowContext,
                      disabled_buses: Collection[int] = (),
                      disabled_branches: Collection[int] = (),
                      phase_changes: Union[Dict[int, float], None] = None,
                      logger: Union[Logger, None] = None) -> Vec:
    """
    Solve the DC power flow with the factorization of the context
    :param context: DcPowerFlowContext
    :param disabled_buses: numbers of the buses whose injection is lost
    :param disabled_branches: numbers of the branches whose phase shift is removed
    :param phase_changes: branch number -> new phase shift (rad)
    :param logger: Logger
    :return: state vector (ordered by variable rows)
    """
    x = make_target_vector(context,
                           disabled_buses=disabled_buses,
                           disabled_branches=disabled_branches,
                           phase_changes=phase_changes,
                           logger=logger)
    context.jacobian.solve(x)
    return x


def get_bus_angles(context: DcPowerFlowContext, x: Vec) -> Vec:
    """
    Voltage angles of the buses
    :param context: DcPowerFlowContext
    :param x: state vector
    :return: angles (rad), 0 for the buses out of the system
    """
    index = context.index
    va = np.zeros(context.network.get_bus_number())
    for bus in context.network.buses:
        row = index.get_variable_row(bus.num, DcVariableType.BUS_PHI)
        if row >= 0:
            va[bus.num] = x[row]
    return va


def compute_branch_flows(context: DcPowerFlowContext,
                         x: Vec,
                         branch_status: Union[Dict[int, bool], None] = None,
                         power_changes: Union[Dict[int, float], None] = None,
                         phase_changes: Union[Dict[int, float], None] = None,
                         disabled_branches: Collection[int] = ()) -> Vec:
    """
    Active power leaving side 1 of every branch
    :param context: DcPowerFlowContext
    :param x: state vector
    :param branch_status: branch number -> status overriding the network one
    :param power_changes: branch number -> power factor overriding the base one
    :param phase_changes: branch number -> phase shift overriding the base one
    :param disabled_branches: branches reported with no flow (out of the main component)
    :return: flows (p.u.)
    """
    network = context.network
    index = context.index
    es = context.equation_system
    branch_status = dict() if branch_status is None else branch_status
    power_changes = dict() if power_changes is None else power_changes
    phase_changes = dict() if phase_changes is None else phase_changes
    disabled_branches = set(disabled_branches)

    flows = np.zeros(network.get_branch_number())

    for branch in network.branches:

        if not branch_status.get(branch.num, branch.active) or branch.num in disabled_branches:
            continue

        p1 = es.get_branch_p1_term(branch.num)

        if p1 is None:
            # zero impedance branch: the dummy power is the flow
            row = index.get_variable_row(branch.num, DcVariableType.DUMMY_P)
            if row >= 0:
                flows[branch.num] = x[row]
        else:
            row1 = index.get_row(p1.phi1_var)
            row2 = index.get_row(p1.phi2_var)
            if row1 < 0 or row2 < 0:
                continue
            if p1.a1_var is not None:
                a1 = x[index.get_row(p1.a1_var)]
            else:
                a1 = phase_changes.get(branch.num, branch.tap_phase)
            power = power_changes.get(branch.num, p1.power)
            flows[branch.num] = power * (x[row1] - x[row2] + a1)

    return flows


def compute_ptdf(context: DcPowerFlowContext, branch_nums: Union[Sequence[int], None] = None) -> Mat:
    """
    Power transfer distribution factors with the reference bus as slack
    Each row is obtained with one transposed solve: A^T y = d flow / d x
    :param context: DcPowerFlowContext
    :param branch_nums: monitored branches (all if None)
    :return: PTDF matrix (n monitored branches, n buses)
    """
    network = context.network
    index = context.index
    es = context.equation_system
    branch_nums = list(range(network.get_branch_number())) if branch_nums is None else list(branch_nums)

    n_bus = network.get_bus_number()
    grads = np.zeros((index.n_variables, len(branch_nums)))

    for k, num in enumerate(branch_nums):
        branch = network.branches[num]
        if not branch.active:
            continue
        p1 = es.get_branch_p1_term(num)
        if p1 is None:
            row = index.get_variable_row(num, DcVariableType.DUMMY_P)
            if row >= 0:
                grads[row, k] = 1.0
        else:
            for v in p1.variables:
                row = index.get_row(v)
                if row >= 0:
                    grads[row, k] = p1.der(v)

    context.jacobian.solve_transposed(grads)

    ptdf = np.zeros((len(branch_nums), n_bus))
    for bus in network.buses:
        col = index.get_equation_column(bus.num, DcEquationType.BUS_TARGET_P)
        if col >= 0:
            ptdf[:, bus.num] = grads[col, :]

    return ptdf


def solve(network: DcNetwork,
          options: Union[DcPowerFlowOptions, None] = None,
          logger: Union[Logger, None] = None) -> Vec:
    """
    Build, factorize and solve the DC power flow of a network
    :param network: DcNetwork
    :param options: DcPowerFlowOptions
    :param logger: Logger
    :return: base state vector (ordered by variable rows)
    """
    context = DcPowerFlowContext(network, options)
    try:
        return run_dc_power_flow(context, logger=logger)
    finally:
        context.close()
