# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Collection, Dict, Union
import numpy as np
from FastDcEngine.basic_structures import Vec, Logger
from FastDcEngine.enumerations import DcEquationType
from FastDcEngine.Simulations.DcPowerFlow.dc_flow_terms import AbstractClosedBranchDcFlowEquationTerm
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_context import DcPowerFlowContext


def distribute_slack(P: Vec, participation: Vec, in_system: np.ndarray, logger: Union[Logger, None] = None) -> Vec:
    """
    Spread the power mismatch of the buses in the system proportionally to their participation factors
    :param P: bus injections (p.u.)
    :param participation: bus participation factors
    :param in_system: boolean mask of the buses taking part in the power flow
    :param logger: Logger
    :return: new injections
    """
    mismatch = P[in_system].sum()
    mask = in_system & (participation > 0)
    total = participation[mask].sum()

    if total <= 0:
        if logger is not None:
            logger.add_warning("No participating bus to distribute the slack, the reference bus takes the mismatch",
                               value=mismatch)
        return P

    P2 = P.copy()
    P2[mask] -= mismatch * participation[mask] / total
    return P2


def make_target_vector(context: DcPowerFlowContext,
                       disabled_buses: Collection[int] = (),
                       disabled_branches: Collection[int] = (),
                       phase_changes: Union[Dict[int, float], None] = None,
                       logger: Union[Logger, None] = None) -> Vec:
    """
    Right hand side of the DC system, ordered by equation columns
    :param context: DcPowerFlowContext
    :param disabled_buses: numbers of the buses whose injection is lost
    :param disabled_branches: numbers of the branches whose phase shift is removed
    :param phase_changes: branch number -> new phase shift (rad)
    :param logger: Logger
    :return: target vector
    """
    network = context.network
    index = context.index
    phase_changes = dict() if phase_changes is None else phase_changes
    disabled_buses = set(disabled_buses)
    disabled_branches = set(disabled_branches)

    P = np.array([bus.P for bus in network.buses], dtype=float)

    if context.options.distributed_slack:
        in_system = np.zeros(len(P), dtype=bool)
        for bus in network.buses:
            in_system[bus.num] = (bus.num not in disabled_buses and
                                  (bus.is_reference or
                                   index.get_equation_column(bus.num, DcEquationType.BUS_TARGET_P) >= 0))
        participation = np.array([bus.participation_factor for bus in network.buses], dtype=float)
        P = distribute_slack(P, participation, in_system, logger)

    targets = np.zeros(index.n_equations)

    for col, eq in enumerate(index.equations):

        if eq.type == DcEquationType.BUS_TARGET_P:
            if eq.element_num not in disabled_buses:
                val = P[eq.element_num]
                for term in eq.terms:
                    if term.active and term.has_rhs():
                        if isinstance(term, AbstractClosedBranchDcFlowEquationTerm):
                            num = term.branch.num
                            if num in disabled_branches:
                                continue
                            if num in phase_changes:
                                val -= term.sign * term.power * phase_changes[num]
                                continue
                        val -= term.rhs()
                targets[col] = val

        elif eq.type == DcEquationType.BRANCH_TARGET_ALPHA1:
            if eq.element_num not in disabled_branches:
                targets[col] = phase_changes.get(eq.element_num, network.branches[eq.element_num].tap_phase)

        # BUS_TARGET_PHI, ZERO_PHI and DUMMY_TARGET_P are null

    return targets
