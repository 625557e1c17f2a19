# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Dict, Tuple, Union
from FastDcEngine.enumerations import DcEquationType, DcVariableType
from FastDcEngine.Devices.bus import Bus
from FastDcEngine.Devices.branch import Branch
from FastDcEngine.Devices.dc_network import DcNetwork
from FastDcEngine.Equations.equation_system import EquationSystem
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_options import DcPowerFlowOptions
from FastDcEngine.Simulations.DcPowerFlow.dc_flow_terms import (AbstractClosedBranchDcFlowEquationTerm,
                                                                ClosedBranchSide1DcFlowEquationTerm,
                                                                ClosedBranchSide2DcFlowEquationTerm)


class DcEquationSystem(EquationSystem):
    """
    EquationSystem of the DC power flow, with direct access to the branch flow terms
    """

    def __init__(self):
        EquationSystem.__init__(self)

        # branch number -> (side 1 term, side 2 term)
        self.branch_flow_terms: Dict[int, Tuple[ClosedBranchSide1DcFlowEquationTerm,
                                                ClosedBranchSide2DcFlowEquationTerm]] = dict()

    def get_branch_p1_term(self, branch_num: int) -> Union[ClosedBranchSide1DcFlowEquationTerm, None]:
        """
        Side 1 flow term of a branch
        :param branch_num: branch number
        :return: term or None for zero impedance branches
        """
        terms = self.branch_flow_terms.get(branch_num, None)
        return None if terms is None else terms[0]

    def get_branch_p2_term(self, branch_num: int) -> Union[ClosedBranchSide2DcFlowEquationTerm, None]:
        """
        Side 2 flow term of a branch
        :param branch_num: branch number
        :return: term or None for zero impedance branches
        """
        terms = self.branch_flow_terms.get(branch_num, None)
        return None if terms is None else terms[1]


def has_active_branch(network: DcNetwork, bus: Bus) -> bool:
    """
    Is there any active branch connected to the bus?
    :param network: DcNetwork
    :param bus: Bus
    :return:
    """
    return any(br.active and (br.bus_from is bus or br.bus_to is bus) for br in network.branches)


class DcEquationSystemCreator:
    """
    Builds the DC equation system of a network
    """

    def __init__(self, network: DcNetwork, options: Union[DcPowerFlowOptions, None] = None):
        """

        :param network: DcNetwork
        :param options: DcPowerFlowOptions
        """
        self.network = network
        self.options = DcPowerFlowOptions() if options is None else options

    def create(self) -> DcEquationSystem:
        """
        Create the equation system
        :return: DcEquationSystem
        """
        equation_system = DcEquationSystem()

        reference_bus = self.network.get_reference_bus()

        # buses with an active branch, the others have no balance equation
        connected = set()
        for branch in self.network.branches:
            if branch.active:
                connected.add(branch.bus_from.num)
                connected.add(branch.bus_to.num)

        for bus in self.network.buses:
            self.create_bus_equations(bus, equation_system,
                                      is_reference=bus is reference_bus,
                                      has_branches=bus.num in connected)

        spanning_tree = self.network.get_spanning_tree_branches()

        for branch in self.network.branches:
            if self.network.is_zero_impedance(branch):
                self.create_non_impedant_branch(branch, equation_system, spanning_tree=branch.num in spanning_tree)
            else:
                self.create_impedant_branch(branch, equation_system)

        equation_system.check_square()

        return equation_system

    @staticmethod
    def create_bus_equations(bus: Bus, equation_system: DcEquationSystem, is_reference: bool, has_branches: bool):
        """
        Balance equation of every bus, angle equation of the reference bus
        :param bus: Bus
        :param equation_system: DcEquationSystem
        :param is_reference: is the reference bus?
        :param has_branches: does the bus have active branches?
        """
        p = equation_system.create_equation(bus, DcEquationType.BUS_TARGET_P)

        if is_reference:
            phi = equation_system.create_equation(bus, DcEquationType.BUS_TARGET_PHI)
            phi.add_term(equation_system.create_variable_term(bus.num, DcVariableType.BUS_PHI))
            # the balance of the reference bus is implied by all the others
            p.set_active(False)
        else:
            p.set_active(has_branches)

    def create_impedant_branch(self, branch: Branch, equation_system: DcEquationSystem):
        """
        Flow terms on both sides of a branch
        :param branch: Branch
        :param equation_system: DcEquationSystem
        """
        phi1 = equation_system.get_variable(branch.bus_from.num, DcVariableType.BUS_PHI)
        phi2 = equation_system.get_variable(branch.bus_to.num, DcVariableType.BUS_PHI)

        a1_var = None
        if self.options.derive_phase_shift_variables and branch.is_phase_shifter:
            a1_var = equation_system.get_variable(branch.num, DcVariableType.BRANCH_ALPHA1)
            alpha_eq = equation_system.create_equation(branch, DcEquationType.BRANCH_TARGET_ALPHA1)
            alpha_eq.add_term(equation_system.create_variable_term(branch.num, DcVariableType.BRANCH_ALPHA1))

        power = AbstractClosedBranchDcFlowEquationTerm.compute_power(branch, self.options)

        p1 = ClosedBranchSide1DcFlowEquationTerm(branch=branch, phi1_var=phi1, phi2_var=phi2, a1_var=a1_var,
                                                 power=power, active=branch.active)
        p2 = ClosedBranchSide2DcFlowEquationTerm(branch=branch, phi1_var=phi1, phi2_var=phi2, a1_var=a1_var,
                                                 power=power, active=branch.active)

        equation_system.create_equation(branch.bus_from, DcEquationType.BUS_TARGET_P).add_term(p1)
        equation_system.create_equation(branch.bus_to, DcEquationType.BUS_TARGET_P).add_term(p2)
        equation_system.branch_flow_terms[branch.num] = (p1, p2)

    @staticmethod
    def create_non_impedant_branch(branch: Branch, equation_system: DcEquationSystem, spanning_tree: bool):
        """
        Zero impedance branch: angle equality if it is part of the spanning forest, null power otherwise.
        The dummy power enters the balance of both buses in all cases.
        :param branch: Branch
        :param equation_system: DcEquationSystem
        :param spanning_tree: is the branch part of the spanning forest?
        """
        if (equation_system.has_equation(branch.bus_from.num, DcEquationType.BUS_TARGET_PHI)
                and equation_system.has_equation(branch.bus_to.num, DcEquationType.BUS_TARGET_PHI)):
            raise ValueError(f"Zero impedance branch {branch.idtag} connects two angle reference buses")

        enabled = branch.active and spanning_tree

        zero_phi = equation_system.create_equation(branch, DcEquationType.ZERO_PHI)
        zero_phi.add_term(equation_system.create_variable_term(branch.bus_from.num, DcVariableType.BUS_PHI))
        zero_phi.add_term(equation_system.create_variable_term(branch.bus_to.num, DcVariableType.BUS_PHI,
                                                               coefficient=-1.0))
        zero_phi.set_active(enabled)

        dummy_p = equation_system.create_equation(branch, DcEquationType.DUMMY_TARGET_P)
        dummy_p.add_term(equation_system.create_variable_term(branch.num, DcVariableType.DUMMY_P))
        dummy_p.set_active(not enabled)

        equation_system.create_equation(branch.bus_from, DcEquationType.BUS_TARGET_P).add_term(
            equation_system.create_variable_term(branch.num, DcVariableType.DUMMY_P))
        equation_system.create_equation(branch.bus_to, DcEquationType.BUS_TARGET_P).add_term(
            equation_system.create_variable_term(branch.num, DcVariableType.DUMMY_P, coefficient=-1.0))
