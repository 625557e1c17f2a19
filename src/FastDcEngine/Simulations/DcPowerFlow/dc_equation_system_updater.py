# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from FastDcEngine.enumerations import DcEquationType
from FastDcEngine.Devices.branch import Branch
from FastDcEngine.Devices.dc_network import DcNetwork
from FastDcEngine.Simulations.DcPowerFlow.dc_equation_system_creator import DcEquationSystem, has_active_branch


class DcEquationSystemUpdater:
    """
    Keeps the DC equation system in line with the branch statuses of the network.
    Every transition leaves the system square.
    """

    def __init__(self, network: DcNetwork, equation_system: DcEquationSystem):
        """

        :param network: DcNetwork
        :param equation_system: DcEquationSystem created for this network
        """
        self.network = network
        self.equation_system = equation_system
        network.add_listener(self)

    def detach(self):
        """
        Stop listening to the network
        """
        self.network.remove_listener(self)

    def update_zero_impedance_equations(self):
        """
        Angle equality for the zero impedance branches of the current spanning forest,
        null dummy power for the others
        """
        es = self.equation_system
        spanning_tree = self.network.get_spanning_tree_branches()
        for br in self.network.branches:
            if self.network.is_zero_impedance(br):
                enabled = br.active and br.num in spanning_tree
                es.get_equation(br.num, DcEquationType.ZERO_PHI).set_active(enabled)
                es.get_equation(br.num, DcEquationType.DUMMY_TARGET_P).set_active(not enabled)

    def on_branch_active_change(self, branch: Branch, active: bool) -> None:
        """
        Toggle the equations and terms of a branch and of its buses
        :param branch: Branch
        :param active: new status
        """
        es = self.equation_system

        if self.network.is_zero_impedance(branch):
            # the forest may have been rebuilt: every zero impedance branch can change its role
            self.update_zero_impedance_equations()
        else:
            p1, p2 = es.branch_flow_terms[branch.num]
            p1.set_active(active)
            p2.set_active(active)

        for bus in (branch.bus_from, branch.bus_to):
            if not es.has_equation(bus.num, DcEquationType.BUS_TARGET_PHI):
                es.get_equation(bus.num, DcEquationType.BUS_TARGET_P).set_active(has_active_branch(self.network, bus))

        es.check_square()
