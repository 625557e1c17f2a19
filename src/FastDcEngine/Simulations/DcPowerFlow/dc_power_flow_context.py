# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Union
from FastDcEngine.Devices.dc_network import DcNetwork
from FastDcEngine.Equations.equation_system_index import EquationSystemIndex
from FastDcEngine.Equations.jacobian_matrix import JacobianMatrix
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_options import DcPowerFlowOptions
from FastDcEngine.Simulations.DcPowerFlow.dc_equation_system_creator import DcEquationSystemCreator, DcEquationSystem
from FastDcEngine.Simulations.DcPowerFlow.dc_equation_system_updater import DcEquationSystemUpdater


class DcPowerFlowContext:
    """
    Long lived objects of a DC power flow: equation system, index snapshot and factorized matrix.
    The factorization is shared, read only, by every analysis run on this context.
    """

    def __init__(self, network: DcNetwork, options: Union[DcPowerFlowOptions, None] = None):
        """

        :param network: DcNetwork
        :param options: DcPowerFlowOptions
        """
        self.network = network

        self.options = DcPowerFlowOptions() if options is None else options

        self.reference_bus = network.get_reference_bus()

        self.equation_system: DcEquationSystem = DcEquationSystemCreator(network, self.options).create()

        self.updater = DcEquationSystemUpdater(network, self.equation_system)

        self.index: EquationSystemIndex = self.equation_system.reindex()

        self.jacobian: JacobianMatrix = JacobianMatrix(self.equation_system, self.index)

    def update(self):
        """
        Take a new index snapshot and a new matrix after structural changes
        The previous JacobianMatrix keeps its own snapshot and remains valid for whoever holds it
        """
        if not self.equation_system.is_index_up_to_date():
            self.index = self.equation_system.reindex()
            self.jacobian = JacobianMatrix(self.equation_system, self.index)

    def close(self):
        """
        Stop following the network changes
        """
        self.updater.detach()
