# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Union
import numpy as np
from FastDcEngine.Devices.dc_network import DcNetwork
from FastDcEngine.exceptions import FastDcError
from FastDcEngine.Simulations.driver_template import DriverTemplate
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_options import DcPowerFlowOptions
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_results import DcPowerFlowResults
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_context import DcPowerFlowContext
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow import (run_dc_power_flow, get_bus_angles,
                                                                compute_branch_flows)


class DcPowerFlowDriver(DriverTemplate):
    """
    DC power flow driver
    """
    name = 'DC power flow'

    def __init__(self, grid: DcNetwork, options: Union[DcPowerFlowOptions, None] = None):
        """
        DcPowerFlowDriver constructor
        :param grid: DcNetwork instance
        :param options: DcPowerFlowOptions
        """
        DriverTemplate.__init__(self, grid=grid)

        self.options: DcPowerFlowOptions = DcPowerFlowOptions() if options is None else options

        self.results = DcPowerFlowResults(bus_names=grid.get_bus_names(), branch_names=grid.get_branch_names())

        self.context: Union[DcPowerFlowContext, None] = None

    def run(self):
        """
        Run the DC power flow
        """
        self.tic()
        self.report_text('Running DC power flow...')

        try:
            self.context = DcPowerFlowContext(self.grid, self.options)
            x = run_dc_power_flow(self.context, logger=self.logger)
        except FastDcError as e:
            self.logger.add_error(str(e))
            self.results.converged = False
            self.toc()
            return

        self.results.x = x
        self.results.Va = get_bus_angles(self.context, x)
        self.results.Pf = compute_branch_flows(self.context, x)
        # injections seen from the branches, the reference bus included
        pbus = np.zeros(self.grid.get_bus_number())
        for branch in self.grid.branches:
            pbus[branch.bus_from.num] += self.results.Pf[branch.num]
            pbus[branch.bus_to.num] -= self.results.Pf[branch.num]
        self.results.Pbus = pbus
        self.results.converged = True

        self.report_done()
        self.toc()
