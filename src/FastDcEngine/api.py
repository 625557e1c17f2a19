# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from typing import Sequence, Union
from FastDcEngine.basic_structures import *
from FastDcEngine.enumerations import *
from FastDcEngine.exceptions import *
from FastDcEngine.Devices import *
from FastDcEngine.Simulations import *
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow import solve
from FastDcEngine.Simulations.FastDc.woodbury_analysis import run_woodbury_analysis, detect_connectivity_breaks


def run_dc_power_flow_driver(grid: DcNetwork,
                             options: Union[DcPowerFlowOptions, None] = None) -> DcPowerFlowResults:
    """
    Run a DC power flow
    :param grid: DcNetwork
    :param options: DcPowerFlowOptions
    :return: DcPowerFlowResults
    """
    driver = DcPowerFlowDriver(grid=grid, options=options)
    driver.run()
    return driver.results


def run_contingencies(grid: DcNetwork,
                      contingencies: Sequence[Contingency],
                      actions: Sequence = (),
                      operator_strategies: Sequence[OperatorStrategy] = (),
                      options: Union[WoodburyAnalysisOptions, None] = None) -> WoodburyAnalysisResults:
    """
    Run a Woodbury contingency analysis
    :param grid: DcNetwork
    :param contingencies: list of Contingency
    :param actions: list of remedial actions
    :param operator_strategies: list of OperatorStrategy
    :param options: WoodburyAnalysisOptions
    :return: WoodburyAnalysisResults
    """
    driver = WoodburyAnalysisDriver(grid=grid,
                                    contingencies=contingencies,
                                    actions=actions,
                                    operator_strategies=operator_strategies,
                                    options=options)
    driver.run()
    return driver.results
