# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import List, Sequence, Union
from FastDcEngine.Devices.dc_network import DcNetwork
from FastDcEngine.exceptions import FastDcError
from FastDcEngine.Simulations.driver_template import DriverTemplate
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_context import DcPowerFlowContext
from FastDcEngine.Simulations.FastDc.contingency import Contingency, OperatorStrategy
from FastDcEngine.Simulations.FastDc.remedial_actions import Action
from FastDcEngine.Simulations.FastDc.woodbury_analysis import run_woodbury_analysis
from FastDcEngine.Simulations.FastDc.woodbury_analysis_options import WoodburyAnalysisOptions
from FastDcEngine.Simulations.FastDc.woodbury_analysis_results import WoodburyAnalysisResults


class WoodburyAnalysisDriver(DriverTemplate):
    """
    Contingency and remedial action analysis with a single factorization of the base network
    """
    name = 'Woodbury contingency analysis'

    def __init__(self,
                 grid: DcNetwork,
                 contingencies: Sequence[Contingency],
                 actions: Sequence[Action] = (),
                 operator_strategies: Sequence[OperatorStrategy] = (),
                 options: Union[WoodburyAnalysisOptions, None] = None):
        """
        WoodburyAnalysisDriver constructor
        :param grid: DcNetwork instance
        :param contingencies: contingencies to evaluate
        :param actions: remedial actions
        :param operator_strategies: operator strategies
        :param options: WoodburyAnalysisOptions
        """
        DriverTemplate.__init__(self, grid=grid)

        self.contingencies: List[Contingency] = list(contingencies)
        self.actions: List[Action] = list(actions)
        self.operator_strategies: List[OperatorStrategy] = list(operator_strategies)

        self.options: WoodburyAnalysisOptions = WoodburyAnalysisOptions() if options is None else options

        self.results = WoodburyAnalysisResults(branch_names=grid.get_branch_names(),
                                               contingency_ids=[c.idtag for c in self.contingencies],
                                               strategy_ids=[s.idtag for s in self.operator_strategies])

    def run(self):
        """
        Run the analysis
        """
        self.tic()
        self.report_text('Running Woodbury contingency analysis...')

        context = None
        try:
            context = DcPowerFlowContext(self.grid, self.options.dc_options)
            self.results = run_woodbury_analysis(context,
                                                 contingencies=self.contingencies,
                                                 actions=self.actions,
                                                 operator_strategies=self.operator_strategies,
                                                 options=self.options)
            self.logger += self.results.logger
        except FastDcError as e:
            self.logger.add_error(str(e))
        finally:
            if context is not None:
                context.close()

        self.report_done()
        self.toc()
