# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Dict, List
import numpy as np
import pandas as pd
from FastDcEngine.basic_structures import Vec, Mat, Logger
from FastDcEngine.enumerations import ScenarioStatus
from FastDcEngine.Simulations.FastDc.connectivity_break_analysis import ConnectivityAnalysisResult


class WoodburyAnalysisResults:
    """
    Post-contingency and post-strategy states and flows
    """

    def __init__(self, branch_names: List[str], contingency_ids: List[str], strategy_ids: List[str]):
        """

        :param branch_names: names of the branches
        :param contingency_ids: idtags of the contingencies
        :param strategy_ids: idtags of the operator strategies
        """
        self.branch_names = branch_names

        self.contingency_ids = contingency_ids

        self.strategy_ids = strategy_ids

        self.base_state: Vec = np.zeros(0)

        self.base_flows: Vec = np.zeros(len(branch_names))

        self.contingency_states: Dict[str, Vec] = dict()

        self.contingency_flows: Mat = np.full((len(branch_names), len(contingency_ids)), np.nan)

        self.contingency_status: Dict[str, ScenarioStatus] = {c: ScenarioStatus.NOT_RUN for c in contingency_ids}

        self.strategy_states: Dict[str, Vec] = dict()

        self.strategy_flows: Mat = np.full((len(branch_names), len(strategy_ids)), np.nan)

        self.strategy_status: Dict[str, ScenarioStatus] = {s: ScenarioStatus.NOT_RUN for s in strategy_ids}

        # contingency idtag -> result, only for the contingencies splitting the network
        self.connectivity_results: Dict[str, ConnectivityAnalysisResult] = dict()

        self.logger = Logger()

        self._contingency_pos = {c: i for i, c in enumerate(contingency_ids)}

        self._strategy_pos = {s: i for i, s in enumerate(strategy_ids)}

    def set_contingency_result(self, contingency_id: str, x: Vec, flows: Vec):
        """
        Store the result of a contingency
        :param contingency_id: contingency idtag
        :param x: post-contingency state
        :param flows: post-contingency branch flows
        """
        self.contingency_states[contingency_id] = x
        self.contingency_flows[:, self._contingency_pos[contingency_id]] = flows
        self.contingency_status[contingency_id] = ScenarioStatus.CONVERGED

    def set_strategy_result(self, strategy_id: str, x: Vec, flows: Vec):
        """
        Store the result of an operator strategy
        :param strategy_id: strategy idtag
        :param x: post-strategy state
        :param flows: post-strategy branch flows
        """
        self.strategy_states[strategy_id] = x
        self.strategy_flows[:, self._strategy_pos[strategy_id]] = flows
        self.strategy_status[strategy_id] = ScenarioStatus.CONVERGED

    def get_contingency_flows(self, contingency_id: str) -> Vec:
        """
        :param contingency_id: contingency idtag
        :return: post-contingency flows
        """
        return self.contingency_flows[:, self._contingency_pos[contingency_id]]

    def get_strategy_flows(self, strategy_id: str) -> Vec:
        """
        :param strategy_id: strategy idtag
        :return: post-strategy flows
        """
        return self.strategy_flows[:, self._strategy_pos[strategy_id]]

    def get_contingency_flows_df(self) -> pd.DataFrame:
        """
        Branch flows (rows) per contingency (columns)
        :return: DataFrame
        """
        return pd.DataFrame(data=self.contingency_flows, index=self.branch_names, columns=self.contingency_ids)

    def get_strategy_flows_df(self) -> pd.DataFrame:
        """
        Branch flows (rows) per operator strategy (columns)
        :return: DataFrame
        """
        return pd.DataFrame(data=self.strategy_flows, index=self.branch_names, columns=self.strategy_ids)

    def get_status_df(self) -> pd.DataFrame:
        """
        Status of every scenario
        :return: DataFrame
        """
        data = [(c, 'Contingency', str(s), c in self.connectivity_results)
                for c, s in self.contingency_status.items()]
        data += [(o, 'Operator strategy', str(s), False) for o, s in self.strategy_status.items()]
        return pd.DataFrame(data=data, columns=['Scenario', 'Type', 'Status', 'Splits the network'])
