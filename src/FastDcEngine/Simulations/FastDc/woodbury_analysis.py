# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Sequence, Tuple, Union
import numpy as np

from FastDcEngine.basic_structures import Vec, Mat, Logger
from FastDcEngine.enumerations import ScenarioStatus
from FastDcEngine.exceptions import FastDcError, ComputedElementError
from FastDcEngine.Equations.equation_system_index import EquationSystemIndex
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_context import DcPowerFlowContext
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow import run_dc_power_flow, compute_branch_flows
from FastDcEngine.Simulations.FastDc.contingency import Contingency, OperatorStrategy
from FastDcEngine.Simulations.FastDc.remedial_actions import Action
from FastDcEngine.Simulations.FastDc.computed_element import (ComputedElement, ComputedSwitchBranchElement,
                                                              ComputedTapPositionChangeElement,
                                                              create_action_elements, calculate_elements_states)
from FastDcEngine.Simulations.FastDc.connectivity_break_analysis import (ConnectivityAnalysisResult,
                                                                         ConnectivityBreakAnalysisResults,
                                                                         run_connectivity_break_analysis,
                                                                         compute_connectivity_analysis_result,
                                                                         get_contingency_elements)
from FastDcEngine.Simulations.FastDc.woodbury_engine import WoodburyEngine
from FastDcEngine.Simulations.FastDc.woodbury_analysis_options import WoodburyAnalysisOptions
from FastDcEngine.Simulations.FastDc.woodbury_analysis_results import WoodburyAnalysisResults


def check_contingencies(context: DcPowerFlowContext,
                        contingencies: Sequence[Contingency],
                        logger: Logger) -> Tuple[List[Contingency], List[Contingency]]:
    """
    Split the contingencies into the ones that can be evaluated and the ones that can not
    Unknown and already open branches are ignored with a warning,
    zero impedance branches make the contingency fail.
    :param context: DcPowerFlowContext
    :param contingencies: contingencies
    :param logger: Logger
    :return: valid contingencies, invalid contingencies
    """
    network = context.network
    valid = list()
    invalid = list()
    for contingency in contingencies:
        ok = True
        for branch_id in contingency.branch_ids:
            if not network.has_branch(branch_id):
                logger.add_warning("Contingency branch not found", device=branch_id, device_class="Branch",
                                   scenario=contingency.idtag)
                continue

            branch = network.get_branch(branch_id)
            if network.is_zero_impedance(branch):
                logger.add_error("Outage of a zero impedance branch is not supported", device=branch_id,
                                 device_class="Branch", scenario=contingency.idtag)
                ok = False
            elif not branch.active:
                logger.add_warning("Contingency branch already open", device=branch_id, device_class="Branch",
                                   scenario=contingency.idtag)
        if ok:
            valid.append(contingency)
        else:
            invalid.append(contingency)

    return valid, invalid


def is_connected_to_system(index: EquationSystemIndex, element: ComputedElement) -> bool:
    """
    Are both buses of the element branch solved by the system?
    :param index: EquationSystemIndex
    :param element: ComputedElement
    :return:
    """
    return (index.get_row(element.branch_equation.phi1_var) >= 0 and
            index.get_row(element.branch_equation.phi2_var) >= 0)


def compute_post_contingency(context: DcPowerFlowContext,
                             x_base: Vec,
                             contingency: Contingency,
                             cba: ConnectivityBreakAnalysisResults,
                             logger: Logger) -> Tuple[Vec, Vec]:
    """
    Post-contingency state and flows of a contingency
    :param context: DcPowerFlowContext
    :param x_base: base state
    :param contingency: Contingency
    :param cba: ConnectivityBreakAnalysisResults including this contingency
    :param logger: Logger
    :return: state, branch flows
    """
    elements = get_contingency_elements(contingency, cba.contingency_elements_by_branch_id)
    status = {e.branch.num: False for e in elements}
    result: Union[ConnectivityAnalysisResult, None] = cba.get_result(contingency.idtag)

    if result is None:
        engine = WoodburyEngine(context.index, elements, cba.contingencies_states)
        x = engine.to_post_contingency_states(x_base.copy())
        flows = compute_branch_flows(context, x, branch_status=status)
    else:
        # the lost buses do not inject anymore, the reconnection elements keep the system solvable
        x_pre = run_dc_power_flow(context,
                                  disabled_buses=result.disabled_buses,
                                  disabled_branches=result.partial_disabled_branches,
                                  logger=logger)
        reconnect = {id(e) for e in result.elements_to_reconnect}
        engine = WoodburyEngine(context.index,
                                [e for e in elements if id(e) not in reconnect],
                                cba.contingencies_states,
                                phases={num: 0.0 for num in result.partial_disabled_branches})
        x = engine.to_post_contingency_states(x_pre)
        flows = compute_branch_flows(context, x, branch_status=status,
                                     disabled_branches=result.partial_disabled_branches)

    return x, flows


def compute_post_operator_strategy(context: DcPowerFlowContext,
                                   x_base: Vec,
                                   strategy: OperatorStrategy,
                                   contingency: Contingency,
                                   cba: ConnectivityBreakAnalysisResults,
                                   action_elements: Dict[str, ComputedElement],
                                   actions_states: Mat,
                                   logger: Logger) -> Tuple[Vec, Vec]:
    """
    State and flows after a contingency and the actions of an operator strategy
    :param context: DcPowerFlowContext
    :param x_base: base state
    :param strategy: OperatorStrategy
    :param contingency: Contingency of the strategy
    :param cba: ConnectivityBreakAnalysisResults including the contingency
    :param action_elements: action idtag -> ComputedElement
    :param actions_states: states matrix of the action elements
    :param logger: Logger
    :return: state, branch flows
    """
    contingency_elements = get_contingency_elements(contingency, cba.contingency_elements_by_branch_id)

    # branch status after each step of the strategy
    status: Dict[int, bool] = {e.branch.num: False for e in contingency_elements}
    switch_elements: List[ComputedSwitchBranchElement] = list()
    tap_elements: Dict[int, ComputedTapPositionChangeElement] = dict()

    for action_id in strategy.action_ids:
        e = action_elements.get(action_id, None)
        if e is None:
            logger.add_warning("Action not found or not supported, skipped", device=action_id,
                               device_class="Action", scenario=strategy.idtag)
            continue

        current = status.get(e.branch.num, e.branch.active)

        if isinstance(e, ComputedSwitchBranchElement):
            if e.enabled == current:
                logger.add_warning("Action without effect, skipped", device=action_id, device_class="Action",
                                   scenario=strategy.idtag)
            elif e.enabled and not is_connected_to_system(context.index, e):
                logger.add_warning("Closing a branch to a bus out of the system is not supported, skipped",
                                   device=action_id, device_class="Action", scenario=strategy.idtag)
            else:
                status[e.branch.num] = e.enabled
                switch_elements.append(e)

        elif isinstance(e, ComputedTapPositionChangeElement):
            if not current:
                logger.add_warning("Tap change on a disabled branch is not supported, skipped",
                                   device=action_id, device_class="Action", scenario=strategy.idtag)
            else:
                if e.branch.num in tap_elements:
                    logger.add_warning("Tap changed twice, the last change is kept", device=action_id,
                                       device_class="Action", scenario=strategy.idtag)
                tap_elements[e.branch.num] = e

        else:
            raise ComputedElementError(f"Unknown computed element {e}")

    for num in list(tap_elements.keys()):
        if not status.get(num, True):
            logger.add_warning("Tap change on a disabled branch is not supported, skipped",
                               device=tap_elements[num].branch.idtag, device_class="Branch",
                               scenario=strategy.idtag)
            del tap_elements[num]

    connectivity = context.network.get_connectivity()
    result = compute_connectivity_analysis_result(connectivity, contingency, contingency_elements,
                                                  switch_elements, logger=logger)

    phase_changes = {num: e.new_phase for num, e in tap_elements.items() if e.new_phase != e.branch.tap_phase}

    if result is None:
        disabled_buses = set()
        disabled_branches = set()
        reconnect = set()
    else:
        disabled_buses = result.disabled_buses
        disabled_branches = result.partial_disabled_branches
        reconnect = {id(e) for e in result.elements_to_reconnect}

    if result is not None or len(phase_changes):
        x_pre = run_dc_power_flow(context,
                                  disabled_buses=disabled_buses,
                                  disabled_branches=disabled_branches,
                                  phase_changes=phase_changes,
                                  logger=logger)
    else:
        x_pre = x_base.copy()

    phases = dict(phase_changes)
    phases.update({num: 0.0 for num in disabled_branches})

    engine = WoodburyEngine(context.index,
                            [e for e in contingency_elements if id(e) not in reconnect],
                            cba.contingencies_states,
                            action_elements=([e for e in switch_elements if id(e) not in reconnect] +
                                             [e for e in tap_elements.values() if e.changes_power]),
                            actions_states=actions_states,
                            phases=phases)
    x = engine.to_post_contingency_and_operator_strategy_states(x_pre)

    flows = compute_branch_flows(context, x,
                                 branch_status=status,
                                 power_changes={num: e.new_power for num, e in tap_elements.items()},
                                 phase_changes=phase_changes,
                                 disabled_branches=disabled_branches)
    return x, flows


def detect_connectivity_breaks(context: DcPowerFlowContext,
                               contingencies: Sequence[Contingency],
                               options: Union[WoodburyAnalysisOptions, None] = None,
                               logger: Union[Logger, None] = None) -> ConnectivityBreakAnalysisResults:
    """
    Classify contingencies into splitting and non splitting ones
    :param context: DcPowerFlowContext
    :param contingencies: contingencies
    :param options: WoodburyAnalysisOptions
    :param logger: Logger
    :return: ConnectivityBreakAnalysisResults (the invalid contingencies are left out)
    """
    options = WoodburyAnalysisOptions() if options is None else options
    logger = Logger() if logger is None else logger
    context.update()
    valid, _ = check_contingencies(context, contingencies, logger)
    return run_connectivity_break_analysis(context, valid, logger,
                                           threshold=options.connectivity_loss_threshold,
                                           max_matrix_bytes=options.max_matrix_bytes)


class WoodburyBatch:
    """
    Contingencies evaluated together: they share their computed elements and states matrices
    """

    def __init__(self,
                 context: DcPowerFlowContext,
                 x_base: Vec,
                 contingencies: List[Contingency],
                 strategies_by_contingency: Dict[str, List[OperatorStrategy]],
                 actions_by_id: Dict[str, Action],
                 options: WoodburyAnalysisOptions,
                 results: WoodburyAnalysisResults,
                 results_lock: threading.Lock):
        """

        :param context: DcPowerFlowContext (factorized, shared)
        :param x_base: base state (shared, read only)
        :param contingencies: contingencies of the batch
        :param strategies_by_contingency: contingency idtag -> strategies
        :param actions_by_id: action idtag -> Action
        :param options: WoodburyAnalysisOptions
        :param results: results to fill
        :param results_lock: lock protecting the results
        """
        self.context = context
        self.x_base = x_base
        self.contingencies = contingencies
        self.strategies_by_contingency = strategies_by_contingency
        self.actions_by_id = actions_by_id
        self.options = options
        self.results = results
        self.results_lock = results_lock
        self.logger = Logger()

    def _set_failed(self, scenario_id: str, is_strategy: bool, e: FastDcError):
        self.logger.add_error(str(e), scenario=scenario_id)
        with self.results_lock:
            if is_strategy:
                self.results.strategy_status[scenario_id] = ScenarioStatus.FAILED
            else:
                self.results.contingency_status[scenario_id] = ScenarioStatus.FAILED

    def run(self) -> Logger:
        """
        Evaluate the contingencies and strategies of the batch
        :return: Logger of the batch
        """
        try:
            cba = run_connectivity_break_analysis(self.context, self.contingencies, self.logger,
                                                  threshold=self.options.connectivity_loss_threshold,
                                                  max_matrix_bytes=self.options.max_matrix_bytes)
        except FastDcError as e:
            for contingency in self.contingencies:
                self._set_failed(contingency.idtag, False, e)
                for strategy in self.strategies_by_contingency.get(contingency.idtag, list()):
                    self._set_failed(strategy.idtag, True, e)
            return self.logger

        with self.results_lock:
            for result in cba.connectivity_analysis_results:
                self.results.connectivity_results[result.contingency.idtag] = result

        # elements and states of the actions used by the strategies of this batch
        actions = list()
        seen = set()
        for contingency in self.contingencies:
            for strategy in self.strategies_by_contingency.get(contingency.idtag, list()):
                for action_id in strategy.action_ids:
                    if action_id not in seen:
                        seen.add(action_id)
                        action = self.actions_by_id.get(action_id, None)
                        if action is not None:
                            actions.append(action)

        action_elements = create_action_elements(self.context, actions, self.logger)
        try:
            actions_states = calculate_elements_states(self.context, list(action_elements.values()),
                                                       self.options.max_matrix_bytes)
        except FastDcError as e:
            self.logger.add_error(str(e), device_class="Action")
            action_elements = dict()
            actions_states = np.zeros((self.context.index.n_variables, 0))

        for contingency in self.contingencies:
            try:
                x, flows = compute_post_contingency(self.context, self.x_base, contingency, cba, self.logger)
                with self.results_lock:
                    self.results.set_contingency_result(contingency.idtag, x, flows)
            except FastDcError as e:
                self._set_failed(contingency.idtag, False, e)

            for strategy in self.strategies_by_contingency.get(contingency.idtag, list()):
                try:
                    x, flows = compute_post_operator_strategy(self.context, self.x_base, strategy, contingency,
                                                              cba, action_elements, actions_states, self.logger)
                    with self.results_lock:
                        self.results.set_strategy_result(strategy.idtag, x, flows)
                except FastDcError as e:
                    self._set_failed(strategy.idtag, True, e)

        return self.logger


def run_woodbury_analysis(context: DcPowerFlowContext,
                          contingencies: Sequence[Contingency],
                          actions: Sequence[Action] = (),
                          operator_strategies: Sequence[OperatorStrategy] = (),
                          options: Union[WoodburyAnalysisOptions, None] = None) -> WoodburyAnalysisResults:
    """
    Post-contingency (and post-strategy) states of many scenarios with a single factorization
    :param context: DcPowerFlowContext
    :param contingencies: contingencies
    :param actions: remedial actions referenced by the strategies
    :param operator_strategies: operator strategies
    :param options: WoodburyAnalysisOptions
    :return: WoodburyAnalysisResults
    """
    options = WoodburyAnalysisOptions() if options is None else options
    context.update()

    results = WoodburyAnalysisResults(branch_names=context.network.get_branch_names(),
                                      contingency_ids=[c.idtag for c in contingencies],
                                      strategy_ids=[s.idtag for s in operator_strategies])
    logger = results.logger

    x_base = run_dc_power_flow(context, logger=logger)
    results.base_state = x_base
    results.base_flows = compute_branch_flows(context, x_base)

    valid, invalid = check_contingencies(context, contingencies, logger)
    for contingency in invalid:
        results.contingency_status[contingency.idtag] = ScenarioStatus.FAILED

    contingency_ids = {c.idtag for c in contingencies}
    invalid_ids = {c.idtag for c in invalid}
    strategies_by_contingency: Dict[str, List[OperatorStrategy]] = dict()
    for strategy in operator_strategies:
        if strategy.contingency_id not in contingency_ids or strategy.contingency_id in invalid_ids:
            logger.add_error("Operator strategy contingency not found or invalid", device=strategy.contingency_id,
                             device_class="Contingency", scenario=strategy.idtag)
            results.strategy_status[strategy.idtag] = ScenarioStatus.FAILED
        else:
            strategies_by_contingency.setdefault(strategy.contingency_id, list()).append(strategy)

    actions_by_id = {a.idtag: a for a in actions}
    results_lock = threading.Lock()

    n_batches = max(1, min(options.n_threads, len(valid)))
    batches = [WoodburyBatch(context=context,
                             x_base=x_base,
                             contingencies=[valid[i] for i in chunk],
                             strategies_by_contingency=strategies_by_contingency,
                             actions_by_id=actions_by_id,
                             options=options,
                             results=results,
                             results_lock=results_lock)
               for chunk in np.array_split(np.arange(len(valid)), n_batches)]

    if n_batches == 1:
        batch_loggers = [batch.run() for batch in batches]
    else:
        with ThreadPoolExecutor(max_workers=n_batches) as executor:
            batch_loggers = list(executor.map(lambda b: b.run(), batches))

    for batch_logger in batch_loggers:
        logger += batch_logger

    return results
