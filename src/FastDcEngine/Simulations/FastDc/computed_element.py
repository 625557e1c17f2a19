# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Union
import numpy as np
from FastDcEngine.basic_structures import Mat, Logger
from FastDcEngine.enumerations import ComputedElementType, DcEquationType
from FastDcEngine.exceptions import TooManyElementsError, UnsupportedActionError
from FastDcEngine.Devices.branch import Branch
from FastDcEngine.Topology.graph_connectivity import GraphConnectivity
from FastDcEngine.Equations.equation_system_index import EquationSystemIndex
from FastDcEngine.Simulations.DcPowerFlow.dc_flow_terms import ClosedBranchSide1DcFlowEquationTerm
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_context import DcPowerFlowContext
from FastDcEngine.Simulations.FastDc.remedial_actions import (Action, BranchOutageAction, SwitchAction,
                                                              TapChangeAction)

MAX_MATRIX_BYTES = 2 ** 31 - 1


class ComputedElement:
    """
    Perturbation of one branch (outage, switch toggle or tap change) seen by the Woodbury engine.
    The perturbation changes the branch power factor from power_before to power_after.
    """
    tpe: ComputedElementType = ComputedElementType.CONTINGENCY

    def __init__(self, branch: Branch, branch_equation: ClosedBranchSide1DcFlowEquationTerm):
        """

        :param branch: perturbed branch
        :param branch_equation: side 1 flow term of the branch
        """
        self.branch = branch

        self.branch_equation = branch_equation

        # column of the right hand side, shared by the elements of the same branch
        self.computed_element_index: int = -1

        # position in the small dense system of a scenario
        self.local_index: int = -1

        self.alpha: float = np.nan

    @property
    def power_before(self) -> float:
        return self.branch_equation.power

    @property
    def power_after(self) -> float:
        return 0.0

    def apply_to_connectivity(self, connectivity: GraphConnectivity):
        """
        Reproduce the perturbation on the connectivity graph
        :param connectivity: GraphConnectivity (within a temporary scope)
        """
        if connectivity.has_edge(self.branch.num):
            connectivity.remove_edge(self.branch.num)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.branch.idtag}, {self.computed_element_index}, {self.local_index})"


class ComputedContingencyElement(ComputedElement):
    """
    Branch outage of a contingency
    """
    tpe = ComputedElementType.CONTINGENCY


class ComputedSwitchBranchElement(ComputedElement):
    """
    Branch opened (enabled=False) or closed (enabled=True) by an action
    """
    tpe = ComputedElementType.SWITCH

    def __init__(self, branch: Branch, branch_equation: ClosedBranchSide1DcFlowEquationTerm, enabled: bool):
        """

        :param branch: switched branch
        :param branch_equation: side 1 flow term of the branch
        :param enabled: True to close the branch, False to open it
        """
        ComputedElement.__init__(self, branch, branch_equation)
        self.enabled = enabled

    @property
    def power_before(self) -> float:
        return 0.0 if self.enabled else self.branch_equation.power

    @property
    def power_after(self) -> float:
        return self.branch_equation.power if self.enabled else 0.0

    def apply_to_connectivity(self, connectivity: GraphConnectivity):
        if self.enabled:
            if not connectivity.has_edge(self.branch.num):
                connectivity.add_edge(self.branch.bus_from.num, self.branch.bus_to.num, self.branch.num)
        else:
            ComputedElement.apply_to_connectivity(self, connectivity)


class ComputedTapPositionChangeElement(ComputedElement):
    """
    New tap module and / or phase shift of a branch
    """
    tpe = ComputedElementType.TAP_POSITION_CHANGE

    def __init__(self, branch: Branch, branch_equation: ClosedBranchSide1DcFlowEquationTerm,
                 new_power: float, new_phase: float):
        """

        :param branch: branch whose tap changes
        :param branch_equation: side 1 flow term of the branch
        :param new_power: power factor with the new tap module
        :param new_phase: new phase shift (rad)
        """
        ComputedElement.__init__(self, branch, branch_equation)
        self.new_power = new_power
        self.new_phase = new_phase

    @property
    def power_after(self) -> float:
        return self.new_power

    @property
    def changes_power(self) -> bool:
        return self.new_power != self.branch_equation.power

    def apply_to_connectivity(self, connectivity: GraphConnectivity):
        pass


def set_computed_element_indexes(elements: Iterable[ComputedElement]) -> int:
    """
    Assign the right hand side columns: one per branch, in first seen order
    :param elements: computed elements
    :return: number of columns
    """
    index_by_branch: Dict[int, int] = dict()
    for element in elements:
        idx = index_by_branch.get(element.branch.num, None)
        if idx is None:
            idx = len(index_by_branch)
            index_by_branch[element.branch.num] = idx
        element.computed_element_index = idx
    return len(index_by_branch)


def set_local_indexes(elements: Sequence[ComputedElement]):
    """
    Assign the positions of the elements of one scenario in its dense system
    :param elements: computed elements of the scenario
    """
    for i, element in enumerate(elements):
        element.local_index = i


def init_rhs(index: EquationSystemIndex, n_columns: int, max_matrix_bytes: int = MAX_MATRIX_BYTES) -> Mat:
    """
    Allocate the perturbation right hand side, failing if it is too large
    :param index: EquationSystemIndex
    :param n_columns: number of computed element columns
    :param max_matrix_bytes: maximum size of the matrix in bytes
    :return: zero matrix (n_equations, n_columns)
    """
    n_rows = index.n_equations
    max_columns = max_matrix_bytes // (max(n_rows, 1) * 8)
    if n_columns > max_columns:
        raise TooManyElementsError(n_elements=n_columns, max_elements=max_columns, n_equations=n_rows)
    return np.zeros((n_rows, n_columns), order='F')


def fill_rhs(index: EquationSystemIndex, elements: Iterable[ComputedElement], rhs: Mat):
    """
    Unit injection +1 at side 1 and -1 at side 2 of every perturbed branch.
    A bus without active balance equation (the reference bus) is left out.
    :param index: EquationSystemIndex
    :param elements: computed elements (indexed)
    :param rhs: right hand side to fill
    """
    for element in elements:
        col1 = index.get_equation_column(element.branch.bus_from.num, DcEquationType.BUS_TARGET_P)
        col2 = index.get_equation_column(element.branch.bus_to.num, DcEquationType.BUS_TARGET_P)
        if col1 >= 0:
            rhs[col1, element.computed_element_index] = 1.0
        if col2 >= 0:
            rhs[col2, element.computed_element_index] = -1.0


def calculate_elements_states(context: DcPowerFlowContext,
                              elements: Sequence[ComputedElement],
                              max_matrix_bytes: int = MAX_MATRIX_BYTES) -> Mat:
    """
    States matrix: response of the base system to the unit injections of the elements
    :param context: DcPowerFlowContext (factorized)
    :param elements: computed elements, with their computed element index set
    :param max_matrix_bytes: maximum size of the matrix in bytes
    :return: states (n_variables, n_columns)
    """
    n_columns = max((e.computed_element_index for e in elements), default=-1) + 1
    rhs = init_rhs(context.index, n_columns, max_matrix_bytes)
    fill_rhs(context.index, elements, rhs)
    if n_columns > 0:
        context.jacobian.solve(rhs)
    return rhs


def create_contingency_elements(context: DcPowerFlowContext,
                                branch_ids: Iterable[str]) -> Dict[str, ComputedContingencyElement]:
    """
    One contingency element per branch
    :param context: DcPowerFlowContext
    :param branch_ids: idtags of the failing branches of all the contingencies
    :return: branch idtag -> ComputedContingencyElement
    """
    network = context.network
    elements: Dict[str, ComputedContingencyElement] = dict()
    for branch_id in branch_ids:
        if branch_id in elements or not network.has_branch(branch_id):
            continue
        branch = network.get_branch(branch_id)
        term = context.equation_system.get_branch_p1_term(branch.num)
        if term is None or not branch.active:
            continue
        elements[branch_id] = ComputedContingencyElement(branch, term)

    set_computed_element_indexes(elements.values())
    return elements


def create_action_element(context: DcPowerFlowContext, action: Action) -> ComputedElement:
    """
    Computed element of a remedial action
    :param context: DcPowerFlowContext
    :param action: BranchOutageAction, SwitchAction or TapChangeAction
    :return: ComputedElement
    """
    network = context.network
    if not network.has_branch(action.branch_id):
        raise UnsupportedActionError(action.idtag, "Action on a branch not found")

    branch = network.get_branch(action.branch_id)
    term = context.equation_system.get_branch_p1_term(branch.num)
    if term is None:
        raise UnsupportedActionError(action.idtag, "Action on a zero impedance branch")

    if isinstance(action, BranchOutageAction):
        return ComputedSwitchBranchElement(branch, term, enabled=False)

    elif isinstance(action, SwitchAction):
        return ComputedSwitchBranchElement(branch, term, enabled=not action.open)

    elif isinstance(action, TapChangeAction):
        if not branch.active:
            raise UnsupportedActionError(action.idtag, "Tap change on an open branch")
        new_power = term.power if action.tap_module is None else branch.get_dc_power_factor(
            dc_approximation_type=context.options.dc_approximation_type,
            use_transformer_ratio=context.options.use_transformer_ratio,
            tap_module=action.tap_module)
        new_phase = branch.tap_phase if action.tap_phase is None else action.tap_phase
        return ComputedTapPositionChangeElement(branch, term, new_power=new_power, new_phase=new_phase)

    else:
        raise UnsupportedActionError(getattr(action, 'idtag', str(action)), "Unknown action type")


def create_action_elements(context: DcPowerFlowContext,
                           actions: Iterable[Action],
                           logger: Logger) -> Dict[str, ComputedElement]:
    """
    Computed elements of the remedial actions, unsupported actions are skipped with a warning
    :param context: DcPowerFlowContext
    :param actions: actions
    :param logger: Logger
    :return: action idtag -> ComputedElement
    """
    elements: Dict[str, ComputedElement] = dict()
    for action in actions:
        try:
            elements[action.idtag] = create_action_element(context, action)
        except UnsupportedActionError as e:
            logger.add_warning(e.message, device=action.idtag, device_class="Action")

    set_computed_element_indexes(elements.values())
    return elements


def get_branch_ids(elements: Iterable[ComputedElement]) -> List[str]:
    """
    :param elements: computed elements
    :return: idtags of the branches
    """
    return [e.branch.idtag for e in elements]
