# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Dict, List, Sequence, Tuple, Union
import numpy as np
import numba as nb
from FastDcEngine.basic_structures import Vec, Mat, IntVec
from FastDcEngine.exceptions import WoodburySolveError, ComputedElementError
from FastDcEngine.Equations.equation_system_index import EquationSystemIndex
from FastDcEngine.Simulations.FastDc.computed_element import ComputedElement, set_local_indexes


@nb.njit(cache=True)
def make_woodbury_system(states: Mat,
                         ph1_rows: IntVec,
                         ph2_rows: IntVec,
                         a_rows: IntVec,
                         a_values: Vec,
                         inv_delta_power: Vec,
                         x_pre: Vec) -> Tuple[Mat, Vec]:
    """
    Dense system giving the flow transfer factors (alphas) of N simultaneous perturbations

    row k: alpha_k / (power_before_k - power_after_k) - sum_j dS_kj alpha_j = phi1_k - phi2_k + a_k
    with dS_kj = states[ph1_k, j] - states[ph2_k, j]

    :param states: states of the N elements (n_variables, N), column j is the element of local index j
    :param ph1_rows: rows of the side 1 angle of each element
    :param ph2_rows: rows of the side 2 angle of each element
    :param a_rows: rows of the phase shift variable of each element (-1 if the phase is a constant)
    :param a_values: constant phase shift of each element (used when a_rows is -1)
    :param inv_delta_power: 1 / (power_before - power_after) of each element
    :param x_pre: pre-event state
    :return: matrix (N, N), right hand side (N)
    """
    n = len(ph1_rows)
    M = np.empty((n, n))
    rhs = np.empty(n)
    for k in range(n):
        for j in range(n):
            M[k, j] = -(states[ph1_rows[k], j] - states[ph2_rows[k], j])
        M[k, k] += inv_delta_power[k]

        if a_rows[k] >= 0:
            a = x_pre[a_rows[k]]
        else:
            a = a_values[k]
        rhs[k] = x_pre[ph1_rows[k]] - x_pre[ph2_rows[k]] + a
    return M, rhs


@nb.njit(cache=True)
def add_woodbury_contributions(x: Vec, states: Mat, alphas: Vec) -> None:
    """
    x += states @ alphas, in place
    :param x: state to modify
    :param states: states of the elements (n_variables, N)
    :param alphas: alphas (N)
    """
    for j in range(len(alphas)):
        if alphas[j] != 0.0:
            for i in range(states.shape[0]):
                x[i] += alphas[j] * states[i, j]


class WoodburyEngine:
    """
    Post-event states from the pre-event state and the states of the perturbed branches,
    without refactorizing the base system
    """

    def __init__(self,
                 index: EquationSystemIndex,
                 contingency_elements: Sequence[ComputedElement],
                 contingencies_states: Mat,
                 action_elements: Sequence[ComputedElement] = (),
                 actions_states: Union[Mat, None] = None,
                 phases: Union[Dict[int, float], None] = None):
        """

        :param index: EquationSystemIndex used to build the states
        :param contingency_elements: contingency elements of the scenario
        :param contingencies_states: states matrix of the contingency elements
        :param action_elements: action elements of the scenario, applied after the contingency
        :param actions_states: states matrix of the action elements
        :param phases: branch number -> constant phase shift holding in the pre-event state
                       (default: the branch phase shift)
        """
        self.index = index
        self.contingency_elements: List[ComputedElement] = list(contingency_elements)
        self.contingencies_states = contingencies_states
        self.action_elements: List[ComputedElement] = list(action_elements)
        self.actions_states = actions_states
        self.phases: Dict[int, float] = dict() if phases is None else phases

        if len(self.action_elements) and actions_states is None:
            raise ComputedElementError("The action states are needed to apply action elements")

        self.elements: List[ComputedElement] = self.contingency_elements + self.action_elements
        set_local_indexes(self.elements)

    def get_states(self) -> Mat:
        """
        States of the scenario elements, column j for the element of local index j
        :return: matrix (n_variables, N)
        """
        cols_c = [e.computed_element_index for e in self.contingency_elements]
        cols_a = [e.computed_element_index for e in self.action_elements]
        parts = list()
        if len(cols_c):
            parts.append(self.contingencies_states[:, cols_c])
        if len(cols_a):
            parts.append(self.actions_states[:, cols_a])
        if len(parts) == 0:
            return np.zeros((self.index.n_variables, 0))
        return np.ascontiguousarray(np.hstack(parts))

    def get_element_arrays(self) -> Tuple[IntVec, IntVec, IntVec, Vec, Vec]:
        """
        Per element rows, phases and power differences of the dense system
        :return: ph1 rows, ph2 rows, a rows, a values, inverse of the power differences
        """
        n = len(self.elements)
        ph1_rows = np.empty(n, dtype=np.int64)
        ph2_rows = np.empty(n, dtype=np.int64)
        a_rows = np.full(n, -1, dtype=np.int64)
        a_values = np.zeros(n)
        inv_delta_power = np.empty(n)

        for e in self.elements:
            k = e.local_index
            term = e.branch_equation
            ph1_rows[k] = self.index.get_row(term.phi1_var)
            ph2_rows[k] = self.index.get_row(term.phi2_var)
            if ph1_rows[k] < 0 or ph2_rows[k] < 0:
                raise ComputedElementError(f"Branch {e.branch.idtag} is not connected to the solved system")
            if term.a1_var is not None:
                a_rows[k] = self.index.get_row(term.a1_var)
            else:
                a_values[k] = self.phases.get(e.branch.num, e.branch.tap_phase)
            inv_delta_power[k] = 1.0 / (e.power_before - e.power_after)

        return ph1_rows, ph2_rows, a_rows, a_values, inv_delta_power

    def set_alphas(self, x_pre: Vec, states: Mat):
        """
        Solve the dense system and store the alpha of every element
        :param x_pre: pre-event state
        :param states: states of the scenario elements (see get_states)
        """
        n = len(self.elements)
        if n == 0:
            return

        ph1_rows, ph2_rows, a_rows, a_values, inv_delta_power = self.get_element_arrays()
        M, rhs = make_woodbury_system(states, ph1_rows, ph2_rows, a_rows, a_values, inv_delta_power, x_pre)

        if n == 1:
            if M[0, 0] == 0.0:
                raise WoodburySolveError(n)
            alphas = rhs / M[0, 0]
        else:
            try:
                alphas = np.linalg.solve(M, rhs)
            except np.linalg.LinAlgError as e:
                raise WoodburySolveError(n) from e

        if not np.all(np.isfinite(alphas)):
            raise WoodburySolveError(n)

        for e in self.elements:
            e.alpha = alphas[e.local_index]

    def _to_post_states(self, x: Vec) -> Vec:
        states = self.get_states()
        self.set_alphas(x, states)
        if len(self.elements):
            alphas = np.array([e.alpha for e in self.elements])
            add_woodbury_contributions(x, states, alphas)
        return x

    def to_post_contingency_states(self, x: Vec) -> Vec:
        """
        Turn a pre-contingency state into the post-contingency state, in place
        :param x: pre-contingency state (modified)
        :return: x
        """
        if len(self.action_elements):
            raise ComputedElementError("Use to_post_contingency_and_operator_strategy_states with action elements")
        return self._to_post_states(x)

    def to_post_contingency_and_operator_strategy_states(self, x: Vec) -> Vec:
        """
        Turn a pre-contingency state into the state after the contingency and the remedial actions, in place
        :param x: pre-contingency state (modified)
        :return: x
        """
        return self._to_post_states(x)
