# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import List, Tuple, TYPE_CHECKING
from FastDcEngine.basic_structures import Vec
from FastDcEngine.enumerations import DcEquationType, ActivationState
from FastDcEngine.Equations.equation_term import EquationTerm

if TYPE_CHECKING:
    from FastDcEngine.Equations.equation_system import EquationSystem
    from FastDcEngine.Equations.equation_system_index import EquationSystemIndex


class Equation:
    """
    Equation of the system: sum of terms = target
    """

    def __init__(self, element_num: int, equation_type: DcEquationType, equation_system: EquationSystem):
        """

        :param element_num: number of the bus or branch
        :param equation_type: DcEquationType
        :param equation_system: owning EquationSystem
        """
        self.element_num = element_num

        self.type = equation_type

        self.equation_system = equation_system

        self.terms: List[EquationTerm] = list()

        self._state = ActivationState.ACTIVE

    @property
    def key(self) -> Tuple[int, DcEquationType]:
        return self.element_num, self.type

    @property
    def state(self) -> ActivationState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state == ActivationState.ACTIVE

    def set_active(self, active: bool):
        """
        Transition ACTIVE <-> INACTIVE without renumbering anything
        :param active: new state
        """
        new_state = ActivationState.ACTIVE if active else ActivationState.INACTIVE
        if new_state != self._state:
            self._state = new_state
            self.equation_system.on_equation_state_change(self)

    def add_term(self, term: EquationTerm) -> Equation:
        """
        Append a term
        :param term: EquationTerm not yet attached to any equation
        :return: self
        """
        if term.equation is not None:
            raise ValueError(f"{term} already belongs to {term.equation}")
        term.equation = self
        self.terms.append(term)
        self.equation_system.on_term_added(self, term)
        return self

    def get_active_terms(self) -> List[EquationTerm]:
        """
        :return: list of the active terms
        """
        return [t for t in self.terms if t.active]

    def rhs(self) -> float:
        """
        Sum of the constant parts of the active terms
        :return:
        """
        return sum(t.rhs() for t in self.terms if t.active and t.has_rhs())

    def eval(self, x: Vec, index: EquationSystemIndex) -> float:
        """
        Value of the left hand side at the state x
        :param x: state vector
        :param index: EquationSystemIndex
        :return:
        """
        return sum(t.eval(x, index) for t in self.terms if t.active)

    def __repr__(self):
        return f"Equation({self.type.name}, {self.element_num}, {self._state})"
