# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Union, TYPE_CHECKING
from FastDcEngine.basic_structures import Vec, Mat
from FastDcEngine.enumerations import ActivationState
from FastDcEngine.Equations.variable import Variable

if TYPE_CHECKING:
    from FastDcEngine.Equations.equation import Equation
    from FastDcEngine.Equations.equation_system_index import EquationSystemIndex


class EquationTerm(ABC):
    """
    Additive contribution of one or more variables to an equation
    Terms are linear: the derivatives do not depend on the state
    """

    def __init__(self, active: bool = True):
        """

        :param active: initial activation state
        """
        self._state = ActivationState.ACTIVE if active else ActivationState.INACTIVE

        self.equation: Union[Equation, None] = None

    @property
    def state(self) -> ActivationState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state == ActivationState.ACTIVE

    def set_active(self, active: bool):
        """
        Transition ACTIVE <-> INACTIVE, the owning equation system keeps track of the active variables
        :param active: new state
        """
        new_state = ActivationState.ACTIVE if active else ActivationState.INACTIVE
        if new_state != self._state:
            self._state = new_state
            if self.equation is not None:
                self.equation.equation_system.on_term_state_change(self)

    @property
    @abstractmethod
    def variables(self) -> List[Variable]:
        pass

    @abstractmethod
    def der(self, variable: Variable) -> float:
        """
        Partial derivative of the term with respect to one of its variables
        :param variable: Variable
        :return: derivative
        """
        pass

    def has_rhs(self) -> bool:
        """
        Does the term have a constant part?
        :return:
        """
        return False

    def rhs(self) -> float:
        """
        Constant part of the term, moved to the right hand side of the system
        :return:
        """
        return 0.0

    def eval(self, x: Vec, index: EquationSystemIndex) -> float:
        """
        Value of the term at the state x
        :param x: state vector (ordered by variable rows)
        :param index: EquationSystemIndex used to build x
        :return: term value
        """
        val = self.rhs()
        for v in self.variables:
            row = index.get_row(v)
            if row >= 0:
                val += self.der(v) * x[row]
        return val

    def calculate_sensi(self, dx: Mat, column: int, index: EquationSystemIndex) -> float:
        """
        Variation of the term for the variation of the state stored in the column of dx
        :param dx: matrix of state variations (variable rows x columns)
        :param column: column of dx
        :param index: EquationSystemIndex used to build dx
        :return: term variation
        """
        val = 0.0
        for v in self.variables:
            row = index.get_row(v)
            if row >= 0:
                val += self.der(v) * dx[row, column]
        return val


class VariableEquationTerm(EquationTerm):
    """
    coefficient * variable
    """

    def __init__(self, variable: Variable, coefficient: float = 1.0, active: bool = True):
        """

        :param variable: Variable
        :param coefficient: constant factor
        :param active: initial activation state
        """
        EquationTerm.__init__(self, active=active)
        self.variable = variable
        self.coefficient = coefficient

    @property
    def variables(self) -> List[Variable]:
        return [self.variable]

    def der(self, variable: Variable) -> float:
        if variable != self.variable:
            raise ValueError(f"Unknown variable {variable}")
        return self.coefficient

    def __repr__(self):
        return f"VariableEquationTerm({self.coefficient} * {self.variable})"
