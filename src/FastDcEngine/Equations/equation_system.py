# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Dict, List, Tuple, Union
from FastDcEngine.enumerations import DcEquationType, DcVariableType
from FastDcEngine.exceptions import EquationConflictError, NonSquareSystemError
from FastDcEngine.Equations.variable import Variable
from FastDcEngine.Equations.equation_term import EquationTerm, VariableEquationTerm
from FastDcEngine.Equations.equation import Equation
from FastDcEngine.Equations.equation_system_index import EquationSystemIndex


class EquationSystem:
    """
    Set of equations and variables with activation tracking

    A variable is active when at least one active term of an active equation refers to it.
    Activation changes are O(1) and never renumber: numbering only happens in reindex().
    """

    def __init__(self):

        self._equations: Dict[Tuple[int, DcEquationType], Equation] = dict()

        self._variables: Dict[Tuple[int, DcVariableType], Variable] = dict()

        # number of active terms of active equations referring to each variable
        self._variable_refs: Dict[Tuple[int, DcVariableType], int] = dict()

        self._n_active_equations = 0

        self._n_active_variables = 0

        # incremented at every structural change
        self._version = 0

        self._index: Union[EquationSystemIndex, None] = None

    @property
    def version(self) -> int:
        return self._version

    def create_equation(self, element, equation_type: DcEquationType) -> Equation:
        """
        Get the equation of an element, creating it if needed
        :param element: Bus or Branch (anything with num and element_type)
        :param equation_type: DcEquationType
        :return: Equation
        """
        if element.element_type != equation_type.element_type:
            raise EquationConflictError(element_num=element.num,
                                        equation_type=equation_type,
                                        element_type=element.element_type)

        key = (element.num, equation_type)
        equation = self._equations.get(key, None)
        if equation is None:
            equation = Equation(element_num=element.num, equation_type=equation_type, equation_system=self)
            self._equations[key] = equation
            self._n_active_equations += 1
            self._version += 1

        return equation

    def get_equation(self, element_num: int, equation_type: DcEquationType) -> Union[Equation, None]:
        """
        Get an existing equation
        :param element_num: element number
        :param equation_type: DcEquationType
        :return: Equation or None
        """
        return self._equations.get((element_num, equation_type), None)

    def has_equation(self, element_num: int, equation_type: DcEquationType) -> bool:
        """
        :param element_num: element number
        :param equation_type: DcEquationType
        :return: is there such equation?
        """
        return (element_num, equation_type) in self._equations

    def get_variable(self, element_num: int, variable_type: DcVariableType) -> Variable:
        """
        Get a variable, creating it if needed
        :param element_num: element number
        :param variable_type: DcVariableType
        :return: Variable
        """
        key = (element_num, variable_type)
        variable = self._variables.get(key, None)
        if variable is None:
            variable = Variable(element_num=element_num, variable_type=variable_type)
            self._variables[key] = variable
            self._variable_refs[key] = 0
        return variable

    def create_variable_term(self, element_num: int, variable_type: DcVariableType,
                             coefficient: float = 1.0, active: bool = True) -> VariableEquationTerm:
        """
        Create a term made of a single variable
        :param element_num: element number
        :param variable_type: DcVariableType
        :param coefficient: constant factor
        :param active: initial activation state
        :return: VariableEquationTerm
        """
        return VariableEquationTerm(variable=self.get_variable(element_num, variable_type),
                                    coefficient=coefficient,
                                    active=active)

    def get_equations(self) -> List[Equation]:
        """
        :return: all the equations in creation order
        """
        return list(self._equations.values())

    def get_variables(self) -> List[Variable]:
        """
        :return: all the variables in creation order
        """
        return list(self._variables.values())

    def is_variable_active(self, variable: Variable) -> bool:
        """
        :param variable: Variable
        :return: is the variable referenced by an active term of an active equation?
        """
        return self._variable_refs.get(variable.key, 0) > 0

    def count_active_equations(self) -> int:
        return self._n_active_equations

    def count_active_variables(self) -> int:
        return self._n_active_variables

    def is_square(self) -> bool:
        return self._n_active_equations == self._n_active_variables

    def check_square(self):
        """
        Raise if the active equations and the active variables differ in number
        """
        if not self.is_square():
            raise NonSquareSystemError(n_equations=self._n_active_equations,
                                       n_variables=self._n_active_variables)

    def _add_references(self, term: EquationTerm, delta: int):
        for v in term.variables:
            before = self._variable_refs[v.key]
            after = before + delta
            self._variable_refs[v.key] = after
            if before == 0 and after > 0:
                self._n_active_variables += 1
            elif before > 0 and after == 0:
                self._n_active_variables -= 1

    def on_term_added(self, equation: Equation, term: EquationTerm):
        """
        Called by Equation.add_term
        """
        for v in term.variables:
            if v.key not in self._variables:
                raise ValueError(f"{v} does not belong to this equation system")
        if equation.active and term.active:
            self._add_references(term, 1)
        self._version += 1

    def on_term_state_change(self, term: EquationTerm):
        """
        Called by EquationTerm.set_active
        """
        if term.equation.active:
            self._add_references(term, 1 if term.active else -1)
        self._version += 1

    def on_equation_state_change(self, equation: Equation):
        """
        Called by Equation.set_active
        """
        delta = 1 if equation.active else -1
        self._n_active_equations += delta
        for term in equation.terms:
            if term.active:
                self._add_references(term, delta)
        self._version += 1

    def reindex(self) -> EquationSystemIndex:
        """
        Number the active equations and variables in creation order
        :return: new immutable EquationSystemIndex
        """
        equations = [eq for eq in self._equations.values() if eq.active]
        variables = [v for key, v in self._variables.items() if self._variable_refs[key] > 0]
        self._index = EquationSystemIndex(equations=equations, variables=variables, version=self._version)
        return self._index

    @property
    def index(self) -> EquationSystemIndex:
        """
        Last index snapshot, created on first access
        :return: EquationSystemIndex
        """
        if self._index is None:
            return self.reindex()
        return self._index

    def is_index_up_to_date(self) -> bool:
        """
        :return: was the last snapshot taken after the last structural change?
        """
        return self._index is not None and self._index.version == self._version
