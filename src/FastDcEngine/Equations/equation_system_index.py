# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Dict, Tuple, Sequence
from FastDcEngine.enumerations import DcEquationType, DcVariableType
from FastDcEngine.Equations.variable import Variable
from FastDcEngine.Equations.equation import Equation


class EquationSystemIndex:
    """
    Immutable numbering of the active equations (columns) and active variables (rows)
    produced by EquationSystem.reindex()
    """
    __slots__ = ('_equations', '_variables', '_columns', '_rows', '_version')

    def __init__(self, equations: Sequence[Equation], variables: Sequence[Variable], version: int = 0):
        """

        :param equations: active equations in creation order
        :param variables: active variables in creation order
        :param version: structural version of the equation system at indexing time
        """
        self._equations: Tuple[Equation, ...] = tuple(equations)
        self._variables: Tuple[Variable, ...] = tuple(variables)
        self._columns: Dict[Tuple[int, DcEquationType], int] = {eq.key: i for i, eq in enumerate(self._equations)}
        self._rows: Dict[Tuple[int, DcVariableType], int] = {v.key: i for i, v in enumerate(self._variables)}
        self._version = version

    @property
    def equations(self) -> Tuple[Equation, ...]:
        return self._equations

    @property
    def variables(self) -> Tuple[Variable, ...]:
        return self._variables

    @property
    def version(self) -> int:
        return self._version

    @property
    def n_equations(self) -> int:
        return len(self._equations)

    @property
    def n_variables(self) -> int:
        return len(self._variables)

    def get_column(self, equation: Equation) -> int:
        """
        Column of an equation
        :param equation: Equation
        :return: column, -1 if the equation was not active at indexing time
        """
        return self._columns.get(equation.key, -1)

    def get_equation_column(self, element_num: int, equation_type: DcEquationType) -> int:
        """
        Column of an equation given its identifiers
        :param element_num: element number
        :param equation_type: DcEquationType
        :return: column, -1 if not indexed
        """
        return self._columns.get((element_num, equation_type), -1)

    def get_row(self, variable: Variable) -> int:
        """
        Row of a variable
        :param variable: Variable
        :return: row, -1 if the variable was not active at indexing time
        """
        return self._rows.get(variable.key, -1)

    def get_variable_row(self, element_num: int, variable_type: DcVariableType) -> int:
        """
        Row of a variable given its identifiers
        :param element_num: element number
        :param variable_type: DcVariableType
        :return: row, -1 if not indexed
        """
        return self._rows.get((element_num, variable_type), -1)
