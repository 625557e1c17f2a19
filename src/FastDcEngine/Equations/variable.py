# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Tuple
from FastDcEngine.enumerations import DcVariableType


class Variable:
    """
    Unknown of the equation system, identified by (element number, variable type)
    The row of a variable is only known through an EquationSystemIndex
    """
    __slots__ = ('_element_num', '_type')

    def __init__(self, element_num: int, variable_type: DcVariableType):
        """

        :param element_num: number of the bus or branch
        :param variable_type: DcVariableType
        """
        self._element_num = element_num
        self._type = variable_type

    @property
    def element_num(self) -> int:
        return self._element_num

    @property
    def type(self) -> DcVariableType:
        return self._type

    @property
    def key(self) -> Tuple[int, DcVariableType]:
        return self._element_num, self._type

    def __eq__(self, other) -> bool:
        return isinstance(other, Variable) and self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self):
        return f"Variable({self._type.name}, {self._element_num})"
