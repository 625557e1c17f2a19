# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import List, Union
from FastDcEngine.basic_structures import Vec
from FastDcEngine.Devices.branch import Branch
from FastDcEngine.Equations.variable import Variable
from FastDcEngine.Equations.equation_term import EquationTerm
from FastDcEngine.Equations.equation_system_index import EquationSystemIndex
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_options import DcPowerFlowOptions


class AbstractClosedBranchDcFlowEquationTerm(EquationTerm):
    """
    Active power of a closed branch in the DC approximation
    side 1: p1 = power * (phi1 - phi2 + a1)
    side 2: p2 = -p1
    a1 is either the constant phase of the branch or a variable
    """
    sign = 1.0

    def __init__(self,
                 branch: Branch,
                 phi1_var: Variable,
                 phi2_var: Variable,
                 a1_var: Union[Variable, None],
                 power: float,
                 active: bool = True):
        """

        :param branch: Branch
        :param phi1_var: angle variable of the side 1 bus
        :param phi2_var: angle variable of the side 2 bus
        :param a1_var: phase shift variable, None if the phase is a constant
        :param power: power factor (see compute_power)
        :param active: initial activation state
        """
        EquationTerm.__init__(self, active=active)
        self.branch = branch
        self.phi1_var = phi1_var
        self.phi2_var = phi2_var
        self.a1_var = a1_var
        self.power = power
        self._variables = [phi1_var, phi2_var] if a1_var is None else [phi1_var, phi2_var, a1_var]

    @staticmethod
    def compute_power(branch: Branch, options: DcPowerFlowOptions) -> float:
        """
        Power factor of a branch
        :param branch: Branch
        :param options: DcPowerFlowOptions
        :return: power factor
        """
        return branch.get_dc_power_factor(dc_approximation_type=options.dc_approximation_type,
                                          use_transformer_ratio=options.use_transformer_ratio)

    @property
    def variables(self) -> List[Variable]:
        return self._variables

    @property
    def a1(self) -> float:
        return self.branch.tap_phase

    def der(self, variable: Variable) -> float:
        if variable == self.phi1_var:
            return self.sign * self.power
        elif variable == self.phi2_var:
            return -self.sign * self.power
        elif self.a1_var is not None and variable == self.a1_var:
            return self.sign * self.power
        else:
            raise ValueError(f"Unknown variable {variable}")

    def has_rhs(self) -> bool:
        return self.a1_var is None

    def rhs(self) -> float:
        if self.a1_var is None:
            return self.sign * self.power * self.a1
        return 0.0

    def delta_phase(self, x: Vec, index: EquationSystemIndex) -> float:
        """
        phi1 - phi2 + a1 at the state x
        :param x: state vector
        :param index: EquationSystemIndex
        :return: angle difference (rad)
        """
        return self.sign * self.eval(x, index) / self.power

    def __repr__(self):
        return f"{self.__class__.__name__}({self.branch.idtag})"


class ClosedBranchSide1DcFlowEquationTerm(AbstractClosedBranchDcFlowEquationTerm):
    """
    Active power leaving side 1 of a closed branch
    """
    sign = 1.0


class ClosedBranchSide2DcFlowEquationTerm(AbstractClosedBranchDcFlowEquationTerm):
    """
    Active power leaving side 2 of a closed branch
    """
    sign = -1.0
