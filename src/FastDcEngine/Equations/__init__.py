# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from FastDcEngine.Equations.variable import Variable
from FastDcEngine.Equations.equation_term import EquationTerm, VariableEquationTerm
from FastDcEngine.Equations.equation import Equation
from FastDcEngine.Equations.equation_system_index import EquationSystemIndex
from FastDcEngine.Equations.equation_system import EquationSystem
from FastDcEngine.Equations.jacobian_matrix import JacobianMatrix
