# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import threading
from typing import Union
import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import splu, SuperLU

from FastDcEngine.basic_structures import CscMat, Vec, Mat
from FastDcEngine.exceptions import NonSquareSystemError, SingularMatrixError
from FastDcEngine.Equations.equation_system import EquationSystem
from FastDcEngine.Equations.equation_system_index import EquationSystemIndex


class JacobianMatrix:
    """
    Sparse matrix of the derivatives of the active terms, cell (equation column, variable row),
    with its LU factorization
    """

    def __init__(self, equation_system: EquationSystem, index: Union[EquationSystemIndex, None] = None):
        """

        :param equation_system: EquationSystem
        :param index: EquationSystemIndex to use, a fresh one is created if None
        """
        self.equation_system = equation_system

        self.index: EquationSystemIndex = equation_system.reindex() if index is None else index

        self._matrix: Union[CscMat, None] = None

        self._lu: Union[SuperLU, None] = None

        # one solve at a time on the shared factorization
        self._lock = threading.Lock()

    @property
    def matrix(self) -> CscMat:
        """
        :return: the assembled matrix (n_equations x n_variables)
        """
        if self._matrix is None:
            self._matrix = self.build()
        return self._matrix

    def build(self) -> CscMat:
        """
        Assemble the matrix from the active terms of the indexed equations
        :return: CSC matrix
        """
        index = self.index
        if index.n_equations != index.n_variables:
            raise NonSquareSystemError(n_equations=index.n_equations, n_variables=index.n_variables)

        cols = list()
        rows = list()
        data = list()
        for column, equation in enumerate(index.equations):
            for term in equation.terms:
                if term.active:
                    for v in term.variables:
                        row = index.get_row(v)
                        if row >= 0:
                            cols.append(column)
                            rows.append(row)
                            data.append(term.der(v))

        # duplicated entries are summed
        return sp.csc_matrix((data, (cols, rows)), shape=(index.n_equations, index.n_variables))

    def factorize(self) -> SuperLU:
        """
        LU factorization of the matrix, computed once
        :return: SuperLU object
        """
        if self._lu is None:
            try:
                self._lu = splu(self.matrix)
            except RuntimeError as e:
                raise SingularMatrixError(f"DC solver failed: {e}") from e
        return self._lu

    def _solve(self, rhs: Union[Vec, Mat], trans: str):
        lu = self.factorize()
        with self._lock:
            sol = lu.solve(np.asarray(rhs, dtype=float), trans=trans)
        if not np.all(np.isfinite(sol)):
            raise SingularMatrixError("DC solver failed: non finite solution")
        rhs[...] = sol

    def solve(self, rhs: Union[Vec, Mat]):
        """
        Solve A x = rhs, the solution overwrites rhs
        :param rhs: vector (n_equations) or matrix (n_equations x k), indexed by equation columns
        """
        self._solve(rhs, trans='N')

    def solve_transposed(self, rhs: Union[Vec, Mat]):
        """
        Solve A^T x = rhs, the solution overwrites rhs
        :param rhs: vector (n_variables) or matrix (n_variables x k), indexed by variable rows
        """
        self._solve(rhs, trans='T')
