# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import List


class FastDcError(Exception):
    """Base class for exceptions in this engine."""
    pass


class StructuralError(FastDcError):
    """Base class for malformed topology and malformed equation systems."""
    pass


class ReferenceBusError(StructuralError):
    """Exception raised when the network does not have exactly one reference bus."""
    def __init__(self, bus_ids: List[str], message="The network must have exactly one reference bus"):
        self.bus_ids = bus_ids
        self.message = f"{message}: found {len(bus_ids)} {bus_ids}"
        super().__init__(self.message)


class ElementNotFoundError(StructuralError):
    """Exception raised when an element idtag is not part of the network."""
    def __init__(self, idtag: str, element_class: str = "Element"):
        self.idtag = idtag
        self.message = f"{element_class} {idtag} not found"
        super().__init__(self.message)


class EquationConflictError(StructuralError):
    """Exception raised when an equation is requested for an element of the wrong kind."""
    def __init__(self, element_num: int, equation_type, element_type):
        self.element_num = element_num
        self.message = f"Incorrect equation type {equation_type} for {element_type} {element_num}"
        super().__init__(self.message)


class NonSquareSystemError(StructuralError):
    """Exception raised when the active equations and the active variables do not match in number."""
    def __init__(self, n_equations: int, n_variables: int, message="The equation system must be square"):
        self.n_equations = n_equations
        self.n_variables = n_variables
        self.message = f"{message}: found {n_equations} equations and {n_variables} variables"
        super().__init__(self.message)


class ComputedElementError(StructuralError):
    """Exception raised when a computed element can not be used with the solved system."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NumericalError(FastDcError):
    """Base class for failed factorizations and failed solves."""
    pass


class SingularMatrixError(NumericalError):
    """Exception raised when the DC matrix cannot be factorized or solved."""
    def __init__(self, message="DC solver failed: singular matrix"):
        self.message = message
        super().__init__(self.message)


class WoodburySolveError(NumericalError):
    """Exception raised when the small dense Woodbury system cannot be solved."""
    def __init__(self, n: int, message="Woodbury system could not be solved"):
        self.n = n
        self.message = f"{message} (size {n}x{n})"
        super().__init__(self.message)


class CapacityError(FastDcError):
    """Base class for problems too large to be handled."""
    pass


class TooManyElementsError(CapacityError):
    """Exception raised when the perturbation right hand side would overflow the addressable matrix size."""
    def __init__(self, n_elements: int, max_elements: int, n_equations: int):
        self.n_elements = n_elements
        self.max_elements = max_elements
        self.n_equations = n_equations
        self.message = (f"Too many elements {n_elements}, maximum is {max_elements} "
                        f"for a system with {n_equations} equations")
        super().__init__(self.message)


class UnsupportedActionError(FastDcError):
    """Exception raised when a remedial action cannot be modelled, the action is then skipped."""
    def __init__(self, action_id: str, message="Unsupported action"):
        self.action_id = action_id
        self.message = f"{message}: {action_id}"
        super().__init__(self.message)
