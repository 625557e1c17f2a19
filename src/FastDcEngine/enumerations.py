# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from enum import Enum


class ElementType(Enum):
    """
    Network element kinds that own equations and variables
    """
    BUS = 'Bus'
    BRANCH = 'Branch'

    def __str__(self):
        return self.value

    def __repr__(self):
        return str(self)

    @staticmethod
    def argparse(s):
        """

        :param s:
        :return:
        """
        try:
            return ElementType[s]
        except KeyError:
            return s


class DcVariableType(Enum):
    """
    Quantities solved by the DC equation system
    """
    BUS_PHI = 'Bus voltage angle'
    BRANCH_ALPHA1 = 'Branch phase shift'
    DUMMY_P = 'Zero impedance branch active power'

    def __str__(self):
        return self.value

    def __repr__(self):
        return str(self)

    @property
    def element_type(self) -> ElementType:
        """
        Element type owning this kind of variable
        :return: ElementType
        """
        if self == DcVariableType.BUS_PHI:
            return ElementType.BUS
        else:
            return ElementType.BRANCH

    @staticmethod
    def argparse(s):
        """

        :param s:
        :return:
        """
        try:
            return DcVariableType[s]
        except KeyError:
            return s


class DcEquationType(Enum):
    """
    Equations of the DC equation system
    """
    BUS_TARGET_P = 'Bus active power balance'
    BUS_TARGET_PHI = 'Bus voltage angle reference'
    BRANCH_TARGET_ALPHA1 = 'Branch phase shift target'
    ZERO_PHI = 'Zero impedance branch angle equality'
    DUMMY_TARGET_P = 'Zero impedance branch null power'

    def __str__(self):
        return self.value

    def __repr__(self):
        return str(self)

    @property
    def element_type(self) -> ElementType:
        """
        Element type owning this kind of equation
        :return: ElementType
        """
        if self in (DcEquationType.BUS_TARGET_P, DcEquationType.BUS_TARGET_PHI):
            return ElementType.BUS
        else:
            return ElementType.BRANCH

    @staticmethod
    def argparse(s):
        """

        :param s:
        :return:
        """
        try:
            return DcEquationType[s]
        except KeyError:
            return s


class ActivationState(Enum):
    """
    State of an equation or of an equation term
    """
    ACTIVE = 'Active'
    INACTIVE = 'Inactive'

    def __str__(self):
        return self.value

    def __repr__(self):
        return str(self)


class DcApproximationType(Enum):
    """
    How the branch resistance enters the DC power factor
    IGNORE_R: power = 1 / X
    IGNORE_G: power = X / (R^2 + X^2)
    """
    IGNORE_R = 'Ignore R'
    IGNORE_G = 'Ignore G'

    def __str__(self):
        return self.value

    def __repr__(self):
        return str(self)

    @staticmethod
    def argparse(s):
        """

        :param s:
        :return:
        """
        try:
            return DcApproximationType[s]
        except KeyError:
            return s


class ComputedElementType(Enum):
    """
    Kinds of perturbations handled by the Woodbury engine
    """
    CONTINGENCY = 'Contingency'
    SWITCH = 'Switch'
    TAP_POSITION_CHANGE = 'Tap position change'

    def __str__(self):
        return self.value

    def __repr__(self):
        return str(self)


class ActionType(Enum):
    """
    Remedial action types
    """
    BRANCH_OUTAGE = 'Branch outage'
    SWITCH = 'Switch'
    TAP_CHANGE = 'Tap change'

    def __str__(self):
        return self.value

    def __repr__(self):
        return str(self)

    @staticmethod
    def argparse(s):
        """

        :param s:
        :return:
        """
        try:
            return ActionType[s]
        except KeyError:
            return s


class ScenarioStatus(Enum):
    """
    Outcome of a contingency or operator strategy evaluation
    """
    CONVERGED = 'Converged'
    FAILED = 'Failed'
    NOT_RUN = 'Not run'

    def __str__(self):
        return self.value

    def __repr__(self):
        return str(self)


class LogSeverity(Enum):
    """
    Enumeration of logs severities
    """
    Error = 'Error'
    Warning = 'Warning'
    Information = 'Information'
    Divergence = 'Divergence'

    def __str__(self):
        return self.value

    def __repr__(self):
        return str(self)

    @staticmethod
    def argparse(s):
        """

        :param s:
        :return:
        """
        try:
            return LogSeverity[s]
        except KeyError:
            return s
