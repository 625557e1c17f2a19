# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import uuid
from typing import Union
from FastDcEngine.enumerations import ElementType, DcApproximationType
from FastDcEngine.Devices.bus import Bus


class Branch:
    """
    Line or transformer between two buses (pi model, series part only)
    """
    element_type = ElementType.BRANCH

    def __init__(self,
                 bus_from: Bus,
                 bus_to: Bus,
                 name: str = "Branch",
                 idtag: Union[str, None] = None,
                 R: float = 0.0,
                 X: float = 1e-5,
                 tap_module: float = 1.0,
                 tap_phase: float = 0.0,
                 active: bool = True,
                 is_phase_shifter: bool = False):
        """
        Branch constructor
        :param bus_from: side 1 bus
        :param bus_to: side 2 bus
        :param name: name of the branch
        :param idtag: unique identifier (a UUID is generated if None)
        :param R: series resistance (p.u.)
        :param X: series reactance (p.u.)
        :param tap_module: transformer ratio at side 1 (p.u.)
        :param tap_phase: phase shift at side 1 (rad)
        :param active: is the branch closed?
        :param is_phase_shifter: can the phase shift be exposed as a variable?
        """
        self.name = name

        self.idtag = uuid.uuid4().hex if idtag is None else idtag

        self.bus_from: Bus = bus_from

        self.bus_to: Bus = bus_to

        self.R = R

        self.X = X

        self.tap_module = tap_module

        self.tap_phase = tap_phase

        self.active = active

        self.is_phase_shifter = is_phase_shifter

        # position in the network, assigned by DcNetwork.add_branch
        self.num: int = -1

    def get_dc_power_factor(self,
                            dc_approximation_type: DcApproximationType = DcApproximationType.IGNORE_R,
                            use_transformer_ratio: bool = True,
                            tap_module: Union[float, None] = None) -> float:
        """
        Linear coefficient of the branch DC flow: p1 = power * (phi1 - phi2 + a1)
        :param dc_approximation_type: DcApproximationType
        :param use_transformer_ratio: multiply by the tap module?
        :param tap_module: tap module to use instead of the branch one
        :return: power factor (p.u.)
        """
        if dc_approximation_type == DcApproximationType.IGNORE_R:
            power = 1.0 / self.X
        else:
            power = self.X / (self.R * self.R + self.X * self.X)

        if use_transformer_ratio:
            power *= self.tap_module if tap_module is None else tap_module

        return power

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"Branch({self.idtag}: {self.bus_from.idtag} -> {self.bus_to.idtag})"
