# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import uuid
from typing import Union
from FastDcEngine.enumerations import ElementType


class Bus:
    """
    Electrical node of the DC network
    """
    element_type = ElementType.BUS

    def __init__(self,
                 name: str = "Bus",
                 idtag: Union[str, None] = None,
                 P: float = 0.0,
                 is_reference: bool = False,
                 participation_factor: float = 0.0):
        """
        Bus constructor
        :param name: name of the bus
        :param idtag: unique identifier (a UUID is generated if None)
        :param P: net active power injection (p.u.), generation positive
        :param is_reference: is this the angle reference (slack) bus?
        :param participation_factor: share of the slack mismatch taken when distributing the slack
        """
        self.name = name

        self.idtag = uuid.uuid4().hex if idtag is None else idtag

        self.P = P

        self.is_reference = is_reference

        self.participation_factor = participation_factor

        # position in the network, assigned by DcNetwork.add_bus
        self.num: int = -1

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"Bus({self.idtag})"
