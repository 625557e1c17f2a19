# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from dataclasses import dataclass
from typing import Union
from FastDcEngine.enumerations import ActionType


@dataclass(frozen=True)
class BranchOutageAction:
    """
    Open a branch
    """
    idtag: str
    branch_id: str

    @property
    def tpe(self) -> ActionType:
        return ActionType.BRANCH_OUTAGE


@dataclass(frozen=True)
class SwitchAction:
    """
    Open or close a switching branch
    """
    idtag: str
    branch_id: str
    open: bool

    @property
    def tpe(self) -> ActionType:
        return ActionType.SWITCH


@dataclass(frozen=True)
class TapChangeAction:
    """
    Set a new tap module and/or a new phase shift on a branch, None keeps the present value
    """
    idtag: str
    branch_id: str
    tap_module: Union[float, None] = None
    tap_phase: Union[float, None] = None

    @property
    def tpe(self) -> ActionType:
        return ActionType.TAP_CHANGE


Action = Union[BranchOutageAction, SwitchAction, TapChangeAction]
