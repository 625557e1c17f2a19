# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import List, Sequence, Union


class Contingency:
    """
    Group of branches failing at the same time
    """

    def __init__(self, idtag: str, branch_ids: Sequence[str], name: Union[str, None] = None):
        """

        :param idtag: unique identifier of the contingency
        :param branch_ids: idtags of the branches to open, in order
        :param name: name (the idtag if None)
        """
        self.idtag = idtag
        self.name = idtag if name is None else name
        self.branch_ids: List[str] = list(branch_ids)

    def __repr__(self):
        return f"Contingency({self.idtag}: {self.branch_ids})"


class OperatorStrategy:
    """
    Remedial actions applied after a contingency
    """

    def __init__(self, idtag: str, contingency_id: str, action_ids: Sequence[str], name: Union[str, None] = None):
        """

        :param idtag: unique identifier of the strategy
        :param contingency_id: idtag of the contingency the strategy responds to
        :param action_ids: idtags of the actions, in order
        :param name: name (the idtag if None)
        """
        self.idtag = idtag
        self.name = idtag if name is None else name
        self.contingency_id = contingency_id
        self.action_ids: List[str] = list(action_ids)

    def __repr__(self):
        return f"OperatorStrategy({self.idtag}: {self.contingency_id} -> {self.action_ids})"
