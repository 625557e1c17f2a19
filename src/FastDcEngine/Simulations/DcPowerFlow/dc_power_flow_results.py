# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import List
import numpy as np
import pandas as pd
from FastDcEngine.basic_structures import Vec


class DcPowerFlowResults:
    """
    DC power flow results
    """

    def __init__(self, bus_names: List[str], branch_names: List[str]):
        """

        :param bus_names: names of the buses
        :param branch_names: names of the branches
        """
        self.bus_names = bus_names

        self.branch_names = branch_names

        self.x: Vec = np.zeros(0)

        self.Va: Vec = np.zeros(len(bus_names))

        self.Pbus: Vec = np.zeros(len(bus_names))

        self.Pf: Vec = np.zeros(len(branch_names))

        self.converged = False

    @property
    def n_bus(self) -> int:
        return len(self.bus_names)

    @property
    def n_br(self) -> int:
        return len(self.branch_names)

    def get_bus_df(self) -> pd.DataFrame:
        """
        Bus results
        :return: DataFrame
        """
        return pd.DataFrame(data={'Va (deg)': np.rad2deg(self.Va), 'P (p.u.)': self.Pbus},
                            index=self.bus_names)

    def get_branch_df(self) -> pd.DataFrame:
        """
        Branch results
        :return: DataFrame
        """
        return pd.DataFrame(data={'Pf (p.u.)': self.Pf}, index=self.branch_names)
