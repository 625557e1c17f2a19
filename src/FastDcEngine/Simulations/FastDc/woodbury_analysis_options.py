# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import Union
from FastDcEngine.Simulations.options_template import OptionsTemplate
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_options import DcPowerFlowOptions
from FastDcEngine.Simulations.FastDc.connectivity_break_analysis import CONNECTIVITY_LOSS_THRESHOLD
from FastDcEngine.Simulations.FastDc.computed_element import MAX_MATRIX_BYTES


class WoodburyAnalysisOptions(OptionsTemplate):
    """
    WoodburyAnalysisOptions
    """

    def __init__(self,
                 dc_options: Union[DcPowerFlowOptions, None] = None,
                 n_threads: int = 1,
                 connectivity_loss_threshold: float = CONNECTIVITY_LOSS_THRESHOLD,
                 max_matrix_bytes: int = MAX_MATRIX_BYTES):
        """
        Woodbury contingency analysis options
        :param dc_options: DcPowerFlowOptions used to build the context when none is given
        :param n_threads: number of contingency batches evaluated in parallel
        :param connectivity_loss_threshold: tolerance of the connectivity sensitivity screen
        :param max_matrix_bytes: maximum size in bytes of a states matrix
        """
        OptionsTemplate.__init__(self, name="WoodburyAnalysisOptions")

        self.dc_options: DcPowerFlowOptions = DcPowerFlowOptions() if dc_options is None else dc_options

        self.n_threads = n_threads

        self.connectivity_loss_threshold = connectivity_loss_threshold

        self.max_matrix_bytes = max_matrix_bytes

        self.register(key="dc_options", tpe=DcPowerFlowOptions)
        self.register(key="n_threads", tpe=int)
        self.register(key="connectivity_loss_threshold", tpe=float)
        self.register(key="max_matrix_bytes", tpe=int)
