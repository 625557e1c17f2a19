# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from FastDcEngine.enumerations import DcApproximationType
from FastDcEngine.Simulations.options_template import OptionsTemplate


class DcPowerFlowOptions(OptionsTemplate):
    """
    DcPowerFlowOptions
    """

    def __init__(self,
                 use_transformer_ratio: bool = True,
                 dc_approximation_type: DcApproximationType = DcApproximationType.IGNORE_R,
                 derive_phase_shift_variables: bool = False,
                 distributed_slack: bool = False):
        """
        DC power flow options
        :param use_transformer_ratio: multiply the branch power factor by the tap module?
        :param dc_approximation_type: how the resistance enters the power factor
        :param derive_phase_shift_variables: expose the phase of the phase shifters as variables?
        :param distributed_slack: spread the power mismatch over the participating buses?
        """
        OptionsTemplate.__init__(self, name="DcPowerFlowOptions")

        self.use_transformer_ratio = use_transformer_ratio

        self.dc_approximation_type = dc_approximation_type

        self.derive_phase_shift_variables = derive_phase_shift_variables

        self.distributed_slack = distributed_slack

        self.register(key="use_transformer_ratio", tpe=bool)
        self.register(key="dc_approximation_type", tpe=DcApproximationType)
        self.register(key="derive_phase_shift_variables", tpe=bool)
        self.register(key="distributed_slack", tpe=bool)
