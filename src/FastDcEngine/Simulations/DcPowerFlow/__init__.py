# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_options import DcPowerFlowOptions
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_context import DcPowerFlowContext
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow import (run_dc_power_flow, compute_branch_flows,
                                                                compute_ptdf, get_bus_angles, solve)
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_driver import DcPowerFlowDriver, DcPowerFlowResults
