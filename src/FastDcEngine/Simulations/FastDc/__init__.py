# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from FastDcEngine.Simulations.FastDc.contingency import Contingency, OperatorStrategy
from FastDcEngine.Simulations.FastDc.remedial_actions import BranchOutageAction, SwitchAction, TapChangeAction
from FastDcEngine.Simulations.FastDc.woodbury_engine import WoodburyEngine
from FastDcEngine.Simulations.FastDc.connectivity_break_analysis import (ConnectivityAnalysisResult,
                                                                         ConnectivityBreakAnalysisResults)
from FastDcEngine.Simulations.FastDc.woodbury_analysis import run_woodbury_analysis, detect_connectivity_breaks
from FastDcEngine.Simulations.FastDc.woodbury_analysis_driver import (WoodburyAnalysisDriver,
                                                                      WoodburyAnalysisOptions,
                                                                      WoodburyAnalysisResults)
