# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import pytest

from FastDcEngine.basic_structures import Logger
from FastDcEngine.enumerations import LogSeverity, DcApproximationType
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_options import DcPowerFlowOptions
from FastDcEngine.Simulations.FastDc.woodbury_analysis_options import WoodburyAnalysisOptions


def test_logger_counts_and_merge():
    logger = Logger()
    logger.add_info("info")
    logger.add_warning("warning", device="br1", device_class="Branch", scenario="c1")
    logger.add_error("error", value=2, expected_value=1)

    other = Logger()
    other.add_error("other error")

    logger += other

    assert len(logger) == 4
    assert logger.info_count() == 1
    assert logger.warning_count() == 1
    assert logger.error_count() == 2
    assert logger.has_logs()
    assert logger[1].scenario == "c1"

    df = logger.to_df()
    assert df.shape[0] == 4
    assert list(df['Severity']).count(LogSeverity.Error.value) == 2

    by_severity = logger.to_dict()
    assert "other error" in by_severity[LogSeverity.Error.value]


def test_options_dict():
    options = DcPowerFlowOptions(dc_approximation_type=DcApproximationType.IGNORE_G)
    data = options.get_properties_dict()
    assert data["dc_approximation_type"] == DcApproximationType.IGNORE_G.value
    assert data["use_transformer_ratio"] is True

    wa = WoodburyAnalysisOptions(dc_options=options, n_threads=3)
    data = wa.get_properties_dict()
    assert data["n_threads"] == 3
    assert data["dc_options"]["distributed_slack"] is False


def test_dc_approximations(mesh_grid):
    """
    Ignoring the conductance takes the resistance into account
    """
    br = mesh_grid.get_branch("br02")
    p_r = br.get_dc_power_factor(DcApproximationType.IGNORE_R, use_transformer_ratio=False)
    p_g = br.get_dc_power_factor(DcApproximationType.IGNORE_G, use_transformer_ratio=False)
    assert p_r == 1.0 / br.X
    assert p_g < p_r

    pst = mesh_grid.get_branch("pst13")
    assert pst.get_dc_power_factor(use_transformer_ratio=True) == pytest.approx(0.95 / pst.X)
    assert pst.get_dc_power_factor(use_transformer_ratio=True, tap_module=1.05) == pytest.approx(1.05 / pst.X)
