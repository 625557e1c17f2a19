# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np

from FastDcEngine.api import *
from FastDcEngine.basic_structures import Logger
from FastDcEngine.Simulations.DcPowerFlow.dc_target_vector import distribute_slack


def test_ring_closed_form(ring_grid):
    """
    3 bus ring with equal reactances, solved by hand:
    theta2 = -1/60, theta3 = -1/12
    """
    context = DcPowerFlowContext(ring_grid)
    x = run_dc_power_flow(context)

    va = get_bus_angles(context, x)
    assert np.allclose(va, [0.0, -1.0 / 60.0, -1.0 / 12.0])

    flows = compute_branch_flows(context, x)
    assert np.allclose(flows, [1.0 / 6.0, 2.0 / 3.0, 5.0 / 6.0])


def test_solve_function(ring_grid):
    x = solve(ring_grid)
    assert len(x) == 3


def test_driver(mesh_grid):
    """
    The injections computed from the flows match the bus injections, except at the reference bus
    """
    driver = DcPowerFlowDriver(grid=mesh_grid, options=DcPowerFlowOptions())
    driver.run()
    res = driver.results

    assert res.converged
    P = np.array([b.P for b in mesh_grid.buses])
    ref = mesh_grid.get_reference_bus().num
    mask = np.arange(len(P)) != ref
    assert np.allclose(res.Pbus[mask], P[mask])

    # the reference takes the whole mismatch
    assert np.isclose(res.Pbus[ref], -P[mask].sum())

    df = res.get_branch_df()
    assert df.shape[0] == mesh_grid.get_branch_number()


def test_driver_reports_errors():
    """
    A network without reference bus fails without raising
    """
    grid = DcNetwork()
    b1 = grid.add_bus(Bus(name="b1"))
    b2 = grid.add_bus(Bus(name="b2"))
    grid.add_branch(Branch(b1, b2, X=0.1))
    driver = DcPowerFlowDriver(grid=grid)
    driver.run()
    assert not driver.results.converged
    assert driver.logger.error_count() == 1


def test_zero_impedance_flows(zero_impedance_grid):
    """
    The zero impedance triangle behaves as a single bus with P = -0.5
    fed by two parallel paths of susceptance 10 and 5
    """
    driver = DcPowerFlowDriver(grid=zero_impedance_grid)
    driver.run()
    res = driver.results

    br01 = zero_impedance_grid.get_branch("br01")
    br03 = zero_impedance_grid.get_branch("br03")
    assert np.isclose(res.Pf[br01.num], 1.0 / 3.0)
    assert np.isclose(res.Pf[br03.num], 1.0 / 6.0)

    # the angles of the triangle are equal
    assert np.allclose(res.Va[1:], res.Va[1])

    # the dummy powers close the balances
    P = np.array([b.P for b in zero_impedance_grid.buses])
    assert np.allclose(res.Pbus[1:], P[1:])


def test_phase_shifter_moves_flow(mesh_factory, reference_flows):
    """
    The phase shift pushes power through the phase shifter
    """
    base = reference_flows(mesh_factory)
    shifted = reference_flows(mesh_factory, taps={"pst13": (0.95, 0.1)})
    pst = mesh_factory().get_branch("pst13").num
    assert shifted[pst] > base[pst]


def test_phase_change_without_refactorization(mesh_factory, reference_flows):
    """
    A phase change only modifies the target vector
    """
    grid = mesh_factory()
    pst = grid.get_branch("pst13")
    context = DcPowerFlowContext(grid)
    x = run_dc_power_flow(context, phase_changes={pst.num: 0.1})
    flows = compute_branch_flows(context, x, phase_changes={pst.num: 0.1})

    expected = reference_flows(mesh_factory, taps={"pst13": (0.95, 0.1)})
    assert np.allclose(flows, expected, atol=1e-10)


def test_ptdf_against_flow_differences(mesh_grid):
    """
    PTDF column i is the flow variation for a unit injection at i withdrawn at the reference bus
    """
    context = DcPowerFlowContext(mesh_grid)
    ptdf = compute_ptdf(context)
    base = compute_branch_flows(context, run_dc_power_flow(context))

    delta = 0.1
    for bus in mesh_grid.buses:
        if bus.is_reference:
            assert np.allclose(ptdf[:, bus.num], 0.0)
            continue
        bus.P += delta
        flows = compute_branch_flows(context, run_dc_power_flow(context))
        bus.P -= delta
        assert np.allclose((flows - base) / delta, ptdf[:, bus.num], atol=1e-9)


def test_ptdf_radial_branch(mesh_grid):
    """
    All the power injected at a radial bus goes through its only branch
    """
    context = DcPowerFlowContext(mesh_grid)
    br15 = mesh_grid.get_branch("br15")
    b5 = mesh_grid.get_bus("b5")
    ptdf = compute_ptdf(context, branch_nums=[br15.num])
    assert ptdf.shape == (1, mesh_grid.get_bus_number())
    assert np.isclose(ptdf[0, b5.num], -1.0)


def test_distributed_slack(mesh_factory, reference_flows):
    """
    Mismatch of -0.1 shared by b0 and b1 in proportion 1 to 0.5
    """
    grid = mesh_factory()
    context = DcPowerFlowContext(grid, DcPowerFlowOptions(distributed_slack=True))
    flows = compute_branch_flows(context, run_dc_power_flow(context))

    def factory():
        g = mesh_factory()
        g.get_bus("b1").P += 0.1 / 3.0
        return g

    expected = reference_flows(factory)
    assert np.allclose(flows, expected, atol=1e-10)


def test_distribute_slack_without_participation():
    logger = Logger()
    P = np.array([1.0, -0.5, -0.2])
    P2 = distribute_slack(P, np.zeros(3), np.ones(3, dtype=bool), logger)
    assert np.allclose(P, P2)
    assert logger.warning_count() == 1


def test_distribute_slack_skips_out_of_system_buses():
    P = np.array([1.0, -0.5, -0.2])
    in_system = np.array([True, True, False])
    P2 = distribute_slack(P, np.ones(3), in_system)
    # mismatch 0.5 over the first two buses
    assert np.allclose(P2, [0.75, -0.75, -0.2])
