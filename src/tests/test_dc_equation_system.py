# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
import pytest

from FastDcEngine.enumerations import DcEquationType, DcVariableType
from FastDcEngine.exceptions import (ReferenceBusError, EquationConflictError, ElementNotFoundError,
                                     SingularMatrixError, NonSquareSystemError)
from FastDcEngine.Devices.bus import Bus
from FastDcEngine.Devices.branch import Branch
from FastDcEngine.Devices.dc_network import DcNetwork
from FastDcEngine.Equations.jacobian_matrix import JacobianMatrix
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_options import DcPowerFlowOptions
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_context import DcPowerFlowContext
from FastDcEngine.Simulations.DcPowerFlow.dc_equation_system_creator import DcEquationSystemCreator
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow import run_dc_power_flow, compute_branch_flows


def count_active(es, equation_type: DcEquationType) -> int:
    return sum(1 for eq in es.get_equations() if eq.type == equation_type and eq.active)


def test_mesh_system_is_square(mesh_grid):
    """
    One balance equation per bus minus the reference one, plus the reference angle
    """
    es = DcEquationSystemCreator(mesh_grid).create()
    index = es.reindex()

    assert es.is_square()
    assert index.n_equations == mesh_grid.get_bus_number()
    assert index.n_variables == mesh_grid.get_bus_number()
    assert count_active(es, DcEquationType.BUS_TARGET_PHI) == 1
    assert count_active(es, DcEquationType.BUS_TARGET_P) == mesh_grid.get_bus_number() - 1

    # the reference bus balance is not indexed
    ref = mesh_grid.get_reference_bus()
    assert index.get_equation_column(ref.num, DcEquationType.BUS_TARGET_P) == -1
    assert index.get_equation_column(ref.num, DcEquationType.BUS_TARGET_PHI) >= 0


def test_derived_phase_shift_adds_a_variable(mesh_grid):
    """
    The phase shifter exposes its phase as a variable with its own target equation
    """
    options = DcPowerFlowOptions(derive_phase_shift_variables=True)
    es = DcEquationSystemCreator(mesh_grid, options).create()
    index = es.reindex()

    pst = mesh_grid.get_branch("pst13")
    assert index.n_equations == mesh_grid.get_bus_number() + 1
    assert index.get_variable_row(pst.num, DcVariableType.BRANCH_ALPHA1) >= 0
    assert index.get_equation_column(pst.num, DcEquationType.BRANCH_TARGET_ALPHA1) >= 0


def test_derived_phase_shift_same_solution(mesh_factory):
    """
    Deriving the phase shift as a variable does not change the flows
    """
    grid1 = mesh_factory()
    ctx1 = DcPowerFlowContext(grid1, DcPowerFlowOptions(derive_phase_shift_variables=False))
    f1 = compute_branch_flows(ctx1, run_dc_power_flow(ctx1))

    grid2 = mesh_factory()
    ctx2 = DcPowerFlowContext(grid2, DcPowerFlowOptions(derive_phase_shift_variables=True))
    f2 = compute_branch_flows(ctx2, run_dc_power_flow(ctx2))

    assert np.allclose(f1, f2, atol=1e-10)


def test_zero_impedance_spanning_forest(zero_impedance_grid):
    """
    A triangle of zero impedance branches: two angle equalities, one null dummy power
    """
    tree = zero_impedance_grid.get_spanning_tree_branches()
    zi_nums = {b.num for b in zero_impedance_grid.branches if zero_impedance_grid.is_zero_impedance(b)}
    assert len(zi_nums) == 3
    assert len(tree) == 2
    assert tree.issubset(zi_nums)

    es = DcEquationSystemCreator(zero_impedance_grid).create()
    index = es.reindex()
    assert es.is_square()
    assert count_active(es, DcEquationType.ZERO_PHI) == 2
    assert count_active(es, DcEquationType.DUMMY_TARGET_P) == 1

    # every zero impedance branch has its dummy power in the system
    for num in zi_nums:
        assert index.get_variable_row(num, DcVariableType.DUMMY_P) >= 0

    # no flow term for the zero impedance branches
    for num in zi_nums:
        assert es.get_branch_p1_term(num) is None


def test_updater_isolated_bus(mesh_grid):
    """
    Opening the last branch of a bus deactivates its balance and keeps the system square
    """
    context = DcPowerFlowContext(mesh_grid)
    n0 = context.index.n_equations
    b5 = mesh_grid.get_bus("b5")
    br15 = mesh_grid.get_branch("br15")

    mesh_grid.set_branch_active(br15, False)
    assert context.equation_system.is_square()
    assert not context.equation_system.is_index_up_to_date()

    context.update()
    assert context.index.n_equations == n0 - 1
    assert context.index.get_equation_column(b5.num, DcEquationType.BUS_TARGET_P) == -1
    assert context.index.get_variable_row(b5.num, DcVariableType.BUS_PHI) == -1

    x = run_dc_power_flow(context)
    flows = compute_branch_flows(context, x)
    assert flows[br15.num] == 0.0

    mesh_grid.set_branch_active(br15, True)
    context.update()
    assert context.index.n_equations == n0
    context.close()


def test_updater_matches_fresh_build(mesh_factory, reference_flows):
    """
    A context following the network changes solves like a freshly built one
    """
    grid = mesh_factory()
    context = DcPowerFlowContext(grid)
    grid.set_branch_active(grid.get_branch("br23"), False)
    grid.set_branch_active(grid.get_branch("br25"), True)
    context.update()

    flows = compute_branch_flows(context, run_dc_power_flow(context))
    expected = reference_flows(mesh_factory, open_ids=["br23"], close_ids=["br25"])
    assert np.allclose(flows, expected, atol=1e-10)
    context.close()


def test_old_index_survives_changes(mesh_grid):
    """
    An index snapshot is immutable: structural changes do not alter it
    """
    context = DcPowerFlowContext(mesh_grid)
    old_index = context.index
    n0 = old_index.n_equations
    mesh_grid.set_branch_active(mesh_grid.get_branch("br15"), False)
    context.update()
    assert old_index.n_equations == n0
    assert context.index.version > old_index.version
    context.close()


def test_reference_bus_errors():
    """
    Exactly one reference bus is needed
    """
    grid = DcNetwork()
    b1 = grid.add_bus(Bus(name="b1", is_reference=True))
    b2 = grid.add_bus(Bus(name="b2", is_reference=True))
    grid.add_branch(Branch(b1, b2, X=0.1))
    with pytest.raises(ReferenceBusError):
        DcPowerFlowContext(grid)

    grid2 = DcNetwork()
    c1 = grid2.add_bus(Bus(name="c1"))
    c2 = grid2.add_bus(Bus(name="c2"))
    grid2.add_branch(Branch(c1, c2, X=0.1))
    with pytest.raises(ReferenceBusError):
        DcPowerFlowContext(grid2)


def test_equation_conflict(mesh_grid):
    """
    A branch equation can not be created for a bus
    """
    es = DcEquationSystemCreator(mesh_grid).create()
    with pytest.raises(EquationConflictError):
        es.create_equation(mesh_grid.buses[1], DcEquationType.ZERO_PHI)


def test_branch_with_unknown_bus():
    grid = DcNetwork()
    b1 = grid.add_bus(Bus(name="b1", is_reference=True))
    b2 = Bus(name="b2")
    with pytest.raises(ElementNotFoundError):
        grid.add_branch(Branch(b1, b2, X=0.1))


def test_singular_island():
    """
    Two buses connected to each other but not to the reference: the matrix can not be factorized
    """
    grid = DcNetwork()
    b0 = grid.add_bus(Bus(name="b0", is_reference=True))
    b1 = grid.add_bus(Bus(name="b1", P=-0.1))
    b2 = grid.add_bus(Bus(name="b2", P=0.2))
    b3 = grid.add_bus(Bus(name="b3", P=-0.2))
    grid.add_branch(Branch(b0, b1, X=0.1))
    grid.add_branch(Branch(b2, b3, X=0.1))

    context = DcPowerFlowContext(grid)
    with pytest.raises(SingularMatrixError):
        run_dc_power_flow(context)


def test_jacobian_matches_equation_evaluation(mesh_grid):
    """
    The matrix times the state plus the right hand sides is the evaluation of the equations
    """
    es = DcEquationSystemCreator(mesh_grid).create()
    index = es.reindex()
    jac = JacobianMatrix(es, index)

    x = np.linspace(-0.1, 0.1, index.n_variables)
    ax = jac.matrix @ x
    for col, eq in enumerate(index.equations):
        assert np.isclose(ax[col] + eq.rhs(), eq.eval(x, index))


def test_updater_zero_impedance_tree_branch(zero_impedance_factory, reference_flows):
    """
    Opening a zero impedance branch of the spanning forest promotes another one to the forest
    """
    grid = zero_impedance_factory()
    context = DcPowerFlowContext(grid)
    es = context.equation_system

    tree = grid.get_spanning_tree_branches()
    branch = grid.branches[min(tree)]
    grid.set_branch_active(branch, False)

    assert es.is_square()
    new_tree = grid.get_spanning_tree_branches()
    assert branch.num not in new_tree
    assert len(new_tree) == 2
    assert count_active(es, DcEquationType.ZERO_PHI) == 2
    assert count_active(es, DcEquationType.DUMMY_TARGET_P) == 1

    context.update()
    flows = compute_branch_flows(context, run_dc_power_flow(context))
    expected = reference_flows(zero_impedance_factory, open_ids=[branch.idtag])
    assert np.allclose(flows, expected, atol=1e-10)
    assert np.isclose(flows[grid.get_branch("br01").num], 1.0 / 3.0)

    grid.set_branch_active(branch, True)
    assert es.is_square()
    context.update()
    flows = compute_branch_flows(context, run_dc_power_flow(context))
    assert np.allclose(flows, reference_flows(zero_impedance_factory), atol=1e-10)
    context.close()


def test_every_zero_impedance_branch_keeps_the_system_square(zero_impedance_factory):
    """
    Any single zero impedance branch opened, and then two of them
    """
    grid = zero_impedance_factory()
    context = DcPowerFlowContext(grid)
    es = context.equation_system
    zi = [b for b in grid.branches if grid.is_zero_impedance(b)]

    for branch in zi:
        grid.set_branch_active(branch, False)
        assert es.is_square()
        grid.set_branch_active(branch, True)
        assert es.is_square()

    grid.set_branch_active(zi[0], False)
    grid.set_branch_active(zi[1], False)
    assert es.is_square()
    assert count_active(es, DcEquationType.ZERO_PHI) == 1
    context.close()


class RejectingListener:
    """
    Listener refusing the first change it sees
    """

    def __init__(self):
        self.calls = 0

    def on_branch_active_change(self, branch, active):
        self.calls += 1
        if self.calls == 1:
            raise NonSquareSystemError(1, 0)


def test_rejected_change_restores_the_network(mesh_grid):
    conn = mesh_grid.get_connectivity()
    listener = RejectingListener()
    mesh_grid.add_listener(listener)
    br15 = mesh_grid.get_branch("br15")

    with pytest.raises(NonSquareSystemError):
        mesh_grid.set_branch_active(br15, False)

    assert br15.active
    assert conn.has_edge(br15.num)
    assert conn.get_nb_connected_components() == 1
    assert listener.calls == 2
