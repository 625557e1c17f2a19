# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from pathlib import Path
from typing import Callable, Dict, Sequence, Tuple, Union

import numpy as np
import pytest

from FastDcEngine.Devices.bus import Bus
from FastDcEngine.Devices.branch import Branch
from FastDcEngine.Devices.dc_network import DcNetwork
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_options import DcPowerFlowOptions
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow_context import DcPowerFlowContext
from FastDcEngine.Simulations.DcPowerFlow.dc_power_flow import run_dc_power_flow, compute_branch_flows

ROOT_PATH = Path(__file__).parent


def make_ring_grid() -> DcNetwork:
    """
    3 buses in a ring, all the reactances are 0.1
    :return: DcNetwork
    """
    grid = DcNetwork(name="ring")
    b1 = grid.add_bus(Bus(name="b1", idtag="b1", P=1.0, is_reference=True))
    b2 = grid.add_bus(Bus(name="b2", idtag="b2", P=0.5))
    b3 = grid.add_bus(Bus(name="b3", idtag="b3", P=-1.5))
    grid.add_branch(Branch(b1, b2, name="br12", idtag="br12", X=0.1))
    grid.add_branch(Branch(b2, b3, name="br23", idtag="br23", X=0.1))
    grid.add_branch(Branch(b1, b3, name="br13", idtag="br13", X=0.1))
    return grid


def make_mesh_grid() -> DcNetwork:
    """
    7 bus grid: a meshed core (b0 to b3), a phase shifter, a double circuit feeding b4 and b6,
    a radial leg to b5 and an open branch able to feed b5 from b2
    :return: DcNetwork
    """
    grid = DcNetwork(name="mesh")
    b0 = grid.add_bus(Bus(name="b0", idtag="b0", P=0.9, is_reference=True, participation_factor=1.0))
    b1 = grid.add_bus(Bus(name="b1", idtag="b1", P=0.5, participation_factor=0.5))
    b2 = grid.add_bus(Bus(name="b2", idtag="b2", P=-0.6))
    b3 = grid.add_bus(Bus(name="b3", idtag="b3", P=-0.7))
    b4 = grid.add_bus(Bus(name="b4", idtag="b4", P=0.2))
    b5 = grid.add_bus(Bus(name="b5", idtag="b5", P=-0.3))
    b6 = grid.add_bus(Bus(name="b6", idtag="b6", P=-0.1))

    grid.add_branch(Branch(b0, b1, name="br01", idtag="br01", X=0.1))
    grid.add_branch(Branch(b1, b2, name="br12", idtag="br12", X=0.2))
    grid.add_branch(Branch(b2, b3, name="br23", idtag="br23", X=0.15))
    grid.add_branch(Branch(b3, b0, name="br30", idtag="br30", X=0.25))
    grid.add_branch(Branch(b0, b2, name="br02", idtag="br02", R=0.01, X=0.3))
    grid.add_branch(Branch(b1, b3, name="pst13", idtag="pst13", X=0.2, tap_module=0.95, tap_phase=0.05,
                           is_phase_shifter=True))
    grid.add_branch(Branch(b3, b4, name="br34a", idtag="br34a", X=0.1))
    grid.add_branch(Branch(b3, b4, name="br34b", idtag="br34b", X=0.12))
    grid.add_branch(Branch(b4, b6, name="br46", idtag="br46", X=0.05))
    grid.add_branch(Branch(b1, b5, name="br15", idtag="br15", X=0.1))
    grid.add_branch(Branch(b2, b5, name="br25", idtag="br25", X=0.2, active=False))
    return grid


def make_zero_impedance_grid() -> DcNetwork:
    """
    Reference bus connected to a triangle of zero impedance branches
    :return: DcNetwork
    """
    grid = DcNetwork(name="zero impedance")
    b0 = grid.add_bus(Bus(name="b0", idtag="b0", P=0.5, is_reference=True))
    b1 = grid.add_bus(Bus(name="b1", idtag="b1", P=0.4))
    b2 = grid.add_bus(Bus(name="b2", idtag="b2", P=-0.6))
    b3 = grid.add_bus(Bus(name="b3", idtag="b3", P=-0.3))
    grid.add_branch(Branch(b0, b1, name="br01", idtag="br01", X=0.1))
    grid.add_branch(Branch(b1, b2, name="zi12", idtag="zi12", X=0.0))
    grid.add_branch(Branch(b2, b3, name="zi23", idtag="zi23", X=0.0))
    grid.add_branch(Branch(b1, b3, name="zi13", idtag="zi13", X=0.0))
    grid.add_branch(Branch(b0, b3, name="br03", idtag="br03", X=0.2))
    return grid


def compute_reference_flows(factory: Callable[[], DcNetwork],
                            open_ids: Sequence[str] = (),
                            close_ids: Sequence[str] = (),
                            taps: Union[Dict[str, Tuple[float, float]], None] = None,
                            options: Union[DcPowerFlowOptions, None] = None) -> np.ndarray:
    """
    Flows of a freshly built and factorized network with the given changes
    :param factory: network factory
    :param open_ids: branches to open
    :param close_ids: branches to close
    :param taps: branch idtag -> (tap module, tap phase)
    :param options: DcPowerFlowOptions
    :return: branch flows
    """
    grid = factory()
    for idtag in open_ids:
        grid.get_branch(idtag).active = False
    for idtag in close_ids:
        grid.get_branch(idtag).active = True
    if taps is not None:
        for idtag, (m, phase) in taps.items():
            grid.get_branch(idtag).tap_module = m
            grid.get_branch(idtag).tap_phase = phase

    context = DcPowerFlowContext(grid, options)
    x = run_dc_power_flow(context)
    return compute_branch_flows(context, x)


@pytest.fixture
def root_path():
    return ROOT_PATH


@pytest.fixture
def ring_grid() -> DcNetwork:
    return make_ring_grid()


@pytest.fixture
def mesh_grid() -> DcNetwork:
    return make_mesh_grid()


@pytest.fixture
def zero_impedance_grid() -> DcNetwork:
    return make_zero_impedance_grid()


@pytest.fixture
def mesh_factory() -> Callable[[], DcNetwork]:
    return make_mesh_grid


@pytest.fixture
def reference_flows() -> Callable[..., np.ndarray]:
    return compute_reference_flows


@pytest.fixture
def zero_impedance_factory() -> Callable[[], DcNetwork]:
    return make_zero_impedance_grid
