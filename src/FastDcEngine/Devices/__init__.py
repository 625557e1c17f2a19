# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from FastDcEngine.Devices.bus import Bus
from FastDcEngine.Devices.branch import Branch
from FastDcEngine.Devices.dc_network import DcNetwork, NetworkListener
