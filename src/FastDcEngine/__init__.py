# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from __future__ import annotations

from FastDcEngine.__version__ import __FastDcEngine_VERSION__
from FastDcEngine.enumerations import *
from FastDcEngine.basic_structures import Logger, LogEntry
from FastDcEngine.exceptions import *
from FastDcEngine.Devices import *
from FastDcEngine.Topology import *
from FastDcEngine.Simulations import *
