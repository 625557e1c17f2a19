# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import datetime
from typing import List, Any, Dict, Union, Tuple
import numpy as np
import numpy.typing as npt
import pandas as pd
from scipy.sparse import csc_matrix, csr_matrix
from FastDcEngine.enumerations import LogSeverity

IntList = List[int]
Vec = npt.NDArray[np.float64]
IntVec = npt.NDArray[np.int_]
BoolVec = npt.NDArray[np.bool_]
StrVec = npt.NDArray[np.str_]
Mat = npt.NDArray[np.float64]
IntMat = npt.NDArray[np.int_]
CscMat = csc_matrix
CsrMat = csr_matrix


class LogEntry:
    """
    Logger entry
    """

    def __init__(self,
                 time: Union[str, None] = None,
                 msg="",
                 severity: LogSeverity = LogSeverity.Information,
                 device="",
                 value="",
                 expected_value="",
                 device_class="",
                 scenario=""):
        """

        :param time: time stamp (now if None)
        :param msg: message
        :param severity: LogSeverity
        :param device: idtag of the element concerned
        :param value: value found
        :param expected_value: value expected
        :param device_class: kind of element (Bus, Branch, Contingency, ...)
        :param scenario: contingency or operator strategy the entry belongs to
        """
        if time is None:
            self.time = "{date:%H:%M:%S}".format(date=datetime.datetime.now())
        else:
            self.time = time
        self.msg = str(msg)
        self.severity = severity
        self.device = device
        self.device_class = device_class
        self.value = value
        self.expected_value = str(expected_value)
        self.scenario = scenario

    def to_list(self) -> List[Any]:
        """
        Get list representation of this entry
        :return:
        """
        return [self.time, self.severity.value, self.msg, self.scenario,
                self.device_class, self.device, self.value, self.expected_value]

    def __str__(self):
        return "{0} {1}: {2} {3} {4} {5}".format(self.time,
                                                 self.severity.value,
                                                 self.msg,
                                                 self.device,
                                                 self.value,
                                                 self.expected_value)


class Logger:
    """
    Logger class
    Every simulation object that reports something owns or receives one of these
    """

    def __init__(self) -> None:

        self.entries: List[LogEntry] = list()

    def has_logs(self) -> bool:
        """
        Are there any logs?
        :return: True / False
        """
        return len(self.entries) > 0

    def add(self, msg: str, severity: LogSeverity = LogSeverity.Error, device="", value="", expected_value="",
            device_class="", scenario=""):
        """
        Add general entry
        :param msg: message
        :param severity: LogSeverity
        :param device: device idtag
        :param value: value found
        :param expected_value: value expected
        :param device_class: class of the device
        :param scenario: contingency / strategy idtag
        """
        self.entries.append(LogEntry(msg=str(msg),
                                     severity=severity,
                                     device=str(device),
                                     value=str(value),
                                     expected_value=str(expected_value),
                                     device_class=str(device_class),
                                     scenario=str(scenario)))

    def add_info(self, msg: str, device="", value="", expected_value="", device_class="", scenario=""):
        """
        Add info entry
        :param msg:
        :param device:
        :param value:
        :param expected_value:
        :param device_class:
        :param scenario:
        """
        self.add(msg=msg, severity=LogSeverity.Information, device=device, value=value,
                 expected_value=expected_value, device_class=device_class, scenario=scenario)

    def add_warning(self, msg: str, device="", value="", expected_value="", device_class="", scenario=""):
        """
        Add warning entry
        :param msg:
        :param device:
        :param value:
        :param expected_value:
        :param device_class:
        :param scenario:
        """
        self.add(msg=msg, severity=LogSeverity.Warning, device=device, value=value,
                 expected_value=expected_value, device_class=device_class, scenario=scenario)

    def add_error(self, msg: str, device="", value="", expected_value="", device_class="", scenario=""):
        """
        Add error entry
        :param msg:
        :param device:
        :param value:
        :param expected_value:
        :param device_class:
        :param scenario:
        """
        self.add(msg=msg, severity=LogSeverity.Error, device=device, value=value,
                 expected_value=expected_value, device_class=device_class, scenario=scenario)

    def add_divergence(self, msg, device="", value=0.0, expected_value=0.0, tol=1e-6, scenario=""):
        """
        Add divergence entry, only if the values differ more than the tolerance
        :param msg:
        :param device:
        :param value:
        :param expected_value:
        :param tol: tolerance
        :param scenario:
        """
        if abs(value - expected_value) > tol:
            self.add(msg=msg, severity=LogSeverity.Divergence, device=device, value=value,
                     expected_value=expected_value, scenario=scenario)

    def to_dict(self) -> Dict[str, Dict[str, List[Tuple[str, str, str, str]]]]:
        """
        Get the logs sorted by severity and message
        :return: Dictionary[Dictionary[List[time, device, value, expected value]]]
        """
        by_severity = dict()

        for e in self.entries:

            by_msg = by_severity.get(e.severity.value, None)
            if by_msg is None:
                by_msg = dict()
                by_severity[e.severity.value] = by_msg

            lst = by_msg.get(e.msg, None)
            if lst is None:
                by_msg[e.msg] = [(e.time, e.device, e.value, e.expected_value)]
            else:
                lst.append((e.time, e.device, e.value, e.expected_value))

        return by_severity

    def to_df(self) -> pd.DataFrame:
        """
        Get DataFrame
        :return: DataFrame
        """
        data = [e.to_list() for e in self.entries]
        df = pd.DataFrame(data=data, columns=['Time', 'Severity', 'Message', 'Scenario', 'Class',
                                              'Device', 'Value', 'Expected value'])
        df.set_index('Time', inplace=True)
        return df

    def to_csv(self, fname):
        """
        Save to CSV
        :param fname: file name
        """
        self.to_df().to_csv(fname)

    def print(self) -> None:
        """
        Print the logs
        """
        print(self.to_df())

    def __str__(self):
        return "\n".join(str(e) for e in self.entries)

    def __getitem__(self, key) -> LogEntry:
        return self.entries[key]

    def __iadd__(self, other: "Logger"):
        """
        += implementation
        :param other: Logger
        :return: self
        """
        if other is not None:
            self.entries += other.entries
        return self

    def __len__(self) -> int:
        return len(self.entries)

    def count_type(self, severity: LogSeverity) -> int:
        """
        Count the number of entries of a certain severity
        :param severity: LogSeverity
        :return: number of occurrences
        """
        return sum(1 for entry in self.entries if entry.severity == severity)

    def info_count(self) -> int:
        """
        Count the number of information occurrences
        :return:
        """
        return self.count_type(LogSeverity.Information)

    def warning_count(self) -> int:
        """
        Count number of warnings
        :return:
        """
        return self.count_type(LogSeverity.Warning)

    def error_count(self) -> int:
        """
        Count number of errors
        :return:
        """
        return self.count_type(LogSeverity.Error)
