# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List


class OptionsProperty:
    """
    Registered option
    """

    def __init__(self, name: str, tpe: type, definition: str = ""):
        """

        :param name: name of the attribute
        :param tpe: type of the attribute
        :param definition: description
        """
        self.name = name
        self.tpe = tpe
        self.definition = definition


class OptionsTemplate:
    """
    Options template
    """

    def __init__(self, name: str):
        """

        :param name: name of the options set
        """
        self.name = name

        self.property_list: List[OptionsProperty] = list()

    def register(self, key: str, tpe: type, definition: str = ""):
        """
        Register an option, the attribute must exist
        :param key: attribute name
        :param tpe: attribute type
        :param definition: description
        """
        assert hasattr(self, key)  # the property must exist, this avoids bugs when registering
        self.property_list.append(OptionsProperty(name=key, tpe=tpe, definition=definition))

    def get_properties_dict(self) -> Dict[str, Any]:
        """
        Get the registered options as a dictionary
        Nested options are converted too, enums are given by value
        :return: dict
        """
        data = dict()
        for prop in self.property_list:
            val = getattr(self, prop.name)
            if isinstance(val, OptionsTemplate):
                data[prop.name] = val.get_properties_dict()
            elif isinstance(val, Enum):
                data[prop.name] = val.value
            else:
                data[prop.name] = val
        return data

    def __str__(self):
        return self.name + ": " + str(self.get_properties_dict())
