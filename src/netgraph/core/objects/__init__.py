# Copyright (C) 2026 Linuxfabrik <info@linuxfabrik.ch>
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.
#
# On Debian systems, the complete text of the GNU General Public License
# version 2 can be found in /usr/share/common-licenses/GPL-2.
#
# SPDX-License-Identifier: GPL-2.0-or-later

"""SQLAlchemy models of the node graph."""

from ._base import Base, enable_sqlite_fks
from ._nodes import (
    Accept,
    Custom,
    DestinationAddressFilter,
    DestinationNAT,
    DestinationPortFilter,
    Drop,
    FamilySplitter,
    FileIpList,
    InterfaceFilter,
    Localhost,
    Node,
    ProtocolFilter,
    Source,
    SourceAddressFilter,
    SourceNAT,
    SourcePortFilter,
)
from ._ports import Connection, InputPort, OutputPort, Port
from ._project import Plugin, PluginNode, Project
from ._types import (
    FILTER_KINDS,
    NAT_KINDS,
    PINNED_KINDS,
    Direction,
    Family,
    NodeKind,
    PortType,
    parse_direction,
    parse_family,
)

__all__ = [
    'FILTER_KINDS',
    'NAT_KINDS',
    'PINNED_KINDS',
    'Accept',
    'Base',
    'Connection',
    'Custom',
    'DestinationAddressFilter',
    'DestinationNAT',
    'DestinationPortFilter',
    'Direction',
    'Drop',
    'Family',
    'FamilySplitter',
    'FileIpList',
    'InputPort',
    'InterfaceFilter',
    'Localhost',
    'Node',
    'NodeKind',
    'OutputPort',
    'Plugin',
    'PluginNode',
    'Port',
    'PortType',
    'Project',
    'ProtocolFilter',
    'Source',
    'SourceAddressFilter',
    'SourceNAT',
    'SourcePortFilter',
    'enable_sqlite_fks',
    'parse_direction',
    'parse_family',
]
