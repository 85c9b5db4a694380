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

"""Enums and value types shared by the graph models."""

import dataclasses
import enum


class Family(enum.IntEnum):
    """Network-layer family a port carries. ``Inet`` matches both."""

    Inet = 0
    IPv4 = 1
    IPv6 = 2


class Direction(enum.IntEnum):
    """Side of the local machine a port sits on. ``Either`` is the wildcard."""

    Either = 0
    Incoming = 1
    Outgoing = 2


class NodeKind(enum.StrEnum):
    """Built-in node kinds. Custom kinds are identified as ``<plugin>:<node>``."""

    SOURCE = 'core:source'
    LOCALHOST = 'core:localhost'
    DROP = 'core:drop'
    ACCEPT = 'core:accept'
    FAMILY_SPLITTER = 'core:family_splitter'
    SOURCE_ADDRESS_FILTER = 'core:source_address_filter'
    DESTINATION_ADDRESS_FILTER = 'core:destination_address_filter'
    SOURCE_PORT_FILTER = 'core:source_port_filter'
    DESTINATION_PORT_FILTER = 'core:destination_port_filter'
    PROTOCOL_FILTER = 'core:protocol_filter'
    INTERFACE_FILTER = 'core:interface_filter'
    SOURCE_NAT = 'core:source_nat'
    DESTINATION_NAT = 'core:destination_nat'
    FILE_IP_LIST = 'core:file_ip_list'
    CUSTOM = 'custom'


# Kinds whose value is matched against a packet field.
FILTER_KINDS = frozenset(
    {
        NodeKind.SOURCE_ADDRESS_FILTER,
        NodeKind.DESTINATION_ADDRESS_FILTER,
        NodeKind.SOURCE_PORT_FILTER,
        NodeKind.DESTINATION_PORT_FILTER,
        NodeKind.PROTOCOL_FILTER,
        NodeKind.INTERFACE_FILTER,
    }
)

NAT_KINDS = frozenset({NodeKind.SOURCE_NAT, NodeKind.DESTINATION_NAT})

# Kinds the user may never delete from a project.
PINNED_KINDS = frozenset({NodeKind.SOURCE, NodeKind.LOCALHOST})


@dataclasses.dataclass(frozen=True, slots=True)
class PortType:
    """Family and direction of a port.

    Two types are compatible when each component is equal or either side
    holds the wildcard (``Family.Inet`` / ``Direction.Either``).
    """

    family: Family = Family.Inet
    direction: Direction = Direction.Either

    def is_compatible(self, other: 'PortType') -> bool:
        direction_ok = (
            self.direction == Direction.Either
            or other.direction == Direction.Either
            or self.direction == other.direction
        )
        family_ok = (
            self.family == Family.Inet
            or other.family == Family.Inet
            or self.family == other.family
        )
        return direction_ok and family_ok

    def __str__(self) -> str:
        family = self.family.name.lower()
        if self.direction == Direction.Either:
            return family
        return f'{self.direction.name} {family}'


def parse_family(text: str) -> Family:
    """Parse a family name case-insensitively (``inet``, ``IPv4``, ...)."""
    for member in Family:
        if member.name.lower() == str(text).strip().lower():
            return member
    raise ValueError(f'Unknown address family: {text!r}')


def parse_direction(text: str) -> Direction:
    """Parse a direction name case-insensitively (``either``, ``Incoming``, ...)."""
    for member in Direction:
        if member.name.lower() == str(text).strip().lower():
            return member
    raise ValueError(f'Unknown direction: {text!r}')
