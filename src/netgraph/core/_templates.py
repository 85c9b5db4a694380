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

"""Port layouts every node kind is created with."""

from __future__ import annotations

from . import objects
from ._errors import NotFoundError
from .objects import Direction, Family, NodeKind, PortType

_ANY = PortType(Family.Inet, Direction.Either)
_INCOMING = PortType(Family.Inet, Direction.Incoming)
_OUTGOING = PortType(Family.Inet, Direction.Outgoing)

_FILTER_OUTPUTS = [('match', _ANY), ('non-match', _ANY)]

# kind -> (inputs, outputs), each a list of (name, PortType)
BUILTIN_LAYOUTS: dict[NodeKind, tuple[list, list]] = {
    NodeKind.SOURCE: ([], [('incoming', _INCOMING)]),
    NodeKind.LOCALHOST: ([('incoming', _INCOMING)], [('outgoing', _OUTGOING)]),
    NodeKind.ACCEPT: ([('outgoing', _OUTGOING)], []),
    NodeKind.DROP: ([('', _ANY)], []),
    NodeKind.FAMILY_SPLITTER: (
        [('', _ANY)],
        [
            ('ipv4', PortType(Family.IPv4, Direction.Either)),
            ('ipv6', PortType(Family.IPv6, Direction.Either)),
        ],
    ),
    NodeKind.SOURCE_NAT: ([('', _ANY)], [('', _ANY)]),
    NodeKind.DESTINATION_NAT: ([('', _ANY)], [('', _ANY)]),
    NodeKind.FILE_IP_LIST: ([('', _ANY)], _FILTER_OUTPUTS),
}
for _kind in objects.FILTER_KINDS:
    BUILTIN_LAYOUTS[_kind] = ([('', _ANY)], _FILTER_OUTPUTS)

NODE_CLASSES: dict[NodeKind, type[objects.Node]] = {
    NodeKind.SOURCE: objects.Source,
    NodeKind.LOCALHOST: objects.Localhost,
    NodeKind.DROP: objects.Drop,
    NodeKind.ACCEPT: objects.Accept,
    NodeKind.FAMILY_SPLITTER: objects.FamilySplitter,
    NodeKind.SOURCE_ADDRESS_FILTER: objects.SourceAddressFilter,
    NodeKind.DESTINATION_ADDRESS_FILTER: objects.DestinationAddressFilter,
    NodeKind.SOURCE_PORT_FILTER: objects.SourcePortFilter,
    NodeKind.DESTINATION_PORT_FILTER: objects.DestinationPortFilter,
    NodeKind.PROTOCOL_FILTER: objects.ProtocolFilter,
    NodeKind.INTERFACE_FILTER: objects.InterfaceFilter,
    NodeKind.SOURCE_NAT: objects.SourceNAT,
    NodeKind.DESTINATION_NAT: objects.DestinationNAT,
    NodeKind.FILE_IP_LIST: objects.FileIpList,
    NodeKind.CUSTOM: objects.Custom,
}


def port_layout(
    node: objects.Node,
    project: objects.Project | None = None,
) -> tuple[list[tuple[str, PortType]], list[tuple[str, PortType]]]:
    """Return the ``(inputs, outputs)`` layout for *node*.

    Custom nodes look their layout up in the plugin registry of *project*.
    """
    kind = node.kind
    if kind != NodeKind.CUSTOM:
        inputs, outputs = BUILTIN_LAYOUTS[kind]
        return list(inputs), list(outputs)

    project = project or node.project
    plugin_node = project.find_plugin_node(node.plugin_id, node.plugin_node_id)
    if plugin_node is None:
        raise NotFoundError(
            f'Plugin node {node.plugin_id}:{node.plugin_node_id} is not registered'
        )
    return [('', plugin_node.input_type)], plugin_node.output_types()


def build_ports(node: objects.Node, project: objects.Project | None = None) -> None:
    """Create the template ports of a freshly instantiated *node*."""
    inputs, outputs = port_layout(node, project)
    for position, (name, typ) in enumerate(inputs):
        port = objects.InputPort(name=name, position=position)
        port.port_type = typ
        node.ports.append(port)
    for position, (name, typ) in enumerate(outputs, start=len(inputs)):
        port = objects.OutputPort(name=name, position=position)
        port.port_type = typ
        node.ports.append(port)
