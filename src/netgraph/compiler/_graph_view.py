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

"""Read-only snapshot of a project's graph used during evaluation."""

from __future__ import annotations

import dataclasses
import uuid
from typing import TYPE_CHECKING

import sqlalchemy

from netgraph.core import objects
from netgraph.core._errors import NotFoundError
from netgraph.core.objects import NodeKind, PortType

if TYPE_CHECKING:
    import sqlalchemy.orm


@dataclasses.dataclass(frozen=True, slots=True)
class PortView:
    id: uuid.UUID
    name: str
    position: int
    port_type: PortType


@dataclasses.dataclass(frozen=True)
class NodeView:
    """Detached copy of one node with everything evaluation needs."""

    id: uuid.UUID
    kind: NodeKind
    variant: str
    seq: int = 0
    label: str = ''
    value: str = ''
    file_path: str | None = None
    plugin_id: str | None = None
    plugin_node_id: str | None = None
    script: str | None = None
    data: dict[str, str] = dataclasses.field(default_factory=dict)
    inputs: tuple[PortView, ...] = ()
    outputs: tuple[PortView, ...] = ()

    def __str__(self) -> str:
        return self.label or self.variant

    @property
    def branches(self) -> list[str]:
        return [port.name for port in self.outputs]

    @classmethod
    def from_node(cls, node: objects.Node, project: objects.Project) -> NodeView:
        script = None
        if node.kind == NodeKind.CUSTOM:
            plugin_node = project.find_plugin_node(node.plugin_id, node.plugin_node_id)
            if plugin_node is not None:
                script = plugin_node.script_name
        return cls(
            id=node.id,
            kind=node.kind,
            variant=node.variant,
            seq=node.seq,
            label=node.label or '',
            value=node.value or '',
            file_path=node.file_path,
            plugin_id=node.plugin_id,
            plugin_node_id=node.plugin_node_id,
            script=script,
            data=dict(node.data or {}),
            inputs=tuple(_port_view(p) for p in node.inputs),
            outputs=tuple(_port_view(p) for p in node.outputs),
        )


def _port_view(port: objects.Port) -> PortView:
    return PortView(port.id, port.name, port.position, port.port_type)


@dataclasses.dataclass
class GraphView:
    """Nodes in creation order plus the sender table of every input port."""

    nodes: dict[uuid.UUID, NodeView]
    # input port id -> [(sender node id, sender output name), ...]
    senders: dict[uuid.UUID, list[tuple[uuid.UUID, str]]]
    source_node_id: uuid.UUID | None = None

    def node(self, node_id: uuid.UUID) -> NodeView:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise NotFoundError(f'Node {node_id} not found') from None

    def ordered_nodes(self) -> list[NodeView]:
        return list(self.nodes.values())

    def senders_of(self, input_id: uuid.UUID) -> list[tuple[uuid.UUID, str]]:
        return list(self.senders.get(input_id, ()))


def load_graph(
    session: sqlalchemy.orm.Session,
    project: objects.Project,
) -> GraphView:
    """Snapshot *project* so evaluation never touches the session again."""
    nodes = {}
    port_owner = {}
    for node in sorted(project.nodes, key=lambda n: n.seq):
        view = NodeView.from_node(node, project)
        nodes[view.id] = view
        for port in view.outputs:
            port_owner[port.id] = (view, port)

    senders: dict[uuid.UUID, list] = {}
    for connection in session.scalars(sqlalchemy.select(objects.Connection)):
        owner = port_owner.get(connection.output_id)
        if owner is None:
            raise NotFoundError(f'Connection from unknown output {connection.output_id}')
        senders.setdefault(connection.input_id, []).append(owner)

    ordered = {}
    for input_id, owners in senders.items():
        owners.sort(key=lambda item: (item[0].seq, item[1].position))
        ordered[input_id] = [(view.id, port.name) for view, port in owners]

    return GraphView(nodes=nodes, senders=ordered, source_node_id=project.source_node_id)
