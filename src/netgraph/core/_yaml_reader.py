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

"""YAML reader for loading a project file back into the database model."""

import logging
import pathlib
import uuid

import yaml

from . import objects
from ._templates import NODE_CLASSES
from ._util import ParseResult

logger = logging.getLogger(__name__)


def _parse_type(data):
    data = data or {}
    return objects.PortType(
        objects.parse_family(data.get('family', 'Inet')),
        objects.parse_direction(data.get('direction', 'Either')),
    )


class YamlReader:
    """Parses a single YAML file into a ParseResult for DatabaseManager.load()."""

    def __init__(self):
        self._port_ids = set()

    def parse(self, input_path):
        input_path = pathlib.Path(input_path)
        self._port_ids.clear()

        # Phase 1: Load YAML file
        with pathlib.Path.open(input_path, encoding='utf-8') as f:
            doc = yaml.safe_load(f) or {}
        if not isinstance(doc, dict):
            raise ValueError(f'{input_path}: expected a mapping at the top level')

        # Phase 2: Create objects
        project = objects.Project()
        project.id = uuid.uuid4()
        project.name = doc.get('name', '')
        project.comment = doc.get('comment', '')
        project.options = dict(doc.get('options') or {})
        source = doc.get('source_node')
        project.source_node_id = uuid.UUID(source) if source else None

        for plugin_data in doc.get('plugins', []):
            project.plugins.append(self._parse_plugin(plugin_data))

        for seq, node_data in enumerate(doc.get('nodes', [])):
            project.nodes.append(self._parse_node(node_data, seq))

        # Phase 3: Resolve references
        connections = []
        for conn_data in doc.get('connections', []):
            connections.append(self._parse_connection(conn_data))

        logger.debug(
            'Parsed %d node(s) and %d connection(s) from %s',
            len(project.nodes),
            len(connections),
            input_path,
        )
        return ParseResult(project=project, connections=connections)

    def _parse_plugin(self, data):
        plugin = objects.Plugin(
            plugin_id=data['id'],
            main_script=data.get('main', ''),
        )
        for node_data in data.get('nodes', []):
            input_type = _parse_type(node_data.get('input'))
            outputs = {}
            for name, typ in (node_data.get('outputs') or {}).items():
                parsed = _parse_type(typ)
                outputs[name] = {
                    'family': parsed.family.name,
                    'direction': parsed.direction.name,
                }
            plugin.nodes.append(
                objects.PluginNode(
                    node_id=node_data['id'],
                    display_name=node_data.get('display_name', ''),
                    params=dict(node_data.get('params') or {}),
                    input_family=int(input_type.family),
                    input_direction=int(input_type.direction),
                    outputs=outputs,
                    script=node_data.get('script', ''),
                )
            )
        return plugin

    def _parse_node(self, data, seq):
        kind = objects.NodeKind(data['kind'])
        node = NODE_CLASSES[kind](
            id=uuid.UUID(data['id']),
            seq=seq,
            label=data.get('label', ''),
            value=str(data.get('value', '')),
            file_path=data.get('file_path'),
            plugin_id=data.get('plugin_id'),
            plugin_node_id=data.get('plugin_node_id'),
            data={k: str(v) for k, v in (data.get('data') or {}).items()},
        )
        position = data.get('position')
        if position:
            node.pos_x, node.pos_y = float(position[0]), float(position[1])

        ports = [(objects.InputPort, p) for p in data.get('inputs', [])]
        ports += [(objects.OutputPort, p) for p in data.get('outputs', [])]
        for index, (cls, port_data) in enumerate(ports):
            port = cls(
                id=uuid.UUID(port_data['id']),
                name=port_data.get('name', ''),
                position=index,
            )
            port.port_type = _parse_type(port_data)
            self._port_ids.add(port.id)
            node.ports.append(port)
        return node

    def _parse_connection(self, data):
        output_id = uuid.UUID(data['output'])
        input_id = uuid.UUID(data['input'])
        for port_id in (output_id, input_id):
            if port_id not in self._port_ids:
                raise ValueError(f'Connection references unknown port {port_id}')
        return objects.Connection(output_id=output_id, input_id=input_id)
