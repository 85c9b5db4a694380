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

"""YAML writer for serializing a project to a single YAML file."""

import logging
import os
import pathlib

import sqlalchemy
import yaml

from . import objects

logger = logging.getLogger(__name__)


class _QuotedValueDumper(yaml.SafeDumper):
    def increase_indent(self, flow=False, indentless=False):
        return super().increase_indent(flow, False)


def _quoted_str(dumper, data):
    return dumper.represent_scalar('tag:yaml.org,2002:str', data, style="'")


_QuotedValueDumper.add_representer(str, _quoted_str)

_orig_represent_mapping = yaml.SafeDumper.represent_mapping


def _represent_mapping(self, tag, mapping, flow_style=None):
    node = _orig_represent_mapping(self, tag, mapping, flow_style)
    for key_node, _ in node.value:
        if key_node.tag == 'tag:yaml.org,2002:str':
            key_node.style = None
    return node


_QuotedValueDumper.represent_mapping = _represent_mapping


def _is_default(value):
    """Return True if value is a default that should be omitted."""
    if value is None:
        return True
    if isinstance(value, str) and value == '':
        return True
    if isinstance(value, int | float) and not isinstance(value, bool) and value == 0:
        return True
    return bool(isinstance(value, dict | list) and not value)


def _compact(d):
    """Drop default-valued keys from *d*, keeping insertion order."""
    return {k: v for k, v in d.items() if not _is_default(v)}


def _port_dict(port):
    return {
        'id': str(port.id),
        'name': port.name,
        'family': objects.Family(port.family).name,
        'direction': objects.Direction(port.direction).name,
    }


def _type_dict(typ):
    return {'family': typ.family.name, 'direction': typ.direction.name}


class YamlWriter:
    """Writes a project with its plugins, nodes and connections to YAML."""

    def write(self, session, project, output_path):
        output_path = pathlib.Path(output_path)
        doc = self._serialize_project(session, project)

        tmp_path = output_path.with_name(output_path.name + '.tmp')
        with pathlib.Path.open(tmp_path, 'w', encoding='utf-8') as f:
            yaml.dump(
                doc,
                f,
                Dumper=_QuotedValueDumper,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
        os.replace(tmp_path, output_path)
        logger.debug('Wrote %d node(s) to %s', len(doc.get('nodes', [])), output_path)

    def _serialize_project(self, session, project):
        doc = {
            'name': project.name,
            'comment': project.comment,
            'options': dict(sorted((project.options or {}).items())),
            'source_node': str(project.source_node_id)
            if project.source_node_id
            else None,
        }
        doc = _compact(doc)

        plugins = [self._serialize_plugin(p) for p in project.plugins]
        if plugins:
            doc['plugins'] = plugins

        doc['nodes'] = [self._serialize_node(n) for n in project.nodes]

        by_output = {
            c.output_id: c for c in session.scalars(sqlalchemy.select(objects.Connection))
        }
        connections = []
        for node in project.nodes:
            for output in node.outputs:
                connection = by_output.get(output.id)
                if connection is not None:
                    connections.append(
                        {
                            'output': str(connection.output_id),
                            'input': str(connection.input_id),
                        }
                    )
        if connections:
            doc['connections'] = connections
        return doc

    def _serialize_plugin(self, plugin):
        data = _compact({'id': plugin.plugin_id, 'main': plugin.main_script})
        data['nodes'] = [
            _compact(
                {
                    'id': pn.node_id,
                    'display_name': pn.display_name,
                    'params': dict(pn.params or {}),
                    'input': _type_dict(pn.input_type),
                    'outputs': {
                        name: _type_dict(typ) for name, typ in pn.output_types()
                    },
                    'script': pn.script,
                }
            )
            for pn in plugin.nodes
        ]
        return data

    def _serialize_node(self, node):
        data = {
            'id': str(node.id),
            'kind': node.type,
            'label': node.label,
        }
        if node.pos_x or node.pos_y:
            data['position'] = [node.pos_x, node.pos_y]
        data.update(
            {
                'value': node.value,
                'file_path': node.file_path,
                'plugin_id': node.plugin_id,
                'plugin_node_id': node.plugin_node_id,
                'data': dict(sorted((node.data or {}).items())),
                'inputs': [_port_dict(p) for p in node.inputs],
                'outputs': [_port_dict(p) for p in node.outputs],
            }
        )
        return _compact(data)

