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

"""Database-mutating operations on the node graph."""

import logging
import uuid

import sqlalchemy

from . import objects
from ._cycle_guard import would_cycle
from ._direction import propagate_direction
from ._errors import (
    IncompatibleTypesError,
    NodeNotDeletableError,
    NotFoundError,
    UnknownNodeKind,
)
from ._templates import NODE_CLASSES, build_ports
from .objects import NodeKind

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ('label', 'value', 'file_path', 'position', 'data')


def parse_kind(kind):
    """Split *kind* into ``(NodeKind, plugin_id, plugin_node_id)``.

    Accepts a NodeKind, a built-in identifier such as ``core:drop`` or a
    custom identifier ``<plugin id>:<node id>``.
    """
    try:
        return NodeKind(kind), None, None
    except ValueError:
        pass
    plugin_id, sep, plugin_node_id = str(kind).partition(':')
    if not sep or not plugin_id or not plugin_node_id or plugin_id == 'core':
        raise UnknownNodeKind(str(kind))
    return NodeKind.CUSTOM, plugin_id, plugin_node_id


class GraphEditor:
    """Encapsulates all DB-mutating operations a graph UI drives.

    Every successful edit is committed in its own session and pushed onto
    the undo stack of the DatabaseManager as one step.
    """

    def __init__(self, db_manager):
        self._db_manager = db_manager

    # ------------------------------------------------------------------
    # Project
    # ------------------------------------------------------------------

    def new_project(self, name=''):
        """Create a project with its Source and Localhost nodes.

        Returns the project id.
        """
        session = self._db_manager.create_session()
        try:
            if session.scalars(sqlalchemy.select(objects.Project)).first():
                raise ValueError('The database already holds a project')
            project = objects.Project(id=uuid.uuid4(), name=name, options={})
            source = objects.Source(id=uuid.uuid4(), seq=0)
            localhost = objects.Localhost(id=uuid.uuid4(), seq=1, pos_x=300.0)
            for node in (source, localhost):
                build_ports(node, project)
                project.nodes.append(node)
            project.source_node_id = source.id
            session.add(project)
            session.commit()
            project_id = project.id
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        self._db_manager.clear_states()
        self._db_manager.save_state('New project')
        logger.info('Created project %r', name)
        return project_id

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def add_node(
        self,
        kind,
        *,
        value='',
        file_path=None,
        plugin_id=None,
        plugin_node_id=None,
        label='',
        position=(0.0, 0.0),
        data=None,
    ):
        """Instantiate the template of *kind* and return the new node's id."""
        kind, parsed_plugin, parsed_node = parse_kind(kind)
        if kind in objects.PINNED_KINDS:
            raise ValueError(f'{kind} is created with the project')
        if kind == NodeKind.CUSTOM:
            plugin_id = plugin_id or parsed_plugin
            plugin_node_id = plugin_node_id or parsed_node

        session = self._db_manager.create_session()
        try:
            project = self._db_manager.get_project(session)
            seq = session.scalar(sqlalchemy.select(sqlalchemy.func.max(objects.Node.seq)))
            node = NODE_CLASSES[kind](
                id=uuid.uuid4(),
                seq=(seq + 1) if seq is not None else 0,
                label=label,
                pos_x=float(position[0]),
                pos_y=float(position[1]),
                value=value,
                file_path=file_path,
                plugin_id=plugin_id,
                plugin_node_id=plugin_node_id,
                data=dict(data or {}),
            )
            build_ports(node, project)
            project.nodes.append(node)
            session.commit()
            node_id = node.id
            variant = node.variant
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        self._db_manager.save_state(f'New {variant}')
        logger.debug('Added node %s (%s)', node_id, variant)
        return node_id

    def remove_node(self, node_id):
        """Delete *node_id* together with every connection touching it."""
        session = self._db_manager.create_session()
        try:
            node = session.get(objects.Node, node_id)
            if node is None:
                raise NotFoundError(f'Node {node_id} not found')
            if not node.deletable:
                raise NodeNotDeletableError(f'{node.variant} cannot be deleted')
            port_ids = [port.id for port in node.ports]
            session.execute(
                sqlalchemy.delete(objects.Connection).where(
                    sqlalchemy.or_(
                        objects.Connection.output_id.in_(port_ids),
                        objects.Connection.input_id.in_(port_ids),
                    )
                )
            )
            variant = node.variant
            session.delete(node)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        self._db_manager.save_state(f'Delete {variant}')
        logger.debug('Removed node %s', node_id)

    def update_node(self, node_id, **fields):
        """Edit label, value, file_path, position or custom data of a node."""
        unknown = set(fields) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise TypeError(f'Cannot update node field(s): {", ".join(sorted(unknown))}')

        session = self._db_manager.create_session()
        try:
            node = session.get(objects.Node, node_id)
            if node is None:
                raise NotFoundError(f'Node {node_id} not found')
            for key, value in fields.items():
                if key == 'position':
                    node.pos_x, node.pos_y = float(value[0]), float(value[1])
                elif key == 'data':
                    node.data = {str(k): str(v) for k, v in (value or {}).items()}
                else:
                    setattr(node, key, value)
            changed = session.is_modified(node)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        if changed:
            self._db_manager.save_state(f'Edit {node_id}')

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def connect(self, output_id, input_id, check_types=True):
        """Connect *output_id* to *input_id*, replacing the output's edge.

        Returns False and leaves the graph untouched when the connection
        would close a cycle.  Directions are inferred afterwards.
        """
        session = self._db_manager.create_session()
        try:
            output = session.get(objects.OutputPort, output_id)
            if output is None:
                raise NotFoundError(f'Output port {output_id} not found')
            input_port = session.get(objects.InputPort, input_id)
            if input_port is None:
                raise NotFoundError(f'Input port {input_id} not found')
            if check_types and not output.port_type.is_compatible(input_port.port_type):
                raise IncompatibleTypesError(
                    f'Cannot connect {output.port_type} to {input_port.port_type}'
                )

            connection = session.get(objects.Connection, output_id)
            if connection is None:
                connection = objects.Connection(output=output, input=input_port)
                session.add(connection)
            else:
                connection.input = input_port
            session.flush()

            if would_cycle(session, output_id):
                # Only this edit is pending, so rolling back restores the
                # previous edge of the output.
                session.rollback()
                logger.info('Rejected connection %s -> %s: cycle', output_id, input_id)
                return False

            propagate_direction(session, input_id, output_id)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        self._db_manager.save_state('Connect')
        logger.debug('Connected %s -> %s', output_id, input_id)
        return True

    def disconnect(self, output_id):
        """Remove the edge leaving *output_id*. Returns True if there was one."""
        session = self._db_manager.create_session()
        try:
            connection = session.get(objects.Connection, output_id)
            if connection is None:
                return False
            session.delete(connection)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        self._db_manager.save_state('Disconnect')
        return True
