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

"""Project, Plugin and PluginNode models."""

from __future__ import (
    annotations,  # This is needed since SQLAlchemy does not support forward references yet
)

import uuid
from typing import TYPE_CHECKING, Any

import sqlalchemy
import sqlalchemy.orm

from ._base import Base
from ._types import Direction, Family, PortType

if TYPE_CHECKING:
    from ._nodes import Node


class Project(Base):
    """Root of a node graph: its nodes, options and plugin registry."""

    __tablename__ = 'projects'

    id: sqlalchemy.orm.Mapped[uuid.UUID] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        default='',
    )
    comment: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Text,
        default='',
    )
    options: sqlalchemy.orm.Mapped[dict | None] = sqlalchemy.orm.mapped_column(
        sqlalchemy.JSON,
        default=dict,
    )
    # Not a foreign key: the source node row references the project too.
    source_node_id: sqlalchemy.orm.Mapped[uuid.UUID | None] = (
        sqlalchemy.orm.mapped_column(sqlalchemy.Uuid, nullable=True, default=None)
    )

    nodes: sqlalchemy.orm.Mapped[list[Node]] = sqlalchemy.orm.relationship(
        'Node',
        back_populates='project',
        cascade='all, delete-orphan',
        order_by='Node.seq',
    )
    plugins: sqlalchemy.orm.Mapped[list[Plugin]] = sqlalchemy.orm.relationship(
        'Plugin',
        back_populates='project',
        cascade='all, delete-orphan',
        order_by='Plugin.plugin_id',
    )

    def get_option(self, key: str, default: Any = None) -> Any:
        """Return project option *key*, or *default* when unset or empty."""
        value = (self.options or {}).get(key)
        if value is None or value == '':
            return default
        return value

    def set_option(self, key: str, value: Any) -> None:
        # Reassign so the JSON column is flagged dirty.
        self.options = {**(self.options or {}), key: value}

    def find_plugin_node(self, plugin_id: str, node_id: str) -> PluginNode | None:
        for plugin in self.plugins:
            if plugin.plugin_id != plugin_id:
                continue
            for plugin_node in plugin.nodes:
                if plugin_node.node_id == node_id:
                    return plugin_node
        return None


class Plugin(Base):
    """An imported extension providing one or more custom node kinds."""

    __tablename__ = 'plugins'

    id: sqlalchemy.orm.Mapped[uuid.UUID] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    project_id: sqlalchemy.orm.Mapped[uuid.UUID] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Uuid,
        sqlalchemy.ForeignKey('projects.id'),
        nullable=False,
    )
    plugin_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
    )
    main_script: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        default='',
    )

    project: sqlalchemy.orm.Mapped[Project] = sqlalchemy.orm.relationship(
        'Project',
        back_populates='plugins',
    )
    nodes: sqlalchemy.orm.Mapped[list[PluginNode]] = sqlalchemy.orm.relationship(
        'PluginNode',
        back_populates='plugin',
        cascade='all, delete-orphan',
        order_by='PluginNode.node_id',
    )

    __table_args__ = (
        sqlalchemy.UniqueConstraint(
            'project_id', 'plugin_id', name='uq_plugins_project'
        ),
    )


class PluginNode(Base):
    """Metadata of one custom node kind: its ports, parameters and script."""

    __tablename__ = 'plugin_nodes'

    id: sqlalchemy.orm.Mapped[uuid.UUID] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    plugin_ref_id: sqlalchemy.orm.Mapped[uuid.UUID] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Uuid,
        sqlalchemy.ForeignKey('plugins.id'),
        nullable=False,
    )
    node_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
    )
    display_name: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        default='',
    )
    # parameter id -> label
    params: sqlalchemy.orm.Mapped[dict | None] = sqlalchemy.orm.mapped_column(
        sqlalchemy.JSON,
        default=dict,
    )
    input_family: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        default=int(Family.Inet),
    )
    input_direction: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        default=int(Direction.Either),
    )
    # output name -> {'family': <Family name>, 'direction': <Direction name>}
    outputs: sqlalchemy.orm.Mapped[dict | None] = sqlalchemy.orm.mapped_column(
        sqlalchemy.JSON,
        default=dict,
    )
    script: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        default='',
    )

    plugin: sqlalchemy.orm.Mapped[Plugin] = sqlalchemy.orm.relationship(
        'Plugin',
        back_populates='nodes',
    )

    __table_args__ = (
        sqlalchemy.UniqueConstraint(
            'plugin_ref_id', 'node_id', name='uq_plugin_nodes_plugin'
        ),
    )

    def __str__(self) -> str:
        return self.display_name or self.node_id

    @property
    def input_type(self) -> PortType:
        return PortType(Family(self.input_family), Direction(self.input_direction))

    def output_types(self) -> list[tuple[str, PortType]]:
        """Return ``(name, PortType)`` pairs in declaration order."""
        result = []
        for name, typ in (self.outputs or {}).items():
            result.append(
                (
                    name,
                    PortType(
                        Family[typ.get('family', 'Inet')],
                        Direction[typ.get('direction', 'Either')],
                    ),
                )
            )
        return result

    @property
    def script_name(self) -> str:
        return self.script or self.node_id
