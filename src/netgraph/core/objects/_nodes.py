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

"""Node models (STI keyed by node kind)."""

from __future__ import (
    annotations,  # This is needed since SQLAlchemy does not support forward references yet
)

import uuid
from typing import TYPE_CHECKING

import sqlalchemy
import sqlalchemy.orm

from ._base import Base
from ._types import PINNED_KINDS, NodeKind

if TYPE_CHECKING:
    from ._ports import InputPort, OutputPort, Port
    from ._project import Project


class Node(Base):
    """Base class for all graph nodes.

    The ``type`` discriminator holds the :class:`NodeKind` value.  The
    kind-specific configuration lives in a few shared columns: ``value``
    (filter expression or NAT target), ``file_path`` (IP list) and
    ``plugin_id``/``plugin_node_id``/``data`` (custom nodes).
    """

    __tablename__ = 'nodes'

    id: sqlalchemy.orm.Mapped[uuid.UUID] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    type: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(50),
    )
    project_id: sqlalchemy.orm.Mapped[uuid.UUID] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Uuid,
        sqlalchemy.ForeignKey('projects.id'),
        nullable=False,
    )
    seq: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        default=0,
    )
    label: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        default='',
    )
    pos_x: sqlalchemy.orm.Mapped[float] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Float,
        default=0.0,
    )
    pos_y: sqlalchemy.orm.Mapped[float] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Float,
        default=0.0,
    )
    value: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        default='',
    )
    file_path: sqlalchemy.orm.Mapped[str | None] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        nullable=True,
        default=None,
    )
    plugin_id: sqlalchemy.orm.Mapped[str | None] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        nullable=True,
        default=None,
    )
    plugin_node_id: sqlalchemy.orm.Mapped[str | None] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        nullable=True,
        default=None,
    )
    data: sqlalchemy.orm.Mapped[dict | None] = sqlalchemy.orm.mapped_column(
        sqlalchemy.JSON,
        default=dict,
    )

    project: sqlalchemy.orm.Mapped[Project] = sqlalchemy.orm.relationship(
        'Project',
        back_populates='nodes',
    )
    ports: sqlalchemy.orm.Mapped[list[Port]] = sqlalchemy.orm.relationship(
        'Port',
        back_populates='node',
        cascade='all, delete-orphan',
        order_by='Port.position',
    )

    __mapper_args__ = {
        'polymorphic_on': 'type',
        'polymorphic_identity': 'Node',
    }

    DISPLAY_NAME = 'Node'

    def __str__(self) -> str:
        return self.label or self.DISPLAY_NAME

    @property
    def kind(self) -> NodeKind:
        return NodeKind(self.type)

    @property
    def variant(self) -> str:
        """Identifier stamped on every predicate this node produces."""
        return self.type

    @property
    def deletable(self) -> bool:
        return self.kind not in PINNED_KINDS

    @property
    def inputs(self) -> list[InputPort]:
        from ._ports import InputPort

        return [p for p in self.ports if isinstance(p, InputPort)]

    @property
    def outputs(self) -> list[OutputPort]:
        from ._ports import OutputPort

        return [p for p in self.ports if isinstance(p, OutputPort)]

    def output_named(self, name: str) -> OutputPort | None:
        return next((p for p in self.outputs if p.name == name), None)


class Source(Node):
    """Where every packet enters the graph."""

    __mapper_args__ = {'polymorphic_identity': NodeKind.SOURCE.value}
    DISPLAY_NAME = 'Incoming Source'


class Localhost(Node):
    """The local machine: end of the inbound side, start of the outbound side."""

    __mapper_args__ = {'polymorphic_identity': NodeKind.LOCALHOST.value}
    DISPLAY_NAME = 'Local Machine'


class Drop(Node):
    __mapper_args__ = {'polymorphic_identity': NodeKind.DROP.value}
    DISPLAY_NAME = 'Drop'


class Accept(Node):
    __mapper_args__ = {'polymorphic_identity': NodeKind.ACCEPT.value}
    DISPLAY_NAME = 'Accept'


class FamilySplitter(Node):
    __mapper_args__ = {'polymorphic_identity': NodeKind.FAMILY_SPLITTER.value}
    DISPLAY_NAME = 'Family Splitter'


class SourceAddressFilter(Node):
    __mapper_args__ = {'polymorphic_identity': NodeKind.SOURCE_ADDRESS_FILTER.value}
    DISPLAY_NAME = 'Source Address Filter'


class DestinationAddressFilter(Node):
    __mapper_args__ = {
        'polymorphic_identity': NodeKind.DESTINATION_ADDRESS_FILTER.value,
    }
    DISPLAY_NAME = 'Destination Address Filter'


class SourcePortFilter(Node):
    __mapper_args__ = {'polymorphic_identity': NodeKind.SOURCE_PORT_FILTER.value}
    DISPLAY_NAME = 'Source Port Filter'


class DestinationPortFilter(Node):
    __mapper_args__ = {
        'polymorphic_identity': NodeKind.DESTINATION_PORT_FILTER.value,
    }
    DISPLAY_NAME = 'Destination Port Filter'


class ProtocolFilter(Node):
    __mapper_args__ = {'polymorphic_identity': NodeKind.PROTOCOL_FILTER.value}
    DISPLAY_NAME = 'Protocol Filter'


class InterfaceFilter(Node):
    __mapper_args__ = {'polymorphic_identity': NodeKind.INTERFACE_FILTER.value}
    DISPLAY_NAME = 'Interface Filter'


class SourceNAT(Node):
    __mapper_args__ = {'polymorphic_identity': NodeKind.SOURCE_NAT.value}
    DISPLAY_NAME = 'Source Address Translation'


class DestinationNAT(Node):
    __mapper_args__ = {'polymorphic_identity': NodeKind.DESTINATION_NAT.value}
    DISPLAY_NAME = 'Destination Address Translation'


class FileIpList(Node):
    __mapper_args__ = {'polymorphic_identity': NodeKind.FILE_IP_LIST.value}
    DISPLAY_NAME = 'IP File Filter'


class Custom(Node):
    """A node kind provided by an imported plugin."""

    __mapper_args__ = {'polymorphic_identity': NodeKind.CUSTOM.value}
    DISPLAY_NAME = 'Custom'

    @property
    def variant(self) -> str:
        return f'{self.plugin_id}:{self.plugin_node_id}'
