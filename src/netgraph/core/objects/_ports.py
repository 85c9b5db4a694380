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

"""Port models (STI) and the Connection association."""

from __future__ import (
    annotations,  # This is needed since SQLAlchemy does not support forward references yet
)

import uuid
from typing import TYPE_CHECKING

import sqlalchemy
import sqlalchemy.orm

from ._base import Base
from ._types import Direction, Family, PortType

if TYPE_CHECKING:
    from ._nodes import Node


class Port(Base):
    """Base class for node inputs and outputs."""

    __tablename__ = 'ports'

    id: sqlalchemy.orm.Mapped[uuid.UUID] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    type: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(50),
    )
    node_id: sqlalchemy.orm.Mapped[uuid.UUID] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Uuid,
        sqlalchemy.ForeignKey('nodes.id'),
        nullable=False,
    )
    name: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        default='',
    )
    position: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        default=0,
    )
    family: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        default=int(Family.Inet),
    )
    direction: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        default=int(Direction.Either),
    )

    node: sqlalchemy.orm.Mapped[Node] = sqlalchemy.orm.relationship(
        'Node',
        back_populates='ports',
    )

    __mapper_args__ = {
        'polymorphic_on': 'type',
        'polymorphic_identity': 'Port',
    }

    @property
    def port_type(self) -> PortType:
        return PortType(Family(self.family), Direction(self.direction))

    @port_type.setter
    def port_type(self, value: PortType) -> None:
        self.family = int(value.family)
        self.direction = int(value.direction)


class InputPort(Port):
    __mapper_args__ = {'polymorphic_identity': 'Input'}


class OutputPort(Port):
    __mapper_args__ = {'polymorphic_identity': 'Output'}


class Connection(Base):
    """Edge from an output port to an input port.

    The output port id is the primary key: an output feeds at most one
    input, while an input may be fed by any number of outputs.
    """

    __tablename__ = 'connections'

    output_id: sqlalchemy.orm.Mapped[uuid.UUID] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Uuid,
        sqlalchemy.ForeignKey('ports.id'),
        primary_key=True,
    )
    input_id: sqlalchemy.orm.Mapped[uuid.UUID] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Uuid,
        sqlalchemy.ForeignKey('ports.id'),
        nullable=False,
    )

    output: sqlalchemy.orm.Mapped[OutputPort] = sqlalchemy.orm.relationship(
        'OutputPort',
        foreign_keys=[output_id],
    )
    input: sqlalchemy.orm.Mapped[InputPort] = sqlalchemy.orm.relationship(
        'InputPort',
        foreign_keys=[input_id],
    )
