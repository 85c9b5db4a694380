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

"""Propagation of inbound/outbound direction tags across wildcard ports."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from ._errors import NotFoundError
from .objects import Connection, Direction, InputPort, OutputPort

if TYPE_CHECKING:
    import sqlalchemy.orm

logger = logging.getLogger(__name__)


def propagate_direction(
    session: sqlalchemy.orm.Session,
    input_id: uuid.UUID,
    output_id: uuid.UUID,
) -> int:
    """Push the direction of *output_id* downstream through *input_id*.

    Nothing happens when the output is a wildcard or the input is already
    pinned.  Otherwise the input takes the output's direction, every output
    of the input's node takes it as well, and the walk continues through
    their connections until it reaches an input that is already pinned.

    Returns the number of input ports that were rewritten.
    """
    input_port = session.get(InputPort, input_id)
    output_port = session.get(OutputPort, output_id)
    if input_port is None or output_port is None:
        raise NotFoundError(f'Connection {output_id} -> {input_id} has a dangling port')

    direction = Direction(output_port.direction)
    if direction == Direction.Either:
        return 0

    rewritten = 0
    stack = [input_port]
    while stack:
        port = stack.pop()
        if port.direction != Direction.Either:
            continue
        port.direction = int(direction)
        rewritten += 1
        for output in port.node.outputs:
            output.direction = int(direction)
            connection = session.get(Connection, output.id)
            if connection is not None:
                stack.append(connection.input)

    if rewritten:
        logger.debug(
            'Propagated direction %s to %d input(s) from output %s',
            direction.name,
            rewritten,
            output_id,
        )
    return rewritten
