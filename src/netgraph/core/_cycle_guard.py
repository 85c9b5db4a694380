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

"""Cycle detection for newly formed connections."""

from __future__ import annotations

import logging
import uuid

import sqlalchemy
import sqlalchemy.orm

from ._errors import NotFoundError
from .objects import Connection, InputPort, OutputPort

logger = logging.getLogger(__name__)


def receiver_nodes(
    session: sqlalchemy.orm.Session,
    node_id: uuid.UUID,
) -> list[uuid.UUID]:
    """Return the ids of the nodes fed by the outputs of *node_id*.

    Ordered by output port position; a node fed twice appears twice.
    """
    out = sqlalchemy.orm.aliased(OutputPort)
    inp = sqlalchemy.orm.aliased(InputPort)
    stmt = (
        sqlalchemy.select(inp.node_id)
        .select_from(Connection)
        .join(out, Connection.output_id == out.id)
        .join(inp, Connection.input_id == inp.id)
        .where(out.node_id == node_id)
        .order_by(out.position)
    )
    return list(session.execute(stmt).scalars())


def would_cycle(session: sqlalchemy.orm.Session, output_id: uuid.UUID) -> bool:
    """Return True if the connection leaving *output_id* closes a cycle.

    Walks the "feeds" relation depth-first from the receivers of the
    output's owning node and reports whether the walk gets back to that
    node.  The connection must already be flushed to the session.
    """
    output = session.get(OutputPort, output_id)
    if output is None:
        raise NotFoundError(f'Output port {output_id} not found')
    root = output.node_id

    stack = list(reversed(receiver_nodes(session, root)))
    visited: set[uuid.UUID] = set()
    while stack:
        node_id = stack.pop()
        if node_id == root:
            logger.debug('Connection from output %s closes a cycle', output_id)
            return True
        if node_id in visited:
            continue
        visited.add(node_id)
        stack.extend(reversed(receiver_nodes(session, node_id)))
    return False
