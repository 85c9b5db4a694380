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

"""Unit tests for cycle rejection on graph edits."""

import sqlalchemy

from netgraph.core import receiver_nodes, would_cycle
from netgraph.core.objects import Connection, NodeKind


def _receiver_of(db, output_id):
    with db.create_session() as session:
        connection = session.get(Connection, output_id)
        return None if connection is None else connection.input.node_id


def _connection_count(db):
    with db.create_session() as session:
        return session.scalar(sqlalchemy.select(sqlalchemy.func.count()).select_from(Connection))


class TestWouldCycle:
    def test_acyclic_chain(self, graph, db):
        a = graph.add(NodeKind.SOURCE_ADDRESS_FILTER, '10.0.0.1')
        b = graph.add(NodeKind.DESTINATION_ADDRESS_FILTER, '10.0.0.2')
        graph.chain(graph.source, a)
        assert graph.wire(a, b, 'match')
        outputs = [graph.output(a, 'match'), graph.output(graph.source, 'incoming')]
        with db.create_session() as session:
            for output_id in outputs:
                assert would_cycle(session, output_id) is False

    def test_receiver_nodes_follow_output_order(self, graph, db):
        a = graph.add(NodeKind.SOURCE_ADDRESS_FILTER, '10.0.0.1')
        drop = graph.add(NodeKind.DROP)
        accept = graph.add(NodeKind.ACCEPT)
        graph.wire(a, accept, 'non-match')
        graph.wire(a, drop, 'match')
        with db.create_session() as session:
            assert receiver_nodes(session, a) == [drop, accept]

    def test_unconnected_output(self, graph, db):
        a = graph.add(NodeKind.SOURCE_ADDRESS_FILTER, '10.0.0.1')
        output_id = graph.output(a, 'match')
        with db.create_session() as session:
            assert would_cycle(session, output_id) is False


class TestEditorRejectsCycles:
    def test_back_edge_is_rejected(self, graph, db):
        a = graph.add(NodeKind.SOURCE_ADDRESS_FILTER, '10.0.0.1')
        b = graph.add(NodeKind.DESTINATION_ADDRESS_FILTER, '10.0.0.2')
        assert graph.wire(a, b, 'match')
        before = _connection_count(db)

        assert graph.wire(b, a, 'match') is False
        assert _receiver_of(db, graph.output(b, 'match')) is None
        assert _connection_count(db) == before

    def test_self_loop_is_rejected(self, graph, db):
        a = graph.add(NodeKind.PROTOCOL_FILTER, 'tcp')
        assert graph.wire(a, a, 'non-match') is False
        assert _receiver_of(db, graph.output(a, 'non-match')) is None

    def test_long_cycle_is_rejected(self, graph, db):
        nodes = [graph.add(NodeKind.PROTOCOL_FILTER, 'tcp') for _ in range(5)]
        for sender, receiver in zip(nodes, nodes[1:]):
            assert graph.wire(sender, receiver, 'match')
        assert graph.wire(nodes[-1], nodes[0], 'match') is False

    def test_rejected_replacement_keeps_previous_edge(self, graph, db):
        a = graph.add(NodeKind.SOURCE_ADDRESS_FILTER, '10.0.0.1')
        b = graph.add(NodeKind.DESTINATION_ADDRESS_FILTER, '10.0.0.2')
        drop = graph.add(NodeKind.DROP)
        assert graph.wire(a, b, 'match')
        assert graph.wire(b, drop, 'match')

        assert graph.wire(b, a, 'match') is False
        assert _receiver_of(db, graph.output(b, 'match')) == drop

    def test_rejection_adds_no_undo_step(self, graph, db):
        a = graph.add(NodeKind.SOURCE_ADDRESS_FILTER, '10.0.0.1')
        b = graph.add(NodeKind.DESTINATION_ADDRESS_FILTER, '10.0.0.2')
        graph.wire(a, b, 'match')
        steps = len(db.get_history())
        graph.wire(b, a, 'match')
        assert len(db.get_history()) == steps

    def test_diamond_is_not_a_cycle(self, graph):
        a = graph.add(NodeKind.PROTOCOL_FILTER, 'tcp')
        b = graph.add(NodeKind.SOURCE_PORT_FILTER, '22')
        c = graph.add(NodeKind.DESTINATION_PORT_FILTER, '22')
        drop = graph.add(NodeKind.DROP)
        assert graph.wire(a, b, 'match')
        assert graph.wire(a, c, 'non-match')
        assert graph.wire(b, drop, 'match')
        assert graph.wire(c, drop, 'match')
