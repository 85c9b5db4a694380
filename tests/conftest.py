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

"""Shared pytest fixtures for graph, compiler and export tests."""

import stat
import sys

import pytest
import sqlalchemy

import netgraph.core
from netgraph.core.objects import Node, NodeKind


class GraphBuilder:
    """Small helper around GraphEditor that addresses ports by node and name."""

    def __init__(self, db):
        self.db = db
        self.editor = netgraph.core.GraphEditor(db)
        self.editor.new_project('test')

    def _node_id(self, kind):
        with self.db.create_session() as session:
            return session.scalars(
                sqlalchemy.select(Node.id).where(Node.type == kind.value)
            ).one()

    @property
    def source(self):
        return self._node_id(NodeKind.SOURCE)

    @property
    def localhost(self):
        return self._node_id(NodeKind.LOCALHOST)

    def add(self, kind, value='', **kwargs):
        return self.editor.add_node(kind, value=value, **kwargs)

    def output(self, node_id, name=''):
        with self.db.create_session() as session:
            port = session.get(Node, node_id).output_named(name)
            assert port is not None, f'{node_id} has no output {name!r}'
            return port.id

    def input(self, node_id):
        with self.db.create_session() as session:
            return session.get(Node, node_id).inputs[0].id

    def wire(self, sender, receiver, branch='', check_types=False):
        return self.editor.connect(
            self.output(sender, branch),
            self.input(receiver),
            check_types=check_types,
        )

    def chain(self, *node_ids):
        """Wire the default output of each node to the next one."""
        for sender, receiver in zip(node_ids, node_ids[1:]):
            with self.db.create_session() as session:
                name = session.get(Node, sender).outputs[0].name
            assert self.wire(sender, receiver, name)


@pytest.fixture()
def db():
    return netgraph.core.DatabaseManager()


@pytest.fixture()
def graph(db):
    """Return a GraphBuilder on a fresh project with Source and Localhost."""
    return GraphBuilder(db)


@pytest.fixture()
def make_script(tmp_path):
    """Return a helper writing an executable Python script into *tmp_path*."""

    def _inner(name, body, directory=None):
        directory = directory or tmp_path
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(f'#!{sys.executable}\n{body}', encoding='utf-8')
        path.chmod(path.stat().st_mode | stat.S_IXUSR)
        return path

    return _inner
