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

"""Unit tests for importing plugin manifests."""

import json
import os
import pathlib

import pytest
import sqlalchemy

import netgraph.core
from netgraph.compiler import ConfigurationError
from netgraph.core import PluginImporter, resolve_plugin_dir
from netgraph.core.objects import Direction, Family, Plugin, PortType, Project


def _manifest(**overrides):
    manifest = {
        'id': 'example',
        'main': 'main.py',
        'nf': {
            'rate_limit': {
                'display_name': 'Rate Limit',
                'params': {'rate': 'Packets per second'},
                'input': {'family': 'IPv4', 'direction': 'incoming'},
                'outputs': {
                    'under': {'family': 'inet', 'direction': 'either'},
                    'over': {'family': 'inet', 'direction': 'either'},
                },
                'script': 'bin/rate_limit.py',
            },
            'tag': {
                'input': {'family': 'inet', 'direction': 'either'},
                'outputs': {'': {'family': 'inet', 'direction': 'either'}},
            },
        },
    }
    manifest.update(overrides)
    return manifest


@pytest.fixture()
def write_manifest(tmp_path, make_script):
    source = tmp_path / 'source'
    make_script('main.py', 'pass\n', directory=source)
    make_script('rate_limit.py', 'pass\n', directory=source / 'bin')
    make_script('tag', 'pass\n', directory=source)

    def _inner(manifest):
        path = source / 'plugin.json'
        path.write_text(json.dumps(manifest), encoding='utf-8')
        return path

    return _inner


def _plugins(db):
    with db.create_session() as session:
        plugins = session.scalars(sqlalchemy.select(Plugin)).all()
        return {
            p.plugin_id: {
                pn.node_id: (pn.display_name, pn.params, pn.input_type, pn.output_types(), pn.script_name)
                for pn in p.nodes
            }
            for p in plugins
        }


class TestImport:
    def test_registers_node_kinds(self, graph, db, tmp_path, write_manifest):
        plugin_id = PluginImporter(db, plugin_dir=tmp_path / 'plugins').import_manifest(
            write_manifest(_manifest())
        )
        assert plugin_id == 'example'
        nodes = _plugins(db)['example']
        assert nodes['rate_limit'] == (
            'Rate Limit',
            {'rate': 'Packets per second'},
            PortType(Family.IPv4, Direction.Incoming),
            [('under', PortType()), ('over', PortType())],
            'rate_limit.py',
        )
        assert nodes['tag'][0] == 'tag'
        assert nodes['tag'][4] == 'tag'

    def test_copies_scripts(self, graph, db, tmp_path, write_manifest):
        PluginImporter(db, plugin_dir=tmp_path / 'plugins').import_manifest(
            write_manifest(_manifest())
        )
        target = tmp_path / 'plugins' / 'example'
        assert sorted(p.name for p in target.iterdir()) == ['main.py', 'rate_limit.py', 'tag']
        for script in target.iterdir():
            assert os.access(script, os.X_OK)

    def test_reimport_replaces(self, graph, db, tmp_path, write_manifest):
        importer = PluginImporter(db, plugin_dir=tmp_path / 'plugins')
        importer.import_manifest(write_manifest(_manifest()))
        manifest = _manifest()
        del manifest['nf']['rate_limit']
        importer.import_manifest(write_manifest(manifest))
        assert list(_plugins(db)['example']) == ['tag']

    def test_is_one_undo_step(self, graph, db, tmp_path, write_manifest):
        PluginImporter(db, plugin_dir=tmp_path / 'plugins').import_manifest(
            write_manifest(_manifest())
        )
        db.undo()
        assert _plugins(db) == {}

    def test_default_plugin_dir(self, graph, db, tmp_path, write_manifest):
        db.save(tmp_path / 'lab.yml')
        PluginImporter(db).import_manifest(write_manifest(_manifest()))
        assert (tmp_path / 'lab.plugins' / 'example' / 'tag').is_file()

    def test_missing_script(self, graph, db, tmp_path, write_manifest):
        manifest = _manifest()
        manifest['nf']['tag']['script'] = 'nope.sh'
        with pytest.raises(ConfigurationError, match='does not exist'):
            PluginImporter(db, plugin_dir=tmp_path / 'plugins').import_manifest(
                write_manifest(manifest)
            )
        assert _plugins(db) == {}


class TestValidate:
    @pytest.mark.parametrize(
        'manifest',
        [
            [],
            _manifest(id=''),
            _manifest(id='core'),
            _manifest(id='a:b'),
            _manifest(main=''),
            _manifest(nf={}),
            _manifest(nf={'a:b': {}}),
            _manifest(nf={'x': {'inputs': [{}, {}]}}),
            _manifest(nf={'x': {'input': {'family': 'ipx'}}}),
            _manifest(nf={'x': {'outputs': {'o': {'direction': 'sideways'}}}}),
            _manifest(nf={'x': {'params': {'a': 1}}}),
            _manifest(nf={'x': {'script': ''}}),
        ],
        ids=[
            'not-an-object',
            'empty-id',
            'reserved-id',
            'colon-id',
            'empty-main',
            'no-nodes',
            'colon-node-id',
            'several-inputs',
            'bad-family',
            'bad-direction',
            'bad-params',
            'empty-script',
        ],
    )
    def test_rejects(self, manifest):
        with pytest.raises(ConfigurationError):
            PluginImporter.validate(manifest)

    def test_accepts_minimal(self):
        PluginImporter.validate({'id': 'x', 'nf': {'node': {}}})

    def test_unreadable_manifest(self, db, tmp_path):
        path = tmp_path / 'plugin.json'
        path.write_text('{', encoding='utf-8')
        with pytest.raises(ConfigurationError):
            PluginImporter(db).load_manifest(path)


class TestResolvePluginDir:
    def _project(self, **options):
        return Project(name='p', options=options)

    def test_default_beside_project(self):
        path = resolve_plugin_dir(self._project(), pathlib.Path('/srv/fw/lab.yml'))
        assert path == pathlib.Path('/srv/fw/lab.plugins')

    def test_relative_option(self):
        project = self._project(plugin_dir='scripts')
        path = resolve_plugin_dir(project, pathlib.Path('/srv/fw/lab.yml'))
        assert path == pathlib.Path('/srv/fw/scripts')

    def test_absolute_option(self):
        project = self._project(plugin_dir='/opt/plugins')
        assert resolve_plugin_dir(project) == pathlib.Path('/opt/plugins')

    @pytest.mark.parametrize('options', [{}, {'plugin_dir': 'scripts'}])
    def test_unsaved_project(self, options):
        with pytest.raises(ConfigurationError):
            resolve_plugin_dir(self._project(**options))


def test_exported_from_core():
    assert netgraph.core.PluginImporter is PluginImporter
