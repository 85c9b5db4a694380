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

"""Import of plugin manifests into a project.

A manifest is a JSON document::

    {
        "id": "example",
        "main": "main.py",
        "nf": {
            "rate_limit": {
                "display_name": "Rate Limit",
                "params": {"rate": "Packets per second"},
                "input": {"family": "inet", "direction": "either"},
                "outputs": {"": {"family": "inet", "direction": "either"}},
                "script": "rate_limit.py"
            }
        }
    }

Scripts are resolved relative to the manifest and copied into
``<plugin dir>/<plugin id>/``.  The script of a node defaults to its id.
"""

import json
import logging
import os
import pathlib
import shutil
import stat

from . import objects
from ._errors import ConfigurationError
from .options import ProjectOption

logger = logging.getLogger(__name__)


def resolve_plugin_dir(project, project_path=None):
    """Return the directory holding the plugin scripts of *project*.

    The ``plugin_dir`` option wins; a relative value is taken relative to
    the project file.  Without it, ``<stem>.plugins`` beside the project
    file is used.
    """
    configured = project.get_option(ProjectOption.PLUGIN_DIR, '')
    if configured:
        path = pathlib.Path(configured).expanduser()
        if path.is_absolute():
            return path
        if project_path is None:
            raise ConfigurationError(
                f'Relative plugin directory {configured!r} needs a saved project'
            )
        return pathlib.Path(project_path).parent / path
    if project_path is None:
        raise ConfigurationError('Save the project before using plugins')
    project_path = pathlib.Path(project_path)
    return project_path.with_name(f'{project_path.stem}.plugins')


def _parse_type(data, where):
    if not isinstance(data, dict):
        raise ConfigurationError(f'{where}: expected a mapping with family and direction')
    try:
        return objects.PortType(
            objects.parse_family(data.get('family', 'inet')),
            objects.parse_direction(data.get('direction', 'either')),
        )
    except ValueError as e:
        raise ConfigurationError(f'{where}: {e}') from e


def _require_str(value, where):
    if not isinstance(value, str) or not value:
        raise ConfigurationError(f'{where}: expected a non-empty string')
    return value


class PluginImporter:
    """Validates a manifest and registers its node kinds on a project."""

    def __init__(self, db_manager, plugin_dir=None):
        self._db_manager = db_manager
        self._plugin_dir = pathlib.Path(plugin_dir) if plugin_dir else None

    def load_manifest(self, manifest_path):
        manifest_path = pathlib.Path(manifest_path)
        try:
            with manifest_path.open(encoding='utf-8') as f:
                manifest = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f'Cannot read manifest {manifest_path}: {e}') from e
        self.validate(manifest)
        return manifest

    @staticmethod
    def validate(manifest):
        if not isinstance(manifest, dict):
            raise ConfigurationError('Manifest must be a JSON object')
        plugin_id = _require_str(manifest.get('id'), 'id')
        if ':' in plugin_id or plugin_id == 'core' or '/' in plugin_id:
            raise ConfigurationError(f'Invalid plugin id {plugin_id!r}')
        if 'main' in manifest:
            _require_str(manifest['main'], 'main')

        nodes = manifest.get('nf')
        if not isinstance(nodes, dict) or not nodes:
            raise ConfigurationError('nf: expected a non-empty mapping of node kinds')
        for node_id, node in nodes.items():
            where = f'nf.{node_id}'
            _require_str(node_id, 'nf')
            if ':' in node_id:
                raise ConfigurationError(f'{where}: node ids must not contain ":"')
            if not isinstance(node, dict):
                raise ConfigurationError(f'{where}: expected a mapping')
            if 'inputs' in node:
                raise ConfigurationError(f'{where}: only a single input is supported')
            _parse_type(node.get('input', {}), f'{where}.input')
            params = node.get('params', {})
            if not isinstance(params, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in params.items()
            ):
                raise ConfigurationError(f'{where}.params: expected a string mapping')
            outputs = node.get('outputs', {})
            if not isinstance(outputs, dict):
                raise ConfigurationError(f'{where}.outputs: expected a mapping')
            for name, typ in outputs.items():
                _parse_type(typ, f'{where}.outputs.{name}')
            if 'script' in node:
                _require_str(node['script'], f'{where}.script')

    def import_manifest(self, manifest_path):
        """Import the manifest at *manifest_path*. Returns the plugin id."""
        manifest_path = pathlib.Path(manifest_path)
        manifest = self.load_manifest(manifest_path)
        plugin_id = manifest['id']
        source_dir = manifest_path.parent

        with self._db_manager.session(f'Import plugin {plugin_id}') as session:
            project = self._db_manager.get_project(session)
            plugin_dir = self._plugin_dir or resolve_plugin_dir(
                project, self._db_manager.path
            )
            target_dir = plugin_dir / plugin_id

            plugin = objects.Plugin(
                plugin_id=plugin_id,
                main_script=pathlib.Path(manifest['main']).name
                if manifest.get('main')
                else '',
            )
            scripts = [manifest['main']] if manifest.get('main') else []
            for node_id, node in manifest['nf'].items():
                script = node.get('script', node_id)
                scripts.append(script)
                input_type = _parse_type(node.get('input', {}), node_id)
                outputs = {}
                for name, typ in node.get('outputs', {}).items():
                    parsed = _parse_type(typ, name)
                    outputs[name] = {
                        'family': parsed.family.name,
                        'direction': parsed.direction.name,
                    }
                plugin.nodes.append(
                    objects.PluginNode(
                        node_id=node_id,
                        display_name=node.get('display_name') or node_id,
                        params=dict(node.get('params', {})),
                        input_family=int(input_type.family),
                        input_direction=int(input_type.direction),
                        outputs=outputs,
                        script=pathlib.Path(script).name,
                    )
                )

            self._copy_scripts(source_dir, target_dir, scripts)

            for existing in list(project.plugins):
                if existing.plugin_id == plugin_id:
                    logger.info('Replacing earlier registration of plugin %s', plugin_id)
                    project.plugins.remove(existing)
            # (project, plugin id) is unique: flush the removal first.
            session.flush()
            project.plugins.append(plugin)

        logger.info(
            'Imported plugin %s with %d node kind(s) into %s',
            plugin_id,
            len(manifest['nf']),
            target_dir,
        )
        return plugin_id

    @staticmethod
    def _copy_scripts(source_dir, target_dir, scripts):
        target_dir.mkdir(parents=True, exist_ok=True)
        for script in dict.fromkeys(scripts):
            source = source_dir / script
            if not source.is_file():
                raise ConfigurationError(f'Plugin script {source} does not exist')
            target = target_dir / pathlib.Path(script).name
            shutil.copyfile(source, target)
            mode = os.stat(target).st_mode
            os.chmod(target, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            logger.debug('Copied plugin script %s to %s', source, target)
