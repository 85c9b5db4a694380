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

"""Evaluation of custom node kinds by external plugin scripts.

Protocol: the script is started with the output branch as its only
argument, receives the incoming condition path as a JSON array of
``{"variant", "params"}`` objects on stdin and answers on stdout with
``{"condition_path": [...], "custom_data": {...}}``.
"""

from __future__ import annotations

import json
import logging
import pathlib
import subprocess

from netgraph.core._errors import PluginError

from ._predicate import ConditionPath, path_from_json, path_to_json

logger = logging.getLogger(__name__)


class PluginBridge:
    def __init__(self, plugin_dir, timeout: float = 10.0) -> None:
        self.plugin_dir = pathlib.Path(plugin_dir)
        self.timeout = timeout

    def script_path(self, plugin_id: str, script: str) -> pathlib.Path:
        return self.plugin_dir / plugin_id / script

    def invoke(
        self,
        plugin_id: str,
        node_id: str,
        path_in: ConditionPath,
        branch: str,
        script: str | None = None,
    ) -> tuple[ConditionPath, dict[str, str]]:
        """Run the script of ``plugin_id:node_id`` for one path and branch."""
        executable = self.script_path(plugin_id, script or node_id)
        payload = json.dumps(path_to_json(path_in))
        logger.debug('Running plugin %s for branch %r', executable, branch)

        try:
            proc = subprocess.run(
                [str(executable), branch],
                input=payload.encode('utf-8'),
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise PluginError(
                f'Plugin {plugin_id}:{node_id} timed out after {self.timeout}s'
            ) from e
        except OSError as e:
            raise PluginError(f'Cannot run plugin {executable}: {e}') from e

        stderr = proc.stderr.decode('utf-8', errors='replace')
        if proc.returncode != 0:
            raise PluginError(
                f'Plugin {plugin_id}:{node_id} exited with status {proc.returncode}',
                returncode=proc.returncode,
                stderr=stderr,
            )

        try:
            stdout = proc.stdout.decode('utf-8')
        except UnicodeDecodeError as e:
            raise PluginError(
                f'Plugin {plugin_id}:{node_id} wrote non-UTF-8 output', stderr=stderr
            ) from e
        return self._parse_output(plugin_id, node_id, stdout, stderr)

    @staticmethod
    def _parse_output(plugin_id, node_id, stdout, stderr):
        try:
            envelope = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise PluginError(
                f'Plugin {plugin_id}:{node_id} wrote invalid JSON: {e}', stderr=stderr
            ) from e
        if not isinstance(envelope, dict) or 'condition_path' not in envelope:
            raise PluginError(
                f'Plugin {plugin_id}:{node_id} output lacks "condition_path"',
                stderr=stderr,
            )
        try:
            path = path_from_json(envelope['condition_path'])
        except ValueError as e:
            raise PluginError(f'Plugin {plugin_id}:{node_id}: {e}', stderr=stderr) from e

        custom_data = envelope.get('custom_data') or {}
        if not isinstance(custom_data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in custom_data.items()
        ):
            raise PluginError(
                f'Plugin {plugin_id}:{node_id}: custom_data must map strings to strings',
                stderr=stderr,
            )
        return path, custom_data
