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

"""Unit tests for running plugin scripts."""

import pytest

from netgraph.compiler import PluginBridge, PluginError, Predicate
from netgraph.core.objects import NodeKind

ECHO = """import json, sys
path = json.load(sys.stdin)
json.dump({'condition_path': path, 'custom_data': {}}, sys.stdout)
"""

TAG = """import json, sys
path = json.load(sys.stdin)
path.append({'variant': 'example:tag', 'params': {'branch': sys.argv[1]}})
json.dump({'condition_path': path, 'custom_data': {'seen': str(len(path))}}, sys.stdout)
"""

PATH = (
    Predicate(NodeKind.SOURCE.value),
    Predicate(NodeKind.PROTOCOL_FILTER.value, {'value': 'tcp', 'rule': 'match'}),
)


@pytest.fixture()
def bridge(tmp_path):
    return PluginBridge(tmp_path / 'plugins', timeout=5.0)


@pytest.fixture()
def plugin_script(tmp_path, make_script):
    def _inner(body, name='node'):
        return make_script(name, body, directory=tmp_path / 'plugins' / 'example')

    return _inner


class TestInvoke:
    def test_echo_round_trip(self, bridge, plugin_script):
        plugin_script(ECHO)
        path, custom_data = bridge.invoke('example', 'node', PATH, 'match')
        assert path == PATH
        assert custom_data == {}

    def test_branch_is_passed_as_argument(self, bridge, plugin_script):
        plugin_script(TAG)
        path, custom_data = bridge.invoke('example', 'node', PATH, 'over')
        assert path[:-1] == PATH
        assert path[-1] == Predicate('example:tag', {'branch': 'over'})
        assert custom_data == {'seen': '3'}

    def test_explicit_script_name(self, bridge, plugin_script):
        plugin_script(ECHO, name='echo.py')
        path, _ = bridge.invoke('example', 'node', PATH, 'match', script='echo.py')
        assert path == PATH

    def test_empty_path(self, bridge, plugin_script):
        plugin_script(ECHO)
        assert bridge.invoke('example', 'node', (), 'x') == ((), {})


class TestFailures:
    def test_missing_script(self, bridge):
        with pytest.raises(PluginError, match='Cannot run'):
            bridge.invoke('example', 'missing', PATH, 'match')

    def test_non_zero_exit(self, bridge, plugin_script):
        plugin_script("import sys\nsys.stderr.write('boom')\nsys.exit(3)\n")
        with pytest.raises(PluginError) as excinfo:
            bridge.invoke('example', 'node', PATH, 'match')
        assert excinfo.value.returncode == 3
        assert excinfo.value.stderr == 'boom'

    def test_timeout(self, tmp_path, plugin_script):
        plugin_script('import time\ntime.sleep(10)\n')
        bridge = PluginBridge(tmp_path / 'plugins', timeout=0.5)
        with pytest.raises(PluginError, match='timed out'):
            bridge.invoke('example', 'node', PATH, 'match')

    @pytest.mark.parametrize(
        'body',
        [
            "print('not json')\n",
            "print('[]')\n",
            "print('{\"custom_data\": {}}')\n",
            "print('{\"condition_path\": [{\"params\": {}}]}')\n",
            "print('{\"condition_path\": [], \"custom_data\": {\"a\": 1}}')\n",
        ],
        ids=['invalid-json', 'not-an-object', 'no-path', 'bad-predicate', 'bad-custom-data'],
    )
    def test_malformed_output(self, bridge, plugin_script, body):
        plugin_script(body)
        with pytest.raises(PluginError):
            bridge.invoke('example', 'node', PATH, 'match')

    def test_non_utf8_output(self, bridge, plugin_script):
        plugin_script("import sys\nsys.stdout.buffer.write(b'\\xff\\xfe')\n")
        with pytest.raises(PluginError, match='UTF-8'):
            bridge.invoke('example', 'node', PATH, 'match')
