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

from ._cycle_guard import receiver_nodes, would_cycle
from ._database import PROJECT_SUFFIXES, DatabaseManager, HistorySnapshot
from ._direction import propagate_direction
from ._editor import GraphEditor, parse_kind
from ._plugin_import import PluginImporter, resolve_plugin_dir
from ._templates import BUILTIN_LAYOUTS, NODE_CLASSES, build_ports, port_layout
from ._util import ParseResult
from ._yaml_reader import YamlReader
from ._yaml_writer import YamlWriter

__all__ = [
    'BUILTIN_LAYOUTS',
    'NODE_CLASSES',
    'PROJECT_SUFFIXES',
    'DatabaseManager',
    'GraphEditor',
    'HistorySnapshot',
    'ParseResult',
    'PluginImporter',
    'YamlReader',
    'YamlWriter',
    'build_ports',
    'parse_kind',
    'port_layout',
    'propagate_direction',
    'receiver_nodes',
    'resolve_plugin_dir',
    'would_cycle',
]
