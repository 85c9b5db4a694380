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

from netgraph.core._errors import (
    ConfigurationError,
    GraphCycleError,
    IncompatibleTypesError,
    NetgraphError,
    NodeNotDeletableError,
    NotFoundError,
    PluginError,
    UnknownBranch,
    UnknownNodeKind,
    UnsupportedLowering,
)

from ._base import BaseCompiler, CompilerStatus
from ._collector import NodeOutputs, PathCollector
from ._evaluator import TERMINAL, PathFailure, PredicateEvaluator
from ._graph_view import GraphView, NodeView, PortView, load_graph
from ._lowering import RuleLowering
from ._plugin_bridge import PluginBridge
from ._predicate import (
    ConditionPath,
    Predicate,
    format_path,
    path_digest,
    path_from_json,
    path_to_json,
)

__all__ = [
    'TERMINAL',
    'BaseCompiler',
    'CompilerStatus',
    'ConditionPath',
    'ConfigurationError',
    'GraphCycleError',
    'GraphView',
    'IncompatibleTypesError',
    'NetgraphError',
    'NodeNotDeletableError',
    'NodeOutputs',
    'NodeView',
    'NotFoundError',
    'PathCollector',
    'PathFailure',
    'PluginBridge',
    'PluginError',
    'PortView',
    'Predicate',
    'PredicateEvaluator',
    'RuleLowering',
    'UnknownBranch',
    'UnknownNodeKind',
    'UnsupportedLowering',
    'format_path',
    'load_graph',
    'path_digest',
    'path_from_json',
    'path_to_json',
]
