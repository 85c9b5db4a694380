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

"""Per-node evaluation: incoming condition paths to outgoing ones."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from typing import TYPE_CHECKING

from netgraph.core._errors import (
    ConfigurationError,
    NetgraphError,
    NotFoundError,
    PluginError,
    UnknownBranch,
)
from netgraph.core.objects import FILTER_KINDS, NAT_KINDS, NodeKind

from ._predicate import ConditionPath, Predicate

if TYPE_CHECKING:
    from ._graph_view import NodeView
    from ._plugin_bridge import PluginBridge

logger = logging.getLogger(__name__)

TERMINAL = 'terminal'
FILTER_BRANCHES = ('match', 'non-match')
FAMILY_BRANCHES = ('ipv4', 'ipv6')

_PLAIN_KINDS = frozenset({NodeKind.LOCALHOST, NodeKind.DROP, NodeKind.ACCEPT})


@dataclasses.dataclass(frozen=True)
class PathFailure:
    """One incoming path a custom node could not map onto *branch*."""

    node_id: uuid.UUID
    branch: str
    path: ConditionPath
    error: NetgraphError


class PredicateEvaluator:
    """Maps a node, an incoming path and an output branch to a new path.

    Custom nodes are delegated to *bridge*; the ``custom_data`` each
    invocation returns is accumulated per node id in :attr:`custom_data`.
    A plugin failing on a single path is recorded in :attr:`path_failures`
    and only that path is dropped from the node outputs.
    """

    def __init__(self, bridge: PluginBridge | None = None) -> None:
        self._bridge = bridge
        self.custom_data: dict = {}
        self.path_failures: list[PathFailure] = []

    def apply(self, path_in: ConditionPath, node: NodeView, branch: str) -> ConditionPath:
        kind = node.kind

        if kind == NodeKind.SOURCE:
            return (Predicate(node.variant),)

        if kind in FILTER_KINDS or kind == NodeKind.FILE_IP_LIST:
            if branch not in FILTER_BRANCHES:
                raise UnknownBranch(node.variant, branch)
            if kind == NodeKind.FILE_IP_LIST:
                if not node.file_path:
                    raise ConfigurationError(f'{node}: no IP list file configured')
                value = node.file_path
            else:
                value = node.value
            return (*path_in, Predicate(node.variant, {'value': value, 'rule': branch}))

        if kind == NodeKind.FAMILY_SPLITTER:
            if branch not in FAMILY_BRANCHES:
                raise UnknownBranch(node.variant, branch)
            return (*path_in, Predicate(node.variant, {'family': branch}))

        if kind in NAT_KINDS:
            return (*path_in, Predicate(node.variant, {'addr': node.value}))

        if kind in _PLAIN_KINDS:
            return (*path_in, Predicate(node.variant))

        return self._apply_custom(path_in, node, branch)

    def _check_custom(self, node):
        if node.script is None:
            raise NotFoundError(f'{node}: plugin node {node.variant} is not registered')
        if self._bridge is None:
            raise PluginError(f'{node}: no plugin bridge available')

    def _apply_custom(self, path_in, node, branch):
        self._check_custom(node)
        path_out, custom_data = self._bridge.invoke(
            node.plugin_id,
            node.plugin_node_id,
            path_in,
            branch,
            script=node.script,
        )
        if custom_data:
            self.custom_data.setdefault(node.id, {}).update(custom_data)
        return path_out

    def node_outputs(
        self,
        incoming: list[ConditionPath],
        node: NodeView,
    ) -> dict[str, list[ConditionPath]]:
        """Apply *node* to every incoming path under every output branch.

        Errors that concern the node as a whole propagate.  A plugin error
        for one (branch, path) pair is recorded and that path is skipped.
        """
        branches = node.branches or [TERMINAL]
        custom = node.kind == NodeKind.CUSTOM
        if custom:
            self._check_custom(node)
        result = {}
        for branch in branches:
            outputs = []
            for path in incoming:
                try:
                    outputs.append(self.apply(path, node, branch))
                except PluginError as e:
                    if not custom:
                        raise
                    logger.warning('%s failed on branch %r: %s', node, branch, e)
                    self.path_failures.append(PathFailure(node.id, branch, path, e))
            result[branch] = outputs
        logger.debug(
            'Evaluated %s: %d incoming path(s) x %d branch(es)',
            node,
            len(incoming),
            len(branches),
        )
        return result
