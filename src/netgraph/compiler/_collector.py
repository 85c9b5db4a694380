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

"""Whole-graph traversal producing every source-to-terminal condition path."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from netgraph.core._errors import GraphCycleError, NetgraphError

from ._evaluator import TERMINAL

if TYPE_CHECKING:
    from ._evaluator import PredicateEvaluator
    from ._graph_view import GraphView, NodeView
    from ._predicate import ConditionPath

logger = logging.getLogger(__name__)

NodeOutputs = dict[str, list['ConditionPath']]


class PathCollector:
    """Resolves the outputs of every node, senders first, memoized per node.

    A node that fails to evaluate is recorded in :attr:`failures` and
    contributes no paths to the nodes it feeds; those are still evaluated
    with whatever their other senders provide.
    """

    def __init__(self, view: GraphView, evaluator: PredicateEvaluator) -> None:
        self._view = view
        self._evaluator = evaluator
        self._memo: dict[uuid.UUID, NodeOutputs] = {}
        self.failures: dict[uuid.UUID, NetgraphError] = {}

    def _senders(self, node: NodeView) -> list[tuple[uuid.UUID, str]]:
        # Only the first input port drives evaluation.
        if not node.inputs:
            return []
        return self._view.senders_of(node.inputs[0].id)

    def _done(self, node_id: uuid.UUID) -> bool:
        return node_id in self._memo or node_id in self.failures

    def _resolve(self, node_id: uuid.UUID) -> None:
        stack = [(node_id, False)]
        in_progress: set[uuid.UUID] = set()
        while stack:
            current, expanded = stack.pop()
            if self._done(current):
                continue
            if expanded:
                in_progress.discard(current)
                self._evaluate(self._view.node(current))
                continue
            if current in in_progress:
                raise GraphCycleError(f'Node {current} is part of a cycle')
            in_progress.add(current)
            stack.append((current, True))
            for sender_id, _branch in reversed(self._senders(self._view.node(current))):
                if self._done(sender_id):
                    continue
                if sender_id in in_progress:
                    raise GraphCycleError(f'Node {sender_id} is part of a cycle')
                stack.append((sender_id, False))

    def _evaluate(self, node: NodeView) -> None:
        if not node.inputs:
            incoming = [()]
        else:
            incoming = []
            for sender_id, branch in self._senders(node):
                if sender_id in self.failures:
                    continue
                incoming.extend(self._memo[sender_id].get(branch, []))
        try:
            self._memo[node.id] = self._evaluator.node_outputs(incoming, node)
        except NetgraphError as e:
            self.failures[node.id] = e
            logger.warning('Evaluation of node %s failed: %s', node, e)

    def resolve(self, node_id: uuid.UUID) -> NodeOutputs:
        """Return the outputs of *node_id*, resolving its senders first.

        Raises the node's own evaluation failure, or GraphCycleError.
        """
        self._resolve(node_id)
        if node_id in self.failures:
            raise self.failures[node_id]
        return self._memo[node_id]

    def collect_terminal_paths(self) -> list[ConditionPath]:
        """Resolve every node in creation order and gather the terminal paths."""
        nodes = self._view.ordered_nodes()
        for node in nodes:
            self._resolve(node.id)
        paths = []
        for node in nodes:
            if not node.outputs and node.id in self._memo:
                paths.extend(self._memo[node.id].get(TERMINAL, []))
        logger.debug(
            'Collected %d terminal path(s), %d node failure(s)',
            len(paths),
            len(self.failures),
        )
        return paths
