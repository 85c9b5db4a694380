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

"""ExportDriver: orchestrates collection, lowering and serialization."""

from __future__ import annotations

import dataclasses
import json
import logging
import time
import uuid
from typing import TYPE_CHECKING

import netgraph
from netgraph.compiler import (
    BaseCompiler,
    CompilerStatus,
    ConditionPath,
    ConfigurationError,
    GraphCycleError,
    NetgraphError,
    PathCollector,
    PluginBridge,
    PredicateEvaluator,
    RuleLowering,
    format_path,
    load_graph,
    path_to_json,
)
from netgraph.core import objects, resolve_plugin_dir
from netgraph.core.objects import NodeKind
from netgraph.core.options import ExportSettings
from netgraph.driver._jinja2_template import Jinja2Template
from netgraph.driver._nft_format import format_command

if TYPE_CHECKING:
    from netgraph.core import DatabaseManager

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Exclusion:
    """A path (or a whole node) left out of the ruleset.

    A path dropped by a failing plugin carries the incoming *path*, the
    custom node in *node_id* and the output *branch* it was evaluated on.
    """

    reason: str
    path: ConditionPath | None = None
    node_id: uuid.UUID | None = None
    branch: str | None = None

    def __str__(self) -> str:
        if self.path is not None:
            if self.branch is not None:
                return f'{format_path(self.path)} [{self.branch}]: {self.reason}'
            return f'{format_path(self.path)}: {self.reason}'
        if self.node_id is not None:
            return f'node {self.node_id}: {self.reason}'
        return self.reason

    def to_dict(self) -> dict:
        data = {'reason': self.reason}
        if self.path is not None:
            data['path'] = path_to_json(self.path)
        if self.node_id is not None:
            data['node'] = str(self.node_id)
        if self.branch is not None:
            data['branch'] = self.branch
        return data


@dataclasses.dataclass
class ExportResult:
    commands: list[dict]
    exclusions: list[Exclusion]
    status: CompilerStatus
    project_name: str = ''
    path_count: int = 0
    errors: list[str] = dataclasses.field(default_factory=list)
    warnings: list[str] = dataclasses.field(default_factory=list)

    @property
    def excluded_count(self) -> int:
        return len(self.exclusions)

    def to_json(self, indent: int | None = 2) -> str:
        """Return the libnftables JSON document."""
        return json.dumps({'nftables': self.commands}, indent=indent) + '\n'

    def to_nft(self) -> str:
        """Return the ruleset as an ``nft -f`` script."""
        context = {
            'version': netgraph.__version__,
            'timestamp': time.strftime('%c'),
            'project': self.project_name,
            'path_count': self.path_count,
            'exclusions': [str(e) for e in self.exclusions],
            'lines': [format_command(command) for command in self.commands],
        }
        template = Jinja2Template('nftables', 'ruleset.nft.j2')
        return template.render(context)


class ExportDriver(BaseCompiler):
    """Turns the project held by *db* into an nftables ruleset.

    *plugin_dir* and *timeout* override the project options.
    """

    def __init__(
        self,
        db: DatabaseManager,
        plugin_dir=None,
        timeout: float | None = None,
    ) -> None:
        super().__init__()
        self.db = db
        self.plugin_dir = plugin_dir
        self.timeout = timeout

    def _make_bridge(self, project, settings) -> PluginBridge | None:
        timeout = self.timeout if self.timeout is not None else settings.plugin_timeout
        if self.plugin_dir is not None:
            return PluginBridge(self.plugin_dir, timeout)
        try:
            plugin_dir = resolve_plugin_dir(project, self.db.path)
        except ConfigurationError as e:
            if any(node.kind == NodeKind.CUSTOM for node in project.nodes):
                self.warning(f'Custom nodes cannot run: {e}')
            return None
        return PluginBridge(plugin_dir, timeout)

    def run(self) -> ExportResult:
        with self.db.create_session() as session:
            project = self.db.get_project(session)
            settings = ExportSettings.from_project(project)
            view = load_graph(session, project)
            bridge = self._make_bridge(project, settings)
            project_name = project.name

        self.info(f'Exporting project {project_name!r}')
        evaluator = PredicateEvaluator(bridge)
        collector = PathCollector(view, evaluator)
        commands = [
            {
                'add': {
                    'table': {
                        'family': settings.table_family,
                        'name': settings.table_name,
                    }
                }
            }
        ]
        exclusions: list[Exclusion] = []

        try:
            paths = collector.collect_terminal_paths()
        except GraphCycleError as e:
            self.error(f'Cannot export a cyclic graph: {e}')
            return ExportResult(
                commands,
                [Exclusion(str(e))],
                self.status,
                project_name,
                errors=self.get_errors(),
            )

        for node_id, exc in collector.failures.items():
            self.warning(view.node(node_id), f'evaluation failed: {exc}')
            exclusions.append(Exclusion(str(exc), node_id=node_id))

        for failure in evaluator.path_failures:
            self.warning(
                view.node(failure.node_id),
                f'path {format_path(failure.path)} failed on branch '
                f'{failure.branch!r}: {failure.error}',
            )
            exclusions.append(
                Exclusion(
                    str(failure.error),
                    path=failure.path,
                    node_id=failure.node_id,
                    branch=failure.branch,
                )
            )

        lowering = RuleLowering(settings)
        lowered = 0
        for path in paths:
            try:
                commands.extend(lowering.lower(path))
                lowered += 1
            except NetgraphError as e:
                self.warning(f'Excluded path {format_path(path)}: {e}')
                exclusions.append(Exclusion(str(e), path=path))

        self._merge_custom_data(evaluator.custom_data)
        self.info(
            f'Exported {lowered} of {len(paths) + len(evaluator.path_failures)} '
            f'path(s), {len(collector.failures)} node(s) failed, '
            f'{len(commands)} command(s)'
        )
        return ExportResult(
            commands=commands,
            exclusions=exclusions,
            status=self.status,
            project_name=project_name,
            path_count=len(paths),
            errors=self.get_errors(),
            warnings=self.get_warnings(),
        )

    def _merge_custom_data(self, custom_data: dict) -> None:
        """Store plugin-provided parameters on their nodes; user values win."""
        if not custom_data:
            return
        with self.db.session('Plugin data') as session:
            for node_id, data in custom_data.items():
                node = session.get(objects.Node, node_id)
                if node is None:
                    continue
                merged = {**data, **(node.data or {})}
                if merged != (node.data or {}):
                    node.data = merged
                    logger.debug('Merged plugin data into node %s', node_id)
