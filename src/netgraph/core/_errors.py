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

"""Exception hierarchy shared by the graph model and the compiler."""


class NetgraphError(Exception):
    """Base class for all errors raised by netgraph."""


class ConfigurationError(NetgraphError):
    """A node or manifest lacks a required setting or holds an unusable one."""


class UnknownBranch(NetgraphError):
    """An output branch was requested that the node kind does not have."""

    def __init__(self, variant: str, branch: str) -> None:
        super().__init__(f'Unknown output {branch!r} for node kind {variant!r}')
        self.variant = variant
        self.branch = branch


class UnknownNodeKind(NetgraphError):
    """A predicate variant has no known meaning."""

    def __init__(self, variant: str) -> None:
        super().__init__(f'Unknown node kind {variant!r}')
        self.variant = variant


class UnsupportedLowering(NetgraphError):
    """A recognized predicate has no nftables translation."""


class PluginError(NetgraphError):
    """A plugin script could not be run or returned unusable output.

    ``returncode`` and ``stderr`` are set when the script ran to completion.
    """

    def __init__(
        self,
        msg: str,
        returncode: int | None = None,
        stderr: str = '',
    ) -> None:
        super().__init__(msg)
        self.returncode = returncode
        self.stderr = stderr


class NotFoundError(NetgraphError):
    """A node, port or plugin reference points at nothing."""


class GraphCycleError(NetgraphError):
    """The graph contains a cycle, so paths cannot be collected."""


class IncompatibleTypesError(NetgraphError):
    """Two ports cannot be connected because their types do not match."""


class NodeNotDeletableError(NetgraphError):
    """The node kind is pinned to every project."""
