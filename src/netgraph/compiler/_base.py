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

"""BaseCompiler: error/warning tracking for all compiler passes."""

from __future__ import annotations

import logging
from enum import IntEnum

logger = logging.getLogger(__name__)


class CompilerStatus(IntEnum):
    """Compiler exit status codes."""

    SUCCESS = 0
    WARNING = 1
    ERROR = 2


class BaseCompiler:
    """Base class providing error/warning tracking for all compiler passes.

    Messages can be tied to a node (anything with an ``id``); they are then
    prefixed with the node name and id.
    """

    def __init__(self) -> None:
        self._status: CompilerStatus = CompilerStatus.SUCCESS
        self._errors: list[str] = []
        self._warnings: list[str] = []

    @property
    def status(self) -> CompilerStatus:
        return self._status

    def _format(self, node_or_msg, msg: str | None) -> str:
        if msg is None:
            return str(node_or_msg)
        node_id = getattr(node_or_msg, 'id', None)
        if node_id is None:
            return msg
        return f'Node {node_or_msg} ({node_id}): {msg}'

    def error(self, node_or_msg, msg: str | None = None) -> None:
        """Record an error, optionally associated with a node."""
        text = self._format(node_or_msg, msg)
        self._errors.append(text)
        logger.error('%s', text)
        self._status = CompilerStatus.ERROR

    def warning(self, node_or_msg, msg: str | None = None) -> None:
        """Record a warning, optionally associated with a node."""
        text = self._format(node_or_msg, msg)
        self._warnings.append(text)
        logger.warning('%s', text)
        if self._status == CompilerStatus.SUCCESS:
            self._status = CompilerStatus.WARNING

    def info(self, msg: str) -> None:
        logger.info('%s', msg)

    def get_errors(self) -> list[str]:
        return list(self._errors)

    def get_warnings(self) -> list[str]:
        return list(self._warnings)

