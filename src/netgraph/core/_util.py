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

"""Shared code for the reader/writer modules."""

import dataclasses

from . import objects


@dataclasses.dataclass
class ParseResult:
    """Holds the parsed project and its connections.

    Connections reference ports by id, so they are added after the project
    rows have been flushed.
    """

    project: objects.Project
    connections: list[objects.Connection]
