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

"""Canonical project option keys.

Example:
    from netgraph.core.options import ProjectOption

    timeout = project.get_option(ProjectOption.PLUGIN_TIMEOUT, 10.0)
"""

from enum import StrEnum


class ProjectOption(StrEnum):
    """Options stored in ``Project.options``."""

    # Target nftables table
    TABLE_NAME = 'table_name'
    TABLE_FAMILY = 'table_family'

    # Base chain priorities
    FILTER_PRIORITY = 'filter_priority'
    NAT_PRIORITY = 'nat_priority'

    # Plugins
    PLUGIN_TIMEOUT = 'plugin_timeout'
    PLUGIN_DIR = 'plugin_dir'
