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

"""Typed defaults for project options."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

from netgraph.core._errors import ConfigurationError
from netgraph.core.options._keys import ProjectOption

if TYPE_CHECKING:
    from netgraph.core.objects import Project


@dataclasses.dataclass(frozen=True)
class ExportDefaults:
    """Defaults applied when a project leaves an option unset."""

    table_name: str = 'netgraph'
    table_family: str = 'inet'
    filter_priority: int = 0
    nat_priority: int = 100
    plugin_timeout: float = 10.0
    plugin_dir: str = ''


EXPORT_DEFAULTS = ExportDefaults()


@dataclasses.dataclass(frozen=True)
class ExportSettings(ExportDefaults):
    """Effective option values for one export run."""

    @classmethod
    def from_project(cls, project: Project) -> ExportSettings:
        values = {}
        for field in dataclasses.fields(ExportDefaults):
            key = ProjectOption(field.name)
            default = getattr(EXPORT_DEFAULTS, field.name)
            value = project.get_option(key, default)
            # Options may come back from YAML as strings.
            try:
                values[field.name] = type(default)(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f'Invalid value {value!r} for option {key}'
                ) from e
        return cls(**values)
