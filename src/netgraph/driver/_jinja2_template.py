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

"""Jinja2 templates for rendered output.

A template named ``<platform>/<name>`` is looked up in
``~/netgraph/templates/<platform>/`` first, so users can override the
shipped ``resources/templates/<platform>/`` files.
"""

from __future__ import annotations

import functools
import importlib.resources
from pathlib import Path

import jinja2

USER_TEMPLATE_DIR = Path.home() / 'netgraph' / 'templates'


def comment(value) -> str:
    """Keep *value* on one ``#`` comment line of an nft script."""
    return ' '.join(str(value).split())


@functools.cache
def _environment(platform: str) -> jinja2.Environment:
    search_paths = []
    user_dir = USER_TEMPLATE_DIR / platform
    if user_dir.is_dir():
        search_paths.append(str(user_dir))
    resources = importlib.resources.files('netgraph') / 'resources' / 'templates'
    search_paths.append(str(Path(str(resources)) / platform))

    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(search_paths),
        undefined=jinja2.StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters['comment'] = comment
    return env


class Jinja2Template:
    """A template of one output platform (e.g. ``nftables``)."""

    def __init__(self, platform: str, template_name: str) -> None:
        self._template = _environment(platform).get_template(template_name)

    def render(self, context: dict) -> str:
        return self._template.render(context)
