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

"""CLI entry point for importing a plugin manifest into a project."""

import argparse
import logging
import sys

import netgraph
import netgraph.core
from netgraph.core._errors import NetgraphError

__author__ = 'Linuxfabrik GmbH, Zurich/Switzerland'

DESCRIPTION = """NetGraph plugin importer. Registers the node kinds of a plugin manifest
on a project, copies the plugin scripts next to it and saves the project."""

_LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='netgraph-plugin',
        description=DESCRIPTION,
    )

    parser.add_argument(
        'project',
        help='path to the .yml / .yaml project file',
    )

    parser.add_argument(
        'manifest',
        help='path to the plugin manifest (JSON)',
    )

    parser.add_argument(
        '-v',
        '--verbose',
        action='count',
        default=0,
        dest='VERBOSE',
        help='verbose output (repeat for higher verbosity)',
    )

    parser.add_argument(
        '-V',
        '--version',
        action='version',
        version=f'%(prog)s: v{netgraph.__version__} by {__author__}',
    )

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=_LOG_LEVELS[min(args.VERBOSE, len(_LOG_LEVELS) - 1)],
        format='%(levelname)s: %(message)s',
    )

    try:
        db = netgraph.core.DatabaseManager()
        db.load(args.project)
    except Exception as e:
        print(f'Error: failed to load project from {args.project}: {e}', file=sys.stderr)
        return 1

    try:
        plugin_id = netgraph.core.PluginImporter(db).import_manifest(args.manifest)
    except NetgraphError as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1

    db.save()
    print(f"Imported plugin '{plugin_id}' into {db.path}", file=sys.stderr)
    return 0


if __name__ == '__main__':
    sys.exit(main())
