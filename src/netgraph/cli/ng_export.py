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

"""CLI entry point for exporting a project as an nftables ruleset."""

import argparse
import logging
import pathlib
import sys
import time

import netgraph
import netgraph.core
import netgraph.driver
from netgraph.core._errors import NetgraphError

__author__ = 'Linuxfabrik GmbH, Zurich/Switzerland'

DESCRIPTION = """NetGraph exporter. Loads a node graph project, expands it into every
source-to-terminal condition path and writes the resulting nftables ruleset."""

EXIT_OK = 0
EXIT_LOAD_FAILED = 1
EXIT_EXCLUDED = 2

_LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='netgraph-export',
        description=DESCRIPTION,
    )

    parser.add_argument(
        'project',
        help='path to the .yml / .yaml project file',
    )

    parser.add_argument(
        '-f',
        '--format',
        choices=('json', 'nft'),
        default='json',
        dest='FORMAT',
        help='output format: libnftables JSON or an `nft -f` script. Default: %(default)s',
    )

    parser.add_argument(
        '-o',
        '--output',
        default='',
        dest='OUTPUT',
        help='output file. Default: stdout',
    )

    parser.add_argument(
        '-p',
        '--plugin-dir',
        default=None,
        dest='PLUGIN_DIR',
        help='directory holding the plugin scripts (overrides the project option)',
    )

    parser.add_argument(
        '-t',
        '--timeout',
        type=float,
        default=None,
        dest='TIMEOUT',
        help='seconds a plugin script may run (overrides the project option)',
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
    t_start = time.monotonic()

    try:
        db = netgraph.core.DatabaseManager()
        db.load(args.project)
    except Exception as e:
        print(f'Error: failed to load project from {args.project}: {e}', file=sys.stderr)
        return EXIT_LOAD_FAILED

    driver = netgraph.driver.ExportDriver(
        db,
        plugin_dir=args.PLUGIN_DIR,
        timeout=args.TIMEOUT,
    )
    try:
        result = driver.run()
    except NetgraphError as e:
        print(f'Error: {e}', file=sys.stderr)
        return EXIT_LOAD_FAILED
    text = result.to_nft() if args.FORMAT == 'nft' else result.to_json()

    if args.OUTPUT:
        pathlib.Path(args.OUTPUT).write_text(text, encoding='utf-8')
    else:
        sys.stdout.write(text)

    for exclusion in result.exclusions:
        print(f'Excluded: {exclusion}', file=sys.stderr)

    elapsed = time.monotonic() - t_start
    logging.getLogger(__name__).info('Export time: %.2fs', elapsed)

    if result.exclusions:
        return EXIT_EXCLUDED
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
