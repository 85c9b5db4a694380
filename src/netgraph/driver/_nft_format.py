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

"""Text form of libnftables JSON commands, as read by ``nft -f``.

    {"match": {"op": "!=", "left": {"payload": {"protocol": "ip", "field": "saddr"}},
               "right": "10.0.0.1"}}

becomes ``ip saddr != 10.0.0.1``.
"""

from __future__ import annotations

_QUOTED_META_KEYS = frozenset({'iifname', 'oifname'})


def _format_value(value, quoted=False) -> str:
    if isinstance(value, dict):
        if 'prefix' in value:
            prefix = value['prefix']
            return f'{prefix["addr"]}/{prefix["len"]}'
        if 'range' in value:
            low, high = value['range']
            return f'{low}-{high}'
        if 'set' in value:
            items = ', '.join(_format_value(item, quoted) for item in value['set'])
            return f'{{ {items} }}'
        raise ValueError(f'Unsupported value: {value!r}')
    if quoted:
        return f'"{value}"'
    return str(value)


def _format_left(left: dict) -> str:
    if 'payload' in left:
        payload = left['payload']
        return f'{payload["protocol"]} {payload["field"]}'
    if 'meta' in left:
        return f'meta {left["meta"]["key"]}'
    raise ValueError(f'Unsupported expression: {left!r}')


def format_expr(expr: dict) -> str:
    """Return the nft text of one rule expression or statement."""
    if 'match' in expr:
        match = expr['match']
        left = match['left']
        quoted = left.get('meta', {}).get('key') in _QUOTED_META_KEYS
        parts = [_format_left(left)]
        if match['op'] != '==':
            parts.append(match['op'])
        parts.append(_format_value(match['right'], quoted))
        return ' '.join(parts)
    for verdict in ('accept', 'drop'):
        if verdict in expr:
            return verdict
    for action in ('snat', 'dnat'):
        if action in expr:
            nat = expr[action]
            family = nat.get('family', 'ip')
            addr = nat['addr']
            if 'port' in nat:
                addr = f'[{addr}]:{nat["port"]}' if family == 'ip6' else f'{addr}:{nat["port"]}'
            return f'{action} {family} to {addr}'
    raise ValueError(f'Unsupported statement: {expr!r}')


def format_command(command: dict) -> str:
    """Return the ``add ...`` line of one command."""
    (verb, body), = command.items()
    if 'table' in body:
        table = body['table']
        return f'{verb} table {table["family"]} {table["name"]}'
    if 'chain' in body:
        chain = body['chain']
        return (
            f'{verb} chain {chain["family"]} {chain["table"]} {chain["name"]} '
            f'{{ type {chain["type"]} hook {chain["hook"]} priority {chain["prio"]}; '
            f'policy {chain["policy"]}; }}'
        )
    if 'rule' in body:
        rule = body['rule']
        exprs = ' '.join(format_expr(expr) for expr in rule['expr'])
        return f'{verb} rule {rule["family"]} {rule["table"]} {rule["chain"]} {exprs}'
    raise ValueError(f'Unsupported command: {command!r}')
