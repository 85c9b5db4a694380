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

"""RuleLowering: compiles one condition path into nftables JSON commands.

Each command is an ``{"add": {...}}`` object of the libnftables JSON
schema.  A path produces one chain plus one rule per flush point
(Localhost, NAT, Drop, Accept); the matches collected since the previous
flush point become the expression list of that rule::

    source -> saddr 10.0.0.1 (match) -> drop

    add chain inet netgraph chain_5f1d... { type filter hook input priority 0; policy accept; }
    add rule inet netgraph chain_5f1d... ip saddr 10.0.0.1 drop
"""

from __future__ import annotations

import ipaddress
import logging
from typing import TYPE_CHECKING

from netgraph.core._errors import (
    ConfigurationError,
    UnknownNodeKind,
    UnsupportedLowering,
)
from netgraph.core.objects import NodeKind

from ._predicate import ConditionPath, Predicate, format_path, path_digest

if TYPE_CHECKING:
    from netgraph.core.options import ExportSettings

logger = logging.getLogger(__name__)

_COUNTER_MASK = (1 << 64) - 1

_ADDRESS_FIELDS = {
    NodeKind.SOURCE_ADDRESS_FILTER: 'saddr',
    NodeKind.DESTINATION_ADDRESS_FILTER: 'daddr',
}
_PORT_FIELDS = {
    NodeKind.SOURCE_PORT_FILTER: 'sport',
    NodeKind.DESTINATION_PORT_FILTER: 'dport',
}


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


def _set_or_single(items: list):
    return items[0] if len(items) == 1 else {'set': items}


def _match(left: dict, right, op: str = '==') -> dict:
    return {'match': {'op': op, 'left': left, 'right': right}}


def _meta(key: str) -> dict:
    return {'meta': {'key': key}}


def _payload(protocol: str, field: str) -> dict:
    return {'payload': {'protocol': protocol, 'field': field}}


def parse_address(text: str):
    """Return ``(protocol, right-hand value)`` for one address or prefix."""
    try:
        if '/' in text:
            net = ipaddress.ip_network(text, strict=False)
            right = {'prefix': {'addr': str(net.network_address), 'len': net.prefixlen}}
            version = net.version
        else:
            addr = ipaddress.ip_address(text)
            right = str(addr)
            version = addr.version
    except ValueError as e:
        raise ConfigurationError(f'Invalid address {text!r}') from e
    return ('ip' if version == 4 else 'ip6'), right


def parse_addresses(value: str):
    """Parse a comma-separated address list of a single family."""
    items = _split(value)
    if not items:
        raise ConfigurationError('Address filter without an address')
    parsed = [parse_address(item) for item in items]
    protocols = {protocol for protocol, _ in parsed}
    if len(protocols) > 1:
        raise ConfigurationError(f'Address list {value!r} mixes IPv4 and IPv6')
    return protocols.pop(), _set_or_single([right for _, right in parsed])


def _parse_port(text: str) -> int:
    try:
        port = int(text)
    except ValueError as e:
        raise ConfigurationError(f'Invalid port {text!r}') from e
    if not 0 <= port <= 65535:
        raise ConfigurationError(f'Port {port} out of range')
    return port


def parse_ports(value: str):
    """Parse ``22``, ``1000-2000`` or a comma-separated mix of both."""
    items = []
    for item in _split(value):
        if '-' in item:
            low, _, high = item.partition('-')
            low, high = _parse_port(low.strip()), _parse_port(high.strip())
            if low > high:
                raise ConfigurationError(f'Invalid port range {item!r}')
            items.append({'range': [low, high]})
        else:
            items.append(_parse_port(item))
    if not items:
        raise ConfigurationError('Port filter without a port')
    return _set_or_single(items)


def parse_nat_target(value: str):
    """Split a NAT target into ``(protocol, address, port or None)``.

    Accepts ``10.0.0.1``, ``10.0.0.1:8080``, ``fd00::1`` and ``[fd00::1]:8080``.
    """
    value = value.strip()
    if not value:
        raise ConfigurationError('NAT without a target address')
    port = None
    if value.startswith('['):
        addr, sep, rest = value[1:].partition(']')
        if not sep:
            raise ConfigurationError(f'Invalid NAT target {value!r}')
        if rest:
            if not rest.startswith(':'):
                raise ConfigurationError(f'Invalid NAT target {value!r}')
            port = _parse_port(rest[1:])
    elif value.count(':') == 1:
        addr, _, port_text = value.partition(':')
        port = _parse_port(port_text)
    else:
        addr = value
    protocol, right = parse_address(addr)
    if not isinstance(right, str):
        raise ConfigurationError(f'NAT target {value!r} must be a single address')
    return protocol, right, port


class RuleLowering:
    """Compiles condition paths into chain and rule commands.

    One instance can lower any number of paths; all per-path state is
    reset by :meth:`lower`.
    """

    def __init__(self, options: ExportSettings) -> None:
        self.options = options
        self._buffer: list[dict] = []
        self._is_incoming = True
        self._counter = 0
        self._commands: list[dict] = []

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def _chain_name(self) -> str:
        name = f'chain_{self._counter:016x}'
        self._counter = (self._counter + 1) & _COUNTER_MASK
        return name

    def _flush(self, chain_type: str, hook: str, policy: str, statement: dict) -> None:
        name = self._chain_name()
        family = self.options.table_family
        table = self.options.table_name
        if chain_type == 'nat':
            prio = self.options.nat_priority
        else:
            prio = self.options.filter_priority
        self._commands.append(
            {
                'add': {
                    'chain': {
                        'family': family,
                        'table': table,
                        'name': name,
                        'type': chain_type,
                        'hook': hook,
                        'prio': prio,
                        'policy': policy,
                    }
                }
            }
        )
        self._commands.append(
            {
                'add': {
                    'rule': {
                        'family': family,
                        'table': table,
                        'chain': name,
                        'expr': [*self._buffer, statement],
                    }
                }
            }
        )
        self._buffer = []

    @property
    def _hook(self) -> str:
        return 'input' if self._is_incoming else 'output'

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def _filter(self, kind: NodeKind, predicate: Predicate) -> None:
        value = predicate.get('value')
        op = '==' if predicate.get('rule', 'match') == 'match' else '!='

        if kind in _ADDRESS_FIELDS:
            protocol, right = parse_addresses(value)
            self._buffer.append(_match(_payload(protocol, _ADDRESS_FIELDS[kind]), right, op))
        elif kind in _PORT_FIELDS:
            right = parse_ports(value)
            self._buffer.append(_match(_meta('l4proto'), {'set': ['tcp', 'udp']}))
            self._buffer.append(_match(_payload('th', _PORT_FIELDS[kind]), right, op))
        elif kind == NodeKind.PROTOCOL_FILTER:
            protocols = _split(value)
            if not protocols:
                raise ConfigurationError('Protocol filter without a protocol')
            self._buffer.append(_match(_meta('l4proto'), _set_or_single(protocols), op))
        elif kind == NodeKind.INTERFACE_FILTER:
            interfaces = _split(value)
            if not interfaces:
                raise ConfigurationError('Interface filter without an interface')
            key = 'iifname' if self._is_incoming else 'oifname'
            self._buffer.append(_match(_meta(key), _set_or_single(interfaces), op))

    def _nat(self, kind: NodeKind, predicate: Predicate) -> None:
        protocol, addr, port = parse_nat_target(predicate.get('addr'))
        action = 'snat' if kind == NodeKind.SOURCE_NAT else 'dnat'
        statement = {'addr': addr, 'family': protocol}
        if port is not None:
            statement['port'] = port
        self._flush('nat', self._hook, 'accept', {action: statement})
        field = 'saddr' if kind == NodeKind.SOURCE_NAT else 'daddr'
        self._buffer.append(_match(_payload(protocol, field), addr))

    def lower(self, path: ConditionPath) -> list[dict]:
        """Return the chain and rule commands of *path*.

        Raises UnknownNodeKind, UnsupportedLowering or ConfigurationError.
        """
        self._buffer = []
        self._is_incoming = True
        self._counter = int.from_bytes(path_digest(path)[:8], 'big')
        self._commands = []

        for index, predicate in enumerate(path):
            try:
                kind = NodeKind(predicate.variant)
            except ValueError:
                raise UnknownNodeKind(predicate.variant) from None

            if kind == NodeKind.SOURCE:
                self._is_incoming = True
            elif kind in _ADDRESS_FIELDS or kind in _PORT_FIELDS or kind in (
                NodeKind.PROTOCOL_FILTER,
                NodeKind.INTERFACE_FILTER,
            ):
                self._filter(kind, predicate)
            elif kind == NodeKind.FAMILY_SPLITTER:
                self._buffer.append(_match(_meta('nfproto'), predicate.get('family')))
            elif kind in (NodeKind.SOURCE_NAT, NodeKind.DESTINATION_NAT):
                self._nat(kind, predicate)
            elif kind == NodeKind.LOCALHOST:
                self._flush('filter', 'input', 'drop', {'accept': None})
                self._is_incoming = False
            elif kind in (NodeKind.DROP, NodeKind.ACCEPT):
                if kind == NodeKind.DROP:
                    self._flush('filter', self._hook, 'accept', {'drop': None})
                else:
                    self._flush('filter', 'output', 'accept', {'accept': None})
                if index != len(path) - 1:
                    raise UnsupportedLowering(
                        f'Predicates after the verdict in {format_path(path)}'
                    )
                return self._commands
            else:
                raise UnsupportedLowering(f'No nftables translation for {kind.value}')

        raise UnsupportedLowering(f'Path never reaches a verdict: {format_path(path)}')
