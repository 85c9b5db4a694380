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

"""Unit tests for lowering condition paths into nftables commands."""

import re

import pytest

from netgraph.compiler import (
    ConfigurationError,
    Predicate,
    RuleLowering,
    UnknownNodeKind,
    UnsupportedLowering,
)
from netgraph.core.objects import NodeKind
from netgraph.core.options import ExportSettings

SOURCE = Predicate(NodeKind.SOURCE.value)
LOCALHOST = Predicate(NodeKind.LOCALHOST.value)
DROP = Predicate(NodeKind.DROP.value)
ACCEPT = Predicate(NodeKind.ACCEPT.value)


def _filter(kind, value, rule='match'):
    return Predicate(kind.value, {'value': value, 'rule': rule})


def _lower(*predicates, **options):
    return RuleLowering(ExportSettings(**options)).lower(tuple(predicates))


def _chains(commands):
    return [c['add']['chain'] for c in commands if 'chain' in c['add']]


def _rules(commands):
    return [c['add']['rule'] for c in commands if 'rule' in c['add']]


def _saddr(addr, op='==', protocol='ip'):
    return {
        'match': {
            'op': op,
            'left': {'payload': {'protocol': protocol, 'field': 'saddr'}},
            'right': addr,
        }
    }


class TestScenarios:
    def test_scenario_a_match_drops_on_input(self):
        commands = _lower(SOURCE, _filter(NodeKind.SOURCE_ADDRESS_FILTER, '10.0.0.1'), DROP)
        (chain,) = _chains(commands)
        (rule,) = _rules(commands)
        assert (chain['type'], chain['hook'], chain['policy']) == ('filter', 'input', 'accept')
        assert rule['chain'] == chain['name']
        assert rule['expr'] == [_saddr('10.0.0.1'), {'drop': None}]

    def test_scenario_a_non_match_accepts_on_output(self):
        commands = _lower(
            SOURCE,
            _filter(NodeKind.SOURCE_ADDRESS_FILTER, '10.0.0.1', 'non-match'),
            ACCEPT,
        )
        (chain,) = _chains(commands)
        (rule,) = _rules(commands)
        assert (chain['type'], chain['hook'], chain['policy']) == ('filter', 'output', 'accept')
        assert rule['expr'] == [_saddr('10.0.0.1', '!='), {'accept': None}]

    def test_scenario_b(self):
        commands = _lower(
            SOURCE,
            LOCALHOST,
            Predicate(NodeKind.SOURCE_NAT.value, {'addr': '192.168.1.5:8080'}),
            ACCEPT,
        )
        chains = _chains(commands)
        rules = _rules(commands)
        assert [(c['type'], c['hook'], c['policy']) for c in chains] == [
            ('filter', 'input', 'drop'),
            ('nat', 'output', 'accept'),
            ('filter', 'output', 'accept'),
        ]
        assert [c['prio'] for c in chains] == [0, 100, 0]
        assert rules[0]['expr'] == [{'accept': None}]
        assert rules[1]['expr'] == [
            {'snat': {'addr': '192.168.1.5', 'family': 'ip', 'port': 8080}}
        ]
        assert rules[2]['expr'] == [_saddr('192.168.1.5'), {'accept': None}]
        # chain, rule, chain, rule, ...
        assert [next(iter(c['add'])) for c in commands] == ['chain', 'rule'] * 3


class TestMatches:
    def test_destination_prefix(self):
        commands = _lower(
            SOURCE, _filter(NodeKind.DESTINATION_ADDRESS_FILTER, '10.1.2.3/8'), DROP
        )
        match = _rules(commands)[0]['expr'][0]['match']
        assert match['left'] == {'payload': {'protocol': 'ip', 'field': 'daddr'}}
        assert match['right'] == {'prefix': {'addr': '10.0.0.0', 'len': 8}}

    def test_ipv6_address_set(self):
        commands = _lower(
            SOURCE, _filter(NodeKind.SOURCE_ADDRESS_FILTER, 'fd00::1, fd00::2'), DROP
        )
        match = _rules(commands)[0]['expr'][0]['match']
        assert match['left']['payload']['protocol'] == 'ip6'
        assert match['right'] == {'set': ['fd00::1', 'fd00::2']}

    @pytest.mark.parametrize(
        ('value', 'right'),
        [
            ('22', 22),
            ('1000-2000', {'range': [1000, 2000]}),
            ('22,80', {'set': [22, 80]}),
        ],
    )
    def test_ports(self, value, right):
        commands = _lower(
            SOURCE, _filter(NodeKind.DESTINATION_PORT_FILTER, value, 'non-match'), DROP
        )
        l4proto, port = _rules(commands)[0]['expr'][:2]
        assert l4proto == {
            'match': {
                'op': '==',
                'left': {'meta': {'key': 'l4proto'}},
                'right': {'set': ['tcp', 'udp']},
            }
        }
        assert port == {
            'match': {
                'op': '!=',
                'left': {'payload': {'protocol': 'th', 'field': 'dport'}},
                'right': right,
            }
        }

    def test_protocol(self):
        commands = _lower(SOURCE, _filter(NodeKind.PROTOCOL_FILTER, 'icmp'), DROP)
        assert _rules(commands)[0]['expr'][0] == {
            'match': {'op': '==', 'left': {'meta': {'key': 'l4proto'}}, 'right': 'icmp'}
        }

    def test_interface_follows_direction(self):
        iface = _filter(NodeKind.INTERFACE_FILTER, 'eth0')
        incoming = _lower(SOURCE, iface, DROP)
        outgoing = _lower(SOURCE, LOCALHOST, iface, DROP)
        assert _rules(incoming)[0]['expr'][0]['match']['left'] == {'meta': {'key': 'iifname'}}
        assert _rules(outgoing)[1]['expr'][0]['match']['left'] == {'meta': {'key': 'oifname'}}
        assert _chains(outgoing)[1]['hook'] == 'output'

    def test_family_splitter(self):
        splitter = Predicate(NodeKind.FAMILY_SPLITTER.value, {'family': 'ipv6'})
        commands = _lower(SOURCE, splitter, DROP)
        assert _rules(commands)[0]['expr'][0] == {
            'match': {'op': '==', 'left': {'meta': {'key': 'nfproto'}}, 'right': 'ipv6'}
        }

    def test_destination_nat_seeds_daddr(self):
        dnat = Predicate(NodeKind.DESTINATION_NAT.value, {'addr': '[fd00::5]:443'})
        commands = _lower(SOURCE, dnat, DROP)
        rules = _rules(commands)
        assert rules[0]['expr'] == [
            {'dnat': {'addr': 'fd00::5', 'family': 'ip6', 'port': 443}}
        ]
        assert rules[1]['expr'][0]['match']['left'] == {
            'payload': {'protocol': 'ip6', 'field': 'daddr'}
        }
        assert _chains(commands)[0]['hook'] == 'input'

    def test_nat_without_port(self):
        snat = Predicate(NodeKind.SOURCE_NAT.value, {'addr': '10.0.0.7'})
        rules = _rules(_lower(SOURCE, LOCALHOST, snat, ACCEPT))
        assert rules[1]['expr'] == [{'snat': {'addr': '10.0.0.7', 'family': 'ip'}}]

    def test_matches_accumulate_until_flush(self):
        commands = _lower(
            SOURCE,
            _filter(NodeKind.PROTOCOL_FILTER, 'tcp'),
            _filter(NodeKind.SOURCE_ADDRESS_FILTER, '10.0.0.1'),
            LOCALHOST,
            _filter(NodeKind.DESTINATION_ADDRESS_FILTER, '10.0.0.2'),
            ACCEPT,
        )
        rules = _rules(commands)
        assert len(rules[0]['expr']) == 3
        assert len(rules[1]['expr']) == 2


class TestNaming:
    PATH = (
        SOURCE,
        LOCALHOST,
        Predicate(NodeKind.SOURCE_NAT.value, {'addr': '192.168.1.5'}),
        ACCEPT,
    )

    def test_deterministic(self):
        lowering = RuleLowering(ExportSettings())
        assert lowering.lower(self.PATH) == lowering.lower(self.PATH)

    def test_unique_within_path(self):
        names = [c['name'] for c in _chains(_lower(*self.PATH))]
        assert len(set(names)) == len(names) == 3
        assert all(re.fullmatch(r'chain_[0-9a-f]{16}', name) for name in names)

    def test_depends_on_path(self):
        other = (SOURCE, LOCALHOST, ACCEPT)
        assert _chains(_lower(*self.PATH))[0]['name'] != _chains(_lower(*other))[0]['name']

    def test_table_options(self):
        commands = _lower(SOURCE, DROP, table_name='fw', table_family='ip', filter_priority=-10)
        (chain,) = _chains(commands)
        assert (chain['table'], chain['family'], chain['prio']) == ('fw', 'ip', -10)
        assert _rules(commands)[0]['table'] == 'fw'


class TestFailures:
    def test_file_ip_list_is_unsupported(self):
        with pytest.raises(UnsupportedLowering):
            _lower(SOURCE, _filter(NodeKind.FILE_IP_LIST, '/etc/list'), DROP)

    def test_unknown_variant(self):
        with pytest.raises(UnknownNodeKind):
            _lower(SOURCE, Predicate('example:rate_limit'), DROP)

    def test_no_verdict(self):
        with pytest.raises(UnsupportedLowering, match='verdict'):
            _lower(SOURCE, _filter(NodeKind.PROTOCOL_FILTER, 'tcp'))

    def test_predicates_after_verdict(self):
        with pytest.raises(UnsupportedLowering):
            _lower(SOURCE, DROP, ACCEPT)

    @pytest.mark.parametrize(
        ('kind', 'value'),
        [
            (NodeKind.SOURCE_ADDRESS_FILTER, 'not-an-address'),
            (NodeKind.SOURCE_ADDRESS_FILTER, '10.0.0.1,fd00::1'),
            (NodeKind.SOURCE_ADDRESS_FILTER, ''),
            (NodeKind.DESTINATION_PORT_FILTER, '70000'),
            (NodeKind.DESTINATION_PORT_FILTER, '80-22'),
            (NodeKind.PROTOCOL_FILTER, ''),
        ],
    )
    def test_bad_values(self, kind, value):
        with pytest.raises(ConfigurationError):
            _lower(SOURCE, _filter(kind, value), DROP)

    @pytest.mark.parametrize('addr', ['', '10.0.0.0/8', '10.0.0.1:http', '[fd00::1'])
    def test_bad_nat_target(self, addr):
        with pytest.raises(ConfigurationError):
            _lower(SOURCE, Predicate(NodeKind.DESTINATION_NAT.value, {'addr': addr}), DROP)
