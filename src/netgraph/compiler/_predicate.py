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

"""Predicates and condition paths.

A predicate records that a packet went through one node (``variant``) and
under which parameters.  A condition path is the ordered tuple of
predicates a packet collects on its way from the Source node to a
terminal node.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
import types
from collections.abc import Mapping

ConditionPath = tuple['Predicate', ...]


@dataclasses.dataclass(frozen=True, eq=False)
class Predicate:
    """Immutable ``(variant, params)`` pair; params order is irrelevant."""

    variant: str
    params: Mapping[str, str] = dataclasses.field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'params', types.MappingProxyType(dict(self.params)))

    def __eq__(self, other):
        if not isinstance(other, Predicate):
            return NotImplemented
        return self.variant == other.variant and dict(self.params) == dict(other.params)

    def __hash__(self):
        return hash((self.variant, frozenset(self.params.items())))

    def __repr__(self):
        return f'Predicate({self.variant!r}, {dict(self.params)!r})'

    def get(self, key: str, default: str = '') -> str:
        return self.params.get(key, default)

    def to_dict(self) -> dict:
        return {'variant': self.variant, 'params': dict(self.params)}

    @classmethod
    def from_dict(cls, data) -> Predicate:
        if not isinstance(data, dict):
            raise ValueError(f'Predicate must be an object, got {type(data).__name__}')
        variant = data.get('variant')
        if not isinstance(variant, str):
            raise ValueError('Predicate variant must be a string')
        params = data.get('params', {})
        if not isinstance(params, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in params.items()
        ):
            raise ValueError(f'Predicate {variant!r} params must map strings to strings')
        return cls(variant, params)


def path_to_json(path: ConditionPath) -> list[dict]:
    return [predicate.to_dict() for predicate in path]


def path_from_json(data) -> ConditionPath:
    if not isinstance(data, list):
        raise ValueError('Condition path must be a list')
    return tuple(Predicate.from_dict(item) for item in data)


def path_digest(path: ConditionPath) -> bytes:
    """SHA-256 over the canonical JSON form of *path* (params sorted)."""
    canonical = json.dumps(path_to_json(path), sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(canonical.encode('utf-8')).digest()


def format_path(path: ConditionPath) -> str:
    """Short human-readable form used in log and exclusion messages."""
    parts = []
    for predicate in path:
        params = ','.join(f'{k}={v}' for k, v in sorted(predicate.params.items()))
        parts.append(f'{predicate.variant}({params})' if params else predicate.variant)
    return ' -> '.join(parts)
