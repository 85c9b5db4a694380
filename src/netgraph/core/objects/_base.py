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

"""Declarative base of the graph models and the SQLite connection setup."""

from __future__ import (
    annotations,  # This is needed since SQLAlchemy does not support forward references yet
)

import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm

# Constraints without an explicit name are named after their table and column.
NAMING_CONVENTION = {
    'pk': 'pk_%(table_name)s',
    'fk': 'fk_%(table_name)s_%(column_0_name)s',
    'uq': 'uq_%(table_name)s_%(column_0_name)s',
}


class Base(sqlalchemy.orm.DeclarativeBase):
    metadata = sqlalchemy.MetaData(naming_convention=NAMING_CONVENTION)


def enable_sqlite_fks(engine: sqlalchemy.engine.Engine) -> None:
    """Turn on foreign key checks for every connection *engine* opens.

    Ports, connections and plugin nodes rely on them to reject references
    to rows that do not exist.
    """

    @sqlalchemy.event.listens_for(engine, 'connect')
    def _on_connect(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute('PRAGMA foreign_keys=ON')
        finally:
            cursor.close()
