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

"""In-memory project database with undo history and YAML load/save."""

import contextlib
import dataclasses
import io
import logging
import pathlib
import time

import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm

from . import objects
from ._yaml_reader import YamlReader
from ._yaml_writer import YamlWriter

logger = logging.getLogger(__name__)

PROJECT_SUFFIXES = ('.yml', '.yaml')

# Undo steps kept before the oldest ones are dropped.
HISTORY_LIMIT = 200


@dataclasses.dataclass(frozen=True, slots=True)
class _Step:
    """One undo step: an SQL dump of the whole database."""

    state: bytes
    timestamp: float
    description: str = ''


@dataclasses.dataclass(frozen=True, slots=True)
class HistorySnapshot:
    """Metadata of one undo step, as shown in a history list."""

    index: int
    timestamp: float
    description: str
    is_current: bool


class DatabaseManager:
    """Holds one project in SQLite, its undo history and the file it came from.

    Every change that should be undoable ends with :meth:`save_state`;
    :meth:`session` does that automatically.
    """

    def __init__(self, connection_string='sqlite:///:memory:', history_limit=HISTORY_LIMIT):
        self.engine = sqlalchemy.create_engine(connection_string, echo=False)
        self._session_factory = sqlalchemy.orm.sessionmaker(
            self.engine,
            expire_on_commit=False,
        )
        self.history_limit = history_limit
        self._steps = []
        self._position = -1
        self._saved_position = -1
        self.on_history_changed = None
        self.path = None
        objects.enable_sqlite_fks(self.engine)
        self._reset_db(True)

    @property
    def can_undo(self):
        return self._position > 0

    @property
    def can_redo(self):
        return self._position < len(self._steps) - 1

    @property
    def is_dirty(self):
        """True when the project differs from the file it was loaded from or saved to."""
        return self._position != self._saved_position

    def _notify_history_changed(self):
        if self.on_history_changed is not None:
            self.on_history_changed()

    @contextlib.contextmanager
    def session(self, description=''):
        """Yield a session that commits on exit and records one undo step.

        The step is only recorded when something was written, including
        rows flushed before the end of the block and bulk statements.
        """
        session = self._session_factory()
        changed = False

        def _before_flush(flushing, flush_context, instances):
            nonlocal changed
            if (
                flushing.new
                or flushing.deleted
                or any(flushing.is_modified(obj) for obj in flushing.dirty)
            ):
                changed = True

        def _track_dml(orm_execute_state):
            nonlocal changed
            if not orm_execute_state.is_select:
                changed = True

        sqlalchemy.event.listen(session, 'before_flush', _before_flush)
        sqlalchemy.event.listen(session, 'do_orm_execute', _track_dml)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            sqlalchemy.event.remove(session, 'before_flush', _before_flush)
            sqlalchemy.event.remove(session, 'do_orm_execute', _track_dml)
            session.close()

        if changed:
            self.save_state(description)

    def create_session(self):
        """Return a plain session. Call :meth:`save_state` after committing changes."""
        return self._session_factory()

    def get_project(self, session):
        """Return the project stored in the database."""
        project = session.scalars(sqlalchemy.select(objects.Project)).first()
        if project is None:
            raise ValueError('No project found')
        return project

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def save_state(self, description=''):
        """Record the current database as a new undo step.

        Steps that were undone are discarded; beyond ``history_limit`` the
        oldest steps are dropped.
        """
        del self._steps[self._position + 1 :]
        self._steps.append(_Step(self._dump_db(), time.time(), description))
        overflow = len(self._steps) - self.history_limit
        if overflow > 0:
            del self._steps[:overflow]
            self._saved_position -= overflow
        self._position = len(self._steps) - 1
        logger.debug('Undo step %d: %s', self._position, description or '(unnamed)')
        self._notify_history_changed()

    def undo(self):
        """Go back one step. Returns True if the database changed."""
        return self.jump_to(self._position - 1) if self.can_undo else False

    def redo(self):
        """Go forward one step. Returns True if the database changed."""
        return self.jump_to(self._position + 1) if self.can_redo else False

    def clear_states(self):
        """Forget all undo steps."""
        self._steps.clear()
        self._position = -1
        self._notify_history_changed()

    def jump_to(self, index):
        """Restore the database to undo step *index*.

        Returns True if the database changed.
        """
        if not 0 <= index < len(self._steps) or index == self._position:
            logger.debug('Ignoring history jump to %d (at %d)', index, self._position)
            return False
        self._restore_db(self._steps[index].state)
        self._position = index
        logger.debug('Restored undo step %d', index)
        self._notify_history_changed()
        return True

    def get_history(self):
        """Return one HistorySnapshot per undo step, oldest first."""
        return [
            HistorySnapshot(
                index=i,
                timestamp=step.timestamp,
                description=step.description,
                is_current=(i == self._position),
            )
            for i, step in enumerate(self._steps)
        ]

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    @staticmethod
    def _check_suffix(path):
        if path.suffix not in PROJECT_SUFFIXES:
            raise ValueError(f'Unsupported file extension: {path}')

    def load(self, path):
        """Replace the database with the project file at *path*."""
        path = pathlib.Path(path)
        self._check_suffix(path)
        logger.info('Loading project from %s', path)
        result = YamlReader().parse(path)
        self._reset_db(True)
        with self.create_session() as session:
            session.add(result.project)
            # Connections reference ports by id.
            session.flush()
            session.add_all(result.connections)
            session.commit()
        self.path = path
        self.clear_states()
        self.save_state('Load file')
        self._saved_position = self._position
        return path

    def save(self, path=None):
        """Write the project to *path*, or to the file it was loaded from."""
        path = pathlib.Path(path) if path is not None else self.path
        if path is None:
            raise ValueError('No file name given and project was never saved')
        self._check_suffix(path)
        with self.create_session() as session:
            YamlWriter().write(session, self.get_project(session), path)
        logger.info('Saved project to %s', path)
        self.path = path
        self._saved_position = self._position
        return path

    # ------------------------------------------------------------------
    # Raw database access
    # ------------------------------------------------------------------

    def _dump_db(self):
        buffer = io.BytesIO()
        connection = self.engine.raw_connection()
        try:
            for line in connection.iterdump():
                buffer.write(f'{line}\n'.encode())
        finally:
            connection.close()
        return buffer.getvalue()

    def _restore_db(self, state):
        self._reset_db(False)
        connection = self.engine.raw_connection()
        try:
            connection.execute('PRAGMA foreign_keys = OFF')
            connection.executescript(state.decode('utf-8'))
            connection.execute('PRAGMA foreign_keys = ON')
        finally:
            connection.close()

    def _reset_db(self, recreate_schema):
        objects.Base.metadata.drop_all(self.engine)
        if recreate_schema:
            objects.Base.metadata.create_all(self.engine)
