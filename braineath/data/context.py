"""Unit-of-work layer on top of the SQLite store.

Records are plain pydantic models. A ``PersistenceContext`` tracks which
records are new, changed or deleted since the last save and commits them
together. Nothing reaches disk until ``save()`` is called.
"""

import copy
import logging
from collections.abc import Callable
from typing import Any, TypeVar
from uuid import UUID

from pydantic import TypeAdapter

from braineath.core.base import Record
from braineath.core.breathing import BreathingSession
from braineath.core.mood import MoodEntry
from braineath.core.preferences import UserPreferences
from braineath.data.database import Database
from braineath.data.errors import StorageError

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)


def _field_value(entity_type: type[Record], name: str, value: Any) -> Any:
    """Convert a filter value to the field's type, so "1f0c..." matches a UUID."""
    field = entity_type.model_fields.get(name)
    if field is None:
        raise ValueError(f"{entity_type.__name__} has no field {name!r}")
    return TypeAdapter(field.annotation).validate_python(value)


class PersistenceContext:
    """Tracks records and saves their changes as one atomic batch.

    Each stored record is represented by a single object per context, so
    fetching the same record twice returns the same instance.
    """

    def __init__(self, database: Database):
        self.database = database
        self._tracked: dict[UUID, Record] = {}
        self._snapshots: dict[UUID, dict[str, Any]] = {}
        self._inserted: set[UUID] = set()
        self._deleted: dict[UUID, Record] = {}

    # Tracking

    def create(self, entity: R) -> R:
        """Register a new record; it is inserted on the next save.

        Raises:
            StorageError: If a different record with the same id is known,
                or if the record is a second set of preferences.
        """
        known = self._tracked.get(entity.id)
        if known is entity:
            return entity
        if known is not None or entity.id in self._deleted or self.database.exists(type(entity), entity.id):
            raise StorageError(f"{type(entity).__name__} {entity.id} already exists")
        if isinstance(entity, UserPreferences) and self.count(UserPreferences):
            raise StorageError("Preferences already exist; change the record from preferences()")
        self._tracked[entity.id] = entity
        self._inserted.add(entity.id)
        return entity

    add = create

    def new(self, entity_type: type[R], **fields: Any) -> R:
        """Build a record from field values and register it.

        Raises:
            pydantic.ValidationError: If a field is out of range.
        """
        return self.create(entity_type(**fields))

    def _adopt(self, entity: R) -> R:
        """Return the tracked instance for a record loaded from the store."""
        known = self._tracked.get(entity.id)
        if known is not None:
            return known
        self._tracked[entity.id] = entity
        self._snapshots[entity.id] = entity.model_dump()
        return entity

    def _changed(self) -> list[Record]:
        return [
            entity
            for entity_id, entity in self._tracked.items()
            if entity_id not in self._inserted and entity.model_dump() != self._snapshots[entity_id]
        ]

    @property
    def has_changes(self) -> bool:
        return bool(self._inserted or self._deleted or self._changed())

    def delete(self, entity: Record) -> None:
        """Mark a record for deletion.

        Breathing sessions linked to a deleted mood entry lose the link.
        """
        if entity.id in self._inserted:
            self._inserted.discard(entity.id)
            del self._tracked[entity.id]
        elif entity.id in self._tracked or self.database.exists(type(entity), entity.id):
            self._tracked.pop(entity.id, None)
            self._deleted[entity.id] = entity
        else:
            return

        if isinstance(entity, MoodEntry):
            for session in self.fetch(BreathingSession, mood_entry_id=entity.id):
                session.mood_entry_id = None

    # Saving

    def save(self) -> bool:
        """Commit every pending change in one transaction.

        Returns:
            False when there was nothing to save, True otherwise.

        Raises:
            SaveFailure: If the commit failed; pending changes are kept so
                the caller may retry or roll back.
        """
        inserts = [self._tracked[entity_id] for entity_id in self._inserted]
        updates = self._changed()
        deletes = list(self._deleted.values())
        if not (inserts or updates or deletes):
            return False

        self.database.write(inserts, updates, deletes)

        for entity in [*inserts, *updates]:
            self._snapshots[entity.id] = entity.model_dump()
        for entity_id in self._deleted:
            self._snapshots.pop(entity_id, None)
        self._inserted.clear()
        self._deleted.clear()
        logger.info(
            "Saved %d new, %d changed, %d deleted record(s)", len(inserts), len(updates), len(deletes)
        )
        return True

    def rollback(self) -> None:
        """Discard unsaved changes, restoring tracked records to their saved state."""
        for entity_id in self._inserted:
            del self._tracked[entity_id]
        self._inserted.clear()
        for entity_id, entity in self._deleted.items():
            if entity_id in self._snapshots:
                self._tracked[entity_id] = entity
        self._deleted.clear()
        for entity_id, entity in self._tracked.items():
            entity.__dict__.update(copy.deepcopy(self._snapshots[entity_id]))

    def reset(self) -> None:
        """Forget every tracked record and pending change."""
        self._tracked.clear()
        self._snapshots.clear()
        self._inserted.clear()
        self._deleted.clear()

    # Queries

    def fetch(
        self,
        entity_type: type[R],
        predicate: Callable[[R], bool] | None = None,
        order_by: str | None = "date",
        descending: bool = True,
        limit: int | None = None,
        **equals: Any,
    ) -> list[R]:
        """Records of a type, including unsaved ones, that match the filters.

        ``equals`` filters on field values; ``predicate`` filters on anything
        else. Results are sorted by ``order_by`` when the type has that field,
        with missing values last.
        """
        equals = {name: _field_value(entity_type, name, value) for name, value in equals.items()}

        for entity in self.database.load(entity_type, **equals):
            if entity.id not in self._deleted:
                self._adopt(entity)

        results = [
            entity
            for entity in self._tracked.values()
            if type(entity) is entity_type
            and all(getattr(entity, name) == value for name, value in equals.items())
            and (predicate is None or predicate(entity))
        ]
        if order_by and order_by in entity_type.model_fields:
            present = [e for e in results if getattr(e, order_by) is not None]
            missing = [e for e in results if getattr(e, order_by) is None]
            present.sort(key=lambda e: getattr(e, order_by), reverse=descending)
            results = present + missing
        if limit is not None:
            results = results[:limit]
        return results

    def get(self, entity_type: type[R], entity_id: UUID) -> R | None:
        """A record by id, or None if it does not exist or is deleted."""
        if entity_id in self._deleted:
            return None
        known = self._tracked.get(entity_id)
        if known is not None:
            return known if isinstance(known, entity_type) else None
        loaded = self.database.load_one(entity_type, entity_id)
        return self._adopt(loaded) if loaded is not None else None

    def first(self, entity_type: type[R], **kwargs: Any) -> R | None:
        found = self.fetch(entity_type, limit=1, **kwargs)
        return found[0] if found else None

    def count(self, entity_type: type[R], predicate: Callable[[R], bool] | None = None, **equals: Any) -> int:
        return len(self.fetch(entity_type, predicate=predicate, order_by=None, **equals))

    # Mood entry <-> breathing session link

    def breathing_session_for(self, mood: MoodEntry) -> BreathingSession | None:
        """The breathing session linked to a mood entry, if any."""
        return self.first(BreathingSession, mood_entry_id=mood.id)

    def link(self, mood: MoodEntry, session: BreathingSession) -> None:
        """Link a mood entry and a breathing session one-to-one.

        Any session previously linked to the mood entry is unlinked.

        Raises:
            StorageError: If either record is not known to this context.
        """
        for entity in (mood, session):
            if self.get(type(entity), entity.id) is not entity:
                raise StorageError(f"{type(entity).__name__} {entity.id} is not tracked")
        current = self.breathing_session_for(mood)
        if current is not None and current is not session:
            current.mood_entry_id = None
        session.mood_entry_id = mood.id

    def unlink(self, session: BreathingSession) -> None:
        session.mood_entry_id = None

    # Preferences

    def preferences(self) -> UserPreferences:
        """The single preferences record, created with defaults on first use."""
        existing = self.fetch(UserPreferences, order_by=None)
        if existing:
            return existing[0]
        preferences = UserPreferences.defaults()
        self.database.write(inserts=[preferences])
        logger.info("Created default preferences")
        return self._adopt(preferences)
