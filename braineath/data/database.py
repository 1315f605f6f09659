"""SQLite storage for Braineath records."""

import json
import logging
import sqlite3
from collections.abc import Callable, Sequence
from contextlib import contextmanager
from datetime import datetime, time
from enum import Enum
from pathlib import Path
from typing import Any, NamedTuple
from uuid import UUID

from pydantic import BaseModel

from braineath.core.achievements import Achievement, AchievementType
from braineath.core.base import Record
from braineath.core.breathing import BreathingPattern, BreathingSession
from braineath.core.emergency import EmergencySession
from braineath.core.journal import DailyIntention, GratitudeEntry
from braineath.core.mood import MoodEntry
from braineath.core.preferences import PrivacyLevel, Theme, UserPreferences
from braineath.core.thought import CognitiveDistortion, ThoughtRecord
from braineath.data.errors import SaveFailure, StorageError, StoreOpenFailure
from braineath.utils.config import config

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 3
MEMORY = ":memory:"

CHANGE_HISTORY_TABLE = """
    CREATE TABLE IF NOT EXISTS change_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        entity_type TEXT NOT NULL,
        entity_id TEXT NOT NULL,
        action TEXT NOT NULL,
        timestamp TEXT NOT NULL
    )
    """

# The constant singleton column admits one preferences row
PREFERENCES_SINGLETON_INDEX = (
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_user_preferences_singleton ON user_preferences(singleton)"
)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS mood_entries (
        id TEXT PRIMARY KEY,
        date TEXT NOT NULL,
        primary_emotion TEXT NOT NULL,
        emotion_intensity INTEGER NOT NULL,
        energy_level INTEGER NOT NULL,
        stress_level INTEGER NOT NULL,
        sleep_quality INTEGER NOT NULL,
        notes TEXT,
        triggers TEXT DEFAULT '[]',
        weather_impact TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS breathing_sessions (
        id TEXT PRIMARY KEY,
        date TEXT NOT NULL,
        breathing_pattern TEXT NOT NULL,
        duration INTEGER NOT NULL DEFAULT 0,
        completion_percentage REAL NOT NULL DEFAULT 100,
        mood_before INTEGER,
        mood_after INTEGER,
        notes TEXT,
        mood_entry_id TEXT UNIQUE
            REFERENCES mood_entries(id) ON DELETE SET NULL
            DEFERRABLE INITIALLY DEFERRED
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS gratitude_entries (
        id TEXT PRIMARY KEY,
        date TEXT NOT NULL,
        gratitude_text TEXT NOT NULL,
        category TEXT,
        emotion_generated TEXT,
        is_private INTEGER DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS daily_intentions (
        id TEXT PRIMARY KEY,
        date TEXT NOT NULL,
        intention_text TEXT NOT NULL,
        category TEXT,
        is_completed INTEGER DEFAULT 0,
        reflection TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS thought_records (
        id TEXT PRIMARY KEY,
        date TEXT NOT NULL,
        situation TEXT NOT NULL,
        automatic_thought TEXT NOT NULL,
        emotion_before TEXT NOT NULL,
        intensity_before INTEGER NOT NULL,
        cognitive_distortions TEXT DEFAULT '[]',
        balanced_thought TEXT,
        emotion_after TEXT,
        intensity_after INTEGER,
        action_plan TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_preferences (
        id TEXT PRIMARY KEY,
        preferred_theme TEXT DEFAULT 'adaptive',
        notifications_enabled INTEGER DEFAULT 1,
        reminder_times TEXT DEFAULT '[]',
        preferred_breathing_pattern TEXT,
        sound_enabled INTEGER DEFAULT 1,
        haptic_enabled INTEGER DEFAULT 1,
        privacy_level TEXT DEFAULT 'high',
        singleton INTEGER NOT NULL DEFAULT 1 CHECK (singleton = 1)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS emergency_sessions (
        id TEXT PRIMARY KEY,
        date TEXT NOT NULL,
        trigger_emotion TEXT NOT NULL,
        intensity_before INTEGER NOT NULL,
        techniques_used TEXT DEFAULT '[]',
        duration INTEGER NOT NULL DEFAULT 0,
        intensity_after INTEGER,
        notes TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS achievements (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT DEFAULT '',
        achievement_type TEXT NOT NULL,
        is_unlocked INTEGER DEFAULT 0,
        progress INTEGER DEFAULT 0,
        required_progress INTEGER DEFAULT 1,
        date_earned TEXT
    )
    """,
    CHANGE_HISTORY_TABLE,
    PREFERENCES_SINGLETON_INDEX,
    "CREATE INDEX IF NOT EXISTS idx_mood_entries_date ON mood_entries(date)",
    "CREATE INDEX IF NOT EXISTS idx_breathing_sessions_date ON breathing_sessions(date)",
    "CREATE INDEX IF NOT EXISTS idx_gratitude_entries_date ON gratitude_entries(date)",
    "CREATE INDEX IF NOT EXISTS idx_daily_intentions_date ON daily_intentions(date)",
    "CREATE INDEX IF NOT EXISTS idx_thought_records_date ON thought_records(date)",
]


def _migrate_v1_to_v2(conn: sqlite3.Connection) -> None:
    """Schema v2 adds breathing session notes and the change history table."""
    columns = {row["name"] for row in conn.execute("PRAGMA table_info(breathing_sessions)")}
    if "notes" not in columns:
        conn.execute("ALTER TABLE breathing_sessions ADD COLUMN notes TEXT")
    conn.execute(CHANGE_HISTORY_TABLE)


def _migrate_v2_to_v3(conn: sqlite3.Connection) -> None:
    """Schema v3 allows a single preferences row; the oldest one is kept."""
    dropped = conn.execute(
        "DELETE FROM user_preferences WHERE rowid NOT IN (SELECT min(rowid) FROM user_preferences)"
    ).rowcount
    if dropped:
        logger.warning("Dropped %d duplicate preferences record(s)", dropped)
    columns = {row["name"] for row in conn.execute("PRAGMA table_info(user_preferences)")}
    if "singleton" not in columns:
        conn.execute(
            "ALTER TABLE user_preferences ADD COLUMN singleton INTEGER NOT NULL DEFAULT 1 CHECK (singleton = 1)"
        )
    conn.execute(PREFERENCES_SINGLETON_INDEX)


# Maps a schema version to the step that upgrades it by one
MIGRATIONS: dict[int, Callable[[sqlite3.Connection], None]] = {
    1: _migrate_v1_to_v2,
    2: _migrate_v2_to_v3,
}


class ChangeAction(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class Change(BaseModel):
    """One committed change, read back from the change history."""

    entity_type: str
    entity_id: UUID
    action: ChangeAction
    timestamp: datetime


# Row conversion

def _encode(value: Any) -> Any:
    """Convert a model value into its SQLite column representation."""
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, time)):
        return value.isoformat()
    if isinstance(value, list):
        return json.dumps([_encode(item) for item in value])
    return value


def _uuid(value: str | None) -> UUID | None:
    return UUID(value) if value else None


def _datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _list(value: str | None) -> list:
    return json.loads(value) if value else []


def _mood_to_row(entry: MoodEntry) -> dict[str, Any]:
    return {
        "id": _encode(entry.id),
        "date": _encode(entry.date),
        "primary_emotion": entry.primary_emotion,
        "emotion_intensity": entry.emotion_intensity,
        "energy_level": entry.energy_level,
        "stress_level": entry.stress_level,
        "sleep_quality": entry.sleep_quality,
        "notes": entry.notes,
        "triggers": _encode(entry.triggers),
        "weather_impact": entry.weather_impact,
    }


def _row_to_mood(row: sqlite3.Row) -> MoodEntry:
    return MoodEntry(
        id=UUID(row["id"]),
        date=_datetime(row["date"]),
        primary_emotion=row["primary_emotion"],
        emotion_intensity=row["emotion_intensity"],
        energy_level=row["energy_level"],
        stress_level=row["stress_level"],
        sleep_quality=row["sleep_quality"],
        notes=row["notes"],
        triggers=_list(row["triggers"]),
        weather_impact=row["weather_impact"],
    )


def _breathing_to_row(session: BreathingSession) -> dict[str, Any]:
    return {
        "id": _encode(session.id),
        "date": _encode(session.date),
        "breathing_pattern": _encode(session.breathing_pattern),
        "duration": session.duration,
        "completion_percentage": session.completion_percentage,
        "mood_before": session.mood_before,
        "mood_after": session.mood_after,
        "notes": session.notes,
        "mood_entry_id": _encode(session.mood_entry_id),
    }


def _row_to_breathing(row: sqlite3.Row) -> BreathingSession:
    return BreathingSession(
        id=UUID(row["id"]),
        date=_datetime(row["date"]),
        breathing_pattern=BreathingPattern(row["breathing_pattern"]),
        duration=row["duration"],
        completion_percentage=row["completion_percentage"],
        mood_before=row["mood_before"],
        mood_after=row["mood_after"],
        notes=row["notes"],
        mood_entry_id=_uuid(row["mood_entry_id"]),
    )


def _gratitude_to_row(entry: GratitudeEntry) -> dict[str, Any]:
    return {
        "id": _encode(entry.id),
        "date": _encode(entry.date),
        "gratitude_text": entry.gratitude_text,
        "category": entry.category,
        "emotion_generated": entry.emotion_generated,
        "is_private": _encode(entry.is_private),
    }


def _row_to_gratitude(row: sqlite3.Row) -> GratitudeEntry:
    return GratitudeEntry(
        id=UUID(row["id"]),
        date=_datetime(row["date"]),
        gratitude_text=row["gratitude_text"],
        category=row["category"],
        emotion_generated=row["emotion_generated"],
        is_private=bool(row["is_private"]),
    )


def _intention_to_row(intention: DailyIntention) -> dict[str, Any]:
    return {
        "id": _encode(intention.id),
        "date": _encode(intention.date),
        "intention_text": intention.intention_text,
        "category": intention.category,
        "is_completed": _encode(intention.is_completed),
        "reflection": intention.reflection,
    }


def _row_to_intention(row: sqlite3.Row) -> DailyIntention:
    return DailyIntention(
        id=UUID(row["id"]),
        date=_datetime(row["date"]),
        intention_text=row["intention_text"],
        category=row["category"],
        is_completed=bool(row["is_completed"]),
        reflection=row["reflection"],
    )


def _thought_to_row(record: ThoughtRecord) -> dict[str, Any]:
    return {
        "id": _encode(record.id),
        "date": _encode(record.date),
        "situation": record.situation,
        "automatic_thought": record.automatic_thought,
        "emotion_before": record.emotion_before,
        "intensity_before": record.intensity_before,
        "cognitive_distortions": _encode(record.cognitive_distortions),
        "balanced_thought": record.balanced_thought,
        "emotion_after": record.emotion_after,
        "intensity_after": record.intensity_after,
        "action_plan": record.action_plan,
    }


def _row_to_thought(row: sqlite3.Row) -> ThoughtRecord:
    return ThoughtRecord(
        id=UUID(row["id"]),
        date=_datetime(row["date"]),
        situation=row["situation"],
        automatic_thought=row["automatic_thought"],
        emotion_before=row["emotion_before"],
        intensity_before=row["intensity_before"],
        cognitive_distortions=[CognitiveDistortion(d) for d in _list(row["cognitive_distortions"])],
        balanced_thought=row["balanced_thought"],
        emotion_after=row["emotion_after"],
        intensity_after=row["intensity_after"],
        action_plan=row["action_plan"],
    )


def _preferences_to_row(preferences: UserPreferences) -> dict[str, Any]:
    return {
        "id": _encode(preferences.id),
        "preferred_theme": _encode(preferences.preferred_theme),
        "notifications_enabled": _encode(preferences.notifications_enabled),
        "reminder_times": _encode(preferences.reminder_times),
        "preferred_breathing_pattern": _encode(preferences.preferred_breathing_pattern),
        "sound_enabled": _encode(preferences.sound_enabled),
        "haptic_enabled": _encode(preferences.haptic_enabled),
        "privacy_level": _encode(preferences.privacy_level),
    }


def _row_to_preferences(row: sqlite3.Row) -> UserPreferences:
    pattern = row["preferred_breathing_pattern"]
    return UserPreferences(
        id=UUID(row["id"]),
        preferred_theme=Theme(row["preferred_theme"]),
        notifications_enabled=bool(row["notifications_enabled"]),
        reminder_times=[time.fromisoformat(t) for t in _list(row["reminder_times"])],
        preferred_breathing_pattern=BreathingPattern(pattern) if pattern else None,
        sound_enabled=bool(row["sound_enabled"]),
        haptic_enabled=bool(row["haptic_enabled"]),
        privacy_level=PrivacyLevel(row["privacy_level"]),
    )


def _emergency_to_row(session: EmergencySession) -> dict[str, Any]:
    return {
        "id": _encode(session.id),
        "date": _encode(session.date),
        "trigger_emotion": session.trigger_emotion,
        "intensity_before": session.intensity_before,
        "techniques_used": _encode(session.techniques_used),
        "duration": session.duration,
        "intensity_after": session.intensity_after,
        "notes": session.notes,
    }


def _row_to_emergency(row: sqlite3.Row) -> EmergencySession:
    return EmergencySession(
        id=UUID(row["id"]),
        date=_datetime(row["date"]),
        trigger_emotion=row["trigger_emotion"],
        intensity_before=row["intensity_before"],
        techniques_used=_list(row["techniques_used"]),
        duration=row["duration"],
        intensity_after=row["intensity_after"],
        notes=row["notes"],
    )


def _achievement_to_row(achievement: Achievement) -> dict[str, Any]:
    return {
        "id": _encode(achievement.id),
        "title": achievement.title,
        "description": achievement.description,
        "achievement_type": _encode(achievement.achievement_type),
        "is_unlocked": _encode(achievement.is_unlocked),
        "progress": achievement.progress,
        "required_progress": achievement.required_progress,
        "date_earned": _encode(achievement.date_earned),
    }


def _row_to_achievement(row: sqlite3.Row) -> Achievement:
    return Achievement(
        id=UUID(row["id"]),
        title=row["title"],
        description=row["description"] or "",
        achievement_type=AchievementType(row["achievement_type"]),
        is_unlocked=bool(row["is_unlocked"]),
        progress=row["progress"],
        required_progress=row["required_progress"],
        date_earned=_datetime(row["date_earned"]),
    )


class TableMapping(NamedTuple):
    table: str
    to_row: Callable[[Any], dict[str, Any]]
    from_row: Callable[[sqlite3.Row], Any]


TABLES: dict[type[Record], TableMapping] = {
    MoodEntry: TableMapping("mood_entries", _mood_to_row, _row_to_mood),
    BreathingSession: TableMapping("breathing_sessions", _breathing_to_row, _row_to_breathing),
    GratitudeEntry: TableMapping("gratitude_entries", _gratitude_to_row, _row_to_gratitude),
    DailyIntention: TableMapping("daily_intentions", _intention_to_row, _row_to_intention),
    ThoughtRecord: TableMapping("thought_records", _thought_to_row, _row_to_thought),
    UserPreferences: TableMapping("user_preferences", _preferences_to_row, _row_to_preferences),
    EmergencySession: TableMapping("emergency_sessions", _emergency_to_row, _row_to_emergency),
    Achievement: TableMapping("achievements", _achievement_to_row, _row_to_achievement),
}


def _mapping_for(entity_type: type[Record]) -> TableMapping:
    try:
        return TABLES[entity_type]
    except KeyError:
        raise ValueError(f"{entity_type.__name__} is not a stored record type") from None


class Database:
    """SQLite store holding every Braineath record.

    A single connection is kept open for the lifetime of the object. Use
    ``Database.ephemeral()`` for an in-memory store.

    Args:
        db_path: Location of the store, defaults to ``config.db_path``.
        confirm_reset: Called with the failure when the existing store is
            incompatible. The store is moved aside and recreated empty only
            if it returns True.
        history: Record committed changes, defaults to ``config.history_enabled``.

    Raises:
        StoreOpenFailure: If the store cannot be opened.
    """

    def __init__(
        self,
        db_path: Path | str | None = None,
        confirm_reset: Callable[[StoreOpenFailure], bool] | None = None,
        history: bool | None = None,
    ):
        self.db_path = db_path if db_path is not None else config.db_path
        self.history_enabled = config.history_enabled if history is None else history
        self._conn: sqlite3.Connection | None = None
        self._open(confirm_reset)

    @classmethod
    def ephemeral(cls, history: bool | None = None) -> "Database":
        """Create an in-memory store, for previews and tests."""
        return cls(MEMORY, history=history)

    @property
    def is_ephemeral(self) -> bool:
        return str(self.db_path) == MEMORY

    @property
    def backup_path(self) -> Path:
        """Where an incompatible store is moved before a confirmed reset."""
        path = Path(self.db_path)
        return path.with_name(path.name + config.backup_suffix)

    # Lifecycle

    def _open(self, confirm_reset: Callable[[StoreOpenFailure], bool] | None) -> None:
        try:
            self._conn = self._connect()
        except StoreOpenFailure as failure:
            if not failure.incompatible or confirm_reset is None or not confirm_reset(failure):
                raise
            logger.warning("Discarding incompatible store at %s: %s", self.db_path, failure)
            self._discard_store()
            self._conn = self._connect()

    def _connect(self) -> sqlite3.Connection:
        if not self.is_ephemeral:
            try:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StoreOpenFailure(f"Cannot create directory for {self.db_path}: {exc}") from exc

        try:
            conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        except sqlite3.Error as exc:
            raise StoreOpenFailure(f"Cannot open {self.db_path}: {exc}") from exc

        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            self._prepare_schema(conn)
        except StoreOpenFailure:
            conn.close()
            raise
        except sqlite3.OperationalError as exc:
            conn.close()
            raise StoreOpenFailure(f"Cannot use {self.db_path}: {exc}") from exc
        except sqlite3.DatabaseError as exc:
            conn.close()
            raise StoreOpenFailure(f"{self.db_path} is not a readable store: {exc}", incompatible=True) from exc
        return conn

    def _prepare_schema(self, conn: sqlite3.Connection) -> None:
        version = conn.execute("PRAGMA user_version").fetchone()[0]
        if version == SCHEMA_VERSION:
            return

        if version == 0:
            tables = conn.execute("SELECT count(*) FROM sqlite_master WHERE type = 'table'").fetchone()[0]
            if tables:
                raise StoreOpenFailure(f"{self.db_path} holds an unversioned schema", incompatible=True)
            with self._transaction(conn):
                for statement in SCHEMA:
                    conn.execute(statement)
                conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            logger.info("Created store at %s (schema v%d)", self.db_path, SCHEMA_VERSION)
            return

        if version > SCHEMA_VERSION:
            raise StoreOpenFailure(
                f"{self.db_path} uses schema v{version}, newer than supported v{SCHEMA_VERSION}",
                incompatible=True,
            )

        with self._transaction(conn):
            while version < SCHEMA_VERSION:
                step = MIGRATIONS.get(version)
                if step is None:
                    raise StoreOpenFailure(f"No migration from schema v{version}", incompatible=True)
                step(conn)
                version += 1
                logger.info("Migrated %s to schema v%d", self.db_path, version)
            conn.execute(f"PRAGMA user_version = {version}")

    def _discard_store(self) -> None:
        """Move the existing store aside so a fresh one can be created."""
        if self.is_ephemeral:
            return
        path = Path(self.db_path)
        try:
            if path.exists():
                path.replace(self.backup_path)
            for suffix in ("-wal", "-shm", "-journal"):
                path.with_name(path.name + suffix).unlink(missing_ok=True)
        except OSError as exc:
            raise StoreOpenFailure(f"Cannot move {path} aside: {exc}") from exc
        logger.warning("Previous store kept at %s", self.backup_path)

    def close(self) -> None:
        """Release the connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("The store is closed")
        return self._conn

    @contextmanager
    def _transaction(self, conn: sqlite3.Connection | None = None):
        """Run a block in a single transaction, rolling back on error."""
        conn = conn or self._connection()
        conn.execute("BEGIN")
        try:
            yield conn
            conn.execute("COMMIT")
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise

    @property
    def schema_version(self) -> int:
        return self._connection().execute("PRAGMA user_version").fetchone()[0]

    # Reads

    def load(self, entity_type: type[Record], **equals: Any) -> list:
        """Load stored records of a type matching every column/value pair."""
        mapping = _mapping_for(entity_type)
        clauses = []
        params = []
        for name, value in equals.items():
            if name not in entity_type.model_fields:
                raise ValueError(f"{entity_type.__name__} has no field {name!r}")
            if value is None:
                clauses.append(f"{name} IS NULL")
            else:
                clauses.append(f"{name} = ?")
                params.append(_encode(value))

        query = f"SELECT * FROM {mapping.table}"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY rowid"

        try:
            rows = self._connection().execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Query on {mapping.table} failed: {exc}") from exc
        return [mapping.from_row(row) for row in rows]

    def load_one(self, entity_type: type[Record], entity_id: UUID) -> Record | None:
        """Load a stored record by id."""
        found = self.load(entity_type, id=entity_id)
        return found[0] if found else None

    def exists(self, entity_type: type[Record], entity_id: UUID) -> bool:
        mapping = _mapping_for(entity_type)
        try:
            row = self._connection().execute(
                f"SELECT 1 FROM {mapping.table} WHERE id = ?", (str(entity_id),)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Query on {mapping.table} failed: {exc}") from exc
        return row is not None

    def get_history(self, limit: int = 50) -> list[Change]:
        """Most recent committed changes, newest first."""
        try:
            rows = self._connection().execute(
                "SELECT * FROM change_history ORDER BY id DESC LIMIT ?", (limit,)
            ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not read change history: {exc}") from exc
        return [
            Change(
                entity_type=row["entity_type"],
                entity_id=UUID(row["entity_id"]),
                action=ChangeAction(row["action"]),
                timestamp=datetime.fromisoformat(row["timestamp"]),
            )
            for row in rows
        ]

    # Writes

    def write(
        self,
        inserts: Sequence[Record] = (),
        updates: Sequence[Record] = (),
        deletes: Sequence[Record] = (),
    ) -> None:
        """Commit a batch of changes in one transaction.

        Raises:
            SaveFailure: If anything fails; nothing is written in that case.
        """
        total = len(inserts) + len(updates) + len(deletes)
        try:
            with self._transaction() as conn:
                # Deletes and link releases run first so a moved link never
                # collides with the old holder on the unique mood_entry_id
                for entity in deletes:
                    conn.execute(
                        f"DELETE FROM {_mapping_for(type(entity)).table} WHERE id = ?",
                        (str(entity.id),),
                    )
                conn.executemany(
                    "UPDATE breathing_sessions SET mood_entry_id = NULL WHERE id = ?",
                    [(str(entity.id),) for entity in updates if isinstance(entity, BreathingSession)],
                )
                for entity in updates:
                    row = _mapping_for(type(entity)).to_row(entity)
                    entity_id = row.pop("id")
                    assignments = ", ".join(f"{name} = ?" for name in row)
                    conn.execute(
                        f"UPDATE {TABLES[type(entity)].table} SET {assignments} WHERE id = ?",
                        [*row.values(), entity_id],
                    )
                for entity in inserts:
                    row = _mapping_for(type(entity)).to_row(entity)
                    columns = ", ".join(row)
                    placeholders = ", ".join("?" for _ in row)
                    conn.execute(
                        f"INSERT INTO {TABLES[type(entity)].table} ({columns}) VALUES ({placeholders})",
                        list(row.values()),
                    )
                if self.history_enabled:
                    self._record_history(conn, inserts, updates, deletes)
        except sqlite3.Error as exc:
            logger.error("Save of %d change(s) to %s failed and was rolled back: %s", total, self.db_path, exc)
            raise SaveFailure(f"Could not save changes: {exc}") from exc
        except StorageError as exc:
            raise SaveFailure(str(exc)) from exc
        logger.debug("Saved %d change(s) to %s", total, self.db_path)

    def _record_history(self, conn, inserts, updates, deletes) -> None:
        timestamp = datetime.now().isoformat()
        entries = [
            (type(entity).__name__, str(entity.id), action.value, timestamp)
            for action, entities in (
                (ChangeAction.INSERT, inserts),
                (ChangeAction.UPDATE, updates),
                (ChangeAction.DELETE, deletes),
            )
            for entity in entities
        ]
        conn.executemany(
            "INSERT INTO change_history (entity_type, entity_id, action, timestamp) VALUES (?, ?, ?, ?)",
            entries,
        )

    def wipe(self) -> None:
        """Erase every record. Only allowed on ephemeral stores.

        Raises:
            StorageError: If the store is persistent.
        """
        if not self.is_ephemeral:
            raise StorageError("Refusing to wipe a persistent store")
        with self._transaction() as conn:
            for mapping in TABLES.values():
                conn.execute(f"DELETE FROM {mapping.table}")
            conn.execute("DELETE FROM change_history")
