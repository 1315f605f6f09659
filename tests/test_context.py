"""Tests for the persistence context (create, query, save, delete)."""

from datetime import datetime, timedelta

import pytest

from braineath.core.achievements import Achievement, AchievementType, refresh_achievements
from braineath.core.breathing import BreathingPattern, BreathingSession
from braineath.core.emergency import EmergencySession
from braineath.core.journal import DailyIntention, GratitudeEntry
from braineath.core.mood import MoodEntry
from braineath.core.preferences import Theme, UserPreferences
from braineath.data.context import PersistenceContext
from braineath.data.errors import SaveFailure, StorageError


def _fail_inserts(database, table: str) -> None:
    database._conn.execute(
        f"CREATE TRIGGER fail_{table} BEFORE INSERT ON {table} "
        "BEGIN SELECT RAISE(ABORT, 'simulated write failure'); END"
    )


def _allow_inserts(database, table: str) -> None:
    database._conn.execute(f"DROP TRIGGER fail_{table}")


class TestCreateAndSave:
    """Tests for creating and saving records."""

    def test_round_trip_every_type(
        self, context, memory_db, sample_mood, sample_session, sample_gratitude, sample_intention,
        sample_thought, sample_emergency, sample_preferences, sample_achievement,
    ):
        """Saved records load back with identical field values."""
        records = [
            sample_mood, sample_session, sample_gratitude, sample_intention,
            sample_thought, sample_emergency, sample_preferences, sample_achievement,
        ]
        for record in records:
            context.create(record)
        assert context.save() is True

        fresh = PersistenceContext(memory_db)
        for record in records:
            loaded = fresh.get(type(record), record.id)
            assert loaded is not None
            assert loaded is not record
            assert loaded.model_dump() == record.model_dump()

    def test_new_builds_and_tracks(self, context):
        entry = context.new(MoodEntry, primary_emotion="Curious", emotion_intensity=6)
        assert context.has_changes
        context.save()
        assert context.get(MoodEntry, entry.id) is entry

    def test_new_rejects_invalid(self, context):
        with pytest.raises(ValueError):
            context.new(MoodEntry, primary_emotion="Calm", emotion_intensity=12)
        assert not context.has_changes

    def test_create_twice_is_noop(self, context, sample_mood):
        context.create(sample_mood)
        context.create(sample_mood)
        context.save()
        assert context.count(MoodEntry) == 1

    def test_add_is_create(self, context, sample_gratitude):
        context.add(sample_gratitude)
        assert context.get(GratitudeEntry, sample_gratitude.id) is sample_gratitude
        assert context.save() is True

    def test_create_duplicate_id_rejected(self, context, memory_db, sample_mood):
        context.create(sample_mood)
        context.save()

        copy = MoodEntry(**sample_mood.model_dump())
        with pytest.raises(StorageError):
            PersistenceContext(memory_db).create(copy)

    def test_updates_detected_without_marking(self, context, memory_db, sample_mood):
        context.create(sample_mood)
        context.save()
        assert not context.has_changes

        sample_mood.emotion_intensity = 9
        assert context.has_changes
        assert context.save() is True

        loaded = PersistenceContext(memory_db).get(MoodEntry, sample_mood.id)
        assert loaded.emotion_intensity == 9

    def test_history_recorded(self, context, memory_db, sample_mood):
        context.create(sample_mood)
        context.save()
        sample_mood.notes = "later"
        context.save()
        context.delete(sample_mood)
        context.save()

        actions = [change.action.value for change in memory_db.get_history()]
        assert actions == ["delete", "update", "insert"]
        assert all(change.entity_id == sample_mood.id for change in memory_db.get_history())


class TestNoOpSave:
    """Saving without pending changes must not touch the store."""

    def test_empty_context(self, context, memory_db, monkeypatch):
        monkeypatch.setattr(memory_db, "_connection", lambda: pytest.fail("store was accessed"))
        assert context.save() is False

    def test_after_successful_save(self, context, memory_db, sample_mood, monkeypatch):
        context.create(sample_mood)
        context.save()
        context.fetch(MoodEntry)

        monkeypatch.setattr(memory_db, "_connection", lambda: pytest.fail("store was accessed"))
        assert context.save() is False
        assert context.save() is False

    def test_reassigning_same_value(self, context, sample_mood):
        context.create(sample_mood)
        context.save()
        sample_mood.stress_level = sample_mood.stress_level
        assert context.save() is False


class TestAtomicSave:
    """A failed save writes nothing and keeps pending changes."""

    def test_failed_insert_rolls_back_batch(self, context, memory_db, sample_mood, sample_gratitude):
        _fail_inserts(memory_db, "gratitude_entries")
        context.create(sample_mood)
        context.create(sample_gratitude)

        with pytest.raises(SaveFailure):
            context.save()

        assert memory_db.load(MoodEntry) == []
        assert memory_db.load(GratitudeEntry) == []
        assert context.has_changes

    def test_failed_save_keeps_stored_values(self, context, memory_db, sample_mood, sample_gratitude):
        context.create(sample_mood)
        context.save()

        _fail_inserts(memory_db, "gratitude_entries")
        sample_mood.emotion_intensity = 1
        context.create(sample_gratitude)
        with pytest.raises(SaveFailure):
            context.save()

        assert memory_db.load_one(MoodEntry, sample_mood.id).emotion_intensity == 4
        assert sample_mood.emotion_intensity == 1

    def test_retry_after_failure(self, context, memory_db, sample_mood, sample_gratitude):
        _fail_inserts(memory_db, "gratitude_entries")
        context.create(sample_mood)
        context.create(sample_gratitude)
        with pytest.raises(SaveFailure):
            context.save()

        _allow_inserts(memory_db, "gratitude_entries")
        assert context.save() is True
        assert len(memory_db.load(MoodEntry)) == 1
        assert len(memory_db.load(GratitudeEntry)) == 1

    def test_failed_save_records_no_history(self, context, memory_db, sample_gratitude):
        _fail_inserts(memory_db, "gratitude_entries")
        context.create(sample_gratitude)
        with pytest.raises(SaveFailure):
            context.save()
        assert memory_db.get_history() == []

    def test_save_failure_is_storage_error(self, context, memory_db, sample_gratitude):
        _fail_inserts(memory_db, "gratitude_entries")
        context.create(sample_gratitude)
        with pytest.raises(StorageError, match="simulated write failure"):
            context.save()


class TestRollbackAndReset:
    """Tests for discarding pending state."""

    def test_rollback_restores_saved_values(self, context, sample_mood):
        context.create(sample_mood)
        context.save()
        sample_mood.emotion_intensity = 10
        sample_mood.triggers = ["rain"]

        context.rollback()

        assert sample_mood.emotion_intensity == 4
        assert sample_mood.triggers == ["coffee", "sunlight"]
        assert not context.has_changes

    def test_rollback_drops_pending_inserts(self, context, sample_mood):
        context.create(sample_mood)
        context.rollback()
        assert context.fetch(MoodEntry) == []
        assert context.save() is False

    def test_rollback_restores_deleted(self, context, sample_mood):
        context.create(sample_mood)
        context.save()
        context.delete(sample_mood)
        assert context.fetch(MoodEntry) == []

        context.rollback()
        assert context.fetch(MoodEntry) == [sample_mood]

    def test_reset_forgets_tracking(self, context, sample_mood):
        context.create(sample_mood)
        context.save()
        context.reset()

        loaded = context.get(MoodEntry, sample_mood.id)
        assert loaded is not sample_mood
        assert loaded.model_dump() == sample_mood.model_dump()


class TestFetch:
    """Tests for querying records."""

    def test_newest_first(self, context, sample_mood, anxious_mood):
        context.create(anxious_mood)
        context.create(sample_mood)
        context.save()
        assert context.fetch(MoodEntry) == [sample_mood, anxious_mood]
        assert context.fetch(MoodEntry, descending=False) == [anxious_mood, sample_mood]

    def test_pending_records_visible(self, context, sample_mood):
        context.create(sample_mood)
        assert context.fetch(MoodEntry) == [sample_mood]
        assert context.first(MoodEntry) is sample_mood

    def test_equality_filter(self, context, sample_mood, anxious_mood):
        context.create(sample_mood)
        context.create(anxious_mood)
        context.save()
        assert context.fetch(MoodEntry, primary_emotion="Anxious") == [anxious_mood]

    def test_equality_filter_sees_unsaved_change(self, context, sample_mood):
        context.create(sample_mood)
        context.save()
        sample_mood.primary_emotion = "Joyful"
        assert context.fetch(MoodEntry, primary_emotion="Calm") == []
        assert context.fetch(MoodEntry, primary_emotion="Joyful") == [sample_mood]

    def test_filter_values_converted_to_field_type(self, context, sample_mood, anxious_mood, sample_session):
        context.create(sample_mood)
        context.create(anxious_mood)
        context.create(sample_session)
        context.link(sample_mood, sample_session)
        context.save()

        fresh = PersistenceContext(context.database)
        assert [e.id for e in fresh.fetch(MoodEntry, id=str(anxious_mood.id))] == [anxious_mood.id]
        assert fresh.count(BreathingSession, mood_entry_id=str(sample_mood.id)) == 1
        assert fresh.count(BreathingSession, breathing_pattern="4-7-8") == 1

    def test_predicate_and_limit(self, context):
        for intensity in range(6):
            context.new(
                MoodEntry,
                primary_emotion="Calm",
                emotion_intensity=intensity,
                date=datetime.now() - timedelta(hours=intensity),
            )
        context.save()

        strong = context.fetch(MoodEntry, predicate=lambda e: e.emotion_intensity >= 3)
        assert [e.emotion_intensity for e in strong] == [3, 4, 5]
        assert len(context.fetch(MoodEntry, limit=2)) == 2
        assert context.count(MoodEntry, predicate=lambda e: e.emotion_intensity < 3) == 3

    def test_order_by_other_field(self, context, sample_session, partial_session):
        context.create(sample_session)
        context.create(partial_session)
        result = context.fetch(BreathingSession, order_by="duration", descending=False)
        assert result == [partial_session, sample_session]

    def test_missing_values_sort_last(self, context, sample_session, partial_session):
        context.create(sample_session)
        context.create(partial_session)
        result = context.fetch(BreathingSession, order_by="mood_before", descending=False)
        assert result == [sample_session, partial_session]

    def test_unknown_field_rejected(self, context):
        with pytest.raises(ValueError):
            context.fetch(MoodEntry, colour="blue")

    def test_same_instance_returned(self, context, memory_db, sample_mood):
        context.create(sample_mood)
        context.save()
        other = PersistenceContext(memory_db)
        first = other.get(MoodEntry, sample_mood.id)
        assert other.fetch(MoodEntry)[0] is first

    def test_types_kept_apart(self, context, sample_mood, sample_gratitude):
        context.create(sample_mood)
        context.create(sample_gratitude)
        assert context.fetch(GratitudeEntry) == [sample_gratitude]
        assert context.get(GratitudeEntry, sample_mood.id) is None

    def test_get_missing(self, context, sample_mood):
        assert context.get(MoodEntry, sample_mood.id) is None


class TestDelete:
    """Tests for deleting records."""

    def test_delete_saved_record(self, context, memory_db, sample_gratitude):
        context.create(sample_gratitude)
        context.save()
        context.delete(sample_gratitude)
        assert context.get(GratitudeEntry, sample_gratitude.id) is None
        context.save()
        assert memory_db.load(GratitudeEntry) == []

    def test_delete_pending_insert(self, context, sample_gratitude):
        context.create(sample_gratitude)
        context.delete(sample_gratitude)
        assert context.save() is False

    def test_delete_unknown_is_noop(self, context, sample_gratitude):
        context.delete(sample_gratitude)
        assert not context.has_changes


class TestMoodBreathingLink:
    """Tests for the one-to-one mood entry / breathing session link."""

    def test_link_round_trip(self, context, memory_db, sample_mood, sample_session):
        context.create(sample_mood)
        context.create(sample_session)
        context.link(sample_mood, sample_session)
        context.save()

        fresh = PersistenceContext(memory_db)
        mood = fresh.get(MoodEntry, sample_mood.id)
        session = fresh.breathing_session_for(mood)
        assert session is not None
        assert session.id == sample_session.id

    def test_relink_moves_link(self, context, memory_db, sample_mood, sample_session, partial_session):
        context.create(sample_mood)
        context.create(sample_session)
        context.link(sample_mood, sample_session)
        context.save()

        context.create(partial_session)
        context.link(sample_mood, partial_session)
        context.save()

        assert sample_session.mood_entry_id is None
        assert context.breathing_session_for(sample_mood) is partial_session
        stored = memory_db.load(BreathingSession, mood_entry_id=sample_mood.id)
        assert [s.id for s in stored] == [partial_session.id]

    def test_unlink(self, context, sample_mood, sample_session):
        context.create(sample_mood)
        context.create(sample_session)
        context.link(sample_mood, sample_session)
        context.save()

        context.unlink(sample_session)
        context.save()
        assert context.breathing_session_for(sample_mood) is None

    def test_link_requires_tracked_records(self, context, sample_mood, sample_session):
        context.create(sample_session)
        with pytest.raises(StorageError):
            context.link(sample_mood, sample_session)

    def test_deleting_mood_clears_link(self, context, memory_db, sample_mood, sample_session):
        context.create(sample_mood)
        context.create(sample_session)
        context.link(sample_mood, sample_session)
        context.save()

        context.delete(sample_mood)
        assert sample_session.mood_entry_id is None
        context.save()

        stored = memory_db.load_one(BreathingSession, sample_session.id)
        assert stored is not None
        assert stored.mood_entry_id is None

    def test_link_to_missing_mood_fails_on_save(self, context, memory_db, sample_session):
        sample_session.mood_entry_id = MoodEntry(primary_emotion="Calm").id
        context.create(sample_session)
        with pytest.raises(SaveFailure):
            context.save()
        assert memory_db.load(BreathingSession) == []


class TestPreferences:
    """Tests for the single preferences record."""

    def test_created_on_first_use(self, context, memory_db):
        prefs = context.preferences()
        assert prefs.preferred_theme == Theme.ADAPTIVE
        assert len(memory_db.load(UserPreferences)) == 1
        assert not context.has_changes

    def test_single_record(self, context, memory_db):
        first = context.preferences()
        assert context.preferences() is first
        assert PersistenceContext(memory_db).preferences().id == first.id
        assert len(memory_db.load(UserPreferences)) == 1

    def test_does_not_save_other_changes(self, context, memory_db, sample_mood):
        context.create(sample_mood)
        context.preferences()
        assert memory_db.load(MoodEntry) == []
        assert context.has_changes

    def test_second_record_rejected(self, context, memory_db):
        context.preferences()
        with pytest.raises(StorageError):
            context.create(UserPreferences())
        assert not context.has_changes
        assert len(memory_db.load(UserPreferences)) == 1

    def test_second_record_rejected_before_first_save(self, context):
        context.create(UserPreferences())
        with pytest.raises(StorageError):
            context.create(UserPreferences(preferred_theme=Theme.DARK))

    def test_replaced_after_delete(self, context, memory_db):
        old = context.preferences()
        context.delete(old)
        new = context.create(UserPreferences(preferred_theme=Theme.DARK))
        context.save()
        assert [p.id for p in memory_db.load(UserPreferences)] == [new.id]
        assert context.preferences() is new

    def test_store_rejects_second_row(self, memory_db):
        memory_db.write(inserts=[UserPreferences()])
        with pytest.raises(SaveFailure):
            memory_db.write(inserts=[UserPreferences()])
        assert len(memory_db.load(UserPreferences)) == 1


class TestAchievementRefresh:
    """Tests for achievements driven by stored activity."""

    def test_catalogue_created(self, context):
        refresh_achievements(context)
        context.save()
        assert context.count(Achievement) == 8
        assert context.count(Achievement, is_unlocked=True) == 0

    def test_first_breath_unlocked(self, context, sample_session):
        context.create(sample_session)
        unlocked = refresh_achievements(context)
        assert [a.title for a in unlocked] == ["First Breath"]
        context.save()

        first_breath = context.first(Achievement, title="First Breath")
        assert first_breath.is_unlocked
        assert first_breath.date_earned is not None

    def test_refresh_is_idempotent(self, context, sample_session):
        context.create(sample_session)
        refresh_achievements(context)
        context.save()
        assert refresh_achievements(context) == []
        assert context.save() is False

    def test_streak_counts_consecutive_days(self, context):
        now = datetime.now()
        for days in range(3):
            context.new(MoodEntry, primary_emotion="Calm", date=now - timedelta(days=days))
        refresh_achievements(context, now=now)
        streak = context.first(Achievement, title="Three-Day Streak")
        assert streak.is_unlocked
        assert not context.first(Achievement, title="Weekly Ritual").is_unlocked

    def test_only_completed_work_counts(self, context, sample_thought):
        context.create(sample_thought)
        context.new(DailyIntention, intention_text="Rest", is_completed=False)
        refresh_achievements(context)
        assert context.first(Achievement, title="Reframer").progress == 0
        assert context.first(Achievement, title="Intentional").progress == 0

    def test_progress_never_goes_back(self, context, sample_session):
        context.create(sample_session)
        refresh_achievements(context)
        context.save()

        context.delete(sample_session)
        refresh_achievements(context)
        assert context.first(Achievement, title="First Breath").is_unlocked

    def test_emergency_sessions_not_counted(self, context):
        context.new(EmergencySession, trigger_emotion="Panic", intensity_before=9)
        context.new(
            BreathingSession, breathing_pattern=BreathingPattern.BOX, duration=30, completion_percentage=10
        )
        unlocked = refresh_achievements(context)
        assert [(a.achievement_type, a.progress) for a in unlocked] == [(AchievementType.BREATHING, 1)]
        assert context.first(Achievement, title="Three-Day Streak").progress == 1
