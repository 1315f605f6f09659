"""CLI tests for the braineath command."""

from braineath.cli.app import app
from braineath.core.achievements import Achievement
from braineath.core.breathing import BreathingPattern, BreathingSession
from braineath.core.emergency import EmergencySession
from braineath.core.journal import DailyIntention, GratitudeEntry
from braineath.core.mood import MoodEntry
from braineath.core.preferences import Theme
from braineath.core.thought import CognitiveDistortion, ThoughtRecord


def _short(record) -> str:
    return str(record.id)[:8]


class TestMoodCommands:
    """Tests for mood commands."""

    def test_log_mood(self, cli_runner, open_store):
        result = cli_runner.invoke(
            app, ["mood", "log", "calm", "--intensity", "4", "--stress", "2", "-t", "work", "-t", "coffee"]
        )
        assert result.exit_code == 0, result.output
        assert "Mood logged: Calm" in result.output
        assert "Achievement unlocked: First Step" in result.output

        entries = open_store().fetch(MoodEntry)
        assert len(entries) == 1
        assert entries[0].primary_emotion == "Calm"
        assert entries[0].triggers == ["work", "coffee"]

    def test_out_of_range_rejected(self, cli_runner, open_store):
        result = cli_runner.invoke(app, ["mood", "log", "Calm", "--intensity", "12"])
        assert result.exit_code == 1
        assert "Invalid value" in result.output
        assert open_store().fetch(MoodEntry) == []

    def test_list_and_trend(self, cli_runner, isolated_store):
        cli_runner.invoke(app, ["mood", "log", "Joyful", "--intensity", "8"])
        result = cli_runner.invoke(app, ["mood", "list"])
        assert result.exit_code == 0
        assert "Joyful" in result.output

        result = cli_runner.invoke(app, ["mood", "trend", "--days", "3"])
        assert result.exit_code == 0
        assert "8.0" in result.output

    def test_delete_keeps_linked_session(self, cli_runner, open_store):
        cli_runner.invoke(app, ["mood", "log", "Anxious", "--intensity", "7"])
        mood = open_store().first(MoodEntry)
        cli_runner.invoke(app, ["breathe", "log", "box", "--duration", "120", "--mood", _short(mood)])

        result = cli_runner.invoke(app, ["mood", "delete", _short(mood)])
        assert result.exit_code == 0, result.output

        context = open_store()
        assert context.fetch(MoodEntry) == []
        session = context.first(BreathingSession)
        assert session is not None
        assert session.mood_entry_id is None

    def test_delete_unknown_id(self, cli_runner, isolated_store):
        result = cli_runner.invoke(app, ["mood", "delete", "ffffffff"])
        assert result.exit_code == 2


class TestBreathingCommands:
    """Tests for breathing commands."""

    def test_log_linked_session(self, cli_runner, open_store):
        cli_runner.invoke(app, ["mood", "log", "Stressed", "--intensity", "8"])
        mood = open_store().first(MoodEntry)

        result = cli_runner.invoke(
            app,
            ["breathe", "log", "4-7-8", "--duration", "300", "--before", "3", "--after", "6",
             "--mood", _short(mood)],
        )
        assert result.exit_code == 0, result.output
        assert "Mood improved by 3" in result.output

        context = open_store()
        session = context.first(BreathingSession)
        assert session.breathing_pattern == BreathingPattern.FOUR_SEVEN_EIGHT
        assert context.breathing_session_for(context.first(MoodEntry)) is session

    def test_completion_clamped(self, cli_runner, open_store):
        result = cli_runner.invoke(app, ["breathe", "log", "deep", "--duration", "60", "--completion", "150"])
        assert result.exit_code == 0, result.output
        assert open_store().first(BreathingSession).completion_percentage == 100

    def test_completion_not_a_number_rejected(self, cli_runner, open_store):
        result = cli_runner.invoke(app, ["breathe", "log", "deep", "--duration", "60", "--completion", "nan"])
        assert result.exit_code == 1
        assert "Invalid value" in result.output
        assert open_store().count(BreathingSession) == 0

    def test_uses_preferred_pattern(self, cli_runner, open_store):
        cli_runner.invoke(app, ["prefs", "set", "--pattern", "coherent"])
        result = cli_runner.invoke(app, ["breathe", "log", "--duration", "60"])
        assert result.exit_code == 0, result.output
        assert open_store().first(BreathingSession).breathing_pattern == BreathingPattern.COHERENT

    def test_patterns_and_stats(self, cli_runner, isolated_store):
        result = cli_runner.invoke(app, ["breathe", "patterns"])
        assert result.exit_code == 0
        assert "quick-calm" in result.output

        cli_runner.invoke(app, ["breathe", "log", "box", "--duration", "240"])
        result = cli_runner.invoke(app, ["breathe", "stats"])
        assert result.exit_code == 0
        assert "Sessions: 1" in result.output


class TestJournalCommands:
    """Tests for gratitude and intention commands."""

    def test_gratitude_add_and_export(self, cli_runner, open_store, tmp_path):
        result = cli_runner.invoke(app, ["gratitude", "add", "Morning coffee", "-c", "Small pleasures"])
        assert result.exit_code == 0, result.output
        assert "Gratitude noted" in result.output

        entry = open_store().first(GratitudeEntry)
        assert entry.is_private is True
        assert entry.category == "Small pleasures"

        output = tmp_path / "gratitude.txt"
        result = cli_runner.invoke(app, ["gratitude", "export", "--output", str(output)])
        assert result.exit_code == 0
        assert "[Small pleasures]: Morning coffee" in output.read_text()

    def test_export_to_missing_directory(self, cli_runner, isolated_store, tmp_path):
        cli_runner.invoke(app, ["gratitude", "add", "Rain on the window"])
        output = tmp_path / "no-such-dir" / "gratitude.txt"
        result = cli_runner.invoke(app, ["gratitude", "export", "--output", str(output)])
        assert result.exit_code == 1
        assert "Could not write" in result.output
        assert not isinstance(result.exception, OSError)
        assert not output.exists()

    def test_blank_gratitude_rejected(self, cli_runner, open_store):
        result = cli_runner.invoke(app, ["gratitude", "add", "   "])
        assert result.exit_code == 1
        assert open_store().fetch(GratitudeEntry) == []

    def test_intention_lifecycle(self, cli_runner, open_store):
        cli_runner.invoke(app, ["intention", "set", "Drink more water"])
        intention = open_store().first(DailyIntention)

        result = cli_runner.invoke(app, ["intention", "done", _short(intention)])
        assert result.exit_code == 0, result.output
        assert "Completed" in result.output

        stored = open_store().first(DailyIntention)
        assert stored.is_completed
        assert stored.reflection.startswith("Completed on")

        cli_runner.invoke(app, ["intention", "reflect", _short(intention), "Felt great"])
        assert open_store().first(DailyIntention).reflection == "Felt great"

        result = cli_runner.invoke(app, ["intention", "today"])
        assert "Drink more water" in result.output


class TestThoughtCommands:
    """Tests for thought record commands."""

    def test_add_and_reframe(self, cli_runner, open_store):
        result = cli_runner.invoke(
            app,
            ["thought", "add", "--situation", "Exam tomorrow", "--thought", "I will fail",
             "--emotion", "Fear", "--intensity", "8", "-d", "catastrophizing"],
        )
        assert result.exit_code == 0, result.output
        record = open_store().first(ThoughtRecord)
        assert record.cognitive_distortions == [CognitiveDistortion.CATASTROPHIZING]
        assert not record.is_complete

        result = cli_runner.invoke(
            app,
            ["thought", "reframe", _short(record), "--balanced", "I studied and can pass",
             "--intensity", "4", "--emotion", "Hope"],
        )
        assert result.exit_code == 0, result.output
        assert "down by 4" in result.output
        reframed = open_store().first(ThoughtRecord)
        assert reframed.is_complete
        assert reframed.emotion_after == "Hope"

    def test_prompts_for_missing_fields(self, cli_runner, open_store):
        result = cli_runner.invoke(app, ["thought", "add"], input="Traffic\nI'm always late\nAnger\n6\n")
        assert result.exit_code == 0, result.output
        assert open_store().first(ThoughtRecord).automatic_thought == "I'm always late"

    def test_distortions_reference(self, cli_runner, isolated_store):
        result = cli_runner.invoke(app, ["thought", "distortions"])
        assert result.exit_code == 0
        assert "mind-reading" in result.output


class TestEmergencyCommands:
    """Tests for SOS commands."""

    def test_session_flow(self, cli_runner, open_store):
        result = cli_runner.invoke(app, ["sos", "start", "--distress", "9"])
        assert result.exit_code == 0, result.output
        assert "Panic" in result.output
        session = open_store().first(EmergencySession)

        result = cli_runner.invoke(app, ["sos", "technique", _short(session), "2"])
        assert result.exit_code == 0, result.output
        assert "Name 5 things you can see" in result.output

        result = cli_runner.invoke(app, ["sos", "finish", _short(session), "--distress", "4"])
        assert result.exit_code == 0, result.output
        assert "Distress down by 5" in result.output

        stored = open_store().first(EmergencySession)
        assert stored.techniques_used == ["5-4-3-2-1 grounding"]
        assert stored.intensity_after == 4

    def test_unknown_technique(self, cli_runner, isolated_store):
        result = cli_runner.invoke(app, ["sos", "technique", "abc", "juggling"])
        assert result.exit_code == 2


class TestProfileCommands:
    """Tests for preferences, reminders, achievements and history."""

    def test_set_preferences(self, cli_runner, open_store):
        result = cli_runner.invoke(app, ["prefs", "set", "--theme", "dark", "--no-sound"])
        assert result.exit_code == 0, result.output
        prefs = open_store().preferences()
        assert prefs.preferred_theme == Theme.DARK
        assert prefs.sound_enabled is False
        assert prefs.haptic_enabled is True

    def test_reminders(self, cli_runner, open_store):
        result = cli_runner.invoke(app, ["prefs", "reminder", "add", "21:30"])
        assert result.exit_code == 0, result.output
        cli_runner.invoke(app, ["prefs", "reminder", "add", "08:00"])

        result = cli_runner.invoke(app, ["reminders", "--count", "2"])
        assert result.exit_code == 0
        assert "08:00" in result.output or "21:30" in result.output

        cli_runner.invoke(app, ["prefs", "reminder", "remove", "21:30"])
        times = [t.strftime("%H:%M") for t in open_store().preferences().reminder_times]
        assert times == ["08:00"]

    def test_bad_reminder_time(self, cli_runner, isolated_store):
        result = cli_runner.invoke(app, ["prefs", "reminder", "add", "9am"])
        assert result.exit_code == 2

    def test_show_preferences(self, cli_runner, isolated_store):
        result = cli_runner.invoke(app, ["prefs", "show"])
        assert result.exit_code == 0
        assert "adaptive" in result.output

    def test_achievements(self, cli_runner, open_store):
        cli_runner.invoke(app, ["breathe", "log", "box", "--duration", "60"])
        result = cli_runner.invoke(app, ["achievements"])
        assert result.exit_code == 0
        assert "First Breath" in result.output
        unlocked = open_store().fetch(Achievement, is_unlocked=True)
        assert [a.title for a in unlocked] == ["First Breath"]

    def test_history(self, cli_runner, isolated_store):
        cli_runner.invoke(app, ["gratitude", "add", "Rain on the window"])
        result = cli_runner.invoke(app, ["history"])
        assert result.exit_code == 0
        assert "insert" in result.output
        assert "GratitudeEntry" in result.output


class TestAppOptions:
    """Tests for global options and the dashboard."""

    def test_version(self, cli_runner, isolated_store):
        result = cli_runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "Braineath v" in result.output

    def test_dashboard(self, cli_runner, isolated_store):
        result = cli_runner.invoke(app, [])
        assert result.exit_code == 0, result.output
        assert "Braineath" in result.output
        assert "Wellness" not in result.output

    def test_dashboard_shows_wellness(self, cli_runner, isolated_store):
        cli_runner.invoke(app, ["mood", "log", "Joyful", "-i", "8", "-e", "8", "-s", "2", "--sleep", "8"])
        result = cli_runner.invoke(app, [])
        assert result.exit_code == 0, result.output
        assert "Wellness: 64/100 (stable)" in result.output

    def test_wellness_week(self, cli_runner, isolated_store):
        result = cli_runner.invoke(app, ["wellness"])
        assert result.exit_code == 0, result.output
        assert "Nothing recorded this week" in result.output

        cli_runner.invoke(app, ["mood", "log", "Anxious", "-i", "8", "-s", "9", "--sleep", "3"])
        result = cli_runner.invoke(app, ["wellness"])
        assert result.exit_code == 0, result.output
        assert "High stress" in result.output
        assert "More mindfulness" in result.output

    def test_db_option(self, cli_runner, isolated_store, tmp_path):
        other = tmp_path / "elsewhere" / "wellness.db"
        result = cli_runner.invoke(app, ["--db", str(other), "gratitude", "add", "Quiet evening"])
        assert result.exit_code == 0, result.output
        assert other.exists()
        assert not isolated_store.exists()

    def test_incompatible_store_reported(self, cli_runner, isolated_store):
        isolated_store.parent.mkdir(parents=True)
        isolated_store.write_bytes(b"garbage " * 500)

        result = cli_runner.invoke(app, ["mood", "list"])
        assert result.exit_code == 1
        assert "Could not open the store" in result.output
        assert isolated_store.read_bytes().startswith(b"garbage")

    def test_reset_declined(self, cli_runner, isolated_store):
        isolated_store.parent.mkdir(parents=True)
        isolated_store.write_bytes(b"garbage " * 500)

        result = cli_runner.invoke(app, ["--reset-incompatible", "mood", "list"], input="n\n")
        assert result.exit_code == 1
        assert isolated_store.read_bytes().startswith(b"garbage")

    def test_reset_confirmed(self, cli_runner, isolated_store):
        isolated_store.parent.mkdir(parents=True)
        isolated_store.write_bytes(b"garbage " * 500)

        result = cli_runner.invoke(app, ["--reset-incompatible", "mood", "list"], input="y\n")
        assert result.exit_code == 0, result.output
        assert "No mood entries yet" in result.output
        backup = isolated_store.with_name(isolated_store.name + ".bak")
        assert backup.read_bytes().startswith(b"garbage")
