"""Shared fixtures for Braineath tests."""

from datetime import datetime, timedelta
from pathlib import Path

import pytest
from typer.testing import CliRunner

from braineath.core.achievements import Achievement, AchievementType
from braineath.core.breathing import BreathingPattern, BreathingSession
from braineath.core.emergency import EmergencySession
from braineath.core.journal import DailyIntention, GratitudeEntry
from braineath.core.mood import MoodEntry
from braineath.core.preferences import UserPreferences
from braineath.core.thought import CognitiveDistortion, ThoughtRecord
from braineath.data.context import PersistenceContext
from braineath.data.database import Database
from braineath.utils import config as config_module


# Mood fixtures
@pytest.fixture
def sample_mood():
    """Create a calm mood entry."""
    return MoodEntry(
        primary_emotion="Calm",
        emotion_intensity=4,
        energy_level=6,
        stress_level=2,
        sleep_quality=7,
        notes="Quiet morning",
        triggers=["coffee", "sunlight"],
    )


@pytest.fixture
def anxious_mood():
    """Create a high-stress mood entry from yesterday."""
    return MoodEntry(
        date=datetime.now() - timedelta(days=1),
        primary_emotion="Anxious",
        emotion_intensity=8,
        energy_level=3,
        stress_level=8,
        sleep_quality=3,
    )


# Breathing fixtures
@pytest.fixture
def sample_session():
    """Create a full 4-7-8 session."""
    return BreathingSession(
        breathing_pattern=BreathingPattern.FOUR_SEVEN_EIGHT,
        duration=300,
        completion_percentage=100,
        mood_before=4,
        mood_after=7,
    )


@pytest.fixture
def partial_session():
    """Create an abandoned box breathing session."""
    return BreathingSession(
        breathing_pattern=BreathingPattern.BOX,
        duration=90,
        completion_percentage=40,
    )


# Journal fixtures
@pytest.fixture
def sample_gratitude():
    """Create a gratitude entry."""
    return GratitudeEntry(gratitude_text="A long walk in the park", category="Nature")


@pytest.fixture
def sample_intention():
    """Create an open intention."""
    return DailyIntention(intention_text="Take three mindful pauses", category="Wellbeing")


@pytest.fixture
def sample_thought():
    """Create a thought record that has not been reframed yet."""
    return ThoughtRecord(
        situation="Presentation at work tomorrow",
        automatic_thought="I'm not good enough, everyone will judge me",
        emotion_before="Anxiety",
        intensity_before=8,
        cognitive_distortions=[CognitiveDistortion.MIND_READING, CognitiveDistortion.LABELING],
    )


@pytest.fixture
def sample_emergency():
    """Create an SOS session at high distress."""
    return EmergencySession.start(9)


@pytest.fixture
def sample_preferences():
    """Create preferences with two reminders."""
    prefs = UserPreferences()
    prefs.reminder_times = [datetime(2024, 1, 1, 21, 0).time(), datetime(2024, 1, 1, 9, 0).time()]
    return prefs


@pytest.fixture
def sample_achievement():
    """Create a locked achievement needing five steps."""
    return Achievement(
        title="Reframer",
        description="Finish 5 thought records",
        achievement_type=AchievementType.THOUGHT,
        required_progress=5,
    )


# Storage fixtures
@pytest.fixture
def memory_db():
    """Provide an in-memory database."""
    database = Database.ephemeral()
    yield database
    database.close()


@pytest.fixture
def context(memory_db) -> PersistenceContext:
    """Provide a persistence context over an in-memory database."""
    return PersistenceContext(memory_db)


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Location for an on-disk store."""
    return tmp_path / "data" / "braineath.db"


@pytest.fixture
def file_db(db_path):
    """Provide a database stored in a temporary directory."""
    database = Database(db_path)
    yield database
    database.close()


# Utility fixtures
@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI runner for command tests."""
    return CliRunner()


@pytest.fixture
def isolated_store(tmp_path, monkeypatch) -> Path:
    """Point the default configuration at a temporary directory.

    Returns the path the CLI will store its data at.
    """
    data_dir = tmp_path / "home"
    db_path = data_dir / "braineath.db"
    monkeypatch.setattr(config_module.config, "data_dir", data_dir)
    monkeypatch.setattr(config_module.config, "db_path", db_path)
    monkeypatch.delenv("BRAINEATH_DB", raising=False)
    return db_path


@pytest.fixture
def open_store(isolated_store):
    """Open the isolated store with a fresh context, for checking what the CLI saved."""
    opened = []

    def _open() -> PersistenceContext:
        database = Database(isolated_store)
        opened.append(database)
        return PersistenceContext(database)

    yield _open
    for database in opened:
        database.close()
