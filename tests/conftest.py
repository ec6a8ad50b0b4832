"""Shared fixtures for Compass tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
import yaml

from compass.config.settings import Settings
from compass.content.registry import TrackRegistry
from compass.engine.models import LearningPath, Module, User
from compass.engine.session import LearningSession
from compass.engine.skill import SkillLevel


@pytest.fixture
def sample_tracks_dir(tmp_path):
    """Create a tracks directory with one usable track, one empty track and an achievement catalog."""
    tracks_dir = tmp_path / "tracks"
    track_dir = tracks_dir / "test_track"
    track_dir.mkdir(parents=True)

    track_data = {
        "track": {
            "id": "test_track",
            "name": "Test Track",
            "description": "A test track",
            "assessment": [
                {
                    "Id": "q1",
                    "Prompt": "Rate your SQL",
                    "Category": "sql",
                    "Options": ["none", "some", "lots"],
                    "Weights": [0.0, 0.4, 1.0],
                },
                {
                    "Id": "q2",
                    "Prompt": "Rate your Python",
                    "Category": "python",
                    "Options": ["none", "some", "lots"],
                    "Weights": [0.0, 0.4, 1.0],
                },
                {
                    "Id": "q3",
                    "Prompt": "Which keyword defines a function?",
                    "Category": "python",
                    "Options": ["func", "def"],
                    "CorrectAnswer": 1,
                },
            ],
            "modules": [
                {"Id": "m-sql-1", "Title": "SQL Basics", "Order": 1,
                 "Difficulty": "beginner", "Category": "sql", "EstimatedMinutes": 60},
                {"Id": "m-sql-2", "Title": "Joins", "Order": 2,
                 "Difficulty": "intermediate", "Category": "sql"},
                {"Id": "m-py-1", "Title": "Python Basics", "Order": 3,
                 "Difficulty": "beginner", "Category": "python"},
                {"Id": "m-py-2", "Title": "pandas", "Order": 4,
                 "Difficulty": "intermediate", "Category": "python"},
                {"Id": "m-py-3", "Title": "Statistics", "Order": 5,
                 "Difficulty": "advanced", "Category": "python"},
                {"Id": "m-sql-3", "Title": "Window Functions", "Order": 6,
                 "Difficulty": "advanced", "Category": "sql"},
            ],
        }
    }
    with open(track_dir / "track.yaml", "w") as f:
        yaml.dump(track_data, f)

    empty_dir = tracks_dir / "empty_track"
    empty_dir.mkdir()
    with open(empty_dir / "track.yaml", "w") as f:
        yaml.dump({"track": {"id": "empty_track", "name": "Empty"}}, f)

    achievements = [
        {"Id": "first-steps", "Title": "First Steps", "Points": 10,
         "Criteria": {"type": "assessment_completed"}},
        {"Id": "first-module", "Title": "Getting Started", "Points": 20,
         "Criteria": {"type": "modules_completed", "count": 1}},
        {"Id": "five-modules", "Title": "Complete 5 modules", "Points": 5,
         "Criteria": {"type": "modules_completed", "count": 5}},
        {"Id": "category-master", "Title": "Category Master", "Points": 15,
         "Criteria": {"type": "category_mastery"}},
    ]
    with open(tracks_dir / "achievements.yaml", "w") as f:
        yaml.dump(achievements, f)

    return tracks_dir


@pytest.fixture
def registry(sample_tracks_dir):
    return TrackRegistry(sample_tracks_dir)


@pytest.fixture
def settings(tmp_path, sample_tracks_dir):
    return Settings(data_dir=tmp_path / "data", tracks_dir=sample_tracks_dir)


@pytest.fixture
def fixed_now():
    return datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def session(registry, settings, fixed_now):
    return LearningSession(registry=registry, settings=settings, clock=lambda: fixed_now)


@pytest.fixture
def catalog():
    """A small module catalog spanning three categories and all difficulties."""
    return [
        Module("sql-1", "SQL 1", order=1, difficulty=SkillLevel.BEGINNER, category="sql"),
        Module("sql-2", "SQL 2", order=2, difficulty=SkillLevel.INTERMEDIATE, category="sql"),
        Module("py-1", "Python 1", order=3, difficulty=SkillLevel.BEGINNER, category="python"),
        Module("py-2", "Python 2", order=4, difficulty=SkillLevel.INTERMEDIATE, category="python"),
        Module("py-3", "Python 3", order=5, difficulty=SkillLevel.ADVANCED, category="python"),
        Module("viz-1", "Charts", order=6, difficulty=SkillLevel.BEGINNER, category="viz"),
    ]


@pytest.fixture
def make_user():
    """Factory for a user already on a path built from the given modules."""

    def _make(modules, completed=(), history_entries=1, **kwargs) -> User:
        path = LearningPath(
            id="path_1",
            user_id="u1",
            track="test_track",
            modules=tuple(modules),
            adaptation_history=tuple(f"entry {i}" for i in range(history_entries)),
        )
        defaults = dict(
            track="test_track",
            assessment_completed=True,
            skill_level=SkillLevel.BEGINNER,
            category_scores={"sql": 0.2, "python": 0.6},
        )
        defaults.update(kwargs)
        return User(id="u1", completed_modules=tuple(completed), current_path=path, **defaults)

    return _make
