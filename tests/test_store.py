"""Tests for the SQLite user store."""

import json
import sqlite3

import pytest

from compass.engine.errors import InvalidTransition
from compass.engine.models import User, UserPatch
from compass.state.store import UserStore, user_from_dict, user_to_dict


@pytest.fixture
def store(tmp_path):
    return UserStore(db_path=tmp_path / "users.db")


@pytest.fixture
def assessed(session):
    user = User(id="u1", track="test_track")
    user = user.apply(session.complete_assessment(user, [0, 0, 0]).patch)
    return user.apply(session.complete_module(user, "m-sql-1").patch)


def test_get_missing(store):
    assert store.get("nobody") is None


def test_get_or_create(store):
    user = store.get_or_create("u1")
    assert user == User(id="u1")
    assert store.get("u1") == user


def test_apply_persists_patch(store):
    store.apply("u1", UserPatch(track="test_track"))
    assert store.get("u1").track == "test_track"


def test_round_trip_full_user(assessed):
    assert user_from_dict(user_to_dict(assessed)) == assessed


def test_derived_fields_are_cached(store, assessed, tmp_path):
    store.apply("u1", UserPatch(
        track=assessed.track,
        assessment_completed=True,
        skill_level=assessed.skill_level,
        category_scores=assessed.category_scores,
        completed_modules=assessed.completed_modules,
        current_path=assessed.current_path,
        achievements=assessed.achievements,
    ))
    conn = sqlite3.connect(tmp_path / "users.db")
    raw = json.loads(conn.execute("SELECT data FROM users WHERE user_id = 'u1'").fetchone()[0])
    conn.close()
    assert raw["totalPoints"] == 30
    assert raw["currentPath"]["progress"] == pytest.approx(25.0)


def test_stale_cached_points_are_ignored(assessed):
    data = user_to_dict(assessed)
    data["totalPoints"] = 9999
    assert user_from_dict(data).total_points == 30


def test_rejected_patch_leaves_record_untouched(store):
    store.apply("u1", UserPatch(completed_modules=("a", "b")))
    with pytest.raises(InvalidTransition):
        store.apply("u1", UserPatch(completed_modules=("b",)))
    assert store.get("u1").completed_modules == ("a", "b")


def test_reset(store):
    store.apply("u1", UserPatch(track="test_track"))
    store.reset("u1")
    assert store.get("u1") is None
