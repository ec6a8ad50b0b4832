"""SQLite-backed user records for Compass."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger

from compass.engine.models import (
    EarnedAchievement,
    LearningPath,
    Module,
    User,
    UserPatch,
)
from compass.engine.skill import SkillLevel


def _module_to_dict(m: Module) -> dict:
    return {
        "id": m.id,
        "title": m.title,
        "description": m.description,
        "order": m.order,
        "difficulty": m.difficulty.value,
        "category": m.category,
        "estimatedMinutes": m.estimated_minutes,
    }


def _module_from_dict(d: dict) -> Module:
    return Module(
        id=d["id"],
        title=d.get("title", ""),
        description=d.get("description", ""),
        order=d.get("order", 0),
        difficulty=SkillLevel(d.get("difficulty", "beginner")),
        category=d.get("category", "general"),
        estimated_minutes=d.get("estimatedMinutes", 30),
    )


def user_to_dict(user: User) -> dict:
    """Serialize a User, including derived fields as caches."""
    path = user.current_path
    return {
        "id": user.id,
        "track": user.track,
        "assessmentCompleted": user.assessment_completed,
        "skillLevel": user.skill_level.value if user.skill_level else None,
        "categoryScores": dict(user.category_scores),
        "completedModules": list(user.completed_modules),
        "currentPath": None if path is None else {
            "id": path.id,
            "userId": path.user_id,
            "track": path.track,
            "modules": [_module_to_dict(m) for m in path.modules],
            "progress": path.progress_for(user.completed_modules),
            "adaptationHistory": list(path.adaptation_history),
            "createdAt": path.created_at,
        },
        "achievements": [
            {
                "id": a.achievement_id,
                "title": a.title,
                "points": a.points,
                "earnedAt": a.earned_at,
            }
            for a in user.achievements
        ],
        "totalPoints": user.total_points,
    }


def user_from_dict(d: dict) -> User:
    """Rebuild a User. Cached ``progress`` and ``totalPoints`` are ignored."""
    raw_path = d.get("currentPath")
    path = None
    if raw_path:
        path = LearningPath(
            id=raw_path["id"],
            user_id=raw_path.get("userId", d["id"]),
            track=raw_path.get("track", ""),
            modules=tuple(_module_from_dict(m) for m in raw_path.get("modules", [])),
            adaptation_history=tuple(raw_path.get("adaptationHistory", [])),
            created_at=raw_path.get("createdAt", ""),
        )
    return User(
        id=d["id"],
        track=d.get("track", ""),
        assessment_completed=d.get("assessmentCompleted", False),
        skill_level=SkillLevel(d["skillLevel"]) if d.get("skillLevel") else None,
        category_scores=d.get("categoryScores", {}),
        completed_modules=tuple(d.get("completedModules", [])),
        current_path=path,
        achievements=tuple(
            EarnedAchievement(
                achievement_id=a["id"],
                title=a.get("title", ""),
                points=a.get("points", 0),
                earned_at=a.get("earnedAt", ""),
            )
            for a in d.get("achievements", [])
        ),
    )


class UserStore:
    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or (Path.home() / ".compass" / "users.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    user_id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

    def _conn(self) -> sqlite3.Connection:
        # isolation_level=None so apply() controls the transaction itself
        return sqlite3.connect(self.db_path, isolation_level=None)

    def get(self, user_id: str) -> Optional[User]:
        conn = self._conn()
        try:
            row = conn.execute(
                "SELECT data FROM users WHERE user_id = ?", (user_id,)
            ).fetchone()
        finally:
            conn.close()
        if not row:
            return None
        return user_from_dict(json.loads(row[0]))

    def get_or_create(self, user_id: str) -> User:
        user = self.get(user_id)
        if user is not None:
            return user
        return self.apply(user_id, UserPatch())

    def apply(self, user_id: str, patch: UserPatch) -> User:
        """Apply ``patch`` to the stored record in a single write transaction.

        The record is created if it does not exist yet. Concurrent writers for
        the same user serialize on the database write lock.
        """
        conn = self._conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT data FROM users WHERE user_id = ?", (user_id,)
            ).fetchone()
            current = user_from_dict(json.loads(row[0])) if row else User(id=user_id)
            updated = current.apply(patch)
            conn.execute(
                "INSERT OR REPLACE INTO users (user_id, data, updated_at) VALUES (?, ?, ?)",
                (user_id, json.dumps(user_to_dict(updated)), datetime.now().isoformat()),
            )
            conn.execute("COMMIT")
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

        fields = sorted(patch.changes())
        if fields:
            logger.debug(f"Updated user {user_id}: {', '.join(fields)}")
        return updated

    def reset(self, user_id: str) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM users WHERE user_id = ?", (user_id,))
