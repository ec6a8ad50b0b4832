"""Server handler: dispatches JSON-lines requests to the learning session."""

from __future__ import annotations

from typing import Callable, Optional

from loguru import logger

from compass.config.settings import Settings
from compass.content.registry import TrackRegistry
from compass.engine.achievements import Achievement
from compass.engine.models import Module, User
from compass.engine.session import LearningSession, Transition, stage_for
from compass.state.store import UserStore, user_to_dict

from .protocol import Notification


def _module_to_dict(module: Module) -> dict:
    return {
        "id": module.id,
        "title": module.title,
        "description": module.description,
        "difficulty": module.difficulty.value,
        "category": module.category,
        "estimatedMinutes": module.estimated_minutes,
    }


def _achievement_to_dict(achievement: Achievement) -> dict:
    return {
        "id": achievement.id,
        "title": achievement.title,
        "description": achievement.description,
        "points": achievement.points,
        "icon": achievement.icon,
        "criteria": achievement.criteria.kind,
    }


def _user_view(user: User) -> dict:
    view = user_to_dict(user)
    view["stage"] = stage_for(user).value
    return view


class ServerHandler:
    """Routes incoming requests to session operations and returns result dicts."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        write_notification: Optional[Callable[[Notification], None]] = None,
    ):
        self.settings = settings or Settings.load()
        self._write_notification = write_notification or (lambda n: None)

        self.registry = TrackRegistry(self.settings.tracks_dir)
        self.store = UserStore(db_path=self.settings.data_dir / "users.db")
        self.session = LearningSession(registry=self.registry, settings=self.settings)

    async def dispatch(self, msg: dict) -> dict:
        """Route a request message to the appropriate handler method."""
        method = msg.get("method", "")
        params = msg.get("params", {})

        handler_map = {
            "listTracks": self._list_tracks,
            "getUser": self._get_user,
            "selectTrack": self._select_track,
            "getAssessment": self._get_assessment,
            "submitAssessment": self._submit_assessment,
            "completeModule": self._complete_module,
            "adaptPath": self._adapt_path,
            "listAchievements": self._list_achievements,
            "resetUser": self._reset_user,
        }

        handler = handler_map.get(method)
        if handler is None:
            raise ValueError(f"Unknown method: {method}")

        return await handler(params)

    def _commit(self, user_id: str, transition: Transition) -> User:
        user = self.store.apply(user_id, transition.patch)
        for achievement in transition.new_achievements:
            logger.info(f"{user_id} unlocked {achievement.id}")
            self._write_notification(
                Notification("achievementUnlocked", {
                    "userId": user_id,
                    "achievement": _achievement_to_dict(achievement),
                    "totalPoints": user.total_points,
                })
            )
        return user

    async def _list_tracks(self, params: dict) -> dict:
        return {
            "tracks": [
                {
                    "id": t.id,
                    "name": t.name,
                    "description": t.description,
                    "icon": t.icon,
                    "moduleCount": len(t.modules),
                    "questionCount": len(t.assessment.questions) if t.assessment else 0,
                }
                for t in self.registry.list_tracks()
            ]
        }

    async def _get_user(self, params: dict) -> dict:
        return {"user": _user_view(self.store.get_or_create(params["userId"]))}

    async def _select_track(self, params: dict) -> dict:
        user_id = params["userId"]
        user = self.store.get_or_create(user_id)
        transition = self.session.select_track(user, params["trackId"])
        return {"user": _user_view(self._commit(user_id, transition))}

    async def _get_assessment(self, params: dict) -> dict:
        assessment = self.registry.get_assessment(params["trackId"])
        return {
            "track": assessment.track,
            "questions": [
                {
                    "id": q.id,
                    "prompt": q.prompt,
                    "options": list(q.options),
                    "category": q.category,
                }
                for q in assessment.questions
            ],
        }

    async def _submit_assessment(self, params: dict) -> dict:
        user_id = params["userId"]
        user = self.store.get_or_create(user_id)
        transition = self.session.complete_assessment(user, params["answers"])
        updated = self._commit(user_id, transition)
        result = transition.result
        return {
            "skillLevel": result.skill_level.value,
            "categoryScores": dict(result.category_scores),
            "overallScore": result.overall_score,
            "newAchievements": [_achievement_to_dict(a) for a in transition.new_achievements],
            "user": _user_view(updated),
        }

    async def _complete_module(self, params: dict) -> dict:
        user_id = params["userId"]
        user = self.store.get_or_create(user_id)
        transition = self.session.complete_module(user, params["moduleId"])
        updated = self._commit(user_id, transition)
        return {
            "module": _module_to_dict(transition.completed_module),
            "progress": updated.progress,
            "newAchievements": [_achievement_to_dict(a) for a in transition.new_achievements],
            "user": _user_view(updated),
        }

    async def _adapt_path(self, params: dict) -> dict:
        user_id = params["userId"]
        user = self.store.get_or_create(user_id)
        transition = self.session.adapt_path(user)
        updated = self._commit(user_id, transition)
        return {
            "strategy": transition.strategy.value,
            "modules": [_module_to_dict(m) for m in updated.current_path.modules],
            "user": _user_view(updated),
        }

    async def _list_achievements(self, params: dict) -> dict:
        user = self.store.get(params["userId"]) if params.get("userId") else None
        return {
            "achievements": [
                dict(_achievement_to_dict(a), earned=bool(user and user.has_achievement(a.id)))
                for a in self.session.evaluator.catalog
            ]
        }

    async def _reset_user(self, params: dict) -> dict:
        self.store.reset(params["userId"])
        return {"ok": True}
