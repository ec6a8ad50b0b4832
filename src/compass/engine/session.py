"""Learner state machine: track selection → assessment → dashboard.

Every operation takes an immutable User snapshot and returns a Transition
describing the patch to apply. Nothing here writes storage; the caller applies
the patch atomically (see compass.state.store.UserStore.apply).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Sequence

from compass.config.settings import Settings
from compass.content.registry import TrackRegistry
from compass.engine.achievements import Achievement, AchievementEvaluator
from compass.engine.errors import InvalidTransition
from compass.engine.models import (
    AssessmentResult,
    EarnedAchievement,
    LearningPath,
    Module,
    User,
    UserPatch,
)
from compass.engine.path_adapter import AdaptStrategy, PathAdapter
from compass.engine.path_generator import PathGenerator
from compass.engine.scorer import analyze


class Stage(str, Enum):
    TRACK_SELECTION = "track-selection"
    ASSESSMENT = "assessment"
    DASHBOARD = "dashboard"


def stage_for(user: User) -> Stage:
    if not user.track:
        return Stage.TRACK_SELECTION
    if not user.assessment_completed:
        return Stage.ASSESSMENT
    return Stage.DASHBOARD


@dataclass
class Transition:
    patch: UserPatch = field(default_factory=UserPatch)
    new_achievements: list[Achievement] = field(default_factory=list)
    result: Optional[AssessmentResult] = None
    completed_module: Optional[Module] = None
    strategy: Optional[AdaptStrategy] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


class LearningSession:
    """Wires the scorer, path engines and achievement evaluator to a track registry."""

    def __init__(
        self,
        registry: Optional[TrackRegistry] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = _now,
    ):
        self.settings = settings or Settings.load()
        self.registry = registry or TrackRegistry(self.settings.tracks_dir)
        self.generator = PathGenerator(self.registry.module_catalogs(), self.settings.path)
        self.adapter = PathAdapter(self.settings.adapter)
        self.evaluator = AchievementEvaluator(self.registry.achievements())
        self._clock = clock

    def select_track(self, user: User, track_id: str) -> Transition:
        self.registry.get_track(track_id)
        return Transition(patch=UserPatch(
            track=track_id,
            assessment_completed=False,
            skill_level=None,
            category_scores={},
            current_path=None,
        ))

    def complete_assessment(self, user: User, answers: Sequence[int]) -> Transition:
        if not user.track:
            raise InvalidTransition("Select a track before taking the assessment")
        assessment = self.registry.get_assessment(user.track)
        result = analyze(answers, assessment.questions, self.settings.scoring)
        modules = self.generator.generate(user, result, user.track)

        now = self._clock()
        path = LearningPath(
            id=f"path_{int(now.timestamp() * 1000)}",
            user_id=user.id,
            track=user.track,
            modules=tuple(modules),
            adaptation_history=(
                f"Initial path generated based on {result.skill_level.value} level assessment",
            ),
            created_at=now.isoformat(),
        )
        patch = UserPatch(
            assessment_completed=True,
            skill_level=result.skill_level,
            category_scores=dict(result.category_scores),
            current_path=path,
        )
        updated = user.apply(patch)
        earned = self.evaluator.evaluate(updated, user.completed_modules)
        if earned:
            patch = _with_achievements(patch, user, earned, now)
        return Transition(patch=patch, new_achievements=earned, result=result)

    def complete_module(self, user: User, module_id: str) -> Transition:
        if user.current_path is None:
            raise InvalidTransition("No learning path yet")
        module = user.current_path.module(module_id)
        if module is None:
            raise InvalidTransition(f"Module {module_id} is not on the current path")
        if module_id in user.completed_modules:
            return Transition(completed_module=module)

        patch = UserPatch(completed_modules=user.completed_modules + (module_id,))
        updated = user.apply(patch)
        earned = self.evaluator.evaluate(updated, user.completed_modules)
        if earned:
            patch = _with_achievements(patch, user, earned, self._clock())
        return Transition(patch=patch, new_achievements=earned, completed_module=module)

    def adapt_path(self, user: User) -> Transition:
        path = user.current_path
        if path is None:
            raise InvalidTransition("No learning path to adapt")
        strategy = self.adapter.strategy_for(path.modules, user.completed_modules, user)
        modules = self.adapter.adapt(path.modules, user.completed_modules, user)
        entry = (
            f"Path adapted based on {len(user.completed_modules)} completed modules "
            f"({strategy.value})"
        )
        return Transition(
            patch=UserPatch(current_path=path.adapted(modules, entry)),
            strategy=strategy,
        )


def _with_achievements(
    patch: UserPatch, user: User, earned: list[Achievement], when: datetime
) -> UserPatch:
    refs = tuple(
        EarnedAchievement(
            achievement_id=a.id, title=a.title, points=a.points, earned_at=when.isoformat()
        )
        for a in earned
    )
    changes = patch.changes()
    changes["achievements"] = user.achievements + refs
    return UserPatch(**changes)
