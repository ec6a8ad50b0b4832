"""Immutable records shared by the scorer, path engines and achievement evaluator."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Iterable, Mapping, Optional

from compass.engine.errors import InvalidTransition
from compass.engine.skill import SkillLevel


@dataclass(frozen=True)
class Question:
    id: str
    prompt: str
    options: tuple[str, ...]
    category: str
    weights: tuple[float, ...]  # one per option

    @property
    def max_weight(self) -> float:
        return max(self.weights, default=0.0)


@dataclass(frozen=True)
class Assessment:
    track: str
    questions: tuple[Question, ...]


@dataclass(frozen=True)
class AssessmentResult:
    skill_level: SkillLevel
    category_scores: Mapping[str, float]
    overall_score: float

    def score_for(self, category: str) -> float:
        """Score for a category, falling back to the overall score if it was never assessed."""
        return self.category_scores.get(category, self.overall_score)


@dataclass(frozen=True)
class Module:
    id: str
    title: str
    description: str = ""
    order: int = 0  # priority hint from the catalog
    difficulty: SkillLevel = SkillLevel.BEGINNER
    category: str = "general"
    estimated_minutes: int = 30


@dataclass(frozen=True)
class LearningPath:
    id: str
    user_id: str
    track: str
    modules: tuple[Module, ...]
    adaptation_history: tuple[str, ...] = ()
    created_at: str = ""

    def module(self, module_id: str) -> Optional[Module]:
        for m in self.modules:
            if m.id == module_id:
                return m
        return None

    def progress_for(self, completed: Iterable[str]) -> float:
        """Percentage of path modules whose ids appear in ``completed``."""
        if not self.modules:
            return 0.0
        done = set(completed)
        count = sum(1 for m in self.modules if m.id in done)
        return 100.0 * count / len(self.modules)

    def adapted(self, modules: Iterable[Module], entry: str) -> "LearningPath":
        return replace(
            self,
            modules=tuple(modules),
            adaptation_history=self.adaptation_history + (entry,),
        )


@dataclass(frozen=True)
class EarnedAchievement:
    """Reference to a catalog achievement plus when it was earned."""
    achievement_id: str
    title: str
    points: int
    earned_at: str


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class UserPatch:
    """Fields to change on a User. Anything left UNSET is untouched."""
    track: Any = UNSET
    assessment_completed: Any = UNSET
    skill_level: Any = UNSET
    category_scores: Any = UNSET
    completed_modules: Any = UNSET
    current_path: Any = UNSET
    achievements: Any = UNSET

    def changes(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    @property
    def is_empty(self) -> bool:
        return not self.changes()


@dataclass(frozen=True)
class User:
    id: str
    track: str = ""
    assessment_completed: bool = False
    skill_level: Optional[SkillLevel] = None
    category_scores: Mapping[str, float] = field(default_factory=dict)
    completed_modules: tuple[str, ...] = ()
    current_path: Optional[LearningPath] = None
    achievements: tuple[EarnedAchievement, ...] = ()

    @property
    def total_points(self) -> int:
        return sum(a.points for a in self.achievements)

    @property
    def progress(self) -> float:
        if self.current_path is None:
            return 0.0
        return self.current_path.progress_for(self.completed_modules)

    @property
    def adaptation_count(self) -> int:
        """Adaptations applied after the initial path was generated."""
        if self.current_path is None:
            return 0
        return max(len(self.current_path.adaptation_history) - 1, 0)

    def has_achievement(self, achievement_id: str) -> bool:
        return any(a.achievement_id == achievement_id for a in self.achievements)

    def apply(self, patch: UserPatch) -> "User":
        """Return a new snapshot with ``patch`` applied.

        Completed modules and earned achievements are append-only, so a patch
        that would drop or reorder existing entries is rejected.
        """
        changes = patch.changes()
        if "completed_modules" in changes:
            new = tuple(changes["completed_modules"])
            if new[: len(self.completed_modules)] != self.completed_modules:
                raise InvalidTransition("Completed modules can only be appended")
            changes["completed_modules"] = new
        if "achievements" in changes:
            new = tuple(changes["achievements"])
            if new[: len(self.achievements)] != self.achievements:
                raise InvalidTransition("Earned achievements can only be appended")
            changes["achievements"] = new
        if "category_scores" in changes:
            changes["category_scores"] = dict(changes["category_scores"])
        return replace(self, **changes)
