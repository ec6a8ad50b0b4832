"""Achievement catalog and evaluation.

Criteria are a closed set of tagged variants. Each variant answers one
question, ``is_met(context)``, so new catalog entries never require touching
the evaluator loop.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Optional, Sequence, Union

from compass.engine.errors import MalformedInput
from compass.engine.models import Module, User


@dataclass(frozen=True)
class EvaluationContext:
    user: User
    newly_completed: tuple[str, ...]
    touched_categories: frozenset[str]
    path_modules: tuple[Module, ...]

    @classmethod
    def build(cls, user: User, previous_completed: Sequence[str]) -> "EvaluationContext":
        before = set(previous_completed)
        new = tuple(mid for mid in user.completed_modules if mid not in before)
        modules = user.current_path.modules if user.current_path else ()
        categories = {m.id: m.category for m in modules}
        return cls(
            user=user,
            newly_completed=new,
            touched_categories=frozenset(categories[mid] for mid in new if mid in categories),
            path_modules=tuple(modules),
        )

    def completed_path_modules(self) -> list[Module]:
        """Completed path modules, in completion order."""
        by_id = {m.id: m for m in self.path_modules}
        return [by_id[mid] for mid in self.user.completed_modules if mid in by_id]


@dataclass(frozen=True)
class AssessmentCompleted:
    kind: ClassVar[str] = "assessment_completed"

    def is_met(self, ctx: EvaluationContext) -> bool:
        return ctx.user.assessment_completed


@dataclass(frozen=True)
class ModulesCompleted:
    kind: ClassVar[str] = "modules_completed"
    count: int

    def is_met(self, ctx: EvaluationContext) -> bool:
        return len(ctx.user.completed_modules) >= self.count


@dataclass(frozen=True)
class CategoryMastery:
    """Every path module of a category is complete. ``None`` means any category."""
    kind: ClassVar[str] = "category_mastery"
    category: Optional[str] = None

    def is_met(self, ctx: EvaluationContext) -> bool:
        done = set(ctx.user.completed_modules)
        by_category: dict[str, list[Module]] = {}
        for m in ctx.path_modules:
            by_category.setdefault(m.category, []).append(m)
        if self.category is not None:
            candidates = [self.category]
        else:
            candidates = sorted(by_category)
        return any(
            by_category.get(c) and all(m.id in done for m in by_category[c])
            for c in candidates
        )


@dataclass(frozen=True)
class PathCompleted:
    kind: ClassVar[str] = "path_completed"

    def is_met(self, ctx: EvaluationContext) -> bool:
        if not ctx.path_modules:
            return False
        done = set(ctx.user.completed_modules)
        return all(m.id in done for m in ctx.path_modules)


@dataclass(frozen=True)
class CategoryStreak:
    """``length`` consecutive completions within one category, at least one of them new."""
    kind: ClassVar[str] = "category_streak"
    length: int

    def is_met(self, ctx: EvaluationContext) -> bool:
        if not ctx.touched_categories:
            return False
        new = set(ctx.newly_completed)
        run: list[Module] = []
        for module in ctx.completed_path_modules():
            if run and run[-1].category != module.category:
                run = []
            run.append(module)
            if len(run) >= self.length and any(m.id in new for m in run):
                return True
        return False


Criteria = Union[AssessmentCompleted, ModulesCompleted, CategoryMastery, PathCompleted, CategoryStreak]

CRITERIA_KINDS = {
    c.kind: c
    for c in (AssessmentCompleted, ModulesCompleted, CategoryMastery, PathCompleted, CategoryStreak)
}


def parse_criteria(raw: dict) -> Criteria:
    """Build a criteria variant from its catalog form, e.g. ``{"type": "modules_completed", "count": 5}``."""
    if not isinstance(raw, dict) or "type" not in raw:
        raise MalformedInput(f"Criteria must be a mapping with a type: {raw!r}")
    params = {k: v for k, v in raw.items() if k != "type"}
    cls = CRITERIA_KINDS.get(raw["type"])
    if cls is None:
        raise MalformedInput(f"Unknown criteria type: {raw['type']}")
    try:
        return cls(**params)
    except TypeError as e:
        raise MalformedInput(f"Bad parameters for {raw['type']}: {e}") from e


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    points: int
    criteria: Criteria
    icon: str = ""


@dataclass
class AchievementEvaluator:
    catalog: Sequence[Achievement] = field(default_factory=list)

    def evaluate(self, user: User, previous_completed: Sequence[str]) -> list[Achievement]:
        """Catalog entries newly satisfied by ``user`` and not yet earned, in catalog order."""
        ctx = EvaluationContext.build(user, previous_completed)
        earned = {a.achievement_id for a in user.achievements}
        new: list[Achievement] = []
        for achievement in self.catalog:
            if achievement.id in earned:
                continue
            if achievement.criteria.is_met(ctx):
                new.append(achievement)
                earned.add(achievement.id)
        return new
