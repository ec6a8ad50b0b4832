"""Initial learning path generation from an assessment result."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from compass.config.settings import PathConfig
from compass.engine.errors import UnknownTrack
from compass.engine.models import AssessmentResult, Module, User


class PathGenerator:
    """Builds the first module sequence a learner sees on a track.

    The path is narrowed to what is learnable next: modules more than one tier
    above the learner are left out, as are modules two tiers below in a
    category the learner already masters. What remains is ordered weakest
    category first, with stretch modules (one tier up) pushed back.
    """

    def __init__(
        self,
        catalogs: Mapping[str, Sequence[Module]],
        config: Optional[PathConfig] = None,
    ):
        self.catalogs = catalogs
        self.config = config or PathConfig()

    def generate(self, user: User, result: AssessmentResult, track: str) -> list[Module]:
        if track not in self.catalogs:
            raise UnknownTrack(track)
        catalog = list(self.catalogs[track])
        if not catalog:
            return []

        level = result.skill_level.tier
        done = set(user.completed_modules)

        ranked: list[tuple[float, int, int, Module]] = []
        for index, module in enumerate(catalog):
            if module.id in done:
                continue
            gap = module.difficulty.tier - level
            score = result.score_for(module.category)
            if gap > 1:
                continue
            if gap < -1 and score >= self.config.mastery_threshold:
                continue
            priority = score + (self.config.stretch_penalty if gap == 1 else 0.0)
            ranked.append((round(priority, 9), module.difficulty.tier, index, module))

        ranked.sort(key=lambda item: item[:3])
        path = [module for *_, module in ranked]
        if self.config.max_modules is not None:
            path = path[: self.config.max_modules]

        # Modules the learner already finished on this track lead the path
        by_id = {m.id: m for m in catalog}
        head = [by_id[mid] for mid in user.completed_modules if mid in by_id]
        return head + path
