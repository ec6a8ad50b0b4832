"""Re-ordering of a learner's remaining modules as progress comes in."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Sequence

from compass.config.settings import AdapterConfig
from compass.engine.models import Module, User


class AdaptStrategy(str, Enum):
    BALANCED = "balanced"  # weakest category first
    EXPLORE = "explore"  # less-visited categories first
    CONSOLIDATE = "consolidate"  # lower difficulty first


class PathAdapter:
    def __init__(self, config: Optional[AdapterConfig] = None):
        self.config = config or AdapterConfig()

    def strategy_for(
        self,
        current_modules: Sequence[Module],
        completed_ids: Iterable[str],
        user: User,
    ) -> AdaptStrategy:
        done = set(completed_ids)
        adaptations = user.adaptation_count
        completed_in_path = sum(1 for m in current_modules if m.id in done)

        if (
            adaptations >= self.config.stall_min_adaptations
            and completed_in_path < adaptations * self.config.stall_completion_ratio
        ):
            return AdaptStrategy.CONSOLIDATE

        if current_modules:
            hardest = max(m.difficulty.tier for m in current_modules)
            if any(m.id in done and m.difficulty.tier == hardest for m in current_modules):
                return AdaptStrategy.EXPLORE

        return AdaptStrategy.BALANCED

    def category_strength(
        self,
        current_modules: Sequence[Module],
        completed_ids: Iterable[str],
        user: User,
    ) -> dict[str, float]:
        """Blend the assessment score with the share of each category already completed."""
        done = set(completed_ids)
        totals: dict[str, int] = {}
        finished: dict[str, int] = {}
        for m in current_modules:
            totals[m.category] = totals.get(m.category, 0) + 1
            if m.id in done:
                finished[m.category] = finished.get(m.category, 0) + 1

        fallback = _mean(user.category_scores.values())
        weight = self.config.completion_weight
        strength = {}
        for category, total in totals.items():
            assessed = user.category_scores.get(category, fallback)
            completion = finished.get(category, 0) / total
            strength[category] = (1 - weight) * assessed + weight * completion
        return strength

    def adapt(
        self,
        current_modules: Sequence[Module],
        completed_ids: Sequence[str],
        user: User,
    ) -> list[Module]:
        """Return completed modules (in completion order) followed by the re-ordered rest.

        The ordering of the remaining modules is a function of the completion
        state alone, never of their incoming order, so adapting an already
        adapted path with the same completion state is a no-op.
        """
        by_id = {m.id: m for m in current_modules}
        head: list[Module] = []
        seen: set[str] = set()
        for module_id in completed_ids:
            if module_id in by_id and module_id not in seen:
                head.append(by_id[module_id])
                seen.add(module_id)

        remaining = [m for m in current_modules if m.id not in seen]
        if not remaining:
            return head

        strategy = self.strategy_for(current_modules, seen, user)
        strength = self.category_strength(current_modules, seen, user)
        visits = {category: 0 for category in strength}
        for m in head:
            visits[m.category] += 1

        def key(m: Module) -> tuple:
            tail = (m.order, m.id)
            weakness = round(strength[m.category], 9)
            if strategy is AdaptStrategy.CONSOLIDATE:
                return (m.difficulty.tier, weakness) + tail
            if strategy is AdaptStrategy.EXPLORE:
                return (visits[m.category], weakness, m.difficulty.tier) + tail
            return (weakness, m.difficulty.tier) + tail

        return head + sorted(remaining, key=key)


def _mean(values: Iterable[float]) -> float:
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)
