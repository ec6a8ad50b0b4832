"""Skill levels and the thresholds that classify an assessment score."""

from __future__ import annotations

from enum import Enum


class SkillLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def tier(self) -> int:
        return _TIERS[self]

    @classmethod
    def from_score(
        cls, score: float, intermediate_threshold: float, advanced_threshold: float
    ) -> "SkillLevel":
        if score >= advanced_threshold:
            return cls.ADVANCED
        if score >= intermediate_threshold:
            return cls.INTERMEDIATE
        return cls.BEGINNER

    @classmethod
    def parse(cls, value: "str | SkillLevel") -> "SkillLevel":
        if isinstance(value, SkillLevel):
            return value
        return cls(str(value).strip().lower())


_TIERS = {
    SkillLevel.BEGINNER: 0,
    SkillLevel.INTERMEDIATE: 1,
    SkillLevel.ADVANCED: 2,
}
