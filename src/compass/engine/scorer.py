"""Assessment scoring: raw answer indices to a category profile and skill level."""

from __future__ import annotations

from typing import Optional, Sequence

from compass.config.settings import ScoringConfig
from compass.engine.errors import MalformedInput
from compass.engine.models import AssessmentResult, Question
from compass.engine.skill import SkillLevel


def analyze(
    answers: Sequence[int],
    questions: Sequence[Question],
    scoring: Optional[ScoringConfig] = None,
) -> AssessmentResult:
    """Score an assessment submission.

    Each selected option's weight accumulates into its question's category and
    is normalised against the best weight available in that category. The
    aggregate score across all questions picks the skill level.

    Raises:
        MalformedInput: no questions, a count mismatch, or an option index
            outside the question's options.
    """
    scoring = scoring or ScoringConfig()
    if not questions:
        raise MalformedInput("Assessment has no questions")
    if len(answers) != len(questions):
        raise MalformedInput(
            f"Expected {len(questions)} answers, got {len(answers)}"
        )

    earned: dict[str, float] = {}
    possible: dict[str, float] = {}

    for position, (answer, question) in enumerate(zip(answers, questions)):
        if len(question.weights) != len(question.options):
            raise MalformedInput(
                f"Question {question.id} has {len(question.options)} options "
                f"but {len(question.weights)} weights"
            )
        if isinstance(answer, bool) or not isinstance(answer, int):
            raise MalformedInput(f"Answer {position} is not an option index: {answer!r}")
        if answer < 0 or answer >= len(question.options):
            raise MalformedInput(
                f"Answer {position} selects option {answer}, "
                f"question {question.id} has {len(question.options)}"
            )
        earned[question.category] = earned.get(question.category, 0.0) + question.weights[answer]
        possible[question.category] = possible.get(question.category, 0.0) + question.max_weight

    category_scores = {
        category: _ratio(earned[category], possible[category]) for category in earned
    }
    overall = _ratio(sum(earned.values()), sum(possible.values()))

    return AssessmentResult(
        skill_level=SkillLevel.from_score(
            overall, scoring.intermediate_threshold, scoring.advanced_threshold
        ),
        category_scores=category_scores,
        overall_score=overall,
    )


def _ratio(value: float, maximum: float) -> float:
    if maximum <= 0:
        return 0.0
    # Negative weights are allowed as penalties but never push a score out of range
    return min(max(value / maximum, 0.0), 1.0)
