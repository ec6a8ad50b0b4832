"""YAML track and achievement parser for Compass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from compass.engine.achievements import Achievement, parse_criteria
from compass.engine.errors import MalformedInput
from compass.engine.models import Assessment, Module, Question
from compass.engine.skill import SkillLevel


@dataclass
class TrackMeta:
    id: str
    name: str
    description: str
    icon: str = ""
    modules: list[Module] = field(default_factory=list)
    assessment: Assessment | None = None


def _number(raw, convert, where: str):
    try:
        return convert(raw)
    except (TypeError, ValueError) as e:
        raise MalformedInput(f"{where}: {raw!r} is not a number") from e


def _parse_question(raw: dict, index: int) -> Question:
    if not isinstance(raw, dict):
        raise MalformedInput(f"Question {index} is not a mapping")
    options = raw.get("Options") or []
    if not options:
        raise MalformedInput(f"Question {index} has no options")

    weights = raw.get("Weights")
    if weights is None:
        correct = raw.get("CorrectAnswer")
        if correct is None:
            raise MalformedInput(f"Question {index} needs Weights or CorrectAnswer")
        if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct < len(options):
            raise MalformedInput(f"Question {index}: CorrectAnswer {correct!r} is not an option index")
        weights = [1.0 if i == correct else 0.0 for i in range(len(options))]
    if not isinstance(weights, list) or len(weights) != len(options):
        raise MalformedInput(f"Question {index}: {len(options)} options, weights {weights!r}")

    return Question(
        id=str(raw.get("Id", f"q{index + 1}")),
        prompt=raw.get("Prompt", ""),
        options=tuple(str(o) for o in options),
        category=raw.get("Category", "general"),
        weights=tuple(_number(w, float, f"Question {index} weight") for w in weights),
    )


def _parse_module(raw: dict, index: int) -> Module:
    if not isinstance(raw, dict) or "Id" not in raw:
        raise MalformedInput(f"Module {index} has no Id")
    try:
        difficulty = SkillLevel.parse(raw.get("Difficulty", "beginner"))
    except ValueError as e:
        raise MalformedInput(f"Module {raw['Id']}: {e}") from e
    return Module(
        id=str(raw["Id"]),
        title=raw.get("Title", ""),
        description=raw.get("Description", ""),
        order=_number(raw.get("Order", index), int, f"Module {raw['Id']} Order"),
        difficulty=difficulty,
        category=raw.get("Category", "general"),
        estimated_minutes=_number(raw.get("EstimatedMinutes", 30), int, f"Module {raw['Id']} EstimatedMinutes"),
    )


def load_track(track_dir: Path) -> TrackMeta:
    """Load track.yaml from a track directory."""
    track_file = track_dir / "track.yaml"
    with open(track_file) as f:
        data = yaml.safe_load(f) or {}

    t = data.get("track") if isinstance(data, dict) else None
    if not isinstance(t, dict) or "id" not in t:
        raise MalformedInput(f"{track_file} has no track id")

    for key in ("assessment", "modules"):
        if not isinstance(t.get(key) or [], list):
            raise MalformedInput(f"{track_file}: {key} must be a list")
    questions = tuple(
        _parse_question(raw, i) for i, raw in enumerate(t.get("assessment") or [])
    )
    modules = [_parse_module(raw, i) for i, raw in enumerate(t.get("modules") or [])]
    ids = [m.id for m in modules]
    if len(ids) != len(set(ids)):
        raise MalformedInput(f"{track_file} repeats a module id")

    return TrackMeta(
        id=t["id"],
        name=t.get("name", t["id"]),
        description=t.get("description", ""),
        icon=t.get("icon", ""),
        modules=modules,
        assessment=Assessment(track=t["id"], questions=questions),
    )


def load_achievements(path: Path) -> list[Achievement]:
    """Load the achievement catalog, keeping declaration order."""
    with open(path) as f:
        raw_entries = yaml.safe_load(f) or []

    if not isinstance(raw_entries, list):
        raise MalformedInput(f"{path} must hold a list of achievements")

    achievements = []
    for raw in raw_entries:
        if not isinstance(raw, dict) or "Id" not in raw:
            raise MalformedInput(f"{path}: achievement entry without Id")
        achievements.append(Achievement(
            id=raw["Id"],
            title=raw.get("Title", raw["Id"]),
            description=raw.get("Description", ""),
            points=_number(raw.get("Points", 0), int, f"Achievement {raw['Id']} Points"),
            criteria=parse_criteria(raw.get("Criteria")),
            icon=raw.get("Icon", ""),
        ))
    return achievements
