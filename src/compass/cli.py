"""CLI entry point for Compass."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from loguru import logger

from compass.config.settings import Settings
from compass.engine.errors import CompassError, InvalidTransition
from compass.engine.session import LearningSession, Transition, stage_for
from compass.state.store import UserStore


class _Context:
    def __init__(self, settings: Settings, user_id: str):
        self.settings = settings
        self.user_id = user_id
        self._session = None
        self._store = None

    @property
    def session(self) -> LearningSession:
        if self._session is None:
            self._session = LearningSession(settings=self.settings)
        return self._session

    @property
    def store(self) -> UserStore:
        if self._store is None:
            self._store = UserStore(db_path=self.settings.data_dir / "users.db")
        return self._store

    def commit(self, transition: Transition):
        user = self.store.apply(self.user_id, transition.patch)
        for a in transition.new_achievements:
            click.echo(f"Achievement unlocked: {a.title} (+{a.points} points)")
        return user


def _fail(e: CompassError) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


@click.group()
@click.option("--user", "user_id", default="local", show_default=True, help="Learner id")
@click.option("--data-dir", type=click.Path(file_okay=False), default=None, help="Where user records live")
@click.pass_context
def main(ctx: click.Context, user_id: str, data_dir: str | None) -> None:
    """Compass: personalised learning paths from a skill assessment."""
    settings = Settings.load()
    if data_dir:
        settings.data_dir = Path(data_dir)
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    ctx.obj = _Context(settings, user_id)


@main.command()
@click.pass_obj
def tracks(obj: _Context) -> None:
    """List available tracks."""
    for track in obj.session.registry.list_tracks():
        click.echo(f"  {track.id}: {track.name} ({len(track.modules)} modules)")


@main.command()
@click.argument("track_id")
@click.pass_obj
def select(obj: _Context, track_id: str) -> None:
    """Choose a track to study."""
    try:
        user = obj.store.get_or_create(obj.user_id)
        obj.commit(obj.session.select_track(user, track_id))
    except CompassError as e:
        _fail(e)
    track = obj.session.registry.get_track(track_id)
    click.echo(f"{track.name} track selected!")


@main.command()
@click.option("--answers", default=None, help="Comma-separated option indices, skips the prompts")
@click.pass_obj
def assess(obj: _Context, answers: str | None) -> None:
    """Take the diagnostic assessment for the selected track."""
    try:
        user = obj.store.get_or_create(obj.user_id)
        if not user.track:
            raise InvalidTransition("Select a track first (compass select TRACK)")
        assessment = obj.session.registry.get_assessment(user.track)

        if answers is not None:
            try:
                picked = [int(a) for a in answers.split(",") if a.strip()]
            except ValueError:
                raise click.BadParameter("answers must be integers", param_hint="--answers") from None
        else:
            picked = []
            for number, question in enumerate(assessment.questions, start=1):
                click.echo(f"\n{number}. {question.prompt}")
                for i, option in enumerate(question.options, start=1):
                    click.echo(f"   {i}) {option}")
                choice = click.prompt("Answer", type=click.IntRange(1, len(question.options)))
                picked.append(choice - 1)

        transition = obj.session.complete_assessment(user, picked)
        obj.commit(transition)
    except CompassError as e:
        _fail(e)

    click.echo(
        f"Personalized learning path generated! "
        f"You're at {transition.result.skill_level.value} level."
    )


@main.command()
@click.argument("module_id")
@click.pass_obj
def complete(obj: _Context, module_id: str) -> None:
    """Mark a module on the current path as completed."""
    try:
        user = obj.store.get_or_create(obj.user_id)
        transition = obj.session.complete_module(user, module_id)
        updated = obj.commit(transition)
    except CompassError as e:
        _fail(e)
    click.echo(f'Module "{transition.completed_module.title}" completed! ({updated.progress:.0f}%)')


@main.command()
@click.pass_obj
def adapt(obj: _Context) -> None:
    """Re-order the remaining modules based on progress so far."""
    try:
        user = obj.store.get_or_create(obj.user_id)
        transition = obj.session.adapt_path(user)
        obj.commit(transition)
    except CompassError as e:
        _fail(e)
    click.echo(f"Learning path adapted based on your progress ({transition.strategy.value}).")


@main.command()
@click.pass_obj
def status(obj: _Context) -> None:
    """Show the learner's stage, path and points."""
    user = obj.store.get_or_create(obj.user_id)
    click.echo(f"Stage: {stage_for(user).value}")
    if user.track:
        click.echo(f"Track: {user.track}")
    if user.skill_level:
        click.echo(f"Skill level: {user.skill_level.value}")
    path = user.current_path
    if path is not None:
        click.echo(f"Progress: {user.progress:.0f}%")
        done = set(user.completed_modules)
        for i, module in enumerate(path.modules, start=1):
            mark = "x" if module.id in done else " "
            click.echo(
                f"  [{mark}] {i}. {module.id}: {module.title} "
                f"({module.category}, {module.difficulty.value})"
            )
        click.echo(f"Adaptations: {len(path.adaptation_history)} entries")
    click.echo(f"Points: {user.total_points}")


@main.command()
@click.pass_obj
def achievements(obj: _Context) -> None:
    """List the achievement catalog and what has been earned."""
    user = obj.store.get_or_create(obj.user_id)
    for a in obj.session.evaluator.catalog:
        mark = "*" if user.has_achievement(a.id) else " "
        click.echo(f"  [{mark}] {a.title} ({a.points} pts) - {a.description}")


@main.command()
@click.confirmation_option(prompt="Forget this learner's track, path and achievements?")
@click.pass_obj
def reset(obj: _Context) -> None:
    """Delete the learner's record."""
    obj.store.reset(obj.user_id)
    click.echo("Reset.")
