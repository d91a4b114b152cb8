"""
CLI interface for the Masala Chef recipe engine.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import click

from masala_chef.config import settings
from masala_chef.engine.recipes import get_catalog
from masala_chef.engine.scoring import format_elapsed
from masala_chef.engine.session import RecipeSession
from masala_chef.errors import MasalaChefError
from masala_chef.models.schemas import ActionKind, SessionSummary


class ManualClock:
    """Clock that only moves when told to (for replaying a fixed timeline)."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def _parse_order(order: Optional[str], total_steps: int) -> List[int]:
    if not order:
        return list(range(1, total_steps + 1))
    try:
        return [int(part) for part in order.split(",") if part.strip()]
    except ValueError:
        raise click.BadParameter("expected comma-separated step ids, e.g. 1,2,4,3", param_hint="--order")


def _parse_choices(choices: tuple) -> Dict[int, str]:
    parsed = {}
    for choice in choices:
        step_id, sep, option = choice.partition("=")
        if not sep or not step_id.strip().isdigit():
            raise click.BadParameter(f"'{choice}' is not STEP=OPTION", param_hint="--choice")
        parsed[int(step_id)] = option.strip()
    return parsed


def _print_summary(summary: SessionSummary) -> None:
    click.echo("\n" + "=" * 60)
    click.echo(f"RESULT: {summary.recipe_name}")
    click.echo("=" * 60)
    click.echo(f"  Score:       {summary.score}")
    click.echo(f"  Time:        {format_elapsed(summary.elapsed_seconds)} (bonus {summary.time_bonus})")
    click.echo(f"  Steps done:  {len(summary.completed_step_ids)}")
    if summary.missing_ingredients:
        missing = ", ".join(i.value for i in summary.missing_ingredients)
        click.echo(f"  Missing:     {missing}")
    if summary.mistakes:
        click.echo("\n  Mistakes:")
        for mistake in summary.mistakes:
            click.echo(f"    • {mistake.description}")
    else:
        click.echo("\n  ✓ Perfect run!")


@click.group()
@click.option('--verbose', is_flag=True, help='Log engine decisions')
def cli(verbose: bool):
    """Masala Chef - recipe progression and scoring engine"""
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@cli.command()
def recipes():
    """List recipes and their steps."""
    for recipe in get_catalog().list():
        click.echo(f"\n🍳 {recipe.name} [{recipe.key}] - expected {format_elapsed(recipe.expected_duration_seconds)}")
        click.echo("-" * 60)
        for step in recipe.steps:
            options = f"  options: {', '.join(step.options)}" if step.options else ""
            preferred = f" (best: {step.preferred_option})" if step.preferred_option else ""
            click.echo(f"  {step.id:2}. {step.description:32} [{step.action.value} {step.target_item}]")
            if options:
                click.echo(f"     {options}{preferred}")


@cli.command()
@click.option('--recipe', 'recipe_key', default=None, help='Recipe key (default from settings)')
@click.option('--order', default=None, help='Comma-separated step ids in completion order')
@click.option('--choice', 'choices', multiple=True, help='STEP=OPTION, overrides the preferred option')
@click.option('--minutes', default=3.0, show_default=True, help='Total elapsed time to simulate')
@click.option('--json', 'as_json', is_flag=True, help='Print the summary as JSON')
@click.pass_context
def simulate(ctx, recipe_key, order, choices, minutes, as_json):
    """Replay a fixed sequence of steps and print the score."""
    clock = ManualClock()
    try:
        session = RecipeSession(recipe_key, clock=clock)
    except MasalaChefError as e:
        click.echo(f"❌ {e.message}")
        ctx.exit(1)

    step_ids = _parse_order(order, session.recipe.total_steps)
    picked = _parse_choices(choices)
    per_step = minutes * 60 / max(len(step_ids), 1)

    session.start()
    session.select_base_ingredient()

    for step_id in step_ids:
        step = session.get_step(step_id)
        if step is None:
            click.echo(f"❌ Step {step_id} does not exist in {session.recipe.name}")
            ctx.exit(1)

        result = session.validate(step.action.value, step.target_item, step_id=step_id)
        if not result.legal or result.duplicate:
            click.echo(f"❌ Step {step_id} ({step.description}): {result.reason or 'already added'}")
            ctx.exit(1)

        clock.advance(per_step)
        option = picked.get(step_id, step.preferred_option or (step.options[0] if step.options else None))
        try:
            session.complete_step(step_id, option)
        except MasalaChefError as e:
            click.echo(f"❌ {e.message}")
            ctx.exit(1)

    summary = session.finalize()
    if as_json:
        click.echo(summary.model_dump_json(indent=2))
    else:
        _print_summary(summary)


@cli.command()
@click.option('--recipe', 'recipe_key', default=None, help='Recipe key (default from settings)')
def play(recipe_key):
    """Cook a recipe interactively in the terminal."""
    session = RecipeSession(recipe_key)
    session.start()

    click.echo(f"\n🍳 Let's cook {session.recipe.name}!")
    click.echo("Type 'select' to pick the potato, 'finish' to stop early, 'quit' to leave.\n")

    actions = [a.value for a in ActionKind] + ["select", "finish", "quit"]

    while not session.is_complete():
        current = session.get_current_step()
        progress = session.get_progress()
        click.echo(f"[{progress.completed}/{progress.total}] Next: {current.description}")
        for hint in session.get_hints():
            click.echo(f"   💡 {hint}")

        action = click.prompt("Action", type=click.Choice(actions))
        if action == "quit":
            click.echo("Bye!")
            return
        if action == "finish":
            break
        if action == "select":
            session.select_base_ingredient()
            click.echo("✓ Potato selected")
            continue

        target = click.prompt("On what")
        result = session.validate(action, target)
        if not result.legal:
            click.echo(f"❌ {result.reason}")
            continue
        if result.duplicate:
            click.echo(f"ℹ️  {result.ingredient.value.replace('_', ' ')} is already in the pan")
            continue

        step = session.get_step(result.step_id)
        option = None
        if step.options:
            option = click.prompt("How much", type=click.Choice(step.options))
        completion = session.complete_step(step.id, option)
        click.echo(f"✓ {step.description} ({completion.points:+d})")

    _print_summary(session.finalize())


if __name__ == '__main__':
    cli()
