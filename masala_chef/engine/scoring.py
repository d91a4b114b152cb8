"""
Scoring and mistake ledger.

Per-step points are added as steps complete; the running score may go
negative. End-of-session reconciliation adds the time bonus, deducts missing
ingredients and clamps the reported score at zero.
"""
import logging
import math
from datetime import datetime
from typing import List, Optional

from masala_chef.config import Settings, settings as default_settings
from masala_chef.engine.aliases import IngredientAliasResolver
from masala_chef.models.schemas import (
    IngredientKey, Mistake, MistakeKind, RecipeDefinition, SessionPhase, SessionState,
    SessionSummary, StepDefinition,
)

logger = logging.getLogger(__name__)


def format_elapsed(seconds: float) -> str:
    """Format seconds as MM:SS."""
    total = int(max(seconds, 0))
    return f"{total // 60:02d}:{total % 60:02d}"


class ScoringLedger:
    """Accumulate per-step points and deviations, then reconcile once."""

    def __init__(
        self,
        recipe: RecipeDefinition,
        resolver: IngredientAliasResolver,
        config: Optional[Settings] = None,
    ):
        self.recipe = recipe
        self.resolver = resolver
        self.config = config or default_settings

    def is_out_of_order(self, state: SessionState, step: StepDefinition) -> bool:
        """A step is out of canonical order if a later step was completed before it."""
        return any(step_id > step.id for step_id in state.completed_step_ids if step_id != step.id)

    def record_step(
        self,
        state: SessionState,
        step: StepDefinition,
        chosen_option: Optional[str] = None,
    ) -> int:
        """
        Score one completed step.

        Args:
            state: Session being scored
            step: The step that was just completed
            chosen_option: Option the player picked, if any

        Returns:
            The points delta applied to the running score
        """
        points = self.config.step_base_points

        if step.preferred_option is not None and chosen_option is not None:
            if chosen_option == step.preferred_option:
                points += self.config.preferred_option_bonus
            else:
                points -= self.config.quantity_penalty
                state.mistakes.append(Mistake(
                    kind=MistakeKind.QUANTITY_DEVIATION,
                    step_id=step.id,
                    description=f"Incorrect quantity used: {chosen_option} instead of {step.preferred_option}",
                    expected=step.preferred_option,
                    actual=chosen_option,
                    ingredient=self.resolver.resolve(step.target_item) if step.is_substance_step else None,
                ))

        if self.is_out_of_order(state, step):
            points -= self.config.order_penalty
            position = (
                state.completed_step_ids.index(step.id) + 1
                if step.id in state.completed_step_ids
                else len(state.completed_step_ids) + 1
            )
            state.mistakes.append(Mistake(
                kind=MistakeKind.ORDER_VIOLATION,
                step_id=step.id,
                description=f"Step completed out of order: {step.description}",
                expected=str(step.id),
                actual=str(position),
            ))

        state.score += points
        logger.debug(f"Score updated: {points:+d} for step {step.id}, total score: {state.score}")
        return points

    def missing_ingredients(self, state: SessionState) -> List[IngredientKey]:
        """Required ingredients the player never added, base ingredient first."""
        missing = []
        base = self.recipe.base_ingredient
        if base is not None:
            used = any(
                self.resolver.resolve(self.recipe.get_step(step_id).target_item) == base
                for step_id in state.completed_step_ids
            )
            if not used:
                missing.append(base)

        for ingredient in self.recipe.required_ingredients:
            if ingredient not in state.ingredient_log and ingredient not in missing:
                missing.append(ingredient)
        return missing

    def time_bonus(self, elapsed_seconds: float) -> int:
        """Points for finishing under the recipe's expected duration."""
        saved_seconds = self.recipe.expected_duration_seconds - elapsed_seconds
        if saved_seconds <= 0:
            return 0
        return math.floor(saved_seconds / 60 * self.config.time_bonus_points_per_minute)

    def finalize(self, state: SessionState, ended_at: datetime) -> SessionSummary:
        """
        Reconcile the session and produce its summary.

        Idempotent: a session that already has a summary returns it unchanged.

        Args:
            state: Session to reconcile
            ended_at: End timestamp used for the time bonus

        Returns:
            SessionSummary for the persistence collaborator
        """
        if state.summary is not None:
            return state.summary

        started_at = state.started_at or ended_at
        elapsed = max((ended_at - started_at).total_seconds(), 0.0)
        bonus = self.time_bonus(elapsed)

        missing = self.missing_ingredients(state)
        for ingredient in missing:
            state.mistakes.append(Mistake(
                kind=MistakeKind.MISSING_INGREDIENT,
                description=f"Required ingredient not used: {ingredient.value}",
                ingredient=ingredient,
            ))
        penalty = len(missing) * self.config.missing_ingredient_penalty

        state.score = state.score + bonus - penalty
        state.ended_at = ended_at
        state.phase = SessionPhase.COMPLETE

        summary = SessionSummary(
            recipe_key=self.recipe.key,
            recipe_name=self.recipe.name,
            score=max(state.score, 0),
            raw_score=state.score,
            time_bonus=bonus,
            elapsed_seconds=elapsed,
            mistakes=list(state.mistakes),
            ingredient_log=dict(state.ingredient_log),
            missing_ingredients=missing,
            completed_step_ids=list(state.completed_step_ids),
            steps=list(state.step_log),
            fully_completed=len(state.completed_step_ids) == self.recipe.total_steps,
            started_at=started_at,
            ended_at=ended_at,
        )
        state.summary = summary

        logger.info(
            f"Session for {self.recipe.key} finalized: score {summary.score} "
            f"(time bonus {bonus}, {len(missing)} missing ingredients, "
            f"{len(summary.mistakes)} mistakes) in {format_elapsed(elapsed)}"
        )
        return summary
