"""
Progression mutator: commits a validated step to the session.
"""
import logging
from datetime import datetime
from typing import Optional

from masala_chef.engine.aliases import IngredientAliasResolver
from masala_chef.engine.progress import ProgressTracker
from masala_chef.engine.scoring import ScoringLedger
from masala_chef.engine.validator import StepValidator
from masala_chef.errors import (
    InvalidOptionError, SessionAlreadyCompleteError, SessionNotStartedError,
    StepAlreadyCompletedError, StepNotFoundError,
)
from masala_chef.models.schemas import (
    RecipeDefinition, SessionPhase, SessionState, StepCompletion, StepLogEntry,
)

logger = logging.getLogger(__name__)


class ProgressionMutator:
    """Apply the state transitions of a completed step."""

    def __init__(
        self,
        recipe: RecipeDefinition,
        resolver: IngredientAliasResolver,
        tracker: ProgressTracker,
        ledger: ScoringLedger,
        validator: StepValidator,
    ):
        self.recipe = recipe
        self.resolver = resolver
        self.tracker = tracker
        self.ledger = ledger
        self.validator = validator

    def check_can_complete(
        self,
        state: SessionState,
        step_id: int,
        chosen_option: Optional[str] = None,
    ) -> None:
        """
        Raise if completing the step now would break the protocol.

        Raises:
            SessionNotStartedError, SessionAlreadyCompleteError: Wrong phase
            StepNotFoundError: Unknown step id
            StepAlreadyCompletedError: Step already in the history
            InvalidOptionError: Option not offered by the step
        """
        if state.phase == SessionPhase.NOT_STARTED:
            raise SessionNotStartedError("complete a step")
        if state.phase == SessionPhase.COMPLETE:
            raise SessionAlreadyCompleteError("complete a step")

        step = self.recipe.get_step(step_id)
        if step is None:
            raise StepNotFoundError(step_id, self.recipe.key)
        if state.is_completed(step_id):
            raise StepAlreadyCompletedError(step_id)
        if step.options and chosen_option is not None and chosen_option not in step.options:
            raise InvalidOptionError(step_id, chosen_option, step.options)

    def complete_step(
        self,
        state: SessionState,
        step_id: int,
        chosen_option: Optional[str],
        now: datetime,
    ) -> StepCompletion:
        """
        Commit a step.

        Args:
            state: Session to update
            step_id: Step that was validated as legal
            chosen_option: Option picked by the player, if any
            now: Completion timestamp

        Returns:
            StepCompletion with points, new milestones and the steps now legal
        """
        self.check_can_complete(state, step_id, chosen_option)
        step = self.recipe.get_step(step_id)

        self.tracker.record_completion(state, step_id)
        milestones_set = self.tracker.mark(state, step.unlocks)

        if step.is_substance_step:
            state.ingredient_log[self.resolver.resolve(step.target_item)] = chosen_option

        points = self.ledger.record_step(state, step, chosen_option)

        elapsed = (now - state.started_at).total_seconds() if state.started_at else 0.0
        state.step_log.append(StepLogEntry(
            step_id=step.id,
            description=step.description,
            action=step.action,
            target_item=step.target_item,
            option=chosen_option,
            points=points,
            elapsed_seconds=max(elapsed, 0.0),
        ))

        logger.info(
            f"Step {step.id}/{self.recipe.total_steps} completed: {step.description}"
            f"{f' ({chosen_option})' if chosen_option else ''}, {points:+d} points"
        )

        summary = None
        if self.tracker.is_all_done(state):
            summary = self.ledger.finalize(state, now)

        return StepCompletion(
            step=step,
            points=points,
            milestones_set=milestones_set,
            next_steps=self.validator.legal_steps(state),
            session_complete=state.phase == SessionPhase.COMPLETE,
            summary=summary,
        )
