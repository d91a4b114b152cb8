"""
Step validation.

Decides whether an attempted action is legal right now. Validation never
mutates the session: the caller runs its presentation first and then commits
the step through the progression mutator.
"""
import logging
from typing import List, Optional

from masala_chef.engine.aliases import IngredientAliasResolver
from masala_chef.engine.prerequisites import PrerequisiteGraph
from masala_chef.engine.progress import ProgressTracker
from masala_chef.errors import MasalaChefError, UnknownActionError, UnknownIngredientError
from masala_chef.models.schemas import (
    ActionKind, IngredientKey, Milestone, RecipeDefinition, SessionPhase, SessionState,
    StepAttempt, StepDefinition, SUBSTANCE_ACTIONS, ValidationCode, ValidationResult,
)

logger = logging.getLogger(__name__)

GENERIC_REJECTION = "That doesn't work here."


class StepValidator:
    """
    Legality checks for attempted actions.

    An attempt is legal when every prerequisite milestone of its action holds
    and it either matches the expected step or is order-flexible:
    - placing the pan may happen at any time
    - adding a substance may happen in any order once oil is in the pan
    """

    def __init__(
        self,
        recipe: RecipeDefinition,
        graph: PrerequisiteGraph,
        resolver: IngredientAliasResolver,
        tracker: ProgressTracker,
        strict: bool = False,
    ):
        """
        Initialize validator.

        Args:
            recipe: Recipe being played
            graph: Prerequisites per action kind
            resolver: Ingredient alias table
            tracker: Progress helper for the same recipe
            strict: Raise on configuration defects instead of rejecting generically
        """
        self.recipe = recipe
        self.graph = graph
        self.resolver = resolver
        self.tracker = tracker
        self.strict = strict

    def validate(self, state: SessionState, attempt: StepAttempt) -> ValidationResult:
        """
        Check whether an attempt is legal in the current state.

        Args:
            state: Session to check against (read only)
            attempt: Action, target and optional step id

        Returns:
            ValidationResult; failures carry a player-facing reason
        """
        if state.phase == SessionPhase.NOT_STARTED:
            return self._reject(ValidationCode.SESSION_NOT_STARTED, "The session has not started yet.")
        if state.phase == SessionPhase.COMPLETE:
            return self._reject(ValidationCode.SESSION_COMPLETE, "The dish is already finished!")

        try:
            action = ActionKind(attempt.action)
        except ValueError:
            return self._content_defect(
                UnknownActionError(attempt.action), ValidationCode.UNKNOWN_ACTION, attempt
            )

        ingredient = None
        if action in SUBSTANCE_ACTIONS:
            ingredient = self.resolver.resolve(attempt.target_item)
            if ingredient is None:
                return self._content_defect(
                    UnknownIngredientError(attempt.target_item),
                    ValidationCode.UNKNOWN_INGREDIENT,
                    attempt,
                )

        missing = self.graph.first_missing(action, state.milestones)
        if missing is not None:
            return self._reject(
                ValidationCode.MISSING_PREREQUISITE,
                self.graph.message_for(missing),
                missing_milestone=missing,
            )

        logged_step = self._step_adding(ingredient) if ingredient in state.ingredient_log else None
        if logged_step is not None and logged_step.action == action:
            # Legal so the player can keep interacting, but nothing advances
            logger.debug(f"Repeat of {ingredient.value} (step {logged_step.id})")
            return ValidationResult(
                legal=True,
                code=ValidationCode.DUPLICATE,
                step_id=logged_step.id,
                ingredient=ingredient,
                duplicate=True,
            )

        expected_id = self.tracker.expected_step_id(state)
        expected = self.recipe.get_step(expected_id)
        flexible = self.is_order_flexible(action, state)

        candidates = self._pending_matches(state, action, attempt.target_item, ingredient)
        if attempt.step_id is not None:
            candidates = [step for step in candidates if step.id == attempt.step_id]

        for step in candidates:
            if step.id == expected.id or flexible:
                logger.debug(
                    f"Attempt {action.value}/{attempt.target_item} is legal as step {step.id}"
                    f"{'' if step.id == expected.id else ' (order-flexible)'}"
                )
                return ValidationResult(
                    legal=True,
                    code=ValidationCode.OK,
                    step_id=step.id,
                    ingredient=ingredient,
                )

        if ingredient is not None and not candidates:
            return self._reject(
                ValidationCode.INGREDIENT_MISMATCH,
                f"This step requires {self._required_label(expected)}.",
                ingredient=ingredient,
            )

        if self._completed_matches(state, action, attempt.target_item):
            return self._reject(ValidationCode.ALREADY_COMPLETED, "Already done!")

        return self._reject(
            ValidationCode.OUT_OF_SEQUENCE,
            f"Not yet! Next step: {expected.description}",
        )

    def legal_steps(self, state: SessionState) -> List[StepDefinition]:
        """Pending steps that would validate as legal right now, in id order."""
        if state.phase != SessionPhase.IN_PROGRESS:
            return []
        expected_id = self.tracker.expected_step_id(state)
        return [
            step for step in self.recipe.steps
            if not state.is_completed(step.id)
            and self.graph.first_missing(step.action, state.milestones) is None
            and (step.id == expected_id or self.is_order_flexible(step.action, state))
        ]

    def is_order_flexible(self, action: ActionKind, state: SessionState) -> bool:
        """True if the action may complete ahead of or interleaved with its position."""
        if action == ActionKind.PLACE:
            return True
        return action in SUBSTANCE_ACTIONS and state.milestones.get(Milestone.OIL_ADDED, False)

    def matches(
        self,
        step: StepDefinition,
        action: ActionKind,
        target_item: str,
        ingredient: Optional[IngredientKey] = None,
    ) -> bool:
        """True if the action/target pair performs the given step."""
        if step.action != action:
            return False
        if step.is_substance_step:
            return ingredient is not None and self.resolver.resolve(step.target_item) == ingredient
        return self.resolver.is_same_ingredient(target_item, step.target_item)

    def _pending_matches(
        self,
        state: SessionState,
        action: ActionKind,
        target_item: str,
        ingredient: Optional[IngredientKey],
    ) -> List[StepDefinition]:
        return [
            step for step in self.recipe.steps
            if not state.is_completed(step.id) and self.matches(step, action, target_item, ingredient)
        ]

    def _completed_matches(self, state: SessionState, action: ActionKind, target_item: str) -> bool:
        return any(
            state.is_completed(step.id) and self.matches(step, action, target_item)
            for step in self.recipe.steps
        )

    def _step_adding(self, ingredient: IngredientKey) -> Optional[StepDefinition]:
        for step in self.recipe.steps:
            if step.is_substance_step and self.resolver.resolve(step.target_item) == ingredient:
                return step
        return None

    def _required_label(self, expected: StepDefinition) -> str:
        if expected.is_substance_step:
            ingredient = self.resolver.resolve(expected.target_item)
            return ingredient.value.replace("_", " ")
        return expected.description.lower()

    def _reject(self, code: ValidationCode, reason: str, **fields) -> ValidationResult:
        logger.debug(f"Attempt rejected ({code.value}): {reason}")
        return ValidationResult(legal=False, code=code, reason=reason, **fields)

    def _content_defect(
        self,
        error: MasalaChefError,
        code: ValidationCode,
        attempt: StepAttempt,
    ) -> ValidationResult:
        logger.error(
            f"Recipe content defect in {self.recipe.key}: {error.message} "
            f"(action={attempt.action!r}, target={attempt.target_item!r})"
        )
        if self.strict:
            raise error
        return ValidationResult(legal=False, code=code, reason=GENERIC_REJECTION)
