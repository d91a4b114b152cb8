"""
Recipe session: the engine surface used by input, rendering and persistence
collaborators for one play-through.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set, Union

from masala_chef.config import Settings, settings as default_settings
from masala_chef.engine.prerequisites import PrerequisiteGraph
from masala_chef.engine.progress import ProgressTracker
from masala_chef.engine.progression import ProgressionMutator
from masala_chef.engine.recipes import RecipeCatalog, get_catalog, validate_recipe
from masala_chef.engine.scoring import ScoringLedger
from masala_chef.engine.validator import StepValidator
from masala_chef.errors import (
    InvalidOperationError, SessionAlreadyCompleteError, SessionNotStartedError,
    StepNotValidatedError,
)
from masala_chef.models.schemas import (
    ActionKind, Milestone, Progress, RecipeDefinition, SessionPhase, SessionState,
    SessionSummary, StepAttempt, StepCompletion, StepDefinition, ValidationResult,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecipeSession:
    """
    One play-through of a recipe.

    Typical flow:
        session = RecipeSession("aloo_bhujia")
        session.start()
        session.select_base_ingredient()
        result = session.validate(StepAttempt(action="wash", target_item="potato"))
        if result.legal and not result.duplicate:
            # ... run the washing animation ...
            session.complete_step(result.step_id)

    The session owns its SessionState; every mutation goes through the
    progression mutator and the scoring ledger.
    """

    def __init__(
        self,
        recipe: Union[RecipeDefinition, str, None] = None,
        catalog: Optional[RecipeCatalog] = None,
        graph: Optional[PrerequisiteGraph] = None,
        config: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize a session.

        Args:
            recipe: Recipe definition or registry key (defaults to settings.default_recipe)
            catalog: Recipe registry and alias table (defaults to the process-wide catalog)
            graph: Prerequisite graph (defaults to the standard kitchen rules)
            config: Settings for scoring constants and strictness
            clock: Returns the current time; injectable for deterministic scoring
        """
        self.config = config or default_settings
        self.catalog = catalog or get_catalog()
        self.clock = clock or utc_now

        if recipe is None:
            recipe = self.config.default_recipe
        if isinstance(recipe, str):
            recipe = self.catalog.get(recipe)
        else:
            validate_recipe(recipe, self.catalog.resolver)
        self.recipe = recipe

        self.resolver = self.catalog.resolver
        self.graph = graph or PrerequisiteGraph()
        self.tracker = ProgressTracker(recipe.total_steps)
        self.validator = StepValidator(
            recipe, self.graph, self.resolver, self.tracker,
            strict=bool(self.config.strict_content_checks),
        )
        self.ledger = ScoringLedger(recipe, self.resolver, self.config)
        self.mutator = ProgressionMutator(
            recipe, self.resolver, self.tracker, self.ledger, self.validator
        )

        self.state = SessionState(recipe_key=recipe.key)
        # Step ids a legal validation has cleared for completion
        self._authorized: Set[int] = set()

    # -- lifecycle -----------------------------------------------------------

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    @property
    def score(self) -> int:
        return self.state.score

    def start(self) -> None:
        """Begin the play-through and start the clock."""
        if self.state.phase != SessionPhase.NOT_STARTED:
            self._misuse(InvalidOperationError(
                "Cannot start: the cooking session has already started",
                details={"phase": self.state.phase.value},
            ))
        self.state.phase = SessionPhase.IN_PROGRESS
        self.state.started_at = self.clock()
        logger.info(f"Started {self.recipe.name} session ({self.recipe.total_steps} steps)")

    def reset(self) -> None:
        """Discard all progress for a replay. The session must be started again."""
        self.state = SessionState(recipe_key=self.recipe.key)
        self._authorized.clear()
        logger.info(f"Reset {self.recipe.name} session")

    def select_base_ingredient(self) -> bool:
        """
        Pick the base ingredient (the potato) out of the basket.

        Returns:
            True if this selection newly set the milestone
        """
        self._require_in_progress("select the base ingredient")
        return bool(self.tracker.mark(self.state, [Milestone.POTATO_SELECTED]))

    # -- decisions -----------------------------------------------------------

    def validate(
        self,
        attempt: Union[StepAttempt, str],
        target_item: Optional[str] = None,
        step_id: Optional[int] = None,
    ) -> ValidationResult:
        """
        Check an attempted action.

        Accepts either a StepAttempt or (action, target_item[, step_id]).
        """
        if not isinstance(attempt, StepAttempt):
            attempt = StepAttempt(action=attempt, target_item=target_item, step_id=step_id)

        result = self.validator.validate(self.state, attempt)
        if result.legal and not result.duplicate:
            self._authorized.add(result.step_id)
        return result

    def complete_step(self, step_id: int, chosen_option: Optional[str] = None) -> StepCompletion:
        """
        Commit a step previously validated as legal.

        Raises:
            InvalidOperationError: If the call breaks the validate/complete
                protocol. The session is left untouched.
        """
        try:
            self.mutator.check_can_complete(self.state, step_id, chosen_option)
            if step_id not in self._authorized:
                raise StepNotValidatedError(step_id)
        except InvalidOperationError as e:
            self._misuse(e)

        completion = self.mutator.complete_step(self.state, step_id, chosen_option, self.clock())
        self._authorized.discard(step_id)
        return completion

    def finalize(self) -> SessionSummary:
        """
        Reconcile and return the session summary.

        Called automatically when the last step completes; calling it earlier
        ends the session as it stands. Repeated calls return the same summary.
        """
        if self.state.summary is not None:
            return self.state.summary
        if self.state.phase == SessionPhase.NOT_STARTED:
            self._misuse(SessionNotStartedError("finalize"))
        self._authorized.clear()
        return self.ledger.finalize(self.state, self.clock())

    # -- read-only views -----------------------------------------------------

    def get_current_step(self) -> Optional[StepDefinition]:
        """The expected step, or None once every step is done or the session is over."""
        if self.state.phase == SessionPhase.COMPLETE:
            return None
        expected_id = self.tracker.expected_step_id(self.state)
        return self.recipe.get_step(expected_id) if expected_id else None

    def get_next_steps(self) -> List[StepDefinition]:
        """All pending steps that are legal right now."""
        return self.validator.legal_steps(self.state)

    def get_options_for_action(self, action: Union[ActionKind, str], target_item: str) -> List[str]:
        """Options of the legal pending step matching the action and target, if any."""
        try:
            action = ActionKind(action)
        except ValueError:
            return []
        ingredient = self.resolver.resolve(target_item)
        for step in self.get_next_steps():
            if self.validator.matches(step, action, target_item, ingredient):
                return list(step.options)
        return []

    def get_hints(self) -> List[str]:
        current = self.get_current_step()
        return list(current.hints) if current else []

    def get_progress(self) -> Progress:
        return self.tracker.progress(self.state)

    def is_complete(self) -> bool:
        return self.state.phase == SessionPhase.COMPLETE

    def get_milestone_flags(self) -> Dict[Milestone, bool]:
        return self.tracker.snapshot(self.state)

    def get_step(self, step_id: int) -> Optional[StepDefinition]:
        return self.recipe.get_step(step_id)

    def find_steps(self, **criteria) -> List[StepDefinition]:
        """
        Find steps whose fields equal all given criteria.

        Example:
            session.find_steps(action=ActionKind.ADD_SPICE)
        """
        return [
            step for step in self.recipe.steps
            if all(getattr(step, field, None) == value for field, value in criteria.items())
        ]

    # -- helpers -------------------------------------------------------------

    def _require_in_progress(self, operation: str) -> None:
        if self.state.phase == SessionPhase.NOT_STARTED:
            self._misuse(SessionNotStartedError(operation))
        if self.state.phase == SessionPhase.COMPLETE:
            self._misuse(SessionAlreadyCompleteError(operation))

    def _misuse(self, error: InvalidOperationError) -> None:
        logger.warning(f"Rejected invalid operation on {self.recipe.key} session: {error.message}")
        raise error
