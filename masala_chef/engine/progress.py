"""
Progress tracking for one cooking session.

Milestone flags only ever move from False to True, and the completed-step
history is append-only.
"""
import logging
from typing import Dict, Iterable, List, Optional

from masala_chef.errors import StepAlreadyCompletedError
from masala_chef.models.schemas import Milestone, Progress, SessionState

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Read and advance the monotonic parts of a SessionState."""

    def __init__(self, total_steps: int):
        self.total_steps = total_steps

    def mark(self, state: SessionState, milestones: Iterable[Milestone]) -> List[Milestone]:
        """
        Set milestone flags.

        Args:
            state: Session to update
            milestones: Milestones that now hold

        Returns:
            The milestones that changed from False to True by this call
        """
        newly_set = []
        for milestone in milestones:
            if not state.milestones.get(milestone, False):
                state.milestones[milestone] = True
                newly_set.append(milestone)
        if newly_set:
            logger.debug(f"Milestones reached: {', '.join(m.value for m in newly_set)}")
        return newly_set

    def record_completion(self, state: SessionState, step_id: int) -> None:
        """Append a step id to the history."""
        if state.is_completed(step_id):
            raise StepAlreadyCompletedError(step_id)
        state.completed_step_ids.append(step_id)

    def snapshot(self, state: SessionState) -> Dict[Milestone, bool]:
        """Copy of the milestone flags; mutating it does not affect the session."""
        return dict(state.milestones)

    def pending_step_ids(self, state: SessionState) -> List[int]:
        done = set(state.completed_step_ids)
        return [step_id for step_id in range(1, self.total_steps + 1) if step_id not in done]

    def expected_step_id(self, state: SessionState) -> Optional[int]:
        """
        Lowest-id step not yet completed, or None when every step is done.

        While steps are completed in canonical order this is exactly
        len(completed_step_ids) + 1.
        """
        pending = self.pending_step_ids(state)
        return pending[0] if pending else None

    def is_all_done(self, state: SessionState) -> bool:
        return len(state.completed_step_ids) >= self.total_steps

    def progress(self, state: SessionState) -> Progress:
        completed = len(state.completed_step_ids)
        return Progress(
            total=self.total_steps,
            completed=completed,
            percentage=(completed / self.total_steps) * 100 if self.total_steps else 0.0,
        )
