"""
Tests for committing steps: monotonic progress and the validate/complete protocol.
"""
import pytest

from masala_chef.errors import (
    InvalidOperationError, InvalidOptionError, SessionAlreadyCompleteError,
    SessionNotStartedError, StepAlreadyCompletedError, StepNotFoundError,
    StepNotValidatedError,
)
from masala_chef.engine.session import RecipeSession
from masala_chef.models.schemas import IngredientKey, Milestone, SessionPhase


class TestCompleteStep:
    """Tests for a single completion."""

    def test_completion_result(self, session, cook):
        """Completing step 1 unlocks washing and reports what is legal next."""
        (completion,) = cook(session, [1])

        assert completion.step.id == 1
        assert completion.points == 10
        assert completion.milestones_set == [Milestone.POTATO_WASHED]
        assert [step.id for step in completion.next_steps] == [2, 4]
        assert completion.session_complete is False
        assert completion.summary is None

    def test_spice_steps_open_after_oil(self, session, cook):
        """After the oil, every substance step becomes legal at once."""
        completions = cook(session, [1, 2, 3, 4, 5, 6])

        assert [step.id for step in completions[-1].next_steps] == [7, 8, 9, 10, 11]

    def test_shared_milestone_set_once(self, session, cook):
        """Only the first spice reports spices_added as new."""
        completions = cook(session, [1, 2, 3, 4, 5, 6, 7, 8])

        assert completions[-2].milestones_set == [Milestone.SPICES_ADDED]
        assert completions[-1].milestones_set == []

    def test_ingredient_log_records_option(self, session, cook):
        """Substance steps log the canonical ingredient with the chosen quantity."""
        cook(session, [1, 2, 3, 4, 5, 6, 7], options={7: "1/2 tsp"})

        assert session.state.ingredient_log == {
            IngredientKey.OIL: "2 tbsp",
            IngredientKey.ZEERA: "1/2 tsp",
        }

    def test_step_log_entry(self, session, cook, clock):
        """Each completion appends a log entry with its elapsed time."""
        cook(session, [1, 2], seconds_per_step=20)

        entry = session.state.step_log[-1]
        assert entry.step_id == 2
        assert entry.elapsed_seconds == 40
        assert entry.points == 10

    def test_monotonic_progress(self, session, cook):
        """History only grows and milestones never revert."""
        previous_flags = session.get_milestone_flags()
        previous_len = 0

        for step_id in range(1, 14):
            cook(session, [step_id])
            flags = session.get_milestone_flags()

            assert len(session.state.completed_step_ids) == previous_len + 1
            assert len(set(session.state.completed_step_ids)) == previous_len + 1
            assert all(flags[m] for m, reached in previous_flags.items() if reached)

            previous_flags, previous_len = flags, previous_len + 1

    def test_last_step_finalizes(self, session, cook):
        completions = cook(session, range(1, 14))

        assert completions[-1].session_complete is True
        assert completions[-1].summary is not None
        assert completions[-1].next_steps == []
        assert session.phase == SessionPhase.COMPLETE


class TestProtocolMisuse:
    """complete_step calls that break the protocol change nothing."""

    def test_requires_validation(self, session):
        """A step cannot be completed without a legal validation first."""
        before = session.state.model_copy(deep=True)

        with pytest.raises(StepNotValidatedError) as exc_info:
            session.complete_step(1)

        assert exc_info.value.status_code == 409
        assert session.state == before

    def test_rejected_validation_does_not_authorize(self, session):
        """An illegal attempt does not clear its step for completion."""
        session.validate("peel", "potato")

        with pytest.raises(StepNotValidatedError):
            session.complete_step(2)

    def test_authorization_is_single_use(self, session, cook):
        cook(session, [1])

        with pytest.raises(StepAlreadyCompletedError):
            session.complete_step(1)

    def test_duplicate_cannot_be_completed(self, session, cook):
        """A legal duplicate is not a licence to complete again."""
        cook(session, [1, 2, 3, 4, 5, 6, 7])
        score = session.score

        assert session.validate("add_spice", "cumin").duplicate is True
        with pytest.raises(StepAlreadyCompletedError):
            session.complete_step(7)
        assert session.score == score

    def test_unknown_step(self, session):
        with pytest.raises(StepNotFoundError) as exc_info:
            session.complete_step(99)
        assert exc_info.value.status_code == 404

    def test_invalid_option(self, session, cook):
        """Options outside the menu are rejected and the step stays authorized."""
        cook(session, [1, 2, 3, 4])
        session.validate("set_heat", "stove")

        with pytest.raises(InvalidOptionError) as exc_info:
            session.complete_step(5, "volcanic")
        assert exc_info.value.details["options"] == ["low", "medium", "high"]
        assert not session.state.is_completed(5)

        completion = session.complete_step(5, "medium")
        assert completion.step.id == 5

    def test_not_started(self, clock, config):
        s = RecipeSession("aloo_bhujia", config=config, clock=clock)

        with pytest.raises(SessionNotStartedError):
            s.complete_step(1)
        with pytest.raises(SessionNotStartedError):
            s.select_base_ingredient()

    def test_after_completion(self, session, cook):
        cook(session, range(1, 14))

        with pytest.raises(SessionAlreadyCompleteError):
            session.complete_step(1)

    def test_double_start(self, session):
        with pytest.raises(InvalidOperationError):
            session.start()

    def test_misuse_is_logged(self, session, caplog):
        """Protocol misuse is a warning, not an error."""
        with pytest.raises(StepNotValidatedError):
            session.complete_step(1)

        warnings = [r for r in caplog.records if r.levelname == "WARNING"]
        assert warnings
        assert "step 1" in warnings[-1].getMessage().lower()
