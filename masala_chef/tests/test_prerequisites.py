"""
Tests for the prerequisite graph.
"""
import pytest

from masala_chef.engine.prerequisites import (
    DEFAULT_MESSAGE, DEFAULT_PREREQUISITES, PrerequisiteGraph,
)
from masala_chef.errors import RecipeDefinitionError
from masala_chef.models.schemas import ActionKind, Milestone


def flags(*reached):
    state = {milestone: False for milestone in Milestone}
    for milestone in reached:
        state[milestone] = True
    return state


@pytest.fixture
def graph():
    return PrerequisiteGraph()


class TestRequirements:
    """Tests for the default kitchen rules."""

    def test_every_action_has_an_entry(self, graph):
        """All action kinds should be covered."""
        for action in ActionKind:
            assert isinstance(graph.requirements_for(action), frozenset)

    def test_place_has_no_prerequisites(self, graph):
        """The pan can be placed at any time."""
        assert graph.requirements_for(ActionKind.PLACE) == frozenset()
        assert graph.first_missing(ActionKind.PLACE, flags()) is None

    def test_spices_need_oil(self, graph):
        """Spices require the pan, heat and oil."""
        assert graph.requirements_for(ActionKind.ADD_SPICE) == {
            Milestone.PAN_PLACED, Milestone.HEAT_SET, Milestone.OIL_ADDED
        }

    def test_cook_needs_everything_before_it(self, graph):
        """Cooking requires the whole chain up to stirring."""
        required = graph.requirements_for(ActionKind.COOK)
        assert Milestone.STIRRED in required
        assert Milestone.POTATO_IN_PAN in required
        assert Milestone.SPICES_ADDED not in required


class TestFirstMissing:
    """Tests for first_missing() priority order."""

    def test_reports_highest_priority(self, graph):
        """With nothing done, cooking reports the potato selection first."""
        assert graph.first_missing(ActionKind.COOK, flags()) == Milestone.POTATO_SELECTED

    def test_skips_satisfied(self, graph):
        """Satisfied milestones are skipped in order."""
        reached = flags(
            Milestone.POTATO_SELECTED, Milestone.POTATO_WASHED, Milestone.PAN_PLACED
        )
        assert graph.first_missing(ActionKind.ADD_INGREDIENT, reached) == Milestone.POTATO_PEELED

    def test_none_when_all_met(self, graph):
        """No missing milestone once requirements hold."""
        reached = flags(Milestone.PAN_PLACED, Milestone.HEAT_SET)
        assert graph.first_missing(ActionKind.ADD_OIL, reached) is None

    def test_messages(self, graph):
        """Messages are human readable, with a fallback."""
        assert graph.message_for(Milestone.OIL_ADDED) == "Add oil to the pan first!"
        assert graph.message_for(Milestone.POTATO_SELECTED) == "Select a potato first!"
        assert graph.message_for(None) == DEFAULT_MESSAGE


class TestCustomGraph:
    """Tests for custom prerequisite tables."""

    def test_missing_action_rejected(self):
        """Every action kind must be listed."""
        table = dict(DEFAULT_PREREQUISITES)
        del table[ActionKind.STIR]
        with pytest.raises(RecipeDefinitionError) as exc_info:
            PrerequisiteGraph(table)
        assert "stir" in exc_info.value.details["actions"]

    def test_accepts_string_keys(self):
        """Tables may be written with plain strings."""
        table = {action.value: [] for action in ActionKind}
        table["stir"] = ["potato_in_pan"]
        graph = PrerequisiteGraph(table)
        assert graph.requirements_for(ActionKind.STIR) == {Milestone.POTATO_IN_PAN}
