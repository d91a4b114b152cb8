"""
Prerequisite graph: which milestones must hold before an action may be attempted.
"""
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from masala_chef.errors import RecipeDefinitionError
from masala_chef.models.schemas import ActionKind, Milestone


_POTATO_READY = (
    Milestone.POTATO_SELECTED,
    Milestone.POTATO_WASHED,
    Milestone.POTATO_PEELED,
    Milestone.POTATO_CHOPPED,
)

_PAN_READY = (
    Milestone.PAN_PLACED,
    Milestone.HEAT_SET,
    Milestone.OIL_ADDED,
)

DEFAULT_PREREQUISITES: Dict[ActionKind, FrozenSet[Milestone]] = {
    ActionKind.WASH: frozenset({Milestone.POTATO_SELECTED}),
    ActionKind.PEEL: frozenset(_POTATO_READY[:2]),
    ActionKind.CHOP: frozenset(_POTATO_READY[:3]),
    ActionKind.PLACE: frozenset(),
    ActionKind.SET_HEAT: frozenset({Milestone.PAN_PLACED}),
    ActionKind.ADD_OIL: frozenset({Milestone.PAN_PLACED, Milestone.HEAT_SET}),
    ActionKind.ADD_SPICE: frozenset(_PAN_READY),
    ActionKind.ADD_INGREDIENT: frozenset(_POTATO_READY + _PAN_READY),
    ActionKind.STIR: frozenset(_POTATO_READY + _PAN_READY + (Milestone.POTATO_IN_PAN,)),
    ActionKind.COOK: frozenset(
        _POTATO_READY + _PAN_READY + (Milestone.POTATO_IN_PAN, Milestone.STIRRED)
    ),
}

# Player-facing message for the first missing milestone
MILESTONE_MESSAGES: Dict[Milestone, str] = {
    Milestone.POTATO_SELECTED: "Select a potato first!",
    Milestone.POTATO_WASHED: "The potato needs to be washed first!",
    Milestone.POTATO_PEELED: "The potato needs to be peeled first!",
    Milestone.POTATO_CHOPPED: "The potato needs to be chopped first!",
    Milestone.PAN_PLACED: "The pan needs to be placed on the stove first!",
    Milestone.HEAT_SET: "Set the stove heat first!",
    Milestone.OIL_ADDED: "Add oil to the pan first!",
    Milestone.SPICES_ADDED: "Add spices first!",
    Milestone.POTATO_IN_PAN: "Add the diced potatoes to the pan first!",
    Milestone.STIRRED: "The potatoes need to be stirred first!",
}

DEFAULT_MESSAGE = "Complete previous steps first!"

# Enum declaration order is the reporting priority
MILESTONE_PRIORITY = tuple(Milestone)


class PrerequisiteGraph:
    """Static mapping from action kind to required milestones."""

    def __init__(self, requirements: Optional[Mapping[ActionKind, Iterable[Milestone]]] = None):
        table = DEFAULT_PREREQUISITES if requirements is None else requirements
        self._requirements: Dict[ActionKind, FrozenSet[Milestone]] = {
            ActionKind(action): frozenset(Milestone(m) for m in milestones)
            for action, milestones in table.items()
        }

        missing = [action.value for action in ActionKind if action not in self._requirements]
        if missing:
            raise RecipeDefinitionError(
                "prerequisite graph has no entry for some actions",
                details={"actions": missing},
            )

    def requirements_for(self, action: ActionKind) -> FrozenSet[Milestone]:
        return self._requirements[action]

    def first_missing(
        self,
        action: ActionKind,
        milestones: Mapping[Milestone, bool],
    ) -> Optional[Milestone]:
        """
        Find the highest-priority unmet requirement for an action.

        Args:
            action: The attempted action kind
            milestones: Current milestone flags

        Returns:
            The first missing milestone in priority order, or None if all are met
        """
        required = self._requirements[action]
        for milestone in MILESTONE_PRIORITY:
            if milestone in required and not milestones.get(milestone, False):
                return milestone
        return None

    @staticmethod
    def message_for(milestone: Optional[Milestone]) -> str:
        return MILESTONE_MESSAGES.get(milestone, DEFAULT_MESSAGE)
