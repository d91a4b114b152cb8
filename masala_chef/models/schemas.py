"""
Pydantic data models for the Masala Chef recipe engine.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ActionKind(str, Enum):
    """Physical operations a recipe step can ask for."""
    WASH = "wash"
    PEEL = "peel"
    CHOP = "chop"
    PLACE = "place"
    SET_HEAT = "set_heat"
    ADD_OIL = "add_oil"
    ADD_SPICE = "add_spice"
    ADD_INGREDIENT = "add_ingredient"
    STIR = "stir"
    COOK = "cook"


# Actions that put a substance into the pan
SUBSTANCE_ACTIONS = frozenset({
    ActionKind.ADD_OIL,
    ActionKind.ADD_SPICE,
    ActionKind.ADD_INGREDIENT,
})


class Milestone(str, Enum):
    """
    One-way physical preconditions.

    Declaration order is the priority order used when reporting the first
    missing prerequisite.
    """
    POTATO_SELECTED = "potato_selected"
    POTATO_WASHED = "potato_washed"
    POTATO_PEELED = "potato_peeled"
    POTATO_CHOPPED = "potato_chopped"
    PAN_PLACED = "pan_placed"
    HEAT_SET = "heat_set"
    OIL_ADDED = "oil_added"
    SPICES_ADDED = "spices_added"
    POTATO_IN_PAN = "potato_in_pan"
    STIRRED = "stirred"
    COOKED = "cooked"


class IngredientKey(str, Enum):
    """Canonical ingredient identities."""
    POTATO = "potato"
    OIL = "oil"
    ZEERA = "zeera"
    TURMERIC = "turmeric"
    RED_CHILLI = "red_chilli"
    SALT = "salt"


class SessionPhase(str, Enum):
    """Lifecycle of a play-through."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class MistakeKind(str, Enum):
    """Deviations recorded by the scoring ledger."""
    ORDER_VIOLATION = "order_violation"
    QUANTITY_DEVIATION = "quantity_deviation"
    MISSING_INGREDIENT = "missing_ingredient"


class ValidationCode(str, Enum):
    """Outcome codes for an attempted action."""
    OK = "ok"
    DUPLICATE = "duplicate"
    SESSION_NOT_STARTED = "session_not_started"
    SESSION_COMPLETE = "session_complete"
    MISSING_PREREQUISITE = "missing_prerequisite"
    OUT_OF_SEQUENCE = "out_of_sequence"
    ALREADY_COMPLETED = "already_completed"
    INGREDIENT_MISMATCH = "ingredient_mismatch"
    UNKNOWN_ACTION = "unknown_action"
    UNKNOWN_INGREDIENT = "unknown_ingredient"


class StepDefinition(BaseModel):
    """One atomic instruction in a recipe."""
    id: int = Field(..., ge=1, description="Dense canonical position, 1..N")
    description: str = Field(..., description="Instruction shown to the player")
    target_item: str = Field(..., description="Object or ingredient the step acts on")
    action: ActionKind
    options: List[str] = Field(default_factory=list, description="Discrete choices offered")
    preferred_option: Optional[str] = Field(None, description="Ideal choice, if any")
    result_item: Optional[str] = Field(None, description="Item that exists after the step")
    unlocks: List[Milestone] = Field(
        default_factory=list,
        description="Milestones that become true when the step completes"
    )
    hints: List[str] = Field(default_factory=list)

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": 6,
                    "description": "Add oil to the pan",
                    "target_item": "oil",
                    "action": "add_oil",
                    "options": ["1 tbsp", "2 tbsp", "3 tbsp"],
                    "preferred_option": "2 tbsp",
                    "unlocks": ["oil_added"],
                    "hints": ["Add oil to the pan"]
                }
            ]
        }
    }

    @field_validator('description', 'target_item')
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Step text fields cannot be empty')
        return v.strip()

    @model_validator(mode='after')
    def preferred_option_must_be_offered(self) -> "StepDefinition":
        if self.preferred_option is not None and self.preferred_option not in self.options:
            raise ValueError(
                f"Step {self.id}: preferred option '{self.preferred_option}' is not among its options"
            )
        return self

    @property
    def is_substance_step(self) -> bool:
        return self.action in SUBSTANCE_ACTIONS


class RecipeDefinition(BaseModel):
    """Static, ordered catalog of steps for one dish."""
    key: str = Field(..., description="Registry key, e.g. 'aloo_bhujia'")
    name: str
    steps: List[StepDefinition]
    required_ingredients: List[IngredientKey] = Field(
        default_factory=list,
        description="Ingredients checked against the ingredient log at reconciliation"
    )
    base_ingredient: Optional[IngredientKey] = Field(
        None,
        description="Ingredient checked by inspecting completed steps (it has no quantity)"
    )
    expected_duration_seconds: int = Field(..., ge=1)

    model_config = {"frozen": True}

    @field_validator('steps')
    @classmethod
    def steps_must_be_dense(cls, v: List[StepDefinition]) -> List[StepDefinition]:
        if not v:
            raise ValueError('Recipe must have at least one step')
        ids = [step.id for step in v]
        if ids != list(range(1, len(v) + 1)):
            raise ValueError(f'Step ids must be 1..{len(v)} in order, got {ids}')
        return v

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def get_step(self, step_id: int) -> Optional[StepDefinition]:
        """Get a step by id."""
        if 1 <= step_id <= len(self.steps):
            return self.steps[step_id - 1]
        return None


class StepAttempt(BaseModel):
    """An action the player is trying to perform."""
    action: str = Field(..., description="Action kind, e.g. 'add_spice'")
    target_item: str = Field(..., description="On-screen object the player used")
    step_id: Optional[int] = Field(None, ge=1, description="Step the caller believes it is performing")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"action": "add_spice", "target_item": "haldi"}
            ]
        }
    }


class ValidationResult(BaseModel):
    """Structured verdict on an attempt. Never raised, always returned."""
    legal: bool
    code: ValidationCode
    reason: Optional[str] = None
    missing_milestone: Optional[Milestone] = None
    step_id: Optional[int] = Field(None, description="Step the attempt resolves to")
    ingredient: Optional[IngredientKey] = None
    duplicate: bool = Field(
        default=False,
        description="Legal repeat: the caller must not complete the step again"
    )


class Mistake(BaseModel):
    """A recorded deviation from the ideal play-through."""
    kind: MistakeKind
    step_id: Optional[int] = None
    description: str
    expected: Optional[str] = None
    actual: Optional[str] = None
    ingredient: Optional[IngredientKey] = None


class StepLogEntry(BaseModel):
    """One completed step, in completion order."""
    step_id: int
    description: str
    action: ActionKind
    target_item: str
    option: Optional[str] = None
    points: int
    elapsed_seconds: float


class Progress(BaseModel):
    """Completion progress for display."""
    total: int
    completed: int
    percentage: float


class SessionSummary(BaseModel):
    """Immutable result handed to the persistence collaborator."""
    recipe_key: str
    recipe_name: str
    score: int = Field(..., ge=0, description="Final score, clamped at zero")
    raw_score: int
    time_bonus: int
    elapsed_seconds: float
    mistakes: List[Mistake]
    ingredient_log: Dict[IngredientKey, Optional[str]]
    missing_ingredients: List[IngredientKey]
    completed_step_ids: List[int]
    steps: List[StepLogEntry]
    fully_completed: bool
    started_at: datetime
    ended_at: datetime

    model_config = {"frozen": True}


class SessionState(BaseModel):
    """
    Mutable state of one play-through.

    Owned by a single RecipeSession; engine components receive it explicitly
    and are the only writers.
    """
    recipe_key: str
    phase: SessionPhase = SessionPhase.NOT_STARTED
    milestones: Dict[Milestone, bool] = Field(
        default_factory=lambda: {milestone: False for milestone in Milestone}
    )
    completed_step_ids: List[int] = Field(default_factory=list)
    ingredient_log: Dict[IngredientKey, Optional[str]] = Field(default_factory=dict)
    score: int = 0
    mistakes: List[Mistake] = Field(default_factory=list)
    step_log: List[StepLogEntry] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    summary: Optional[SessionSummary] = None

    def is_completed(self, step_id: int) -> bool:
        return step_id in self.completed_step_ids


class StepCompletion(BaseModel):
    """Result of a committed step."""
    step: StepDefinition
    points: int
    milestones_set: List[Milestone] = Field(default_factory=list)
    next_steps: List[StepDefinition] = Field(
        default_factory=list,
        description="Pending steps that are legal right now"
    )
    session_complete: bool = False
    summary: Optional[SessionSummary] = None
