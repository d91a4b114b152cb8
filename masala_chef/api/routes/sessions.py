"""
Cooking session API routes.

This is the input-dispatch surface for browser clients: the client validates
an attempt, plays its animation, and then commits the step.
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from masala_chef.engine.session import RecipeSession
from masala_chef.errors import MasalaChefError
from masala_chef.models.schemas import (
    Milestone, Progress, SessionPhase, SessionSummary, StepAttempt, StepCompletion,
    StepDefinition, ValidationResult,
)
from masala_chef.services.session_service import SessionService, get_session_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


class SessionCreateRequest(BaseModel):
    """Request to start a cooking session."""
    recipe_key: Optional[str] = Field(None, description="Recipe to play; defaults to the configured recipe")


class CompleteStepRequest(BaseModel):
    """Commit a validated step."""
    chosen_option: Optional[str] = Field(None, description="Option picked from the step's menu")

    model_config = {
        "json_schema_extra": {
            "examples": [{"chosen_option": "2 tbsp"}]
        }
    }


class SessionResponse(BaseModel):
    """Current view of a session for rendering."""
    session_id: str
    recipe_key: str
    recipe_name: str
    phase: SessionPhase
    score: int
    current_step: Optional[StepDefinition] = None
    next_steps: List[StepDefinition] = Field(default_factory=list)
    hints: List[str] = Field(default_factory=list)
    progress: Progress
    milestones: Dict[Milestone, bool]

    @classmethod
    def from_session(cls, session_id: str, session: RecipeSession) -> "SessionResponse":
        return cls(
            session_id=session_id,
            recipe_key=session.recipe.key,
            recipe_name=session.recipe.name,
            phase=session.phase,
            score=session.score,
            current_step=session.get_current_step(),
            next_steps=session.get_next_steps(),
            hints=session.get_hints(),
            progress=session.get_progress(),
            milestones=session.get_milestone_flags(),
        )


def _http_error(error: MasalaChefError) -> HTTPException:
    return HTTPException(
        status_code=error.status_code,
        detail={
            "error_code": error.error_code.value,
            "message": error.message,
            "details": error.details,
        },
    )


def _get_session(service: SessionService, session_id: str) -> RecipeSession:
    try:
        return service.get(session_id)
    except MasalaChefError as e:
        raise _http_error(e)


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    request: SessionCreateRequest,
    service: SessionService = Depends(get_session_service),
):
    """Create and start a new cooking session."""
    try:
        session_id, session = service.create(request.recipe_key)
    except MasalaChefError as e:
        logger.warning(f"Could not create session: {e.message}")
        raise _http_error(e)
    return SessionResponse.from_session(session_id, session)


@router.get("/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, service: SessionService = Depends(get_session_service)):
    """Get the current state of a session."""
    return SessionResponse.from_session(session_id, _get_session(service, session_id))


@router.post("/{session_id}/select", response_model=SessionResponse)
def select_base_ingredient(session_id: str, service: SessionService = Depends(get_session_service)):
    """Pick the base ingredient out of the basket."""
    try:
        with service.locked(session_id) as session:
            session.select_base_ingredient()
            return SessionResponse.from_session(session_id, session)
    except MasalaChefError as e:
        raise _http_error(e)


@router.post("/{session_id}/validate", response_model=ValidationResult)
def validate_attempt(
    session_id: str,
    attempt: StepAttempt,
    service: SessionService = Depends(get_session_service),
):
    """
    Check whether an attempted action is legal.

    Always 200: an illegal attempt is a normal outcome with a reason for the player.
    Raises only for unknown sessions and, in strict mode, configuration defects.
    """
    try:
        with service.locked(session_id) as session:
            return session.validate(attempt)
    except MasalaChefError as e:
        raise _http_error(e)


@router.post("/{session_id}/steps/{step_id}/complete", response_model=StepCompletion)
def complete_step(
    session_id: str,
    step_id: int,
    request: CompleteStepRequest,
    service: SessionService = Depends(get_session_service),
):
    """
    Commit a step that was validated as legal.

    Concurrent commits of the same step are serialized; the second one gets 409.
    """
    try:
        with service.locked(session_id) as session:
            return session.complete_step(step_id, request.chosen_option)
    except MasalaChefError as e:
        raise _http_error(e)


@router.post("/{session_id}/finalize", response_model=SessionSummary)
def finalize_session(session_id: str, service: SessionService = Depends(get_session_service)):
    """End the session (if still running) and return its summary."""
    try:
        with service.locked(session_id) as session:
            return session.finalize()
    except MasalaChefError as e:
        raise _http_error(e)


@router.post("/{session_id}/reset", response_model=SessionResponse)
def reset_session(session_id: str, service: SessionService = Depends(get_session_service)):
    """Discard progress and start the same recipe again."""
    try:
        with service.locked(session_id) as session:
            session.reset()
            session.start()
            return SessionResponse.from_session(session_id, session)
    except MasalaChefError as e:
        raise _http_error(e)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(session_id: str, service: SessionService = Depends(get_session_service)):
    """Discard a session."""
    try:
        service.delete(session_id)
    except MasalaChefError as e:
        raise _http_error(e)
