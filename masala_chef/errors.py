"""
Custom exceptions and error codes for the Masala Chef engine.

This module provides:
- Structured error codes for categorized error handling
- Custom exception classes for protocol misuse and configuration defects
- Error response schema for consistent API responses

Player-facing validation failures are NOT exceptions; they are returned as
ValidationResult data by the step validator.
"""
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel


class ErrorCode(str, Enum):
    """
    Application-wide error codes for categorized error handling.

    Format: CATEGORY_SPECIFIC_ERROR
    Categories:
    - SESSION_*: Session lifecycle errors
    - STEP_*: Step completion protocol errors
    - RECIPE_*: Recipe definition (content) errors
    - CONTENT_*: Unknown actions or ingredients in attempts
    """

    # Session lifecycle errors
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_NOT_STARTED = "SESSION_NOT_STARTED"
    SESSION_ALREADY_COMPLETE = "SESSION_ALREADY_COMPLETE"
    SESSION_LIMIT_EXCEEDED = "SESSION_LIMIT_EXCEEDED"

    # Step protocol errors
    STEP_NOT_FOUND = "STEP_NOT_FOUND"
    STEP_ALREADY_COMPLETED = "STEP_ALREADY_COMPLETED"
    STEP_NOT_VALIDATED = "STEP_NOT_VALIDATED"
    STEP_INVALID_OPTION = "STEP_INVALID_OPTION"
    INVALID_OPERATION = "INVALID_OPERATION"

    # Recipe content errors
    RECIPE_NOT_FOUND = "RECIPE_NOT_FOUND"
    RECIPE_INVALID_DEFINITION = "RECIPE_INVALID_DEFINITION"

    # Content lookups at runtime
    CONTENT_UNKNOWN_ACTION = "CONTENT_UNKNOWN_ACTION"
    CONTENT_UNKNOWN_INGREDIENT = "CONTENT_UNKNOWN_INGREDIENT"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Structured error response for API errors."""
    error_code: ErrorCode
    message: str
    details: Optional[Dict[str, Any]] = None

    model_config = {"use_enum_values": True}


class MasalaChefError(Exception):
    """
    Base exception for all Masala Chef engine errors.

    Provides structured error information for consistent error handling.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse for API output."""
        return ErrorResponse(
            error_code=self.error_code,
            message=self.message,
            details=self.details if self.details else None,
        )


# Session lookups

class SessionNotFoundError(MasalaChefError):
    """Raised when a session id is not registered."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Cooking session '{session_id}' not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
            details={"session_id": session_id},
            status_code=404,
        )


class SessionLimitExceededError(MasalaChefError):
    """Raised when the in-memory registry is full."""

    def __init__(self, max_limit: int):
        super().__init__(
            message=f"Too many active cooking sessions (limit {max_limit}). Please try again later.",
            error_code=ErrorCode.SESSION_LIMIT_EXCEEDED,
            details={"max_limit": max_limit},
            status_code=429,
        )


# Protocol misuse: the caller broke the validate -> complete_step contract

class InvalidOperationError(MasalaChefError):
    """Base exception for calls made in a state that does not allow them."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_OPERATION,
        details: Dict[str, Any] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            status_code=409,
        )


class SessionNotStartedError(InvalidOperationError):
    """Raised when a session operation is used before start()."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"Cannot {operation}: the cooking session has not started",
            error_code=ErrorCode.SESSION_NOT_STARTED,
            details={"operation": operation},
        )


class SessionAlreadyCompleteError(InvalidOperationError):
    """Raised when a finished session is asked to progress further."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"Cannot {operation}: the cooking session is already complete",
            error_code=ErrorCode.SESSION_ALREADY_COMPLETE,
            details={"operation": operation},
        )


class StepAlreadyCompletedError(InvalidOperationError):
    """Raised when complete_step is called twice for the same step."""

    def __init__(self, step_id: int):
        super().__init__(
            message=f"Step {step_id} has already been completed",
            error_code=ErrorCode.STEP_ALREADY_COMPLETED,
            details={"step_id": step_id},
        )


class StepNotValidatedError(InvalidOperationError):
    """Raised when complete_step is called without a prior legal validation."""

    def __init__(self, step_id: int):
        super().__init__(
            message=f"Step {step_id} was not validated as legal before completion",
            error_code=ErrorCode.STEP_NOT_VALIDATED,
            details={"step_id": step_id},
        )


class InvalidOptionError(InvalidOperationError):
    """Raised when the chosen option is not one the step offers."""

    def __init__(self, step_id: int, option: str, options: list):
        super().__init__(
            message=f"Option '{option}' is not available for step {step_id}",
            error_code=ErrorCode.STEP_INVALID_OPTION,
            details={"step_id": step_id, "option": option, "options": options},
        )


class StepNotFoundError(MasalaChefError):
    """Raised when a step id is not part of the recipe."""

    def __init__(self, step_id: int, recipe_key: str = None):
        details = {"step_id": step_id}
        if recipe_key:
            details["recipe_key"] = recipe_key
        super().__init__(
            message=f"Step {step_id} does not exist in this recipe",
            error_code=ErrorCode.STEP_NOT_FOUND,
            details=details,
            status_code=404,
        )


# Configuration defects in recipe content

class RecipeNotFoundError(MasalaChefError):
    """Raised when a recipe key is not registered."""

    def __init__(self, recipe_key: str):
        super().__init__(
            message=f"Recipe '{recipe_key}' not found",
            error_code=ErrorCode.RECIPE_NOT_FOUND,
            details={"recipe_key": recipe_key},
            status_code=404,
        )


class RecipeDefinitionError(MasalaChefError):
    """Raised when a recipe, alias table or prerequisite graph is inconsistent."""

    def __init__(self, reason: str, details: Dict[str, Any] = None):
        base_details = {"reason": reason}
        if details:
            base_details.update(details)
        super().__init__(
            message=f"Invalid recipe definition: {reason}",
            error_code=ErrorCode.RECIPE_INVALID_DEFINITION,
            details=base_details,
            status_code=500,
        )


class UnknownActionError(MasalaChefError):
    """Raised in strict mode when an attempt names an action outside the closed set."""

    def __init__(self, action: str):
        super().__init__(
            message=f"Unknown action '{action}'",
            error_code=ErrorCode.CONTENT_UNKNOWN_ACTION,
            details={"action": action},
            status_code=422,
        )


class UnknownIngredientError(MasalaChefError):
    """Raised in strict mode when a substance cannot be resolved to an ingredient."""

    def __init__(self, target_item: str):
        super().__init__(
            message=f"Unknown ingredient '{target_item}'",
            error_code=ErrorCode.CONTENT_UNKNOWN_INGREDIENT,
            details={"target_item": target_item},
            status_code=422,
        )
